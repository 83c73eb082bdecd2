import logging
import sys

from ssm_document import config, constants

from .format import AddFormattedAttributes, DefaultFormatter

# the log levels below are the defaults of noisy third-party loggers, independent of the ssm_document log level

default_log_levels = {
    "boto3": logging.INFO,
    "botocore": logging.ERROR,
    "s3transfer": logging.INFO,
    "urllib3": logging.WARNING,
    "plux": logging.WARNING,
}

trace_log_levels = {
    "botocore": logging.DEBUG,
    "urllib3": logging.DEBUG,
}


def setup_logging_for_cli(log_level=logging.INFO):
    logging.basicConfig(level=log_level)

    logging.root.setLevel(log_level)
    logging.getLogger("ssm_document").setLevel(log_level)
    for logger, level in default_log_levels.items():
        logging.getLogger(logger).setLevel(level)


def get_log_level_from_config():
    # SSM_DOCUMENT_LOG overrides DEBUG
    if config.SSM_DOCUMENT_LOG:
        log_level = str(config.SSM_DOCUMENT_LOG).upper()
        if log_level.lower() in constants.TRACE_LOG_LEVELS:
            log_level = "DEBUG"
        log_level = logging.getLevelName(log_level)
        return log_level

    return logging.DEBUG if config.DEBUG else logging.INFO


def setup_logging_from_config():
    log_level = get_log_level_from_config()
    setup_logging(log_level)

    if config.is_trace_logging_enabled():
        for name, level in trace_log_levels.items():
            logging.getLogger(name).setLevel(level)


def create_default_handler(log_level: int):
    log_handler = logging.StreamHandler(stream=sys.stderr)
    log_handler.setLevel(log_level)
    log_handler.setFormatter(DefaultFormatter())
    log_handler.addFilter(AddFormattedAttributes())
    return log_handler


def setup_logging(log_level=logging.INFO) -> None:
    """
    Configures the python logging environment for the resource provider.

    :param log_level: the optional log level.
    """
    log_handler = create_default_handler(log_level)

    # replace any existing handlers
    logging.basicConfig(level=log_level, handlers=[log_handler], force=True)

    logging.captureWarnings(True)

    logging.root.setLevel(log_level)
    logging.getLogger("ssm_document").setLevel(log_level)
    for logger, level in default_log_levels.items():
        logging.getLogger(logger).setLevel(level)
