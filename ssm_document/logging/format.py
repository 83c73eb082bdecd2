"""Log format of the resource provider: level, resource the line belongs to, abbreviated logger name."""
import logging

from ssm_document.constants import HANDLER_LOGGER_NAME

MAX_NAME_LEN = 30

# placeholder of the resource column for lines which are not logged by a handler
NO_RESOURCE = "-"

LOG_FORMAT = (
    f"%(asctime)s.%(msecs)03d %(short_level)-5s [%(resource_id)s] "
    f"%(short_name)-{MAX_NAME_LEN}s : %(message)s"
)
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

SHORT_LEVEL_NAMES = {
    logging.CRITICAL: "FATAL",
    logging.WARNING: "WARN",
}


class DefaultFormatter(logging.Formatter):
    def __init__(self, fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT):
        super().__init__(fmt=fmt, datefmt=datefmt)


class AddFormattedAttributes(logging.Filter):
    """
    Adds the attributes used by ``LOG_FORMAT`` to every record:

    - short_level: the level name, at most 5 characters
    - resource_id: logical id of the resource a handler logger belongs to, ``-`` for all other loggers
    - short_name: the logger name, abbreviated to ``max_name_len`` characters
    """

    def __init__(self, max_name_len: int = MAX_NAME_LEN):
        super().__init__()
        self.max_name_len = max_name_len

    def filter(self, record):
        record.short_level = SHORT_LEVEL_NAMES.get(record.levelno, record.levelname)
        record.resource_id = get_resource_id(record.name) or NO_RESOURCE
        record.short_name = abbreviate_logger_name(record.name, self.max_name_len)
        return True


def get_resource_id(logger_name: str):
    """Returns the logical resource id of a handler logger (``ssm_document.handler.<id>``), None otherwise."""
    parent, _, resource_id = logger_name.partition(HANDLER_LOGGER_NAME + ".")
    if parent or not resource_id:
        return None
    return resource_id


def abbreviate_logger_name(name: str, length: int) -> str:
    """
    Shortens a logger name to at most ``length`` characters. All package names are cut down to their first letter
    and the module name is kept, e.g. ``ssm_document.resource_providers.translator`` becomes ``s.r.translator``. If
    that is still too long, the end of the name is cut off.
    """
    if len(name) <= length:
        return name

    *packages, module = name.split(".")
    abbreviated = ".".join([package[:1] for package in packages] + [module])
    return abbreviated[:length]
