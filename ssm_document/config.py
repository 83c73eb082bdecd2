import logging
import os
from typing import Union

from ssm_document.constants import (
    AWS_REGION_US_EAST_1,
    DEFAULT_CALLBACK_DELAY_SECONDS,
    DEFAULT_STABILIZATION_TIMEOUT_SECONDS,
    LOG_LEVELS,
    TRACE_LOG_LEVELS,
    TRUE_STRINGS,
)

LOG = logging.getLogger(__name__)


def eval_log_type(env_var_name: str) -> Union[str, bool]:
    """Get the log type from environment variable"""
    ls_log = os.environ.get(env_var_name, "").lower().strip()
    return ls_log if ls_log in LOG_LEVELS else False


def is_env_true(env_var_name: str) -> bool:
    """Whether the given environment variable has a truthy value."""
    return os.environ.get(env_var_name, "").lower().strip() in TRUE_STRINGS


def get_int_from_env(env_var_name: str, default: int) -> int:
    """Parse a positive integer from the given environment variable, falling back to the default."""
    value = os.environ.get(env_var_name, "").strip()
    if not value:
        return default
    try:
        result = int(value)
    except ValueError:
        LOG.warning("Ignoring non-numeric value %r of %s", value, env_var_name)
        return default
    if result <= 0:
        LOG.warning("Ignoring non-positive value %r of %s", value, env_var_name)
        return default
    return result


def get_stabilization_retries(timeout_seconds: int, callback_delay_seconds: int) -> int:
    """
    Number of polls allowed during stabilization. The budget is always derived from the wall-clock target and the
    poll interval, so changing the interval changes the number of polls instead of the total wait time.

    :param timeout_seconds: wall-clock target for the resource to become ready
    :param callback_delay_seconds: delay between two polls
    :return: the number of polls, at least 1
    :raises ValueError: if the timeout or the delay is not positive
    """
    if callback_delay_seconds <= 0:
        raise ValueError(f"Invalid callback delay: {callback_delay_seconds}")
    if timeout_seconds <= 0:
        raise ValueError(f"Invalid stabilization timeout: {timeout_seconds}")
    return max(timeout_seconds // callback_delay_seconds, 1)


# log level of the ssm_document loggers, e.g. "debug" or "trace"
SSM_DOCUMENT_LOG = eval_log_type("SSM_DOCUMENT_LOG")
DEBUG = is_env_true("DEBUG") or SSM_DOCUMENT_LOG in TRACE_LOG_LEVELS

# whether classified provider errors are logged with their full traceback
VERBOSE_ERRORS = is_env_true("VERBOSE_ERRORS")

# time period after which the handler should be called again to check the status of the document
SSM_DOCUMENT_CALLBACK_DELAY_SECONDS = get_int_from_env(
    "SSM_DOCUMENT_CALLBACK_DELAY_SECONDS", DEFAULT_CALLBACK_DELAY_SECONDS
)

# wall-clock target for a created document to become active
SSM_DOCUMENT_STABILIZATION_TIMEOUT = get_int_from_env(
    "SSM_DOCUMENT_STABILIZATION_TIMEOUT", DEFAULT_STABILIZATION_TIMEOUT_SECONDS
)

# number of polls after the create call, derived from the two values above
SSM_DOCUMENT_STABILIZATION_RETRIES = get_stabilization_retries(
    SSM_DOCUMENT_STABILIZATION_TIMEOUT, SSM_DOCUMENT_CALLBACK_DELAY_SECONDS
)

# optional endpoint override for the SSM client (e.g., http://localhost:4566)
SSM_ENDPOINT_URL = os.environ.get("SSM_ENDPOINT_URL", "").strip() or None

# region used when the environment does not configure one
DEFAULT_REGION = (
    os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION") or AWS_REGION_US_EAST_1
)


def is_trace_logging_enabled():
    if SSM_DOCUMENT_LOG:
        log_level = str(SSM_DOCUMENT_LOG).upper()
        return log_level.lower() in TRACE_LOG_LEVELS
    return False
