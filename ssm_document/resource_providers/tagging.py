import re
from typing import Optional

from ssm_document.resource_providers.exception_translator import (
    ProviderError,
    get_error_code,
    get_error_message,
)

# permission needed to attach tags while creating a document
TAGGING_PERMISSION = "ssm:AddTagsToResource"

# errors which are caused by the tags of a request, independent of the error message
TAG_ERROR_CODES = frozenset({"TooManyTagsError", "InvalidTag"})

TAG_MENTION = re.compile(r"\btags?\b")


def is_tagging_error(error: ProviderError) -> bool:
    """Whether the error is caused by attaching tags, rather than by the operation they were attached to."""
    code = get_error_code(error)
    if code in TAG_ERROR_CODES:
        return True

    message = get_error_message(error).lower()
    if code == "AccessDeniedException":
        return TAGGING_PERMISSION.lower() in message
    if code == "ValidationException":
        return bool(TAG_MENTION.search(message))
    return False


def should_soft_fail_tags(
    previous_tags: Optional[dict[str, str]],
    desired_tags: Optional[dict[str, str]],
    error: ProviderError,
) -> bool:
    """
    Decides whether a failed create call should be retried without tags. This is the only error the handlers recover
    from: tags are optional, the document itself is not.

    :param previous_tags: tags the resource had before, None on creation
    :param desired_tags: tags requested for the resource
    :param error: the error of the create call
    :return: True if the call should be retried once without tags
    """
    if not desired_tags:
        return False

    if previous_tags == desired_tags:
        return False

    return is_tagging_error(error)
