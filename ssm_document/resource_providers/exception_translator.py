"""
Classification of SSM errors into the handler error taxonomy.
"""
import logging
from enum import Enum, auto
from typing import Union

from botocore.exceptions import ClientError, ParamValidationError

from ssm_document import config
from ssm_document.exceptions import (
    AccessDeniedException,
    AlreadyExistsException,
    GeneralServiceException,
    InvalidRequestException,
    NotFoundException,
    ResourceHandlerException,
    ServiceInternalErrorException,
    ThrottlingException,
)

LOG = logging.getLogger(__name__)

# errors raised by provider calls which are classified, anything else propagates unmodified
PROVIDER_ERRORS = (ClientError, ParamValidationError)

ProviderError = Union[ClientError, ParamValidationError]


class ProviderErrorCategory(Enum):
    NOT_FOUND = auto()
    ALREADY_EXISTS = auto()
    INVALID_REQUEST = auto()
    ACCESS_DENIED = auto()
    THROTTLED = auto()
    SERVICE_UNAVAILABLE = auto()
    GENERIC = auto()


ERROR_CODE_CATEGORIES: dict[str, ProviderErrorCategory] = {
    # SSM reports unknown documents as InvalidDocument
    "InvalidDocument": ProviderErrorCategory.NOT_FOUND,
    "DocumentAlreadyExists": ProviderErrorCategory.ALREADY_EXISTS,
    "InvalidDocumentContent": ProviderErrorCategory.INVALID_REQUEST,
    "InvalidDocumentSchemaVersion": ProviderErrorCategory.INVALID_REQUEST,
    "InvalidDocumentVersion": ProviderErrorCategory.INVALID_REQUEST,
    "InvalidDocumentOperation": ProviderErrorCategory.INVALID_REQUEST,
    "MaxDocumentSizeExceeded": ProviderErrorCategory.INVALID_REQUEST,
    "DocumentLimitExceeded": ProviderErrorCategory.INVALID_REQUEST,
    "DocumentVersionLimitExceeded": ProviderErrorCategory.INVALID_REQUEST,
    "DuplicateDocumentContent": ProviderErrorCategory.INVALID_REQUEST,
    "DuplicateDocumentVersionName": ProviderErrorCategory.INVALID_REQUEST,
    "AssociatedInstances": ProviderErrorCategory.INVALID_REQUEST,
    "TooManyTagsError": ProviderErrorCategory.INVALID_REQUEST,
    "InvalidNextToken": ProviderErrorCategory.INVALID_REQUEST,
    "ValidationException": ProviderErrorCategory.INVALID_REQUEST,
    "AccessDeniedException": ProviderErrorCategory.ACCESS_DENIED,
    "UnrecognizedClientException": ProviderErrorCategory.ACCESS_DENIED,
    "ThrottlingException": ProviderErrorCategory.THROTTLED,
    "TooManyUpdates": ProviderErrorCategory.THROTTLED,
    "InternalServerError": ProviderErrorCategory.SERVICE_UNAVAILABLE,
    "ServiceUnavailable": ProviderErrorCategory.SERVICE_UNAVAILABLE,
}


def get_error_code(error: ProviderError) -> str:
    if isinstance(error, ClientError):
        return error.response.get("Error", {}).get("Code", "")
    return ""


def get_error_message(error: ProviderError) -> str:
    if isinstance(error, ClientError):
        return error.response.get("Error", {}).get("Message") or str(error)
    return str(error)


def categorize(error: ProviderError) -> ProviderErrorCategory:
    """Maps a provider error onto its category. Client-side parameter validation errors are invalid requests."""
    if isinstance(error, ParamValidationError):
        return ProviderErrorCategory.INVALID_REQUEST
    return ERROR_CODE_CATEGORIES.get(get_error_code(error), ProviderErrorCategory.GENERIC)


class DocumentExceptionTranslator:
    def get_cfn_exception(
        self, error: ProviderError, document_name: str, operation_name: str
    ) -> ResourceHandlerException:
        """
        Translates the given provider error into the handler exception of its category. The message of the returned
        exception names the document and the operation which failed.

        :param error: the error raised by the provider call
        :param document_name: name of the document the call was made for
        :param operation_name: name of the failed operation, e.g. CreateDocument
        :return: the exception to fail the handler invocation with
        """
        category = categorize(error)
        reason = get_error_message(error)
        prefix = f"{operation_name} failed for document '{document_name}'"

        log_method = LOG.exception if config.VERBOSE_ERRORS else LOG.info
        log_method("%s (%s): %s", prefix, category.name, reason)

        match category:
            case ProviderErrorCategory.NOT_FOUND:
                return NotFoundException(f"{prefix}: document not found. {reason}", error)
            case ProviderErrorCategory.ALREADY_EXISTS:
                return AlreadyExistsException(f"{prefix}: document already exists. {reason}", error)
            case ProviderErrorCategory.INVALID_REQUEST:
                return InvalidRequestException(f"{prefix}: invalid request. {reason}", error)
            case ProviderErrorCategory.ACCESS_DENIED:
                return AccessDeniedException(f"{prefix}: access denied. {reason}", error)
            case ProviderErrorCategory.THROTTLED:
                return ThrottlingException(f"{prefix}: request throttled. {reason}", error)
            case ProviderErrorCategory.SERVICE_UNAVAILABLE:
                return ServiceInternalErrorException(
                    f"{prefix}: service unavailable. {reason}", error
                )
            case _:
                return GeneralServiceException(f"{prefix}: {reason}", error)
