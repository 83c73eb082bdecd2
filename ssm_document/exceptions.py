from enum import Enum
from typing import Optional


class HandlerErrorCode(str, Enum):
    """Failure categories reported to the caller with a FAILED progress event."""

    InvalidRequest = "InvalidRequest"
    NotFound = "NotFound"
    AlreadyExists = "AlreadyExists"
    AccessDenied = "AccessDenied"
    Throttling = "Throttling"
    ServiceInternalError = "ServiceInternalError"
    GeneralServiceException = "GeneralServiceException"
    NotStabilized = "NotStabilized"
    RemoteFailure = "RemoteFailure"


class ResourceHandlerException(Exception):
    """
    Base class of the errors raised while handling a resource request. These exceptions are never retried by the
    handler, they terminate the reconciliation with a FAILED progress event carrying ``error_code``.
    Do not use this exception directly (use the subclasses instead).
    """

    error_code: HandlerErrorCode = HandlerErrorCode.GeneralServiceException

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.message = message
        self.cause = cause
        super().__init__(message)


class InvalidRequestException(ResourceHandlerException):
    error_code = HandlerErrorCode.InvalidRequest


class NotFoundException(ResourceHandlerException):
    error_code = HandlerErrorCode.NotFound


class AlreadyExistsException(ResourceHandlerException):
    error_code = HandlerErrorCode.AlreadyExists


class AccessDeniedException(ResourceHandlerException):
    error_code = HandlerErrorCode.AccessDenied


class ThrottlingException(ResourceHandlerException):
    error_code = HandlerErrorCode.Throttling


class ServiceInternalErrorException(ResourceHandlerException):
    error_code = HandlerErrorCode.ServiceInternalError


class GeneralServiceException(ResourceHandlerException):
    error_code = HandlerErrorCode.GeneralServiceException


class ResourceNotStabilizedException(ResourceHandlerException):
    """Raised when the poll budget is exhausted before the resource reached a terminal status."""

    error_code = HandlerErrorCode.NotStabilized


class InvalidDocumentContentException(Exception):
    """Raised when the document content of the model cannot be serialized."""

    pass
