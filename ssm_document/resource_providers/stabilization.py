"""
Observes a document while it stabilizes after the create call. All state between two invocations lives in the
``CallbackContext``, which the caller passes back on every invocation.
"""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from ssm_document.aws.connect import ClientProxy
from ssm_document.exceptions import ResourceNotStabilizedException
from ssm_document.resource_provider import OperationStatus
from ssm_document.resource_providers.translator import DocumentModelTranslator

if TYPE_CHECKING:
    from mypy_boto3_ssm import SSMClient

    from ssm_document.resource_providers.aws_ssm_document import SSMDocumentProperties

LOG = logging.getLogger(__name__)


class ResourceStatus(Enum):
    """Status of a document as reported by SSM, plus UNKNOWN for values outside of the SSM enumeration."""

    CREATING = "Creating"
    ACTIVE = "Active"
    UPDATING = "Updating"
    DELETING = "Deleting"
    FAILED = "Failed"
    UNKNOWN = "Unknown"

    @classmethod
    def from_remote(cls, status: Optional[str]) -> ResourceStatus:
        for member in cls:
            if member is not cls.UNKNOWN and member.value == status:
                return member
        LOG.warning("Unrecognized document status %r, treating it as failed", status)
        return cls.UNKNOWN

    def to_operation_status(self) -> OperationStatus:
        match self:
            case ResourceStatus.ACTIVE:
                return OperationStatus.SUCCESS
            case ResourceStatus.CREATING:
                return OperationStatus.IN_PROGRESS
            case _:
                return OperationStatus.FAILED


@dataclass(frozen=True)
class CallbackContext:
    """
    The resumption token of the create handler.

    :param create_document_started: whether the CreateDocument call has been issued successfully
    :param stabilization_retries_remaining: number of polls left before the handler gives up
    """

    create_document_started: bool = False
    stabilization_retries_remaining: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "createDocumentStarted": self.create_document_started,
            "stabilizationRetriesRemaining": self.stabilization_retries_remaining,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> CallbackContext:
        if not data:
            return cls()
        return cls(
            create_document_started=bool(data.get("createDocumentStarted")),
            stabilization_retries_remaining=data.get("stabilizationRetriesRemaining"),
        )


@dataclass
class ResourceInformation:
    status: ResourceStatus
    status_information: str


@dataclass
class GetProgressResponse:
    resource_information: ResourceInformation
    callback_context: CallbackContext


class StabilizationProgressRetriever:
    """
    Checks the status of a document with exactly one DescribeDocument call per invocation. Never waits, waiting
    between two checks is up to the caller.
    """

    def __init__(
        self, document_model_translator: DocumentModelTranslator = None, proxy: ClientProxy = None
    ):
        self.document_model_translator = document_model_translator or DocumentModelTranslator()
        self.proxy = proxy or ClientProxy()

    def get_event_progress(
        self,
        model: SSMDocumentProperties,
        callback_context: CallbackContext,
        ssm_client: SSMClient,
    ) -> GetProgressResponse:
        """
        Retrieves the current status of the document and consumes one poll of the budget.

        :raises ResourceNotStabilizedException: if the budget was already used up
        :raises botocore.exceptions.ClientError: if the DescribeDocument call fails
        """
        retries_remaining = callback_context.stabilization_retries_remaining or 0
        if retries_remaining <= 0:
            raise ResourceNotStabilizedException(
                f"Timed out waiting for document '{model.get('Name')}' to become active"
            )

        updated_context = dataclasses.replace(
            callback_context, stabilization_retries_remaining=retries_remaining - 1
        )

        request = self.document_model_translator.generate_describe_document_request(model)
        response = self.proxy.invoke(ssm_client.describe_document, request)

        description = response.get("Document", {})
        status = ResourceStatus.from_remote(description.get("Status"))
        status_information = (
            description.get("StatusInformation")
            or f"Document {model.get('Name')} is in status {description.get('Status')}"
        )

        LOG.debug(
            "Document %s is %s, %d polls remaining",
            model.get("Name"),
            status.value,
            updated_context.stabilization_retries_remaining,
        )

        return GetProgressResponse(
            resource_information=ResourceInformation(
                status=status, status_information=status_information
            ),
            callback_context=updated_context,
        )
