from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, TypedDict

from ssm_document import config
from ssm_document.aws.connect import ClientProxy
from ssm_document.constants import SSM_DOCUMENT_RESOURCE_TYPE
from ssm_document.exceptions import (
    HandlerErrorCode,
    InvalidDocumentContentException,
    InvalidRequestException,
    ResourceHandlerException,
)
from ssm_document.resource_provider import (
    OperationStatus,
    ProgressEvent,
    ResourceProvider,
    ResourceRequest,
)
from ssm_document.resource_providers.exception_translator import (
    PROVIDER_ERRORS,
    DocumentExceptionTranslator,
    get_error_code,
)
from ssm_document.resource_providers.safe_logger import SafeLogger
from ssm_document.resource_providers.stabilization import (
    CallbackContext,
    StabilizationProgressRetriever,
)
from ssm_document.resource_providers.tagging import should_soft_fail_tags
from ssm_document.resource_providers.translator import DocumentModelTranslator

if TYPE_CHECKING:
    from mypy_boto3_ssm import SSMClient

LOG = logging.getLogger(__name__)


class Tag(TypedDict):
    Key: Optional[str]
    Value: Optional[str]


class AttachmentsSource(TypedDict, total=False):
    Key: Optional[str]
    Name: Optional[str]
    Values: Optional[list[str]]


class DocumentRequires(TypedDict, total=False):
    Name: Optional[str]
    Version: Optional[str]


class SSMDocumentProperties(TypedDict, total=False):
    Content: Optional[dict | str]
    Attachments: Optional[list[AttachmentsSource]]
    DocumentFormat: Optional[str]
    DocumentType: Optional[str]
    Name: Optional[str]
    Requires: Optional[list[DocumentRequires]]
    Tags: Optional[list[Tag]]
    TargetType: Optional[str]
    UpdateMethod: Optional[str]
    VersionName: Optional[str]


SSMDocumentRequest = ResourceRequest[SSMDocumentProperties, CallbackContext]
SSMDocumentProgressEvent = ProgressEvent[SSMDocumentProperties, CallbackContext]


class SSMDocumentProvider(ResourceProvider[SSMDocumentProperties, CallbackContext]):
    TYPE = SSM_DOCUMENT_RESOURCE_TYPE

    OPERATION_CREATE = "CreateDocument"
    OPERATION_READ = "GetDocument"
    OPERATION_UPDATE = "UpdateDocument"
    OPERATION_DELETE = "DeleteDocument"
    OPERATION_LIST = "ListDocuments"

    def __init__(
        self,
        document_model_translator: DocumentModelTranslator = None,
        stabilization_progress_retriever: StabilizationProgressRetriever = None,
        exception_translator: DocumentExceptionTranslator = None,
        proxy: ClientProxy = None,
        safe_logger: SafeLogger = None,
        callback_delay_seconds: int = None,
        stabilization_timeout: int = None,
    ):
        self.document_model_translator = document_model_translator or DocumentModelTranslator()
        self.proxy = proxy or ClientProxy()
        self.stabilization_progress_retriever = (
            stabilization_progress_retriever
            or StabilizationProgressRetriever(self.document_model_translator, self.proxy)
        )
        self.exception_translator = exception_translator or DocumentExceptionTranslator()
        self.safe_logger = safe_logger or SafeLogger()
        self.callback_delay_seconds = (
            callback_delay_seconds
            if callback_delay_seconds is not None
            else config.SSM_DOCUMENT_CALLBACK_DELAY_SECONDS
        )
        # the poll budget always follows the delay, see config.get_stabilization_retries
        self.stabilization_retries = config.get_stabilization_retries(
            (
                stabilization_timeout
                if stabilization_timeout is not None
                else config.SSM_DOCUMENT_STABILIZATION_TIMEOUT
            ),
            self.callback_delay_seconds,
        )

    def deserialize_callback_context(self, context: dict) -> CallbackContext:
        return CallbackContext.from_dict(context)

    def create(self, request: SSMDocumentRequest) -> SSMDocumentProgressEvent:
        """
        Create a new document, or check the progress of a document created by a previous invocation.

        The first invocation (no callback context) issues CreateDocument and returns IN_PROGRESS. Every following
        invocation issues one DescribeDocument call, until the document is active, failed, or the poll budget is
        used up.

        Primary identifier fields:
          - /properties/Name

        Required properties:
          - Content

        Create-only properties:
          - /properties/Name
          - /properties/DocumentType

        IAM permissions required:
          - ssm:CreateDocument
          - ssm:DescribeDocument
          - ssm:AddTagsToResource
        """
        model = request.desired_state
        context = request.callback_context or CallbackContext()

        self.safe_logger.safe_log_document_information(
            model, request.callback_context, request.account_id, request.system_tags, request.logger
        )

        try:
            if context.create_document_started:
                return self._update_progress(model, context, request.aws_client_factory.ssm)
            return self._start_creation(request, model)
        except ResourceHandlerException as e:
            request.logger.warning("Create of document %s failed: %s", model.get("Name"), e.message)
            return ProgressEvent.failed(model, e)

    def _start_creation(
        self,
        request: SSMDocumentRequest,
        model: SSMDocumentProperties,
    ) -> SSMDocumentProgressEvent:
        desired_tags = self.get_desired_tags(request)

        try:
            create_document_request = (
                self.document_model_translator.generate_create_document_request(
                    model, request.system_tags, desired_tags, request.request_token
                )
            )
        except InvalidDocumentContentException as e:
            raise InvalidRequestException(str(e), e) from e

        # the name stays fixed for all following invocations
        model["Name"] = create_document_request["Name"]

        response = self._create_document(
            create_document_request, model, desired_tags, request.aws_client_factory.ssm
        )

        next_context = CallbackContext(
            create_document_started=True,
            stabilization_retries_remaining=self.stabilization_retries,
        )

        return ProgressEvent(
            status=OperationStatus.IN_PROGRESS,
            resource_model=model,
            message=response.get("DocumentDescription", {}).get("StatusInformation", ""),
            callback_context=next_context,
            callback_delay_seconds=self.callback_delay_seconds,
        )

    def _create_document(
        self,
        create_document_request: dict,
        model: SSMDocumentProperties,
        desired_tags: dict[str, str],
        ssm_client: SSMClient,
    ) -> dict:
        try:
            return self.proxy.invoke(ssm_client.create_document, create_document_request)
        except PROVIDER_ERRORS as e:
            if not should_soft_fail_tags(None, desired_tags, e):
                raise self.exception_translator.get_cfn_exception(
                    e, model["Name"], self.OPERATION_CREATE
                ) from e
            LOG.warning(
                "Soft fail adding tags during create of document %s: %s",
                model["Name"],
                get_error_code(e),
            )

        create_document_request_without_tags = {
            key: value for key, value in create_document_request.items() if key != "Tags"
        }
        try:
            return self.proxy.invoke(ssm_client.create_document, create_document_request_without_tags)
        except PROVIDER_ERRORS as e:
            raise self.exception_translator.get_cfn_exception(
                e, model["Name"], self.OPERATION_CREATE
            ) from e

    def _update_progress(
        self,
        model: SSMDocumentProperties,
        context: CallbackContext,
        ssm_client: SSMClient,
    ) -> SSMDocumentProgressEvent:
        try:
            progress_response = self.stabilization_progress_retriever.get_event_progress(
                model, context, ssm_client
            )
        except PROVIDER_ERRORS as e:
            raise self.exception_translator.get_cfn_exception(
                e, model.get("Name"), self.OPERATION_CREATE
            ) from e

        resource_information = progress_response.resource_information
        operation_status = resource_information.status.to_operation_status()

        if operation_status == OperationStatus.IN_PROGRESS:
            return ProgressEvent(
                status=operation_status,
                resource_model=model,
                message=resource_information.status_information,
                callback_context=progress_response.callback_context,
                callback_delay_seconds=self.callback_delay_seconds,
            )

        if operation_status == OperationStatus.SUCCESS:
            return ProgressEvent.success(model, resource_information.status_information)

        return ProgressEvent(
            status=OperationStatus.FAILED,
            resource_model=model,
            message=resource_information.status_information,
            error_code=HandlerErrorCode.RemoteFailure,
        )

    def read(self, request: SSMDocumentRequest) -> SSMDocumentProgressEvent:
        """
        Fetch the latest version of the document.

        IAM permissions required:
          - ssm:GetDocument
          - ssm:DescribeDocument
        """
        model = request.desired_state
        ssm = request.aws_client_factory.ssm

        try:
            document = self.proxy.invoke(
                ssm.get_document, self.document_model_translator.generate_get_document_request(model)
            )
            description = self.proxy.invoke(
                ssm.describe_document,
                self.document_model_translator.generate_describe_document_request(model),
            )
        except PROVIDER_ERRORS as e:
            return ProgressEvent.failed(
                model,
                self.exception_translator.get_cfn_exception(e, model.get("Name"), self.OPERATION_READ),
            )

        return ProgressEvent.success(
            self.document_model_translator.translate_to_model(document, description)
        )

    def update(self, request: SSMDocumentRequest) -> SSMDocumentProgressEvent:
        """
        Create a new version of the document with the content of the model. Unchanged content is not an error.

        IAM permissions required:
          - ssm:UpdateDocument
        """
        model = request.desired_state
        ssm = request.aws_client_factory.ssm

        try:
            update_request = self.document_model_translator.generate_update_document_request(model)
        except InvalidDocumentContentException as e:
            return ProgressEvent.failed(model, InvalidRequestException(str(e), e))

        try:
            response = self.proxy.invoke(ssm.update_document, update_request)
        except PROVIDER_ERRORS as e:
            if get_error_code(e) == "DuplicateDocumentContent":
                return ProgressEvent.success(model, "Document content unchanged")
            return ProgressEvent.failed(
                model,
                self.exception_translator.get_cfn_exception(e, model.get("Name"), self.OPERATION_UPDATE),
            )

        description = response.get("DocumentDescription", {})
        return ProgressEvent.success(
            model, f"Created version {description.get('DocumentVersion')} of document {model['Name']}"
        )

    def delete(self, request: SSMDocumentRequest) -> SSMDocumentProgressEvent:
        """
        Delete the document with all of its versions.

        IAM permissions required:
          - ssm:DeleteDocument
        """
        model = request.desired_state
        ssm = request.aws_client_factory.ssm

        try:
            self.proxy.invoke(
                ssm.delete_document,
                self.document_model_translator.generate_delete_document_request(model),
            )
        except PROVIDER_ERRORS as e:
            return ProgressEvent.failed(
                model,
                self.exception_translator.get_cfn_exception(e, model.get("Name"), self.OPERATION_DELETE),
            )

        return ProgressEvent.success(model)

    def list(self, request: SSMDocumentRequest) -> SSMDocumentProgressEvent:
        """
        List one page of the documents owned by the account.

        IAM permissions required:
          - ssm:ListDocuments
        """
        ssm = request.aws_client_factory.ssm

        try:
            response = self.proxy.invoke(
                ssm.list_documents,
                self.document_model_translator.generate_list_documents_request(request.next_token),
            )
        except PROVIDER_ERRORS as e:
            return ProgressEvent.failed(
                {},
                self.exception_translator.get_cfn_exception(e, "*", self.OPERATION_LIST),
            )

        event = ProgressEvent.success({})
        event.resource_models = [
            {"Name": identifier["Name"]} for identifier in response.get("DocumentIdentifiers", [])
        ]
        event.next_token = response.get("NextToken")
        return event

    @staticmethod
    def get_desired_tags(request: SSMDocumentRequest) -> dict[str, str]:
        """Stack-level tags of the request, overridden by the tags of the model."""
        tags = dict(request.tags or {})
        for tag in request.desired_state.get("Tags") or []:
            tags[tag["Key"]] = tag["Value"]
        return tags
