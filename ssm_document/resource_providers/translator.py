"""
Translates the resource model of an ``AWS::SSM::Document`` into the requests of the SSM API.
"""
from __future__ import annotations

import json
from collections.abc import Mapping
from typing import TYPE_CHECKING, Optional

from ssm_document.constants import LATEST_DOCUMENT_VERSION, STACK_NAME_SYSTEM_TAG
from ssm_document.exceptions import InvalidDocumentContentException
from ssm_document.utils.collections import none_if_empty, remove_none_values
from ssm_document.utils.strings import generate_resource_identifier

if TYPE_CHECKING:
    from mypy_boto3_ssm.type_defs import (
        CreateDocumentRequestRequestTypeDef,
        DeleteDocumentRequestRequestTypeDef,
        DescribeDocumentRequestRequestTypeDef,
        GetDocumentRequestRequestTypeDef,
        ListDocumentsRequestRequestTypeDef,
        UpdateDocumentRequestRequestTypeDef,
    )

    from ssm_document.resource_providers.aws_ssm_document import (
        AttachmentsSource,
        DocumentRequires,
        SSMDocumentProperties,
        Tag,
    )

# stack names with these prefixes are not used in generated document names, SSM reserves them
DOCUMENT_RESERVED_PREFIXES = ("aws-", "amazon", "amzn")
DEFAULT_DOCUMENT_NAME_PREFIX = "document"
DOCUMENT_NAME_MAX_LENGTH = 128
DOCUMENT_NAME_DELIMITER = "-"


class DocumentModelTranslator:
    """
    Builds the SSM requests for a document model. All methods are pure, the translator keeps no state.
    """

    def generate_create_document_request(
        self,
        model: SSMDocumentProperties,
        system_tags: Optional[dict[str, str]],
        resource_tags: Optional[dict[str, str]],
        request_token: str,
    ) -> CreateDocumentRequestRequestTypeDef:
        """
        Generate the CreateDocument request of the given model. If the model has no name, a name is generated from
        the stack name and the request token.

        :raises InvalidDocumentContentException: if the content of the model cannot be serialized
        """
        document_name = model.get("Name") or self.generate_name(system_tags, request_token)
        document_content = self.process_document_content(model.get("Content"))

        return remove_none_values(
            {
                "Name": document_name,
                "VersionName": model.get("VersionName"),
                "Content": document_content,
                "DocumentFormat": model.get("DocumentFormat"),
                "DocumentType": model.get("DocumentType"),
                "TargetType": model.get("TargetType"),
                "Tags": self.translate_tags(resource_tags),
                "Attachments": self.translate_attachments(model.get("Attachments")),
                "Requires": self.translate_requires(model.get("Requires")),
            }
        )

    def generate_get_document_request(
        self, model: SSMDocumentProperties
    ) -> GetDocumentRequestRequestTypeDef:
        return remove_none_values(
            {
                "Name": model["Name"],
                "DocumentVersion": LATEST_DOCUMENT_VERSION,
                "DocumentFormat": model.get("DocumentFormat"),
            }
        )

    def generate_describe_document_request(
        self, model: SSMDocumentProperties
    ) -> DescribeDocumentRequestRequestTypeDef:
        return {"Name": model["Name"], "DocumentVersion": LATEST_DOCUMENT_VERSION}

    def generate_update_document_request(
        self, model: SSMDocumentProperties
    ) -> UpdateDocumentRequestRequestTypeDef:
        document_content = self.process_document_content(model.get("Content"))

        return remove_none_values(
            {
                "Name": model["Name"],
                "Content": document_content,
                "VersionName": model.get("VersionName"),
                "DocumentVersion": LATEST_DOCUMENT_VERSION,
                "DocumentFormat": model.get("DocumentFormat"),
                "TargetType": model.get("TargetType"),
                "Attachments": self.translate_attachments(model.get("Attachments")),
            }
        )

    def generate_delete_document_request(
        self, model: SSMDocumentProperties
    ) -> DeleteDocumentRequestRequestTypeDef:
        # Force is required for some document types, the call fails if the caller may not use it
        return {"Name": model["Name"], "Force": True}

    def generate_list_documents_request(
        self, next_token: Optional[str] = None
    ) -> ListDocumentsRequestRequestTypeDef:
        return remove_none_values(
            {
                "Filters": [{"Key": "Owner", "Values": ["Self"]}],
                "NextToken": next_token,
            }
        )

    def generate_name(self, system_tags: Optional[dict[str, str]], request_token: str) -> str:
        """
        Generates a document name of the form ``<stack name>-document-<generated id>``. The stack name is left out if
        it is unknown or starts with a reserved prefix.
        """
        identifier_prefix = ""

        if stack_name := self.get_stack_name(system_tags):
            identifier_prefix = stack_name + DOCUMENT_NAME_DELIMITER

        identifier_prefix += DEFAULT_DOCUMENT_NAME_PREFIX

        return generate_resource_identifier(
            identifier_prefix, request_token, DOCUMENT_NAME_MAX_LENGTH
        )

    def get_stack_name(self, system_tags: Optional[dict[str, str]]) -> Optional[str]:
        if not system_tags:
            return None

        stack_name = system_tags.get(STACK_NAME_SYSTEM_TAG)
        if not stack_name:
            return None

        if stack_name.lower().startswith(DOCUMENT_RESERVED_PREFIXES):
            return None

        return stack_name

    def process_document_content(self, content) -> str:
        if isinstance(content, str):
            return content

        if not isinstance(content, Mapping):
            raise InvalidDocumentContentException(
                f"Document Content must be a string or an object, got {type(content).__name__}"
            )

        try:
            return json.dumps(content)
        except (TypeError, ValueError) as e:
            raise InvalidDocumentContentException("Document Content is not valid") from e

    def translate_tags(self, tags: Optional[dict[str, str]]) -> Optional[list[Tag]]:
        if not tags:
            return None

        return [{"Key": key, "Value": value} for key, value in tags.items()]

    def translate_attachments(
        self, attachments_sources: Optional[list[AttachmentsSource]]
    ) -> Optional[list[AttachmentsSource]]:
        attachments_sources = none_if_empty(attachments_sources)
        if attachments_sources is None:
            return None

        return [
            remove_none_values(
                {
                    "Key": source.get("Key"),
                    "Values": source.get("Values"),
                    "Name": source.get("Name"),
                }
            )
            for source in attachments_sources
        ]

    def translate_requires(
        self, requires: Optional[list[DocumentRequires]]
    ) -> Optional[list[DocumentRequires]]:
        requires = none_if_empty(requires)
        if requires is None:
            return None

        return [
            remove_none_values({"Name": required["Name"], "Version": required.get("Version")})
            for required in requires
        ]

    def translate_to_model(
        self, get_document_response: dict, describe_document_response: dict
    ) -> SSMDocumentProperties:
        """Builds the model of an existing document from its GetDocument and DescribeDocument responses."""
        description = describe_document_response.get("Document", {})
        model = {
            "Name": get_document_response.get("Name"),
            "Content": get_document_response.get("Content"),
            "DocumentFormat": get_document_response.get("DocumentFormat"),
            "DocumentType": get_document_response.get("DocumentType"),
            "VersionName": get_document_response.get("VersionName"),
            "Requires": get_document_response.get("Requires"),
            "TargetType": description.get("TargetType"),
            "Tags": description.get("Tags"),
        }
        return remove_none_values(model)
