from typing import Optional, Type

from ssm_document.constants import SSM_DOCUMENT_RESOURCE_TYPE
from ssm_document.resource_provider import ResourceProvider, ResourceProviderPlugin


class SSMDocumentProviderPlugin(ResourceProviderPlugin):
    name = SSM_DOCUMENT_RESOURCE_TYPE

    def __init__(self):
        self.factory: Optional[Type[ResourceProvider]] = None

    def load(self):
        from ssm_document.resource_providers.aws_ssm_document import SSMDocumentProvider

        self.factory = SSMDocumentProvider
