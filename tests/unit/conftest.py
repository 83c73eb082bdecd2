import logging

import pytest
from botocore.stub import Stubber

from ssm_document.aws.connect import ClientFactory
from ssm_document.constants import SSM_DOCUMENT_RESOURCE_TYPE, STACK_NAME_SYSTEM_TAG
from ssm_document.resource_provider import ResourceRequest
from ssm_document.testing.config import (
    TEST_AWS_ACCESS_KEY_ID,
    TEST_AWS_ACCOUNT_ID,
    TEST_AWS_REGION_NAME,
    TEST_AWS_SECRET_ACCESS_KEY,
    TEST_REQUEST_TOKEN,
    TEST_STACK_NAME,
)


@pytest.fixture(autouse=True)
def set_boto_test_credentials_and_region(monkeypatch):
    """
    Automatically sets the default credentials and region for all unit tests.
    """
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", TEST_AWS_ACCESS_KEY_ID)
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", TEST_AWS_SECRET_ACCESS_KEY)
    monkeypatch.setenv("AWS_DEFAULT_REGION", TEST_AWS_REGION_NAME)


@pytest.fixture
def aws_client_factory():
    """A client factory of its own per test, so that stubbed clients are never shared between tests."""
    return ClientFactory()(
        region_name=TEST_AWS_REGION_NAME,
        aws_access_key_id=TEST_AWS_ACCESS_KEY_ID,
        aws_secret_access_key=TEST_AWS_SECRET_ACCESS_KEY,
    )


@pytest.fixture
def ssm_stubber(aws_client_factory):
    with Stubber(aws_client_factory.ssm) as stubber:
        yield stubber
        stubber.assert_no_pending_responses()


@pytest.fixture
def create_resource_request(aws_client_factory):
    def _create(
        model: dict,
        callback_context=None,
        system_tags: dict = None,
        tags: dict = None,
        request_token: str = TEST_REQUEST_TOKEN,
        action: str = "Add",
        next_token: str = None,
    ) -> ResourceRequest:
        if system_tags is None:
            system_tags = {STACK_NAME_SYSTEM_TAG: TEST_STACK_NAME}
        return ResourceRequest(
            aws_client_factory=aws_client_factory,
            request_token=request_token,
            stack_name=TEST_STACK_NAME,
            stack_id=f"arn:aws:cloudformation:{TEST_AWS_REGION_NAME}:{TEST_AWS_ACCOUNT_ID}:stack/{TEST_STACK_NAME}/1",
            account_id=TEST_AWS_ACCOUNT_ID,
            region_name=TEST_AWS_REGION_NAME,
            action=action,
            desired_state=model,
            logical_resource_id="MyDocument",
            resource_type=SSM_DOCUMENT_RESOURCE_TYPE,
            logger=logging.getLogger("ssm_document.test"),
            callback_context=callback_context,
            system_tags=system_tags,
            tags=tags or {},
            next_token=next_token,
        )

    return _create
