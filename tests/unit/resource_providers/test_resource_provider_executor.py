import pytest

from ssm_document import resource_provider
from ssm_document.constants import SSM_DOCUMENT_RESOURCE_TYPE, STACK_NAME_SYSTEM_TAG
from ssm_document.exceptions import HandlerErrorCode
from ssm_document.resource_provider import (
    NoResourceProvider,
    OperationStatus,
    ProgressEvent,
    ResourceProvider,
    ResourceProviderExecutor,
    convert_payload,
)
from ssm_document.resource_providers.aws_ssm_document import SSMDocumentProvider
from ssm_document.resource_providers.aws_ssm_document_plugin import SSMDocumentProviderPlugin
from ssm_document.resource_providers.stabilization import CallbackContext
from ssm_document.testing.config import TEST_AWS_ACCOUNT_ID, TEST_AWS_REGION_NAME


def _payload(action: str = "Add", properties: dict = None, **kwargs) -> dict:
    payload = {
        "action": action,
        "awsAccountId": TEST_AWS_ACCOUNT_ID,
        "region": TEST_AWS_REGION_NAME,
        "resourceType": SSM_DOCUMENT_RESOURCE_TYPE,
        "callbackContext": None,
        "clientRequestToken": "token",
        "requestData": {
            "logicalResourceId": "MyDocument",
            "resourceProperties": properties if properties is not None else {"Name": "mydoc"},
            "systemTags": {STACK_NAME_SYSTEM_TAG: "mystack"},
            "stackTags": {"team": "ops"},
        },
    }
    payload.update(kwargs)
    return payload


class RecordingSleep:
    def __init__(self):
        self.delays = []

    def __call__(self, seconds):
        self.delays.append(seconds)


class CountingProvider(ResourceProvider[dict, dict]):
    """Succeeds on the third invocation, counting the invocations in the callback context."""

    def __init__(self):
        self.received_contexts = []

    def create(self, request):
        self.received_contexts.append(request.callback_context)
        invocations = (request.callback_context or {}).get("invocations", 0) + 1
        if invocations < 3:
            return ProgressEvent(
                status=OperationStatus.IN_PROGRESS,
                resource_model=request.desired_state,
                callback_context={"invocations": invocations},
                callback_delay_seconds=5,
            )
        return ProgressEvent.success(request.desired_state)


@pytest.fixture
def stubbed_connect_to(monkeypatch, aws_client_factory):
    """Makes all handler invocations of the executor use the (stubbed) clients of the test."""
    monkeypatch.setattr(resource_provider, "connect_to", lambda **kwargs: aws_client_factory)


class TestConvertPayload:
    def test_convert_payload(self):
        payload = _payload(
            callbackContext={"createDocumentStarted": True, "stabilizationRetriesRemaining": 3},
            nextToken="page-2",
        )

        request = convert_payload("mystack", "stack-id", payload, CallbackContext.from_dict)

        assert request.action == "Add"
        assert request.request_token == "token"
        assert request.account_id == TEST_AWS_ACCOUNT_ID
        assert request.region_name == TEST_AWS_REGION_NAME
        assert request.desired_state == {"Name": "mydoc"}
        assert request.system_tags == {STACK_NAME_SYSTEM_TAG: "mystack"}
        assert request.tags == {"team": "ops"}
        assert request.callback_context == CallbackContext(True, 3)
        assert request.next_token == "page-2"
        assert request.previous_state is None

    def test_missing_request_token_is_generated(self):
        payload = _payload()
        del payload["clientRequestToken"]

        request = convert_payload("mystack", "stack-id", payload)

        assert request.request_token


class TestDeployLoop:
    def test_reinvokes_until_terminal(self):
        sleep = RecordingSleep()
        provider = CountingProvider()
        executor = ResourceProviderExecutor(
            stack_name="mystack", stack_id="stack-id", resource_provider=provider, sleep=sleep
        )
        events = []

        event = executor.deploy_loop(_payload(), on_event=events.append)

        assert event.status == OperationStatus.SUCCESS
        assert [e.status for e in events] == [
            OperationStatus.IN_PROGRESS,
            OperationStatus.IN_PROGRESS,
            OperationStatus.SUCCESS,
        ]
        assert provider.received_contexts == [None, {"invocations": 1}, {"invocations": 2}]
        assert sleep.delays == [5, 5]

    def test_max_iterations(self):
        executor = ResourceProviderExecutor(
            stack_name="mystack",
            stack_id="stack-id",
            resource_provider=CountingProvider(),
            sleep=RecordingSleep(),
        )

        with pytest.raises(TimeoutError):
            executor.deploy_loop(_payload(), max_iterations=2)

    def test_payload_is_not_modified(self):
        payload = _payload()
        executor = ResourceProviderExecutor(
            stack_name="mystack",
            stack_id="stack-id",
            resource_provider=CountingProvider(),
            sleep=RecordingSleep(),
        )

        executor.deploy_loop(payload)

        assert payload["callbackContext"] is None

    def test_unknown_action(self):
        executor = ResourceProviderExecutor(
            stack_name="mystack", stack_id="stack-id", resource_provider=CountingProvider()
        )

        with pytest.raises(NotImplementedError):
            executor.deploy_loop(_payload(action="Import"))

    def test_document_reconciliation(self, ssm_stubber, stubbed_connect_to):
        ssm_stubber.add_response(
            "create_document", {"DocumentDescription": {"Name": "mydoc", "Status": "Creating"}}
        )
        ssm_stubber.add_response(
            "describe_document", {"Document": {"Name": "mydoc", "Status": "Creating"}}
        )
        ssm_stubber.add_response(
            "describe_document", {"Document": {"Name": "mydoc", "Status": "Active"}}
        )
        sleep = RecordingSleep()
        executor = ResourceProviderExecutor(
            stack_name="mystack",
            stack_id="stack-id",
            resource_provider=SSMDocumentProvider(callback_delay_seconds=30, stabilization_timeout=600),
            sleep=sleep,
        )
        events = []

        event = executor.deploy_loop(
            _payload(properties={"Name": "mydoc", "Content": "{}"}), on_event=events.append
        )

        assert event.status == OperationStatus.SUCCESS
        assert [e.callback_context for e in events] == [
            CallbackContext(True, 20),
            CallbackContext(True, 19),
            None,
        ]
        assert sleep.delays == [30, 30]

    def test_document_reconciliation_failure(self, ssm_stubber, stubbed_connect_to):
        ssm_stubber.add_response(
            "create_document", {"DocumentDescription": {"Name": "mydoc", "Status": "Creating"}}
        )
        ssm_stubber.add_response(
            "describe_document",
            {"Document": {"Name": "mydoc", "Status": "Failed", "StatusInformation": "broken"}},
        )
        executor = ResourceProviderExecutor(
            stack_name="mystack",
            stack_id="stack-id",
            resource_provider=SSMDocumentProvider(callback_delay_seconds=30, stabilization_timeout=600),
            sleep=RecordingSleep(),
        )

        event = executor.deploy_loop(_payload(properties={"Name": "mydoc", "Content": "{}"}))

        assert event.status == OperationStatus.FAILED
        assert event.error_code == HandlerErrorCode.RemoteFailure
        assert event.message == "broken"


class TestPlugin:
    def test_load_sets_factory(self):
        plugin = SSMDocumentProviderPlugin()
        assert plugin.factory is None

        plugin.load()

        assert plugin.factory is SSMDocumentProvider
        assert plugin.name == SSM_DOCUMENT_RESOURCE_TYPE

    def test_unknown_resource_type(self):
        executor = ResourceProviderExecutor(stack_name="mystack", stack_id="stack-id")

        with pytest.raises(NoResourceProvider):
            executor.load_resource_provider("AWS::SSM::Unknown")
