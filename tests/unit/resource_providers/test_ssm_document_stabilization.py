import pytest

from ssm_document.exceptions import ResourceNotStabilizedException
from ssm_document.resource_provider import OperationStatus
from ssm_document.resource_providers.stabilization import (
    CallbackContext,
    ResourceStatus,
    StabilizationProgressRetriever,
)


class TestResourceStatus:
    @pytest.mark.parametrize(
        "value,status",
        [
            ("Creating", ResourceStatus.CREATING),
            ("Active", ResourceStatus.ACTIVE),
            ("Updating", ResourceStatus.UPDATING),
            ("Deleting", ResourceStatus.DELETING),
            ("Failed", ResourceStatus.FAILED),
            ("Unknown", ResourceStatus.UNKNOWN),
            ("active", ResourceStatus.UNKNOWN),
            ("", ResourceStatus.UNKNOWN),
            (None, ResourceStatus.UNKNOWN),
        ],
    )
    def test_from_remote(self, value, status):
        assert ResourceStatus.from_remote(value) == status

    @pytest.mark.parametrize(
        "status,operation_status",
        [
            (ResourceStatus.ACTIVE, OperationStatus.SUCCESS),
            (ResourceStatus.CREATING, OperationStatus.IN_PROGRESS),
            (ResourceStatus.UPDATING, OperationStatus.FAILED),
            (ResourceStatus.DELETING, OperationStatus.FAILED),
            (ResourceStatus.FAILED, OperationStatus.FAILED),
            (ResourceStatus.UNKNOWN, OperationStatus.FAILED),
        ],
    )
    def test_to_operation_status(self, status, operation_status):
        assert status.to_operation_status() == operation_status


class TestCallbackContext:
    def test_round_trip(self):
        context = CallbackContext(create_document_started=True, stabilization_retries_remaining=4)
        assert context.to_dict() == {
            "createDocumentStarted": True,
            "stabilizationRetriesRemaining": 4,
        }
        assert CallbackContext.from_dict(context.to_dict()) == context

    @pytest.mark.parametrize("data", [None, {}])
    def test_empty(self, data):
        assert CallbackContext.from_dict(data) == CallbackContext(False, None)

    def test_is_immutable(self):
        context = CallbackContext(True, 4)
        with pytest.raises(AttributeError):
            context.stabilization_retries_remaining = 3


class TestStabilizationProgressRetriever:
    def test_consumes_one_poll(self, aws_client_factory, ssm_stubber):
        ssm_stubber.add_response(
            "describe_document",
            {"Document": {"Name": "mydoc", "Status": "Creating", "StatusInformation": "working"}},
            expected_params={"Name": "mydoc", "DocumentVersion": "$LATEST"},
        )
        context = CallbackContext(True, 3)

        response = StabilizationProgressRetriever().get_event_progress(
            {"Name": "mydoc"}, context, aws_client_factory.ssm
        )

        assert response.resource_information.status == ResourceStatus.CREATING
        assert response.resource_information.status_information == "working"
        assert response.callback_context == CallbackContext(True, 2)
        # the context passed in is left untouched
        assert context.stabilization_retries_remaining == 3

    def test_status_information_fallback(self, aws_client_factory, ssm_stubber):
        ssm_stubber.add_response(
            "describe_document", {"Document": {"Name": "mydoc", "Status": "Active"}}
        )

        response = StabilizationProgressRetriever().get_event_progress(
            {"Name": "mydoc"}, CallbackContext(True, 1), aws_client_factory.ssm
        )

        assert response.resource_information.status == ResourceStatus.ACTIVE
        assert response.resource_information.status_information == "Document mydoc is in status Active"
        assert response.callback_context.stabilization_retries_remaining == 0

    @pytest.mark.parametrize("retries", [0, -1, None])
    def test_exhausted_budget(self, aws_client_factory, ssm_stubber, retries):
        with pytest.raises(ResourceNotStabilizedException):
            StabilizationProgressRetriever().get_event_progress(
                {"Name": "mydoc"}, CallbackContext(True, retries), aws_client_factory.ssm
            )
