from __future__ import annotations

import copy
import logging
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum, auto
from logging import Logger
from typing import Any, Callable, Generic, Optional, Type, TypedDict, TypeVar

from plux import Plugin, PluginManager

from ssm_document.aws.connect import ServiceLevelClientFactory, connect_to
from ssm_document.constants import HANDLER_LOGGER_NAME, RESOURCE_PROVIDER_PLUGIN_NAMESPACE
from ssm_document.exceptions import HandlerErrorCode, ResourceHandlerException

LOG = logging.getLogger(__name__)

Properties = TypeVar("Properties")
Context = TypeVar("Context")


class OperationStatus(Enum):
    PENDING = auto()
    IN_PROGRESS = auto()
    SUCCESS = auto()
    FAILED = auto()

    @property
    def is_terminal(self) -> bool:
        return self in (OperationStatus.SUCCESS, OperationStatus.FAILED)


@dataclass
class ProgressEvent(Generic[Properties, Context]):
    """
    Result of a single handler invocation. Non-terminal events carry the callback context the caller has to pass back
    on the next invocation, after waiting ``callback_delay_seconds``.
    """

    status: OperationStatus
    resource_model: Properties

    message: str = ""
    error_code: Optional[HandlerErrorCode] = None
    callback_context: Optional[Context] = None
    callback_delay_seconds: int = 0

    # only set by list handlers
    resource_models: Optional[list[Properties]] = None
    next_token: Optional[str] = None

    @classmethod
    def success(cls, resource_model: Properties, message: str = "") -> ProgressEvent:
        return cls(status=OperationStatus.SUCCESS, resource_model=resource_model, message=message)

    @classmethod
    def failed(cls, resource_model: Properties, error: ResourceHandlerException) -> ProgressEvent:
        return cls(
            status=OperationStatus.FAILED,
            resource_model=resource_model,
            message=error.message,
            error_code=error.error_code,
        )


class Credentials(TypedDict):
    accessKeyId: str
    secretAccessKey: str
    sessionToken: str


class ResourceProviderPayloadRequestData(TypedDict, total=False):
    logicalResourceId: str
    resourceProperties: Properties
    previousResourceProperties: Optional[Properties]
    callerCredentials: Credentials
    systemTags: dict[str, str]
    previousSystemTags: dict[str, str]
    stackTags: dict[str, str]
    previousStackTags: dict[str, str]


class ResourceProviderPayload(TypedDict, total=False):
    callbackContext: Optional[dict]
    stackId: str
    requestData: ResourceProviderPayloadRequestData
    resourceType: str
    awsAccountId: str
    bearerToken: str
    region: str
    action: str
    clientRequestToken: str
    nextToken: Optional[str]


@dataclass
class ResourceRequest(Generic[Properties, Context]):
    aws_client_factory: ServiceLevelClientFactory
    request_token: str
    stack_name: str
    stack_id: str
    account_id: str
    region_name: str
    action: str

    desired_state: Properties

    logical_resource_id: str
    resource_type: str

    logger: Logger

    callback_context: Optional[Context] = None

    previous_state: Optional[Properties] = None
    system_tags: dict[str, str] = field(default_factory=dict)
    previous_tags: Optional[dict[str, str]] = None
    tags: dict[str, str] = field(default_factory=dict)

    # pagination token of list requests
    next_token: Optional[str] = None


def convert_payload(
    stack_name: str,
    stack_id: str,
    payload: ResourceProviderPayload,
    context_factory: Callable[[dict], Any] = None,
) -> ResourceRequest:
    """
    Turns the wire format of a handler invocation into a ResourceRequest.

    :param stack_name: name of the stack the resource belongs to
    :param stack_id: id of the stack the resource belongs to
    :param payload: the invocation payload
    :param context_factory: deserializes the callback context of the payload, if one is present
    :return: the request
    """
    request_data = payload["requestData"]
    credentials = request_data.get("callerCredentials") or {}
    client_factory = connect_to(
        aws_access_key_id=credentials.get("accessKeyId"),
        aws_session_token=credentials.get("sessionToken"),
        aws_secret_access_key=credentials.get("secretAccessKey"),
        region_name=payload["region"],
    )

    callback_context = payload.get("callbackContext")
    if callback_context is not None and context_factory is not None:
        callback_context = context_factory(callback_context)

    rr = ResourceRequest(
        aws_client_factory=client_factory,
        request_token=payload.get("clientRequestToken") or str(uuid.uuid4()),
        stack_name=stack_name,
        stack_id=stack_id,
        account_id=payload["awsAccountId"],
        region_name=payload["region"],
        desired_state=request_data["resourceProperties"],
        logical_resource_id=request_data["logicalResourceId"],
        resource_type=payload["resourceType"],
        logger=logging.getLogger(f"{HANDLER_LOGGER_NAME}.{request_data['logicalResourceId']}"),
        callback_context=callback_context,
        action=payload["action"],
        system_tags=request_data.get("systemTags") or {},
        tags=request_data.get("stackTags") or {},
        previous_tags=request_data.get("previousStackTags"),
        next_token=payload.get("nextToken"),
    )

    if previous_properties := request_data.get("previousResourceProperties"):
        rr.previous_state = previous_properties

    return rr


class ResourceProviderPlugin(Plugin):
    """
    Base class for resource provider plugins.
    """

    namespace = RESOURCE_PROVIDER_PLUGIN_NAMESPACE

    factory: Optional[Type[ResourceProvider]]


class ResourceProvider(Generic[Properties, Context]):
    """
    This provides a base class onto which resource providers are built. Handlers are invoked once per invocation
    cycle, they never block and keep no state between invocations.
    """

    TYPE: str

    def create(self, request: ResourceRequest[Properties, Context]) -> ProgressEvent[Properties, Context]:
        raise NotImplementedError

    def read(self, request: ResourceRequest[Properties, Context]) -> ProgressEvent[Properties, Context]:
        raise NotImplementedError

    def update(self, request: ResourceRequest[Properties, Context]) -> ProgressEvent[Properties, Context]:
        raise NotImplementedError

    def delete(self, request: ResourceRequest[Properties, Context]) -> ProgressEvent[Properties, Context]:
        raise NotImplementedError

    def list(self, request: ResourceRequest[Properties, Context]) -> ProgressEvent[Properties, Context]:
        raise NotImplementedError

    def deserialize_callback_context(self, context: dict) -> Context:
        return context


class NoResourceProvider(Exception):
    pass


class ResourceProviderExecutor:
    """
    Invocation harness of the resource providers: re-invokes a handler until it returns a terminal event, passing
    the returned callback context back in and waiting the requested delay in between.
    """

    def __init__(
        self,
        *,
        stack_name: str,
        stack_id: str,
        resource_provider: ResourceProvider = None,
        sleep: Callable[[float], Any] = None,
    ):
        self.stack_name = stack_name
        self.stack_id = stack_id
        self.resource_provider = resource_provider
        self.sleep = sleep or time.sleep

    def deploy_loop(
        self,
        raw_payload: ResourceProviderPayload,
        max_iterations: int = 100,
        on_event: Callable[[ProgressEvent], Any] = None,
    ) -> ProgressEvent:
        payload = copy.deepcopy(raw_payload)
        resource_provider = self.resource_provider or self.load_resource_provider(
            raw_payload["resourceType"]
        )

        for _ in range(max_iterations):
            event = self.execute_action(resource_provider, payload)
            if on_event:
                on_event(event)

            match event.status:
                case OperationStatus.FAILED | OperationStatus.SUCCESS:
                    return event
                case OperationStatus.IN_PROGRESS:
                    # only serialized state survives between two invocations
                    context = event.callback_context
                    if context is not None and hasattr(context, "to_dict"):
                        context = context.to_dict()
                    payload["callbackContext"] = context
                    payload["requestData"]["resourceProperties"] = event.resource_model

                    self.sleep(event.callback_delay_seconds)
                case OperationStatus.PENDING:
                    return event
                case invalid_status:
                    raise ValueError(
                        f"Invalid OperationStatus ({invalid_status}) returned for resource {raw_payload['requestData']['logicalResourceId']} (type {raw_payload['resourceType']})"
                    )

        raise TimeoutError(
            f"Resource deployment for resource {raw_payload['requestData']['logicalResourceId']} (type {raw_payload['resourceType']}) timed out."
        )

    def execute_action(
        self, resource_provider: ResourceProvider, raw_payload: ResourceProviderPayload
    ) -> ProgressEvent:
        change_type = raw_payload["action"]
        request = convert_payload(
            stack_name=self.stack_name,
            stack_id=self.stack_id,
            payload=raw_payload,
            context_factory=resource_provider.deserialize_callback_context,
        )

        match change_type:
            case "Add":
                return resource_provider.create(request)
            case "Modify":
                return resource_provider.update(request)
            case "Remove":
                return resource_provider.delete(request)
            case "Read":
                return resource_provider.read(request)
            case "List":
                return resource_provider.list(request)
            case _:
                raise NotImplementedError(change_type)

    def load_resource_provider(self, resource_type: str) -> ResourceProvider:
        try:
            plugin = plugin_manager.load(resource_type)
            return plugin.factory()
        except ValueError:
            # could not find a plugin for that name
            pass
        except Exception:
            LOG.warning(
                "Failed to load resource type %s as a ResourceProvider.",
                resource_type,
                exc_info=LOG.isEnabledFor(logging.DEBUG),
            )

        raise NoResourceProvider(resource_type)


plugin_manager = PluginManager(ResourceProviderPlugin.namespace)
