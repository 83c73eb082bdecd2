"""
Creation of the boto3 clients used by the resource provider, and the proxy through which every provider call is made.
"""
import logging
import threading
from functools import lru_cache
from typing import Any, Callable, Mapping, Optional

from boto3.session import Session
from botocore.client import BaseClient
from botocore.config import Config

from ssm_document import config as ssm_config

LOG = logging.getLogger(__name__)

# transient transport errors (timeouts, throttling) are retried by botocore, never by the provider itself
DEFAULT_CLIENT_CONFIG = Config(retries={"mode": "standard", "max_attempts": 5})


def attribute_name_to_service_name(attribute_name):
    """
    Converts a python-compatible attribute name to the boto service name
    :param attribute_name: Python compatible attribute name, using `_` instead of `-`
    :return: the service name
    """
    if attribute_name.endswith("_"):
        attribute_name = attribute_name[:-1]
    return attribute_name.replace("_", "-")


class ServiceLevelClientFactory:
    """
    A service level client factory, preseeded with parameters for the boto3 client creation.
    Will create any service client with parameters already provided by the ClientFactory.
    """

    def __init__(self, *, factory: "ClientFactory", client_creation_params: dict[str, Any]):
        self._factory = factory
        self._client_creation_params = client_creation_params

    def get_client(self, service: str) -> BaseClient:
        return self._factory.get_client(service_name=service, **self._client_creation_params)

    def __getattr__(self, service: str) -> BaseClient:
        return self.get_client(attribute_name_to_service_name(service))


class ClientFactory:
    """
    Factory to build the AWS clients.

    Boto client creation is resource intensive. This class caches all Boto clients it creates.
    """

    def __init__(self, session: Session = None, config: Config = None):
        """
        :param session: Session to be used for client creation. Will create a new session if not provided.
        :param config: Config used as default for client creation.
        """
        self._config: Config = config or DEFAULT_CLIENT_CONFIG
        self._session: Session = session or Session()
        self._create_client_lock = threading.RLock()

    def __call__(
        self,
        *,
        region_name: Optional[str] = None,
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None,
        aws_session_token: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        config: Config = None,
    ) -> ServiceLevelClientFactory:
        """
        Get back an object which lets you select the typed service you want to access with the given attributes

        :param region_name: Name of the AWS region to be associated with the client
        :param aws_access_key_id: Access key to use for the client. If None, loads from the botocore session.
        :param aws_secret_access_key: Secret key to use for the client. If None, loads from the botocore session.
        :param aws_session_token: Session token to use for the client.
        :param endpoint_url: Full endpoint URL to be used by the client. Defaults to SSM_ENDPOINT_URL.
        :param config: Boto config for advanced use.
        :return: Service Region Client Creator
        """
        params = {
            "region_name": region_name,
            "aws_access_key_id": aws_access_key_id,
            "aws_secret_access_key": aws_secret_access_key,
            "aws_session_token": aws_session_token,
            "endpoint_url": endpoint_url,
            "config": config,
        }
        return ServiceLevelClientFactory(factory=self, client_creation_params=params)

    def get_client(
        self,
        service_name: str,
        region_name: Optional[str] = None,
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None,
        aws_session_token: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        config: Optional[Config] = None,
    ) -> BaseClient:
        if config is None:
            config = self._config
        else:
            config = self._config.merge(config)

        return self._get_client(
            service_name=service_name,
            region_name=region_name or ssm_config.DEFAULT_REGION,
            endpoint_url=endpoint_url or ssm_config.SSM_ENDPOINT_URL,
            aws_access_key_id=aws_access_key_id,
            aws_secret_access_key=aws_secret_access_key,
            aws_session_token=aws_session_token,
            config=config,
        )

    # TODO: lru_cache keeps a reference to `self`, factories are never garbage collected
    @lru_cache(maxsize=256)
    def _get_client(
        self,
        service_name: str,
        region_name: str,
        endpoint_url: Optional[str],
        aws_access_key_id: Optional[str],
        aws_secret_access_key: Optional[str],
        aws_session_token: Optional[str],
        config: Config,
    ) -> BaseClient:
        """
        Returns a boto3 client with the given configuration. This is a cached call.
        Client creation is behind a lock as it is not generally thread safe.
        """
        with self._create_client_lock:
            return self._session.client(
                service_name=service_name,
                region_name=region_name,
                endpoint_url=endpoint_url,
                aws_access_key_id=aws_access_key_id,
                aws_secret_access_key=aws_secret_access_key,
                aws_session_token=aws_session_token,
                config=config,
            )


class ClientProxy:
    """
    Issues provider calls. Every call is a single attempt from the point of view of the resource provider, errors
    (``botocore.exceptions.ClientError``) are raised to the caller unmodified.
    """

    def invoke(self, function: Callable[..., dict], request: Mapping[str, Any]) -> dict:
        operation = getattr(function, "__name__", repr(function))
        LOG.debug("Invoking %s with parameters %s", operation, sorted(request.keys()))
        return function(**request)


connect_to = ClientFactory()
