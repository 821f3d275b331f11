"""
Batch account connection context.

A context names the account and how to authenticate against it. The HTTP
client behind it is created on first use and shared by every call made with
the same context.
"""

from typing import Optional

from .auth import BearerTokenAuth, SharedKeyAuth
from .env import DEFAULT_API_VERSION, DEFAULT_TIMEOUT, get_setting, get_timeout, load_env
from .errors import ConfigurationError
from .logger import StructuredLogger
from .transport import BatchServiceClient


class BatchAccountContext:

    def __init__(
        self,
        account_name: Optional[str],
        account_url: str,
        account_key: Optional[str] = None,
        access_token: Optional[str] = None,
        api_version: str = DEFAULT_API_VERSION,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[BatchServiceClient] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        self.account_name = account_name
        self.account_url = account_url
        self.account_key = account_key
        self.access_token = access_token
        self.api_version = api_version
        self.timeout = timeout
        self.logger = logger
        self._client = client

    @classmethod
    def from_env(
        cls,
        account_name: Optional[str] = None,
        account_url: Optional[str] = None,
        account_key: Optional[str] = None,
        logger: Optional[StructuredLogger] = None,
    ) -> "BatchAccountContext":
        """
        Build a context from BATCH_* environment variables (and .env).

        Explicit arguments override the environment.

        Raises:
            ConfigurationError: No account URL, or no usable credentials
        """
        load_env()
        account_name = account_name or get_setting("BATCH_ACCOUNT_NAME")
        account_url = account_url or get_setting("BATCH_ACCOUNT_URL")
        account_key = account_key or get_setting("BATCH_ACCOUNT_KEY")
        access_token = get_setting("BATCH_ACCESS_TOKEN")

        if not account_url:
            raise ConfigurationError("BATCH_ACCOUNT_URL not set. Set env var or pass --account-url.")
        if account_key and not account_name:
            raise ConfigurationError("BATCH_ACCOUNT_NAME is required with BATCH_ACCOUNT_KEY.")
        if not account_key and not access_token:
            raise ConfigurationError("Set BATCH_ACCOUNT_KEY or BATCH_ACCESS_TOKEN to authenticate.")

        try:
            timeout = get_timeout()
        except ValueError as e:
            raise ConfigurationError(str(e))

        return cls(
            account_name=account_name,
            account_url=account_url,
            account_key=account_key,
            access_token=access_token,
            api_version=get_setting("BATCH_API_VERSION", DEFAULT_API_VERSION),
            timeout=timeout,
            logger=logger,
        )

    @property
    def batch_client(self) -> BatchServiceClient:
        if self._client is None:
            if self.account_key:
                auth = SharedKeyAuth(self.account_name, self.account_key)
            elif self.access_token:
                auth = BearerTokenAuth(self.access_token)
            else:
                raise ConfigurationError(f"No credentials for Batch account {self.account_url}")
            self._client = BatchServiceClient(
                self.account_url,
                auth=auth,
                api_version=self.api_version,
                timeout=self.timeout,
                logger=self.logger,
            )
        return self._client

    def __repr__(self) -> str:
        return f"BatchAccountContext(account_name={self.account_name!r}, account_url={self.account_url!r})"
