"""
Exchange API Client — Generic Dispatch over an Endpoint Table

All REST connectors inherit from ExchangeAPIClient. A subclass declares its
endpoint table and base URL and implements the two request functions; calling
any endpoint then goes through call():

    async with BybitAPIClient(credentials=creds) as client:
        orders = await client.call("get_open_orders", {"category": "linear"})

The client owns one aiohttp ClientSession, shared by every call made through
it (calls may run concurrently). Private endpoints need credentials; a
missing pair raises ConfigurationError before any network I/O.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

import aiohttp

from core.config import settings
from core.endpoints import Endpoint, EndpointTable
from core.errors import ConfigurationError
from core.logging import get_logger
from core.request import Params
from core.schemas import Credentials, TimingOptions


class ExchangeAPIClient(ABC):
    """
    Abstract base class for exchange REST clients.

    Class Attributes:
        name: Exchange identifier (lowercase)
        ENDPOINTS: The exchange's endpoint table

    Abstract Methods:
        - default_base_url: Base URL used when none is passed in
        - perform_public: Unsigned request + decode
        - perform_private: Signed request + decode
    """

    name: str
    ENDPOINTS: EndpointTable

    def __init__(
        self,
        credentials: Optional[Credentials] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        recv_window: Optional[int] = None
    ):
        """
        Args:
            credentials: API credentials (needed for private endpoints only)
            base_url: Override the exchange base URL
            timeout: REST deadline in seconds (default: settings.request_timeout)
            recv_window: Default recv-window in ms (default: settings.recv_window)

        Raises:
            ConfigurationError: If timeout or recv_window is not positive
        """
        self.credentials = credentials
        self.base_url = (base_url or self.default_base_url()).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.recv_window = recv_window if recv_window is not None else settings.recv_window
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigurationError(f"{self.name}: timeout must be positive, got {self.timeout}")
        if self.recv_window <= 0:
            raise ConfigurationError(f"{self.name}: recv_window must be positive, got {self.recv_window}")
        self.session: Optional[aiohttp.ClientSession] = None
        self.logger = get_logger(__name__)

    # ============================================
    # Context Manager for Session Management
    # ============================================

    async def __aenter__(self):
        self.session = aiohttp.ClientSession()
        self.logger.debug(f"{self.__class__.__name__} session created")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        """Close the HTTP session. Safe to call multiple times."""
        if self.session and not self.session.closed:
            await self.session.close()
            self.logger.debug(f"{self.__class__.__name__} session closed")

    # ============================================
    # Dispatch
    # ============================================

    async def call(
        self,
        name: str,
        params: Params = None,
        timing: Optional[TimingOptions] = None
    ) -> Any:
        """
        Call an endpoint by name.

        Args:
            name: Endpoint alias or derived name (see core.endpoints)
            params: Query parameters (GET/DELETE) or body fields (POST/PUT)
            timing: Signing timestamp / recv-window overrides (private only)

        Returns:
            A model instance or a list of model instances

        Raises:
            ConfigurationError: Unknown endpoint, or private endpoint without credentials
            TransportError: Connection failure or timeout
            DecodeError: Response could not be parsed/decoded
            ExchangeError: Exchange reported a failure
        """
        endpoint = self.ENDPOINTS.get(name)
        return await self.dispatch(endpoint, params, timing=timing)

    async def dispatch(
        self,
        endpoint: Endpoint,
        params: Params = None,
        timing: Optional[TimingOptions] = None
    ) -> Any:
        """Call a specific Endpoint (see call())"""
        if endpoint.is_private:
            if self.credentials is None:
                raise ConfigurationError(
                    f"{self.name}: endpoint '{endpoint.name}' is private and no credentials are configured"
                )
            timing = timing or TimingOptions()
            if timing.recv_window is None:
                timing = timing.model_copy(update={"recv_window": self.recv_window})
            return await self.perform_private(
                self._require_session(),
                endpoint.method,
                endpoint.path,
                params,
                endpoint.model,
                self.credentials,
                timing
            )

        return await self.perform_public(
            self._require_session(),
            endpoint.method,
            endpoint.path,
            params,
            endpoint.model
        )

    def _require_session(self) -> aiohttp.ClientSession:
        if not self.session or self.session.closed:
            raise RuntimeError("Client session not initialized. Use 'async with' statement.")
        return self.session

    # ============================================
    # Exchange-specific Request Functions
    # ============================================

    @classmethod
    @abstractmethod
    def default_base_url(cls) -> str:
        """Base URL used when the caller doesn't pass one"""

    @abstractmethod
    async def perform_public(
        self,
        session: aiohttp.ClientSession,
        method: str,
        path: str,
        params: Params,
        model: Any
    ) -> Any:
        """Send an unsigned request and decode the response"""

    @abstractmethod
    async def perform_private(
        self,
        session: aiohttp.ClientSession,
        method: str,
        path: str,
        params: Params,
        model: Any,
        credentials: Credentials,
        timing: TimingOptions
    ) -> Any:
        """Sign and send a request and decode the response"""
