"""
Endpoint Tables

Each exchange lists its REST endpoints as plain data: verb, path, response
model, auth mode and an optional alias. The API client resolves a name against
the table and dispatches to the exchange's public or private request function.

Naming:
    An endpoint is called by its alias when it has one, otherwise by a name
    derived from the verb and path:

        GET  /user/margin                 -> get_user_margin
        GET  /v5/market/instruments-info  -> get_v5_market_instruments_info
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, Optional, Type

from core.errors import ConfigurationError


class AuthMode(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


@dataclass(frozen=True)
class Endpoint:
    """
    One REST endpoint.

    Attributes:
        method: HTTP verb (uppercase)
        path: Path relative to the exchange base URL
        model: Model class the success payload decodes into
        auth: PUBLIC or PRIVATE
        alias: Caller-facing name (optional)
    """

    method: str
    path: str
    model: Type[Any]
    auth: AuthMode = AuthMode.PUBLIC
    alias: Optional[str] = None

    @property
    def name(self) -> str:
        if self.alias:
            return self.alias
        segments = [s for s in re.split(r"[/\-]", self.path) if s]
        return "_".join([self.method.lower()] + segments)

    @property
    def is_private(self) -> bool:
        return self.auth is AuthMode.PRIVATE


def public(method: str, path: str, model: Type[Any], alias: Optional[str] = None) -> Endpoint:
    return Endpoint(method.upper(), path, model, AuthMode.PUBLIC, alias)


def private(method: str, path: str, model: Type[Any], alias: Optional[str] = None) -> Endpoint:
    return Endpoint(method.upper(), path, model, AuthMode.PRIVATE, alias)


class EndpointTable:
    """
    Name -> Endpoint lookup for one exchange.

    Raises:
        ValueError: If two endpoints resolve to the same name
    """

    def __init__(self, endpoints: Iterable[Endpoint]):
        self._endpoints: Dict[str, Endpoint] = {}
        for endpoint in endpoints:
            if endpoint.name in self._endpoints:
                raise ValueError(f"Duplicate endpoint name: {endpoint.name}")
            self._endpoints[endpoint.name] = endpoint

    def get(self, name: str) -> Endpoint:
        """
        Look up an endpoint by name.

        Raises:
            ConfigurationError: If no endpoint has that name
        """
        try:
            return self._endpoints[name]
        except KeyError:
            known = ", ".join(sorted(self._endpoints))
            raise ConfigurationError(f"Unknown endpoint '{name}'. Known endpoints: {known}") from None

    def names(self) -> list:
        return list(self._endpoints)

    def __contains__(self, name: str) -> bool:
        return name in self._endpoints

    def __iter__(self) -> Iterator[Endpoint]:
        return iter(self._endpoints.values())

    def __len__(self) -> int:
        return len(self._endpoints)
