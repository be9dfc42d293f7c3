"""Client configuration for pymoose."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pymoose._constants import (
    BASE_URL,
    DEFAULT_INFRACTION_PAGE_SIZE,
    DEFAULT_PAGE_SIZE,
    DEFAULT_REQUEST_TIMEOUT,
    MAX_PAGE_SIZE,
    TOKEN_STORAGE_KEY,
    USER_AGENT,
)
from pymoose.exceptions import MooseConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, value: str, cast: type[int] | type[float]) -> int | float:
    try:
        return cast(value)
    except ValueError as exc:
        raise MooseConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class MooseConfig:
    """Client configuration.

    Parameters
    ----------
    base_url : str
        API base URL including the ``/api`` prefix.
    request_timeout : float
        Total timeout in seconds applied to every HTTP request.
    page_size : int
        Default ``limit`` for paginated collection fetches.
    infraction_page_size : int
        Default ``limit`` for the infraction-type catalog, which is
        normally fetched in one page.
    token_storage_key : str
        Key under which the bearer token is kept in the token store.
    user_agent : str
        ``User-Agent`` header sent with every request.
    api_trace_enabled : bool
        Log redacted request/response bodies at DEBUG level.
    """

    base_url: str = BASE_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    page_size: int = DEFAULT_PAGE_SIZE
    infraction_page_size: int = DEFAULT_INFRACTION_PAGE_SIZE
    token_storage_key: str = TOKEN_STORAGE_KEY
    user_agent: str = USER_AGENT
    api_trace_enabled: bool = False

    def __post_init__(self) -> None:
        if not self.base_url.strip():
            raise MooseConfigError("base_url must be non-empty")
        if self.request_timeout <= 0:
            raise MooseConfigError(f"request_timeout must be positive, got {self.request_timeout}")
        for name in ("page_size", "infraction_page_size"):
            value = getattr(self, name)
            if not 1 <= value <= MAX_PAGE_SIZE:
                raise MooseConfigError(f"{name} must be between 1 and {MAX_PAGE_SIZE}, got {value}")
        if not self.token_storage_key.strip():
            raise MooseConfigError("token_storage_key must be non-empty")
        # Normalise trailing slash so endpoint paths can always start with "/".
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    @classmethod
    def from_env(cls, **overrides: Any) -> MooseConfig:
        """Create configuration from ``MOOSE_*`` environment variables.

        Explicit keyword arguments override environment values.

        Raises
        ------
        MooseConfigError
            If a numeric variable cannot be parsed or a value is out of range.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        url = env.get("MOOSE_API_URL")
        if url is not None:
            config_kwargs["base_url"] = url

        token_key = env.get("MOOSE_TOKEN_KEY")
        if token_key is not None:
            config_kwargs["token_storage_key"] = token_key

        _NUMERIC_ENV_MAP: dict[str, tuple[str, type[int] | type[float]]] = {
            "MOOSE_REQUEST_TIMEOUT": ("request_timeout", float),
            "MOOSE_PAGE_SIZE": ("page_size", int),
            "MOOSE_INFRACTION_PAGE_SIZE": ("infraction_page_size", int),
        }
        for env_key, (field_name, cast) in _NUMERIC_ENV_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, cast)

        if "api_trace_enabled" not in overrides:
            config_kwargs["api_trace_enabled"] = _env_bool(env.get("MOOSE_API_TRACE_ENABLED"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
