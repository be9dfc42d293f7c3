from __future__ import annotations

import pytest

from pymoose.config import MooseConfig
from pymoose.exceptions import MooseConfigError


def test_defaults() -> None:
    config = MooseConfig()

    assert config.base_url == "http://localhost:3001/api"
    assert config.page_size == 20
    assert config.infraction_page_size == 100
    assert config.token_storage_key == "userToken"
    assert not config.api_trace_enabled


def test_trailing_slash_is_removed() -> None:
    assert MooseConfig(base_url="https://tickets.example/api/").base_url == "https://tickets.example/api"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"base_url": " "},
        {"request_timeout": 0},
        {"page_size": 0},
        {"infraction_page_size": 101},
        {"token_storage_key": ""},
    ],
)
def test_invalid_values_raise(kwargs: dict[str, object]) -> None:
    with pytest.raises(MooseConfigError):
        MooseConfig(**kwargs)  # type: ignore[arg-type]


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MOOSE_API_URL", "https://tickets.example/api")
    monkeypatch.setenv("MOOSE_PAGE_SIZE", "50")
    monkeypatch.setenv("MOOSE_REQUEST_TIMEOUT", "12.5")
    monkeypatch.setenv("MOOSE_API_TRACE_ENABLED", "yes")

    config = MooseConfig.from_env()

    assert config.base_url == "https://tickets.example/api"
    assert config.page_size == 50
    assert config.request_timeout == 12.5
    assert config.api_trace_enabled


def test_from_env_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MOOSE_PAGE_SIZE", "50")
    monkeypatch.setenv("MOOSE_API_TRACE_ENABLED", "true")

    config = MooseConfig.from_env(page_size=5, api_trace_enabled=False)

    assert config.page_size == 5
    assert not config.api_trace_enabled


def test_from_env_rejects_non_numeric(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MOOSE_PAGE_SIZE", "lots")

    with pytest.raises(MooseConfigError, match="MOOSE_PAGE_SIZE"):
        MooseConfig.from_env()
