from __future__ import annotations

import pytest

from conftest import ScriptedAdapter
from wl_request import (
    ConfigError,
    RequestConfig,
    configure,
    get_global_config,
    merge_config,
    reset_config,
    resolve_config,
)
from wl_request.config import build_url, merge_headers


def test_configure_merges_headers_and_params() -> None:
    configure(headers={"Authorization": "Bearer a"}, params={"page": 1})
    configure(headers={"X-Tenant": "acme"}, timeout=5.0)

    config = get_global_config()
    assert config.headers == {"Authorization": "Bearer a", "X-Tenant": "acme"}
    assert config.params == {"page": 1}
    assert config.timeout == 5.0


def test_global_snapshot_is_insulated_from_later_mutation() -> None:
    configure(headers={"X-Tenant": "a"})
    snapshot = get_global_config()
    configure(headers={"X-Tenant": "b"})

    assert snapshot.headers == {"X-Tenant": "a"}
    assert get_global_config().headers == {"X-Tenant": "b"}


def test_reset_config_restores_builtin_state() -> None:
    configure(base_url="https://api.example.com", timeout=3.0)
    reset_config()
    assert get_global_config() == RequestConfig()


def test_merge_headers_is_case_insensitive() -> None:
    merged = merge_headers({"Accept": "application/json", "X-A": "1"}, {"accept": "text/plain"})
    assert merged == {"X-A": "1", "accept": "text/plain"}


def test_merge_config_replaces_hooks() -> None:
    def global_hook(response):
        return None

    def local_hook(response):
        return None

    merged = merge_config(RequestConfig(on_success=global_hook), RequestConfig(on_success=local_hook))
    assert merged.on_success is local_hook


def test_resolve_precedence_adapter_then_global_then_call() -> None:
    adapter = ScriptedAdapter(
        default_config=RequestConfig(headers={"User-Agent": "adapter", "Accept": "application/json"}, timeout=60.0)
    )
    global_config = RequestConfig(base_url="https://api.example.com", headers={"User-Agent": "global"}, timeout=10.0)
    call = RequestConfig(url="/users", headers={"accept": "text/csv"}, method="post")

    effective = resolve_config(call, global_config, adapter=adapter)

    assert effective.url == "https://api.example.com/users"
    assert effective.method == "POST"
    assert effective.timeout == 10.0
    assert effective.headers == {"User-Agent": "global", "accept": "text/csv"}
    assert effective.adapter is adapter


def test_resolve_uses_builtin_defaults() -> None:
    effective = resolve_config(
        RequestConfig(url="https://api.example.com/ping"),
        RequestConfig(),
        adapter=ScriptedAdapter(),
    )
    assert effective.method == "GET"
    assert effective.timeout == 30.0


def test_resolve_reads_environment_defaults(monkeypatch) -> None:
    monkeypatch.setenv("WL_REQUEST_BASE_URL", "https://env.example.com/v1")
    monkeypatch.setenv("WL_REQUEST_TIMEOUT", "2.5")

    effective = resolve_config(RequestConfig(url="items"), RequestConfig(), adapter=ScriptedAdapter())

    assert effective.url == "https://env.example.com/v1/items"
    assert effective.timeout == 2.5


def test_invalid_timeout_environment_value(monkeypatch) -> None:
    monkeypatch.setenv("WL_REQUEST_TIMEOUT", "soon")
    with pytest.raises(ConfigError, match="WL_REQUEST_TIMEOUT"):
        resolve_config(RequestConfig(url="https://api.example.com"), RequestConfig(), adapter=ScriptedAdapter())


def test_absolute_url_ignores_base_url() -> None:
    assert build_url("https://api.example.com", "https://other.example.com/x") == "https://other.example.com/x"


def test_build_url_normalizes_slashes() -> None:
    assert build_url("https://api.example.com/", "/users") == "https://api.example.com/users"
    assert build_url("https://api.example.com", "users") == "https://api.example.com/users"


def test_relative_url_without_base_url_is_config_error() -> None:
    with pytest.raises(ConfigError, match="without a base_url"):
        resolve_config(RequestConfig(url="/users"), RequestConfig(), adapter=ScriptedAdapter())


@pytest.mark.parametrize("base_url", ["ftp://files.example.com", "not a url", "https://api.example.com/\x00"])
def test_invalid_base_url_is_config_error(base_url: str) -> None:
    with pytest.raises(ConfigError):
        build_url(base_url, "/users")


def test_non_positive_timeout_is_config_error() -> None:
    with pytest.raises(ConfigError, match="timeout"):
        resolve_config(RequestConfig(url="https://api.example.com", timeout=0), RequestConfig(), adapter=ScriptedAdapter())


def test_request_config_from_mapping() -> None:
    config = RequestConfig.from_value({"url": "/a", "method": "PUT"}, timeout=1.0)
    assert config == RequestConfig(url="/a", method="PUT", timeout=1.0)
