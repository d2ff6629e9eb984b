"""Process-wide configuration and effective-configuration resolution."""

from __future__ import annotations

import dataclasses
import os
from typing import Any, Mapping

from .adapters import RequestAdapter, get_default_adapter
from .exceptions import ConfigError
from .request_config import RequestConfig
from .security import is_absolute_url, validate_base_url

BASE_URL_ENV_VAR = "WL_REQUEST_BASE_URL"
TIMEOUT_ENV_VAR = "WL_REQUEST_TIMEOUT"

default_method = "GET"
default_timeout = 30.0

_global_config = RequestConfig()


def _normalize_headers(headers: Mapping[str, Any] | None) -> dict[str, str]:
    if not headers:
        return {}
    clean: dict[str, str] = {}
    for key, value in headers.items():
        clean[str(key)] = str(value)
    return clean


def merge_headers(*sources: Mapping[str, Any] | None) -> dict[str, str] | None:
    """Merge header maps left to right; names compare case-insensitively."""
    if all(source is None for source in sources):
        return None
    merged: dict[str, str] = {}
    names: dict[str, str] = {}
    for source in sources:
        for key, value in _normalize_headers(source).items():
            previous = names.get(key.lower())
            if previous is not None:
                merged.pop(previous)
            merged[key] = value
            names[key.lower()] = key
    return merged


def merge_params(*sources: Mapping[str, Any] | None) -> dict[str, Any] | None:
    if all(source is None for source in sources):
        return None
    merged: dict[str, Any] = {}
    for source in sources:
        if source:
            merged.update(source)
    return merged


def merge_config(base: RequestConfig, override: RequestConfig) -> RequestConfig:
    """Layer ``override`` on top of ``base``.

    Headers and params merge key by key, hooks and every other field are
    replaced whenever the override sets them.
    """
    values: dict[str, Any] = {}
    for field in dataclasses.fields(RequestConfig):
        name = field.name
        base_value = getattr(base, name)
        value = getattr(override, name)
        if name == "headers":
            values[name] = merge_headers(base_value, value)
        elif name == "params":
            values[name] = merge_params(base_value, value)
        elif name == "url":
            values[name] = value or base_value
        else:
            values[name] = value if value is not None else base_value
    return RequestConfig(**values)


def configure(config: RequestConfig | Mapping[str, Any] | None = None, **fields: Any) -> None:
    """Merge new process-wide defaults into the global configuration."""
    global _global_config
    _global_config = merge_config(_global_config, RequestConfig.from_value(config, **fields))


def reset_config() -> None:
    global _global_config
    _global_config = RequestConfig()


def get_global_config() -> RequestConfig:
    """Return a snapshot; later ``configure`` calls do not affect it."""
    return _global_config.replace(
        headers=dict(_global_config.headers) if _global_config.headers is not None else None,
        params=dict(_global_config.params) if _global_config.params is not None else None,
    )


def builtin_defaults() -> RequestConfig:
    timeout = default_timeout
    raw_timeout = os.getenv(TIMEOUT_ENV_VAR)
    if raw_timeout:
        try:
            timeout = float(raw_timeout)
        except ValueError as exc:
            raise ConfigError(f"{TIMEOUT_ENV_VAR} must be a number, got {raw_timeout!r}", cause=exc)
    return RequestConfig(
        method=default_method,
        timeout=timeout,
        base_url=os.getenv(BASE_URL_ENV_VAR) or None,
    )


def build_url(base_url: str | None, url: str) -> str:
    """Compose ``base_url`` and ``url`` into one absolute URL."""
    if "\x00" in url:
        raise ConfigError("Invalid url characters", code="INVALID_URL")
    if url and is_absolute_url(url):
        return url
    if not base_url:
        if not url:
            raise ConfigError("A url is required", code="INVALID_URL")
        raise ConfigError(f"Cannot resolve relative url {url!r} without a base_url", code="INVALID_URL")
    validate_base_url(base_url)
    if not url:
        return base_url
    return f"{base_url.rstrip('/')}/{url.lstrip('/')}"


def finalize_config(config: RequestConfig) -> RequestConfig:
    """Normalize a merged configuration into one that can be dispatched."""
    timeout = config.timeout
    if timeout is not None and timeout <= 0:
        raise ConfigError("timeout must be greater than 0", config=config)
    try:
        url = build_url(config.base_url, config.url)
    except ConfigError as exc:
        exc.config = config
        raise
    return config.replace(url=url, method=(config.method or default_method).upper())


def resolve_adapter(config: RequestConfig, global_config: RequestConfig | None = None) -> RequestAdapter:
    if config.adapter is not None:
        return config.adapter
    if global_config is not None and global_config.adapter is not None:
        return global_config.adapter
    return get_default_adapter()


def resolve_config(
    config: RequestConfig,
    global_config: RequestConfig | None = None,
    adapter: RequestAdapter | None = None,
) -> RequestConfig:
    """Build the effective configuration for one call.

    Precedence, lowest first: built-in defaults, the adapter's
    ``default_config``, the global configuration, the per-call configuration.
    """
    if global_config is None:
        global_config = get_global_config()
    layered = merge_config(global_config, config)
    if adapter is None:
        adapter = resolve_adapter(layered)

    effective = builtin_defaults()
    adapter_defaults = getattr(adapter, "default_config", None)
    if isinstance(adapter_defaults, RequestConfig):
        effective = merge_config(effective, adapter_defaults)
    effective = merge_config(effective, layered)
    return finalize_config(effective.replace(adapter=adapter))
