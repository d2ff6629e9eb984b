"""Request adapter backed by ``httpx.AsyncClient``."""

from __future__ import annotations

import json
import logging
from types import MappingProxyType
from typing import Any, Mapping

import httpx

from .exceptions import HTTPStatusError, RequestTimeoutError, TransportError
from .models import Response
from .request_config import RequestConfig
from .security import parse_retry_after, sanitize_headers

logger = logging.getLogger(__name__)

BODYLESS_METHODS = frozenset({"GET", "HEAD"})


def _coerce_query_params(params: Mapping[str, Any] | None) -> dict[str, Any] | None:
    if not params:
        return None
    normalized: dict[str, Any] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            normalized[key] = "true" if value else "false"
            continue
        if isinstance(value, (list, tuple)):
            normalized[key] = ["" if v is None else v for v in value]
            continue
        normalized[key] = value
    return normalized or None


def _parse_body(response: httpx.Response) -> Any:
    if response.status_code == 204 or not response.content:
        return None
    content_type = response.headers.get("content-type", "").lower()
    if "application/json" in content_type or content_type.endswith("+json"):
        return response.json()
    if content_type.startswith("text/"):
        return response.text
    try:
        return json.loads(response.text)
    except ValueError:
        return response.text


def _to_response(response: httpx.Response) -> Response:
    return Response(
        status=response.status_code,
        status_text=response.reason_phrase,
        headers=dict(response.headers),
        data=_parse_body(response),
        raw=response,
    )


def _raise_for_status(response: httpx.Response, config: RequestConfig) -> None:
    if response.is_success:
        return
    try:
        body = _parse_body(response)
    except ValueError:
        body = None

    message = f"Request failed with status {response.status_code}"
    if isinstance(body, Mapping):
        if isinstance(body.get("error"), str):
            message = body["error"]
        elif isinstance(body.get("message"), str):
            message = body["message"]

    raise HTTPStatusError(
        message,
        status_code=response.status_code,
        status_text=response.reason_phrase,
        code=f"HTTP_{response.status_code}",
        body=body,
        headers=MappingProxyType(dict(response.headers)),
        config=config,
        retry_after=parse_retry_after(response.headers.get("Retry-After")),
    )


class HttpxAdapter:
    """Dispatch requests with httpx.

    When no client is injected a short-lived ``httpx.AsyncClient`` is opened
    for every dispatch, so the adapter is safe to share across event loops.
    """

    user_agent = "wl-request/0.1.0"

    def __init__(
        self,
        *,
        client: httpx.AsyncClient | None = None,
        headers: Mapping[str, str] | None = None,
        follow_redirects: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = client
        self._transport = transport
        self._follow_redirects = follow_redirects
        default_headers = {
            "Accept": "application/json",
            "User-Agent": self.user_agent,
        }
        if headers:
            default_headers.update(headers)
        self.default_config = RequestConfig(headers=default_headers)

    async def dispatch(self, config: RequestConfig) -> Response:
        method = (config.method or "GET").upper()
        kwargs: dict[str, Any] = {
            "method": method,
            "url": config.url,
            "headers": dict(config.headers or {}),
            "params": _coerce_query_params(config.params),
        }
        if config.timeout is not None:
            kwargs["timeout"] = config.timeout
        if config.data is not None and method not in BODYLESS_METHODS:
            if isinstance(config.data, (str, bytes)):
                kwargs["content"] = config.data
            else:
                kwargs["json"] = config.data

        logger.debug("%s %s headers=%s", method, config.url, sanitize_headers(kwargs["headers"]))
        try:
            if self._client is not None:
                response = await self._client.request(**kwargs)
            else:
                async with httpx.AsyncClient(
                    follow_redirects=self._follow_redirects,
                    transport=self._transport,
                    trust_env=False,
                ) as client:
                    response = await client.request(**kwargs)
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError("Request timed out", code="TIMEOUT_ERROR", config=config, cause=exc)
        except httpx.HTTPError as exc:
            raise TransportError(str(exc) or "Network error", code="NETWORK_ERROR", config=config, cause=exc)

        _raise_for_status(response, config)
        try:
            return _to_response(response)
        except ValueError as exc:
            raise TransportError("Could not parse response body", code="PARSE_ERROR", config=config, cause=exc)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
