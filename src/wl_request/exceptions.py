"""Request orchestration exceptions."""

from __future__ import annotations

from typing import Any, Mapping


class RequestError(Exception):
    """Base exception for all wl-request failures."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        status_text: str | None = None,
        code: str | None = None,
        body: object = None,
        headers: Mapping[str, str] | None = None,
        config: Any = None,
        retry_after: float | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.status_text = status_text
        self.code = code
        self.body = body
        self.headers = dict(headers) if headers is not None else {}
        self.config = config
        self.retry_after = retry_after
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:  # pragma: no cover - simple formatting
        if self.status_code is None:
            return str(self.args[0])
        return f"{self.status_code}: {self.args[0]}"


class ConfigError(RequestError):
    """Raised when the effective configuration cannot be resolved."""


class TransportError(RequestError):
    """Raised when the underlying dispatch fails (network, parsing, adapter)."""


class HTTPStatusError(TransportError):
    """Raised for HTTP non-success responses."""


class RequestTimeoutError(RequestError):
    """Raised when a single dispatch attempt exceeds its timeout."""


class RequestCancelledError(RequestError):
    """Raised when a request instance was cancelled before it completed."""

    def __init__(self, message: str = "Request cancelled", **kwargs: Any) -> None:
        kwargs.setdefault("code", "CANCELLED")
        super().__init__(message, **kwargs)


class RetryExhaustedError(RequestError):
    """Raised when the retry ceiling is reached; wraps the last failure."""

    def __init__(self, message: str, *, attempts: int, last_error: BaseException | None = None, **kwargs: Any) -> None:
        if isinstance(last_error, RequestError):
            kwargs.setdefault("status_code", last_error.status_code)
            kwargs.setdefault("config", last_error.config)
        kwargs.setdefault("code", "RETRY_EXHAUSTED")
        super().__init__(message, cause=last_error, **kwargs)
        self.attempts = attempts
        self.last_error = last_error


class CompositionError(RequestError):
    """Raised when a composed batch stops early; carries the failing index."""

    def __init__(
        self,
        message: str,
        *,
        index: int,
        cause: BaseException | None = None,
        results: list[Any] | None = None,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("code", "COMPOSITION_FAILED")
        super().__init__(message, cause=cause, **kwargs)
        self.index = index
        self.results = list(results) if results is not None else []
