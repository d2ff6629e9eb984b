"""Command-line entry point for sending one orchestrated request."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from .exceptions import RequestError
from .request import create_request
from .request_config import CacheConfig, IdempotentConfig, RequestConfig, RetryConfig


def _parse_header(raw: str) -> tuple[str, str]:
    name, sep, value = raw.partition(":")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"Invalid header {raw!r}, expected 'Name: value'")
    return name.strip(), value.strip()


def _parse_data(raw: str) -> object:
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wl-request")
    parser.add_argument("url")
    parser.add_argument("-X", "--method", default=None)
    parser.add_argument("-H", "--header", dest="headers", action="append", default=[], type=_parse_header)
    parser.add_argument("-d", "--data", default=None, type=_parse_data)
    parser.add_argument("--base-url", default=None)
    parser.add_argument("--timeout", type=float, default=None)
    parser.add_argument("--retries", type=int, default=0, help="extra attempts after the first")
    parser.add_argument("--retry-delay", type=float, default=0.5)
    parser.add_argument("--retry-strategy", choices=("fixed", "linear", "exponential"), default="exponential")
    parser.add_argument("--cache-ttl", type=float, default=None)
    parser.add_argument("--idempotency-key", default=None)
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def _config_from_args(args: argparse.Namespace) -> RequestConfig:
    headers = dict(args.headers)
    if args.idempotency_key:
        headers.setdefault("Idempotency-Key", args.idempotency_key)
    return RequestConfig(
        url=args.url,
        method=args.method,
        base_url=args.base_url,
        headers=headers or None,
        data=args.data,
        timeout=args.timeout,
        retry=(
            RetryConfig(max_attempts=args.retries + 1, delay=args.retry_delay, strategy=args.retry_strategy)
            if args.retries > 0
            else None
        ),
        cache=CacheConfig(ttl=args.cache_ttl) if args.cache_ttl is not None else None,
        idempotent=IdempotentConfig(key=args.idempotency_key) if args.idempotency_key else None,
    )


def _main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, stream=sys.stderr)

    try:
        response = asyncio.run(create_request(_config_from_args(args)).send())
    except RequestError as exc:
        print(f"Request failed: {exc}", file=sys.stderr)
        if exc.body is not None:
            print(json.dumps(exc.body, indent=2, default=str), file=sys.stderr)
        return 1

    print(json.dumps(response.model_dump(), indent=2, default=str))
    return 0


def main() -> None:
    raise SystemExit(_main())
