"""
Storefront API — Operator Injection Sanitizer
===============================================

What:  Strips MongoDB operator keys from incoming JSON bodies and query strings.
How:   Pure ASGI middleware. Any object key that starts with "$" or contains
       "." is removed, recursively, before the request reaches routing. JSON
       bodies are buffered, cleaned and replayed with a corrected
       Content-Length. Query parameters with such names are dropped.

Example:
    {"name": {"$ne": null}, "price": 10}   →   {"name": {}, "price": 10}
    ?query=hat&$where=sleep(1)             →   ?query=hat

Non-JSON bodies (multipart uploads) pass through untouched. Bodies that are
not valid JSON are also passed through; FastAPI rejects them downstream.
"""

import json
import logging
from typing import Any, List, Tuple
from urllib.parse import unquote_plus

from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


def is_prohibited_key(key: str) -> bool:
    return key.startswith("$") or "." in key


def sanitize(value: Any) -> Tuple[Any, int]:
    """Returns (clean_value, removed_key_count)."""
    if isinstance(value, dict):
        removed = 0
        clean = {}
        for k, v in value.items():
            if is_prohibited_key(k):
                removed += 1
                continue
            clean[k], count = sanitize(v)
            removed += count
        return clean, removed
    if isinstance(value, list):
        removed = 0
        items = []
        for item in value:
            clean_item, count = sanitize(item)
            items.append(clean_item)
            removed += count
        return items, removed
    return value, 0


def sanitize_query_string(raw: bytes) -> Tuple[bytes, int]:
    """
    Drops parameters whose decoded name is prohibited. Kept parameters are
    copied byte for byte, so their encoding is never touched.
    """
    segments = [s for s in raw.split(b"&") if s]
    kept = [
        s for s in segments
        if not is_prohibited_key(unquote_plus(s.split(b"=", 1)[0].decode("latin-1")))
    ]
    removed = len(segments) - len(kept)
    if not removed:
        return raw, 0
    return b"&".join(kept), removed


def _is_json(headers: List[Tuple[bytes, bytes]]) -> bool:
    for name, value in headers:
        if name.lower() == b"content-type":
            media_type = value.split(b";", 1)[0].strip().lower()
            return media_type == b"application/json" or media_type.endswith(b"+json")
    return False


class SanitizeMiddleware:
    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        scope = dict(scope)
        removed_total = 0

        if scope.get("query_string"):
            scope["query_string"], removed = sanitize_query_string(scope["query_string"])
            removed_total += removed

        if _is_json(scope.get("headers", [])):
            body = await self._read_body(receive)
            body, removed = self._clean_body(body)
            removed_total += removed
            if removed:
                scope["headers"] = [
                    (name, value) for name, value in scope["headers"]
                    if name.lower() != b"content-length"
                ] + [(b"content-length", str(len(body)).encode("latin-1"))]
            receive = self._replay(body, receive)

        if removed_total:
            logger.warning(
                "Removed %d prohibited key(s) from %s %s",
                removed_total,
                scope.get("method"),
                scope.get("path"),
            )

        await self.app(scope, receive, send)

    @staticmethod
    async def _read_body(receive: Receive) -> bytes:
        chunks = []
        while True:
            message = await receive()
            if message["type"] != "http.request":
                break
            chunks.append(message.get("body", b""))
            if not message.get("more_body", False):
                break
        return b"".join(chunks)

    @staticmethod
    def _clean_body(body: bytes) -> Tuple[bytes, int]:
        if not body:
            return body, 0
        try:
            parsed = json.loads(body)
        except ValueError:
            return body, 0
        clean, removed = sanitize(parsed)
        if not removed:
            return body, 0
        return json.dumps(clean).encode("utf-8"), removed

    @staticmethod
    def _replay(body: bytes, receive: Receive) -> Receive:
        sent = False

        async def replay() -> Message:
            nonlocal sent
            if not sent:
                sent = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        return replay
