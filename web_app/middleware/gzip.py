"""Request body decompression middleware."""

import gzip
import logging
import zlib
from typing import Optional

from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send


class GzipRequestMiddleware:
    """Gunzip request bodies sent with ``Content-Encoding: gzip``.

    Responses are compressed separately by Starlette's ``GZipMiddleware``.
    A body that is not valid gzip is answered with 400.
    """

    def __init__(self, app: ASGIApp, logger: Optional[logging.Logger] = None):
        self.app = app
        self.logger = logger or logging.getLogger("shortener.web")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or not self._is_gzipped(scope):
            await self.app(scope, receive, send)
            return

        chunks = []
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] != "http.request":
                # Client went away before the body arrived
                await self.app(scope, receive, send)
                return
            chunks.append(message.get("body", b""))
            more_body = message.get("more_body", False)

        try:
            body = gzip.decompress(b"".join(chunks))
        except (OSError, EOFError, zlib.error) as e:
            self.logger.warning(f"Rejected gzip request body for {scope.get('path')}: {e}")
            response = JSONResponse({"detail": "Invalid gzip request body"}, status_code=400)
            await response(scope, receive, send)
            return

        headers = [
            (name, value)
            for name, value in scope["headers"]
            if name not in (b"content-encoding", b"content-length")
        ]
        headers.append((b"content-length", str(len(body)).encode("latin-1")))
        scope = dict(scope, headers=headers)

        delivered = False

        async def receive_decompressed() -> Message:
            nonlocal delivered
            if not delivered:
                delivered = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        await self.app(scope, receive_decompressed, send)

    @staticmethod
    def _is_gzipped(scope: Scope) -> bool:
        for name, value in scope.get("headers", []):
            if name == b"content-encoding":
                return value.decode("latin-1").strip().lower() == "gzip"
        return False
