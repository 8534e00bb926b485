"""Run the session engine as a JSON-lines server: ``python -m cogtrainer.server``.

stdout carries protocol messages only; logs go to stderr.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Callable

from .handler import ServerHandler
from .protocol import Request, Response

logger = logging.getLogger("cogtrainer.server")


async def handle_line(handler: ServerHandler, line: str) -> Response:
    """Answer one request line. Every failure becomes an error response."""
    try:
        request = Request.from_line(line)
    except ValueError as e:
        return Response(id=0, error=f"Invalid request: {e}")

    try:
        return Response(id=request.id, result=await handler.dispatch(request.to_dict()))
    except Exception as e:
        logger.error("%s failed: %s", request.method, e)
        return Response.failure(request.id, e)


async def serve(
    reader: asyncio.StreamReader,
    handler: ServerHandler,
    write_line: Callable[[str], None],
) -> None:
    while line := await reader.readline():
        text = line.decode("utf-8", errors="replace").strip()
        if text:
            write_line((await handle_line(handler, text)).to_json_line())


def _write_stdout(text: str) -> None:
    sys.stdout.write(text)
    sys.stdout.flush()


async def main() -> None:
    handler = ServerHandler(
        write_notification=lambda n: _write_stdout(n.to_json_line()),
    )
    reader = asyncio.StreamReader()
    await asyncio.get_running_loop().connect_read_pipe(
        lambda: asyncio.StreamReaderProtocol(reader), sys.stdin
    )
    logger.info("ready")
    await serve(reader, handler, _write_stdout)


if __name__ == "__main__":
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.INFO,
        format="cogtrainer-server: %(levelname)s %(message)s",
    )
    asyncio.run(main())
