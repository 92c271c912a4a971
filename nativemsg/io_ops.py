"""I/O boundary for native messaging channels.

All stream reads and writes go through here. Functions
return IOResult and never raise; framing decisions about
short or empty reads are left to the caller.
"""
from __future__ import annotations

import logging
import sys
from typing import IO, Final

from returns.io import IOFailure, IOResult, IOSuccess

from nativemsg.errors import IO_ERROR, ChannelError

logger = logging.getLogger(__name__)

# Upper bound on a single read request; a declared length is
# never allocated up front.
READ_CHUNK_SIZE: Final = 64 * 1024


def get_stdin_buffer() -> IO[bytes]:
    """Return stdin binary buffer. Mockable seam."""
    return sys.stdin.buffer


def get_stdout_buffer() -> IO[bytes]:
    """Return stdout binary buffer. Mockable seam."""
    return sys.stdout.buffer


def _io_failure(
    operation: str,
    exc: Exception,
    **context: object,
) -> IOFailure[ChannelError]:
    return IOFailure(
        ChannelError(
            operation=operation,
            error_type=IO_ERROR,
            message=str(exc) or type(exc).__name__,
            context={"exception_type": type(exc).__name__, **context},
        ),
    )


def read_bytes(
    stream: IO[bytes],
    size: int,
    *,
    read_fully: bool = True,
) -> IOResult[bytes, ChannelError]:
    """Read up to size bytes from stream.

    With read_fully, keeps reading in chunks of at most
    READ_CHUNK_SIZE until size bytes arrive or the stream
    reports end of data. Without it, performs exactly one
    read call for the whole size. Fewer bytes than requested is
    still a success; the caller decides what that means.
    """
    chunks: list[bytes] = []
    remaining = size
    try:
        while remaining > 0:
            request = min(remaining, READ_CHUNK_SIZE) if read_fully else remaining
            chunk = stream.read(request)
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
            if not read_fully:
                break
    except (OSError, ValueError) as exc:
        # ValueError: read on a closed file
        logger.debug("read of %d bytes failed: %s", size, exc)
        return _io_failure("io_ops.read_bytes", exc, requested=size)
    return IOSuccess(b"".join(chunks))


def write_bytes(
    stream: IO[bytes],
    data: bytes,
) -> IOResult[int, ChannelError]:
    """Write data with a single write call, then flush.

    Streams that report a short write produce an IOError
    failure; streams whose write returns None are assumed
    to have taken the whole buffer.
    """
    try:
        written = stream.write(data)
        flush = getattr(stream, "flush", None)
        if callable(flush):
            flush()
    except (OSError, ValueError) as exc:
        logger.debug("write of %d bytes failed: %s", len(data), exc)
        return _io_failure("io_ops.write_bytes", exc, requested=len(data))
    if written is None:
        written = len(data)
    if written < len(data):
        return IOFailure(
            ChannelError(
                operation="io_ops.write_bytes",
                error_type=IO_ERROR,
                message=(
                    f"Short write: {written} of {len(data)}"
                    f" bytes accepted"
                ),
                context={"requested": len(data), "written": written},
            ),
        )
    return IOSuccess(written)


def drain_stream(source: IO[bytes]) -> IOResult[bytes, ChannelError]:
    """Read a source stream to exhaustion."""
    try:
        data = source.read()
    except (OSError, ValueError) as exc:
        return _io_failure("io_ops.drain_stream", exc)
    return IOSuccess(bytes(data or b""))
