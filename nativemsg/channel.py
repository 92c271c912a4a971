"""Framed channel over a pair of byte streams.

A channel pairs a readable stream, a writable stream and a
fixed byte order. It keeps no state between calls: each
operation reads or writes exactly one frame and returns an
IOResult. After any failure the stream position is
unknown, so callers should stop using the channel.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import IO, Any, TypeVar

from returns.io import IOFailure, IOResult, IOSuccess
from returns.result import Failure
from returns.unsafe import unsafe_perform_io

from nativemsg import io_ops
from nativemsg.errors import INVALID_FRAME, IO_ERROR, SHORT_READ, ChannelError
from nativemsg.protocol import (
    decode_header,
    decode_value,
    encode_value,
    frame_payload,
)
from nativemsg.types import (
    HEADER_SIZE,
    NATIVE_BYTE_ORDER,
    ByteOrderPolicy,
    ChannelConfig,
    Endian,
    resolve_byte_order,
)

T = TypeVar("T")

logger = logging.getLogger(__name__)


def _missing_stream(operation: str, direction: str) -> IOFailure[ChannelError]:
    return IOFailure(
        ChannelError(
            operation=operation,
            error_type=IO_ERROR,
            message=f"Channel has no {direction} stream",
            context={"direction": direction},
        ),
    )


def read_frame(
    reader: IO[bytes] | None,
    order: Endian,
    *,
    read_fully: bool = True,
    max_frame_size: int | None = None,
) -> IOResult[bytes, ChannelError]:
    """Read one frame and return its payload bytes."""
    if reader is None:
        return _missing_stream("read_frame", "read")

    header_result = io_ops.read_bytes(
        reader, HEADER_SIZE, read_fully=read_fully,
    )
    if isinstance(header_result, IOFailure):
        return header_result
    header = unsafe_perform_io(header_result.unwrap())

    length_result = decode_header(
        header, order, max_frame_size=max_frame_size,
    )
    if isinstance(length_result, Failure):
        error = length_result.failure()
        logger.debug("rejected frame header: %s", error)
        return IOFailure(error)
    length = length_result.unwrap()

    payload_result = io_ops.read_bytes(
        reader, length, read_fully=read_fully,
    )
    if isinstance(payload_result, IOFailure):
        return payload_result
    payload = unsafe_perform_io(payload_result.unwrap())

    if len(payload) < length:
        logger.debug(
            "truncated payload: expected %d bytes, got %d",
            length, len(payload),
        )
        return IOFailure(
            ChannelError(
                operation="read_frame",
                error_type=SHORT_READ,
                message=(
                    f"Payload truncated: expected {length}"
                    f" bytes, got {len(payload)}"
                ),
                context={"expected": length, "received": len(payload)},
            ),
        )
    logger.debug("read frame with %d byte payload", length)
    return IOSuccess(payload)


def write_frame(
    writer: IO[bytes] | None,
    payload: bytes | bytearray | memoryview | IO[bytes],
    order: Endian,
    *,
    max_frame_size: int | None = None,
) -> IOResult[int, ChannelError]:
    """Frame payload and write it with a single write call.

    payload may also be a readable binary stream, which is
    drained first. Returns the total bytes written (header
    plus payload).
    """
    if writer is None:
        return _missing_stream("write_frame", "write")

    if isinstance(payload, (bytes, bytearray, memoryview)):
        data = bytes(payload)
    elif not callable(getattr(payload, "read", None)):
        return IOFailure(
            ChannelError(
                operation="write_frame",
                error_type=INVALID_FRAME,
                message=(
                    f"Payload must be bytes or a readable binary"
                    f" stream, got {type(payload).__name__}"
                ),
                context={"payload_type": type(payload).__name__},
            ),
        )
    else:
        drained = io_ops.drain_stream(payload)
        if isinstance(drained, IOFailure):
            return drained
        data = unsafe_perform_io(drained.unwrap())

    framed = frame_payload(data, order, max_frame_size=max_frame_size)
    if isinstance(framed, Failure):
        error = framed.failure()
        logger.debug("refused to frame payload: %s", error)
        return IOFailure(error)

    logger.debug("writing frame with %d byte payload", len(data))
    return io_ops.write_bytes(writer, framed.unwrap())


def send(
    writer: IO[bytes] | None,
    value: object,
    order: Endian,
    *,
    max_frame_size: int | None = None,
) -> IOResult[int, ChannelError]:
    """Encode value as JSON and write it as one frame."""
    encoded = encode_value(value)
    if isinstance(encoded, Failure):
        error = encoded.failure()
        logger.debug("send failed: %s", error)
        return IOFailure(error)
    return write_frame(
        writer, encoded.unwrap(), order, max_frame_size=max_frame_size,
    )


def receive(
    reader: IO[bytes] | None,
    order: Endian,
    target: type[T] | Any = Any,  # noqa: ANN401
    *,
    read_fully: bool = True,
    max_frame_size: int | None = None,
) -> IOResult[T, ChannelError]:
    """Read one frame and decode its JSON payload into target."""
    frame_result = read_frame(
        reader,
        order,
        read_fully=read_fully,
        max_frame_size=max_frame_size,
    )
    if isinstance(frame_result, IOFailure):
        return frame_result
    payload = unsafe_perform_io(frame_result.unwrap())

    decoded = decode_value(payload, target)
    if isinstance(decoded, Failure):
        error = decoded.failure()
        logger.debug("receive failed: %s", error)
        return IOFailure(error)
    return IOSuccess(decoded.unwrap())


@dataclass(frozen=True)
class FramedChannel:
    """Length-prefixed JSON channel over two byte streams.

    Either stream may be None for a receive-only or
    send-only channel. The channel never closes its
    streams.
    """

    reader: IO[bytes] | None
    writer: IO[bytes] | None
    byte_order: Endian = NATIVE_BYTE_ORDER
    read_fully: bool = True
    max_frame_size: int | None = None

    def __post_init__(self) -> None:
        """Reject unresolved or unknown byte orders.

        Raises:
            ValueError: If byte_order is not big or little.
        """
        if self.byte_order not in ("big", "little"):
            msg = (
                f"byte_order must be 'big' or 'little',"
                f" got {self.byte_order!r}"
            )
            raise ValueError(msg)

    def read_frame(self) -> IOResult[bytes, ChannelError]:
        """Read one frame and return its payload bytes."""
        return read_frame(
            self.reader,
            self.byte_order,
            read_fully=self.read_fully,
            max_frame_size=self.max_frame_size,
        )

    def write_frame(
        self,
        payload: bytes | bytearray | memoryview | IO[bytes],
    ) -> IOResult[int, ChannelError]:
        """Write payload as one frame; returns bytes written."""
        return write_frame(
            self.writer,
            payload,
            self.byte_order,
            max_frame_size=self.max_frame_size,
        )

    def send(self, value: object) -> IOResult[int, ChannelError]:
        """Encode value as JSON and write it as one frame."""
        return send(
            self.writer,
            value,
            self.byte_order,
            max_frame_size=self.max_frame_size,
        )

    def receive(
        self,
        target: type[T] | Any = Any,  # noqa: ANN401
    ) -> IOResult[T, ChannelError]:
        """Read one frame and decode it into target."""
        return receive(
            self.reader,
            self.byte_order,
            target,
            read_fully=self.read_fully,
            max_frame_size=self.max_frame_size,
        )


def new_channel(
    reader: IO[bytes] | None,
    writer: IO[bytes] | None,
    byte_order: ByteOrderPolicy = "native",
    *,
    read_fully: bool = True,
    max_frame_size: int | None = None,
) -> FramedChannel:
    """Build a channel, resolving the byte-order policy."""
    return FramedChannel(
        reader=reader,
        writer=writer,
        byte_order=resolve_byte_order(byte_order),
        read_fully=read_fully,
        max_frame_size=max_frame_size,
    )


def native_channel(
    reader: IO[bytes] | None,
    writer: IO[bytes] | None,
) -> FramedChannel:
    """Build a channel using this machine's byte order."""
    return new_channel(reader, writer, "native")


def channel_from_config(
    reader: IO[bytes] | None,
    writer: IO[bytes] | None,
    config: ChannelConfig,
) -> FramedChannel:
    """Build a channel from a ChannelConfig."""
    return new_channel(
        reader,
        writer,
        config.byte_order,
        read_fully=config.read_fully,
        max_frame_size=config.max_frame_size,
    )


def stdio_channel(config: ChannelConfig | None = None) -> FramedChannel:
    """Build a channel over the process's binary stdin and stdout.

    Browsers launch native hosts with stdin and stdout
    connected to the extension; nothing else may write to
    stdout while the channel is in use.
    """
    return channel_from_config(
        io_ops.get_stdin_buffer(),
        io_ops.get_stdout_buffer(),
        config or ChannelConfig(),
    )
