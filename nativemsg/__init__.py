"""Length-prefixed JSON framing for native messaging hosts."""
from nativemsg.channel import (
    FramedChannel,
    channel_from_config,
    native_channel,
    new_channel,
    read_frame,
    receive,
    send,
    stdio_channel,
    write_frame,
)
from nativemsg.errors import (
    DECODE_ERROR,
    ENCODE_ERROR,
    INVALID_FRAME,
    IO_ERROR,
    SHORT_READ,
    ChannelError,
)
from nativemsg.types import (
    NATIVE_BYTE_ORDER,
    ByteOrderPolicy,
    ChannelConfig,
    Endian,
)

__all__ = [
    "DECODE_ERROR",
    "ENCODE_ERROR",
    "INVALID_FRAME",
    "IO_ERROR",
    "NATIVE_BYTE_ORDER",
    "SHORT_READ",
    "ByteOrderPolicy",
    "ChannelConfig",
    "ChannelError",
    "Endian",
    "FramedChannel",
    "channel_from_config",
    "native_channel",
    "new_channel",
    "read_frame",
    "receive",
    "send",
    "stdio_channel",
    "write_frame",
]
