"""Shared type definitions for native messaging channels."""
from __future__ import annotations

import sys
from typing import Annotated, Final, Literal, cast

from pydantic import BaseModel, ConfigDict, Field

Endian = Literal["big", "little"]
ByteOrderPolicy = Literal["big", "little", "native"]

# Resolved once at import; the interpreter's byte order cannot change.
NATIVE_BYTE_ORDER: Final[Endian] = cast("Endian", sys.byteorder)

HEADER_SIZE: Final = 4
MAX_FRAME_LENGTH: Final = 0xFFFFFFFF

# Chrome rejects host-to-browser messages larger than 1 MiB.
CHROME_MAX_HOST_MESSAGE: Final = 1024 * 1024


def resolve_byte_order(policy: ByteOrderPolicy) -> Endian:
    """Map a byte-order policy to a concrete byte order.

    Raises:
        ValueError: If policy is not big, little or native.
    """
    if policy == "native":
        return NATIVE_BYTE_ORDER
    if policy in ("big", "little"):
        return policy
    msg = f"Unknown byte order policy: {policy!r}"
    raise ValueError(msg)


class ChannelConfig(BaseModel):
    """Framing options for a native messaging channel."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    byte_order: ByteOrderPolicy = "native"
    read_fully: bool = True
    max_frame_size: Annotated[
        int, Field(gt=0, le=MAX_FRAME_LENGTH),
    ] | None = None

    def resolved_byte_order(self) -> Endian:
        """Return the concrete byte order for this config."""
        return resolve_byte_order(self.byte_order)
