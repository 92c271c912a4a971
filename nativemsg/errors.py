"""Channel error types for native messaging framing."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final

INVALID_FRAME: Final = "InvalidFrame"
SHORT_READ: Final = "ShortRead"
IO_ERROR: Final = "IOError"
ENCODE_ERROR: Final = "EncodeError"
DECODE_ERROR: Final = "DecodeError"


@dataclass(frozen=True)
class ChannelError:
    """Structured error for framing and codec failures."""

    operation: str
    error_type: str
    message: str
    context: dict[str, object] = field(default_factory=dict)

    def __str__(self) -> str:
        """Human-readable error representation for logging."""
        max_len = 500
        base = f"ChannelError[{self.operation}] {self.error_type}: {self.message}"
        if len(base) > max_len:
            base = base[: max_len - 3] + "..."
        if self.context:
            ctx_str = str(self.context)
            if len(ctx_str) > max_len:
                ctx_str = ctx_str[: max_len - 3] + "..."
            base += f" | context={ctx_str}"
        return base
