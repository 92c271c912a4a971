"""Native messaging protocol framing and JSON codec.

Implements the 4-byte length-prefix protocol used by browser
native messaging hosts. The header is an unsigned 32-bit
payload length in a byte order both ends agree on out of
band; the payload is a UTF-8 JSON document.

All functions here are pure: they return Result containers
and never touch a stream.
"""
from __future__ import annotations

import dataclasses
import functools
import math
import struct
from collections.abc import Iterable, Mapping
from typing import Any, Final, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError
from returns.result import Failure, Result, Success

from nativemsg.errors import (
    DECODE_ERROR,
    ENCODE_ERROR,
    INVALID_FRAME,
    SHORT_READ,
    ChannelError,
)
from nativemsg.types import HEADER_SIZE, MAX_FRAME_LENGTH, Endian

T = TypeVar("T")

_HEADER_FORMATS: Final[dict[Endian, str]] = {
    "big": ">I",
    "little": "<I",
}

_ANY_ADAPTER: Final = TypeAdapter(Any)


def render_raw(raw: bytes) -> str:
    """Return a terminal-safe rendering of raw payload bytes."""
    return repr(bytes(raw))


def encode_header(
    length: int,
    order: Endian,
    *,
    max_frame_size: int | None = None,
) -> Result[bytes, ChannelError]:
    """Pack a payload length into a 4-byte header.

    Zero-length payloads are not valid frames, and the
    length must fit an unsigned 32-bit field (and the
    optional max_frame_size).
    """
    limit = MAX_FRAME_LENGTH if max_frame_size is None else max_frame_size
    if length <= 0:
        return Failure(
            ChannelError(
                operation="encode_header",
                error_type=INVALID_FRAME,
                message="Empty payloads cannot be framed",
                context={"length": length},
            ),
        )
    if length > limit:
        return Failure(
            ChannelError(
                operation="encode_header",
                error_type=INVALID_FRAME,
                message=(
                    f"Payload of {length} bytes exceeds"
                    f" frame limit of {limit} bytes"
                ),
                context={"length": length, "limit": limit},
            ),
        )
    return Success(struct.pack(_HEADER_FORMATS[order], length))


def decode_header(
    header: bytes,
    order: Endian,
    *,
    max_frame_size: int | None = None,
) -> Result[int, ChannelError]:
    """Unpack a 4-byte header into the declared payload length.

    No header bytes at all, or a declared length of zero,
    is an InvalidFrame. A partial header is a ShortRead.
    """
    if not header:
        return Failure(
            ChannelError(
                operation="decode_header",
                error_type=INVALID_FRAME,
                message="No header bytes read (end of stream)",
                context={"received": 0},
            ),
        )
    if len(header) < HEADER_SIZE:
        return Failure(
            ChannelError(
                operation="decode_header",
                error_type=SHORT_READ,
                message=(
                    f"Header truncated: expected {HEADER_SIZE}"
                    f" bytes, got {len(header)}"
                ),
                context={
                    "expected": HEADER_SIZE,
                    "received": len(header),
                },
            ),
        )
    length: int = struct.unpack(
        _HEADER_FORMATS[order], header[:HEADER_SIZE],
    )[0]
    if length == 0:
        return Failure(
            ChannelError(
                operation="decode_header",
                error_type=INVALID_FRAME,
                message="Header declares a zero-length payload",
                context={"header": render_raw(header)},
            ),
        )
    if max_frame_size is not None and length > max_frame_size:
        return Failure(
            ChannelError(
                operation="decode_header",
                error_type=INVALID_FRAME,
                message=(
                    f"Header declares {length} bytes, over"
                    f" the {max_frame_size} byte limit"
                ),
                context={"length": length, "limit": max_frame_size},
            ),
        )
    return Success(length)


def frame_payload(
    payload: bytes,
    order: Endian,
    *,
    max_frame_size: int | None = None,
) -> Result[bytes, ChannelError]:
    """Prepend a length header to payload."""
    return encode_header(
        len(payload), order, max_frame_size=max_frame_size,
    ).map(lambda header: header + bytes(payload))


def _members(value: object) -> Iterable[tuple[object, object]] | None:
    """Return (key, child) pairs of a container value, else None."""
    if isinstance(value, BaseModel):
        return (
            (name, getattr(value, name))
            for name in type(value).model_fields
        )
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return (
            (f.name, getattr(value, f.name))
            for f in dataclasses.fields(value)
        )
    if isinstance(value, Mapping):
        return value.items()
    if isinstance(value, (list, tuple, set, frozenset)):
        return enumerate(value)
    return None


def find_non_finite(value: object) -> str | None:
    """Return the path of the first NaN or infinity in value.

    JSON has no encoding for non-finite floats. Containers
    already visited are skipped so cycles terminate; the
    serializer reports those itself.
    """
    seen: set[int] = set()
    pending: list[tuple[str, object]] = [("$", value)]
    while pending:
        path, item = pending.pop()
        if isinstance(item, float):
            if not math.isfinite(item):
                return path
            continue
        members = _members(item)
        if members is None or id(item) in seen:
            continue
        seen.add(id(item))
        children = [(f"{path}[{key!r}]", child) for key, child in members]
        pending.extend(reversed(children))
    return None


def encode_value(value: object) -> Result[bytes, ChannelError]:
    """Serialize a value to compact UTF-8 JSON.

    Accepts anything pydantic can serialize: plain JSON
    values, BaseModel instances, dataclasses and so on.
    NaN and infinity are refused rather than sent as null.
    """
    bad_path = find_non_finite(value)
    if bad_path is not None:
        return Failure(
            ChannelError(
                operation="encode_value",
                error_type=ENCODE_ERROR,
                message=(
                    f"Cannot encode {type(value).__name__} as JSON:"
                    f" non-finite float at {bad_path}"
                ),
                context={"path": bad_path},
            ),
        )
    try:
        return Success(_ANY_ADAPTER.dump_json(value))
    except (ValueError, TypeError) as exc:
        return Failure(
            ChannelError(
                operation="encode_value",
                error_type=ENCODE_ERROR,
                message=(
                    f"Cannot encode {type(value).__name__}"
                    f" as JSON: {exc}"
                ),
                context={"exception_type": type(exc).__name__},
            ),
        )


@functools.lru_cache(maxsize=128)
def _adapter_for(target: Any) -> TypeAdapter[Any]:  # noqa: ANN401
    return TypeAdapter(target)


def decode_value(
    raw: bytes,
    target: type[T] | Any = Any,  # noqa: ANN401
) -> Result[T, ChannelError]:
    """Parse a JSON payload and validate it against target.

    target is any type pydantic can validate: a BaseModel
    subclass, dataclass, TypedDict, generic alias, or Any
    for plain JSON values. The failure message carries the
    raw payload for diagnosis.
    """
    adapter = _ANY_ADAPTER if target is Any else _adapter_for(target)
    try:
        return Success(adapter.validate_json(raw))
    except ValidationError as exc:
        rendered = render_raw(raw)
        target_name = getattr(target, "__name__", repr(target))
        first = exc.errors(include_url=False)[0]["msg"]
        return Failure(
            ChannelError(
                operation="decode_value",
                error_type=DECODE_ERROR,
                message=(
                    f"Payload does not decode to {target_name}:"
                    f" {first}; raw={rendered}"
                ),
                context={
                    "target": target_name,
                    "error_count": exc.error_count(),
                    "raw": rendered,
                },
            ),
        )
