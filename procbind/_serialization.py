"""JSON encoding and decoding backed by msgspec."""

from typing import Any, Literal, overload

import msgspec

__all__ = ("decode_json", "encode_json")

_ENCODER = msgspec.json.Encoder(enc_hook=str)
_DECODER = msgspec.json.Decoder()


@overload
def encode_json(data: Any, *, as_bytes: Literal[False] = ...) -> str: ...


@overload
def encode_json(data: Any, *, as_bytes: Literal[True]) -> bytes: ...


def encode_json(data: Any, *, as_bytes: bool = False) -> "str | bytes":
    """Encode data to JSON.

    Values msgspec cannot encode natively are rendered with ``str()``.

    Args:
        data: Data to encode.
        as_bytes: Return bytes instead of a string.

    Returns:
        The JSON document.
    """
    encoded = _ENCODER.encode(data)
    if as_bytes:
        return encoded
    return encoded.decode("utf-8")


def decode_json(data: "str | bytes") -> Any:
    """Decode a JSON document.

    Args:
        data: JSON string or bytes.

    Returns:
        The decoded Python object.
    """
    return _DECODER.decode(data)
