from datetime import date
from decimal import Decimal

from procbind._serialization import decode_json, encode_json


def test_encode_json() -> None:
    assert encode_json({"a": 1}) == '{"a":1}'
    assert encode_json([1], as_bytes=True) == b"[1]"


def test_encode_json_decimal_and_date() -> None:
    """Test decimals and dates are encoded as strings."""
    assert decode_json(encode_json({"amount": Decimal("1.50"), "due": date(2024, 1, 15)})) == {
        "amount": "1.50",
        "due": "2024-01-15",
    }


def test_decode_json() -> None:
    assert decode_json(b'{"url": null}') == {"url": None}
    assert decode_json('["1", "2"]') == ["1", "2"]
