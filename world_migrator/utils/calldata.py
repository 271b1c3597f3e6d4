"""Calldata decoding and Cairo string encoding helpers.

Init call arguments are written in the profile as a list of strings, each one
optionally prefixed with its type::

    init_call_args:
      ns-actions:
        - "0x1234"            # felt (hex or decimal)
        - "u256:1000"         # low and high felts
        - "str:hello world"   # ByteArray
        - "sstr:token"        # Cairo short string
        - "int:-5"            # signed integer
        - "arr:1,2,3"         # length-prefixed felt array
        - "u256arr:1,2"       # length-prefixed u256 array
"""

from __future__ import annotations

from typing import Callable, Sequence

from world_migrator.constants import BYTES_PER_WORD, FIELD_PRIME
from world_migrator.exceptions import CalldataDecodeError

U128_MASK = (1 << 128) - 1


def parse_felt(value: str | int) -> int:
    """Parse a felt given as an int, a ``0x`` hex string or a decimal string."""
    if isinstance(value, bool):
        raise CalldataDecodeError(f"Invalid felt value: {value!r}")
    if isinstance(value, int):
        felt = value
    elif isinstance(value, str):
        text = value.strip()
        try:
            felt = int(text, 16) if text.lower().startswith("0x") else int(text, 10)
        except ValueError as e:
            raise CalldataDecodeError(f"Invalid felt value: {value!r}") from e
    else:
        raise CalldataDecodeError(f"Invalid felt value: {value!r}")

    if not 0 <= felt < FIELD_PRIME:
        raise CalldataDecodeError(f"Felt value out of range: {value!r}")
    return felt


def cairo_short_string_to_felt(text: str) -> int:
    """Encode an ASCII string of at most 31 characters as a single felt."""
    if not text.isascii():
        raise CalldataDecodeError(f"Short string must be ASCII: {text!r}")
    if len(text) > BYTES_PER_WORD:
        raise CalldataDecodeError(
            f"Short string is longer than {BYTES_PER_WORD} characters: {text!r}"
        )
    return int.from_bytes(text.encode("ascii"), "big") if text else 0


def encode_byte_array(text: str) -> list[int]:
    """Serialize a string as a Cairo ``ByteArray``.

    Layout: number of full 31-byte words, the full words, the pending word
    and the pending word length.
    """
    data = text.encode("utf-8")
    n_full = len(data) // BYTES_PER_WORD
    full_words = [
        int.from_bytes(data[i * BYTES_PER_WORD : (i + 1) * BYTES_PER_WORD], "big")
        for i in range(n_full)
    ]
    pending = data[n_full * BYTES_PER_WORD :]
    pending_word = int.from_bytes(pending, "big") if pending else 0
    return [n_full, *full_words, pending_word, len(pending)]


def _decode_u256(value: str) -> list[int]:
    try:
        number = int(value.strip(), 0)
    except ValueError as e:
        raise CalldataDecodeError(f"Invalid u256 value: {value!r}") from e
    if not 0 <= number < 2**256:
        raise CalldataDecodeError(f"u256 value out of range: {value!r}")
    return [number & U128_MASK, number >> 128]


def _decode_int(value: str) -> list[int]:
    try:
        number = int(value.strip(), 10)
    except ValueError as e:
        raise CalldataDecodeError(f"Invalid signed integer: {value!r}") from e
    if not -(2**127) <= number < 2**127:
        raise CalldataDecodeError(f"Signed integer out of i128 range: {value!r}")
    return [number % FIELD_PRIME]


def _split_items(value: str) -> list[str]:
    return [item for item in (part.strip() for part in value.split(",")) if item]


def _decode_felt_array(value: str) -> list[int]:
    items = [parse_felt(item) for item in _split_items(value)]
    return [len(items), *items]


def _decode_u256_array(value: str) -> list[int]:
    items = _split_items(value)
    result = [len(items)]
    for item in items:
        result.extend(_decode_u256(item))
    return result


_DECODERS: dict[str, Callable[[str], list[int]]] = {
    "u256": _decode_u256,
    "str": encode_byte_array,
    "sstr": lambda v: [cairo_short_string_to_felt(v)],
    "int": _decode_int,
    "arr": _decode_felt_array,
    "u256arr": _decode_u256_array,
}


def decode_calldata_item(item: str) -> list[int]:
    """Decode a single calldata string into one or more felts."""
    if not isinstance(item, str):
        return [parse_felt(item)]

    prefix, sep, rest = item.partition(":")
    if sep and prefix in _DECODERS:
        return _DECODERS[prefix](rest)
    if sep:
        raise CalldataDecodeError(f"Unknown calldata prefix '{prefix}' in {item!r}")
    return [parse_felt(item)]


def decode_calldata(items: Sequence[str]) -> list[int]:
    """Decode a list of calldata strings into a flat list of felts.

    Raises:
        CalldataDecodeError: If any item is malformed.
    """
    if not isinstance(items, (list, tuple)):
        raise CalldataDecodeError(
            f"Calldata must be a list of strings, got {type(items).__name__}: {items!r}"
        )
    result: list[int] = []
    for item in items:
        result.extend(decode_calldata_item(item))
    return result


def world_salt(seed: str) -> int:
    """Salt used to deploy the world, derived from the profile seed."""
    if not seed:
        raise CalldataDecodeError("World seed must not be empty")
    return cairo_short_string_to_felt(seed)
