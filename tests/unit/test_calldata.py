"""Unit tests for calldata decoding and Cairo string encoding."""

import pytest

from world_migrator.constants import FIELD_PRIME
from world_migrator.exceptions import CalldataDecodeError, ConfigError
from world_migrator.utils.calldata import (
    cairo_short_string_to_felt,
    decode_calldata,
    decode_calldata_item,
    encode_byte_array,
    parse_felt,
    world_salt,
)


class TestParseFelt:
    """Tests for parse_felt()."""

    @pytest.mark.parametrize(
        "value, expected",
        [("0x10", 16), ("0X1f", 31), ("42", 42), (" 7 ", 7), (5, 5), (0, 0)],
    )
    def test_valid_values(self, value, expected):
        assert parse_felt(value) == expected

    @pytest.mark.parametrize("value", ["abc", "0xzz", "", "1.5"])
    def test_invalid_strings_raise(self, value):
        with pytest.raises(CalldataDecodeError):
            parse_felt(value)

    def test_bool_is_rejected(self):
        with pytest.raises(CalldataDecodeError):
            parse_felt(True)

    @pytest.mark.parametrize("value", [1.5, None, [1]])
    def test_non_string_non_int_is_rejected(self, value):
        with pytest.raises(CalldataDecodeError, match="Invalid felt value"):
            parse_felt(value)

    def test_out_of_range_raises(self):
        with pytest.raises(CalldataDecodeError, match="out of range"):
            parse_felt(FIELD_PRIME)
        with pytest.raises(CalldataDecodeError):
            parse_felt(-1)

    def test_decode_error_is_a_config_error(self):
        with pytest.raises(ConfigError):
            parse_felt("nope")


class TestStrings:
    """Tests for short strings and ByteArray encoding."""

    def test_short_string(self):
        assert cairo_short_string_to_felt("hello") == 0x68656C6C6F

    def test_empty_short_string_is_zero(self):
        assert cairo_short_string_to_felt("") == 0

    def test_short_string_too_long(self):
        with pytest.raises(CalldataDecodeError, match="longer than 31"):
            cairo_short_string_to_felt("a" * 32)

    def test_short_string_must_be_ascii(self):
        with pytest.raises(CalldataDecodeError, match="ASCII"):
            cairo_short_string_to_felt("héllo")

    def test_byte_array_short(self):
        assert encode_byte_array("hello") == [0, 0x68656C6C6F, 5]

    def test_byte_array_empty(self):
        assert encode_byte_array("") == [0, 0, 0]

    def test_byte_array_exactly_one_word(self):
        word = int.from_bytes(b"a" * 31, "big")
        assert encode_byte_array("a" * 31) == [1, word, 0, 0]

    def test_byte_array_spans_words(self):
        encoded = encode_byte_array("a" * 31 + "bc")
        assert encoded[0] == 1
        assert encoded[1] == int.from_bytes(b"a" * 31, "big")
        assert encoded[2:] == [0x6263, 2]


class TestDecodeCalldata:
    """Tests for decode_calldata_item() and decode_calldata()."""

    def test_plain_felts(self):
        assert decode_calldata(["0x1", "2"]) == [1, 2]

    def test_u256_splits_low_and_high(self):
        assert decode_calldata_item("u256:1000") == [1000, 0]
        assert decode_calldata_item(f"u256:{2**128 + 3}") == [3, 1]

    def test_u256_out_of_range(self):
        with pytest.raises(CalldataDecodeError):
            decode_calldata_item(f"u256:{2**256}")

    def test_str_prefix_encodes_byte_array(self):
        assert decode_calldata_item("str:hi") == [0, 0x6869, 2]

    def test_sstr_prefix(self):
        assert decode_calldata_item("sstr:abc") == [0x616263]

    def test_negative_int_wraps_into_field(self):
        assert decode_calldata_item("int:-5") == [FIELD_PRIME - 5]
        assert decode_calldata_item("int:5") == [5]

    def test_felt_array_is_length_prefixed(self):
        assert decode_calldata_item("arr:1, 2,0x3") == [3, 1, 2, 3]
        assert decode_calldata_item("arr:") == [0]

    def test_u256_array(self):
        assert decode_calldata_item("u256arr:1,2") == [2, 1, 0, 2, 0]

    def test_unknown_prefix_raises(self):
        with pytest.raises(CalldataDecodeError, match="Unknown calldata prefix 'foo'"):
            decode_calldata_item("foo:1")

    def test_integers_are_accepted_as_felts(self):
        assert decode_calldata([1, "0x2"]) == [1, 2]

    def test_mixed_items_are_flattened_in_order(self):
        assert decode_calldata(["0x1", "str:hi", "u256:2"]) == [1, 0, 0x6869, 2, 2, 0]

    @pytest.mark.parametrize("items", ["0x1", 1, None, {"a": "0x1"}])
    def test_non_list_is_rejected(self, items):
        with pytest.raises(CalldataDecodeError, match="must be a list"):
            decode_calldata(items)

    @pytest.mark.parametrize("item", [1.5, None])
    def test_non_string_items_are_rejected(self, item):
        with pytest.raises(CalldataDecodeError, match="Invalid felt value"):
            decode_calldata(["0x1", item])


class TestWorldSalt:
    """Tests for world_salt()."""

    def test_salt_is_short_string_of_seed(self):
        assert world_salt("abc") == 0x616263

    def test_empty_seed_raises(self):
        with pytest.raises(CalldataDecodeError, match="seed"):
            world_salt("")
