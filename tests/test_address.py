"""Tests for sigbind.address: address parsing and canonical formatting."""

import pytest

from sigbind.address import format_addr, parse_addr


class TestParseAddr:
    def test_prefixed_hex(self) -> None:
        assert parse_addr("0x401000") == 0x401000

    def test_uppercase_prefix(self) -> None:
        assert parse_addr("0X10003DA0") == 0x10003DA0

    def test_mixed_case_digits(self) -> None:
        assert parse_addr("0x10003dA0") == 0x10003DA0

    def test_decimal(self) -> None:
        assert parse_addr("4198400") == 0x401000

    def test_whitespace_stripped(self) -> None:
        assert parse_addr("  0x1000  ") == 0x1000

    def test_negative_wraps_to_u64(self) -> None:
        assert parse_addr("-1") == 0xFFFFFFFFFFFFFFFF

    def test_max_u64(self) -> None:
        assert parse_addr("0xFFFFFFFFFFFFFFFF") == (1 << 64) - 1

    @pytest.mark.parametrize("text", ["", "0x", "not_hex", "0xZZ", "1_000", "+5", "0x1_0"])
    def test_invalid(self, text: str) -> None:
        with pytest.raises(ValueError):
            parse_addr(text)

    def test_out_of_range(self) -> None:
        with pytest.raises(ValueError, match="out of range"):
            parse_addr("0x10000000000000000")


class TestFormatAddr:
    def test_uppercase_digits(self) -> None:
        assert format_addr(0x10003DA0) == "0x10003DA0"

    def test_no_padding(self) -> None:
        assert format_addr(0x1000) == "0x1000"

    def test_zero(self) -> None:
        assert format_addr(0) == "0x0"

    def test_parse_accepts_canonical_form(self) -> None:
        assert parse_addr(format_addr(0xDEADBEEF)) == 0xDEADBEEF
