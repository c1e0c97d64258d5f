from __future__ import annotations

import binascii

import pytest

from emlformat.codec.encoded_word import decode_base64, decode_header_value, decode_quoted_printable
from emlformat.core.config import Settings


def test_decode_header_value_base64_word() -> None:
    assert decode_header_value("=?UTF-8?B?VGVzdA==?=") == "Test"


def test_decode_header_value_q_word_with_escape() -> None:
    assert decode_header_value("=?UTF-8?Q?A=20B?=") == "A B"


def test_decode_header_value_q_word_underscore_is_space() -> None:
    assert decode_header_value("=?iso-8859-1?Q?caf=E9_au_lait?=") == "café au lait"


def test_decode_header_value_joins_adjacent_words() -> None:
    assert decode_header_value("=?UTF-8?B?SGVs?= =?UTF-8?B?bG8=?=") == "Hello"
    assert decode_header_value("=?UTF-8?B?SGVs?=\r\n=?UTF-8?B?bG8=?=") == "Hello"


def test_decode_header_value_keeps_surrounding_text() -> None:
    assert decode_header_value("Re: =?UTF-8?Q?A=20B?= tail") == "Re: A B tail"
    assert decode_header_value("plain subject") == "plain subject"


def test_decode_header_value_lowercase_encoding_letter() -> None:
    assert decode_header_value("=?utf-8?q?caf=C3=A9?=") == "café"


def test_decode_header_value_strips_language_suffix() -> None:
    assert decode_header_value("=?UTF-8*en?Q?hi?=") == "hi"


def test_decode_header_value_empty_charset_uses_default() -> None:
    assert decode_header_value("=??Q?caf=E9?=") == "café"

    settings = Settings(DEFAULT_CHARSET="utf-8")
    assert decode_header_value("=??Q?caf=C3=A9?=", settings=settings) == "café"


def test_decode_header_value_unknown_charset_falls_back() -> None:
    assert decode_header_value("=?x-unknown?B?Y2Fmw6k=?=") == "café"


def test_decode_header_value_leaves_broken_base64_word() -> None:
    assert decode_header_value("=?UTF-8?B?QUJDR?=") == "=?UTF-8?B?QUJDR?="


def test_decode_header_value_non_string_is_empty() -> None:
    assert decode_header_value(None) == ""
    assert decode_header_value(42) == ""  # type: ignore[arg-type]


def test_decode_quoted_printable_reassembles_four_byte_utf8() -> None:
    assert decode_quoted_printable("=F0=9F=98=80", "utf-8") == "😀"


def test_decode_quoted_printable_sequence_split_by_soft_break() -> None:
    assert decode_quoted_printable("=E2=82=\r\n=AC", "utf-8") == "€"


def test_decode_quoted_printable_soft_line_breaks() -> None:
    assert decode_quoted_printable("long=\r\nline", "utf-8") == "longline"
    assert decode_quoted_printable("long=\nline", "utf-8") == "longline"


def test_decode_quoted_printable_body_keeps_underscores() -> None:
    assert decode_quoted_printable("a_b=3Dc", "utf-8") == "a_b=c"


def test_decode_quoted_printable_lowercase_hex() -> None:
    assert decode_quoted_printable("=c3=a9", "utf-8") == "é"


def test_decode_quoted_printable_single_byte_charsets() -> None:
    assert decode_quoted_printable("caf=E9", "iso-8859-1") == "café"
    assert decode_quoted_printable("=80 5", "windows-1252") == "€ 5"


def test_decode_quoted_printable_stray_octet_in_utf8() -> None:
    assert decode_quoted_printable("caf=E9", "utf-8") == "café"


def test_decode_base64_tolerates_line_breaks_and_missing_padding() -> None:
    assert decode_base64("SGVs\r\nbG8") == b"Hello"
    assert decode_base64("VGVzdA") == b"Test"


def test_decode_base64_rejects_truncated_input() -> None:
    with pytest.raises(binascii.Error):
        decode_base64("QUJDR")
