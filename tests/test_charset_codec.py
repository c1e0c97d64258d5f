from __future__ import annotations

import pytest

from emlformat.codec.charset import (
    StandardCharsetCodec,
    decode_bytes,
    default_codec,
    normalize_charset,
    raw_bytes,
)
from emlformat.core.errors import EmlFormatError, UnsupportedCharsetError


def test_normalize_charset_collapses_punctuation_and_case() -> None:
    assert normalize_charset("ISO_8859-1") == "iso88591"
    assert normalize_charset("UTF-8") == "utf8"
    assert normalize_charset(" Windows-1252 ") == "windows1252"
    assert normalize_charset("") == ""


def test_standard_codec_decodes_common_charsets() -> None:
    codec = StandardCharsetCodec()

    assert codec.decode(b"\xe9t\xe9", "iso88591") == "été"
    assert codec.decode(b"\x80", "windows1252") == "€"
    assert codec.decode("Привет".encode("koi8_r"), "koi8r") == "Привет"
    assert codec.decode("日本".encode("shift_jis"), "shiftjis") == "日本"


def test_standard_codec_encode_uses_same_table() -> None:
    codec = default_codec()

    assert codec.encode("café", "utf8") == b"caf\xc3\xa9"
    assert codec.encode("café", "latin1") == b"caf\xe9"


def test_standard_codec_unknown_charset_raises() -> None:
    codec = StandardCharsetCodec()

    with pytest.raises(UnsupportedCharsetError) as excinfo:
        codec.decode(b"x", "nosuchcharset")

    assert excinfo.value.charset == "nosuchcharset"
    assert isinstance(excinfo.value, EmlFormatError)


def test_standard_codec_rejects_non_text_codecs() -> None:
    with pytest.raises(UnsupportedCharsetError):
        StandardCharsetCodec().decode(b"eA==", "base64codec")


def test_decode_bytes_falls_back_for_unknown_charset() -> None:
    codec = default_codec()

    assert decode_bytes(b"caf\xc3\xa9", "nosuchcharset", codec=codec) == "café"
    assert decode_bytes(b"caf\xe9", "nosuchcharset", codec=codec) == "café"


def test_decode_bytes_utf8_replaces_invalid_sequences() -> None:
    assert decode_bytes(b"ok\xff", "utf8", codec=default_codec()) == "ok�"


def test_decode_bytes_goes_through_injected_codec() -> None:
    calls: list[tuple[bytes, str]] = []

    class RecordingCodec:
        def decode(self, data: bytes, charset_key: str) -> str:
            calls.append((data, charset_key))
            return "decoded"

        def encode(self, text: str, charset_key: str) -> bytes:
            return text.encode("ascii")

    assert decode_bytes(b"abc", "iso88592", codec=RecordingCodec()) == "decoded"
    assert calls == [(b"abc", "iso88592")]


def test_raw_bytes_recovers_latin1_and_surrogate_escaped_octets() -> None:
    assert raw_bytes("été") == b"\xe9t\xe9"
    assert raw_bytes(b"caf\xe9 \xe2\x82\xac".decode("utf-8", errors="surrogateescape")) == (
        b"caf\xe9 \xe2\x82\xac"
    )


def test_raw_bytes_leaves_decoded_text_alone() -> None:
    assert raw_bytes("€ and 日本") is None
