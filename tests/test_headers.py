from __future__ import annotations

from emlformat.core.config import Settings
from emlformat.mime.headers import (
    default_attachment_name,
    format_address,
    get_boundary,
    get_charset,
    get_file_extension,
    get_mime_type,
    is_multipart,
    normalize_header_name,
    parse_address,
)
from emlformat.mime.types import EmailAddress, HeaderMap


def test_get_boundary_quoted_and_unquoted() -> None:
    assert get_boundary('multipart/mixed; boundary="abc 123"') == "abc 123"
    assert get_boundary("multipart/mixed; boundary=abc; charset=utf-8") == "abc"
    assert get_boundary('multipart/mixed;\r\nboundary="----=_Part_1"') == "----=_Part_1"
    assert get_boundary("multipart/mixed; BOUNDARY=XyZ") == "XyZ"


def test_get_boundary_missing() -> None:
    assert get_boundary("multipart/mixed") is None
    assert get_boundary(None) is None


def test_get_charset() -> None:
    assert get_charset('text/plain; charset="UTF-8"') == "UTF-8"
    assert get_charset("text/plain; charset=iso-8859-1; format=flowed") == "iso-8859-1"
    assert get_charset("text/plain") is None


def test_is_multipart_and_mime_type() -> None:
    assert is_multipart("Multipart/Alternative; boundary=x")
    assert not is_multipart("text/plain")
    assert not is_multipart(None)
    assert get_mime_type("Image/JPEG; name=x.jpg") == "image/jpeg"


def test_normalize_header_name() -> None:
    assert normalize_header_name("content-type") == "Content-Type"
    assert normalize_header_name("MIME-version") == "MIME-Version"
    assert normalize_header_name("message-ID") == "Message-ID"
    assert normalize_header_name("x-mailer") == "X-Mailer"


def test_parse_address_with_display_name() -> None:
    assert parse_address('"PayPal" <noreply@paypal.com>') == EmailAddress(
        email="noreply@paypal.com", name="PayPal"
    )
    assert parse_address("=?UTF-8?Q?J=C3=BCrgen?= <j@example.com>") == EmailAddress(
        email="j@example.com", name="Jürgen"
    )


def test_parse_address_bare() -> None:
    assert parse_address(" a@b.com ") == EmailAddress(email="a@b.com")
    assert parse_address("<a@b.com>") == EmailAddress(email="a@b.com")


def test_format_address_variants() -> None:
    assert format_address("a@b.com") == "a@b.com"
    assert format_address(EmailAddress(email="a@b.com", name="A B")) == '"A B" <a@b.com>'
    assert format_address(EmailAddress(email="a@b.com")) == "<a@b.com>"
    assert (
        format_address([EmailAddress(email="a@b.com", name="A"), "c@d.com"])
        == '"A" <a@b.com>, c@d.com'
    )
    assert format_address(None) == ""
    assert format_address([]) == ""


def test_file_extension_and_default_name() -> None:
    settings = Settings()

    assert get_file_extension("image/jpeg; name=x", settings=settings) == ".jpg"
    assert get_file_extension("application/pdf", settings=settings) == ""
    assert default_attachment_name(0, "text/html", settings=settings) == "attachment_1.html"
    assert default_attachment_name(2, None, settings=settings) == "attachment_3"


def test_header_map_is_case_insensitive_and_keeps_repeats() -> None:
    headers = HeaderMap({"Subject": ["Hi"], "Received": ["a", "b"]})

    assert headers["subject"] == "Hi"
    assert headers["RECEIVED"] == ("a", "b")
    assert headers.get("received") == "a"
    assert headers.get_all("Received") == ["a", "b"]
    assert headers.is_multi("Received")
    assert "SUBJECT" in headers
    assert list(headers) == ["Subject", "Received"]
    assert headers.get("X-Missing") is None
    assert headers.get_all("X-Missing") == []
