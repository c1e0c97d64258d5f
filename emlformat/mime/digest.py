"""Content digests for archiving callers and round-trip checks."""

from __future__ import annotations

import hashlib

import orjson

from emlformat.mime.types import Attachment, FriendlyMessage


def _stable_json_bytes(obj: object) -> bytes:
    return orjson.dumps(obj, option=orjson.OPT_SORT_KEYS)


def _sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def _payload_bytes(data: bytes | str) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8", errors="surrogateescape")
    return bytes(data)


def compute_attachment_sha256(attachment: Attachment) -> bytes:
    return _sha256(_payload_bytes(attachment.data))


def compute_content_digest(message: FriendlyMessage) -> bytes:
    """Hash of the decoded content only; header formatting and boundaries do not count."""
    payload = {
        "text": message.text,
        "html": message.html,
        "attachment_sha": sorted(compute_attachment_sha256(a).hex() for a in message.attachments),
    }
    return _sha256(_stable_json_bytes(payload))
