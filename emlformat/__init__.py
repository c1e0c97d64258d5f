from __future__ import annotations

from emlformat.codec.charset import (  # noqa: F401
    CharsetCodec,
    StandardCharsetCodec,
    default_codec,
    normalize_charset,
)
from emlformat.codec.encoded_word import decode_header_value, decode_quoted_printable  # noqa: F401
from emlformat.core.config import Settings, get_settings  # noqa: F401
from emlformat.core.errors import (  # noqa: F401
    BuildError,
    EmlFormatError,
    InvalidInputError,
    MissingRecipientError,
    UnsupportedCharsetError,
)
from emlformat.mime.builder import build  # noqa: F401
from emlformat.mime.digest import compute_attachment_sha256, compute_content_digest  # noqa: F401
from emlformat.mime.headers import (  # noqa: F401
    format_address,
    get_boundary,
    get_charset,
    get_file_extension,
    parse_address,
)
from emlformat.mime.parser import parse  # noqa: F401
from emlformat.mime.reader import DATE_MISSING, DATE_UNPARSABLE, read  # noqa: F401
from emlformat.mime.types import (  # noqa: F401
    Attachment,
    BoundaryPart,
    EmailAddress,
    FriendlyMessage,
    HeaderMap,
    Leaf,
    Multipart,
    ParseNode,
)
from emlformat.schemas.draft import AttachmentDraft, MessageDraft  # noqa: F401
