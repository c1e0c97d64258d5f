from __future__ import annotations


class EmlFormatError(RuntimeError):
    pass


class InvalidInputError(EmlFormatError):
    pass


class BuildError(EmlFormatError):
    pass


class MissingRecipientError(BuildError):
    pass


class UnsupportedCharsetError(EmlFormatError):
    def __init__(self, *, charset: str, message: str | None = None) -> None:
        super().__init__(message or f"Unsupported charset: {charset}")
        self.charset = charset
