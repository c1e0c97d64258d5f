from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from emlformat.mime.types import EmailAddress, FriendlyMessage

AddressInput = str | EmailAddress | list[str | EmailAddress]


class AttachmentDraft(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    data: bytes | str = b""
    id: str | None = None
    name: str | None = None
    filename: str | None = None
    content_type: str | None = Field(default=None, alias="contentType")
    inline: bool = False


class MessageDraft(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    headers: dict[str, str | list[str]] = Field(default_factory=dict)
    subject: str | None = None
    from_: AddressInput | None = Field(default=None, alias="from")
    to: AddressInput | None = None
    date: datetime | None = None
    text: str | None = None
    html: str | None = None
    attachments: list[AttachmentDraft] = Field(default_factory=list)

    @classmethod
    def from_friendly(cls, message: FriendlyMessage) -> MessageDraft:
        headers: dict[str, str | list[str]] = {}
        for name, values in message.headers.items_all():
            headers[name] = values if len(values) > 1 else values[0]
        return cls(
            headers=headers,
            subject=message.subject,
            from_=message.from_,
            to=message.to,
            text=message.text,
            html=message.html,
            attachments=[
                AttachmentDraft(
                    data=a.data,
                    id=a.id,
                    name=a.name,
                    content_type=a.content_type,
                    inline=a.inline,
                )
                for a in message.attachments
            ],
        )
