"""Read documents from mailboxes, maildirs and single message files."""

from __future__ import annotations

import logging
import mailbox
from collections.abc import Iterable, Iterator, Sequence
from email import policy
from email.message import Message
from email.parser import BytesParser
from email.utils import getaddresses
from pathlib import Path
from typing import BinaryIO

from .types import Address, BodyPart, Document

LOGGER = logging.getLogger(__name__)

MAILDIR_SUBDIRS = ("cur", "new")
MBOX_MARKER = b"From "


class ResourceError(RuntimeError):
    """Raised when a document source cannot be opened or read."""


def read_documents(source: str | Path) -> list[Document]:
    """Load every document held by a mailbox file, maildir or message file."""

    path = Path(source).expanduser()
    try:
        if path.is_dir():
            messages = list(_iter_directory(path))
        elif path.is_file():
            messages = list(_iter_file(path))
        else:
            raise ResourceError(f"Can't open mailbox '{path}': no such file or directory")
    except (OSError, mailbox.Error) as exc:
        raise ResourceError(f"Can't open mailbox '{path}': {exc}") from exc

    LOGGER.debug("%d messages in mailbox %s", len(messages), path)
    return [document_from_message(message) for message in messages]


def document_from_message(message: Message) -> Document:
    """Convert a parsed message into the structured document view."""

    recipients = _addresses(message.get_all("To", []) + message.get_all("Cc", []))
    senders = _addresses(message.get_all("From", []))
    subject = _header_text(message.get("Subject"))
    agent = _header_text(message.get("X-Mailer") or message.get("User-Agent"))
    parts = tuple(_body_parts(message))
    return Document(
        senders=senders,
        recipients=recipients,
        subject=subject,
        agent=agent,
        parts=parts,
    )


def parse_message(data: bytes | str) -> Message:
    if isinstance(data, str):
        data = data.encode("utf-8", errors="replace")
    return BytesParser(policy=policy.default).parsebytes(data)


def _iter_directory(path: Path) -> Iterator[Message]:
    if all((path / subdir).is_dir() for subdir in MAILDIR_SUBDIRS):
        box = mailbox.Maildir(path, factory=_parse_handle, create=False)
        keys = sorted(box.keys())
        for key in keys:
            yield box[key]
        return
    for candidate in sorted(path.iterdir()):
        if candidate.is_file() and not candidate.name.startswith("."):
            yield from _iter_file(candidate)


def _iter_file(path: Path) -> Iterator[Message]:
    with path.open("rb") as handle:
        head = handle.read(len(MBOX_MARKER))
    if head == MBOX_MARKER:
        box = mailbox.mbox(path, factory=_parse_handle, create=False)
        try:
            for key in box.keys():
                yield box[key]
        finally:
            box.close()
        return
    with path.open("rb") as handle:
        yield _parse_handle(handle)


def _parse_handle(handle: BinaryIO) -> Message:
    return BytesParser(policy=policy.default).parse(handle)


def _addresses(values: Sequence[str]) -> tuple[Address, ...]:
    addresses: list[Address] = []
    for display_name, address in getaddresses([str(value) for value in values]):
        if not address and not display_name:
            continue
        addresses.append(Address(address=address, display_name=display_name))
    return tuple(addresses)


def _header_text(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _body_parts(message: Message) -> Iterable[BodyPart]:
    for part in message.walk():
        if part.is_multipart():
            continue
        media_type = part.get_content_type().lower()
        if not media_type.startswith("text/"):
            yield BodyPart(media_type=media_type)
            continue
        if (part.get_content_disposition() or "").lower() == "attachment":
            continue
        payload = part.get_payload(decode=True)
        if not isinstance(payload, (bytes, bytearray)):
            continue
        text = _decode_bytes(bytes(payload), part.get_content_charset())
        yield BodyPart(media_type=media_type, text=text)


def _decode_bytes(data: bytes, charset: str | None) -> str:
    candidates: list[str] = [charset] if charset else []
    candidates += ["utf-8", "latin-1"]
    for encoding in candidates:
        try:
            return data.decode(encoding, errors="replace")
        except LookupError:
            continue
    return data.decode("utf-8", errors="ignore")


__all__ = ["ResourceError", "document_from_message", "parse_message", "read_documents"]
