from __future__ import annotations

import mailbox
from email.message import EmailMessage
from pathlib import Path

import pytest

SPAM_WORDS = ["cheap", "pills", "winner", "casino", "bonus", "offer", "unsubscribe"]
HAM_WORDS = ["project", "meeting", "agenda", "review", "deadline", "notes", "thanks"]


def build_message(
    *,
    sender: str,
    subject: str,
    body: str,
    html: str | None = None,
    mailer: str | None = None,
) -> EmailMessage:
    """Return a small email, multipart/alternative when ``html`` is given."""

    message = EmailMessage()
    message["From"] = sender
    message["To"] = "me@example.org"
    message["Subject"] = subject
    if mailer:
        message["X-Mailer"] = mailer
    message.set_content(body)
    if html is not None:
        message.add_alternative(html, subtype="html")
    return message


def spam_messages(count: int) -> list[EmailMessage]:
    messages = []
    for index in range(count):
        words = " ".join(SPAM_WORDS[(index + offset) % len(SPAM_WORDS)] for offset in range(4))
        messages.append(
            build_message(
                sender=f"Promotions <promo{index}@deals.example>",
                subject=f"Exclusive {SPAM_WORDS[index % len(SPAM_WORDS)]} inside",
                body=f"{words} claim{index} today",
                html=(
                    f'<html><body><font color="#ff0000">{words}</font> '
                    f'<a href="http://deals.example/claim{index}">claim now</a></body></html>'
                ),
                mailer="BulkSender 9",
            )
        )
    return messages


def ham_messages(count: int) -> list[EmailMessage]:
    messages = []
    for index in range(count):
        words = " ".join(HAM_WORDS[(index + offset) % len(HAM_WORDS)] for offset in range(4))
        messages.append(
            build_message(
                sender=f"Colleague {index} <dev{index}@work.example>",
                subject=f"Re: {HAM_WORDS[index % len(HAM_WORDS)]} follow-up",
                body=f"{words} for sprint{index}",
            )
        )
    return messages


def write_mbox(path: Path, messages: list[EmailMessage]) -> Path:
    box = mailbox.mbox(path, create=True)
    try:
        box.lock()
        for message in messages:
            box.add(message)
        box.flush()
        box.unlock()
    finally:
        box.close()
    return path


def write_maildir(path: Path, messages: list[EmailMessage]) -> Path:
    box = mailbox.Maildir(path, create=True)
    try:
        for message in messages:
            box.add(message)
    finally:
        box.close()
    return path


@pytest.fixture
def corpus(tmp_path: Path) -> dict[str, str]:
    """Labelled spam mbox and ham maildir, plus one message without text."""

    spam = spam_messages(15)
    attachment_only = EmailMessage()
    attachment_only["From"] = "scanner@deals.example"
    attachment_only["Subject"] = "scan"
    attachment_only.add_attachment(b"\x89PNG\r\n", maintype="image", subtype="png", filename="scan.png")
    spam.append(attachment_only)

    spam_path = write_mbox(tmp_path / "spam.mbox", spam)
    ham_path = write_maildir(tmp_path / "ham", ham_messages(15))
    return {str(spam_path): "SPAM", str(ham_path): "HAM"}


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Automatically mark tests in this package as integration."""

    package_root = Path(__file__).resolve().parent
    integration_mark = pytest.mark.integration
    for item in items:
        try:
            path = Path(item.fspath).resolve()
        except OSError:
            continue
        if package_root in path.parents:
            item.add_marker(integration_mark)
