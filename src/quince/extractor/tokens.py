"""Turn structured documents into context-tagged token sets."""

from __future__ import annotations

import re
from collections.abc import Iterable

from ..types import Address, Document
from .domain import link_targets, normalize_address
from .html import analyse_html

RECIPIENT = "to"
SENDER = "from"
SUBJECT = "subject"
AGENT = "agent"
BODY = "body"
HOST = "host"
COLOR = "color"
LANGUAGE = "lang"

HTML_MARKER = "html:markup"
MAX_TOKEN_LENGTH = 40

SPLIT_RE = re.compile(r"[\s\x00-\x1f\x7f]+")
EDGE_PUNCTUATION = "\"'`.,;:!?()[]{}<>*|"


class TokenExtractor:
    """Extracts the deduplicated token set of a document.

    Tokens carry a ``context:`` prefix naming where they were observed.
    Structural values (addresses, hosts, colours, languages) are case-folded,
    free text keeps its case. Pure apart from the configured ignore list.
    """

    def __init__(self, ignored_tokens: Iterable[str] = ()) -> None:
        self._ignored = frozenset(str(token).casefold() for token in ignored_tokens)

    @property
    def ignored_tokens(self) -> frozenset[str]:
        return self._ignored

    def extract(self, document: Document) -> frozenset[str]:
        tokens: set[str] = set()
        for address in document.recipients:
            self._add_address(tokens, RECIPIENT, address)
        for address in document.senders:
            self._add_address(tokens, SENDER, address)
        self._add_words(tokens, SUBJECT, document.subject)
        self._add_words(tokens, AGENT, document.agent)

        for part in document.parts:
            if not part.is_text:
                continue
            if not part.is_html:
                self._add_words(tokens, BODY, part.text)
                continue
            analysis = analyse_html(part.text)
            if HTML_MARKER not in self._ignored:
                tokens.add(HTML_MARKER)
            for target in link_targets(analysis.link_urls):
                self._add(tokens, HOST, target)
            for color in analysis.colors:
                self._add(tokens, COLOR, color.casefold())
            for language in analysis.languages:
                self._add(tokens, LANGUAGE, language.casefold())
            self._add_words(tokens, BODY, analysis.text_content)
        return frozenset(tokens)

    def _add_address(self, tokens: set[str], context: str, address: Address) -> None:
        mailbox = normalize_address(address.address)
        if mailbox:
            self._add(tokens, context, mailbox)
        self._add_words(tokens, context, address.display_name)

    def _add_words(self, tokens: set[str], context: str, text: str | None) -> None:
        if not text:
            return
        for word in SPLIT_RE.split(text):
            self._add(tokens, context, word.strip(EDGE_PUNCTUATION))

    def _add(self, tokens: set[str], context: str, word: str) -> None:
        if not _is_usable(word):
            return
        token = f"{context}:{word}"
        if word.casefold() in self._ignored or token.casefold() in self._ignored:
            return
        tokens.add(token)


def _is_usable(word: str) -> bool:
    if len(word) <= 1 or len(word) > MAX_TOKEN_LENGTH:
        return False
    return any(char.isalnum() for char in word)


__all__ = ["HTML_MARKER", "MAX_TOKEN_LENGTH", "TokenExtractor"]
