"""Readers that turn raw import payloads into candidate records.

The structured reader trusts the backup schema and leaves per-record checks
to persistence. The markup reader never assumes well-formed HTML: it splits
the document on folder headings and pulls links out with regular expressions,
skipping anything it cannot make sense of.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from html import unescape
from typing import Any

from flame.transfer.exceptions import MalformedInputError

_FOLDER_START_RE = re.compile(r"<h3\b[^>]*>", re.IGNORECASE)
_FOLDER_TITLE_RE = re.compile(r"^([^<]*)</h3\s*>", re.IGNORECASE)
# Link text may not run into another opening <a>, so an unclosed link is skipped on its own.
_LINK_RE = re.compile(r"<a\b([^>]*)>((?:(?!<a\b).)*?)</a\s*>", re.IGNORECASE | re.DOTALL)
_HREF_RE = re.compile(
    r"""\bhref\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'>]+))""",
    re.IGNORECASE,
)
_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")

STRUCTURED_SECTIONS = ("apps", "categories", "bookmarks")


@dataclass
class StructuredPayload:
    apps: list[Any] = field(default_factory=list)
    categories: list[Any] = field(default_factory=list)
    bookmarks: list[Any] = field(default_factory=list)


@dataclass(frozen=True)
class MarkupLink:
    name: str
    url: str


@dataclass
class MarkupFolder:
    """One segment of a bookmark document; ``title`` is None before the first folder."""

    title: str | None
    links: list[MarkupLink] = field(default_factory=list)


def parse_structured(raw: Any) -> StructuredPayload:
    """Read a backup document or a bare ``{apps, categories, bookmarks}`` object.

    Raises:
        MalformedInputError: The payload is not JSON, not an object, or a
            section is not a list.
    """
    document = raw
    if isinstance(raw, (bytes, bytearray)):
        document = raw.decode("utf-8-sig", errors="replace")
    if isinstance(document, str):
        try:
            document = json.loads(document)
        except json.JSONDecodeError as exc:
            raise MalformedInputError(f"Invalid JSON format: {exc.msg}") from exc
        except RecursionError as exc:
            raise MalformedInputError("Invalid JSON format: document is nested too deeply") from exc

    if not isinstance(document, Mapping):
        raise MalformedInputError(
            f"Invalid JSON format: expected an object, got {type(document).__name__}"
        )

    body = document.get("data")
    if not isinstance(body, Mapping):
        body = document

    sections: dict[str, list[Any]] = {}
    for name in STRUCTURED_SECTIONS:
        value = body.get(name)
        if value is None:
            sections[name] = []
        elif isinstance(value, list):
            sections[name] = value
        else:
            raise MalformedInputError(
                f'Invalid JSON format: "{name}" must be a list, got {type(value).__name__}'
            )
    return StructuredPayload(**sections)


def _clean_text(fragment: str) -> str:
    text = unescape(_TAG_RE.sub("", fragment))
    return _WHITESPACE_RE.sub(" ", text).strip()


def extract_links(fragment: str) -> list[MarkupLink]:
    """Pull every usable ``<a href>`` out of a fragment, in document order."""
    links: list[MarkupLink] = []
    for match in _LINK_RE.finditer(fragment):
        href_match = _HREF_RE.search(match.group(1))
        if href_match is None:
            continue
        raw_href = next(group for group in href_match.groups() if group is not None)
        url = unescape(raw_href).strip()
        name = _clean_text(match.group(2))
        if not name or not url:
            continue
        links.append(MarkupLink(name=name, url=url))
    return links


def parse_markup(raw: Any) -> list[MarkupFolder]:
    """Split a bookmark document into folder segments.

    Segment 0 holds links that appear before any folder heading. Every other
    segment starts at an ``<H3>`` and runs until the next one; its title is
    the heading text, or None when the heading is never closed.
    """
    document = raw
    if isinstance(raw, (bytes, bytearray)):
        document = raw.decode("utf-8-sig", errors="replace")
    if not isinstance(document, str):
        raise MalformedInputError(
            f"HTML parsing failed: expected text, got {type(document).__name__}"
        )

    segments = _FOLDER_START_RE.split(document)
    folders = [MarkupFolder(title=None, links=extract_links(segments[0]))]

    for segment in segments[1:]:
        title_match = _FOLDER_TITLE_RE.match(segment)
        title = None
        body = segment
        if title_match is not None:
            title = _clean_text(title_match.group(1)) or None
            body = segment[title_match.end() :]
        folders.append(MarkupFolder(title=title, links=extract_links(body)))

    return folders
