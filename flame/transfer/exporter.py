"""Export of the full dashboard dataset as a backup document or bookmark file."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from html import escape
from typing import Any

from flame.core.logging_utils import get_logger
from flame.core.time_utils import epoch_seconds, isoformat_z, utc_now
from flame.db.database import Database
from flame.db.models import App, Bookmark, Category
from flame.transfer.records import AppRecord, BookmarkRecord, CategoryRecord, TransferFormat

logger = get_logger(__name__)

DOCUMENT_VERSION = "1.0"
UNCATEGORIZED_FOLDER = "Uncategorized"

_MARKUP_HEADER = """<!DOCTYPE NETSCAPE-Bookmark-file-1>
<!-- This is an automatically generated file.
     It will be read and overwritten.
     DO NOT EDIT! -->
<META HTTP-EQUIV="Content-Type" CONTENT="text/html; charset=UTF-8">
<TITLE>Bookmarks</TITLE>
<H1>Bookmarks</H1>
<DL><p>"""


@dataclass(frozen=True)
class ExportArtifact:
    content: bytes
    filename: str
    media_type: str


@dataclass
class Snapshot:
    apps: list[AppRecord]
    categories: list[CategoryRecord]
    bookmarks: list[BookmarkRecord]


class ExportService:
    """Reads the store in display order and renders it in one of the transfer formats."""

    def __init__(self, db: Database, *, product_name: str = "flame") -> None:
        self._db = db
        self._product_name = product_name

    @property
    def apps_folder_name(self) -> str:
        return f"{self._product_name.replace('-', ' ').replace('_', ' ').title()} Apps"

    def snapshot(self) -> Snapshot:
        """Load every app, category and bookmark ordered by ``orderId``, then insertion."""
        with self._db.session():
            apps = App.select().order_by(App.order_id.asc(), App.id.asc())
            categories = Category.select().order_by(Category.order_id.asc(), Category.id.asc())
            bookmarks = Bookmark.select().order_by(Bookmark.order_id.asc(), Bookmark.id.asc())
            return Snapshot(
                apps=[AppRecord.from_model(app) for app in apps],
                categories=[CategoryRecord.from_model(category) for category in categories],
                bookmarks=[BookmarkRecord.from_model(bookmark) for bookmark in bookmarks],
            )

    def export(self, fmt: Any, *, now: datetime | None = None) -> ExportArtifact:
        """Render the store as ``json`` or ``html``.

        Raises:
            InvalidFormatError: ``fmt`` is not a supported format.
        """
        transfer_format = TransferFormat.parse(fmt)
        now = now or utc_now()
        snapshot = self.snapshot()
        date_part = now.date().isoformat()

        if transfer_format is TransferFormat.STRUCTURED:
            artifact = ExportArtifact(
                content=self.render_structured(snapshot, now).encode("utf-8"),
                filename=f"{self._product_name}-backup-{date_part}.json",
                media_type="application/json",
            )
        else:
            artifact = ExportArtifact(
                content=self.render_markup(snapshot).encode("utf-8"),
                filename=f"{self._product_name}-bookmarks-{date_part}.html",
                media_type="text/html",
            )

        logger.info(
            "export_completed",
            extra={
                "format": transfer_format.value,
                "apps": len(snapshot.apps),
                "categories": len(snapshot.categories),
                "bookmarks": len(snapshot.bookmarks),
                "bytes": len(artifact.content),
            },
        )
        return artifact

    @staticmethod
    def render_structured(snapshot: Snapshot, now: datetime) -> str:
        document = {
            "version": DOCUMENT_VERSION,
            "exportDate": isoformat_z(now),
            "data": {
                "apps": [app.to_document() for app in snapshot.apps],
                "categories": [category.to_document() for category in snapshot.categories],
                "bookmarks": [bookmark.to_document() for bookmark in snapshot.bookmarks],
            },
        }
        return json.dumps(document, ensure_ascii=False, indent=2)

    def render_markup(self, snapshot: Snapshot) -> str:
        parts = [_MARKUP_HEADER]
        parts.extend(self._folder(self.apps_folder_name, snapshot.apps))

        known_ids = set()
        for category in snapshot.categories:
            known_ids.add(category.id)
            members = [b for b in snapshot.bookmarks if b.category_id == category.id]
            parts.extend(self._folder(str(category.name), members))

        orphans = [b for b in snapshot.bookmarks if b.category_id not in known_ids]
        parts.extend(self._folder(UNCATEGORIZED_FOLDER, orphans))

        parts.append("\n</DL><p>\n")
        return "".join(parts)

    @staticmethod
    def _folder(title: str, entries: list[AppRecord] | list[BookmarkRecord]) -> list[str]:
        if not entries:
            return []
        lines = [f"\n    <DT><H3>{escape(title, quote=False)}</H3>\n    <DL><p>"]
        for entry in entries:
            lines.append(
                f'\n        <DT><A HREF="{escape(str(entry.url))}" '
                f'ADD_DATE="{epoch_seconds(entry.created_at)}">'
                f"{escape(str(entry.name), quote=False)}</A>"
            )
        lines.append("\n    </DL><p>")
        return lines
