"""Duplicate detection and category reference repair for imported records."""

from __future__ import annotations

from typing import Any

from flame.core.logging_utils import get_logger
from flame.db.models import App, Bookmark, Category
from flame.transfer.records import (
    FALLBACK_CATEGORY_NAME,
    SQLITE_INT_MAX,
    SQLITE_INT_MIN,
    AppRecord,
    BookmarkRecord,
    CategoryRecord,
    EntityKind,
)

logger = get_logger(__name__)

AnyRecord = AppRecord | CategoryRecord | BookmarkRecord


class DuplicateResolver:
    """Finds the persisted row a candidate duplicates, if any.

    Only the store is consulted. Rows written earlier in the same import are
    visible to it, so the second of two identical candidates is skipped.
    """

    def find_existing(
        self, kind: EntityKind, record: AnyRecord, skip_duplicates: bool
    ) -> App | Category | Bookmark | None:
        if not skip_duplicates:
            return None
        if kind is EntityKind.CATEGORY:
            return self.find_category(record.name)
        if kind is EntityKind.APP:
            return App.get_or_none((App.name == record.name) & (App.url == record.url))
        return Bookmark.get_or_none((Bookmark.name == record.name) & (Bookmark.url == record.url))

    @staticmethod
    def find_category(name: Any) -> Category | None:
        return Category.select().where(Category.name == name).order_by(Category.id).first()


class ReferenceReconciler:
    """Points bookmarks at categories that exist in the target store.

    Source category ids are translated through the ids recorded while the same
    payload's categories were imported; unknown ids are checked against the
    store directly. A reference that still dangles is redirected to a single
    "Imported" category created on first use and reused for the rest of the
    call. The fallback is not reported as an imported category.
    """

    def __init__(self, pin_by_default: bool) -> None:
        self._pin_by_default = pin_by_default
        self._id_map: dict[str, int] = {}
        self._fallback: Category | None = None

    @staticmethod
    def _key(source_id: Any) -> str:
        return str(source_id)

    def remember(self, source_id: Any, category: Category) -> None:
        """Record which target category a payload category ended up as."""
        if source_id is None:
            return
        self._id_map[self._key(source_id)] = category.id

    @property
    def fallback_category(self) -> Category | None:
        return self._fallback

    def resolve(self, record: BookmarkRecord) -> BookmarkRecord:
        if record.category_id is None:
            return record

        mapped = self._id_map.get(self._key(record.category_id))
        if mapped is not None:
            record.category_id = mapped
            return record

        if self._exists(record.category_id):
            return record

        fallback = self._get_fallback()
        logger.info(
            "import_category_reference_repaired",
            extra={
                "bookmark": str(record.name),
                "missing_category_id": str(record.category_id),
                "fallback_category_id": fallback.id,
            },
        )
        record.category_id = fallback.id
        return record

    @staticmethod
    def _exists(category_id: Any) -> bool:
        try:
            key = int(category_id)
        except (TypeError, ValueError, OverflowError):
            return False
        if not SQLITE_INT_MIN <= key <= SQLITE_INT_MAX:
            return False
        return Category.select().where(Category.id == key).exists()

    def _get_fallback(self) -> Category:
        if self._fallback is None:
            self._fallback = Category.create(
                name=FALLBACK_CATEGORY_NAME,
                is_pinned=self._pin_by_default,
                is_public=True,
            )
        return self._fallback
