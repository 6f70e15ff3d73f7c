"""Import orchestration: one transaction, per-record savepoints, one report."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import peewee

from flame.core.logging_utils import get_logger
from flame.db.database import Database
from flame.db.models import App, Bookmark, Category
from flame.transfer.exceptions import (
    MissingDataError,
    RecordError,
    TransactionFailureError,
    TransferError,
)
from flame.transfer.parsers import MarkupFolder, parse_markup, parse_structured
from flame.transfer.records import (
    AppRecord,
    BookmarkRecord,
    CategoryRecord,
    EntityKind,
    ImportOptions,
    ImportResult,
    TransferFormat,
    display_name,
)
from flame.transfer.resolution import DuplicateResolver, ReferenceReconciler

logger = get_logger(__name__)

# Failures that belong to a single candidate; anything else aborts the import.
RECORD_FAILURES: tuple[type[BaseException], ...] = (
    RecordError,
    peewee.IntegrityError,
    peewee.DataError,
    peewee.InterfaceError,
    ValueError,
    TypeError,
    OverflowError,
)


class _ImportRun:
    """State for a single import call."""

    def __init__(
        self,
        db: Database,
        options: ImportOptions,
        pin_by_default: bool,
        resolver: DuplicateResolver,
    ) -> None:
        self.db = db
        self.options = options
        self.pin_by_default = pin_by_default
        self.resolver = resolver
        self.reconciler = ReferenceReconciler(pin_by_default)
        self.result = ImportResult()

    def clear_existing(self) -> None:
        # children before parents
        deleted = {
            "bookmarks": Bookmark.delete().execute(),
            "apps": App.delete().execute(),
            "categories": Category.delete().execute(),
        }
        logger.info("import_cleared_existing", extra={"deleted": deleted})

    def _guarded(self, kind: EntityKind, payload: Any, step: Callable[[], None]) -> None:
        try:
            step()
        except RECORD_FAILURES as exc:
            line = self.result.add_error(kind, display_name(payload), exc)
            logger.warning(
                "import_record_failed",
                extra={"kind": kind.value, "error": line, "error_type": type(exc).__name__},
            )

    # ---- structured documents ----
    def run_structured(self, raw: Any) -> None:
        payload = parse_structured(raw)
        # categories first so bookmarks can be pointed at them
        sections: tuple[tuple[EntityKind, list[Any], Callable[[Any], None]], ...] = (
            (EntityKind.CATEGORY, payload.categories, self._category),
            (EntityKind.APP, payload.apps, self._app),
            (EntityKind.BOOKMARK, payload.bookmarks, self._bookmark),
        )
        for kind, items, handler in sections:
            if not self.options.enabled(kind):
                continue
            for item in items:
                self._guarded(kind, item, lambda item=item, handler=handler: handler(item))

    def _category(self, payload: Any) -> None:
        record = CategoryRecord.from_payload(payload, pin_by_default=self.pin_by_default)
        existing = self.resolver.find_existing(
            EntityKind.CATEGORY, record, self.options.skip_duplicates
        )
        if existing is not None:
            self.reconciler.remember(record.id, existing)
            self.result.mark_skipped(EntityKind.CATEGORY)
            return
        record.validate()
        with self.db.atomic():
            category = Category.create(**record.to_fields())
        self.reconciler.remember(record.id, category)
        self.result.mark_imported(EntityKind.CATEGORY)

    def _app(self, payload: Any) -> None:
        record = AppRecord.from_payload(payload)
        if self.resolver.find_existing(EntityKind.APP, record, self.options.skip_duplicates):
            self.result.mark_skipped(EntityKind.APP)
            return
        record.validate()
        with self.db.atomic():
            App.create(**record.to_fields())
        self.result.mark_imported(EntityKind.APP)

    def _bookmark(self, payload: Any) -> None:
        record = BookmarkRecord.from_payload(payload)
        if self.resolver.find_existing(EntityKind.BOOKMARK, record, self.options.skip_duplicates):
            self.result.mark_skipped(EntityKind.BOOKMARK)
            return
        record.validate()
        self.reconciler.resolve(record)
        with self.db.atomic():
            Bookmark.create(**record.to_fields())
        self.result.mark_imported(EntityKind.BOOKMARK)

    # ---- bookmark files ----
    def run_markup(self, raw: Any) -> None:
        folders = parse_markup(raw)
        active_category: int | None = None
        for folder in folders:
            if not self.options.import_categories:
                active_category = None
            elif folder.title:
                active_category = self._folder_category(folder)
            if not self.options.import_bookmarks:
                continue
            for link in folder.links:
                payload = {"name": link.name, "url": link.url, "categoryId": active_category}
                self._guarded(
                    EntityKind.BOOKMARK,
                    payload,
                    lambda payload=payload: self._bookmark(payload),
                )

    def _folder_category(self, folder: MarkupFolder) -> int | None:
        record = CategoryRecord(name=folder.title, is_pinned=self.pin_by_default)
        existing = self.resolver.find_existing(
            EntityKind.CATEGORY, record, self.options.skip_duplicates
        )
        if existing is not None:
            self.result.mark_skipped(EntityKind.CATEGORY)
            return existing.id
        try:
            with self.db.atomic():
                category = Category.create(**record.to_fields())
        except RECORD_FAILURES as exc:
            self.result.add_error(EntityKind.CATEGORY, str(folder.title), exc)
            return None
        self.result.mark_imported(EntityKind.CATEGORY)
        return category.id


class ImportService:
    """Imports backup documents and bookmark files into the dashboard store."""

    def __init__(self, db: Database, *, pin_categories_by_default: bool = True) -> None:
        self._db = db
        self._pin_categories_by_default = pin_categories_by_default
        self._resolver = DuplicateResolver()

    def import_data(
        self,
        fmt: Any,
        raw_data: Any,
        options: ImportOptions | None = None,
        *,
        pin_categories_by_default: bool | None = None,
    ) -> ImportResult:
        """Import ``raw_data`` and return the per-kind report.

        Args:
            fmt: ``"json"`` or ``"html"`` (or a ``TransferFormat``)
            raw_data: Document text; JSON imports also accept a decoded object
            options: Import switches; defaults skip duplicates and import everything
            pin_categories_by_default: Overrides the configured pin state for new categories

        Raises:
            InvalidFormatError: Unknown format; nothing was touched.
            MissingDataError: Empty payload; nothing was touched.
            MalformedInputError: Payload could not be parsed; rolled back.
            TransactionFailureError: Storage failed outside a single record; rolled back.
        """
        transfer_format = TransferFormat.parse(fmt)
        if raw_data is None or (isinstance(raw_data, (str, bytes)) and not raw_data.strip()):
            raise MissingDataError()

        options = options or ImportOptions()
        pin_by_default = (
            self._pin_categories_by_default
            if pin_categories_by_default is None
            else pin_categories_by_default
        )
        run = _ImportRun(self._db, options, pin_by_default, self._resolver)
        logger.info(
            "import_started",
            extra={"format": transfer_format.value, "options": options.model_dump()},
        )

        try:
            with self._db.session(), self._db.atomic():
                if options.clear_existing:
                    run.clear_existing()
                if transfer_format is TransferFormat.STRUCTURED:
                    run.run_structured(raw_data)
                else:
                    run.run_markup(raw_data)
        except TransferError as exc:
            logger.warning(
                "import_rolled_back",
                extra={"format": transfer_format.value, "error": exc.message},
            )
            raise
        except peewee.PeeweeException as exc:
            logger.exception("import_rolled_back", extra={"format": transfer_format.value})
            raise TransactionFailureError(exc) from exc

        logger.info(
            "import_completed",
            extra={
                "format": transfer_format.value,
                "imported": run.result.imported.model_dump(),
                "skipped": run.result.skipped.model_dump(),
                "error_count": len(run.result.errors),
            },
        )
        return run.result
