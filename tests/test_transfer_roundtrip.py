"""Exports from one store must import cleanly into another."""

from flame.db.database import Database
from flame.db.models import App, Bookmark, Category
from flame.transfer.exporter import ExportService
from flame.transfer.importer import ImportService
from flame.transfer.records import ImportOptions


def _seed(app_factory, category_factory, bookmark_factory):
    app_factory(name="Grafana", url="https://grafana.local", icon="chart", is_pinned=True)
    tools = category_factory(name="Tools & Things", is_pinned=True)
    reading = category_factory(name="Reading")
    bookmark_factory(name="GitHub", url="https://github.com", category=tools)
    bookmark_factory(name="LWN", url="https://lwn.net/?a=1&b=2", category=reading)
    bookmark_factory(name="Loose", url="https://loose.example")


def _snapshot():
    return {
        "apps": sorted((a.name, a.url, a.icon, a.is_pinned) for a in App.select()),
        "categories": sorted(c.name for c in Category.select()),
        "bookmarks": sorted(
            (b.name, b.url, b.category.name if b.category else None) for b in Bookmark.select()
        ),
    }


def _import_into_fresh_store(tmp_path, fmt, content):
    target = Database(str(tmp_path / "target.db"))
    target.migrate()
    service = ImportService(target)
    result = service.import_data(fmt, content, ImportOptions(skip_duplicates=False))
    return target, result


def test_structured_roundtrip(
    tmp_path, db, export_service, app_factory, category_factory, bookmark_factory
):
    _seed(app_factory, category_factory, bookmark_factory)
    before = _snapshot()
    artifact = export_service.export("json")

    target, result = _import_into_fresh_store(tmp_path, "json", artifact.content)
    try:
        assert result.errors == []
        assert result.imported.model_dump() == {"apps": 1, "categories": 2, "bookmarks": 3}
        assert _snapshot() == before
    finally:
        target.close()


def test_markup_roundtrip_keeps_folders(
    tmp_path, db, export_service, app_factory, category_factory, bookmark_factory
):
    _seed(app_factory, category_factory, bookmark_factory)
    artifact = export_service.export("html")

    target, result = _import_into_fresh_store(tmp_path, "html", artifact.content)
    try:
        assert result.errors == []
        # Apps come back as bookmarks in their own folder.
        assert App.select().count() == 0
        assert sorted(c.name for c in Category.select()) == [
            "Flame Apps",
            "Reading",
            "Tools & Things",
            "Uncategorized",
        ]
        assert sorted(
            (b.name, b.url, b.category.name) for b in Bookmark.select()
        ) == [
            ("GitHub", "https://github.com", "Tools & Things"),
            ("Grafana", "https://grafana.local", "Flame Apps"),
            ("LWN", "https://lwn.net/?a=1&b=2", "Reading"),
            ("Loose", "https://loose.example", "Uncategorized"),
        ]
    finally:
        target.close()
