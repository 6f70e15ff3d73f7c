"""Pytest configuration and shared fixtures.

Every test gets a freshly migrated SQLite file under ``tmp_path``.
"""

import logging

import pytest

from flame.db.database import Database
from flame.db.models import App, Bookmark, Category
from flame.transfer.exporter import ExportService
from flame.transfer.importer import ImportService

logger = logging.getLogger("peewee")
logger.setLevel(logging.WARNING)


@pytest.fixture
def db(tmp_path, monkeypatch):
    # Keep any config loaded during the test away from a real database.
    monkeypatch.setenv("DB_PATH", str(tmp_path / "flame.db"))

    database = Database(str(tmp_path / "flame.db"))
    database.migrate()

    yield database
    database.close()


@pytest.fixture
def import_service(db):
    return ImportService(db, pin_categories_by_default=True)


@pytest.fixture
def export_service(db):
    return ExportService(db)


@pytest.fixture
def category_factory(db):
    def create_category(name="Development", **kwargs):
        params = {"is_pinned": False, "is_public": True}
        params.update(kwargs)
        return Category.create(name=name, **params)

    return create_category


@pytest.fixture
def app_factory(db):
    def create_app(name="Grafana", url="https://grafana.local", **kwargs):
        return App.create(name=name, url=url, **kwargs)

    return create_app


@pytest.fixture
def bookmark_factory(db):
    def create_bookmark(name="GitHub", url="https://github.com", category=None, **kwargs):
        return Bookmark.create(name=name, url=url, category=category, **kwargs)

    return create_bookmark


@pytest.fixture
def backup_document():
    """A small export document whose category ids do not start at 1."""
    return {
        "version": "1.0",
        "exportDate": "2026-01-02T03:04:05Z",
        "data": {
            "apps": [
                {"id": 1, "name": "Grafana", "url": "https://grafana.local", "orderId": 1},
                {
                    "id": 2,
                    "name": "Jellyfin",
                    "url": "https://media.local",
                    "icon": "play",
                    "isPinned": True,
                    "orderId": 2,
                    "isPublic": False,
                    "description": "Movies",
                },
            ],
            "categories": [
                {"id": 10, "name": "Development", "isPinned": False, "orderId": 1},
                {"id": 11, "name": "News", "orderId": 2},
            ],
            "bookmarks": [
                {"id": 100, "name": "GitHub", "url": "https://github.com", "categoryId": 10},
                {"id": 101, "name": "PyPI", "url": "https://pypi.org", "categoryId": 10},
                {"id": 102, "name": "LWN", "url": "https://lwn.net", "categoryId": 11},
                {"id": 103, "name": "Loose", "url": "https://loose.example", "categoryId": None},
            ],
        },
    }
