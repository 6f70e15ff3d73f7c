import json
from datetime import UTC, datetime

import pytest

from flame.transfer.exceptions import InvalidFormatError
from flame.transfer.exporter import ExportService

NOW = datetime(2026, 3, 14, 9, 30, tzinfo=UTC)


@pytest.fixture
def populated(app_factory, category_factory, bookmark_factory):
    app_factory(name="Second", url="https://second.example", order_id=2)
    app_factory(name="First", url="https://first.example", order_id=1)
    dev = category_factory(name="Dev", order_id=1)
    category_factory(name="Empty", order_id=2)
    news = category_factory(name="News & Views", order_id=3)
    bookmark_factory(name="GitHub", url="https://github.com", category=dev)
    bookmark_factory(name="LWN", url="https://lwn.net/?a=1&b=2", category=news)
    bookmark_factory(name="<Loose>", url="https://loose.example")
    return {"dev": dev, "news": news}


def test_structured_export_document(export_service, populated):
    artifact = export_service.export("json", now=NOW)

    assert artifact.filename == "flame-backup-2026-03-14.json"
    assert artifact.media_type == "application/json"

    document = json.loads(artifact.content)
    assert document["version"] == "1.0"
    assert document["exportDate"] == "2026-03-14T09:30:00.000Z"
    assert [app["name"] for app in document["data"]["apps"]] == ["First", "Second"]
    assert [c["name"] for c in document["data"]["categories"]] == ["Dev", "Empty", "News & Views"]

    github = document["data"]["bookmarks"][0]
    assert github["categoryId"] == populated["dev"].id
    assert set(github) == {
        "id",
        "name",
        "url",
        "categoryId",
        "icon",
        "isPublic",
        "orderId",
        "createdAt",
        "updatedAt",
    }
    assert github["createdAt"].endswith("Z")


def test_structured_export_of_empty_store(export_service):
    document = json.loads(export_service.export("json", now=NOW).content)

    assert document["data"] == {"apps": [], "categories": [], "bookmarks": []}


def test_markup_export_groups_by_folder(export_service, populated):
    artifact = export_service.export("html", now=NOW)
    html = artifact.content.decode("utf-8")

    assert artifact.filename == "flame-bookmarks-2026-03-14.html"
    assert artifact.media_type == "text/html"
    assert html.startswith("<!DOCTYPE NETSCAPE-Bookmark-file-1>")

    apps_at = html.index("<H3>Flame Apps</H3>")
    dev_at = html.index("<H3>Dev</H3>")
    news_at = html.index("<H3>News &amp; Views</H3>")
    loose_at = html.index("<H3>Uncategorized</H3>")
    assert apps_at < dev_at < news_at < loose_at
    assert html.index(">First</A>") < html.index(">Second</A>") < dev_at


def test_markup_export_omits_empty_folders(export_service, populated):
    html = export_service.export("html", now=NOW).content.decode("utf-8")

    assert "<H3>Empty</H3>" not in html


def test_markup_export_escapes_names_and_urls(export_service, populated):
    html = export_service.export("html", now=NOW).content.decode("utf-8")

    assert 'HREF="https://lwn.net/?a=1&amp;b=2"' in html
    assert ">&lt;Loose&gt;</A>" in html


def test_markup_export_add_date_is_epoch_seconds(export_service, bookmark_factory):
    created = datetime(2024, 1, 1, 0, 0, 0)
    bookmark_factory(name="Dated", url="https://dated.example", created_at=created)

    html = export_service.export("html", now=NOW).content.decode("utf-8")

    assert 'ADD_DATE="1704067200"' in html


def test_markup_export_of_empty_store_has_no_folders(export_service):
    html = export_service.export("html", now=NOW).content.decode("utf-8")

    assert "<H3>" not in html
    assert html.rstrip().endswith("</DL><p>")


def test_export_rejects_unknown_format(export_service):
    with pytest.raises(InvalidFormatError):
        export_service.export("xml")


def test_product_name_drives_filenames_and_apps_folder(db, app_factory):
    app_factory()
    service = ExportService(db, product_name="my-dash")

    artifact = service.export("html", now=NOW)

    assert artifact.filename == "my-dash-bookmarks-2026-03-14.html"
    assert "<H3>My Dash Apps</H3>" in artifact.content.decode("utf-8")
