"""Peewee ORM models for the dashboard database."""

from __future__ import annotations

import datetime as _dt
from typing import Any

import peewee

from flame.core.time_utils import UTC

# A proxy that will be initialised with the concrete database instance at runtime.
database_proxy: peewee.DatabaseProxy = peewee.DatabaseProxy()


def _utcnow() -> _dt.datetime:
    """Naive UTC timestamp; SQLite round-trips naive values without losing the type."""
    return _dt.datetime.now(UTC).replace(tzinfo=None)


class BaseModel(peewee.Model):
    """Base Peewee model bound to the lazily initialised database proxy."""

    created_at = peewee.DateTimeField(default=_utcnow)
    updated_at = peewee.DateTimeField(default=_utcnow)

    def save(self, *args: Any, **kwargs: Any) -> int:
        self.updated_at = _utcnow()
        return super().save(*args, **kwargs)

    class Meta:
        database = database_proxy
        legacy_table_names = False


class App(BaseModel):
    id = peewee.AutoField()
    name = peewee.TextField()
    url = peewee.TextField()
    icon = peewee.TextField(default="cancel")  # "cancel" means no icon
    is_pinned = peewee.BooleanField(default=False)
    order_id = peewee.IntegerField(null=True)
    is_public = peewee.BooleanField(default=True)
    description = peewee.TextField(default="")

    class Meta:
        table_name = "apps"
        indexes = ((("name", "url"), False),)


class Category(BaseModel):
    id = peewee.AutoField()
    name = peewee.TextField()
    is_pinned = peewee.BooleanField(default=False)
    order_id = peewee.IntegerField(null=True)
    is_public = peewee.BooleanField(default=True)

    class Meta:
        table_name = "categories"
        indexes = ((("name",), False),)


class Bookmark(BaseModel):
    id = peewee.AutoField()
    name = peewee.TextField()
    url = peewee.TextField()
    category = peewee.ForeignKeyField(
        Category,
        backref="bookmarks",
        null=True,
        on_delete="SET NULL",
        column_name="category_id",
    )
    icon = peewee.TextField(default="")
    is_public = peewee.BooleanField(default=True)
    order_id = peewee.IntegerField(null=True)

    class Meta:
        table_name = "bookmarks"
        indexes = ((("name", "url"), False),)


ALL_MODELS: tuple[type[BaseModel], ...] = (Category, App, Bookmark)
