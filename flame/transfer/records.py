"""Canonical records shared by the import and export paths."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from flame.core.time_utils import isoformat_z
from flame.db.models import App, Bookmark, Category
from flame.transfer.exceptions import InvalidFormatError, RecordError

NO_ICON = "cancel"
FALLBACK_CATEGORY_NAME = "Imported"

# SQLite INTEGER is a signed 64-bit value.
SQLITE_INT_MIN = -(2**63)
SQLITE_INT_MAX = 2**63 - 1


class TransferFormat(str, Enum):
    """Supported document formats."""

    STRUCTURED = "json"  # full-fidelity backup document
    MARKUP = "html"  # Netscape bookmark file

    @classmethod
    def parse(cls, value: Any) -> TransferFormat:
        if isinstance(value, cls):
            return value
        cleaned = str(value or "").strip().lower()
        for member in cls:
            if member.value == cleaned:
                return member
        raise InvalidFormatError(value, tuple(member.value for member in cls))


class EntityKind(str, Enum):
    APP = "apps"
    CATEGORY = "categories"
    BOOKMARK = "bookmarks"

    @property
    def label(self) -> str:
        return _KIND_LABELS[self]


_KIND_LABELS = {
    EntityKind.APP: "App",
    EntityKind.CATEGORY: "Category",
    EntityKind.BOOKMARK: "Bookmark",
}


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "on"}:
        return True
    if text in {"0", "false", "no", "off", ""}:
        return False
    raise RecordError(f"invalid boolean value {value!r}")


def _as_order(value: Any) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise RecordError(f"invalid orderId {value!r}")
    try:
        order = int(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise RecordError(f"invalid orderId {value!r}") from exc
    if not SQLITE_INT_MIN <= order <= SQLITE_INT_MAX:
        raise RecordError(f"orderId {value!r} is out of range")
    return order


def _require_text(value: Any, field_name: str) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise RecordError(f"{field_name} is required")


def _require_mapping(payload: Any) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise RecordError(f"expected an object, got {type(payload).__name__}")
    return payload


def display_name(payload: Any) -> str:
    """Name used to identify a candidate in the error report."""
    if isinstance(payload, Mapping):
        return str(payload.get("name"))
    return str(payload)


@dataclass
class AppRecord:
    name: Any
    url: Any
    icon: str = NO_ICON
    is_pinned: bool = False
    order_id: int | None = None
    is_public: bool = True
    description: str = ""
    id: Any = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> AppRecord:
        data = _require_mapping(payload)
        return cls(
            id=data.get("id"),
            name=data.get("name"),
            url=data.get("url"),
            icon=data.get("icon") or NO_ICON,
            is_pinned=_as_bool(data.get("isPinned"), False),
            order_id=_as_order(data.get("orderId")),
            is_public=_as_bool(data.get("isPublic"), True),
            description=data.get("description") or "",
        )

    @classmethod
    def from_model(cls, app: App) -> AppRecord:
        return cls(
            id=app.id,
            name=app.name,
            url=app.url,
            icon=app.icon,
            is_pinned=app.is_pinned,
            order_id=app.order_id,
            is_public=app.is_public,
            description=app.description,
            created_at=app.created_at,
            updated_at=app.updated_at,
        )

    def validate(self) -> None:
        _require_text(self.name, "name")
        _require_text(self.url, "url")

    def to_fields(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "url": self.url,
            "icon": self.icon,
            "is_pinned": self.is_pinned,
            "order_id": self.order_id,
            "is_public": self.is_public,
            "description": self.description,
        }

    def to_document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "icon": self.icon,
            "isPinned": self.is_pinned,
            "orderId": self.order_id,
            "isPublic": self.is_public,
            "description": self.description,
            "createdAt": isoformat_z(self.created_at),
            "updatedAt": isoformat_z(self.updated_at),
        }


@dataclass
class CategoryRecord:
    name: Any
    is_pinned: bool = False
    order_id: int | None = None
    is_public: bool = True
    id: Any = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_payload(cls, payload: Any, *, pin_by_default: bool) -> CategoryRecord:
        data = _require_mapping(payload)
        return cls(
            id=data.get("id"),
            name=data.get("name"),
            is_pinned=_as_bool(data.get("isPinned"), pin_by_default),
            order_id=_as_order(data.get("orderId")),
            is_public=_as_bool(data.get("isPublic"), True),
        )

    @classmethod
    def from_model(cls, category: Category) -> CategoryRecord:
        return cls(
            id=category.id,
            name=category.name,
            is_pinned=category.is_pinned,
            order_id=category.order_id,
            is_public=category.is_public,
            created_at=category.created_at,
            updated_at=category.updated_at,
        )

    def validate(self) -> None:
        _require_text(self.name, "name")

    def to_fields(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "is_pinned": self.is_pinned,
            "order_id": self.order_id,
            "is_public": self.is_public,
        }

    def to_document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "isPinned": self.is_pinned,
            "orderId": self.order_id,
            "isPublic": self.is_public,
            "createdAt": isoformat_z(self.created_at),
            "updatedAt": isoformat_z(self.updated_at),
        }


@dataclass
class BookmarkRecord:
    name: Any
    url: Any
    category_id: Any = None
    icon: str = ""
    is_public: bool = True
    order_id: int | None = None
    id: Any = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> BookmarkRecord:
        data = _require_mapping(payload)
        category_id = data.get("categoryId")
        return cls(
            id=data.get("id"),
            name=data.get("name"),
            url=data.get("url"),
            # 0 and "" never name a real row
            category_id=category_id if category_id not in (None, "", 0) else None,
            icon=data.get("icon") or "",
            is_public=_as_bool(data.get("isPublic"), True),
            order_id=_as_order(data.get("orderId")),
        )

    @classmethod
    def from_model(cls, bookmark: Bookmark) -> BookmarkRecord:
        return cls(
            id=bookmark.id,
            name=bookmark.name,
            url=bookmark.url,
            category_id=bookmark.category_id,
            icon=bookmark.icon,
            is_public=bookmark.is_public,
            order_id=bookmark.order_id,
            created_at=bookmark.created_at,
            updated_at=bookmark.updated_at,
        )

    def validate(self) -> None:
        _require_text(self.name, "name")
        _require_text(self.url, "url")

    def to_fields(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "url": self.url,
            "category": self.category_id,
            "icon": self.icon,
            "is_public": self.is_public,
            "order_id": self.order_id,
        }

    def to_document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "categoryId": self.category_id,
            "icon": self.icon,
            "isPublic": self.is_public,
            "orderId": self.order_id,
            "createdAt": isoformat_z(self.created_at),
            "updatedAt": isoformat_z(self.updated_at),
        }


class ImportOptions(BaseModel):
    """Per-call import switches."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    clear_existing: bool = Field(default=False, alias="clearExisting")
    skip_duplicates: bool = Field(default=True, alias="skipDuplicates")
    import_apps: bool = Field(default=True, alias="importApps")
    import_bookmarks: bool = Field(default=True, alias="importBookmarks")
    import_categories: bool = Field(default=True, alias="importCategories")

    def enabled(self, kind: EntityKind) -> bool:
        return {
            EntityKind.APP: self.import_apps,
            EntityKind.CATEGORY: self.import_categories,
            EntityKind.BOOKMARK: self.import_bookmarks,
        }[kind]


class EntityCounts(BaseModel):
    apps: int = 0
    categories: int = 0
    bookmarks: int = 0


class ImportResult(BaseModel):
    """Report accumulated over one import call."""

    success: bool = True
    imported: EntityCounts = Field(default_factory=EntityCounts)
    skipped: EntityCounts = Field(default_factory=EntityCounts)
    errors: list[str] = Field(default_factory=list)

    def mark_imported(self, kind: EntityKind) -> None:
        setattr(self.imported, kind.value, getattr(self.imported, kind.value) + 1)

    def mark_skipped(self, kind: EntityKind) -> None:
        setattr(self.skipped, kind.value, getattr(self.skipped, kind.value) + 1)

    def add_error(self, kind: EntityKind, name: str, error: BaseException) -> str:
        message = getattr(error, "message", None) or str(error)
        line = f'{kind.label} "{name}": {message}'
        self.errors.append(line)
        return line
