"""
Pydantic models for API request validation.
"""

from typing import Any

from pydantic import BaseModel, Field

from flame.transfer.records import ImportOptions


class ImportRequest(BaseModel):
    """Request body for ``POST /api/import``.

    ``format`` is left untyped so unknown or non-string values surface as the
    transfer engine's format error instead of a schema error.
    """

    format: Any = None
    data: Any = None
    options: ImportOptions = Field(default_factory=ImportOptions)
