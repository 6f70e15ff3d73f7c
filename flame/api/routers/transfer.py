"""
Export and import endpoints.

Callers are authenticated by the surrounding deployment before requests reach
these routes.
"""

import asyncio

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from flame.api.dependencies import get_export_service, get_import_service
from flame.api.exceptions import from_transfer_error
from flame.api.models.requests import ImportRequest
from flame.api.models.responses import import_response
from flame.core.logging_utils import get_logger
from flame.transfer.exceptions import TransferError
from flame.transfer.exporter import ExportService
from flame.transfer.importer import ImportService

logger = get_logger(__name__)
router = APIRouter()


@router.get("/export/{export_format}")
async def export_data(
    export_format: str,
    service: ExportService = Depends(get_export_service),
):
    """Download every app, category and bookmark as ``json`` or ``html``."""
    try:
        artifact = await asyncio.to_thread(service.export, export_format)
    except TransferError as err:
        raise from_transfer_error(err) from err

    return Response(
        content=artifact.content,
        media_type=artifact.media_type,
        headers={"Content-Disposition": f'attachment; filename="{artifact.filename}"'},
    )


@router.post("/import")
async def import_data(
    body: ImportRequest,
    request: Request,
    service: ImportService = Depends(get_import_service),
):
    """Merge a backup document or bookmark file into the store."""
    pin_by_default = request.app.state.config.dashboard.pin_categories_by_default
    try:
        result = await asyncio.to_thread(
            service.import_data,
            body.format,
            body.data,
            body.options,
            pin_categories_by_default=pin_by_default,
        )
    except TransferError as err:
        raise from_transfer_error(err) from err

    return import_response(result)
