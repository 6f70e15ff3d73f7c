"""FastAPI dependencies that hand routers the transfer services."""

from fastapi import Request

from flame.transfer.exporter import ExportService
from flame.transfer.importer import ImportService


def get_import_service(request: Request) -> ImportService:
    return request.app.state.import_service


def get_export_service(request: Request) -> ExportService:
    return request.app.state.export_service
