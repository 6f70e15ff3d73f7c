import pytest
from fastapi.testclient import TestClient

from flame.api.main import create_app
from flame.config import AppConfig, DashboardConfig, RuntimeConfig


@pytest.fixture
def app_config(tmp_path):
    return AppConfig(
        runtime=RuntimeConfig(db_path=str(tmp_path / "flame.db")),
        dashboard=DashboardConfig(),
    )


@pytest.fixture
def client(db, app_config):
    app = create_app(app_config, db)
    with TestClient(app) as test_client:
        yield test_client
