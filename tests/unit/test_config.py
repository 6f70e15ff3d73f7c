import pytest

from flame.config import Config, DashboardConfig, RuntimeConfig, load_config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    for name in (
        "DB_PATH",
        "LOG_LEVEL",
        "LOG_FILE",
        "LOG_USE_LOGURU",
        "PIN_CATEGORIES_BY_DEFAULT",
        "PIN_CATEGORIES",
        "PRODUCT_NAME",
        "ALLOWED_ORIGINS",
    ):
        monkeypatch.delenv(name, raising=False)
    # no stray .env file
    monkeypatch.chdir(tmp_path)


def test_defaults():
    cfg = load_config()

    assert cfg.runtime.db_path == "/data/flame.db"
    assert cfg.runtime.log_level == "INFO"
    assert cfg.runtime.use_loguru is True
    assert cfg.dashboard.pin_categories_by_default is True
    assert cfg.dashboard.product_name == "flame"
    assert cfg.dashboard.allowed_origins == ()


def test_environment_fills_nested_sections(monkeypatch):
    monkeypatch.setenv("DB_PATH", "/tmp/other.db")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("PIN_CATEGORIES_BY_DEFAULT", "false")
    monkeypatch.setenv("PRODUCT_NAME", "My-Dash")
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.example, https://b.example,")

    cfg = load_config()

    assert cfg.runtime.db_path == "/tmp/other.db"
    assert cfg.runtime.log_level == "DEBUG"
    assert cfg.dashboard.pin_categories_by_default is False
    assert cfg.dashboard.product_name == "my-dash"
    assert cfg.dashboard.allowed_origins == ("https://a.example", "https://b.example")


def test_legacy_pin_variable_is_accepted(monkeypatch):
    monkeypatch.setenv("PIN_CATEGORIES", "0")

    assert load_config().dashboard.pin_categories_by_default is False


def test_overrides_win_over_environment(monkeypatch):
    monkeypatch.setenv("DB_PATH", "/tmp/env.db")

    cfg = load_config(runtime={"db_path": "/tmp/cli.db"})

    assert cfg.runtime.db_path == "/tmp/cli.db"


def test_invalid_values_raise_runtime_error(monkeypatch):
    monkeypatch.setenv("PIN_CATEGORIES_BY_DEFAULT", "maybe")

    with pytest.raises(RuntimeError, match="Configuration validation failed"):
        load_config()


def test_invalid_log_level_is_rejected():
    with pytest.raises(ValueError):
        RuntimeConfig(log_level="LOUD")


def test_invalid_product_name_is_rejected():
    with pytest.raises(ValueError):
        DashboardConfig(product_name="flame dash!")


def test_config_helper(monkeypatch):
    monkeypatch.setenv("FLAME_EXTRA", "value")

    assert Config.get("FLAME_EXTRA") == "value"
    assert Config.get("FLAME_MISSING", "fallback") == "fallback"
    with pytest.raises(ValueError):
        Config.get("FLAME_MISSING")
