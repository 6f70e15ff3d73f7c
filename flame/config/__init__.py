from __future__ import annotations

from .settings import (
    AppConfig,
    Config,
    ConfigHelper,
    DashboardConfig,
    RuntimeConfig,
    Settings,
    load_config,
)

__all__ = [
    "AppConfig",
    "Config",
    "ConfigHelper",
    "DashboardConfig",
    "RuntimeConfig",
    "Settings",
    "load_config",
]
