"""Dashboard data transfer: export and import of apps, categories and bookmarks."""

__version__ = "1.0.0"
