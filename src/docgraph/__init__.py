"""DocGraph - crawler and cache for interlinked markdown documents."""

__version__ = "0.1.0"
