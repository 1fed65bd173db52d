"""TitleTrack: shared title tracking for groups (FastAPI + MongoDB)."""

__version__ = "1.0.0"
