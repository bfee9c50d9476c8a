"""Checklist inspection module entry point."""

from __future__ import annotations

from fastapi import FastAPI

__all__ = ["register_api"]


def register_api(app: FastAPI) -> None:
    """Register FastAPI routes for the inspections module."""
    from .api import router as inspections_router

    if not any(getattr(r, "path", "").startswith("/api/inspections") for r in app.router.routes):
        app.include_router(inspections_router)
