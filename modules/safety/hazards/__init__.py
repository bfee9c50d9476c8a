"""Hazard assessment module entry point."""

from __future__ import annotations

from fastapi import FastAPI

__all__ = ["register_api"]


def register_api(app: FastAPI) -> None:
    """Register FastAPI routes for hazard assessments."""
    from .api import router as hazards_router

    if not any(getattr(r, "path", "").startswith("/api/safety/hazards") for r in app.router.routes):
        app.include_router(hazards_router)
