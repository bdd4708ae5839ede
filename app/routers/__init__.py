"""API router package."""

from app.routers import chores, people, reconciliation

__all__ = [
    "chores",
    "people",
    "reconciliation",
]
