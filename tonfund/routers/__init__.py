"""API router package."""

from tonfund.routers import admin, auth, charities, companies, users, webhook

__all__ = [
    "admin",
    "auth",
    "charities",
    "companies",
    "users",
    "webhook",
]
