# api/deps.py
from fastapi import Request

from core.container import ServiceContainer


def get_container(request: Request) -> ServiceContainer:
    """The container owned by the running app (set in create_app)."""
    return request.app.state.container
