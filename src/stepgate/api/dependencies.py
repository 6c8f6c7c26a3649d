"""FastAPI dependencies resolving backends from application state."""

from __future__ import annotations

from fastapi import Request

from stepgate.core.protocols import IObjectStore


def get_object_store(request: Request) -> IObjectStore:
    return request.app.state.object_store
