"""Request-scoped dependencies shared by the API routers."""

from __future__ import annotations

from fastapi import Request

from caching_headers.options.store import OptionsStore


def get_store(request: Request) -> OptionsStore:
    """Options store created by create_app() and kept on app.state.

    Override with app.dependency_overrides in tests if needed.
    """
    return request.app.state.options_store
