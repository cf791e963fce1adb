"""Page classification from the incoming request.

Route handlers that serve single content can report its modification time
by setting ``request.state.content_last_modified`` (a datetime, or the stored
``YYYY-MM-DD HH:MM:SS`` string in UTC) before returning.
"""

from __future__ import annotations

from starlette.requests import Request

from caching_headers.config import Settings
from caching_headers.policy.models import PageClassification, PageContext


class PageClassifier:
    def __init__(self, settings: Settings) -> None:
        self._home_paths = frozenset(settings.home_paths)
        self._single_prefixes = tuple(settings.single_path_prefixes)
        self._archive_prefixes = tuple(settings.archive_path_prefixes)

    def classify_path(self, path: str) -> PageClassification:
        if path in self._home_paths:
            return PageClassification.HOME
        if path.startswith(self._single_prefixes):
            return PageClassification.SINGLE
        if path.startswith(self._archive_prefixes):
            return PageClassification.ARCHIVE
        return PageClassification.OTHER

    def classify(self, request: Request) -> PageContext:
        return PageContext(
            classification=self.classify_path(request.url.path),
            is_authenticated=getattr(request.state, "principal", None) is not None,
        )

    def refine(self, ctx: PageContext, request: Request) -> PageContext:
        """Attach the content timestamp reported by the route handler."""
        if ctx.classification != PageClassification.SINGLE:
            return ctx
        return ctx.with_last_modified(getattr(request.state, "content_last_modified", None))
