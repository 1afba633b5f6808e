"""Page selection for the app's top-level navigator."""

from __future__ import annotations

from enum import Enum

from login_app.state import AppStatus


class Page(str, Enum):
    SPLASH = "splash"
    LOGIN = "login"
    HOME = "home"


_PAGES_BY_STATUS = {
    AppStatus.AUTHENTICATED: Page.HOME,
    AppStatus.UNAUTHENTICATED: Page.LOGIN,
    AppStatus.UNKNOWN: Page.SPLASH,
}


def on_generate_app_view_pages(status: AppStatus, pages: list[Page] | None = None) -> list[Page]:
    """Return the page stack to show for `status`.

    The current stack (`pages`) is replaced, never extended: each status maps
    to exactly one root page.
    """
    return [_PAGES_BY_STATUS[status]]
