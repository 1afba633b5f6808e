"""Login flow application layer.

AppBloc turns the AuthenticationRepository's user stream into AppState, the
form cubits drive the login and sign-up screens, and routes maps AppStatus
to the page stack.
"""

from login_app.bloc import AppBloc
from login_app.events import AppEvent, AppLogoutRequested, AppUserChanged
from login_app.login_cubit import LoginCubit, LoginState
from login_app.routes import Page, on_generate_app_view_pages
from login_app.sign_up_cubit import SignUpCubit, SignUpState
from login_app.state import AppState, AppStatus

__all__ = [
    "AppBloc",
    "AppEvent",
    "AppLogoutRequested",
    "AppState",
    "AppStatus",
    "AppUserChanged",
    "LoginCubit",
    "LoginState",
    "Page",
    "SignUpCubit",
    "SignUpState",
    "on_generate_app_view_pages",
]
