"""Interactive login-flow shell.

Usage:
  python -m login_app.runner [--web] [--log-level LEVEL]

Reads settings from the environment (and a local .env file), builds the
AuthenticationRepository and an AppBloc over it, then accepts commands:

  sign-up EMAIL PASSWORD
  log-in EMAIL PASSWORD
  log-in-google
  log-out
  whoami
  quit

Every AppState the bloc emits is printed together with the page the router
selects for it. The session lives only as long as the process.
"""

import argparse
import asyncio
import contextlib
import logging
import shlex
import sys

from dotenv import load_dotenv
from login_authentication import AuthenticationRepository
from login_authentication.config import AuthSettings, load_settings
from login_form_inputs import FormStatus

from login_app.bloc import AppBloc
from login_app.events import AppLogoutRequested
from login_app.login_cubit import LoginCubit
from login_app.routes import on_generate_app_view_pages
from login_app.sign_up_cubit import SignUpCubit
from login_app.state import AppState

logger = logging.getLogger(__name__)

USAGE = {
    "sign-up": "sign-up EMAIL PASSWORD",
    "log-in": "log-in EMAIL PASSWORD",
    "log-in-google": "log-in-google",
    "log-out": "log-out",
    "whoami": "whoami",
    "quit": "quit",
}


def describe_state(state: AppState) -> str:
    page = on_generate_app_view_pages(state.status)[0]
    who = state.user.email or state.user.id or "-"
    return f"[{state.status.value}] page={page.value} user={who}"


def _form_result(status: FormStatus, error_message: str | None, fields: dict) -> str:
    if status is FormStatus.INVALID:
        invalid = ", ".join(name for name, value in fields.items() if value.is_not_valid)
        return f"Invalid input: {invalid}"
    if status is FormStatus.SUBMISSION_FAILURE:
        return f"Failed: {error_message}"
    return "OK"


async def execute(
    command: str, args: list[str], bloc: AppBloc, repository: AuthenticationRepository
) -> str | None:
    """Run one shell command and return the text to print, if any."""
    if command not in USAGE or command == "quit":
        return f"Unknown command '{command}'. Commands: {', '.join(USAGE)}"
    expected = len(USAGE[command].split()) - 1
    if len(args) != expected:
        return f"Usage: {USAGE[command]}"

    if command == "sign-up":
        sign_up = SignUpCubit(repository)
        sign_up.email_changed(args[0])
        sign_up.password_changed(args[1])
        sign_up.confirmed_password_changed(args[1])
        await sign_up.sign_up_form_submitted()
        state = sign_up.state
        return _form_result(
            state.status,
            state.error_message,
            {"email": state.email, "password": state.password},
        )

    if command == "log-in":
        login = LoginCubit(repository)
        login.email_changed(args[0])
        login.password_changed(args[1])
        await login.log_in_with_credentials()
        state = login.state
        return _form_result(
            state.status,
            state.error_message,
            {"email": state.email, "password": state.password},
        )

    if command == "log-in-google":
        login = LoginCubit(repository)
        await login.log_in_with_google()
        return _form_result(login.state.status, login.state.error_message, {})

    if command == "log-out":
        bloc.add(AppLogoutRequested())
        await bloc.drain()
        return None

    user = repository.current_user
    return "Not signed in" if user.is_empty else f"{user.id} <{user.email or '-'}>"


async def watch_states(bloc: AppBloc) -> None:
    async for state in bloc.stream():
        print(describe_state(state))


async def shell(bloc: AppBloc, repository: AuthenticationRepository) -> None:
    print(describe_state(bloc.state))
    while True:
        try:
            line = await asyncio.to_thread(input, "> ")
        except EOFError:
            return
        try:
            parts = shlex.split(line)
        except ValueError as e:
            print(f"Could not parse command: {e}")
            continue
        if not parts:
            continue
        if parts[0] == "quit":
            return
        output = await execute(parts[0], parts[1:], bloc, repository)
        if output:
            print(output)


async def run(settings: AuthSettings, is_web: bool) -> None:
    """Build the repository and AppBloc, then run the shell until quit."""
    repository = AuthenticationRepository(settings=settings, is_web=is_web or None)
    logger.info(f"Starting login shell (web={repository.is_web})")
    try:
        async with AppBloc(repository) as bloc:
            watcher = asyncio.create_task(watch_states(bloc))
            try:
                await shell(bloc, repository)
            finally:
                watcher.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await watcher
    finally:
        await repository.close()


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint."""
    parser = argparse.ArgumentParser(description="Interactive login-flow shell")
    parser.add_argument(
        "--web",
        action="store_true",
        help="Use the browser popup flow for Google sign-in (default: LOGIN_IS_WEB)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )
    args = parser.parse_args(argv)

    load_dotenv()
    logging.basicConfig(level=getattr(logging, args.log_level))

    try:
        settings = load_settings()
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    asyncio.run(run(settings, args.web))


if __name__ == "__main__":
    main()
