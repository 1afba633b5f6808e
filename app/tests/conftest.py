"""Shared fixtures for app-layer tests.

Provides:
  - FakeAuthenticationRepository: a user stream the test pushes to, plus
    recorded log-in/sign-up/log-out calls with configurable failures
  - settle(): let a pushed session travel through the bloc's inbox
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable

import pytest
from login_app.bloc import AppBloc
from login_shared.models import User


class FakeAuthenticationRepository:
    """In-memory AuthenticationRepository.

    Set `<operation>_error` to make that operation raise.
    """

    def __init__(self) -> None:
        self._subscribers: set[asyncio.Queue[User | Exception]] = set()
        self.subscribed = asyncio.Event()
        self.current_user = User.empty
        self.calls: list[tuple[str, tuple]] = []
        self.log_in_error: Exception | None = None
        self.log_in_with_google_error: Exception | None = None
        self.sign_up_error: Exception | None = None
        self.log_out_error: Exception | None = None

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def push(self, user: User) -> None:
        self.current_user = user
        for queue in self._subscribers:
            queue.put_nowait(user)

    def fail(self, error: Exception) -> None:
        """Make every open user stream raise `error`."""
        for queue in self._subscribers:
            queue.put_nowait(error)

    async def user(self) -> AsyncIterator[User]:
        queue: asyncio.Queue[User | Exception] = asyncio.Queue()
        self._subscribers.add(queue)
        self.subscribed.set()
        try:
            while True:
                item = await queue.get()
                if isinstance(item, Exception):
                    raise item
                yield item
        finally:
            self._subscribers.discard(queue)

    def _record(self, name: str, *args: object) -> None:
        self.calls.append((name, args))

    async def log_in_with_email_and_password(self, email: str, password: str) -> None:
        self._record("log_in_with_email_and_password", email, password)
        if self.log_in_error:
            raise self.log_in_error

    async def log_in_with_google(self) -> None:
        self._record("log_in_with_google")
        if self.log_in_with_google_error:
            raise self.log_in_with_google_error

    async def sign_up(self, email: str, password: str) -> None:
        self._record("sign_up", email, password)
        if self.sign_up_error:
            raise self.sign_up_error

    async def log_out(self) -> None:
        self._record("log_out")
        if self.log_out_error:
            raise self.log_out_error

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]


@pytest.fixture
def repository() -> FakeAuthenticationRepository:
    return FakeAuthenticationRepository()


@pytest.fixture
async def bloc(repository) -> AsyncIterator[AppBloc]:
    app_bloc = AppBloc(repository)
    await repository.subscribed.wait()
    yield app_bloc
    await app_bloc.close()


@pytest.fixture
def settle() -> Callable[[AppBloc], Awaitable[None]]:
    """Wait until everything pushed so far has been handled by the bloc."""

    async def _settle(app_bloc: AppBloc) -> None:
        for _ in range(5):
            await asyncio.sleep(0)
        await app_bloc.drain()

    return _settle
