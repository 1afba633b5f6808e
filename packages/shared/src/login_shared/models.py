"""Pydantic models shared across components.

User is the contract type that flows from the authentication repository to
the app. It is frozen: a session change produces a new User, it never mutates
the old one. Equality is by value, so two snapshots of the same session are
interchangeable.
"""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict


class User(BaseModel):
    """Identity snapshot of the signed-in user.

    `User.empty` (id == "") stands for "nobody is signed in".
    """

    model_config = ConfigDict(frozen=True)

    id: str
    email: str | None = None
    name: str | None = None
    photo: str | None = None

    empty: ClassVar[User]

    @property
    def is_empty(self) -> bool:
        return self == User.empty

    @property
    def is_not_empty(self) -> bool:
        return self != User.empty


User.empty = User(id="")
