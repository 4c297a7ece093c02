"""Ambient caller identity used to stamp audit fields."""

from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Iterator


SYSTEM_ACTOR = "System"

_CURRENT_ACTOR: ContextVar[str | None] = ContextVar(
    "request_audit_actor",
    default=None,
)


def set_current_actor(actor: str | None) -> Token:
    """Bind the caller identity for the current context and return the reset token."""
    return _CURRENT_ACTOR.set(actor or None)


def reset_current_actor(token: Token) -> None:
    """Restore the previous caller identity."""
    _CURRENT_ACTOR.reset(token)


def get_current_actor() -> str:
    """Return the bound caller identity, or the System identity when unauthenticated."""
    return _CURRENT_ACTOR.get() or SYSTEM_ACTOR


@contextmanager
def actor_context(actor: str | None) -> Iterator[str]:
    """Run a block on behalf of ``actor`` (None falls back to System)."""
    token = set_current_actor(actor)
    try:
        yield get_current_actor()
    finally:
        reset_current_actor(token)
