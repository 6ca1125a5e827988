"""Run-scoped context for compliance checks.

Every complete check runs inside :func:`check_run`, which gives it a run id.
Events emitted through :func:`log_event` go to the ``sedori.compliance.events``
logger and carry that id, so one check's log lines can be grouped together.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Iterator, Optional

EVENT_LOGGER_NAME = "sedori.compliance.events"

event_logger = logging.getLogger(EVENT_LOGGER_NAME)

_check_run_ctx: ContextVar[Optional[str]] = ContextVar("compliance_check_run", default=None)


def bind_run_id(value: Optional[str]) -> Token | None:
    if value is None:
        return None
    return _check_run_ctx.set(value)


def reset_run_id(token: Optional[Token]) -> None:
    if token is not None:
        _check_run_ctx.reset(token)


def current_run_id() -> Optional[str]:
    return _check_run_ctx.get()


@contextmanager
def check_run(run_id: Optional[str] = None) -> Iterator[str]:
    """Bind a fresh (or the given) run id for the duration of one check."""

    run_id = run_id or uuid.uuid4().hex
    token = bind_run_id(run_id)
    try:
        yield run_id
    finally:
        reset_run_id(token)


def log_event(event: str, **fields: object) -> None:
    """Emit a structured compliance event tagged with the active run id."""

    payload = {"event": event, "run_id": current_run_id(), **fields}
    event_logger.info(event, extra={"payload": payload})
