"""Identity of the discovery pass running in the current task.

Log records emitted while a pass is running carry its id and watermark.
"""

from __future__ import annotations

import uuid
from contextvars import ContextVar
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class PassContext:
    pass_id: str
    since: Optional[datetime] = None

    def log_fields(self) -> dict[str, str]:
        fields = {"pass_id": self.pass_id}
        if self.since is not None:
            fields["since"] = self.since.isoformat()
        return fields


_current_pass: ContextVar[Optional[PassContext]] = ContextVar("current_pass", default=None)


def current_pass() -> Optional[PassContext]:
    return _current_pass.get()


def start_pass(pass_id: Optional[str] = None) -> PassContext:
    context = PassContext(pass_id=pass_id or uuid.uuid4().hex)
    _current_pass.set(context)
    return context


def set_watermark(since: datetime) -> None:
    """Record the watermark of the running pass; ignored outside of a pass."""
    context = _current_pass.get()
    if context is not None:
        _current_pass.set(replace(context, since=since))


def end_pass() -> None:
    _current_pass.set(None)
