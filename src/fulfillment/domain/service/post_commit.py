"""Deferred side effects that run once a write has committed.

Notifications and audit entries are collected while an operation runs and
executed only after its state change is persisted.  A failing hook is
logged and skipped; it can never roll back the committed change.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)


class PostCommitHooks:

    def __init__(self) -> None:
        self._hooks: list[tuple[Callable[..., Any], tuple, dict]] = []

    def add(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        self._hooks.append((fn, args, kwargs))

    def run(self) -> None:
        hooks, self._hooks = self._hooks, []
        for fn, args, kwargs in hooks:
            try:
                fn(*args, **kwargs)
            except Exception:
                logger.exception(
                    "Post-commit hook %s failed", getattr(fn, "__qualname__", fn)
                )
