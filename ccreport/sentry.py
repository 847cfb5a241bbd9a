# ccreport/sentry.py
"""Thin wrapper around *sentry-sdk* used by the scanner.

*   **Lazy init** – Sentry initialises **once** via :func:`init_sentry`.
    Without a DSN the helpers are no-ops, which is what local runs and the
    test-suite want.
*   **Capture helper** – :func:`sentry_capture` records an exception with
    optional *extras* (thread id, card name, ...) in a single line.

Usage
-----
```python
from ccreport.sentry import init_sentry, sentry_capture

init_sentry(release="inbox_scanner@1.0.0")
...
try:
    orchestrator.process_thread(thread, user_config)
except Exception as e:
    sentry_capture(e, extras={"thread_id": thread.id})
```
"""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Optional

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

from ccreport.config import get_settings


@lru_cache(maxsize=1)
def init_sentry(*, release: str | None = None, env: str | None = None) -> None:
    """Initialise Sentry SDK once per process.

    No-op when *settings.sentry_dsn* is empty.
    """
    settings = get_settings()
    if not settings.sentry_dsn:
        return

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        release=release,
        environment=env or settings.env,
        integrations=[LoggingIntegration(level=logging.INFO, event_level=None)],
        max_value_length=4_096,  # email bodies can be long
    )


def sentry_capture(exc: BaseException, *, extras: Optional[dict[str, Any]] = None) -> None:  # noqa: D401
    """Capture *exc* to Sentry if the SDK is initialised."""
    if not sentry_sdk.get_client().is_active():
        return

    with sentry_sdk.new_scope() as scope:
        if extras:
            for key, value in extras.items():
                scope.set_extra(key, value)
        sentry_sdk.capture_exception(exc)
