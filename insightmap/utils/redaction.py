"""Secret scrubbing for log records and caller-facing diagnostics.

Credentials are registered for the lifetime of a submission via
``secret_scope``; anything rendered for logs or response bodies while the
scope is active is passed through ``redact_text``/``scrub_payload``.
"""

import re
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterable, Iterator, Optional

REDACTED = "***"

# Bearer headers and sk-style keys are masked even when nobody registered them.
SECRET_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"sk-[A-Za-z0-9_-]{8,}"),
    re.compile(r"(?i)(bearer)\s+[A-Za-z0-9._-]{10,}"),
)

_active_secrets: ContextVar[tuple[str, ...]] = ContextVar("active_secrets", default=())


@contextmanager
def secret_scope(*secrets: Optional[str]) -> Iterator[None]:
    """Register secrets for the current task (and tasks spawned from it)."""
    values = tuple(s for s in secrets if s)
    token = _active_secrets.set(_active_secrets.get() + values)
    try:
        yield
    finally:
        _active_secrets.reset(token)


def active_secrets() -> tuple[str, ...]:
    return _active_secrets.get()


def redact_text(text: Any, secrets: Optional[Iterable[str]] = None) -> Any:
    """Replace every known secret and secret-looking token in ``text``.

    Non-string values are returned unchanged.
    """
    if not isinstance(text, str):
        return text

    values = set(active_secrets())
    if secrets:
        values.update(s for s in secrets if s)

    sanitized = text
    for value in sorted(values, key=len, reverse=True):
        sanitized = sanitized.replace(value, REDACTED)
    for pattern in SECRET_PATTERNS:
        sanitized = pattern.sub(REDACTED, sanitized)
    return sanitized


def scrub_payload(obj: Any, secrets: Optional[Iterable[str]] = None) -> Any:
    """Deeply sanitize a JSON-like structure (dicts, lists, strings)."""
    secret_list = list(secrets) if secrets else None

    if isinstance(obj, str):
        return redact_text(obj, secret_list)
    if isinstance(obj, dict):
        return {
            redact_text(key, secret_list): scrub_payload(value, secret_list)
            for key, value in obj.items()
        }
    if isinstance(obj, (list, tuple)):
        return [scrub_payload(item, secret_list) for item in obj]
    return obj
