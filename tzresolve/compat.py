"""Compatibility layer for accepting Windows time zone names as zone ids.

Windows identifies zones with names such as "Pacific Standard Time" rather
than the canonical ids used by the time zone database. Within this context
a database lookup for a Windows name is translated to the canonical id.
"""

from collections.abc import Generator
import contextlib
import contextvars


_windows_timezone_names = contextvars.ContextVar(
    "windows_timezone_names", default=False
)


@contextlib.contextmanager
def enable_windows_timezone_names() -> Generator[None]:
    """Context manager to allow Windows time zone names as zone ids."""
    token = _windows_timezone_names.set(True)
    try:
        yield
    finally:
        _windows_timezone_names.reset(token)


def is_windows_timezone_names_enabled() -> bool:
    """Check if Windows time zone names are enabled."""
    return _windows_timezone_names.get()
