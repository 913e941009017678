"""
Exception types shared by the core and the remote client.

Resolution misses are deliberately absent here: a dangling reference is a
normal display case and renders as "-".
"""

from __future__ import annotations


class CourseAdminError(Exception):
    """Base class for all errors raised by courseadmin."""


class ConfigError(CourseAdminError):
    """Required configuration (app ids, base url) is missing or invalid."""


class RemoteError(CourseAdminError):
    """The remote store could not be reached or rejected a request."""


class RemoteReadError(RemoteError):
    """Fetching a collection failed."""


class RemoteWriteError(RemoteError):
    """A create, update or delete was rejected by the remote store."""


class LoadFailure(CourseAdminError):
    """One of the collection loads failed; the dashboard is not ready."""


class InvalidOperation(CourseAdminError):
    """An operation was invoked without what it needs (caller bug, e.g. update without record id)."""


class FormError(CourseAdminError, ValueError):
    """Form input could not be coerced into a payload value."""
