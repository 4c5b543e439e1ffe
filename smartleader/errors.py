# smartleader/errors.py
"""Exceptions raised below the service layer.

`services` turns each of these into a failed `Result`; nothing here is
expected to reach an end user verbatim except the message.
"""


class StoreError(Exception):
    """Backing-store or network failure."""


class NotFoundError(StoreError):
    """No record carries the requested application id."""


class AuthError(Exception):
    """Sign-in failed or no valid session was presented."""


class PermissionDeniedError(AuthError):
    """The session is valid but lacks the admin role."""
