"""Errors raised by the session manager.

Credential and authenticator errors reach the route layer. The temp-token
errors are raised and handled inside the manager; they only cause the
identity import to be skipped.
"""


class SessionError(Exception):
    """Base class for session manager failures."""


class InvalidCredentialsInput(SessionError):
    """Username or password missing from the login request."""


class AuthenticatorRejected(SessionError):
    """The injected authenticator refused the credentials."""


class NotLoggedIn(SessionError):
    """The operation requires an authenticated session."""


class TempTokenNotFound(SessionError):
    pass


class ParentSessionGone(SessionError):
    pass


class ParentSessionNotLoggedIn(SessionError):
    pass
