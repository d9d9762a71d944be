from .errors import (
    AuthenticatorRejected,
    InvalidCredentialsInput,
    NotLoggedIn,
    ParentSessionGone,
    ParentSessionNotLoggedIn,
    SessionError,
    TempTokenNotFound,
)
from .manager import SessionManager
from .records import (
    SessionRecord,
    format_empty_user_packet,
    format_user_packet,
    format_user_packet_from_record,
)

__all__ = [
    "SessionManager",
    "SessionRecord",
    "format_user_packet",
    "format_empty_user_packet",
    "format_user_packet_from_record",
    "SessionError",
    "InvalidCredentialsInput",
    "AuthenticatorRejected",
    "NotLoggedIn",
    "TempTokenNotFound",
    "ParentSessionGone",
    "ParentSessionNotLoggedIn",
]
