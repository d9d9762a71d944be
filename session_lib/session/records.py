"""Session record model and packet builders.

A session record is persisted as one JSON blob; every write replaces the
whole blob. Field names on the wire follow the external contract
(`SessionID`, `LoggedIn`, `UserID`, ...) while Python code uses snake_case.
"""
from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from session_lib import __version__

ANONYMOUS_ROLE = 'Unauthenticated'


class SessionRecord(BaseModel):
    # extra='allow' keeps fields added by custom authenticators across writes
    model_config = ConfigDict(populate_by_name=True, extra='allow')

    session_id: Optional[str] = Field(None, alias='SessionID')
    logged_in: bool = Field(False, alias='LoggedIn')
    user_id: int = Field(0, alias='UserID')
    user_role: str = Field(ANONYMOUS_ROLE, alias='UserRole')
    user_role_index: int = Field(-1, alias='UserRoleIndex')
    customer_id: int = Field(0, alias='CustomerID')
    title: str = Field('', alias='Title')
    name_first: str = Field('', alias='NameFirst')
    name_last: str = Field('', alias='NameLast')
    email: str = Field('', alias='Email')
    version: Optional[str] = Field(None, alias='Version')
    last_login_time: Optional[datetime] = Field(None, alias='LastLoginTime')

    @property
    def is_authenticated(self) -> bool:
        return bool(self.logged_in) and self.user_id > 0

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode='json')

    def to_payload(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_payload(cls, payload: str | bytes) -> 'SessionRecord':
        """Parse a stored blob. Raises pydantic.ValidationError on bad data."""
        return cls.model_validate_json(payload)

    @classmethod
    def coerce(cls, value: 'SessionRecord | Mapping[str, Any]') -> 'SessionRecord':
        if isinstance(value, SessionRecord):
            return value.model_copy()
        return cls.model_validate(dict(value))

    def stamp_login_time(self, when: Optional[datetime] = None) -> None:
        self.last_login_time = when or datetime.now(timezone.utc)


def format_user_packet(
    session_id: Optional[str],
    logged_in: bool,
    role: str,
    role_index: int,
    user_id: int,
    customer_id: int = 0,
    title: str = '',
    name_first: str = '',
    name_last: str = '',
    email: str = '',
) -> SessionRecord:
    return SessionRecord(
        session_id=session_id,
        logged_in=logged_in,
        user_role=role,
        user_role_index=role_index,
        user_id=user_id,
        customer_id=customer_id,
        title=title,
        name_first=name_first,
        name_last=name_last,
        email=email,
        version=__version__,
    )


def format_empty_user_packet(session_id: Optional[str]) -> SessionRecord:
    """The canonical anonymous packet for `session_id`."""
    return format_user_packet(session_id, False, ANONYMOUS_ROLE, -1, 0)


def format_user_packet_from_record(user_record: Mapping[str, Any]) -> SessionRecord:
    """Map an account row into a logged-in packet.

    The SessionID is left empty; `authenticate_user` stamps it from the
    request. Missing columns fall back to the anonymous defaults.
    """
    return format_user_packet(
        None,
        True,
        user_record.get('UserRole') or ANONYMOUS_ROLE,
        int(user_record.get('IDRole') or 0),
        int(user_record.get('IDUser') or 0),
        int(user_record.get('IDCustomer') or 0),
        user_record.get('Title') or '',
        user_record.get('NameFirst') or '',
        user_record.get('NameLast') or '',
        user_record.get('Email') or '',
    )
