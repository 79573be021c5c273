"""Enum types shared by models and schemas."""

import enum

from sqlalchemy import Enum


class UserStatus(str, enum.Enum):
    """User account status."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


class SharePermission(str, enum.Enum):
    """Document share permission level."""

    READ = "READ"
    EDIT = "EDIT"
    COMMENT = "COMMENT"


class AttendeeStatus(str, enum.Enum):
    """Calendar event attendee response status."""

    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"


class ParticipantRole(str, enum.Enum):
    """Conversation participant role (advisory)."""

    OWNER = "owner"
    MEMBER = "member"


# Portable column types: native ENUM on PostgreSQL, VARCHAR elsewhere
user_status_enum = Enum(*[s.value for s in UserStatus], name="UserStatus")
share_permission_enum = Enum(*[p.value for p in SharePermission], name="SharePermission")
attendee_status_enum = Enum(*[s.value for s in AttendeeStatus], name="AttendeeStatus")
