"""Database models package."""

from halosuite.models.auth_token import PasswordResetToken, RefreshToken
from halosuite.models.base import Base, as_utc, generate_ulid, utcnow
from halosuite.models.calendar import CalendarEvent, EventAttendee
from halosuite.models.conversation import Conversation, ConversationParticipant, Message
from halosuite.models.document import Document, DocumentShare, DocumentTag, Tag
from halosuite.models.enums import AttendeeStatus, ParticipantRole, SharePermission, UserStatus
from halosuite.models.file import File, Folder
from halosuite.models.notification import Notification
from halosuite.models.role import Permission, Role, RolePermission, UserRole
from halosuite.models.team import Team, TeamMember
from halosuite.models.user import User

__all__ = [
    # Base
    "Base",
    "generate_ulid",
    "utcnow",
    "as_utc",
    # Enums
    "UserStatus",
    "SharePermission",
    "AttendeeStatus",
    "ParticipantRole",
    # User & Auth
    "User",
    "RefreshToken",
    "PasswordResetToken",
    # Role & Permission
    "Role",
    "Permission",
    "RolePermission",
    "UserRole",
    # Team
    "Team",
    "TeamMember",
    # Document
    "Document",
    "DocumentShare",
    "Tag",
    "DocumentTag",
    # File & Folder
    "File",
    "Folder",
    # Calendar
    "CalendarEvent",
    "EventAttendee",
    # Conversation & Message
    "Conversation",
    "ConversationParticipant",
    "Message",
    # Notification
    "Notification",
]
