# Entity_Models.py
# Description: Dataclasses for the four synced entity kinds, plus the timestamp helpers shared by stores and sync.
#
# Imports
import sqlite3
import logging
from dataclasses import dataclass, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any, Union
#
########################################################################################################################
#
# Functions:

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Naive datetimes are taken as UTC; aware ones are converted to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_timestamp(dt: Optional[datetime]) -> Optional[str]:
    """
    YYYY-MM-DDTHH:MM:SS.ffffffZ in UTC. Fixed width, so lexical order of stored strings equals
    chronological order. Built by hand since strftime does not zero-pad years below 1000 on Linux.
    """
    if dt is None:
        return None
    dt = ensure_utc(dt)
    return (f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d}T"
            f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}.{dt.microsecond:06d}Z")


def parse_timestamp(ts_value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parses an ISO-8601 timestamp (with 'Z' or an offset, or naive = UTC).

    Returns None for empty or unparseable input; callers decide whether that is an error.
    """
    if ts_value is None or ts_value == "":
        return None
    if isinstance(ts_value, datetime):
        return ensure_utc(ts_value)
    if not isinstance(ts_value, str):
        return None
    try:
        dt = datetime.fromisoformat(ts_value.strip().replace('Z', '+00:00').replace('z', '+00:00'))
        return ensure_utc(dt)
    except (ValueError, OverflowError):
        logger.debug(f"Could not parse timestamp string: {ts_value!r}")
        return None


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class _EntityBase:
    """Row conversion shared by every entity dataclass."""

    _TIMESTAMP_FIELDS = ("created_at", "updated_at", "deleted_at")

    @property
    def is_deleted(self) -> bool:
        return getattr(self, "deleted_at") is not None

    @classmethod
    def from_row(cls, row: Union[sqlite3.Row, Dict[str, Any]]):
        values = {}
        for f in fields(cls):
            value = row[f.name]
            if f.name in cls._TIMESTAMP_FIELDS:
                value = parse_timestamp(value)
            values[f.name] = value
        return cls(**values)

    def to_row(self) -> Dict[str, Any]:
        """Column -> value mapping ready for an INSERT/UPDATE."""
        row = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in self._TIMESTAMP_FIELDS:
                value = format_timestamp(value)
            elif isinstance(value, Enum):
                value = value.value
            row[f.name] = value
        return row


@dataclass
class Conversation(_EntityBase):
    id: str
    owner_user_id: str
    title: str
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None


@dataclass
class Message(_EntityBase):
    id: str
    owner_user_id: str
    conversation_id: str
    role: MessageRole
    content: str
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    def __post_init__(self):
        if not isinstance(self.role, MessageRole):
            self.role = MessageRole(self.role)


@dataclass
class Note(_EntityBase):
    id: str
    owner_user_id: str
    title: str
    content: str
    folder_id: Optional[str]
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None


@dataclass
class Folder(_EntityBase):
    id: str
    owner_user_id: str
    name: str
    parent_id: Optional[str]
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

#
# End of Entity_Models.py
#######################################################################################################################
