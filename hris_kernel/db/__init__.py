"""Database layer - engine, base classes, types, and immutability listeners."""

from hris_kernel.db.base import UUID, Base, TrackedBase, UTCDateTime, UUIDString, VersionedMixin
from hris_kernel.db.engine import create_tables, get_engine, get_session, session_scope
from hris_kernel.db.types import round_money

__all__ = [
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "Base",
    "TrackedBase",
    "VersionedMixin",
    "UTCDateTime",
    "UUIDString",
    "UUID",
    "round_money",
]
