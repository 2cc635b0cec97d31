"""
Public identifier columns shared by the CollabCal tables.

events, participations, schedule_entries and task_requests each carry a
`uuid` column next to their integer primary key. The column holds a
UUIDv7 assigned on insert. Foreign keys and joins use the integer ids;
clients only ever see the `guid` property (evt_, par_, sch_, tsk_ plus
26 Crockford Base32 characters). Decoding a GUID back to a uuid for a
lookup is done by GuidService in the service layer.

Storage differs by backend: a native UUID on PostgreSQL, 16 raw bytes
on SQLite (used by the test suite).
"""

import uuid as uuid_module
from typing import ClassVar, Optional

import base32_crockford
from sqlalchemy import Column, LargeBinary, TypeDecorator
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from uuid_extensions import uuid7


def _as_uuid(value) -> uuid_module.UUID:
    if isinstance(value, uuid_module.UUID):
        return value
    if isinstance(value, bytes):
        return uuid_module.UUID(bytes=value)
    return uuid_module.UUID(str(value))


class UUIDType(TypeDecorator):
    """uuid.UUID in Python; UUID on PostgreSQL, BLOB(16) elsewhere."""

    impl = LargeBinary
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PG_UUID(as_uuid=True))
        return dialect.type_descriptor(LargeBinary(16))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = _as_uuid(value)
        return value if dialect.name == "postgresql" else value.bytes

    def process_result_value(self, value, dialect):
        return None if value is None else _as_uuid(value)


class GuidMixin:
    """
    Adds the `uuid` column and the derived `guid` string.

    Each model sets GUID_PREFIX:
        class Participation(Base, GuidMixin):
            GUID_PREFIX = "par"
    """

    GUID_PREFIX: ClassVar[str]

    uuid = Column(
        UUIDType(),
        nullable=False,
        unique=True,
        index=True,
        default=uuid7,
    )

    @property
    def guid(self) -> Optional[str]:
        """evt_/par_/sch_/tsk_ identifier; None until the row is flushed."""
        if self.uuid is None:
            return None

        number = int.from_bytes(_as_uuid(self.uuid).bytes, "big")
        return f"{self.GUID_PREFIX}_{base32_crockford.encode(number).zfill(26).lower()}"
