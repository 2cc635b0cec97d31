"""
Public identifiers for CollabCal records.

Every record a client can address carries a UUIDv7 in its `uuid` column
and is exposed in URLs and payloads as `{prefix}_{26 chars}`, the UUID
written in lower-case Crockford Base32:

    evt_...  Event            /api/events/{guid}
    par_...  Participation    /api/participations/{guid}/respond
    sch_...  ScheduleEntry    schedule listings (read only)
    tsk_...  TaskRequest      /api/task-requests/{guid}

Lookups go through resolve(): a GUID that is malformed, carries another
entity's prefix or does not decode is reported as NotFoundError, so the
API answers 404 for `not-a-guid` exactly as for an unknown `evt_...`.
Integer primary keys never leave the service layer.
"""

import re
import uuid

import base32_crockford
from uuid_extensions import uuid7

from backend.src.services.exceptions import NotFoundError

ENTITY_PREFIXES = {
    "evt": "Event",
    "par": "Participation",
    "sch": "ScheduleEntry",
    "tsk": "TaskRequest",
}

GUID_LENGTH = 26

# Crockford alphabet: no I, L, O or U
GUID_PATTERN = re.compile(
    r"^(%s)_[0-9A-HJKMNP-TV-Z]{%d}$" % ("|".join(ENTITY_PREFIXES), GUID_LENGTH),
    re.IGNORECASE,
)


class GuidService:
    """
    Static helpers converting between stored UUIDs and public GUIDs.

    Usage:
        >>> guid = GuidService.encode_uuid(event.uuid, "evt")
        >>> GuidService.resolve(guid, "evt") == event.uuid
        True
    """

    @staticmethod
    def generate_uuid() -> uuid.UUID:
        """New UUIDv7; ids sort by creation time."""
        return uuid7()

    @staticmethod
    def encode_uuid(uuid_value: uuid.UUID, prefix: str) -> str:
        """
        Render a stored UUID (or its 16 raw bytes) as a public GUID.

        Raises:
            ValueError: If prefix is not one of evt, par, sch, tsk
        """
        if prefix not in ENTITY_PREFIXES:
            raise ValueError(
                f"Invalid prefix '{prefix}'. "
                f"Valid prefixes: {', '.join(ENTITY_PREFIXES)}"
            )

        raw = uuid_value if isinstance(uuid_value, bytes) else uuid_value.bytes
        encoded = base32_crockford.encode(int.from_bytes(raw, "big"))
        return f"{prefix}_{encoded.zfill(GUID_LENGTH).lower()}"

    @staticmethod
    def decode_guid(guid: str) -> tuple[str, uuid.UUID]:
        """
        Split a GUID into its prefix and UUID. Case-insensitive.

        Raises:
            ValueError: If the GUID is empty, malformed, or out of UUID range
        """
        if not guid:
            raise ValueError("GUID cannot be empty")

        if not GUID_PATTERN.match(guid):
            raise ValueError(
                f"Invalid GUID format: {guid}. "
                f"Expected {{prefix}}_{{{GUID_LENGTH}-char base32}}"
            )

        prefix, _, encoded = guid.partition("_")
        try:
            value = base32_crockford.decode(encoded.upper())
            return prefix.lower(), uuid.UUID(bytes=value.to_bytes(16, "big"))
        except (ValueError, OverflowError) as e:
            raise ValueError(f"Invalid GUID encoding: {e}")

    @staticmethod
    def validate_guid(guid: str, expected_prefix: str = None) -> bool:
        """True if guid is well formed (and, when given, has expected_prefix)."""
        if not guid or not GUID_PATTERN.match(guid):
            return False

        if expected_prefix:
            return guid[:3].lower() == expected_prefix.lower()

        return True

    @staticmethod
    def parse_guid(guid: str, expected_prefix: str) -> uuid.UUID:
        """
        Decode a GUID that must belong to the given entity type.

        Raises:
            ValueError: If the format is invalid or the prefix differs
        """
        prefix, uuid_value = GuidService.decode_guid(guid)
        if prefix != expected_prefix.lower():
            raise ValueError(
                f"GUID prefix mismatch. "
                f"Expected '{expected_prefix}', got '{prefix}'"
            )
        return uuid_value

    @staticmethod
    def resolve(guid: str, prefix: str) -> uuid.UUID:
        """
        UUID to look up for a GUID taken from a request path.

        Raises:
            NotFoundError: If the GUID cannot name a record of this type
        """
        try:
            return GuidService.parse_guid(guid, prefix)
        except ValueError:
            raise NotFoundError(ENTITY_PREFIXES[prefix], guid)
