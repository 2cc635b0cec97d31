"""
Unit tests for GuidService.

Tests cover:
- UUID generation
- GUID encoding/decoding
- Format validation
- Prefix-checked parsing
- Resolution of request GUIDs to lookups
"""

import uuid

import pytest

from backend.src.services.exceptions import NotFoundError
from backend.src.services.guid import (
    GuidService,
    ENTITY_PREFIXES,
)


class TestGuidGeneration:
    """Tests for UUID generation."""

    def test_generate_uuid_is_unique(self):
        uuids = [GuidService.generate_uuid() for _ in range(100)]
        assert len(set(uuids)) == 100

    def test_generate_uuid_is_version_7(self):
        """Generated UUIDs are time-ordered UUIDv7."""
        assert GuidService.generate_uuid().version == 7


class TestGuidEncoding:
    """Tests for GUID encoding."""

    def test_encode_uuid_with_valid_prefix(self):
        test_uuid = GuidService.generate_uuid()

        for prefix in ENTITY_PREFIXES.keys():
            result = GuidService.encode_uuid(test_uuid, prefix)
            assert result.startswith(f"{prefix}_")
            assert len(result) == 30  # 3 (prefix) + 1 (_) + 26 (base32)
            assert result == result.lower()

    def test_encode_uuid_invalid_prefix(self):
        with pytest.raises(ValueError) as exc_info:
            GuidService.encode_uuid(GuidService.generate_uuid(), "col")

        assert "Invalid prefix" in str(exc_info.value)

    def test_decode_returns_original_uuid(self):
        original = GuidService.generate_uuid()
        guid = GuidService.encode_uuid(original, "evt")

        prefix, decoded = GuidService.decode_guid(guid.upper())

        assert prefix == "evt"
        assert decoded == original

    def test_decode_invalid_format_raises(self):
        invalid_ids = [
            "",
            "invalid",
            "evt_123",
            "evt_" + "A" * 27,
            "xxx_" + "A" * 26,
            "evt-" + "A" * 26,
        ]

        for invalid_id in invalid_ids:
            with pytest.raises(ValueError):
                GuidService.decode_guid(invalid_id)


class TestGuidValidation:
    """Tests for GUID validation and parsing."""

    def test_validate_with_expected_prefix(self):
        guid = GuidService.encode_uuid(GuidService.generate_uuid(), "par")

        assert GuidService.validate_guid(guid) is True
        assert GuidService.validate_guid(guid, "par") is True
        assert GuidService.validate_guid(guid, "evt") is False

    def test_validate_rejects_none_and_garbage(self):
        assert GuidService.validate_guid(None) is False
        assert GuidService.validate_guid("par_") is False

    def test_parse_guid_prefix_mismatch(self):
        guid = GuidService.encode_uuid(GuidService.generate_uuid(), "tsk")

        with pytest.raises(ValueError) as exc_info:
            GuidService.parse_guid(guid, "evt")

        assert "prefix mismatch" in str(exc_info.value)

    def test_model_guid_matches_service_encoding(self, sample_event):
        event = sample_event()

        assert event.guid == GuidService.encode_uuid(event.uuid, "evt")
        assert GuidService.parse_guid(event.guid, "evt") == event.uuid
        assert isinstance(event.uuid, uuid.UUID)


class TestGuidResolve:
    """Tests for request-path GUID resolution."""

    def test_resolve_returns_uuid(self):
        value = GuidService.generate_uuid()

        assert GuidService.resolve(GuidService.encode_uuid(value, "sch"), "sch") == value

    @pytest.mark.parametrize("guid", [
        "not-a-guid",
        "par_" + "0" * 26,  # another entity's prefix
        "evt_" + "z" * 26,  # more than 128 bits
    ])
    def test_unusable_guid_is_not_found(self, guid):
        with pytest.raises(NotFoundError) as exc_info:
            GuidService.resolve(guid, "evt")

        assert exc_info.value.resource == "Event"
        assert exc_info.value.identifier == guid
