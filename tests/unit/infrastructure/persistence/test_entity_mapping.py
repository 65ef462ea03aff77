"""Unit tests for entity <-> document mapping."""

from datetime import datetime, timedelta, timezone

import pytest

from identity_docstore.domain.identity.core.entities import (
    IdentityUser,
    UserClaim,
    UserLogin,
    UserToken,
)
from identity_docstore.domain.identity.core.exceptions import MappingError
from identity_docstore.infrastructure.persistence.mapping import (
    EntityMapper,
    datetime_to_iso,
    iso_to_datetime,
)


class TestDatetimeHelpers:
    """Test ISO conversion helpers."""

    def test_datetime_to_iso_converts_to_utc(self) -> None:
        """Offsets are normalized to UTC before formatting."""
        dt = datetime(2030, 5, 1, 14, 30, tzinfo=timezone(timedelta(hours=2)))

        assert datetime_to_iso(dt) == "2030-05-01T12:30:00+00:00"

    def test_datetime_to_iso_rejects_naive(self) -> None:
        with pytest.raises(ValueError, match="timezone-aware"):
            datetime_to_iso(datetime(2030, 5, 1))

    def test_iso_to_datetime_assumes_utc(self) -> None:
        """Strings without offset are read as UTC."""
        assert iso_to_datetime("2030-05-01T12:30:00") == datetime(
            2030, 5, 1, 12, 30, tzinfo=timezone.utc
        )


class TestToDocument:
    """Test EntityMapper.to_document."""

    def test_projects_every_declared_field(self) -> None:
        """Document keys are exactly the entity's declared fields."""
        user = IdentityUser(user_name="alice")
        document = EntityMapper.to_document(user)

        assert set(document) == set(IdentityUser.model_fields)
        assert document["user_name"] == "alice"
        assert document["email"] is None
        assert document["access_failed_count"] == 0

    def test_datetime_stored_as_iso(self) -> None:
        user = IdentityUser(lockout_end=datetime(2030, 1, 1, tzinfo=timezone.utc))

        assert EntityMapper.to_document(user)["lockout_end"] == "2030-01-01T00:00:00+00:00"

    def test_claim_document_shape(self) -> None:
        document = EntityMapper.to_document(
            UserClaim(user_id="u1", claim_type="role", claim_value="admin")
        )

        assert document == {"user_id": "u1", "claim_type": "role", "claim_value": "admin"}


class TestFromDocument:
    """Test EntityMapper.from_document."""

    def test_round_trip_user(self) -> None:
        """Every field survives to_document / from_document."""
        user = IdentityUser(
            user_name="alice",
            normalized_user_name="ALICE",
            email="alice@example.com",
            normalized_email="ALICE@EXAMPLE.COM",
            email_confirmed=True,
            password_hash="AQAAAAEAACcQAAAAE...",
            security_stamp="sec",
            phone_number="+39 333 0000000",
            phone_number_confirmed=True,
            two_factor_enabled=True,
            lockout_end=datetime(2030, 1, 1, 8, 15, 30, 123000, tzinfo=timezone.utc),
            lockout_enabled=True,
            access_failed_count=3,
        )

        restored = EntityMapper.from_document(IdentityUser, EntityMapper.to_document(user))

        assert restored == user

    def test_round_trip_edge_values(self) -> None:
        """Empty strings, unicode and long ids are preserved."""
        user = IdentityUser(id="x" * 512, user_name="", email="jürgen@exämple.de")

        restored = EntityMapper.from_document(IdentityUser, EntityMapper.to_document(user))

        assert restored.id == "x" * 512
        assert restored.user_name == ""
        assert restored.email == "jürgen@exämple.de"

    def test_round_trip_dependents(self) -> None:
        for entity in (
            UserClaim(user_id="u1", claim_type="role", claim_value="admin"),
            UserLogin(user_id="u1", login_provider="Google", provider_key="k"),
            UserToken(user_id="u1", login_provider="Google", name="access", value=None),
        ):
            restored = EntityMapper.from_document(type(entity), EntityMapper.to_document(entity))
            assert restored == entity

    def test_absent_fields_take_defaults(self) -> None:
        """Partial documents map; missing fields get entity defaults."""
        user = EntityMapper.from_document(IdentityUser, {"id": "u1", "user_name": "alice"})

        assert user.id == "u1"
        assert user.user_name == "alice"
        assert user.email is None
        assert user.lockout_enabled is False
        assert user.access_failed_count == 0

    def test_unknown_fields_ignored(self) -> None:
        claim = EntityMapper.from_document(
            UserClaim, {"user_id": "u1", "claim_type": "role", "legacy": 1}
        )

        assert claim.claim_type == "role"

    def test_naive_stored_datetime_is_utc(self) -> None:
        """BSON dates (naive) are accepted and read as UTC."""
        user = EntityMapper.from_document(
            IdentityUser, {"id": "u1", "lockout_end": datetime(2030, 1, 1)}
        )

        assert user.lockout_end == datetime(2030, 1, 1, tzinfo=timezone.utc)

    def test_string_for_int_raises(self) -> None:
        """No lenient coercion: "3" is not an int."""
        with pytest.raises(MappingError) as exc_info:
            EntityMapper.from_document(IdentityUser, {"id": "u1", "access_failed_count": "3"})

        assert exc_info.value.fields == ["access_failed_count"]
        assert exc_info.value.entity_type == "IdentityUser"

    def test_int_for_bool_raises(self) -> None:
        with pytest.raises(MappingError) as exc_info:
            EntityMapper.from_document(IdentityUser, {"id": "u1", "email_confirmed": 1})

        assert exc_info.value.fields == ["email_confirmed"]

    def test_bad_datetime_raises(self) -> None:
        with pytest.raises(MappingError) as exc_info:
            EntityMapper.from_document(IdentityUser, {"id": "u1", "lockout_end": "not-a-date"})

        assert exc_info.value.fields == ["lockout_end"]

    def test_non_string_datetime_raises(self) -> None:
        with pytest.raises(MappingError) as exc_info:
            EntityMapper.from_document(IdentityUser, {"id": "u1", "lockout_end": 1700000000})

        assert exc_info.value.fields == ["lockout_end"]

    def test_multiple_bad_fields_reported(self) -> None:
        with pytest.raises(MappingError) as exc_info:
            EntityMapper.from_document(
                IdentityUser,
                {"id": "u1", "email_confirmed": "yes", "access_failed_count": 1.5},
            )

        assert exc_info.value.fields == ["access_failed_count", "email_confirmed"]
