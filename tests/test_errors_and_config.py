"""Unit tests for the error taxonomy and settings."""

import pytest
from sqlalchemy.exc import IntegrityError

from fintrack.core.config import Settings
from fintrack.core.errors import (
    AccessError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from fintrack.models.entity import EntityCreate
from fintrack.services.base import commit_or_rollback, parse


def test_error_codes():
    assert NotFoundError().code == "not_found"
    assert str(NotFoundError()) == "not_found"
    assert NotFoundError("Entity not found").message == "Entity not found"
    assert isinstance(ConflictError({"x": ["taken"]}), AccessError)


def test_field_errors_are_summarized():
    err = ValidationError({"permission": ["is invalid"], "name": ("too short", "blank")})
    assert err.errors == {"permission": ["is invalid"], "name": ["too short", "blank"]}
    assert err.message == "permission is invalid; name too short, blank"


def test_parse_converts_schema_errors():
    with pytest.raises(ValidationError) as exc_info:
        parse(EntityCreate, {"type": "company"})
    assert list(exc_info.value.errors) == ["name"]


def test_parse_passes_through_validated_instances():
    body = EntityCreate(name="Acme")
    assert parse(EntityCreate, body) is body


def test_settings_defaults():
    settings = Settings()
    assert settings.tenant_prefix == "entity_"
    assert settings.default_page_size == 20
    assert settings.max_page_size == 100


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("TENANT_PREFIX", "org_")
    monkeypatch.setenv("MAX_PAGE_SIZE", "250")
    settings = Settings()
    assert settings.tenant_prefix == "org_"
    assert settings.max_page_size == 250


class _FailingSession:
    """Stands in for an AsyncSession whose commit hits the database and fails."""

    def __init__(self):
        self.rolled_back = False

    async def commit(self):
        raise IntegrityError("UPDATE entities", {}, Exception("NOT NULL constraint failed"))

    async def rollback(self):
        self.rolled_back = True


@pytest.mark.asyncio
async def test_commit_or_rollback_rolls_back_failed_commit():
    session = _FailingSession()
    with pytest.raises(IntegrityError):
        await commit_or_rollback(session)
    assert session.rolled_back
