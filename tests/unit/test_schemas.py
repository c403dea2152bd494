"""Unit tests for request and response schemas."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError as PydanticValidationError
from uuid_utils.compat import uuid7

from orgstack.core.audit import new_audit, new_simple_audit
from orgstack.db.schemas import (
    AppResponse,
    CreateOrgRequest,
    GenesisRequest,
    OrgResponse,
)
from orgstack.domain import App, Person, Profile, User, new_org, new_org_kind


def test_create_org_request_strips_whitespace():
    request = CreateOrgRequest(name="  Acme ", kind=" standard ", create_app={"name": " Portal "})

    assert request.name == "Acme"
    assert request.kind == "standard"
    assert request.create_app.name == "Portal"
    assert request.description == ""


def test_genesis_request_requires_all_fields():
    with pytest.raises(PydanticValidationError):
        GenesisRequest(seed_username="root", seed_user_first_name="Otto", seed_user_last_name="")


def test_responses_expose_external_ids_only():
    """Test internal identifiers never appear in responses."""
    org = new_org("Acme", "", new_org_kind("standard", "std"))
    profile = Profile(
        id=uuid7(), person=Person(id=uuid7(), org_id=org.id), first_name="Otto", last_name="Maddox"
    )
    user = User(id=uuid7(), username="root", org_id=org.id, profile=profile)
    app = App(id=uuid7(), external_id="app-extl", org_id=org.id, name="Portal", description="")
    audit = new_simple_audit(new_audit(app, user, datetime(2026, 1, 1, tzinfo=UTC)))

    org_json = OrgResponse.from_org(org, audit, AppResponse.from_app(app, audit)).model_dump_json()

    for internal in (org.id, org.kind.id, app.id, user.id, profile.id):
        assert str(internal) not in org_json
    assert org.external_id in org_json
    assert '"user_first_name":"Otto"' in org_json
