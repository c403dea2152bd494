"""Integration tests for a full provisioning lifecycle."""

from dataclasses import replace
from datetime import timedelta

import pytest

from orgstack.core.audit import new_audit, utc_now
from orgstack.core.exceptions import NotExistError, ValidationError
from orgstack.db.repositories import AppRepository, UserRepository
from orgstack.services import GENESIS_KEY_DEACTIVATION, ServiceRegistry
from orgstack.services.common import app_from_row


@pytest.mark.asyncio
async def test_bootstrap_then_provision(services: ServiceRegistry, seed_request: dict[str, str]):
    """Test seeding, then provisioning an org end to end as the genesis app."""
    assert (await services.ping.ping()).db_up is True

    seeded = await services.genesis.seed(seed_request)
    assert seeded.genesis.app.api_keys[0].deactivation_date == GENESIS_KEY_DEACTIVATION

    # Act as the genesis app without a user, as an automated caller would
    async with services.datastore.session() as session:
        app_row = await AppRepository(session).find_by_extl_id(seeded.genesis.app.external_id)
    audit = new_audit(app_from_row(app_row), None, utc_now())

    org = await services.org.create(
        {
            "name": "Acme",
            "description": "Widgets",
            "kind": "standard",
            "create_app": {"name": "Portal", "description": "Customer portal"},
        },
        audit,
    )
    assert org.create_audit.app_external_id == seeded.genesis.app.external_id
    assert org.create_audit.user_first_name is None

    backoffice = await services.app.create(org.external_id, {"name": "Backoffice"}, audit)
    rotated = await services.app.add_key(
        backoffice.external_id, replace(audit, moment=audit.moment + timedelta(days=300))
    )
    assert len(rotated.api_keys) == 2

    renamed = await services.org.update(
        {"external_id": org.external_id, "name": "Acme Corp", "description": "Widgets"},
        replace(audit, moment=audit.moment + timedelta(hours=1)),
    )
    assert renamed.create_audit.moment == org.create_audit.moment
    assert renamed.update_audit.moment > renamed.create_audit.moment

    listed = {o.external_id: o for o in await services.org.find_all()}
    assert set(listed) == {
        seeded.genesis.org.external_id,
        seeded.test.org.external_id,
        org.external_id,
    }
    assert listed[org.external_id].name == "Acme Corp"

    await services.org.delete(org.external_id)

    with pytest.raises(NotExistError):
        await services.org.find_by_external_id(org.external_id)
    for app_extl_id in (org.app.external_id, backoffice.external_id):
        with pytest.raises(NotExistError):
            await services.app.find_by_external_id(app_extl_id)

    # The bootstrap cannot be repeated
    with pytest.raises(ValidationError):
        await services.genesis.seed(seed_request)

    async with services.datastore.session() as session:
        assert await UserRepository(session).count() == 2
