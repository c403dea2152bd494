"""Unit tests for the genesis bootstrap."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, patch

import pytest
from uuid_utils.compat import uuid7

from orgstack.core.audit import new_audit, utc_now
from orgstack.core.exceptions import RowCountError, ValidationError
from orgstack.core.secure import CryptoRandomGenerator
from orgstack.db.datastore import Datastore
from orgstack.db.models import UserRow
from orgstack.db.repositories import (
    APIKeyRepository,
    AppRepository,
    OrgKindRepository,
    OrgRepository,
    UserRepository,
)
from orgstack.db.schemas import FullGenesisResponse
from orgstack.domain import App, new_org_kind
from orgstack.services import (
    GENESIS_KEY_DEACTIVATION,
    GenesisService,
    GenesisState,
    ServiceRegistry,
)


async def _row_counts(datastore: Datastore) -> dict[str, int]:
    async with datastore.session() as session:
        return {
            "org_kind": await OrgKindRepository(session).count(),
            "org": await OrgRepository(session).count(),
            "app": await AppRepository(session).count(),
            "app_api_key": await APIKeyRepository(session).count(),
            "users": await UserRepository(session).count(),
        }


@pytest.mark.asyncio
async def test_seed_empty_store(services: ServiceRegistry, seed_request: dict[str, str]):
    """Test seeding writes the genesis and test sets."""
    response = await services.genesis.seed(seed_request)

    genesis, test = response.genesis, response.test
    assert genesis.org.name == "genesis"
    assert genesis.org.kind_external_id == "genesis"
    assert genesis.app.name == "WOPR"
    assert test.org.name == "test"
    assert test.org.kind_external_id == "test"
    assert test.app.name == "test"
    assert genesis.user.username == "root"
    assert test.user.username == "root"
    assert genesis.user.first_name == "Otto"
    assert test.user.last_name == "Maddox"

    for app in (genesis.app, test.app):
        assert len(app.api_keys) == 1
        assert app.api_keys[0].deactivation_date == GENESIS_KEY_DEACTIVATION


@pytest.mark.asyncio
async def test_seed_sets_stamp_their_own_provenance(
    services: ServiceRegistry, seeded: FullGenesisResponse
):
    """Test each seeded set is attributed to its own app and the seed user."""
    for bundle in (seeded.genesis, seeded.test):
        for audit in (
            bundle.org.create_audit,
            bundle.org.update_audit,
            bundle.app.create_audit,
            bundle.app.update_audit,
        ):
            assert audit.app_external_id == bundle.app.external_id
            assert audit.user_first_name == "Otto"
            assert audit.user_last_name == "Maddox"
            assert audit.moment == seeded.genesis.org.create_audit.moment

    async with services.datastore.session() as session:
        genesis_app = await AppRepository(session).find_by_extl_id(seeded.genesis.app.external_id)
        test_app = await AppRepository(session).find_by_extl_id(seeded.test.app.external_id)
        kinds = await OrgKindRepository(session).all()
        users = await UserRepository(session).all()

    assert {k.create_app_id for k in kinds} == {genesis_app.app_id}
    assert {(u.org_id, u.create_app_id) for u in users} == {
        (genesis_app.org_id, genesis_app.app_id),
        (test_app.org_id, test_app.app_id),
    }


@pytest.mark.asyncio
async def test_seed_row_counts(services: ServiceRegistry, seeded: FullGenesisResponse):
    """Test seeding writes three kinds and two of everything else."""
    assert await _row_counts(services.datastore) == {
        "org_kind": 3,
        "org": 2,
        "app": 2,
        "app_api_key": 2,
        "users": 2,
    }

    async with services.datastore.session() as session:
        kinds = {r.org_kind_extl_id for r in await OrgKindRepository(session).all()}
    assert kinds == {"genesis", "test", "standard"}


@pytest.mark.asyncio
async def test_seeded_orgs_are_readable(services: ServiceRegistry, seeded: FullGenesisResponse):
    """Test the seeded orgs can be read back through the org service."""
    orgs = await services.org.find_all()

    assert {o.external_id for o in orgs} == {
        seeded.genesis.org.external_id,
        seeded.test.org.external_id,
    }
    app = await services.app.find_by_external_id(seeded.genesis.app.external_id)
    assert app.api_keys[0].key == seeded.genesis.app.api_keys[0].key


@pytest.mark.asyncio
async def test_state_committed(services: ServiceRegistry, seed_request: dict[str, str]):
    assert services.genesis.state is GenesisState.NOT_STARTED
    await services.genesis.seed(seed_request)
    assert services.genesis.state is GenesisState.COMMITTED


@pytest.mark.asyncio
async def test_fixed_clock(
    datastore: Datastore, encryption_key: bytes, seed_request: dict[str, str]
):
    """Test one clock reading stamps the whole bootstrap."""
    moment = datetime(2026, 10, 1, 12, 0, tzinfo=UTC)
    service = GenesisService(
        datastore, CryptoRandomGenerator(), encryption_key, clock=lambda: moment
    )

    response = await service.seed(seed_request)

    assert response.genesis.org.create_audit.moment == moment
    assert response.test.app.update_audit.moment == moment


@pytest.mark.asyncio
async def test_second_seed_fails_without_writes(
    services: ServiceRegistry, seeded: FullGenesisResponse, seed_request: dict[str, str]
):
    """Test the bootstrap runs once: a second run writes nothing."""
    before = await _row_counts(services.datastore)

    with patch.object(
        services.datastore, "begin_tx", wraps=services.datastore.begin_tx
    ) as begin_tx:
        with pytest.raises(ValidationError, match="No prior data should exist"):
            await services.genesis.seed(seed_request)

    begin_tx.assert_not_called()
    assert await _row_counts(services.datastore) == before


@pytest.mark.asyncio
async def test_refused_rerun_resets_state(
    services: ServiceRegistry, seed_request: dict[str, str]
):
    """Test a refused run does not report the previous run's state."""
    await services.genesis.seed(seed_request)
    assert services.genesis.state is GenesisState.COMMITTED

    with pytest.raises(ValidationError, match="No prior data should exist"):
        await services.genesis.seed(seed_request)

    assert services.genesis.state is GenesisState.NOT_STARTED


@pytest.mark.asyncio
async def test_key_length(
    datastore: Datastore, encryption_key: bytes, seed_request: dict[str, str]
):
    service = GenesisService(datastore, CryptoRandomGenerator(), encryption_key, key_length=48)

    response = await service.seed(seed_request)

    assert len(response.genesis.app.api_keys[0].key) == 48
    assert len(response.test.app.api_keys[0].key) == 48


@pytest.mark.asyncio
async def test_seed_refused_when_genesis_kind_exists(
    services: ServiceRegistry, seed_request: dict[str, str]
):
    """Test the guard also trips when only the genesis kind exists."""
    system_app = App(id=uuid7(), external_id="system", org_id=uuid7(), name="sys", description="")
    async with services.datastore.transaction() as tx:
        await OrgKindRepository(tx).create(
            new_org_kind("genesis", "pre-existing"), new_audit(system_app, None, utc_now())
        )

    with pytest.raises(ValidationError, match="No prior data should exist"):
        await services.genesis.seed(seed_request)
    assert services.genesis.state is GenesisState.NOT_STARTED
    assert (await _row_counts(services.datastore))["org"] == 0


@pytest.mark.asyncio
async def test_failed_write_rolls_back_everything(
    services: ServiceRegistry, seed_request: dict[str, str]
):
    """Test a failed user write undoes the kinds, orgs and apps already written."""
    with patch.object(UserRepository, "create", AsyncMock(return_value=0)):
        with pytest.raises(RowCountError, match="CreateUser"):
            await services.genesis.seed(seed_request)

    assert services.genesis.state is GenesisState.ABORTED
    assert await _row_counts(services.datastore) == {
        "org_kind": 0,
        "org": 0,
        "app": 0,
        "app_api_key": 0,
        "users": 0,
    }

    # Nothing was committed, so the bootstrap can run again
    response = await services.genesis.seed(seed_request)
    assert response.genesis.app.name == "WOPR"
    assert services.genesis.state is GenesisState.COMMITTED


@pytest.mark.asyncio
async def test_failure_after_genesis_set_aborts(
    services: ServiceRegistry, seed_request: dict[str, str]
):
    """Test a failure while writing the test set aborts the whole run."""
    real_create = OrgRepository.create
    calls = 0

    async def fail_second_org(self, org, simple_audit):
        nonlocal calls
        calls += 1
        if calls == 2:
            return 0
        return await real_create(self, org, simple_audit)

    with patch.object(OrgRepository, "create", fail_second_org):
        with pytest.raises(RowCountError, match="CreateOrg"):
            await services.genesis.seed(seed_request)

    assert services.genesis.state is GenesisState.ABORTED
    assert (await _row_counts(services.datastore))["org"] == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "request_data",
    [
        None,
        {"seed_username": "root", "seed_user_first_name": "Otto"},
        {"seed_username": "   ", "seed_user_first_name": "Otto", "seed_user_last_name": "M"},
    ],
)
async def test_invalid_request(services: ServiceRegistry, request_data):
    """Test invalid seed requests are rejected before anything is read or written."""
    with pytest.raises(ValidationError):
        await services.genesis.seed(request_data)

    assert services.genesis.state is GenesisState.NOT_STARTED


@pytest.mark.asyncio
async def test_seed_user_is_in_both_orgs(services: ServiceRegistry, seeded: FullGenesisResponse):
    async with services.datastore.session() as session:
        users = await UserRepository(session).all(UserRow.username == "root")

    assert len({u.org_id for u in users}) == 2
