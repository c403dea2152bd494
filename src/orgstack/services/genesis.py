"""Genesis bootstrap.

Seeds an empty store with the org kinds, the genesis org (the
administrative root) and a test org, each with one app and one user. The
bootstrap runs at most once: a pre-check refuses to run when genesis data
already exists, and the unique external ID of the genesis kind rejects a
concurrent second run at commit.

Usage:
    service = GenesisService(datastore, CryptoRandomGenerator(), key)
    response = await service.seed({
        "seed_username": "root",
        "seed_user_first_name": "Otto",
        "seed_user_last_name": "Maddox",
    })
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from orgstack.core.audit import SimpleAudit, new_audit, new_simple_audit, utc_now
from orgstack.core.exceptions import ValidationError
from orgstack.core.logging import LogContext, get_logger
from orgstack.core.secure import DEFAULT_API_KEY_LENGTH, RandomStringGenerator
from orgstack.db.datastore import Datastore
from orgstack.db.repositories import OrgKindRepository, OrgRepository
from orgstack.db.schemas import (
    AppResponse,
    FullGenesisResponse,
    GenesisRequest,
    GenesisResponse,
    OrgResponse,
    TestResponse,
    UserResponse,
)
from orgstack.domain.factory import new_app, new_org, new_org_kind, new_org_profile, new_user
from orgstack.domain.models import App, Org, User
from orgstack.services.common import (
    GENESIS_KIND,
    STANDARD_KIND,
    TEST_KIND,
    create_app_tx,
    create_org_kind_tx,
    create_org_tx,
    create_user_tx,
    parse_request,
)

logger = get_logger(__name__)

GENESIS_KEY_DEACTIVATION = datetime(2099, 12, 31, tzinfo=UTC)

KIND_DESCRIPTIONS = {
    GENESIS_KIND: (
        "The Principal org represents the first organization created in the database "
        "and exists purely for the administrative purpose of creating other "
        "organizations, apps and users."
    ),
    TEST_KIND: "The test org is used strictly for testing",
    STANDARD_KIND: "The standard org is used for myriad business purposes",
}

GENESIS_ORG_NAME = "genesis"
GENESIS_ORG_DESCRIPTION = (
    "The genesis org represents the first organization created in the database "
    "and exists purely for the administrative purpose of creating other "
    "organizations, apps and users."
)
GENESIS_APP_NAME = "WOPR"
GENESIS_APP_DESCRIPTION = (
    "App created as part of Genesis event. To be used solely for creating "
    "other apps, orgs and users."
)
TEST_ORG_NAME = "test"
TEST_ORG_DESCRIPTION = "The test org is self explanatory"
TEST_APP_NAME = "test"
TEST_APP_DESCRIPTION = "The test app is self explanatory"

ALREADY_SEEDED = "No prior data should exist when executing Genesis Service"


class GenesisState(str, Enum):
    """Progress of a seed run."""

    NOT_STARTED = "not_started"
    KINDS_SEEDED = "kinds_seeded"
    GENESIS_ENTITIES_WRITTEN = "genesis_entities_written"
    TEST_ENTITIES_WRITTEN = "test_entities_written"
    COMMITTED = "committed"
    ABORTED = "aborted"


@dataclass(frozen=True, slots=True)
class _SeedSet:
    org: Org
    app: App
    user: User
    audit: SimpleAudit


class GenesisService:
    """Bootstraps an empty store.

    Attributes:
        datastore: Transaction coordinator
        key_generator: Random source for the seeded apps' API keys
        encryption_key: 32-byte key API keys are encrypted with
        clock: Returns the current timezone-aware moment
        key_length: Characters of random material per API key
        state: Where the latest seed run got to
    """

    def __init__(
        self,
        datastore: Datastore,
        key_generator: RandomStringGenerator,
        encryption_key: bytes,
        clock: Callable[[], datetime] = utc_now,
        key_length: int = DEFAULT_API_KEY_LENGTH,
    ):
        self.datastore = datastore
        self.key_generator = key_generator
        self.encryption_key = encryption_key
        self.clock = clock
        self.key_length = key_length
        self.state = GenesisState.NOT_STARTED

    async def seed(self, request: GenesisRequest | Mapping[str, Any]) -> FullGenesisResponse:
        """Seed the org kinds, the genesis set and the test set.

        Everything is written in a single transaction: either all of it is
        committed or none of it is.

        Args:
            request: Seed user details, used for both the genesis and test users

        Returns:
            The genesis and test orgs with their apps (plaintext keys) and users

        Raises:
            ValidationError: Invalid request, or genesis data already exists
            InternalError: An API key could not be issued
            DatabaseError: A write failed or affected an unexpected row count
        """
        self.state = GenesisState.NOT_STARTED
        request = parse_request(GenesisRequest, request)

        with LogContext(operation="genesis_seed"):
            await self._ensure_not_seeded()

            try:
                genesis_set, test_set = await self._seed(request)
            except BaseException:
                self.state = GenesisState.ABORTED
                raise

            self.state = GenesisState.COMMITTED
            logger.info(
                "genesis_seeded",
                genesis_org_extl_id=genesis_set.org.external_id,
                test_org_extl_id=test_set.org.external_id,
            )

        return FullGenesisResponse(
            genesis=GenesisResponse(**_bundle(genesis_set)),
            test=TestResponse(**_bundle(test_set)),
        )

    async def _ensure_not_seeded(self) -> None:
        async with self.datastore.session() as session:
            kind = await OrgKindRepository(session).find_by_extl_id(GENESIS_KIND)
            orgs = await OrgRepository(session).find_by_kind_extl_id(GENESIS_KIND)
        if kind is not None or orgs:
            logger.warning("genesis_already_seeded")
            raise ValidationError(ALREADY_SEEDED)

    async def _seed(self, request: GenesisRequest) -> tuple[_SeedSet, _SeedSet]:
        moment = self.clock()
        kinds = {
            extl_id: new_org_kind(extl_id, desc) for extl_id, desc in KIND_DESCRIPTIONS.items()
        }

        genesis_set = self._build_set(
            request,
            org=new_org(GENESIS_ORG_NAME, GENESIS_ORG_DESCRIPTION, kinds[GENESIS_KIND]),
            app_name=GENESIS_APP_NAME,
            app_description=GENESIS_APP_DESCRIPTION,
            moment=moment,
        )
        test_set = self._build_set(
            request,
            org=new_org(TEST_ORG_NAME, TEST_ORG_DESCRIPTION, kinds[TEST_KIND]),
            app_name=TEST_APP_NAME,
            app_description=TEST_APP_DESCRIPTION,
            moment=moment,
        )

        async with self.datastore.transaction() as tx:
            # Kinds carry the genesis provenance; each set is stamped by its own app and user
            for kind in kinds.values():
                await create_org_kind_tx(tx, kind, genesis_set.audit.create)
            self.state = GenesisState.KINDS_SEEDED

            await _write_set(tx, genesis_set)
            self.state = GenesisState.GENESIS_ENTITIES_WRITTEN

            await _write_set(tx, test_set)
            self.state = GenesisState.TEST_ENTITIES_WRITTEN

        return genesis_set, test_set

    def _build_set(
        self,
        request: GenesisRequest,
        org: Org,
        app_name: str,
        app_description: str,
        moment: datetime,
    ) -> _SeedSet:
        app = new_app(
            app_name,
            app_description,
            org,
            self.key_generator,
            self.encryption_key,
            GENESIS_KEY_DEACTIVATION,
            key_length=self.key_length,
        )
        profile = new_org_profile(org, request.seed_user_first_name, request.seed_user_last_name)
        user = new_user(request.seed_username, org, profile)
        audit = new_simple_audit(new_audit(app, user, moment))
        return _SeedSet(org=org, app=app, user=user, audit=audit)


async def _write_set(tx: AsyncSession, seed_set: _SeedSet) -> None:
    await create_org_tx(tx, seed_set.org, seed_set.audit)
    await create_app_tx(tx, seed_set.app, seed_set.audit)
    await create_user_tx(tx, seed_set.user, seed_set.audit.create)


def _bundle(seed_set: _SeedSet) -> dict[str, Any]:
    return {
        "org": OrgResponse.from_org(seed_set.org, seed_set.audit),
        "app": AppResponse.from_app(seed_set.app, seed_set.audit),
        "user": UserResponse.from_user(seed_set.user),
    }
