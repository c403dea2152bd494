"""Wiring of the provisioning services from settings.

Usage:
    engine = create_engine_from_settings(settings)
    services = create_services(create_session_factory(engine), settings)
    await services.genesis.seed(request)
"""

from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from orgstack.config.settings import Settings, get_settings
from orgstack.core.encryption import load_encryption_key
from orgstack.core.secure import CryptoRandomGenerator, RandomStringGenerator
from orgstack.db.datastore import Datastore
from orgstack.services.app import AppService
from orgstack.services.genesis import GenesisService
from orgstack.services.org import OrgService
from orgstack.services.ping import PingService


@dataclass(frozen=True, slots=True)
class ServiceRegistry:
    """Services sharing one datastore, random source and encryption key."""

    datastore: Datastore
    org: OrgService
    app: AppService
    genesis: GenesisService
    ping: PingService


def create_services(
    session_factory: async_sessionmaker[AsyncSession],
    settings: Settings | None = None,
    key_generator: RandomStringGenerator | None = None,
    encryption_key: bytes | None = None,
) -> ServiceRegistry:
    """Build every service from settings.

    Args:
        session_factory: Factory for sessions bound to the database engine
        settings: Settings to read API key policy and the encryption key from
        key_generator: Random source for API keys (default: CSPRNG)
        encryption_key: Overrides ENCRYPTION_KEY from settings

    Raises:
        EncryptionKeyError: If no valid encryption key is available
    """
    settings = settings or get_settings()
    key_generator = key_generator or CryptoRandomGenerator()
    if encryption_key is None:
        encryption_key = load_encryption_key(settings)

    datastore = Datastore(session_factory)
    key_policy = {
        "key_lifetime": timedelta(days=settings.api_key_lifetime_days),
        "key_length": settings.api_key_length,
    }
    return ServiceRegistry(
        datastore=datastore,
        org=OrgService(datastore, key_generator, encryption_key, **key_policy),
        app=AppService(datastore, key_generator, encryption_key, **key_policy),
        genesis=GenesisService(
            datastore, key_generator, encryption_key, key_length=settings.api_key_length
        ),
        ping=PingService(datastore),
    )
