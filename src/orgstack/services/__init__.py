"""Provisioning services.

Each service method runs one operation in its own transaction and returns
a response schema or raises a :class:`~orgstack.core.exceptions.ProvisioningError`.
"""

from .app import AppService
from .common import GENESIS_KIND, STANDARD_KIND, TEST_KIND
from .genesis import GENESIS_KEY_DEACTIVATION, GenesisService, GenesisState
from .org import OrgService
from .ping import PingService
from .registry import ServiceRegistry, create_services

__all__ = [
    "AppService",
    "GenesisService",
    "GenesisState",
    "OrgService",
    "PingService",
    "ServiceRegistry",
    "create_services",
    "GENESIS_KEY_DEACTIVATION",
    "GENESIS_KIND",
    "STANDARD_KIND",
    "TEST_KIND",
]
