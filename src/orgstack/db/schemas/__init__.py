"""Pydantic schemas for requests and responses."""

from .genesis import (
    FullGenesisResponse,
    GenesisRequest,
    GenesisResponse,
    PingResponse,
    TestResponse,
    UserResponse,
)
from .org import (
    APIKeyResponse,
    AppResponse,
    AuditResponse,
    CreateAppRequest,
    CreateOrgRequest,
    DeleteResponse,
    OrgResponse,
    UpdateOrgRequest,
)

__all__ = [
    "APIKeyResponse",
    "AppResponse",
    "AuditResponse",
    "CreateAppRequest",
    "CreateOrgRequest",
    "DeleteResponse",
    "OrgResponse",
    "UpdateOrgRequest",
    "GenesisRequest",
    "GenesisResponse",
    "TestResponse",
    "FullGenesisResponse",
    "UserResponse",
    "PingResponse",
]
