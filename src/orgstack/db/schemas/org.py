"""Pydantic schemas for org and app provisioning."""

from datetime import datetime

from pydantic import BaseModel, Field

from orgstack.core.audit import Audit, SimpleAudit
from orgstack.domain.models import APIKey, App, Org


class CreateAppRequest(BaseModel):
    """Schema for creating an app."""

    name: str = Field(..., min_length=1, max_length=500, description="App display name")
    description: str = Field("", max_length=4000)

    model_config = {"str_strip_whitespace": True}


class CreateOrgRequest(BaseModel):
    """Schema for creating an org, optionally together with its first app."""

    name: str = Field(..., min_length=1, max_length=500, description="Org display name")
    description: str = Field("", max_length=4000)
    kind: str = Field(..., min_length=1, max_length=100, description="Org kind external ID")
    create_app: CreateAppRequest | None = None

    model_config = {"str_strip_whitespace": True}


class UpdateOrgRequest(BaseModel):
    """Schema for updating an org's name and description."""

    external_id: str = Field(..., min_length=1, max_length=250)
    name: str = Field(..., min_length=1, max_length=500)
    description: str = Field("", max_length=4000)

    model_config = {"str_strip_whitespace": True}


class AuditResponse(BaseModel):
    """Provenance of one mutation, by external identifiers only."""

    app_external_id: str
    user_first_name: str | None = None
    user_last_name: str | None = None
    moment: datetime

    @classmethod
    def from_audit(cls, audit: Audit) -> "AuditResponse":
        return cls(
            app_external_id=audit.app.external_id,
            user_first_name=audit.user.first_name if audit.user else None,
            user_last_name=audit.user.last_name if audit.user else None,
            moment=audit.moment,
        )


class APIKeyResponse(BaseModel):
    """An API key as shown to its owner."""

    key: str
    deactivation_date: datetime

    @classmethod
    def from_key(cls, key: APIKey) -> "APIKeyResponse":
        return cls(key=key.key, deactivation_date=key.deactivation)


class AppResponse(BaseModel):
    """Schema for app responses."""

    external_id: str
    name: str
    description: str
    create_audit: AuditResponse
    update_audit: AuditResponse
    api_keys: list[APIKeyResponse] = Field(default_factory=list)

    @classmethod
    def from_app(cls, app: App, simple_audit: SimpleAudit) -> "AppResponse":
        return cls(
            external_id=app.external_id,
            name=app.name,
            description=app.description,
            create_audit=AuditResponse.from_audit(simple_audit.create),
            update_audit=AuditResponse.from_audit(simple_audit.update),
            api_keys=[APIKeyResponse.from_key(k) for k in app.api_keys],
        )


class OrgResponse(BaseModel):
    """Schema for org responses."""

    external_id: str
    name: str
    description: str
    kind_external_id: str
    create_audit: AuditResponse
    update_audit: AuditResponse
    app: AppResponse | None = None

    @classmethod
    def from_org(
        cls,
        org: Org,
        simple_audit: SimpleAudit,
        app: AppResponse | None = None,
    ) -> "OrgResponse":
        return cls(
            external_id=org.external_id,
            name=org.name,
            description=org.description,
            kind_external_id=org.kind.external_id,
            create_audit=AuditResponse.from_audit(simple_audit.create),
            update_audit=AuditResponse.from_audit(simple_audit.update),
            app=app,
        )


class DeleteResponse(BaseModel):
    """Schema for delete responses."""

    external_id: str
    deleted: bool
