"""Pydantic schemas for the genesis bootstrap."""

from pydantic import BaseModel, Field

from orgstack.db.schemas.org import AppResponse, OrgResponse
from orgstack.domain.models import User


class GenesisRequest(BaseModel):
    """Seed user details for the genesis and test orgs."""

    seed_username: str = Field(..., min_length=1, max_length=250)
    seed_user_first_name: str = Field(..., min_length=1, max_length=250)
    seed_user_last_name: str = Field(..., min_length=1, max_length=250)

    model_config = {"str_strip_whitespace": True}


class UserResponse(BaseModel):
    """Schema for user responses."""

    username: str
    first_name: str
    last_name: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            username=user.username,
            first_name=user.first_name,
            last_name=user.last_name,
        )


class GenesisResponse(BaseModel):
    """The genesis org, its app and seed user."""

    org: OrgResponse
    app: AppResponse
    user: UserResponse


class TestResponse(BaseModel):
    """The test org, its app and seed user."""

    __test__ = False  # not a pytest test class

    org: OrgResponse
    app: AppResponse
    user: UserResponse


class FullGenesisResponse(BaseModel):
    """Both bundles written by the genesis bootstrap."""

    genesis: GenesisResponse
    test: TestResponse


class PingResponse(BaseModel):
    """Database reachability."""

    db_up: bool
