# scanlation_authz/schemas.py
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from scanlation_authz.database.models import GroupRole, WorkKind


class BaseSchema(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


# --- Groups ---
class GroupCreate(BaseSchema):
    name: str = Field(min_length=1, max_length=100)
    slug: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = None


class GroupUpdate(BaseSchema):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    slug: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = None


class MemberSet(BaseSchema):
    role: GroupRole = GroupRole.MEMBER


class InviteCreate(BaseSchema):
    email: str = Field(min_length=3, max_length=254)

    @field_validator("email")
    @classmethod
    def must_look_like_email(cls, value: str) -> str:
        if "@" not in value:
            raise ValueError("email must contain '@'")
        return value.lower()


# --- Works / Claims ---
class WorkCreate(BaseSchema):
    kind: WorkKind
    title: str = Field(min_length=1, max_length=255)
    group_id: Optional[int] = None
    slug: Optional[str] = Field(default=None, max_length=191)
    description: Optional[str] = None
    status: str = "ongoing"


class WorkUpdate(BaseSchema):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[str] = None


class ClaimCreate(BaseSchema):
    group_id: int


# --- Chapters ---
class ChapterBatchCreate(BaseSchema):
    number: int = Field(ge=1)
    group_ids: List[int] = Field(min_length=1)
    title: Optional[str] = Field(default=None, max_length=255)
    content: List[str] = Field(default_factory=list)


class ChapterUpdate(BaseSchema):
    number: Optional[int] = Field(default=None, ge=1)
    title: Optional[str] = Field(default=None, max_length=255)
    content: Optional[List[str]] = None


# --- Authors ---
class AuthorCreate(BaseSchema):
    name: str = Field(min_length=1, max_length=100)
    bio: Optional[str] = None


class SelfAuthorCreate(BaseSchema):
    bio: Optional[str] = None


# --- Roles ---
class RoleCreate(BaseSchema):
    name: str = Field(min_length=1, max_length=50)
    description: Optional[str] = None
    permissions: List[str] = Field(default_factory=list)


class RoleUpdate(BaseSchema):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    description: Optional[str] = None


class RolePermissionsSet(BaseSchema):
    permissions: List[str]


class UserRoleAssign(BaseSchema):
    role_id: Optional[int] = None
