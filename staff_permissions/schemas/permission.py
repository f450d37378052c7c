"""Schemas for the staff permission assignment API."""
import enum
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator


class PermissionType(str, enum.Enum):
    MODULE = "module"
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
    VIEW = "view"
    SHARE = "share"


class Permission(BaseModel):
    """One catalog entry. Immutable once loaded."""
    id: int
    module: str
    name: str
    title: str = ""
    description: str = ""
    type: PermissionType

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value):
        """Accept 'Module', ' view ' etc; anything outside the enum is rejected."""
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("title", "description", mode="before")
    @classmethod
    def none_to_empty(cls, value):
        return "" if value is None else value

    @property
    def is_module(self) -> bool:
        return self.type is PermissionType.MODULE

    class Config:
        frozen = True


# Deduplicated, arrival-ordered union of every page loaded so far
Catalog = Tuple[Permission, ...]


class CatalogPage(BaseModel):
    """One page of the permission catalog"""
    items: List[Permission] = Field(default_factory=list)
    current_page: int = 1
    last_page: Optional[int] = None
    per_page: Optional[int] = None
    next_page_url: Optional[str] = None

    @property
    def has_next(self) -> bool:
        """Whether the server has more pages after this one.

        Prefers next_page_url, then current_page/last_page, and finally
        treats a full page as a sign that another one follows.
        """
        if self.next_page_url:
            return True
        if self.last_page is not None:
            return self.current_page < self.last_page
        if self.items and self.per_page:
            return len(self.items) == self.per_page
        return False


class AssignedPermissions(BaseModel):
    """Permissions currently granted to one staff member"""
    staff_id: int
    items: List[Permission] = Field(default_factory=list)

    @property
    def ids(self) -> frozenset:
        return frozenset(p.id for p in self.items)


class AssignPermissionsRequest(BaseModel):
    """Full-replace payload for the assign endpoint"""
    staff_id: int
    permission_ids: List[int]


class AssignPermissionsResult(BaseModel):
    status: Optional[int] = None
    message: Optional[str] = None
    data: Optional[Any] = None

    @property
    def succeeded(self) -> bool:
        return self.status == 200 or self.data is not None
