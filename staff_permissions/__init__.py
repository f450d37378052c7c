"""
Staff permission assignment manager
"""
from staff_permissions.exceptions import (
    AuthMissing,
    NetworkError,
    PermissionManagerError,
    ServerError,
    StaleOperation,
)
from staff_permissions.schemas.permission import CatalogPage, Permission, PermissionType
from staff_permissions.services.assignment_state import AssignmentState
from staff_permissions.services.catalog_service import CatalogLoader, merge_catalog
from staff_permissions.services.permission_api import PermissionApiService
from staff_permissions.services.permission_manager import PermissionManagerSession
from staff_permissions.services.permission_view import (
    ViewScope,
    compute_order,
    filter_permissions,
    visible_permissions,
)

__all__ = [
    "AuthMissing",
    "NetworkError",
    "PermissionManagerError",
    "ServerError",
    "StaleOperation",
    "CatalogPage",
    "Permission",
    "PermissionType",
    "AssignmentState",
    "CatalogLoader",
    "merge_catalog",
    "PermissionApiService",
    "PermissionManagerSession",
    "ViewScope",
    "compute_order",
    "filter_permissions",
    "visible_permissions",
]
