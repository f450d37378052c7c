import pytest
from pydantic import ValidationError

from staff_permissions.schemas.permission import (
    AssignPermissionsResult,
    CatalogPage,
    Permission,
    PermissionType,
)


def record(**overrides):
    data = {
        "id": 1,
        "module": "sales_invoice",
        "name": "sales_invoice.management",
        "title": "Sales Invoice Management",
        "description": "To Open Sales Invoice Management",
        "type": "module",
    }
    data.update(overrides)
    return data


def test_type_is_normalized():
    assert Permission.model_validate(record(type=" Module ")).type is PermissionType.MODULE
    assert Permission.model_validate(record(type="SHARE")).type is PermissionType.SHARE


def test_unknown_type_is_rejected():
    with pytest.raises(ValidationError):
        Permission.model_validate(record(type="approve"))


def test_missing_text_fields_default_to_empty():
    permission = Permission.model_validate(record(title=None, description=None))
    assert permission.title == ""
    assert permission.description == ""


def test_permission_is_immutable():
    permission = Permission.model_validate(record())
    with pytest.raises(ValidationError):
        permission.name = "other"


def test_extra_server_fields_are_ignored():
    permission = Permission.model_validate(record(created_at="2024-01-01", guard_name="api"))
    assert permission.id == 1


def test_has_next_prefers_next_page_url():
    assert CatalogPage(current_page=3, last_page=3, next_page_url="http://x?page=4").has_next


def test_has_next_from_page_numbers():
    assert CatalogPage(current_page=1, last_page=2).has_next
    assert not CatalogPage(current_page=2, last_page=2).has_next


def test_has_next_falls_back_to_full_page():
    items = [Permission.model_validate(record(id=i)) for i in range(3)]
    assert CatalogPage(items=items, per_page=3).has_next
    assert not CatalogPage(items=items[:2], per_page=3).has_next
    assert not CatalogPage(items=[], per_page=3).has_next


def test_assign_result_success_rules():
    assert AssignPermissionsResult(status=200).succeeded
    assert AssignPermissionsResult(data={"staff_id": 5}).succeeded
    assert not AssignPermissionsResult(message="nope").succeeded
