import httpx
import pytest

from staff_permissions.config import Settings
from staff_permissions.schemas.permission import Permission
from staff_permissions.services.auth_service import StaticTokenProvider
from staff_permissions.services.permission_api import PermissionApiService
from tests.fake_backend import create_fake_backend

TEST_TOKEN = "test-token"

CATALOG_RECORDS = [
    {"id": 1, "module": "sales_invoice", "name": "sales_invoice.management",
     "title": "Sales Invoice Management", "description": "To Open Sales Invoice Management", "type": "module"},
    {"id": 2, "module": "sales_invoice", "name": "sales_invoice.create",
     "title": "Create Sales Invoice", "description": "To create sales invoice", "type": "create"},
    {"id": 4, "module": "sales_invoice", "name": "sales_invoice.edit",
     "title": "Edit Sales Invoice", "description": "To edit sales invoice", "type": "edit"},
    {"id": 7, "module": "items", "name": "items.management",
     "title": "Items Management", "description": "To Open Items Management", "type": "module"},
    {"id": 8, "module": "items", "name": "items.create",
     "title": "Create Items", "description": "To create items", "type": "create"},
    {"id": 11, "module": "items", "name": "items.view",
     "title": "View Items", "description": "To view items", "type": "view"},
]


def make_permission(id, module="items", action="view", type=None, description=None, name=None):
    return Permission(
        id=id,
        module=module,
        name=name or f"{module}.{action}",
        title=f"{action.title()} {module}",
        description=description if description is not None else f"To {action} {module}",
        type=type or action,
    )


@pytest.fixture()
def catalog_records():
    return [dict(r) for r in CATALOG_RECORDS]


@pytest.fixture()
def catalog(catalog_records):
    return tuple(Permission.model_validate(r) for r in catalog_records)


@pytest.fixture()
def test_settings():
    return Settings(
        API_BASE_URL="http://testserver/api",
        AUTH_TOKEN=TEST_TOKEN,
        AUTH_TOKEN_ENCRYPTED="",
        ENCRYPTION_KEY="",
        DEFAULT_PER_PAGE=10,
    )


@pytest.fixture()
def backend(catalog_records):
    """In-memory permission backend: 3 records per page, staff 5 holds id 2."""
    return create_fake_backend(catalog_records, per_page=3, grants={5: {2}})


@pytest.fixture()
def backend_api(backend, test_settings):
    return PermissionApiService(
        token_provider=StaticTokenProvider(TEST_TOKEN),
        config=test_settings,
        transport=httpx.ASGITransport(app=backend),
    )


@pytest.fixture()
def mock_api(test_settings):
    """Factory for a service backed by an httpx.MockTransport handler."""
    def factory(handler):
        return PermissionApiService(
            token_provider=StaticTokenProvider(TEST_TOKEN),
            config=test_settings,
            transport=httpx.MockTransport(handler),
        )
    return factory
