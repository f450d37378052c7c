"""
Permission REST API Service
"""
import logging
from typing import Any, Dict, Iterable, Optional

import httpx
from pydantic import ValidationError

from staff_permissions.config import Settings, settings as default_settings
from staff_permissions.exceptions import NetworkError, ServerError
from staff_permissions.schemas.permission import (
    AssignedPermissions,
    AssignPermissionsRequest,
    AssignPermissionsResult,
    CatalogPage,
)
from staff_permissions.services.auth_service import (
    SettingsTokenProvider,
    TokenProvider,
    bearer_header,
)

logger = logging.getLogger(__name__)

FETCH_CATALOG_FAILED = "Failed to fetch permissions"
FETCH_ASSIGNED_FAILED = "Failed to fetch user permissions"
ASSIGN_FAILED = "Failed to update permissions"
INVALID_PAYLOAD = "Invalid permission data received"


def _envelope_ok(payload: Dict[str, Any]) -> bool:
    """The backend repeats the HTTP status in the body; a missing one means success."""
    status = payload.get("status")
    return status is None or str(status) == "200"


class PermissionApiService:
    """Service for the permission catalog / assignment endpoints"""

    def __init__(
        self,
        token_provider: Optional[TokenProvider] = None,
        config: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = config or default_settings
        self.token_provider = token_provider or SettingsTokenProvider(self.settings)
        self.base_url = self.settings.API_BASE_URL
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.settings.HTTP_TIMEOUT,
            transport=self._transport,
            headers={"User-Agent": f"{self.settings.APP_NAME}/{self.settings.APP_VERSION}"},
        )

    async def _request(
        self,
        method: str,
        path: str,
        failure_message: str,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        """
        Send an authenticated request and unwrap the JSON envelope

        Raises:
            AuthMissing: token provider has no token
            NetworkError: the request never reached the server
            ServerError: non-2xx response, non-200 envelope or undecodable body
        """
        token = await self.token_provider.get_token()

        try:
            async with self._client() as client:
                response = await client.request(
                    method,
                    path,
                    headers={
                        "Authorization": bearer_header(token),
                        "Accept": "application/json",
                    },
                    **kwargs,
                )
        except httpx.TransportError as exc:
            logger.warning("%s %s failed before reaching the server: %r", method, path, exc)
            raise NetworkError() from exc

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not isinstance(payload, dict):
            logger.warning("%s %s returned a non-JSON body (HTTP %s)", method, path, response.status_code)
            raise ServerError(failure_message, response.status_code)

        if response.is_error or not _envelope_ok(payload):
            message = payload.get("message") or failure_message
            logger.warning("%s %s failed (HTTP %s): %s", method, path, response.status_code, message)
            raise ServerError(message, response.status_code)

        return payload

    async def fetch_catalog_page(self, page: int = 1) -> CatalogPage:
        """
        Fetch one page of the permission catalog

        Args:
            page: 1-based page number

        Returns:
            Parsed catalog page
        """
        payload = await self._request(
            "GET",
            self.settings.CATALOG_PATH,
            FETCH_CATALOG_FAILED,
            params={"page": page},
        )

        # Paginators either flatten their meta next to `data` or nest it inside
        envelope = payload
        items = payload.get("data", payload.get("items"))
        if isinstance(items, dict):
            envelope = items
            items = items.get("data", items.get("items"))

        try:
            catalog_page = CatalogPage.model_validate({
                "items": items or [],
                "current_page": envelope.get("current_page") or page,
                "last_page": envelope.get("last_page"),
                "per_page": envelope.get("per_page") or self.settings.DEFAULT_PER_PAGE,
                "next_page_url": envelope.get("next_page_url"),
            })
        except ValidationError as exc:
            logger.warning("Rejected catalog page %s: %s", page, exc)
            raise ServerError(INVALID_PAYLOAD) from exc

        logger.info(
            "Fetched permission catalog page %s/%s (%s items)",
            catalog_page.current_page,
            catalog_page.last_page if catalog_page.last_page is not None else "?",
            len(catalog_page.items),
        )
        return catalog_page

    async def fetch_assigned_permissions(self, staff_id: int) -> AssignedPermissions:
        """
        Fetch the permissions currently granted to a staff member

        Args:
            staff_id: Staff member ID

        Returns:
            Assigned permissions
        """
        payload = await self._request(
            "GET",
            self.settings.ASSIGNED_PATH.format(staff_id=staff_id),
            FETCH_ASSIGNED_FAILED,
        )

        items = payload.get("permissions")
        if items is None:
            items = payload.get("items", payload.get("data"))

        try:
            assigned = AssignedPermissions.model_validate({"staff_id": staff_id, "items": items or []})
        except ValidationError as exc:
            logger.warning("Rejected assigned permissions for staff %s: %s", staff_id, exc)
            raise ServerError(INVALID_PAYLOAD) from exc

        logger.info("Staff %s has %s assigned permission(s)", staff_id, len(assigned.items))
        return assigned

    async def assign_permissions(self, staff_id: int, permission_ids: Iterable[int]) -> AssignPermissionsResult:
        """
        Replace a staff member's grants with exactly `permission_ids`

        Args:
            staff_id: Staff member ID
            permission_ids: Complete set of ids to grant (not a diff)

        Returns:
            Server acknowledgement
        """
        body = AssignPermissionsRequest(
            staff_id=staff_id,
            permission_ids=sorted(set(permission_ids)),
        )

        payload = await self._request(
            "POST",
            self.settings.ASSIGN_PATH,
            ASSIGN_FAILED,
            json=body.model_dump(),
        )

        result = AssignPermissionsResult.model_validate(payload)
        if not result.succeeded:
            raise ServerError(result.message or ASSIGN_FAILED)

        logger.info("Assigned %s permission(s) to staff %s", len(body.permission_ids), staff_id)
        return result


# Singleton
permission_api_service = PermissionApiService()
