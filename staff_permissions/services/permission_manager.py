"""
Permission Manager Session
Owns the catalog, baseline and selection of one staff member for the lifetime
of one screen, and performs the full-replace save.
"""
import asyncio
import logging
from typing import Awaitable, Callable, FrozenSet, List, Optional, Tuple, TypeVar

from staff_permissions.exceptions import PermissionManagerError, StaleOperation
from staff_permissions.schemas.permission import (
    AssignPermissionsResult,
    Catalog,
    CatalogPage,
    Permission,
)
from staff_permissions.services.assignment_state import AssignmentState
from staff_permissions.services.catalog_service import CatalogLoader
from staff_permissions.services.permission_api import (
    PermissionApiService,
    permission_api_service,
)
from staff_permissions.services.permission_view import ViewScope, visible_permissions

logger = logging.getLogger(__name__)

T = TypeVar("T")
PermissionsUpdatedListener = Callable[[int, FrozenSet[int]], None]


class PermissionManagerSession:
    """Permission assignment for one staff member.

    Same-kind network operations never overlap: a second catalog page request,
    baseline fetch, refresh or save issued while one is pending is ignored and
    returns None (False for refresh). Catalog and baseline loads are also ignored
    while a refresh is pending. Results that arrive after `close()` (or after a
    `refresh()` replaced them) are dropped without touching state.

    Usage:
        async with PermissionManagerSession(staff_id) as session:
            session.toggle(12)
            await session.save()
    """

    def __init__(self, staff_id: int, api: Optional[PermissionApiService] = None):
        self.staff_id = staff_id
        self.api = api or permission_api_service
        self.loader = CatalogLoader(self.api)
        self.state = AssignmentState()
        self.query = ""
        self.scope = ViewScope.ALL

        self._generation = 0
        self._closed = False
        self._baseline_loaded = False
        self._baseline_in_flight: Optional[int] = None
        self._saving = False
        self._refreshing = False
        self._listeners: List[PermissionsUpdatedListener] = []

    async def __aenter__(self) -> "PermissionManagerSession":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -- lifecycle -------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    async def open(self) -> None:
        """Load the baseline and the first catalog page, skipping what is already loaded."""
        if not self._baseline_loaded:
            await self.load_baseline()
        if not self.catalog:
            await self.load_more()

    def close(self) -> None:
        """End the session. Outstanding results will be discarded."""
        if self._closed:
            return
        self._closed = True
        self._generation += 1
        self.loader.reset()
        self._listeners.clear()
        logger.debug("Closed permission session for staff %s", self.staff_id)

    async def _guarded(self, operation: Awaitable[T], what: str) -> Optional[T]:
        """Await `operation`, dropping its outcome if the generation moved on meanwhile."""
        generation = self._generation
        try:
            result = await operation
        except StaleOperation:
            logger.debug("Discarded stale %s for staff %s", what, self.staff_id)
            return None
        except PermissionManagerError:
            if generation != self._generation:
                logger.debug("Discarded failed stale %s for staff %s", what, self.staff_id)
                return None
            raise

        if generation != self._generation:
            logger.debug("Discarded stale %s for staff %s", what, self.staff_id)
            return None
        return result

    # -- catalog ---------------------------------------------------------

    @property
    def catalog(self) -> Catalog:
        return self.loader.catalog

    @property
    def has_more(self) -> bool:
        return self.loader.has_more

    async def load_more(self) -> Optional[CatalogPage]:
        """Fetch the next catalog page when the consumer needs more items."""
        if self._closed or self._refreshing:
            return None
        return await self._guarded(self.loader.load_more(), "catalog page")

    async def load_page(self, page: int) -> Optional[CatalogPage]:
        """Fetch a specific catalog page, e.g. to retry one that failed."""
        if self._closed or self._refreshing:
            return None
        return await self._guarded(self.loader.load_page(page), f"catalog page {page}")

    def lookup(self, permission_id: int) -> Optional[Permission]:
        return self.loader.get(permission_id)

    # -- baseline / selection -------------------------------------------

    async def load_baseline(self) -> Optional[FrozenSet[int]]:
        """Fetch the granted permissions and reset the selection to them."""
        if self._closed or self._refreshing:
            return None
        if self._baseline_in_flight is not None:
            logger.debug("Baseline fetch for staff %s already in flight, ignoring", self.staff_id)
            return None

        generation = self._generation
        self._baseline_in_flight = generation
        try:
            assigned = await self._guarded(
                self.api.fetch_assigned_permissions(self.staff_id),
                "baseline",
            )
        finally:
            if self._baseline_in_flight == generation:
                self._baseline_in_flight = None

        if assigned is None:
            return None

        self.state.initialize(assigned.ids)
        self._baseline_loaded = True
        return self.state.baseline

    @property
    def baseline(self) -> FrozenSet[int]:
        return self.state.baseline

    def toggle(self, permission_id: int) -> bool:
        return self.state.toggle(permission_id)

    def is_selected(self, permission_id: int) -> bool:
        return self.state.is_selected(permission_id)

    def is_assigned(self, permission_id: int) -> bool:
        return permission_id in self.state.baseline

    def count_selected(self) -> int:
        return self.state.count_selected()

    def reset(self) -> None:
        self.state.reset()

    @property
    def has_unsaved_changes(self) -> bool:
        return self.state.has_unsaved_changes

    def pending_changes(self) -> Tuple[FrozenSet[int], FrozenSet[int]]:
        return self.state.pending_changes()

    @property
    def assigned_count(self) -> int:
        return len(self.state.baseline)

    @property
    def catalog_count(self) -> int:
        return len(self.catalog)

    # -- view ------------------------------------------------------------

    def set_search(self, query: str) -> None:
        self.query = query or ""

    def set_scope(self, scope: ViewScope) -> None:
        self.scope = ViewScope(scope)

    def visible_permissions(self) -> List[Permission]:
        """Current display list, recomputed from catalog, baseline and query."""
        return visible_permissions(self.catalog, self.state.baseline, self.query, self.scope)

    # -- refresh ---------------------------------------------------------

    async def refresh(self) -> bool:
        """Reload page 1 and the baseline together, discarding unsaved edits.

        State is replaced only if both requests succeed; on failure the error
        propagates and the previous catalog, baseline and selection remain.
        Catalog pages still loading are dropped either way.

        Returns False when the refresh was skipped or superseded: another
        refresh is pending, or page 1 or the baseline is already being fetched.
        """
        if self._closed or self._refreshing:
            return False
        if self.loader.is_fetching(1) or self._baseline_in_flight is not None:
            logger.debug("Page 1 or baseline for staff %s already in flight, skipping refresh", self.staff_id)
            return False

        self._refreshing = True
        self._generation += 1
        self.loader.cancel_pending()
        loader = CatalogLoader(self.api)
        try:
            fetched = await self._guarded(
                asyncio.gather(
                    loader.load_page(1),
                    self.api.fetch_assigned_permissions(self.staff_id),
                ),
                "refresh",
            )
        finally:
            self._refreshing = False
        if fetched is None:
            return False

        _, assigned = fetched
        self.loader.reset()
        self.loader = loader
        self.state.initialize(assigned.ids)
        self._baseline_loaded = True
        logger.info(
            "Refreshed permissions for staff %s (%s in catalog, %s assigned)",
            self.staff_id, len(self.catalog), len(self.state.baseline),
        )
        return True

    # -- save ------------------------------------------------------------

    def on_permissions_updated(self, listener: PermissionsUpdatedListener) -> Callable[[], None]:
        """Subscribe to successful saves. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, saved: FrozenSet[int]) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.staff_id, saved)
            except Exception:
                logger.exception("permissions-updated listener failed for staff %s", self.staff_id)

    @property
    def is_saving(self) -> bool:
        return self._saving

    async def save(self) -> Optional[AssignPermissionsResult]:
        """
        Replace the staff member's grants with the current selection

        Returns:
            The server acknowledgement, or None when a save is already in
            flight or the session was closed before the answer arrived

        Raises:
            AuthMissing, NetworkError, ServerError: the selection is kept for retry
        """
        if self._closed:
            return None
        if self._saving:
            logger.debug("Save for staff %s already in flight, ignoring", self.staff_id)
            return None

        snapshot = self.state.selection
        self._saving = True
        try:
            result = await self.api.assign_permissions(self.staff_id, snapshot)
        except PermissionManagerError:
            if self._closed:
                logger.debug("Discarded failed save for closed staff %s session", self.staff_id)
                return None
            raise
        finally:
            self._saving = False

        if self._closed:
            logger.debug("Discarded save result for closed staff %s session", self.staff_id)
            return None

        self.state.commit(snapshot)
        logger.info("Saved %s permission(s) for staff %s", len(snapshot), self.staff_id)
        self._notify(snapshot)
        return result
