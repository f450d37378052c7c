"""
Permission Catalog Loader
Fetches the permission catalog page by page and merges every page into one
deduplicated, arrival-ordered catalog.
"""
import logging
from typing import AsyncIterator, Dict, Iterable, Optional

from staff_permissions.exceptions import PermissionManagerError, StaleOperation
from staff_permissions.schemas.permission import Catalog, CatalogPage, Permission
from staff_permissions.services.permission_api import PermissionApiService

logger = logging.getLogger(__name__)


def merge_catalog(catalog: Catalog, page: Iterable[Permission]) -> Catalog:
    """Append the permissions of `page` whose id is not in `catalog` yet.

    First-seen order wins, so merging the same page twice is a no-op.
    `page` may be a CatalogPage or any iterable of permissions.
    """
    items = page.items if isinstance(page, CatalogPage) else page

    seen = {p.id for p in catalog}
    added = []
    for permission in items:
        if permission.id in seen:
            continue
        seen.add(permission.id)
        added.append(permission)

    if not added:
        return catalog
    return catalog + tuple(added)


class CatalogLoader:
    """Pull-based loader for the paginated permission catalog.

    The consumer calls `load_more()` (or iterates with `async for`) when it
    needs more items; nothing is fetched on its own.
    """

    def __init__(self, api: PermissionApiService):
        self.api = api
        self.catalog: Catalog = ()
        self._by_id: Dict[int, Permission] = {}
        self._furthest_page: Optional[CatalogPage] = None
        self._in_flight: Dict[int, int] = {}  # page -> generation
        self._generation = 0

    @property
    def has_more(self) -> bool:
        if self._furthest_page is None:
            return True
        return self._furthest_page.has_next

    @property
    def next_page(self) -> int:
        if self._furthest_page is None:
            return 1
        return self._furthest_page.current_page + 1

    @property
    def is_loading(self) -> bool:
        return bool(self._in_flight)

    def reset(self) -> None:
        """Forget every loaded page. Fetches still outstanding become stale."""
        self.cancel_pending()
        self.catalog = ()
        self._by_id.clear()
        self._furthest_page = None

    def cancel_pending(self) -> None:
        """Make outstanding fetches stale but keep what is already loaded."""
        self._generation += 1
        self._in_flight.clear()

    def is_fetching(self, page: int) -> bool:
        return page in self._in_flight

    def get(self, permission_id: int) -> Optional[Permission]:
        return self._by_id.get(permission_id)

    async def load_page(self, page: int) -> Optional[CatalogPage]:
        """
        Fetch page `page` and merge it into the catalog

        Returns:
            The fetched page, or None when that page is already being fetched

        Raises:
            NetworkError, ServerError, AuthMissing: the catalog is left unchanged
            StaleOperation: the loader was reset or cancelled while the fetch was outstanding
        """
        if page in self._in_flight:
            logger.debug("Catalog page %s already in flight, ignoring", page)
            return None

        generation = self._generation
        self._in_flight[page] = generation
        try:
            catalog_page = await self.api.fetch_catalog_page(page)
        except PermissionManagerError as exc:
            if generation != self._generation:
                raise StaleOperation(f"catalog page {page}") from exc
            raise
        finally:
            if self._in_flight.get(page) == generation:
                del self._in_flight[page]

        if generation != self._generation:
            raise StaleOperation(f"catalog page {page}")

        self.catalog = merge_catalog(self.catalog, catalog_page)
        for permission in catalog_page.items:
            self._by_id.setdefault(permission.id, permission)
        if self._furthest_page is None or catalog_page.current_page >= self._furthest_page.current_page:
            self._furthest_page = catalog_page
        return catalog_page

    async def load_more(self) -> Optional[CatalogPage]:
        """Fetch the next page if the server has one and nothing is in flight."""
        if not self.has_more or self.is_loading:
            return None
        return await self.load_page(self.next_page)

    async def __aiter__(self) -> AsyncIterator[CatalogPage]:
        while self.has_more:
            catalog_page = await self.load_more()
            if catalog_page is None:
                return
            yield catalog_page
