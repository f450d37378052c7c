"""
Display order and search for the permission list.

Everything here is a pure function of (catalog, baseline, query): views are
recomputed on every call and never cached.
"""
import enum
from typing import AbstractSet, Iterable, List, Tuple

from staff_permissions.schemas.permission import Permission


class ViewScope(str, enum.Enum):
    ALL = "all"
    ASSIGNED = "assigned"


def _order_key(permission: Permission, baseline: AbstractSet[int]) -> Tuple[int, str, int, str]:
    return (
        0 if permission.id in baseline else 1,
        permission.module,
        0 if permission.is_module else 1,
        permission.name,
    )


def compute_order(catalog: Iterable[Permission], baseline: AbstractSet[int]) -> List[Permission]:
    """Grouped display order.

    Granted permissions first, then by module, with the module-level entry
    heading its module, then by name. sorted() is stable, so exact ties keep
    catalog arrival order.
    """
    return sorted(catalog, key=lambda p: _order_key(p, baseline))


def matches(permission: Permission, query: str) -> bool:
    needle = query.lower()
    return (
        needle in permission.name.lower()
        or needle in permission.description.lower()
        or needle in permission.module.lower()
    )


def filter_permissions(catalog: Iterable[Permission], query: str) -> List[Permission]:
    """Case-insensitive substring search over name, description and module, in catalog order."""
    return [p for p in catalog if matches(p, query)]


def visible_permissions(
    catalog: Iterable[Permission],
    baseline: AbstractSet[int],
    query: str = "",
    scope: ViewScope = ViewScope.ALL,
) -> List[Permission]:
    """The list the screen shows.

    A blank query gives the grouped order. A non-blank query gives plain
    search results in catalog order, without baseline-first grouping.
    """
    if ViewScope(scope) is ViewScope.ASSIGNED:
        catalog = [p for p in catalog if p.id in baseline]

    if not query or not query.strip():
        return compute_order(catalog, baseline)
    return filter_permissions(catalog, query)
