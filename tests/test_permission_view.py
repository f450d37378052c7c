import random

from staff_permissions.services.permission_view import (
    ViewScope,
    compute_order,
    filter_permissions,
    visible_permissions,
)
from tests.conftest import make_permission


def ids(permissions):
    return [p.id for p in permissions]


def test_module_entry_leads_unless_sibling_is_granted():
    catalog = (
        make_permission(1, module="sales_invoice", action="management", type="module"),
        make_permission(2, module="sales_invoice", action="create"),
    )
    assert ids(compute_order(catalog, {2})) == [2, 1]
    assert ids(compute_order(catalog, set())) == [1, 2]


def test_grouped_order_keys(catalog):
    # baseline: items.view and sales_invoice.edit
    order = compute_order(catalog, {11, 4})
    assert ids(order) == [
        11,       # granted, module "items"
        4,        # granted, module "sales_invoice"
        7, 8,     # items: module entry first, then by name
        1, 2,     # sales_invoice: module entry first, then by name
    ]


def test_granted_always_precede_ungranted(catalog):
    baseline = {1, 8}
    order = compute_order(catalog, baseline)
    flags = [p.id in baseline for p in order]
    assert flags == sorted(flags, reverse=True)


def test_order_is_deterministic_for_any_input_permutation(catalog):
    expected = ids(compute_order(catalog, {2, 7}))
    shuffled = list(catalog)
    rng = random.Random(7)
    for _ in range(5):
        rng.shuffle(shuffled)
        assert ids(compute_order(shuffled, {2, 7})) == expected
    assert ids(compute_order(catalog, {2, 7})) == expected


def test_exact_ties_keep_arrival_order():
    catalog = (
        make_permission(30, module="banks", action="view", name="banks.view"),
        make_permission(10, module="banks", action="view", name="banks.view"),
        make_permission(20, module="banks", action="view", name="banks.view"),
    )
    assert ids(compute_order(catalog, set())) == [30, 10, 20]


def test_compute_order_does_not_mutate_input(catalog):
    before = list(catalog)
    compute_order(catalog, {8})
    assert list(catalog) == before


def test_filter_returns_matches_in_catalog_order(catalog):
    assert ids(filter_permissions(catalog, "create")) == [2, 8]


def test_filter_is_case_insensitive_over_name_description_and_module(catalog):
    assert ids(filter_permissions(catalog, "CREATE")) == [2, 8]
    assert ids(filter_permissions(catalog, "Open")) == [1, 7]          # description only
    assert ids(filter_permissions(catalog, "sales_inv")) == [1, 2, 4]   # module and name
    assert filter_permissions(catalog, "payroll") == []


def test_every_filter_result_contains_query(catalog):
    for query in ("e", "IT", "sales", ".", "manage"):
        needle = query.lower()
        for p in filter_permissions(catalog, query):
            assert needle in p.name.lower() or needle in p.description.lower() or needle in p.module.lower()


def test_blank_query_yields_grouped_order(catalog):
    grouped = ids(compute_order(catalog, {8}))
    assert ids(visible_permissions(catalog, {8}, "")) == grouped
    assert ids(visible_permissions(catalog, {8}, "   ")) == grouped


def test_search_suppresses_baseline_grouping(catalog):
    # id 8 is granted but still comes after id 2 in search results
    assert ids(visible_permissions(catalog, {8}, "create")) == [2, 8]


def test_search_query_is_not_stripped(catalog):
    assert visible_permissions(catalog, set(), " items.view") == []
    assert ids(visible_permissions(catalog, set(), "items.view")) == [11]


def test_assigned_scope_restricts_to_baseline(catalog):
    assert ids(visible_permissions(catalog, {8, 1}, "", ViewScope.ASSIGNED)) == [8, 1]
    assert ids(visible_permissions(catalog, {8, 1}, "items", "assigned")) == [8]
