"""
Renumbering of quotation systems and items after insert / delete / reorder.

Callers pass lists already in the desired final order; position in the list is
the only ordering signal (no timestamps, no ids).
"""
from dataclasses import replace
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

from cpq.models.domain import QuotationItem, QuotationSystem

SystemOrders = Union[Mapping[str, int], Iterable]


def _order_map(systems: SystemOrders) -> Dict[str, int]:
    if isinstance(systems, Mapping):
        return dict(systems)
    return {s.id: s.order for s in systems}


def renumber_systems(systems: Sequence[QuotationSystem]) -> List[QuotationSystem]:
    """Reassign ``order`` = 1..n by list position, leaving all other fields alone."""
    return [replace(system, order=index) for index, system in enumerate(systems, start=1)]


def renumber_items(
    items: Sequence[QuotationItem],
    systems: Optional[SystemOrders] = None,
) -> List[QuotationItem]:
    """
    Close gaps in item numbering.

    Items are grouped by system (groups keep first-seen order), each group is
    stable-sorted by its current ``item_order`` and renumbered 1..n. The
    system order comes from ``systems`` (objects with id/order, or an
    {id: order} mapping) when given, otherwise from the group's first item.
    """
    groups: Dict[str, List[QuotationItem]] = {}
    for item in items:
        groups.setdefault(item.system_id, []).append(item)

    orders = _order_map(systems) if systems is not None else {}

    renumbered: List[QuotationItem] = []
    for system_id, group in groups.items():
        ordered = sorted(group, key=lambda i: i.item_order)
        system_order = orders.get(system_id) or ordered[0].system_order or 1
        renumbered.extend(
            replace(item, system_order=system_order, item_order=index)
            for index, item in enumerate(ordered, start=1)
        )
    return renumbered


def reorder_systems(
    systems: Sequence[QuotationSystem],
    items: Sequence[QuotationItem],
    ordered_ids: Sequence[str],
) -> tuple:
    """
    Apply a caller-chosen system order, then renumber systems and items.

    Systems missing from ``ordered_ids`` keep their relative order after the
    listed ones. Returns (systems, items).
    """
    by_id = {s.id: s for s in systems}
    unknown = [sid for sid in ordered_ids if sid not in by_id]
    if unknown:
        raise ValueError(f"Unknown system ids: {', '.join(unknown)}")

    listed = [by_id[sid] for sid in ordered_ids]
    rest = [s for s in systems if s.id not in set(ordered_ids)]
    new_systems = renumber_systems(listed + rest)
    return new_systems, renumber_items(items, new_systems)
