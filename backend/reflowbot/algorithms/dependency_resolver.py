"""
Dependency Resolver
Orders work orders so every order comes after all of its predecessors.

Uses Kahn's algorithm with a FIFO queue. Orders are pre-sorted by planned
start (ties by id) so the output does not depend on input order.
"""

from collections import deque
from typing import Dict, List

from reflowbot.algorithms.errors import (
    CyclicDependencyError,
    DuplicateWorkOrderError,
    UnknownDependencyError
)
from reflowbot.algorithms.models import WorkOrder


def _sort_key(wo: WorkOrder):
    return (wo.start, wo.id)


def sort_work_orders(work_orders: List[WorkOrder]) -> List[WorkOrder]:
    """
    Topologically sort work orders.

    Orders that become ready at the same time keep their pre-sort order
    (planned start ascending, then id ascending). Children are enqueued in
    the order their last parent finishes processing, not re-sorted by time.

    Args:
        work_orders: Work orders in any order

    Returns:
        New list in dependency order

    Raises:
        DuplicateWorkOrderError: Two orders share an id
        UnknownDependencyError: An order depends on an id not in the input
        CyclicDependencyError: Not every order could be ordered
    """
    ordered = sorted(work_orders, key=_sort_key)

    by_id: Dict[str, WorkOrder] = {}
    for wo in ordered:
        if wo.id in by_id:
            raise DuplicateWorkOrderError(wo.id)
        by_id[wo.id] = wo

    children: Dict[str, List[str]] = {wo.id: [] for wo in ordered}
    in_degree: Dict[str, int] = {wo.id: 0 for wo in ordered}

    for wo in ordered:
        # A predecessor listed twice still only has to finish once
        for parent_id in dict.fromkeys(wo.depends_on):
            if parent_id not in by_id:
                raise UnknownDependencyError(wo.id, parent_id)
            children[parent_id].append(wo.id)
            in_degree[wo.id] += 1

    queue = deque(wo.id for wo in ordered if in_degree[wo.id] == 0)
    result: List[WorkOrder] = []

    while queue:
        wo_id = queue.popleft()
        result.append(by_id[wo_id])
        for child_id in children[wo_id]:
            in_degree[child_id] -= 1
            if in_degree[child_id] == 0:
                queue.append(child_id)

    if len(result) < len(ordered):
        unresolved = [wo_id for wo_id, degree in in_degree.items() if degree > 0]
        raise CyclicDependencyError(unresolved)

    return result
