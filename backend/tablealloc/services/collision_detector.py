"""
Table collision detection.

A collision is one table number held by more than one allocation in the
same round. The engine never produces one; hand edits and allocations
assembled outside the engine can.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from tablealloc.utils.allocation_types import Allocation


@dataclass(frozen=True)
class TableCollision:
    table_number: int
    allocation_indices: Tuple[int, ...]


def find_collisions(allocations: Sequence[Allocation]) -> List[TableCollision]:
    """All collisions, ascending by table number. Byes are ignored."""
    holders: Dict[int, List[int]] = defaultdict(list)
    for index, allocation in enumerate(allocations):
        if allocation.table_number is None:
            continue
        holders[allocation.table_number].append(index)

    return [
        TableCollision(table_number=number, allocation_indices=tuple(indices))
        for number, indices in sorted(holders.items())
        if len(indices) > 1
    ]


def has_collisions(allocations: Sequence[Allocation]) -> bool:
    return bool(find_collisions(allocations))


def collision_count(allocations: Sequence[Allocation]) -> int:
    return len(find_collisions(allocations))


def has_table_collision(allocations: Sequence[Allocation], table_number: int) -> bool:
    return sum(1 for a in allocations if a.table_number == table_number) > 1
