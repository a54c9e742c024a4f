"""
Manual allocation edits.

Organizers sometimes move a pairing by hand after generation. These
functions apply the edit to an AllocationResult and return a new one with
conflicts recomputed for the touched allocations. Nothing is persisted.
"""

import logging
from dataclasses import replace
from typing import Optional, Sequence

from tablealloc.services.allocation_engine import AllocationError
from tablealloc.services.history_provider import HistoryProvider
from tablealloc.utils.allocation_types import (
    ZERO_COST,
    Allocation,
    AllocationReason,
    AllocationResult,
    TableDescriptor,
    collect_conflicts,
    summarize,
)
from tablealloc.utils.cost_calculator import CostCalculator

logger = logging.getLogger(__name__)


class AllocationEditError(AllocationError):
    """Edit rejected before anything changed"""

    pass


def _get_game_allocation(result: AllocationResult, index: int) -> Allocation:
    if index < 0 or index >= len(result.allocations):
        raise AllocationEditError(f"Allocation {index} not found")
    allocation = result.allocations[index]
    if allocation.is_bye:
        raise AllocationEditError(f"Allocation {index} is a bye and has no table")
    return allocation


def _find_table(tables: Sequence[TableDescriptor], table_number: int) -> Optional[TableDescriptor]:
    for table in tables:
        if table.table_number == table_number:
            return table
    return None


def _relocate(
    allocation: Allocation,
    table: TableDescriptor,
    round_number: int,
    history: HistoryProvider,
    cost_calculator: CostCalculator,
) -> Allocation:
    reasons = (f"Manually moved from table {allocation.table_number} to table {table.table_number}",)
    if round_number == 1:
        # Round 1 has no earlier round, so nothing can cost or conflict.
        breakdown, conflicts = ZERO_COST, ()
    else:
        evaluation = cost_calculator.evaluate(allocation.pairing, table, history)
        breakdown, conflicts = evaluation.breakdown, evaluation.conflicts
        reasons += evaluation.reasons
    return replace(
        allocation,
        table_number=table.table_number,
        terrain_type_id=table.terrain_type_id,
        terrain_type_name=table.terrain_label,
        conflicts=conflicts,
        reason=AllocationReason(
            total_cost=breakdown.total,
            cost_breakdown=breakdown,
            reasons=reasons,
            is_round1=allocation.reason.is_round1,
        ),
    )


def _rebuild(result: AllocationResult, allocations) -> AllocationResult:
    conflicts = collect_conflicts(allocations)
    return AllocationResult(
        round_number=result.round_number,
        allocations=tuple(allocations),
        conflicts=conflicts,
        summary=summarize(result.round_number, conflicts, result.fallback_count),
        fallback_count=result.fallback_count,
    )


def reassign_table(
    result: AllocationResult,
    index: int,
    table: TableDescriptor,
    history: HistoryProvider,
    cost_calculator: Optional[CostCalculator] = None,
) -> AllocationResult:
    """Move allocation `index` onto `table`, which must not be held by another allocation."""
    cost_calculator = cost_calculator or CostCalculator()
    allocation = _get_game_allocation(result, index)

    for other_index, other in enumerate(result.allocations):
        if other_index != index and other.table_number == table.table_number:
            raise AllocationEditError(f"Table {table.table_number} is already assigned in this round")

    allocations = list(result.allocations)
    allocations[index] = _relocate(allocation, table, result.round_number, history, cost_calculator)

    logger.info(
        "Round %d: moved allocation %d from table %s to table %d",
        result.round_number,
        index,
        allocation.table_number,
        table.table_number,
    )
    return _rebuild(result, allocations)


def swap_tables(
    result: AllocationResult,
    index_a: int,
    index_b: int,
    tables: Sequence[TableDescriptor],
    history: HistoryProvider,
    cost_calculator: Optional[CostCalculator] = None,
) -> AllocationResult:
    """Exchange the tables of two game allocations."""
    if index_a == index_b:
        raise AllocationEditError("Cannot swap an allocation with itself")

    cost_calculator = cost_calculator or CostCalculator()
    first = _get_game_allocation(result, index_a)
    second = _get_game_allocation(result, index_b)

    table_for_first = _find_table(tables, second.table_number) or TableDescriptor(
        table_number=second.table_number,
        terrain_type_id=second.terrain_type_id,
        terrain_type_name=second.terrain_type_name,
    )
    table_for_second = _find_table(tables, first.table_number) or TableDescriptor(
        table_number=first.table_number,
        terrain_type_id=first.terrain_type_id,
        terrain_type_name=first.terrain_type_name,
    )

    allocations = list(result.allocations)
    allocations[index_a] = _relocate(first, table_for_first, result.round_number, history, cost_calculator)
    allocations[index_b] = _relocate(second, table_for_second, result.round_number, history, cost_calculator)

    logger.info(
        "Round %d: swapped tables %d and %d",
        result.round_number,
        first.table_number,
        second.table_number,
    )
    return _rebuild(result, allocations)
