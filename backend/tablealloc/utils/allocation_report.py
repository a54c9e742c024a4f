"""
Allocation Report Response Models

Pydantic models for handing an AllocationResult across a boundary:
- the persistence layer storing a round's allocations and reason trace
- an API or UI showing allocations and conflict warnings

The engine itself works on the frozen dataclasses in allocation_types;
build_allocation_report() is the only bridge.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel

from tablealloc.utils.allocation_types import AllocationResult, ConflictType


class PlayerSlotRow(BaseModel):
    bcp_id: str
    name: str
    score: int
    total_score: int


class ConflictRow(BaseModel):
    """A non-fatal constraint violation on one allocation"""

    type: str
    message: str
    player_id: Optional[str] = None
    table_number: Optional[int] = None


class CostBreakdownRow(BaseModel):
    table_reuse: int
    terrain_reuse: int
    bcp_table_mismatch: int


class AllocationReasonRow(BaseModel):
    """Audit trail stored alongside each allocation"""

    total_cost: int
    cost_breakdown: CostBreakdownRow
    reasons: List[str]
    alternatives_considered: Dict[int, int]
    is_round1: bool
    is_bye: bool
    conflicts: List[ConflictRow]


class AllocationRow(BaseModel):
    table_number: Optional[int]
    terrain_type: Optional[str]
    player1: PlayerSlotRow
    player2: Optional[PlayerSlotRow]
    reason: AllocationReasonRow


class AllocationSummary(BaseModel):
    round_number: int
    total_allocations: int
    bye_count: int
    conflict_count: int
    table_reuse_count: int
    terrain_reuse_count: int
    message: str


class AllocationReportV1(BaseModel):
    """Complete allocation output for one round"""

    summary: AllocationSummary
    allocations: List[AllocationRow]
    conflicts: List[ConflictRow]


def _conflict_row(conflict) -> ConflictRow:
    return ConflictRow(
        type=conflict.type.value,
        message=conflict.message,
        player_id=conflict.player_id,
        table_number=conflict.table_number,
    )


def _player_row(slot) -> Optional[PlayerSlotRow]:
    if slot is None:
        return None
    return PlayerSlotRow(
        bcp_id=slot.player_id,
        name=slot.name,
        score=slot.score,
        total_score=slot.total_score,
    )


def build_allocation_report(result: AllocationResult) -> AllocationReportV1:
    rows: List[AllocationRow] = []
    for allocation in result.allocations:
        reason = allocation.reason
        breakdown = reason.cost_breakdown
        rows.append(
            AllocationRow(
                table_number=allocation.table_number,
                terrain_type=allocation.terrain_type_name,
                player1=_player_row(allocation.player1),
                player2=_player_row(allocation.player2),
                reason=AllocationReasonRow(
                    total_cost=reason.total_cost,
                    cost_breakdown=CostBreakdownRow(
                        table_reuse=breakdown.table_reuse_cost,
                        terrain_reuse=breakdown.terrain_reuse_cost,
                        bcp_table_mismatch=breakdown.bcp_mismatch_cost,
                    ),
                    reasons=list(reason.reasons),
                    alternatives_considered=dict(reason.alternatives_considered),
                    is_round1=reason.is_round1,
                    is_bye=reason.is_bye,
                    conflicts=[_conflict_row(c) for c in allocation.conflicts],
                ),
            )
        )

    counts = result.conflict_counts()
    summary = AllocationSummary(
        round_number=result.round_number,
        total_allocations=len(result.allocations),
        bye_count=sum(1 for a in result.allocations if a.is_bye),
        conflict_count=result.conflict_count,
        table_reuse_count=counts[ConflictType.TABLE_REUSE],
        terrain_reuse_count=counts[ConflictType.TERRAIN_REUSE],
        message=result.summary,
    )

    return AllocationReportV1(
        summary=summary,
        allocations=rows,
        conflicts=[_conflict_row(c) for c in result.conflicts],
    )
