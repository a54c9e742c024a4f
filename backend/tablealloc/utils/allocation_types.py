"""
Value types for table allocation.

Everything here is immutable. Pairings and tables are built by the caller
from imported or stored round data; the engine turns them into an
AllocationResult and never holds on to any of them afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple


class ConflictType(str, Enum):
    TABLE_REUSE = "TABLE_REUSE"
    TERRAIN_REUSE = "TERRAIN_REUSE"


@dataclass(frozen=True)
class Pairing:
    """Two players (or one player and a bye) matched for a round.

    player2_id of None marks a bye; player2_name and player2_round_score are
    ignored in that case.
    """

    player1_id: str
    player1_name: str
    player1_round_score: int
    player2_id: Optional[str]
    player2_name: Optional[str]
    player2_round_score: int
    original_table_number: Optional[int] = None
    player1_total_score: int = 0
    player2_total_score: int = 0

    @property
    def is_bye(self) -> bool:
        return self.player2_id is None

    @property
    def combined_total_score(self) -> int:
        if self.is_bye:
            return self.player1_total_score
        return self.player1_total_score + self.player2_total_score

    def players(self) -> List[Tuple[str, str]]:
        """(id, name) for each seated player, bye side excluded."""
        seated = [(self.player1_id, self.player1_name)]
        if not self.is_bye:
            seated.append((self.player2_id, self.player2_name or self.player2_id))
        return seated


@dataclass(frozen=True)
class TableDescriptor:
    table_number: int
    terrain_type_id: Optional[int] = None
    terrain_type_name: Optional[str] = None

    @property
    def terrain_label(self) -> Optional[str]:
        if self.terrain_type_id is None:
            return None
        return self.terrain_type_name or f"terrain type {self.terrain_type_id}"


@dataclass(frozen=True)
class HistoryEntry:
    """Tables and terrain types a player saw in strictly earlier rounds."""

    table_numbers: FrozenSet[int] = frozenset()
    terrain_type_ids: FrozenSet[int] = frozenset()


EMPTY_HISTORY = HistoryEntry()


@dataclass(frozen=True)
class CostBreakdown:
    table_reuse_cost: int = 0
    terrain_reuse_cost: int = 0
    bcp_mismatch_cost: int = 0

    @property
    def total(self) -> int:
        return self.table_reuse_cost + self.terrain_reuse_cost + self.bcp_mismatch_cost


ZERO_COST = CostBreakdown()


@dataclass(frozen=True)
class Conflict:
    type: ConflictType
    message: str
    player_id: Optional[str] = None
    table_number: Optional[int] = None


@dataclass(frozen=True)
class PlayerSlot:
    player_id: str
    name: str
    score: int
    total_score: int


@dataclass(frozen=True)
class AllocationReason:
    total_cost: int
    cost_breakdown: CostBreakdown
    reasons: Tuple[str, ...]
    alternatives_considered: Tuple[Tuple[int, int], ...] = ()
    is_round1: bool = False
    is_bye: bool = False


@dataclass(frozen=True)
class Allocation:
    """One pairing's assignment. table_number is None only for a bye."""

    pairing: Pairing
    table_number: Optional[int]
    terrain_type_id: Optional[int]
    terrain_type_name: Optional[str]
    player1: PlayerSlot
    player2: Optional[PlayerSlot]
    conflicts: Tuple[Conflict, ...]
    reason: AllocationReason

    @property
    def is_bye(self) -> bool:
        return self.pairing.is_bye


@dataclass(frozen=True)
class AllocationResult:
    round_number: int
    allocations: Tuple[Allocation, ...]
    conflicts: Tuple[Conflict, ...]
    summary: str
    fallback_count: int = 0

    @property
    def conflict_count(self) -> int:
        return len(self.conflicts)

    def table_for(self, player_id: str) -> Optional[int]:
        """Table assigned to the pairing containing player_id, if any."""
        for allocation in self.allocations:
            if player_id in (allocation.pairing.player1_id, allocation.pairing.player2_id):
                return allocation.table_number
        return None

    def conflict_counts(self) -> Dict[ConflictType, int]:
        counts = {ConflictType.TABLE_REUSE: 0, ConflictType.TERRAIN_REUSE: 0}
        for conflict in self.conflicts:
            counts[conflict.type] += 1
        return counts

    def to_report(self):
        # allocation_report imports this module
        from tablealloc.utils.allocation_report import build_allocation_report

        return build_allocation_report(self)


def player_slots(pairing: Pairing) -> Tuple[PlayerSlot, Optional[PlayerSlot]]:
    player1 = PlayerSlot(
        player_id=pairing.player1_id,
        name=pairing.player1_name,
        score=pairing.player1_round_score,
        total_score=pairing.player1_total_score,
    )
    if pairing.is_bye:
        return player1, None
    player2 = PlayerSlot(
        player_id=pairing.player2_id,
        name=pairing.player2_name or pairing.player2_id,
        score=pairing.player2_round_score,
        total_score=pairing.player2_total_score,
    )
    return player1, player2


def collect_conflicts(allocations) -> Tuple[Conflict, ...]:
    """Flatten per-allocation conflicts in allocation order."""
    flat: List[Conflict] = []
    for allocation in allocations:
        flat.extend(allocation.conflicts)
    return tuple(flat)


def summarize(round_number: int, conflicts, fallback_count: int = 0) -> str:
    if round_number == 1:
        if fallback_count:
            return f"Round 1 allocations generated with {fallback_count} fallback assignment(s)."
        return "Round 1 allocations use original table assignments."

    if not conflicts:
        return "All allocations optimal - no constraint violations."

    table_reuse = sum(1 for c in conflicts if c.type == ConflictType.TABLE_REUSE)
    terrain_reuse = sum(1 for c in conflicts if c.type == ConflictType.TERRAIN_REUSE)

    parts = []
    if table_reuse:
        parts.append(f"{table_reuse} table reuse conflict(s)")
    if terrain_reuse:
        parts.append(f"{terrain_reuse} terrain reuse conflict(s)")
    return "Best effort allocation with " + ", ".join(parts) + "."
