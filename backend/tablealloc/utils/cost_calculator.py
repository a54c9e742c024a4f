"""
Cost model for placing a pairing on a table.

Three tiers, strictly ordered:
- P1 table reuse:   a seated player already played on this table number
- P2 terrain reuse: a seated player already saw this table's terrain type
- P3 mismatch:      the pairing had an original table and this is not it

The weight gap makes the ordering lexicographic. No number of P3 savings
can pay for a P2 violation, and no number of P2 savings for a P1 violation.
Each term is a flat weight: it does not grow with the number of players
that triggered it.
"""

from dataclasses import dataclass
from typing import List, Tuple

from tablealloc.utils.allocation_types import (
    Conflict,
    ConflictType,
    CostBreakdown,
    Pairing,
    TableDescriptor,
)

TABLE_REUSE_WEIGHT = 100000
TERRAIN_REUSE_WEIGHT = 10000
MISMATCH_WEIGHT = 1


@dataclass(frozen=True)
class CostEvaluation:
    breakdown: CostBreakdown
    conflicts: Tuple[Conflict, ...]
    reasons: Tuple[str, ...]


class CostCalculator:
    """Pure cost function. Holds no state between calls."""

    def cost(self, pairing: Pairing, table: TableDescriptor, history) -> CostBreakdown:
        return self.evaluate(pairing, table, history).breakdown

    def evaluate(self, pairing: Pairing, table: TableDescriptor, history) -> CostEvaluation:
        """
        Cost plus the conflicts and reason lines behind it.

        history is any HistoryProvider. Conflicts are derived from the same
        per-player checks as the cost, one per offending player, so a non-zero
        reuse term always has at least one matching conflict.
        """
        conflicts: List[Conflict] = []
        reasons: List[str] = []

        for player_id, name in pairing.players():
            seen = history.history_for(player_id)

            if table.table_number in seen.table_numbers:
                message = f"{name} previously played on table {table.table_number}"
                conflicts.append(
                    Conflict(
                        type=ConflictType.TABLE_REUSE,
                        message=message,
                        player_id=player_id,
                        table_number=table.table_number,
                    )
                )
                reasons.append(message)

        if table.terrain_type_id is not None:
            for player_id, name in pairing.players():
                seen = history.history_for(player_id)
                if table.terrain_type_id in seen.terrain_type_ids:
                    message = f"{name} previously experienced {table.terrain_label}"
                    conflicts.append(
                        Conflict(
                            type=ConflictType.TERRAIN_REUSE,
                            message=message,
                            player_id=player_id,
                            table_number=table.table_number,
                        )
                    )
                    reasons.append(message)

        table_reuse = any(c.type == ConflictType.TABLE_REUSE for c in conflicts)
        terrain_reuse = any(c.type == ConflictType.TERRAIN_REUSE for c in conflicts)

        original = pairing.original_table_number
        mismatch = original is not None and original != table.table_number
        if original is not None:
            if mismatch:
                reasons.append(f"Moved from original table {original}")
            else:
                reasons.append(f"Kept original table {original}")

        breakdown = CostBreakdown(
            table_reuse_cost=TABLE_REUSE_WEIGHT if table_reuse else 0,
            terrain_reuse_cost=TERRAIN_REUSE_WEIGHT if terrain_reuse else 0,
            bcp_mismatch_cost=MISMATCH_WEIGHT if mismatch else 0,
        )
        return CostEvaluation(breakdown=breakdown, conflicts=tuple(conflicts), reasons=tuple(reasons))
