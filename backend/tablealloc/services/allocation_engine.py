"""
Allocation Engine: deterministic pairing-to-table assignment for one round.

Round 1:  every pairing takes its original (pairings-provider) table.
Round 2+: pairings sorted by combined total score (desc), then player1 id;
          each takes the cheapest table left in the pool, ascending table
          number breaking ties.

Guarantees:
- Same inputs -> same result (no randomness, no clock, no unordered iteration)
- Every non-bye pairing gets exactly one table, or the call fails up front
- Every table/terrain reuse in the final assignment is reported as a conflict
- Nothing is persisted and nothing is kept between calls
"""

import logging
from typing import Dict, List, Optional, Sequence, Set, Tuple

from tablealloc.services.history_provider import HistoryProvider
from tablealloc.utils.allocation_types import (
    ZERO_COST,
    Allocation,
    AllocationReason,
    AllocationResult,
    Pairing,
    TableDescriptor,
    collect_conflicts,
    player_slots,
    summarize,
)
from tablealloc.utils.cost_calculator import CostCalculator

logger = logging.getLogger(__name__)

BYE_REASON = "Bye - no opponent this round"


class AllocationError(Exception):
    """Base exception for allocation errors"""

    pass


class InsufficientTablesError(AllocationError):
    """Fewer tables than pairings that need one"""

    pass


class InvalidPairingError(AllocationError):
    """A pairing is missing identity fields for a seated player"""

    pass


class InvalidTableError(AllocationError):
    """Table numbers must be positive and unique within a round"""

    pass


def get_pairing_sort_key(pairing: Pairing) -> Tuple:
    """
    Priority order for rounds 2+.

    Order: combined total score (desc) -> player1 id (asc)

    Higher-scoring pairings pick first, so they land on the lowest
    conflict-free table numbers.
    """
    return (-pairing.combined_total_score, pairing.player1_id)


def get_table_sort_key(table: TableDescriptor) -> Tuple:
    return (table.table_number,)


def validate_pairings(pairings: Sequence[Pairing]) -> None:
    """
    Check identity fields before any table is handed out.

    Raises InvalidPairingError on the first bad pairing.
    """
    for index, pairing in enumerate(pairings):
        original = pairing.original_table_number
        if original is not None and original < 1:
            raise InvalidPairingError(
                f"Pairing {index} ({pairing.player1_id}) has non-positive original table {original}"
            )
        if not pairing.player1_id:
            raise InvalidPairingError(f"Pairing {index} has no player 1 id")
        if not pairing.player1_name:
            raise InvalidPairingError(f"Pairing {index} ({pairing.player1_id}) has no player 1 name")
        if pairing.is_bye:
            continue
        if not pairing.player2_id:
            raise InvalidPairingError(f"Pairing {index} ({pairing.player1_id}) has an empty player 2 id")
        if not pairing.player2_name:
            raise InvalidPairingError(
                f"Pairing {index} ({pairing.player1_id} vs {pairing.player2_id}) has no player 2 name"
            )
        if pairing.player1_id == pairing.player2_id:
            raise InvalidPairingError(f"Pairing {index} pairs player {pairing.player1_id} against themselves")


def validate_tables(tables: Sequence[TableDescriptor]) -> None:
    seen: Set[int] = set()
    for table in tables:
        if table.table_number is None or table.table_number < 1:
            raise InvalidTableError(f"Table number must be positive, got {table.table_number}")
        if table.table_number in seen:
            raise InvalidTableError(f"Duplicate table number {table.table_number}")
        seen.add(table.table_number)


def build_bye_allocation(pairing: Pairing, is_round1: bool) -> Allocation:
    player1, _ = player_slots(pairing)
    return Allocation(
        pairing=pairing,
        table_number=None,
        terrain_type_id=None,
        terrain_type_name=None,
        player1=player1,
        player2=None,
        conflicts=(),
        reason=AllocationReason(
            total_cost=0,
            cost_breakdown=ZERO_COST,
            reasons=(BYE_REASON,),
            is_round1=is_round1,
            is_bye=True,
        ),
    )


class AllocationEngine:
    """Stateless orchestrator. One generate() call per round."""

    def __init__(self, cost_calculator: Optional[CostCalculator] = None):
        self.cost_calculator = cost_calculator or CostCalculator()

    def generate(
        self,
        pairings: Sequence[Pairing],
        tables: Sequence[TableDescriptor],
        round_number: int,
        history: HistoryProvider,
    ) -> AllocationResult:
        """
        Allocate every pairing in a round.

        Args:
            pairings: Round pairings; player2_id of None marks a bye
            tables: Tables configured for the tournament, any order
            round_number: 1-based round number
            history: HistoryProvider scoped to rounds before round_number

        Returns:
            AllocationResult with game allocations first, byes last

        Raises:
            InvalidPairingError, InvalidTableError: bad input, nothing allocated
            InsufficientTablesError: not enough tables for the game pairings
        """
        validate_pairings(pairings)
        validate_tables(tables)

        games = [p for p in pairings if not p.is_bye]
        byes = [p for p in pairings if p.is_bye]
        is_round1 = round_number == 1

        if is_round1:
            allocations, fallback_count = self._allocate_round1(games, tables)
        else:
            if len(tables) < len(games):
                raise InsufficientTablesError(
                    f"Round {round_number} needs {len(games)} tables but only {len(tables)} are configured"
                )
            allocations = self._allocate_greedy(games, tables, history)
            fallback_count = 0

        for pairing in byes:
            allocations.append(build_bye_allocation(pairing, is_round1))

        conflicts = collect_conflicts(allocations)
        result = AllocationResult(
            round_number=round_number,
            allocations=tuple(allocations),
            conflicts=conflicts,
            summary=summarize(round_number, conflicts, fallback_count),
            fallback_count=fallback_count,
        )

        logger.info(
            "Allocated round %d: %d game(s), %d bye(s), %d table(s), %d conflict(s)",
            round_number,
            len(games),
            len(byes),
            len(tables),
            len(conflicts),
        )
        return result

    def _allocate_round1(
        self, games: List[Pairing], tables: Sequence[TableDescriptor]
    ) -> Tuple[List[Allocation], int]:
        """
        Round 1 uses the original table numbers as-is. No cost evaluation,
        no conflicts: there is no earlier round to conflict with.

        A pairing with no original table, or whose original table was already
        claimed by an earlier pairing, falls back to the lowest supplied table
        nobody has claimed.
        """
        by_number: Dict[int, TableDescriptor] = {t.table_number: t for t in tables}

        claimed: Set[int] = set()
        chosen: List[Optional[int]] = []
        for pairing in games:
            original = pairing.original_table_number
            if original is not None and original not in claimed:
                claimed.add(original)
                chosen.append(original)
            else:
                chosen.append(None)

        free = [t.table_number for t in sorted(tables, key=get_table_sort_key) if t.table_number not in claimed]

        allocations: List[Allocation] = []
        fallback_count = 0
        for pairing, table_number in zip(games, chosen):
            if table_number is not None:
                reason = "Round 1 - using original table assignment"
            else:
                if not free:
                    raise InsufficientTablesError(
                        f"Round 1 has no free table for {pairing.player1_name} vs {pairing.player2_name}"
                    )
                table_number = free.pop(0)
                fallback_count += 1
                if pairing.original_table_number is None:
                    reason = "Round 1 - original table number missing, assigned next available"
                else:
                    reason = (
                        f"Round 1 - original table {pairing.original_table_number} already assigned, "
                        "assigned next available"
                    )

            table = by_number.get(table_number)
            player1, player2 = player_slots(pairing)
            allocations.append(
                Allocation(
                    pairing=pairing,
                    table_number=table_number,
                    terrain_type_id=table.terrain_type_id if table else None,
                    terrain_type_name=table.terrain_label if table else None,
                    player1=player1,
                    player2=player2,
                    conflicts=(),
                    reason=AllocationReason(
                        total_cost=0,
                        cost_breakdown=ZERO_COST,
                        reasons=(reason,),
                        is_round1=True,
                    ),
                )
            )
            logger.debug("Round 1: %s vs %s -> table %d", pairing.player1_id, pairing.player2_id, table_number)

        return allocations, fallback_count

    def _allocate_greedy(
        self, games: List[Pairing], tables: Sequence[TableDescriptor], history: HistoryProvider
    ) -> List[Allocation]:
        pool = sorted(tables, key=get_table_sort_key)
        allocations: List[Allocation] = []

        for pairing in sorted(games, key=get_pairing_sort_key):
            best_index = 0
            best = None
            costs: List[Tuple[int, int]] = []
            for index, table in enumerate(pool):
                evaluation = self.cost_calculator.evaluate(pairing, table, history)
                costs.append((table.table_number, evaluation.breakdown.total))
                if best is None or evaluation.breakdown.total < best.breakdown.total:
                    best = evaluation
                    best_index = index

            table = pool.pop(best_index)
            alternatives = tuple(entry for entry in costs if entry[0] != table.table_number)
            reasons = best.reasons or ("Lowest-cost table available",)

            player1, player2 = player_slots(pairing)
            allocations.append(
                Allocation(
                    pairing=pairing,
                    table_number=table.table_number,
                    terrain_type_id=table.terrain_type_id,
                    terrain_type_name=table.terrain_label,
                    player1=player1,
                    player2=player2,
                    conflicts=best.conflicts,
                    reason=AllocationReason(
                        total_cost=best.breakdown.total,
                        cost_breakdown=best.breakdown,
                        reasons=tuple(reasons),
                        alternatives_considered=alternatives,
                    ),
                )
            )
            logger.debug(
                "%s vs %s -> table %d (cost %d, %d conflict(s))",
                pairing.player1_id,
                pairing.player2_id,
                table.table_number,
                best.breakdown.total,
                len(best.conflicts),
            )

        return allocations
