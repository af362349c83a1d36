from __future__ import annotations

import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Sequence

from solver.availability import AvailabilityTracker
from solver.conflicts import (
    BACKTRACKED,
    DAILY_LIMIT_REACHED,
    TIME_BUDGET_EXHAUSTED,
    Conflict,
    demand_exceeds_capacity,
    quota_violation,
    summarize_reasons,
    under_scheduled,
    unplaceable_period,
)
from solver.demands import Demand, PlacementUnit, ScheduledEntry
from solver.policy import GenerationPolicy
from solver.slots import SlotId


logger = logging.getLogger(__name__)

CORE_MODULE_CATEGORIES = frozenset({"SPECIFIC", "GENERAL"})
MORNING_SESSION = "MORNING"


@dataclass
class _Decision:
    unit: PlacementUnit
    candidates: list[SlotId]
    cursor: int = 0
    slot: SlotId | None = None
    rejected: dict[SlotId, str] = field(default_factory=dict)


@dataclass
class SolveOutcome:
    entries: list[ScheduledEntry] = field(default_factory=list)
    conflicts: list[Conflict] = field(default_factory=list)
    # Demand.order -> number of periods placed in this solve.
    placed: dict[int, int] = field(default_factory=dict)
    timed_out: bool = False

    def conflicts_for(self, demand: Demand) -> list[Conflict]:
        return [
            c for c in self.conflicts
            if c.related_demand is not None and c.related_demand.order == demand.order
        ]


class HeuristicSolver:
    """Greedy placement with bounded chronological backtracking.

    Demands are handled one at a time in the order given. Each period of a
    demand is a decision over a ranked candidate list; when a decision runs out
    of candidates the most recent placement of the same demand is undone and
    resumes from its next candidate, up to a per-demand retry budget. Units that
    still cannot be placed are abandoned with an UNPLACEABLE_PERIOD conflict.
    """

    def __init__(
        self,
        tracker: AvailabilityTracker,
        policy: GenerationPolicy | None = None,
        *,
        deadline: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.tracker = tracker
        self.catalog = tracker.catalog
        self.policy = policy or GenerationPolicy()
        self.deadline = deadline
        self.clock = clock

    def solve(self, demands: Sequence[Demand]) -> SolveOutcome:
        outcome = SolveOutcome()
        for demand in demands:
            self._solve_demand(demand, outcome)
        logger.debug(
            "Solved %d demands: %d entries, %d conflicts",
            len(demands),
            len(outcome.entries),
            len(outcome.conflicts),
        )
        return outcome

    def _expired(self) -> bool:
        return self.deadline is not None and self.clock() >= self.deadline

    def _solve_demand(self, demand: Demand, outcome: SolveOutcome) -> None:
        outcome.placed.setdefault(demand.order, 0)
        if demand.periods_required <= 0:
            return

        capacity = self.catalog.teaching_slot_count
        if demand.periods_required > capacity:
            outcome.conflicts.append(demand_exceeds_capacity(demand, teaching_slots=capacity))
            return

        units = demand.units()
        budget = self.policy.retry_budget(demand.periods_required)
        retries = 0
        placed: list[_Decision] = []
        abandoned = 0
        current: _Decision | None = None

        while len(placed) + abandoned < len(units):
            if self._expired():
                outcome.timed_out = True
                remaining = len(units) - len(placed) - abandoned
                for n in range(remaining):
                    outcome.conflicts.append(
                        unplaceable_period(
                            demand,
                            unit_number=len(placed) + abandoned + n + 1,
                            attempted=(),
                            reasons={},
                            retries_used=retries,
                            reason=TIME_BUDGET_EXHAUSTED,
                        )
                    )
                abandoned += remaining
                break

            if current is None:
                unit = units[len(placed) + abandoned]
                current = _Decision(unit=unit, candidates=self._rank(demand, [d.slot for d in placed]))

            slot = self._advance(current, demand, placed)
            if slot is not None:
                self.tracker.reserve(demand.teacher_id, demand.class_id, slot)
                current.slot = slot
                placed.append(current)
                current = None
                continue

            if placed and retries < budget:
                # Undo the most recent placement and let it try its next candidate.
                retries += 1
                previous = placed.pop()
                self.tracker.release(demand.teacher_id, demand.class_id, previous.slot)
                previous.rejected[previous.slot] = BACKTRACKED
                previous.slot = None
                current = previous
                continue

            outcome.conflicts.append(
                unplaceable_period(
                    demand,
                    unit_number=len(placed) + abandoned + 1,
                    attempted=current.candidates,
                    reasons=summarize_reasons(current.rejected.values()),
                    retries_used=retries,
                )
            )
            abandoned += 1
            current = None

        for decision in placed:
            outcome.entries.append(ScheduledEntry.for_demand(demand, decision.slot))
        outcome.placed[demand.order] = outcome.placed.get(demand.order, 0) + len(placed)

        if retries or abandoned:
            logger.debug("%s: %d backtracks, %d abandoned", demand.describe(), retries, abandoned)

    def _advance(self, decision: _Decision, demand: Demand, placed: list[_Decision]) -> SlotId | None:
        per_day = Counter(d.slot.day for d in placed)
        limit = self.policy.daily_limit
        while decision.cursor < len(decision.candidates):
            slot = decision.candidates[decision.cursor]
            decision.cursor += 1
            reason = self.tracker.blocking_reason(demand.teacher_id, demand.class_id, slot)
            if reason is None and limit is not None and per_day[slot.day] >= limit:
                reason = DAILY_LIMIT_REACHED
            if reason is None:
                return slot
            decision.rejected[slot] = reason
        return None

    def _rank(self, demand: Demand, placed_slots: Iterable[SlotId]) -> list[SlotId]:
        """Candidate order for the next period of a demand.

        Keys: fewest periods of this demand already on the day, then days where
        the teacher is below the spread threshold, then morning slots for core
        TSS modules, then day and period.
        """
        per_day = Counter(s.day for s in placed_slots)
        threshold = self.policy.teacher_daily_spread_threshold
        wants_morning = (
            self.policy.prefer_morning_for_core_modules
            and demand.is_module
            and (demand.category or "").upper() in CORE_MODULE_CATEGORIES
        )
        teacher_day_load = {
            day: self.tracker.teacher_day_load(demand.teacher_id, day) for day in self.catalog.days
        }

        def _key(slot: SlotId) -> tuple[Any, ...]:
            morning_penalty = 0
            if wants_morning:
                meta = self.catalog.get(slot)
                morning_penalty = 0 if meta is not None and meta.session == MORNING_SESSION else 1
            return (
                per_day[slot.day],
                1 if teacher_day_load.get(slot.day, 0) >= threshold else 0,
                morning_penalty,
                int(slot.day),
                slot.period,
            )

        return sorted(self.catalog.teaching_slots, key=_key)


def audit_schedule(
    tracker: AvailabilityTracker,
    demands: Sequence[Demand],
    placed: dict[int, int],
) -> list[Conflict]:
    """Post-pass checks: weekly caps exceeded and classes left short of their quota."""
    conflicts: list[Conflict] = []

    teacher_names: dict[Any, str | None] = {}
    for d in demands:
        teacher_names.setdefault(d.teacher_id, d.teacher_name)
    for teacher_id, name in teacher_names.items():
        cap = tracker.weekly_cap(teacher_id)
        load = tracker.teacher_load(teacher_id)
        if cap is not None and load > cap:
            conflicts.append(quota_violation(teacher_id=teacher_id, teacher_name=name, load=load, cap=cap))

    required: dict[Any, int] = {}
    scheduled: dict[Any, int] = {}
    class_names: dict[Any, str | None] = {}
    for d in demands:
        class_names.setdefault(d.class_id, d.class_name)
        required[d.class_id] = required.get(d.class_id, 0) + d.periods_required
        scheduled[d.class_id] = scheduled.get(d.class_id, 0) + placed.get(d.order, 0)
    for class_id, need in required.items():
        got = scheduled.get(class_id, 0)
        if got < need:
            conflicts.append(
                under_scheduled(class_id=class_id, class_name=class_names[class_id], required=need, placed=got)
            )
    return conflicts
