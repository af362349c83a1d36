from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol, Sequence

from sqlalchemy.orm import Session

from services.errors import NotFoundError, PersistenceError, StructuralError
from services.locks import school_generation_lock
from services.scope import GenerationScope, SchoolScope, ScopeKind
from services.timetable_store import TimetableStore
from solver.availability import AvailabilityTracker, TeacherConstraints
from solver.conflicts import Conflict, timetables_exist
from solver.demands import Assignment, Demand, ScheduledEntry, build_demands, order_demands
from solver.heuristic_solver import HeuristicSolver, audit_schedule
from solver.policy import GenerationPolicy
from solver.slots import SlotCatalog


logger = logging.getLogger(__name__)


MODE_INCREMENTAL = "incremental"
MODE_REGENERATION = "regeneration"


class TimetableSource(Protocol):
    def class_name(self, class_id: Any) -> str | None: ...

    def teacher_name(self, teacher_id: Any) -> str | None: ...

    def load_slot_catalog(self) -> SlotCatalog: ...

    def load_teacher_constraints(self) -> dict[Any, TeacherConstraints]: ...

    def load_assignments(self, scope: GenerationScope) -> list[Assignment]: ...

    def load_entries(self) -> list[ScheduledEntry]: ...

    def replace_entries(self, scope: GenerationScope, entries: Sequence[ScheduledEntry]) -> int: ...


@dataclass(frozen=True)
class GenerationRequest:
    scope: GenerationScope
    regenerate: bool = False
    incremental: bool = False

    @property
    def mode(self) -> str:
        return MODE_INCREMENTAL if self.incremental else MODE_REGENERATION


@dataclass
class GenerationResult:
    request: GenerationRequest
    entries: list[ScheduledEntry] = field(default_factory=list)
    conflicts: list[Conflict] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    entries_written: int = 0
    class_name: str | None = None
    teacher_name: str | None = None
    # True when existing timetables were kept without generating.
    skipped: bool = False
    # True when existing timetables blocked a run that set neither flag.
    rejected: bool = False
    timed_out: bool = False

    @property
    def scope(self) -> GenerationScope:
        return self.request.scope

    @property
    def mode(self) -> str:
        return self.request.mode


@dataclass(frozen=True)
class _Pass:
    label: str
    class_id: Any = None
    teacher_id: Any = None

    def includes(self, demand: Demand) -> bool:
        if self.class_id is not None and demand.class_id != self.class_id:
            return False
        if self.teacher_id is not None and demand.teacher_id != self.teacher_id:
            return False
        return True


class ScopeController:
    """Runs one generation request: snapshot, flag handling, passes, audit, commit."""

    def __init__(
        self,
        store: TimetableSource,
        policy: GenerationPolicy | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.policy = policy or GenerationPolicy()
        self.clock = clock

    def run(self, request: GenerationRequest) -> GenerationResult:
        scope = request.scope
        result = GenerationResult(request=request)
        self._describe_scope(result)

        snapshot = self.store.load_entries()
        in_scope = [e for e in snapshot if scope.covers_entry(e)]
        out_of_scope = [e for e in snapshot if not scope.covers_entry(e)]

        if in_scope:
            if request.incremental and not request.regenerate:
                logger.info("Keeping %d existing entries for %s (incremental)", len(in_scope), self._label(result))
                result.entries = in_scope
                result.skipped = True
                return result
            if not request.regenerate:
                result.entries = in_scope
                result.rejected = True
                result.conflicts.append(timetables_exist(scope_label=self._label(result), existing=len(in_scope)))
                return result

        catalog = self.store.load_slot_catalog()
        if catalog.teaching_slot_count == 0:
            raise StructuralError(
                "No teaching time slots are configured for this school. Create time slots first.",
                code="NO_TIME_SLOTS",
            )

        assignments = self.store.load_assignments(scope)
        if not assignments:
            raise StructuralError(
                f"No lessons are assigned for {self._label(result)}. "
                "Assign subjects to teachers or modules to trainers first.",
                code="NO_ASSIGNMENTS",
            )

        tracker = AvailabilityTracker(
            catalog,
            self.store.load_teacher_constraints(),
            seed_entries=out_of_scope,
            default_max_weekly_periods=self.policy.default_max_weekly_periods,
            max_consecutive_periods=self.policy.max_consecutive_teacher_periods,
        )
        extraction = build_demands(assignments)
        result.warnings.extend(extraction.warnings)
        demands = extraction.demands

        deadline = None
        if self.policy.time_budget_seconds:
            deadline = self.clock() + float(self.policy.time_budget_seconds)
        solver = HeuristicSolver(tracker, self.policy, deadline=deadline, clock=self.clock)

        placed: dict[int, int] = {d.order: 0 for d in demands}
        # Latest attempt wins; first-attempt position keeps the report order stable.
        conflicts_by_demand: dict[int, list[Conflict]] = {}
        entries: list[ScheduledEntry] = []

        for p in self._plan_passes(scope, demands):
            pending = [
                d.with_periods(d.periods_required - placed[d.order], already_placed=placed[d.order])
                for d in demands
                if p.includes(d) and d.periods_required - placed[d.order] > 0
            ]
            if not pending:
                continue
            outcome = solver.solve(order_demands(pending, tracker.flexibility))
            entries.extend(outcome.entries)
            for d in pending:
                placed[d.order] += outcome.placed.get(d.order, 0)
                conflicts_by_demand[d.order] = outcome.conflicts_for(d)
            result.timed_out = result.timed_out or outcome.timed_out

        for demand_conflicts in conflicts_by_demand.values():
            result.conflicts.extend(demand_conflicts)
        result.conflicts.extend(audit_schedule(tracker, demands, placed))
        if result.timed_out:
            result.warnings.append("Generation stopped early after reaching its time budget.")

        result.entries = entries
        try:
            result.entries_written = self.store.replace_entries(scope, entries)
        except PersistenceError:
            raise
        except Exception as exc:
            raise PersistenceError("Failed to save timetable entries; nothing was changed.") from exc

        logger.info(
            "Generated %s for %s: %d entries, %d conflicts",
            request.mode,
            self._label(result),
            result.entries_written,
            len(result.conflicts),
        )
        return result

    def _describe_scope(self, result: GenerationResult) -> None:
        scope = result.scope
        if scope.kind is ScopeKind.CLASS:
            result.class_name = self.store.class_name(scope.class_id)
            if result.class_name is None:
                raise NotFoundError("Class not found", code="CLASS_NOT_FOUND")
        elif scope.kind is ScopeKind.TEACHER:
            result.teacher_name = self.store.teacher_name(scope.teacher_id)
            if result.teacher_name is None:
                raise NotFoundError("Teacher not found", code="TEACHER_NOT_FOUND")

    @staticmethod
    def _label(result: GenerationResult) -> str:
        scope = result.scope
        if scope.kind is ScopeKind.CLASS:
            return f"class {result.class_name}"
        if scope.kind is ScopeKind.TEACHER:
            return f"teacher {result.teacher_name}"
        return "the school"

    @staticmethod
    def _plan_passes(scope: GenerationScope, demands: Sequence[Demand]) -> list[_Pass]:
        if scope.kind is ScopeKind.CLASS:
            return [_Pass("class", class_id=scope.class_id)]
        if scope.kind is ScopeKind.TEACHER:
            return [_Pass("teacher", teacher_id=scope.teacher_id)]

        class_names: dict[Any, str] = {}
        teacher_names: dict[Any, str] = {}
        for d in demands:
            class_names.setdefault(d.class_id, d.class_name or "")
            teacher_names.setdefault(d.teacher_id, d.teacher_name or "")
        class_passes = [
            _Pass("class", class_id=cid)
            for cid, _name in sorted(class_names.items(), key=lambda kv: (kv[1], str(kv[0])))
        ]
        teacher_passes = [
            _Pass("teacher", teacher_id=tid)
            for tid, _name in sorted(teacher_names.items(), key=lambda kv: (kv[1], str(kv[0])))
        ]
        if scope.school_scope is SchoolScope.ALL_CLASSES:
            return class_passes
        if scope.school_scope is SchoolScope.ALL_TEACHERS:
            return teacher_passes
        # Teacher passes retry whatever the class passes left unplaced.
        return class_passes + teacher_passes


def generate_timetables(
    db: Session,
    *,
    school_id: uuid.UUID,
    request: GenerationRequest,
    settings: Any,
) -> GenerationResult:
    with school_generation_lock(school_id, timeout=settings.generation_lock_timeout_seconds):
        controller = ScopeController(TimetableStore(db, school_id), GenerationPolicy.from_settings(settings))
        return controller.run(request)
