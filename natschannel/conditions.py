"""Status conditions and the living condition set that manages them."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Optional

CONDITION_READY = "Ready"

_SEVERITY_ERROR = ""
_SEVERITY_INFO = "Info"
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class ConditionStatus(str, enum.Enum):
    """Tri-state value of a condition."""

    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


@dataclass
class Condition:
    """One observation about the state of a resource."""

    type: str
    status: ConditionStatus
    severity: str = _SEVERITY_ERROR
    last_transition_time: Optional[datetime] = None
    reason: str = ""
    message: str = ""


@dataclass
class Status:
    """Duck-typed resource status holding a list of conditions."""

    observed_generation: int = 0
    conditions: list[Condition] = field(default_factory=list)
    annotations: dict[str, str] = field(default_factory=dict)

    def get_condition(self, condition_type: str) -> Optional[Condition]:
        """Return the condition of the given type, or ``None``."""
        return next((c for c in self.conditions if c.type == condition_type), None)

    def set_condition(self, condition: Condition) -> None:
        """Insert or replace a condition, keeping conditions sorted by type."""
        kept = [c for c in self.conditions if c.type != condition.type]
        kept.append(condition)
        kept.sort(key=lambda c: c.type)
        self.conditions = kept


def _format(message_format: str, args: tuple) -> str:
    return message_format % args if args else message_format


class ConditionSet:
    """A happy condition together with the dependent conditions that drive it."""

    def __init__(self, happy: str, dependents) -> None:
        self.happy = happy
        unique: list[str] = []
        for dep in dependents:
            if dep != happy and dep not in unique:
                unique.append(dep)
        self.dependents = tuple(unique)

    def manage(self, status: Any) -> ConditionManager:
        """Return a manager operating on ``status.conditions``."""
        return ConditionManager(self, status)

    def __repr__(self) -> str:
        return f"ConditionSet(happy={self.happy!r}, dependents={self.dependents!r})"


class ConditionManager:
    """Applies condition-set rules to the conditions of one status object."""

    def __init__(self, condition_set: ConditionSet, status: Any) -> None:
        self._condition_set = condition_set
        self._status = status

    def _is_terminal(self, condition_type: str) -> bool:
        cs = self._condition_set
        return condition_type == cs.happy or condition_type in cs.dependents

    def _severity(self, condition_type: str) -> str:
        return _SEVERITY_ERROR if self._is_terminal(condition_type) else _SEVERITY_INFO

    def _set(self, condition: Condition) -> None:
        conditions = []
        for existing in self._status.conditions:
            if existing.type != condition.type:
                conditions.append(existing)
                continue
            condition = replace(condition, last_transition_time=existing.last_transition_time)
            if condition == existing:
                return
        condition = replace(condition, last_transition_time=datetime.now(timezone.utc))
        conditions.append(condition)
        conditions.sort(key=lambda c: c.type)
        self._status.conditions = conditions

    def get_condition(self, condition_type: str) -> Optional[Condition]:
        """Return the condition of the given type, or ``None``."""
        return next((c for c in self._status.conditions if c.type == condition_type), None)

    def _status_of(self, condition_type: str) -> Optional[ConditionStatus]:
        cond = self.get_condition(condition_type)
        return None if cond is None else cond.status

    def is_happy(self) -> bool:
        """True when the happy condition is True."""
        return self._status_of(self._condition_set.happy) == ConditionStatus.TRUE

    def initialize_conditions(self) -> None:
        """Add any missing happy and dependent conditions."""
        happy_type = self._condition_set.happy
        happy = self.get_condition(happy_type)
        if happy is None:
            happy = Condition(type=happy_type, status=ConditionStatus.UNKNOWN)
            self._set(happy)
        status = (
            ConditionStatus.TRUE if happy.status == ConditionStatus.TRUE else ConditionStatus.UNKNOWN
        )
        for dep in self._condition_set.dependents:
            if self.get_condition(dep) is None:
                self._set(Condition(type=dep, status=status))

    def _find_unhappy_dependent(self) -> Optional[Condition]:
        cs = self._condition_set
        if not cs.dependents:
            return None
        candidates = [
            c
            for c in self._status.conditions
            if c.severity == _SEVERITY_ERROR and c.type != cs.happy
        ]
        candidates.sort(key=lambda c: c.last_transition_time or _EPOCH, reverse=True)
        for wanted in (ConditionStatus.FALSE, ConditionStatus.UNKNOWN):
            for cond in candidates:
                if cond.status == wanted:
                    return cond
        if len(cs.dependents) > len(candidates):
            return Condition(type=cs.happy, status=ConditionStatus.UNKNOWN)
        return None

    def mark_true(self, condition_type: str) -> None:
        """Mark a condition True and recompute the happy condition."""
        happy = self._condition_set.happy
        self._set(
            Condition(
                type=condition_type,
                status=ConditionStatus.TRUE,
                severity=self._severity(condition_type),
            )
        )
        unhappy = self._find_unhappy_dependent()
        if unhappy is not None:
            self._set(
                Condition(
                    type=happy,
                    status=unhappy.status,
                    reason=unhappy.reason,
                    message=unhappy.message,
                    severity=self._severity(happy),
                )
            )
            return
        self._set(Condition(type=happy, status=ConditionStatus.TRUE, severity=self._severity(happy)))

    def mark_false(self, condition_type: str, reason: str, message_format: str, *args: Any) -> None:
        """Mark a condition False; a dependent also makes the happy condition False."""
        types = [condition_type]
        if condition_type in self._condition_set.dependents:
            types.append(self._condition_set.happy)
        message = _format(message_format, args)
        for cond_type in types:
            self._set(
                Condition(
                    type=cond_type,
                    status=ConditionStatus.FALSE,
                    reason=reason,
                    message=message,
                    severity=self._severity(cond_type),
                )
            )

    def mark_unknown(self, condition_type: str, reason: str, message_format: str, *args: Any) -> None:
        """Mark a condition Unknown; False dependents still win for the happy condition."""
        message = _format(message_format, args)
        self._set(
            Condition(
                type=condition_type,
                status=ConditionStatus.UNKNOWN,
                reason=reason,
                message=message,
                severity=self._severity(condition_type),
            )
        )
        happy = self._condition_set.happy
        is_dependent = False
        for dep in self._condition_set.dependents:
            if self._status_of(dep) == ConditionStatus.FALSE:
                if self._status_of(happy) != ConditionStatus.FALSE:
                    self.mark_false(happy, reason, message_format, *args)
                return
            if dep == condition_type:
                is_dependent = True
        if is_dependent:
            self._set(
                Condition(
                    type=happy,
                    status=ConditionStatus.UNKNOWN,
                    reason=reason,
                    message=message,
                    severity=self._severity(happy),
                )
            )


def new_living_condition_set(*dependents: str) -> ConditionSet:
    """Condition set whose happy condition is ``Ready``."""
    return ConditionSet(CONDITION_READY, dependents)