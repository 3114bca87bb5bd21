"""Employee status transitions.

An employee starts active and becomes inactive exactly once, when an
offboarding record is written. There is no way back.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from payroll_admin.models import Employee


class EmployeeStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"

    @classmethod
    def of(cls, employee: Employee) -> EmployeeStatus:
        return cls.ACTIVE if employee.is_active else cls.INACTIVE


class InvalidTransitionError(Exception):
    """An employee cannot move from ``current`` to ``target``."""

    def __init__(self, current: EmployeeStatus, target: EmployeeStatus):
        self.current = current
        self.target = target
        if current is EmployeeStatus.INACTIVE:
            message = "Employee has already been offboarded"
        else:
            message = f"Employee cannot go from {current.value} to {target.value}"
        super().__init__(message)


_SUCCESSORS: dict[EmployeeStatus, frozenset[EmployeeStatus]] = {
    EmployeeStatus.ACTIVE: frozenset({EmployeeStatus.INACTIVE}),
    EmployeeStatus.INACTIVE: frozenset(),
}


class EmployeeStateMachine:
    @staticmethod
    def allows(current: EmployeeStatus, target: EmployeeStatus) -> bool:
        return target in _SUCCESSORS[current]

    @staticmethod
    def is_terminal(status: EmployeeStatus) -> bool:
        return not _SUCCESSORS[status]

    @classmethod
    def offboard(cls, employee: Employee) -> None:
        """Deactivate ``employee`` or raise if it is already inactive."""
        current = EmployeeStatus.of(employee)
        if not cls.allows(current, EmployeeStatus.INACTIVE):
            raise InvalidTransitionError(current, EmployeeStatus.INACTIVE)
        employee.is_active = False
