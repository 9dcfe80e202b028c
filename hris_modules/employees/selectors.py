"""
EmployeeDirectory -- read-side lookups and role checks.

Used by every module service to resolve notification pools and to
authorize actors.  Never writes.
"""

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from hris_kernel.exceptions import EntityNotFoundError, UnauthorizedActorError
from hris_modules.employees.orm import EmployeeModel


class EmployeeDirectory:
    """Role-aware employee lookups."""

    def __init__(self, session: Session):
        self._session = session

    def get(self, employee_id: UUID) -> EmployeeModel | None:
        return self._session.get(EmployeeModel, employee_id)

    def require(self, employee_id: UUID) -> EmployeeModel:
        employee = self._session.get(EmployeeModel, employee_id)
        if employee is None:
            raise EntityNotFoundError("Employee", str(employee_id))
        return employee

    def with_roles(self, roles: Iterable[str]) -> list[EmployeeModel]:
        """Active employees holding any of ``roles``, ordered by name."""
        return list(
            self._session.execute(
                select(EmployeeModel)
                .where(
                    EmployeeModel.role.in_(list(roles)),
                    EmployeeModel.is_active.is_(True),
                )
                .order_by(EmployeeModel.name)
            ).scalars().all()
        )

    def ids_with_roles(self, roles: Iterable[str]) -> list[UUID]:
        return [e.id for e in self.with_roles(roles)]

    def has_role(self, employee_id: UUID, roles: Iterable[str]) -> bool:
        employee = self.get(employee_id)
        return employee is not None and employee.is_active and employee.role in tuple(roles)

    def require_role(
        self,
        actor_id: UUID,
        roles: Iterable[str],
        action: str,
    ) -> EmployeeModel:
        """
        Load the actor and check their role.

        Raises:
            UnauthorizedActorError: Unknown, inactive, or wrong role.
        """
        roles = tuple(roles)
        actor = self.get(actor_id)
        if actor is None or not actor.is_active:
            raise UnauthorizedActorError(str(actor_id), action, "unknown or inactive employee")
        if actor.role not in roles:
            raise UnauthorizedActorError(
                str(actor_id), action, f"role '{actor.role}' not in {list(roles)}",
            )
        return actor
