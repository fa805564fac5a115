from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .core.constants import DEFAULT_EMPLOYEE_CODE_PREFIX
from .database.connection import DBConfig, DatabaseConnection
from .discipline.mysql_disciplinary_repository import (
    MySQLDisciplinaryActionRepository,
    MySQLWarningTypeRepository,
)
from .discipline.service import DisciplinaryActionService
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.mysql_position_history_repository import MySQLPositionHistoryRepository
from .employees.service import EmployeeService
from .employees.transition import PositionTransitionService
from .leaves.application_service import LeaveApplicationService
from .leaves.mysql_leave_application_repository import MySQLLeaveApplicationRepository
from .leaves.mysql_leave_balance_repository import MySQLLeaveBalanceRepository
from .leaves.mysql_leave_policy_repository import MySQLLeavePolicyRepository
from .leaves.policy_service import LeavePolicyService
from .leaves.service import LeaveBalanceService
from .organization.mysql_department_repository import MySQLDepartmentRepository
from .organization.mysql_position_repository import MySQLPositionRepository
from .progress.service import EmployeeProgressService
from .tasks.mysql_task_repository import MySQLTaskRepository
from .tasks.service import TaskService
from .tasks.timing.factory import CompletionTimingFactory


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    task_service: TaskService
    progress_service: EmployeeProgressService
    employee_service: EmployeeService
    transition_service: PositionTransitionService
    leave_balance_service: LeaveBalanceService
    leave_policy_service: LeavePolicyService
    leave_application_service: LeaveApplicationService
    disciplinary_service: DisciplinaryActionService


def build_container(*, db_config: dict, employee_code_prefix: str = DEFAULT_EMPLOYEE_CODE_PREFIX) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_settings(db_config))

    employees_repo = MySQLEmployeeRepository(conn)
    history_repo = MySQLPositionHistoryRepository(conn)
    positions_repo = MySQLPositionRepository(conn)
    departments_repo = MySQLDepartmentRepository(conn)
    policies_repo = MySQLLeavePolicyRepository(conn)
    balances_repo = MySQLLeaveBalanceRepository(conn)
    applications_repo = MySQLLeaveApplicationRepository(conn)
    tasks_repo = MySQLTaskRepository(conn)
    actions_repo = MySQLDisciplinaryActionRepository(conn)
    warning_types_repo = MySQLWarningTypeRepository(conn)

    leave_balance_service = LeaveBalanceService(balances_repo, policies_repo, employees_repo, positions_repo)
    transition_service = PositionTransitionService(
        employees_repo,
        history_repo,
        positions_repo,
        departments_repo,
        leave_balance_service,
        transaction=conn.transaction,
    )
    employee_service = EmployeeService(
        employees_repo,
        history_repo,
        positions_repo,
        departments_repo,
        leave_balance_service,
        transition_service,
        code_prefix=employee_code_prefix,
        transaction=conn.transaction,
    )
    leave_policy_service = LeavePolicyService(policies_repo, positions_repo, leave_balance_service)
    leave_application_service = LeaveApplicationService(
        applications_repo,
        leave_balance_service,
        employees_repo,
        policies_repo,
        transaction=conn.transaction,
    )
    task_service = TaskService(tasks_repo, employees_repo, timing_factory=CompletionTimingFactory())
    progress_service = EmployeeProgressService(tasks_repo, employees_repo, positions_repo)
    disciplinary_service = DisciplinaryActionService(actions_repo, warning_types_repo, employees_repo)

    return Container(
        conn=conn,
        task_service=task_service,
        progress_service=progress_service,
        employee_service=employee_service,
        transition_service=transition_service,
        leave_balance_service=leave_balance_service,
        leave_policy_service=leave_policy_service,
        leave_application_service=leave_application_service,
        disciplinary_service=disciplinary_service,
    )
