from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import date
from typing import Optional

import pytest

from src.hrms_system.hrms_system.core.actor import Actor
from src.hrms_system.hrms_system.core.enums import (
    DisciplinaryStatus,
    EmployeeStatus,
    Gender,
    PolicyStatus,
    Role,
    TaskStatus,
)
from src.hrms_system.hrms_system.discipline.model import DisciplinaryAction, WarningType
from src.hrms_system.hrms_system.discipline.service import DisciplinaryActionService
from src.hrms_system.hrms_system.employees.model import Employee, PositionHistoryEntry
from src.hrms_system.hrms_system.employees.service import EmployeeService
from src.hrms_system.hrms_system.employees.transition import PositionTransitionService
from src.hrms_system.hrms_system.leaves.application_model import LeaveApplication
from src.hrms_system.hrms_system.leaves.application_service import LeaveApplicationService
from src.hrms_system.hrms_system.leaves.model import Entitlement, LeaveBalance, LeavePolicy, LeaveType
from src.hrms_system.hrms_system.leaves.policy_service import LeavePolicyService
from src.hrms_system.hrms_system.leaves.service import LeaveBalanceService
from src.hrms_system.hrms_system.organization.model import Department, Position
from src.hrms_system.hrms_system.progress.service import EmployeeProgressService
from src.hrms_system.hrms_system.tasks.model import EmployeeTaskStats, WorkProgressReport
from src.hrms_system.hrms_system.tasks.service import TaskService


class FakePositions:
    def __init__(self):
        self.items: dict[int, Position] = {}

    def add(self, position: Position) -> Position:
        self.items[position.position_id] = position
        return position

    def get_by_id(self, position_id):
        return self.items.get(int(position_id))

    def increment_hired(self, position_id, delta):
        p = self.items[int(position_id)]
        self.items[p.position_id] = replace(p, hired_employees=p.hired_employees + delta)

    def list_ids(self, *, department_id=None, name=None):
        return [
            p.position_id
            for p in self.items.values()
            if (department_id is None or p.department_id == department_id) and (not name or p.name == name)
        ]

    def list_ids_by_leave_policy(self, leave_policy_id):
        return [p.position_id for p in self.items.values() if p.leave_policy_id == leave_policy_id]


class FakeDepartments:
    def __init__(self):
        self.items: dict[int, Department] = {}

    def add(self, department: Department) -> Department:
        self.items[department.department_id] = department
        return department

    def get_by_id(self, department_id):
        return self.items.get(int(department_id))

    def increment_employee_count(self, department_id, delta):
        d = self.items[int(department_id)]
        self.items[d.department_id] = replace(d, employee_count=d.employee_count + delta)


class FakeEmployees:
    def __init__(self):
        self.items: dict[int, Employee] = {}
        self._next_id = 1

    def add(self, employee: Employee) -> Employee:
        self.items[employee.employee_id] = employee
        self._next_id = max(self._next_id, employee.employee_id + 1)
        return employee

    def get_by_id(self, employee_id):
        return self.items.get(int(employee_id))

    def get_by_ids(self, employee_ids):
        return [self.items[i] for i in employee_ids if i in self.items]

    def find_by_cnic(self, cnic, *, exclude_id=None):
        for e in self.items.values():
            if e.cnic == cnic and e.employee_id != exclude_id:
                return e
        return None

    def last_employee_code(self):
        if not self.items:
            return None
        return self.items[max(self.items)].employee_code

    def create(self, data):
        employee_id = self._next_id
        self._next_id += 1
        self.items[employee_id] = Employee(
            employee_id=employee_id,
            employee_code=data.employee_code,
            full_name=data.full_name,
            gender=data.gender,
            position_id=data.position_id,
            employment_type=data.employment_type,
            father_name=data.father_name,
            cnic=data.cnic,
            dob=data.dob,
            contact_number=data.contact_number,
            province=data.province,
            city=data.city,
            current_address=data.current_address,
            joining_date=data.joining_date,
            basic_salary=data.basic_salary,
        )
        return employee_id

    def update_profile(self, employee_id, changes):
        self.items[employee_id] = replace(self.items[employee_id], **dict(changes))

    def set_position(self, employee_id, position_id):
        self.items[employee_id] = replace(self.items[employee_id], position_id=position_id)

    def set_status(self, employee_id, status):
        self.items[employee_id] = replace(self.items[employee_id], status=status)

    def list_active(self):
        return [e for e in self.items.values() if e.is_active]

    def list_active_by_positions(self, position_ids):
        return [e for e in self.items.values() if e.is_active and e.position_id in set(position_ids)]

    def search_active(self, query, *, limit):
        q = query.lower()
        hits = [
            e for e in self.items.values()
            if e.is_active and (q in e.full_name.lower() or q in e.employee_code.lower())
        ]
        return hits[:limit]

    def page_filtered(self, *, page, search="", status=None, employment_type=None, position_ids=None):
        q = search.lower()
        rows = [
            e for e in sorted(self.items.values(), key=lambda e: e.employee_id, reverse=True)
            if (not q or q in e.full_name.lower() or q in e.employee_code.lower() or q in (e.cnic or "").lower())
            and (status is None or e.status == status)
            and (employment_type is None or e.employment_type == employment_type)
            and (position_ids is None or e.position_id in set(position_ids))
        ]
        if page.limit > 0:
            return rows[page.offset:page.offset + page.limit], len(rows)
        return rows, len(rows)


class FakeHistory:
    def __init__(self):
        self.entries: list[PositionHistoryEntry] = []

    def add(self, *, employee_id, from_position_id, to_position_id, changed_by_id, changed_by_name,
            effective_date, reason, changed_at):
        entry = PositionHistoryEntry(
            history_id=len(self.entries) + 1,
            employee_id=employee_id,
            from_position_id=from_position_id,
            to_position_id=to_position_id,
            changed_by_id=changed_by_id,
            changed_by_name=changed_by_name,
            effective_date=effective_date,
            reason=reason,
            changed_at=changed_at,
        )
        self.entries.append(entry)
        return entry.history_id

    def list_for_employee(self, employee_id):
        return [e for e in reversed(self.entries) if e.employee_id == employee_id]


class FakePolicies:
    def __init__(self):
        self.items: dict[int, LeavePolicy] = {}
        self.leave_types: dict[int, LeaveType] = {}
        self._next_id = 1

    def add(self, policy: LeavePolicy) -> LeavePolicy:
        self.items[policy.leave_policy_id] = policy
        self._next_id = max(self._next_id, policy.leave_policy_id + 1)
        return policy

    def get_by_id(self, leave_policy_id):
        return self.items.get(int(leave_policy_id))

    def find_by_name(self, name, *, exclude_id=None):
        for p in self.items.values():
            if p.name.lower() == name.lower() and p.leave_policy_id != exclude_id:
                return p
        return None

    def create(self, *, name, entitlements, status, created_by):
        policy_id = self._next_id
        self._next_id += 1
        self.items[policy_id] = LeavePolicy(policy_id, name, tuple(entitlements), status, created_by)
        return policy_id

    def update(self, leave_policy_id, *, name=None, entitlements=None):
        p = self.items[leave_policy_id]
        self.items[leave_policy_id] = replace(
            p,
            name=name if name is not None else p.name,
            entitlements=tuple(entitlements) if entitlements is not None else p.entitlements,
        )

    def set_status(self, leave_policy_id, status):
        self.items[leave_policy_id] = replace(self.items[leave_policy_id], status=status)

    def delete(self, leave_policy_id):
        return self.items.pop(leave_policy_id, None) is not None

    def get_leave_types(self, leave_type_ids):
        return [self.leave_types[i] for i in set(leave_type_ids) if i in self.leave_types]


class FakeBalances:
    def __init__(self):
        self.items: dict[int, LeaveBalance] = {}
        self._next_id = 1

    def find(self, employee_id, leave_type_id, year) -> Optional[LeaveBalance]:
        for b in self.items.values():
            if (b.employee_id, b.leave_type_id, b.year) == (employee_id, leave_type_id, year):
                return b
        return None

    def list_for_employee(self, employee_id, *, year=None):
        return [
            b for b in self.items.values()
            if b.employee_id == employee_id and (year is None or b.year == year)
        ]

    def count_for_employee(self, employee_id, *, year):
        return len(self.list_for_employee(employee_id, year=year))

    def create(self, *, employee_id, leave_type_id, year, total_days, used_days=0):
        assert self.find(employee_id, leave_type_id, year) is None, "duplicate balance"
        balance_id = self._next_id
        self._next_id += 1
        self.items[balance_id] = LeaveBalance(
            balance_id=balance_id,
            employee_id=employee_id,
            leave_type_id=leave_type_id,
            year=year,
            total_days=total_days,
            used_days=used_days,
            remaining_days=max(0, total_days - used_days),
        )
        return balance_id

    def create_many(self, *, employee_id, year, entitlements):
        for ent in entitlements:
            self.create(employee_id=employee_id, leave_type_id=ent.leave_type_id, year=year, total_days=ent.days)
        return len(entitlements)

    def update_totals(self, balance_id, *, total_days, remaining_days):
        self.items[balance_id] = replace(self.items[balance_id], total_days=total_days, remaining_days=remaining_days)

    def update_used(self, balance_id, *, used_days, remaining_days):
        self.items[balance_id] = replace(self.items[balance_id], used_days=used_days, remaining_days=remaining_days)


class FakeLeaveApplications:
    def __init__(self, employees: FakeEmployees, policies: FakePolicies):
        self.items: dict[int, LeaveApplication] = {}
        self._employees = employees
        self._policies = policies
        self._next_id = 1

    def _names(self, employee_id, leave_type_id) -> dict:
        emp = self._employees.get_by_id(employee_id)
        leave_type = self._policies.leave_types.get(leave_type_id)
        return {
            "employee_name": emp.full_name if emp else "",
            "employee_code": emp.employee_code if emp else "",
            "leave_type_name": leave_type.name if leave_type else "",
        }

    def get_by_id(self, application_id):
        return self.items.get(int(application_id))

    def page(self, *, page, search=""):
        q = search.lower()
        rows = [
            a for a in sorted(self.items.values(), key=lambda a: (a.created_at, a.application_id), reverse=True)
            if not q or q in a.employee_name.lower() or q in a.employee_code.lower() or q in a.leave_type_name.lower()
        ]
        if page.limit > 0:
            return rows[page.offset:page.offset + page.limit], len(rows)
        return rows, len(rows)

    def booked_dates(self, employee_id, dates, *, exclude_id=None):
        wanted = set(dates)
        return sorted({
            d
            for a in self.items.values()
            if a.employee_id == employee_id and a.status.holds_days and a.application_id != exclude_id
            for d in a.dates
            if d in wanted
        })

    def create(self, data):
        application_id = self._next_id
        self._next_id += 1
        self.items[application_id] = LeaveApplication(
            application_id=application_id,
            employee_id=data.employee_id,
            leave_type_id=data.leave_type_id,
            date_ranges=tuple(data.date_ranges),
            dates=tuple(data.dates),
            reason=data.reason,
            status=data.status,
            applied_by_id=data.applied_by_id,
            approved_by_id=data.approved_by_id,
            created_by=data.created_by,
            created_at=data.created_at,
            updated_at=data.created_at,
            **self._names(data.employee_id, data.leave_type_id),
        )
        return application_id

    def update(self, application_id, *, employee_id, leave_type_id, date_ranges, dates, reason, updated_at):
        self.items[application_id] = replace(
            self.items[application_id],
            employee_id=employee_id,
            leave_type_id=leave_type_id,
            date_ranges=tuple(date_ranges),
            dates=tuple(dates),
            reason=reason,
            updated_at=updated_at,
            **self._names(employee_id, leave_type_id),
        )

    def decide(self, application_id, *, from_status, status, decided_by_id, updated_at):
        a = self.items.get(application_id)
        if not a or a.status != from_status:
            return False
        self.items[application_id] = replace(a, status=status, approved_by_id=decided_by_id, updated_at=updated_at)
        return True

    def delete(self, application_id):
        return self.items.pop(application_id, None) is not None


class FakeTasks:
    """In-memory reports with the same compare-and-set contract as MySQL."""

    def __init__(self):
        self.items: dict[int, WorkProgressReport] = {}
        self._next_id = 1

    def _append(self, report, entry, **changes):
        return replace(report, timeline=report.timeline + (entry,), updated_at=entry.timestamp, **changes)

    def create(self, *, employee_ids, assignment_date, deadline, days_for_completion, task_description,
               assigned_by, entry):
        report_id = self._next_id
        self._next_id += 1
        self.items[report_id] = WorkProgressReport(
            report_id=report_id,
            employee_ids=tuple(employee_ids),
            assignment_date=assignment_date,
            deadline=deadline,
            days_for_completion=days_for_completion,
            task_description=task_description,
            status=TaskStatus.PENDING,
            assigned_by=assigned_by,
            created_at=entry.timestamp,
            updated_at=entry.timestamp,
            timeline=(entry,),
        )
        return report_id

    def get_by_id(self, report_id):
        return self.items.get(int(report_id))

    def update_pending(self, report_id, *, employee_ids, assignment_date, deadline, days_for_completion,
                       task_description, updated_at):
        r = self.items.get(report_id)
        if not r or r.status != TaskStatus.PENDING:
            return False
        self.items[report_id] = replace(
            r,
            employee_ids=tuple(employee_ids),
            assignment_date=assignment_date,
            deadline=deadline,
            days_for_completion=days_for_completion,
            task_description=task_description,
            updated_at=updated_at,
        )
        return True

    def mark_started(self, report_id, *, by, entry):
        r = self.items.get(report_id)
        if not r or r.status != TaskStatus.PENDING:
            return False
        self.items[report_id] = self._append(
            r, entry, status=TaskStatus.IN_PROGRESS, start_date=entry.timestamp, started_by=by
        )
        return True

    def mark_completed(self, report_id, *, status, by, entry):
        r = self.items.get(report_id)
        if not r or r.status != TaskStatus.IN_PROGRESS:
            return False
        self.items[report_id] = self._append(
            r, entry, status=status, completion_date=entry.timestamp, completed_by=by
        )
        return True

    def add_remark(self, report_id, *, remark, entry):
        r = self.items.get(report_id)
        if not r or r.status.is_closed:
            return False
        self.items[report_id] = self._append(r, entry, remarks=r.remarks + (remark,))
        return True

    def mark_closed(self, report_id, *, from_status, status, closing_remarks, rating, by, entry):
        r = self.items.get(report_id)
        if not r or r.status != from_status:
            return False
        self.items[report_id] = self._append(
            r, entry, status=status, closing_remarks=closing_remarks, rating=rating, closed_by=by
        )
        return True

    def delete(self, report_id):
        return self.items.pop(report_id, None) is not None

    def page(self, *, page, search=""):
        q = search.lower()
        rows = [
            replace(r, remarks=(), timeline=())
            for r in sorted(self.items.values(), key=lambda r: (r.created_at, r.report_id), reverse=True)
            if not q or q in r.task_description.lower() or q in r.assigned_by.name.lower()
        ]
        if page.limit > 0:
            return rows[page.offset:page.offset + page.limit], len(rows)
        return rows, len(rows)

    def closed_task_stats(self, employee_ids, *, start, end):
        out = []
        for emp_id in employee_ids:
            ratings = [
                r.rating
                for r in self.items.values()
                if emp_id in r.employee_ids and r.status.is_closed and start <= r.updated_at < end
            ]
            if ratings:
                rated = [x for x in ratings if x is not None]
                avg = sum(rated) / len(rated) if rated else None
                out.append(EmployeeTaskStats(employee_id=emp_id, tasks_completed=len(ratings), average_rating=avg))
        return out


class FakeWarningTypes:
    def __init__(self):
        self.items = {1: WarningType(1, "Late Arrival", "Low"), 2: WarningType(2, "Misconduct", "High")}

    def get_by_id(self, warning_type_id):
        return self.items.get(int(warning_type_id))


class FakeDisciplinaryActions:
    def __init__(self, employees: FakeEmployees, warning_types: FakeWarningTypes):
        self.items: dict[int, DisciplinaryAction] = {}
        self.write_backs: list[list[int]] = []
        self._employees = employees
        self._warning_types = warning_types
        self._next_id = 1

    def add(self, *, employee_id, warning_type_id, action_date, status=DisciplinaryStatus.ACTIVE):
        action_id = self._next_id
        self._next_id += 1
        emp = self._employees.get_by_id(employee_id)
        self.items[action_id] = DisciplinaryAction(
            action_id=action_id,
            employee_id=employee_id,
            warning_type=self._warning_types.get_by_id(warning_type_id),
            description="seeded",
            action_date=action_date,
            status=status,
            created_by="seed",
            created_at=action_date,
            updated_at=action_date,
            employee_name=emp.full_name,
            employee_code=emp.employee_code,
        )
        return action_id

    def get_by_id(self, action_id):
        return self.items.get(int(action_id))

    def create(self, data):
        action_id = self.add(
            employee_id=data.employee_id, warning_type_id=data.warning_type_id, action_date=data.action_date
        )
        self.items[action_id] = replace(
            self.items[action_id],
            description=data.description,
            created_by=data.created_by,
            created_at=data.created_at,
            updated_at=data.created_at,
        )
        return action_id

    def page(self, *, page, search=""):
        rows = sorted(self.items.values(), key=lambda a: a.action_id, reverse=True)
        if page.limit > 0:
            return rows[page.offset:page.offset + page.limit], len(rows)
        return rows, len(rows)

    def mark_inactive(self, action_ids):
        self.write_backs.append(list(action_ids))
        changed = 0
        for i in action_ids:
            a = self.items[i]
            if a.status == DisciplinaryStatus.ACTIVE:
                self.items[i] = replace(a, status=DisciplinaryStatus.INACTIVE)
                changed += 1
        return changed

    def update(self, action_id, changes, *, updated_at):
        changes = dict(changes)
        a = self.items[action_id]
        if "employee_id" in changes:
            emp = self._employees.get_by_id(changes["employee_id"])
            changes.update(employee_name=emp.full_name, employee_code=emp.employee_code)
        if "warning_type_id" in changes:
            changes["warning_type"] = self._warning_types.get_by_id(changes.pop("warning_type_id"))
        self.items[action_id] = replace(a, updated_at=updated_at, **changes)

    def set_status(self, action_id, status, *, updated_at):
        self.items[action_id] = replace(self.items[action_id], status=status, updated_at=updated_at)

    def delete(self, action_id):
        return self.items.pop(action_id, None) is not None


class RecordingTransaction:
    """Stands in for ``DatabaseConnection.transaction``; nested calls join the outer one."""

    def __init__(self):
        self.events: list[str] = []
        self._depth = 0

    @contextmanager
    def __call__(self):
        self._depth += 1
        if self._depth == 1:
            self.events.append("begin")
        try:
            yield
        except Exception:
            if self._depth == 1:
                self.events.append("rollback")
            raise
        else:
            if self._depth == 1:
                self.events.append("commit")
        finally:
            self._depth -= 1


@dataclass
class World:
    """Fakes plus the services wired over them, like the real container."""

    positions: FakePositions
    departments: FakeDepartments
    employees: FakeEmployees
    history: FakeHistory
    policies: FakePolicies
    balances: FakeBalances
    applications: FakeLeaveApplications
    tasks: FakeTasks
    warning_types: FakeWarningTypes
    actions: FakeDisciplinaryActions
    leave_balance_service: LeaveBalanceService
    transition_service: PositionTransitionService
    employee_service: EmployeeService
    leave_policy_service: LeavePolicyService
    leave_application_service: LeaveApplicationService
    task_service: TaskService
    progress_service: EmployeeProgressService
    disciplinary_service: DisciplinaryActionService

    def hire(self, employee_id: int, name: str, position_id: int, **extra) -> Employee:
        return self.employees.add(
            Employee(
                employee_id=employee_id,
                employee_code=f"TAJ-{employee_id:04d}",
                full_name=name,
                gender=Gender.MALE,
                position_id=position_id,
                joining_date=date(2023, 1, 1),
                **extra,
            )
        )


@pytest.fixture
def world() -> World:
    positions = FakePositions()
    departments = FakeDepartments()
    employees = FakeEmployees()
    history = FakeHistory()
    policies = FakePolicies()
    balances = FakeBalances()
    applications = FakeLeaveApplications(employees, policies)
    tasks = FakeTasks()
    warning_types = FakeWarningTypes()
    actions = FakeDisciplinaryActions(employees, warning_types)

    policies.leave_types = {
        1: LeaveType(1, "Annual"),
        2: LeaveType(2, "Sick"),
        3: LeaveType(3, "Casual"),
    }
    policies.add(LeavePolicy(1, "Standard", (Entitlement(1, 12, "Annual"),), PolicyStatus.APPROVED))
    policies.add(
        LeavePolicy(2, "Senior", (Entitlement(1, 24, "Annual"), Entitlement(3, 10, "Casual")), PolicyStatus.APPROVED)
    )

    departments.add(Department(1, "Engineering", "unlimited", 1))
    departments.add(Department(2, "Operations", "unlimited", 0))
    positions.add(Position(1, "Developer", 1, 1, "5", 1, department_name="Engineering"))
    positions.add(Position(2, "Lead", 1, 2, "2", 0, department_name="Engineering"))
    positions.add(Position(3, "Coordinator", 2, None, "unlimited", 0, department_name="Operations"))
    positions.add(Position(4, "Architect", 1, 2, "1", 1, department_name="Engineering"))

    leave_balance_service = LeaveBalanceService(balances, policies, employees, positions)
    transition_service = PositionTransitionService(employees, history, positions, departments, leave_balance_service)
    employee_service = EmployeeService(
        employees, history, positions, departments, leave_balance_service, transition_service, code_prefix="TAJ"
    )

    return World(
        positions=positions,
        departments=departments,
        employees=employees,
        history=history,
        policies=policies,
        balances=balances,
        applications=applications,
        tasks=tasks,
        warning_types=warning_types,
        actions=actions,
        leave_balance_service=leave_balance_service,
        transition_service=transition_service,
        employee_service=employee_service,
        leave_policy_service=LeavePolicyService(policies, positions, leave_balance_service),
        leave_application_service=LeaveApplicationService(applications, leave_balance_service, employees, policies),
        task_service=TaskService(tasks, employees),
        progress_service=EmployeeProgressService(tasks, employees, positions),
        disciplinary_service=DisciplinaryActionService(actions, warning_types, employees),
    )


@pytest.fixture
def admin() -> Actor:
    return Actor(user_id=1, name="Ayesha Admin", role=Role.ADMIN)


@pytest.fixture
def supervisor() -> Actor:
    return Actor(user_id=2, name="Sam Supervisor", role=Role.SUPERVISOR)


@pytest.fixture
def staffed(world: World) -> World:
    """Two active employees and one resigned one."""
    world.hire(1, "Ali Khan", 1)
    world.hire(2, "Sara Ahmed", 1)
    world.hire(3, "Omar Farooq", 3, status=EmployeeStatus.RESIGNED)
    return world


@pytest.fixture
def tx() -> RecordingTransaction:
    return RecordingTransaction()
