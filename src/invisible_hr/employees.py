"""
Employee and policy records.

The directory is the source of truth for chat personalization, compliance
checks and benchmarking. An in-memory implementation seeded with demo data is
provided; a database-backed directory only needs the same methods.
"""

import logging
from datetime import date, timedelta
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from invisible_hr.exceptions import EmployeeNotFoundError, ValidationError

logger = logging.getLogger(__name__)


class Employee(BaseModel):
    """Employee record."""

    id: int = Field(..., description="Numeric employee id")
    name: str = Field(..., description="Full name")
    email: str = Field(..., description="Unique email address (stored lowercased)")
    role: str = Field(..., description="Job role")
    country: str = Field(..., description="Country of employment")
    salary: float = Field(..., ge=0, description="Monthly salary")
    leave_balance: int = Field(0, description="Remaining annual leave days")
    visa_expiry_date: Optional[date] = Field(None, description="Work visa expiry, if any")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        value = value.strip().lower()
        if "@" not in value:
            raise ValueError("email must contain '@'")
        return value


class Policy(BaseModel):
    """Raw HR policy text."""

    id: int
    content: str


class EmployeeContext(BaseModel):
    """What the chat prompt knows about the employee asking."""

    employee_id: int
    name: str
    role: str
    country: str
    leave_balance: int

    @classmethod
    def from_employee(cls, employee: Employee) -> "EmployeeContext":
        return cls(
            employee_id=employee.id,
            name=employee.name,
            role=employee.role,
            country=employee.country,
            leave_balance=employee.leave_balance,
        )


class InMemoryEmployeeDirectory:
    """Employee and policy lookups backed by dictionaries."""

    def __init__(self, employees: Optional[List[Employee]] = None, policies: Optional[List[Policy]] = None):
        self._employees: Dict[int, Employee] = {}
        self._policies: List[Policy] = list(policies or [])
        for employee in employees or []:
            self.add_employee(employee)

    def add_employee(self, employee: Employee) -> Employee:
        if employee.id in self._employees:
            raise ValidationError(f"Employee id {employee.id} already exists", field="id")
        if any(existing.email == employee.email for existing in self._employees.values()):
            raise ValidationError(f"Email '{employee.email}' is already in use", field="email")
        self._employees[employee.id] = employee
        return employee

    def get_by_id(self, employee_id: int) -> Employee:
        employee = self._employees.get(employee_id)
        if employee is None:
            raise EmployeeNotFoundError(str(employee_id))
        return employee

    def get_by_email(self, email: str) -> Employee:
        key = (email or "").strip().lower()
        for employee in self._employees.values():
            if employee.email == key:
                return employee
        raise EmployeeNotFoundError(email)

    def find(self, identifier: str) -> Employee:
        """Look up by numeric id or by email, the way the leave-balance tool is called."""
        identifier = str(identifier).strip()
        if identifier.isdigit():
            return self.get_by_id(int(identifier))
        return self.get_by_email(identifier)

    def list_employees(self) -> List[Employee]:
        return sorted(self._employees.values(), key=lambda e: e.id)

    def list_policies(self) -> List[Policy]:
        return list(self._policies)


SEED_POLICIES = [
    Policy(
        id=1,
        content=(
            "Lunch allowance is RM20 per day for all employees. This is provided as a daily meal "
            "subsidy and must be claimed through the HR portal."
        ),
    ),
    Policy(
        id=2,
        content=(
            "Annual leave entitlement: Employees receive 14 days of annual leave per year. Leave must "
            "be applied at least 7 days in advance through the HR system."
        ),
    ),
    Policy(
        id=3,
        content=(
            "Remote work policy: Employees may work from home up to 2 days per week with manager "
            "approval. Remote work requests must be submitted 24 hours in advance."
        ),
    ),
]


def seed_directory(today: Optional[date] = None) -> InMemoryEmployeeDirectory:
    """Demo employees and policies. Visa expiries are relative to `today`."""
    today = today or date.today()
    employees = [
        Employee(
            id=1,
            name="Hazim",
            email="hazim@company.com",
            role="Software Engineer",
            country="Malaysia",
            salary=8000,
            leave_balance=12,
            visa_expiry_date=today + timedelta(days=30),
        ),
        Employee(
            id=2,
            name="Sarah",
            email="sarah@company.com",
            role="Product Manager",
            country="Singapore",
            salary=10000,
            leave_balance=15,
            visa_expiry_date=today + timedelta(days=60),
        ),
        Employee(
            id=3,
            name="Ahmad",
            email="ahmad@company.com",
            role="Marketing Manager",
            country="Malaysia",
            salary=7500,
            leave_balance=8,
        ),
    ]
    logger.info(f"Seeded directory with {len(employees)} employees and {len(SEED_POLICIES)} policies")
    return InMemoryEmployeeDirectory(employees, SEED_POLICIES)
