"""Visa expiry alerts."""

import logging
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional

from invisible_hr.employees import Employee

logger = logging.getLogger(__name__)

DEFAULT_HORIZON_DAYS = 90
CRITICAL_DAYS = 30
WARNING_DAYS = 60


@dataclass
class ComplianceAlert:
    employee_id: int
    employee_name: str
    role: str
    country: str
    expiry_date: date
    days_until_expiry: int
    severity: str  # critical | warning | info
    message: str
    action_required: str


@dataclass
class ComplianceSummary:
    total_alerts: int
    critical: int
    warnings: int
    info: int


@dataclass
class ComplianceReport:
    summary: ComplianceSummary
    alerts: List[ComplianceAlert]
    checked_on: date

    def to_dict(self) -> Dict:
        return {
            "summary": asdict(self.summary),
            "alerts": [{**asdict(alert), "expiry_date": alert.expiry_date.isoformat()} for alert in self.alerts],
            "checked_on": self.checked_on.isoformat(),
        }


@dataclass
class EmployeeCompliance:
    employee_id: int
    employee_name: str
    has_visa: bool
    is_compliant: bool = True
    days_until_expiry: Optional[int] = None
    visa_expiry_date: Optional[date] = None
    recommendations: List[str] = field(default_factory=list)


def severity_for(days: int) -> str:
    if days <= CRITICAL_DAYS:
        return "critical"
    if days <= WARNING_DAYS:
        return "warning"
    return "info"


def check_expirations(
    employees: Iterable[Employee], today: Optional[date] = None, horizon_days: int = DEFAULT_HORIZON_DAYS
) -> ComplianceReport:
    """
    Alerts for visas expiring within the horizon, closest expiry first.

    Already-expired visas are included with a zero or negative day count.
    """
    today = today or date.today()
    expiring = sorted(
        (e for e in employees if e.visa_expiry_date and (e.visa_expiry_date - today).days <= horizon_days),
        key=lambda e: e.visa_expiry_date,
    )

    alerts = []
    for employee in expiring:
        days = (employee.visa_expiry_date - today).days
        alerts.append(
            ComplianceAlert(
                employee_id=employee.id,
                employee_name=employee.name,
                role=employee.role,
                country=employee.country,
                expiry_date=employee.visa_expiry_date,
                days_until_expiry=days,
                severity=severity_for(days),
                message=f"WARNING: {employee.name}'s Visa expires in {days} days.",
                action_required=(
                    "URGENT: Immediate renewal required" if days <= CRITICAL_DAYS else "Schedule renewal soon"
                ),
            )
        )

    summary = ComplianceSummary(
        total_alerts=len(alerts),
        critical=sum(1 for a in alerts if a.severity == "critical"),
        warnings=sum(1 for a in alerts if a.severity == "warning"),
        info=sum(1 for a in alerts if a.severity == "info"),
    )
    logger.info(f"Compliance check: {summary}")
    return ComplianceReport(summary=summary, alerts=alerts, checked_on=today)


def employee_compliance(employee: Employee, today: Optional[date] = None) -> EmployeeCompliance:
    """Compliance status and recommendations for a single employee."""
    today = today or date.today()
    status = EmployeeCompliance(
        employee_id=employee.id,
        employee_name=employee.name,
        has_visa=employee.visa_expiry_date is not None,
    )
    if not status.has_visa:
        return status

    days = (employee.visa_expiry_date - today).days
    status.days_until_expiry = days
    status.visa_expiry_date = employee.visa_expiry_date

    if days <= 0:
        status.is_compliant = False
        status.recommendations.append("CRITICAL: Visa has expired! Immediate action required.")
    elif days <= CRITICAL_DAYS:
        status.is_compliant = False
        status.recommendations.append("Start visa renewal process immediately.")
    elif days <= DEFAULT_HORIZON_DAYS:
        status.recommendations.append("Start preparing renewal documents.")
    return status
