"""
Tests for visa compliance alerts.
"""

from datetime import timedelta

from conftest import make_employee
from invisible_hr.compliance import check_expirations, employee_compliance


class TestCheckExpirations:
    def test_seeded_employees(self, directory, today):
        report = check_expirations(directory.list_employees(), today)

        assert [alert.employee_name for alert in report.alerts] == ["Hazim", "Sarah"]
        hazim, sarah = report.alerts
        assert hazim.days_until_expiry == 30
        assert hazim.severity == "critical"
        assert hazim.action_required == "URGENT: Immediate renewal required"
        assert hazim.message == "WARNING: Hazim's Visa expires in 30 days."
        assert sarah.severity == "warning"
        assert sarah.action_required == "Schedule renewal soon"
        assert (report.summary.total_alerts, report.summary.critical, report.summary.warnings, report.summary.info) == (2, 1, 1, 0)

    def test_horizon_and_ordering(self, today):
        employees = [
            make_employee(1, visa_expiry_date=today + timedelta(days=90)),
            make_employee(2, visa_expiry_date=today + timedelta(days=91)),
            make_employee(3, visa_expiry_date=today - timedelta(days=3)),
            make_employee(4),
        ]

        report = check_expirations(employees, today)

        assert [alert.employee_id for alert in report.alerts] == [3, 1]
        assert report.alerts[0].days_until_expiry == -3
        assert report.alerts[1].severity == "info"

    def test_to_dict_is_serializable(self, directory, today):
        payload = check_expirations(directory.list_employees(), today).to_dict()

        assert payload["summary"]["total_alerts"] == 2
        assert payload["alerts"][0]["expiry_date"] == (today + timedelta(days=30)).isoformat()


class TestEmployeeCompliance:
    def test_no_visa(self, directory, today):
        status = employee_compliance(directory.get_by_id(3), today)

        assert status.has_visa is False
        assert status.is_compliant is True
        assert status.recommendations == []

    def test_expired(self, today):
        status = employee_compliance(make_employee(1, visa_expiry_date=today), today)

        assert status.is_compliant is False
        assert status.recommendations == ["CRITICAL: Visa has expired! Immediate action required."]

    def test_within_thirty_days(self, directory, today):
        status = employee_compliance(directory.get_by_id(1), today)

        assert status.is_compliant is False
        assert status.days_until_expiry == 30
        assert status.recommendations == ["Start visa renewal process immediately."]

    def test_within_ninety_days(self, directory, today):
        status = employee_compliance(directory.get_by_id(2), today)

        assert status.is_compliant is True
        assert status.recommendations == ["Start preparing renewal documents."]
