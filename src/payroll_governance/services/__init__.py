"""Configuration governance services."""

from payroll_governance.services.approver import ApproverValidator, EmployeeDirectory, PrincipalLookup
from payroll_governance.services.company_settings_service import CompanySettingsService
from payroll_governance.services.kinds import KIND_REGISTRY, ConfigKind, get_kind
from payroll_governance.services.lifecycle_service import ConfigLifecycleService, Page
from payroll_governance.services.state_machine import ConfigStateMachine, ConfigStatus

__all__ = [
    "ApproverValidator",
    "CompanySettingsService",
    "ConfigKind",
    "ConfigLifecycleService",
    "ConfigStateMachine",
    "ConfigStatus",
    "EmployeeDirectory",
    "KIND_REGISTRY",
    "Page",
    "PrincipalLookup",
    "get_kind",
]
