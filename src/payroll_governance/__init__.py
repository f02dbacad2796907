"""Payroll configuration governance and entitlement calculations."""

__version__ = "0.1.0"
