"""HTTP API for payroll configuration governance."""
