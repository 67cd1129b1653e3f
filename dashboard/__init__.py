"""Municipal dashboard access control service.

Role-based authorization and audit trail for the dashboard's administrative
REST endpoints.
"""

__version__ = "0.3.0"
