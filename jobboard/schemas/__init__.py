"""
Schemas module - Request/Response schemas for API endpoints.

Everything lives in schemas.py; Role and ApplicationStatus are the closed
enums the services branch on.
"""

from jobboard.schemas.schemas import Role, ApplicationStatus

__all__ = ["Role", "ApplicationStatus"]
