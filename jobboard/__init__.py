"""
Job Board Backend
Recruiters post jobs, students apply with a parsed resume, admins oversee.

Architecture:
- MongoDB: users, jobs, applications, admin invites/logs, pending registrations
- External ML service: resume parsing and job matching over HTTP
- Email: OTP verification, password reset, interview notices, admin invites
"""

__version__ = "1.0.0"
