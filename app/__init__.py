"""
Student Placement Portal
Job postings, applications and OTP login for a campus placement cell.

Architecture:
- FastAPI: HTTP surface under /api
- Storage: in-memory (development) or PostgreSQL (production)
- SMTP: OTP codes and application status emails
"""

__version__ = "1.0.0"
