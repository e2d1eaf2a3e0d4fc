"""
Security Dashboard Routes
=========================

API route handlers for the Security Dashboard Service.
"""

from services.security_dashboard.routes import accounts, compliance, incidents, resources


__all__ = ["accounts", "compliance", "incidents", "resources"]
