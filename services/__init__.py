"""
CIRRUS Services
===============

Services for the CIRRUS cloud security platform.

Services:
- security_dashboard: Resource inventory, incident response and compliance evaluation
"""

__all__ = [
    "security_dashboard",
]
