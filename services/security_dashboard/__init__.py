"""
Security Dashboard Service
==========================

Cloud security dashboard backend.

Features:
- Cloud account onboarding and scanning
- Resource inventory with isolate / forensic copy / destroy actions
- Incident tracking with timelines
- Per-resource compliance evaluation against standards
- Account rollups, exemptions and the compliance summary

Port: 8000
"""

__version__ = "0.1.0"
