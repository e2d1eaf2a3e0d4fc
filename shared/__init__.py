"""
CIRRUS Shared Library
=====================

Common utilities, configurations, and abstractions shared by the Cirrus
cloud incident response and compliance services.

Modules:
    - config: Configuration management with Pydantic Settings
    - logging: Structured logging with structlog
    - database: Async PostgreSQL client (SQLAlchemy + asyncpg)
    - models: Shared Pydantic API models

Version: 0.1.0
"""

__version__ = "0.1.0"
__author__ = "Cirrus Team"

from shared.config import settings
from shared.logging import get_logger, setup_logging

__all__ = [
    "settings",
    "get_logger",
    "setup_logging",
    "__version__",
]
