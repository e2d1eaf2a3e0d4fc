"""
Resource Database Model
=======================

SQLAlchemy ORM model for cloud resources.

Version: 0.1.0
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import relationship

from shared.database.postgres import Base


class ResourceModel(Base):
    """
    SQLAlchemy model for cloud resources.

    Resources are registered by discovery and mutated by response actions
    (isolate, forensic copy, destroy). They are never deleted.
    """

    __tablename__ = "resources"
    __table_args__ = (
        Index("ix_resources_type", "resource_type"),
        Index("ix_resources_region", "region"),
        Index("ix_resources_account", "cloud_account_id"),
        Index("ix_resources_discovered", "discovered_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    resource_id = Column(String(512), nullable=False, index=True)
    resource_type = Column(String(50), nullable=False)  # EC2, S3, IAM, Lambda, ...
    name = Column(String(255), nullable=False)
    region = Column(String(50), nullable=False)
    status = Column(String(100), nullable=False, default="normal")

    # Response actions
    isolated = Column(Boolean, nullable=False, default=False)
    forensic_copy = Column(Boolean, nullable=False, default=False)

    cloud_account_id = Column(
        Integer,
        ForeignKey("cloud_accounts.id", ondelete="SET NULL"),
    )

    metadata_ = Column("metadata", JSON, default=dict)
    discovered_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))

    # Relationships
    account = relationship("CloudAccountModel", back_populates="resources", lazy="raise")

    def __repr__(self) -> str:
        return f"<Resource {self.id}: {self.resource_type} {self.resource_id}>"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "resource_id": self.resource_id,
            "resource_type": self.resource_type,
            "name": self.name,
            "region": self.region,
            "status": self.status,
            "isolated": bool(self.isolated),
            "forensic_copy": bool(self.forensic_copy),
            "cloud_account_id": self.cloud_account_id,
            "metadata": self.metadata_ or {},
            "discovered_at": self.discovered_at,
        }
