"""
Cloud Account Database Model
============================

SQLAlchemy ORM model for onboarded cloud accounts.

Version: 0.1.0
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from shared.database.postgres import Base


class CloudAccountModel(Base):
    """
    SQLAlchemy model for cloud accounts.

    One row per provider account (AWS account, Azure subscription, GCP project).
    """

    __tablename__ = "cloud_accounts"
    __table_args__ = (
        UniqueConstraint("provider", "account_id", name="uq_cloud_accounts_provider_account"),
        Index("ix_cloud_accounts_provider", "provider"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Provider identity
    account_id = Column(String(255), nullable=False)
    provider = Column(String(20), nullable=False)  # aws, azure, gcp
    name = Column(String(255), nullable=False)

    # Lifecycle
    status = Column(String(50), nullable=False, default="pending")
    owner_email = Column(String(255))
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    last_scanned_at = Column(DateTime(timezone=True))

    metadata_ = Column("metadata", JSON, default=dict)

    # Relationships
    resources = relationship("ResourceModel", back_populates="account", lazy="raise")

    def __repr__(self) -> str:
        return f"<CloudAccount {self.id}: {self.provider}:{self.account_id}>"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "account_id": self.account_id,
            "provider": self.provider,
            "name": self.name,
            "status": self.status,
            "owner_email": self.owner_email,
            "metadata": self.metadata_ or {},
            "created_at": self.created_at,
            "last_scanned_at": self.last_scanned_at,
        }
