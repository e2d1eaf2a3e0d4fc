#!/usr/bin/env python3
"""
Database Initialization Script
==============================

Create the CIRRUS schema and seed development data.

Usage:
    python scripts/init_database.py
    python scripts/init_database.py --schema-only

Version: 0.1.0
"""

import argparse
import asyncio
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from shared.logging import get_logger, setup_logging

setup_logging(log_level="INFO", json_logs=False, service_name="init-db")
logger = get_logger(__name__)


STANDARDS = [
    {
        "name": "cis_aws",
        "display_name": "CIS AWS Foundations Benchmark",
        "description": "Security configuration best practices for AWS accounts.",
        "version": "1.5.0",
        "category": "benchmark",
        "link": "https://www.cisecurity.org/benchmark/amazon_web_services",
        "rules": [
            {
                "rule_id": "CIS-1.16",
                "title": "IAM policies granting full administrative privileges are not attached",
                "severity": "critical",
                "resource_types": ["IAM"],
                "providers": ["aws"],
                "action": "enforce",
                "remediation": "Detach AdministratorAccess and grant least-privilege policies.",
            },
            {
                "rule_id": "CIS-2.1.1",
                "title": "S3 bucket default encryption is enabled",
                "severity": "high",
                "resource_types": ["S3"],
                "providers": ["aws"],
                "action": "notify",
                "remediation": "Enable SSE-S3 or SSE-KMS default encryption on the bucket.",
            },
            {
                "rule_id": "CIS-5.6",
                "title": "EC2 instances use IMDSv2",
                "severity": "medium",
                "resource_types": ["EC2"],
                "providers": ["aws"],
                "action": "notify",
                "remediation": "Set HttpTokens=required on the instance metadata options.",
            },
        ],
    },
    {
        "name": "pci_dss",
        "display_name": "PCI DSS",
        "description": "Payment Card Industry Data Security Standard.",
        "version": "4.0",
        "category": "regulatory",
        "link": "https://www.pcisecuritystandards.org",
        "rules": [
            {
                "rule_id": "PCI-3.5.1",
                "title": "Stored cardholder data is encrypted",
                "severity": "critical",
                "resource_types": ["S3"],
                "providers": [],
                "action": "enforce",
                "remediation": "Encrypt storage holding cardholder data at rest.",
            },
            {
                "rule_id": "PCI-6.3.3",
                "title": "Function runtimes are supported and patched",
                "severity": "high",
                "resource_types": ["Lambda"],
                "providers": [],
                "action": "notify",
                "remediation": "Upgrade the function to a supported runtime.",
            },
        ],
    },
]


async def init_schema() -> bool:
    """Create every table that does not exist yet."""
    # Register ORM models on Base before create_all
    import services.security_dashboard.models  # noqa: F401
    from shared.database.postgres import PostgresClient

    logger.info("schema_init_started")

    try:
        await PostgresClient.create_schema()
        return True

    except Exception as e:
        logger.error("schema_init_failed", error=str(e))
        return False


async def seed_data() -> bool:
    """Seed standards, a demo account, resources and incidents."""
    from sqlalchemy import func, select

    from services.security_dashboard.models import (
        CloudAccountModel,
        ComplianceRuleModel,
        ComplianceStandardModel,
        IncidentModel,
        ResourceModel,
        TimelineEventModel,
    )
    from shared.database.postgres import postgres_session

    now = datetime.now(UTC)

    try:
        async with postgres_session() as session:
            existing = await session.scalar(select(func.count(ComplianceStandardModel.id)))
            if existing:
                logger.info("seed_skipped", reason="standards already present", standards=existing)
                return True

            for definition in STANDARDS:
                rules = definition["rules"]
                standard = ComplianceStandardModel(
                    **{k: v for k, v in definition.items() if k != "rules"}
                )
                session.add(standard)
                await session.flush()
                for rule in rules:
                    session.add(ComplianceRuleModel(standard_id=standard.id, **rule))

            account = CloudAccountModel(
                account_id="123456789012",
                provider="aws",
                name="Production",
                owner_email="secops@example.com",
                status="pending",
                metadata_={"environment": "production"},
            )
            session.add(account)
            await session.flush()

            resources = [
                ResourceModel(
                    resource_id="i-09a8d67b5e4c3f21d",
                    resource_type="EC2",
                    name="API Server",
                    region="us-east-1",
                    status="Compromised",
                    metadata_={"type": "t3.medium", "vpc": "vpc-89a7f3c1"},
                    discovered_at=now - timedelta(minutes=10),
                ),
                ResourceModel(
                    resource_id="customer-data-prod-e7fb9",
                    resource_type="S3",
                    name="Customer Data Bucket",
                    region="us-west-2",
                    status="Data Exfiltration",
                    metadata_={"access": "Private", "objects": "~14,500"},
                    discovered_at=now - timedelta(minutes=45),
                ),
                ResourceModel(
                    resource_id="developer-jenkins-role",
                    resource_type="IAM",
                    name="Jenkins Role",
                    region="global",
                    status="Privilege Escalation",
                    metadata_={"account": "123456789012", "service": "EC2", "access": "Full Admin"},
                    discovered_at=now - timedelta(hours=2),
                ),
                ResourceModel(
                    resource_id="api-auth-processor",
                    resource_type="Lambda",
                    name="API Auth Processor",
                    region="us-east-1",
                    status="Modified Code",
                    metadata_={"runtime": "Node.js 14.x", "memory": "512 MB"},
                    discovered_at=now - timedelta(hours=3),
                ),
            ]
            for resource in resources:
                resource.cloud_account_id = account.id
                session.add(resource)

            incidents = [
                IncidentModel(
                    incident_id="INC-20230715-0053",
                    title="Unauthorized API Access",
                    description=(
                        "Abnormal activity detected on EC2 instance i-09a8d67b5e4c3f21d in us-east-1. "
                        "Unauthorized API calls were made using the instance profile credentials."
                    ),
                    severity="critical",
                    status="active",
                    detected_at=now - timedelta(minutes=10),
                    affected_resources=["i-09a8d67b5e4c3f21d", "vpc-89a7f3c1"],
                    assigned_to=1,
                ),
                IncidentModel(
                    incident_id="INC-20230715-0052",
                    title="S3 Bucket Data Exfiltration",
                    description=(
                        "Large volume of GetObject requests on the customer data bucket "
                        "from unfamiliar IP addresses."
                    ),
                    severity="critical",
                    status="active",
                    detected_at=now - timedelta(minutes=45),
                    affected_resources=["customer-data-prod-e7fb9"],
                    assigned_to=1,
                ),
                IncidentModel(
                    incident_id="INC-20230715-0051",
                    title="IAM Privilege Escalation",
                    description="Jenkins role was modified to gain admin privileges.",
                    severity="high",
                    status="active",
                    detected_at=now - timedelta(hours=2),
                    affected_resources=["developer-jenkins-role"],
                    assigned_to=1,
                ),
            ]
            session.add_all(incidents)
            await session.flush()

            timeline = [
                (40, "initial_access", "Suspicious login from 203.0.113.42 using compromised credentials.", "critical"),
                (35, "privilege_escalation", "IAM role permissions modified to gain admin access.", "critical"),
                (30, "lateral_movement", "Access to additional EC2 instances in the same VPC.", "high"),
                (25, "discovery", "DescribeInstances and ListBuckets calls from the compromised instance.", "high"),
                (20, "data_collection", "Unauthorized GetObject calls to customer-data-prod-e7fb9.", "critical"),
                (10, "alert_triggered", "GuardDuty flagged unusual API activity.", "info"),
            ]
            for minutes_ago, event_type, description, severity in timeline:
                session.add(
                    TimelineEventModel(
                        incident_id=incidents[0].id,
                        timestamp=now - timedelta(minutes=minutes_ago),
                        event_type=event_type,
                        description=description,
                        severity=severity,
                    )
                )

        logger.info(
            "seed_completed",
            standards=len(STANDARDS),
            resources=len(resources),
            incidents=len(incidents),
        )
        return True

    except Exception as e:
        logger.error("seed_failed", error=str(e))
        return False


async def main(args: argparse.Namespace) -> int:
    """Main initialization function."""
    from shared.database.postgres import PostgresClient

    logger.info("database_init_started", schema_only=args.schema_only)

    results = {"schema": await init_schema()}
    if results["schema"] and not args.schema_only:
        results["seed"] = await seed_data()

    await PostgresClient.close()

    failed = [name for name, ok in results.items() if not ok]
    if failed:
        logger.error("database_init_failed", failed=failed)
        return 1

    logger.info("database_init_completed", steps=list(results))
    return 0


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Initialize the CIRRUS database",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--schema-only",
        action="store_true",
        help="Create tables without seeding development data",
    )
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    exit_code = asyncio.run(main(args))
    sys.exit(exit_code)
