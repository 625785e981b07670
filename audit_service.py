"""Audit logging service for tracking sighting submissions.

This module provides utilities for recording every submission attempt,
accepted or rejected, together with who submitted it and why it was rejected.
"""

import csv
import io
from typing import Any, Dict, List, Optional

from database import AuditLog, SessionLocal

ACCEPTED = "accepted"


class AuditLogger:
    """Service for logging submission audit events."""

    @staticmethod
    def log_submission(
        user: str,
        bear_id: str,
        city: str,
        country: str,
        outcome: str,
        description: Optional[str] = None,
    ) -> None:
        """Log a sighting submission attempt.

        Args:
            user: Identifier of the submitter.
            bear_id: Bear the sighting was submitted for.
            city: City as entered.
            country: Country as entered.
            outcome: "accepted" or the rejection name (e.g. "CountryMismatch").
            description: Optional human-readable description.
        """
        db = SessionLocal()
        try:
            log_entry = AuditLog(
                user=user,
                bear_id=bear_id,
                city=city,
                country=country,
                outcome=outcome,
                description=description
                or f"Sighting {outcome} for {bear_id}: {city}, {country}",
            )
            db.add(log_entry)
            db.commit()
        finally:
            db.close()

    @staticmethod
    def get_logs(
        bear_id: Optional[str] = None,
        outcome: Optional[str] = None,
        user: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """Retrieve audit logs with optional filtering.

        Args:
            bear_id: Filter by bear.
            outcome: Filter by outcome.
            user: Filter by user.
            limit: Maximum number of logs to return.
            offset: Number of logs to skip.

        Returns:
            List of audit log entries as dictionaries, newest first.
        """
        db = SessionLocal()
        try:
            query = db.query(AuditLog)

            if bear_id:
                query = query.filter(AuditLog.bear_id == bear_id)
            if outcome:
                query = query.filter(AuditLog.outcome == outcome)
            if user:
                query = query.filter(AuditLog.user == user)

            query = query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
            query = query.offset(offset).limit(limit)

            logs = query.all()
            return [log.to_dict() for log in logs]
        finally:
            db.close()

    @staticmethod
    def export_logs_csv(bear_id: Optional[str] = None) -> str:
        """Export audit logs as CSV format.

        Args:
            bear_id: Filter by bear.

        Returns:
            CSV formatted string of audit logs.
        """
        logs = AuditLogger.get_logs(bear_id=bear_id, limit=10000)

        output = io.StringIO()
        writer = csv.DictWriter(
            output,
            fieldnames=[
                "id",
                "timestamp",
                "user",
                "bear_id",
                "city",
                "country",
                "outcome",
                "description",
            ],
        )

        writer.writeheader()
        for log in logs:
            writer.writerow(log)

        return output.getvalue()
