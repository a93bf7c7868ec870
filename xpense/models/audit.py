"""
Audit Models for Xpense

Every significant step of composing and submitting a transaction is logged.
This provides:
1. Traceability of what was sent to the API and why
2. Debugging information when a submission is rejected
3. Ability to reconstruct one draft's history via its correlation id

DESIGN DECISION: Audit events never carry attachment bytes or tokens.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Draft lifecycle
    DRAFT_STARTED = "draft_started"
    MODE_CHANGED = "mode_changed"
    ENTRY_TYPE_CHANGED = "entry_type_changed"
    SPLIT_TOGGLED = "split_toggled"
    DRAFT_DISCARDED = "draft_discarded"

    # Submission
    SUBMISSION_STARTED = "submission_started"
    SUBMISSION_SUCCEEDED = "submission_succeeded"
    SUBMISSION_BLOCKED = "submission_blocked"
    DUPLICATE_SUBMISSION_BLOCKED = "duplicate_submission_blocked"
    SUBMISSION_FAILED = "submission_failed"

    # Reference data
    REFERENCE_DATA_LOADED = "reference_data_loaded"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Correlation - all events of one draft share it
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID of the draft these events belong to"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    # User action tracking
    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.draft_started("STANDARD", correlation_id)
        event = AuditEventBuilder.submission_succeeded("transactions/", correlation_id)
    """

    @staticmethod
    def draft_started(mode: str, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DRAFT_STARTED,
            correlation_id=correlation_id,
            description=f"New {mode.lower()} transaction started",
            details={"mode": mode},
            is_user_action=True,
        )

    @staticmethod
    def mode_changed(
        old_mode: str,
        new_mode: str,
        cleared_fields: list[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MODE_CHANGED,
            correlation_id=correlation_id,
            description=f"Mode changed: {old_mode} -> {new_mode}",
            details={
                "old_mode": old_mode,
                "new_mode": new_mode,
                "cleared_fields": cleared_fields,
            },
            is_user_action=True,
        )

    @staticmethod
    def entry_type_changed(
        old_type: str,
        new_type: str,
        cleared_fields: list[str],
        rescoped_lines: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_TYPE_CHANGED,
            correlation_id=correlation_id,
            description=f"Entry type changed: {old_type} -> {new_type}",
            details={
                "old_type": old_type,
                "new_type": new_type,
                "cleared_fields": cleared_fields,
                "rescoped_lines": rescoped_lines,
            },
            is_user_action=True,
        )

    @staticmethod
    def split_toggled(enabled: bool, line_count: int, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SPLIT_TOGGLED,
            correlation_id=correlation_id,
            description=f"Split mode {'enabled' if enabled else 'disabled'}",
            details={"enabled": enabled, "line_count": line_count},
            is_user_action=True,
        )

    @staticmethod
    def draft_discarded(correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DRAFT_DISCARDED,
            correlation_id=correlation_id,
            description="Draft discarded by user",
            is_user_action=True,
        )

    @staticmethod
    def submission_started(
        endpoint: str,
        account_count: int,
        split_count: int,
        multipart: bool,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBMISSION_STARTED,
            correlation_id=correlation_id,
            description=f"Submitting to {endpoint}",
            details={
                "endpoint": endpoint,
                "account_count": account_count,
                "split_count": split_count,
                "multipart": multipart,
            },
            is_user_action=True,
        )

    @staticmethod
    def submission_succeeded(endpoint: str, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBMISSION_SUCCEEDED,
            correlation_id=correlation_id,
            description=f"Transaction accepted by {endpoint}",
            details={"endpoint": endpoint},
        )

    @staticmethod
    def submission_blocked(issues: list[dict], correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBMISSION_BLOCKED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"Submission blocked by {len(issues)} validation issues",
            details={"issues": issues},
        )

    @staticmethod
    def duplicate_submission_blocked(correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DUPLICATE_SUBMISSION_BLOCKED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description="Submission ignored: another one is still in flight",
        )

    @staticmethod
    def submission_failed(
        endpoint: str,
        status_code: Optional[int],
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBMISSION_FAILED,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"Submission to {endpoint} failed",
            error_message=error_message,
            details={"endpoint": endpoint, "status_code": status_code},
        )

    @staticmethod
    def reference_data_loaded(counts: dict[str, int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REFERENCE_DATA_LOADED,
            description="Reference data refreshed",
            details=counts,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
