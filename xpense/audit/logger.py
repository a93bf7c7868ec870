"""
Audit Logger

DESIGN DECISION: Every significant step of composing and submitting a
transaction is logged. This provides:
1. Traceability of what was sent to the API
2. Debugging capability when the API rejects a submission
3. A per-draft history via correlation ids

The audit logger:
- Always writes a structured local log line
- Optionally forwards events to a sink (tests collect them in a list)
- Gracefully handles sink failures (never breaks the composer)
"""

from typing import Callable, Optional
from uuid import UUID, uuid4

import structlog

from xpense.models.audit import AuditEvent, AuditEventBuilder


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


AuditSink = Callable[[AuditEvent], None]


class AuditLogger:
    """
    Central audit logging service for the composer.
    """

    def __init__(self, sink: Optional[AuditSink] = None):
        """
        Initialize audit logger.

        Args:
            sink: Extra destination for events.
                  If None, only logs locally.
        """
        self._sink = sink
        self._logger = structlog.get_logger("xpense.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True if the sink accepted it (or no sink is configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._sink:
            try:
                self._sink(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_sink_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_draft_started(self, mode: str, correlation_id: UUID) -> None:
        self.log(AuditEventBuilder.draft_started(mode, correlation_id))

    def log_mode_changed(
        self,
        old_mode: str,
        new_mode: str,
        cleared_fields: list[str],
        correlation_id: UUID,
    ) -> None:
        """Log a mode switch and what it cleared."""
        self.log(AuditEventBuilder.mode_changed(
            old_mode=old_mode,
            new_mode=new_mode,
            cleared_fields=cleared_fields,
            correlation_id=correlation_id,
        ))

    def log_entry_type_changed(
        self,
        old_type: str,
        new_type: str,
        cleared_fields: list[str],
        rescoped_lines: int,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.entry_type_changed(
            old_type=old_type,
            new_type=new_type,
            cleared_fields=cleared_fields,
            rescoped_lines=rescoped_lines,
            correlation_id=correlation_id,
        ))

    def log_split_toggled(self, enabled: bool, line_count: int, correlation_id: UUID) -> None:
        self.log(AuditEventBuilder.split_toggled(enabled, line_count, correlation_id))

    def log_draft_discarded(self, correlation_id: UUID) -> None:
        self.log(AuditEventBuilder.draft_discarded(correlation_id))

    def log_submission_started(
        self,
        endpoint: str,
        account_count: int,
        split_count: int,
        multipart: bool,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.submission_started(
            endpoint=endpoint,
            account_count=account_count,
            split_count=split_count,
            multipart=multipart,
            correlation_id=correlation_id,
        ))

    def log_submission_succeeded(self, endpoint: str, correlation_id: UUID) -> None:
        self.log(AuditEventBuilder.submission_succeeded(endpoint, correlation_id))

    def log_submission_blocked(self, issues: list[dict], correlation_id: UUID) -> None:
        """Log a submit attempt refused by validation."""
        self.log(AuditEventBuilder.submission_blocked(issues, correlation_id))

    def log_duplicate_submission(self, correlation_id: UUID) -> None:
        self.log(AuditEventBuilder.duplicate_submission_blocked(correlation_id))

    def log_submission_failed(
        self,
        endpoint: str,
        status_code: Optional[int],
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log a submission the API rejected or never received."""
        self.log(AuditEventBuilder.submission_failed(
            endpoint=endpoint,
            status_code=status_code,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_reference_data_loaded(self, counts: dict[str, int]) -> None:
        self.log(AuditEventBuilder.reference_data_loaded(counts))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))

    def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this when a new draft is started and pass it through every
    subsequent operation on that draft.
    """
    return uuid4()
