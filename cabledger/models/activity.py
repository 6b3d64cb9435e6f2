"""
Activity Models for Cab Ledger

Every user action produces one structured log event. This provides:
1. Debugging information when something goes wrong
2. A visible signal when the app is running on the fallback store
3. A record of who signed in and what they changed

DESIGN DECISION: Activity events go to the structured log only.
Records themselves carry no history; a delete is final.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class ActivityEventType(str, Enum):
    """Types of events we log."""
    # Sessions
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"
    LOGGED_OUT = "logged_out"

    # Reports
    REPORT_SUBMITTED = "report_submitted"
    REPORT_UPDATED = "report_updated"
    REPORT_DELETED = "report_deleted"

    # Drivers and credentials
    DRIVER_SAVED = "driver_saved"
    DRIVER_DELETED = "driver_deleted"
    ADMIN_PASSWORD_CHANGED = "admin_password_changed"

    # Outputs
    STATEMENT_EXPORTED = "statement_exported"
    ANALYSIS_GENERATED = "analysis_generated"

    # System events
    STORAGE_FALLBACK_ACTIVATED = "storage_fallback_activated"
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class ActivitySeverity(str, Enum):
    """Severity level for activity events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ActivityEvent(BaseModel):
    """A single activity event."""

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: ActivityEventType
    severity: ActivitySeverity = ActivitySeverity.INFO

    # What the event is about
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'report', 'driver', 'session')"
    )
    entity_id: Optional[str] = None

    # Who did it
    actor_id: Optional[str] = Field(
        default=None,
        description="ID of the signed-in user, 'admin' for the administrator"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "actor_id": self.actor_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class ActivityEventBuilder:
    """
    Helper class to build activity events with common patterns.

    Usage:
        event = ActivityEventBuilder.login_failed(role="DRIVER", driver_id="1")
        event = ActivityEventBuilder.report_submitted(report_id, driver_id, 350.0)
    """

    @staticmethod
    def login_succeeded(user_id: str, role: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.LOGIN_SUCCEEDED,
            entity_type="session",
            entity_id=user_id,
            actor_id=user_id,
            description=f"{role.title()} signed in",
            details={"role": role},
        )

    @staticmethod
    def login_failed(role: str, driver_id: Optional[str] = None) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.LOGIN_FAILED,
            severity=ActivitySeverity.WARNING,
            entity_type="session",
            entity_id=driver_id,
            description=f"{role.title()} sign-in rejected",
            details={"role": role},
        )

    @staticmethod
    def logged_out(user_id: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.LOGGED_OUT,
            entity_type="session",
            entity_id=user_id,
            actor_id=user_id,
            description="User signed out",
        )

    @staticmethod
    def report_submitted(
        report_id: str,
        driver_id: str,
        net_profit: float,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.REPORT_SUBMITTED,
            entity_type="report",
            entity_id=report_id,
            actor_id=driver_id,
            description="Daily report submitted",
            details={"net_profit": net_profit},
        )

    @staticmethod
    def report_updated(
        report_id: str,
        actor_id: Optional[str],
        net_profit: float,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.REPORT_UPDATED,
            entity_type="report",
            entity_id=report_id,
            actor_id=actor_id,
            description="Daily report edited",
            details={"net_profit": net_profit},
        )

    @staticmethod
    def report_deleted(report_id: str, actor_id: Optional[str]) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.REPORT_DELETED,
            severity=ActivitySeverity.WARNING,
            entity_type="report",
            entity_id=report_id,
            actor_id=actor_id,
            description="Daily report deleted",
        )

    @staticmethod
    def driver_saved(driver_id: str, is_new: bool) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.DRIVER_SAVED,
            entity_type="driver",
            entity_id=driver_id,
            actor_id="admin",
            description="Driver added" if is_new else "Driver updated",
            details={"is_new": is_new},
        )

    @staticmethod
    def driver_deleted(driver_id: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.DRIVER_DELETED,
            severity=ActivitySeverity.WARNING,
            entity_type="driver",
            entity_id=driver_id,
            actor_id="admin",
            description="Driver deleted",
        )

    @staticmethod
    def admin_password_changed() -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.ADMIN_PASSWORD_CHANGED,
            entity_type="settings",
            entity_id="admin_pwd",
            actor_id="admin",
            description="Admin password changed",
        )

    @staticmethod
    def statement_exported(
        filename: str,
        period: str,
        record_count: int,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.STATEMENT_EXPORTED,
            entity_type="statement",
            actor_id="admin",
            description=f"Statement exported: {period}",
            details={
                "filename": filename,
                "record_count": record_count,
            },
        )

    @staticmethod
    def analysis_generated(record_count: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.ANALYSIS_GENERATED,
            entity_type="analysis",
            actor_id="admin",
            description=f"AI analysis generated over {record_count} reports",
            details={"record_count": record_count},
        )

    @staticmethod
    def storage_fallback_activated(reason: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.STORAGE_FALLBACK_ACTIVATED,
            severity=ActivitySeverity.WARNING,
            entity_type="storage",
            description="Remote store unavailable, using local fallback",
            error_message=reason,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SYSTEM_ERROR,
            severity=ActivitySeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )

    @staticmethod
    def external_service_error(service: str, error_message: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.EXTERNAL_SERVICE_ERROR,
            severity=ActivitySeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={"service": service},
        )
