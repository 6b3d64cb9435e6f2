"""
Activity Logger

Every user action in the app is written as one structured log line.
This gives us:
1. A trace of who signed in and what they changed
2. Debugging context when the remote store misbehaves
3. A clear marker when the app is running on the local fallback

Events are not persisted anywhere; the process log is the only record.
"""

from typing import Optional

import structlog

from cabledger.models.activity import ActivityEvent, ActivityEventBuilder


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


class ActivityLogger:
    """
    Central activity logging service.

    Each `log_*` helper builds the event, writes it, and returns it so
    callers (and tests) can inspect what was recorded.
    """

    def __init__(self, logger_name: str = "cabledger.activity"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: ActivityEvent) -> ActivityEvent:
        """Write one event at the level matching its severity."""
        log_dict = event.to_log_dict()
        # structlog reserves "event" for the message
        log_dict.pop("event_type")

        severity = event.severity.value
        if severity == "error":
            self._logger.error(event.event_type.value, **log_dict)
        elif severity == "warning":
            self._logger.warning(event.event_type.value, **log_dict)
        elif severity == "debug":
            self._logger.debug(event.event_type.value, **log_dict)
        else:
            self._logger.info(event.event_type.value, **log_dict)

        return event

    def log_login_succeeded(self, user_id: str, role: str) -> ActivityEvent:
        return self.log(ActivityEventBuilder.login_succeeded(user_id, role))

    def log_login_failed(
        self,
        role: str,
        driver_id: Optional[str] = None,
    ) -> ActivityEvent:
        return self.log(ActivityEventBuilder.login_failed(role, driver_id))

    def log_logged_out(self, user_id: str) -> ActivityEvent:
        return self.log(ActivityEventBuilder.logged_out(user_id))

    def log_report_submitted(
        self,
        report_id: str,
        driver_id: str,
        net_profit: float,
    ) -> ActivityEvent:
        return self.log(
            ActivityEventBuilder.report_submitted(report_id, driver_id, net_profit)
        )

    def log_report_updated(
        self,
        report_id: str,
        actor_id: Optional[str],
        net_profit: float,
    ) -> ActivityEvent:
        return self.log(
            ActivityEventBuilder.report_updated(report_id, actor_id, net_profit)
        )

    def log_report_deleted(
        self,
        report_id: str,
        actor_id: Optional[str],
    ) -> ActivityEvent:
        return self.log(ActivityEventBuilder.report_deleted(report_id, actor_id))

    def log_driver_saved(self, driver_id: str, is_new: bool) -> ActivityEvent:
        return self.log(ActivityEventBuilder.driver_saved(driver_id, is_new))

    def log_driver_deleted(self, driver_id: str) -> ActivityEvent:
        return self.log(ActivityEventBuilder.driver_deleted(driver_id))

    def log_admin_password_changed(self) -> ActivityEvent:
        return self.log(ActivityEventBuilder.admin_password_changed())

    def log_statement_exported(
        self,
        filename: str,
        period: str,
        record_count: int,
    ) -> ActivityEvent:
        return self.log(
            ActivityEventBuilder.statement_exported(filename, period, record_count)
        )

    def log_analysis_generated(self, record_count: int) -> ActivityEvent:
        return self.log(ActivityEventBuilder.analysis_generated(record_count))

    def log_storage_fallback(self, reason: str) -> ActivityEvent:
        """Log that the local fallback store replaced the remote one."""
        return self.log(ActivityEventBuilder.storage_fallback_activated(reason))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> ActivityEvent:
        """Log an error."""
        return self.log(
            ActivityEventBuilder.system_error(error_type, error_message, details)
        )

    def log_external_service_error(
        self,
        service: str,
        error_message: str,
    ) -> ActivityEvent:
        """Log external service error."""
        return self.log(
            ActivityEventBuilder.external_service_error(service, error_message)
        )
