"""
Event handlers for domain events.

These handlers process domain events for side effects such as audit
logging and business metrics.
"""

import logging

from accounts.domain.events import (
    UserBanned,
    UserEmailChanged,
    UserPasswordReset,
    UserRegistered,
    UserUnbanned,
)
from core.domain.events import DomainEvent, EventHandler
from core.infrastructure.events import event_bus
from core.metrics import (
    account_bans_total,
    accounts_registered_total,
    hardware_id_events_total,
    license_keys_claimed_total,
    license_keys_deleted_total,
    license_keys_minted_total,
    license_keys_reactivated_total,
)
from licenses.domain.events import (
    HardwareIdBound,
    HardwareIdMismatchDetected,
    HardwareIdReset,
    LicenseKeyClaimed,
    LicenseKeyDeleted,
    LicenseKeyMinted,
    LicenseKeyReactivated,
)

logger = logging.getLogger("audit")

AUDITED_EVENTS = (
    LicenseKeyMinted,
    LicenseKeyClaimed,
    LicenseKeyReactivated,
    LicenseKeyDeleted,
    HardwareIdBound,
    HardwareIdMismatchDetected,
    HardwareIdReset,
    UserRegistered,
    UserBanned,
    UserUnbanned,
    UserEmailChanged,
    UserPasswordReset,
)


class AuditLogEventHandler(EventHandler):
    """Writes every lifecycle event to the ``audit`` logger."""

    async def handle(self, event: DomainEvent) -> None:
        logger.info(
            "Audit log: %s - %s",
            event.event_type,
            event.aggregate_id,
            extra={
                "event_id": str(event.event_id),
                "event_type": event.event_type,
                "aggregate_id": event.aggregate_id,
                "occurred_at": event.occurred_at.isoformat(),
                **event.payload(),
            },
        )


class MetricsEventHandler(EventHandler):
    """Counts lifecycle events in Prometheus."""

    async def handle(self, event: DomainEvent) -> None:
        if isinstance(event, LicenseKeyMinted):
            channel = "reserved" if event.purchased_by_user_id else "batch"
            license_keys_minted_total.labels(duration=event.duration, channel=channel).inc()
        elif isinstance(event, LicenseKeyClaimed):
            license_keys_claimed_total.labels(duration=event.duration, channel=event.channel).inc()
        elif isinstance(event, LicenseKeyReactivated):
            license_keys_reactivated_total.labels(duration=event.duration).inc()
        elif isinstance(event, LicenseKeyDeleted):
            license_keys_deleted_total.inc()
        elif isinstance(event, HardwareIdBound):
            hardware_id_events_total.labels(outcome="bound").inc()
        elif isinstance(event, HardwareIdMismatchDetected):
            hardware_id_events_total.labels(outcome="mismatch").inc()
        elif isinstance(event, HardwareIdReset):
            hardware_id_events_total.labels(outcome="reset").inc()
        elif isinstance(event, UserRegistered):
            accounts_registered_total.inc()
        elif isinstance(event, UserBanned):
            account_bans_total.labels(action="ban").inc()
        elif isinstance(event, UserUnbanned):
            account_bans_total.labels(action="unban").inc()


def register_event_handlers():
    """Register all event handlers with the event bus."""
    audit_handler = AuditLogEventHandler()
    metrics_handler = MetricsEventHandler()
    for event_type in AUDITED_EVENTS:
        event_bus.subscribe(event_type, audit_handler)
        event_bus.subscribe(event_type, metrics_handler)
    logger.debug("Registered event handlers for %d event types", len(AUDITED_EVENTS))
