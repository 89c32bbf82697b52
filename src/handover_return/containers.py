"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta

from supabase import create_client

from handover_return.adapters.booking_client import BookingClient, HttpxBookingClient
from handover_return.adapters.supabase_audit_repository import SupabaseAuditRepository
from handover_return.adapters.supabase_message_repository import (
    SupabaseMessageRepository,
)
from handover_return.adapters.supabase_notification_repository import (
    SupabaseNotificationRepository,
)
from handover_return.adapters.supabase_photo_repository import SupabasePhotoRepository
from handover_return.adapters.supabase_session_repository import (
    SupabaseSessionRepository,
)
from handover_return.adapters.supabase_stats_repository import SupabaseStatsRepository
from handover_return.config import Settings, parse_dispute_policy
from handover_return.services.audit import AuditService
from handover_return.services.conditions import ConditionAssessmentEngine
from handover_return.services.linkage import SessionLinkageManager
from handover_return.services.messages import MessagingService
from handover_return.services.notifications import NotificationScheduler
from handover_return.services.sessions import SessionService
from handover_return.services.stats import StatsService
from handover_return.services.verification import VerificationCodeIssuer


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    booking_client: BookingClient
    session_service: SessionService
    messaging_service: MessagingService
    notification_scheduler: NotificationScheduler
    stats_service: StatsService
    audit_service: AuditService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    dispute_policy = parse_dispute_policy(resolved_settings.dispute_messaging_policy)
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    session_repository = SupabaseSessionRepository(supabase_client)
    photo_repository = SupabasePhotoRepository(supabase_client)
    message_repository = SupabaseMessageRepository(supabase_client)
    notification_repository = SupabaseNotificationRepository(supabase_client)
    stats_repository = SupabaseStatsRepository(supabase_client)
    audit_service = AuditService(SupabaseAuditRepository(supabase_client))
    booking_client = HttpxBookingClient.create(
        base_url=resolved_settings.booking_service_url,
        token=resolved_settings.booking_service_token,
    )
    notification_scheduler = NotificationScheduler(
        repository=notification_repository,
        booking_client=booking_client,
        max_page_size=resolved_settings.max_page_size,
    )
    session_service = SessionService(
        session_repository=session_repository,
        photo_repository=photo_repository,
        booking_client=booking_client,
        verification=VerificationCodeIssuer(
            code_in_use=session_repository.code_in_use,
            digits=resolved_settings.verification_code_digits,
        ),
        conditions=ConditionAssessmentEngine(audit_service),
        linkage=SessionLinkageManager(session_repository),
        notifications=notification_scheduler,
        audit_service=audit_service,
        reminder_lead=timedelta(minutes=resolved_settings.reminder_lead_minutes),
        max_page_size=resolved_settings.max_page_size,
    )
    messaging_service = MessagingService(
        repository=message_repository,
        sessions=session_repository,
        booking_client=booking_client,
        max_length=resolved_settings.message_max_length,
        dispute_policy=dispute_policy,
        max_page_size=resolved_settings.max_page_size,
    )
    stats_service = StatsService(stats_repository)

    async def close_resources() -> None:
        await booking_client.close()

    return AppContainer(
        settings=resolved_settings,
        booking_client=booking_client,
        session_service=session_service,
        messaging_service=messaging_service,
        notification_scheduler=notification_scheduler,
        stats_service=stats_service,
        audit_service=audit_service,
        close_resources=close_resources,
    )
