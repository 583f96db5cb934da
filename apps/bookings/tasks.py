"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore
from django.utils import timezone  # type: ignore

from .services import get_coordinator, pending_hold

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (запускаются автоматически через Celery Beat)
# ============================================================================

@shared_task(name="bookings.expire_pending_bookings")
def expire_pending_bookings() -> dict[str, int]:
    """
    Автоматическая отмена неоплаченных броней.

    Отменяет бронирования со статусом PENDING, созданные раньше чем
    PENDING_HOLD_MINUTES назад, и освобождает их даты.

    Запускается каждую минуту через Celery Beat.

    Returns:
        dict: {"expired": количество отмененных броней}
    """
    cutoff = timezone.now() - pending_hold()
    expired = get_coordinator().expire_stale(cutoff)

    if expired:
        logger.info(f"Expired {len(expired)} pending bookings created before {cutoff.isoformat()}")
    return {"expired": len(expired)}
