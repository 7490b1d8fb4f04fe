import logging
from typing import Any, Dict, Optional
from uuid import UUID

from tableside.models.activity import ActivityLog

log = logging.getLogger("tableside.activity")


async def log_activity(
    restaurant_id: Optional[UUID],
    staff_id: Optional[UUID],
    action: str,
    details: Optional[Dict[str, Any]] = None,
) -> Optional[ActivityLog]:
    """
    Appends one audit entry. Audit writes never fail the operation that
    triggered them: errors are logged and None is returned.
    """
    try:
        return await ActivityLog.create(
            restaurant_id=restaurant_id,
            staff_id=staff_id,
            action=action,
            details=details,
        )
    except Exception as e:
        log.error(f"Failed to log activity '{action}' for restaurant {restaurant_id}: {e}")
        return None
