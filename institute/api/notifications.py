from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel

from institute.api.dependencies import require_user
from institute.models.principal import Principal
from institute.services.notification_bus import notification_bus

router = APIRouter(prefix="/v1/notifications", tags=["notifications"])


class NotificationOut(BaseModel):
    id: int
    message: str
    type: str
    created_at: float


@router.get("", response_model=list[NotificationOut])
async def list_notifications(
    principal: Annotated[Principal, Depends(require_user)],
) -> list[NotificationOut]:
    """Live notifications of the caller, oldest first."""
    return [
        NotificationOut(id=n.id, message=n.message, type=n.type, created_at=n.created_at)
        for n in await notification_bus.list(principal.user_id)
    ]


@router.delete("/{notification_id}", status_code=204)
async def dismiss_notification(
    notification_id: int,
    principal: Annotated[Principal, Depends(require_user)],
) -> Response:
    if not await notification_bus.dismiss(principal.user_id, notification_id):
        raise HTTPException(status_code=404, detail="notification not found")
    return Response(status_code=204)
