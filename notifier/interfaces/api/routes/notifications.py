"""Endpoints and websocket handler for the notification inbox."""

from __future__ import annotations

import logging

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from sqlalchemy.orm import Session

from notifier.application.use_cases.notifications import (
    count_unread,
    list_notifications as list_notifications_uc,
    mark_all_notifications_read,
    mark_notifications_read,
)
from notifier.domain.entities import Notification, Recipient, payload_to_dict
from notifier.infrastructure import database
from notifier.infrastructure.database import get_db
from notifier.infrastructure.notifications import notification_manager, serialize_notification
from notifier.infrastructure.repositories import NotificationRepository
from notifier.interfaces.api.dependencies import get_current_user, resolve_current_user
from notifier.interfaces.api.schemas import (
    MarkReadResult,
    NotificationMarkReadRequest,
    NotificationRead,
    UnreadCountRead,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _notification_to_schema(notification: Notification) -> NotificationRead:
    return NotificationRead(
        id=notification.id or 0,
        user_id=notification.user_id,
        type=notification.type,
        priority=notification.priority,
        title=notification.title,
        message=notification.message,
        payload=payload_to_dict(notification.payload),
        entity_type=notification.entity_type,
        entity_id=notification.entity_id,
        is_read=notification.is_read,
        created_at=notification.created_at,
        read_at=notification.read_at,
        created_by=notification.created_by,
    )


@router.get("/", response_model=list[NotificationRead])
def list_notifications(
    limit: int = Query(50, ge=1, le=200),
    unread_only: bool = False,
    db: Session = Depends(get_db),
    current_user: Recipient = Depends(get_current_user),
) -> list[NotificationRead]:
    """Return the most recent notifications for the authenticated user."""

    notifications = list_notifications_uc(
        db, user_id=current_user.id, limit=limit, unread_only=unread_only
    )
    return [_notification_to_schema(notification) for notification in notifications]


@router.get("/unread-count", response_model=UnreadCountRead)
def unread_count(
    db: Session = Depends(get_db),
    current_user: Recipient = Depends(get_current_user),
) -> UnreadCountRead:
    return UnreadCountRead(unread=count_unread(db, user_id=current_user.id))


@router.post("/read", response_model=MarkReadResult)
def mark_read(
    payload: NotificationMarkReadRequest,
    db: Session = Depends(get_db),
    current_user: Recipient = Depends(get_current_user),
) -> MarkReadResult:
    """Mark a batch of notifications as read. Foreign ids are ignored."""

    updated = mark_notifications_read(
        db, user_id=current_user.id, notification_ids=payload.unique_ids()
    )
    return MarkReadResult(updated=updated)


@router.post("/read-all", response_model=MarkReadResult)
def mark_all_read(
    db: Session = Depends(get_db),
    current_user: Recipient = Depends(get_current_user),
) -> MarkReadResult:
    return MarkReadResult(updated=mark_all_notifications_read(db, user_id=current_user.id))


@router.post("/{notification_id}/read", response_model=NotificationRead)
def mark_one_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: Recipient = Depends(get_current_user),
) -> NotificationRead:
    notification = NotificationRepository(db).get(notification_id)
    if notification is None or notification.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found"
        )
    mark_notifications_read(db, user_id=current_user.id, notification_ids=[notification_id])
    refreshed = NotificationRepository(db).get(notification_id)
    return _notification_to_schema(refreshed)


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams notifications to the authenticated user."""

    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=1008)
        return

    session = database.SessionLocal()
    try:
        user = resolve_current_user(token, session)
        pending_notifications = list_notifications_uc(
            session, user_id=user.id, limit=None, unread_only=True
        )
    except HTTPException:
        await websocket.close(code=1008)
        return
    finally:
        session.close()

    await notification_manager.connect(user.id, websocket)
    try:
        await websocket.send_json(
            {
                "type": "init",
                "data": [serialize_notification(n) for n in pending_notifications],
            }
        )
        while True:
            try:
                message = await websocket.receive_json()
            except WebSocketDisconnect:
                raise
            except ValueError:
                continue

            if not isinstance(message, dict):
                continue

            message_type = message.get("type")
            if message_type == "ping":
                await websocket.send_json({"type": "pong"})
                continue

            if message_type == "ack":
                ids = message.get("ids", [])
                if isinstance(ids, list) and ids:
                    ack_session = database.SessionLocal()
                    try:
                        mark_notifications_read(
                            ack_session,
                            user_id=user.id,
                            notification_ids=[i for i in ids if isinstance(i, int)],
                        )
                    finally:
                        ack_session.close()
                continue
    except WebSocketDisconnect:
        notification_manager.disconnect(user.id, websocket)
    except Exception:
        notification_manager.disconnect(user.id, websocket)
        logger.exception("Notification websocket for user %s failed", user.id)
        raise
