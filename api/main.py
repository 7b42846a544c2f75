"""
FastAPI application for the notifier.

This application provides:
1. Notification endpoints backed by the store (/notifications/...)
2. An endpoint that emits catalog events onto the bus (/events/{kind})
3. The delivery history of the capturing sink (/deliveries)

The notifier runs for the lifetime of the application.

Run with:
    uv run uvicorn api.main:app --reload

Then visit http://localhost:8000/docs for interactive API documentation.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ValidationError

from eventbus import EventBus, get_event_bus, reset_event_bus
from notifier.events import CHAT_KINDS, NOTIFICATION_KINDS
from notifier.notifier import Notifier
from shared.channels import CapturingSink
from shared.data_store import NotificationStore, get_data_store, reset_data_store
from shared.models import NotificationRecord

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)-24s | %(levelname)-5s | %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger("api")

# Kinds that may be emitted through POST /events/{kind}
EMITTABLE_KINDS: dict[str, type[BaseModel]] = {
    kind.__name__: kind for kind in (*NOTIFICATION_KINDS, *CHAT_KINDS)
}


# Response models
class NotificationSummary(BaseModel):
    """A stored notification without its payload."""
    id: str
    timestamp: datetime
    read: bool
    type: str


class NotificationDetail(NotificationSummary):
    """A stored notification with its decoded event."""
    notification: dict[str, Any]


class EmitResult(BaseModel):
    kind: str
    event: dict[str, Any]


# =============================================================================
# Application State
# =============================================================================

# The bus and store are the process-wide defaults; only the sink is local
_sink: Optional[CapturingSink] = None


def get_bus() -> EventBus:
    """Get the event bus instance."""
    return get_event_bus()


def get_store() -> NotificationStore:
    """Get the notification store instance."""
    return get_data_store()


def get_sink() -> CapturingSink:
    """Get the delivery sink instance."""
    global _sink
    if _sink is None:
        _sink = CapturingSink()
    return _sink


def reset_api_state(
    bus: Optional[EventBus] = None,
    store: Optional[NotificationStore] = None,
    sink: Optional[CapturingSink] = None,
) -> None:
    """
    Replace the application state (useful for testing).

    The bus and store become the module defaults. Passing None installs a
    fresh bus or store, and leaves the sink to be recreated on next use.
    """
    global _sink
    reset_event_bus(bus)
    reset_data_store(store)
    _sink = sink


# Application lifespan
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the notifier on startup, stop it on shutdown."""
    notifier = Notifier(get_bus(), get_store(), get_sink())
    notifier.start()
    # Waiting and joining block, so keep them off the event loop
    if not await run_in_threadpool(notifier.started.wait, 10):
        logger.error("Notifier did not report readiness")
    logger.info("Notifier API started")
    yield
    await run_in_threadpool(notifier.stop)
    logger.info("Shutting down")


app = FastAPI(
    title="Notifier",
    description="""
    Event bus driven notification service.

    ## Endpoints

    - `/notifications/*` - Read, mark and delete stored notifications
    - `/events/{kind}` - Emit a catalog event onto the bus
    - `/deliveries` - What the delivery sink has received
    """,
    version="1.0.0",
    lifespan=lifespan,
)


def _summary(record: NotificationRecord) -> NotificationSummary:
    return NotificationSummary(
        id=record.id,
        timestamp=record.timestamp,
        read=record.read,
        type=record.type,
    )


# =============================================================================
# Health Check
# =============================================================================

@app.get("/health", tags=["Health"])
def health_check(store: NotificationStore = Depends(get_store)):
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "notifier",
        "notifications": store.count(),
        "unread": store.unread_count(),
    }


# =============================================================================
# Notifications
# =============================================================================

@app.get("/notifications", response_model=list[NotificationSummary], tags=["Notifications"])
def list_notifications(
    limit: Optional[int] = Query(default=None, ge=1),
    unread_only: bool = False,
    store: NotificationStore = Depends(get_store),
):
    """List stored notifications, newest first."""
    records = store.list_notifications(limit=limit, unread_only=unread_only)
    return [_summary(r) for r in records]


@app.post("/notifications/read", tags=["Notifications"])
def mark_all_read(store: NotificationStore = Depends(get_store)):
    """Mark every stored notification read."""
    changed = store.update(lambda tx: tx.mark_all_read())
    return {"marked_read": changed}


@app.get("/notifications/{notification_id}", response_model=NotificationDetail, tags=["Notifications"])
def get_notification(notification_id: str, store: NotificationStore = Depends(get_store)):
    """Get one stored notification with its decoded event."""
    record = store.get_notification(notification_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Notification not found: {notification_id}")

    try:
        event = record.decode()
    except ValueError as e:
        logger.error(f"Stored notification {notification_id} could not be decoded: {e}")
        raise HTTPException(status_code=500, detail="Stored notification is unreadable")

    return NotificationDetail(
        **_summary(record).model_dump(),
        notification=event.model_dump(mode="json", by_alias=True),
    )


@app.post("/notifications/{notification_id}/read", tags=["Notifications"])
def mark_read(notification_id: str, store: NotificationStore = Depends(get_store)):
    """Mark one notification read."""
    if not store.update(lambda tx: tx.mark_read(notification_id)):
        raise HTTPException(status_code=404, detail=f"Notification not found: {notification_id}")
    return {"id": notification_id, "read": True}


@app.delete("/notifications/{notification_id}", tags=["Notifications"])
def delete_notification(notification_id: str, store: NotificationStore = Depends(get_store)):
    """Delete one notification."""
    if not store.update(lambda tx: tx.delete(notification_id)):
        raise HTTPException(status_code=404, detail=f"Notification not found: {notification_id}")
    return {"id": notification_id, "deleted": True}


# =============================================================================
# Events
# =============================================================================

@app.post("/events/{kind}", response_model=EmitResult, tags=["Events"])
def emit_event(
    kind: str,
    body: Optional[dict[str, Any]] = None,
    bus: EventBus = Depends(get_bus),
):
    """
    Build a catalog event from the JSON body and emit it on the bus.

    Fields may be given by name or by wire alias. An empty body emits the
    zero-valued event.
    """
    event_cls = EMITTABLE_KINDS.get(kind)
    if event_cls is None:
        raise HTTPException(status_code=404, detail=f"Unknown event kind: {kind}")

    try:
        event = event_cls.model_validate(body or {})
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))

    # Serialize before emitting: the notifier may mutate the event afterwards
    payload = event.model_dump(mode="json", by_alias=True)
    bus.emit(event)
    return EmitResult(kind=kind, event=payload)


# =============================================================================
# Deliveries
# =============================================================================

@app.get("/deliveries", tags=["Deliveries"])
def list_deliveries(sink: CapturingSink = Depends(get_sink)):
    """Get every payload handed to the delivery sink."""
    return [
        {
            "success": m.success,
            "key": m.key,
            "payload": m.payload,
            "timestamp": m.timestamp.isoformat(),
            "error": m.error,
        }
        for m in sink.sent_messages
    ]
