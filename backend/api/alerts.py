"""
Alerts API
Active alerts, read-state and toasts.

Endpoints:
    GET    /api/alerts                 → Active alerts + unread count
    POST   /api/alerts/read            → Mark ids as read
    POST   /api/alerts/read-all        → Mark every active alert as read
    DELETE /api/alerts/read            → Reset read-state
    POST   /api/alerts/refresh         → Re-check now (navigation)
    GET    /api/alerts/toasts          → Live toasts (render opportunity)
    DELETE /api/alerts/toasts/{id}     → Dismiss a toast
    GET    /api/alerts/stats           → Monitor statistics
"""

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel
from typing import List

router = APIRouter(prefix="/alerts", tags=["Alerts"])


# =============================================================================
# Request Models
# =============================================================================

class MarkReadRequest(BaseModel):
    """Alert ids to acknowledge"""
    ids: List[str]

    class Config:
        json_schema_extra = {
            "example": {
                "ids": ["Temperature-above-2024-06-01T12:00:00+00:00"]
            }
        }


# =============================================================================
# Alerts & Read State
# =============================================================================

@router.get("")
def list_alerts(request: Request):
    """Alerts from the latest cycle, each flagged unread or not"""
    return request.app.state.monitor.status()


@router.post("/read")
def mark_read(body: MarkReadRequest, request: Request):
    monitor = request.app.state.monitor
    monitor.read_store.mark_read(body.ids)
    return {
        "message": f"Marked {len(body.ids)} alert(s) as read",
        "unread_count": monitor.unread_count()
    }


@router.post("/read-all")
def mark_all_read(request: Request):
    monitor = request.app.state.monitor
    count = monitor.mark_all_read()
    return {
        "message": f"Marked {count} alert(s) as read",
        "unread_count": monitor.unread_count()
    }


@router.delete("/read")
def reset_read_state(request: Request):
    monitor = request.app.state.monitor
    monitor.read_store.reset()
    return {
        "message": "Read state reset",
        "unread_count": monitor.unread_count()
    }


@router.post("/refresh")
def refresh_alerts(request: Request):
    """
    Re-check alerts now.

    Wakes the polling loop when it runs, otherwise evaluates inline.
    """
    monitor = request.app.state.monitor
    ok = monitor.refresh()
    return {"refreshed": ok, "error": monitor.error}


# =============================================================================
# Toasts
# =============================================================================

@router.get("/toasts")
def get_toasts(request: Request):
    toasts = request.app.state.monitor.toasts.render()
    return {
        "count": len(toasts),
        "toasts": [t.to_dict() for t in toasts]
    }


@router.delete("/toasts/{toast_id}")
def dismiss_toast(toast_id: str, request: Request):
    if not request.app.state.monitor.toasts.dismiss(toast_id):
        raise HTTPException(404, f"Toast not found: {toast_id}")
    return {"message": f"Toast {toast_id} dismissed"}


@router.get("/stats")
def get_stats(request: Request):
    monitor = request.app.state.monitor
    return {
        **monitor.stats(),
        "email": monitor.email.stats() if monitor.email else None
    }
