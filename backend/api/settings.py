"""
Settings API
User-owned threshold rules and email notification settings.

Endpoints:
    GET  /api/settings/thresholds        → Current rules (defaults + overrides)
    PUT  /api/settings/thresholds        → Partial update, deep-merged
    POST /api/settings/thresholds/reset  → Restore defaults
    GET  /api/settings/email             → Email notification settings
    PUT  /api/settings/email             → Replace email settings
"""

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel
from typing import Any, Dict, Optional

from alerts import EmailNotificationSettings
from sensors import ALERT_METRICS

router = APIRouter(prefix="/settings", tags=["Settings"])


class ThresholdRuleUpdate(BaseModel):
    value: Optional[float] = None
    message: Optional[str] = None
    severity: Optional[str] = None  # critical, warning, info
    enabled: Optional[bool] = None


class MetricThresholdsUpdate(BaseModel):
    above: Optional[ThresholdRuleUpdate] = None
    below: Optional[ThresholdRuleUpdate] = None


class EmailSettingsRequest(BaseModel):
    enabled: bool = False
    recipient_email: str = ""


def _config_response(config) -> Dict[str, Any]:
    return {"thresholds": config.to_dict()}


@router.get("/thresholds")
def get_thresholds(request: Request):
    return _config_response(request.app.state.config_store.load())


@router.put("/thresholds")
def update_thresholds(body: Dict[str, MetricThresholdsUpdate], request: Request):
    """
    Deep-merge a partial config, keyed by metric name.

    Example:
        {"Temperature": {"above": {"value": 32, "enabled": true}}}
    """
    known = {m.value for m in ALERT_METRICS}
    unknown = [m for m in body if m not in known]
    if unknown:
        raise HTTPException(400, f"Unknown metric(s): {', '.join(unknown)}")

    overrides = {
        metric: {
            direction: rule.model_dump(exclude_none=True)
            for direction, rule in (("above", rules.above), ("below", rules.below))
            if rule is not None
        }
        for metric, rules in body.items()
    }
    try:
        config = request.app.state.config_store.update(overrides)
    except (KeyError, TypeError, ValueError) as e:
        raise HTTPException(400, f"Invalid threshold update: {e}")
    return _config_response(config)


@router.post("/thresholds/reset")
def reset_thresholds(request: Request):
    return _config_response(request.app.state.config_store.reset())


@router.get("/email")
def get_email_settings(request: Request):
    return request.app.state.email_store.load().to_dict()


@router.put("/email")
def update_email_settings(body: EmailSettingsRequest, request: Request):
    settings = EmailNotificationSettings(
        enabled=body.enabled,
        recipient_email=body.recipient_email.strip()
    )
    return request.app.state.email_store.save(settings).to_dict()
