"""
Backend API Client
Connects the Streamlit dashboard to the garden monitor backend.
"""

import requests
import pandas as pd
from typing import Dict, List, Optional, Any


class APIClient:
    """Client for backend API communication"""

    def __init__(self, base_url: str = "http://localhost:8000"):
        self.base_url = base_url.rstrip('/')
        self.session = requests.Session()

    def _request(self, method: str, endpoint: str, **kwargs) -> dict:
        try:
            resp = self.session.request(method, f"{self.base_url}{endpoint}", timeout=10, **kwargs)
            resp.raise_for_status()
            return resp.json()
        except requests.exceptions.ConnectionError:
            return {"error": "Backend not connected. Start backend with: python main.py"}
        except requests.exceptions.HTTPError as e:
            detail = None
            try:
                detail = e.response.json().get("detail")
            except (ValueError, AttributeError):
                pass
            return {"error": detail or str(e)}
        except Exception as e:
            return {"error": str(e)}

    def _get(self, endpoint: str, params: dict = None) -> dict:
        return self._request("GET", endpoint, params=params)

    def _post(self, endpoint: str, data: dict = None) -> dict:
        return self._request("POST", endpoint, json=data)

    def _put(self, endpoint: str, data: dict = None) -> dict:
        return self._request("PUT", endpoint, json=data)

    def _delete(self, endpoint: str) -> dict:
        return self._request("DELETE", endpoint)

    # =========================================================================
    # Health & Status
    # =========================================================================

    def health(self) -> dict:
        return self._get("/health")

    def is_connected(self) -> bool:
        return "error" not in self.health()

    # =========================================================================
    # Alerts
    # =========================================================================

    def get_alerts(self) -> dict:
        """Active alerts, unread count, loading/error state"""
        result = self._get("/api/alerts")
        if "error" in result:
            return {"alerts": [], "unread_count": 0, "count": 0, "error": result["error"]}
        return result

    def mark_read(self, ids: List[str]) -> dict:
        return self._post("/api/alerts/read", {"ids": ids})

    def mark_all_read(self) -> dict:
        return self._post("/api/alerts/read-all")

    def refresh_alerts(self) -> dict:
        return self._post("/api/alerts/refresh")

    def get_toasts(self) -> List[dict]:
        return self._get("/api/alerts/toasts").get("toasts", [])

    def dismiss_toast(self, toast_id: str) -> dict:
        return self._delete(f"/api/alerts/toasts/{toast_id}")

    # =========================================================================
    # Settings
    # =========================================================================

    def get_thresholds(self) -> Dict[str, Any]:
        return self._get("/api/settings/thresholds").get("thresholds", {})

    def update_thresholds(self, overrides: Dict[str, Any]) -> dict:
        return self._put("/api/settings/thresholds", overrides)

    def reset_thresholds(self) -> dict:
        return self._post("/api/settings/thresholds/reset")

    def get_email_settings(self) -> dict:
        result = self._get("/api/settings/email")
        if "error" in result:
            return {"enabled": False, "recipient_email": ""}
        return result

    def save_email_settings(self, enabled: bool, recipient_email: str) -> dict:
        return self._put("/api/settings/email", {
            "enabled": enabled,
            "recipient_email": recipient_email
        })

    # =========================================================================
    # Data
    # =========================================================================

    def get_overview(self) -> Dict[str, pd.DataFrame]:
        """Rolling series per metric as DataFrames"""
        result = self._get("/api/data/overview")
        if "error" in result or "series" not in result:
            return {}
        return {metric: pd.DataFrame(points) for metric, points in result["series"].items()}

    def get_metrics(self) -> List[dict]:
        return self._get("/api/data/metrics").get("metrics", [])

    def get_metric_series(self, key: str, time_range: str = "24h",
                          start: Optional[str] = None, end: Optional[str] = None) -> pd.DataFrame:
        params = {"range": time_range}
        if start and end:
            params.update(start=start, end=end)
        result = self._get(f"/api/data/metrics/{key}", params)
        if "error" in result or "data" not in result:
            return pd.DataFrame()
        df = pd.DataFrame(result["data"])
        if "received_at" in df.columns:
            df["received_at"] = pd.to_datetime(df["received_at"], format='ISO8601')
        return df

    def get_analysis(self) -> dict:
        return self._get("/api/data/analysis")
