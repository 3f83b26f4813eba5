"""
Leaderboard Client
==================

HTTP client for the session-gated score protocol.

A failed call raises ScoreApiError and can simply be retried. Submitting
without a held session starts one first; a rejected session is forgotten so
the next attempt starts fresh.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

_MOBILE_AGENT = re.compile(
    r"Android|webOS|iPhone|iPad|iPod|BlackBerry|IEMobile|Opera Mini",
    re.IGNORECASE
)

_SESSION_REJECTED = ("INVALID_SESSION", "SESSION_EXPIRED")


class ScoreApiError(Exception):
    """Error returned by the score server or raised by the transport."""

    def __init__(self, code: str, message: str, status: Optional[int] = None):
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message
        self.status = status


def detect_platform(user_agent: Optional[str]) -> str:
    """Map a user agent string to 'mobile' or 'desktop'."""
    if user_agent and _MOBILE_AGENT.search(user_agent):
        return "mobile"
    return "desktop"


class LeaderboardClient:
    """Talks to the leaderboard server over JSON."""

    def __init__(
        self,
        base_url: str,
        platform: Optional[str] = None,
        user_agent: Optional[str] = None,
        timeout: float = 10.0,
        http: Optional[requests.Session] = None
    ):
        """
        Args:
            base_url: Server root, e.g. http://localhost:8787
            platform: 'mobile' or 'desktop'; detected from user_agent if None.
            user_agent: Used only for platform detection.
            timeout: Per-request timeout in seconds.
            http: Optional requests.Session to reuse.
        """
        self._base_url = base_url.rstrip("/")
        self._platform = platform or detect_platform(user_agent)
        self._timeout = timeout
        self._http = http or requests.Session()
        self._session_id: Optional[str] = None
        self._start_token: Optional[str] = None

    @property
    def platform(self) -> str:
        return self._platform

    @property
    def has_session(self) -> bool:
        return bool(self._session_id and self._start_token)

    def session_info(self) -> Dict[str, Any]:
        return {
            "has_session": self.has_session,
            "session_id": self._session_id,
            "platform": self._platform,
        }

    def reset_session(self) -> None:
        self._session_id = None
        self._start_token = None

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self._base_url}{path}"
        try:
            response = self._http.request(method, url, timeout=self._timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.warning("request to %s failed: %s", url, e)
            raise ScoreApiError("NETWORK_ERROR", str(e)) from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if not response.ok:
            error = data.get("error", {}) if isinstance(data, dict) else {}
            raise ScoreApiError(
                error.get("code", "HTTP_ERROR"),
                error.get("message", f"HTTP {response.status_code}"),
                status=response.status_code
            )
        return data

    def start_session(self) -> Dict[str, Any]:
        """Start a game session and hold its id and token."""
        data = self._request("POST", "/api/sessions/start", json={"platform": self._platform})
        self._session_id = data["session_id"]
        self._start_token = data["start_token"]
        return data

    def submit_score(self, player_name: str, score: int) -> Dict[str, Any]:
        """
        Submit a final score using the held session.

        Returns:
            Server response with ranks and share URL.

        Raises:
            ScoreApiError: On any failure; safe to retry.
        """
        if not self.has_session:
            self.start_session()

        payload = {
            "session_id": self._session_id,
            "start_token": self._start_token,
            "player_name": player_name,
            "score": int(score),
            "platform": self._platform,
        }
        try:
            data = self._request("POST", "/api/scores", json=payload)
        except ScoreApiError as e:
            if e.code in _SESSION_REJECTED:
                self.reset_session()
            raise

        # A session authorizes one submission
        self.reset_session()
        return data

    def get_leaderboard(
        self,
        scope: str = "weekly",
        limit: int = 25,
        week: Optional[str] = None
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {"scope": scope, "limit": limit}
        if scope == "weekly" and week:
            params["week"] = week
        return self._request("GET", "/api/leaderboard", params=params)

    def get_available_weeks(self) -> List[str]:
        return self._request("GET", "/api/leaderboard/weeks").get("weeks", [])

    def health_check(self) -> Dict[str, Any]:
        return self._request("GET", "/api/health")

    def get_version(self) -> Dict[str, Any]:
        return self._request("GET", "/api/version")
