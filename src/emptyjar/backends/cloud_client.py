"""REST client for the cloud store.

Talks to a PostgREST-style API (``/rest/v1/<table>``) with the requests
library. Every call carries an explicit timeout so a hung request surfaces
as a TransientNetworkError instead of silently losing a write.
"""

import logging
from typing import Any, Optional

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from emptyjar.errors import (
    BackendError,
    DuplicateKeyError,
    PermanentBackendError,
    TransientNetworkError,
)

logger = logging.getLogger(__name__)

# Postgres unique_violation
UNIQUE_VIOLATION_CODE = "23505"


class CloudClient:
    """Thin client for the notes and settings tables of the cloud store.

    Args:
        base_url (str): Project URL, e.g. ``https://xyz.supabase.co``
        api_key (str): Public API key
        access_token (str): Bearer token of the signed-in account
        timeout (float): Seconds before a request is abandoned

    Attributes:
        base_url (str): REST endpoint root
        timeout (float): Request timeout in seconds
    """

    NOTES_TABLE = "notes"
    SETTINGS_TABLE = "settings"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        access_token: str = "",
        timeout: float = 10.0,
    ):
        self.base_url = f"{base_url.rstrip('/')}/rest/v1"
        self.api_key = api_key
        self.access_token = access_token or api_key
        self.timeout = timeout

    def _get_headers(self, prefer: Optional[str] = None) -> dict[str, str]:
        """Get standard headers for cloud requests.

        Returns:
            dict[str, str]: Headers with apikey, Authorization and Content-Type
        """
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _handle_response(self, response: requests.Response) -> Any:
        """Return the parsed body or raise a classified BackendError.

        Raises:
            DuplicateKeyError: 409 or Postgres unique violation
            PermanentBackendError: Any other error status
        """
        if response.status_code >= 400:
            try:
                error_data = response.json()
                message = error_data.get("message", "Unknown error")
                code = str(error_data.get("code", ""))
            except (ValueError, AttributeError):
                message = response.text or "Unknown error"
                code = ""

            if response.status_code == 409 or code == UNIQUE_VIOLATION_CODE:
                raise DuplicateKeyError(message, status_code=response.status_code, code=code)
            raise PermanentBackendError(message, status_code=response.status_code, code=code)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def _request(
        self,
        method: str,
        table: str,
        params: Optional[dict[str, str]] = None,
        payload: Optional[Any] = None,
        prefer: Optional[str] = None,
    ) -> Any:
        try:
            response = requests.request(
                method,
                f"{self.base_url}/{table}",
                headers=self._get_headers(prefer),
                params=params,
                json=payload,
                timeout=self.timeout,
            )
        except requests.exceptions.ConnectionError as e:
            raise TransientNetworkError("Cannot reach the cloud store") from e
        except requests.exceptions.Timeout as e:
            raise TransientNetworkError("Cloud request timed out") from e
        except requests.exceptions.RequestException as e:
            raise PermanentBackendError(f"Cloud request failed: {e}") from e

        logger.debug("%s %s -> %s", method, table, response.status_code)
        return self._handle_response(response)

    @staticmethod
    def _eq(value: str) -> str:
        return f"eq.{value}"

    # ==================== Notes ====================

    @retry(
        retry=retry_if_exception_type(TransientNetworkError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        reraise=True,
    )
    def fetch_notes(self, user_id: str) -> list[dict[str, Any]]:
        """Get all note rows of an account, ordered by week key."""
        rows = self._request(
            "GET",
            self.NOTES_TABLE,
            params={"user_id": self._eq(user_id), "select": "*", "order": "week_key.asc"},
        )
        return rows or []

    def note_exists(self, user_id: str, week_key: str) -> bool:
        """Per-week existence check used by the e-mail reminder job."""
        rows = self._request(
            "GET",
            self.NOTES_TABLE,
            params={
                "user_id": self._eq(user_id),
                "week_key": self._eq(week_key),
                "select": "id",
            },
        )
        return bool(rows)

    def insert_note(self, row: dict[str, Any]) -> dict[str, Any]:
        """Insert a note row and return it with server-assigned fields."""
        rows = self._request(
            "POST", self.NOTES_TABLE, payload=row, prefer="return=representation"
        )
        return self._first(rows, row)

    def update_note(self, user_id: str, week_key: str, changes: dict[str, Any]) -> dict[str, Any]:
        """Patch the note of one week."""
        rows = self._request(
            "PATCH",
            self.NOTES_TABLE,
            params={"user_id": self._eq(user_id), "week_key": self._eq(week_key)},
            payload=changes,
            prefer="return=representation",
        )
        return self._first(rows, changes)

    def delete_note(self, user_id: str, week_key: str) -> None:
        self._request(
            "DELETE",
            self.NOTES_TABLE,
            params={"user_id": self._eq(user_id), "week_key": self._eq(week_key)},
        )

    # ==================== Settings ====================

    @retry(
        retry=retry_if_exception_type(TransientNetworkError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        reraise=True,
    )
    def fetch_settings(self, user_id: str) -> Optional[dict[str, Any]]:
        rows = self._request(
            "GET",
            self.SETTINGS_TABLE,
            params={"user_id": self._eq(user_id), "select": "*"},
        )
        return rows[0] if rows else None

    def upsert_settings(self, row: dict[str, Any]) -> dict[str, Any]:
        """Insert or merge the settings row of an account."""
        rows = self._request(
            "POST",
            self.SETTINGS_TABLE,
            params={"on_conflict": "user_id"},
            payload=row,
            prefer="resolution=merge-duplicates,return=representation",
        )
        return self._first(rows, row)

    def check_connection(self) -> bool:
        """Check if the cloud store answers.

        Returns:
            True if reachable, False otherwise
        """
        try:
            self._request("GET", self.SETTINGS_TABLE, params={"select": "user_id", "limit": "1"})
            return True
        except BackendError:
            return False

    @staticmethod
    def _first(rows: Any, fallback: dict[str, Any]) -> dict[str, Any]:
        if isinstance(rows, list) and rows:
            return rows[0]
        if isinstance(rows, dict):
            return rows
        return dict(fallback)
