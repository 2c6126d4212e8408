"""
Salon management REST client for opening hours and artists.
"""

from typing import Any, Dict

import requests

from ..domain.exceptions import NotFoundError, StoreUnavailableError
from ..domain.models import Artist


class HttpDirectory:
    """
    Client for the salon management service.

    Uses two endpoints:
    - ``GET {base_url}/salons/{id}/hours`` -> ``{"salonHours": "<json>"}``
    - ``GET {base_url}/artists/{id}`` -> ``{"id", "salonId", "hours", "name"}``

    Hours are returned as stored by salon management, usually a JSON string.
    """

    def __init__(self, base_url: str, timeout_seconds: float = 10.0, session: requests.Session | None = None):
        """
        Initialize the client.

        Args:
            base_url: Root URL of the salon management API
            timeout_seconds: Per-request timeout
            session: Optional requests session (connection pooling, auth headers)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()
        self.headers = {"Accept": "application/json"}

    def _get_json(self, path: str, what: str) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"

        try:
            response = self.session.get(url, headers=self.headers, timeout=self.timeout_seconds)
        except requests.exceptions.RequestException as e:
            raise StoreUnavailableError(f"Failed to fetch {what} from {url}: {e}") from e

        if response.status_code == 404:
            raise NotFoundError(f"{what.capitalize()} not found")

        try:
            response.raise_for_status()
            data = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise StoreUnavailableError(f"Failed to fetch {what} from {url}: {e}") from e

        if not isinstance(data, dict):
            raise StoreUnavailableError(f"Unexpected response for {what}: {data!r}")

        return data

    def get_salon_hours(self, salon_id: str) -> Any:
        data = self._get_json(f"/salons/{salon_id}/hours", f"salon {salon_id}")
        return data.get("salonHours")

    def get_artist(self, artist_id: str) -> Artist:
        data = self._get_json(f"/artists/{artist_id}", f"artist {artist_id}")

        salon_id = data.get("salonId")
        if not salon_id:
            raise StoreUnavailableError(f"Artist {artist_id} has no salonId in response")

        return Artist(
            id=str(data.get("id", artist_id)),
            salon_id=str(salon_id),
            hours=data.get("hours"),
            name=data.get("name") or "",
        )
