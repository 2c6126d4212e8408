"""
Salon and artist directory loaded from a YAML (or JSON) file.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..domain.exceptions import NotFoundError, StoreUnavailableError
from ..domain.models import Artist


class FileDirectory:
    """
    Implementation of ``DirectoryProtocol`` backed by a local data file.

    Expected layout::

        salons:
          - id: salon-1
            hours: {monday: {start: "09:00", end: "18:00"}, sunday: null}
            artists:
              - id: artist-1
                name: Alex
                hours: {monday: {start: "10:00", end: "16:00"}}

    Times must be quoted: YAML reads an unquoted ``09:00`` as a number.
    Hours may also be given as a JSON string, as stored by salon
    management.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._salons: Optional[Dict[str, Dict[str, Any]]] = None
        self._artists: Optional[Dict[str, Artist]] = None

    @classmethod
    def from_data(cls, data: Dict[str, Any]) -> "FileDirectory":
        """Build a directory from already-loaded data (no file access)."""
        directory = cls(Path("<memory>"))
        directory._index(data)
        return directory

    def _ensure_loaded(self) -> None:
        if self._salons is not None:
            return

        if not self.path.exists():
            raise StoreUnavailableError(f"Directory file not found: {self.path}")

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except OSError as exc:
            raise StoreUnavailableError(f"Could not read directory file {self.path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise StoreUnavailableError(f"Invalid YAML in {self.path}: {exc}") from exc

        if not isinstance(data, dict):
            raise StoreUnavailableError("Directory file must contain a mapping at the root level.")

        try:
            self._index(data)
        except (KeyError, TypeError, AttributeError) as exc:
            raise StoreUnavailableError(f"Malformed directory file {self.path}: {exc!r}") from exc

    def _index(self, data: Dict[str, Any]) -> None:
        salons: Dict[str, Dict[str, Any]] = {}
        artists: Dict[str, Artist] = {}

        for salon in data.get("salons") or []:
            salon_id = str(salon["id"])
            salons[salon_id] = salon
            for artist in salon.get("artists") or []:
                artist_id = str(artist["id"])
                artists[artist_id] = Artist(
                    id=artist_id,
                    salon_id=salon_id,
                    hours=artist.get("hours"),
                    name=artist.get("name", ""),
                )

        self._salons = salons
        self._artists = artists

    def get_salon_hours(self, salon_id: str) -> Any:
        self._ensure_loaded()
        salon = self._salons.get(salon_id)
        if salon is None:
            raise NotFoundError(f"Salon not found: {salon_id}")
        return salon.get("hours")

    def get_artist(self, artist_id: str) -> Artist:
        self._ensure_loaded()
        artist = self._artists.get(artist_id)
        if artist is None:
            raise NotFoundError(f"Artist not found: {artist_id}")
        return artist
