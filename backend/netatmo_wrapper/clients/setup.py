"""Client for the demozone setup database (ORDS endpoints)."""

import logging

import httpx
from pydantic import ValidationError

from netatmo_wrapper.config import SETUP_URI, UPDATE_TARGET_TEMP_URI
from netatmo_wrapper.exceptions import SetupError
from netatmo_wrapper.schemas import DemozoneSetup

logger = logging.getLogger(__name__)


class SetupClient:
    """Reads the demozone setup and stores accepted target temperatures."""

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    async def fetch_demozones(self) -> list[DemozoneSetup]:
        """Fetch every configured demozone. Raises SetupError if none can be loaded."""
        try:
            response = await self._client.get(SETUP_URI)
            response.raise_for_status()
            items = response.json().get("items") or []
        except (httpx.HTTPError, ValueError) as e:
            raise SetupError(f"Unable to load demozone setup: {e}") from e
        if not items:
            raise SetupError("No demozones found. Aborting.")

        try:
            demozones = [DemozoneSetup.model_validate(item) for item in items]
        except ValidationError as e:
            raise SetupError(f"Invalid demozone setup: {e}") from e
        logger.info(f"Demozones available: {' '.join(d.demozone for d in demozones)}")
        return demozones

    async def persist_target_temperature(self, zone_id: str, temperature: int | float) -> None:
        """Record a zone's new target temperature. Raises httpx.HTTPError on failure."""
        uri = UPDATE_TARGET_TEMP_URI.format(demozone=zone_id, temperature=temperature)
        response = await self._client.post(uri)
        response.raise_for_status()
