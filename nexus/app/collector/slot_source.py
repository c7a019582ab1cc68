"""
nexus/app/collector/slot_source.py

HTTP client for the appointment slots API.

GET {base_url}?orderBy=soonest&limit=5&locationId={center_id}
→ [{"locationId": 5140, "startTimestamp": "2023-01-12T08:30", ...}]
"""

import logging

import httpx
from pydantic import TypeAdapter, ValidationError

from nexus.app.errors import DecodeError, TransportError
from .messages import Slot

logger = logging.getLogger(__name__)

_SLOTS = TypeAdapter(list[Slot])


class SlotSource:
    """Async client; a fresh httpx.AsyncClient per request, so it is loop-agnostic."""

    def __init__(
        self,
        base_url: str,
        limit: int = 5,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url
        self.limit = limit
        self.timeout = timeout
        self.transport = transport

    async def get_slots(self, center_id: int) -> list[Slot]:
        """
        Soonest available slots at one center.

        Raises:
            TransportError: network failure or non-2xx status.
            DecodeError: body is not a list of slots.
        """
        params = {
            "orderBy": "soonest",
            "limit": self.limit,
            "locationId": center_id,
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                resp = await client.get(self.base_url, params=params)
                resp.raise_for_status()
            except httpx.HTTPError as e:
                raise TransportError(
                    f"Failed to contact endpoint for center {center_id}: {e}",
                    endpoint=self.base_url,
                ) from e

        try:
            return _SLOTS.validate_json(resp.content)
        except ValidationError as e:
            raise DecodeError(f"Failed to parse data for center {center_id}: {e}") from e
