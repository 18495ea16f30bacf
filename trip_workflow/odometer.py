"""
Periodic refresh of a vehicle's current end KM while it is selected
"""
import asyncio
from typing import Callable, Optional
import logging

from config import settings
from trip_workflow.api_client import TransportApiClient

logger = logging.getLogger(__name__)


class OdometerWatcher:
    """Poll the latest trip of the selected vehicle and publish its end KM"""

    def __init__(
        self,
        client: TransportApiClient,
        on_reading: Callable[[int, float], None],
        interval: Optional[float] = None,
    ):
        self.client = client
        self.on_reading = on_reading
        self.interval = interval if interval is not None else settings.odometer_poll_seconds
        self.vehicle_id: Optional[int] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def refresh(self) -> Optional[float]:
        if self.vehicle_id is None:
            return None
        vehicle_id = self.vehicle_id
        try:
            trip = await self.client.latest_trip(vehicle_id)
        except Exception as e:
            logger.warning(f"Odometer refresh failed for vehicle {vehicle_id}: {e}")
            return None
        reading = (trip or {}).get("end_km") or 0.0
        try:
            self.on_reading(vehicle_id, reading)
        except Exception as e:
            logger.warning(f"Odometer listener failed for vehicle {vehicle_id}: {e}")
        return reading

    async def _poll(self):
        while True:
            await self.refresh()
            await asyncio.sleep(self.interval)

    async def select(self, vehicle_id: Optional[int]):
        """Switch to another vehicle; the previous poll is cancelled"""
        await self.stop()
        self.vehicle_id = vehicle_id
        if vehicle_id is not None:
            self._task = asyncio.create_task(self._poll())

    async def stop(self):
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
