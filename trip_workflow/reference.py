"""
Master data needed by the trip form, loaded in one concurrent round
"""
import asyncio
from typing import Any, Dict, List
from pydantic import BaseModel
import logging

from config import settings
from trip_workflow.api_client import TransportApiClient

logger = logging.getLogger(__name__)


class ReferenceData(BaseModel):
    drivers: List[Dict[str, Any]] = []
    vehicles: List[Dict[str, Any]] = []
    customers: List[Dict[str, Any]] = []
    banks: List[Dict[str, Any]] = []
    app_users: List[Dict[str, Any]] = []
    locations: List[Dict[str, Any]] = []
    expense_categories: List[str] = []

    def location_names(self) -> List[str]:
        return [loc.get("location_name", "") for loc in self.locations]


class ReferenceDataLoader:
    """Fetch all dropdown lists; a list that fails to load stays empty"""

    def __init__(self, client: TransportApiClient):
        self.client = client

    async def _safe(self, name: str, call) -> List[Dict[str, Any]]:
        try:
            return await call or []
        except Exception as e:
            logger.warning(f"Could not load {name}: {e}")
            return []

    async def load(self) -> ReferenceData:
        drivers, vehicles, customers, banks, app_users, locations = await asyncio.gather(
            self._safe("drivers", self.client.list_drivers()),
            self._safe("vehicles", self.client.list_vehicles()),
            self._safe("customers", self.client.list_customers()),
            self._safe("banks", self.client.list_banks()),
            self._safe("app users", self.client.list_app_users()),
            self._safe("locations", self.client.list_locations()),
        )
        return ReferenceData(
            drivers=drivers,
            vehicles=vehicles,
            customers=customers,
            banks=banks,
            app_users=app_users,
            locations=locations,
            expense_categories=list(settings.default_expense_categories),
        )

    async def products_for(self, customer_id: int) -> List[Dict[str, Any]]:
        return await self._safe(f"products of customer {customer_id}", self.client.list_customer_products(customer_id))

    async def banks_for(self, app_user_id: int) -> List[Dict[str, Any]]:
        return await self._safe(f"banks of app user {app_user_id}", self.client.list_app_user_banks(app_user_id))
