"""
Async client for the transport REST API
"""
import httpx
from typing import Optional, Dict, Any, List
import logging

from config import settings

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Non-2xx response from the API, or no response at all (status 0)"""

    def __init__(self, status_code: int, detail: str):
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


def _detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and "detail" in body:
        detail = body["detail"]
        return detail if isinstance(detail, str) else str(detail)
    return str(body)


class TransportApiClient:
    """Thin wrapper over ``httpx.AsyncClient`` for the /api endpoints"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.AsyncClient(
            base_url=(base_url or settings.api_base_url).rstrip("/") + "/api",
            headers=headers,
            timeout=timeout if timeout is not None else settings.api_timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise ApiError(0, str(e) or type(e).__name__) from e
        if response.status_code >= 400:
            logger.debug(f"{method} {path} -> {response.status_code}")
            raise ApiError(response.status_code, _detail(response))
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def _get_optional(self, path: str, **kwargs) -> Optional[Dict[str, Any]]:
        try:
            return await self._request("GET", path, **kwargs)
        except ApiError as e:
            if e.status_code == 404:
                return None
            raise

    # Reference data

    async def list_drivers(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/drivers/")

    async def list_vehicles(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/vehicles/")

    async def list_customers(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/customers/")

    async def list_banks(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/banks/")

    async def list_app_users(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/app-users/")

    async def list_locations(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/locations/")

    async def list_customer_products(self, customer_id: int) -> List[Dict[str, Any]]:
        return await self._request("GET", f"/customers/{customer_id}/products")

    async def list_app_user_banks(self, app_user_id: int) -> List[Dict[str, Any]]:
        return await self._request("GET", f"/app-users/{app_user_id}/banks")

    # Vehicle and driver state

    async def latest_trip(self, vehicle_id: int) -> Optional[Dict[str, Any]]:
        return await self._get_optional(f"/trips/latest/{vehicle_id}")

    async def latest_fuel(self, vehicle_id: int) -> Optional[Dict[str, Any]]:
        return await self._get_optional(f"/fuel-tracking/latest/{vehicle_id}")

    async def latest_budget(self, driver_id: int) -> Optional[Dict[str, Any]]:
        return await self._get_optional(f"/driver-budgets/latest/{driver_id}")

    async def standby_for_vehicle(self, vehicle_id: int) -> Dict[str, Any]:
        return await self._request("GET", "/standby/", params={"vehicle_id": vehicle_id})

    # Writes

    async def create_trip(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/trips/", json=payload)

    async def update_trip(self, trip_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", f"/trips/{trip_id}", json=payload)

    async def create_attendance(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/attendance/", json=payload)

    async def create_standby(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/standby/", json=payload)

    async def create_driver_budget(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/driver-budgets/", json=payload)

    async def create_customer(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/customers/", json=payload)

    async def create_product(self, customer_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", f"/customers/{customer_id}/products", json=payload)

    async def create_product_category(self, customer_id: int, product_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request(
            "POST", f"/customers/{customer_id}/products/{product_id}/categories", json=payload
        )

    async def create_location(self, location_name: str) -> Dict[str, Any]:
        return await self._request("POST", "/locations/", json={"location_name": location_name})
