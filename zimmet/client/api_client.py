"""
Zimmet Hub REST client
Thin wrapper over the HTTP API returning plain dicts in the wire (camelCase) shape
"""
import httpx
from typing import Any, Dict, List, Optional


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(f"API Error {status_code}: {message}")
        self.status_code = status_code
        self.message = message


class ZimmetApiClient:
    """Client for the personnel / inventory / vehicle / assignment API"""

    def __init__(
        self,
        base_url: str = "http://localhost:8000/api",
        http: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        # An injected client (e.g. a TestClient) is used as-is and not closed here
        self._http = http
        self._owns_http = http is None
        if self._owns_http:
            self._http = httpx.Client(timeout=timeout)

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _request(self, method: str, endpoint: str, **kwargs) -> Any:
        """Make an HTTP request and decode the JSON body"""
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        response = self._http.request(method, url, **kwargs)

        if response.status_code >= 400:
            try:
                message = response.json().get("error") or response.reason_phrase
            except ValueError:
                message = response.text or response.reason_phrase
            raise ApiError(response.status_code, message)

        return response.json()

    # Personnel API
    def get_personnel(self) -> List[Dict]:
        return self._request("GET", "/personnel")

    def create_personnel(self, personnel: Dict) -> Dict:
        return self._request("POST", "/personnel", json=personnel)

    def update_personnel(self, personnel_id: int, personnel: Dict) -> Dict:
        return self._request("PUT", f"/personnel/{personnel_id}", json=personnel)

    def delete_personnel(self, personnel_id: int) -> Dict:
        return self._request("DELETE", f"/personnel/{personnel_id}")

    # Inventory API
    def get_inventory(self) -> List[Dict]:
        return self._request("GET", "/inventory")

    def get_inventory_item(self, item_id: int) -> Dict:
        return self._request("GET", f"/inventory/{item_id}")

    def create_inventory_item(self, item: Dict) -> Dict:
        return self._request("POST", "/inventory", json=item)

    def update_inventory_item(self, item_id: int, item: Dict) -> Dict:
        return self._request("PUT", f"/inventory/{item_id}", json=item)

    def delete_inventory_item(self, item_id: int) -> Dict:
        return self._request("DELETE", f"/inventory/{item_id}")

    def get_stock_movements(self, product_id: Optional[int] = None, limit: Optional[int] = None) -> List[Dict]:
        params = {}
        if product_id is not None:
            params["product_id"] = product_id
        if limit:
            params["limit"] = limit
        return self._request("GET", "/stock-movements", params=params or None)

    def create_stock_movement(
        self,
        product_id: int,
        type: str,
        quantity: int,
        reason: Optional[str] = None,
        reference_number: Optional[str] = None,
    ) -> Dict:
        return self._request("POST", "/stock-movements", json={
            "product_id": product_id,
            "type": type,
            "quantity": quantity,
            "reason": reason,
            "reference_number": reference_number,
        })

    # Vehicles API
    def get_vehicles(self) -> List[Dict]:
        return self._request("GET", "/vehicles")

    def create_vehicle(self, vehicle: Dict) -> Dict:
        return self._request("POST", "/vehicles", json=vehicle)

    def update_vehicle(self, vehicle_id: int, vehicle: Dict) -> Dict:
        return self._request("PUT", f"/vehicles/{vehicle_id}", json=vehicle)

    def delete_vehicle(self, vehicle_id: int) -> Dict:
        return self._request("DELETE", f"/vehicles/{vehicle_id}")

    def add_vehicle_inventory(self, vehicle_id: int, inventory_id: int) -> Dict:
        return self._request("POST", f"/vehicles/{vehicle_id}/inventory/{inventory_id}")

    def remove_vehicle_inventory(self, vehicle_id: int, inventory_id: int) -> Dict:
        return self._request("DELETE", f"/vehicles/{vehicle_id}/inventory/{inventory_id}")

    # Assignments API
    def get_assignments(self) -> List[Dict]:
        return self._request("GET", "/assignments")

    def create_assignment(self, assignment: Dict) -> Dict:
        return self._request("POST", "/assignments", json=assignment)

    def update_assignment(self, assignment_id: int, assignment: Dict) -> Dict:
        return self._request("PUT", f"/assignments/{assignment_id}", json=assignment)

    def return_assignment(self, assignment_id: int, return_date: str, notes: Optional[str] = None) -> Dict:
        return self._request("PUT", f"/assignments/{assignment_id}/return", json={"returnDate": return_date, "notes": notes})

    # History API
    def get_history(self, limit: Optional[int] = None) -> List[Dict]:
        params = {"limit": limit} if limit else None
        return self._request("GET", "/history", params=params)

    def health(self) -> Dict:
        return self._request("GET", "/health")
