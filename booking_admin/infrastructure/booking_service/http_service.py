from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from booking_admin.application.exceptions import FetchFailure, MutationRejected, MutationRejectionKind
from booking_admin.application.ports.booking_service import BookingServicePort
from booking_admin.core.config import settings


def _unwrap_list(data: Any) -> list[dict[str, Any]]:
    if isinstance(data, dict):
        data = data.get("data", [])
    if not isinstance(data, list):
        return []
    return [item for item in data if isinstance(item, dict)]


def _unwrap_object(data: Any) -> dict[str, Any]:
    if isinstance(data, dict) and isinstance(data.get("data"), list):
        items = data["data"]
        return items[0] if items and isinstance(items[0], dict) else {}
    if isinstance(data, dict) and isinstance(data.get("data"), dict):
        return data["data"]
    return data if isinstance(data, dict) else {}


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP error! status: {response.status_code}"
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return f"HTTP error! status: {response.status_code}"


def classify_rejection(message: str, patterns: list[str] | None = None) -> MutationRejectionKind:
    lowered = message.lower()
    for pattern in patterns if patterns is not None else settings.TIME_RESTRICTION_PATTERNS:
        if pattern.lower() in lowered:
            return MutationRejectionKind.TIME_RESTRICTION
    return MutationRejectionKind.OTHER


class HttpBookingService(BookingServicePort):
    def __init__(
        self,
        base_url: str | None = None,
        cancel_url: str | None = None,
        timeout: float | None = None,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = (base_url or settings.BOOKING_API_BASE_URL or "").rstrip("/")
        self._cancel_url = cancel_url if cancel_url is not None else settings.BOOKING_CANCEL_URL
        self._logger = logging.getLogger(__name__)

        if not self._base_url:
            raise ValueError("BOOKING_API_BASE_URL is required for the HTTP booking service")

        self._http = http or httpx.AsyncClient(
            timeout=timeout or settings.BOOKING_API_TIMEOUT_SECONDS,
            headers={"Content-Type": "application/json"},
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    def _url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    async def _read(self, path: str, params: dict[str, Any] | None = None) -> Any:
        url = self._url(path)
        try:
            response = await self._http.get(url, params=params)
        except httpx.HTTPError as e:
            self._logger.error("Error fetching from booking service", extra={"path": path, "error": str(e)})
            raise FetchFailure(f"Request to {path} failed: {e}") from e

        if response.status_code >= 400:
            self._logger.error(
                "Booking service read failed",
                extra={"path": path, "status": response.status_code},
            )
            raise FetchFailure(f"HTTP error! status: {response.status_code}", status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise FetchFailure(f"Invalid JSON from {path}") from e

    async def _write(
        self,
        method: str,
        url: str,
        booking_id: str | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        try:
            response = await self._http.request(method, url, json=json)
        except httpx.HTTPError as e:
            self._logger.error(
                "Booking service unreachable",
                extra={"booking_id": booking_id, "method": method, "error": str(e)},
            )
            raise MutationRejected(f"Request failed: {e}") from e

        if response.status_code >= 400:
            message = _error_message(response)
            kind = classify_rejection(message)
            self._logger.warning(
                "Booking service rejected mutation",
                extra={
                    "booking_id": booking_id,
                    "method": method,
                    "status": response.status_code,
                    "reason": kind.value,
                    "error": message,
                },
            )
            raise MutationRejected(message, kind=kind, status_code=response.status_code)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {}

    async def list_bookings(self, resource_id: str | None = None) -> list[dict[str, Any]]:
        if resource_id:
            data = await self._read("viewFilteredBookings", params={"resource_id": resource_id})
        else:
            data = await self._read("viewAllBookings")
        return _unwrap_list(data)

    async def get_booking(self, booking_id: str) -> dict[str, Any]:
        return _unwrap_object(await self._read(f"viewBooking/{quote(booking_id, safe='')}"))

    async def list_schedule_blocks(self, resource_id: str) -> list[dict[str, Any]]:
        data = await self._read(f"getResourceScheduleInfo/{quote(resource_id, safe='')}")
        if isinstance(data, dict) and "schedule_blocks" in data:
            return _unwrap_list(data["schedule_blocks"])
        return _unwrap_list(data)

    async def get_service(self, service_id: str) -> dict[str, Any]:
        return _unwrap_object(await self._read(f"getService/{quote(service_id, safe='')}"))

    async def create_booking(self, payload: dict[str, Any]) -> dict[str, Any]:
        data = await self._write("POST", self._url("createBookings"), json=payload)
        created = _unwrap_object(data)
        self._logger.info("Booking created", extra={"booking_id": created.get("id"), "resource_id": payload.get("resource_id")})
        return created

    async def update_booking(self, booking_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        data = await self._write(
            "PATCH",
            self._url(f"updateBooking/{quote(booking_id, safe='')}"),
            booking_id=booking_id,
            json=fields,
        )
        return _unwrap_object(data)

    async def cancel_booking(self, booking_id: str) -> None:
        if self._cancel_url:
            await self._write("POST", self._cancel_url, booking_id=booking_id, json={"booking_id": booking_id})
        else:
            await self.update_booking(booking_id, {"is_canceled": True})
        self._logger.info("Booking cancelled", extra={"booking_id": booking_id})

    async def delete_booking(self, booking_id: str) -> None:
        await self._write("DELETE", self._url(f"deleteBooking/{quote(booking_id, safe='')}"), booking_id=booking_id)
        self._logger.info("Booking deleted", extra={"booking_id": booking_id})
