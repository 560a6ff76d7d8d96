"""Async HTTP client for the DR form collection service."""

import json
from dataclasses import dataclass
from typing import Any

import httpx

from drsync import __version__

UPLOAD_IMAGE_PATH = "/api/drm/upload-image"
SUBMISSIONS_PATH = "/api/drm/submissions"
STATS_PATH = "/api/drm/stats"


class RemoteError(Exception):
    """Raised by the read-side helpers when the service call fails."""


@dataclass
class ImageUploadResult:
    """Result of an image upload attempt."""

    success: bool
    url: str | None = None
    error: str | None = None
    status_code: int | None = None


@dataclass
class SubmitResult:
    """Result of a metadata submission attempt."""

    success: bool
    error: str | None = None
    status_code: int | None = None


def _describe_transport_error(e: httpx.HTTPError) -> str:
    if isinstance(e, httpx.ConnectError):
        return f"Connection error: {e}"
    if isinstance(e, httpx.TimeoutException):
        return f"Timeout: {e}"
    return f"HTTP error: {e}"


class RemoteSubmissionClient:
    """Client for the two upload endpoints plus the read-side API.

    Uses httpx.AsyncClient for connection pooling. The upload operations never
    raise for transport or protocol failures; they return a result object and
    leave retrying to the caller. There is no retry or backoff here.
    """

    def __init__(
        self,
        server_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            server_url: Base URL of the collection service
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests, proxies)
        """
        self.server_url = server_url.rstrip("/")
        self.timeout = timeout

        self._client = httpx.AsyncClient(
            base_url=self.server_url,
            timeout=httpx.Timeout(timeout),
            headers={"User-Agent": f"drsync-agent/{__version__}"},
            transport=transport,
        )

    async def upload_image(
        self,
        data: bytes,
        filename: str,
        content_type: str = "image/jpeg",
    ) -> ImageUploadResult:
        """Upload photo bytes as the multipart field ``image``.

        Success requires HTTP 200 and a body of the form
        ``{"success": true, "url": "..."}``.

        Args:
            data: Raw image bytes
            filename: File name sent with the part
            content_type: MIME type of the part

        Returns:
            ImageUploadResult with the remote URL or an error
        """
        try:
            response = await self._client.post(
                UPLOAD_IMAGE_PATH,
                files={"image": (filename, data, content_type)},
            )
        except httpx.HTTPError as e:
            return ImageUploadResult(success=False, error=_describe_transport_error(e))

        if response.status_code != 200:
            return ImageUploadResult(
                success=False,
                error=f"Image upload rejected: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except json.JSONDecodeError:
            return ImageUploadResult(
                success=False,
                error="Image upload returned a non-JSON body",
                status_code=response.status_code,
            )

        url = body.get("url") if isinstance(body, dict) else None
        if not isinstance(body, dict) or body.get("success") is not True or not url:
            return ImageUploadResult(
                success=False,
                error=f"Image upload unsuccessful: {body}",
                status_code=response.status_code,
            )

        return ImageUploadResult(success=True, url=url, status_code=response.status_code)

    async def submit_metadata(self, payload: dict[str, Any]) -> SubmitResult:
        """POST the submission metadata as JSON. Any 2xx is success.

        Args:
            payload: Body built by Submission.to_metadata()

        Returns:
            SubmitResult with success status or error
        """
        try:
            response = await self._client.post(SUBMISSIONS_PATH, json=payload)
        except httpx.HTTPError as e:
            return SubmitResult(success=False, error=_describe_transport_error(e))

        if not response.is_success:
            return SubmitResult(
                success=False,
                error=f"Submission rejected: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )
        return SubmitResult(success=True, status_code=response.status_code)

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> dict:
        try:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise RemoteError(
                f"{path} returned {e.response.status_code}: {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise RemoteError(_describe_transport_error(e)) from e
        except json.JSONDecodeError as e:
            raise RemoteError(f"{path} returned a non-JSON body") from e

    async def list_submissions(
        self,
        district_code: str | None = None,
        county_code: str | None = None,
        sub_county_code: str | None = None,
        parish_code: str | None = None,
        polling_station_code: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """List submissions stored by the service, newest first.

        Raises:
            RemoteError: On transport failure or non-2xx response
        """
        filters = {
            "district_code": district_code,
            "county_code": county_code,
            "sub_county_code": sub_county_code,
            "parish_code": parish_code,
            "polling_station_code": polling_station_code,
        }
        params: dict[str, Any] = {k: v for k, v in filters.items() if v}
        params["limit"] = limit
        params["offset"] = offset

        body = await self._get_json(SUBMISSIONS_PATH, params=params)
        return body.get("submissions", [])

    async def get_submission(self, submission_id: str) -> dict[str, Any]:
        """Fetch one stored submission.

        Raises:
            RemoteError: If the submission is unknown or the call fails
        """
        body = await self._get_json(f"{SUBMISSIONS_PATH}/{submission_id}")
        return body["submission"]

    async def get_stats(self) -> dict[str, Any]:
        """Fetch submission totals grouped by district.

        Returns:
            Dictionary with ``total`` and ``byDistrict``
        """
        body = await self._get_json(STATS_PATH)
        return {"total": body.get("total", 0), "byDistrict": body.get("byDistrict", [])}

    async def check_server(self, timeout: float = 5.0) -> bool:
        """Check if the service is reachable.

        Returns:
            True if the health endpoint answers 200, False otherwise
        """
        try:
            response = await self._client.get("/", timeout=httpx.Timeout(timeout))
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        await self._client.aclose()

    async def __aenter__(self) -> "RemoteSubmissionClient":
        """Enter async context manager."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Exit async context manager."""
        await self.close()
