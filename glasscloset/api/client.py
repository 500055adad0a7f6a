"""Async client for the closet analysis backend."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Mapping
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from glasscloset.api.connectivity import ConnectivityMonitor, NetworkMonitor
from glasscloset.api.schemas import (
    ClothingItemsResponse,
    DeleteResponse,
    ErrorResponse,
    LoginResponse,
    SignupResponse,
)
from glasscloset.catalog.decoder import AttributeDecoder
from glasscloset.catalog.models import ClothingAttributes, ClothingItem
from glasscloset.config.settings import Settings
from glasscloset.errors import ClosetError, ErrorKind
from glasscloset.metrics.prometheus_exporter import api_requests_total
from glasscloset.monitoring.logging import shorten_token

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
SIGNUP_PATH = "/signup"
ANALYZE_IMAGE_PATH = "/analyze-image"
CLOTHING_ITEMS_PATH = "/clothing-items"
HEALTH_PATH = "/health"

UPLOAD_FIELD = "file"
UPLOAD_FILENAME = "image.jpg"
UPLOAD_CONTENT_TYPE = "image/jpeg"


def read_json_object(response: httpx.Response) -> dict[str, Any]:
    """Parse a response body that must hold a JSON object."""

    if not response.content:
        raise ClosetError(ErrorKind.NO_DATA)
    try:
        payload = response.json()
    except ValueError as exc:
        logger.error("Response is not JSON. Raw response: %s", response.text[:500])
        raise ClosetError(ErrorKind.DECODING_FAILED) from exc
    if not isinstance(payload, dict):
        logger.error("Expected a JSON object, got %s", type(payload).__name__)
        raise ClosetError(ErrorKind.DECODING_FAILED)
    return payload


class AnalysisClient:
    """Uploads garment photos for analysis and manages the user's stored items."""

    def __init__(
        self,
        settings: Settings,
        *,
        token_provider: Callable[[], str | None],
        connectivity: ConnectivityMonitor | None = None,
        decoder: AttributeDecoder | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        base_url = settings.api_base_url.rstrip("/")
        try:
            httpx.URL(base_url)
        except httpx.InvalidURL as exc:
            raise ClosetError(ErrorKind.INVALID_URL, base_url) from exc

        self._token_provider = token_provider
        self._connectivity = connectivity or NetworkMonitor()
        self._decoder = decoder or AttributeDecoder()
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(
                settings.request_timeout,
                connect=settings.resource_timeout,
                pool=settings.resource_timeout,
            ),
            # connect retries wait out transient connectivity loss
            transport=transport or httpx.AsyncHTTPTransport(retries=settings.connect_retries),
        )

    async def __aenter__(self) -> "AnalysisClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""

        await self._client.aclose()

    # -- transport -----------------------------------------------------------------

    def _auth_headers(self) -> dict[str, str]:
        token = self._token_provider()
        if not token:
            logger.warning("No auth token available for API request")
            raise ClosetError(ErrorKind.AUTHENTICATION_REQUIRED)
        logger.debug("Added auth token to request: Bearer %s", shorten_token(token))
        return {"Authorization": f"Bearer {token}"}

    async def _send(
        self,
        method: str,
        endpoint: str,
        *,
        name: str,
        authenticated: bool = True,
        params: Mapping[str, str] | None = None,
        files: Iterable[tuple[str, tuple[str, bytes, str]]] | None = None,
    ) -> httpx.Response:
        try:
            headers = self._auth_headers() if authenticated else {}
            if not self._connectivity.is_connected:
                raise ClosetError(ErrorKind.NO_NETWORK_CONNECTION)
            try:
                response = await self._client.request(
                    method,
                    endpoint,
                    params=params,
                    files=files,
                    headers=headers,
                )
            except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
                raise ClosetError(ErrorKind.INVALID_URL, str(exc)) from exc
            except httpx.DecodingError as exc:
                logger.error("%s %s returned an undecodable body: %s", method, endpoint, exc)
                raise ClosetError(ErrorKind.DECODING_FAILED) from exc
            except httpx.TransportError as exc:
                logger.warning("%s %s failed at transport level: %s", method, endpoint, exc)
                if isinstance(exc, (httpx.ConnectError, httpx.ConnectTimeout)):
                    self._connectivity.update(False)
                raise ClosetError(ErrorKind.NETWORK_ERROR, str(exc) or type(exc).__name__) from exc
        except ClosetError as exc:
            api_requests_total.labels(endpoint=name, outcome=exc.kind.value).inc()
            raise
        self._connectivity.update(True)
        return response

    async def _request(self, method: str, endpoint: str, *, name: str, **kwargs: Any) -> httpx.Response:
        response = await self._send(method, endpoint, name=name, **kwargs)
        if not 200 <= response.status_code <= 299:
            logger.warning(
                "%s %s returned %s: %s",
                method,
                endpoint,
                response.status_code,
                response.text[:500],
            )
            api_requests_total.labels(endpoint=name, outcome=ErrorKind.SERVER_ERROR.value).inc()
            raise ClosetError.server_error(response.status_code)
        api_requests_total.labels(endpoint=name, outcome="ok").inc()
        return response

    @staticmethod
    def _validate(schema: type[BaseModel], payload: Mapping[str, Any]) -> Any:
        try:
            return schema.model_validate(payload)
        except ValidationError as exc:
            logger.error("Response does not match %s: %s", schema.__name__, exc)
            raise ClosetError(ErrorKind.DECODING_FAILED) from exc

    # -- analysis ------------------------------------------------------------------

    async def post_image(self, image_data: bytes) -> httpx.Response:
        """Send JPEG bytes to ``/analyze-image`` and return the successful response unread."""

        files = [
            (UPLOAD_FIELD, (UPLOAD_FILENAME, image_data, UPLOAD_CONTENT_TYPE)),
        ]
        return await self._request("POST", ANALYZE_IMAGE_PATH, name="analyze-image", files=files)

    async def upload_image(self, image_data: bytes) -> dict[str, Any]:
        """Send JPEG bytes to ``/analyze-image`` and return the raw JSON envelope."""

        return read_json_object(await self.post_image(image_data))

    async def upload(self, image_data: bytes) -> ClothingAttributes:
        """Upload a JPEG and decode the analysis into attributes."""

        payload = await self.upload_image(image_data)
        return self._decoder.decode_analysis(payload)

    # -- closet items --------------------------------------------------------------

    async def fetch_items(self) -> list[ClothingItem]:
        """Return every clothing item stored for the signed-in user."""

        response = await self._request("GET", CLOTHING_ITEMS_PATH, name="clothing-items")
        envelope = self._validate(ClothingItemsResponse, read_json_object(response))
        items = self._decoder.decode_items(envelope.clothing_items)
        logger.info("Fetched %d clothing items", len(items))
        return items

    async def delete_item(self, item_id: str) -> bool:
        """Delete a stored item; returns the backend's ``success`` flag."""

        endpoint = f"{CLOTHING_ITEMS_PATH}/{quote(item_id, safe='')}"
        response = await self._request("DELETE", endpoint, name="delete-item")
        result = self._validate(DeleteResponse, read_json_object(response))
        if not result.success:
            logger.warning("Backend refused to delete %s: %s", item_id, result.message)
        return result.success

    # -- account -------------------------------------------------------------------

    async def login(self, email: str, password: str) -> str:
        """Exchange credentials for a bearer token."""

        response = await self._send(
            "POST",
            LOGIN_PATH,
            name="login",
            authenticated=False,
            params={"email": email, "password": password},
        )
        if response.status_code != 200:
            raise self._account_error(response, "Login failed", name="login")
        api_requests_total.labels(endpoint="login", outcome="ok").inc()
        return self._validate(LoginResponse, read_json_object(response)).access_token

    async def signup(self, email: str, password: str) -> str:
        """Create an account and return the new user id."""

        response = await self._send(
            "POST",
            SIGNUP_PATH,
            name="signup",
            authenticated=False,
            params={"email": email, "password": password},
        )
        if response.status_code != 200:
            raise self._account_error(response, "Signup failed", name="signup")
        api_requests_total.labels(endpoint="signup", outcome="ok").inc()
        return str(self._validate(SignupResponse, read_json_object(response)).user_id)

    @staticmethod
    def _account_error(response: httpx.Response, fallback: str, *, name: str) -> ClosetError:
        detail: str | None = None
        try:
            detail = ErrorResponse.model_validate(response.json()).text()
        except (ValueError, ValidationError):
            logger.debug("Error body carries no usable detail.")
        api_requests_total.labels(endpoint=name, outcome=ErrorKind.OPERATION_FAILED.value).inc()
        return ClosetError.operation_failed(detail or fallback)

    async def ping(self) -> bool:
        """Return ``True`` when the backend health endpoint answers with 2xx."""

        response = await self._send("GET", HEALTH_PATH, name="health", authenticated=False)
        return response.is_success
