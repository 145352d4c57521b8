"""HTTP client for the remote fridge inventory API."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional, Sequence, Type, TypeVar

import httpx
from pydantic import BaseModel

from fridgelist.config import GatewayConfig, get_settings
from fridgelist.errors import ConfigurationError, RemoteRejection, TransportError
from fridgelist.metrics import GATEWAY_CALLS, GATEWAY_LATENCY, ITEMS_SYNCED
from fridgelist.models.shopping import (
    ListResponse,
    ListSnapshot,
    PurchaseEntry,
    SyncAcknowledgement,
    SyncResponse,
)
from fridgelist.results import Result

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

HEALTH_PATH = "/health"
COURSES_PATH = "/courses"
SYNC_PATH = "/courses/sync"


class FridgeApiClient:
    """Thin wrapper around the four fridge API operations.

    Every public method returns a :class:`Result`; nothing raises past this class.
    Calls are never retried here, a failure is reported to the caller once.
    """

    def __init__(
        self,
        config: Optional[GatewayConfig] = None,
        *,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = config if config is not None else get_settings().gateway_config()
        self._transport = transport

    @property
    def config(self) -> GatewayConfig:
        return self._config

    @property
    def is_configured(self) -> bool:
        return self._config.is_configured

    def reconfigure(self, base_url: str, api_key: str) -> None:
        """Point the client at a new server and key."""

        self._config = GatewayConfig(base_url=base_url, api_key=api_key, timeout=self._config.timeout)
        logger.info("Fridge API client reconfigured base_url=%s", base_url)

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-API-Key": self._config.api_key,
        }

    def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
    ) -> Result[httpx.Response]:
        if not self._config.is_configured:
            GATEWAY_CALLS.labels(operation, "not_configured").inc()
            return Result.failure(
                ConfigurationError("Fridge API URL and API key must be configured first.")
            )

        started = time.perf_counter()
        try:
            with httpx.Client(
                base_url=self._config.base_url,
                headers=self._headers(),
                timeout=self._config.timeout,
                transport=self._transport,
            ) as client:
                response = client.request(method, path, json=json)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            GATEWAY_CALLS.labels(operation, "transport_error").inc()
            logger.warning(
                "Fridge API %s failed: %s", operation, exc, extra={"operation": operation}
            )
            return Result.failure(TransportError(operation, str(exc) or exc.__class__.__name__))
        finally:
            GATEWAY_LATENCY.labels(operation).observe(time.perf_counter() - started)

        if not response.is_success:
            GATEWAY_CALLS.labels(operation, "rejected").inc()
            logger.warning(
                "Fridge API %s rejected status=%s",
                operation,
                response.status_code,
                extra={"operation": operation},
            )
            return Result.failure(
                RemoteRejection(operation, response.status_code, _error_detail(response))
            )

        GATEWAY_CALLS.labels(operation, "success").inc()
        return Result.success(response)

    def _decode(self, operation: str, response: httpx.Response, model: Type[ModelT]) -> Result[ModelT]:
        try:
            return Result.success(model.model_validate(response.json()))
        except (ValueError, TypeError) as exc:
            logger.warning(
                "Malformed %s response: %s", operation, exc, extra={"operation": operation}
            )
            return Result.failure(TransportError(operation, f"malformed response: {exc}"))

    def check_health(self) -> Result[bool]:
        """Succeed when the server answers ``GET /health`` with a 2xx status."""

        return self._request("health", "GET", HEALTH_PATH).map(lambda _: True)

    def fetch_list(self) -> Result[ListSnapshot]:
        """Fetch the current shopping list."""

        result = self._request("fetch_list", "GET", COURSES_PATH)
        if not result.ok:
            return Result.failure(result.error)  # type: ignore[arg-type]
        decoded = self._decode("fetch_list", result.unwrap(), ListResponse)
        if decoded.ok:
            logger.debug("Fetched %s shopping item(s)", len(decoded.unwrap().items))
        return decoded.map(ListResponse.to_snapshot)

    def submit_purchases(self, entries: Sequence[PurchaseEntry]) -> Result[SyncAcknowledgement]:
        """Push purchased quantities so the server can update its inventory."""

        payload = {"achats": [entry.model_dump(by_alias=True) for entry in entries]}
        result = self._request("submit_purchases", "POST", SYNC_PATH, json=payload)
        if not result.ok:
            return Result.failure(result.error)  # type: ignore[arg-type]
        decoded = self._decode("submit_purchases", result.unwrap(), SyncResponse)
        if decoded.ok:
            ITEMS_SYNCED.inc(len(entries))
        return decoded.map(
            lambda body: SyncAcknowledgement(modified_count=body.items_modifies, message=body.message)
        )

    def delete_item(self, item_id: int) -> Result[bool]:
        """Remove a single item from the remote list."""

        return self._request("delete_item", "DELETE", f"{COURSES_PATH}/{item_id}").map(lambda _: True)


def _error_detail(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        detail = body.get("error") or body.get("message")
        if detail:
            return str(detail)
    return None


__all__ = ["FridgeApiClient"]
