"""Promotion of accepted applications into research tracking.

When a user accepts a position and chooses to start tracking it, the
opportunity is handed to the research-journal service. The handoff is
fire-and-forget: the board does not wait on, or act upon, what the
research service does with it.

- PromotionBridge: Protocol for the handoff
- HttpPromotionBridge: POSTs to the research service's /api/research
- NullPromotionBridge: Discards promotions
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, runtime_checkable

import httpx


logger = logging.getLogger(__name__)

DEFAULT_POSITION_TITLE = "Research Position"


@dataclass(frozen=True)
class PromotionMeta:
    """Display data sent along with a promotion.

    Attributes:
        title: Opportunity title.
        pi_name: Name of the principal investigator, if known.
    """

    title: str = DEFAULT_POSITION_TITLE
    pi_name: Optional[str] = None


class PromotionError(Exception):
    """Raised inside a bridge when the handoff fails.

    Bridges log this rather than let it reach the board.

    Attributes:
        opportunity_id: The opportunity being promoted.
        status_code: HTTP status code, when there was a response.
    """

    def __init__(
        self,
        message: str,
        opportunity_id: str,
        status_code: Optional[int] = None,
    ):
        self.opportunity_id = opportunity_id
        self.status_code = status_code
        super().__init__(message)


@runtime_checkable
class PromotionBridge(Protocol):
    """One-way handoff to research tracking. Never raises."""

    async def promote(self, opportunity_id: str, meta: PromotionMeta) -> None:
        ...


class NullPromotionBridge:
    """PromotionBridge that only logs."""

    async def promote(self, opportunity_id: str, meta: PromotionMeta) -> None:
        logger.info(
            "Promotion requested with no research service configured",
            extra={"opportunity_id": opportunity_id},
        )


class HttpPromotionBridge:
    """Posts promotions to the research service.

    Request body: ``{"opportunityId": ..., "title": ..., "piName": ...}``
    sent to ``POST {base_url}/api/research``.

    Example:
        >>> async with HttpPromotionBridge("https://app.example.edu") as bridge:
        ...     await bridge.promote("opp-1", PromotionMeta("Protein folding", "Dr. Lee"))
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the HTTP client, creating it if necessary."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._default_headers(),
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    def _default_headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "User-Agent": "ApplicationPipeline/1.0",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpPromotionBridge":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def promote(self, opportunity_id: str, meta: PromotionMeta) -> None:
        """Hand ``opportunity_id`` to the research service.

        Failures are logged and swallowed; the board's responsibility ends
        with this call.
        """
        try:
            await self._post(opportunity_id, meta)
        except PromotionError as e:
            logger.error(
                "Failed to create research position",
                extra={
                    "opportunity_id": opportunity_id,
                    "status_code": e.status_code,
                    "error": str(e),
                },
            )
            return

        logger.info(
            "Promoted opportunity to research tracking",
            extra={"opportunity_id": opportunity_id},
        )

    async def _post(self, opportunity_id: str, meta: PromotionMeta) -> None:
        body = {
            "opportunityId": opportunity_id,
            "title": meta.title or DEFAULT_POSITION_TITLE,
            "piName": meta.pi_name,
        }
        try:
            response = await self.client.post("/api/research", json=body)
        except httpx.HTTPError as e:
            raise PromotionError(
                f"Research service request failed: {e}",
                opportunity_id=opportunity_id,
            ) from e

        if response.status_code >= 400:
            raise PromotionError(
                f"Research service returned {response.status_code}",
                opportunity_id=opportunity_id,
                status_code=response.status_code,
            )
