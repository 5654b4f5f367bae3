"""
Optional score enhancement service.

After a report has been computed and stored, an external service may be asked
for a refined score. The result is display-only: it is attached to the report
returned to the caller but the stored total always comes from the
deterministic calculator.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

import httpx

from truthtrack.config.settings import Settings, get_settings
from truthtrack.models.schemas import TOTAL_MAX
from truthtrack.utils.logger import get_logger

logger = get_logger(__name__)


class ScoreEnhancer(ABC):
    """Port for the best-effort score enhancement call."""

    @abstractmethod
    async def enhance(self, product_id: UUID) -> Optional[int]:
        """Return a refined score, or None. Must not raise."""
        raise NotImplementedError

    async def close(self) -> None:
        return None


class NullScoreEnhancer(ScoreEnhancer):
    async def enhance(self, product_id: UUID) -> Optional[int]:
        return None


class HttpScoreEnhancer(ScoreEnhancer):
    """
    POSTs ``{"product_id": ...}`` and reads ``{"score": ...}`` back.

    Any transport error, non-2xx status, error payload or out-of-range score
    yields None.
    """

    def __init__(
        self,
        url: str,
        timeout_seconds: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def enhance(self, product_id: UUID) -> Optional[int]:
        try:
            response = await self.client.post(self.url, json={"product_id": str(product_id)})
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Score enhancement unavailable", product_id=str(product_id), error=str(e))
            return None

        if not isinstance(data, dict) or data.get("error") is not None:
            logger.warning("Score enhancement returned an error", product_id=str(product_id))
            return None

        score = data.get("score")
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            return None
        if not 0 <= score <= TOTAL_MAX:
            return None
        return int(round(score))

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()


def create_score_enhancer(settings: Optional[Settings] = None) -> ScoreEnhancer:
    settings = settings or get_settings()
    if not settings.score_enhancer_url:
        return NullScoreEnhancer()
    return HttpScoreEnhancer(
        settings.score_enhancer_url,
        timeout_seconds=settings.enhancer_timeout_seconds,
    )


__all__ = [
    "ScoreEnhancer",
    "NullScoreEnhancer",
    "HttpScoreEnhancer",
    "create_score_enhancer",
]
