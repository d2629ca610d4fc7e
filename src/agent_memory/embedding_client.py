import httpx
import logging
import time
from typing import List, Dict, Any
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .circuit_breaker import CircuitBreaker, CircuitBroken
from .metrics import (
    EMBEDDING_GENERATION_LATENCY_SECONDS,
    EMBEDDING_GENERATION_FAILURES_TOTAL,
    EMBEDDING_SERVICE_CIRCUIT_BREAKER_STATE
)

logger = logging.getLogger(__name__)


class EmbeddingClient:
    """Async HTTP client for the embedding service"""

    def __init__(
        self,
        base_url: str = "http://embedding-service:8000",
        model: str = "mxbai-embed-large:latest",
        timeout: float = 30.0
    ):
        self.base_url = base_url.rstrip('/')
        self.model = model
        self.timeout = timeout
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            limits=httpx.Limits(max_connections=10, max_keepalive_connections=5)
        )
        self.circuit_breaker = CircuitBreaker(
            error_ratio=0.5,
            window_seconds=10,
            exceptions=[httpx.RequestError, httpx.HTTPStatusError],
            broken_time=30,
            name="embedding_service_client"
        )

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True
    )
    async def embed(self, texts: List[str]) -> List[List[float]]:
        """Embed an ordered list of texts, returning vectors in the same order"""
        start_time = time.monotonic()
        try:
            async with self.circuit_breaker:
                response = await self.client.post(
                    f"{self.base_url}/embed/batch",
                    json={"texts": texts, "model": self.model}
                )
                response.raise_for_status()
                data = response.json()
                latency = time.monotonic() - start_time
                logger.debug(f"Embedded {len(texts)} texts in {latency * 1000:.2f}ms")
                EMBEDDING_GENERATION_LATENCY_SECONDS.observe(latency)
                return data["embeddings"]
        except CircuitBroken:
            EMBEDDING_GENERATION_FAILURES_TOTAL.inc()
            logger.warning("Embedding service circuit breaker is open, rejecting request")
            raise
        except httpx.HTTPError as e:
            EMBEDDING_GENERATION_FAILURES_TOTAL.inc()
            logger.error(f"Embedding request failed: {e}")
            raise
        except (KeyError, ValueError) as e:
            EMBEDDING_GENERATION_FAILURES_TOTAL.inc()
            logger.error(f"Embedding service returned a malformed response: {e}")
            raise
        finally:
            EMBEDDING_SERVICE_CIRCUIT_BREAKER_STATE.set(self.circuit_breaker.state_value)

    async def health_check(self) -> Dict[str, Any]:
        """Check if embedding service is healthy and report circuit breaker state"""
        status = "ok"
        latency_ms = 0.0
        error_message = None
        try:
            start_time = time.monotonic()
            response = await self.client.get(f"{self.base_url}/health")
            response.raise_for_status()
            latency_ms = (time.monotonic() - start_time) * 1000
        except httpx.HTTPStatusError as e:
            status = "error"
            error_message = f"HTTP error: {e.response.status_code}"
        except httpx.RequestError as e:
            status = "error"
            error_message = f"Request error: {e}"

        return {
            "status": status,
            "latency_ms": round(latency_ms, 2),
            "circuit_breaker_state": self.circuit_breaker.state.value,
            "error_message": error_message
        }

    async def close(self):
        """Close HTTP client connection pool"""
        await self.client.aclose()
