"""
Ollama client used by agents to dispatch prompts.

Non-streaming calls to ``/api/generate``. No retries: a failed call surfaces as
LLMError and the caller decides what to do.
"""

from typing import Any, Dict, Optional
import httpx
import structlog

from ..errors import LLMError

logger = structlog.get_logger()


class OllamaClient:
    """Thin async client for an Ollama server."""

    def __init__(self, service_url: str, timeout: float = 60.0):
        """Initialize the client.

        Args:
            service_url: Ollama service URL (e.g., "http://ollama-server:11434")
            timeout: Request timeout in seconds
        """
        self.service_url = service_url.rstrip('/')
        self.timeout = timeout
        self.client = httpx.AsyncClient(timeout=timeout)

        logger.info("OllamaClient initialized", service_url=self.service_url, timeout=timeout)

    async def generate(
        self,
        prompt: str,
        model: str,
        system: Optional[str] = None,
        json_mode: bool = False
    ) -> str:
        """Send one prompt and return the model's full reply text."""
        payload: Dict[str, Any] = {
            "model": model,
            "prompt": prompt,
            "stream": False,
        }
        if system:
            payload["system"] = system
        if json_mode:
            payload["format"] = "json"

        url = f"{self.service_url}/api/generate"

        logger.debug("Calling Ollama API", url=url, model=model, prompt_length=len(prompt))

        try:
            response = await self.client.post(url, json=payload)
            response.raise_for_status()
            result = response.json()
        except httpx.TimeoutException as e:
            logger.warning("Ollama API timeout", url=url, timeout=self.timeout)
            raise LLMError("Language model request timed out",
                           details={"model": model, "timeout": self.timeout}) from e
        except httpx.HTTPStatusError as e:
            logger.error("Ollama API HTTP error",
                         url=url,
                         status_code=e.response.status_code,
                         response_text=e.response.text[:200])
            raise LLMError("Language model request failed",
                           details={"model": model, "status_code": e.response.status_code}) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Ollama API call failed", url=url, error=str(e))
            raise LLMError("Language model request failed",
                           details={"model": model, "error": str(e)}) from e

        reply = result.get("response", "")
        logger.debug("Ollama API response received", response_length=len(reply))
        return reply

    async def health_check(self) -> Dict[str, Any]:
        """Check if the Ollama service is reachable and list its models."""
        try:
            response = await self.client.get(f"{self.service_url}/api/tags", timeout=3.0)
            response.raise_for_status()
            models = [model.get("name", "unknown") for model in response.json().get("models", [])]
            return {"status": "ok", "service_url": self.service_url, "available_models": models}
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Ollama health check failed", service_url=self.service_url, error=str(e))
            return {"status": "error", "service_url": self.service_url, "error": str(e)[:100]}

    async def close(self):
        await self.client.aclose()
        logger.info("OllamaClient closed")
