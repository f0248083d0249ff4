"""
Ollama HTTP API client wrapper.

This module provides a thin wrapper around the Ollama REST API that:
1. Implements the ModelClient protocol from core.catalog.summarizer
2. Handles API-specific details (payload shape, non-streaming answers)
3. Turns every failure into a ModelClientError

Requests go through ``requests`` with no timeout: a local model can take
minutes to answer with a batch of images, and a hung server should be
visible as a hung run rather than hidden behind a retry loop.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

import requests

from aspargus.core.catalog.errors import ModelClientError
from aspargus.core.catalog.summarizer import TEMPERATURE

logger = logging.getLogger(__name__)


@dataclass
class OllamaConfig:
    """
    Where an Ollama server lives.

    ``server`` carries the scheme ("http://localhost"), the port is kept
    separate so each can be overridden on its own.
    """
    server: str = "http://localhost"
    port: int = 11434

    def __post_init__(self) -> None:
        if not self.server:
            raise ValueError("Server URL is required")
        if not 1 <= self.port <= 65535:
            raise ValueError("port must be between 1 and 65535")

    @property
    def base_url(self) -> str:
        return f"{self.server.rstrip('/')}:{self.port}"


class OllamaClient:
    """
    Implementation of ModelClient for an Ollama server.

    This class knows about Ollama's API format but nothing about videos.
    It sends prompts and base64 images, and hands back the text.

    Methods are async to match the protocol; the blocking requests call
    runs in a worker thread.
    """

    def __init__(self, config: OllamaConfig, session: Optional[requests.Session] = None) -> None:
        self._config = config
        self._session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return self._config.base_url

    async def generate(
        self,
        model: str,
        prompt: str,
        images: Optional[list[str]] = None,
        temperature: float = TEMPERATURE,
    ) -> str:
        """
        Run a completion on ``/api/generate`` and return the answer text.

        Streaming is turned off so the whole answer comes back in one body.
        """
        payload = self._build_generate_payload(model, prompt, images, temperature)
        body = await asyncio.to_thread(self._request, "POST", "/api/generate", payload)

        answer = body.get("response")
        if not isinstance(answer, str):
            raise ModelClientError(f"No answer from model {model} on {self.base_url}")
        return answer

    async def list_models(self) -> list[str]:
        """Names of the models pulled on the server (``/api/tags``)."""
        body = await asyncio.to_thread(self._request, "GET", "/api/tags")

        models = body.get("models")
        if not isinstance(models, list):
            raise ModelClientError(f"Unexpected model list from {self.base_url}")
        return [m["name"] for m in models if isinstance(m, dict) and "name" in m]

    def _build_generate_payload(
        self,
        model: str,
        prompt: str,
        images: Optional[list[str]],
        temperature: float,
    ) -> dict[str, Any]:
        """
        Build the body for a generate request.

        Ollama expects:
        {
            "model": "...",
            "prompt": "...",
            "images": ["<base64>", ...],      # only for vision models
            "stream": false,
            "options": {"temperature": 0.5}
        }
        """
        payload: dict[str, Any] = {
            "model": model,
            "prompt": prompt,
            "stream": False,
            "options": {"temperature": temperature},
        }
        if images:
            payload["images"] = images
        return payload

    def _request(
        self,
        method: str,
        path: str,
        payload: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.request(method, url, json=payload)
        except requests.RequestException as e:
            logger.debug(f"Request to {url} failed: {e}")
            raise ModelClientError(f"Couldn't reach {url}: {e}") from e

        if not response.ok:
            logger.debug(
                "Model server error",
                extra={"url": url, "status": response.status_code, "body": response.text[:500]}
            )
            raise ModelClientError(
                f"{url} answered {response.status_code}: {_error_message(response)}"
            )

        try:
            body = response.json()
        except ValueError as e:
            raise ModelClientError(f"{url} didn't answer with JSON") from e

        if not isinstance(body, dict):
            raise ModelClientError(f"{url} answered with an unexpected body")
        return body


def _error_message(response: requests.Response) -> str:
    # Ollama puts the reason in {"error": "..."}, e.g. "model 'x' not found"
    try:
        body = response.json()
    except ValueError:
        return response.reason or "error"
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.reason or "error"


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_ollama_client(server: str, port: int) -> OllamaClient:
    """
    Factory function to create a configured client.

    The vision and text servers get their own client even when they point
    at the same place; it keeps the two settings independent.
    """
    return OllamaClient(OllamaConfig(server=server, port=port))
