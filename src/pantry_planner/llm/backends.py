"""Chat backends: a local Ollama server and the hosted Anthropic Messages API.

Both implement :class:`ChatBackend` (send one prompt, optionally with one
image, return the reply text or raise :class:`BackendError`). The backend is
chosen once from :class:`ProviderConfig` by :func:`create_backend`.
"""

from __future__ import annotations

import base64
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import anthropic
import httpx
import requests

from ..config import Provider, ProviderConfig
from ..errors import BackendError, ConfigurationError
from ..logging import get_logger

LOG = get_logger("llm-backends")

SUPPORTED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/webp", "image/gif")


@dataclass(frozen=True)
class ImageAttachment:
    data: bytes
    mime_type: str

    def b64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


class ChatBackend:
    """Interface for inference backends."""

    name = "backend"

    def chat(self, prompt: str, *, image: Optional[ImageAttachment] = None) -> str:
        raise NotImplementedError

    def model_for(self, image: Optional[ImageAttachment]) -> str:
        raise NotImplementedError


class OllamaBackend(ChatBackend):
    name = Provider.OLLAMA.value

    def __init__(
        self,
        base_url: str,
        *,
        vision_model: str,
        text_model: str,
        timeout: Optional[float] = None,
    ) -> None:
        base = (base_url or "").strip().rstrip("/")
        self.chat_endpoint = base if base.endswith("/api/chat") else base + "/api/chat"
        self.vision_model = vision_model
        self.text_model = text_model
        self.timeout = timeout

    def model_for(self, image: Optional[ImageAttachment]) -> str:
        return self.vision_model if image is not None else self.text_model

    def chat(self, prompt: str, *, image: Optional[ImageAttachment] = None) -> str:
        model = self.model_for(image)
        message: Dict[str, Any] = {"role": "user", "content": prompt}
        if image is not None:
            message["images"] = [image.b64()]
        payload = {"model": model, "messages": [message], "stream": False}

        LOG.info(f"Calling Ollama model={model} (image={'yes' if image is not None else 'no'})")
        LOG.debug(f"Ollama endpoint: {self.chat_endpoint}; timeout: {self.timeout}")
        try:
            resp = requests.post(self.chat_endpoint, json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            LOG.error(f"Ollama request failed: {exc}")
            raise BackendError(self.name, str(exc)) from exc

        if not 200 <= resp.status_code < 300:
            LOG.error("Ollama HTTP %s: %s", resp.status_code, resp.text[:500])
            raise BackendError(self.name, resp.text, status_code=resp.status_code)

        try:
            data = resp.json()
        except ValueError as exc:
            raise BackendError(self.name, f"invalid JSON body: {resp.text[:500]}", status_code=resp.status_code) from exc
        if not isinstance(data, dict):
            raise BackendError(self.name, f"unexpected response body: {data!r}", status_code=resp.status_code)
        if data.get("error"):
            LOG.error(f"Ollama error: {data['error']}")
            raise BackendError(self.name, str(data["error"]), status_code=resp.status_code)

        message_out = data.get("message") or {}
        content = ""
        if isinstance(message_out, dict):
            content = message_out.get("content") or ""
        if not content:
            content = data.get("response") or ""
        LOG.info(f"Ollama replied with {len(content)} characters")
        return content


class AnthropicBackend(ChatBackend):
    name = Provider.ANTHROPIC.value

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        *,
        max_tokens: int = 4096,
        timeout: Optional[float] = None,
        client_factory: Optional[Callable[[], Any]] = None,
    ) -> None:
        self._api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._client_factory = client_factory or self._build_client
        self._client: Any = None
        self._client_lock = threading.Lock()

    def _build_client(self) -> anthropic.Anthropic:
        http_client = httpx.Client(
            limits=httpx.Limits(max_keepalive_connections=20, max_connections=30),
        )
        kwargs: Dict[str, Any] = {
            "api_key": self._api_key,
            "http_client": http_client,
            "max_retries": 0,
        }
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        LOG.debug(f"Creating Anthropic client (anthropic={anthropic.__version__}, httpx={httpx.__version__})")
        return anthropic.Anthropic(**kwargs)

    @property
    def client(self) -> Any:
        """The process-wide SDK client, built on first use under a lock."""
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    if not self._api_key:
                        raise ConfigurationError("ANTHROPIC_API_KEY is not set")
                    self._client = self._client_factory()
        return self._client

    def model_for(self, image: Optional[ImageAttachment]) -> str:
        return self.model

    def chat(self, prompt: str, *, image: Optional[ImageAttachment] = None) -> str:
        client = self.client
        content: Any
        if image is None:
            content = prompt
        else:
            content = [
                {
                    "type": "image",
                    "source": {"type": "base64", "media_type": image.mime_type, "data": image.b64()},
                },
                {"type": "text", "text": prompt},
            ]

        LOG.info(f"Calling Anthropic model={self.model} (image={'yes' if image is not None else 'no'})")
        try:
            response = client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": content}],
            )
        except anthropic.APIStatusError as exc:
            LOG.error("Anthropic HTTP %s: %s", exc.status_code, exc.message)
            raise BackendError(self.name, str(exc.message), status_code=exc.status_code) from exc
        except anthropic.APIConnectionError as exc:
            LOG.error(f"Anthropic request failed: {exc}")
            raise BackendError(self.name, str(exc)) from exc

        blocks: List[Any] = list(getattr(response, "content", None) or [])
        text = next((b.text for b in blocks if getattr(b, "type", None) == "text"), "")
        LOG.info(f"Anthropic replied with {len(text)} characters")
        return text


def create_backend(config: ProviderConfig) -> ChatBackend:
    if config.provider is Provider.OLLAMA:
        return OllamaBackend(
            config.ollama_base_url,
            vision_model=config.ollama_vision_model,
            text_model=config.ollama_text_model,
            timeout=config.timeout_seconds,
        )
    return AnthropicBackend(
        config.anthropic_api_key,
        config.anthropic_model,
        max_tokens=config.max_tokens,
        timeout=config.timeout_seconds,
    )
