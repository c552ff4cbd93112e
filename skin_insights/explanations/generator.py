"""
Text generator adapters.

The engine never talks to a model or network directly; it calls a
``TextGenerator`` (``prompt -> text``) supplied by the host application.
``HttpTextGenerator`` is a ready-made adapter for an HTTP completion endpoint.

Configuration (config/default.toml [explanations], .env):
  generator_enabled = true
  generator_url     = "http://localhost:8080/v1/completions"
  SKIN_INSIGHTS_GENERATOR_API_KEY=...   (optional bearer token, .env only)

Accepted response shapes (first non-empty wins):
  {"text": "..."}
  {"response": "..."}
  {"choices": [{"text": "..."}]}
  {"choices": [{"message": {"content": "..."}}]}

Every failure surfaces as an exception (``GeneratorUnavailableError`` or an
``httpx`` error); the explanation coordinator converts it to the template
fallback.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any, Optional, Protocol

import httpx

if TYPE_CHECKING:
    from skin_insights.config import ExplanationConfig

logger = logging.getLogger(__name__)

API_KEY_ENV_VAR = "SKIN_INSIGHTS_GENERATOR_API_KEY"


class GeneratorUnavailableError(RuntimeError):
    """The text generator is disabled, misconfigured, or returned no text."""


class TextGenerator(Protocol):
    """Anything that turns a prompt into explanation text."""

    def generate(self, prompt: str) -> str: ...


class HttpTextGenerator:
    """Blocking adapter for an HTTP text-completion endpoint.

    Usage::

        generator = HttpTextGenerator("http://localhost:8080/v1/completions")
        text = generator.generate(prompt)

    Attributes:
        url:             Endpoint receiving ``POST {"model", "prompt", "max_tokens"}``.
        model:           Model name forwarded to the endpoint.
        max_tokens:      Generation budget forwarded to the endpoint.
        timeout_seconds: Per-request HTTP timeout.
        enabled:         ``False`` makes every call raise ``GeneratorUnavailableError``.
    """

    def __init__(
        self,
        url: str,
        model: str = "",
        max_tokens: int = 256,
        timeout_seconds: float = 20.0,
        enabled: bool = True,
        api_key: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """Initialise the adapter.

        Args:
            url:             Completion endpoint URL.
            model:           Model name forwarded in the request body.
            max_tokens:      Generation budget.
            timeout_seconds: HTTP timeout for one request.
            enabled:         Global on/off switch.
            api_key:         Optional bearer token.
            transport:       Custom httpx transport (tests use ``httpx.MockTransport``).
        """
        self.url = url
        self.model = model
        self.max_tokens = max_tokens
        self.timeout_seconds = timeout_seconds
        self.enabled = enabled
        self._api_key = api_key
        self._transport = transport

    @classmethod
    def from_config(
        cls,
        config: "ExplanationConfig",
        transport: Optional[httpx.BaseTransport] = None,
    ) -> "HttpTextGenerator":
        return cls(
            url=config.generator_url,
            model=config.generator_model,
            max_tokens=config.max_tokens,
            timeout_seconds=config.request_timeout_seconds,
            enabled=config.generator_enabled,
            api_key=os.environ.get(API_KEY_ENV_VAR),
            transport=transport,
        )

    @property
    def is_available(self) -> bool:
        return self.enabled and bool(self.url)

    def generate(self, prompt: str) -> str:
        """POST the prompt and return the generated text.

        Raises:
            GeneratorUnavailableError: If disabled, unconfigured, or the
                response carries no text.
            httpx.HTTPError: On transport failure or non-2xx status.
        """
        if not self.is_available:
            raise GeneratorUnavailableError("Text generator is disabled or has no URL.")

        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        with httpx.Client(timeout=self.timeout_seconds, transport=self._transport) as client:
            resp = client.post(
                self.url,
                json={"model": self.model, "prompt": prompt, "max_tokens": self.max_tokens},
                headers=headers,
            )
            resp.raise_for_status()
            try:
                payload = resp.json()
            except ValueError as exc:
                raise GeneratorUnavailableError("Generator returned non-JSON body.") from exc

        text = extract_text(payload)
        if not text:
            raise GeneratorUnavailableError("Generator response contained no text.")
        logger.debug("Generator returned %d characters.", len(text))
        return text


def extract_text(payload: Any) -> str:
    """Pull completion text out of a decoded response body; ``""`` if none."""
    if not isinstance(payload, dict):
        return ""
    for key in ("text", "response"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    choices = payload.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        first = choices[0]
        if isinstance(first.get("text"), str) and first["text"].strip():
            return first["text"].strip()
        message = first.get("message")
        if isinstance(message, dict) and isinstance(message.get("content"), str):
            return message["content"].strip()
    return ""


def build_generator(config: "ExplanationConfig") -> Optional[HttpTextGenerator]:
    """Generator from config, or ``None`` when generation is switched off."""
    if not config.generator_enabled or not config.generator_url:
        logger.info("Text generator disabled; explanations will use templates.")
        return None
    return HttpTextGenerator.from_config(config)
