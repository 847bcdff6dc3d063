"""Language-model collaborator used to rewrite documentation into plain prose.

Providers
---------
``openai`` (default)
    ``langchain_openai.ChatOpenAI``.  Requires ``OPENAI_API_KEY``; without it
    no generator is built and every item uses the deterministic fallback.

``ollama``
    ``langchain_ollama.ChatOllama`` against ``OLLAMA_BASE_URL``.

``none``
    Never call a model.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Protocol

from docpipe.config import Settings
from docpipe.errors import CollaboratorError

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    async def generate(self, prompt: str) -> str:
        """Return generated text for *prompt*; raise ``CollaboratorError`` on failure."""
        ...


# ---------------------------------------------------------------------------
# LangChain-backed generator
# ---------------------------------------------------------------------------

def _get_llm(settings: Settings) -> Any:
    """Return a configured LangChain chat model based on *settings*."""
    if settings.llm_provider == "openai":
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=settings.openai_chat_model,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
        )

    from langchain_ollama import ChatOllama

    return ChatOllama(
        model=settings.ollama_chat_model,
        base_url=settings.ollama_base_url,
        num_predict=settings.llm_max_tokens,
        temperature=settings.llm_temperature,
    )


class LangChainGenerator:
    """Single blocking-style request per prompt; no retries."""

    def __init__(self, llm: Any) -> None:
        self._llm = llm

    async def generate(self, prompt: str) -> str:
        try:
            response = await self._llm.ainvoke(prompt)
        except Exception as exc:  # noqa: BLE001 - provider SDKs raise many types
            raise CollaboratorError(f"Text generation failed: {exc}") from exc
        text = response.content if hasattr(response, "content") else str(response)
        if not isinstance(text, str) or not text.strip():
            raise CollaboratorError("Text generation returned an empty response")
        return text


def build_generator(settings: Settings) -> TextGenerator | None:
    """Return the configured generator, or ``None`` when no model is available."""
    provider = settings.llm_provider
    if provider == "none":
        return None
    if provider == "openai" and not os.environ.get("OPENAI_API_KEY"):
        logger.info("No OpenAI API key found. Using fallback transformation.")
        return None
    if provider not in ("openai", "ollama"):
        raise ValueError(f"Unknown LLM_PROVIDER {provider!r}. Use: openai | ollama | none")
    return LangChainGenerator(_get_llm(settings))
