"""Structuring-model adapter over LangChain chat models.

The rest of the package only sees :class:`StructuringModel.complete`, which
returns the raw text, the token usage of that one call and the finish
reason.  Usage is returned as a value; nothing is accumulated on the model.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from langchain_core.messages import HumanMessage, SystemMessage

from cardscout.config import settings


@dataclass(frozen=True)
class TokenUsage:
    """Immutable token counter; combine with ``+``."""

    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    def __add__(self, other: TokenUsage) -> TokenUsage:
        if not isinstance(other, TokenUsage):
            return NotImplemented
        return TokenUsage(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "input_tokens": self.prompt_tokens,
            "output_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass(frozen=True)
class Completion:
    text: str
    usage: TokenUsage
    finish_reason: str | None = None

    @property
    def truncated(self) -> bool:
        return self.finish_reason == "length"


# ---------------------------------------------------------------------------
# LLM helper
# ---------------------------------------------------------------------------

def _get_llm(
    *,
    temperature: float,
    max_tokens: int,
    json_mode: bool,
    api_key: str | None = None,
) -> Any:
    """Return a configured LangChain chat model based on ``settings``."""
    if settings.llm_provider == "openai":
        from langchain_openai import ChatOpenAI

        kwargs: dict[str, Any] = {
            "model": settings.openai_chat_model,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if api_key:
            kwargs["api_key"] = api_key
        llm = ChatOpenAI(**kwargs)
        return llm.bind(response_format={"type": "json_object"}) if json_mode else llm

    from langchain_ollama import ChatOllama

    return ChatOllama(
        model=settings.ollama_chat_model,
        base_url=settings.ollama_base_url,
        temperature=temperature,
        num_predict=max_tokens,
        format="json" if json_mode else "",
    )


def _usage_from(message: Any) -> TokenUsage:
    usage = getattr(message, "usage_metadata", None) or {}
    return TokenUsage(
        prompt_tokens=int(usage.get("input_tokens", 0) or 0),
        completion_tokens=int(usage.get("output_tokens", 0) or 0),
    )


def _finish_reason_from(message: Any) -> str | None:
    meta = getattr(message, "response_metadata", None) or {}
    return meta.get("finish_reason") or meta.get("done_reason")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

class StructuringModel:
    """Send a system + user prompt, get raw text and usage back.

    Args:
        api_key: Optional OpenAI key; falls back to the environment.
        llm: Pre-built chat model, used as-is for every call (tests inject a
            ``MagicMock`` here).
    """

    def __init__(self, api_key: str | None = None, llm: Any | None = None) -> None:
        self._api_key = api_key
        self._llm = llm

    def complete(
        self,
        system: str,
        user: str,
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
        json_mode: bool = True,
        label: str = "AI",
    ) -> Completion:
        llm = self._llm or _get_llm(
            temperature=settings.llm_temperature if temperature is None else temperature,
            max_tokens=max_tokens or settings.llm_max_tokens,
            json_mode=json_mode,
            api_key=self._api_key,
        )
        response = llm.invoke([SystemMessage(content=system), HumanMessage(content=user)])
        raw = response.content if hasattr(response, "content") else str(response)
        usage = _usage_from(response)
        finish_reason = _finish_reason_from(response)

        print(
            f"[{label}] Token usage: input={usage.prompt_tokens} "
            f"output={usage.completion_tokens} total={usage.total_tokens}"
        )
        return Completion(text=str(raw).strip(), usage=usage, finish_reason=finish_reason)
