"""One structuring-model call per card: prompt, parse, reconcile both shapes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from cardscout.config import settings
from cardscout.errors import MalformedModelResponse
from cardscout.extraction.lenient_json import parse_lenient
from cardscout.extraction.llm import StructuringModel, TokenUsage
from cardscout.extraction.prompts import CARD_SYSTEM_PROMPT, build_card_prompt
from cardscout.extraction.records import StandardRecord, utc_now_iso
from cardscout.extraction.scoring import confidence_score, find_missing_data
from cardscout.extraction.structured import derive_structured
from cardscout.scraper.models import PageContent, ProcessedLink


@dataclass(frozen=True)
class CardExtraction:
    standard: dict[str, Any]
    structured: dict[str, Any]
    usage: TokenUsage
    structured_derived: bool = False


class CardProcessor:
    """Turn fetched content into the standard and structured records.

    Both records come from the same prompt/response pair.  When the model
    returns no structured half (or a bare standard-shaped object), the
    structured half is derived from it with :func:`derive_structured`.
    """

    def __init__(self, model: StructuringModel) -> None:
        self.model = model

    def process(
        self,
        main: PageContent,
        linked: Sequence[ProcessedLink],
        url: str,
    ) -> CardExtraction:
        """Run the extraction call for *url*.

        Raises:
            MalformedModelResponse: The response was truncated at the token
                limit or could not be parsed as a JSON object.
        """
        print(f"[AI] Structuring {url} with {len(linked)} linked page(s) …")
        prompt = build_card_prompt(main, linked, url)
        completion = self.model.complete(
            CARD_SYSTEM_PROMPT,
            prompt,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
            json_mode=True,
            label="AI",
        )
        if completion.truncated:
            raise MalformedModelResponse("Response was truncated due to token limit")

        data = parse_lenient(completion.text)
        if not isinstance(data, dict):
            raise MalformedModelResponse(
                f"Expected a JSON object from the model, got {type(data).__name__}"
            )

        standard_part = data.get("standard_format")
        structured_part = data.get("structured_format")
        if isinstance(standard_part, dict):
            payload = standard_part
        else:
            payload = {k: v for k, v in data.items() if k not in ("standard_format", "structured_format")}
        derived = not isinstance(structured_part, dict)
        if derived:
            print("[AI] Structured format missing; deriving it from the standard format")
            structured = derive_structured(payload)
        else:
            structured = structured_part

        record = StandardRecord.from_model_output(payload, url=url)
        scored = record.to_dict()
        record.metadata = {
            **record.metadata,
            "last_updated": utc_now_iso(),
            "confidence_score": confidence_score(scored),
            "missing_data": find_missing_data(scored),
            "processed_links": len(linked),
            "token_usage": completion.usage.to_dict(),
        }
        if derived:
            record.metadata["structured_derived"] = True

        print(f"[AI] ✓ {record.card.name!r} ({record.card.bank}) confidence={record.metadata['confidence_score']}")
        return CardExtraction(
            standard=record.to_dict(),
            structured=structured,
            usage=completion.usage,
            structured_derived=derived,
        )
