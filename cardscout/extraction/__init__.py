"""Extraction package — structuring-model calls and record shaping."""

from cardscout.extraction.lenient_json import parse_lenient
from cardscout.extraction.llm import Completion, StructuringModel, TokenUsage
from cardscout.extraction.processor import CardExtraction, CardProcessor
from cardscout.extraction.records import CardIdentity, StandardRecord, generate_id
from cardscout.extraction.scoring import (
    confidence_score,
    find_missing_data,
    is_data_complete,
    is_pdf_data_complete,
)
from cardscout.extraction.structured import derive_structured, partition_key

__all__ = [
    "parse_lenient",
    "Completion",
    "StructuringModel",
    "TokenUsage",
    "CardExtraction",
    "CardProcessor",
    "CardIdentity",
    "StandardRecord",
    "generate_id",
    "confidence_score",
    "find_missing_data",
    "is_data_complete",
    "is_pdf_data_complete",
    "derive_structured",
    "partition_key",
]
