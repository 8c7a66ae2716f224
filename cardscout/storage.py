"""JSON persistence for card records, error records, listing reports and
section extractions.

Every file is the in-memory dict pretty-printed with ``indent=2`` and
``ensure_ascii=False``; loading a file back yields an equal dict.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from cardscout.config import settings
from cardscout.extraction.records import utc_now_iso


@dataclass(frozen=True)
class SavedCard:
    """Paths written for one card plus the standard dict exactly as written."""

    standard_path: Path
    structured_path: Path
    standard: dict[str, Any]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _output_dir(output_dir: Path | None) -> Path:
    if output_dir is None:
        return settings.ensure_output_dir()
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


def _write_json(path: Path, data: Any) -> Path:
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    print(f"[SAVE] ✓ {path}")
    return path


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def slugify(value: Any, default: str) -> str:
    """Lower-case *value* and drop everything outside ``[a-z0-9]``."""
    slug = re.sub(r"[^a-z0-9]", "", str(value or "").lower())
    return slug or default


def timestamp_slug(now: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp with ``:`` and ``.`` replaced by ``-``."""
    moment = now or datetime.now(timezone.utc)
    iso = moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return iso.replace("+00:00", "Z").replace(":", "-").replace(".", "-")


def save_card_results(
    standard: dict[str, Any],
    structured: dict[str, Any],
    is_pdf: bool = False,
    output_dir: Path | None = None,
) -> SavedCard:
    """Write ``[pdf_]<bank>_<card>_standard_<ts>.json`` and its structured twin.

    The standard record gains ``metadata.files_generated`` and
    ``metadata.extraction_completed_at``; the caller's dict is not modified.
    """
    directory = _output_dir(output_dir)
    card = standard.get("card") if isinstance(standard.get("card"), dict) else {}
    prefix = "pdf_" if is_pdf else ""
    stem = f"{prefix}{slugify(card.get('bank'), 'unknown')}_{slugify(card.get('name'), 'document')}"
    ts = timestamp_slug()
    standard_name = f"{stem}_standard_{ts}.json"
    structured_name = f"{stem}_structured_{ts}.json"

    record = {
        **standard,
        "metadata": {
            **(standard.get("metadata") or {}),
            "files_generated": {"standard": standard_name, "structured": structured_name},
            "extraction_completed_at": utc_now_iso(),
        },
    }
    return SavedCard(
        standard_path=_write_json(directory / standard_name, record),
        structured_path=_write_json(directory / structured_name, structured),
        standard=record,
    )


def save_error_record(
    record: dict[str, Any],
    is_pdf: bool = False,
    output_dir: Path | None = None,
) -> Path:
    prefix = "pdf_" if is_pdf else ""
    return _write_json(_output_dir(output_dir) / f"{prefix}error_{timestamp_slug()}.json", record)


def save_listing_report(
    report: dict[str, Any],
    listing_url: str,
    output_dir: Path | None = None,
) -> Path:
    host = (urlparse(listing_url).hostname or "listing").replace(".", "_")
    name = f"{host}_listing_standard_{timestamp_slug()}.json"
    return _write_json(_output_dir(output_dir) / name, report)


def save_sections(
    payload: dict[str, Any],
    page_url: str,
    output_dir: Path | None = None,
) -> Path:
    host = (urlparse(page_url).hostname or "page").replace(".", "_")
    name = f"{host}_sections_{timestamp_slug()}.json"
    return _write_json(_output_dir(output_dir) / name, payload)


def load_record(path: Path) -> Any:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def output_stats(output_dir: Path | None = None) -> dict[str, Any]:
    """Count PDF, web and error extractions in the output directory."""
    directory = output_dir or settings.output_dir
    files = sorted(p.name for p in directory.glob("*.json")) if directory.exists() else []

    errors = sum(1 for f in files if f.startswith(("error_", "pdf_error_")))
    pdf = sum(1 for f in files if f.startswith("pdf_") and not f.startswith("pdf_error_") and "_standard_" in f)
    listings = sum(1 for f in files if "_listing_standard_" in f)
    web = sum(
        1
        for f in files
        if "_standard_" in f and not f.startswith(("pdf_", "error_")) and "_listing_standard_" not in f
    )
    extracted = pdf + web
    return {
        "output_dir": str(directory),
        "total_files": len(files),
        "pdf_extractions": pdf,
        "web_extractions": web,
        "listing_reports": listings,
        "errors": errors,
        "success_rate": round(extracted / (extracted + errors) * 100) if extracted + errors else 0,
    }
