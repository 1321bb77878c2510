from __future__ import annotations

import re

"""Post-classification cleanup of common column-mapping mistakes."""

__all__ = [
    "is_all_digits",
    "reconcile",
]

# Unicode-aware: Arabic-Indic digits count as digits too
_DIGITS_RE = re.compile(r"\d+")


def is_all_digits(value: str | None) -> bool:
    return value is not None and _DIGITS_RE.fullmatch(str(value).strip()) is not None


def reconcile(classified: dict[str, str]) -> dict[str, str]:
    """Apply cleanup rules to one classified row and return a sparse mapping.

    - an all-digit guardianName is a misplaced insurance number: it moves to
      insuranceNumber when that is unset, and guardianName is cleared either way
    - an all-digit stage is noise and is dropped
    - a missing name stays missing (the ingestor applies the placeholder)
    """
    fields = {k: v for k, v in classified.items() if v is not None and v != ""}

    guardian = fields.get("guardianName")
    if is_all_digits(guardian):
        if not fields.get("insuranceNumber"):
            fields["insuranceNumber"] = guardian  # type: ignore[assignment]
        del fields["guardianName"]

    if is_all_digits(fields.get("stage")):
        del fields["stage"]

    return fields
