from __future__ import annotations

import logging
from dataclasses import dataclass

from .normalize import normalize_header

"""Column classifier: normalized header -> canonical student field.

CLASSIFICATION_RULES is an ordered tuple and the first matching rule wins. The
rules overlap on purpose (e.g. a class-code header also contains the class token),
so moving a rule changes which field ambiguous headers land in.
"""

__all__ = [
    "CLASSIFICATION_RULES",
    "ClassificationRule",
    "ClassifiedRow",
    "NAME_FALLBACK_TOKEN",
    "classify",
    "classify_row",
]

logger = logging.getLogger(__name__)

# Raw-header substring used when no column classified to name
NAME_FALLBACK_TOKEN = "اسم"


@dataclass(frozen=True)
class ClassificationRule:
    """Substring predicate over a normalized header.

    Matches when no ``none_of`` token is present and either the key equals one of
    ``exact``, or every ``all_of`` token and at least one ``any_of`` token (when
    given) are contained in the key.
    """
    field: str
    all_of: tuple[str, ...] = ()
    any_of: tuple[str, ...] = ()
    none_of: tuple[str, ...] = ()
    exact: tuple[str, ...] = ()

    def matches(self, key: str) -> bool:
        if any(token in key for token in self.none_of):
            return False
        if key in self.exact:
            return True
        if not (self.all_of or self.any_of):
            return False
        if not all(token in key for token in self.all_of):
            return False
        return not self.any_of or any(token in key for token in self.any_of)


CLASSIFICATION_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule("name", any_of=("الاس", "name"), exact=("اسم",)),
    ClassificationRule("nationalId", any_of=("قومي", "national")),
    ClassificationRule("classCode", all_of=("كود", "فصل")),
    ClassificationRule("classRoom", all_of=("فصل",), none_of=("كود",)),
    ClassificationRule("studentCode", all_of=("كود", "طالب")),
    ClassificationRule("birthDate", all_of=("تاريخ", "ميلاد")),
    ClassificationRule("guardianName", all_of=("ولي", "امر")),
    ClassificationRule("studentAddress", all_of=("عنوان",), none_of=("محافظة",)),
    ClassificationRule("birthGovernorate", all_of=("محافظة", "ميلاد")),
    ClassificationRule("stage", any_of=("مرحل",)),
    ClassificationRule("enrollmentStatus", any_of=("قيد", "حالة")),
    ClassificationRule("orphanStatus", any_of=("ايتام",)),
    ClassificationRule("tabletSerial", all_of=("رقم", "مسلسل", "تابلت")),
    ClassificationRule("tabletSerial", any_of=("tablet",)),
    ClassificationRule("imei", exact=("imei",)),
    ClassificationRule("insuranceNumber", any_of=("بوليصة", "تامين")),
    ClassificationRule("gender", any_of=("نوع",)),
    ClassificationRule("religion", any_of=("ديان",)),
    ClassificationRule("nationality", any_of=("جنسي",)),
    ClassificationRule("lastCertificate", all_of=("اخر", "شهاد")),
    ClassificationRule("lastSchool", all_of=("اخر", "مدرس")),
    ClassificationRule("totalScore", any_of=("مجموع", "total")),
)


def classify(normalized_key: str, cell_value: str | None) -> str | None:
    """Return the canonical field for a column, or None when unclassified.

    Empty and whitespace-only values are never classified, whatever the header.
    """
    if cell_value is None or not str(cell_value).strip():
        return None
    for rule in CLASSIFICATION_RULES:
        if rule.matches(normalized_key):
            return rule.field
    return None


@dataclass(frozen=True)
class ClassifiedRow:
    fields: dict[str, str]  # canonical field -> trimmed value
    unclassified_headers: tuple[str, ...]  # raw headers with a value but no rule


def classify_row(row: dict[str, str]) -> ClassifiedRow:
    """Classify every cell of a raw row.

    When several cells map to the same field the later one wins. If no cell
    classified to ``name``, the first raw header containing NAME_FALLBACK_TOKEN
    with a non-empty value supplies it.
    """
    fields: dict[str, str] = {}
    unclassified: list[str] = []
    for header, value in row.items():
        if value is None or not str(value).strip():
            continue
        field_name = classify(normalize_header(header), value)
        if field_name is None:
            unclassified.append(header)
            continue
        fields[field_name] = str(value).strip()

    if "name" not in fields:
        for header, value in row.items():
            if value is not None and str(value).strip() and NAME_FALLBACK_TOKEN in str(header):
                fields["name"] = str(value).strip()
                if header in unclassified:
                    unclassified.remove(header)
                logger.debug("name resolved from fallback header %r", header)
                break

    return ClassifiedRow(fields=fields, unclassified_headers=tuple(unclassified))
