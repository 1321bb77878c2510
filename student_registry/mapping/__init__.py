from .classifier import CLASSIFICATION_RULES, ClassifiedRow, classify, classify_row
from .normalize import normalize_header
from .reconcile import reconcile

__all__ = [
    "CLASSIFICATION_RULES",
    "ClassifiedRow",
    "classify",
    "classify_row",
    "normalize_header",
    "reconcile",
]
