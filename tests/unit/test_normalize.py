from __future__ import annotations

import pytest

from student_registry.mapping.normalize import ARABIC_DIACRITICS, normalize_header


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("  Student Name  ", "studentname"),
        ("الرقم القومي", "الرقمالقومي"),
        ("كود\tالفصل\n", "كودالفصل"),
        ("IMEI", "imei"),
        ("", ""),
    ],
)
def test_normalize_header_examples(raw, expected):
    assert normalize_header(raw) == expected


def test_diacritics_are_removed():
    # fatha on the first letter, fathatan at the end
    assert normalize_header("ا\u064eلاسم \u064b") == "الاسم"
    # Quranic annotation sign in the middle of a word
    assert normalize_header("ديان\u0615ة") == "ديانة"


def test_headers_differing_in_whitespace_case_and_diacritics_collide():
    variants = [
        "National ID",
        "  national   id ",
        "NATIONAL ID",
        "National\tId",
    ]
    assert len({normalize_header(v) for v in variants}) == 1

    arabic = ["تاريخ الميلاد", "ت\u064eاريخ  الميلاد", " تاريخ الميلاد\u0610 "]
    assert len({normalize_header(v) for v in arabic}) == 1


@pytest.mark.parametrize(
    "raw",
    ["  Student Name ", "اسم ولي الامر", "ك\u064eود  الفصل", "IMEI", "\u064b\u064e", "Tablet\u0612 Serial", ""],
)
def test_normalize_is_idempotent(raw):
    once = normalize_header(raw)
    assert normalize_header(once) == once


def test_non_string_headers_are_stringified():
    assert normalize_header(2024) == "2024"


def test_diacritic_set_is_fixed():
    assert "\u064b" in ARABIC_DIACRITICS
    assert "\u064e" in ARABIC_DIACRITICS
    assert all(chr(cp) in ARABIC_DIACRITICS for cp in range(0x0610, 0x061B))
    # kasra and damma are not part of the set
    assert "\u0650" not in ARABIC_DIACRITICS
    assert "\u064f" not in ARABIC_DIACRITICS
