import pytest

from campaign_guide.guidelines.services.text_normalizer import (
    DEFAULT_SECTION_TITLE,
    MAX_KEYWORDS,
    normalize_date_string,
    normalize_digest,
    normalize_keywords,
    normalize_optional_text,
)


def test_normalize_keywords_dedupes_case_insensitively_keeping_first_spelling():
    raw = [" 강남  맛집 ", "강남 맛집", "#Cafe", "#cafe", "", "   ", 3]
    assert normalize_keywords(raw) == ["강남 맛집", "#Cafe"]


def test_normalize_keywords_caps_length():
    raw = [f"키워드{i}" for i in range(MAX_KEYWORDS + 10)]
    keywords = normalize_keywords(raw)
    assert len(keywords) == MAX_KEYWORDS
    assert keywords[0] == "키워드0"


def test_normalize_keywords_none():
    assert normalize_keywords(None) == []


def test_normalize_digest_fills_default_title_and_drops_empty_sections():
    digest = normalize_digest({
        "summary": "  매장 방문 후 블로그 리뷰 작성  ",
        "sections": [
            {"title": "", "items": [" 사진 15장 이상 ", ""]},
            {"title": "빈 섹션", "items": []},
            {"title": " 필수 키워드 ", "items": "강남 파스타"},
        ],
    })
    assert digest == {
        "summary": "매장 방문 후 블로그 리뷰 작성",
        "sections": [
            {"title": DEFAULT_SECTION_TITLE, "items": ["사진 15장 이상"]},
            {"title": "필수 키워드", "items": ["강남 파스타"]},
        ],
    }


@pytest.mark.parametrize(
    "raw",
    [None, "요약", {"summary": "  ", "sections": []}, {"sections": [{"title": "제목", "items": [None]}]}],
)
def test_normalize_digest_returns_none_when_empty(raw):
    assert normalize_digest(raw) is None


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2026.02.09", "2026-02-09"),
        ("2026/2/9", "2026-02-09"),
        ("2026년 2월 9일", "2026-02-09"),
        ("2026-02-09", "2026-02-09"),
        (" 선정 후 7일 이내 ", "선정 후 7일 이내"),
        ("-", None),
        (None, None),
    ],
)
def test_normalize_date_string(raw, expected):
    assert normalize_date_string(raw) == expected


@pytest.mark.parametrize("raw", ["", " ", "-", "null", "None", "N/A"])
def test_normalize_optional_text_sentinels(raw):
    assert normalize_optional_text(raw) is None


def test_normalize_keywords_example():
    assert normalize_keywords(["A맛집", "a맛집 ", "B카페"]) == ["A맛집", "B카페"]
