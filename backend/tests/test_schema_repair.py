import json

import pytest

from campaign_guide.guidelines.models import ParseStatus, VisitReviewType
from campaign_guide.guidelines.services.schema_repair import locate_json_span, parse_model_response

CLEAN_PAYLOAD = {
    "title": "강남 파스타 체험단",
    "points": 15000,
    "platform": "레뷰",
    "category": "맛집/식품",
    "reviewChannel": "네이버블로그",
    "phone": "010-1234-5678",
    "keywords": ["강남 파스타", "#데이트"],
    "contentRequirements": {"visitReviewTypes": ["googleReview", "naverReservation"]},
}


def _clean_json() -> str:
    return json.dumps(CLEAN_PAYLOAD, ensure_ascii=False)


def test_clean_response_parses_without_repair():
    outcome = parse_model_response(_clean_json())
    assert outcome.status == ParseStatus.CLEAN
    assert outcome.ok
    assert outcome.issues == ()
    assert outcome.analysis.points == 15000
    # 집합 의미: 선언 순서로 고정
    assert outcome.analysis.content_requirements.visit_review_types == (
        VisitReviewType.NAVER_RESERVATION,
        VisitReviewType.GOOGLE_REVIEW,
    )


def test_fenced_block_with_trailing_comma_matches_clean_parse():
    broken = _clean_json()[:-1] + ",}"
    text = f"분석 결과입니다.\n```json\n{broken}\n```\n참고하세요."

    outcome = parse_model_response(text)

    assert outcome.status == ParseStatus.REPAIRED
    assert outcome.issues
    assert outcome.analysis == parse_model_response(_clean_json()).analysis


def test_response_without_json_fails():
    outcome = parse_model_response("죄송합니다. 가이드라인을 분석할 수 없습니다.")
    assert outcome.status == ParseStatus.FAILED
    assert not outcome.ok
    assert outcome.analysis is None
    assert outcome.issues[0].path == "$"


def test_lenient_coercion_after_repair():
    text = json.dumps({
        "title": "  체험단  ",
        "points": "1만5천P",
        "category": "없는 카테고리",
        "keywords": ["강남", ["#파스타", "#데이트"], {"name": "와인바"}],
        "recruitPeriod": "2026-02-01 ~ 2026-02-10",
        "contentRequirements": {"visitReviewTypes": {"naverReservation": True, "googleReview": False}},
        "deadlines": [{"label": "리뷰 마감", "date": "2026-02-20"}, {"label": "", "date": "2026-02-21"}],
    }, ensure_ascii=False)

    outcome = parse_model_response(text)

    assert outcome.status == ParseStatus.REPAIRED
    analysis = outcome.analysis
    assert analysis.title == "체험단"
    assert analysis.points == 15000
    assert analysis.category is None
    assert analysis.keywords == ("강남", "#파스타 / #데이트", "와인바")
    assert analysis.recruit_period.start == "2026-02-01"
    assert analysis.recruit_period.end == "2026-02-10"
    assert analysis.content_requirements.visit_review_types == (VisitReviewType.NAVER_RESERVATION,)
    assert len(analysis.deadlines) == 1
    assert analysis.deadlines[0].description == ""


def test_reward_missions_and_notices_parse_clean():
    payload = {
        **CLEAN_PAYLOAD,
        "rewardInfo": {"description": "2인 식사권", "points": 30000, "deliveryMethod": "현장 제공", "productInfo": None},
        "missions": [{"title": "매장 방문", "description": "외관 포함", "examples": ["외관 사진"]}],
        "requiredNotices": ["업체로부터 제공받아 작성"],
        "contentRequirements": {
            "requirements": [{"type": "photo", "label": "사진", "value": 15, "description": "15장 이상"}],
        },
    }

    outcome = parse_model_response(json.dumps(payload, ensure_ascii=False))

    assert outcome.status == ParseStatus.CLEAN
    analysis = outcome.analysis
    assert analysis.reward_info.delivery_method == "현장 제공"
    assert analysis.reward_info.product_info is None
    assert analysis.missions[0].examples == ("외관 사진",)
    assert analysis.content_requirements.requirements[0].value == 15

    dumped = analysis.model_dump(by_alias=True)
    assert dumped["rewardInfo"]["points"] == 30000
    assert dumped["missions"][0]["title"] == "매장 방문"
    assert dumped["requiredNotices"] == ("업체로부터 제공받아 작성",)
    assert dumped["importantNotes"] == ()


def test_lenient_coercion_of_reward_missions_and_notices():
    text = json.dumps({
        "title": "체험단",
        "rewardInfo": "스타벅스 음료권 1매",
        "missions": ["매장 방문", {"description": "제목 없음"}, {"title": "메뉴 사진", "examples": "메뉴판"}],
        "requiredNotices": "업체로부터 제공받아 작성",
        "warnings": ["  ", "타 업체 언급 금지", {"text": "무시"}],
        "contentRequirements": {
            "requirements": [
                {"type": "photo", "label": "사진", "value": "15장"},
                {"type": "text", "value": 1000},
                "글자 수 1000자",
            ],
        },
    }, ensure_ascii=False)

    outcome = parse_model_response(text)

    assert outcome.status == ParseStatus.REPAIRED
    analysis = outcome.analysis
    assert analysis.reward_info.description == "스타벅스 음료권 1매"
    assert analysis.reward_info.points is None
    assert [mission.title for mission in analysis.missions] == ["매장 방문", "메뉴 사진"]
    assert analysis.missions[1].examples == ("메뉴판",)
    assert analysis.required_notices == ("업체로부터 제공받아 작성",)
    assert analysis.warnings == ("타 업체 언급 금지",)
    requirements = analysis.content_requirements.requirements
    assert len(requirements) == 1
    assert requirements[0].label == "사진"
    assert requirements[0].value == 15


@pytest.mark.parametrize(
    "reward_info, expected",
    [
        ({"points": "1만원"}, 10000),
        ({"points": "1~2만P"}, 20000),
        ({"points": 15000.5}, 15001),
        ({"points": -500}, None),
        ({"points": True}, None),
        (20000, 20000),
        (["목록"], None),
    ],
)
def test_lenient_reward_info_points(reward_info, expected):
    text = json.dumps({"title": "체험단", "rewardInfo": reward_info}, ensure_ascii=False)
    outcome = parse_model_response(text)
    assert outcome.status == ParseStatus.REPAIRED
    assert outcome.analysis.reward_info.points == expected


def test_truncated_response_is_closed_by_repair():
    outcome = parse_model_response('결과: {"title": "체험단", "points": 15000, "keywords": ["강남", "파스타"')
    assert outcome.status == ParseStatus.REPAIRED
    assert outcome.analysis.title == "체험단"
    assert outcome.analysis.keywords == ("강남", "파스타")


def test_missing_title_fails_after_repair():
    outcome = parse_model_response('{"points": 15000,}')
    assert outcome.status == ParseStatus.FAILED
    assert any(issue.path == "title" for issue in outcome.issues)


def test_non_object_payload_fails():
    outcome = parse_model_response("```json\n[1, 2, 3]\n```")
    assert outcome.status == ParseStatus.FAILED


def test_other_category_maps_to_etc():
    outcome = parse_model_response('{"title": "체험단", "category": "other"}')
    assert outcome.status == ParseStatus.CLEAN
    assert outcome.analysis.category == "기타"


def test_legacy_keyword_lists_are_folded():
    payload = {
        "title": "체험단",
        "contentRequirements": {
            "titleKeywords": ["강남 파스타"],
            "bodyKeywords": [{"name": "#데이트", "description": "본문 2회"}],
        },
    }
    outcome = parse_model_response(json.dumps(payload, ensure_ascii=False))
    assert outcome.status == ParseStatus.CLEAN
    assert outcome.analysis.keywords == ("강남 파스타", "#데이트")


def test_empty_digest_is_omitted_from_output():
    analysis = parse_model_response('{"title": "체험단", "guidelineDigest": null}').analysis
    assert "guidelineDigest" not in analysis.model_dump(by_alias=True)
    assert "guidelineDigest" not in json.loads(analysis.model_dump_json(by_alias=True))


@pytest.mark.parametrize(
    "text, expected",
    [
        ('앞 {"title": "a } b"} 뒤', '{"title": "a } b"}'),
        ('{"a": {"b": 1}} {"c": 2}', '{"a": {"b": 1}}'),
        ('```json\n{"title": "x"}\n```', '{"title": "x"}'),
        ("중괄호 없음", None),
    ],
)
def test_locate_json_span(text, expected):
    assert locate_json_span(text) == expected
