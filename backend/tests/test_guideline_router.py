import json

import pytest

from campaign_guide.guidelines.exceptions import UpstreamUnavailable
from campaign_guide.guidelines.router import get_model_caller
from campaign_guide.main import app

GUIDELINE = "[레뷰] 스타벅스 체험단\n제공 내역: 15,000P 상당 체험권\n문의: 010 1234 5678"


def _use_model(response=None, error=None):
    calls = []

    async def fake(prompt: str) -> str:
        calls.append(prompt)
        if error is not None:
            raise error
        return response

    app.dependency_overrides[get_model_caller] = lambda: fake
    return calls


def _body(**overrides):
    body = {"guideline": GUIDELINE, "userId": "user-1", "platforms": ["레뷰"]}
    body.update(overrides)
    return body


@pytest.mark.anyio
async def test_parse_guideline_success(client):
    calls = _use_model(json.dumps({"title": "스타벅스 체험단", "category": "맛집/식품"}, ensure_ascii=False))

    resp = await client.post("/ai/parse-guideline", json=_body())

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["status"] == "clean"
    assert body["filledFields"] == ["points", "platform", "phone"]
    data = body["data"]
    assert data["title"] == "스타벅스 체험단"
    assert data["points"] == 15000
    assert data["phone"] == "010-1234-5678"
    assert data["contentRequirements"]["visitReviewTypes"] == []
    assert "guidelineDigest" not in data
    assert len(calls) == 1


@pytest.mark.anyio
async def test_blank_guideline_returns_400_without_consuming_quota(client):
    calls = _use_model("{}")

    resp = await client.post("/ai/parse-guideline", json=_body(guideline="   "))

    assert resp.status_code == 400
    assert calls == []
    status = await client.get("/ai/quota-status", params={"userId": "user-1"})
    assert status.json()["data"]["guideline"]["allowed"] is True


@pytest.mark.anyio
async def test_second_request_same_day_returns_429(client):
    calls = _use_model(json.dumps({"title": "스타벅스 체험단"}, ensure_ascii=False))

    first = await client.post("/ai/parse-guideline", json=_body())
    second = await client.post("/ai/parse-guideline", json=_body())

    assert first.status_code == 200
    assert second.status_code == 429
    assert "하루 1회" in second.json()["detail"]
    assert len(calls) == 1


@pytest.mark.anyio
async def test_upstream_failure_returns_502_and_releases_quota(client):
    _use_model(error=UpstreamUnavailable("모델 응답 없음"))

    resp = await client.post("/ai/parse-guideline", json=_body())

    assert resp.status_code == 502
    status = await client.get("/ai/quota-status", params={"userId": "user-1"})
    assert status.json()["data"]["guideline"]["allowed"] is True
    assert status.json()["data"]["guideline"]["usedCount"] == 0


@pytest.mark.anyio
async def test_unexpected_model_error_returns_502(client):
    _use_model(error=RuntimeError("timeout"))

    resp = await client.post("/ai/parse-guideline", json=_body())

    assert resp.status_code == 502


@pytest.mark.anyio
async def test_schema_violation_returns_422_with_fallback_fields(client):
    _use_model("죄송합니다. 분석할 수 없습니다.")

    resp = await client.post("/ai/parse-guideline", json=_body())

    assert resp.status_code == 422
    detail = resp.json()["detail"]
    assert detail["issues"][0]["path"] == "$"
    assert detail["fallback"] == {"points": 15000, "phone": "010-1234-5678", "platform": "레뷰"}


@pytest.mark.anyio
async def test_repaired_response_reports_status(client):
    _use_model('분석 결과: {"title": "스타벅스 체험단", "points": "없음",}')

    resp = await client.post("/ai/parse-guideline", json=_body())

    assert resp.status_code == 200
    assert resp.json()["status"] == "repaired"
    assert resp.json()["data"]["points"] == 15000


@pytest.mark.anyio
async def test_quota_status_after_use(client):
    _use_model(json.dumps({"title": "스타벅스 체험단"}, ensure_ascii=False))
    await client.post("/ai/parse-guideline", json=_body())

    resp = await client.get("/ai/quota-status", params={"userId": "user-1"})

    assert resp.status_code == 200
    info = resp.json()["data"]["guideline"]
    assert info["allowed"] is False
    assert info["usedCount"] == 1
    assert info["dailyLimit"] == 1
    assert info["lastUsedAt"].endswith("+09:00")
    assert info["nextAvailableAt"].endswith("T00:00:00+09:00")
    assert resp.json()["data"]["timezone"] == "Asia/Seoul"


@pytest.mark.anyio
async def test_quota_status_requires_user_id(client):
    resp = await client.get("/ai/quota-status")
    assert resp.status_code == 422


@pytest.mark.anyio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
