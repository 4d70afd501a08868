"""Tests for the HTTP API."""
from fastapi.testclient import TestClient

import auth
from backend import create_app


def test_endpoints_require_password(client):
    assert client.post("/api/match", json={"text": "我", "vocabulary": ["我"]}).status_code == 401
    assert client.post("/api/comprehension/generate", json={"characters": ["我"]}).status_code == 401
    assert client.post("/api/comprehension/generate-batch", json={"characters": ["我"]},
                       headers={"X-App-Password": "wrong"}).status_code == 401


def test_match_strips_punctuation_by_default(client, headers):
    resp = client.post("/api/match", headers=headers, json={
        "text": "我很高兴。那是在宿舍。在图书馆",
        "vocabulary": ["我", "高兴", "那", "对", "美国", "吧", "宿舍", "书", "电影院"],
    })
    assert resp.status_code == 200
    data = resp.json()
    assert data["matched"] == ["我", "高兴", "那", "宿舍", "书"]
    assert data["unmatched"] == ["很", "是", "在", "图", "馆"]
    assert data["uncovered"] == ["很", "是", "在", "图", "馆"]
    assert data["segments"][0] == {"text": "我", "word": "我"}


def test_match_without_stripping(client, headers):
    resp = client.post("/api/match", headers=headers, json={
        "text": "高兴！", "vocabulary": ["高兴"], "strip_punctuation": False,
    })
    assert resp.json()["unmatched"] == ["！"]


def test_match_rejects_oversized_text(client, headers):
    resp = client.post("/api/match", headers=headers, json={"text": "我" * 2001, "vocabulary": []})
    assert resp.status_code == 400


def test_generate_in_mock_mode(client, headers):
    resp = client.post("/api/comprehension/generate", headers=headers,
                       json={"characters": ["我", "你"], "max_words": 5})
    assert resp.status_code == 200
    data = resp.json()
    assert data["chinese_text"] == "我你。"
    assert data["word_count"] == 2
    assert data["used_characters"] == ["我", "你"]


def test_generate_validation_errors_are_400(client, headers):
    resp = client.post("/api/comprehension/generate", headers=headers, json={"characters": []})
    assert resp.status_code == 400
    resp = client.post("/api/comprehension/generate", headers=headers,
                       json={"characters": ["我"], "max_words": 99})
    assert resp.status_code == 400
    resp = client.post("/api/comprehension/generate-batch", headers=headers,
                       json={"characters": ["我"], "count": 51})
    assert resp.status_code == 400


def test_generate_batch_default_count(client, headers):
    resp = client.post("/api/comprehension/generate-batch", headers=headers, json={"characters": ["我", "你"]})
    assert resp.status_code == 200
    assert len(resp.json()) == 30


def test_generate_uses_llm_when_not_mocked(make_llm, headers):
    app = create_app(llm=make_llm("NUMBERS: 1\nSENTENCE: 我是学生。"), use_mock=False)
    with TestClient(app) as client:
        resp = client.post("/api/comprehension/generate", headers=headers, json={"characters": ["我", "学生"]})
    assert resp.status_code == 200
    assert resp.json()["used_characters"] == ["我", "是", "学生"]


def test_generate_is_rate_limited(client, headers, monkeypatch):
    monkeypatch.setattr(auth, "RATE_LIMIT_REQUESTS", 2)
    body = {"characters": ["我"]}
    assert client.post("/api/comprehension/generate", headers=headers, json=body).status_code == 200
    assert client.post("/api/comprehension/generate", headers=headers, json=body).status_code == 200
    assert client.post("/api/comprehension/generate", headers=headers, json=body).status_code == 429


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["llm"] == {"reachable": True, "model": "test-model"}
    assert data["mock"] is True


def test_malformed_llm_reply_returns_mock_text(make_llm, headers):
    for llm in (make_llm(raw_body="<html>oops</html>"), make_llm(payload={"message": None})):
        app = create_app(llm=llm, use_mock=False)
        with TestClient(app) as client:
            resp = client.post("/api/comprehension/generate", headers=headers, json={"characters": ["我", "你"]})
        assert resp.status_code == 200
        assert resp.json()["chinese_text"] == "我你。"


def test_forwarded_header_does_not_bypass_rate_limit(client, headers, monkeypatch):
    monkeypatch.setattr(auth, "RATE_LIMIT_REQUESTS", 2)
    codes = [
        client.post("/api/comprehension/generate", json={"characters": ["我"]},
                    headers={**headers, "X-Forwarded-For": f"10.0.0.{i}"}).status_code
        for i in range(4)
    ]
    assert codes == [200, 200, 429, 429]


def test_match_rejects_oversized_vocabulary(client, headers):
    resp = client.post("/api/match", headers=headers,
                       json={"text": "我", "vocabulary": ["我"] * 301})
    assert resp.status_code == 400
