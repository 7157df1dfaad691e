import httpx
from fastapi.testclient import TestClient

from clue.core.config import get_settings
from clue.main import create_app
from clue.services.llm import FALLBACK_TEXT

FIXED_SOLUTION = "def add(a,b): return a+b\n# test: add(2,2) -> 4"


def test_success_relays_model_text(client, stub_llm):
    model = stub_llm(reply="What does add(2,2) actually return when you run it?")

    response = client.post(
        "/api/help",
        json={"code": "def add(a,b): return a+b\n# test: add(2,2) -> 5", "ask": "", "images": []},
    )

    assert response.status_code == 200
    body = response.json()
    assert body == {"aiText": "What does add(2,2) actually return when you run it?"}
    assert FIXED_SOLUTION not in body["aiText"]
    assert len(model.calls) == 1

    student_text = model.calls[0][1].content[0]["text"]
    assert "def add(a,b): return a+b" in student_text
    assert "(no extra description provided)" in student_text


def test_empty_reply_uses_fallback(client, stub_llm):
    stub_llm(reply="")

    response = client.post("/api/help", json={"code": "x = 1"})

    assert response.status_code == 200
    assert response.json() == {"aiText": FALLBACK_TEXT}


def test_block_list_reply_is_flattened(client, stub_llm):
    stub_llm(reply=[{"type": "text", "text": "Check "}, {"type": "text", "text": "the loop bound."}])

    response = client.post("/api/help", json={"ask": "off by one?"})

    assert response.json() == {"aiText": "Check the loop bound."}


def test_two_images_forwarded_in_order(client, stub_llm):
    model = stub_llm(reply="Look at line 3.")

    client.post(
        "/api/help",
        json={
            "images": [
                {"name": "first.png", "src": "data:image/png;base64,MQ=="},
                {"name": "second.png", "src": "data:image/png;base64,Mg=="},
            ]
        },
    )

    blocks = [b for b in model.calls[0][1].content if b["type"] == "image_url"]
    assert [b["image_url"]["url"] for b in blocks] == [
        "data:image/png;base64,MQ==",
        "data:image/png;base64,Mg==",
    ]


def test_model_failure_becomes_error_envelope(client, stub_llm):
    stub_llm(error=httpx.ConnectError("connection refused"))

    response = client.post("/api/help", json={"code": "x"})

    assert response.status_code == 500
    body = response.json()
    assert body == {"error": "connection refused"}
    assert "aiText" not in body


def test_exception_without_message_still_reports_error(client, stub_llm):
    stub_llm(error=RuntimeError())

    response = client.post("/api/help", json={})

    assert response.status_code == 500
    assert response.json() == {"error": "Unknown error"}


def test_missing_api_key_fails_request_not_startup(client):
    response = client.post("/api/help", json={"code": "x"})

    assert response.status_code == 500
    assert "No LLM API key configured" in response.json()["error"]


def test_invalid_json_gets_generic_failure(client, stub_llm):
    model = stub_llm(reply="unused")

    response = client.post(
        "/api/help",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 500
    assert response.json()["error"]
    assert model.calls == []


def test_null_images_means_no_images(client, stub_llm):
    model = stub_llm(reply="Which branch runs?")

    response = client.post("/api/help", json={"code": "x = 1", "ask": None, "images": None})

    assert response.status_code == 200
    assert len(model.calls[0][1].content) == 1


def test_null_and_srcless_images_are_skipped(client, stub_llm):
    model = stub_llm(reply="Look at the prompt again.")

    response = client.post(
        "/api/help",
        json={
            "images": [
                {"name": "ok.png", "src": "data:image/png;base64,MQ=="},
                None,
                {"name": "broken.png"},
                {"name": "blank.png", "src": ""},
            ]
        },
    )

    assert response.status_code == 200
    blocks = [b for b in model.calls[0][1].content if b["type"] == "image_url"]
    assert [b["image_url"]["url"] for b in blocks] == ["data:image/png;base64,MQ=="]


def test_unknown_keys_are_ignored(client, stub_llm):
    stub_llm(reply="What did you expect?")

    response = client.post("/api/help", json={"code": "x", "lang": "python", "session": 7})

    assert response.status_code == 200
    assert response.json() == {"aiText": "What did you expect?"}


def test_images_of_wrong_type_get_generic_failure(client, stub_llm):
    model = stub_llm(reply="unused")

    response = client.post("/api/help", json={"images": "lab.png"})

    assert response.status_code == 500
    assert "aiText" not in response.json()
    assert model.calls == []


def test_index_serves_form(client):
    response = client.get("/")

    assert response.status_code == 200
    assert 'id="help"' in response.text
    assert "/api/help" in response.text


def test_development_allows_any_origin(client):
    response = client.get("/", headers={"Origin": "https://elsewhere.example"})

    assert response.headers.get("access-control-allow-origin") == "*"


def test_production_closes_docs_and_cors(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "production")
    get_settings.cache_clear()

    with TestClient(create_app()) as prod_client:
        assert prod_client.get("/docs").status_code == 404
        assert prod_client.get("/redoc").status_code == 404
        response = prod_client.get("/", headers={"Origin": "https://elsewhere.example"})

    assert response.status_code == 200
    assert "access-control-allow-origin" not in response.headers
