import pytest

from hydrabot.gpt_fallback import FallbackClient
from hydrabot.main import create_app
from hydrabot.parser_engine.contract import FallbackOutcome
from hydrabot.parser_engine.resolver import IntentResolver

from conftest import StubFallback, make_clock


class _ExplodingResolver:
    def resolve_message(self, message):
        raise RuntimeError("bug")


@pytest.fixture
def fallback():
    return StubFallback(FallbackOutcome(intent="no_action", ambiguous=False))


@pytest.fixture
def client(fallback):
    app = create_app(IntentResolver(fallback=fallback, clock=make_clock()))
    app.config["TESTING"] = True
    return app.test_client()


def test_healthcheck(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.get_data(as_text=True) == "hydrabot running"


def test_parse_regex_log(client, fallback):
    resp = client.post("/parse", json={"text": "2 bottles", "bottle_size_ml": 600})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["ok"] is True
    assert body["excluded"] is False
    assert body["result"]["intent"] == "log"
    assert body["result"]["data"]["amount_ml"] == 1200
    assert fallback.messages == []


def test_parse_fallback(client, fallback):
    resp = client.post("/parse", json={"text": "I didn't drink 500ml", "bottle_size_ml": 750})
    assert resp.get_json()["result"] == {"intent": "no_action", "data": {}, "issues": []}
    assert fallback.messages == ["I didn't drink 500ml"]


@pytest.mark.parametrize("text", ["coffee", "500ml tea", "a glass of juice"])
def test_excluded_never_reaches_resolver(client, fallback, text):
    resp = client.post("/parse", json={"text": text, "bottle_size_ml": 750})
    assert resp.get_json() == {"ok": True, "excluded": True}
    assert fallback.messages == []


def test_default_bottle_size(client):
    body = client.post("/parse", json={"text": "a bottle"}).get_json()
    assert body["result"]["data"]["amount_ml"] == 750


@pytest.mark.parametrize("payload", [{}, {"text": "   "}, {"text": "500ml", "bottle_size_ml": "big"}])
def test_bad_requests(client, payload):
    resp = client.post("/parse", json=payload)
    assert resp.status_code == 400
    assert resp.get_json()["ok"] is False


def test_internal_error_is_reported():
    app = create_app(_ExplodingResolver())
    resp = app.test_client().post("/parse", json={"text": "500ml"})
    assert resp.status_code == 500
    assert resp.get_json()["ok"] is False


def test_offline_mode_end_to_end():
    app = create_app(IntentResolver(fallback=FallbackClient(api_key=None), clock=make_clock()))
    body = app.test_client().post("/parse", json={"text": "some water"}).get_json()
    assert body["result"]["intent"] == "clarify"
    assert "OPENAI_API_KEY" in body["result"]["data"]["prompt_text"]


def test_bottle_size_endpoint(client):
    assert client.post("/bottle-size", json={"text": "1 liter"}).get_json() == {"ok": True, "bottle_size_ml": 1000}
    assert client.post("/bottle-size", json={"text": "huge"}).get_json() == {"ok": True, "bottle_size_ml": None}
