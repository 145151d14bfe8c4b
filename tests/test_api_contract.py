"""
Contract/behavior tests for src/api.py.

These tests inject an in-memory store and fake providers and validate:
- record submission payloads and status mapping (200 / 400 / 429 / 500)
- history ordering and unknown-category handling
- analysis prompt structure, sections and action items
- server-side alert evaluation
"""
import json

import pytest

import api as api_mod
import routes.helpers as helpers_mod
from errors import ProviderError, ProviderRateLimitError
from conftest import InMemoryStore


class PromptRecorder:
    def __init__(self, reply="1. Progress\nSteady gains.\n\nAction items:\n- Keep squatting\n- Sleep 8 hours",
                 error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    async def __call__(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


# ─── Prompt helpers ─────────────────────────────────────────


def test_entry_prompt_embeds_body():
    prompt = helpers_mod._entry_prompt("wrestling", {"takedownPercentage": 55})
    assert prompt == 'Analyze this wrestling training data and provide insights: {"takedownPercentage": 55}'


@pytest.mark.parametrize("category", ["strength", "cardio", "nutrition", "recovery", "wrestling", "injury"])
def test_analysis_prompt_has_seven_sections(category):
    prompt = helpers_mod._analysis_prompt(category, [{"id": 1}])
    assert "provide detailed insights and recommendations" in prompt
    assert '[{"id": 1}]' in prompt
    for i in range(1, 8):
        assert f"\n{i}. " in prompt
    assert prompt.rstrip().endswith("7. Action items for improvement")
    assert "6. Warning signs or potential issues" in prompt


# ─── POST /api/{category} ───────────────────────────────────


def test_post_record_persists_and_returns_insights(make_client):
    provider = PromptRecorder(reply="Solid session.")
    store = InMemoryStore()
    client = make_client(provider, store=store)

    resp = client.post("/api/strength", json={"exercise": "squat", "weight": "100", "reps": 5, "sets": 5})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["insights"] == "Solid session."
    assert body["data"]["weight"] == 100.0
    assert body["data"]["exercise"] == "squat"
    assert body["data"]["id"] == 1
    assert body["data"]["date"]

    assert len(provider.prompts) == 1
    assert provider.prompts[0].startswith("Analyze this strength training data and provide insights: ")
    assert json.loads(provider.prompts[0].split("insights: ", 1)[1])["exercise"] == "squat"
    assert len(store.history("strength")) == 1


def test_post_uses_camel_case_wire_names(make_client):
    client = make_client(PromptRecorder(reply="ok"))
    resp = client.post("/api/recovery", json={"sleepHours": 6.5, "hrv": 48, "soreness": 3})
    assert resp.status_code == 200
    assert resp.json()["data"]["sleepHours"] == 6.5


def test_post_unknown_category_is_400(make_client):
    provider = PromptRecorder()
    client = make_client(provider)
    resp = client.post("/api/finance", json={"amount": 10})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid data type"}
    assert provider.prompts == []


def test_post_store_failure_is_500_and_skips_provider(make_client):
    provider = PromptRecorder()
    client = make_client(provider, store=InMemoryStore(fail_on={"insert"}))
    resp = client.post("/api/cardio", json={"duration": 30})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to save cardio data"}
    assert provider.prompts == []


def test_post_uncoercible_field_is_500(make_client):
    client = make_client(PromptRecorder())
    resp = client.post("/api/nutrition", json={"calories": "lots"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to save nutrition data"}


def test_post_upstream_throttling_is_429(make_client):
    client = make_client(PromptRecorder(error=ProviderRateLimitError("429 Too Many Requests")))
    resp = client.post("/api/injury", json={"area": "knee", "painLevel": 6})
    assert resp.status_code == 429
    body = resp.json()
    assert body["retryAfter"] == 60
    assert "Rate limit exceeded" in body["error"]


def test_post_generic_provider_failure_is_500(make_client):
    store = InMemoryStore()
    client = make_client(PromptRecorder(error=ProviderError("upstream exploded")), store=store)
    resp = client.post("/api/injury", json={"area": "knee", "painLevel": 6})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to save injury data"}
    # the record itself was persisted before the call
    assert len(store.history("injury")) == 1


def test_full_queue_is_reported_as_throttling(make_client):
    client = make_client(PromptRecorder(reply="ok"), max_pending=0)
    resp = client.post("/api/strength", json={"weight": 50})
    assert resp.status_code == 429
    assert resp.json()["retryAfter"] == 60


# ─── GET /api/history/{type} ────────────────────────────────


def test_history_is_latest_first(make_client):
    store = InMemoryStore()
    store.seed("strength", {"weight": 60}, {"weight": 70}, {"weight": 80})
    client = make_client(PromptRecorder(), store=store)

    resp = client.get("/api/history/strength")
    assert resp.status_code == 200
    assert [r["weight"] for r in resp.json()] == [80.0, 70.0, 60.0]


def test_history_unknown_type_is_400(make_client):
    resp = make_client(PromptRecorder()).get("/api/history/finance")
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid data type"}


def test_history_store_failure_is_500(make_client):
    client = make_client(PromptRecorder(), store=InMemoryStore(fail_on={"history"}))
    resp = client.get("/api/history/cardio")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to fetch historical data"}


# ─── GET /api/analysis/{type} ───────────────────────────────


def test_analysis_uses_last_ten_records(make_client):
    store = InMemoryStore()
    store.seed("recovery", *[{"hrv": 40 + i} for i in range(12)])
    provider = PromptRecorder()
    client = make_client(provider, store=store)

    resp = client.get("/api/analysis/recovery")
    assert resp.status_code == 200
    body = resp.json()
    assert len(body["data"]) == 10
    assert body["data"][0]["hrv"] == 51.0
    assert body["insights"] == provider.reply
    assert body["sections"][0]["title"] == "Progress"
    assert body["action_items"] == ["Keep squatting", "Sleep 8 hours"]
    assert "2. HRV trends and implications" in provider.prompts[0]


def test_analysis_throttled_is_429(make_client):
    client = make_client(PromptRecorder(error=RuntimeError("Error 429: RESOURCE_EXHAUSTED")))
    resp = client.get("/api/analysis/cardio")
    assert resp.status_code == 429
    assert resp.json() == {
        "error": "Rate limit exceeded. Please try again in a few minutes.",
        "retryAfter": 60,
    }


def test_analysis_other_failure_is_500(make_client):
    client = make_client(PromptRecorder(error=ProviderError("bad gateway")))
    resp = client.get("/api/analysis/wrestling")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to generate analysis"}


def test_analysis_unknown_type_is_400(make_client):
    provider = PromptRecorder()
    resp = make_client(provider).get("/api/analysis/finance")
    assert resp.status_code == 400
    assert provider.prompts == []


def test_analysis_falls_back_to_category_action_items(make_client):
    client = make_client(PromptRecorder(reply="Nothing structured here."))
    body = client.get("/api/analysis/injury").json()
    assert body["sections"] == []
    assert body["action_items"][0] == "Follow proper rehabilitation protocols"


# ─── GET /api/alerts and service routes ─────────────────────


def test_alerts_endpoint_runs_engine_over_store(make_client):
    store = InMemoryStore()
    store.seed("recovery", {"hrv": 48, "sleepHours": 8}, {"hrv": 40, "sleepHours": 8}, {"hrv": 45, "sleepHours": 8})
    store.seed("strength", {"weight": 100, "reps": 5, "sets": 5})
    client = make_client(PromptRecorder(), store=store)

    body = client.get("/api/alerts").json()
    assert body["count"] == 3
    assert body["critical"] is True
    assert [a["category"] for a in body["alerts"]] == ["recovery", "recovery", "strength"]
    assert body["alerts"][2]["message"].startswith("High weight detected")


def test_alerts_store_failure_is_500(make_client):
    client = make_client(PromptRecorder(), store=InMemoryStore(fail_on={"history"}))
    resp = client.get("/api/alerts")
    assert resp.status_code == 500


def test_health_check_reports_queue_state(make_client):
    body = make_client(PromptRecorder()).get("/health-check").json()
    assert body["status"] == "Online"
    assert body["queue"] == {"pending": 0, "in_flight": False}

    body = make_client(PromptRecorder(), store=InMemoryStore(fail_on={"ping"})).get("/health-check").json()
    assert body["status"] == "Waking up"


def test_root_banner():
    assert api_mod.root()["status"] == "ok"


def test_alerts_grouped_by_category(make_client):
    store = InMemoryStore()
    store.seed("injury", {"area": "knee", "painLevel": 9})
    store.seed("wrestling", {"takedownPercentage": 30, "sparringRounds": 12})
    client = make_client(PromptRecorder(), store=store)

    body = client.get("/api/alerts").json()
    assert set(body["by_category"]) == {"injury", "wrestling"}
    assert len(body["by_category"]["wrestling"]) == 2
    assert body["by_category"]["injury"][0]["message"].startswith("High pain level (9/10)")


def test_error_mentioning_4290_is_not_throttling(make_client):
    client = make_client(PromptRecorder(error=ValueError("max_output_tokens 4290 exceeds limit")))
    resp = client.get("/api/analysis/strength")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to generate analysis"}


def test_inbound_limit_is_per_app(make_client, monkeypatch):
    monkeypatch.setattr(api_mod.config, "INBOUND_RATE_LIMIT", "2/minute")
    first = make_client(PromptRecorder(reply="ok"))
    assert [first.get("/api/analysis/cardio").status_code for _ in range(3)] == [200, 200, 429]

    second = make_client(PromptRecorder(reply="ok"))
    assert second.get("/api/analysis/cardio").status_code == 200
