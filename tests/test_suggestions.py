from unittest.mock import Mock

import httpx
import openai
import pytest

from taskboard.errors import UpstreamError
from taskboard.main import app
from taskboard.services import suggestions as suggestions_module
from taskboard.services.suggestions import (
    ChatCompletionSuggester,
    SuggestionProvider,
    build_openai_client,
    build_prompt,
    get_suggestion_provider,
    parse_suggestions,
)

from conftest import auth_headers


def _completion(content):
    message = Mock()
    message.content = content
    choice = Mock()
    choice.message = message
    response = Mock()
    response.choices = [choice]
    return response


def test_parse_json_array():
    assert parse_suggestions('["Book flights", "Reserve hotel", "Pack bags"]') == [
        "Book flights", "Reserve hotel", "Pack bags",
    ]


def test_parse_caps_at_five_and_drops_non_strings():
    content = '["a", 1, "b", null, "c", "d", "e", "f", "g"]'
    assert parse_suggestions(content) == ["a", "b", "c", "d", "e"]


def test_parse_non_array_json_gives_nothing():
    assert parse_suggestions('{"subtasks": ["a"]}') == []
    assert parse_suggestions('"just a string"') == []


def test_parse_falls_back_to_lines():
    content = "Here you go:\n1. Book flights\n- Reserve hotel\n\n* Pack bags\n2) Buy insurance"
    assert parse_suggestions(content) == [
        "Here you go:", "Book flights", "Reserve hotel", "Pack bags", "Buy insurance",
    ]


def test_parse_fallback_caps_at_five():
    content = "\n".join(f"{i}. Step {i}" for i in range(1, 9))
    assert parse_suggestions(content) == [f"Step {i}" for i in range(1, 6)]


def test_parse_empty_reply():
    assert parse_suggestions(None) == []
    assert parse_suggestions("") == []
    assert parse_suggestions("1.\n- \n***") == []


def test_parse_keeps_suggestions_single_line():
    assert parse_suggestions('["Book\\nflights  now", "   "]') == ["Book flights now"]


def test_build_prompt():
    assert build_prompt("Plan a trip") == 'Break down this task: "Plan a trip"'
    assert build_prompt("Plan a trip", "to Japan") == 'Break down this task: "Plan a trip" - to Japan'


def test_chat_completion_suggester_calls_model():
    client = Mock()
    client.chat.completions.create.return_value = _completion('["Pick dates", "Book flights"]')

    suggester = ChatCompletionSuggester(client, model="test-model")
    assert suggester.suggest("Plan a trip", "Summer") == ["Pick dates", "Book flights"]

    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "test-model"
    assert kwargs["messages"][0]["role"] == "system"
    assert "JSON array of strings" in kwargs["messages"][0]["content"]
    assert kwargs["messages"][1]["content"] == 'Break down this task: "Plan a trip" - Summer'


def test_chat_completion_suggester_tolerates_malformed_reply():
    client = Mock()
    client.chat.completions.create.return_value = _completion("1. Pick dates\n2. Book flights [draft")

    suggestions = ChatCompletionSuggester(client).suggest("Plan a trip")
    assert suggestions == ["Pick dates", "Book flights [draft"]
    assert 0 <= len(suggestions) <= 5
    assert all(s.strip() for s in suggestions)


def test_chat_completion_suggester_wraps_upstream_errors():
    client = Mock()
    client.chat.completions.create.side_effect = openai.APIConnectionError(
        request=httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
    )

    with pytest.raises(UpstreamError):
        ChatCompletionSuggester(client).suggest("Plan a trip")


def test_generate_subtasks_endpoint(client, alice, suggestions):
    res = client.post(
        "/ai/generate-subtasks",
        json={"title": "  Plan a trip ", "description": "Japan"},
        headers=auth_headers(alice["token"]),
    )
    assert res.status_code == 200, res.text
    assert res.json() == {
        "subtasks": [
            {"title": "Book flights", "description": ""},
            {"title": "Reserve hotel", "description": ""},
            {"title": "Pack bags", "description": ""},
        ]
    }
    assert suggestions.calls == [("Plan a trip", "Japan")]


def test_generate_subtasks_caps_provider_output(client, alice, suggestions):
    suggestions.titles = [f"Step {i}" for i in range(8)] + ["  "]
    res = client.post(
        "/ai/generate-subtasks", json={"title": "Big job"}, headers=auth_headers(alice["token"])
    )
    assert [s["title"] for s in res.json()["subtasks"]] == [f"Step {i}" for i in range(5)]


def test_generate_subtasks_validation_and_auth(client, alice):
    assert client.post("/ai/generate-subtasks", json={"title": "x"}).status_code == 401

    res = client.post(
        "/ai/generate-subtasks", json={"title": "   "}, headers=auth_headers(alice["token"])
    )
    assert res.status_code == 400


def test_generate_subtasks_upstream_failure(client, alice, suggestions):
    suggestions.error = UpstreamError("Failed to generate subtasks")
    res = client.post(
        "/ai/generate-subtasks", json={"title": "Plan a trip"}, headers=auth_headers(alice["token"])
    )
    assert res.status_code == 502
    assert res.json() == {"message": "Failed to generate subtasks"}


def test_failing_upstream_is_called_once():
    hits = []

    def handler(request):
        hits.append(request.url.path)
        return httpx.Response(500, json={"error": {"message": "upstream exploded"}})

    openai_client = build_openai_client(
        api_key="test-key",
        base_url="https://ai.example.com/v1",
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
    )

    with pytest.raises(UpstreamError):
        ChatCompletionSuggester(openai_client).suggest("Plan a trip")
    assert hits == ["/v1/chat/completions"]


def test_upstream_success_over_http():
    def handler(request):
        return httpx.Response(200, json={
            "id": "chatcmpl-1",
            "object": "chat.completion",
            "created": 0,
            "model": "test-model",
            "choices": [{
                "index": 0,
                "finish_reason": "stop",
                "message": {"role": "assistant", "content": '["Pick dates", "Book flights"]'},
            }],
        })

    openai_client = build_openai_client(
        api_key="test-key",
        base_url="https://ai.example.com/v1",
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
    )
    assert ChatCompletionSuggester(openai_client).suggest("Plan a trip") == ["Pick dates", "Book flights"]


def test_missing_api_key(monkeypatch):
    monkeypatch.setattr(suggestions_module, "AI_API_KEY", None)
    with pytest.raises(UpstreamError) as exc:
        build_openai_client()
    assert exc.value.message == "AI service is not configured"


def test_blank_title_rejected_before_ai_configuration(client, alice, monkeypatch):
    monkeypatch.setattr(suggestions_module, "AI_API_KEY", None)
    app.dependency_overrides.pop(get_suggestion_provider)
    headers = auth_headers(alice["token"])

    res = client.post("/ai/generate-subtasks", json={"title": "  "}, headers=headers)
    assert res.status_code == 400

    res = client.post("/ai/generate-subtasks", json={"title": "Plan a trip"}, headers=headers)
    assert res.status_code == 502
    assert res.json() == {"message": "AI service is not configured"}


def test_suggestion_provider_is_abstract():
    with pytest.raises(TypeError):
        SuggestionProvider()
