import json
from unittest.mock import Mock

import pytest
import requests

from mockinterview.errors import MalformedResponseError, ServiceError, TransientServiceError
from mockinterview.infrastructure.inference import HuggingFaceInferenceClient
from mockinterview.infrastructure.llm import VertexRestClient


def response(status=200, payload=None, text=""):
    resp = Mock()
    resp.status_code = status
    resp.text = text or json.dumps(payload)
    if payload is None:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = payload
    return resp


def hf_client(resp=None, error=None):
    session = Mock()
    if error is not None:
        session.post.side_effect = error
    else:
        session.post.return_value = resp
    return HuggingFaceInferenceClient("hf_test", base_url="https://hf.test/models", session=session), session


def test_classify_flattens_and_sorts():
    client, session = hf_client(response(payload=[[
        {"label": "nervousness", "score": 0.1},
        {"label": "neutral", "score": 0.7},
    ]]))

    labels = client.classify("hello", "emotion-model")

    assert labels == [{"label": "neutral", "score": 0.7}, {"label": "nervousness", "score": 0.1}]
    args, kwargs = session.post.call_args
    assert args[0] == "https://hf.test/models/emotion-model"
    assert kwargs["headers"]["Authorization"] == "Bearer hf_test"
    assert kwargs["json"] == {"inputs": "hello"}


def test_classify_rejects_items_without_scores():
    client, _ = hf_client(response(payload=[{"label": "neutral"}]))
    with pytest.raises(MalformedResponseError):
        client.classify("hello", "emotion-model")


def test_similarity_payload_and_length_check():
    client, session = hf_client(response(payload=[0.8, 0.2]))
    assert client.similarity("a", ["b", "c"], "sim") == [0.8, 0.2]
    assert session.post.call_args[1]["json"] == {"inputs": {"source_sentence": "a", "sentences": ["b", "c"]}}

    client, _ = hf_client(response(payload=[0.8]))
    with pytest.raises(MalformedResponseError):
        client.similarity("a", ["b", "c"], "sim")


def test_zero_shot_list_form_is_sorted():
    client, _ = hf_client(response(payload=[
        {"label": "incorrect", "score": 0.1},
        {"label": "correct", "score": 0.7},
        {"label": "partially correct", "score": 0.2},
    ]))
    result = client.zero_shot("answer", ["correct", "partially correct", "incorrect"], "nli")
    assert result["labels"] == ["correct", "partially correct", "incorrect"]
    assert result["scores"] == [0.7, 0.2, 0.1]


def test_zero_shot_empty_result_is_malformed():
    client, _ = hf_client(response(payload={"labels": [], "scores": []}))
    with pytest.raises(MalformedResponseError):
        client.zero_shot("answer", ["correct"], "nli")


def test_loading_model_is_transient():
    client, _ = hf_client(response(status=503, payload={"error": "Model is loading"}))
    with pytest.raises(TransientServiceError):
        client.classify("hello", "emotion-model")


def test_client_error_is_not_transient():
    client, _ = hf_client(response(status=400, payload={"error": "bad input"}))
    with pytest.raises(ServiceError) as exc_info:
        client.classify("hello", "emotion-model")
    assert not isinstance(exc_info.value, TransientServiceError)


def test_network_timeout_is_transient():
    client, _ = hf_client(error=requests.Timeout("slow"))
    with pytest.raises(TransientServiceError):
        client.classify("hello", "emotion-model")


def test_non_json_body_is_malformed():
    client, _ = hf_client(response(payload=None, text="<html>"))
    with pytest.raises(MalformedResponseError):
        client.classify("hello", "emotion-model")


def vertex_client(resp):
    session = Mock()
    session.post.return_value = resp
    client = VertexRestClient(project="proj", session=session)
    client._token = "token"
    return client, session


def test_complete_requests_json_and_returns_text():
    client, session = vertex_client(response(payload={
        "candidates": [{"content": {"parts": [{"text": '{"accuracyScore": 90}'}]}}],
    }))

    text = client.complete("Rate this answer.", {"accuracyScore": "number"}, temperature=0.2)

    assert text == '{"accuracyScore": 90}'
    body = session.post.call_args[1]["json"]
    assert body["generationConfig"]["responseMimeType"] == "application/json"
    assert body["generationConfig"]["temperature"] == 0.2
    prompt = body["contents"][0]["parts"][0]["text"]
    assert prompt.startswith("Rate this answer.")
    assert '{"accuracyScore": "number"}' in prompt


def test_rate_limit_is_transient():
    client, _ = vertex_client(response(status=429, payload={"error": "quota"}))
    with pytest.raises(TransientServiceError):
        client.complete("prompt", {})


def test_unauthorized_drops_token():
    client, _ = vertex_client(response(status=401, payload={"error": "expired"}))
    with pytest.raises(ServiceError):
        client.complete("prompt", {})
    assert client._token is None


def test_blocked_completion_is_malformed():
    client, _ = vertex_client(response(payload={"promptFeedback": {"blockReason": "SAFETY"}}))
    with pytest.raises(MalformedResponseError) as exc_info:
        client.complete("prompt", {})
    assert "SAFETY" in str(exc_info.value)


def test_broken_response_stream_is_service_error():
    client, _ = hf_client(error=requests.exceptions.ChunkedEncodingError("truncated"))
    with pytest.raises(ServiceError) as exc_info:
        client.similarity("a", ["b"], "similarity-model")
    assert not isinstance(exc_info.value, TransientServiceError)
