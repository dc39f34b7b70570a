"""
Test the chatbot endpoint against a fake NLU backend.
"""

import logging
import uuid
from datetime import datetime

import pytest

from gateway.nlu import NLUClientState

from conftest import FakeBackend

CHATBOT_URL = "/api2/chatbot"


def _parse_timestamp(value):
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def test_chatbot_returns_fulfillment_text(client, use_state, ready_state, fake_backend):
    use_state(ready_state)

    response = client.post(CHATBOT_URL, json={"message": "Hello"})

    assert response.status_code == 200
    body = response.json()
    assert body["reply"] == "Hello from the bot"
    assert _parse_timestamp(body["timestamp"]).tzinfo is not None
    assert len(fake_backend.calls) == 1
    assert fake_backend.calls[0][1] == "Hello"


@pytest.mark.parametrize("message", ["hi", "What are your opening hours?", "नमस्ते", "x" * 2000])
def test_any_string_message_is_forwarded(client, use_state, ready_state, fake_backend, message):
    use_state(ready_state)

    response = client.post(CHATBOT_URL, json={"message": message})

    assert response.status_code == 200
    assert fake_backend.calls[-1][1] == message


def test_empty_fulfillment_text_is_returned_as_is(client, use_state):
    state = NLUClientState()
    state.mark_initializing()
    state.mark_ready(FakeBackend(reply=""))
    use_state(state)

    response = client.post(CHATBOT_URL, json={"message": "mumble"})

    assert response.status_code == 200
    assert response.json()["reply"] == ""


def test_missing_message_is_rejected(client, use_state, ready_state, fake_backend):
    use_state(ready_state)

    response = client.post(CHATBOT_URL, json={"text": "Hello"})

    assert response.status_code == 400
    assert response.json() == {"error": "'message' is required."}
    assert fake_backend.calls == []


@pytest.mark.parametrize("payload", [{"message": None}, {"message": ""}, {"message": "   \n\t"}, {}])
def test_blank_messages_are_required_errors(client, use_state, ready_state, payload):
    use_state(ready_state)

    response = client.post(CHATBOT_URL, json=payload)

    assert response.status_code == 400
    assert response.json() == {"error": "'message' is required."}


@pytest.mark.parametrize("value", [123, 0, 1.5, True, ["Hello"], {"text": "Hello"}])
def test_non_string_message_is_rejected(client, use_state, ready_state, fake_backend, value):
    use_state(ready_state)

    response = client.post(CHATBOT_URL, json={"message": value})

    assert response.status_code == 400
    assert response.json() == {"error": "'message' must be a string."}
    assert fake_backend.calls == []


@pytest.mark.parametrize("body", ["not json", "[1, 2, 3]", ""])
def test_malformed_body_is_a_required_error(client, use_state, ready_state, body):
    use_state(ready_state)

    response = client.post(CHATBOT_URL, content=body, headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.json() == {"error": "'message' is required."}


def test_each_request_gets_a_fresh_session(client, use_state, ready_state, fake_backend):
    use_state(ready_state)

    client.post(CHATBOT_URL, json={"message": "same text"})
    client.post(CHATBOT_URL, json={"message": "same text"})

    first, second = fake_backend.calls[0][0], fake_backend.calls[1][0]
    assert first != second
    assert uuid.UUID(first).version == 4
    assert uuid.UUID(second).version == 4


@pytest.mark.parametrize("status", ["uninitialized", "initializing", "failed"])
def test_uninitialized_client_returns_500_without_calling_backend(client, use_state, status):
    state = NLUClientState()
    backend = FakeBackend()
    if status == "initializing":
        state.mark_initializing()
        # a handle alone does not make the client usable
        state.handle = backend
    elif status == "failed":
        state.mark_initializing()
        state.mark_failed(RuntimeError("Missing required environment variables"))
    use_state(state)

    response = client.post(CHATBOT_URL, json={"message": "Hello"})

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Dialogflow client not initialized"
    assert "timestamp" in body
    assert backend.calls == []


def test_uninitialized_check_precedes_validation(client, use_state):
    use_state(NLUClientState())

    response = client.post(CHATBOT_URL, json={"message": 123})

    assert response.status_code == 500
    assert response.json()["error"] == "Dialogflow client not initialized"


def test_backend_failure_maps_to_500_with_details(client, use_state):
    state = NLUClientState()
    state.mark_initializing()
    state.mark_ready(FakeBackend(error=RuntimeError("14 UNAVAILABLE: network unreachable")))
    use_state(state)

    response = client.post(CHATBOT_URL, json={"message": "Hello"})

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Failed to process request"
    assert body["details"] == "14 UNAVAILABLE: network unreachable"
    assert "timestamp" in body


def test_server_keeps_serving_after_backend_failure(client, use_state):
    backend = FakeBackend(error=TimeoutError("deadline exceeded"))
    state = NLUClientState()
    state.mark_initializing()
    state.mark_ready(backend)
    use_state(state)

    assert client.post(CHATBOT_URL, json={"message": "first"}).status_code == 500

    backend.error = None
    response = client.post(CHATBOT_URL, json={"message": "second"})
    assert response.status_code == 200
    assert response.json()["reply"] == "Hello from the bot"


def test_message_content_is_not_logged(client, use_state, ready_state, caplog):
    caplog.set_level(logging.INFO)
    use_state(ready_state)
    secret = "my account number is 4242-4242"

    client.post(CHATBOT_URL, json={"message": secret})

    assert secret not in caplog.text
    processing = next(r for r in caplog.records if getattr(r, "stage", None) == "PROCESSING_REQUEST")
    assert processing.diagnostic["messageLength"] == len(secret)
    received = next(r for r in caplog.records if getattr(r, "stage", None) == "RESPONSE_RECEIVED")
    assert received.diagnostic == {"hasResponse": True, "hasText": True}


class BrokenPathBackend(FakeBackend):
    def session_path(self, session_id):
        raise ValueError("bad project id")


def test_session_path_failure_returns_json_error(client, use_state, caplog):
    caplog.set_level(logging.INFO)
    backend = BrokenPathBackend()
    state = NLUClientState()
    state.mark_initializing()
    state.mark_ready(backend)
    use_state(state)

    response = client.post(CHATBOT_URL, json={"message": "Hello"})

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Failed to process request"
    assert body["details"] == "bad project id"
    assert "timestamp" in body
    assert backend.calls == []
    assert any(getattr(r, "stage", None) == "REQUEST_ERROR" for r in caplog.records)


class NoResultBackend(FakeBackend):
    def detect_intent(self, session_id, text):
        self.calls.append((session_id, text))
        return None


def test_missing_result_yields_empty_reply(client, use_state, caplog):
    caplog.set_level(logging.INFO)
    state = NLUClientState()
    state.mark_initializing()
    state.mark_ready(NoResultBackend())
    use_state(state)

    response = client.post(CHATBOT_URL, json={"message": "Hello"})

    assert response.status_code == 200
    assert response.json()["reply"] == ""
    received = next(r for r in caplog.records if getattr(r, "stage", None) == "RESPONSE_RECEIVED")
    assert received.diagnostic == {"hasResponse": False, "hasText": False}
