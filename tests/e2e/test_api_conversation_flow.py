import pytest
from fastapi.testclient import TestClient

import api.conversations as conversations
import api_server
from conversation import ConversationRegistry, INITIAL_MESSAGE
from conversation.engine import CLOSING_MESSAGE, SESSION_ENDED_MESSAGE
from question_bank import QUESTION_BANK


@pytest.fixture
def client(monkeypatch, worker):
    monkeypatch.setattr(conversations, "_registry", ConversationRegistry(worker))
    return TestClient(api_server.app)


def _say(client, cid, text):
    response = client.post(f"/conversations/{cid}/messages", json={"text": text})
    assert response.status_code == 200, response.text
    return response.json()


def test_full_interview_over_http(client, worker):
    started = client.post("/conversations")
    assert started.status_code == 200
    cid = started.json()["conversation_id"]
    assert started.json()["step"] == "NAME"
    assert started.json()["messages"][0]["content"] == INITIAL_MESSAGE

    for text in ["Margaret", "mh@example.com", "42", "12", "Flight Software", "Boston"]:
        _say(client, cid, text)
    turn = _say(client, cid, "Java, Unknown")
    assert turn["step"] == "QUESTIONS"
    assert [m["role"] for m in turn["messages"]] == ["user", "assistant"]
    assert QUESTION_BANK["java"][0] in turn["messages"][1]["content"]

    _say(client, cid, "Interfaces define contracts")
    final = _say(client, cid, "Many forms")
    assert final["step"] == "CLOSING"
    assert final["messages"][-1]["content"] == CLOSING_MESSAGE

    after = _say(client, cid, "bye")
    assert after["messages"][-1]["content"] == SESSION_ENDED_MESSAGE

    worker.drain()
    detail = client.get(f"/conversations/{cid}").json()
    session_id = detail["session_id"]
    assert session_id is not None
    assert len(detail["responses"]) == 2
    assert len(detail["messages"]) == 1 + 2 * 10

    record = client.get(f"/sessions/{session_id}").json()
    assert record["name"] == "Margaret"
    assert record["techStack"] == ["java", "unknown"]
    assert record["status"] == "completed"
    assert [r["answer"] for r in record["responses"]] == ["Interfaces define contracts", "Many forms"]

    listed = client.get("/sessions").json()
    assert [row["id"] for row in listed] == [session_id]


def test_unknown_conversation_and_blank_text(client):
    assert client.post("/conversations/nope/messages", json={"text": "hi"}).status_code == 404
    assert client.get("/conversations/nope").status_code == 404

    cid = client.post("/conversations").json()["conversation_id"]
    assert client.post(f"/conversations/{cid}/messages", json={"text": ""}).status_code == 400
    assert client.post(f"/conversations/{cid}/messages", json={"text": "   "}).status_code == 400


def test_validation_errors_are_bad_requests(client):
    assert client.post("/sessions", json=["not", "an", "object"]).status_code == 400
    assert client.post("/conversations/abc/messages", json={}).status_code == 400
