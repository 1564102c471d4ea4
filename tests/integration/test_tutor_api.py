"""
End-to-end tutoring flow through the HTTP API with a mocked model provider.
"""

import json
import time
from concurrent.futures import ThreadPoolExecutor

import pytest
from conftest import text_response

pytestmark = pytest.mark.integration


@pytest.fixture
def jane_headers(make_user, login):
    make_user("jane.doe", first_name="Jane", last_name="Doe", student_number="S-77")
    return login("jane.doe")


@pytest.fixture
def algebra_session(client, jane_headers):
    resp = client.get("/api/tutor/session", params={"subject": "Algebra"}, headers=jane_headers)
    assert resp.status_code == 200, resp.text
    return resp.json()["session"]


def test_full_tutoring_flow(client, jane_headers, ai_client):
    # open a session
    resp = client.get(
        "/api/tutor/session",
        params={"subject": "Algebra", "topic": "Linear equations"},
        headers=jane_headers,
    )
    assert resp.status_code == 200, resp.text
    session = resp.json()["session"]
    assert session["ended_at"] is None
    assert session["topic"] == "Linear equations"
    assert resp.json()["messages"] == []

    # chat
    ai_client.messages.create.return_value = text_response(
        "Let's set up the equation together. What does x stand for?"
    )
    resp = client.post(
        "/api/tutor/message",
        json={
            "session_id": session["id"],
            "message": "Hi, I'm Jane Doe (jane.doe@example.com) and I need help with algebra",
        },
        headers=jane_headers,
    )
    assert resp.status_code == 200, resp.text
    exchange = resp.json()
    assert exchange["user_message"]["role"] == "user"
    assert exchange["user_message"]["content"] == (
        "Hi, I'm [STUDENT_NAME] ([STUDENT_EMAIL]) and I need help with algebra"
    )
    assert exchange["message"]["role"] == "assistant"
    assert exchange["message"]["concepts_discussed"] == ["Equation"]
    assert exchange["session"]["total_messages"] == 2
    assert exchange["session"]["student_questions"] == 1

    # nothing identifying reached the provider
    sent = ai_client.messages.create.call_args.kwargs["messages"]
    outgoing = json.dumps(sent)
    assert "[STUDENT_NAME]" in sent[-1]["content"]
    for value in ("Jane", "Doe", "jane.doe@example.com"):
        assert value not in outgoing

    # resuming returns the same session with its history
    resp = client.get("/api/tutor/session", params={"subject": "Algebra"}, headers=jane_headers)
    assert resp.json()["session"]["id"] == session["id"]
    assert [m["role"] for m in resp.json()["messages"]] == ["user", "assistant"]

    # close with a summary
    ai_client.messages.create.return_value = text_response(
        json.dumps(
            {
                "summary": "Set up a linear equation.",
                "performanceScore": 150,
                "improvementAreas": ["Checking answers"],
                "strengthAreas": ["Defining variables"],
                "conceptsCovered": ["Variables"],
            }
        )
    )
    resp = client.post(
        "/api/tutor/session/end", json={"session_id": session["id"]}, headers=jane_headers
    )
    assert resp.status_code == 200, resp.text
    ended = resp.json()
    assert ended["ended_at"] is not None
    assert ended["performance_score"] == 100
    assert ended["session_summary"] == "Set up a linear equation."
    assert ended["concepts_covered"] == ["Equation", "Variables"]

    # history and insights
    sessions = client.get("/api/tutor/sessions", headers=jane_headers).json()
    assert [s["id"] for s in sessions] == [session["id"]]

    messages = client.get(
        f"/api/tutor/sessions/{session['id']}/messages", headers=jane_headers
    ).json()
    assert len(messages) == 2

    insights = client.get("/api/tutor/progress-insights", headers=jane_headers).json()
    assert insights["total_sessions"] == 1
    assert insights["subject_breakdown"]["Algebra"]["avg_performance"] == 100
    assert insights["strengths"] == ["Defining variables"]
    assert insights["overall_progress"] == "Excellent"


def test_provider_failure_returns_502(client, jane_headers, algebra_session, ai_client):
    ai_client.messages.create.side_effect = RuntimeError("overloaded")

    resp = client.post(
        "/api/tutor/message",
        json={"session_id": algebra_session["id"], "message": "help"},
        headers=jane_headers,
    )

    assert resp.status_code == 502
    assert resp.json()["detail"] == "Failed to get tutor response. Please try again."
    messages = client.get(
        f"/api/tutor/sessions/{algebra_session['id']}/messages", headers=jane_headers
    ).json()
    assert messages == []


def test_summary_failure_still_closes_session(client, jane_headers, algebra_session, ai_client):
    client.post(
        "/api/tutor/message",
        json={"session_id": algebra_session["id"], "message": "what is a slope?"},
        headers=jane_headers,
    )
    ai_client.messages.create.side_effect = RuntimeError("overloaded")

    resp = client.post(
        "/api/tutor/session/end",
        json={"session_id": algebra_session["id"]},
        headers=jane_headers,
    )

    assert resp.status_code == 200, resp.text
    assert resp.json()["session_summary"] == "Session completed"
    assert resp.json()["performance_score"] == 75


def test_message_to_ended_session_is_rejected(client, jane_headers, algebra_session):
    client.post(
        "/api/tutor/session/end",
        json={"session_id": algebra_session["id"]},
        headers=jane_headers,
    )
    resp = client.post(
        "/api/tutor/message",
        json={"session_id": algebra_session["id"], "message": "hello?"},
        headers=jane_headers,
    )
    assert resp.status_code == 400


def test_empty_message_is_rejected(client, jane_headers, algebra_session):
    resp = client.post(
        "/api/tutor/message",
        json={"session_id": algebra_session["id"], "message": "   "},
        headers=jane_headers,
    )
    assert resp.status_code == 400


def test_other_students_cannot_use_a_session(client, algebra_session, student_headers):
    resp = client.post(
        "/api/tutor/message",
        json={"session_id": algebra_session["id"], "message": "hi"},
        headers=student_headers,
    )
    assert resp.status_code == 404

    resp = client.get(
        f"/api/tutor/sessions/{algebra_session['id']}/messages", headers=student_headers
    )
    assert resp.status_code == 404


def test_subject_is_required(client, jane_headers):
    resp = client.get("/api/tutor/session", headers=jane_headers)
    assert resp.status_code == 422


def test_tutor_requires_login(client):
    assert client.get("/api/tutor/sessions").status_code == 401


def test_slow_tutor_reply_does_not_block_other_requests(
    client, jane_headers, algebra_session, ai_client
):
    def slow_reply(**kwargs):
        time.sleep(1.5)
        return text_response("Take your time.")

    ai_client.messages.create.side_effect = slow_reply
    with ThreadPoolExecutor(max_workers=1) as pool:
        pending = pool.submit(
            client.post,
            "/api/tutor/message",
            json={"session_id": algebra_session["id"], "message": "what is x?"},
            headers=jane_headers,
        )
        time.sleep(0.3)
        started = time.monotonic()
        status = client.get("/api/status")
        elapsed = time.monotonic() - started
        sessions = client.get("/api/tutor/sessions", headers=jane_headers)

        assert status.status_code == 200
        assert sessions.status_code == 200
        assert elapsed < 1.0
        assert pending.result().status_code == 200
