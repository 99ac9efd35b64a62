import pytest

from clinic.schemas.symptom import SymptomQuery
from clinic.services import symptom_service
from clinic.utils.errors import UpstreamUnavailable


@pytest.mark.parametrize(
    "query,expected",
    [
        ("I have a headache and a runny nose", "symptom_analysis"),
        ("I live in Pune", "location_provided"),
        ("I also have a sore throat", "more_symptoms"),
        ("What could be serious here?", "more_details"),
        ("Which doctor should I see?", "specialist_recommendation"),
        ("Any home remedies?", "home_care"),
        ("It has been going on for 3 days", "duration_provided"),
        ("The pain is 7/10", "severity_provided"),
        ("Where is the closest hospital", "hospital_request"),
        ("What is a migraine?", "general_question"),
    ],
)
def test_detect_query_type(query, expected):
    assert symptom_service.detect_query_type(query) == expected


def test_classify_reply_flags():
    flags = symptom_service.classify_reply("Can you tell me your location so I can help?")
    assert flags == {"requires_follow_up": True, "not_trained": False, "asking_location": True}

    flags = symptom_service.classify_reply("I don't have information on that. Would you like help?")
    assert flags["not_trained"] is True
    assert flags["requires_follow_up"] is False


def test_build_messages_includes_history_and_context():
    body = SymptomQuery(
        query="I also have chills",
        history=[
            {"role": "user", "content": "I have a fever"},
            {"role": "assistant", "content": "How long have you had it?"},
        ],
        level="follow_up",
        context={"original_symptoms": "fever"},
    )

    messages = symptom_service.build_messages(body, "more_symptoms")

    assert messages[0]["role"] == "system"
    assert messages[0]["content"].startswith(symptom_service.BASE_PROMPT)
    assert [message["role"] for message in messages[1:]] == ["user", "assistant", "user"]
    assert messages[-1]["content"].startswith('Context: Previous symptoms were "fever"')


def test_search_endpoint(client, llm):
    response = client.post("/symptom-checker/search", json={"query": "I have a headache"})

    assert response.status_code == 200
    payload = response.json()["data"]
    assert payload["response"] == llm.reply
    assert payload["query_type"] == "symptom_analysis"
    assert payload["requires_follow_up"] is True
    assert payload["level"] == "initial"
    assert len(llm.calls) == 1


def test_search_requires_query(client, llm):
    response = client.post("/symptom-checker/search", json={"query": "   "})

    assert response.status_code == 400
    assert llm.calls == []


def test_search_reports_upstream_failure(client, llm):
    llm.error = UpstreamUnavailable("An error occurred while processing your request.")

    response = client.post("/symptom-checker/search", json={"query": "I feel dizzy"})

    assert response.status_code == 502
    assert response.json()["data"]["error"] == "UPSTREAM_UNAVAILABLE"


@pytest.mark.anyio
async def test_complete_chat_requires_api_key(monkeypatch):
    monkeypatch.setattr(symptom_service.settings, "LLM_API_KEY", None)

    with pytest.raises(UpstreamUnavailable):
        await symptom_service.complete_chat([{"role": "user", "content": "hi"}])
