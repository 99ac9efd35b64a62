"""Symptom checker backed by an OpenAI-compatible chat-completions API."""
import logging
import re
from typing import Any, Dict, List

import httpx

from clinic.config import settings
from clinic.schemas.symptom import SymptomQuery
from clinic.utils.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)

DISCLAIMER = (
    'Always include: "Note: This is not a medical diagnosis. '
    'Please consult a healthcare professional for proper evaluation."'
)
FOLLOW_UP_CLOSING = (
    'End with: "Would you like to tell me more about these symptoms so I can provide better guidance?"'
)

BASE_PROMPT = (
    "You are MediAI, a compassionate and knowledgeable medical assistant. Your goal is to help "
    "patients understand their health concerns without causing unnecessary alarm. Always be "
    "supportive and clear in your responses."
)

# Checked in order; the first matching rule wins.
QUERY_TYPE_RULES = [
    ("location_provided", ("i live in", "my location is", "i am located in", "near", "locality")),
    ("more_symptoms", ("yes, i have more symptoms", "i also have", "additional symptoms")),
    ("more_details", (
        "tell me more details", "more information", "explain further",
        "what could be serious", "worst case", "severe conditions",
    )),
    ("specialist_recommendation", ("what specialist", "which doctor", "what type of doctor")),
    ("home_care", ("home care", "home remedies", "what can i do at home", "self care")),
]

FOLLOW_UP_PHRASES = ("Would you like", "Do you need", "Can you tell me")
NOT_TRAINED_PHRASES = ("I haven't been trained", "I don't have information", "beyond my knowledge")
LOCATION_PHRASES = ("your location", "your locality", "where are you located")

SYSTEM_PROMPTS = {
    "symptom_analysis": f"""
IMPORTANT: Start with the most common, benign explanations.
ONLY mention: cold, flu, stress, fatigue, mild indigestion, tension headache, muscle strain, etc.
NEVER mention serious diseases in first response.

CRITICAL: Always ask these specific follow-up questions:
1. How long have you been experiencing these symptoms? (Duration)
2. On a scale of 1-10, how severe are your symptoms? (Severity)
3. Do you have any other related symptoms? (Additional symptoms)

{FOLLOW_UP_CLOSING}

{DISCLAIMER}
""",
    "duration_provided": f"""
Thank the patient for providing the information.
Analyze the duration and severity in context.
If you have duration and severity, ask about:
- Any other symptoms they're experiencing
- Whether symptoms are getting better or worse
- Any recent changes in their life (diet, stress, travel, etc.)

{FOLLOW_UP_CLOSING}

{DISCLAIMER}
""",
    "more_symptoms": f"""
The patient is providing additional symptoms. Analyze these new symptoms along with the context.
Update your assessment considering all symptoms together.
Still focus on common conditions first, but you can now consider moderately common issues.

If you have enough information, start suggesting:
- The most likely type of doctor to consult
- Whether they should seek immediate care

{FOLLOW_UP_CLOSING}

{DISCLAIMER}
""",
    "more_details": """
PROVIDE COMPREHENSIVE MEDICAL INFORMATION INCLUDING SERIOUS CONDITIONS.

Structure your response in THREE SECTIONS:

1. MOST COMMON CONDITIONS (Likely causes): common or benign conditions first.
2. MODERATELY SERIOUS CONDITIONS: conditions that need medical attention but are not
   immediately life-threatening, such as sinus infections, migraines, gastritis, bronchitis,
   pneumonia, kidney stones or gallstones.
3. RARE BUT SERIOUS CONDITIONS (Critical Warning Signs): rare but serious diseases that could
   present with these symptoms.

CRITICAL: For each serious condition, include:
- "RARE BUT POSSIBLE" warning label
- Specific red flag symptoms that would indicate this condition
- IMMEDIATE action required (e.g., "GO TO ER IMMEDIATELY if...")

Include recommendations for specialists and when to seek emergency care.

Ask: "Based on your symptoms, which type of doctor would you like to consult? (General Physician, Specialist, Emergency Care)"

Always include: "MEDICAL DISCLAIMER: This information is for educational purposes only. Serious conditions require immediate medical attention. Please consult a healthcare professional for proper diagnosis and treatment."
""",
    "specialist_recommendation": f"""
Based on the symptoms discussed, recommend the most appropriate medical specialists.
Explain why each specialist would be helpful.
Include both primary care and specialty options when relevant.

If symptoms could indicate serious conditions, emphasize urgency:
- "If you experience [specific red flags], seek emergency care immediately"
- "These symptoms could potentially indicate serious conditions including [list 2-3 serious possibilities]"

Then ask: "To help you find the nearest healthcare facility, could you please tell me your location or locality?"

{DISCLAIMER}
""",
    "location_provided": f"""
The patient has provided their location. Provide helpful information about:
- Types of healthcare facilities available in their area
- General guidance on finding nearby hospitals/clinics
- What to look for in a healthcare provider
- Emergency services contact information

Since you cannot access real-time location data, suggest searching a map service for
"hospitals near [their location]", calling emergency services in an emergency and checking
with the local health department.

Ask: "Would you like me to help you prepare for your doctor visit with some questions to ask?"

{DISCLAIMER}
""",
    "hospital_request": """
The patient is looking for hospitals/clinics. Provide guidance on:
- How to find emergency care vs. regular appointments
- What to consider when choosing a hospital
- Emergency warning signs that require immediate ER visit

CRITICAL: List specific emergency symptoms that require IMMEDIATE ER visit: chest pain or
pressure, difficulty breathing, sudden severe headache, weakness or numbness on one side,
confusion or difficulty speaking, high fever with stiff neck, severe abdominal pain,
uncontrolled bleeding.

Ask: "What is your current location or city? I can provide general guidance on finding healthcare facilities in your area."

Always include: "Note: This is not a medical diagnosis. In case of emergency, call your local emergency number immediately."
""",
    "home_care": f"""
Provide safe, practical home care suggestions for the discussed symptoms.
Include:
- Immediate comfort measures
- Over-the-counter medication options (with cautions)
- Lifestyle adjustments
- WARNING SIGNS that require immediate professional help

CRITICAL: List symptoms that mean "STOP HOME CARE AND SEEK IMMEDIATE MEDICAL ATTENTION":
fever over 103F (39.4C), symptoms lasting more than 7-10 days, severe pain that doesn't
improve, difficulty breathing, confusion or disorientation, uncontrolled bleeding.

Ask: "Have you been able to measure your temperature? Do you have any medications at home?"

{DISCLAIMER}
""",
    "default": f"""
Provide helpful, accurate medical information.
Be supportive and clear.
If the question is about extremely rare conditions, provide what information you can while
emphasizing the need for specialist consultation.

For any symptom discussion, include:
- Common explanations
- When to be concerned
- Red flag symptoms requiring immediate care

{DISCLAIMER}
""",
}
SYSTEM_PROMPTS["severity_provided"] = SYSTEM_PROMPTS["duration_provided"]

_DIGIT_RE = re.compile(r"\d+")


def detect_query_type(query: str) -> str:
    lower_query = query.lower()

    for query_type, phrases in QUERY_TYPE_RULES:
        if any(phrase in lower_query for phrase in phrases):
            return query_type

    if "for" in lower_query and any(unit in lower_query for unit in ("days", "weeks", "months")):
        return "duration_provided"

    if (
        any(phrase in lower_query for phrase in ("severity", "pain level", "scale of"))
        or ("/" in lower_query and _DIGIT_RE.search(lower_query))
    ):
        return "severity_provided"

    if any(phrase in lower_query for phrase in ("hospital", "clinic", "nearest medical", "emergency room")):
        return "hospital_request"

    if any(phrase in lower_query for phrase in ("what is", "explain", "how does", "why does")):
        return "general_question"

    return "symptom_analysis"


def get_system_prompt(query_type: str, level: str) -> str:
    # Follow-up turns of a plain symptom description fall back to the general prompt
    if query_type == "symptom_analysis" and level != "initial":
        return BASE_PROMPT + SYSTEM_PROMPTS["default"]
    return BASE_PROMPT + SYSTEM_PROMPTS.get(query_type, SYSTEM_PROMPTS["default"])


def build_messages(body: SymptomQuery, query_type: str) -> List[Dict[str, str]]:
    messages = [{"role": "system", "content": get_system_prompt(query_type, body.level)}]
    messages.extend(message.model_dump() for message in body.history)

    user_message = body.query
    if body.context and body.context.original_symptoms:
        user_message = (
            f'Context: Previous symptoms were "{body.context.original_symptoms}".\n\n'
            f"Current question: {body.query}"
        )
    messages.append({"role": "user", "content": user_message})
    return messages


def classify_reply(reply: str) -> Dict[str, bool]:
    requires_follow_up = any(phrase in reply for phrase in FOLLOW_UP_PHRASES)
    not_trained = any(phrase in reply for phrase in NOT_TRAINED_PHRASES)
    asking_location = any(phrase in reply for phrase in LOCATION_PHRASES)
    return {
        "requires_follow_up": requires_follow_up and not not_trained,
        "not_trained": not_trained,
        "asking_location": asking_location,
    }


async def complete_chat(messages: List[Dict[str, str]], model: str | None = None) -> str:
    api_key = settings.LLM_API_KEY
    if not api_key:
        raise UpstreamUnavailable("LLM_API_KEY is not configured")

    payload = {"model": model or settings.LLM_MODEL, "messages": messages}
    headers = {"Authorization": f"Bearer {api_key}"}
    try:
        async with httpx.AsyncClient(timeout=settings.LLM_TIMEOUT_SECONDS) as client:
            response = await client.post(settings.LLM_API_URL, json=payload, headers=headers)
            response.raise_for_status()
            data: Dict[str, Any] = response.json()
    except httpx.HTTPError as exc:
        logger.error("LLM request failed: %s", exc)
        raise UpstreamUnavailable("An error occurred while processing your request.") from exc

    try:
        return data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        logger.error("Unexpected LLM response shape: %s", data)
        raise UpstreamUnavailable("An error occurred while processing your request.") from exc


async def answer(body: SymptomQuery) -> Dict[str, Any]:
    query_type = detect_query_type(body.query)
    logger.info("Symptom query type=%s level=%s", query_type, body.level)

    reply = await complete_chat(build_messages(body, query_type))
    return {
        "response": reply,
        "query_type": query_type,
        "level": body.level,
        **classify_reply(reply),
    }
