from typing import Any

INSTRUCTION = """\
Analyze this plant image for diseases. Provide a detailed diagnosis in JSON format. \
If the plant is healthy, state it clearly. Include: diseaseName, scientificName, \
confidence (percentage), symptoms (array), causes (array), treatment (markdown string), \
prevention (markdown string), and status ("healthy" or "diseased")."""

RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "diseaseName": {"type": "string"},
        "scientificName": {"type": "string"},
        "confidence": {"type": "string"},
        "symptoms": {"type": "array", "items": {"type": "string"}},
        "causes": {"type": "array", "items": {"type": "string"}},
        "treatment": {"type": "string"},
        "prevention": {"type": "string"},
        "status": {"type": "string", "enum": ["healthy", "diseased"]},
    },
    "required": [
        "diseaseName",
        "scientificName",
        "confidence",
        "symptoms",
        "causes",
        "treatment",
        "prevention",
        "status",
    ],
}


def build_response_format() -> dict[str, Any]:
    """Wrap the schema in the chat-completions ``response_format`` envelope."""
    return {
        "type": "json_schema",
        "json_schema": {"name": "plant_diagnosis", "schema": RESPONSE_SCHEMA},
    }
