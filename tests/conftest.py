import asyncio
import json

import pytest

from agrodetect.models import ImageData

HEALTHY_REPLY = {
    "diseaseName": "Healthy",
    "scientificName": "",
    "confidence": "99%",
    "symptoms": [],
    "causes": [],
    "treatment": "No action needed.",
    "prevention": "Maintain watering schedule.",
}

BLIGHT_REPLY = {
    "diseaseName": "Early Blight",
    "scientificName": "Alternaria solani",
    "confidence": "87%",
    "symptoms": ["Concentric rings on older leaves", "Yellowing around lesions"],
    "causes": ["Fungal spores in soil", "Warm humid weather"],
    "treatment": "## Treatment\n- Remove infected leaves\n- Apply **copper fungicide**",
    "prevention": "- Rotate crops\n- Water at the base",
    "status": "diseased",
}


class FakeService:
    """Stands in for the Gemini call: replies are released by the test."""

    def __init__(self):
        self.calls: list[ImageData] = []
        self._pending: list[asyncio.Future] = []

    async def __call__(self, image: ImageData) -> str:
        self.calls.append(image)
        fut = asyncio.get_running_loop().create_future()
        self._pending.append(fut)
        return await fut

    def reply(self, index: int, payload) -> None:
        text = payload if isinstance(payload, str) else json.dumps(payload)
        self._pending[index].set_result(text)

    def fail(self, index: int, exc: Exception) -> None:
        self._pending[index].set_exception(exc)


def replying(payload):
    """An analyze callable that answers immediately."""
    text = payload if isinstance(payload, str) else json.dumps(payload)

    async def analyze(image: ImageData) -> str:
        return text

    return analyze


def raising(exc: Exception):
    async def analyze(image: ImageData) -> str:
        raise exc

    return analyze


@pytest.fixture
def image() -> ImageData:
    return ImageData(data="aGVsbG8=", mime_type="image/png")
