import logging

from openai import AsyncOpenAI

from agrodetect.config import settings
from agrodetect.models import ImageData
from agrodetect.prompts import INSTRUCTION, build_response_format

log = logging.getLogger(__name__)

_client: AsyncOpenAI | None = None
_model: str = settings.gemini.model

# Vision-capable models served on the OpenAI-compatible Gemini endpoint.
AVAILABLE_MODELS = [
    "gemini-3-flash-preview",
    "gemini-2.5-flash",
    "gemini-2.5-pro",
    "gemini-2.0-flash",
]


def get_client() -> AsyncOpenAI:
    global _client
    if _client is None:
        cfg = settings.gemini
        if not cfg.api_key:
            raise RuntimeError("Gemini API key is not configured (set GEMINI_API_KEY)")
        # Failures go back to the user; resubmitting is their call.
        _client = AsyncOpenAI(
            base_url=cfg.base_url,
            api_key=cfg.api_key,
            timeout=cfg.request_timeout_s,
            max_retries=0,
        )
    return _client


def get_model() -> str:
    return _model


def set_model(name: str) -> None:
    global _model
    _model = name
    log.info("Model changed to: %s", name)


async def analyze_image(image: ImageData) -> str:
    """Send one diagnosis request for ``image``. Returns the raw reply text."""
    client = get_client()
    model = _model
    log.info("Requesting diagnosis from %s (%s, %d base64 chars)", model, image.mime_type, len(image.data))

    resp = await client.chat.completions.create(
        model=model,
        messages=[
            {
                "role": "user",
                "content": [
                    {"type": "image_url", "image_url": {"url": image.data_uri}},
                    {"type": "text", "text": INSTRUCTION},
                ],
            }
        ],
        response_format=build_response_format(),
    )
    choice = resp.choices[0]
    if choice.finish_reason and choice.finish_reason != "stop":
        log.warning("Diagnosis reply finished with reason: %s", choice.finish_reason)
    return choice.message.content or ""
