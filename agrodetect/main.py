import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from agrodetect import imaging, llm
from agrodetect.config import settings
from agrodetect.models import (
    AnalyzeRequest,
    ImageData,
    ModelSettings,
    SetModelRequest,
    WorkflowSnapshot,
)
from agrodetect.workflow import DiagnosisWorkflow

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger(__name__)

_STATIC_DIR = Path(__file__).resolve().parent / "static"

# Single-user app: every client drives and sees this one workflow.
workflow = DiagnosisWorkflow()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.gemini.api_key:
        log.info("Using model %s via %s", llm.get_model(), settings.gemini.base_url)
    else:
        log.warning(
            "No Gemini API key configured. The app will start but every "
            "analysis will fail until GEMINI_API_KEY is set."
        )
    yield


app = FastAPI(title="agrodetect", version="0.1.0", lifespan=lifespan)


async def _analyze(image: ImageData) -> WorkflowSnapshot:
    task = workflow.submit_image(image)
    # A dropped client connection must not cancel the service call.
    return await asyncio.shield(task)


@app.get("/api/health")
async def health():
    return {
        "status": "ok",
        "api_key_configured": bool(settings.gemini.api_key),
        "model": llm.get_model(),
    }


@app.get("/api/state", response_model=WorkflowSnapshot)
async def state():
    return workflow.snapshot()


@app.post("/api/analyze", response_model=WorkflowSnapshot)
async def analyze(req: AnalyzeRequest):
    try:
        image = imaging.from_data_uri(req.image, req.mime_type)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return await _analyze(image)


@app.post("/api/analyze/upload", response_model=WorkflowSnapshot)
async def analyze_upload(file: UploadFile = File(...)):
    raw = await file.read()
    image = imaging.from_bytes(raw, file.content_type, file.filename)
    return await _analyze(image)


@app.post("/api/reset", response_model=WorkflowSnapshot)
async def reset():
    workflow.reset()
    return workflow.snapshot()


@app.get("/api/settings", response_model=ModelSettings)
async def get_settings():
    return ModelSettings(current_model=llm.get_model(), available_models=llm.AVAILABLE_MODELS)


@app.put("/api/settings/model", response_model=ModelSettings)
async def set_model(req: SetModelRequest):
    if req.model not in llm.AVAILABLE_MODELS:
        raise HTTPException(status_code=400, detail=f"Unknown model: {req.model}")
    llm.set_model(req.model)
    return ModelSettings(current_model=llm.get_model(), available_models=llm.AVAILABLE_MODELS)


# Serve index.html at root (no-cache so browser always gets latest)
@app.get("/")
async def index():
    return FileResponse(
        _STATIC_DIR / "index.html",
        headers={"Cache-Control": "no-cache"},
    )


app.mount("/static", StaticFiles(directory=_STATIC_DIR), name="static")
