"""Diagnosis workflow: one image in, one diagnosis (or one error) out.

States: idle -> analyzing -> ready | failed. ``reset()`` goes back to idle
from anywhere and ``submit_image()`` re-enters analyzing from anywhere.
Result and error are never set at the same time.

Every submission and every reset bumps a generation counter. A call only
applies its outcome if the counter still matches when it resolves, so a
slow superseded request can never overwrite newer state. Superseded calls
are not cancelled, their outcome is dropped.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from agrodetect import llm
from agrodetect.config import settings
from agrodetect.models import AnalysisResult, ImageData, WorkflowSnapshot, WorkflowState
from agrodetect.parsing import parse_llm_json

log = logging.getLogger(__name__)

FAILURE_MESSAGE = "Failed to analyze image. Please try again with a clearer photo."

AnalyzeFn = Callable[[ImageData], Awaitable[str]]


class DiagnosisWorkflow:
    def __init__(self, analyze: AnalyzeFn | None = None, strict_parse: bool | None = None):
        self._analyze = analyze or llm.analyze_image
        self.strict_parse = settings.workflow.strict_parse if strict_parse is None else strict_parse

        self._state = WorkflowState.IDLE
        self._image: ImageData | None = None
        self._result: AnalysisResult | None = None
        self._error: str | None = None
        self._generation = 0
        # Superseded calls keep running; hold them until they finish.
        self._in_flight: set[asyncio.Task] = set()

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def image(self) -> ImageData | None:
        return self._image

    @property
    def result(self) -> AnalysisResult | None:
        return self._result

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def in_flight(self) -> int:
        """Number of service calls not yet resolved, superseded ones included."""
        return len(self._in_flight)

    def snapshot(self) -> WorkflowSnapshot:
        return WorkflowSnapshot(
            state=self._state,
            image=self._image,
            result=self._result,
            error=self._error,
            generation=self._generation,
        )

    def submit_image(self, image: ImageData) -> "asyncio.Task[WorkflowSnapshot]":
        """Enter ``analyzing`` now and schedule the service call.

        Must run inside an event loop. The returned task resolves to the
        snapshot current at the time the call finished.
        """
        self._generation += 1
        self._state = WorkflowState.ANALYZING
        self._image = image
        self._result = None
        self._error = None
        log.info("Analysis #%d started (%s)", self._generation, image.mime_type)
        task = asyncio.get_running_loop().create_task(self._run(self._generation, image))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    def reset(self) -> None:
        if self._state is WorkflowState.ANALYZING:
            log.info("Reset while analysis #%d in flight; its outcome will be ignored", self._generation)
        self._generation += 1
        self._state = WorkflowState.IDLE
        self._image = None
        self._result = None
        self._error = None

    async def _run(self, generation: int, image: ImageData) -> WorkflowSnapshot:
        try:
            raw = await self._analyze(image)
            result = self._parse(raw)
        except Exception:
            log.exception("Analysis #%d failed", generation)
            if self._is_current(generation):
                self._state = WorkflowState.FAILED
                self._error = FAILURE_MESSAGE
            return self.snapshot()

        if self._is_current(generation):
            self._state = WorkflowState.READY
            self._result = result
            log.info("Analysis #%d ready: %r", generation, result.disease_name)
        return self.snapshot()

    def _is_current(self, generation: int) -> bool:
        if generation != self._generation:
            log.debug("Discarding stale outcome of analysis #%d (current #%d)", generation, self._generation)
            return False
        return True

    def _parse(self, raw: str) -> AnalysisResult:
        """Turn reply text into a result.

        An unparseable or non-object reply yields an empty result unless
        ``strict_parse`` is set, in which case it raises ValueError.
        """
        try:
            data = parse_llm_json((raw or "").strip() or "{}", prefer_key="diseaseName").data
            if not isinstance(data, dict):
                raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
        except ValueError:
            if self.strict_parse:
                raise
            log.warning("Unparseable diagnosis reply, using empty result: %.200s", raw)
            data = {}
        return AnalysisResult.model_validate(data)
