"""Progress reporting for the generation pipeline.

An append-only, ordered log of timestamped status messages with a stage
and a 0-100 progress value. Subscribers are plain callbacks; there is no
acknowledgement or backpressure from the consumer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class GenerationStage(str, Enum):
    IDLE = "IDLE"
    SEARCHING = "SEARCHING"
    PLANNING = "PLANNING"
    WRITING = "WRITING"
    SAVING = "SAVING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


# Progress value at which each stage starts
STAGE_PROGRESS = {
    GenerationStage.IDLE: 0,
    GenerationStage.SEARCHING: 10,
    GenerationStage.PLANNING: 25,
    GenerationStage.WRITING: 30,
    GenerationStage.SAVING: 90,
    GenerationStage.COMPLETED: 100,
}
WRITING_END = 85


@dataclass(frozen=True)
class ProgressEvent:
    timestamp: datetime
    stage: GenerationStage
    progress: int
    message: str

    def format(self) -> str:
        return f"[{self.timestamp:%H:%M:%S}] {self.stage.value} {self.progress:3d}% {self.message}"


Subscriber = Callable[[ProgressEvent], None]


@dataclass
class ProgressReporter:
    """Collects progress events in emission order."""

    events: list[ProgressEvent] = field(default_factory=list)
    subscribers: list[Subscriber] = field(default_factory=list)
    stage: GenerationStage = GenerationStage.IDLE
    progress: int = 0

    def subscribe(self, callback: Subscriber) -> None:
        self.subscribers.append(callback)

    def emit(
        self,
        stage: GenerationStage,
        message: str,
        progress: Optional[float] = None,
    ) -> ProgressEvent:
        """Append an event.

        ``progress`` defaults to the stage's starting value. It is clamped to
        0-100 and never moves backwards, except that FAILED keeps the last
        value.
        """
        if progress is None:
            progress = STAGE_PROGRESS.get(stage, self.progress)
        value = max(0, min(100, int(round(progress))))
        value = max(value, self.progress)

        event = ProgressEvent(
            timestamp=datetime.now(),
            stage=stage,
            progress=value,
            message=message,
        )
        self.events.append(event)
        self.stage = stage
        self.progress = value
        logger.info("%s", event.format())

        for callback in list(self.subscribers):
            try:
                callback(event)
            except Exception as exc:
                logger.warning("Progress subscriber raised: %s", exc)
        return event

    def writing_progress(self, completed: int, total: int) -> int:
        """Map drafted-section count onto the WRITING band."""
        start = STAGE_PROGRESS[GenerationStage.WRITING]
        if total <= 0:
            return start
        return start + round((WRITING_END - start) * completed / total)

    @property
    def messages(self) -> list[str]:
        return [e.message for e in self.events]
