# Copyright (c) 2025 Lakshya A Agrawal and the GEPA contributors
# https://github.com/gepa-ai/gepa

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

from subagent_optimizer.core.records import RoundRecord
from subagent_optimizer.core.report import Report


class LoopStatus(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"


@dataclass(frozen=True)
class OptimizationResult:
    """
    Immutable snapshot of an optimization run.

    - task: the task every variant was asked to perform
    - history: one RoundRecord per completed round, in order
    - report: the rendered report and its derived conclusions
    - status: always LoopStatus.COMPLETED once a run returns
    - cancelled: True when a stop request ended the run before all rounds ran
    - iterations_requested: the number of rounds the caller asked for

    Convenience:
    - rounds_completed, best_prompt, best_output, markdown
    - to_dict(): JSON-serializable view
    """

    task: str
    history: tuple[RoundRecord, ...]
    report: Report
    status: LoopStatus = LoopStatus.COMPLETED
    cancelled: bool = False
    iterations_requested: int = 0

    @property
    def rounds_completed(self) -> int:
        return len(self.history)

    @property
    def best_prompt(self) -> str | None:
        return self.report.best_prompt

    @property
    def best_output(self) -> str | None:
        return self.report.best_output

    @property
    def markdown(self) -> str:
        return self.report.markdown

    def to_dict(self) -> dict[str, Any]:
        return dict(
            task=self.task,
            status=self.status.value,
            cancelled=self.cancelled,
            iterations_requested=self.iterations_requested,
            rounds_completed=self.rounds_completed,
            history=[record.to_dict() for record in self.history],
            report=self.report.to_dict(),
            markdown=self.markdown,
        )
