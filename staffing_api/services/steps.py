"""Ordered execution of critical and best-effort steps.

A request that mutates several systems (relational store, object storage,
email) is described as a list of :class:`Step` objects.  The runner executes
them in order and passes every step the results gathered so far:

  - a *critical* step that raises aborts the run and the exception propagates;
  - a *best-effort* step that raises is logged, recorded as a warning, and the
    run continues with the next step.

The optional ``on_best_effort_failure`` hook lets the caller discard partial
work from the failed step (e.g. roll back the session) before continuing.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

StepAction = Callable[[dict[str, Any]], Awaitable[Any]]


@dataclass(frozen=True)
class Step:
    name: str
    action: StepAction
    critical: bool = True


@dataclass
class StepWarning:
    step: str
    error: str


@dataclass
class RunReport:
    results: dict[str, Any] = field(default_factory=dict)
    warnings: list[StepWarning] = field(default_factory=list)
    completed: list[str] = field(default_factory=list)

    def succeeded(self, step_name: str) -> bool:
        return step_name in self.completed


class StepRunner:
    def __init__(
        self,
        label: str,
        *,
        on_best_effort_failure: Callable[[], Awaitable[None]] | None = None,
    ):
        self._label = label
        self._on_best_effort_failure = on_best_effort_failure

    async def run(
        self, steps: list[Step], seed: dict[str, Any] | None = None
    ) -> RunReport:
        report = RunReport(results=dict(seed or {}))
        for step in steps:
            try:
                report.results[step.name] = await step.action(report.results)
            except Exception as exc:
                if step.critical:
                    logger.error("%s: critical step '%s' failed: %s", self._label, step.name, exc)
                    raise
                logger.warning(
                    "%s: non-critical step '%s' failed: %s", self._label, step.name, exc
                )
                report.warnings.append(StepWarning(step=step.name, error=str(exc)))
                await self._discard_partial_work(step.name)
                continue
            report.completed.append(step.name)
        return report

    async def _discard_partial_work(self, step_name: str) -> None:
        if self._on_best_effort_failure is None:
            return
        try:
            await self._on_best_effort_failure()
        except Exception as exc:
            logger.warning(
                "%s: cleanup after step '%s' failed: %s", self._label, step_name, exc
            )
