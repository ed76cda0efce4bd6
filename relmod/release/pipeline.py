"""Two-phase release step pipeline.

Every step has a side-effect-free check and an action. All checks run
first, against the initial state; if any fails, no action runs. Actions
then run in order and the first failure stops the pipeline.

A CrossBuildAction is repeated once per target when cross-building is on.
Repetitions are sequential: publishing against a shared index is not safe
to parallelize.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Literal

from relmod.core.result import Err, Ok, Result
from relmod.output.console import ConsoleProtocol, Style
from relmod.release.errors import ReleaseError
from relmod.release.state import ReleaseState

__all__ = [
    "CrossBuildAction",
    "PipelineFailure",
    "ReleaseStep",
    "SingleAction",
    "StepResult",
    "run_actions",
    "run_checks",
    "run_pipeline",
]

type StepResult = Result[None, ReleaseError]
StepCheck = Callable[[ReleaseState], StepResult]


def no_check(state: ReleaseState) -> StepResult:
    del state
    return Ok(None)


@dataclass(frozen=True, slots=True)
class SingleAction:
    run: Callable[[ReleaseState], StepResult]


@dataclass(frozen=True, slots=True)
class CrossBuildAction:
    """Action parameterized by a build target (None when not cross-building)."""

    run: Callable[[ReleaseState, str | None], StepResult]


StepAction = SingleAction | CrossBuildAction


@dataclass(frozen=True, slots=True)
class ReleaseStep:
    name: str
    action: StepAction
    check: StepCheck = no_check


@dataclass(frozen=True, slots=True)
class PipelineFailure:
    """Why a pipeline stopped, with the state as it was at that point."""

    step: str
    phase: Literal["check", "action"]
    error: ReleaseError
    state: ReleaseState


def run_checks(
    steps: Sequence[ReleaseStep], state: ReleaseState
) -> Result[None, PipelineFailure]:
    for step in steps:
        checked = step.check(state)
        if isinstance(checked, Err):
            return Err(
                PipelineFailure(step=step.name, phase="check", error=checked.error, state=state)
            )
    return Ok(None)


def _run_action(
    step: ReleaseStep,
    state: ReleaseState,
    targets: Sequence[str],
    console: ConsoleProtocol,
) -> StepResult:
    match step.action:
        case SingleAction(run=run):
            return run(state)
        case CrossBuildAction(run=run):
            if not state.cross_build or not targets:
                return run(state, None)
            for target in targets:
                console.print(f"target: {target}", Style.DIM)
                result = run(state, target)
                if isinstance(result, Err):
                    return result
            return Ok(None)


def run_actions(
    steps: Sequence[ReleaseStep],
    state: ReleaseState,
    *,
    targets: Sequence[str],
    console: ConsoleProtocol,
) -> Result[ReleaseState, PipelineFailure]:
    for index, step in enumerate(steps, start=1):
        console.header(f"[{index}/{len(steps)}] {step.name}")
        state.executed_steps.append(step.name)
        result = _run_action(step, state, targets, console)
        if isinstance(result, Err):
            return Err(
                PipelineFailure(step=step.name, phase="action", error=result.error, state=state)
            )
    return Ok(state)


def run_pipeline(
    steps: Sequence[ReleaseStep],
    state: ReleaseState,
    *,
    targets: Sequence[str],
    console: ConsoleProtocol,
) -> Result[ReleaseState, PipelineFailure]:
    """Run the check pass, then the action pass."""
    checked = run_checks(steps, state)
    if isinstance(checked, Err):
        return checked
    return run_actions(steps, state, targets=targets, console=console)
