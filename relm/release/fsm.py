"""Step state machine driving the release stages."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Generic, TypeVar

from relm.core.result import Err, Ok, Result
from relm.release.errors import ReleaseError

S = TypeVar("S")


@dataclass(frozen=True, slots=True)
class StepAdvance(Generic[S]):
    state: S


@dataclass(frozen=True, slots=True)
class StepFinish:
    pass


StepOutcome = StepAdvance[S] | StepFinish
StepHandler = Callable[[S], Result[StepOutcome[S], ReleaseError]]
GetStep = Callable[[S], str]
OnAdvance = Callable[[S], None]


FINISH = StepFinish()


def advance(state: S) -> StepAdvance[S]:
    return StepAdvance(state=state)


def run_state_machine(
    *,
    initial_state: S,
    get_step: GetStep[S],
    handlers: Mapping[str, StepHandler[S]],
    on_advance: OnAdvance[S] | None = None,
) -> Result[S, ReleaseError]:
    """Run handlers until one finishes; return the final state.

    ``get_step`` names the handler for the current state. A handler error
    stops the machine and is returned as-is.
    """
    current = initial_state

    while True:
        step = get_step(current)
        handler = handlers.get(step)
        if handler is None:
            return Err(
                ReleaseError(
                    kind="invalid_input",
                    message=f"unknown release step: {step}",
                )
            )

        outcome = handler(current)
        if isinstance(outcome, Err):
            return outcome

        if isinstance(outcome.value, StepFinish):
            return Ok(current)

        current = outcome.value.state
        if on_advance is not None:
            on_advance(current)
