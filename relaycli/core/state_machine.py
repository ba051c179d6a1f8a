"""Step sequencing state machine."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from relaycli.core.errors import InvalidGoalError
from relaycli.core.steps import Step
from relaycli.models.snapshot import Snapshot

logger = logging.getLogger("relay.state_machine")


class StateMachine:
    """Advance through steps one satisfied precondition at a time.

    Each call to ``process_event`` evaluates only the current step. When its
    condition holds the action runs and the cursor moves forward by one.
    Once the cursor passes the last step the machine is completed and stays
    that way until ``reset()``.

    Not thread-safe. Callers must deliver events one at a time.

    Usage:
        machine = StateMachine(build_simple_send_flow("Alice", "hello"))
        for snapshot in snapshots:
            machine.process_event(snapshot)
            if machine.is_completed:
                break
    """

    def __init__(self, steps: Sequence[Step], tag: str = "StateMachine"):
        """Initialize state machine.

        Args:
            steps: Ordered steps to run
            tag: Prefix for log messages

        Raises:
            InvalidGoalError: If steps is empty
        """
        if not steps:
            raise InvalidGoalError("State machine needs at least one step")
        self._steps = tuple(steps)
        self._tag = tag
        self._current_step_index = 0

    @property
    def steps(self) -> tuple[Step, ...]:
        return self._steps

    @property
    def current_step_index(self) -> int:
        return self._current_step_index

    @property
    def current_step(self) -> Step | None:
        if self._current_step_index < len(self._steps):
            return self._steps[self._current_step_index]
        return None

    @property
    def is_completed(self) -> bool:
        return self._current_step_index >= len(self._steps)

    def reset(self) -> None:
        """Return to the first step."""
        self._current_step_index = 0
        logger.debug("[%s] State machine reset", self._tag)

    def process_event(self, snapshot: Snapshot) -> bool:
        """Evaluate the current step against a snapshot.

        Args:
            snapshot: Current view of the environment

        Returns:
            True if a step ran and the cursor advanced, False otherwise
        """
        if self.is_completed:
            logger.debug("[%s] All steps already completed", self._tag)
            return False

        step = self._steps[self._current_step_index]
        step_num = self._current_step_index + 1
        total = len(self._steps)

        logger.debug("[%s] Checking step %d/%d: %s", self._tag, step_num, total, step.name)

        try:
            satisfied = step.condition(snapshot)
        except Exception as e:
            logger.exception(
                "[%s] Step %d: %s - condition check failed: %s", self._tag, step_num, step.name, e
            )
            return False

        if not satisfied:
            logger.debug(
                "[%s] Step %d: %s - condition not met, waiting for next event",
                self._tag,
                step_num,
                step.name,
            )
            return False

        logger.debug("[%s] Step %d: %s - condition met, executing", self._tag, step_num, step.name)

        try:
            step.action(snapshot)
        except Exception as e:
            logger.exception(
                "[%s] Step %d: %s - action failed: %s", self._tag, step_num, step.name, e
            )
            return False

        self._current_step_index += 1
        logger.info("[%s] Step %d/%d: %s - done", self._tag, step_num, total, step.name)

        if self.is_completed:
            logger.info("[%s] All steps completed", self._tag)

        return True

    def status(self) -> str:
        """Human-readable progress for logs and the CLI."""
        total = len(self._steps)
        if self.is_completed:
            return f"Completed ({total}/{total})"
        step = self._steps[self._current_step_index]
        return f"Running ({self._current_step_index + 1}/{total}) - {step.name}"
