"""Auto-refresh lifecycle state machine using transitions library.

    fsm = RefreshFSM("projects")
    fsm.start()   # stopped -> running
    fsm.stop()    # running -> stopped

Only explicit triggers are allowed, so a second start() or stop() raises
transitions.MachineError; callers check can() first.
"""

import logging
from typing import Callable

from transitions import Machine

logger = logging.getLogger(__name__)

STATES = ["stopped", "running"]

TRANSITIONS = [
    {"trigger": "start", "source": "stopped", "dest": "running"},
    {"trigger": "stop", "source": "running", "dest": "stopped"},
]


class RefreshFSM:
    """Tracks whether the periodic refresh timer is armed."""

    def __init__(self, name: str, on_transition: Callable[[str, str, str], None] | None = None):
        """
        Args:
            name: Label used in log lines
            on_transition: Optional callback(from_state, to_state, trigger) called after transitions
        """
        self.name = name
        self.on_transition = on_transition
        self.machine = Machine(
            model=self,
            states=STATES,
            transitions=TRANSITIONS,
            initial="stopped",
            auto_transitions=False,
            send_event=True,
            after_state_change="on_state_change",
        )

    def on_state_change(self, event) -> None:
        from_state = event.transition.source
        to_state = event.transition.dest
        trigger = event.event.name

        logger.info(f"[refresh] {self.name}: {from_state} -> {to_state} ({trigger})")

        if self.on_transition:
            self.on_transition(from_state, to_state, trigger)

    def can(self, trigger: str) -> bool:
        """Check if a trigger can be executed in current state."""
        return trigger in self.machine.get_triggers(self.state)
