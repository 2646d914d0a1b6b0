"""
travelhub/engine/state_machine.py

State machine engine - declarative transitions
"""
from typing import Dict, List, Optional
from dataclasses import dataclass
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StateTransition:
    """
    Transition definition

    Attributes:
        from_state: source state
        to_state: target state
        trigger: name of the action causing the transition
    """

    from_state: str
    to_state: str
    trigger: str


@dataclass
class StateMachineConfig:
    """
    State machine configuration

    Attributes:
        name: machine name (for logging)
        states: every state
        transitions: legal transitions
        initial_state: state of a newly created instance
    """

    name: str
    states: List[str]
    transitions: List[StateTransition]
    initial_state: str


class StateMachine:
    """
    State machine

    Example:
        >>> machine = StateMachine(config, current_state="PENDING")
        >>> if machine.can_transition_to("CONFIRMED", "confirm"):
        ...     machine.transition_to("CONFIRMED", "confirm")
    """

    def __init__(self, config: StateMachineConfig, current_state: Optional[str] = None):
        self._config = config
        self._current_state = current_state if current_state is not None else config.initial_state
        if self._current_state not in config.states:
            raise ValueError(f"Unknown {config.name} state: {self._current_state}")
        self._transition_map: Dict[str, Dict[str, StateTransition]] = {}

        # (from_state, trigger) -> transition
        for t in config.transitions:
            self._transition_map.setdefault(t.from_state, {})[t.trigger] = t

    @property
    def current_state(self) -> str:
        return self._current_state

    @property
    def config(self) -> StateMachineConfig:
        return self._config

    def allowed_triggers(self) -> List[str]:
        """Triggers that are legal from the current state"""
        return sorted(self._transition_map.get(self._current_state, {}).keys())

    def can_transition_to(self, target_state: str, trigger: str) -> bool:
        """
        Check whether a transition is legal

        Args:
            target_state: target state
            trigger: triggering action

        Returns:
            True if the transition exists from the current state
        """
        if target_state not in self._config.states:
            return False

        transition = self._transition_map.get(self._current_state, {}).get(trigger)
        return transition is not None and transition.to_state == target_state

    def transition_to(self, target_state: str, trigger: str) -> bool:
        """
        Apply a transition

        Returns:
            True if applied, False if the transition is not legal
        """
        if not self.can_transition_to(target_state, trigger):
            logger.warning(
                f"{self._config.name}: invalid transition {self._current_state} -> {target_state} "
                f"(trigger: {trigger})"
            )
            return False

        previous_state = self._current_state
        self._current_state = target_state
        logger.debug(f"{self._config.name}: {previous_state} -> {target_state} (trigger: {trigger})")
        return True


__all__ = [
    "StateTransition",
    "StateMachineConfig",
    "StateMachine",
]
