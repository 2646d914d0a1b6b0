# State machine engine
from travelhub.engine.state_machine import (
    StateTransition, StateMachineConfig, StateMachine
)

__all__ = ['StateTransition', 'StateMachineConfig', 'StateMachine']
