"""
Utility modules for subagent_optimizer.

"""

from .stop_condition import (
    CancellationToken,
    CompositeStopper,
    FileStopper,
    NoDecisiveRoundStopper,
    SignalStopper,
    StopperProtocol,
    TimeoutStopCondition,
    should_stop,
)

__all__ = [
    "StopperProtocol",
    "CancellationToken",
    "TimeoutStopCondition",
    "FileStopper",
    "NoDecisiveRoundStopper",
    "SignalStopper",
    "CompositeStopper",
    "should_stop",
]
