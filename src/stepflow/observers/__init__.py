"""StepFlow lifecycle observers."""

from stepflow.observers.base import (
    ActionRecord,
    NullObserver,
    Observer,
    ObserverChain,
    ObserverContext,
    ObserverFactory,
)
from stepflow.observers.error import ErrorObserver
from stepflow.observers.lifecycle import LifecycleObserver
from stepflow.observers.recording import ActionRecordingObserver
from stepflow.observers.timing import TimingObserver

__all__ = [
    "ActionRecord",
    "ActionRecordingObserver",
    "ErrorObserver",
    "LifecycleObserver",
    "NullObserver",
    "Observer",
    "ObserverChain",
    "ObserverContext",
    "ObserverFactory",
    "TimingObserver",
]
