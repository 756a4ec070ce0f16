from .dedup import merge_results
from .escalation import EscalationRunner
from .executor import TaskExecutor
from .fast_phase import FastPhaseOutcome, FastPhaseRunner
from .sink import BackgroundSink
from .state_channel import StateChannel, StateSubscription
from .task_builder import DEFAULT_SEARCH_PATTERN, build_search_address, build_tasks

__all__ = [
    "DEFAULT_SEARCH_PATTERN",
    "BackgroundSink",
    "EscalationRunner",
    "FastPhaseOutcome",
    "FastPhaseRunner",
    "StateChannel",
    "StateSubscription",
    "TaskExecutor",
    "build_search_address",
    "build_tasks",
    "merge_results",
]
