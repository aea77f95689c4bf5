"""Service layer for the SkyWatch fusion core."""

from .classifier import classify, classify_all
from .fusion import FusionAggregator, FusionResult, SourceOutcome, filter_to_region, merge_records
from .hex_lookup import HexLookupCache
from .lifecycle import LifecycleStateTracker
from .notifications import EventDispatcher, format_event_message
from .pipeline import PassResult, PipelineCoordinator, SweepResult, build_coordinator
from .storage import SqlAlchemyAircraftStore
from .telegram import TelegramNotifier

__all__ = [
    "EventDispatcher",
    "FusionAggregator",
    "FusionResult",
    "HexLookupCache",
    "LifecycleStateTracker",
    "PassResult",
    "PipelineCoordinator",
    "SourceOutcome",
    "SqlAlchemyAircraftStore",
    "SweepResult",
    "TelegramNotifier",
    "build_coordinator",
    "classify",
    "classify_all",
    "filter_to_region",
    "format_event_message",
    "merge_records",
]
