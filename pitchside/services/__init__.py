"""
Services package for the Pitchside match-day engine.

This package contains the formation, eligibility, planning, clock and undo
services, plus the session that ties them to persistence and notifications.
"""
from .formation_service import FormationService, CategoryChange
from .eligibility_service import EligibilityMatcher, SubstitutionOption
from .substitution_planner import AutoSubPlanner, due_events, due_message
from .timer_service import GameClock, ClockEvent, reconcile_minutes
from .game_commands import (
    Command, SubstitutePlayerCommand, SwapPositionsCommand, ExecuteAutoSubCommand,
    ActionHistory, RosterSnapshot, GameCommandManager
)
from .persistence_service import PersistenceService, InMemoryStore, JsonFileStore
from .notification_service import LoggingNotifier, WebhookNotifier
from .match_session import MatchSession
from .service_factory import ServiceFactory

__all__ = [
    "FormationService", "CategoryChange", "EligibilityMatcher", "SubstitutionOption",
    "AutoSubPlanner", "due_events", "due_message", "GameClock", "ClockEvent",
    "reconcile_minutes", "Command", "SubstitutePlayerCommand", "SwapPositionsCommand",
    "ExecuteAutoSubCommand", "ActionHistory", "RosterSnapshot", "GameCommandManager",
    "PersistenceService", "InMemoryStore", "JsonFileStore", "LoggingNotifier",
    "WebhookNotifier", "MatchSession", "ServiceFactory",
]
