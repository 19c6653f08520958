"""
Service factory for dependency injection.

Builds match sessions with their collaborators (store, notifier, engine
services) wired in, so the web layer and tests can swap any of them.
"""
from typing import Dict, Optional

from ..config import PitchSettings
from .eligibility_service import EligibilityMatcher
from .formation_service import FormationService
from .match_session import MatchSession
from .notification_service import LoggingNotifier, WebhookNotifier
from .persistence_service import InMemoryStore, JsonFileStore, PersistenceService
from .substitution_planner import AutoSubPlanner


class ServiceFactory:
    """Creates and caches the services a match session depends on."""

    def __init__(self, data_dir: Optional[str] = None, webhook_url: Optional[str] = None):
        """
        Initialize factory.

        Args:
            data_dir: Directory for JSON state files; in-memory when omitted
            webhook_url: Where due-substitution messages are posted; logged when omitted
        """
        self.data_dir = data_dir
        self.webhook_url = webhook_url
        self._persistence_service: Optional[PersistenceService] = None
        self._notifier = None
        self._sessions: Dict[str, MatchSession] = {}

    def create_session(
        self,
        team_id: str,
        settings: Optional[PitchSettings] = None,
        read_only: bool = False,
    ) -> MatchSession:
        """
        Create a MatchSession with injected dependencies and restore saved state.

        Args:
            team_id: Team whose board is loaded
            settings: Pitch settings for the session
            read_only: Viewer mode; every mutation is ignored

        Returns:
            Configured MatchSession instance
        """
        session = MatchSession(
            team_id=team_id,
            settings=settings or PitchSettings(),
            persistence=self._get_persistence_service(),
            notifier=self._get_notifier(),
            formation_service=FormationService(),
            matcher=EligibilityMatcher(),
            planner=AutoSubPlanner(),
            read_only=read_only,
        )
        session.load()
        return session

    def get_session(self, team_id: str, settings: Optional[PitchSettings] = None) -> MatchSession:
        """Return the cached session for ``team_id``, creating it on first use."""
        if team_id not in self._sessions:
            self._sessions[team_id] = self.create_session(team_id, settings)
        return self._sessions[team_id]

    def _get_persistence_service(self) -> PersistenceService:
        """Get singleton persistence service."""
        if self._persistence_service is None:
            store = JsonFileStore(self.data_dir) if self.data_dir else InMemoryStore()
            self._persistence_service = PersistenceService(store)
        return self._persistence_service

    def _get_notifier(self):
        if self._notifier is None:
            self._notifier = WebhookNotifier(self.webhook_url) if self.webhook_url else LoggingNotifier()
        return self._notifier

    def configure_custom_notifier(self, notifier) -> None:
        self._notifier = notifier

    def configure_custom_persistence(self, persistence: PersistenceService) -> None:
        self._persistence_service = persistence
