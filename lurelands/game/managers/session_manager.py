import logging
from datetime import datetime
from typing import Callable, Optional

from ...core import rules
from ...core.models import (
    EventType, GameEvent, PlayerSession, PlayerStats, as_utc, utcnow,
)
from ...database.store import GameStore

log = logging.getLogger(__name__)

class SessionManager:
    """Play sessions, lifetime stats and the audit event log."""

    def __init__(self, store: GameStore, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock

    # --- Sessions ---

    def _close(self, session: PlayerSession, now: datetime) -> int:
        duration = max(int((now - as_utc(session.started_at)).total_seconds()), 0)
        self.store.sessions.update(session.id, {
            "ended_at": now,
            "duration_seconds": duration,
            "is_active": False,
        })
        return duration

    def start_session(self, player_id: str) -> PlayerSession:
        """Open a new session, closing any left active by a missed leave."""
        now = self.clock()
        for orphan in self.store.sessions.list_active(player_id):
            self._close(orphan, now)
            log.warning(f"Closed orphaned session {orphan.id} for player {player_id}")

        session = self.store.sessions.create(PlayerSession(
            id=self.store.sessions.next_id(),
            player_id=player_id,
            started_at=now,
        ))

        stats = self.store.stats.get_by_id(player_id)
        if stats:
            self.store.stats.update(player_id, {
                "total_sessions": stats.total_sessions + 1,
                "last_seen_at": now,
            })
        else:
            self.store.stats.create(PlayerStats(
                player_id=player_id,
                total_sessions=1,
                first_seen_at=now,
                last_seen_at=now,
                level=1,
                xp=0,
                xp_to_next_level=rules.xp_for_level(2),
            ))

        self.log_event(player_id, EventType.SESSION_STARTED)
        log.info(f"Session started for player {player_id}")
        return session

    def end_session(self, player_id: str) -> Optional[PlayerSession]:
        """Close the active session, if any, and add its length to playtime."""
        session = self.store.sessions.get_active(player_id)
        if session is None:
            return None

        now = self.clock()
        duration = self._close(session, now)

        stats = self.store.stats.get_by_id(player_id)
        if stats:
            self.store.stats.update(player_id, {
                "total_playtime_seconds": stats.total_playtime_seconds + duration,
                "last_seen_at": now,
            })

        self.log_event(
            player_id,
            EventType.SESSION_ENDED,
            metadata=f'{{"duration_seconds":{duration}}}',
        )
        log.info(f"Session ended for player {player_id} (duration: {duration}s)")
        return self.store.sessions.get_by_id(session.id)

    def active_session_id(self, player_id: str) -> Optional[int]:
        session = self.store.sessions.get_active(player_id)
        return session.id if session else None

    # --- Audit log ---

    def log_event(
        self,
        player_id: str,
        event_type: EventType,
        item_id: Optional[str] = None,
        quantity: Optional[int] = None,
        gold_amount: Optional[int] = None,
        rarity: Optional[int] = None,
        water_body_id: Optional[str] = None,
        metadata: Optional[str] = None,
    ) -> GameEvent:
        event = self.store.events.create(GameEvent(
            id=self.store.events.next_id(),
            player_id=player_id,
            session_id=self.active_session_id(player_id),
            event_type=event_type,
            item_id=item_id,
            quantity=quantity,
            gold_amount=gold_amount,
            rarity=rarity,
            water_body_id=water_body_id,
            metadata=metadata,
            created_at=self.clock(),
        ))
        log.debug(f"Event logged: {event.event_type} for player {player_id}")
        return event

    # --- Stats ---

    def get_stats(self, player_id: str) -> Optional[PlayerStats]:
        return self.store.stats.get_by_id(player_id)

    def increment(self, player_id: str, field: str, amount: int = 1):
        """Bump a lifetime counter. Players without a stats row are skipped."""
        if amount == 0:
            return
        stats = self.store.stats.get_by_id(player_id)
        if stats is None:
            log.debug(f"No stats row for player {player_id}; {field} not recorded")
            return
        self.store.stats.update(player_id, {field: getattr(stats, field) + amount})
