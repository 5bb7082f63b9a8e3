"""SQLite persistence layer for campaign state.

Stores, per campaign:
- Progress and credit ledger (one row in ``campaigns``)
- Current location (columns on ``campaigns``), story flags and party
  status (one row per field, merged rather than overwritten)
- The campaign log: transcript messages, state changes, events
- Memory entities (NPCs, locations, quests, items, secrets)
- Planned story beats and chapter summaries
- Usage records, one per round advance

Every write runs inside ``_get_connection``, which commits on success and
rolls back on any exception. Round advancement additionally takes the
database write lock up front (``BEGIN IMMEDIATE``) so that the ledger read
and the progress write cannot interleave with another advance.

All methods are synchronous; async callers go through ``asyncio.to_thread``.
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Callable, Iterable
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Generator
from uuid import uuid4

from dnd_director.core.exceptions import (
    CampaignNotFoundError,
    StateConflictError,
    ValidationError,
)
from dnd_director.core.logging import get_logger
from dnd_director.models.campaign import (
    CampaignProgress,
    CampaignState,
    CreditLedger,
    Location,
    PartyStatus,
    RoundTransition,
)
from dnd_director.models.enums import LogType, MemoryKind
from dnd_director.models.memory import MemoryEntity, MemoryEvent, StoredMemory, StoryBeat

logger = get_logger(__name__)

_PARTY_STATUS_FIELDS = frozenset(PartyStatus.model_fields)


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class LogRecord:
    """One entry of the campaign log.

    Attributes:
        id: Autoincrement identifier; orders entries.
        campaign_id: Owning campaign.
        log_type: Entry type (see LogType).
        data: Decoded JSON payload.
        round_number: Round the entry was written in, if known.
        created_at: When the entry was written.
    """

    id: int
    campaign_id: str
    log_type: str
    data: dict[str, Any]
    round_number: int | None
    created_at: datetime

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> LogRecord:
        """Create from database row."""
        return cls(
            id=row["id"],
            campaign_id=row["campaign_id"],
            log_type=row["log_type"],
            data=json.loads(row["log_data"]),
            round_number=row["round_number"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )


@dataclass
class UsageRecord:
    """A single consumed ledger unit."""

    campaign_id: str
    credit_type: str
    round_number: int
    created_at: datetime

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> UsageRecord:
        """Create from database row."""
        return cls(
            campaign_id=row["campaign_id"],
            credit_type=row["credit_type"],
            round_number=row["round_number"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )


def _memory_from_entity_row(row: sqlite3.Row) -> StoredMemory:
    return StoredMemory(
        record_id=row["id"],
        kind=MemoryKind(row["entity_type"]),
        name=row["name"],
        description=row["description"],
        importance=row["importance"],
        tags=json.loads(row["tags"]),
        attributes=json.loads(row["attributes"]),
        created_at=datetime.fromisoformat(row["created_at"]),
    )


def _is_lock_error(exc: sqlite3.OperationalError) -> bool:
    text = str(exc).lower()
    return "locked" in text or "busy" in text


# =============================================================================
# Store
# =============================================================================


class CampaignStore:
    """SQLite store for campaign progress, ledger and world state."""

    SCHEMA_VERSION = 1

    def __init__(self, db_path: str | Path, *, busy_timeout_seconds: float = 5.0) -> None:
        """Initialize the store and create tables if needed.

        Args:
            db_path: Path to the database file.
            busy_timeout_seconds: How long a writer waits for the lock.
        """
        self.db_path = Path(db_path)
        self.busy_timeout_seconds = busy_timeout_seconds
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()
        logger.info("Campaign store initialized", path=str(self.db_path))

    @contextmanager
    def _get_connection(self, *, immediate: bool = False) -> Generator[sqlite3.Connection, None, None]:
        """Open a connection inside an explicit transaction.

        Args:
            immediate: Take the write lock when the transaction starts.
        """
        conn = sqlite3.connect(
            str(self.db_path),
            timeout=self.busy_timeout_seconds,
            isolation_level=None,
        )
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
            yield conn
            conn.commit()
        except Exception:
            if conn.in_transaction:
                conn.rollback()
            raise
        finally:
            conn.close()

    def _init_schema(self) -> None:
        """Initialize database schema."""
        with self._get_connection() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                );

                CREATE TABLE IF NOT EXISTS campaigns (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    current_round INTEGER NOT NULL,
                    current_chapter INTEGER NOT NULL,
                    target_rounds INTEGER NOT NULL,
                    rounds_per_chapter INTEGER NOT NULL,
                    free_rounds_used INTEGER NOT NULL DEFAULT 0,
                    free_rounds_limit INTEGER NOT NULL,
                    credits_balance INTEGER NOT NULL DEFAULT 0,
                    location_name TEXT,
                    location_description TEXT,
                    location_type TEXT,
                    story_bible TEXT NOT NULL DEFAULT '',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    CHECK (free_rounds_used <= free_rounds_limit),
                    CHECK (credits_balance >= 0),
                    CHECK (current_round <= target_rounds)
                );

                CREATE TABLE IF NOT EXISTS campaign_flags (
                    campaign_id TEXT NOT NULL REFERENCES campaigns(id),
                    flag_name TEXT NOT NULL,
                    flag_value TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (campaign_id, flag_name)
                );

                CREATE TABLE IF NOT EXISTS party_state (
                    campaign_id TEXT PRIMARY KEY REFERENCES campaigns(id),
                    health TEXT NOT NULL DEFAULT 'healthy',
                    resources TEXT NOT NULL DEFAULT 'full',
                    morale TEXT NOT NULL DEFAULT 'good',
                    updated_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS campaign_logs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    campaign_id TEXT NOT NULL REFERENCES campaigns(id),
                    log_type TEXT NOT NULL,
                    log_data TEXT NOT NULL,
                    round_number INTEGER,
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS campaign_entities (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    campaign_id TEXT NOT NULL REFERENCES campaigns(id),
                    entity_type TEXT NOT NULL,
                    name TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    importance INTEGER NOT NULL DEFAULT 3,
                    tags TEXT NOT NULL DEFAULT '[]',
                    attributes TEXT NOT NULL DEFAULT '{}',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS plot_beats (
                    campaign_id TEXT NOT NULL REFERENCES campaigns(id),
                    round_number INTEGER NOT NULL,
                    beat_type TEXT NOT NULL,
                    description TEXT NOT NULL,
                    priority TEXT NOT NULL,
                    prerequisites TEXT NOT NULL DEFAULT '[]',
                    planned_at TEXT NOT NULL,
                    PRIMARY KEY (campaign_id, round_number)
                );

                CREATE TABLE IF NOT EXISTS usage_events (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    campaign_id TEXT NOT NULL REFERENCES campaigns(id),
                    credit_type TEXT NOT NULL,
                    round_number INTEGER NOT NULL,
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS chapter_summaries (
                    campaign_id TEXT NOT NULL REFERENCES campaigns(id),
                    chapter INTEGER NOT NULL,
                    summary TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    PRIMARY KEY (campaign_id, chapter)
                );

                CREATE INDEX IF NOT EXISTS idx_logs_campaign
                ON campaign_logs(campaign_id, id DESC);

                CREATE INDEX IF NOT EXISTS idx_entities_campaign
                ON campaign_entities(campaign_id, entity_type);
            """)
            conn.execute(
                "INSERT OR REPLACE INTO schema_version (version) VALUES (?)",
                (self.SCHEMA_VERSION,),
            )

    # =========================================================================
    # Campaigns
    # =========================================================================

    def create_campaign(
        self,
        name: str,
        *,
        target_rounds: int,
        rounds_per_chapter: int,
        free_rounds_limit: int,
        credits_balance: int = 0,
        story_bible: str = "",
        campaign_id: str | None = None,
    ) -> CampaignState:
        """Create a campaign at round 1 with a fresh ledger.

        Raises:
            ValidationError: If the progress or ledger values are inconsistent.
        """
        if rounds_per_chapter > target_rounds:
            raise ValidationError(
                "rounds_per_chapter cannot exceed target_rounds",
                field_name="rounds_per_chapter",
                invalid_value=rounds_per_chapter,
            )
        if free_rounds_limit < 0 or credits_balance < 0:
            raise ValidationError("Ledger values cannot be negative", field_name="ledger")

        campaign_id = campaign_id or str(uuid4())
        now = datetime.now().isoformat()

        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO campaigns (
                    id, name, current_round, current_chapter, target_rounds,
                    rounds_per_chapter, free_rounds_used, free_rounds_limit,
                    credits_balance, story_bible, created_at, updated_at
                ) VALUES (?, ?, 1, 1, ?, ?, 0, ?, ?, ?, ?, ?)
                """,
                (
                    campaign_id, name, target_rounds, rounds_per_chapter,
                    free_rounds_limit, credits_balance, story_bible, now, now,
                ),
            )
            conn.execute(
                "INSERT INTO party_state (campaign_id, updated_at) VALUES (?, ?)",
                (campaign_id, now),
            )

        logger.info("Campaign created", campaign_id=campaign_id, target_rounds=target_rounds)
        return self.get_campaign(campaign_id)

    def _fetch_campaign_row(self, conn: sqlite3.Connection, campaign_id: str) -> sqlite3.Row:
        row = conn.execute("SELECT * FROM campaigns WHERE id = ?", (campaign_id,)).fetchone()
        if row is None:
            raise CampaignNotFoundError("Campaign not found", campaign_id=campaign_id)
        return row

    @staticmethod
    def _progress_from_row(row: sqlite3.Row) -> CampaignProgress:
        return CampaignProgress(
            current_round=row["current_round"],
            current_chapter=row["current_chapter"],
            target_rounds=row["target_rounds"],
            rounds_per_chapter=row["rounds_per_chapter"],
        )

    @staticmethod
    def _ledger_from_row(row: sqlite3.Row) -> CreditLedger:
        return CreditLedger(
            free_rounds_used=row["free_rounds_used"],
            free_rounds_limit=row["free_rounds_limit"],
            credits_balance=row["credits_balance"],
        )

    def get_campaign(self, campaign_id: str) -> CampaignState:
        """Load the full campaign state.

        Raises:
            CampaignNotFoundError: If the campaign does not exist.
        """
        with self._get_connection() as conn:
            row = self._fetch_campaign_row(conn, campaign_id)
            flag_rows = conn.execute(
                "SELECT flag_name, flag_value FROM campaign_flags WHERE campaign_id = ?",
                (campaign_id,),
            ).fetchall()
            party_row = conn.execute(
                "SELECT health, resources, morale FROM party_state WHERE campaign_id = ?",
                (campaign_id,),
            ).fetchone()

        location = None
        if row["location_name"]:
            location = Location(
                name=row["location_name"],
                description=row["location_description"] or "",
                location_type=row["location_type"],
            )

        return CampaignState(
            campaign_id=row["id"],
            name=row["name"],
            progress=self._progress_from_row(row),
            ledger=self._ledger_from_row(row),
            location=location,
            party_status=PartyStatus(**dict(party_row)) if party_row else PartyStatus(),
            flags={r["flag_name"]: json.loads(r["flag_value"]) for r in flag_rows},
            story_bible=row["story_bible"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    # =========================================================================
    # Progress & Ledger
    # =========================================================================

    def consume_and_advance(
        self,
        campaign_id: str,
        transition: Callable[[CampaignProgress, CreditLedger], RoundTransition],
    ) -> RoundTransition:
        """Apply one round transition as a single locked read-modify-write.

        ``transition`` runs while the write lock is held. If it raises (for
        example CreditExhaustedError) the transaction is rolled back and the
        exception propagates unchanged.

        Args:
            campaign_id: Campaign to advance.
            transition: Pure function from the current progress and ledger to
                the new ones.

        Returns:
            The transition that was applied.

        Raises:
            CampaignNotFoundError: If the campaign does not exist.
            StateConflictError: If the write lock could not be obtained in time.
        """
        try:
            with self._get_connection(immediate=True) as conn:
                row = self._fetch_campaign_row(conn, campaign_id)
                outcome = transition(self._progress_from_row(row), self._ledger_from_row(row))
                if not outcome.advanced:
                    return outcome

                now = datetime.now().isoformat()
                cursor = conn.execute(
                    """
                    UPDATE campaigns
                    SET current_round = ?, current_chapter = ?,
                        free_rounds_used = ?, credits_balance = ?, updated_at = ?
                    WHERE id = ? AND current_round = ?
                    """,
                    (
                        outcome.progress.current_round,
                        outcome.progress.current_chapter,
                        outcome.ledger.free_rounds_used,
                        outcome.ledger.credits_balance,
                        now,
                        campaign_id,
                        outcome.previous_round,
                    ),
                )
                if cursor.rowcount != 1:
                    raise StateConflictError(
                        "Campaign progress changed during advance",
                        campaign_id=campaign_id,
                    )
                conn.execute(
                    """
                    INSERT INTO usage_events (campaign_id, credit_type, round_number, created_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (campaign_id, str(outcome.credit_type), outcome.progress.current_round, now),
                )
                conn.execute(
                    """
                    INSERT INTO campaign_logs (campaign_id, log_type, log_data, round_number, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        campaign_id,
                        LogType.ROUND_ADVANCE.value,
                        json.dumps({
                            "from_round": outcome.previous_round,
                            "to_round": outcome.progress.current_round,
                            "chapter": outcome.progress.current_chapter,
                            "credit_type": str(outcome.credit_type),
                        }),
                        outcome.progress.current_round,
                        now,
                    ),
                )
                return outcome
        except sqlite3.OperationalError as exc:
            if _is_lock_error(exc):
                raise StateConflictError(
                    "Campaign is busy, retry the round advance",
                    campaign_id=campaign_id,
                ) from exc
            raise

    def add_credits(self, campaign_id: str, amount: int) -> CreditLedger:
        """Add paid credits in one atomic increment.

        Raises:
            ValidationError: If amount is not positive.
            CampaignNotFoundError: If the campaign does not exist.
        """
        if amount <= 0:
            raise ValidationError("Credit amount must be positive", field_name="amount", invalid_value=amount)

        with self._get_connection() as conn:
            cursor = conn.execute(
                "UPDATE campaigns SET credits_balance = credits_balance + ?, updated_at = ? WHERE id = ?",
                (amount, datetime.now().isoformat(), campaign_id),
            )
            if cursor.rowcount == 0:
                raise CampaignNotFoundError("Campaign not found", campaign_id=campaign_id)
            row = self._fetch_campaign_row(conn, campaign_id)

        logger.info("Credits added", campaign_id=campaign_id, amount=amount)
        return self._ledger_from_row(row)

    def usage_history(self, campaign_id: str, *, limit: int = 50) -> list[UsageRecord]:
        """Most recent consumed ledger units, newest first."""
        with self._get_connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM usage_events WHERE campaign_id = ?
                ORDER BY id DESC LIMIT ?
                """,
                (campaign_id, limit),
            ).fetchall()
        return [UsageRecord.from_row(row) for row in rows]

    # =========================================================================
    # Field-level State Merges
    # =========================================================================

    def set_location(self, campaign_id: str, location: Location) -> None:
        """Replace the location columns only; other campaign fields are untouched."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                UPDATE campaigns
                SET location_name = ?, location_description = ?, location_type = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    location.name,
                    location.description,
                    str(location.location_type) if location.location_type else None,
                    datetime.now().isoformat(),
                    campaign_id,
                ),
            )
            if cursor.rowcount == 0:
                raise CampaignNotFoundError("Campaign not found", campaign_id=campaign_id)

    def merge_flags(self, campaign_id: str, flags: dict[str, Any]) -> None:
        """Upsert each flag as its own row so concurrent writers to other flags survive."""
        now = datetime.now().isoformat()
        with self._get_connection() as conn:
            self._fetch_campaign_row(conn, campaign_id)
            conn.executemany(
                """
                INSERT INTO campaign_flags (campaign_id, flag_name, flag_value, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(campaign_id, flag_name)
                DO UPDATE SET flag_value = excluded.flag_value, updated_at = excluded.updated_at
                """,
                [(campaign_id, key, json.dumps(value), now) for key, value in flags.items()],
            )

    def merge_party_status(self, campaign_id: str, updates: dict[str, str]) -> PartyStatus:
        """Update only the given party status columns.

        Raises:
            ValidationError: If an unknown field name is given.
        """
        unknown = set(updates) - _PARTY_STATUS_FIELDS
        if unknown:
            raise ValidationError(f"Unknown party status fields: {sorted(unknown)}", field_name="party_status")

        now = datetime.now().isoformat()
        with self._get_connection() as conn:
            self._fetch_campaign_row(conn, campaign_id)
            conn.execute(
                "INSERT OR IGNORE INTO party_state (campaign_id, updated_at) VALUES (?, ?)",
                (campaign_id, now),
            )
            for column, value in updates.items():
                # column names come from the PartyStatus model, never from input
                conn.execute(
                    f"UPDATE party_state SET {column} = ?, updated_at = ? WHERE campaign_id = ?",
                    (str(value), now, campaign_id),
                )
            row = conn.execute(
                "SELECT health, resources, morale FROM party_state WHERE campaign_id = ?",
                (campaign_id,),
            ).fetchone()
        return PartyStatus(**dict(row))

    # =========================================================================
    # Campaign Log
    # =========================================================================

    def append_log(
        self,
        campaign_id: str,
        log_type: LogType | str,
        data: dict[str, Any],
        *,
        round_number: int | None = None,
    ) -> int:
        """Append one entry to the campaign log and return its id."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO campaign_logs (campaign_id, log_type, log_data, round_number, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    campaign_id,
                    str(log_type),
                    json.dumps(data, default=str),
                    round_number,
                    datetime.now().isoformat(),
                ),
            )
            return int(cursor.lastrowid)

    def recent_logs(
        self,
        campaign_id: str,
        *,
        limit: int = 20,
        log_types: Iterable[LogType | str] | None = None,
        round_range: tuple[int, int] | None = None,
    ) -> list[LogRecord]:
        """The last ``limit`` log entries, returned oldest first."""
        clauses = ["campaign_id = ?"]
        params: list[Any] = [campaign_id]
        if log_types is not None:
            types = [str(t) for t in log_types]
            clauses.append(f"log_type IN ({', '.join('?' for _ in types)})")
            params.extend(types)
        if round_range is not None:
            clauses.append("round_number BETWEEN ? AND ?")
            params.extend(round_range)
        params.append(limit)

        with self._get_connection() as conn:
            rows = conn.execute(
                f"SELECT * FROM campaign_logs WHERE {' AND '.join(clauses)} ORDER BY id DESC LIMIT ?",
                params,
            ).fetchall()
        return [LogRecord.from_row(row) for row in reversed(rows)]

    # =========================================================================
    # Memory
    # =========================================================================

    def add_entity(self, campaign_id: str, entity: MemoryEntity) -> StoredMemory:
        """Append a memory entity."""
        now = datetime.now().isoformat()
        with self._get_connection() as conn:
            self._fetch_campaign_row(conn, campaign_id)
            cursor = conn.execute(
                """
                INSERT INTO campaign_entities (
                    campaign_id, entity_type, name, description, importance,
                    tags, attributes, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    campaign_id,
                    entity.kind,
                    entity.name,
                    entity.description,
                    entity.importance,
                    json.dumps(entity.tags),
                    json.dumps(entity.attributes()),
                    now,
                    now,
                ),
            )
            row = conn.execute(
                "SELECT * FROM campaign_entities WHERE id = ?", (cursor.lastrowid,)
            ).fetchone()
        return _memory_from_entity_row(row)

    def find_entity(self, campaign_id: str, kind: MemoryKind | str, name: str) -> StoredMemory | None:
        """Find an entity by kind and case-insensitive name."""
        with self._get_connection() as conn:
            row = conn.execute(
                """
                SELECT * FROM campaign_entities
                WHERE campaign_id = ? AND entity_type = ? AND LOWER(name) = LOWER(?)
                ORDER BY id LIMIT 1
                """,
                (campaign_id, str(kind), name),
            ).fetchone()
        return _memory_from_entity_row(row) if row else None

    def update_entity_attributes(self, record_id: int, attributes: dict[str, Any]) -> StoredMemory:
        """Merge attribute keys into an existing entity (quest status, secret revealed)."""
        with self._get_connection() as conn:
            row = conn.execute("SELECT * FROM campaign_entities WHERE id = ?", (record_id,)).fetchone()
            if row is None:
                raise ValidationError("Memory entity not found", field_name="record_id", invalid_value=record_id)
            merged = {**json.loads(row["attributes"]), **attributes}
            conn.execute(
                "UPDATE campaign_entities SET attributes = ?, updated_at = ? WHERE id = ?",
                (json.dumps(merged), datetime.now().isoformat(), record_id),
            )
            row = conn.execute("SELECT * FROM campaign_entities WHERE id = ?", (record_id,)).fetchone()
        return _memory_from_entity_row(row)

    def list_entities(
        self,
        campaign_id: str,
        *,
        kinds: Iterable[MemoryKind | str] | None = None,
    ) -> list[StoredMemory]:
        """All entities for a campaign, optionally restricted to some kinds."""
        query = "SELECT * FROM campaign_entities WHERE campaign_id = ?"
        params: list[Any] = [campaign_id]
        if kinds is not None:
            kind_list = [str(k) for k in kinds]
            if not kind_list:
                return []
            query += f" AND entity_type IN ({', '.join('?' for _ in kind_list)})"
            params.extend(kind_list)
        with self._get_connection() as conn:
            rows = conn.execute(query + " ORDER BY id", params).fetchall()
        return [_memory_from_entity_row(row) for row in rows]

    def add_event(self, campaign_id: str, event: MemoryEvent, *, round_number: int | None = None) -> int:
        """Record a memory event in the campaign log."""
        return self.append_log(
            campaign_id,
            LogType.IMPORTANT_EVENT,
            event.model_dump(mode="json", exclude={"kind"}),
            round_number=round_number,
        )

    def list_events(self, campaign_id: str) -> list[StoredMemory]:
        """Every memory event of a campaign, as StoredMemory records."""
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM campaign_logs WHERE campaign_id = ? AND log_type = ? ORDER BY id",
                (campaign_id, LogType.IMPORTANT_EVENT.value),
            ).fetchall()

        events = []
        for row in rows:
            data = json.loads(row["log_data"])
            events.append(StoredMemory(
                record_id=row["id"],
                kind=MemoryKind.EVENT,
                name=data.get("name") or "",
                description=data.get("description", ""),
                importance=data.get("importance", 3),
                tags=data.get("tags", []),
                created_at=datetime.fromisoformat(row["created_at"]),
            ))
        return events

    # =========================================================================
    # Story Beats & Chapter Summaries
    # =========================================================================

    def save_story_beats(self, campaign_id: str, beats: list[StoryBeat]) -> None:
        """Upsert planned beats keyed by round number."""
        now = datetime.now().isoformat()
        with self._get_connection() as conn:
            conn.executemany(
                """
                INSERT INTO plot_beats (
                    campaign_id, round_number, beat_type, description,
                    priority, prerequisites, planned_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(campaign_id, round_number) DO UPDATE SET
                    beat_type = excluded.beat_type,
                    description = excluded.description,
                    priority = excluded.priority,
                    prerequisites = excluded.prerequisites,
                    planned_at = excluded.planned_at
                """,
                [
                    (
                        campaign_id, beat.round_number, str(beat.beat_type), beat.description,
                        str(beat.priority), json.dumps(beat.prerequisites), now,
                    )
                    for beat in beats
                ],
            )

    def list_story_beats(self, campaign_id: str, *, from_round: int = 1) -> list[StoryBeat]:
        with self._get_connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM plot_beats WHERE campaign_id = ? AND round_number >= ?
                ORDER BY round_number
                """,
                (campaign_id, from_round),
            ).fetchall()
        return [
            StoryBeat(
                round_number=row["round_number"],
                beat_type=row["beat_type"],
                description=row["description"],
                priority=row["priority"],
                prerequisites=json.loads(row["prerequisites"]),
            )
            for row in rows
        ]

    def save_chapter_summary(self, campaign_id: str, chapter: int, summary: str) -> None:
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO chapter_summaries (campaign_id, chapter, summary, created_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(campaign_id, chapter) DO UPDATE SET summary = excluded.summary
                """,
                (campaign_id, chapter, summary, datetime.now().isoformat()),
            )

    def get_chapter_summary(self, campaign_id: str, chapter: int) -> str | None:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT summary FROM chapter_summaries WHERE campaign_id = ? AND chapter = ?",
                (campaign_id, chapter),
            ).fetchone()
        return row["summary"] if row else None


# =============================================================================
# Singleton Access
# =============================================================================

_store_instance: CampaignStore | None = None


def get_campaign_store() -> CampaignStore:
    """Get the process-wide store configured from settings."""
    global _store_instance

    if _store_instance is None:
        from dnd_director.core.config import get_settings

        storage = get_settings().storage
        _store_instance = CampaignStore(
            storage.database_path,
            busy_timeout_seconds=storage.busy_timeout_seconds,
        )

    return _store_instance


__all__ = [
    "LogRecord",
    "UsageRecord",
    "CampaignStore",
    "get_campaign_store",
]
