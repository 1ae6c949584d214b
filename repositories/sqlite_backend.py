"""
SQLite backend - the whole database lives in memory and is persisted as one blob.

Every mutation runs inside a single critical section:

    lock -> export before-state -> transaction -> export -> write target -> unlock

If writing the target fails, the in-memory database is rolled back to the
before-state so callers never observe a write that was not persisted.
"""

import json
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import and_, create_engine, delete, func, inspect, insert, or_, select, text, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from config import (
    BOOLEAN_VALUES,
    INTENT_MARKER,
    INTENT_SITUATION,
    PROBLEM_MARKER,
    PROBLEM_SITUATION,
)
from models import (
    Answer,
    Cycle,
    CyclePick,
    CycleStatus,
    CycleSummary,
    LinkOverrides,
    Snapshot,
    SnapshotDetails,
    TransitionCounter,
    UnconsciousPeriod,
    normalize_timestamp,
    to_answer_text,
)
from .base import (
    AnswerRepository,
    CounterRepository,
    CycleRepository,
    PickRepository,
    Repository,
    SnapshotRepository,
)
from .errors import MigrationFailure, NotFound, StoreUnavailable
from .schema import (
    ALL_TABLES,
    TIMESTAMP_COLUMNS,
    cycle_contexts,
    cycles,
    metadata,
    question_answers,
    transition_counts,
    workflow_states,
)
from .transport import ByteStore, FileByteStore

qa = question_answers

NEWEST_FIRST = (qa.c.answered_at.desc(), qa.c.id.desc())
OLDEST_FIRST = (qa.c.answered_at.asc(), qa.c.id.asc())


# === Row helpers (operate on an open connection) ===

def _answers(conn, stmt) -> list[Answer]:
    return [Answer.from_row(row) for row in conn.execute(stmt)]


def _cycle(conn, cycle_id: int) -> Optional[Cycle]:
    row = conn.execute(select(cycles).where(cycles.c.id == cycle_id)).first()
    return Cycle.from_row(row) if row else None


def _require_cycle(conn, cycle_id: int) -> Cycle:
    cycle = _cycle(conn, cycle_id)
    if cycle is None:
        raise NotFound(f"Cycle {cycle_id} not found")
    return cycle


def _active_cycle(conn) -> Optional[Cycle]:
    row = conn.execute(
        select(cycles)
        .where(cycles.c.status == CycleStatus.ACTIVE.value)
        .order_by(cycles.c.cycle_number.desc())
        .limit(1)
    ).first()
    return Cycle.from_row(row) if row else None


def _latest_marked(conn, situation: str, marker: str) -> Optional[int]:
    """Id of the newest non-boolean answer in a situation whose question id carries a marker."""
    return conn.execute(
        select(qa.c.id)
        .where(
            qa.c.situation == situation,
            qa.c.question_id.contains(marker, autoescape=True),
            qa.c.answer.not_in(BOOLEAN_VALUES),
        )
        .order_by(*NEWEST_FIRST)
        .limit(1)
    ).scalar()


def _cycle_scope(conn, cycle_id: int):
    """
    Membership condition for one cycle.

    Rows written before the cycle column existed have cycle_id NULL; they
    belong to the cycle whose time window contains them.
    """
    scope = qa.c.cycle_id == cycle_id
    cycle = _cycle(conn, cycle_id)
    if cycle is None:
        return scope

    window = and_(qa.c.cycle_id.is_(None), qa.c.answered_at >= cycle.started_at)
    if cycle.completed_at:
        window = and_(window, qa.c.answered_at <= cycle.completed_at)
    return or_(scope, window)


def _normalize_timestamps(conn) -> list[str]:
    """Rewrite instants stored in other ISO-8601 forms, such as a trailing "Z"."""
    changes = []
    for column in TIMESTAMP_COLUMNS:
        legacy = conn.execute(select(column).distinct().where(column.like("%Z"))).scalars().all()
        rewritten = 0
        for value in legacy:
            try:
                normalized = normalize_timestamp(value)
            except ValueError:
                print(f"[WARN] Unparseable timestamp {value!r} in {column.table.name}.{column.name}")
                continue
            conn.execute(update(column.table).where(column == value).values({column.name: normalized}))
            rewritten += 1
        if rewritten:
            changes.append(f"timestamps {column.table.name}.{column.name}")
    return changes


def _cycle_summary(conn, cycle: Cycle) -> CycleSummary:
    answers = _answers(conn, select(qa).where(qa.c.cycle_id == cycle.id).order_by(*OLDEST_FIRST))
    return CycleSummary(cycle=cycle, answers=answers)


# === Sub-repositories ===

class SqlAnswerRepository(AnswerRepository):
    """Answer queries. Ordering is by answered_at with id as tiebreaker."""

    def __init__(self, store: "AnswerStore"):
        self._store = store

    def get(self, id: int) -> Optional[Answer]:
        with self._store.reading() as conn:
            row = conn.execute(select(qa).where(qa.c.id == id)).first()
            return Answer.from_row(row) if row else None

    def latest_by_question(self, question_id: str) -> Optional[Answer]:
        with self._store.reading() as conn:
            row = conn.execute(
                select(qa).where(qa.c.question_id == question_id).order_by(*NEWEST_FIRST).limit(1)
            ).first()
            return Answer.from_row(row) if row else None

    def by_question(self, question_id: str) -> list[Answer]:
        with self._store.reading() as conn:
            return _answers(conn, select(qa).where(qa.c.question_id == question_id).order_by(*NEWEST_FIRST))

    def by_question_in_cycle(self, question_id: str, cycle_id: int) -> list[Answer]:
        with self._store.reading() as conn:
            return _answers(
                conn,
                select(qa)
                .where(qa.c.question_id == question_id, qa.c.cycle_id == cycle_id)
                .order_by(*OLDEST_FIRST),
            )

    def by_situation(self, situation: str, cycle_id: int = None, ascending: bool = False) -> list[Answer]:
        with self._store.reading() as conn:
            stmt = select(qa).where(qa.c.situation == situation)
            if cycle_id is not None:
                stmt = stmt.where(_cycle_scope(conn, cycle_id))
            return _answers(conn, stmt.order_by(*(OLDEST_FIRST if ascending else NEWEST_FIRST)))

    def by_intent(self, intent_id: int) -> list[Answer]:
        with self._store.reading() as conn:
            return _answers(conn, select(qa).where(qa.c.intent_id == intent_id).order_by(*OLDEST_FIRST))

    def by_problem(self, problem_id: int) -> list[Answer]:
        with self._store.reading() as conn:
            return _answers(conn, select(qa).where(qa.c.problem_id == problem_id).order_by(*OLDEST_FIRST))

    def by_cycle(self, cycle_id: int) -> list[Answer]:
        with self._store.reading() as conn:
            return _answers(conn, select(qa).where(qa.c.cycle_id == cycle_id).order_by(*OLDEST_FIRST))

    def latest_marked(self, situation: str, marker: str) -> Optional[int]:
        with self._store.reading() as conn:
            return _latest_marked(conn, situation, marker)

    def count(self) -> int:
        with self._store.reading() as conn:
            return conn.execute(select(func.count()).select_from(qa)).scalar()


class SqlCycleRepository(CycleRepository):
    """Cycle lifecycle. At most one cycle is active at a time."""

    def __init__(self, store: "AnswerStore"):
        self._store = store

    def _close_active(self, conn, now: str, keep: int = None) -> None:
        stmt = update(cycles).where(cycles.c.status == CycleStatus.ACTIVE.value)
        if keep is not None:
            stmt = stmt.where(cycles.c.id != keep)
        conn.execute(stmt.values(status=CycleStatus.COMPLETED.value, completed_at=now))

    def create(self) -> Cycle:
        with self._store.writing() as conn:
            now = self._store.stamp()
            self._close_active(conn, now)
            number = conn.execute(select(func.coalesce(func.max(cycles.c.cycle_number), 0))).scalar() + 1
            result = conn.execute(
                insert(cycles).values(
                    cycle_number=number,
                    started_at=now,
                    status=CycleStatus.ACTIVE.value,
                )
            )
            cycle = _cycle(conn, result.inserted_primary_key[0])
        print(f"[AnswerStore] Started cycle #{cycle.cycle_number}")
        return cycle

    def complete(self, id: int) -> Cycle:
        with self._store.writing() as conn:
            cycle = _require_cycle(conn, id)
            if cycle.is_active:
                conn.execute(
                    update(cycles)
                    .where(cycles.c.id == id)
                    .values(status=CycleStatus.COMPLETED.value, completed_at=self._store.stamp())
                )
            return _cycle(conn, id)

    def activate(self, id: int) -> Cycle:
        with self._store.writing() as conn:
            _require_cycle(conn, id)
            self._close_active(conn, self._store.stamp(), keep=id)
            conn.execute(
                update(cycles)
                .where(cycles.c.id == id)
                .values(status=CycleStatus.ACTIVE.value, completed_at=None)
            )
            return _cycle(conn, id)

    def get(self, id: int) -> Optional[Cycle]:
        with self._store.reading() as conn:
            return _cycle(conn, id)

    def active(self) -> Optional[Cycle]:
        with self._store.reading() as conn:
            return _active_cycle(conn)

    def previous_completed(self) -> Optional[CycleSummary]:
        with self._store.reading() as conn:
            row = conn.execute(
                select(cycles)
                .where(cycles.c.status == CycleStatus.COMPLETED.value)
                .order_by(cycles.c.cycle_number.desc())
                .limit(1)
            ).first()
            if row is None:
                return None
            return _cycle_summary(conn, Cycle.from_row(row))

    def previous_cycles_answers(self, exclude_cycle_id: int = None) -> list[CycleSummary]:
        with self._store.reading() as conn:
            stmt = select(cycles).order_by(cycles.c.cycle_number.desc())
            if exclude_cycle_id is not None:
                stmt = stmt.where(cycles.c.id != exclude_cycle_id)
            return [_cycle_summary(conn, Cycle.from_row(row)) for row in conn.execute(stmt).all()]

    def record_unconscious_entry(self, id: int) -> Cycle:
        with self._store.writing() as conn:
            _require_cycle(conn, id)
            conn.execute(
                update(cycles)
                .where(cycles.c.id == id)
                .values(unconscious_entered_at=self._store.stamp(), unconscious_exited_at=None)
            )
            return _cycle(conn, id)

    def record_unconscious_exit(self, id: int) -> Cycle:
        with self._store.writing() as conn:
            _require_cycle(conn, id)
            conn.execute(
                update(cycles).where(cycles.c.id == id).values(unconscious_exited_at=self._store.stamp())
            )
            return _cycle(conn, id)

    def unconscious_periods(self) -> list[UnconsciousPeriod]:
        with self._store.reading() as conn:
            rows = conn.execute(
                select(cycles)
                .where(cycles.c.unconscious_entered_at.is_not(None))
                .order_by(cycles.c.cycle_number.asc())
            )
            return [
                UnconsciousPeriod(
                    cycle_id=row.id,
                    cycle_number=row.cycle_number,
                    entered_at=row.unconscious_entered_at,
                    exited_at=row.unconscious_exited_at,
                )
                for row in rows
            ]

    # Defined last: the name shadows the builtin for annotations below it.
    def list(self) -> list[Cycle]:
        with self._store.reading() as conn:
            rows = conn.execute(select(cycles).order_by(cycles.c.cycle_number.desc()))
            return [Cycle.from_row(row) for row in rows]


class SqlCounterRepository(CounterRepository):
    """Transition counters, upserted by key."""

    def __init__(self, store: "AnswerStore"):
        self._store = store

    def get(self, from_situation: str, to_situation: str) -> int:
        record = self.get_record(from_situation, to_situation)
        return record.count if record else 0

    def get_record(self, from_situation: str, to_situation: str) -> Optional[TransitionCounter]:
        key = TransitionCounter.key_for(from_situation, to_situation)
        with self._store.reading() as conn:
            row = conn.execute(
                select(transition_counts).where(transition_counts.c.transition_key == key)
            ).first()
            return TransitionCounter.from_row(row) if row else None

    def increment(self, from_situation: str, to_situation: str) -> int:
        key = TransitionCounter.key_for(from_situation, to_situation)
        with self._store.writing() as conn:
            now = self._store.stamp()
            stmt = sqlite_insert(transition_counts).values(transition_key=key, count=1, updated_at=now)
            conn.execute(
                stmt.on_conflict_do_update(
                    index_elements=[transition_counts.c.transition_key],
                    set_={"count": transition_counts.c.count + 1, "updated_at": now},
                )
            )
            return conn.execute(
                select(transition_counts.c.count).where(transition_counts.c.transition_key == key)
            ).scalar()

    def reset(self, from_situation: str, to_situation: str) -> None:
        key = TransitionCounter.key_for(from_situation, to_situation)
        with self._store.writing() as conn:
            now = self._store.stamp()
            stmt = sqlite_insert(transition_counts).values(
                transition_key=key, count=0, last_reset_at=now, updated_at=now
            )
            conn.execute(
                stmt.on_conflict_do_update(
                    index_elements=[transition_counts.c.transition_key],
                    set_={"count": 0, "last_reset_at": now, "updated_at": now},
                )
            )


class SqlSnapshotRepository(SnapshotRepository):
    """Saved workflow states. The payload is every answer row, verbatim."""

    _META = (
        workflow_states.c.id,
        workflow_states.c.current_situation.label("situation"),
        workflow_states.c.saved_at,
        workflow_states.c.description,
        workflow_states.c.answer_count,
    )

    def __init__(self, store: "AnswerStore"):
        self._store = store

    def save(self, situation: str, description: str = None) -> int:
        with self._store.writing() as conn:
            rows = [dict(row._mapping) for row in conn.execute(select(qa).order_by(qa.c.id))]
            result = conn.execute(
                insert(workflow_states).values(
                    current_situation=situation,
                    saved_at=self._store.stamp(),
                    description=description,
                    answer_count=len(rows),
                    answers_json=json.dumps(rows),
                )
            )
            return result.inserted_primary_key[0]

    def restore(self, id: int) -> str:
        with self._store.writing() as conn:
            row = conn.execute(
                select(workflow_states.c.current_situation, workflow_states.c.answers_json)
                .where(workflow_states.c.id == id)
            ).first()
            if row is None:
                raise NotFound(f"Snapshot {id} not found")

            columns = set(qa.c.keys())
            answers = [
                {k: v for k, v in answer.items() if k in columns}
                for answer in json.loads(row.answers_json)
            ]
            for answer in answers:
                if (answer.get("answered_at") or "").endswith("Z"):
                    answer["answered_at"] = normalize_timestamp(answer["answered_at"])
            conn.execute(delete(qa))
            if answers:
                conn.execute(insert(qa), answers)
        print(f"[AnswerStore] Restored snapshot {id} ({len(answers)} answers)")
        return row.current_situation

    def list(self) -> list[Snapshot]:
        with self._store.reading() as conn:
            rows = conn.execute(
                select(*self._META).order_by(workflow_states.c.saved_at.desc(), workflow_states.c.id.desc())
            )
            return [Snapshot.from_row(row) for row in rows]

    def delete(self, id: int) -> bool:
        with self._store.writing() as conn:
            result = conn.execute(delete(workflow_states).where(workflow_states.c.id == id))
            return result.rowcount > 0

    def details(self, id: int) -> Optional[SnapshotDetails]:
        with self._store.reading() as conn:
            row = conn.execute(
                select(*self._META, func.length(workflow_states.c.answers_json).label("payload_size"))
                .where(workflow_states.c.id == id)
            ).first()
            if row is None:
                return None
            return SnapshotDetails(
                snapshot=Snapshot.from_row(row),
                answer_count=row.answer_count,
                payload_size=row.payload_size,
            )


class SqlPickRepository(PickRepository):
    """Cross-cycle context picks. One pick per source answer per target cycle."""

    def __init__(self, store: "AnswerStore"):
        self._store = store

    def add(self, target_cycle_id: int, source_answer: Answer) -> int:
        with self._store.writing() as conn:
            existing = conn.execute(
                select(cycle_contexts.c.id).where(
                    cycle_contexts.c.target_cycle_id == target_cycle_id,
                    cycle_contexts.c.source_answer_id == source_answer.id,
                )
            ).scalar()
            if existing is not None:
                return existing

            result = conn.execute(
                insert(cycle_contexts).values(
                    target_cycle_id=target_cycle_id,
                    source_cycle_id=source_answer.cycle_id,
                    source_answer_id=source_answer.id,
                    question_id=source_answer.question_id,
                    answer_text=source_answer.value,
                    situation=source_answer.situation,
                    added_at=self._store.stamp(),
                )
            )
            return result.inserted_primary_key[0]

    def remove(self, id: int) -> bool:
        with self._store.writing() as conn:
            return conn.execute(delete(cycle_contexts).where(cycle_contexts.c.id == id)).rowcount > 0

    def for_cycle(self, cycle_id: int) -> list[CyclePick]:
        with self._store.reading() as conn:
            rows = conn.execute(
                select(cycle_contexts)
                .where(cycle_contexts.c.target_cycle_id == cycle_id)
                .order_by(cycle_contexts.c.added_at.asc(), cycle_contexts.c.id.asc())
            )
            return [CyclePick.from_row(row) for row in rows]


# === Aggregate ===

class AnswerStore(Repository):
    """
    The answer store.

    Args:
        transport: primary persistence target (byte-store server or a file).
        cache: local file cache, used when the transport is unreachable.

    With neither, the store is purely in memory.
    """

    MODE_MEMORY = "memory"
    MODE_LOCAL = "local"
    MODE_REMOTE = "remote"
    MODE_OFFLINE = "offline"

    def __init__(self, transport: ByteStore = None, cache: FileByteStore = None):
        self._transport = transport
        self._cache = cache
        self._lock = threading.RLock()

        self._conn = sqlite3.connect(":memory:", check_same_thread=False)
        self._engine = create_engine("sqlite://", creator=lambda: self._conn, poolclass=StaticPool)

        self._initialized = False
        self._migration_error: Optional[str] = None
        self._mode = self.MODE_MEMORY
        self._read_only = False
        self._remote_location: Optional[str] = None
        self._last_stamp: Optional[datetime] = None

        self._answers = SqlAnswerRepository(self)
        self._cycles = SqlCycleRepository(self)
        self._counters = SqlCounterRepository(self)
        self._snapshots = SqlSnapshotRepository(self)
        self._picks = SqlPickRepository(self)

    @property
    def answers(self) -> SqlAnswerRepository:
        return self._answers

    @property
    def cycles(self) -> SqlCycleRepository:
        return self._cycles

    @property
    def counters(self) -> SqlCounterRepository:
        return self._counters

    @property
    def snapshots(self) -> SqlSnapshotRepository:
        return self._snapshots

    @property
    def picks(self) -> SqlPickRepository:
        return self._picks

    @property
    def mode(self) -> str:
        return self._mode

    @property
    def read_only(self) -> bool:
        return self._read_only

    # === Lifecycle ===

    def initialize(self) -> None:
        with self._lock:
            if self._initialized and self._migration_error is None:
                return

            blob = self._load()
            if blob:
                self._conn.deserialize(blob)

            try:
                changes = self._migrate_schema()
            except MigrationFailure as e:
                self._migration_error = str(e)
                self._initialized = True
                raise
            self._migration_error = None
            self._initialized = True

            if (changes or not blob) and not self._read_only:
                self._persist(self._conn.serialize())

        print(f"[AnswerStore] Ready ({self._mode}{', read-only' if self._read_only else ''})")

    def migrate(self) -> list[str]:
        """Add any missing tables and columns. Returns what was added."""
        with self._lock:
            try:
                changes = self._migrate_schema()
            except MigrationFailure as e:
                self._migration_error = str(e)
                raise
            self._migration_error = None
            if changes and not self._read_only:
                self._persist(self._conn.serialize())
            return changes

    def close(self) -> None:
        self._engine.dispose()
        self._conn.close()

    def _load(self) -> Optional[bytes]:
        """Pick the persistence mode and read the blob it points at."""
        self._read_only = False
        self._remote_location = None

        if self._transport is None:
            if self._cache is None:
                self._mode = self.MODE_MEMORY
                return None
            self._mode = self.MODE_LOCAL
            return self._cache.read()

        if self._transport.probe():
            location = self._transport.get_configured_location()
            if location:
                self._mode = self.MODE_REMOTE
                self._remote_location = location
                return self._transport.read()
            self._mode = self.MODE_LOCAL if self._cache else self.MODE_MEMORY
            return self._cache.read() if self._cache else None

        if self._cache is not None and self._cache.has_data():
            mirrored = self._cache.mirrored_location()
            if mirrored:
                print(f"[WARN] Byte-store unreachable; opening cached copy of {mirrored} read-only")
                self._mode = self.MODE_OFFLINE
                self._read_only = True
                self._remote_location = mirrored
            else:
                print("[WARN] Byte-store unreachable; using local cache")
                self._mode = self.MODE_LOCAL
            return self._cache.read()

        raise StoreUnavailable("Byte-store unreachable and no local cache")

    def _migrate_schema(self) -> list[str]:
        changes = []
        try:
            inspector = inspect(self._engine)
            existing = set(inspector.get_table_names())

            missing = [t for t in ALL_TABLES if t.name not in existing]
            if missing:
                metadata.create_all(self._engine, tables=missing)
                changes.extend(f"table {t.name}" for t in missing)

            with self._engine.begin() as conn:
                for table in ALL_TABLES:
                    if table.name not in existing:
                        continue
                    present = {c["name"] for c in inspector.get_columns(table.name)}
                    for column in table.columns:
                        if column.name in present:
                            continue
                        ddl = column.type.compile(dialect=self._engine.dialect)
                        conn.execute(text(f"ALTER TABLE {table.name} ADD COLUMN {column.name} {ddl}"))
                        changes.append(f"column {table.name}.{column.name}")
                    for index in table.indexes:
                        index.create(conn, checkfirst=True)

            with self._engine.begin() as conn:
                changes.extend(_normalize_timestamps(conn))
        except (SQLAlchemyError, sqlite3.DatabaseError) as e:
            raise MigrationFailure(f"Schema migration failed: {e}") from e

        if changes:
            print(f"[AnswerStore] Migrated: {', '.join(changes)}")
        return changes

    # === Critical sections ===

    def _ensure_ready(self) -> None:
        if not self._initialized:
            self.initialize()

    @contextmanager
    def reading(self):
        """Connection for read-only queries."""
        self._ensure_ready()
        with self._lock:
            with self._engine.connect() as conn:
                yield conn

    @contextmanager
    def writing(self):
        """
        Transaction whose result is persisted before the lock is released.

        On any failure, including the persist step, the database reverts to
        its state before the transaction.
        """
        self._ensure_ready()
        with self._lock:
            self._check_writable()
            before = self._conn.serialize()
            try:
                with self._engine.begin() as conn:
                    yield conn
                self._persist(self._conn.serialize())
            except BaseException:
                self._conn.deserialize(before)
                raise

    def _check_writable(self) -> None:
        if self._migration_error is not None:
            raise MigrationFailure(f"Store refuses writes until re-initialized: {self._migration_error}")
        if self._read_only:
            raise StoreUnavailable(
                f"Byte-store unreachable; {self._remote_location} is open read-only from cache"
            )

    def _persist(self, blob: bytes) -> None:
        if self._mode == self.MODE_REMOTE:
            if not self._transport.write(blob):
                raise StoreUnavailable("Byte-store refused the write (no location configured)")
            self._mirror(blob, self._remote_location)
        elif self._mode == self.MODE_LOCAL:
            self._cache.write(blob)
            self._cache.set_mirrored_location(None)

    def _mirror(self, blob: bytes, location: Optional[str]) -> None:
        if self._cache is None:
            return
        try:
            self._cache.write(blob)
            self._cache.set_mirrored_location(location)
        except OSError as e:
            print(f"[WARN] Could not update local cache: {e}")

    def stamp(self) -> str:
        """Strictly increasing ISO-8601 UTC timestamp."""
        with self._lock:
            now = datetime.now(timezone.utc)
            if self._last_stamp is not None and now <= self._last_stamp:
                now = self._last_stamp + timedelta(microseconds=1)
            self._last_stamp = now
            return now.isoformat(timespec="microseconds")

    # === Answers ===

    def save_answer(
        self,
        question_id: str,
        situation: str,
        value,
        answered_at: str = None,
        overrides: LinkOverrides = None,
    ) -> int:
        explicit = overrides.explicit() if overrides else {}
        is_intent = situation == INTENT_SITUATION and INTENT_MARKER in question_id
        is_problem = situation == PROBLEM_SITUATION and PROBLEM_MARKER in question_id

        with self.writing() as conn:
            if "intent_id" in explicit:
                intent_id = explicit["intent_id"]
            else:
                intent_id = _latest_marked(conn, INTENT_SITUATION, INTENT_MARKER)
            if "problem_id" in explicit:
                problem_id = explicit["problem_id"]
            else:
                problem_id = _latest_marked(conn, PROBLEM_SITUATION, PROBLEM_MARKER)

            # An intent is not linked to anything; a problem is linked to its intent only
            if is_intent:
                intent_id = None
                problem_id = None
            elif is_problem:
                problem_id = None

            if "cycle_id" in explicit:
                cycle_id = explicit["cycle_id"]
            else:
                active = _active_cycle(conn)
                cycle_id = active.id if active else None

            result = conn.execute(
                insert(qa).values(
                    question_id=question_id,
                    situation=situation,
                    answer=to_answer_text(value),
                    answered_at=normalize_timestamp(answered_at) if answered_at else self.stamp(),
                    intent_id=intent_id,
                    problem_id=problem_id,
                    parent_id=explicit.get("parent_id"),
                    cycle_id=cycle_id,
                )
            )
            return result.inserted_primary_key[0]

    # === Whole store ===

    def export_bytes(self) -> bytes:
        self._ensure_ready()
        with self._lock:
            return self._conn.serialize()

    def import_bytes(self, blob: bytes) -> list[str]:
        """Replace the whole database with a blob, then bring its schema up to date."""
        if not blob:
            raise ValueError("Empty database file")
        self._ensure_ready()
        with self._lock:
            self._check_writable()
            before = self._conn.serialize()
            try:
                self._conn.deserialize(blob)
                changes = self._migrate_schema()
                self._persist(self._conn.serialize())
            except (MigrationFailure, sqlite3.DatabaseError) as e:
                self._conn.deserialize(before)
                raise ValueError(f"Not a usable database file: {e}") from e
            except BaseException:
                self._conn.deserialize(before)
                raise
        print(f"[AnswerStore] Imported database ({len(blob)} bytes)")
        return changes

    def clear_all(self) -> None:
        with self.writing() as conn:
            for table in ALL_TABLES:
                conn.execute(delete(table))
        print("[AnswerStore] Cleared all data")

    def info(self) -> dict:
        with self.reading() as conn:
            counts = {
                table.name: conn.execute(select(func.count()).select_from(table)).scalar()
                for table in ALL_TABLES
            }
        if self._mode in (self.MODE_REMOTE, self.MODE_OFFLINE):
            location = self._remote_location
        elif self._mode == self.MODE_LOCAL:
            location = str(self._cache.path)
        else:
            location = None
        return {
            "mode": self._mode,
            "read_only": self._read_only,
            "location": location,
            "counts": counts,
        }

    def set_location(self, path: str) -> str:
        """
        Point the transport at a new location.

        Existing data there is loaded; otherwise the current database is
        written there.
        """
        if self._transport is None:
            raise ValueError("No byte-store transport configured")
        self._ensure_ready()
        with self._lock:
            location = self._transport.set_configured_location(path)
            blob = self._transport.read()
            if blob:
                before = self._conn.serialize()
                try:
                    self._conn.deserialize(blob)
                    self._migrate_schema()
                except MigrationFailure:
                    self._conn.deserialize(before)
                    raise
                blob = self._conn.serialize()
            else:
                blob = self._conn.serialize()

            self._mode = self.MODE_REMOTE
            self._read_only = False
            self._remote_location = location
            self._migration_error = None
            self._persist(blob)
        print(f"[AnswerStore] Location set: {location}")
        return location

    def clear_location(self) -> None:
        if self._transport is None:
            return
        with self._lock:
            self._transport.clear_configured_location()
            self._remote_location = None
            self._read_only = False
            self._mode = self.MODE_LOCAL if self._cache else self.MODE_MEMORY
            if self._initialized:
                self._persist(self._conn.serialize())
        print("[AnswerStore] Location cleared")
