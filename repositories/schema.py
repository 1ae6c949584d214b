"""
Relational schema for the answer store.

Column names follow the on-disk layout of existing databases, so blobs
written by earlier versions load unchanged and only gain what is missing.
"""

from sqlalchemy import (
    Column,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    text,
)

metadata = MetaData()

question_answers = Table(
    "question_answers",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("question_id", String, nullable=False),
    Column("situation", String, nullable=False),
    Column("answer", Text, nullable=False),
    Column("answered_at", String, nullable=False),
    Column("created_at", String, server_default=text("(datetime('now'))")),
    # Lineage - added after the first release
    Column("intent_id", Integer),
    Column("problem_id", Integer),
    Column("parent_id", Integer),
    Column("cycle_id", Integer),
    Index("idx_question_id", "question_id"),
    Index("idx_situation", "situation"),
    Index("idx_cycle_id", "cycle_id"),
    sqlite_autoincrement=True,
)

cycles = Table(
    "cycles",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("cycle_number", Integer, nullable=False),
    Column("started_at", String, nullable=False),
    Column("completed_at", String),
    Column("status", String, nullable=False, server_default="active"),
    Column("unconscious_entered_at", String),
    Column("unconscious_exited_at", String),
    sqlite_autoincrement=True,
)

transition_counts = Table(
    "transition_counts",
    metadata,
    Column("transition_key", String, primary_key=True),
    Column("count", Integer, nullable=False, server_default="0"),
    Column("last_reset_at", String),
    Column("updated_at", String),
)

cycle_contexts = Table(
    "cycle_contexts",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("target_cycle_id", Integer, nullable=False),
    Column("source_cycle_id", Integer),
    Column("source_answer_id", Integer, nullable=False),
    Column("question_id", String, nullable=False),
    Column("answer_text", Text, nullable=False),
    Column("situation", String, nullable=False),
    Column("added_at", String),
    UniqueConstraint("target_cycle_id", "source_answer_id", name="uq_pick_source"),
    sqlite_autoincrement=True,
)

workflow_states = Table(
    "workflow_states",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("current_situation", String, nullable=False),
    Column("saved_at", String, nullable=False),
    Column("description", Text),
    Column("answer_count", Integer, nullable=False, server_default="0"),
    Column("answers_json", Text, nullable=False),
    sqlite_autoincrement=True,
)

ALL_TABLES = [question_answers, cycles, transition_counts, cycle_contexts, workflow_states]

# ISO-8601 instants stored as text; ordering and window checks compare them
# as strings, so every value must share one format.
TIMESTAMP_COLUMNS = [
    question_answers.c.answered_at,
    cycles.c.started_at,
    cycles.c.completed_at,
    cycles.c.unconscious_entered_at,
    cycles.c.unconscious_exited_at,
    transition_counts.c.last_reset_at,
    transition_counts.c.updated_at,
    cycle_contexts.c.added_at,
    workflow_states.c.saved_at,
]
