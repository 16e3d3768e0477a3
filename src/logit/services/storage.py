from __future__ import annotations

import json
import logging
import sqlite3
from datetime import date, datetime
from pathlib import Path
from typing import Dict, Mapping, Optional

from logit.models.entities import Assessment, ManualGradeEntry, Semester, Session, Subject
from logit.services.validation import (
    AssessmentPayload,
    GradeEntryPayload,
    SessionPayload,
    WeightsPayload,
    clean_name,
    parse,
    require_category,
    require_new_category,
)

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS semesters (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  name TEXT NOT NULL,
  archived INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS subjects (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  semester_id INTEGER NOT NULL,
  name TEXT NOT NULL,
  assignment_types TEXT NOT NULL DEFAULT '[]',
  grade_weights TEXT NOT NULL DEFAULT '{}',
  FOREIGN KEY(semester_id) REFERENCES semesters(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS sessions (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  semester_id INTEGER NOT NULL,
  subject TEXT NOT NULL,
  start_time TEXT NOT NULL,
  end_time TEXT NOT NULL,
  duration_seconds INTEGER NOT NULL,
  FOREIGN KEY(semester_id) REFERENCES semesters(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS assessments (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  subject_id INTEGER NOT NULL,
  name TEXT NOT NULL,
  type TEXT NOT NULL,
  date TEXT NOT NULL,
  grade TEXT NOT NULL,
  FOREIGN KEY(subject_id) REFERENCES subjects(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS grade_entries (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  subject_id INTEGER NOT NULL,
  name TEXT NOT NULL,
  score REAL NOT NULL,
  total_points REAL NOT NULL,
  category TEXT NOT NULL,
  FOREIGN KEY(subject_id) REFERENCES subjects(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS preferences (
  key TEXT PRIMARY KEY,
  value TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_subjects_semester ON subjects(semester_id);
CREATE INDEX IF NOT EXISTS idx_sessions_semester ON sessions(semester_id, start_time);
CREATE INDEX IF NOT EXISTS idx_assessments_subject ON assessments(subject_id, type);
CREATE INDEX IF NOT EXISTS idx_grade_entries_subject ON grade_entries(subject_id, category);
"""


class StorageError(Exception):
    pass


class NotFoundError(StorageError):
    pass


def _semester(row: sqlite3.Row) -> Semester:
    return Semester(id=int(row["id"]), name=row["name"], archived=bool(row["archived"]))


def _subject(row: sqlite3.Row) -> Subject:
    return Subject(
        id=int(row["id"]),
        semester_id=int(row["semester_id"]),
        name=row["name"],
        assignment_types=tuple(json.loads(row["assignment_types"])),
        grade_weights={k: float(v) for k, v in json.loads(row["grade_weights"]).items()},
    )


def _session(row: sqlite3.Row) -> Session:
    return Session(
        id=int(row["id"]),
        semester_id=int(row["semester_id"]),
        subject=row["subject"],
        start_time=datetime.fromisoformat(row["start_time"]),
        end_time=datetime.fromisoformat(row["end_time"]),
        duration_seconds=int(row["duration_seconds"]),
    )


def _assessment(row: sqlite3.Row) -> Assessment:
    return Assessment(
        id=int(row["id"]),
        subject_id=int(row["subject_id"]),
        name=row["name"],
        type=row["type"],
        date=date.fromisoformat(row["date"]),
        grade=row["grade"],
    )


def _grade_entry(row: sqlite3.Row) -> ManualGradeEntry:
    return ManualGradeEntry(
        id=int(row["id"]),
        subject_id=int(row["subject_id"]),
        name=row["name"],
        score=float(row["score"]),
        total_points=float(row["total_points"]),
        category=row["category"],
    )


class Storage:
    def __init__(self, db_path: str = "data/logit.db") -> None:
        self.db_path = db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys=ON")
        self._init_schema()

    def _init_schema(self) -> None:
        self.conn.executescript(SCHEMA)
        self.conn.commit()

    def close(self) -> None:
        self.conn.close()

    def _fetch_one(self, sql: str, params: tuple, what: str) -> sqlite3.Row:
        row = self.conn.execute(sql, params).fetchone()
        if row is None:
            raise NotFoundError(f"{what} not found")
        return row

    def _change(self, sql: str, params: tuple, what: str) -> None:
        cur = self.conn.execute(sql, params)
        if cur.rowcount == 0:
            self.conn.rollback()
            raise NotFoundError(f"{what} not found")
        self.conn.commit()

    # --- Semesters ---

    def add_semester(self, name: str) -> int:
        cur = self.conn.execute(
            "INSERT INTO semesters(name, archived) VALUES(?, 0)",
            (clean_name(name),),
        )
        self.conn.commit()
        logger.debug("Added semester %s", cur.lastrowid)
        return int(cur.lastrowid)

    def list_semesters(self) -> list[Semester]:
        return [_semester(r) for r in self.conn.execute("SELECT * FROM semesters ORDER BY id")]

    def get_semester(self, semester_id: int) -> Semester:
        return _semester(self._fetch_one("SELECT * FROM semesters WHERE id=?", (semester_id,), "Semester"))

    def rename_semester(self, semester_id: int, name: str) -> None:
        self._change("UPDATE semesters SET name=? WHERE id=?", (clean_name(name), semester_id), "Semester")

    def set_semester_archived(self, semester_id: int, archived: bool) -> None:
        self._change(
            "UPDATE semesters SET archived=? WHERE id=?",
            (1 if archived else 0, semester_id),
            "Semester",
        )

    def delete_semester(self, semester_id: int) -> None:
        self._change("DELETE FROM semesters WHERE id=?", (semester_id,), "Semester")
        logger.info("Deleted semester %s with its classes and sessions", semester_id)

    # --- Subjects ---

    def add_subject(self, semester_id: int, name: str) -> int:
        self.get_semester(semester_id)
        cur = self.conn.execute(
            "INSERT INTO subjects(semester_id, name) VALUES(?, ?)",
            (semester_id, clean_name(name)),
        )
        self.conn.commit()
        logger.debug("Added subject %s to semester %s", cur.lastrowid, semester_id)
        return int(cur.lastrowid)

    def list_subjects(self, semester_id: int) -> list[Subject]:
        cur = self.conn.execute("SELECT * FROM subjects WHERE semester_id=? ORDER BY id", (semester_id,))
        return [_subject(r) for r in cur.fetchall()]

    def get_subject(self, subject_id: int) -> Subject:
        return _subject(self._fetch_one("SELECT * FROM subjects WHERE id=?", (subject_id,), "Subject"))

    def rename_subject(self, subject_id: int, name: str) -> None:
        # Sessions keep the old class name; their time no longer counts for this subject.
        self._change("UPDATE subjects SET name=? WHERE id=?", (clean_name(name), subject_id), "Subject")

    def delete_subject(self, subject_id: int) -> None:
        self._change("DELETE FROM subjects WHERE id=?", (subject_id,), "Subject")

    # --- Categories ---

    def _write_categories(self, subject_id: int, types: list[str], weights: Mapping[str, float]) -> None:
        self.conn.execute(
            "UPDATE subjects SET assignment_types=?, grade_weights=? WHERE id=?",
            (json.dumps(list(types)), json.dumps(dict(weights)), subject_id),
        )

    def add_category(self, subject_id: int, name: str) -> Subject:
        subject = self.get_subject(subject_id)
        new_name = require_new_category(name, subject.assignment_types)
        weights = dict(subject.grade_weights)
        weights[new_name] = 0.0
        self._write_categories(subject_id, [*subject.assignment_types, new_name], weights)
        self.conn.commit()
        return self.get_subject(subject_id)

    def rename_category(self, subject_id: int, old_name: str, new_name: str) -> Subject:
        """Rename a category on the subject, its weights, assessments and grade entries together."""
        subject = self.get_subject(subject_id)
        require_category(old_name, subject.assignment_types)
        new_name = require_new_category(new_name, subject.assignment_types, allow=old_name)
        if new_name == old_name:
            return subject

        types = [new_name if t == old_name else t for t in subject.assignment_types]
        weights = {(new_name if k == old_name else k): v for k, v in subject.grade_weights.items()}

        with self.conn:
            self.conn.execute(
                "UPDATE grade_entries SET category=? WHERE subject_id=? AND category=?",
                (new_name, subject_id, old_name),
            )
            self.conn.execute(
                "UPDATE assessments SET type=? WHERE subject_id=? AND type=?",
                (new_name, subject_id, old_name),
            )
            self._write_categories(subject_id, types, weights)
        logger.info("Renamed category %r to %r on subject %s", old_name, new_name, subject_id)
        return self.get_subject(subject_id)

    def delete_category(self, subject_id: int, name: str) -> Subject:
        subject = self.get_subject(subject_id)
        require_category(name, subject.assignment_types)
        types = [t for t in subject.assignment_types if t != name]
        weights = {k: v for k, v in subject.grade_weights.items() if k != name}

        with self.conn:
            self.conn.execute("DELETE FROM grade_entries WHERE subject_id=? AND category=?", (subject_id, name))
            self.conn.execute("DELETE FROM assessments WHERE subject_id=? AND type=?", (subject_id, name))
            self._write_categories(subject_id, types, weights)
        logger.info("Deleted category %r from subject %s", name, subject_id)
        return self.get_subject(subject_id)

    def set_weights(self, subject_id: int, weights: Mapping[str, float]) -> Subject:
        subject = self.get_subject(subject_id)
        payload = parse(WeightsPayload, weights=dict(weights))
        for key in payload.weights:
            require_category(key, subject.assignment_types)
        self._write_categories(subject_id, list(subject.assignment_types), payload.weights)
        self.conn.commit()
        return self.get_subject(subject_id)

    # --- Sessions ---

    def add_session(self, semester_id: int, subject: str, start_time, end_time) -> int:
        payload = parse(SessionPayload, subject=subject, start_time=start_time, end_time=end_time)
        self.get_semester(semester_id)
        cur = self.conn.execute(
            """INSERT INTO sessions(semester_id, subject, start_time, end_time, duration_seconds)
               VALUES(?,?,?,?,?)""",
            (
                semester_id,
                payload.subject,
                payload.start_time.isoformat(),
                payload.end_time.isoformat(),
                payload.duration_seconds,
            ),
        )
        self.conn.commit()
        logger.debug("Logged %ss for %s", payload.duration_seconds, payload.subject)
        return int(cur.lastrowid)

    def update_session(self, session_id: int, subject: str, start_time, end_time) -> None:
        payload = parse(SessionPayload, subject=subject, start_time=start_time, end_time=end_time)
        self._change(
            """UPDATE sessions SET subject=?, start_time=?, end_time=?, duration_seconds=?
               WHERE id=?""",
            (
                payload.subject,
                payload.start_time.isoformat(),
                payload.end_time.isoformat(),
                payload.duration_seconds,
                session_id,
            ),
            "Session",
        )

    def delete_session(self, session_id: int) -> None:
        self._change("DELETE FROM sessions WHERE id=?", (session_id,), "Session")

    def get_session(self, session_id: int) -> Session:
        return _session(self._fetch_one("SELECT * FROM sessions WHERE id=?", (session_id,), "Session"))

    def list_sessions(self, semester_id: int) -> list[Session]:
        cur = self.conn.execute(
            "SELECT * FROM sessions WHERE semester_id=? ORDER BY start_time DESC, id DESC",
            (semester_id,),
        )
        return [_session(r) for r in cur.fetchall()]

    # --- Assessments ---

    def add_assessment(self, subject_id: int, name: str, type: str, date, grade=None) -> int:
        payload = parse(AssessmentPayload, name=name, type=type, date=date, grade=grade)
        require_category(payload.type, self.get_subject(subject_id).assignment_types)
        cur = self.conn.execute(
            "INSERT INTO assessments(subject_id, name, type, date, grade) VALUES(?,?,?,?,?)",
            (subject_id, payload.name, payload.type, payload.date.isoformat(), payload.grade),
        )
        self.conn.commit()
        return int(cur.lastrowid)

    def update_assessment(self, assessment_id: int, name: str, type: str, date, grade=None) -> None:
        payload = parse(AssessmentPayload, name=name, type=type, date=date, grade=grade)
        current = self.get_assessment(assessment_id)
        require_category(payload.type, self.get_subject(current.subject_id).assignment_types)
        self._change(
            "UPDATE assessments SET name=?, type=?, date=?, grade=? WHERE id=?",
            (payload.name, payload.type, payload.date.isoformat(), payload.grade, assessment_id),
            "Assessment",
        )

    def delete_assessment(self, assessment_id: int) -> None:
        self._change("DELETE FROM assessments WHERE id=?", (assessment_id,), "Assessment")

    def get_assessment(self, assessment_id: int) -> Assessment:
        return _assessment(self._fetch_one("SELECT * FROM assessments WHERE id=?", (assessment_id,), "Assessment"))

    def list_assessments(self, subject_id: int) -> list[Assessment]:
        cur = self.conn.execute("SELECT * FROM assessments WHERE subject_id=? ORDER BY id", (subject_id,))
        return [_assessment(r) for r in cur.fetchall()]

    # --- Manual grade entries ---

    def add_grade_entry(self, subject_id: int, name: str, score, total_points, category: str) -> int:
        payload = parse(GradeEntryPayload, name=name, score=score, total_points=total_points, category=category)
        require_category(payload.category, self.get_subject(subject_id).assignment_types)
        cur = self.conn.execute(
            "INSERT INTO grade_entries(subject_id, name, score, total_points, category) VALUES(?,?,?,?,?)",
            (subject_id, payload.name, payload.score, payload.total_points, payload.category),
        )
        self.conn.commit()
        return int(cur.lastrowid)

    def update_grade_entry(self, entry_id: int, name: str, score, total_points, category: str) -> None:
        payload = parse(GradeEntryPayload, name=name, score=score, total_points=total_points, category=category)
        current = self.get_grade_entry(entry_id)
        require_category(payload.category, self.get_subject(current.subject_id).assignment_types)
        self._change(
            "UPDATE grade_entries SET name=?, score=?, total_points=?, category=? WHERE id=?",
            (payload.name, payload.score, payload.total_points, payload.category, entry_id),
            "Grade entry",
        )

    def delete_grade_entry(self, entry_id: int) -> None:
        self._change("DELETE FROM grade_entries WHERE id=?", (entry_id,), "Grade entry")

    def get_grade_entry(self, entry_id: int) -> ManualGradeEntry:
        return _grade_entry(self._fetch_one("SELECT * FROM grade_entries WHERE id=?", (entry_id,), "Grade entry"))

    def list_grade_entries(self, subject_id: int) -> list[ManualGradeEntry]:
        cur = self.conn.execute("SELECT * FROM grade_entries WHERE subject_id=? ORDER BY id", (subject_id,))
        return [_grade_entry(r) for r in cur.fetchall()]

    # --- Preferences ---

    def load_preferences(self) -> Dict[str, object]:
        return {r["key"]: json.loads(r["value"]) for r in self.conn.execute("SELECT key, value FROM preferences")}

    def save_preferences(self, values: Mapping[str, object]) -> None:
        with self.conn:
            self.conn.executemany(
                """INSERT INTO preferences(key, value) VALUES(?, ?)
                   ON CONFLICT(key) DO UPDATE SET value=excluded.value""",
                [(k, json.dumps(v)) for k, v in values.items()],
            )

    def clear_preferences(self, keys: Optional[list[str]] = None) -> None:
        with self.conn:
            if keys is None:
                self.conn.execute("DELETE FROM preferences")
            else:
                self.conn.executemany("DELETE FROM preferences WHERE key=?", [(k,) for k in keys])
