"""Assignee and worklog storage."""

import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime

from models import Assignee, WorklogEntry

# Seed roster: (assignee_id, group)
PRECONFIGURED_ASSIGNEES = [
    # Group PJ
    ("6310531bea661fd37d4f042a", "PJ"),
    ("6172d230bcb57400683c2b26", "PJ"),
    ("712020:310bd121-4bb2-4f01-8b57-714904f5173b", "PJ"),
    ("712020:5250aaaa-d837-4a01-b4de-02c39ab1d798", "PJ"),
    ("712020:e3b7ede2-e7a1-49f9-b0f0-936feef4e3a7", "PJ"),
    ("712020:02822ff5-fc9b-44cf-b689-23f485aa21e7", "PJ"),
    # Group AG
    ("5fcde79ffee793007501bfd0", "AG"),
    ("712020:41db7dd0-6a8f-4cb2-b2f7-eb561d8c7ad4", "AG"),
    ("63f328c0e2c4c692c976d233", "AG"),
    ("712020:8a12e762-834f-4275-978d-abfc6c054b91", "AG"),
    ("712020:91daf228-75c7-4065-83a4-868cc5c38db5", "AG"),
    ("712020:40f4f0e6-1ff5-41b4-a503-056203b8bd3f", "AG"),
    ("712020:7666dbdf-2547-4378-ad51-49d1e1ae0404", "AG"),
    # Group LOS
    ("5e6b6d87fb668c0ce7ae3d9c", "LOS"),
    ("5e33e03a9029c30ca0bcb575", "LOS"),
    ("63f328c04c355259db9bcb77", "LOS"),
    ("712020:26e66222-0759-4f5c-9f50-2ec08dc0a2ef", "LOS"),
    ("712020:57691069-7afa-4907-9dca-fc5607364cf5", "LOS"),
    ("62c7d9c4e16ddfe82be0a873", "LOS"),
    ("712020:161e10b1-00f2-41ca-901e-d353513bfd0a", "LOS"),
    ("62f3616dd49df231b629d715", "LOS"),
    ("712020:6fd6f338-fcfe-42e9-8438-abb270461897", "LOS"),
    ("712020:a65ab84d-ded3-4d2d-836b-00920f33ab25", "LOS"),
]


class DuplicateAssigneeError(Exception):
    """An active assignee with the same id already exists."""


class Storage(ABC):
    """Storage interface used by the fetch job and the dashboard."""

    # Assignees

    @abstractmethod
    def get_assignees(self) -> list[Assignee]:
        """Active assignees only."""

    @abstractmethod
    def get_assignee(self, assignee_id: str) -> Assignee | None:
        """Look up one assignee, active or not."""

    @abstractmethod
    def add_assignee(
        self,
        assignee_id: str,
        group: str | None = None,
        name: str | None = None,
        email: str | None = None,
        is_preconfigured: bool = False,
        is_active: bool = True,
    ) -> Assignee:
        ...

    @abstractmethod
    def remove_assignee(self, assignee_id: str) -> None:
        ...

    @abstractmethod
    def update_assignee_info(self, assignee_id: str, name: str | None, email: str | None) -> Assignee:
        ...

    # Worklog entries

    @abstractmethod
    def get_worklog_entries(self, worklog_date: str | None = None) -> list[WorklogEntry]:
        ...

    @abstractmethod
    def save_worklog_entries(self, entries: list[WorklogEntry]) -> list[WorklogEntry]:
        ...

    @abstractmethod
    def clear_worklog_entries_for_date(self, worklog_date: str) -> None:
        ...

    @abstractmethod
    def replace_worklog_entries(
        self, worklog_date: str, entries: list[WorklogEntry]
    ) -> list[WorklogEntry]:
        """Clear a date and save its new entries as one step."""


class MemoryStorage(Storage):
    """In-memory store, seeded with the preconfigured roster.

    Request threads read while the scheduler thread writes, so every
    operation takes the same lock.
    """

    def __init__(self, preconfigured: list[tuple[str, str]] | None = None):
        self._lock = threading.RLock()
        self._assignees: dict[str, Assignee] = {}
        self._worklog_entries: dict[str, WorklogEntry] = {}

        seed = PRECONFIGURED_ASSIGNEES if preconfigured is None else preconfigured
        for assignee_id, group in seed:
            self._assignees[assignee_id] = Assignee(
                id=f"preconfigured-{assignee_id}",
                assignee_id=assignee_id,
                group=group,
                is_preconfigured=True,
                is_active=True,
            )

    def get_assignees(self) -> list[Assignee]:
        with self._lock:
            return [replace(a) for a in self._assignees.values() if a.is_active]

    def get_assignee(self, assignee_id: str) -> Assignee | None:
        with self._lock:
            assignee = self._assignees.get(assignee_id)
            return replace(assignee) if assignee else None

    def add_assignee(
        self,
        assignee_id: str,
        group: str | None = None,
        name: str | None = None,
        email: str | None = None,
        is_preconfigured: bool = False,
        is_active: bool = True,
    ) -> Assignee:
        with self._lock:
            existing = self._assignees.get(assignee_id)
            if existing and existing.is_active:
                raise DuplicateAssigneeError("Assignee already exists")

            assignee = Assignee(
                id=str(uuid.uuid4()),
                assignee_id=assignee_id,
                name=name or None,
                email=email or None,
                group=group or None,
                is_preconfigured=bool(is_preconfigured),
                is_active=is_active is not False,
            )
            self._assignees[assignee_id] = assignee
            return replace(assignee)

    def remove_assignee(self, assignee_id: str) -> None:
        with self._lock:
            assignee = self._assignees.get(assignee_id)
            if assignee and not assignee.is_preconfigured:
                self._assignees[assignee_id] = replace(assignee, is_active=False)

    def update_assignee_info(self, assignee_id: str, name: str | None, email: str | None) -> Assignee:
        with self._lock:
            assignee = self._assignees.get(assignee_id)
            if assignee is None:
                raise KeyError(f"Assignee not found: {assignee_id}")
            updated = replace(assignee, name=name, email=email)
            self._assignees[assignee_id] = updated
            return replace(updated)

    def get_worklog_entries(self, worklog_date: str | None = None) -> list[WorklogEntry]:
        with self._lock:
            entries = list(self._worklog_entries.values())
        if worklog_date:
            return [e for e in entries if e.worklog_date == worklog_date]
        return entries

    def save_worklog_entries(self, entries: list[WorklogEntry]) -> list[WorklogEntry]:
        saved = []
        with self._lock:
            for entry in entries:
                stored = replace(entry, id=str(uuid.uuid4()), created_at=datetime.now())
                self._worklog_entries[stored.id] = stored
                saved.append(stored)
        return saved

    def clear_worklog_entries_for_date(self, worklog_date: str) -> None:
        with self._lock:
            stale = [i for i, e in self._worklog_entries.items() if e.worklog_date == worklog_date]
            for entry_id in stale:
                del self._worklog_entries[entry_id]

    def replace_worklog_entries(
        self, worklog_date: str, entries: list[WorklogEntry]
    ) -> list[WorklogEntry]:
        with self._lock:
            self.clear_worklog_entries_for_date(worklog_date)
            return self.save_worklog_entries(entries)
