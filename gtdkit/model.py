"""Task model: statuses, contexts, dates, tasks and the user configuration."""

from __future__ import annotations

import base64
import json
import os
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from termcolor import colored

CONFIG_FILE_NAME = ".gtd.json"

_WHITESPACE = re.compile(r"\s+")
_STATUS_RE = re.compile(r"(@todo|@wip|@review|@week|@month)")
_CONTEXT_RE = re.compile(r"(#x[A-Za-z0-9_]{1,})+")
_DATE_RE = re.compile(r"(@[d,s,b,v][0-9]{8})")
_ANY_RE = re.compile(
    r"(#x[A-Za-z0-9]{1,})|(@[d,s,b,v][0-9]{8})|@todo|@wip|@review|@week|@month"
)


def _collapse(text: str) -> str:
    return _WHITESPACE.sub(" ", text)


def _str_list(value: Any, key: str) -> list[str] | None:
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise TypeError(f"{key} must be a list of strings")
    return list(value)


def _opt_str(value: Any, key: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError(f"{key} must be a string")
    return value


@dataclass(frozen=True)
class ServerConfig:
    """Where and as whom finished task lists are sent."""

    host: str
    user: str
    psw: str

    def basic_token(self) -> str:
        """Return the credentials for HTTP basic authentication."""
        merged = f"{self.user}:{self.psw}".encode("utf-8")
        return base64.urlsafe_b64encode(merged).decode("ascii")

    @classmethod
    def _from_mapping(cls, data: Any) -> ServerConfig:
        if not isinstance(data, dict):
            raise TypeError("server must be an object")
        values = {}
        for key in ("host", "user", "psw"):
            if key not in data:
                raise KeyError(key)
            value = data[key]
            if not isinstance(value, str):
                raise TypeError(f"server.{key} must be a string")
            values[key] = value
        return cls(**values)


@dataclass
class ConfigFile:
    """Settings read from ``~/.gtd.json``; every field is optional."""

    default_dirs: list[Path] | None = None
    inbox_path: str | None = None
    ignore_files: list[str] | None = None
    default_not_context: list[str] | None = None
    server: ServerConfig | None = None

    @classmethod
    def read(cls, home: str | os.PathLike | None = None) -> ConfigFile:
        """Read the config from ``home`` (default ``$HOME``).

        A missing or unreadable file yields an empty config; a file that is
        not valid raises ``ValueError``.
        """
        if home is None:
            home = os.environ.get("HOME")
            if home is None:
                raise RuntimeError("$HOME not defined")
        path = Path(home) / CONFIG_FILE_NAME
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return cls()
        try:
            return cls._from_mapping(json.loads(content))
        except (ValueError, TypeError, KeyError) as exc:
            raise ValueError("Config was not well formatted") from exc

    @classmethod
    def _from_mapping(cls, data: Any) -> ConfigFile:
        if not isinstance(data, dict):
            raise TypeError("config must be an object")
        dirs = _str_list(data.get("default_dirs"), "default_dirs")
        server = data.get("server")
        return cls(
            default_dirs=None if dirs is None else [Path(d) for d in dirs],
            inbox_path=_opt_str(data.get("inbox_path"), "inbox_path"),
            ignore_files=_str_list(data.get("ignore_files"), "ignore_files"),
            default_not_context=_str_list(
                data.get("default_not_context"), "default_not_context"
            ),
            server=None if server is None else ServerConfig._from_mapping(server),
        )


class TaskStatus(Enum):
    """Workflow status of a task, written as an ``@`` tag."""

    NO_STATUS = "@noStatus"
    TODO = "@todo"
    WIP = "@wip"
    REVIEW = "@review"
    WEEK = "@week"
    MONTH = "@month"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_str(cls, text: str) -> TaskStatus:
        """Return the status written as ``text``, e.g. ``@todo``."""
        for status in cls:
            if status.value == text:
                return status
        raise ValueError(f"Unknown status: {text}")

    @classmethod
    def classify(cls, task: str) -> TaskStatus:
        """Return the first status tag found in ``task``, or NO_STATUS."""
        match = _STATUS_RE.search(task)
        return cls.from_str(match.group(0)) if match else cls.NO_STATUS

    @staticmethod
    def remove_status_str(task: str) -> str:
        """Strip status tags from ``task`` and collapse whitespace."""
        return _collapse(_STATUS_RE.sub("", task))

    @classmethod
    def all(cls) -> list[TaskStatus]:
        """All statuses in display order."""
        return [
            cls.WIP,
            cls.REVIEW,
            cls.TODO,
            cls.NO_STATUS,
            cls.WEEK,
            cls.MONTH,
        ]

    def to_color_str(self) -> str:
        """The status tag coloured for the terminal."""
        return colored(str(self), _STATUS_COLORS[self])


_STATUS_COLORS = {
    TaskStatus.NO_STATUS: "black",
    TaskStatus.TODO: "green",
    TaskStatus.WIP: "red",
    TaskStatus.WEEK: "red",
    TaskStatus.MONTH: "red",
    TaskStatus.REVIEW: "yellow",
}


def _json_name(status: TaskStatus) -> str:
    return "".join(part.capitalize() for part in status.name.split("_"))


def _status_from_json(name: Any) -> TaskStatus:
    for status in TaskStatus:
        if _json_name(status) == name:
            return status
    raise ValueError(f"Unknown status: {name}")


def extract_contexts(task: str) -> list[str]:
    """Return every ``#x...`` context tag in ``task``, in order."""
    return [m.group(0) for m in _CONTEXT_RE.finditer(task)]


def remove_context_string(task: str) -> str:
    """Strip context tags from ``task`` and collapse whitespace."""
    return _collapse(_CONTEXT_RE.sub("", task))


@dataclass(frozen=True)
class TaskDates:
    """Start, due and visible dates, each as ``YYYYMMDD`` text."""

    start: str | None = None
    due: str | None = None
    visible: str | None = None

    @staticmethod
    def _pick(dates: list[str], kind: str) -> str | None:
        found = next((d for d in dates if kind in d), None)
        return None if found is None else found.replace(f"@{kind}", "")

    @classmethod
    def extract_dates(cls, task: str) -> TaskDates | None:
        """Read date tags from ``task``; ``@b`` sets both due and visible."""
        dates = [m.group(0) for m in _DATE_RE.finditer(task)]
        start = cls._pick(dates, "s")
        both = cls._pick(dates, "b")
        due = both if both is not None else cls._pick(dates, "d")
        visible = both if both is not None else cls._pick(dates, "v")
        if start is None and due is None and visible is None:
            return None
        return cls(start=start, due=due, visible=visible)

    @staticmethod
    def remove_date(task: str) -> str:
        """Strip date tags from ``task`` and collapse whitespace."""
        return _collapse(_DATE_RE.sub("", task))

    def to_dict(self) -> dict[str, str]:
        """JSON form; absent dates are left out."""
        items = (("start", self.start), ("due", self.due), ("visible", self.visible))
        return {key: value for key, value in items if value is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TaskDates:
        if not isinstance(data, dict):
            raise ValueError("dates must be an object")
        try:
            return cls(
                start=_opt_str(data.get("start"), "start"),
                due=_opt_str(data.get("due"), "due"),
                visible=_opt_str(data.get("visible"), "visible"),
            )
        except TypeError as exc:
            raise ValueError(str(exc)) from exc


def task_pattern() -> re.Pattern[str]:
    """Pattern matching any tag that makes a list item a task."""
    return _ANY_RE


@dataclass
class Task:
    """One task line of a project file."""

    description: str
    project: str
    status: TaskStatus
    contexts: list[str] = field(default_factory=list)
    dates: TaskDates | None = None
    starred: bool = False

    @classmethod
    def parse(cls, line: str, project: str) -> Task:
        """Build a task from a list item line found in file ``project``."""
        description = TaskDates.remove_date(
            remove_context_string(TaskStatus.remove_status_str(line))
        )
        return cls(
            description=description,
            project=project,
            status=TaskStatus.classify(line),
            contexts=extract_contexts(line),
            dates=TaskDates.extract_dates(line),
        )

    def has_noflags(self) -> bool:
        """True if the task has no context, no status and no dates."""
        return (
            not self.contexts
            and self.status is TaskStatus.NO_STATUS
            and self.dates is None
        )

    def ctx_line(self) -> str:
        """Project name in bold followed by the description."""
        return _collapse(f"{colored(self.project, attrs=['bold'])} {self.description}")

    def __str__(self) -> str:
        text = self.description
        for context in self.contexts:
            text = f"{text} {colored(context, 'blue')}"
        return _collapse(text)

    def to_dict(self) -> dict[str, Any]:
        """JSON form of the task."""
        data: dict[str, Any] = {
            "description": self.description,
            "project": self.project,
            "status": _json_name(self.status),
            "contexts": list(self.contexts),
        }
        if self.dates is not None:
            data["dates"] = self.dates.to_dict()
        data["starred"] = self.starred
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        """Build a task from its JSON form."""
        if not isinstance(data, dict):
            raise ValueError("task must be an object")
        missing = [
            key
            for key in ("description", "project", "status", "contexts", "starred")
            if key not in data
        ]
        if missing:
            raise ValueError(f"missing field: {missing[0]}")
        contexts = data["contexts"]
        if not isinstance(contexts, list) or not all(isinstance(c, str) for c in contexts):
            raise ValueError("contexts must be a list of strings")
        if not isinstance(data["starred"], bool):
            raise ValueError("starred must be a boolean")
        for key in ("description", "project"):
            if not isinstance(data[key], str):
                raise ValueError(f"{key} must be a string")
        dates = data.get("dates")
        return cls(
            description=data["description"],
            project=data["project"],
            status=_status_from_json(data["status"]),
            contexts=list(contexts),
            dates=None if dates is None else TaskDates.from_dict(dates),
            starred=data["starred"],
        )


@dataclass
class Project:
    """A file holding tasks, grouped by status."""

    file_name: str
    tasks: dict[TaskStatus, list[Task]] = field(default_factory=dict)