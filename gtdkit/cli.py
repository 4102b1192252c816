"""Scan a text knowledge base for tagged list items and report them as tasks."""

from __future__ import annotations

import argparse
import json
import os
import re
import sys
import urllib.error
import urllib.request
from collections.abc import Iterable, Iterator, Sequence
from pathlib import Path

from termcolor import colored

from gtdkit.model import (
    ConfigFile,
    Project,
    ServerConfig,
    Task,
    TaskDates,
    TaskStatus,
    task_pattern,
)

LIST_ITEM_RE = re.compile(r"^\s*(\*|-)\s+")
GTD_MARKER = "- @gtd"


def parse_status_arg(status: str | None) -> list[TaskStatus]:
    """Turn ``todo,wip`` into statuses; unknown names become NO_STATUS."""
    if status is None:
        return []
    return [TaskStatus.classify(f"@{part}") for part in status.split(",")]


def parse_context_arg(context: str | None) -> list[str]:
    """Turn ``home,work`` into the context tags ``#xhome`` and ``#xwork``."""
    if context is None:
        return []
    return [f"#x{part}" for part in context.split(",")]


def is_hidden(name: str) -> bool:
    """True for file and directory names starting with a dot."""
    return name.startswith(".")


def iter_files(
    dirs: Iterable[str | os.PathLike], ignore_files: Iterable[str]
) -> Iterator[Path]:
    """Yield regular files below ``dirs``, skipping hidden and ignored names."""
    ignored = set(ignore_files)
    for root in dirs:
        root_path = Path(root)
        if is_hidden(root_path.name or str(root)):
            continue
        if root_path.is_file():
            if root_path.name not in ignored:
                yield root_path
            continue
        for dirpath, dirnames, filenames in os.walk(root_path):
            dirnames[:] = sorted(d for d in dirnames if not is_hidden(d))
            for name in sorted(filenames):
                if is_hidden(name) or name in ignored:
                    continue
                path = Path(dirpath) / name
                if path.is_symlink() or not path.is_file():
                    continue
                yield path


def _lines(text: str) -> Iterator[str]:
    for line in text.split("\n"):
        yield line[:-1] if line.endswith("\r") else line


def _inherit(task: Task, gtd: Task) -> Task:
    own = task.dates or TaskDates()
    parent = gtd.dates or TaskDates()
    start = own.start if own.start is not None else parent.start
    due = own.due if own.due is not None else parent.due
    # The visible date is taken from the task's own due date first.
    visible = own.due if own.due is not None else parent.visible
    if start is None and due is None and visible is None:
        task.dates = None
    else:
        task.dates = TaskDates(start=start, due=due, visible=visible)
    if task.status is TaskStatus.NO_STATUS:
        task.status = gtd.status
    task.contexts = task.contexts + gtd.contexts
    return task


def parse_file(
    text: str,
    file_name: str,
    statuses: Sequence[TaskStatus],
    contexts: Sequence[str],
    default_not_context: Sequence[str],
) -> Project | None:
    """Collect the tasks of one file; None if it holds none.

    A file whose first list item starts with ``- @gtd`` is a GTD project:
    every list item is a task inheriting that item's status, dates and
    contexts, and no filters apply. Otherwise only tagged items are kept,
    filtered by ``statuses``, ``contexts`` and ``default_not_context``.
    """
    task_lines = [line for line in _lines(text) if LIST_ITEM_RE.match(line)]
    first_line = task_lines[0] if task_lines else ""

    if first_line.startswith(GTD_MARKER):
        gtd = Task.parse(first_line, file_name)
        tasks = [
            _inherit(Task.parse(line, file_name), gtd)
            for line in task_lines
            if not line.startswith(GTD_MARKER)
        ]
    else:
        pattern = task_pattern()
        tasks = []
        for line in task_lines:
            if not pattern.search(line):
                continue
            task = Task.parse(line, file_name)
            if task.has_noflags():
                continue
            if statuses and task.status not in statuses:
                continue
            if contexts and not any(c in contexts for c in task.contexts):
                continue
            if task.status is TaskStatus.NO_STATUS and any(
                c in default_not_context for c in task.contexts
            ):
                continue
            tasks.append(task)

    if not tasks:
        return None
    grouped: dict[TaskStatus, list[Task]] = {}
    for task in tasks:
        grouped.setdefault(task.status, []).append(task)
    return Project(file_name=file_name, tasks=grouped)


def collect_projects(
    dirs: Iterable[str | os.PathLike],
    ignore_files: Iterable[str],
    statuses: Sequence[TaskStatus],
    contexts: Sequence[str],
    default_not_context: Sequence[str],
) -> list[Project]:
    """Parse every file below ``dirs`` and keep those holding tasks."""
    projects = []
    for path in iter_files(dirs, ignore_files):
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            text = ""
        project = parse_file(text, path.name, statuses, contexts, default_not_context)
        if project is not None:
            projects.append(project)
    return projects


def display_projects(projects: Iterable[Project]) -> None:
    """Print each project with its tasks grouped by status."""
    for project in projects:
        print(colored(f"-- {project.file_name} --", on_color="on_blue"))
        for status in TaskStatus.all():
            if status not in project.tasks:
                continue
            print(colored(status.to_color_str(), attrs=["dark"]))
            for task in project.tasks[status]:
                print(task)
        print()


def flat_tasks(projects: Iterable[Project]) -> list[Task]:
    """All tasks of all projects in one list."""
    return [
        task
        for project in projects
        for group in project.tasks.values()
        for task in group
    ]


def pivot_on_context(projects: Iterable[Project]) -> dict[str, list[Task]]:
    """Tasks keyed by each context they carry."""
    pivot: dict[str, list[Task]] = {}
    for task in flat_tasks(projects):
        for context in task.contexts:
            pivot.setdefault(context, []).append(task)
    return pivot


def flat_tasks_dict(projects: Iterable[Project]) -> dict[str, Task]:
    """Tasks keyed by description, in description order."""
    tasks = sorted(flat_tasks(projects), key=lambda t: t.description)
    return {task.description: task for task in tasks}


def print_by_context(projects: Iterable[Project]) -> None:
    """Print tasks grouped by context, each group ordered by project."""
    for context, tasks in pivot_on_context(projects).items():
        print(colored(f"-- {context} --", on_color="on_blue"))
        for task in sorted(tasks, key=lambda t: t.project):
            print(task.ctx_line())
        print()


def post_tasks(server: ServerConfig, projects: Iterable[Project]) -> str:
    """Send all tasks to ``server`` and return the response body."""
    body = json.dumps(
        {desc: task.to_dict() for desc, task in flat_tasks_dict(projects).items()},
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")
    request = urllib.request.Request(
        server.host + "/tasks",
        data=body,
        method="POST",
        headers={
            "Content-Type": "application/json",
            "Authorization": "Basic " + server.basic_token(),
        },
    )
    try:
        with urllib.request.urlopen(request) as response:
            return response.read().decode("utf-8", errors="replace")
    except urllib.error.HTTPError as exc:
        return exc.read().decode("utf-8", errors="replace")


def _bool(value: str) -> bool:
    if value == "true":
        return True
    if value == "false":
        return False
    raise argparse.ArgumentTypeError(f"invalid value '{value}': expected true or false")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gtd-cli",
        description="Turns a text-based knowledge base into a GTD system",
    )
    parser.add_argument("-d", "--dir", help="Root directory of the knowledge base")
    parser.add_argument("-s", "--status", help="Task status todo, wip, or review")
    parser.add_argument(
        "-S", "--not-status", help="Not task status todo, wip, or review"
    )
    parser.add_argument("-c", "--context", help="Task context")
    parser.add_argument("-C", "--not-context", help="Not Task context")
    parser.add_argument("-p", "--pivot", type=_bool)
    parser.add_argument("-j", "--json", type=_bool)
    parser.add_argument("-w", "--web", type=_bool)
    return parser


def _debug_list(paths: Iterable[Path]) -> str:
    return "[" + ", ".join(json.dumps(str(p), ensure_ascii=False) for p in paths) + "]"


def main(argv: list[str] | None = None) -> int:
    config = ConfigFile.read()
    args = _build_parser().parse_args(argv)
    statuses = parse_status_arg(args.status)
    contexts = parse_context_arg(args.context)
    ignore_files = config.ignore_files or []
    if args.dir is not None:
        dirs = [Path(args.dir)]
    else:
        dirs = list(config.default_dirs or [])
    print(_debug_list(dirs))
    default_not_context = [] if contexts else list(config.default_not_context or [])

    projects = collect_projects(
        dirs, ignore_files, statuses, contexts, default_not_context
    )

    if args.pivot:
        display_projects(projects)
        print("---------------------------------------------------------")
        print_by_context(projects)
    elif args.json:
        print(
            json.dumps(
                [task.to_dict() for task in flat_tasks(projects)],
                indent=2,
                ensure_ascii=False,
            ),
            end="",
        )

    if (args.web is None or args.web) and config.server is not None:
        print(post_tasks(config.server, projects))
    return 0


if __name__ == "__main__":
    sys.exit(main())