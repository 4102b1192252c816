# gtdkit

gtdkit reads a directory of plain-text notes and treats their list items as a
Getting Things Done system. Tasks are list items (lines starting with `- ` or
`* `, optionally indented) tagged with flags written inline:

- status: `@todo`, `@wip`, `@review`, `@week`, `@month`
- contexts: `#xhome`, `#xoffice`, `#xcalls`, ...
- dates: `@sYYYYMMDD` (start), `@dYYYYMMDD` (due), `@vYYYYMMDD` (visible),
  `@bYYYYMMDD` (both due and visible)

A list item with none of these tags is not a task.

A file whose first list item starts with `- @gtd` is a GTD project: every other
list item in it is a task, whether tagged or not. A task without a status takes
the status of that first line, its contexts are extended with the first line's
contexts, and missing dates are filled in from the first line's dates. The
status and context filters below do not apply to such files.

## Installation

```
pip install .
```

## Configuration

Settings are read from `~/.gtd.json` (the directory named by `$HOME`). Every
key is optional; a missing file means an empty configuration, and a file that
is not valid JSON of this shape is an error:

```json
{
  "default_dirs": ["/home/me/notes"],
  "inbox_path": "/home/me/notes/inbox.md",
  "ignore_files": ["README.md"],
  "default_not_context": ["#xsomeday"],
  "server": {"host": "http://localhost:10084", "user": "user", "psw": "password"}
}
```

- `default_dirs`: directories scanned when `--dir` is not given.
- `ignore_files`: file names skipped while scanning.
- `default_not_context`: context tags whose tasks are dropped when they have no
  status, unless `--context` is given.
- `inbox_path`: the file `gtd-inbox` appends to.
- `server`: where `gtd-cli` posts the collected tasks.

## Commands

### gtd-cli

Scans the given directory (or `default_dirs`) recursively, skipping hidden
files and directories and the names in `ignore_files`, and collects tasks:

```
gtd-cli --dir ~/notes --status todo,wip --context home
gtd-cli --pivot true
gtd-cli --json true
```

Options:

- `-d`, `--dir`: root directory of the knowledge base.
- `-s`, `--status`: comma-separated statuses to keep (`todo`, `wip`, `review`,
  `week`, `month`).
- `-c`, `--context`: comma-separated context names to keep (`home` means
  `#xhome`).
- `-p`, `--pivot true`: print tasks grouped per file and status, then per
  context.
- `-j`, `--json true`: print every task as JSON.
- `-w`, `--web false`: do not post the tasks to the configured server.
- `-S`, `--not-status` and `-C`, `--not-context` are accepted but do not
  filter anything.

The command first prints the list of directories it scans. When a `server` is
configured and `--web false` is not given, the tasks are posted as JSON, keyed
by description, to `<host>/tasks` with HTTP basic authentication, and the
response body is printed.

### gtd-inbox

Appends a line to the existing file named by `inbox_path`, stamped with today's
date, and prints it:

```
gtd-inbox call the plumber about the sink
```

This appends `- call the plumber about the sink @dYYYY-MM-DD` on a new line.

### gtd-server

Runs an HTTP server (default `0.0.0.0:10084`; change with `--host` and
`--port`):

```
gtd-server --port 10084
```

- `GET /` answers `homepage`.
- `POST /tasks` replaces the task list with a JSON object of tasks keyed by
  description.
- `GET /tasks` returns the tasks as a JSON list ordered by project, with
  starred tasks flagged.
- `POST /star` toggles the star of the task whose description is the request
  body.
- `/ws` is a websocket that receives `update` whenever the tasks or the stars
  change.

Responses allow cross-origin requests from any origin.

## Library use

```python
from gtdkit.model import Task, TaskStatus

task = Task.parse("- call mum @todo #xphone @d20240101", "family.md")
assert task.status is TaskStatus.TODO
print(task.contexts, task.dates.due)   # ['#xphone'] 20240101
```

`gtdkit.cli.parse_file` and `gtdkit.cli.collect_projects` give the same task
collection as `gtd-cli` without printing, and `gtdkit.server.create_app` builds
the server application for an `AppState`.

## What it does not do

- The server keeps tasks and stars in memory only; they are lost when it stops.
- The server does not check the `Authorization` header that `gtd-cli` sends.
- Tasks are never written back to the note files; there is no command to
  complete or edit a task.