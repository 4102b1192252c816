"""Append a dated item to the inbox file named in the config."""

from __future__ import annotations

import argparse
import datetime
import os
import sys

from gtdkit.model import ConfigFile


def format_inbox_line(message: str, today: datetime.date) -> str:
    """The line appended for ``message``, dated ``today``."""
    return f"\n- {message} @d{today:%Y-%m-%d}"


def append_to_inbox(
    path: str | os.PathLike,
    message: str,
    today: datetime.date | None = None,
) -> str:
    """Append ``message`` to the existing file at ``path``; return the line."""
    line = format_inbox_line(message, today or datetime.date.today())
    fd = os.open(path, os.O_WRONLY | os.O_APPEND)
    with os.fdopen(fd, "w", encoding="utf-8") as inbox:
        inbox.write(line)
    return line


def main(argv: list[str] | None = None) -> int:
    config = ConfigFile.read()
    parser = argparse.ArgumentParser(prog="inbox")
    parser.add_argument("message", nargs="+", help="The message to process")
    args = parser.parse_args(argv)

    if config.inbox_path is None:
        sys.exit("inbox_path must exist in config")

    message = " ".join(args.message)
    line = format_inbox_line(message, datetime.date.today())
    print(line)
    fd = os.open(config.inbox_path, os.O_WRONLY | os.O_APPEND)
    with os.fdopen(fd, "w", encoding="utf-8") as inbox:
        inbox.write(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())