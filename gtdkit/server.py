"""HTTP server holding the latest task list and the starred tasks."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from dataclasses import dataclass, field
from typing import Any, Iterable

from aiohttp import WSMsgType, web

from gtdkit.model import Task

log = logging.getLogger(__name__)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 10084


def add_starred(
    tasks: dict[str, Task], starred_descriptions: Iterable[str]
) -> list[Task]:
    """Copies of ``tasks`` with starred ones flagged, ordered by project."""
    marked = {desc: dataclasses.replace(task) for desc, task in tasks.items()}
    for desc in starred_descriptions:
        if desc in marked:
            marked[desc].starred = not marked[desc].starred
    return sorted(marked.values(), key=lambda t: t.project)


@dataclass
class AppState:
    """Shared server state; every change wakes the websocket listeners."""

    tasks: dict[str, Task] = field(default_factory=dict)
    starred_descriptions: list[str] = field(default_factory=list)
    _version: int = field(default=0, init=False, repr=False)
    _changed: asyncio.Event = field(
        default_factory=asyncio.Event, init=False, repr=False, compare=False
    )

    def _notify(self) -> None:
        self._version += 1
        self._changed.set()
        self._changed = asyncio.Event()

    async def _wait_for_update(self, seen: int) -> int:
        while self._version == seen:
            await self._changed.wait()
        return self._version

    def set_tasks(self, tasks: dict[str, Task]) -> None:
        """Replace the task list."""
        self.tasks = dict(tasks)
        self._notify()

    def toggle_star(self, description: str) -> None:
        """Star the task with ``description``, or unstar it if starred."""
        if description in self.starred_descriptions:
            self.starred_descriptions = [
                d for d in self.starred_descriptions if d != description
            ]
        else:
            self.starred_descriptions.append(description)
        self._notify()

    def starred_tasks(self) -> list[Task]:
        """The current tasks with their starred flags applied."""
        return add_starred(self.tasks, self.starred_descriptions)


STATE_KEY = web.AppKey("state", AppState)


def _parse_tasks(data: Any) -> dict[str, Task]:
    if not isinstance(data, dict):
        raise ValueError("expected an object of tasks")
    return {str(desc): Task.from_dict(task) for desc, task in data.items()}


async def _index(request: web.Request) -> web.Response:
    return web.Response(text="homepage")


async def _get_tasks(request: web.Request) -> web.Response:
    log.info("get_tasks")
    tasks = request.app[STATE_KEY].starred_tasks()
    return web.json_response([task.to_dict() for task in tasks])


async def _set_tasks(request: web.Request) -> web.Response:
    if request.content_type != "application/json":
        raise web.HTTPUnsupportedMediaType(
            text="Expected request with `Content-Type: application/json`"
        )
    raw = await request.text()
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise web.HTTPBadRequest(text=f"Failed to parse the request body as JSON: {exc}")
    try:
        tasks = _parse_tasks(data)
    except ValueError as exc:
        raise web.HTTPUnprocessableEntity(text=str(exc))
    request.app[STATE_KEY].set_tasks(tasks)
    log.info("set_tasks")
    return web.Response()


async def _star_task(request: web.Request) -> web.Response:
    description = await request.text()
    request.app[STATE_KEY].toggle_star(description)
    log.info("star_task")
    return web.Response()


async def _drain(ws: web.WebSocketResponse) -> None:
    async for msg in ws:
        if msg.type == WSMsgType.ERROR:
            break


async def _ws_handler(request: web.Request) -> web.WebSocketResponse:
    state = request.app[STATE_KEY]
    seen = state._version
    ws = web.WebSocketResponse()
    await ws.prepare(request)
    reader = asyncio.ensure_future(_drain(ws))
    try:
        while not ws.closed:
            waiter = asyncio.ensure_future(state._wait_for_update(seen))
            done, _ = await asyncio.wait(
                {waiter, reader}, return_when=asyncio.FIRST_COMPLETED
            )
            if waiter not in done:
                waiter.cancel()
                break
            seen = waiter.result()
            log.debug("update %s", seen)
            try:
                await ws.send_str("update")
            except ConnectionError:
                break
    finally:
        reader.cancel()
    return ws


@web.middleware
async def _cors_preflight(request: web.Request, handler):
    if (
        request.method == "OPTIONS"
        and "Access-Control-Request-Method" in request.headers
    ):
        return web.Response(
            headers={
                "Access-Control-Allow-Methods": "*",
                "Access-Control-Allow-Headers": "*",
            }
        )
    return await handler(request)


async def _add_cors_headers(request: web.Request, response: web.StreamResponse) -> None:
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Expose-Headers"] = "*"


def create_app(state: AppState | None = None) -> web.Application:
    """Build the application serving ``state`` (a fresh one by default)."""
    app = web.Application(middlewares=[_cors_preflight])
    app[STATE_KEY] = state if state is not None else AppState()
    app.router.add_get("/", _index)
    app.router.add_get("/tasks", _get_tasks)
    app.router.add_post("/tasks", _set_tasks)
    app.router.add_post("/star", _star_task)
    app.router.add_get("/ws", _ws_handler)
    app.on_response_prepare.append(_add_cors_headers)
    return app


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="gtd-server")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG)
    log.debug("listening on %s:%s", args.host, args.port)
    web.run_app(create_app(), host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())