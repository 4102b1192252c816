import asyncio
import json

import pytest
from aiohttp import web
from aiohttp.test_utils import TestClient, TestServer

from gtdkit.model import Task, TaskDates, TaskStatus
from gtdkit.server import AppState, add_starred, create_app


def _tasks():
    return {
        "write": Task("write", "zeta.md", TaskStatus.WIP, ["#xoffice"], TaskDates(due="20240101")),
        "read": Task("read", "alpha.md", TaskStatus.TODO),
    }


def test_add_starred_flags_and_sorts():
    tasks = _tasks()
    result = add_starred(tasks, ["write", "missing"])
    assert [t.project for t in result] == ["alpha.md", "zeta.md"]
    assert [t.starred for t in result] == [False, True]
    assert tasks["write"].starred is False


def test_add_starred_toggles_already_starred():
    tasks = {"x": Task("x", "p", TaskStatus.TODO, starred=True)}
    assert add_starred(tasks, ["x"])[0].starred is False


def test_toggle_star_twice_unstars():
    state = AppState()
    state.set_tasks(_tasks())
    state.toggle_star("read")
    assert state.starred_descriptions == ["read"]
    assert [t.starred for t in state.starred_tasks()] == [True, False]
    state.toggle_star("read")
    assert state.starred_descriptions == []
    assert not any(t.starred for t in state.starred_tasks())


@pytest.mark.asyncio
async def test_index():
    async with TestClient(TestServer(create_app())) as client:
        resp = await client.get("/")
        assert resp.status == 200
        assert await resp.text() == "homepage"
        assert resp.headers["Access-Control-Allow-Origin"] == "*"


@pytest.mark.asyncio
async def test_tasks_round_trip():
    state = AppState()
    tasks = _tasks()
    body = {d: t.to_dict() for d, t in tasks.items()}
    async with TestClient(TestServer(create_app(state))) as client:
        resp = await client.post("/tasks", json=body)
        assert resp.status == 200
        assert state.tasks == tasks
        resp = await client.get("/tasks")
        data = await resp.json()
    assert data == [t.to_dict() for t in add_starred(tasks, [])]


@pytest.mark.asyncio
async def test_star_endpoint():
    state = AppState()
    state.set_tasks(_tasks())
    async with TestClient(TestServer(create_app(state))) as client:
        resp = await client.post("/star", data="write")
        assert resp.status == 200
        data = await (await client.get("/tasks")).json()
    starred = {t["description"]: t["starred"] for t in data}
    assert starred == {"write": True, "read": False}


@pytest.mark.asyncio
async def test_set_tasks_errors():
    async with TestClient(TestServer(create_app())) as client:
        resp = await client.post(
            "/tasks", data="{not json", headers={"Content-Type": "application/json"}
        )
        assert resp.status == web.HTTPBadRequest.status_code
        resp = await client.post("/tasks", data=json.dumps({}))
        assert resp.status == web.HTTPUnsupportedMediaType.status_code
        resp = await client.post("/tasks", json={"x": {"description": "x"}})
        assert resp.status == web.HTTPUnprocessableEntity.status_code


@pytest.mark.asyncio
async def test_cors_preflight():
    async with TestClient(TestServer(create_app())) as client:
        resp = await client.options(
            "/tasks",
            headers={"Origin": "http://localhost", "Access-Control-Request-Method": "POST"},
        )
        assert resp.status == 200
        assert resp.headers["Access-Control-Allow-Origin"] == "*"
        assert resp.headers["Access-Control-Allow-Methods"] == "*"


@pytest.mark.asyncio
async def test_websocket_notified_on_update():
    state = AppState()
    async with TestClient(TestServer(create_app(state))) as client:
        ws = await client.ws_connect("/ws")
        await client.post("/star", data="anything")
        message = await asyncio.wait_for(ws.receive_str(), 5)
        assert message == "update"
        await client.post("/tasks", json={})
        message = await asyncio.wait_for(ws.receive_str(), 5)
        assert message == "update"
        await ws.close()