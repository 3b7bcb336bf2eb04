#!/usr/bin/env python3
"""
Tests for the HTTP control API.

Runs a real ApiServer on an ephemeral port against a live Simulation
and talks to it with urllib.
"""

import json
import socket
import urllib.error
import urllib.request

import pytest

from sparse_life.coord import Coord
from sparse_life.presets import PRESET_ORDER, PRESETS
from sparse_life.server import MAX_BODY_BYTES, ApiError, ApiServer, ControlApi
from sparse_life.simulation import Simulation
from sparse_life.world import World


SETTLE = 0.25


@pytest.fixture
def api_server():
    sim = Simulation(tps=10)
    sim.start_loop()
    server = ApiServer(sim, host="127.0.0.1", port=0, settle=SETTLE).start()
    host, port = server.address
    yield sim, f"http://{host}:{port}"
    server.stop()
    sim.shutdown()


def _request(base, method, path, body=None, raw=None):
    """Returns (status, parsed body). Text responses come back as str."""
    data = raw
    if body is not None:
        data = json.dumps(body).encode()
    req = urllib.request.Request(base + path, data=data, method=method)
    if data is not None:
        req.add_header("Content-Type", "application/json")
    try:
        with urllib.request.urlopen(req, timeout=5) as resp:
            status, ctype, payload = resp.status, resp.headers.get("Content-Type", ""), resp.read()
    except urllib.error.HTTPError as e:
        status, ctype, payload = e.code, e.headers.get("Content-Type", ""), e.read()
    if ctype.startswith("application/json"):
        return status, json.loads(payload)
    return status, payload.decode()


def get(base, path):
    return _request(base, "GET", path)


def post(base, path, body=None, raw=None):
    if body is None and raw is None:
        raw = b""
    return _request(base, "POST", path, body=body, raw=raw)


# ── Misc ─────────────────────────────────────────────────────────────

def test_health_and_root(api_server):
    _, base = api_server
    assert get(base, "/health") == (200, "OK")
    status, text = get(base, "/")
    assert status == 200
    assert "/health" in text


def test_unknown_route(api_server):
    _, base = api_server
    status, body = get(base, "/api/nope")
    assert status == 404
    assert "error" in body


def test_wrong_method(api_server):
    _, base = api_server
    status, body = get(base, "/api/control/start")
    assert status == 405


# ── Control ──────────────────────────────────────────────────────────

def test_status_initial(api_server):
    _, base = api_server
    status, body = get(base, "/api/control/status")
    assert status == 200
    assert body == {"state": "stopped", "tick_count": 0, "tps": 10, "active_cells": 0}


def test_start_then_conflict(api_server):
    _, base = api_server
    status, body = post(base, "/api/control/start")
    assert status == 200
    assert body["state"] == "running"

    status, body = post(base, "/api/control/start")
    assert status == 409
    assert body == {"error": "Simulation is already running"}


def test_pause_requires_running(api_server):
    _, base = api_server
    status, body = post(base, "/api/control/pause")
    assert status == 409
    assert body == {"error": "Simulation is not running"}


def test_pause_resume_stop(api_server):
    _, base = api_server
    post(base, "/api/control/start")
    status, body = post(base, "/api/control/pause")
    assert status == 200
    assert body["state"] == "paused"

    status, body = post(base, "/api/control/resume")
    assert status == 200
    assert body["state"] == "running"

    status, body = post(base, "/api/control/stop")
    assert status == 200
    assert body["state"] == "stopped"
    assert body["tick_count"] == 0


def test_resume_requires_paused(api_server):
    _, base = api_server
    status, body = post(base, "/api/control/resume")
    assert status == 400
    assert body == {"error": "Simulation is not paused"}


def test_step(api_server):
    sim, base = api_server
    sim.set_world(World.from_cells([(0, -1), (0, 0), (0, 1)]))
    status, body = post(base, "/api/control/step")
    assert status == 200
    assert body["tick_count"] == 1
    assert body["state"] == "stopped"
    assert sim.get_world().get_cell(Coord(1, 0))


def test_speed(api_server):
    sim, base = api_server
    status, body = post(base, "/api/control/speed", {"tps": 100})
    assert status == 200
    assert body["tps"] == 100
    assert sim.get_tps() == 100


@pytest.mark.parametrize("tps", [0, -3, 1001, 5000])
def test_speed_out_of_range(api_server, tps):
    sim, base = api_server
    status, body = post(base, "/api/control/speed", {"tps": tps})
    assert status == 400
    assert body["error"] == f"Invalid TPS value: {tps}. Must be between 1 and 1000"
    assert sim.get_tps() == 10, "rejected speed must not reach the simulation"


def test_speed_missing_field(api_server):
    _, base = api_server
    status, body = post(base, "/api/control/speed", {})
    assert status == 400


def test_malformed_json(api_server):
    _, base = api_server
    status, body = post(base, "/api/control/speed", raw=b"{not json")
    assert status == 400
    assert body["error"].startswith("Invalid JSON body")


# ── World ────────────────────────────────────────────────────────────

def test_set_cell_and_read_back(api_server):
    _, base = api_server
    status, body = post(base, "/api/world/cell", {"x": 5, "y": -7, "alive": True})
    assert status == 200
    assert body == {"x": 5, "y": -7, "alive": True, "active_cells": 1}

    status, cells = get(base, "/api/world/all")
    assert status == 200
    assert cells == [{"x": 5, "y": -7}]

    status, body = post(base, "/api/world/cell", {"x": 5, "y": -7, "alive": False})
    assert body["active_cells"] == 0


def test_set_cell_validation(api_server):
    _, base = api_server
    status, _ = post(base, "/api/world/cell", {"x": 1, "y": 2})
    assert status == 400
    status, _ = post(base, "/api/world/cell", {"x": "a", "y": 2, "alive": True})
    assert status == 400


def test_region(api_server):
    sim, base = api_server
    sim.set_world(World.from_cells([(0, 0), (3, 1), (-2, 2), (50, 50)]))
    status, body = get(base, "/api/world/region?x1=-5&y1=-5&x2=5&y2=5")
    assert status == 200
    assert body["bounds"] == {"x1": -5, "y1": -5, "x2": 5, "y2": 5}
    assert body["cells"] == [{"x": 0, "y": 0}, {"x": 3, "y": 1}, {"x": -2, "y": 2}]


def test_region_validation(api_server):
    _, base = api_server
    status, _ = get(base, "/api/world/region?x1=0&y1=0&x2=5")
    assert status == 400
    status, body = get(base, "/api/world/region?x1=0&y1=0&x2=5000&y2=5000")
    assert status == 400
    assert "too large" in body["error"]


def test_list_presets(api_server):
    _, base = api_server
    status, body = get(base, "/api/world/presets")
    assert status == 200
    names = [p["name"] for p in body["presets"]]
    assert names == [PRESETS[key]["name"] for key in PRESET_ORDER]
    glider = body["presets"][names.index("Glider")]
    assert glider["cell_count"] == 5
    assert glider["description"]


def test_load_preset_case_insensitive_with_offset(api_server):
    sim, base = api_server
    status, body = post(base, "/api/world/preset",
                        {"name": "BLOCK", "offset_x": 10, "offset_y": -10})
    assert status == 200
    assert body == {"preset_name": "Block", "active_cells": 4}
    world = sim.get_world()
    for c in ((10, -10), (11, -10), (10, -9), (11, -9)):
        assert world.get_cell(Coord(*c))


def test_load_preset_replaces_world(api_server):
    sim, base = api_server
    sim.set_world(World.from_cells([(100, 100)]))
    status, body = post(base, "/api/world/preset", {"name": "glider"})
    assert status == 200
    assert body["active_cells"] == 5
    assert not sim.get_world().get_cell(Coord(100, 100))


def test_load_preset_not_found(api_server):
    _, base = api_server
    status, body = post(base, "/api/world/preset", {"name": "NonExistent"})
    assert status == 404
    assert body == {"error": "Preset not found: NonExistent"}


def test_clear(api_server):
    sim, base = api_server
    sim.set_world(World.from_cells([(1, 1), (200, -200)]))
    status, body = post(base, "/api/world/clear")
    assert status == 200
    assert body == {"x": 0, "y": 0, "alive": False, "active_cells": 0}
    assert sim.get_world().chunk_count() == 0


def test_cors_preflight(api_server):
    _, base = api_server
    req = urllib.request.Request(base + "/api/control/start", method="OPTIONS")
    with urllib.request.urlopen(req, timeout=5) as resp:
        assert resp.status == 204
        assert resp.headers["Access-Control-Allow-Origin"] == "*"


# ── Without a running loop ───────────────────────────────────────────

def test_command_without_loop_is_500():
    api = ControlApi(Simulation(), settle=0)
    with pytest.raises(ApiError) as info:
        api.dispatch("POST", "/api/control/step", {}, {})
    assert info.value.status == 500
    assert info.value.message == "Failed to send command to simulation"


def test_status_without_loop():
    api = ControlApi(Simulation(world=World.from_cells([(0, 0)])), settle=0)
    status, body = api.dispatch("GET", "/api/control/status", {}, {})
    assert status == 200
    assert body["active_cells"] == 1


# ── Malformed requests ───────────────────────────────────────────────

def _raw_post(base, path, headers, body=b""):
    """Send a hand-built POST, return (status, parsed JSON body)."""
    host, port = base.rsplit("/", 1)[-1].split(":")
    lines = [f"POST {path} HTTP/1.1", f"Host: {host}", "Connection: close"]
    lines += [f"{k}: {v}" for k, v in headers.items()]
    request = ("\r\n".join(lines) + "\r\n\r\n").encode() + body
    with socket.create_connection((host, int(port)), timeout=3) as sock:
        sock.sendall(request)
        chunks = []
        while True:
            data = sock.recv(4096)
            if not data:
                break
            chunks.append(data)
    head, _, payload = b"".join(chunks).partition(b"\r\n\r\n")
    status = int(head.split(b" ", 2)[1])
    return status, json.loads(payload)


def test_non_numeric_content_length(api_server):
    sim, base = api_server
    status, body = _raw_post(base, "/api/control/step", {"Content-Length": "abc"})
    assert status == 400
    assert body == {"error": "Invalid Content-Length: abc"}
    assert sim.get_tick_count() == 0


def test_negative_content_length(api_server):
    _, base = api_server
    status, body = _raw_post(base, "/api/control/step", {"Content-Length": "-1"})
    assert status == 400, "negative length must be answered, not read to EOF"
    assert body == {"error": "Invalid Content-Length: -1"}


def test_body_too_large(api_server):
    _, base = api_server
    status, body = _raw_post(base, "/api/control/speed",
                             {"Content-Length": str(MAX_BODY_BYTES + 1)})
    assert status == 413
    assert body == {"error": "Request body too large"}


@pytest.mark.parametrize("raw", [b'{"tps": Infinity}', b'{"tps": -Infinity}', b'{"tps": NaN}'])
def test_non_finite_json_constants(api_server, raw):
    sim, base = api_server
    status, body = post(base, "/api/control/speed", raw=raw)
    assert status == 400
    assert body["error"].startswith("Invalid JSON body")
    assert sim.get_tps() == 10


def test_overflowing_number(api_server):
    sim, base = api_server
    status, body = post(base, "/api/control/speed", raw=b'{"tps": 1e400}')
    assert status == 400
    assert body == {"error": "Field tps must be an integer"}
    assert sim.get_tps() == 10


def test_server_still_answers_after_bad_requests(api_server):
    _, base = api_server
    _raw_post(base, "/api/control/step", {"Content-Length": "abc"})
    post(base, "/api/control/speed", raw=b'{"tps": Infinity}')
    assert get(base, "/health") == (200, "OK")
