"""
HTTP Control API

Thin JSON adapter over a Simulation: control endpoints turn requests into
queued commands, world endpoints read snapshots or edit cells. Served by
the stdlib ThreadingHTTPServer on a background thread.

Control endpoints send their command, give the loop COMMAND_SETTLE
seconds to pick it up, and answer with the current status. That status
is best effort; a busy loop may not have applied the command yet.

Routes:
  GET  /                     Banner
  GET  /health               Health check
  POST /api/control/start    Start simulation
  POST /api/control/stop     Stop simulation
  POST /api/control/pause    Pause simulation
  POST /api/control/resume   Resume simulation
  POST /api/control/step     Execute one step
  POST /api/control/speed    Set speed (TPS)
  GET  /api/control/status   Get simulation status
  GET  /api/world/region     Get cells in region
  GET  /api/world/all        Get all active cells
  POST /api/world/cell       Set cell state
  GET  /api/world/presets    List all presets
  POST /api/world/preset     Load preset
  POST /api/world/clear      Clear world
"""

import json
import threading
import time
from http.server import ThreadingHTTPServer, BaseHTTPRequestHandler
from urllib.parse import urlsplit, parse_qs

from .coord import Coord
from .presets import PRESET_ORDER, PRESETS, get_preset, load_into
from .simulation import (
    MIN_TPS, MAX_TPS, CommandDeliveryError, SimulationCommand, SimulationState,
)


DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000
COMMAND_SETTLE = 0.05       # seconds to wait after queueing a command
MAX_REGION_CELLS = 1_000_000
MAX_BODY_BYTES = 64 * 1024

_BANNER = (b"Sparse Life API\n\n"
           b"Visit /health for health check\n"
           b"API endpoints available at /api/*")


class ApiError(Exception):
    """Error carrying the HTTP status it should be reported with."""

    def __init__(self, status, message):
        super().__init__(message)
        self.status = status
        self.message = message

    @classmethod
    def preset_not_found(cls, name):
        return cls(404, f"Preset not found: {name}")

    @classmethod
    def command_send(cls):
        return cls(500, "Failed to send command to simulation")

    @classmethod
    def already_running(cls):
        return cls(409, "Simulation is already running")

    @classmethod
    def not_running(cls):
        return cls(409, "Simulation is not running")

    @classmethod
    def invalid_request(cls, message):
        return cls(400, message)

    @classmethod
    def invalid_tps(cls, tps):
        return cls(400, f"Invalid TPS value: {tps}. Must be between {MIN_TPS} and {MAX_TPS}")


# ── Request helpers ──────────────────────────────────────────────────

def _require_int(payload, key, default=None):
    value = payload.get(key, default)
    if value is None:
        raise ApiError.invalid_request(f"Missing field: {key}")
    if isinstance(value, bool):
        raise ApiError.invalid_request(f"Field {key} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        raise ApiError.invalid_request(f"Field {key} must be an integer") from None


def _reject_constant(name):
    raise ValueError(f"{name} is not valid JSON")


def _require_bool(payload, key):
    value = payload.get(key)
    if not isinstance(value, bool):
        raise ApiError.invalid_request(f"Field {key} must be a boolean")
    return value


class ControlApi:
    """Route table and handlers. Independent of the HTTP plumbing."""

    def __init__(self, simulation, settle=COMMAND_SETTLE):
        self.simulation = simulation
        self.settle = settle
        self.routes = {
            ("GET", "/"): self.root,
            ("GET", "/health"): self.health,
            ("POST", "/api/control/start"): self.start,
            ("POST", "/api/control/stop"): self.stop,
            ("POST", "/api/control/pause"): self.pause,
            ("POST", "/api/control/resume"): self.resume,
            ("POST", "/api/control/step"): self.step,
            ("POST", "/api/control/speed"): self.set_speed,
            ("GET", "/api/control/status"): self.status,
            ("GET", "/api/world/region"): self.region,
            ("GET", "/api/world/all"): self.all_cells,
            ("POST", "/api/world/cell"): self.set_cell,
            ("GET", "/api/world/presets"): self.presets,
            ("POST", "/api/world/preset"): self.load_preset,
            ("POST", "/api/world/clear"): self.clear,
        }

    def dispatch(self, method, path, query, payload):
        """Return (status, body). body is bytes (text) or a JSON-able object."""
        handler = self.routes.get((method, path))
        if handler is None:
            if any(p == path for _, p in self.routes):
                raise ApiError(405, f"Method {method} not allowed for {path}")
            raise ApiError(404, f"Not found: {path}")
        return handler(query, payload)

    def _send(self, cmd):
        try:
            self.simulation.send(cmd)
        except CommandDeliveryError:
            raise ApiError.command_send() from None
        time.sleep(self.settle)
        return 200, self.simulation.status()

    # ── Misc ──────────────────────────────────────────────────────────

    def root(self, query, payload):
        return 200, _BANNER

    def health(self, query, payload):
        return 200, b"OK"

    # ── Control ───────────────────────────────────────────────────────

    def start(self, query, payload):
        if self.simulation.get_state() == SimulationState.RUNNING:
            raise ApiError.already_running()
        return self._send(SimulationCommand.start())

    def stop(self, query, payload):
        return self._send(SimulationCommand.stop())

    def pause(self, query, payload):
        if self.simulation.get_state() != SimulationState.RUNNING:
            raise ApiError.not_running()
        return self._send(SimulationCommand.pause())

    def resume(self, query, payload):
        if self.simulation.get_state() != SimulationState.PAUSED:
            raise ApiError.invalid_request("Simulation is not paused")
        return self._send(SimulationCommand.resume())

    def step(self, query, payload):
        return self._send(SimulationCommand.step())

    def set_speed(self, query, payload):
        tps = _require_int(payload, "tps")
        if tps < MIN_TPS or tps > MAX_TPS:
            raise ApiError.invalid_tps(tps)
        return self._send(SimulationCommand.set_speed(tps))

    def status(self, query, payload):
        return 200, self.simulation.status()

    # ── World ─────────────────────────────────────────────────────────

    def region(self, query, payload):
        x1, y1 = _require_int(query, "x1"), _require_int(query, "y1")
        x2, y2 = _require_int(query, "x2"), _require_int(query, "y2")
        area = (abs(x2 - x1) + 1) * (abs(y2 - y1) + 1)
        if area > MAX_REGION_CELLS:
            raise ApiError.invalid_request(
                f"Region too large: {area} cells (max {MAX_REGION_CELLS})")
        world = self.simulation.get_world()
        cells = [{"x": c.x, "y": c.y} for c in world.cells_in_region(x1, y1, x2, y2)]
        return 200, {
            "cells": cells,
            "bounds": {"x1": x1, "y1": y1, "x2": x2, "y2": y2},
        }

    def all_cells(self, query, payload):
        world = self.simulation.get_world()
        return 200, [{"x": c.x, "y": c.y} for c in world.iter_active_cells()]

    def set_cell(self, query, payload):
        x, y = _require_int(payload, "x"), _require_int(payload, "y")
        alive = _require_bool(payload, "alive")

        def _edit(world):
            world.set_cell(Coord(x, y), alive)
            return world.active_cell_count()

        active = self.simulation.update_world(_edit)
        return 200, {"x": x, "y": y, "alive": alive, "active_cells": active}

    def presets(self, query, payload):
        return 200, {
            "presets": [
                {
                    "name": PRESETS[key]["name"],
                    "description": PRESETS[key]["description"],
                    "cell_count": len(PRESETS[key]["cells"]),
                }
                for key in PRESET_ORDER
            ]
        }

    def load_preset(self, query, payload):
        name = payload.get("name")
        if not isinstance(name, str) or not name:
            raise ApiError.invalid_request("Missing field: name")
        preset = get_preset(name)
        if preset is None:
            raise ApiError.preset_not_found(name)
        offset = Coord(_require_int(payload, "offset_x", 0),
                       _require_int(payload, "offset_y", 0))

        active = self.simulation.update_world(
            lambda world: load_into(preset, world, offset).active_cell_count())
        print(f"[Life] Loaded preset {preset['name']} at ({offset.x}, {offset.y})")
        return 200, {"preset_name": preset["name"], "active_cells": active}

    def clear(self, query, payload):
        self.simulation.update_world(lambda world: world.clear())
        return 200, {"x": 0, "y": 0, "alive": False, "active_cells": 0}


# ── HTTP plumbing ────────────────────────────────────────────────────

def _make_handler(api):

    class _Handler(BaseHTTPRequestHandler):

        def do_GET(self):
            self._handle("GET")

        def do_POST(self):
            self._handle("POST")

        def do_OPTIONS(self):
            self.send_response(204)
            self._cors_headers()
            self.send_header("Content-Length", "0")
            self.end_headers()

        def _cors_headers(self):
            self.send_header("Access-Control-Allow-Origin", "*")
            self.send_header("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
            self.send_header("Access-Control-Allow-Headers", "*")

        def _read_json(self):
            header = self.headers.get("Content-Length") or "0"
            try:
                length = int(header)
            except ValueError:
                raise ApiError.invalid_request(f"Invalid Content-Length: {header}") from None
            if length < 0:
                raise ApiError.invalid_request(f"Invalid Content-Length: {header}")
            if length == 0:
                return {}
            if length > MAX_BODY_BYTES:
                raise ApiError(413, "Request body too large")
            raw = self.rfile.read(length)
            try:
                payload = json.loads(raw, parse_constant=_reject_constant)
            except (UnicodeDecodeError, ValueError) as e:
                raise ApiError.invalid_request(f"Invalid JSON body: {e}") from None
            if not isinstance(payload, dict):
                raise ApiError.invalid_request("JSON body must be an object")
            return payload

        def _handle(self, method):
            url = urlsplit(self.path)
            query = {k: v[-1] for k, v in parse_qs(url.query).items()}
            try:
                payload = self._read_json() if method == "POST" else {}
                status, body = api.dispatch(method, url.path, query, payload)
            except ApiError as e:
                status, body = e.status, {"error": e.message}
            self._respond(status, body)

        def _respond(self, status, body):
            if isinstance(body, bytes):
                data, ctype = body, "text/plain; charset=utf-8"
            else:
                data, ctype = json.dumps(body).encode(), "application/json"
            self.send_response(status)
            self._cors_headers()
            self.send_header("Content-Type", ctype)
            self.send_header("Content-Length", str(len(data)))
            self.end_headers()
            self.wfile.write(data)

        def log_message(self, *args):
            pass

    return _Handler


class ApiServer:
    """ThreadingHTTPServer bound to a ControlApi, served on a daemon thread."""

    def __init__(self, simulation, host=DEFAULT_HOST, port=DEFAULT_PORT,
                 settle=COMMAND_SETTLE):
        self.api = ControlApi(simulation, settle=settle)
        self.httpd = ThreadingHTTPServer((host, port), _make_handler(self.api))
        self.httpd.daemon_threads = True
        self._thread = None

    @property
    def address(self):
        host, port = self.httpd.server_address[:2]
        return host, port

    def start(self):
        self._thread = threading.Thread(target=self.httpd.serve_forever, daemon=True)
        self._thread.start()
        host, port = self.address
        print(f"[Life] Server listening on http://{host}:{port}")
        return self

    def serve_forever(self):
        host, port = self.address
        print(f"[Life] Server listening on http://{host}:{port}")
        self.httpd.serve_forever()

    def stop(self):
        self.httpd.shutdown()
        self.httpd.server_close()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
        print("[Life] Server stopped")
