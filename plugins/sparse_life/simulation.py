"""
Simulation - threaded controller for the sparse automaton

One background thread owns generation progression. Everybody else talks
to it by queueing commands (start, stop, pause, resume, step, speed,
shutdown) and reads results back through snapshot accessors.

World, run state, tick count and speed each sit behind their own lock.
There is no lock spanning several fields, so a status read is a relaxed
composite: the tick count may be one ahead of (or behind) the world it
is reported with. Each individual field is always read consistently,
and the world swap at the end of a tick is a single reference
assignment, so readers never see a half-built generation.

Usage:
    sim = Simulation(GameOfLife(), world=to_world(get_preset("glider")))
    sim.start_loop()
    sim.send(SimulationCommand.start())
    ...
    sim.shutdown()
"""

import enum
import os
import queue
import threading
import time
from dataclasses import dataclass

from .life import GameOfLife
from .world import World


DEFAULT_TPS = 10
MIN_TPS = 1
MAX_TPS = 1000
IDLE_INTERVAL = 0.010   # seconds between command checks while not running


class SimulationState(str, enum.Enum):
    STOPPED = "stopped"
    RUNNING = "running"
    PAUSED = "paused"


class CommandKind(str, enum.Enum):
    START = "start"
    STOP = "stop"
    PAUSE = "pause"
    RESUME = "resume"
    STEP = "step"
    SET_SPEED = "set_speed"
    SHUTDOWN = "shutdown"


@dataclass(frozen=True)
class SimulationCommand:
    """One message on the command queue. `tps` is only used by SET_SPEED."""

    kind: CommandKind
    tps: int = 0

    @classmethod
    def start(cls):
        return cls(CommandKind.START)

    @classmethod
    def stop(cls):
        return cls(CommandKind.STOP)

    @classmethod
    def pause(cls):
        return cls(CommandKind.PAUSE)

    @classmethod
    def resume(cls):
        return cls(CommandKind.RESUME)

    @classmethod
    def step(cls):
        return cls(CommandKind.STEP)

    @classmethod
    def set_speed(cls, tps):
        return cls(CommandKind.SET_SPEED, int(tps))

    @classmethod
    def shutdown(cls):
        return cls(CommandKind.SHUTDOWN)


class CommandDeliveryError(RuntimeError):
    """Raised by Simulation.send() when no control loop is receiving."""


def clamp_tps(tps):
    return max(MIN_TPS, min(int(tps), MAX_TPS))


def _exit_process(exc):
    print(f"[Life] Fatal error in simulation loop, terminating: {exc!r}")
    os._exit(1)


class Simulation:
    """Owns one World plus run state, tick counter and speed.

    Args:
        rule: Rule used for every tick (default: Conway's Game of Life)
        world: Initial world (default: empty). Stored as given.
        tps: Initial speed in ticks per second, clamped to [1, 1000]
        on_fatal: Called with the exception if a tick raises inside the
            control loop. Defaults to terminating the process.
    """

    def __init__(self, rule=None, world=None, tps=DEFAULT_TPS, on_fatal=None):
        self.rule = rule if rule is not None else GameOfLife()
        self.on_fatal = on_fatal or _exit_process

        self._world = world if world is not None else World()
        self._state = SimulationState.STOPPED
        self._tick_count = 0
        self._tps = clamp_tps(tps)

        self._world_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._tick_lock = threading.Lock()
        self._tps_lock = threading.Lock()

        # Unbounded FIFO, many producers, the loop thread is the only consumer
        self._commands = queue.Queue()
        self._channel_lock = threading.Lock()
        self._accepting = False
        self._thread = None

    # ── Accessors ─────────────────────────────────────────────────────

    def get_world(self):
        """Independent deep copy of the current world."""
        with self._world_lock:
            return self._world.copy()

    def get_state(self):
        with self._state_lock:
            return self._state

    def get_tick_count(self):
        with self._tick_lock:
            return self._tick_count

    def get_tps(self):
        with self._tps_lock:
            return self._tps

    def status(self):
        """Snapshot dict of state, tick_count, tps and active_cells.

        Fields are read one lock at a time, not atomically together.
        """
        with self._world_lock:
            active = self._world.active_cell_count()
        return {
            "state": self.get_state().value,
            "tick_count": self.get_tick_count(),
            "tps": self.get_tps(),
            "active_cells": active,
        }

    # ── Direct mutation (used by the loop, tests and adapters) ────────

    def set_world(self, world):
        with self._world_lock:
            self._world = world

    def set_rule(self, rule):
        """Swap the rule. Takes effect from the next tick."""
        with self._world_lock:
            self.rule = rule

    def update_world(self, fn):
        """Run fn(world) against the live world under the world lock.

        Lets adapters edit cells without racing a tick that would
        otherwise overwrite a get_world()/set_world() round trip.
        Returns whatever fn returns.
        """
        with self._world_lock:
            return fn(self._world)

    def set_tps(self, tps):
        with self._tps_lock:
            self._tps = clamp_tps(tps)

    def reset_tick_count(self):
        with self._tick_lock:
            self._tick_count = 0

    def step(self):
        """Apply the rule once and advance the tick counter."""
        with self._world_lock:
            self._world = self.rule.apply(self._world)
        with self._tick_lock:
            self._tick_count += 1

    def _set_state(self, state):
        with self._state_lock:
            self._state = state

    def handle_command(self, cmd):
        """Apply one command synchronously. Returns False for SHUTDOWN."""
        kind = cmd.kind
        if kind == CommandKind.START:
            self._set_state(SimulationState.RUNNING)
        elif kind == CommandKind.STOP:
            self._set_state(SimulationState.STOPPED)
            self.reset_tick_count()
        elif kind == CommandKind.PAUSE:
            self._set_state(SimulationState.PAUSED)
        elif kind == CommandKind.RESUME:
            with self._state_lock:
                if self._state == SimulationState.PAUSED:
                    self._state = SimulationState.RUNNING
        elif kind == CommandKind.STEP:
            self.step()
        elif kind == CommandKind.SET_SPEED:
            self.set_tps(cmd.tps)
        elif kind == CommandKind.SHUTDOWN:
            return False
        else:
            raise ValueError(f"Unknown command: {cmd!r}")
        return True

    # ── Command channel ───────────────────────────────────────────────

    def send(self, cmd):
        """Queue a command for the control loop.

        Raises:
            CommandDeliveryError: the loop is not running (never started,
                or already shut down). Not retried.
        """
        with self._channel_lock:
            if not self._accepting:
                raise CommandDeliveryError(
                    f"Failed to send {cmd.kind.value} command: simulation loop is not running")
            self._commands.put(cmd)

    def start_loop(self):
        """Spawn the control loop thread. Returns the thread."""
        with self._channel_lock:
            if self._thread is not None and self._thread.is_alive():
                return self._thread
            # Commands left over from a previous loop are dropped
            self._commands = queue.Queue()
            self._accepting = True
            self._thread = _SimulationLoop(self)
        self._thread.start()
        return self._thread

    def is_running_loop(self):
        return self._thread is not None and self._thread.is_alive()

    def join(self, timeout=None):
        if self._thread is not None:
            self._thread.join(timeout)

    def shutdown(self, timeout=2.0):
        """Send SHUTDOWN (if the loop is up) and wait for the thread."""
        try:
            self.send(SimulationCommand.shutdown())
        except CommandDeliveryError:
            pass
        self.join(timeout)

    def _close_channel(self):
        with self._channel_lock:
            self._accepting = False


# ── Control loop thread ───────────────────────────────────────────────

class _SimulationLoop(threading.Thread):
    """Background thread that drains commands and paces ticks.

    Each pass takes at most one queued command, then either runs one tick
    (RUNNING) or idles for IDLE_INTERVAL. A tick that overruns its budget
    is followed immediately by the next one; there is no catch-up.
    """

    def __init__(self, sim):
        super().__init__(daemon=True, name="sparse-life-sim")
        self.sim = sim

    def run(self):
        sim = self.sim
        print(f"[Life] Simulation thread started ({sim.rule.name()})")
        try:
            while True:
                try:
                    cmd = sim._commands.get_nowait()
                except queue.Empty:
                    cmd = None
                if cmd is not None and not sim.handle_command(cmd):
                    break

                if sim.get_state() == SimulationState.RUNNING:
                    start = time.perf_counter()
                    sim.step()
                    budget = 1.0 / sim.get_tps()
                    elapsed = time.perf_counter() - start
                    if elapsed < budget:
                        time.sleep(budget - elapsed)
                else:
                    time.sleep(IDLE_INTERVAL)
        except Exception as e:
            sim._close_channel()
            sim.on_fatal(e)
            return
        sim._close_channel()
        print("[Life] Simulation thread stopped")
