"""
Interactive Pygame Viewer for the Sparse World

Drives a Simulation purely through its command queue and draws a
window onto the unbounded plane. Live cells glow and fade out as they
die.

Controls:
  SPACE       Start / Pause / Resume
  N           Single step
  C           Stop and clear
  + / -       Double / halve speed (TPS)
  Arrows      Pan
  Z / X       Zoom in / out
  1-9         Load preset (display order)
  S           Save screenshot
  H           Toggle HUD overlay
  Q / ESC     Quit
  Mouse L     Draw cells
  Mouse R     Erase cells
"""

import os
import time

import pygame

from .coord import Coord
from .life import GameOfLife
from .presets import PRESET_ORDER, get_preset, load_into, rule_for
from .render import COLORMAPS, FadeBuffer, colorize, render_region, save_png
from .simulation import SimulationCommand, SimulationState

ZOOM_LEVELS = [1, 2, 3, 4, 6, 8, 12, 16, 24, 32]
PAN_STEP = 8          # cells per arrow press, at zoom 1 scaled down by zoom
FRAME_RATE = 60


class Viewer:

    def __init__(self, simulation, width=900, height=900, zoom=8,
                 colormap="neon_bio", start_preset=None, fixed_rule=None):
        self.sim = simulation
        self.width = width
        self.height = height
        self.zoom_idx = ZOOM_LEVELS.index(zoom) if zoom in ZOOM_LEVELS else 5
        self.lut = COLORMAPS[colormap]()
        self.preset_key = start_preset
        # An explicit rule wins; otherwise each preset brings its own
        self.fixed_rule = fixed_rule

        # World coordinate at the top-left corner of the window
        self.origin_x = 0
        self.origin_y = 0
        self._center_on_world()

        cols, rows = self._grid_size()
        self.fade = FadeBuffer(cols, rows)

        self.running = True
        self.show_hud = True
        self.hud_font = None

    @property
    def zoom(self):
        return ZOOM_LEVELS[self.zoom_idx]

    def _grid_size(self):
        return self.width // self.zoom + 1, self.height // self.zoom + 1

    def _center_on_world(self):
        cols, rows = self._grid_size()
        bounds = self.sim.get_world().get_bounds()
        if bounds is None:
            cx, cy = 0, 0
        else:
            lo, hi = bounds
            cx, cy = (lo.x + hi.x) // 2, (lo.y + hi.y) // 2
        self.origin_x = cx - cols // 2
        self.origin_y = cy - rows // 2

    def _screen_to_cell(self, mx, my):
        return Coord(self.origin_x + mx // self.zoom, self.origin_y + my // self.zoom)

    def _set_zoom(self, idx):
        idx = max(0, min(idx, len(ZOOM_LEVELS) - 1))
        if idx == self.zoom_idx:
            return
        # Keep the window center fixed
        cols, rows = self._grid_size()
        cx, cy = self.origin_x + cols // 2, self.origin_y + rows // 2
        self.zoom_idx = idx
        cols, rows = self._grid_size()
        self.origin_x, self.origin_y = cx - cols // 2, cy - rows // 2
        self.fade.resize(cols, rows)

    def _apply_preset(self, key):
        preset = get_preset(key)
        if preset is None:
            return
        self.preset_key = key
        self.sim.set_rule(self.fixed_rule or rule_for(preset, GameOfLife()))
        self.sim.update_world(lambda world: load_into(preset, world))
        self.fade.clear()
        self._center_on_world()
        print(f"[Life] Loaded preset {preset['name']} ({self.sim.rule.name()})")

    def _toggle_run(self):
        state = self.sim.get_state()
        if state == SimulationState.RUNNING:
            self.sim.send(SimulationCommand.pause())
        elif state == SimulationState.PAUSED:
            self.sim.send(SimulationCommand.resume())
        else:
            self.sim.send(SimulationCommand.start())

    def _on_clear(self):
        self.sim.send(SimulationCommand.stop())
        self.sim.update_world(lambda world: world.clear())
        self.fade.clear()

    def _render_frame(self):
        cols, rows = self._grid_size()
        world = self.sim.get_world()
        grid = render_region(world, self.origin_x, self.origin_y, cols, rows)
        values = self.fade.update(grid)
        rgb = colorize(values, self.lut)
        z = self.zoom
        if z > 1:
            rgb = rgb.repeat(z, axis=0).repeat(z, axis=1)
        rgb = rgb[:self.height, :self.width]
        # surfarray is (W, H, 3)
        return pygame.surfarray.make_surface(rgb.swapaxes(0, 1).copy())

    def _draw_hud(self, screen, fps):
        if not self.show_hud:
            return
        status = self.sim.status()
        preset = get_preset(self.preset_key) if self.preset_key else None
        line = (f"{self.sim.rule.name()}"
                f"{' - ' + preset['name'] if preset else ''}  |  "
                f"Gen: {status['tick_count']:,}  |  Alive: {status['active_cells']:,}  |  "
                f"TPS: {status['tps']}  |  Zoom: {self.zoom}x  |  FPS: {fps:.0f}")
        if status["state"] != SimulationState.RUNNING.value:
            line = f"[{status['state'].upper()}]  " + line

        bg = pygame.Surface((self.width, 24), pygame.SRCALPHA)
        bg.fill((0, 0, 0, 140))
        screen.blit(bg, (0, 0))
        screen.blit(self.hud_font.render(line, True, (210, 215, 225)), (10, 6))

    def _handle_mouse(self):
        buttons = pygame.mouse.get_pressed()
        if not (buttons[0] or buttons[2]):
            return
        coord = self._screen_to_cell(*pygame.mouse.get_pos())
        alive = bool(buttons[0])
        self.sim.update_world(lambda world: world.set_cell(coord, alive))

    def _save_screenshot(self):
        screenshots_dir = os.path.join(os.getcwd(), "screenshots")
        os.makedirs(screenshots_dir, exist_ok=True)
        timestamp = time.strftime("%Y%m%d_%H%M%S")
        path = os.path.join(screenshots_dir, f"life_{timestamp}.png")
        if save_png(self.sim.get_world(), path) is None:
            print("[Life] Nothing to save: world is empty")
            return
        print(f"[Life] Screenshot saved: {path}")

    def run(self):
        """Main viewer loop. Shuts the simulation loop down on exit."""
        pygame.init()
        screen = pygame.display.set_mode((self.width, self.height), pygame.RESIZABLE)
        pygame.display.set_caption("Sparse Life")
        clock = pygame.time.Clock()
        self.hud_font = pygame.font.SysFont("menlo", 13)

        if not self.sim.is_running_loop():
            self.sim.start_loop()
        if self.preset_key:
            self._apply_preset(self.preset_key)

        while self.running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    self.running = False
                elif event.type == pygame.VIDEORESIZE:
                    self.width, self.height = event.w, event.h
                    screen = pygame.display.set_mode((self.width, self.height), pygame.RESIZABLE)
                    self.fade.resize(*self._grid_size())
                elif event.type == pygame.KEYDOWN:
                    self._handle_keydown(event)

            self._handle_mouse()

            screen.blit(self._render_frame(), (0, 0))
            self._draw_hud(screen, clock.get_fps())
            pygame.display.flip()
            clock.tick(FRAME_RATE)

        self.sim.shutdown()
        pygame.quit()

    def _handle_keydown(self, event):
        key = event.key
        pan = max(1, PAN_STEP * 4 // self.zoom)

        if key in (pygame.K_q, pygame.K_ESCAPE):
            self.running = False
        elif key == pygame.K_SPACE:
            self._toggle_run()
        elif key == pygame.K_n:
            self.sim.send(SimulationCommand.step())
        elif key == pygame.K_c:
            self._on_clear()
        elif key in (pygame.K_PLUS, pygame.K_EQUALS, pygame.K_KP_PLUS):
            self.sim.send(SimulationCommand.set_speed(self.sim.get_tps() * 2))
        elif key in (pygame.K_MINUS, pygame.K_KP_MINUS):
            self.sim.send(SimulationCommand.set_speed(self.sim.get_tps() // 2))
        elif key == pygame.K_LEFT:
            self.origin_x -= pan
        elif key == pygame.K_RIGHT:
            self.origin_x += pan
        elif key == pygame.K_UP:
            self.origin_y -= pan
        elif key == pygame.K_DOWN:
            self.origin_y += pan
        elif key == pygame.K_z:
            self._set_zoom(self.zoom_idx + 1)
        elif key == pygame.K_x:
            self._set_zoom(self.zoom_idx - 1)
        elif key == pygame.K_s:
            self._save_screenshot()
        elif key == pygame.K_h:
            self.show_hud = not self.show_hud
        elif pygame.K_1 <= key <= pygame.K_9:
            idx = key - pygame.K_1
            if idx < len(PRESET_ORDER):
                self._apply_preset(PRESET_ORDER[idx])
