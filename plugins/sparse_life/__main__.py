"""
Sparse Life - Entry Point

Usage:
    python -m sparse_life [preset] [--rule R] [--tps N] [--window WxH]
    python -m sparse_life [preset] --serve [--host H] [--port P]
    python -m sparse_life [preset] --snap N [--out PATH]

Examples:
    python -m sparse_life
    python -m sparse_life gosper_glider_gun --tps 30
    python -m sparse_life replicator --rule highlife
    python -m sparse_life glider --serve --port 3000
    python -m sparse_life acorn --snap 500 --out acorn.png

Modes:
    (default)   pygame viewer
    --serve     HTTP control API (see sparse_life.server)
    --snap N    headless: run N generations, save a PNG, exit

Use --list to see all available presets and rules.
"""

import sys

from .life import RULE_ORDER, RULES, create_rule
from .presets import PRESETS, PRESET_ORDER, get_preset, list_presets, to_world
from .render import save_png
from .server import DEFAULT_HOST, DEFAULT_PORT, ApiServer
from .simulation import DEFAULT_TPS, Simulation


def snap(preset_key, rule, steps, out_path):
    """Headless mode: run N generations, save the result as a PNG."""
    preset = get_preset(preset_key)
    world = to_world(preset)
    print(f"  {preset_key}: running {steps} generations...", end="", flush=True)
    world = rule.apply_n(world, steps)
    path = save_png(world, out_path)
    if path is None:
        print(" world died out, nothing saved")
    else:
        print(f" {world.active_cell_count()} cells, saved: {path}")


def serve(sim, host, port):
    sim.start_loop()
    server = ApiServer(sim, host=host, port=port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print()
    finally:
        server.httpd.server_close()
        sim.shutdown()


class _BadValue(ValueError):
    pass


def _int_value(flag, value):
    try:
        return int(value)
    except ValueError:
        raise _BadValue(f"Invalid value for {flag}: {value!r} (expected an integer)") from None


def _parse_window(value):
    """'900x600' -> (900, 600)."""
    try:
        w, h = value.lower().split("x")
        return int(w), int(h)
    except ValueError:
        raise _BadValue(f"Invalid value for --window: {value!r} (expected WxH)") from None


def _print_list():
    print("\nAvailable presets:")
    for key, name, desc, count in list_presets():
        rule = PRESETS[key].get("rule", "life")
        print(f"    {key:20s} {name:20s} {count:5d} cells  [{rule}]  {desc}")
    print("\nAvailable rules:")
    for key in RULE_ORDER:
        r = RULES[key]
        print(f"    {key:20s} {r['rule']:16s} {r['name']}")
    print()


def main(argv=None):
    preset = "glider"
    rule_key = None
    tps = DEFAULT_TPS
    win_w, win_h = 900, 900
    snap_steps = 0
    out_path = "snap.png"
    serve_mode = False
    host, port = DEFAULT_HOST, DEFAULT_PORT

    args = sys.argv[1:] if argv is None else list(argv)
    i = 0
    try:
        while i < len(args):
            arg = args[i]
            if arg == "--rule" and i + 1 < len(args):
                rule_key = args[i + 1]
                i += 2
            elif arg == "--tps" and i + 1 < len(args):
                tps = _int_value(arg, args[i + 1])
                i += 2
            elif arg == "--window" and i + 1 < len(args):
                win_w, win_h = _parse_window(args[i + 1])
                i += 2
            elif arg == "--snap" and i + 1 < len(args):
                snap_steps = _int_value(arg, args[i + 1])
                i += 2
            elif arg == "--out" and i + 1 < len(args):
                out_path = args[i + 1]
                i += 2
            elif arg == "--host" and i + 1 < len(args):
                host = args[i + 1]
                i += 2
            elif arg == "--port" and i + 1 < len(args):
                port = _int_value(arg, args[i + 1])
                i += 2
            elif arg == "--serve":
                serve_mode = True
                i += 1
            elif arg == "--list":
                _print_list()
                return 0
            elif arg in ("--help", "-h"):
                print(__doc__)
                return 0
            elif arg in PRESET_ORDER:
                preset = arg
                i += 1
            else:
                print(f"Unknown argument: {arg}")
                print("Use --list to see available presets")
                return 2
    except _BadValue as e:
        print(e)
        return 2

    explicit_rule = rule_key is not None
    if rule_key is None:
        rule_key = PRESETS[preset].get("rule", "life")
    try:
        rule = create_rule(rule_key)
    except KeyError as e:
        print(f"Unknown rule: {rule_key} ({e})")
        return 2

    if snap_steps > 0:
        print(f"Headless snap mode: {preset} under {rule.name()}, {snap_steps} generations")
        snap(preset, rule, snap_steps, out_path)
        return 0

    sim = Simulation(rule, world=to_world(PRESETS[preset]), tps=tps)
    print(f"[Life] Loaded initial preset: {PRESETS[preset]['name']}")

    if serve_mode:
        serve(sim, host, port)
        return 0

    from .viewer import Viewer

    print("Starting Sparse Life Viewer")
    print(f"  Preset: {preset}")
    print(f"  Rule: {rule.name()}")
    print(f"  Window: {win_w}x{win_h}")
    print()

    viewer = Viewer(sim, width=win_w, height=win_h, start_preset=preset,
                    fixed_rule=rule if explicit_rule else None)
    viewer.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
