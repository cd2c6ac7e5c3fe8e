from __future__ import annotations

import argparse

import matplotlib.pyplot as plt

from indoor_nav import NavigationEngine, Target, load_facility
from indoor_nav.utils import load_engine_config, setup_logging
from indoor_nav.viz import draw_engine


class KeyController:
    """Collects key presses; the main loop turns them into engine events.

    Matplotlib swallows exceptions raised in callbacks, so reset/quit are
    flags polled by the loop.
    """

    def __init__(self):
        self.pending: list[str] = []
        self.reset = False
        self.quit = False

    def on_key(self, event):
        if event.key in ("up", "down", "left", "right"):
            self.pending.append(event.key)
        elif event.key == "a":
            self.pending.append("rotate_left")
        elif event.key == "d":
            self.pending.append("rotate_right")
        elif event.key == "r":
            self.reset = True
        elif event.key == "q":
            self.quit = True


def default_targets(engine: NavigationEngine) -> list[Target]:
    out = []
    for f in engine.facility.checkouts[:1] + engine.facility.services:
        out.append(Target(f.id, f.position, f.name))
    return out


def new_session(facility, cfg) -> NavigationEngine:
    engine = NavigationEngine(facility, cfg)
    engine.set_targets(default_targets(engine))
    return engine


def draw(engine: NavigationEngine, ax):
    route = engine.route
    status = {
        "readings": len(engine.readings),
        "estimate_ok": engine.estimate_ok,
        "route_cells": len(route.cells) if route else 0,
        "distance": route.total_distance if route else None,
        "eta_min": route.estimated_time_min if route else None,
    }
    draw_engine(engine, ax, status)
    ax.set_title("Manual Control: arrows=move, a/d=rotate, r=reset, q=quit")


def main():
    parser = argparse.ArgumentParser(description="Drive the agent around a facility with the keyboard")
    parser.add_argument("--layout", type=str, default="configs/layouts/demo_store.yaml")
    parser.add_argument("--config", type=str, default="configs/engine_default.yaml")
    parser.add_argument("--tick", type=float, default=0.05, help="Tick period in seconds")
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("overrides", nargs="*", help="Config overrides, e.g. ranging.noise_std=0.2")
    args = parser.parse_args()

    setup_logging(args.verbose)
    facility = load_facility(args.layout)
    cfg = load_engine_config(args.config, args.overrides)
    controller = KeyController()

    fig, ax = plt.subplots(figsize=(8, 6))
    cid = fig.canvas.mpl_connect("key_press_event", controller.on_key)

    engine = new_session(facility, cfg)
    while not controller.quit and plt.fignum_exists(fig.number):
        if controller.reset:
            controller.reset = False
            controller.pending.clear()
            engine = new_session(facility, cfg)
        while controller.pending:
            engine.on_control_event(controller.pending.pop(0))
        engine.on_tick()
        draw(engine, ax)
        plt.pause(args.tick)

    fig.canvas.mpl_disconnect(cid)
    plt.close(fig)


if __name__ == "__main__":
    main()
