from __future__ import annotations

import numpy as np
import matplotlib.pyplot as plt


def draw_engine(engine, ax, status: dict | None = None):
    ax.clear()
    grid = engine.grid
    H, W = grid.shape
    extent = [-0.5, W - 0.5, H - 0.5, -0.5]
    # Blocked cells dark; y axis points down like the facility layout
    ax.imshow(~grid, origin="upper", cmap="Greys", extent=extent, vmin=0, vmax=1)

    for b in engine.facility.beacons:
        ax.plot(b.position.x, b.position.y, "m^", markersize=6)

    route = engine.route
    if route is not None and route.cells:
        pts = route.as_array()
        ax.plot(pts[:, 0], pts[:, 1], "c-", linewidth=1.5, alpha=0.9, label="route")

    for t in engine.targets:
        ax.plot(t.position.x, t.position.y, "gx", markersize=8, markeredgewidth=2)

    # Ranging circles around the beacons actually heard
    for r in engine.readings:
        circle = plt.Circle(
            (r.position.x, r.position.y), r.measured_distance, color="r", fill=False, linewidth=0.6, alpha=0.4
        )
        ax.add_patch(circle)

    x, y = engine.true_pose.position.x, engine.true_pose.position.y
    th = np.deg2rad(engine.true_pose.heading_deg)
    ax.plot(x, y, "bo")
    ax.arrow(x, y, 0.8 * np.cos(th), 0.8 * np.sin(th), head_width=0.3, color="b")
    if engine.estimated_pose is not None:
        e = engine.estimated_pose.position
        ax.plot(e.x, e.y, "o", color="orange", markersize=5)

    ax.set_aspect("equal")
    ax.set_title("Beacons (magenta), truth (blue), estimate (orange), route (cyan)")
    ax.set_xlim(extent[0], extent[1])
    ax.set_ylim(extent[2], extent[3])

    if status:
        lines = []
        for k, v in status.items():
            if v is None:
                continue
            if isinstance(v, float):
                v = f"{v:.2f}"
            lines.append(f"{k}: {v}")
        if lines:
            ax.text(
                0.02,
                0.98,
                "\n".join(lines),
                transform=ax.transAxes,
                fontsize=8,
                va="top",
                ha="left",
                color="k",
                bbox=dict(
                    facecolor="white",
                    alpha=0.75,
                    edgecolor="none",
                    boxstyle="round,pad=0.3",
                ),
            )
