from __future__ import annotations

import argparse

from indoor_nav import load_facility
from indoor_nav.planning import build_walkable_grid, find_path, snap_to_walkable, walkable_components


def main():
    parser = argparse.ArgumentParser(
        description="Check every point of interest is reachable from every entrance"
    )
    parser.add_argument("--layout", type=str, default="configs/layouts/demo_store.yaml")
    args = parser.parse_args()

    facility = load_facility(args.layout)
    grid = build_walkable_grid(facility.bounds, facility.obstacles)
    _, n_regions = walkable_components(grid)
    print("[REACH] grid=", grid.shape, "walkable=", int(grid.sum()), "regions=", n_regions)

    failures = 0
    for entrance in facility.entrances:
        start = snap_to_walkable(grid, entrance.position)
        for poi in facility.points_of_interest():
            if poi.id == entrance.id:
                continue
            goal = snap_to_walkable(grid, poi.position)
            path = find_path(grid, start, goal) if start is not None and goal is not None else []
            if not path:
                failures += 1
                print(f"[REACH] UNREACHABLE {entrance.id} -> {poi.id}")
            else:
                print(f"[REACH] {entrance.id} -> {poi.id}: {len(path) - 1} steps")

    print("[REACH] failures=", failures)


if __name__ == "__main__":
    main()
