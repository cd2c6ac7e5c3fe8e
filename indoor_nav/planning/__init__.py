from .astar import find_path, manhattan, path_length
from .grid import (
    build_walkable_grid,
    snap_to_walkable,
    walkable_components,
    world_to_cell,
)
from .route import Route, RouteLeg, RoutePlanner, order_targets

__all__ = [
    "build_walkable_grid",
    "snap_to_walkable",
    "walkable_components",
    "world_to_cell",
    "find_path",
    "manhattan",
    "path_length",
    "Route",
    "RouteLeg",
    "RoutePlanner",
    "order_targets",
]
