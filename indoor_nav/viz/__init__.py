from .plotting import draw_engine

__all__ = ["draw_engine"]
