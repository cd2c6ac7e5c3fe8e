from .ranging import RangeSimulator, box_muller

__all__ = ["RangeSimulator", "box_muller"]
