from .trilateration import TrilaterationResult, estimate_position, simulate_and_estimate

__all__ = ["TrilaterationResult", "estimate_position", "simulate_and_estimate"]
