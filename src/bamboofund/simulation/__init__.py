"""Year-by-year simulation of the revolving bamboo fund."""

from .runner import SimulationResult, SimulationRunner, YearRecord, simulate

__all__ = ["SimulationResult", "SimulationRunner", "YearRecord", "simulate"]
