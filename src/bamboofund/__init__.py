"""Bamboo fund workbench: revolving microfinance simulation for bamboo farmers."""

from .config.loader import load_config
from .config.schema import Config, InvalidConfiguration
from .engine.impact import ImpactSummary
from .simulation.runner import SimulationResult, SimulationRunner, YearRecord, simulate

__version__ = "1.0.0"

__all__ = [
    "Config",
    "InvalidConfiguration",
    "ImpactSummary",
    "SimulationResult",
    "SimulationRunner",
    "YearRecord",
    "load_config",
    "simulate",
]
