"""Pydantic schema for configuration validation."""

import hashlib
import json
import math
from typing import Any, Dict, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..engine.revenue import CARBON_ACCRUAL_YEARS, CARBON_FACTOR

# Upper bound on the yearly loop; real programs run 15-35 years.
MAX_DURATION_YEARS = 1000

# Flat camelCase keys used by the presentation layer -> nested config path.
FLAT_FIELD_PATHS = {
    "repaymentRate": "financing.repayment_rate",
    "initialCapital": "financing.initial_capital",
    "investmentPerHectare": "financing.investment_per_hectare",
    "farmerSurfaceHectares": "financing.farmer_surface_hectares",
    "bambooProductionPerHectare": "production.bamboo_production_per_hectare",
    "bambooPricePerTon": "production.bamboo_price_per_ton",
    "carbonPricePerTon": "production.carbon_price_per_ton",
    "commissionRate": "program.commission_rate",
    "fundRecapitalizationRate": "program.fund_recapitalization_rate",
    "simulationDurationYears": "simulation.duration_years",
}


class InvalidConfiguration(ValueError):
    """
    Raised when a configuration cannot be simulated.

    Covers negative or non-finite numeric fields, a zero financing cost,
    a non-positive or oversized duration, unknown flat keys and per-farmer
    amounts that overflow. Raised before any simulation step, so callers
    never see partial results. The runner also raises it, with no result,
    if compounding growth overflows partway through a long horizon.
    """

    def __init__(self, message: str, errors: list = None):
        super().__init__(message)
        self.errors = errors or []

    @classmethod
    def from_validation_error(cls, exc: ValidationError) -> "InvalidConfiguration":
        """Build from a pydantic ValidationError, one line per failing field."""
        lines = []
        for err in exc.errors():
            path = ".".join(str(part) for part in err["loc"]) or "<root>"
            lines.append(f"{path}: {err['msg']}")
        message = "Invalid configuration:\n  " + "\n  ".join(lines)
        return cls(message, errors=lines)


class _Section(BaseModel):
    """Base for config sections: rejects NaN/inf floats."""
    model_config = ConfigDict(allow_inf_nan=False)


class Financing(_Section):
    """Revolving fund and per-farmer loan terms."""
    repayment_rate: float = Field(ge=0, description="Share of cohort revenue applied to its loan (%)")
    initial_capital: float = Field(ge=0, description="Initial fund capital (millions)")
    investment_per_hectare: float = Field(gt=0, description="Conversion cost financed per hectare")
    farmer_surface_hectares: float = Field(gt=0, description="Hectares converted per farmer")

    @property
    def repayment_fraction(self) -> float:
        return self.repayment_rate / 100.0

    @property
    def initial_fund(self) -> float:
        """Initial fund balance in monetary units."""
        return self.initial_capital * 1_000_000

    @property
    def cost_per_farmer(self) -> float:
        return self.investment_per_hectare * self.farmer_surface_hectares


class Production(_Section):
    """Bamboo yield and market prices."""
    bamboo_production_per_hectare: float = Field(ge=0, description="Bamboo produced (t/ha/year)")
    bamboo_price_per_ton: float = Field(ge=0, description="Bamboo sale price per ton")
    carbon_price_per_ton: float = Field(ge=0, description="Carbon credit price per ton of CO2")


class Program(_Section):
    """Operator commission and fund recapitalization."""
    commission_rate: float = Field(ge=0, description="Operator's cut of revenue (%)")
    fund_recapitalization_rate: float = Field(ge=0, description="Share of revenue re-injected into the fund (%)")

    @property
    def commission_fraction(self) -> float:
        return self.commission_rate / 100.0

    @property
    def recapitalization_fraction(self) -> float:
        return self.fund_recapitalization_rate / 100.0


class Simulation(_Section):
    """Simulation horizon."""
    duration_years: int = Field(ge=1, le=MAX_DURATION_YEARS, description="Number of simulated years")

    @field_validator("duration_years", mode="before")
    @classmethod
    def reject_fractional_years(cls, v):
        """Whole years only; 15.0 is accepted, 15.5 is not."""
        if isinstance(v, float) and v.is_integer():
            return int(v)
        return v


class Config(BaseModel):
    """Complete configuration for a bamboo fund simulation."""
    financing: Financing
    production: Production
    program: Program
    simulation: Simulation

    @model_validator(mode="after")
    def check_derived_amounts_finite(self) -> "Config":
        """Reject inputs whose per-farmer amounts overflow the float range."""
        financing = self.financing
        production = self.production
        if financing.cost_per_farmer == 0:
            raise ValueError("cost per farmer underflows to zero")
        farmer_output = financing.farmer_surface_hectares * production.bamboo_production_per_hectare
        derived = {
            "initial fund": financing.initial_fund,
            "cost per farmer": financing.cost_per_farmer,
            "farmers financeable": financing.initial_fund / financing.cost_per_farmer,
            "carbon revenue per farmer": (
                farmer_output * CARBON_FACTOR * production.carbon_price_per_ton * CARBON_ACCRUAL_YEARS
            ),
            "bamboo revenue per farmer": farmer_output * production.bamboo_price_per_ton,
        }
        overflowing = [name for name, value in derived.items() if not math.isfinite(value)]
        if overflowing:
            raise ValueError(f"{', '.join(overflowing)} exceeds the floating point range")
        return self

    def compute_hash(self) -> str:
        """Compute config hash for reproducibility."""
        config_dict = self.model_dump()
        config_str = json.dumps(config_dict, sort_keys=True)
        return hashlib.sha256(config_str.encode()).hexdigest()[:16]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Config':
        """Create config from a nested dictionary."""
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            raise InvalidConfiguration.from_validation_error(exc) from exc

    @classmethod
    def from_flat_dict(cls, data: Mapping[str, Any]) -> 'Config':
        """Create config from the flat camelCase record used by the UI."""
        unknown = sorted(set(data) - set(FLAT_FIELD_PATHS))
        if unknown:
            raise InvalidConfiguration(f"Unknown configuration keys: {', '.join(unknown)}")

        nested: Dict[str, Dict[str, Any]] = {}
        for key, value in data.items():
            section, field = FLAT_FIELD_PATHS[key].split(".")
            nested.setdefault(section, {})[field] = value
        return cls.from_dict(nested)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return self.model_dump()

    def to_flat_dict(self) -> Dict[str, Any]:
        """Convert config to the flat camelCase record."""
        flat = {}
        for key, path in FLAT_FIELD_PATHS.items():
            section, field = path.split(".")
            flat[key] = getattr(getattr(self, section), field)
        return flat


def validate_config(config: Any) -> Config:
    """
    Validate a Config instance or mapping and return a fresh Config.

    Config instances are re-validated because sections are mutable and
    may have been edited in place (scenario overrides, sweeps).

    Raises:
        InvalidConfiguration: if any field violates its constraints
    """
    if isinstance(config, Config):
        return Config.from_dict(config.model_dump())
    if isinstance(config, Mapping):
        if config and set(config) <= set(FLAT_FIELD_PATHS):
            return Config.from_flat_dict(config)
        return Config.from_dict(config)
    raise InvalidConfiguration(
        f"Expected a Config or mapping, got {type(config).__name__}"
    )
