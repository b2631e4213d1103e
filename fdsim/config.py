"""
Configuration management module for fdsim.

Purpose
-------
Centralized configuration using Pydantic models for type-safe parameter
management, validation, and serialization of runs.

Design Principles
-----------------
- Type-safe: Pydantic enforces types and validates ranges
- Immutable: Frozen models prevent accidental mutation
- Serializable: Easy conversion to/from JSON run configs
- Environment-aware: AppSettings reads FDSIM_* variables and .env files

Example
-------
>>> from fdsim.config import RunConfig, HandConfig
>>> cfg = RunConfig(seed="RUN-001", years=15, mode="life")
>>> cfg.hand.max_hand
8
>>> RunConfig.model_validate_json(cfg.model_dump_json()) == cfg
True
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_COMMONS,
    DEFAULT_GAME_SEED,
    DEFAULT_GAME_YEARS,
    DEFAULT_MAX_HAND,
    DEFAULT_RARE_CHANCE,
    DEFAULT_UNCOMMONS,
    DEFAULT_WILD_CHANCE,
)

__all__ = [
    "StateOverrides",
    "HandConfig",
    "RunConfig",
    "AppSettings",
    "PolicyName",
]


PolicyName = Literal["first", "recommended", "recovery"]


# ---------------------------------------------------------------------------
# Initial State Overrides
# ---------------------------------------------------------------------------

class StateOverrides(BaseModel):
    """
    Optional overrides for the initial player state.

    Every field defaults to None, meaning "use the engine default".
    Gauges and traits are not range-checked here: create_initial_state
    clamps them, so ``stress=140`` starts a run at 100.

    Both snake_case and camelCase keys are accepted (``rentalUnits``,
    ``sideHustleLevel``).

    Examples
    --------
    >>> StateOverrides(cash=9000, debt=15000).explicit()
    {'cash': 9000.0, 'debt': 15000.0}
    >>> StateOverrides.model_validate({"rentalUnits": 2}).rental_units
    2
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    year: Optional[int] = Field(default=None, ge=1, description="Starting year")
    cash: Optional[float] = Field(default=None, description="Liquid cash")
    invested: Optional[float] = Field(default=None, description="Market investments")
    debt: Optional[float] = Field(default=None, description="Interest-bearing debt")
    income: Optional[float] = Field(default=None, description="Annual income run-rate")
    expenses: Optional[float] = Field(default=None, description="Annual expense run-rate")
    stress: Optional[float] = Field(default=None, description="Stress gauge (0-100)")
    risk: Optional[float] = Field(default=None, description="Risk appetite (0-1)")
    discipline: Optional[float] = Field(default=None, description="Discipline trait (0-1)")
    burnout: Optional[float] = Field(default=None, description="Burnout gauge (0-100)")
    rental_units: Optional[int] = Field(default=None, ge=0, description="Owned rental units")
    side_hustle_level: Optional[int] = Field(default=None, ge=0, description="Side hustle level")

    def explicit(self) -> Dict[str, Any]:
        """Return only the fields that were set, keyed by snake_case name."""
        return self.model_dump(exclude_none=True)

    def merged_with(self, other: Optional["StateOverrides"]) -> "StateOverrides":
        """Return a copy where fields set on *other* win."""
        if other is None:
            return self
        data = self.explicit()
        data.update(other.explicit())
        return StateOverrides(**data)


# ---------------------------------------------------------------------------
# Hand Configuration
# ---------------------------------------------------------------------------

class HandConfig(BaseModel):
    """
    Composition of the hand drawn each year.

    Attributes
    ----------
    commons : int
        Common cards drawn first.
    uncommons : int
        Uncommon cards drawn second.
    include_rare_chance : float
        Probability of adding one rare card.
    include_wild_chance : float
        Probability of adding one wildcard-type card.
    max_hand : int
        Hard cap on hand size.

    Examples
    --------
    >>> HandConfig().commons
    4
    >>> HandConfig(include_rare_chance=1.0).include_rare_chance
    1.0
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    commons: int = Field(default=DEFAULT_COMMONS, ge=0, le=18)
    uncommons: int = Field(default=DEFAULT_UNCOMMONS, ge=0, le=18)
    include_rare_chance: float = Field(default=DEFAULT_RARE_CHANCE, ge=0, le=1)
    include_wild_chance: float = Field(default=DEFAULT_WILD_CHANCE, ge=0, le=1)
    max_hand: int = Field(default=DEFAULT_MAX_HAND, ge=1, le=18)


# ---------------------------------------------------------------------------
# Run Configuration
# ---------------------------------------------------------------------------

class RunConfig(BaseModel):
    """
    Configuration for a complete run, loadable from JSON.

    Attributes
    ----------
    seed : str or int
        Run seed; same seed and choices reproduce the run exactly.
    years : int
        Horizon (1-1000 years).
    mode : str
        Starting mode name (see fdsim.modes).
    policy : {"first", "recommended", "recovery"}
        Card choice policy for headless runs.
    initial_state : StateOverrides
        Overrides applied on top of the mode.
    hand : HandConfig
        Hand composition.

    Examples
    --------
    >>> cfg = RunConfig(seed=42, years=5, initial_state={"cash": 20_000})
    >>> cfg.resolved_overrides().cash
    20000.0
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    seed: Union[str, int] = Field(
        default=DEFAULT_GAME_SEED,
        description="Run seed (text or integer)"
    )
    years: int = Field(
        default=DEFAULT_GAME_YEARS,
        ge=1,
        le=1000,
        description="Simulation horizon in years"
    )
    mode: str = Field(
        default="life",
        min_length=1,
        description="Starting mode"
    )
    policy: PolicyName = Field(
        default="first",
        description="Card choice policy for headless runs"
    )
    initial_state: StateOverrides = Field(
        default_factory=StateOverrides,
        description="Initial state overrides applied over the mode"
    )
    hand: HandConfig = Field(
        default_factory=HandConfig,
        description="Hand composition"
    )

    @field_validator("seed")
    @classmethod
    def validate_seed(cls, v):
        """Reject blank text seeds."""
        if isinstance(v, str) and not v.strip():
            raise ValueError("seed must not be blank")
        return v

    @model_validator(mode="after")
    def validate_mode(self):
        """Ensure the starting mode exists."""
        from .modes import STARTING_MODES

        if self.mode not in STARTING_MODES:
            raise ValueError(
                f"Unknown mode '{self.mode}'. Available: {sorted(STARTING_MODES)}"
            )
        return self

    def resolved_overrides(self) -> StateOverrides:
        """Mode overrides with explicit ``initial_state`` fields on top."""
        from .modes import get_mode_overrides

        return get_mode_overrides(self.mode).merged_with(self.initial_state)


# ---------------------------------------------------------------------------
# Application Settings (Environment Variables)
# ---------------------------------------------------------------------------

class AppSettings(BaseSettings):
    """
    Global application settings loaded from environment variables.

    Environment variables are prefixed with FDSIM_ (e.g. FDSIM_LOG_LEVEL=DEBUG).

    Attributes
    ----------
    debug : bool
        Enable debug mode (forces DEBUG logging)
    log_level : str
        Logging level: "DEBUG", "INFO", "WARNING", "ERROR"
    default_seed : str
        Seed used by the CLI when none is given
    default_years : int
        Horizon used by the CLI when none is given
    output_dir : Path
        Directory that relative ``run --output`` paths resolve against

    Examples
    --------
    >>> settings = AppSettings()
    >>> settings.log_level
    'WARNING'
    """

    model_config = SettingsConfigDict(
        env_prefix="FDSIM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging level"
    )
    default_seed: str = Field(
        default=DEFAULT_GAME_SEED,
        description="Seed used when the CLI gets none"
    )
    default_years: int = Field(
        default=DEFAULT_GAME_YEARS,
        ge=1,
        le=1000,
        description="Horizon used when the CLI gets none"
    )
    output_dir: Path = Field(
        default=Path("runs"),
        description="Directory that relative run --output paths resolve against"
    )

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level
