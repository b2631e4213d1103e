"""
Custom exceptions for fdsim.

Purpose
-------
Provides a unified exception hierarchy for the outer layers of fdsim
(configuration, persistence, CLI). The simulation engine itself never
raises for gameplay failures: an ineligible card, a declined effect or an
empty weighted pool are returned as data.

Exception Hierarchy
-------------------
FdsimError (base)
├── ConfigurationError - Invalid run parameters, unknown mode or policy
└── ValidationError - Malformed plain data
    └── SerializationError - Unreadable or incompatible run files

Usage
-----
>>> from fdsim.exceptions import ConfigurationError
>>>
>>> raise ConfigurationError("Unknown starting mode 'hard'")
>>>
>>> # Catch all fdsim exceptions
>>> try:
...     result = run_simulation(seed="RUN-001", years=-1)
... except FdsimError as e:
...     print(f"fdsim error: {e}")
"""


class FdsimError(Exception):
    """
    Base exception for all fdsim errors.

    Examples
    --------
    >>> try:
    ...     load_run(path)
    ... except FdsimError as e:
    ...     logger.error(f"Could not load run: {e}")
    """
    pass


class ConfigurationError(FdsimError):
    """
    Invalid configuration or parameters.

    Raised when run configuration is invalid, such as:
    - Negative number of years
    - Unknown starting mode name
    - Unknown policy name

    Examples
    --------
    >>> raise ConfigurationError(
    ...     "years must be >= 0, got -3. "
    ...     "Use years=0 to build a run without stepping it."
    ... )
    """
    pass


class ValidationError(FdsimError):
    """
    Plain data validation failures.

    Raised when a serialized structure does not match the documented
    plain-data schema (missing keys, wrong container types).

    Examples
    --------
    >>> raise ValidationError(
    ...     "run_meta.cooldowns must be a mapping of card id to years, "
    ...     "got list."
    ... )
    """
    pass


class SerializationError(ValidationError):
    """
    Run file could not be read back.

    Raised when a saved run is not valid JSON or lacks required sections
    such as ``history``.

    Examples
    --------
    >>> raise SerializationError(
    ...     f"Run file {path} has no 'history' section."
    ... )
    """
    pass
