"""
Core validators for canonical observations.
Pure functions - no IO, network, or side effects.
"""

import logging
import math
from datetime import date
from typing import Callable, List, TypeVar

from analysis.models import PriceObservation, ReferenceObservation

logger = logging.getLogger(__name__)

T = TypeVar('T')


class ValidationError(ValueError):
    """Raised when data validation fails."""
    pass


def validate_price_observation(obs: PriceObservation) -> None:
    """
    Validate a price observation.

    Args:
        obs: Price observation

    Raises:
        ValidationError: If validation fails
    """
    if not isinstance(obs.date, date):
        raise ValidationError(f"date must be date, got {type(obs.date)}")

    _validate_positive_number('close', obs.close)


def validate_reference_observation(obs: ReferenceObservation) -> None:
    """
    Validate a reference (NAV) observation.

    Args:
        obs: Reference observation

    Raises:
        ValidationError: If validation fails
    """
    if not isinstance(obs.date, date):
        raise ValidationError(f"date must be date, got {type(obs.date)}")

    _validate_positive_number('value', obs.value)


def filter_valid(
    observations: List[T],
    validator: Callable[[T], None],
    label: str = 'observation'
) -> List[T]:
    """
    Keep observations that pass a validator, logging the rest.

    Args:
        observations: Observations to check
        validator: One of the validate_* functions
        label: Name used in log messages

    Returns:
        Observations that passed, in original order
    """
    valid = []
    for obs in observations:
        try:
            validator(obs)
            valid.append(obs)
        except ValidationError as e:
            logger.warning(f"Dropping invalid {label} {getattr(obs, 'date', 'unknown')}: {e}")
    return valid


def _validate_positive_number(field: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field} must be numeric, got {type(value)}")

    if not math.isfinite(value):
        raise ValidationError(f"{field} must be finite, got {value}")

    if value <= 0:
        raise ValidationError(f"{field} must be positive, got {value}")
