"""Typed failures returned by the estimator and meal session."""

from dataclasses import dataclass


@dataclass(eq=False)
class MealError(Exception):
    """Base failure carrying a user-facing message."""

    message: str
    detail: str | None = None

    def __str__(self) -> str:
        return self.message


class EstimatorError(MealError):
    """Any failure to obtain a meal analysis from the estimator."""


class NoInputError(EstimatorError):
    """The analysis request did not include an image."""


class EstimatorCallError(EstimatorError):
    """The estimator service call failed, timed out, or returned nothing."""


class EstimatorParseError(EstimatorError):
    """The estimator response was not a well-formed meal analysis."""


class OperationInProgressError(MealError):
    """Another analysis or recalculation is still in flight."""
