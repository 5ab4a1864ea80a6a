#!/usr/bin/env python

"""Params schema for type checking and serialization.

Pydantic Models are similar to dataclases but they also include
*type validation*, meaning that if you try to set an attribute to
the wrong type it will raise an error. Params can therefore be
written to JSON, edited by hand, and reloaded as the appropriate
data types with range checks applied.

theta and seq_error_rate are kept separate: the significance filter
is usually run with a stricter (lower) error rate than the genotype
caller, which tolerates noisier clusters.
"""

# pylint: disable=no-self-argument, no-name-in-module

from pathlib import Path
from pydantic import BaseModel, Field, field_validator
from loguru import logger

logger = logger.bind(name="sccall")


class Params(BaseModel):
    """Tunable parameters of the filter and the genotype caller."""
    theta: float = Field(0.001, description="sequencing error rate used for genotype calls")
    hetero_prior: float = Field(0.001, description="prior probability that a locus is heterozygous")
    seq_error_rate: float = Field(0.001, description="sequencing error rate used by the significance filter")
    num_threads: int = Field(1, description="worker threads used by the position filter")
    alpha: float = Field(0.05, description="family-wise rejection level of the significance test")
    bonferroni: bool = Field(True, description="divide alpha by the number of positions tested")
    min_coverage: float = Field(0.0, description="stop subdividing below this average coverage")
    max_depth: int = Field(8, description="max depth of the subcluster tree")

    class Config:
        """Enables type checking validation when using setattr in API."""
        validate_assignment = True

    def __str__(self):
        return self.model_dump_json(indent=2)

    def __repr__(self):
        return self.model_dump_json(indent=2)

    @field_validator('theta', 'seq_error_rate', 'hetero_prior')
    @classmethod
    def _probability_validator(cls, value: float) -> float:
        if not 0. <= value <= 1.:
            raise ValueError(f"probability must be in [0, 1], got {value}")
        return value

    @field_validator('alpha')
    @classmethod
    def _alpha_validator(cls, value: float) -> float:
        if not 0. < value <= 1.:
            raise ValueError(f"alpha must be in (0, 1], got {value}")
        return value

    @field_validator('num_threads')
    @classmethod
    def _threads_validator(cls, value: int) -> int:
        if value < 1:
            raise ValueError(f"num_threads must be >= 1, got {value}")
        return value

    @field_validator('min_coverage')
    @classmethod
    def _coverage_validator(cls, value: float) -> float:
        if value < 0:
            raise ValueError(f"min_coverage cannot be negative, got {value}")
        return value

    @field_validator('max_depth')
    @classmethod
    def _depth_validator(cls, value: int) -> int:
        if value < 0:
            raise ValueError(f"max_depth cannot be negative, got {value}")
        return value


def load_params(json_file: Path | str) -> Params:
    """Return a Params object loaded from a JSON file."""
    content_json = Path(json_file).read_text(encoding="utf-8")
    params = Params.model_validate_json(content_json)
    logger.debug(f"loaded params from {json_file}")
    return params
