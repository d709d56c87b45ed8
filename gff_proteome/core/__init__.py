#!/usr/bin/env python3

"""
Core module for the proteome extraction pipeline.

Contains data structures, exception types, configuration and the
processing stages.
"""

from .data_structures import Feature, Interval
from .exceptions import (
    PipelineError, ParseError, SequenceError, ExtractionError, ConfigurationError
)
from .config import PipelineConfig, load_config

__all__ = [
    'Feature', 'Interval',
    'PipelineError', 'ParseError', 'SequenceError', 'ExtractionError',
    'ConfigurationError',
    'PipelineConfig', 'load_config'
]
