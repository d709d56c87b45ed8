#!/usr/bin/env python3

"""
GFF Proteome Extraction

Turns an annotated assembly, given as a GFF3 file with an embedded ##FASTA
section, into a protein FASTA for comparative genomics.

Modules:
- core: data structures, exceptions, configuration, parsers, processors,
  extractors and the pipeline itself
- utils: performance monitoring
- tests: unit and end-to-end tests
"""

__version__ = "1.0.0"

# Import main components for easy access
from .core.data_structures import Feature, Interval
from .core.exceptions import (
    PipelineError, ParseError, SequenceError, ExtractionError, ConfigurationError
)
from .core.config import PipelineConfig, load_config
from .core.extractors import IntervalExtractor, BedtoolsExtractor, FaidxExtractor
from .core.pipeline import ProteomeExtractionPipeline, extract_proteomes

__all__ = [
    # Main pipeline
    'ProteomeExtractionPipeline', 'extract_proteomes',
    # Extraction backends
    'IntervalExtractor', 'BedtoolsExtractor', 'FaidxExtractor',
    # Data structures
    'Feature', 'Interval',
    # Exceptions
    'PipelineError', 'ParseError', 'SequenceError', 'ExtractionError',
    'ConfigurationError',
    # Configuration
    'PipelineConfig', 'load_config'
]
