#!/usr/bin/env python3

"""
Configuration management for the proteome extraction pipeline.

Centralized, immutable configuration with support for file-based
configuration and environment variable overrides.
"""

import os
import json
import logging
from dataclasses import dataclass, asdict, replace
from typing import Optional, Dict, Any, Tuple

import yaml
from Bio.Data import CodonTable

from .exceptions import ConfigurationError


DEFAULT_FEATURE_TYPES: Tuple[str, ...] = ("CDS", "ncRNA", "tRNA", "tmRNA", "rRNA")
EXTRACTOR_CHOICES = ("bedtools", "faidx")


def _parse_bool(value: str) -> bool:
    return value.lower() in ('true', '1', 'yes')


def _parse_list(value: str) -> Tuple[str, ...]:
    return tuple(item.strip() for item in value.split(',') if item.strip())


@dataclass(frozen=True)
class PipelineConfig:
    """Settings for one proteome extraction run. Never mutated once built."""

    # Quality filter
    apply_unknowns_filter: bool = True
    maximum_percentage_of_unknowns: float = 5.0

    # Feature selection
    min_gene_size_in_nucleotides: int = 120
    feature_types: Tuple[str, ...] = DEFAULT_FEATURE_TYPES
    id_tag: str = "ID"

    # Translation
    translation_table: int = 11

    # Annotation layout
    fasta_directive: str = "##FASTA"

    # Extraction
    extractor: str = "bedtools"
    bedtools_exe: str = "bedtools"

    # Execution
    working_directory_parent: Optional[str] = None
    parallel_workers: int = 1
    enable_performance_monitoring: bool = True
    debug_mode: bool = False

    @classmethod
    def from_file(cls, config_path: str) -> 'PipelineConfig':
        """Load configuration from file (JSON or YAML)."""
        return cls.from_dict(_load_file_data(config_path))

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'PipelineConfig':
        """Create configuration from dictionary."""
        # Filter out unknown keys
        known_keys = set(cls.__dataclass_fields__.keys())
        filtered_dict = {k: v for k, v in config_dict.items() if k in known_keys}

        try:
            return cls(**filtered_dict)
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration parameters: {e}")

    @classmethod
    def from_env(cls) -> 'PipelineConfig':
        """Load configuration from environment variables."""
        return cls.from_dict(_env_values())

    def with_overrides(self, **changes) -> 'PipelineConfig':
        """Return a copy with the given fields replaced (None values are ignored)."""
        changes = {k: v for k, v in changes.items() if v is not None}
        unknown = set(changes) - set(self.__dataclass_fields__)
        if unknown:
            raise ConfigurationError(f"Unknown configuration parameters: {sorted(unknown)}")
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        config_dict = asdict(self)
        config_dict['feature_types'] = list(self.feature_types)
        return config_dict

    def save_to_file(self, config_path: str) -> None:
        """Save configuration to file."""
        config_dict = self.to_dict()

        try:
            with open(config_path, 'w') as f:
                if _is_yaml(config_path):
                    yaml.safe_dump(config_dict, f, default_flow_style=False)
                else:
                    json.dump(config_dict, f, indent=2)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Error saving configuration: {e}")

    def validate(self) -> None:
        """Validate configuration parameters."""
        if not 0 <= self.maximum_percentage_of_unknowns <= 100:
            raise ConfigurationError("maximum_percentage_of_unknowns must be between 0 and 100 (inclusive)")

        if self.min_gene_size_in_nucleotides < 0:
            raise ConfigurationError("min_gene_size_in_nucleotides must be >= 0")

        if self.translation_table not in CodonTable.unambiguous_dna_by_id:
            raise ConfigurationError(f"Unknown translation table: {self.translation_table}")

        if not self.feature_types or not all(self.feature_types):
            raise ConfigurationError("feature_types must contain at least one non-empty type")

        if not self.id_tag:
            raise ConfigurationError("id_tag cannot be empty")

        if not self.fasta_directive:
            raise ConfigurationError("fasta_directive cannot be empty")

        if self.extractor not in EXTRACTOR_CHOICES:
            raise ConfigurationError(f"extractor must be one of {EXTRACTOR_CHOICES}")

        if self.parallel_workers < 1:
            raise ConfigurationError("parallel_workers must be >= 1")

    def __post_init__(self):
        """Normalise collection fields and validate."""
        if isinstance(self.feature_types, str):
            object.__setattr__(self, 'feature_types', _parse_list(self.feature_types))
        else:
            object.__setattr__(self, 'feature_types', tuple(self.feature_types))
        self.validate()


def _is_yaml(path: str) -> bool:
    return path.lower().endswith('.yaml') or path.lower().endswith('.yml')


def _load_file_data(config_path: str) -> Dict[str, Any]:
    if not os.path.exists(config_path):
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, 'r') as f:
            if _is_yaml(config_path):
                config_data = yaml.safe_load(f)
            else:
                config_data = json.load(f)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Invalid configuration file format: {e}")
    except OSError as e:
        raise ConfigurationError(f"Error loading configuration: {e}")

    if config_data is None:
        return {}
    if not isinstance(config_data, dict):
        raise ConfigurationError(f"Configuration file must hold a mapping: {config_path}")
    return config_data


# Environment variable -> (config field, converter)
ENV_MAPPINGS = {
    'PROTEOME_APPLY_UNKNOWNS_FILTER': ('apply_unknowns_filter', _parse_bool),
    'PROTEOME_MAX_UNKNOWNS': ('maximum_percentage_of_unknowns', float),
    'PROTEOME_MIN_GENE_SIZE': ('min_gene_size_in_nucleotides', int),
    'PROTEOME_FEATURE_TYPES': ('feature_types', _parse_list),
    'PROTEOME_TRANSLATION_TABLE': ('translation_table', int),
    'PROTEOME_EXTRACTOR': ('extractor', str),
    'PROTEOME_BEDTOOLS_EXE': ('bedtools_exe', str),
    'PROTEOME_WORKDIR': ('working_directory_parent', str),
    'PROTEOME_PARALLEL_WORKERS': ('parallel_workers', int),
    'PROTEOME_DEBUG_MODE': ('debug_mode', _parse_bool),
}


def _env_values() -> Dict[str, Any]:
    values = {}
    for env_var, (field_name, converter) in ENV_MAPPINGS.items():
        env_value = os.getenv(env_var)
        if env_value:
            try:
                values[field_name] = converter(env_value)
            except (ValueError, TypeError) as e:
                raise ConfigurationError(f"Invalid environment variable {env_var}: {e}")
    return values


def load_config(config_path: Optional[str] = None,
                use_env: bool = True,
                **overrides) -> PipelineConfig:
    """
    Load configuration with priority: overrides > file > environment > defaults.

    Args:
        config_path: Path to configuration file (optional)
        use_env: Whether to load environment variables
        overrides: Field values taking precedence over everything else;
            None values are ignored

    Returns:
        PipelineConfig: Loaded configuration
    """
    values: Dict[str, Any] = {}

    if use_env:
        try:
            values.update(_env_values())
        except ConfigurationError as e:
            # Environment config is optional
            logging.warning(f"Ignoring environment configuration: {e}")

    if config_path:
        values.update(_load_file_data(config_path))

    values.update({k: v for k, v in overrides.items() if v is not None})

    return PipelineConfig.from_dict(values)
