#!/usr/bin/env python3

"""
Unit tests for configuration management.

Tests the configuration loading, validation, and environment
variable handling functionality.
"""

import unittest
import tempfile
import os
import json
import sys
from dataclasses import FrozenInstanceError

import yaml

# Add the parent directory to the path to import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from gff_proteome.core.config import PipelineConfig, load_config, ENV_MAPPINGS
from gff_proteome.core.exceptions import ConfigurationError


class EnvironmentMixin:
    """Keep PROTEOME_* variables from leaking between tests."""

    def setUp(self):
        self._saved_env = {key: os.environ.pop(key) for key in list(ENV_MAPPINGS) if key in os.environ}

    def tearDown(self):
        for key in ENV_MAPPINGS:
            os.environ.pop(key, None)
        os.environ.update(self._saved_env)


class TestPipelineConfig(EnvironmentMixin, unittest.TestCase):
    """Test PipelineConfig class."""

    def test_default_config(self):
        """Test default configuration values."""
        config = PipelineConfig()

        self.assertTrue(config.apply_unknowns_filter)
        self.assertEqual(config.maximum_percentage_of_unknowns, 5)
        self.assertEqual(config.min_gene_size_in_nucleotides, 120)
        self.assertEqual(config.translation_table, 11)
        self.assertEqual(config.feature_types, ("CDS", "ncRNA", "tRNA", "tmRNA", "rRNA"))
        self.assertEqual(config.id_tag, "ID")
        self.assertEqual(config.fasta_directive, "##FASTA")
        self.assertEqual(config.extractor, "bedtools")
        self.assertEqual(config.parallel_workers, 1)
        self.assertIsNone(config.working_directory_parent)
        self.assertFalse(config.debug_mode)

    def test_config_validation(self):
        """Test configuration validation."""
        PipelineConfig().validate()  # Should not raise

        with self.assertRaises(ConfigurationError):
            PipelineConfig(maximum_percentage_of_unknowns=-1)

        with self.assertRaises(ConfigurationError):
            PipelineConfig(maximum_percentage_of_unknowns=100.5)

        with self.assertRaises(ConfigurationError):
            PipelineConfig(min_gene_size_in_nucleotides=-1)

        with self.assertRaises(ConfigurationError):
            PipelineConfig(translation_table=7)  # retired NCBI table

        with self.assertRaises(ConfigurationError):
            PipelineConfig(feature_types=())

        with self.assertRaises(ConfigurationError):
            PipelineConfig(feature_types=("CDS", ""))

        with self.assertRaises(ConfigurationError):
            PipelineConfig(id_tag="")

        with self.assertRaises(ConfigurationError):
            PipelineConfig(extractor="samtools")

        with self.assertRaises(ConfigurationError):
            PipelineConfig(parallel_workers=0)

    def test_config_is_immutable(self):
        """Test that a built configuration cannot be changed."""
        config = PipelineConfig()
        with self.assertRaises(FrozenInstanceError):
            config.translation_table = 4

    def test_feature_types_are_normalised(self):
        """Lists and comma-separated strings become tuples."""
        self.assertEqual(PipelineConfig(feature_types=["CDS", "tRNA"]).feature_types, ("CDS", "tRNA"))
        self.assertEqual(PipelineConfig(feature_types="CDS, rRNA").feature_types, ("CDS", "rRNA"))

    def test_with_overrides(self):
        """Test deriving a new configuration."""
        config = PipelineConfig()
        changed = config.with_overrides(translation_table=4, min_gene_size_in_nucleotides=None)

        self.assertEqual(changed.translation_table, 4)
        self.assertEqual(changed.min_gene_size_in_nucleotides, 120)
        self.assertEqual(config.translation_table, 11)

        with self.assertRaises(ConfigurationError):
            config.with_overrides(translation_table=999)

        with self.assertRaises(ConfigurationError):
            config.with_overrides(not_a_field=1)

    def test_config_from_dict(self):
        """Test creating config from dictionary."""
        config_dict = {
            "maximum_percentage_of_unknowns": 10,
            "min_gene_size_in_nucleotides": 90,
            "feature_types": ["CDS"],
            "debug_mode": True,
            "unknown_key": "ignored"  # Should be filtered out
        }

        config = PipelineConfig.from_dict(config_dict)

        self.assertEqual(config.maximum_percentage_of_unknowns, 10)
        self.assertEqual(config.min_gene_size_in_nucleotides, 90)
        self.assertEqual(config.feature_types, ("CDS",))
        self.assertTrue(config.debug_mode)
        # Default values for unspecified parameters
        self.assertEqual(config.translation_table, 11)

    def test_config_to_dict(self):
        """Test converting config to dictionary."""
        config = PipelineConfig(translation_table=4, debug_mode=True)
        config_dict = config.to_dict()

        self.assertIsInstance(config_dict, dict)
        self.assertEqual(config_dict["translation_table"], 4)
        self.assertTrue(config_dict["debug_mode"])
        self.assertEqual(config_dict["feature_types"], ["CDS", "ncRNA", "tRNA", "tmRNA", "rRNA"])

    def test_config_from_json_file(self):
        """Test loading config from JSON file."""
        config_data = {
            "maximum_percentage_of_unknowns": 2.5,
            "translation_table": 4,
            "parallel_workers": 4
        }

        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            json.dump(config_data, f)
            config_path = f.name

        try:
            config = PipelineConfig.from_file(config_path)

            self.assertEqual(config.maximum_percentage_of_unknowns, 2.5)
            self.assertEqual(config.translation_table, 4)
            self.assertEqual(config.parallel_workers, 4)
            # Default for unspecified
            self.assertEqual(config.min_gene_size_in_nucleotides, 120)
        finally:
            os.unlink(config_path)

    def test_config_from_yaml_file(self):
        """Test loading config from YAML file."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            yaml.safe_dump({"feature_types": ["CDS", "tRNA"], "extractor": "faidx"}, f)
            config_path = f.name

        try:
            config = PipelineConfig.from_file(config_path)

            self.assertEqual(config.feature_types, ("CDS", "tRNA"))
            self.assertEqual(config.extractor, "faidx")
        finally:
            os.unlink(config_path)

    def test_config_from_nonexistent_file(self):
        """Test error handling for nonexistent config file."""
        with self.assertRaises(ConfigurationError):
            PipelineConfig.from_file("/nonexistent/config.json")

    def test_config_from_invalid_json(self):
        """Test error handling for invalid JSON."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            f.write("{ invalid json }")
            config_path = f.name

        try:
            with self.assertRaises(ConfigurationError):
                PipelineConfig.from_file(config_path)
        finally:
            os.unlink(config_path)

    def test_config_from_non_mapping_yaml(self):
        """Test error handling for a YAML file that is not a mapping."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yml', delete=False) as f:
            f.write("- just\n- a list\n")
            config_path = f.name

        try:
            with self.assertRaises(ConfigurationError):
                PipelineConfig.from_file(config_path)
        finally:
            os.unlink(config_path)

    def test_config_save_to_file(self):
        """Test saving config to JSON and YAML files."""
        config = PipelineConfig(translation_table=4, feature_types=("CDS",), debug_mode=True)

        for suffix in ('.json', '.yaml'):
            with tempfile.NamedTemporaryFile(mode='w', suffix=suffix, delete=False) as f:
                config_path = f.name

            try:
                config.save_to_file(config_path)

                loaded_config = PipelineConfig.from_file(config_path)
                self.assertEqual(loaded_config, config)
            finally:
                if os.path.exists(config_path):
                    os.unlink(config_path)

    def test_config_from_env(self):
        """Test loading config from environment variables."""
        os.environ.update({
            'PROTEOME_MAX_UNKNOWNS': '7.5',
            'PROTEOME_MIN_GENE_SIZE': '60',
            'PROTEOME_TRANSLATION_TABLE': '4',
            'PROTEOME_FEATURE_TYPES': 'CDS,tRNA',
            'PROTEOME_EXTRACTOR': 'faidx',
            'PROTEOME_DEBUG_MODE': 'true'
        })

        config = PipelineConfig.from_env()

        self.assertEqual(config.maximum_percentage_of_unknowns, 7.5)
        self.assertEqual(config.min_gene_size_in_nucleotides, 60)
        self.assertEqual(config.translation_table, 4)
        self.assertEqual(config.feature_types, ("CDS", "tRNA"))
        self.assertEqual(config.extractor, "faidx")
        self.assertTrue(config.debug_mode)
        # Default for unspecified
        self.assertEqual(config.parallel_workers, 1)

    def test_config_from_env_invalid_values(self):
        """Test error handling for invalid environment values."""
        os.environ['PROTEOME_MIN_GENE_SIZE'] = 'invalid'

        with self.assertRaises(ConfigurationError):
            PipelineConfig.from_env()


class TestLoadConfig(EnvironmentMixin, unittest.TestCase):
    """Test the load_config function."""

    def test_load_default_config(self):
        """Test loading default configuration."""
        config = load_config()

        self.assertEqual(config, PipelineConfig())

    def test_load_config_priority(self):
        """Test configuration loading priority: overrides > file > env > defaults."""
        os.environ['PROTEOME_MIN_GENE_SIZE'] = '60'
        os.environ['PROTEOME_TRANSLATION_TABLE'] = '4'

        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            json.dump({"min_gene_size_in_nucleotides": 90, "maximum_percentage_of_unknowns": 1}, f)
            config_path = f.name

        try:
            config = load_config(config_path=config_path, use_env=True,
                                 maximum_percentage_of_unknowns=3, translation_table=None)

            # File overrides environment
            self.assertEqual(config.min_gene_size_in_nucleotides, 90)
            # Environment survives where the file is silent
            self.assertEqual(config.translation_table, 4)
            # Explicit overrides win
            self.assertEqual(config.maximum_percentage_of_unknowns, 3)
        finally:
            os.unlink(config_path)

    def test_load_config_no_env(self):
        """Test loading config without environment variables."""
        os.environ['PROTEOME_MIN_GENE_SIZE'] = '60'

        config = load_config(use_env=False)

        self.assertEqual(config.min_gene_size_in_nucleotides, 120)

    def test_load_config_ignores_invalid_env(self):
        """A broken environment variable falls back to defaults with a warning."""
        os.environ['PROTEOME_MIN_GENE_SIZE'] = 'invalid'

        with self.assertLogs(level='WARNING'):
            config = load_config()

        self.assertEqual(config.min_gene_size_in_nucleotides, 120)


if __name__ == '__main__':
    unittest.main()
