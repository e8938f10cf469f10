"""
Tests for configuration loading.

These tests validate:
1. Default values are correct
2. Config can be loaded from YAML
3. Config can be serialized and deserialized
4. Missing files fall back to defaults
"""

import unittest
import tempfile
import yaml
from pathlib import Path

from mergetrack.config import (
    Config, ResolverConfig, DisambiguationConfig, OutlierConfig,
    load_config, save_config
)


class TestConfigLoader(unittest.TestCase):
    """Test configuration loading functionality."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.TemporaryDirectory()
        self.temp_path = Path(self.temp_dir.name)

    def tearDown(self):
        """Clean up test fixtures."""
        self.temp_dir.cleanup()

    def test_default_config_creation(self):
        """Test that default config can be created."""
        config = Config()

        self.assertEqual(config.resolver.extractor, "kmeans")
        self.assertEqual(config.resolver.ndim, 3)
        self.assertEqual(config.resolver.com_feature, "com")
        self.assertFalse(config.resolver.connect_all_children)

        self.assertEqual(config.disambiguation.method, "greedy")
        self.assertEqual(config.disambiguation.max_incoming, 1)
        self.assertEqual(config.disambiguation.max_outgoing, 2)

        self.assertAlmostEqual(config.outliers.sigma_threshold, 3.0)
        self.assertEqual(config.clustering.random_state, 42)
        self.assertEqual(config.logging.level, "INFO")

    def test_config_from_dict(self):
        """Test creating config from dictionary."""
        config_dict = {
            'resolver': {
                'extractor': 'pcoms',
                'ndim': 2
            },
            'disambiguation': {
                'method': 'assignment',
                'max_outgoing': 1
            },
            'outliers': {
                'sigma_threshold': 2.5
            }
        }

        config = Config.from_dict(config_dict)

        self.assertEqual(config.resolver.extractor, 'pcoms')
        self.assertEqual(config.resolver.ndim, 2)
        self.assertEqual(config.disambiguation.method, 'assignment')
        self.assertEqual(config.disambiguation.max_outgoing, 1)
        self.assertAlmostEqual(config.outliers.sigma_threshold, 2.5)

        # Unspecified values keep defaults
        self.assertEqual(config.resolver.com_feature, 'com')
        self.assertEqual(config.disambiguation.max_incoming, 1)

    def test_config_to_dict(self):
        """Test converting config to dictionary."""
        config = Config()
        config_dict = config.to_dict()

        self.assertIn('resolver', config_dict)
        self.assertIn('clustering', config_dict)
        self.assertIn('disambiguation', config_dict)
        self.assertIn('outliers', config_dict)
        self.assertIn('logging', config_dict)
        self.assertEqual(config_dict['resolver']['extractor'], 'kmeans')

    def test_save_and_load_config(self):
        """Test saving and loading config to/from YAML."""
        config = Config()
        config.resolver.extractor = 'mcoms'
        config.disambiguation.max_outgoing = 3

        config_path = self.temp_path / 'test_config.yaml'
        save_config(config, str(config_path))

        self.assertTrue(config_path.exists())

        loaded = load_config(str(config_path))

        self.assertEqual(loaded.resolver.extractor, 'mcoms')
        self.assertEqual(loaded.disambiguation.max_outgoing, 3)
        self.assertEqual(loaded.to_dict(), config.to_dict())

    def test_load_partial_yaml(self):
        """Test loading a YAML file with only some sections."""
        config_path = self.temp_path / 'partial.yaml'
        with open(config_path, 'w') as f:
            yaml.dump({'outliers': {'sigma_threshold': 4.0}}, f)

        config = load_config(str(config_path))

        self.assertAlmostEqual(config.outliers.sigma_threshold, 4.0)
        self.assertEqual(config.resolver.extractor, 'kmeans')

    def test_load_empty_yaml(self):
        """Test that an empty file yields defaults."""
        config_path = self.temp_path / 'empty.yaml'
        config_path.write_text('')

        config = load_config(str(config_path))

        self.assertEqual(config.to_dict(), Config().to_dict())

    def test_load_missing_file(self):
        """Test that a missing file yields defaults."""
        config = load_config(str(self.temp_path / 'missing.yaml'))

        self.assertEqual(config.to_dict(), Config().to_dict())

    def test_packaged_default(self):
        """Test that the packaged default.yaml matches the dataclass defaults."""
        self.assertEqual(load_config().to_dict(), Config().to_dict())

    def test_unknown_key_rejected(self):
        """Test that typos in a section are not silently ignored."""
        with self.assertRaises(TypeError):
            Config.from_dict({'resolver': {'extracter': 'pcoms'}})


class TestIndividualConfigs(unittest.TestCase):
    """Test individual config dataclasses."""

    def test_resolver_config(self):
        """Test ResolverConfig."""
        config = ResolverConfig(extractor='pcoms', connect_all_children=True)

        self.assertEqual(config.extractor, 'pcoms')
        self.assertTrue(config.connect_all_children)
        self.assertTrue(config.disambiguate)

    def test_disambiguation_config(self):
        """Test DisambiguationConfig."""
        config = DisambiguationConfig(method='assignment')

        self.assertEqual(config.method, 'assignment')
        self.assertEqual(config.max_outgoing, 2)

    def test_outlier_config(self):
        """Test OutlierConfig."""
        self.assertAlmostEqual(OutlierConfig().sigma_threshold, 3.0)


if __name__ == '__main__':
    unittest.main()
