"""Configuration for mergetrack."""

from .config_loader import (
    Config, ResolverConfig, ClusteringConfig, DisambiguationConfig,
    OutlierConfig, LoggingConfig, load_config, save_config
)

__all__ = [
    'Config',
    'ResolverConfig',
    'ClusteringConfig',
    'DisambiguationConfig',
    'OutlierConfig',
    'LoggingConfig',
    'load_config',
    'save_config'
]
