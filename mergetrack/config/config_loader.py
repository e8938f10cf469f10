"""Configuration loader for mergetrack."""

import yaml
from pathlib import Path
from typing import Any, Dict, Optional
from dataclasses import dataclass, field

from ..utils import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / 'default.yaml'


@dataclass
class ResolverConfig:
    """Merger resolution configuration."""
    extractor: str = "kmeans"
    ndim: int = 3
    com_feature: str = "com"
    connect_all_children: bool = False
    disambiguate: bool = True
    show_progress: bool = False


@dataclass
class ClusteringConfig:
    """k-means configuration for the clustering extractor."""
    n_init: int = 10
    max_iter: int = 300
    random_state: Optional[int] = 42


@dataclass
class DisambiguationConfig:
    """Arc disambiguation configuration."""
    method: str = "greedy"
    max_incoming: int = 1
    max_outgoing: int = 2


@dataclass
class OutlierConfig:
    """Outlier model configuration."""
    sigma_threshold: float = 3.0


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"


@dataclass
class Config:
    """Main configuration class."""
    resolver: ResolverConfig = field(default_factory=ResolverConfig)
    clustering: ClusteringConfig = field(default_factory=ClusteringConfig)
    disambiguation: DisambiguationConfig = field(default_factory=DisambiguationConfig)
    outliers: OutlierConfig = field(default_factory=OutlierConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'Config':
        """Create Config from dictionary."""
        config_dict = config_dict or {}
        return cls(
            resolver=ResolverConfig(**config_dict.get('resolver', {})),
            clustering=ClusteringConfig(**config_dict.get('clustering', {})),
            disambiguation=DisambiguationConfig(**config_dict.get('disambiguation', {})),
            outliers=OutlierConfig(**config_dict.get('outliers', {})),
            logging=LoggingConfig(**config_dict.get('logging', {}))
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert Config to dictionary."""
        return {
            'resolver': dict(self.resolver.__dict__),
            'clustering': dict(self.clustering.__dict__),
            'disambiguation': dict(self.disambiguation.__dict__),
            'outliers': dict(self.outliers.__dict__),
            'logging': dict(self.logging.__dict__)
        }


def load_config(config_path: Optional[str] = None) -> Config:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to YAML config file. If None, uses the packaged
            ``default.yaml``.

    Returns:
        Config object with all settings.
    """
    config_path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH

    if not config_path.exists():
        logger.warning(f"Config file {config_path} not found. Using defaults.")
        return Config()

    with open(config_path, 'r') as f:
        config_dict = yaml.safe_load(f)

    return Config.from_dict(config_dict)


def save_config(config: Config, path: str):
    """
    Save configuration to YAML file.

    Args:
        config: Config object to save.
        path: Path where to save the config.
    """
    config_dict = config.to_dict()

    with open(path, 'w') as f:
        yaml.dump(config_dict, f, default_flow_style=False, indent=2)
