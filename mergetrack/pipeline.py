"""
Build strategies from configuration and run them on a hypotheses graph.

Usage::

    from mergetrack.config import load_config
    from mergetrack.pipeline import resolve_graph, track_quality

    config = load_config("my_config.yaml")
    report = resolve_graph(graph, config)
    print(report.summarize())
    badness = track_quality(graph, first_node, config)
"""

from typing import Optional

from .config import Config
from .graph.hypotheses import HypothesesGraph
from .resolution.clustering import KMeansEstimator
from .resolution.disambiguation import DISAMBIGUATORS, ArcDisambiguator
from .resolution.distance import DistanceFromCOMs
from .resolution.extractors import EXTRACTORS, FeatureExtractor, MCOMsFromKMeans
from .resolution.resolver import MergerResolver, ResolutionReport
from .track_features.aggregators import OutlierBadnessAggregator, get_aggregator
from .track_features.calculators import CALCULATORS
from .track_features.track_features import TrackFeatureExtractor
from .utils import get_logger


def build_extractor(config: Config) -> FeatureExtractor:
    """Create the feature extractor named by ``config.resolver.extractor``."""
    name = config.resolver.extractor
    if name not in EXTRACTORS:
        raise ValueError(f"Unknown extractor: {name}. Choose from {sorted(EXTRACTORS)}")
    if EXTRACTORS[name] is MCOMsFromKMeans:
        estimator = KMeansEstimator(
            ndim=config.resolver.ndim,
            n_init=config.clustering.n_init,
            max_iter=config.clustering.max_iter,
            random_state=config.clustering.random_state
        )
        return MCOMsFromKMeans(config.resolver.ndim, config.resolver.com_feature, estimator)
    return EXTRACTORS[name](config.resolver.ndim, config.resolver.com_feature)


def build_disambiguator(config: Config) -> ArcDisambiguator:
    """Create the arc disambiguator named by ``config.disambiguation.method``."""
    method = config.disambiguation.method
    if method not in DISAMBIGUATORS:
        raise ValueError(f"Unknown disambiguation method: {method}. "
                         f"Choose from {sorted(DISAMBIGUATORS)}")
    return DISAMBIGUATORS[method](
        max_incoming=config.disambiguation.max_incoming,
        max_outgoing=config.disambiguation.max_outgoing
    )


def resolve_graph(graph: HypothesesGraph, config: Optional[Config] = None) -> ResolutionReport:
    """
    Resolve all mergers of *graph* in place using the configured strategies.

    Args:
        graph: Hypotheses graph with activity and distance properties.
        config: Configuration; defaults to ``Config()``.

    Returns:
        ResolutionReport of the pass.
    """
    config = config or Config()
    get_logger(__name__, level=config.logging.level)

    resolver = MergerResolver(
        graph,
        connect_all_children=config.resolver.connect_all_children,
        show_progress=config.resolver.show_progress
    )
    disambiguator = build_disambiguator(config) if config.resolver.disambiguate else None
    return resolver.resolve_mergers(
        build_extractor(config),
        DistanceFromCOMs(config.resolver.com_feature),
        disambiguator
    )


def track_quality(
    graph: HypothesesGraph,
    start_node: int,
    config: Optional[Config] = None,
    calculator: str = 'sqrt_squared_diff',
    aggregator: str = 'outlier_badness'
) -> float:
    """
    Score the track that starts at *start_node*.

    By default this is the outlier badness of the frame-to-frame
    center-of-mass displacement.

    Returns:
        Scalar quality value (higher is worse for outlier badness).
    """
    config = config or Config()
    if calculator not in CALCULATORS:
        raise ValueError(f"Unknown calculator: {calculator}. Choose from {sorted(CALCULATORS)}")
    if aggregator == OutlierBadnessAggregator.name:
        agg = OutlierBadnessAggregator(sigma_threshold=config.outliers.sigma_threshold)
    else:
        agg = get_aggregator(aggregator)
    extractor = TrackFeatureExtractor(CALCULATORS[calculator](), agg, config.resolver.com_feature)
    traxels = [graph.traxel(n) for n in graph.follow_track(start_node)]
    return extractor.scalar_valued(traxels)
