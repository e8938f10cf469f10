"""
Merger resolver - splits merger nodes of a hypotheses graph.

A merger node is an active node whose ``node_active2`` count is at least
two: one detection that covers several objects. Resolving it:
1. Extract one child traxel per object (feature extractor)
2. Add a node per child
3. Re-link every active arc of the merger to the nearest child (distance)
4. Deactivate the merger and its original arcs
5. Record provenance in ``node_originated_from``/``merger_resolved_to``
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from tqdm import tqdm

from ..exceptions import (
    DimensionMismatch, InvalidGraphState, MergeTrackError, NodeResolutionError
)
from ..graph.hypotheses import (
    ARC_ACTIVE, ARC_DISTANCE, MERGER_RESOLVED_TO, NODE_ACTIVE,
    NODE_ORIGINATED_FROM, HypothesesGraph
)
from ..graph.traxel import Traxel
from ..utils import get_logger
from .disambiguation import ArcDisambiguator, check_graph
from .distance import DistanceMetric
from .extractors import FeatureExtractor

logger = get_logger(__name__)


@dataclass
class ResolutionReport:
    """Outcome of one :meth:`MergerResolver.resolve_mergers` pass."""

    resolved: Dict[int, List[int]] = field(default_factory=dict)
    """Merger node -> new child nodes."""

    failures: List[NodeResolutionError] = field(default_factory=list)
    """Merger nodes that could not be resolved (left untouched)."""

    disambiguation_failures: List[MergeTrackError] = field(default_factory=list)
    """Failures reported by the arc disambiguator, if one was run."""

    @property
    def ok(self) -> bool:
        return not self.failures and not self.disambiguation_failures

    def summarize(self) -> str:
        """
        Get human-readable summary.

        Returns:
            Summary string.
        """
        lines = [
            "Merger Resolution Summary",
            "=" * 50,
            f"Resolved mergers: {len(self.resolved)}",
            f"  New nodes: {sum(len(c) for c in self.resolved.values())}",
            f"Failed mergers: {len(self.failures)}",
            f"Disambiguation failures: {len(self.disambiguation_failures)}",
        ]
        for failure in self.failures:
            lines.append(f"  {failure}")
        return "\n".join(lines)


class MergerResolver:
    """
    Resolve mergers on a :class:`HypothesesGraph` in place.

    The graph must provide ``node_active2``, ``arc_active`` and
    ``arc_distance``; ``merger_resolved_to`` and ``node_originated_from``
    are added when missing. The resolver needs exclusive access to the
    graph for the duration of a pass.

    Args:
        graph: Hypotheses graph to modify.
        connect_all_children: Re-link each original arc to every child
            instead of only the nearest one, leaving the choice to an arc
            disambiguator.
        show_progress: Show a progress bar over merger nodes.

    Raises:
        InvalidGraphState: If the graph is None or lacks a required property.
    """

    def __init__(
        self,
        graph: HypothesesGraph,
        connect_all_children: bool = False,
        show_progress: bool = False
    ):
        check_graph(graph)
        graph.add_property(MERGER_RESOLVED_TO)
        graph.add_property(NODE_ORIGINATED_FROM)
        self.graph = graph
        self.connect_all_children = connect_all_children
        self.show_progress = show_progress

    # ------------------------------------------------------------------ #
    # Main entry point                                                     #
    # ------------------------------------------------------------------ #

    def resolve_mergers(
        self,
        extractor: FeatureExtractor,
        distance: DistanceMetric,
        disambiguator: Optional[ArcDisambiguator] = None
    ) -> ResolutionReport:
        """
        Resolve every active merger node.

        Resolution is best effort per node: a node whose extraction or
        distance computation fails is reported in the returned report and
        left unchanged, and the remaining mergers are still processed.

        Args:
            extractor: Produces the child traxels.
            distance: Scores candidate child/neighbour pairs.
            disambiguator: Run afterwards to remove surplus arcs.

        Returns:
            :class:`ResolutionReport`.
        """
        report = ResolutionReport()
        node_active = self.graph.get(NODE_ACTIVE)
        mergers = [n for n in self.graph.nodes() if node_active[n] >= 2]
        logger.info(f"Found {len(mergers)} merger nodes")

        for node in tqdm(mergers, desc="Resolving mergers", disable=not self.show_progress):
            try:
                report.resolved[node] = self.refine_node(
                    node, int(node_active[node]), extractor, distance
                )
            except (MergeTrackError, ValueError) as e:
                traxel = self.graph.traxel(node)
                failure = NodeResolutionError(
                    node,
                    traxel.id if traxel is not None else None,
                    self.graph.timestep(node),
                    e
                )
                logger.warning(str(failure))
                report.failures.append(failure)

        if disambiguator is not None:
            disambiguator.resolve(self.graph)
            report.disambiguation_failures = list(disambiguator.last_failures)

        logger.info(
            f"Resolved {len(report.resolved)} of {len(mergers)} mergers"
        )
        return report

    # ------------------------------------------------------------------ #
    # Steps                                                                #
    # ------------------------------------------------------------------ #

    def refine_node(
        self,
        node: int,
        n_mergers: int,
        extractor: FeatureExtractor,
        distance: DistanceMetric
    ) -> List[int]:
        """
        Split *node* into *n_mergers* new nodes.

        All feature and distance computations run before the graph is
        touched, so a failure leaves the graph unchanged.

        Returns:
            Handles of the new nodes, in id order.
        """
        traxel = self.graph.traxel(node)
        if traxel is None:
            raise InvalidGraphState(f"Node {node} has no traxel")

        in_arcs = self.graph.active_in_arcs(node)
        out_arcs = self.graph.active_out_arcs(node)

        children = extractor.extract(traxel, n_mergers, self.get_max_id(self.graph.timestep(node)))
        if len(children) != n_mergers:
            raise DimensionMismatch(
                f"Extractor returned {len(children)} traxels for {n_mergers} mergers"
            )

        # (neighbour, child index, distance, neighbour is source)
        links: List[Tuple[int, int, float, bool]] = []
        for arcs, incoming in ((in_arcs, True), (out_arcs, False)):
            for arc in arcs:
                neighbour = self.graph.source(arc) if incoming else self.graph.target(arc)
                links.extend(self._plan_links(neighbour, children, distance, incoming))

        node_active = self.graph.get(NODE_ACTIVE)
        originated_from = self.graph.get(NODE_ORIGINATED_FROM)
        new_nodes = []
        for child in children:
            new_node = self.graph.add_node(child.timestep, child)
            node_active[new_node] = 1
            originated_from[new_node] = {traxel.id}
            new_nodes.append(new_node)

        for neighbour, index, dist, incoming in links:
            if incoming:
                self.add_arc(neighbour, new_nodes[index], dist)
            else:
                self.add_arc(new_nodes[index], neighbour, dist)

        self.deactivate_arcs(in_arcs + out_arcs)
        self.deactivate_nodes([node])
        self.graph.get(MERGER_RESOLVED_TO)[node] = {child.id for child in children}

        logger.debug(
            f"Resolved node {node} (traxel {traxel.id}, t={traxel.timestep}) "
            f"into {[c.id for c in children]}"
        )
        return new_nodes

    def _plan_links(
        self,
        neighbour: int,
        children: List[Traxel],
        distance: DistanceMetric,
        incoming: bool
    ) -> List[Tuple[int, int, float, bool]]:
        # Arcs to nodes that are already inactive are dropped, not re-linked
        if not self.graph.is_active(neighbour):
            return []
        neighbour_traxel = self.graph.traxel(neighbour)
        if neighbour_traxel is None:
            raise InvalidGraphState(f"Node {neighbour} has no traxel")

        distances = []
        for child in children:
            if incoming:
                distances.append(distance(neighbour_traxel, child))
            else:
                distances.append(distance(child, neighbour_traxel))

        if self.connect_all_children:
            return [(neighbour, i, d, incoming) for i, d in enumerate(distances)]
        # min() keeps the first minimum, i.e. the lowest child id
        best = min(range(len(children)), key=lambda i: distances[i])
        return [(neighbour, best, distances[best], incoming)]

    def add_arc(self, source: int, target: int, distance: float) -> int:
        """Add an active arc carrying *distance*."""
        arc = self.graph.add_arc(source, target)
        self.graph.get(ARC_ACTIVE)[arc] = True
        self.graph.get(ARC_DISTANCE)[arc] = distance
        return arc

    def deactivate_arcs(self, arcs: List[int]):
        arc_active = self.graph.get(ARC_ACTIVE)
        for arc in arcs:
            arc_active[arc] = False

    def deactivate_nodes(self, nodes: List[int]):
        node_active = self.graph.get(NODE_ACTIVE)
        for node in nodes:
            node_active[node] = 0

    def get_max_id(self, timestep: int) -> int:
        """
        Get the largest traxel id at *timestep*.

        Args:
            timestep: Frame index.

        Returns:
            Maximum id, or 0 if the timestep holds no traxels.
        """
        ids = [
            self.graph.traxel(n).id
            for n in self.graph.nodes_at(timestep)
            if self.graph.traxel(n) is not None
        ]
        return max(ids, default=0)
