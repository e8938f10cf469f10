"""
Arc disambiguation: deactivate surplus arcs where a node has more active
incoming or outgoing arcs than the motion model allows.

Two strategies:
1. Greedy - per node, drop the longest arcs until the limits hold.
2. Assignment - per connected ambiguous component, solve a min-cost
   assignment exactly (Hungarian algorithm).
"""

from typing import Dict, List, Tuple

import numpy as np
from scipy.optimize import linear_sum_assignment

from ..exceptions import InfeasibleDisambiguation, InvalidGraphState, MergeTrackError
from ..graph.hypotheses import (
    ARC_ACTIVE, ARC_DISTANCE, NODE_ACTIVE, REQUIRED_PROPERTIES, HypothesesGraph
)
from ..utils import get_logger

logger = get_logger(__name__)


def check_graph(graph: HypothesesGraph):
    """
    Validate that *graph* exists and carries the activity/distance properties.

    Raises:
        InvalidGraphState: If not.
    """
    if graph is None:
        raise InvalidGraphState("HypothesesGraph is None")
    for name in REQUIRED_PROPERTIES:
        if not graph.has_property(name):
            raise InvalidGraphState(f"HypothesesGraph does not have property {name}")


def arc_distance(graph: HypothesesGraph, arc: int) -> float:
    """Read ``arc_distance`` of *arc*; unset distances are an error."""
    distance = graph.get(ARC_DISTANCE)[arc]
    if distance is None:
        raise InvalidGraphState(
            f"Arc {arc} ({graph.source(arc)} -> {graph.target(arc)}) has no arc_distance"
        )
    return float(distance)


class ArcDisambiguator:
    """
    Base class for arc disambiguation.

    Args:
        max_incoming: Allowed active incoming arcs per node.
        max_outgoing: Allowed active outgoing arcs per node (2 permits divisions).
    """

    def __init__(self, max_incoming: int = 1, max_outgoing: int = 2):
        if max_incoming < 1 or max_outgoing < 1:
            raise ValueError("Degree limits must be at least 1")
        self.max_incoming = max_incoming
        self.max_outgoing = max_outgoing
        self.last_failures: List[MergeTrackError] = []

    def resolve(self, graph: HypothesesGraph, raise_on_error: bool = False) -> HypothesesGraph:
        """
        Deactivate surplus arcs in place.

        Failures are collected per node/component in :attr:`last_failures`
        and do not stop processing of the rest of the graph.

        Args:
            graph: Hypotheses graph.
            raise_on_error: Raise the first failure after all nodes were tried.

        Returns:
            The same graph.
        """
        check_graph(graph)
        self.last_failures = []
        self._resolve(graph)
        if raise_on_error and self.last_failures:
            raise self.last_failures[0]
        return graph

    def __call__(self, graph: HypothesesGraph) -> HypothesesGraph:
        return self.resolve(graph)

    def _resolve(self, graph: HypothesesGraph):
        raise NotImplementedError

    def is_ambiguous(self, graph: HypothesesGraph, node: int) -> bool:
        """Check whether *node* exceeds either degree limit."""
        return (
            len(graph.active_in_arcs(node)) > self.max_incoming or
            len(graph.active_out_arcs(node)) > self.max_outgoing
        )

    def _deactivate(self, graph: HypothesesGraph, arcs: List[int]):
        arc_active = graph.get(ARC_ACTIVE)
        for arc in arcs:
            arc_active[arc] = False
            logger.debug(
                f"Deactivated arc {arc} ({graph.source(arc)} -> {graph.target(arc)})"
            )


class GreedyArcDisambiguator(ArcDisambiguator):
    """
    Per node, deactivate the highest-distance active arcs until the node is
    within its limits. Among equal distances the most recently created arc
    goes first.
    """

    def _resolve(self, graph: HypothesesGraph):
        node_active = graph.get(NODE_ACTIVE)
        for node in graph.nodes():
            if not node_active[node]:
                continue
            try:
                self._trim(graph, graph.active_in_arcs(node), self.max_incoming)
                self._trim(graph, graph.active_out_arcs(node), self.max_outgoing)
            except MergeTrackError as e:
                logger.warning(f"Could not disambiguate arcs of node {node}: {e}")
                self.last_failures.append(e)

    def _trim(self, graph: HypothesesGraph, arcs: List[int], limit: int):
        if len(arcs) <= limit:
            return
        # Longest first; later arcs before earlier ones on ties
        ranked = sorted(arcs, key=lambda a: (arc_distance(graph, a), a), reverse=True)
        self._deactivate(graph, ranked[:len(arcs) - limit])


class AssignmentArcDisambiguator(ArcDisambiguator):
    """
    Exact arc selection per ambiguous component.

    Arcs are split into components of the bipartite graph that links the
    outgoing side of each source to the incoming side of each target. For
    every component containing an over-limit node, targets are matched to
    source slots (each source offers ``max_outgoing`` slots). Targets and
    slots may stay unmatched; the matching keeps as many arcs as possible
    and, among those, the smallest total ``arc_distance``. Each target
    keeps at most one incoming arc. Arcs outside the matching are
    deactivated. A component with a non-finite ``arc_distance`` raises
    :class:`InfeasibleDisambiguation` and is left unchanged.
    """

    def __init__(self, max_incoming: int = 1, max_outgoing: int = 2):
        if max_incoming != 1:
            raise ValueError("AssignmentArcDisambiguator requires max_incoming == 1")
        super().__init__(max_incoming, max_outgoing)

    def _resolve(self, graph: HypothesesGraph):
        for arcs in self._ambiguous_components(graph):
            try:
                self._solve_component(graph, arcs)
            except MergeTrackError as e:
                logger.warning(f"Could not disambiguate component of arcs {arcs}: {e}")
                self.last_failures.append(e)

    def _ambiguous_components(self, graph: HypothesesGraph) -> List[List[int]]:
        """Group active arcs into components, keep those with an over-limit node."""
        parent: Dict[Tuple[str, int], Tuple[str, int]] = {}

        def find(key):
            parent.setdefault(key, key)
            while parent[key] != key:
                parent[key] = parent[parent[key]]
                key = parent[key]
            return key

        active_arcs = graph.active_arcs()
        for arc in active_arcs:
            root_a = find(('out', graph.source(arc)))
            root_b = find(('in', graph.target(arc)))
            if root_a != root_b:
                parent[root_b] = root_a

        components: Dict[Tuple[str, int], List[int]] = {}
        for arc in active_arcs:
            components.setdefault(find(('out', graph.source(arc))), []).append(arc)

        ambiguous = []
        for arcs in components.values():
            out_degree: Dict[int, int] = {}
            in_degree: Dict[int, int] = {}
            for arc in arcs:
                out_degree[graph.source(arc)] = out_degree.get(graph.source(arc), 0) + 1
                in_degree[graph.target(arc)] = in_degree.get(graph.target(arc), 0) + 1
            if (max(out_degree.values()) > self.max_outgoing or
                    max(in_degree.values()) > self.max_incoming):
                ambiguous.append(arcs)
        return ambiguous

    def _solve_component(self, graph: HypothesesGraph, arcs: List[int]):
        distances = {arc: arc_distance(graph, arc) for arc in arcs}
        targets = sorted({graph.target(arc) for arc in arcs})
        sources = sorted({graph.source(arc) for arc in arcs})
        bad = [arc for arc in arcs if not np.isfinite(distances[arc])]
        if bad:
            raise InfeasibleDisambiguation(
                f"Non-finite arc_distance on arcs {sorted(bad)} for sources {sources} "
                f"and targets {targets}",
                nodes=sources + targets
            )

        # Best arc per (source, target) pair
        best: Dict[Tuple[int, int], Tuple[float, int]] = {}
        for arc in arcs:
            pair = (graph.source(arc), graph.target(arc))
            candidate = (distances[arc], arc)
            if pair not in best or candidate < best[pair]:
                best[pair] = candidate

        slots = []
        for source in sources:
            degree = sum(1 for s, _ in best if s == source)
            slots.extend([source] * min(degree, self.max_outgoing))

        # One private "unassigned" column per target. Its cost exceeds any
        # total of real arcs, so the most arcs are kept first, then the
        # shortest ones.
        unassigned = 1.0 + sum(abs(distance) for distance, _ in best.values())
        cost = np.full((len(targets), len(slots) + len(targets)), np.inf)
        for i, target in enumerate(targets):
            for j, source in enumerate(slots):
                if (source, target) in best:
                    cost[i, j] = best[(source, target)][0]
            cost[i, len(slots) + i] = unassigned

        rows, cols = linear_sum_assignment(cost)

        keep = {
            best[(slots[j], targets[i])][1]
            for i, j in zip(rows, cols)
            if j < len(slots)
        }
        self._deactivate(graph, [arc for arc in arcs if arc not in keep])


DISAMBIGUATORS = {
    'greedy': GreedyArcDisambiguator,
    'assignment': AssignmentArcDisambiguator,
}
