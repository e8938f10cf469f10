"""
Tests for greedy and assignment-based arc disambiguation.
"""

import unittest

from mergetrack.exceptions import InfeasibleDisambiguation, InvalidGraphState
from mergetrack.graph import HypothesesGraph
from mergetrack.graph.hypotheses import ARC_DISTANCE
from mergetrack.resolution import AssignmentArcDisambiguator, GreedyArcDisambiguator

from .graph_fixtures import add_arc, add_node, empty_graph


def active_pairs(graph):
    return {(graph.source(a), graph.target(a)) for a in graph.active_arcs()}


class TestGreedyArcDisambiguator(unittest.TestCase):
    """Test greedy removal of the longest surplus arcs."""

    def setUp(self):
        """Set up test fixtures."""
        self.graph = empty_graph()
        self.a = add_node(self.graph, 0, 1)
        self.b = add_node(self.graph, 0, 2)
        self.c = add_node(self.graph, 0, 3)
        self.x = add_node(self.graph, 1, 1)
        self.y = add_node(self.graph, 1, 2)
        self.z = add_node(self.graph, 1, 3)

    def test_incoming_limit(self):
        """Test that only the shortest incoming arc survives."""
        add_arc(self.graph, self.a, self.x, 3.0)
        add_arc(self.graph, self.b, self.x, 1.0)
        add_arc(self.graph, self.c, self.x, 2.0)

        GreedyArcDisambiguator().resolve(self.graph)

        self.assertEqual(active_pairs(self.graph), {(self.b, self.x)})

    def test_outgoing_limit(self):
        """Test that outgoing arcs are cut down to max_outgoing."""
        add_arc(self.graph, self.a, self.x, 1.0)
        add_arc(self.graph, self.a, self.y, 5.0)
        add_arc(self.graph, self.a, self.z, 2.0)

        GreedyArcDisambiguator(max_outgoing=2).resolve(self.graph)

        self.assertEqual(active_pairs(self.graph), {(self.a, self.x), (self.a, self.z)})

    def test_tie_keeps_earlier_arc(self):
        """Test that among equal distances the later arc is dropped."""
        first = add_arc(self.graph, self.a, self.x, 2.0)
        second = add_arc(self.graph, self.b, self.x, 2.0)

        GreedyArcDisambiguator().resolve(self.graph)

        self.assertTrue(self.graph.is_arc_active(first))
        self.assertFalse(self.graph.is_arc_active(second))

    def test_custom_incoming_limit(self):
        """Test a non-default incoming limit."""
        add_arc(self.graph, self.a, self.x, 3.0)
        add_arc(self.graph, self.b, self.x, 1.0)
        add_arc(self.graph, self.c, self.x, 2.0)

        GreedyArcDisambiguator(max_incoming=2).resolve(self.graph)

        self.assertEqual(active_pairs(self.graph), {(self.b, self.x), (self.c, self.x)})

    def test_idempotent(self):
        """Test that a second run changes nothing."""
        add_arc(self.graph, self.a, self.x, 3.0)
        add_arc(self.graph, self.b, self.x, 1.0)
        add_arc(self.graph, self.a, self.y, 1.0)
        disambiguator = GreedyArcDisambiguator()
        disambiguator.resolve(self.graph)
        snapshot = self.graph.snapshot()

        disambiguator.resolve(self.graph)

        self.assertEqual(self.graph.snapshot(), snapshot)

    def test_unambiguous_graph_untouched(self):
        """Test that a graph within limits is a no-op."""
        add_arc(self.graph, self.a, self.x, 3.0)
        add_arc(self.graph, self.b, self.y, 1.0)
        snapshot = self.graph.snapshot()

        GreedyArcDisambiguator().resolve(self.graph)

        self.assertEqual(self.graph.snapshot(), snapshot)

    def test_missing_distance_reported(self):
        """Test per-node failure on an arc without distance."""
        add_arc(self.graph, self.a, self.x, 3.0)
        no_distance = add_arc(self.graph, self.b, self.x, 1.0)
        self.graph.get(ARC_DISTANCE)[no_distance] = None
        add_arc(self.graph, self.a, self.y, 1.0)
        add_arc(self.graph, self.b, self.y, 2.0)
        disambiguator = GreedyArcDisambiguator()

        disambiguator.resolve(self.graph)

        self.assertEqual(len(disambiguator.last_failures), 1)
        self.assertIsInstance(disambiguator.last_failures[0], InvalidGraphState)
        # y was still processed
        self.assertEqual(len(self.graph.active_in_arcs(self.y)), 1)

        with self.assertRaises(InvalidGraphState):
            disambiguator.resolve(self.graph, raise_on_error=True)

    def test_invalid_graph(self):
        """Test graph validation."""
        with self.assertRaises(InvalidGraphState):
            GreedyArcDisambiguator().resolve(None)
        with self.assertRaises(InvalidGraphState):
            GreedyArcDisambiguator().resolve(HypothesesGraph())

    def test_invalid_limits(self):
        """Test that limits must be positive."""
        with self.assertRaises(ValueError):
            GreedyArcDisambiguator(max_incoming=0)


class TestAssignmentArcDisambiguator(unittest.TestCase):
    """Test exact per-component arc selection."""

    def setUp(self):
        """Set up test fixtures."""
        self.graph = empty_graph()
        self.a = add_node(self.graph, 0, 1)
        self.b = add_node(self.graph, 0, 2)
        self.c = add_node(self.graph, 0, 3)
        self.x = add_node(self.graph, 1, 1)
        self.y = add_node(self.graph, 1, 2)
        self.z = add_node(self.graph, 1, 3)
        self.w = add_node(self.graph, 1, 4)

    def test_incoming_limit(self):
        """Test that the shortest incoming arc is kept."""
        add_arc(self.graph, self.a, self.x, 3.0)
        add_arc(self.graph, self.b, self.x, 1.0)

        AssignmentArcDisambiguator().resolve(self.graph)

        self.assertEqual(active_pairs(self.graph), {(self.b, self.x)})

    def test_better_than_greedy(self):
        """Test that the joint solution keeps more arcs than the greedy one."""
        add_arc(self.graph, self.a, self.x, 1.0)
        add_arc(self.graph, self.a, self.y, 2.0)
        add_arc(self.graph, self.b, self.x, 1.5)

        greedy_graph = empty_graph()
        for node in self.graph.nodes():
            add_node(greedy_graph, self.graph.timestep(node), self.graph.traxel(node).id)
        for arc in self.graph.arcs():
            add_arc(greedy_graph, self.graph.source(arc), self.graph.target(arc),
                    self.graph.get(ARC_DISTANCE)[arc])

        AssignmentArcDisambiguator(max_outgoing=1).resolve(self.graph)
        GreedyArcDisambiguator(max_outgoing=1).resolve(greedy_graph)

        self.assertEqual(active_pairs(self.graph), {(self.b, self.x), (self.a, self.y)})
        self.assertEqual(active_pairs(greedy_graph), {(self.a, self.x)})

    def test_division_allowed(self):
        """Test that two outgoing arcs are kept with max_outgoing=2."""
        add_arc(self.graph, self.a, self.x, 1.0)
        add_arc(self.graph, self.a, self.y, 1.0)
        add_arc(self.graph, self.a, self.z, 4.0)

        AssignmentArcDisambiguator(max_outgoing=2).resolve(self.graph)

        self.assertEqual(active_pairs(self.graph), {(self.a, self.x), (self.a, self.y)})

    def test_parallel_arcs(self):
        """Test that only the best of two parallel arcs is kept."""
        add_arc(self.graph, self.a, self.x, 2.0)
        best = add_arc(self.graph, self.a, self.x, 1.0)

        AssignmentArcDisambiguator().resolve(self.graph)

        self.assertEqual(self.graph.active_arcs(), [best])

    def test_shared_target_component(self):
        """Test that sources competing for one target still get a valid selection."""
        add_arc(self.graph, self.a, self.x, 1.0)
        add_arc(self.graph, self.b, self.x, 1.0)
        add_arc(self.graph, self.c, self.x, 1.0)
        add_arc(self.graph, self.c, self.y, 1.0)
        add_arc(self.graph, self.c, self.z, 1.0)
        add_arc(self.graph, self.c, self.w, 1.0)
        # Independent component at the next timestep
        p = add_node(self.graph, 2, 1)
        add_arc(self.graph, self.x, p, 1.0)
        add_arc(self.graph, self.y, p, 2.0)
        first_component = set(self.graph.out_arcs(self.a) + self.graph.out_arcs(self.b) +
                              self.graph.out_arcs(self.c))

        disambiguator = AssignmentArcDisambiguator(max_outgoing=1)
        disambiguator.resolve(self.graph)

        self.assertEqual(disambiguator.last_failures, [])
        self.assertEqual(len(self.graph.active_in_arcs(self.x)), 1)
        self.assertLessEqual(len(self.graph.active_out_arcs(self.c)), 1)
        for node in self.graph.nodes():
            self.assertLessEqual(len(self.graph.active_in_arcs(node)), 1)
            self.assertLessEqual(len(self.graph.active_out_arcs(node)), 1)
        # x plus one of y, z, w is the largest selection
        kept = [arc for arc in first_component if self.graph.is_arc_active(arc)]
        self.assertEqual(len(kept), 2)
        self.assertIn(self.graph.source(self.graph.active_in_arcs(self.x)[0]), [self.a, self.b])
        self.assertEqual(
            [self.graph.source(a) for a in self.graph.active_in_arcs(p)], [self.x]
        )

    def test_non_finite_distance_infeasible(self):
        """Test that a component with a non-finite distance is reported and left unchanged."""
        ax = add_arc(self.graph, self.a, self.x, 1.0)
        bx = add_arc(self.graph, self.b, self.x, float('nan'))
        # Independent, solvable component
        add_arc(self.graph, self.c, self.y, 1.0)
        add_arc(self.graph, self.c, self.z, 2.0)
        add_arc(self.graph, self.c, self.w, 3.0)

        disambiguator = AssignmentArcDisambiguator()
        disambiguator.resolve(self.graph)

        self.assertEqual(len(disambiguator.last_failures), 1)
        failure = disambiguator.last_failures[0]
        self.assertIsInstance(failure, InfeasibleDisambiguation)
        self.assertIn(self.x, failure.nodes)
        self.assertTrue(self.graph.is_arc_active(ax))
        self.assertTrue(self.graph.is_arc_active(bx))
        self.assertEqual(
            {(self.c, self.graph.target(a)) for a in self.graph.active_out_arcs(self.c)},
            {(self.c, self.y), (self.c, self.z)}
        )

        with self.assertRaises(InfeasibleDisambiguation):
            disambiguator.resolve(self.graph, raise_on_error=True)

    def test_idempotent(self):
        """Test that a second run changes nothing."""
        add_arc(self.graph, self.a, self.x, 1.0)
        add_arc(self.graph, self.a, self.y, 2.0)
        add_arc(self.graph, self.b, self.x, 1.5)
        disambiguator = AssignmentArcDisambiguator()
        disambiguator.resolve(self.graph)
        snapshot = self.graph.snapshot()

        disambiguator.resolve(self.graph)

        self.assertEqual(self.graph.snapshot(), snapshot)
        self.assertEqual(disambiguator.last_failures, [])

    def test_requires_single_incoming(self):
        """Test that more than one incoming arc cannot be modelled."""
        with self.assertRaises(ValueError):
            AssignmentArcDisambiguator(max_incoming=2)


if __name__ == '__main__':
    unittest.main()
