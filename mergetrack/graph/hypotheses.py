"""
Hypotheses graph: nodes are object candidates per timestep, arcs are
candidate correspondences between consecutive timesteps.

Nodes and arcs are addressed by integer handles allocated in creation
order. Properties are side tables keyed by handle; nothing is ever
physically removed, activity is switched through ``node_active2`` and
``arc_active``.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple

from .traxel import Traxel

NODE_ACTIVE = 'node_active2'
ARC_ACTIVE = 'arc_active'
ARC_DISTANCE = 'arc_distance'
NODE_TRAXEL = 'node_traxel'
NODE_ORIGINATED_FROM = 'node_originated_from'
MERGER_RESOLVED_TO = 'merger_resolved_to'

REQUIRED_PROPERTIES = (NODE_ACTIVE, ARC_ACTIVE, ARC_DISTANCE)

# property name -> (is node property, default factory)
_KNOWN_PROPERTIES: Dict[str, Tuple[bool, Callable[[], Any]]] = {
    NODE_ACTIVE: (True, int),
    NODE_TRAXEL: (True, lambda: None),
    NODE_ORIGINATED_FROM: (True, set),
    MERGER_RESOLVED_TO: (True, set),
    ARC_ACTIVE: (False, bool),
    ARC_DISTANCE: (False, lambda: None),
}


class PropertyMap:
    """
    Handle -> value side table with a default for unset handles.

    Reading an unset handle returns a fresh default that is not stored, so
    mutable defaults (the provenance sets) must be assigned back or created
    with :meth:`setdefault`.
    """

    def __init__(self, default_factory: Callable[[], Any]):
        self._values: Dict[int, Any] = {}
        self._default_factory = default_factory

    def __getitem__(self, handle: int) -> Any:
        if handle in self._values:
            return self._values[handle]
        return self._default_factory()

    def __setitem__(self, handle: int, value: Any):
        self._values[handle] = value

    def setdefault(self, handle: int) -> Any:
        """Get the value of *handle*, storing the default first if unset."""
        if handle not in self._values:
            self._values[handle] = self._default_factory()
        return self._values[handle]

    def __contains__(self, handle: int) -> bool:
        return handle in self._values

    def items(self):
        return self._values.items()

    def snapshot(self) -> Dict[int, Any]:
        """Shallow copy of all explicitly set values."""
        return {
            k: (set(v) if isinstance(v, set) else v)
            for k, v in self._values.items()
        }


class HypothesesGraph:
    """
    Directed graph of object hypotheses with named property maps.

    Only ``node_traxel`` exists on a fresh graph; the tracker that builds
    the graph adds ``node_active2``, ``arc_active`` and ``arc_distance``
    (see :meth:`add_property`).
    """

    def __init__(self):
        self._node_timestep: List[int] = []
        self._nodes_by_timestep: Dict[int, List[int]] = {}
        self._arc_source: List[int] = []
        self._arc_target: List[int] = []
        self._out_arcs: List[List[int]] = []
        self._in_arcs: List[List[int]] = []
        self._properties: Dict[str, PropertyMap] = {}
        self.add_property(NODE_TRAXEL)

    # ------------------------------------------------------------------ #
    # Structure                                                            #
    # ------------------------------------------------------------------ #

    def add_node(self, timestep: int, traxel: Optional[Traxel] = None) -> int:
        """
        Add a node at *timestep*.

        Args:
            timestep: Frame index.
            traxel: Measurement stored under ``node_traxel``.

        Returns:
            New node handle.
        """
        node = len(self._node_timestep)
        self._node_timestep.append(timestep)
        self._nodes_by_timestep.setdefault(timestep, []).append(node)
        self._out_arcs.append([])
        self._in_arcs.append([])
        if traxel is not None:
            self._properties[NODE_TRAXEL][node] = traxel
        return node

    def add_arc(self, source: int, target: int) -> int:
        """Add an arc *source* -> *target* and return its handle."""
        self._check_node(source)
        self._check_node(target)
        arc = len(self._arc_source)
        self._arc_source.append(source)
        self._arc_target.append(target)
        self._out_arcs[source].append(arc)
        self._in_arcs[target].append(arc)
        return arc

    def nodes(self) -> range:
        return range(len(self._node_timestep))

    def arcs(self) -> range:
        return range(len(self._arc_source))

    def node_count(self) -> int:
        return len(self._node_timestep)

    def arc_count(self) -> int:
        return len(self._arc_source)

    def source(self, arc: int) -> int:
        return self._arc_source[arc]

    def target(self, arc: int) -> int:
        return self._arc_target[arc]

    def timestep(self, node: int) -> int:
        return self._node_timestep[node]

    def out_arcs(self, node: int) -> List[int]:
        """All outgoing arcs of *node* in creation order."""
        return list(self._out_arcs[node])

    def in_arcs(self, node: int) -> List[int]:
        """All incoming arcs of *node* in creation order."""
        return list(self._in_arcs[node])

    def nodes_at(self, timestep: int) -> List[int]:
        """Nodes at *timestep* in creation order."""
        return list(self._nodes_by_timestep.get(timestep, []))

    def timesteps(self) -> List[int]:
        return sorted(self._nodes_by_timestep)

    def _check_node(self, node: int):
        if not 0 <= node < len(self._node_timestep):
            raise IndexError(f"Invalid node handle {node}")

    # ------------------------------------------------------------------ #
    # Properties                                                           #
    # ------------------------------------------------------------------ #

    def has_property(self, name: str) -> bool:
        return name in self._properties

    def add_property(self, name: str,
                     default_factory: Optional[Callable[[], Any]] = None) -> PropertyMap:
        """
        Register a property map (no-op if it already exists).

        Args:
            name: Property name.
            default_factory: Default value factory for unset handles.
                Known properties bring their own default.

        Returns:
            The property map.
        """
        if name not in self._properties:
            if default_factory is None:
                default_factory = _KNOWN_PROPERTIES.get(name, (True, lambda: None))[1]
            self._properties[name] = PropertyMap(default_factory)
        return self._properties[name]

    def get(self, name: str) -> PropertyMap:
        """
        Get a property map.

        Raises:
            KeyError: If the property was never added.
        """
        try:
            return self._properties[name]
        except KeyError:
            raise KeyError(f"HypothesesGraph does not have property {name}") from None

    def traxel(self, node: int) -> Optional[Traxel]:
        return self._properties[NODE_TRAXEL][node]

    # ------------------------------------------------------------------ #
    # Activity helpers                                                     #
    # ------------------------------------------------------------------ #

    def is_active(self, node: int) -> bool:
        return bool(self.get(NODE_ACTIVE)[node])

    def is_arc_active(self, arc: int) -> bool:
        return bool(self.get(ARC_ACTIVE)[arc])

    def active_nodes(self) -> List[int]:
        active = self.get(NODE_ACTIVE)
        return [n for n in self.nodes() if active[n]]

    def active_out_arcs(self, node: int) -> List[int]:
        active = self.get(ARC_ACTIVE)
        return [a for a in self._out_arcs[node] if active[a]]

    def active_in_arcs(self, node: int) -> List[int]:
        active = self.get(ARC_ACTIVE)
        return [a for a in self._in_arcs[node] if active[a]]

    def inconsistent_arcs(self) -> List[int]:
        """Active arcs with at least one inactive endpoint."""
        active = self.get(NODE_ACTIVE)
        return [
            a for a in self.active_arcs()
            if not active[self._arc_source[a]] or not active[self._arc_target[a]]
        ]

    def active_arcs(self) -> List[int]:
        arc_active = self.get(ARC_ACTIVE)
        return [a for a in self.arcs() if arc_active[a]]

    def follow_track(self, node: int) -> List[int]:
        """
        Follow active arcs forward from *node* while the path is unambiguous.

        The track ends at a node without exactly one active outgoing arc, or
        before a node with more than one active incoming arc.

        Args:
            node: First node of the track.

        Returns:
            Node handles along the track, starting with *node*.
        """
        track = [node]
        while True:
            out_arcs = self.active_out_arcs(track[-1])
            if len(out_arcs) != 1:
                return track
            nxt = self._arc_target[out_arcs[0]]
            if len(self.active_in_arcs(nxt)) != 1 or not self.is_active(nxt):
                return track
            track.append(nxt)

    def snapshot(self) -> Dict[str, Dict[int, Any]]:
        """Copy of all property values, for change detection."""
        return {name: pmap.snapshot() for name, pmap in self._properties.items()}

    def __repr__(self) -> str:
        return (
            f"HypothesesGraph(nodes={self.node_count()}, "
            f"arcs={self.arc_count()}, "
            f"properties={sorted(self._properties)})"
        )
