"""
Automatic layout using networkx.

The layout collaborator contract is: given a graph whose nodes and ports
lack coordinates and a set of named layout options, return a copy of the
same graph with coordinates populated on every node and port. The session
awaits it once per rebuild.

NetworkXLayout is the bundled implementation. It works on a node-level
digraph (one edge per connection between owning nodes) and uses networkx
for:
- Cycle detection
- Topological sorting / layer assignment
- Node ordering within layers

Port coordinates are taken from ``port_layout`` so that the coordinates
stored on the graph agree with the anchors the renderer and router compute.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Set, Tuple

import networkx as nx

from .config import LAYER_SPACING, NODE_SPACING
from .errors import LayoutError
from .models import (
    Graph,
    LayoutAlgorithm,
    LayoutDirection,
    LayoutOptions,
    PortSide,
    RoutingStyle,
)
from .port_layout import port_offsets

logger = logging.getLogger(__name__)


@dataclass
class LayerAssignment:
    """Result of the layering phase."""

    layers: List[List[str]] = field(default_factory=list)
    back_edges: Set[Tuple[str, str]] = field(default_factory=set)
    has_cycles: bool = False


class LayoutEngine:
    """Abstract layout collaborator."""

    async def layout(self, graph: Graph, options: LayoutOptions) -> Graph:
        """
        Lay out a graph.

        Args:
            graph: Graph without coordinates. Not modified.
            options: Direction, algorithm and routing style.

        Returns:
            A copy of ``graph`` with coordinates on every node and port.

        Raises:
            LayoutError: If the graph cannot be laid out.
        """
        raise NotImplementedError


class NetworkXLayout(LayoutEngine):
    """
    Layered layout using networkx.

    For DAGs: longest-path layering in topological order.
    For cyclic graphs: identifies back edges, breaks cycles, then layouts.
    Nodes within a layer are ordered by the barycenter heuristic.
    """

    def __init__(
        self,
        node_spacing: float = NODE_SPACING,
        layer_spacing: float = LAYER_SPACING,
        sweeps: int = 4,
    ):
        self.node_spacing = node_spacing
        self.layer_spacing = layer_spacing
        self.sweeps = sweeps

    async def layout(self, graph: Graph, options: LayoutOptions) -> Graph:
        try:
            return self.compute(graph, options)
        except LayoutError:
            raise
        except (nx.NetworkXException, KeyError, ValueError) as e:
            raise LayoutError(str(e)) from e

    def compute(self, graph: Graph, options: LayoutOptions) -> Graph:
        """Synchronous body of ``layout``."""
        result = graph.deep_copy()
        if not result.nodes:
            result.width = 0
            result.height = 0
            return result

        self._assign_free_port_sides(result)
        digraph = self._node_digraph(result)

        if options.algorithm == LayoutAlgorithm.BOX:
            layers = self._grid_layers(list(result.nodes))
        else:
            if options.algorithm not in (LayoutAlgorithm.LAYERED, LayoutAlgorithm.MRTREE):
                logger.warning(
                    "Layout algorithm %r not available; using layered",
                    options.algorithm.value,
                )
            assignment = self.assign_layers(digraph)
            layers = assignment.layers

        if options.routing != RoutingStyle.ORTHOGONAL:
            logger.info(
                "Routing style %r ignored; wires are routed orthogonally",
                options.routing.value,
            )

        self._place(result, layers, options.direction)

        for node in result.nodes.values():
            offsets = port_offsets(node)
            for port in node.ports:
                port.x, port.y = offsets[port.id]

        logger.debug("Laid out %d nodes in %d layers", len(result.nodes), len(layers))
        return result

    # ------------------------------------------------------------------
    # Graph preparation
    # ------------------------------------------------------------------

    def _node_digraph(self, graph: Graph) -> nx.DiGraph:
        owners = graph.port_owners()
        digraph = nx.DiGraph()
        digraph.add_nodes_from(graph.nodes)
        for edge in graph.edges:
            source = owners.get(edge.source_port_id)
            target = owners.get(edge.target_port_id)
            if source is None or target is None:
                raise LayoutError(f"Edge {edge.id} references a missing port")
            if source != target:
                digraph.add_edge(source, target)
        return digraph

    def _assign_free_port_sides(self, graph: Graph) -> None:
        """Place free ports on the side their nets mostly flow through."""
        outgoing: Dict[str, int] = {}
        incoming: Dict[str, int] = {}
        for edge in graph.edges:
            outgoing[edge.source_port_id] = outgoing.get(edge.source_port_id, 0) + 1
            incoming[edge.target_port_id] = incoming.get(edge.target_port_id, 0) + 1

        for port in graph.iter_ports():
            if port.side is None:
                if outgoing.get(port.id, 0) >= incoming.get(port.id, 0):
                    port.side = PortSide.EAST
                else:
                    port.side = PortSide.WEST

    # ------------------------------------------------------------------
    # Layering
    # ------------------------------------------------------------------

    def assign_layers(self, digraph: nx.DiGraph) -> LayerAssignment:
        """Break cycles, assign longest-path layers and order each layer."""
        result = LayerAssignment()
        result.has_cycles = not nx.is_directed_acyclic_graph(digraph)
        if result.has_cycles:
            result.back_edges = self._find_back_edges(digraph)

        working = digraph.copy()
        working.remove_edges_from(result.back_edges)

        layers = self._longest_path_layers(working)
        result.layers = self._order_layers(layers, working)
        return result

    def _find_back_edges(self, digraph: nx.DiGraph) -> Set[Tuple[str, str]]:
        """
        Identify back edges with a DFS.

        Roots are nodes without predecessors, falling back to the first node
        when every node has one.
        """
        back_edges: Set[Tuple[str, str]] = set()
        visited: Set[str] = set()
        rec_stack: Set[str] = set()

        def dfs(node):
            visited.add(node)
            rec_stack.add(node)
            for successor in list(digraph.successors(node)):
                if successor not in visited:
                    dfs(successor)
                elif successor in rec_stack:
                    back_edges.add((node, successor))
            rec_stack.remove(node)

        roots = [n for n in digraph.nodes() if digraph.in_degree(n) == 0]
        if not roots:
            roots = [next(iter(digraph.nodes()))]

        for root in roots:
            if root not in visited:
                dfs(root)
        for node in digraph.nodes():
            if node not in visited:
                dfs(node)

        return back_edges

    def _longest_path_layers(self, working: nx.DiGraph) -> List[List[str]]:
        try:
            topo_order = list(nx.topological_sort(working))
        except nx.NetworkXUnfeasible:
            topo_order = list(working.nodes())

        node_layer: Dict[str, int] = {}
        for node in topo_order:
            predecessors = list(working.predecessors(node))
            if not predecessors:
                node_layer[node] = 0
            else:
                node_layer[node] = max(node_layer.get(p, 0) for p in predecessors) + 1

        if not node_layer:
            return []

        layers: List[List[str]] = [[] for _ in range(max(node_layer.values()) + 1)]
        # Keep graph insertion order inside a layer before barycenter sorting
        for node in working.nodes():
            layers[node_layer[node]].append(node)
        return layers

    def _order_layers(
        self, layers: List[List[str]], working: nx.DiGraph
    ) -> List[List[str]]:
        """Order nodes within each layer to reduce crossings (barycenter)."""
        if len(layers) <= 1:
            return layers

        for _ in range(self.sweeps):
            for i in range(1, len(layers)):
                layers[i] = self._order_layer_by_barycenter(
                    layers[i], layers[i - 1], working, use_predecessors=True
                )
            for i in range(len(layers) - 2, -1, -1):
                layers[i] = self._order_layer_by_barycenter(
                    layers[i], layers[i + 1], working, use_predecessors=False
                )
        return layers

    def _order_layer_by_barycenter(
        self,
        layer: List[str],
        ref_layer: List[str],
        graph: nx.DiGraph,
        use_predecessors: bool,
    ) -> List[str]:
        ref_positions = {node: i for i, node in enumerate(ref_layer)}

        def barycenter(node: str) -> float:
            if use_predecessors:
                neighbors = list(graph.predecessors(node))
            else:
                neighbors = list(graph.successors(node))
            positions = [ref_positions[n] for n in neighbors if n in ref_positions]
            if not positions:
                return layer.index(node)
            return sum(positions) / len(positions)

        return sorted(layer, key=barycenter)

    def _grid_layers(self, node_ids: List[str]) -> List[List[str]]:
        """Pack nodes into a near-square grid, row-major in graph order."""
        columns = 1
        while columns * columns < len(node_ids):
            columns += 1
        return [node_ids[i : i + columns] for i in range(0, len(node_ids), columns)]

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------

    def _place(
        self, graph: Graph, layers: List[List[str]], direction: LayoutDirection
    ) -> None:
        """
        Assign node coordinates from layers.

        Layers advance along the main axis (x for RIGHT/LEFT, y for
        DOWN/UP); nodes in a layer are stacked along the cross axis and
        each layer is centered on the widest one.
        """
        horizontal = direction in (LayoutDirection.RIGHT, LayoutDirection.LEFT)

        def main_size(node_id):
            node = graph.nodes[node_id]
            return node.width if horizontal else node.height

        def cross_size(node_id):
            node = graph.nodes[node_id]
            return node.height if horizontal else node.width

        layer_depths = [max(main_size(n) for n in layer) for layer in layers]
        layer_extents = [
            sum(cross_size(n) for n in layer) + self.node_spacing * (len(layer) - 1)
            for layer in layers
        ]
        max_extent = max(layer_extents)
        total_depth = sum(layer_depths) + self.layer_spacing * (len(layers) - 1)

        main = 0.0
        for layer, depth, extent in zip(layers, layer_depths, layer_extents):
            cross = (max_extent - extent) / 2
            for node_id in layer:
                node = graph.nodes[node_id]
                offset = main + (depth - main_size(node_id)) / 2
                if direction == LayoutDirection.LEFT:
                    node.x, node.y = total_depth - offset - node.width, cross
                elif direction == LayoutDirection.UP:
                    node.x, node.y = cross, total_depth - offset - node.height
                elif horizontal:
                    node.x, node.y = offset, cross
                else:
                    node.x, node.y = cross, offset
                cross += cross_size(node_id) + self.node_spacing
            main += depth + self.layer_spacing

        if horizontal:
            graph.width, graph.height = total_depth, max_extent
        else:
            graph.width, graph.height = max_extent, total_depth


async def compute_layout(graph: Graph, options: LayoutOptions = LayoutOptions()) -> Graph:
    """Convenience function to lay out a graph with the bundled engine."""
    return await NetworkXLayout().layout(graph, options)
