"""
Data models for system diagrams.

This module contains the dataclasses shared by every stage of the pipeline:
the node/port/edge graph produced by the builder, the anchors derived from
it by the port layout engine, and the options handed to the automatic
layout collaborator.

Classes:
    PortSide: Fixed side of a node a port sits on.
    Parameter: A name/value pair attached to a module.
    Port: Graph representation of a module interface.
    Node: An instantiated hardware block (or a synthetic boundary node).
    Edge: A connection between two ports.
    Graph: Ordered collection of nodes and edges.
    PortAnchor: Resolved center point and side of a port.
    LayoutOptions: Named options for the automatic layout collaborator.

The graph serializes to the layout-graph JSON shape (``children``,
``ports``, ``edges`` with ``sources``/``targets``) so that diagrams can be
saved and reloaded without going through the builder.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from .config import NODE_MIN_HEIGHT, NODE_WIDTH, PORT_SIZE
from .errors import ParseError

PORT_SIDE_KEY = "org.eclipse.elk.port.side"
PORT_CONSTRAINTS_KEY = "org.eclipse.elk.portConstraints"

EXTERNAL_INPUT_ID = "__external_input__"
EXTERNAL_OUTPUT_ID = "__external_output__"


class PortSide(Enum):
    """Which side of a node a port is fixed to."""

    NORTH = "NORTH"
    SOUTH = "SOUTH"
    EAST = "EAST"
    WEST = "WEST"


class PortConstraints(Enum):
    """Whether the layout may move ports between sides."""

    FIXED_SIDE = "FIXED_SIDE"
    FREE = "FREE"


class LayoutAlgorithm(Enum):
    LAYERED = "layered"
    MRTREE = "mrtree"
    FORCE = "force"
    BOX = "box"
    DISCO = "disco"
    RADIAL = "radial"
    RANDOM = "random"


class LayoutDirection(Enum):
    RIGHT = "RIGHT"
    DOWN = "DOWN"
    LEFT = "LEFT"
    UP = "UP"


class RoutingStyle(Enum):
    ORTHOGONAL = "ORTHOGONAL"
    SPLINES = "SPLINES"
    POLYLINE = "POLYLINE"


@dataclass(frozen=True)
class LayoutOptions:
    """
    Named options passed to the automatic layout collaborator.

    Attributes:
        algorithm: Layout family to use.
        direction: Main flow direction of the diagram.
        routing: Edge routing style requested from the collaborator. The
            bundled engine only logs non-orthogonal styles; wires are always
            drawn by the schematic router.
    """

    algorithm: LayoutAlgorithm = LayoutAlgorithm.LAYERED
    direction: LayoutDirection = LayoutDirection.RIGHT
    routing: RoutingStyle = RoutingStyle.ORTHOGONAL


@dataclass(frozen=True)
class Parameter:
    """A module parameter as declared in the source document."""

    name: str
    value: str


@dataclass
class Port:
    """
    A connection point on a node.

    Attributes:
        id: ``"<nodeId>.<interfaceName>"``, unique within the graph.
        node_id: Id of the owning node.
        side: Fixed side, or None when the layout may choose.
        label: Text drawn next to the port glyph.
        color: Fill color of the port glyph.
        protocol_kind: Resolved protocol type of the interface.
        width: Glyph width.
        height: Glyph height.
        x: Layout-assigned x relative to the node, if laid out.
        y: Layout-assigned y relative to the node, if laid out.
    """

    id: str
    node_id: str
    side: Optional[PortSide] = None
    label: str = ""
    color: str = ""
    protocol_kind: str = ""
    width: float = PORT_SIZE
    height: float = PORT_SIZE
    x: Optional[float] = None
    y: Optional[float] = None


@dataclass
class Node:
    """
    An instantiated hardware block.

    Width and height are derived from the port count and are recomputed by
    the builder and by relayout preparation; they are never taken as
    authoritative input.

    Attributes:
        id: Node identity, taken from the module name.
        label: Display title.
        kind: Free-form classification (the module's component kind).
        parameters: Ordered parameter list.
        ports: Ordered port list; ids are unique within the node.
        width: Node width.
        height: Node height.
        x: Layout-assigned x of the top-left corner.
        y: Layout-assigned y of the top-left corner.
        is_external: True for synthetic boundary aggregator nodes.
        port_constraints: Whether port sides are fixed for layout.
    """

    id: str
    label: str = ""
    kind: str = ""
    parameters: List[Parameter] = field(default_factory=list)
    ports: List[Port] = field(default_factory=list)
    width: float = NODE_WIDTH
    height: float = NODE_MIN_HEIGHT
    x: Optional[float] = None
    y: Optional[float] = None
    is_external: bool = False
    port_constraints: PortConstraints = PortConstraints.FIXED_SIDE

    def get_port(self, port_id: str) -> Optional[Port]:
        for port in self.ports:
            if port.id == port_id:
                return port
        return None

    def add_port(self, port: Port) -> Port:
        """
        Append a port unless one with the same id already exists.

        Returns:
            The port now registered under that id (the existing one when
            the id was already present).
        """
        existing = self.get_port(port.id)
        if existing is not None:
            return existing
        port.node_id = self.id
        self.ports.append(port)
        return port


@dataclass
class Edge:
    """
    A directed connection between two ports.

    Attributes:
        id: ``edge_<index>`` for document connections, ``external_<n>`` for
            synthetic boundary edges.
        source_port_id: Port the net leaves from.
        target_port_id: Port the net arrives at.
        protocol_type: Resolved protocol type.
        color: Stroke color.
        is_vector: True for bus-style (wide) nets.
        label: Optional text label.
        category: Legend category used by the visibility filter.
    """

    id: str
    source_port_id: str
    target_port_id: str
    protocol_type: str = "unknown"
    color: str = ""
    is_vector: bool = False
    label: Optional[str] = None
    category: str = "Other"


@dataclass(frozen=True)
class PortAnchor:
    """Absolute center point and side of a port, plus its glyph size."""

    x: float
    y: float
    side: PortSide
    width: float
    height: float


@dataclass
class Graph:
    """
    Ordered node/port/edge graph.

    Attributes:
        nodes: Nodes keyed by id, in creation order.
        edges: Edges in creation order.
        width: Overall diagram width once laid out.
        height: Overall diagram height once laid out.
        duplicate_modules: Module names that appeared more than once in the
            source document (the later declaration replaced the earlier).
    """

    nodes: Dict[str, Node] = field(default_factory=dict)
    edges: List[Edge] = field(default_factory=list)
    width: Optional[float] = None
    height: Optional[float] = None
    duplicate_modules: List[str] = field(default_factory=list)

    def add_node(self, node: Node) -> Node:
        self.nodes[node.id] = node
        return node

    def node(self, node_id: str) -> Optional[Node]:
        return self.nodes.get(node_id)

    def iter_ports(self) -> Iterator[Port]:
        for node in self.nodes.values():
            yield from node.ports

    def port(self, port_id: str) -> Optional[Port]:
        for port in self.iter_ports():
            if port.id == port_id:
                return port
        return None

    def port_owners(self) -> Dict[str, str]:
        """Map every port id to the id of the node that owns it."""
        return {port.id: node.id for node in self.nodes.values() for port in node.ports}

    def owner_of(self, port_id: str) -> Optional[str]:
        return self.port_owners().get(port_id)

    def edge(self, edge_id: str) -> Optional[Edge]:
        for edge in self.edges:
            if edge.id == edge_id:
                return edge
        return None

    def deep_copy(self) -> "Graph":
        return copy.deepcopy(self)

    def is_laid_out(self) -> bool:
        return all(n.x is not None and n.y is not None for n in self.nodes.values())

    # ------------------------------------------------------------------
    # Layout-graph JSON
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the layout-graph JSON shape."""
        root: Dict[str, Any] = {"id": "root", "children": [], "edges": []}
        if self.width is not None:
            root["width"] = self.width
        if self.height is not None:
            root["height"] = self.height

        for node in self.nodes.values():
            child: Dict[str, Any] = {
                "id": node.id,
                "width": node.width,
                "height": node.height,
                "labels": [{"text": node.label or node.id}],
                "ports": [_port_to_dict(port) for port in node.ports],
                "properties": {PORT_CONSTRAINTS_KEY: node.port_constraints.value},
                "meta": {
                    "kind": node.kind,
                    "parameters": [
                        {"name": p.name, "value": p.value} for p in node.parameters
                    ],
                    "external": node.is_external,
                },
            }
            if node.x is not None:
                child["x"] = node.x
            if node.y is not None:
                child["y"] = node.y
            root["children"].append(child)

        for edge in self.edges:
            item: Dict[str, Any] = {
                "id": edge.id,
                "sources": [edge.source_port_id],
                "targets": [edge.target_port_id],
                "isVector": edge.is_vector,
                "meta": {
                    "edge.color": edge.color,
                    "edge.type": edge.category,
                    "protocolType": edge.protocol_type,
                },
            }
            if edge.label is not None:
                item["labels"] = [{"text": edge.label}]
            root["edges"].append(item)

        return root

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Graph":
        """
        Build a graph from a layout-graph JSON document.

        Args:
            data: Decoded JSON object with ``children`` and ``edges``.

        Returns:
            The graph described by the document.

        Raises:
            ParseError: If the document does not have the expected shape.
        """
        if not isinstance(data, dict):
            raise ParseError("Layout graph must be a JSON object")

        graph = cls(width=data.get("width"), height=data.get("height"))
        try:
            for child in data.get("children") or []:
                node = _node_from_dict(child)
                graph.add_node(node)

            for index, item in enumerate(data.get("edges") or []):
                graph.edges.append(_edge_from_dict(item, index))
        except (KeyError, IndexError, TypeError, ValueError, AttributeError) as e:
            raise ParseError(f"Invalid layout graph: {e}") from e

        return graph


def _label_text(item: Dict[str, Any]) -> Optional[str]:
    labels = item.get("labels") or []
    if labels and isinstance(labels[0], dict):
        return labels[0].get("text")
    return None


def _port_to_dict(port: Port) -> Dict[str, Any]:
    item: Dict[str, Any] = {
        "id": port.id,
        "width": port.width,
        "height": port.height,
        "labels": [{"text": port.label}],
        "properties": {},
        "meta": {
            "label": port.label,
            "interface.color": port.color,
            "protocolKind": port.protocol_kind,
        },
    }
    if port.side is not None:
        item["properties"][PORT_SIDE_KEY] = port.side.value
    if port.x is not None:
        item["x"] = port.x
    if port.y is not None:
        item["y"] = port.y
    return item


def _node_from_dict(child: Dict[str, Any]) -> Node:
    node_id = str(child["id"])
    meta = child.get("meta") or {}
    properties = child.get("properties") or {}

    node = Node(
        id=node_id,
        label=_label_text(child) or node_id,
        kind=meta.get("kind", ""),
        parameters=[
            Parameter(name=str(p["name"]), value=str(p["value"]))
            for p in meta.get("parameters") or []
        ],
        width=float(child.get("width", NODE_WIDTH)),
        height=float(child.get("height", NODE_MIN_HEIGHT)),
        x=child.get("x"),
        y=child.get("y"),
        is_external=bool(meta.get("external", False)),
        port_constraints=PortConstraints(
            properties.get(PORT_CONSTRAINTS_KEY, PortConstraints.FIXED_SIDE.value)
        ),
    )

    for item in child.get("ports") or []:
        port_meta = item.get("meta") or {}
        side = (item.get("properties") or {}).get(PORT_SIDE_KEY)
        port_id = str(item["id"])
        node.add_port(
            Port(
                id=port_id,
                node_id=node_id,
                side=PortSide(side) if side else None,
                label=port_meta.get("label") or _label_text(item) or port_id,
                color=port_meta.get("interface.color", ""),
                protocol_kind=port_meta.get("protocolKind")
                or port_meta.get("internalKind", ""),
                width=float(item.get("width", PORT_SIZE)),
                height=float(item.get("height", PORT_SIZE)),
                x=item.get("x"),
                y=item.get("y"),
            )
        )
    return node


def _edge_from_dict(item: Dict[str, Any], index: int) -> Edge:
    meta = item.get("meta") or {}
    category = meta.get("edge.type", "Other")
    return Edge(
        id=str(item.get("id", f"edge_{index}")),
        source_port_id=str(item["sources"][0]),
        target_port_id=str(item["targets"][0]),
        protocol_type=meta.get("protocolType", category),
        color=meta.get("edge.color", ""),
        is_vector=bool(item.get("isVector", False)),
        label=_label_text(item),
        category=category,
    )
