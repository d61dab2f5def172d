"""
Port anchor geometry.

Computes where every port sits on its node. This is the single source of
truth for port positions: the PNG renderer draws port glyphs here, the
draw.io exporter writes port geometry from here, the layout engine stores
port coordinates from here, and the schematic router starts and ends every
wire here. Any second implementation of this arithmetic would let wires
drift away from the ports they belong to.

For a side holding N ports (in insertion order):

- span = node dimension along the side - PORT_SIDE_MARGIN
- the i-th port (1-based) is centered at ``i * span / (N + 1)``, or at the
  side's midpoint when N == 1
- the coordinate across the side is inset PORT_INSET from the border
- the glyph's top-left is clamped into ``[inset, dimension - size - inset]``
"""

from typing import Dict, List, Optional, Tuple

from .config import PORT_INSET, PORT_SIDE_MARGIN
from .models import Graph, Node, Port, PortAnchor, PortSide

# Ports without a fixed side are drawn on the EAST side.
DEFAULT_SIDE = PortSide.EAST


def effective_side(port: Port) -> PortSide:
    return port.side if port.side is not None else DEFAULT_SIDE


def ports_by_side(node: Node) -> Dict[PortSide, List[Port]]:
    """Group a node's ports by side, preserving insertion order."""
    groups: Dict[PortSide, List[Port]] = {side: [] for side in PortSide}
    for port in node.ports:
        groups[effective_side(port)].append(port)
    return groups


def _clamp(value: float, size: float, dimension: float) -> float:
    return max(PORT_INSET, min(value, dimension - size - PORT_INSET))


def _along(index: int, count: int, dimension: float) -> float:
    """Center of the ``index``-th (0-based) port along a side."""
    if count > 1:
        spacing = (dimension - PORT_SIDE_MARGIN) / (count + 1)
    else:
        spacing = dimension / 2
    return (index + 1) * spacing


def port_offsets(node: Node) -> Dict[str, Tuple[float, float]]:
    """
    Compute the top-left corner of every port glyph, relative to the node.

    Args:
        node: Node whose width, height and ports are used.

    Returns:
        Mapping of port id to (x, y) offset from the node origin.
    """
    offsets: Dict[str, Tuple[float, float]] = {}
    w, h = node.width, node.height

    for side, ports in ports_by_side(node).items():
        count = len(ports)
        for index, port in enumerate(ports):
            pw, ph = port.width, port.height

            if side in (PortSide.WEST, PortSide.EAST):
                y = _along(index, count, h) - ph / 2
                if side == PortSide.WEST:
                    x = PORT_INSET
                else:
                    x = max(PORT_INSET, w - pw - PORT_INSET)
            else:
                x = _along(index, count, w) - pw / 2
                if side == PortSide.NORTH:
                    y = PORT_INSET
                else:
                    y = max(PORT_INSET, h - ph - PORT_INSET)

            offsets[port.id] = (_clamp(x, pw, w), _clamp(y, ph, h))

    return offsets


def node_port_anchors(node: Node) -> Dict[str, PortAnchor]:
    """
    Compute absolute anchors (glyph centers) for every port of a node.

    A node without layout coordinates is treated as sitting at the origin.
    """
    origin_x = node.x or 0
    origin_y = node.y or 0
    ports = {port.id: port for port in node.ports}

    anchors: Dict[str, PortAnchor] = {}
    for port_id, (ox, oy) in port_offsets(node).items():
        port = ports[port_id]
        anchors[port_id] = PortAnchor(
            x=origin_x + ox + port.width / 2,
            y=origin_y + oy + port.height / 2,
            side=effective_side(port),
            width=port.width,
            height=port.height,
        )
    return anchors


def graph_port_anchors(graph: Graph) -> Dict[str, PortAnchor]:
    """Compute anchors for every port in the graph."""
    anchors: Dict[str, PortAnchor] = {}
    for node in graph.nodes.values():
        anchors.update(node_port_anchors(node))
    return anchors


def port_box(anchor: PortAnchor) -> Tuple[float, float, float, float]:
    """Glyph rectangle (x0, y0, x1, y1) of the port centered on ``anchor``."""
    return (
        anchor.x - anchor.width / 2,
        anchor.y - anchor.height / 2,
        anchor.x + anchor.width / 2,
        anchor.y + anchor.height / 2,
    )


def anchor_for(graph: Graph, port_id: str) -> Optional[PortAnchor]:
    """Anchor of a single port, or None if no node owns it."""
    owner = graph.owner_of(port_id)
    if owner is None:
        return None
    return node_port_anchors(graph.nodes[owner]).get(port_id)
