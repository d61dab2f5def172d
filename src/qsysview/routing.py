"""
Schematic wire routing.

Computes an orthogonal polyline for every edge, starting and ending at the
port anchors produced by ``port_layout``, plus junction markers where one
source port fans out to several destinations.

The router is a deterministic heuristic, not a global router:

- Every wire leaves its source and enters its target through a straight
  stub STUB_LENGTH units long, along the port side's outward normal.
- Edges take a rotating lateral channel offset (0, 15, 30, 45, 0, ...) in
  processing order, which pulls parallel nets apart but does not promise
  they never overlap.
- Between the two stubs the wire makes a single jog (or, when the target
  is behind an EAST-facing source, loops around).

Routes are derived data. They are recomputed from the current coordinates
whenever the diagram is drawn and are never stored on the graph.
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .config import CHANNEL_SPACING, CHANNEL_WRAP, LOOP_OFFSET, STUB_LENGTH
from .models import Edge, Graph, PortAnchor, PortSide
from .port_layout import graph_port_anchors

Point = Tuple[float, float]

_NORMALS = {
    PortSide.EAST: (1, 0),
    PortSide.WEST: (-1, 0),
    PortSide.NORTH: (0, -1),
    PortSide.SOUTH: (0, 1),
}


@dataclass
class WireRoute:
    """
    A routed wire.

    Attributes:
        edge_id: Id of the edge this wire draws.
        points: Polyline vertices from the source anchor to the target anchor.
        junctions: Points where a junction dot is drawn.
        channel: Lateral channel offset used for this wire.
    """

    edge_id: str
    points: List[Point] = field(default_factory=list)
    junctions: List[Point] = field(default_factory=list)
    channel: float = 0


def stub_point(anchor: PortAnchor, length: float = STUB_LENGTH) -> Point:
    """End of the straight stub projected outward from ``anchor``."""
    nx, ny = _NORMALS[anchor.side]
    return (anchor.x + nx * length, anchor.y + ny * length)


class SchematicRouter:
    """
    Routes edges between port anchors using orthogonal paths.

    Attributes:
        stub_length: Straight run out of each port before the first turn.
        channel_spacing: Step between consecutive channel offsets.
        channel_wrap: Channel offsets wrap back to 0 at this value.
        loop_offset: Base clearance for wires that loop behind their source.
    """

    def __init__(
        self,
        stub_length: float = STUB_LENGTH,
        channel_spacing: float = CHANNEL_SPACING,
        channel_wrap: float = CHANNEL_WRAP,
        loop_offset: float = LOOP_OFFSET,
    ):
        self.stub_length = stub_length
        self.channel_spacing = channel_spacing
        self.channel_wrap = channel_wrap
        self.loop_offset = loop_offset

    def route_graph(
        self, graph: Graph, anchors: Optional[Dict[str, PortAnchor]] = None
    ) -> Dict[str, WireRoute]:
        """
        Route every edge of a laid-out graph.

        Args:
            graph: Graph with node coordinates.
            anchors: Precomputed port anchors; computed from the graph when
                omitted.

        Returns:
            Routes keyed by edge id, in edge order. Edges whose ports have no
            anchor are skipped.
        """
        if anchors is None:
            anchors = graph_port_anchors(graph)

        channels = self.assign_channels(graph.edges, anchors)
        groups = group_by_source(graph.edges)

        routes: Dict[str, WireRoute] = OrderedDict()
        for edge in graph.edges:
            source = anchors.get(edge.source_port_id)
            target = anchors.get(edge.target_port_id)
            if source is None or target is None:
                continue

            siblings = groups[edge.source_port_id]
            fan_out = len({e.target_port_id for e in siblings}) > 1
            routes[edge.id] = self.route(
                edge.id,
                source,
                target,
                channel=channels.get(edge.id, 0),
                fan_out=fan_out,
            )

        return routes

    def assign_channels(
        self, edges: List[Edge], anchors: Dict[str, PortAnchor]
    ) -> Dict[str, float]:
        """Give each routable edge the next channel offset, wrapping around."""
        channels: Dict[str, float] = {}
        offset = 0
        for edge in edges:
            if edge.source_port_id in anchors and edge.target_port_id in anchors:
                channels[edge.id] = offset
                offset = (offset + self.channel_spacing) % self.channel_wrap
        return channels

    def route(
        self,
        edge_id: str,
        source: PortAnchor,
        target: PortAnchor,
        channel: float = 0,
        fan_out: bool = False,
    ) -> WireRoute:
        """
        Route one wire between two anchors.

        Args:
            edge_id: Id recorded on the result.
            source: Anchor the wire leaves from.
            target: Anchor the wire arrives at.
            channel: Lateral channel offset for the jog.
            fan_out: Whether the source port drives more than one target.

        Returns:
            WireRoute from ``source`` to ``target``.
        """
        sx, sy = stub_point(source, self.stub_length)
        tx, ty = stub_point(target, self.stub_length)
        dx = tx - sx
        dy = ty - sy

        sides = (source.side, target.side)
        if sides == (PortSide.EAST, PortSide.WEST):
            if dx > 0:
                mid_x = sx + dx / 2 + channel
                middle = [(mid_x, sy), (mid_x, ty)]
            else:
                # Target is behind the source: loop around
                loop = self.loop_offset + channel
                mid_y = (sy + ty) / 2
                middle = [
                    (sx + loop, sy),
                    (sx + loop, mid_y),
                    (tx - loop, mid_y),
                    (tx - loop, ty),
                ]
        elif sides == (PortSide.WEST, PortSide.EAST):
            mid_x = sx + dx / 2 - channel
            middle = [(mid_x, sy), (mid_x, ty)]
        elif sides == (PortSide.SOUTH, PortSide.NORTH):
            mid_y = sy + dy / 2 + channel
            middle = [(sx, mid_y), (tx, mid_y)]
        elif sides == (PortSide.NORTH, PortSide.SOUTH):
            mid_y = sy + dy / 2 - channel
            middle = [(sx, mid_y), (tx, mid_y)]
        elif abs(dx) > abs(dy):
            mid_x = sx + dx / 2 + channel
            middle = [(mid_x, sy), (mid_x, ty)]
        else:
            mid_y = sy + dy / 2 + channel
            middle = [(sx, mid_y), (tx, mid_y)]

        points: List[Point] = [(source.x, source.y), (sx, sy)]
        points.extend(middle)
        points.append((tx, ty))
        points.append((target.x, target.y))

        junctions: List[Point] = []
        if fan_out:
            junctions.append((sx, sy))
            junctions.append(middle[0])

        return WireRoute(edge_id=edge_id, points=points, junctions=junctions, channel=channel)


def group_by_source(edges: List[Edge]) -> Dict[str, List[Edge]]:
    """Group edges by source port id, keeping edge order within each group."""
    groups: Dict[str, List[Edge]] = OrderedDict()
    for edge in edges:
        groups.setdefault(edge.source_port_id, []).append(edge)
    return groups


def route_graph(graph: Graph) -> Dict[str, WireRoute]:
    """Convenience function to route a laid-out graph with default settings."""
    return SchematicRouter().route_graph(graph)


def compress_points(points: List[Point]) -> List[Point]:
    """
    Drop repeated vertices and collinear midpoints from a polyline.

    Used by renderers; the router itself returns the raw vertex sequence.
    """
    out: List[Point] = []
    for p in points:
        if out and out[-1] == p:
            continue
        if len(out) >= 2:
            (x0, y0), (x1, y1) = out[-2], out[-1]
            if (x0 == x1 == p[0]) or (y0 == y1 == p[1]):
                out[-1] = p
                continue
        out.append(p)
    return out
