"""Unit tests for port anchor geometry."""

import pytest

from qsysview.models import Graph, Node, Port, PortAnchor, PortSide
from qsysview.port_layout import (
    anchor_for,
    effective_side,
    graph_port_anchors,
    node_port_anchors,
    port_box,
    port_offsets,
    ports_by_side,
)


def make_node(sides, width=200, height=200, x=None, y=None):
    node = Node(id="n", width=width, height=height, x=x, y=y)
    for i, side in enumerate(sides):
        node.add_port(Port(id=f"n.p{i}", node_id="n", side=side))
    return node


class TestSides:
    """Tests for side resolution and grouping."""

    def test_unset_side_counts_as_east(self):
        """A port without a side is placed east."""
        port = Port(id="n.p", node_id="n")
        assert effective_side(port) == PortSide.EAST

    def test_grouping_keeps_order(self):
        """Ports are grouped by side in declaration order."""
        node = make_node([PortSide.WEST, None, PortSide.EAST, PortSide.WEST])
        groups = ports_by_side(node)
        assert [p.id for p in groups[PortSide.WEST]] == ["n.p0", "n.p3"]
        assert [p.id for p in groups[PortSide.EAST]] == ["n.p1", "n.p2"]
        assert groups[PortSide.NORTH] == []


class TestOffsets:
    """Tests for relative port positions."""

    def test_single_port_is_centered(self):
        """A lone west port is vertically centered."""
        node = make_node([PortSide.WEST], width=200, height=150)
        assert port_offsets(node)["n.p0"] == (2, 64)

    def test_two_east_ports(self):
        """Spacing is (200 - 20) / 3 = 60, centers at 60 and 120."""
        node = make_node([PortSide.EAST, PortSide.EAST], width=200, height=200)
        offsets = port_offsets(node)
        assert offsets["n.p0"] == (176, 49)
        assert offsets["n.p1"] == (176, 109)

    def test_north_and_south(self):
        """Top and bottom ports are centered horizontally."""
        node = make_node([PortSide.NORTH, PortSide.SOUTH], width=200, height=100)
        offsets = port_offsets(node)
        assert offsets["n.p0"] == (89, 2)
        assert offsets["n.p1"] == (89, 76)

    def test_offsets_stay_inside_node(self):
        """Crowded ports are clamped inside the node."""
        node = make_node([PortSide.WEST] * 8, width=100, height=60)
        for x, y in port_offsets(node).values():
            assert 2 <= x <= 100 - 22 - 2
            assert 2 <= y <= 60 - 22 - 2


class TestAnchors:
    """Tests for absolute anchors."""

    def test_anchor_is_glyph_center(self):
        """Anchors point at the middle of the port square."""
        node = make_node([PortSide.EAST], width=200, height=150, x=0, y=100)
        anchor = node_port_anchors(node)["n.p0"]
        assert anchor == PortAnchor(x=187, y=175, side=PortSide.EAST, width=22, height=22)

    def test_unplaced_node_sits_at_origin(self):
        """Unplaced nodes are treated as sitting at (0, 0)."""
        node = make_node([PortSide.WEST], width=200, height=150)
        anchor = node_port_anchors(node)["n.p0"]
        assert (anchor.x, anchor.y) == (13, 75)

    def test_anchors_follow_node_origin(self):
        """Moving a node moves its anchors by the same amount."""
        node = make_node([PortSide.WEST], width=200, height=150, x=0, y=0)
        before = node_port_anchors(node)["n.p0"]
        node.x, node.y = 40, -10
        after = node_port_anchors(node)["n.p0"]
        assert (after.x - before.x, after.y - before.y) == (40, -10)

    def test_deterministic(self, laid_out_soc):
        """Same graph, same anchors."""
        assert graph_port_anchors(laid_out_soc) == graph_port_anchors(laid_out_soc)

    def test_every_port_has_an_anchor(self, laid_out_soc):
        """Anchors cover every port in the graph."""
        anchors = graph_port_anchors(laid_out_soc)
        assert set(anchors) == {p.id for p in laid_out_soc.iter_ports()}

    def test_port_box(self):
        """port_box spans the glyph around the anchor."""
        anchor = PortAnchor(x=100, y=50, side=PortSide.WEST, width=22, height=22)
        assert port_box(anchor) == (89, 39, 111, 61)

    def test_anchor_for(self, fanout_graph):
        """Single-port lookup, None when missing."""
        assert anchor_for(fanout_graph, "a.in").x == 513
        assert anchor_for(fanout_graph, "missing.port") is None

    @pytest.mark.parametrize("count", [1, 2, 3, 6])
    def test_ports_on_a_side_are_ordered(self, count):
        """Ports on one side keep their order top to bottom."""
        node = make_node([PortSide.WEST] * count, width=200, height=400, x=0, y=0)
        anchors = node_port_anchors(node)
        ys = [anchors[f"n.p{i}"].y for i in range(count)]
        assert ys == sorted(ys)

    def test_graph_anchors_cover_all_nodes(self, fanout_graph):
        """Anchors are collected from every node."""
        anchors = graph_port_anchors(fanout_graph)
        assert set(anchors) == {"src.out", "a.in", "b.in"}

    def test_empty_graph(self):
        """No ports, no anchors."""
        assert graph_port_anchors(Graph()) == {}
