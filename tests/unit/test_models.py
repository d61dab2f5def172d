"""Unit tests for the data models."""

import pytest

from qsysview.errors import ParseError
from qsysview.models import (
    PORT_CONSTRAINTS_KEY,
    PORT_SIDE_KEY,
    Edge,
    Graph,
    LayoutAlgorithm,
    LayoutDirection,
    LayoutOptions,
    Node,
    Parameter,
    Port,
    PortConstraints,
    PortSide,
    RoutingStyle,
)


class TestNode:
    """Tests for Node."""

    def test_defaults(self):
        """A bare node has the default size and fixed sides."""
        node = Node(id="n")
        assert node.width == 360
        assert node.height == 150
        assert node.x is None
        assert node.ports == []
        assert node.port_constraints == PortConstraints.FIXED_SIDE

    def test_add_port_sets_owner(self):
        """add_port claims the port for the node."""
        node = Node(id="n")
        port = node.add_port(Port(id="n.a", node_id="other"))
        assert port.node_id == "n"

    def test_add_port_dedups(self):
        """Adding an existing port id returns the original."""
        node = Node(id="n")
        first = node.add_port(Port(id="n.a", node_id="n", side=PortSide.EAST))
        second = node.add_port(Port(id="n.a", node_id="n", side=PortSide.WEST))
        assert second is first
        assert len(node.ports) == 1
        assert node.get_port("n.a").side == PortSide.EAST
        assert node.get_port("n.b") is None


class TestGraph:
    """Tests for Graph lookups."""

    def test_lookups(self, fanout_graph):
        """Node, port, owner and edge lookups."""
        assert fanout_graph.node("src").id == "src"
        assert fanout_graph.node("nope") is None
        assert fanout_graph.port("b.in").node_id == "b"
        assert fanout_graph.owner_of("a.in") == "a"
        assert fanout_graph.owner_of("x.y") is None
        assert fanout_graph.edge("edge_1").target_port_id == "b.in"
        assert fanout_graph.edge("edge_9") is None

    def test_port_owners(self, fanout_graph):
        """port_owners maps every port id to its node."""
        assert fanout_graph.port_owners() == {"src.out": "src", "a.in": "a", "b.in": "b"}

    def test_deep_copy_is_independent(self, fanout_graph):
        """Changes to a deep copy leave the source alone."""
        copy = fanout_graph.deep_copy()
        copy.nodes["a"].x = 999
        copy.edges.pop()
        assert fanout_graph.nodes["a"].x == 500
        assert len(fanout_graph.edges) == 2

    def test_is_laid_out(self, fanout_graph):
        """A graph is laid out only when every node is placed."""
        assert fanout_graph.is_laid_out()
        fanout_graph.nodes["a"].x = None
        assert not fanout_graph.is_laid_out()

    def test_layout_options_defaults(self):
        """Layered, left to right, orthogonal."""
        options = LayoutOptions()
        assert options.algorithm == LayoutAlgorithm.LAYERED
        assert options.direction == LayoutDirection.RIGHT
        assert options.routing == RoutingStyle.ORTHOGONAL


class TestSerialization:
    """Tests for the layout-graph JSON shape."""

    def test_to_dict_shape(self, fanout_graph):
        """Nodes, ports and edges serialize to the layout-graph shape."""
        fanout_graph.nodes["src"].parameters.append(Parameter("depth", "16"))
        fanout_graph.edges[0].label = "avalon"
        data = fanout_graph.to_dict()

        assert data["id"] == "root"
        src = data["children"][0]
        assert src["id"] == "src"
        assert (src["x"], src["y"]) == (0, 100)
        assert src["properties"][PORT_CONSTRAINTS_KEY] == "FIXED_SIDE"
        assert src["meta"]["parameters"] == [{"name": "depth", "value": "16"}]
        assert src["ports"][0]["properties"][PORT_SIDE_KEY] == "EAST"

        edge = data["edges"][0]
        assert edge["sources"] == ["src.out"]
        assert edge["targets"] == ["a.in"]
        assert edge["labels"] == [{"text": "avalon"}]
        assert "labels" not in data["edges"][1]

    def test_round_trip_preserves_graph(self, laid_out_soc):
        """Reading back to_dict output restores geometry and ports."""
        restored = Graph.from_dict(laid_out_soc.to_dict())
        assert list(restored.nodes) == list(laid_out_soc.nodes)
        for node_id, node in laid_out_soc.nodes.items():
            other = restored.nodes[node_id]
            assert (other.x, other.y, other.width, other.height) == (
                node.x,
                node.y,
                node.width,
                node.height,
            )
            assert [p.id for p in other.ports] == [p.id for p in node.ports]
            assert [p.side for p in other.ports] == [p.side for p in node.ports]
        assert restored.edges == laid_out_soc.edges

    def test_from_dict_defaults(self):
        """Missing keys take the model defaults."""
        graph = Graph.from_dict(
            {
                "children": [
                    {
                        "id": "a",
                        "ports": [{"id": "a.p", "meta": {"internalKind": "clock"}}],
                    }
                ],
                "edges": [{"sources": ["a.p"], "targets": ["a.p"]}],
            }
        )
        node = graph.nodes["a"]
        assert node.label == "a"
        assert node.width == 360
        assert node.ports[0].protocol_kind == "clock"
        assert node.ports[0].label == "a.p"
        assert graph.edges[0].id == "edge_0"
        assert graph.edges[0].category == "Other"

    def test_free_constraints_read(self):
        """FREE port constraints are read back."""
        graph = Graph.from_dict(
            {"children": [{"id": "a", "properties": {PORT_CONSTRAINTS_KEY: "FREE"}}]}
        )
        assert graph.nodes["a"].port_constraints == PortConstraints.FREE

    @pytest.mark.parametrize(
        "data",
        [
            "not a dict",
            {"children": [{"name": "missing id"}]},
            {"children": [{"id": "a", "ports": [{"id": "a.p", "properties": {PORT_SIDE_KEY: "UP"}}]}]},
            {"edges": [{"id": "e", "sources": [], "targets": ["x"]}]},
        ],
    )
    def test_invalid_documents(self, data):
        """Malformed graphs raise ParseError."""
        with pytest.raises(ParseError):
            Graph.from_dict(data)

    def test_edge_defaults(self):
        """A bare edge is an unknown scalar wire."""
        edge = Edge(id="e", source_port_id="a", target_port_id="b")
        assert edge.protocol_type == "unknown"
        assert edge.is_vector is False
        assert edge.category == "Other"
