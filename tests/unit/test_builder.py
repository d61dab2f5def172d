"""Unit tests for the graph builder."""

import logging

from qsysview.builder import (
    GraphBuilder,
    UnconnectedInterface,
    convert_qsys,
    external_node_height,
    node_height,
)
from qsysview.models import EXTERNAL_INPUT_ID, EXTERNAL_OUTPUT_ID, PortSide
from qsysview.parser import ConnectionRecord, ModuleRecord, SystemDescription


class TestHeights:
    """Tests for node sizing."""

    def test_minimum_height(self):
        """Nodes with one port or none keep the minimum height."""
        assert node_height(0) == 150
        assert node_height(1) == 150

    def test_height_grows_with_ports(self):
        """Each port beyond the first adds height."""
        assert node_height(2) == 180
        assert node_height(5) == 315

    def test_external_height(self):
        """Boundary nodes use their own sizing rule."""
        assert external_node_height(2) == 150
        assert external_node_height(4) == 200


class TestUnconnectedInterface:
    """Tests for boundary interface direction."""

    def test_start_is_output(self):
        """A start interface leaves the system."""
        assert UnconnectedInterface("m.a", "a", "clock", "start").is_output is True

    def test_anything_else_is_input(self):
        """End and blank directions both enter the system."""
        assert UnconnectedInterface("m.a", "a", "clock", "end").is_output is False
        assert UnconnectedInterface("m.a", "a", "clock", "").is_output is False


class TestModules:
    """Tests for node creation from modules."""

    def test_real_nodes(self, soc_graph):
        """Every module becomes a full-width node labeled with its name."""
        for name in ("clk_0", "cpu", "onchip_mem", "jtag_uart"):
            node = soc_graph.nodes[name]
            assert node.label == name
            assert node.width == 360
            assert node.is_external is False

    def test_kind_and_parameters(self, soc_graph):
        """Module kind and named parameters carry over."""
        clk = soc_graph.nodes["clk_0"]
        assert clk.kind == "clock_source"
        # Parameter with an empty value is skipped
        assert [(p.name, p.value) for p in clk.parameters] == [
            ("clockFrequency", "50000000")
        ]

    def test_heights_follow_port_count(self, soc_graph):
        """Node heights match the ports each module ends up with."""
        heights = {node_id: node.height for node_id, node in soc_graph.nodes.items()}
        assert heights == {
            "clk_0": 225,
            "cpu": 225,
            "onchip_mem": 180,
            "jtag_uart": 225,
            EXTERNAL_INPUT_ID: 150,
            EXTERNAL_OUTPUT_ID: 150,
        }

    def test_duplicate_module_last_wins(self, caplog):
        text = """<system>
          <module name="m" kind="first" />
          <module name="m" kind="second" />
        </system>"""
        with caplog.at_level(logging.WARNING, logger="qsysview.builder"):
            graph = convert_qsys(text)
        assert list(graph.nodes) == ["m"]
        assert graph.nodes["m"].kind == "second"
        assert graph.duplicate_modules == ["m"]
        assert "Duplicate module name" in caplog.text


class TestConnections:
    """Tests for edge creation from connections."""

    def test_edge_ids_keep_document_index(self, soc_graph):
        """Edge ids use the connection's position in the document."""
        ids = [edge.id for edge in soc_graph.edges]
        assert ids[:5] == ["edge_0", "edge_1", "edge_2", "edge_3", "edge_4"]

    def test_unusable_connections_are_dropped(self, soc_graph):
        """Unknown module and empty module segment yield no edge."""
        ids = {edge.id for edge in soc_graph.edges}
        assert "edge_5" not in ids
        assert "edge_6" not in ids

    def test_source_port_east_target_port_west(self, soc_graph):
        """Sources sit on the east side, targets on the west."""
        assert soc_graph.port("clk_0.clk").side == PortSide.EAST
        assert soc_graph.port("cpu.clk").side == PortSide.WEST
        assert soc_graph.port("cpu.data_master").side == PortSide.EAST
        assert soc_graph.port("onchip_mem.s1").side == PortSide.WEST

    def test_shared_source_port_created_once(self, soc_graph):
        """A port used by several connections exists once."""
        ports = [p.id for p in soc_graph.nodes["cpu"].ports]
        assert ports.count("cpu.data_master") == 1

    def test_types_and_colors(self, soc_graph):
        """Resolved type, color and vector flag land on the edge."""
        edges = {edge.id: edge for edge in soc_graph.edges}
        assert edges["edge_0"].protocol_type == "clock"
        assert edges["edge_0"].color == "#ef4444"
        assert edges["edge_0"].is_vector is False
        assert edges["edge_2"].protocol_type == "avalon"
        assert edges["edge_2"].color == "#f59e0b"
        assert edges["edge_2"].is_vector is True
        assert edges["edge_4"].protocol_type == "interrupt"
        assert edges["edge_4"].color == "#ec4899"

    def test_label_and_category(self, soc_graph):
        """Edges are labeled with their type and filed under a category."""
        edge = soc_graph.edge("edge_3")
        assert edge.label == "avalon"
        assert edge.category == "Avalon-MM"

    def test_streaming_connection(self, streaming_qsys):
        """Streaming wires and both their ports are green."""
        graph = convert_qsys(streaming_qsys)
        edge = graph.edge("edge_0")
        assert edge.protocol_type == "avalon_streaming"
        assert edge.color == "#22c55e"
        assert edge.is_vector is True
        assert graph.port("src.out").color == "#22c55e"
        assert graph.port("dst.in").color == "#22c55e"

    def test_connection_type_hints_win(self):
        """startType overrides the connection kind."""
        description = SystemDescription(
            modules=[ModuleRecord("a"), ModuleRecord("b")],
            connections=[
                ConnectionRecord(
                    start="a.x", end="b.y", kind="conduit", start_type="clock_sink"
                )
            ],
        )
        graph = GraphBuilder().build(description)
        assert graph.edges[0].protocol_type == "clock_sink"


class TestExternalNodes:
    """Tests for boundary aggregation of unconnected interfaces."""

    def test_aggregators_exist(self, soc_graph):
        """Unconnected interfaces produce both boundary nodes."""
        assert soc_graph.nodes[EXTERNAL_INPUT_ID].is_external
        assert soc_graph.nodes[EXTERNAL_OUTPUT_ID].is_external
        assert soc_graph.nodes[EXTERNAL_INPUT_ID].width == 240

    def test_input_aggregator_drives_real_ports(self, soc_graph):
        """Inbound interfaces are wired from the input aggregator."""
        node = soc_graph.nodes[EXTERNAL_INPUT_ID]
        assert [p.id for p in node.ports] == [
            "__external_input__.clk_0.clk_in",
            "__external_input__.clk_0.clk_in_reset",
        ]
        assert all(p.side == PortSide.EAST for p in node.ports)

        edge = soc_graph.edge("external_5")
        assert edge.source_port_id == "__external_input__.clk_0.clk_in"
        assert edge.target_port_id == "clk_0.clk_in"
        assert edge.label == "external"
        assert edge.color == "#ef4444"

    def test_output_aggregator_receives(self, soc_graph):
        """Outbound interfaces are wired into the output aggregator."""
        node = soc_graph.nodes[EXTERNAL_OUTPUT_ID]
        assert [p.side for p in node.ports] == [PortSide.WEST]
        assert [p.label for p in node.ports] == ["uart_irq_out"]

        edge = soc_graph.edge("external_7")
        assert edge.source_port_id == "jtag_uart.irq_export"
        assert edge.target_port_id == "__external_output__.jtag_uart.irq_export"

    def test_connected_interface_not_aggregated(self, soc_graph):
        """cpu.clk is declared as an interface but a connection uses it."""
        aggregated = {
            e.target_port_id for e in soc_graph.edges if e.id.startswith("external_")
        }
        assert "cpu.clk" not in aggregated

    def test_interface_port_created_with_direction_side(self, soc_graph):
        """Interface ports take their side from the direction."""
        assert soc_graph.port("clk_0.clk_in").side == PortSide.WEST
        assert soc_graph.port("jtag_uart.irq_export").side == PortSide.EAST
        assert soc_graph.port("clk_0.clk_in_reset").color == "#a855f7"

    def test_one_aggregator_port_per_interface(self):
        """Interfaces whose ids differ only by dot placement keep separate ports."""
        graph = convert_qsys(
            '<system><module name="a_b"/><module name="a"/>'
            '<interface name="x" internal="a_b.c" type="clock" dir="end"/>'
            '<interface name="y" internal="a.b_c" type="reset" dir="end"/></system>'
        )
        node = graph.nodes[EXTERNAL_INPUT_ID]
        assert [p.id for p in node.ports] == [
            "__external_input__.a_b.c",
            "__external_input__.a.b_c",
        ]
        assert [p.label for p in node.ports] == ["x", "y"]
        assert [p.color for p in node.ports] == ["#ef4444", "#a855f7"]
        sources = [e.source_port_id for e in graph.edges]
        assert len(set(sources)) == 2

    def test_no_aggregators_without_interfaces(self, streaming_qsys):
        """No boundary nodes when every interface is connected."""
        graph = convert_qsys(streaming_qsys)
        assert EXTERNAL_INPUT_ID not in graph.nodes
        assert EXTERNAL_OUTPUT_ID not in graph.nodes

    def test_interface_on_unknown_module_ignored(self):
        """Interfaces on missing modules are dropped."""
        graph = convert_qsys(
            '<system><module name="a"/>'
            '<interface name="x" internal="ghost.x" type="clock" dir="end"/></system>'
        )
        assert list(graph.nodes) == ["a"]
        assert graph.edges == []


class TestGraphIntegrity:
    """Structural checks on a built graph."""

    def test_no_dangling_edges(self, soc_graph):
        """Both ends of every edge belong to some node."""
        owners = soc_graph.port_owners()
        for edge in soc_graph.edges:
            assert edge.source_port_id in owners
            assert edge.target_port_id in owners

    def test_port_ids_unique(self, soc_graph):
        """Port ids do not repeat across nodes."""
        ids = [p.id for p in soc_graph.iter_ports()]
        assert len(ids) == len(set(ids))

    def test_empty_system(self):
        """An empty system yields an empty graph."""
        graph = convert_qsys("<system />")
        assert graph.nodes == {}
        assert graph.edges == []
