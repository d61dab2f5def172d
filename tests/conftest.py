"""Pytest configuration and shared fixtures for qsysview tests."""

import pytest

from qsysview import LayoutOptions, NetworkXLayout, Session, convert_qsys
from qsysview.models import Edge, Graph, Node, Port, PortSide


@pytest.fixture
def soc_qsys():
    """Small Nios II style system with clocks, a bus fan-out and boundary interfaces."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<system name="soc">
  <module name="clk_0" kind="clock_source">
    <parameter name="clockFrequency" value="50000000" />
    <parameter name="resetSynchronousEdges" value="" />
  </module>
  <module name="cpu" kind="altera_nios2_gen2">
    <parameter name="impl" value="Fast" />
  </module>
  <module name="onchip_mem" kind="altera_avalon_onchip_memory2" />
  <module name="jtag_uart" kind="altera_avalon_jtag_uart" />
  <interface name="clk" internal="clk_0.clk_in" type="clock" dir="end" />
  <interface name="reset" internal="clk_0.clk_in_reset" type="reset" dir="end" />
  <interface name="uart_irq_out" internal="jtag_uart.irq_export" type="interrupt" dir="start" />
  <interface name="cpu_clk" internal="cpu.clk" type="clock" dir="end" />
  <connection kind="clock" start="clk_0.clk" end="cpu.clk" />
  <connection kind="clock" start="clk_0.clk" end="onchip_mem.clk1" />
  <connection kind="avalon" start="cpu.data_master" end="onchip_mem.s1" />
  <connection kind="avalon" start="cpu.data_master" end="jtag_uart.avalon_jtag_slave" />
  <connection kind="interrupt" start="cpu.irq" end="jtag_uart.irq" />
  <connection kind="clock" start="nonexistent" end="cpu.clk" />
  <connection kind="clock" start=".clk" end="cpu.clk" />
</system>
"""


@pytest.fixture
def streaming_qsys():
    """Two modules joined by one Avalon-ST connection with typed endpoints."""
    return """<system name="st">
  <module name="src" kind="st_source" />
  <module name="dst" kind="st_sink" />
  <interface name="a" internal="src.out" type="avalon_streaming" dir="start" />
  <interface name="b" internal="dst.in" type="avalon_streaming" dir="end" />
  <connection kind="avalon_streaming_source" start="src.out" end="dst.in" />
</system>
"""


@pytest.fixture
def soc_graph(soc_qsys):
    """Canonical (not laid out) graph of the soc fixture."""
    return convert_qsys(soc_qsys)


@pytest.fixture
def streaming_graph(streaming_qsys):
    return convert_qsys(streaming_qsys)


@pytest.fixture
def layout_engine():
    return NetworkXLayout()


@pytest.fixture
def laid_out_soc(soc_graph, layout_engine):
    """The soc graph after automatic layout."""
    return layout_engine.compute(soc_graph, LayoutOptions())


@pytest.fixture
def session():
    return Session()


@pytest.fixture
def fanout_graph():
    """One EAST source port driving two WEST targets, already placed."""
    graph = Graph()
    src = graph.add_node(Node(id="src", width=200, height=150, x=0, y=100))
    a = graph.add_node(Node(id="a", width=200, height=150, x=500, y=0))
    b = graph.add_node(Node(id="b", width=200, height=150, x=500, y=300))
    src.add_port(Port(id="src.out", node_id="src", side=PortSide.EAST))
    a.add_port(Port(id="a.in", node_id="a", side=PortSide.WEST))
    b.add_port(Port(id="b.in", node_id="b", side=PortSide.WEST))

    graph.edges.append(Edge(id="edge_0", source_port_id="src.out", target_port_id="a.in"))
    graph.edges.append(Edge(id="edge_1", source_port_id="src.out", target_port_id="b.in"))
    return graph
