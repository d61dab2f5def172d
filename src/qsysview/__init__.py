"""
qsysview - Diagrams for hardware system descriptions

A Python library that turns Qsys / Platform Designer system descriptions
into schematic diagrams: modules become nodes, interfaces become colored
ports, connections become orthogonally routed wires.

Example:
    >>> import asyncio
    >>> from qsysview import Session
    >>> session = Session()
    >>> graph = asyncio.run(session.open_text(open("soc.qsys").read()))
    >>> routes = session.routes()
"""

from .builder import GraphBuilder, build_graph, convert_qsys
from .errors import LayoutError, ParseError, QsysViewError
from .export import DiagramExporter, to_drawio
from .layout import LayoutEngine, NetworkXLayout, compute_layout
from .models import (
    Edge,
    Graph,
    LayoutAlgorithm,
    LayoutDirection,
    LayoutOptions,
    Node,
    Parameter,
    Port,
    PortAnchor,
    PortSide,
    RoutingStyle,
)
from .parser import QsysParser, SystemDescription, parse_layout_json, parse_qsys
from .png_renderer import PNGRenderer, render_to_png
from .port_layout import graph_port_anchors, node_port_anchors
from .routing import SchematicRouter, WireRoute, route_graph
from .session import Session, parse_document
from .state import AppState, SideOverride
from .type_resolver import (
    ConnectionCategory,
    ResolvedType,
    kind_color,
    resolve_connection,
    resolve_type,
)

__version__ = "0.3.0"

__all__ = [
    # Session
    "Session",
    "AppState",
    "SideOverride",
    "parse_document",
    # Parsing and building
    "QsysParser",
    "SystemDescription",
    "parse_qsys",
    "parse_layout_json",
    "GraphBuilder",
    "build_graph",
    "convert_qsys",
    # Types
    "ConnectionCategory",
    "ResolvedType",
    "resolve_type",
    "resolve_connection",
    "kind_color",
    # Model
    "Graph",
    "Node",
    "Port",
    "Edge",
    "Parameter",
    "PortSide",
    "PortAnchor",
    "LayoutOptions",
    "LayoutAlgorithm",
    "LayoutDirection",
    "RoutingStyle",
    # Geometry and routing
    "node_port_anchors",
    "graph_port_anchors",
    "SchematicRouter",
    "WireRoute",
    "route_graph",
    # Layout
    "LayoutEngine",
    "NetworkXLayout",
    "compute_layout",
    # Output
    "PNGRenderer",
    "render_to_png",
    "DiagramExporter",
    "to_drawio",
    # Errors
    "QsysViewError",
    "ParseError",
    "LayoutError",
]
