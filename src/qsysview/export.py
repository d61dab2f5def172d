"""
File export functionality for diagrams.

This module handles exporting laid-out diagrams to various file formats:
- Layout-graph JSON (.json) - reloadable without the source document
- draw.io XML (.drawio) - for external diagram editors
- PNG images - rendered through PNGRenderer

The draw.io document holds one vertex per node, one child vertex per port
(geometry from ``port_layout``, so it matches the PNG), one text vertex per
port label and one orthogonal connector per edge whose stroke width reflects
whether the net is a vector bus.
"""

import json
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .config import DEFAULT_EDGE_COLOR, DEFAULT_PORT_COLOR, DIAGRAM_PADDING
from .models import Graph, PortSide
from .png_renderer import PNGRenderer
from .port_layout import effective_side, port_offsets

VECTOR_STROKE_WIDTH = 5
SCALAR_STROKE_WIDTH = 2.5
PORT_LABEL_WIDTH = 180

NODE_STYLE = (
    "rounded=1;whiteSpace=wrap;html=1;fontStyle=1;fontSize=18;strokeWidth=2;"
    "fillColor=#ffffff;strokeColor=#94a3b8;verticalAlign=top;spacingTop=12;"
)
PORT_STYLE = "rounded=0;whiteSpace=wrap;html=1;fillColor={color};strokeColor=#1e293b;"
LABEL_STYLE = (
    "text;html=1;strokeColor=none;fillColor=none;align={align};verticalAlign=middle;"
    "whiteSpace=wrap;rounded=0;fontSize=15;fontColor=#000000;fontStyle=1;"
)
EDGE_STYLE = (
    "edgeStyle=orthogonalEdgeStyle;rounded=0;orthogonalLoop=1;jettySize=auto;html=1;"
    "strokeColor={color};strokeWidth={width};endArrow=block;endFill=1;"
)


def _fmt(value: float) -> str:
    """Format a coordinate without a trailing ``.0``."""
    value = float(value)
    return str(int(value)) if value.is_integer() else repr(value)


def _geometry(cell: ET.Element, x: float, y: float, width: float, height: float) -> None:
    ET.SubElement(
        cell,
        "mxGeometry",
        {"x": _fmt(x), "y": _fmt(y), "width": _fmt(width), "height": _fmt(height), "as": "geometry"},
    )


def to_drawio(graph: Graph, diagram_name: str = "Qsys Design") -> str:
    """
    Serialize a laid-out graph as a draw.io document.

    Args:
        graph: Graph with node coordinates.
        diagram_name: Name of the diagram page.

    Returns:
        The XML document as a string.
    """
    mxfile = ET.Element(
        "mxfile",
        {
            "host": "qsysview",
            "modified": datetime.now(timezone.utc).isoformat(),
            "agent": "qsysview",
            "version": "20.0.0",
        },
    )
    diagram = ET.SubElement(mxfile, "diagram", {"id": "diag_1", "name": diagram_name})
    model = ET.SubElement(
        diagram,
        "mxGraphModel",
        {
            "dx": "1000", "dy": "1000", "grid": "1", "gridSize": "10", "guides": "1",
            "tooltips": "1", "connect": "1", "arrows": "1", "fold": "1", "page": "1",
            "pageScale": "1", "pageWidth": "827", "pageHeight": "1169",
        },
    )
    root = ET.SubElement(model, "root")
    ET.SubElement(root, "mxCell", {"id": "0"})
    ET.SubElement(root, "mxCell", {"id": "1", "parent": "0"})

    for node in graph.nodes.values():
        cell = ET.SubElement(
            root,
            "mxCell",
            {
                "id": node.id,
                "value": node.label or node.id,
                "style": NODE_STYLE,
                "vertex": "1",
                "parent": "1",
            },
        )
        _geometry(
            cell,
            (node.x or 0) + DIAGRAM_PADDING,
            (node.y or 0) + DIAGRAM_PADDING,
            node.width,
            node.height,
        )

        offsets = port_offsets(node)
        for port in node.ports:
            px, py = offsets[port.id]
            port_cell = ET.SubElement(
                root,
                "mxCell",
                {
                    "id": port.id,
                    "value": "",
                    "style": PORT_STYLE.format(color=port.color or DEFAULT_PORT_COLOR),
                    "vertex": "1",
                    "parent": node.id,
                },
            )
            _geometry(port_cell, px, py, port.width, port.height)

            west = effective_side(port) == PortSide.WEST
            label_cell = ET.SubElement(
                root,
                "mxCell",
                {
                    "id": f"label_{port.id}",
                    "value": port.label,
                    "style": LABEL_STYLE.format(align="left" if west else "right"),
                    "vertex": "1",
                    "parent": node.id,
                },
            )
            label_x = px + port.width + 8 if west else px - PORT_LABEL_WIDTH - 8
            _geometry(label_cell, label_x, py, PORT_LABEL_WIDTH, port.height)

    for edge in graph.edges:
        width = VECTOR_STROKE_WIDTH if edge.is_vector else SCALAR_STROKE_WIDTH
        cell = ET.SubElement(
            root,
            "mxCell",
            {
                "id": edge.id,
                "style": EDGE_STYLE.format(color=edge.color or DEFAULT_EDGE_COLOR, width=_fmt(width)),
                "edge": "1",
                "parent": "1",
                "source": edge.source_port_id,
                "target": edge.target_port_id,
            },
        )
        ET.SubElement(cell, "mxGeometry", {"relative": "1", "as": "geometry"})

    ET.indent(mxfile)
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(mxfile, encoding="unicode")


class DiagramExporter:
    """
    Exports laid-out diagrams to various file formats.

    Attributes:
        renderer: Renderer used for PNG export.
    """

    def __init__(self, renderer: Optional[PNGRenderer] = None):
        self.renderer = renderer or PNGRenderer()

    def save_json(self, graph: Graph, filename: str) -> None:
        """Save the layout-graph JSON document."""
        Path(filename).write_text(json.dumps(graph.to_dict(), indent=2), encoding="utf-8")

    def save_drawio(self, graph: Graph, filename: str) -> None:
        """Save a draw.io document (should end in .drawio)."""
        Path(filename).write_text(to_drawio(graph), encoding="utf-8")

    def save_png(self, graph: Graph, filename: str) -> None:
        """Render and save a PNG image."""
        self.renderer.render(graph, filename)
