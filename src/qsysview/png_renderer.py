"""
PNG Renderer module for system diagrams.

Renders a laid-out graph as a PNG image: node boxes with title, kind and
optional parameter list, port glyphs with labels, and schematic wires with
arrowheads and junction dots.

Port glyphs are drawn at the anchors computed by ``port_layout`` and wires
come from ``routing``, which starts and ends at those same anchors.
"""

import math
import os
from typing import Dict, List, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from .config import (
    BACKGROUND_COLOR,
    DEFAULT_EDGE_COLOR,
    DEFAULT_PORT_COLOR,
    DIAGRAM_PADDING,
    EDGE_SELECTION_COLOR,
    MAX_DISPLAY_PARAMS,
    NODE_KIND_COLOR,
    NODE_OUTLINE_COLOR,
    NODE_TITLE_COLOR,
    PARAM_TEXT_COLOR,
    PORT_LABEL_COLOR,
    SCALAR_STROKE,
    SELECTION_COLOR,
    VECTOR_STROKE,
)
from .models import Graph, Node, PortAnchor, PortSide
from .port_layout import graph_port_anchors, port_box
from .routing import SchematicRouter, WireRoute, compress_points

Point = Tuple[float, float]

FONT_OPTIONS = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
    "/usr/share/fonts/truetype/freefont/FreeSans.ttf",
    "DejaVuSans.ttf",
    "Arial.ttf",
]

# Parameters are only listed on nodes tall enough to hold them
MIN_HEIGHT_FOR_PARAMS = 180


class PNGRenderer:
    """Renders laid-out diagrams as PNG images."""

    def __init__(
        self,
        scale: int = 1,
        padding: int = DIAGRAM_PADDING,
        font_path: Optional[str] = None,
        title_font_size: int = 18,
        label_font_size: int = 13,
        show_parameters: bool = False,
        selected_node_id: Optional[str] = None,
        selected_edge_id: Optional[str] = None,
        router: Optional[SchematicRouter] = None,
    ):
        self.scale = scale
        self.padding = padding
        self.font_path = font_path
        self.title_font_size = title_font_size
        self.label_font_size = label_font_size
        self.show_parameters = show_parameters
        self.selected_node_id = selected_node_id
        self.selected_edge_id = selected_edge_id
        self.router = router or SchematicRouter()

        self.fonts: Dict[int, ImageFont.ImageFont] = {}
        self.origin: Point = (0, 0)

    def _get_font(self, size: int):
        """Get a font of the given (unscaled) size."""
        size = size * self.scale
        if size in self.fonts:
            return self.fonts[size]

        candidates = [self.font_path] if self.font_path else []
        candidates.extend(FONT_OPTIONS)
        for path in candidates:
            if os.path.isabs(path) and not os.path.exists(path):
                continue
            try:
                self.fonts[size] = ImageFont.truetype(path, size)
                return self.fonts[size]
            except OSError:
                continue

        try:
            self.fonts[size] = ImageFont.load_default(size=size)
        except TypeError:
            # Older Pillow versions don't support size parameter
            self.fonts[size] = ImageFont.load_default()
        return self.fonts[size]

    # ------------------------------------------------------------------
    # Coordinates
    # ------------------------------------------------------------------

    def _px(self, point: Point) -> Tuple[int, int]:
        """Convert a diagram point to image pixels."""
        x = (point[0] - self.origin[0] + self.padding) * self.scale
        y = (point[1] - self.origin[1] + self.padding) * self.scale
        return (int(round(x)), int(round(y)))

    def _bounds(self, graph: Graph, routes: Dict[str, WireRoute]) -> Tuple[float, float, float, float]:
        xs: List[float] = []
        ys: List[float] = []
        for node in graph.nodes.values():
            x, y = node.x or 0, node.y or 0
            xs.extend((x, x + node.width))
            ys.extend((y, y + node.height))
        for route in routes.values():
            for px, py in route.points:
                xs.append(px)
                ys.append(py)
        return min(xs), min(ys), max(xs), max(ys)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(
        self,
        graph: Graph,
        output_path: str = "diagram.png",
        routes: Optional[Dict[str, WireRoute]] = None,
    ) -> str:
        """
        Render a laid-out graph to a PNG file.

        Args:
            graph: Graph with node coordinates.
            output_path: Path to save the PNG file.
            routes: Precomputed wires; routed from the graph when omitted.

        Returns:
            Path to the saved PNG file.
        """
        if not graph.nodes:
            img = Image.new("RGB", (200, 100), BACKGROUND_COLOR)
            img.save(output_path)
            return output_path

        anchors = graph_port_anchors(graph)
        if routes is None:
            routes = self.router.route_graph(graph, anchors)

        min_x, min_y, max_x, max_y = self._bounds(graph, routes)
        self.origin = (min_x, min_y)
        width = int(math.ceil((max_x - min_x + 2 * self.padding) * self.scale))
        height = int(math.ceil((max_y - min_y + 2 * self.padding) * self.scale))

        img = Image.new("RGB", (width, height), BACKGROUND_COLOR)
        draw = ImageDraw.Draw(img)

        for node in graph.nodes.values():
            self._draw_node(draw, node, anchors)

        for edge in graph.edges:
            route = routes.get(edge.id)
            if route is None:
                continue
            self._draw_wire(
                draw,
                route,
                edge.color or DEFAULT_EDGE_COLOR,
                edge.is_vector,
                selected=edge.id == self.selected_edge_id,
            )

        img.save(output_path, "PNG")
        return output_path

    def _draw_node(self, draw: ImageDraw.ImageDraw, node: Node, anchors: Dict[str, PortAnchor]):
        """Draw a node box, its labels and its ports."""
        x, y = node.x or 0, node.y or 0
        selected = node.id == self.selected_node_id
        x0, y0 = self._px((x, y))
        x1, y1 = self._px((x + node.width, y + node.height))

        draw.rounded_rectangle(
            [x0, y0, x1, y1],
            radius=12 * self.scale,
            fill="#ffffff",
            outline=SELECTION_COLOR if selected else NODE_OUTLINE_COLOR,
            width=(4 if selected else 3) * self.scale,
        )

        center_x = x + node.width / 2
        self._draw_text(
            draw,
            (center_x, y + 28),
            node.label or node.id,
            self._get_font(self.title_font_size),
            NODE_TITLE_COLOR,
            align="center",
        )
        if node.kind:
            self._draw_text(
                draw,
                (center_x, y + 46),
                node.kind.upper(),
                self._get_font(self.label_font_size - 1),
                NODE_KIND_COLOR,
                align="center",
            )

        if self.show_parameters and node.parameters and node.height > MIN_HEIGHT_FOR_PARAMS:
            font = self._get_font(self.label_font_size - 1)
            for i, param in enumerate(node.parameters[:MAX_DISPLAY_PARAMS]):
                self._draw_text(
                    draw,
                    (x + 22, y + 75 + i * 18),
                    f"{param.name}: {param.value}",
                    font,
                    PARAM_TEXT_COLOR,
                    align="left",
                )

        for port in node.ports:
            anchor = anchors.get(port.id)
            if anchor is not None:
                self._draw_port(draw, anchor, port.label or port.id, port.color)

    def _draw_port(self, draw: ImageDraw.ImageDraw, anchor: PortAnchor, label: str, color: str):
        """Draw a port glyph and its label next to it, inside the node."""
        bx0, by0, bx1, by1 = port_box(anchor)
        draw.rounded_rectangle(
            [self._px((bx0, by0)), self._px((bx1, by1))],
            radius=2 * self.scale,
            fill=color or DEFAULT_PORT_COLOR,
            outline="#ffffff",
            width=2 * self.scale,
        )

        font = self._get_font(self.label_font_size)
        if anchor.side == PortSide.WEST:
            self._draw_text(draw, (bx1 + 6, anchor.y), label, font, PORT_LABEL_COLOR, "left")
        elif anchor.side == PortSide.EAST:
            self._draw_text(draw, (bx0 - 6, anchor.y), label, font, PORT_LABEL_COLOR, "right")
        elif anchor.side == PortSide.NORTH:
            self._draw_text(draw, (anchor.x, by1 + 14), label, font, PORT_LABEL_COLOR, "center")
        else:
            self._draw_text(draw, (anchor.x, by0 - 6), label, font, PORT_LABEL_COLOR, "center")

    def _draw_text(self, draw, point: Point, text: str, font, fill: str, align: str = "left"):
        """Draw text vertically centered on ``point``, aligned horizontally."""
        px, py = self._px(point)
        bbox = draw.textbbox((0, 0), text, font=font)
        text_w = bbox[2] - bbox[0]
        text_h = bbox[3] - bbox[1]
        if align == "center":
            px -= text_w // 2
        elif align == "right":
            px -= text_w
        draw.text((px, py - text_h // 2 - bbox[1]), text, fill=fill, font=font)

    def _draw_wire(
        self,
        draw: ImageDraw.ImageDraw,
        route: WireRoute,
        color: str,
        is_vector: bool,
        selected: bool = False,
    ):
        """Draw a routed wire with arrowhead and junction dots."""
        points = [self._px(p) for p in compress_points(route.points)]
        if len(points) < 2:
            return

        stroke = VECTOR_STROKE if is_vector else SCALAR_STROKE
        line_width = max(1, int(round(stroke * self.scale)))
        draw.line(points, fill=color, width=line_width, joint="curve")
        if selected:
            draw.line(
                points,
                fill=EDGE_SELECTION_COLOR,
                width=max(1, int(round((stroke + 1) * self.scale))),
                joint="curve",
            )

        self._draw_arrowhead(draw, points[-2], points[-1], color)

        radius = (5 if is_vector else 4) * self.scale
        for junction in route.junctions:
            jx, jy = self._px(junction)
            draw.ellipse([jx - radius, jy - radius, jx + radius, jy + radius], fill=color)

    def _draw_arrowhead(
        self,
        draw: ImageDraw.ImageDraw,
        from_point: Tuple[int, int],
        to_point: Tuple[int, int],
        color: str,
    ):
        """Draw an arrowhead at the end of a line."""
        x1, y1 = from_point
        x2, y2 = to_point

        arrow_size = 8 * self.scale
        angle = math.atan2(y2 - y1, x2 - x1)

        angle1 = angle + math.pi * 0.8
        angle2 = angle - math.pi * 0.8

        ax1 = x2 + arrow_size * math.cos(angle1)
        ay1 = y2 + arrow_size * math.sin(angle1)
        ax2 = x2 + arrow_size * math.cos(angle2)
        ay2 = y2 + arrow_size * math.sin(angle2)

        draw.polygon([(x2, y2), (ax1, ay1), (ax2, ay2)], fill=color)


def render_to_png(graph: Graph, output_path: str = "diagram.png", **kwargs) -> str:
    """
    Convenience function to render a laid-out graph to PNG.

    Args:
        graph: Graph with node coordinates.
        output_path: Path to save the PNG file.
        **kwargs: Additional parameters for PNGRenderer.

    Returns:
        Path to the saved PNG file.
    """
    renderer = PNGRenderer(**kwargs)
    return renderer.render(graph, output_path)
