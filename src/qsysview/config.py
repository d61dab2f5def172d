"""
Geometry and styling constants for qsysview.

Values are in diagram units (pixels at scale 1). Builder, port layout,
router, layout engine and renderers all read from here so that the code
drawing a port and the code routing to it agree on the same numbers.
"""

# =============================================================================
# NODE AND PORT SIZING
# =============================================================================

# Default node size before the builder recomputes height
NODE_WIDTH = 360
NODE_MIN_HEIGHT = 150

# Height = max(NODE_MIN_HEIGHT, ports * PORT_PITCH + NODE_BASE_HEIGHT)
PORT_PITCH = 45
NODE_BASE_HEIGHT = 90

# Sizing applied when preparing a graph for relayout
RELAYOUT_BASE_HEIGHT = 75
PARAM_NODE_WIDTH = 450
PARAM_NODE_MIN_HEIGHT = 210
PARAM_ROW_HEIGHT = 21
MAX_DISPLAY_PARAMS = 15

# Synthetic boundary nodes
EXTERNAL_NODE_WIDTH = 240
EXTERNAL_PORT_PITCH = 30
EXTERNAL_BASE_HEIGHT = 80

PORT_SIZE = 22

# Margin subtracted from a side before distributing ports along it
PORT_SIDE_MARGIN = 20

# Inset of a port glyph from the node border
PORT_INSET = 2

# =============================================================================
# SCHEMATIC ROUTING
# =============================================================================

# Straight run out of a port before the first turn
STUB_LENGTH = 40

# Lateral lanes used to pull parallel nets apart: 0, 15, 30, 45, 0, ...
CHANNEL_SPACING = 15
CHANNEL_WRAP = 60

# Extra clearance when a net must loop around behind its source
LOOP_OFFSET = 60

# =============================================================================
# AUTOMATIC LAYOUT
# =============================================================================

NODE_SPACING = 260
LAYER_SPACING = 260

# =============================================================================
# COLORS
# =============================================================================

DEFAULT_PORT_COLOR = "#94a3b8"
DEFAULT_EDGE_COLOR = "#475569"
SELECTION_COLOR = "#4f46e5"
EDGE_SELECTION_COLOR = "#2563eb"
NODE_OUTLINE_COLOR = "#cbd5e1"
NODE_TITLE_COLOR = "#0f172a"
NODE_KIND_COLOR = "#94a3b8"
PARAM_TEXT_COLOR = "#64748b"
PORT_LABEL_COLOR = "#1e293b"
BACKGROUND_COLOR = "#ffffff"

# Stroke widths for vector (bus) and scalar nets
VECTOR_STROKE = 3.5
SCALAR_STROKE = 2

# Padding around the diagram when rendering or exporting
DIAGRAM_PADDING = 100
