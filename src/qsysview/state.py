"""
Application state and pure transitions.

All user-facing settings (filters, hidden nodes, port side overrides,
layout options, selection) live in one frozen AppState value. Every user
action is a pure function from the current state to a new one; the session
redraws from the resulting state. Transitions that change the topology or
the layout inputs require a relayout; selection changes do not.

``prepare_for_layout`` turns a state into the graph handed to the layout
collaborator: a deep copy of the canonical graph, filtered and resized.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, FrozenSet, Optional

from .config import (
    MAX_DISPLAY_PARAMS,
    NODE_BASE_HEIGHT,
    NODE_MIN_HEIGHT,
    NODE_WIDTH,
    PARAM_NODE_MIN_HEIGHT,
    PARAM_NODE_WIDTH,
    PARAM_ROW_HEIGHT,
    PORT_PITCH,
    RELAYOUT_BASE_HEIGHT,
)
from .models import Graph, LayoutOptions, PortConstraints, PortSide
from .type_resolver import ConnectionCategory

ALL_CATEGORIES = frozenset(c.value for c in ConnectionCategory)


class SideOverride(Enum):
    """User override of a port's side; AUTO lets the layout choose."""

    NORTH = "NORTH"
    SOUTH = "SOUTH"
    EAST = "EAST"
    WEST = "WEST"
    AUTO = "AUTO"


@dataclass(frozen=True)
class AppState:
    """
    Everything the diagram depends on besides the layout result.

    Attributes:
        graph: Canonical (never laid out) graph, or None when nothing is
            loaded. Treated as immutable.
        options: Options for the layout collaborator.
        visible_categories: Connection categories currently shown.
        show_parameters: Whether node parameter lists are displayed.
        hidden_node_ids: Nodes the user removed from the view.
        port_overrides: Port id to side override.
        selected_node_id: Highlighted node, if any.
        selected_edge_id: Highlighted edge, if any.
    """

    graph: Optional[Graph] = None
    options: LayoutOptions = field(default_factory=LayoutOptions)
    visible_categories: FrozenSet[str] = ALL_CATEGORIES
    show_parameters: bool = False
    hidden_node_ids: FrozenSet[str] = frozenset()
    port_overrides: Dict[str, SideOverride] = field(default_factory=dict)
    selected_node_id: Optional[str] = None
    selected_edge_id: Optional[str] = None


# ----------------------------------------------------------------------
# Transitions
# ----------------------------------------------------------------------


def load_graph(state: AppState, graph: Optional[Graph]) -> AppState:
    """Replace the canonical graph; hidden nodes, overrides and selection reset."""
    return replace(
        state,
        graph=graph,
        hidden_node_ids=frozenset(),
        port_overrides={},
        selected_node_id=None,
        selected_edge_id=None,
    )


def hide_node(state: AppState, node_id: str) -> AppState:
    selected = None if state.selected_node_id == node_id else state.selected_node_id
    return replace(
        state,
        hidden_node_ids=state.hidden_node_ids | {node_id},
        selected_node_id=selected,
    )


def restore_nodes(state: AppState) -> AppState:
    return replace(state, hidden_node_ids=frozenset())


def set_port_side(state: AppState, port_id: str, side: SideOverride) -> AppState:
    overrides = dict(state.port_overrides)
    overrides[port_id] = side
    return replace(state, port_overrides=overrides)


def set_options(state: AppState, **updates) -> AppState:
    """Update any of ``algorithm``, ``direction`` or ``routing``."""
    return replace(state, options=replace(state.options, **updates))


def toggle_category(state: AppState, category: str) -> AppState:
    if category in state.visible_categories:
        visible = state.visible_categories - {category}
    else:
        visible = state.visible_categories | {category}
    return replace(state, visible_categories=visible)


def toggle_parameters(state: AppState) -> AppState:
    return replace(state, show_parameters=not state.show_parameters)


def select_node(state: AppState, node_id: Optional[str]) -> AppState:
    return replace(state, selected_node_id=node_id)


def select_edge(state: AppState, edge_id: Optional[str]) -> AppState:
    return replace(state, selected_edge_id=edge_id)


RELAYOUT_TRANSITIONS = frozenset(
    {
        load_graph,
        hide_node,
        restore_nodes,
        set_port_side,
        set_options,
        toggle_category,
        toggle_parameters,
    }
)


def needs_relayout(transition) -> bool:
    """Whether applying ``transition`` invalidates the current layout."""
    return transition in RELAYOUT_TRANSITIONS


def move_node(graph: Graph, node_id: str, dx: float, dy: float) -> Graph:
    """
    Translate one node of a laid-out graph.

    Only the node origin moves; port coordinates are relative to it, so
    anchors and wires follow automatically when recomputed.

    Returns:
        A new graph; ``graph`` is left untouched.
    """
    moved = graph.deep_copy()
    node = moved.node(node_id)
    if node is not None:
        node.x = (node.x or 0) + dx
        node.y = (node.y or 0) + dy
    return moved


# ----------------------------------------------------------------------
# Relayout preparation
# ----------------------------------------------------------------------


def prepare_for_layout(state: AppState) -> Optional[Graph]:
    """
    Build the graph to hand to the layout collaborator.

    Steps: drop hidden nodes and every edge touching them; drop edges whose
    category is not visible; keep only ports that a remaining edge uses
    (unless no edge remains); apply port side overrides; resize nodes.

    Returns:
        A fresh graph without coordinates, or None if nothing is loaded.
    """
    if state.graph is None:
        return None

    graph = state.graph.deep_copy()
    owners = graph.port_owners()

    for node_id in state.hidden_node_ids:
        graph.nodes.pop(node_id, None)

    graph.edges = [
        edge
        for edge in graph.edges
        if edge.category in state.visible_categories
        and owners.get(edge.source_port_id) in graph.nodes
        and owners.get(edge.target_port_id) in graph.nodes
    ]

    active = set()
    for edge in graph.edges:
        active.add(edge.source_port_id)
        active.add(edge.target_port_id)

    for node in graph.nodes.values():
        node.x = node.y = None
        if active:
            node.ports = [port for port in node.ports if port.id in active]

        has_auto = False
        for port in node.ports:
            port.x = port.y = None
            override = state.port_overrides.get(port.id)
            if override == SideOverride.AUTO:
                has_auto = True
                port.side = None
            elif override is not None:
                port.side = PortSide(override.value)
        node.port_constraints = (
            PortConstraints.FREE if has_auto else PortConstraints.FIXED_SIDE
        )

        port_count = len(node.ports)
        if state.show_parameters and node.parameters:
            params = min(MAX_DISPLAY_PARAMS, len(node.parameters))
            node.height = max(
                PARAM_NODE_MIN_HEIGHT,
                port_count * PORT_PITCH + params * PARAM_ROW_HEIGHT + NODE_BASE_HEIGHT,
            )
            node.width = PARAM_NODE_WIDTH
        else:
            node.height = max(
                NODE_MIN_HEIGHT, port_count * PORT_PITCH + RELAYOUT_BASE_HEIGHT
            )
            node.width = NODE_WIDTH

    graph.width = graph.height = None
    return graph
