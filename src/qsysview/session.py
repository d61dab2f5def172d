"""
Interactive session: state, rebuilds and the host message contract.

A Session owns the current AppState, the most recent laid-out graph and the
user-visible error message. It is single-threaded; the only suspension
point is the await on the layout collaborator inside ``rebuild``.

Each rebuild takes a generation number. When a rebuild finishes after a
newer one was started, its result is discarded, so a slow stale layout can
never overwrite a fresher one.

Failures never escape to the caller: parse and layout errors become
``session.error`` and the previously displayed graph stays in place.
"""

import logging
from typing import Any, Dict, Optional

from .builder import build_graph
from .errors import QsysViewError
from .layout import LayoutEngine, NetworkXLayout
from .models import Graph
from .parser import detect_format, parse_layout_json, parse_qsys
from .routing import SchematicRouter, WireRoute
from .state import AppState, load_graph, move_node, needs_relayout, prepare_for_layout

logger = logging.getLogger(__name__)

READY_MESSAGE = {"type": "ready"}


def parse_document(text: str, filename: Optional[str] = None) -> Graph:
    """
    Parse a source document into a canonical graph.

    Qsys documents go through the graph builder; layout-graph JSON maps
    onto the model directly.

    Raises:
        ParseError: If the document is structurally invalid.
    """
    if detect_format(text, filename) == "json":
        return parse_layout_json(text)
    return build_graph(parse_qsys(text))


class Session:
    """
    Holds one diagram and drives its rebuilds.

    Attributes:
        engine: Layout collaborator awaited on every rebuild.
        router: Router used to compute wires for the displayed graph.
        state: Current application state.
        displayed: Most recent successfully laid-out graph.
        error: User-visible message from the last failure, if any.
        loading: True while a rebuild is awaiting the layout engine.
        embedded: True once a host ``update`` message has been received.
    """

    def __init__(
        self,
        engine: Optional[LayoutEngine] = None,
        router: Optional[SchematicRouter] = None,
    ):
        self.engine = engine or NetworkXLayout()
        self.router = router or SchematicRouter()
        self.state = AppState()
        self.displayed: Optional[Graph] = None
        self.error: Optional[str] = None
        self.loading = False
        self.embedded = False
        self._generation = 0

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_text(
        self, text: str, filename: Optional[str] = None, error_prefix: str = "Error parsing file"
    ) -> bool:
        """
        Parse a document and make it the canonical graph.

        Returns:
            True on success. On failure ``error`` is set and the state is
            left unchanged.
        """
        try:
            graph = parse_document(text, filename)
        except QsysViewError as e:
            logger.warning("Parse failed: %s", e)
            self.error = f"{error_prefix}: {e}"
            return False

        self.state = load_graph(self.state, graph)
        self.error = None
        return True

    async def open_text(self, text: str, filename: Optional[str] = None) -> Optional[Graph]:
        """Load a document and lay it out."""
        if not self.load_text(text, filename):
            return None
        return await self.rebuild()

    def clear(self) -> None:
        self.state = load_graph(self.state, None)
        self.displayed = None
        self.error = None
        self.loading = False
        # Invalidate any rebuild still in flight
        self._generation += 1

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def apply(self, transition, *args, **kwargs) -> Optional[Graph]:
        """
        Apply a state transition and rebuild if it affects the layout.

        Args:
            transition: A transition function from ``qsysview.state``.
            *args: Extra positional arguments for the transition.
            **kwargs: Extra keyword arguments for the transition.

        Returns:
            The displayed graph after the transition.
        """
        self.state = transition(self.state, *args, **kwargs)
        if needs_relayout(transition) and self.state.graph is not None:
            await self.rebuild()
        return self.displayed

    def move_node(self, node_id: str, dx: float, dy: float) -> None:
        """Drag a node of the displayed graph; no relayout."""
        if self.displayed is not None:
            self.displayed = move_node(self.displayed, node_id, dx, dy)

    async def rebuild(self) -> Optional[Graph]:
        """
        Lay out the current state and display the result.

        Returns:
            The new displayed graph, or None if the layout failed or was
            superseded by a newer rebuild.
        """
        self._generation += 1
        generation = self._generation

        prepared = prepare_for_layout(self.state)
        if prepared is None:
            self.displayed = None
            self.loading = False
            return None

        self.loading = True
        self.error = None
        try:
            result = await self.engine.layout(prepared, self.state.options)
        except Exception as e:
            if generation == self._generation:
                logger.error("Layout failed: %s", e)
                self.error = f"Layout failed: {e}"
                self.loading = False
            return None

        if generation != self._generation:
            logger.info(
                "Discarding stale layout (generation %d, current %d)",
                generation,
                self._generation,
            )
            return None

        self.loading = False
        self.displayed = result
        return result

    # ------------------------------------------------------------------
    # Rendering support
    # ------------------------------------------------------------------

    def routes(self) -> Dict[str, WireRoute]:
        """Wires for the displayed graph, recomputed from current coordinates."""
        if self.displayed is None:
            return {}
        return self.router.route_graph(self.displayed)

    # ------------------------------------------------------------------
    # Host messages
    # ------------------------------------------------------------------

    def ready_message(self) -> Dict[str, Any]:
        """Message sent to the host once the session can accept documents."""
        return dict(READY_MESSAGE)

    async def handle_message(self, message: Dict[str, Any]) -> None:
        """
        Handle a message from the embedding host.

        ``{"type": "update", "text": ...}`` replaces the document; blank text
        clears the diagram. Other message types are ignored.
        """
        if not isinstance(message, dict) or message.get("type") != "update":
            return

        self.embedded = True
        text = message.get("text") or ""
        if not text.strip():
            self.clear()
            return

        if self.load_text(text, error_prefix="Failed to parse document"):
            await self.rebuild()
