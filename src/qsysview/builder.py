"""
Graph construction from parsed system descriptions.

Turns module, interface and connection records into the node/port/edge
graph:

1. Modules become nodes (a repeated name replaces the earlier node).
2. Connections, in document order, become edges between lazily created
   ports; the source port goes on the EAST side, the target on the WEST.
3. Declared interfaces get a port if no connection created one.
4. Interfaces no connection references are gathered onto synthetic
   boundary nodes (``__external_input__`` / ``__external_output__``).
5. Real nodes are resized so the port layout has room for every port.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Set

from .config import (
    EXTERNAL_BASE_HEIGHT,
    EXTERNAL_NODE_WIDTH,
    EXTERNAL_PORT_PITCH,
    NODE_BASE_HEIGHT,
    NODE_MIN_HEIGHT,
    NODE_WIDTH,
    PORT_PITCH,
)
from .models import (
    EXTERNAL_INPUT_ID,
    EXTERNAL_OUTPUT_ID,
    Edge,
    Graph,
    Node,
    Port,
    PortSide,
)
from .parser import (
    ConnectionRecord,
    InterfaceRecord,
    SystemDescription,
    parse_qsys,
    split_reference,
)
from .type_resolver import kind_color, normalize, resolve_connection

logger = logging.getLogger(__name__)

EXTERNAL_EDGE_LABEL = "external"
START_DIRECTION = "start"


@dataclass
class UnconnectedInterface:
    """A declared interface that no connection references."""

    port_id: str
    name: str
    type: str
    direction: str

    @property
    def is_output(self) -> bool:
        return self.direction == START_DIRECTION


def node_height(port_count: int) -> int:
    """Height of a real node holding ``port_count`` ports."""
    return max(NODE_MIN_HEIGHT, port_count * PORT_PITCH + NODE_BASE_HEIGHT)


def external_node_height(port_count: int) -> int:
    """Height of a synthetic boundary node holding ``port_count`` ports."""
    return max(NODE_MIN_HEIGHT, port_count * EXTERNAL_PORT_PITCH + EXTERNAL_BASE_HEIGHT)


class GraphBuilder:
    """
    Builds a Graph from a SystemDescription.

    A builder instance is single-use per call to ``build``; state is reset
    at the start of every build.
    """

    def __init__(self):
        self.graph: Graph = Graph()
        self.interface_types: Dict[str, str] = {}
        self.connected: Set[str] = set()

    def build(self, description: SystemDescription) -> Graph:
        """
        Build the diagram graph.

        Args:
            description: Parsed modules, interfaces and connections.

        Returns:
            Graph in which every edge references existing ports.
        """
        self.graph = Graph()
        self.connected = set()
        self.interface_types = self._collect_interface_types(description.interfaces)

        self._add_modules(description)
        for index, connection in enumerate(description.connections):
            self._add_connection(index, connection)
        unconnected = self._add_interfaces(description.interfaces)
        self._add_external_nodes(unconnected)

        for node in self.graph.nodes.values():
            if not node.is_external:
                node.height = node_height(len(node.ports))

        logger.info(
            "Built graph: %d nodes, %d edges, %d unconnected interfaces",
            len(self.graph.nodes),
            len(self.graph.edges),
            len(unconnected),
        )
        return self.graph

    def _collect_interface_types(
        self, interfaces: List[InterfaceRecord]
    ) -> Dict[str, str]:
        types: Dict[str, str] = {}
        for intf in interfaces:
            ref = intf.split_internal()
            if ref is not None and intf.type:
                types[_port_id(*ref)] = intf.type
        return types

    def _add_modules(self, description: SystemDescription) -> None:
        for module in description.modules:
            if module.name in self.graph.nodes:
                # Last declaration wins; reported, not fixed
                logger.warning(
                    "Duplicate module name %r: later declaration replaces the earlier one",
                    module.name,
                )
                if module.name not in self.graph.duplicate_modules:
                    self.graph.duplicate_modules.append(module.name)
            self.graph.add_node(
                Node(
                    id=module.name,
                    label=module.name,
                    kind=module.kind,
                    parameters=list(module.parameters),
                    width=NODE_WIDTH,
                    height=NODE_MIN_HEIGHT,
                )
            )

    def _add_connection(self, index: int, connection: ConnectionRecord) -> None:
        start = split_reference(connection.start)
        end = split_reference(connection.end)
        if start is None or end is None:
            logger.debug("Dropping connection %d: unparsable endpoint", index)
            return

        source_node = self.graph.node(start[0])
        target_node = self.graph.node(end[0])
        if source_node is None or target_node is None:
            logger.debug("Dropping connection %d: unknown module", index)
            return

        source_id = _port_id(*start)
        target_id = _port_id(*end)

        start_type = connection.start_type or self.interface_types.get(source_id)
        end_type = connection.end_type or self.interface_types.get(target_id)
        resolved = resolve_connection(connection.kind, start_type, end_type)

        source_node.add_port(
            Port(
                id=source_id,
                node_id=source_node.id,
                side=PortSide.EAST,
                label=start[1],
                color=resolved.color,
                protocol_kind=resolved.protocol_type,
            )
        )
        target_node.add_port(
            Port(
                id=target_id,
                node_id=target_node.id,
                side=PortSide.WEST,
                label=end[1],
                color=resolved.color,
                protocol_kind=resolved.protocol_type,
            )
        )
        self.connected.add(source_id)
        self.connected.add(target_id)

        self.graph.edges.append(
            Edge(
                id=f"edge_{index}",
                source_port_id=source_id,
                target_port_id=target_id,
                protocol_type=resolved.protocol_type,
                color=resolved.color,
                is_vector=resolved.is_vector,
                label=normalize(connection.kind),
                category=resolved.category.value,
            )
        )

    def _add_interfaces(
        self, interfaces: List[InterfaceRecord]
    ) -> List[UnconnectedInterface]:
        unconnected: List[UnconnectedInterface] = []
        seen: Set[str] = set()

        for intf in interfaces:
            ref = intf.split_internal()
            if ref is None:
                continue
            node = self.graph.node(ref[0])
            if node is None:
                logger.debug("Interface %r refers to unknown module", intf.internal)
                continue

            port_id = _port_id(*ref)
            if node.get_port(port_id) is None:
                intf_type = normalize(intf.type)
                node.add_port(
                    Port(
                        id=port_id,
                        node_id=node.id,
                        side=PortSide.EAST
                        if intf.direction == START_DIRECTION
                        else PortSide.WEST,
                        label=ref[1],
                        color=kind_color(intf_type),
                        protocol_kind=intf_type,
                    )
                )

            if port_id not in self.connected and port_id not in seen:
                seen.add(port_id)
                unconnected.append(
                    UnconnectedInterface(
                        port_id=port_id,
                        name=intf.name or ref[1],
                        type=normalize(intf.type),
                        direction=intf.direction,
                    )
                )

        return unconnected

    def _add_external_nodes(self, unconnected: List[UnconnectedInterface]) -> None:
        inputs = [u for u in unconnected if not u.is_output]
        outputs = [u for u in unconnected if u.is_output]

        if inputs:
            self._add_external_node(EXTERNAL_INPUT_ID, "External Inputs", inputs, PortSide.EAST)
        if outputs:
            self._add_external_node(EXTERNAL_OUTPUT_ID, "External Outputs", outputs, PortSide.WEST)

    def _add_external_node(
        self,
        node_id: str,
        label: str,
        members: List[UnconnectedInterface],
        side: PortSide,
    ) -> None:
        node = self.graph.add_node(
            Node(
                id=node_id,
                label=label,
                kind="external",
                width=EXTERNAL_NODE_WIDTH,
                height=external_node_height(len(members)),
                is_external=True,
            )
        )

        for member in members:
            resolved = resolve_connection(member.type)
            port = node.add_port(
                Port(
                    id=_port_id(node_id, member.port_id),
                    node_id=node_id,
                    side=side,
                    label=member.name,
                    color=resolved.color,
                    protocol_kind=resolved.protocol_type,
                )
            )
            if side == PortSide.EAST:
                source_id, target_id = port.id, member.port_id
            else:
                source_id, target_id = member.port_id, port.id

            self.graph.edges.append(
                Edge(
                    id=f"external_{len(self.graph.edges)}",
                    source_port_id=source_id,
                    target_port_id=target_id,
                    protocol_type=resolved.protocol_type,
                    color=resolved.color,
                    is_vector=resolved.is_vector,
                    label=EXTERNAL_EDGE_LABEL,
                    category=resolved.category.value,
                )
            )


def _port_id(module: str, interface: str) -> str:
    return f"{module}.{interface}"


def build_graph(description: SystemDescription) -> Graph:
    """Convenience function to build a graph from parsed records."""
    return GraphBuilder().build(description)


def convert_qsys(text: str) -> Graph:
    """Parse a Qsys document and build its diagram graph."""
    return build_graph(parse_qsys(text))
