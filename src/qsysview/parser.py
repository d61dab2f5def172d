"""
Parser module for system description documents.

Handles parsing of two input formats:

- Qsys / Platform Designer system descriptions (XML) with ``module``,
  ``parameter``, ``interface`` and ``connection`` elements.
- Pre-built layout-graph JSON documents, which map directly onto the
  node/port/edge model and bypass the graph builder.

Structurally invalid input raises ParseError with a single user-facing
message. Malformed records inside an otherwise valid document are tolerated:
a module without a name gets a fallback identifier, parameters missing a
name or value are skipped, and unusable connections are left for the
builder to drop.
"""

import json
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from .errors import ParseError
from .models import Graph, Parameter

logger = logging.getLogger(__name__)

FALLBACK_MODULE_NAME = "unknown"
FALLBACK_MODULE_KIND = "component"
FALLBACK_CONNECTION_KIND = "unknown"


@dataclass
class ModuleRecord:
    """A ``module`` element: one instantiated block."""

    name: str
    kind: str = FALLBACK_MODULE_KIND
    parameters: List[Parameter] = field(default_factory=list)


@dataclass
class InterfaceRecord:
    """
    An ``interface`` element: a named, typed connection point.

    Attributes:
        name: Exported interface name (may be empty).
        internal: ``"moduleName.interfaceName"`` reference to the real
            interface on a module.
        type: Declared interface type, e.g. ``clock`` or ``avalon``.
        direction: Declared direction, typically ``start`` or ``end``.
    """

    name: str
    internal: str
    type: str = ""
    direction: str = ""

    def split_internal(self) -> Optional[Tuple[str, str]]:
        return split_reference(self.internal)


@dataclass
class ConnectionRecord:
    """
    A ``connection`` element linking two interfaces.

    ``start_type``/``end_type`` are only set when the connection itself
    carries endpoint type hints; otherwise the builder falls back to the
    declared interface types.
    """

    start: str
    end: str
    kind: str = FALLBACK_CONNECTION_KIND
    start_type: Optional[str] = None
    end_type: Optional[str] = None


@dataclass
class SystemDescription:
    """Result of parsing a system description document."""

    modules: List[ModuleRecord] = field(default_factory=list)
    interfaces: List[InterfaceRecord] = field(default_factory=list)
    connections: List[ConnectionRecord] = field(default_factory=list)


def split_reference(reference: str) -> Optional[Tuple[str, str]]:
    """
    Split a ``"module.interface"`` reference.

    Only the first dot separates the module from the interface name.

    Returns:
        (module, interface) tuple, or None when the module segment is
        missing.
    """
    module, _, interface = (reference or "").strip().partition(".")
    if not module:
        return None
    return module, interface


class QsysParser:
    """Parses Qsys XML text into module, interface and connection records."""

    def parse(self, text: str) -> SystemDescription:
        """
        Parse a system description.

        Args:
            text: XML document text.

        Returns:
            SystemDescription with records in document order.

        Raises:
            ParseError: If the text is not well-formed XML.
        """
        try:
            root = ET.fromstring(text)
        except ET.ParseError as e:
            raise ParseError(f"Invalid system description: {e}") from e

        description = SystemDescription()

        for mod in root.iter("module"):
            module = self._parse_module(mod)
            description.modules.append(module)
            # Interfaces declared inside a module refer to that module
            for intf in mod.iter("interface"):
                record = self._parse_interface(intf, owner=module.name)
                if record is not None:
                    description.interfaces.append(record)

        nested = {id(intf) for mod in root.iter("module") for intf in mod.iter("interface")}
        for intf in root.iter("interface"):
            if id(intf) in nested:
                continue
            record = self._parse_interface(intf)
            if record is not None:
                description.interfaces.append(record)

        for conn in root.iter("connection"):
            description.connections.append(self._parse_connection(conn))

        logger.debug(
            "Parsed %d modules, %d interfaces, %d connections",
            len(description.modules),
            len(description.interfaces),
            len(description.connections),
        )
        return description

    def _parse_module(self, element: ET.Element) -> ModuleRecord:
        name = element.get("name") or FALLBACK_MODULE_NAME
        kind = element.get("kind") or FALLBACK_MODULE_KIND
        if name == FALLBACK_MODULE_NAME:
            logger.warning("Module without a name; using %r", name)

        parameters = []
        for param in element.iter("parameter"):
            p_name = param.get("name")
            p_value = param.get("value")
            if p_name and p_value:
                parameters.append(Parameter(name=p_name, value=p_value))

        return ModuleRecord(name=name, kind=kind, parameters=parameters)

    def _parse_interface(
        self, element: ET.Element, owner: Optional[str] = None
    ) -> Optional[InterfaceRecord]:
        name = element.get("name") or ""
        internal = element.get("internal") or ""
        if not internal and owner and name:
            internal = f"{owner}.{name}"
        if not internal:
            return None
        return InterfaceRecord(
            name=name,
            internal=internal,
            type=element.get("type") or "",
            direction=element.get("dir") or "",
        )

    def _parse_connection(self, element: ET.Element) -> ConnectionRecord:
        return ConnectionRecord(
            start=element.get("start") or "",
            end=element.get("end") or "",
            kind=element.get("kind") or FALLBACK_CONNECTION_KIND,
            start_type=element.get("startType"),
            end_type=element.get("endType"),
        )


def parse_qsys(text: str) -> SystemDescription:
    """Convenience function to parse a Qsys document."""
    return QsysParser().parse(text)


def parse_layout_json(text: str) -> Graph:
    """
    Parse a pre-built layout-graph JSON document.

    Raises:
        ParseError: If the text is not valid JSON or not a layout graph.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON: {e}") from e
    return Graph.from_dict(data)


def detect_format(text: str, filename: Optional[str] = None) -> str:
    """
    Decide whether a document is ``json`` or ``qsys``.

    The file suffix wins when a filename is given; otherwise the first
    non-blank character is inspected.
    """
    if filename:
        return "json" if Path(filename).suffix.lower() == ".json" else "qsys"
    stripped = text.lstrip()
    return "json" if stripped.startswith(("{", "[")) else "qsys"
