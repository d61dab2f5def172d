"""Command-line entry point: ``python -m qsysview design.qsys -o design.png``."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .export import DiagramExporter
from .models import LayoutAlgorithm, LayoutDirection, RoutingStyle
from .png_renderer import PNGRenderer
from .session import Session
from .state import hide_node, set_options, toggle_category, toggle_parameters
from .type_resolver import ConnectionCategory

logger = logging.getLogger("qsysview")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qsysview",
        description="Render a Qsys system description (or layout-graph JSON) as a diagram.",
    )
    parser.add_argument("input", type=Path, help="Path to a .qsys or .json file")
    parser.add_argument("-o", "--output", type=Path, help="Write a PNG image")
    parser.add_argument("--json", type=Path, help="Write the laid-out graph as JSON")
    parser.add_argument("--drawio", type=Path, help="Write a draw.io document")
    parser.add_argument(
        "--direction",
        choices=[d.value for d in LayoutDirection],
        default=LayoutDirection.RIGHT.value,
    )
    parser.add_argument(
        "--algorithm",
        choices=[a.value for a in LayoutAlgorithm],
        default=LayoutAlgorithm.LAYERED.value,
    )
    parser.add_argument(
        "--routing",
        choices=[r.value for r in RoutingStyle],
        default=RoutingStyle.ORTHOGONAL.value,
    )
    parser.add_argument("--show-parameters", action="store_true")
    parser.add_argument(
        "--hide-node", action="append", default=[], metavar="NODE", help="Hide a node (repeatable)"
    )
    parser.add_argument(
        "--hide-kind",
        action="append",
        default=[],
        choices=[c.value for c in ConnectionCategory],
        metavar="CATEGORY",
        help="Hide a connection category, e.g. Clock (repeatable)",
    )
    parser.add_argument("--scale", type=int, default=1, help="PNG resolution multiplier")
    parser.add_argument("-v", "--verbose", action="count", default=0)
    return parser


async def run(args: argparse.Namespace) -> int:
    session = Session()
    try:
        text = args.input.read_text(encoding="utf-8")
    except OSError as e:
        print(f"error: cannot read {args.input}: {e}", file=sys.stderr)
        return 1

    if not session.load_text(text, filename=args.input.name):
        print(f"error: {session.error}", file=sys.stderr)
        return 1

    state = set_options(
        session.state,
        direction=LayoutDirection(args.direction),
        algorithm=LayoutAlgorithm(args.algorithm),
        routing=RoutingStyle(args.routing),
    )
    for node_id in args.hide_node:
        state = hide_node(state, node_id)
    for category in args.hide_kind:
        state = toggle_category(state, category)
    if args.show_parameters:
        state = toggle_parameters(state)
    session.state = state

    graph = await session.rebuild()
    if graph is None:
        print(f"error: {session.error}", file=sys.stderr)
        return 1

    exporter = DiagramExporter(
        PNGRenderer(scale=args.scale, show_parameters=args.show_parameters)
    )
    output = args.output
    if output is None and args.json is None and args.drawio is None:
        output = args.input.with_suffix(".png")

    if output is not None:
        exporter.save_png(graph, str(output))
        logger.info("Wrote %s", output)
    if args.json is not None:
        exporter.save_json(graph, str(args.json))
        logger.info("Wrote %s", args.json)
    if args.drawio is not None:
        exporter.save_drawio(graph, str(args.drawio))
        logger.info("Wrote %s", args.drawio)

    for name in graph.duplicate_modules:
        print(f"warning: duplicate module name {name!r}", file=sys.stderr)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
