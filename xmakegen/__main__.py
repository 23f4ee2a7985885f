from argparse import ArgumentParser
import json
import logging
import sys
from typing import List, Optional

from xmakegen import Config
from xmakegen.details.logger import TRACE, setup_logging
from xmakegen.details.tools.build import build_main
from xmakegen.details.tools.export import export_main
from xmakegen.details.tools.generate import generate_main
from xmakegen.details.tools.sources import sources_main
from xmakegen.details.tools.validate import validate_main
from xmakegen.details.workspace import Workspace
from xmakegen.errors import XmakeError

logger = logging.getLogger("xmakegen")

VERBOSITY_LEVELS = [logging.WARNING, logging.INFO, logging.DEBUG, TRACE]


def main(argv: Optional[List[str]] = None) -> int:
    COMMANDS = {
        "build": build_main,
        "export": export_main,
        "generate": generate_main,
        "sources": sources_main,
        "validate": validate_main,
    }
    # parse common arguments...
    parser = ArgumentParser(prog="xmakegen")
    parser.add_argument("command", choices=COMMANDS.keys())
    parser.add_argument(
        "--config",
        dest="configs",
        action="append",
        default=[],
        help="Build configuration to process, may be repeated (default: all)",
    )
    parser.add_argument("--project-root", type=str, default=".")
    parser.add_argument("--build-root", type=str, default="build")
    parser.add_argument("--builder", type=str, choices=["make", "ninja"], default="make")
    parser.add_argument("-v", "--verbose", action="count", default=0)
    parser.add_argument("--no-color", action="store_true")
    args, unknown_args = parser.parse_known_args(sys.argv[1:] if argv is None else argv)
    setup_logging(
        level=VERBOSITY_LEVELS[min(args.verbose + 1, len(VERBOSITY_LEVELS) - 1)],
        use_colors=False if args.no_color else None,
    )
    config = Config(
        project_root=args.project_root,
        build_root=args.build_root,
        builder=args.builder,
        build_configurations=args.configs,
    )
    try:
        workspace = Workspace(config.project_root)
        # Pass workspace, config, and unknown args to the command
        return COMMANDS[args.command](
            workspace=workspace,
            config=config,
            command_args=unknown_args,
        )
    except (XmakeError, json.JSONDecodeError) as error:
        logger.error("%s", error)
        return 1


if __name__ == "__main__":
    sys.exit(main())
