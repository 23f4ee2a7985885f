import logging
import subprocess
from argparse import ArgumentParser
from typing import List

from xmakegen import Config
from xmakegen.details.tools.generate import generate_all
from xmakegen.details.workspace import BuildContext, Workspace
from xmakegen.errors import MissingDefinitionError

logger = logging.getLogger(__name__)


def builder_command(workspace: Workspace, builder: str, goal: str) -> List[str]:
    goals = workspace.project.builders.get(builder)
    if goals is None:
        raise MissingDefinitionError(f"Builder '{builder}' not defined.")
    if goal not in goals:
        raise MissingDefinitionError(f"Builder '{builder}' has no '{goal}' goal.")
    return list(goals[goal])


def build_context(context: BuildContext, command: List[str]) -> int:
    print(f"Building '{context.configuration.name}' with '{' '.join(command)}'...")
    result = subprocess.run(command, cwd=context.build_path)
    if result.returncode != 0:
        print("Build failed")
    return result.returncode


def build_main(workspace: Workspace, config: Config, command_args: List[str]) -> int:
    parser = ArgumentParser(prog="xmakegen build")
    parser.add_argument(
        "--clean",
        action="store_true",
        help="Run the builder's clean goal instead of the default one",
    )
    args = parser.parse_args(command_args)
    # First, generate build files
    command = builder_command(workspace, config.builder, "clean" if args.clean else "")
    for context in generate_all(workspace, config):
        exit_code = build_context(context, command)
        if exit_code != 0:
            return exit_code
    return 0
