from argparse import ArgumentParser
from pathlib import Path
from typing import Dict, List, Type, Union

from xmakegen import Config
from xmakegen.details.workspace import BuildContext, Workspace
from xmakegen.generators.json import CompilationDatabaseGenerator
from xmakegen.generators.make import MakeGenerator
from xmakegen.generators.ninja import NinjaGenerator
from xmakegen.errors import MissingDefinitionError

GENERATORS: Dict[str, Type[Union[MakeGenerator, NinjaGenerator]]] = {
    "make": MakeGenerator,
    "ninja": NinjaGenerator,
}


def generate_context(context: BuildContext, builder: str) -> List[Path]:
    if builder not in GENERATORS:
        raise MissingDefinitionError(f"Builder '{builder}' not supported.")
    written = GENERATORS[builder](context)()
    if context.configuration.should_export_compilation_database:
        written += CompilationDatabaseGenerator(context)()
    return written


def generate_all(workspace: Workspace, config: Config) -> List[BuildContext]:
    contexts = []
    for context in workspace.contexts(config):
        print(f"Generating '{config.builder}' files for '{context.configuration.name}' "
              f"in '{context.build_relative_path}'...")
        generate_context(context, config.builder)
        contexts.append(context)
    return contexts


def generate_main(workspace: Workspace, config: Config, command_args: List[str]) -> int:
    parser = ArgumentParser(prog="xmakegen generate")
    parser.parse_args(command_args)
    generate_all(workspace, config)
    return 0
