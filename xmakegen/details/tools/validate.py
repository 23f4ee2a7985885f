import os
from argparse import ArgumentParser
from typing import List

from xmakegen import Config
from xmakegen.details.workspace import Workspace


def validate_main(workspace: Workspace, config: Config, command_args: List[str]) -> int:
    parser = ArgumentParser(prog="xmakegen validate")
    parser.parse_args(command_args)
    project = workspace.project
    print(f"{project.name} (schema {project.schema_version})")
    for context in workspace.contexts(config):
        configuration = context.configuration
        assert configuration.toolchain and configuration.tool
        print(f"  {configuration.name}")
        print(f"    toolchain : {configuration.toolchain.name}")
        print(f"    artefact  : {configuration.artefact}")
        print(f"    language  : {configuration.resolved_language}")
        print(f"    tool      : {configuration.tool.full_command_name}")
        for folder in configuration.source_folders:
            print(f"    source    : {os.path.relpath(folder, project.folder_absolute_path)}")
    return 0
