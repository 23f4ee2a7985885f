from argparse import ArgumentParser
from typing import List

from xmakegen import Config
from xmakegen.details.workspace import Workspace
from xmakegen.generators.eclipse_cdt import EclipseCdtExporter


def export_main(workspace: Workspace, config: Config, command_args: List[str]) -> int:
    parser = ArgumentParser(prog="xmakegen export")
    parser.parse_args(command_args)
    contexts = list(workspace.contexts(config))
    for path in EclipseCdtExporter(workspace.project, contexts)():
        print(f"Exported '{path.name}'")
    return 0
