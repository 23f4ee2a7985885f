from argparse import ArgumentParser
from typing import Dict, List

from xmakegen import Config
from xmakegen.details.source_tree import FolderNode
from xmakegen.details.workspace import Workspace


def _count_lines(file_path: str) -> int:
    with open(file_path, "r", encoding="utf-8", errors="ignore") as f:
        return sum(1 for _ in f)


def _folder_lines(folder: FolderNode, file_locs: Dict[str, int]) -> int:
    return sum(file_locs[f.absolute_path] for f in folder.walk_files())


def _print_folder(folder: FolderNode, file_locs: Dict[str, int], depth: int):
    indent = "  " * depth
    name = folder.relative_path or "."
    print(f"{indent}{name}/ : {_folder_lines(folder, file_locs):,} lines")
    for file in folder.files.values():
        print(
            f"{indent}  {file.name} : {file_locs[file.absolute_path]:,} lines"
            f" ({file.tool.name})"
        )
    for child in folder.folders.values():
        _print_folder(child, file_locs, depth + 1)


def sources_main(workspace: Workspace, config: Config, command_args: List[str]) -> int:
    parser = ArgumentParser(prog="xmakegen sources")
    parser.parse_args(command_args)
    for context in workspace.contexts(config):
        # Count all files once
        file_locs = {
            f.absolute_path: _count_lines(f.absolute_path) for f in context.tree.file_nodes
        }
        print(f"{context.configuration.name} : {sum(file_locs.values()):,} lines")
        _print_folder(context.tree, file_locs, 1)
    return 0
