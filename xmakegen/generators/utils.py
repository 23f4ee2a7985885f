import logging
import os
from pathlib import Path
from typing import List, Optional, Union

from xmakegen.details.source_tree import FileNode, FolderNode
from xmakegen.details.toolchain import Tool

logger = logging.getLogger(__name__)

GENERATED_HEADER = "# Automatically-generated file. Do not edit!"


def write_if_changed(path: Path, content: Union[str, bytes]) -> bool:
    data = content.encode("utf-8") if isinstance(content, str) else content
    # Check if previous version matches and early exit to avoid bumping timestamps...
    try:
        with path.open("rb") as f:
            if f.read() == data:
                logger.debug("'%s' unchanged.", path)
                return False
    except FileNotFoundError:
        pass
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as f:
        f.write(data)
    logger.info("Writing '%s'...", path)
    return True


def posix_relpath(path: Union[str, Path], start: Union[str, Path]) -> str:
    return os.path.relpath(path, start).replace(os.sep, "/")


def quoted(value: str) -> str:
    return f'"{value}"'


# Preprocessor and include options of a node, build folder relative paths.
def preprocessor_flags(node_options) -> List[str]:
    flags = [f"-D{s}" for s in node_options.defined_symbols]
    flags += [f"-U{s}" for s in node_options.undefined_symbols]
    flags += [f"-include {quoted(f)}" for f in node_options.include_files]
    flags += [f"-isystem {quoted(f)}" for f in node_options.include_system_folders]
    flags += [f"-I{quoted(f)}" for f in node_options.include_folders]
    return flags


def file_flags(file_node: FileNode) -> List[str]:
    node_options = file_node.tool_options
    return node_options.flags + preprocessor_flags(node_options)


def compile_command(
    file_node: FileNode,
    *,
    deps: Optional[str] = None,
    output: Optional[str] = None,
    inputs: Optional[str] = None,
) -> str:
    tool = file_node.tool
    parts = [tool.full_command_name, tool.options]
    parts += file_flags(file_node)
    parts.append(tool.deps if deps is None else deps)
    parts += [tool.output_flag, tool.output if output is None else output]
    parts.append(tool.inputs if inputs is None else inputs)
    return " ".join(p for p in parts if p)


# Linker or archiver invocation, flags from the tree root.
def artefact_command(tool: Tool, root: FolderNode, objects: str, output: Optional[str] = None) -> str:
    node_options = root.options.tools[tool.name]
    parts = [tool.full_command_name, tool.options]
    parts += node_options.flags
    parts += [tool.output_flag, tool.output if output is None else output, objects]
    return " ".join(p for p in parts if p)
