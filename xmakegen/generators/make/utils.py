from pathlib import Path
from typing import List

from xmakegen.details.source_tree import FileNode, FolderNode
from xmakegen.generators.utils import posix_relpath


def escape_make_path(path: str) -> str:
    return path.replace(" ", "\\ ")


def subdir_mk_path(folder: FolderNode) -> str:
    if not folder.relative_path:
        return "subdir.mk"
    return f"{folder.relative_path}/subdir.mk"


def source_path(file: FileNode, build_path: Path) -> str:
    return posix_relpath(file.absolute_path, build_path)


def dependency_path(file: FileNode) -> str:
    # Matches the `$(@:%.o=%.d)` form of the compiler deps option
    object_extension = file.tool.toolchain.object_extension
    return file.object_path[: -len(object_extension)] + "d"


# One value per line, backslash continued.
def make_list(variable: str, operator: str, values: List[str]) -> List[str]:
    if not values:
        return [f"{variable} {operator}"]
    lines = [f"{variable} {operator} \\"]
    for value in values[:-1]:
        lines.append(f"{escape_make_path(value)} \\")
    lines.append(escape_make_path(values[-1]))
    return lines
