from pathlib import Path
from typing import List

from xmakegen.details.toolchain import Tool
from xmakegen.details.workspace import BuildContext
from xmakegen.generators.utils import (
    GENERATED_HEADER,
    file_flags,
    posix_relpath,
    write_if_changed,
)

NINJA_FILE_NAME = "build.ninja"


def escape_ninja(value: str) -> str:
    return value.replace("$", "$$")


def escape_ninja_path(path: str) -> str:
    return escape_ninja(path).replace(" ", "$ ").replace(":", "$:")


def rule_name(tool: Tool) -> str:
    return tool.name.replace("+", "x").replace("-", "_")


class NinjaGenerator:
    def __init__(self, context: BuildContext):
        self.context = context
        self.configuration = context.configuration
        self.tree = context.tree
        self.build_path = context.build_path

    def __call__(self) -> List[Path]:
        path = self.build_path.joinpath(NINJA_FILE_NAME)
        write_if_changed(path, "\n".join([GENERATED_HEADER, ""] + self._lines()) + "\n")
        return [path]

    def _compile_rule(self, tool: Tool) -> List[str]:
        parts = [tool.full_command_name, tool.options, "$flags", "-MMD -MP -MF $out.d"]
        parts += [tool.output_flag, "$out", "$in"]
        return [
            f"rule {rule_name(tool)}",
            f"  command = {' '.join(p for p in parts if p)}",
            "  depfile = $out.d",
            "  deps = gcc",
            f"  description = {tool.full_description} $in",
            "",
        ]

    def _artefact_rule(self, tool: Tool) -> List[str]:
        parts = [tool.full_command_name, tool.options, "$flags", tool.output_flag, "$out", "$in"]
        return [
            f"rule {rule_name(tool)}",
            f"  command = {' '.join(p for p in parts if p)}",
            f"  description = {tool.full_description} $out",
            "",
        ]

    def _lines(self) -> List[str]:
        artefact = self.configuration.artefact
        tool = self.configuration.tool
        assert artefact and tool
        lines = ["ninja_required_version = 1.5", ""]
        for used in self.tree.used_tools:
            lines += self._compile_rule(used)
        lines += self._artefact_rule(tool)

        objects = []
        for file in self.tree.file_nodes:
            source = posix_relpath(file.absolute_path, self.build_path)
            objects.append(escape_ninja_path(file.object_path))
            lines.append(
                f"build {escape_ninja_path(file.object_path)}: "
                f"{rule_name(file.tool)} {escape_ninja_path(source)}"
            )
            lines.append(f"  flags = {escape_ninja(' '.join(file_flags(file)))}")
        lines.append("")

        root_flags = self.tree.options.tools[tool.name].flags
        target = escape_ninja_path(artefact.full_name)
        lines.append(f"build {target}: {rule_name(tool)} {' '.join(objects)}")
        lines.append(f"  flags = {escape_ninja(' '.join(root_flags))}")
        lines += ["", f"default {target}"]
        return lines
