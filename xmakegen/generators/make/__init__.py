from pathlib import Path
from typing import List

from xmakegen.details.source_tree import FolderNode
from xmakegen.details.workspace import BuildContext
from xmakegen.generators.make.utils import (
    dependency_path,
    escape_make_path,
    make_list,
    source_path,
    subdir_mk_path,
)
from xmakegen.generators.utils import (
    GENERATED_HEADER,
    artefact_command,
    compile_command,
    write_if_changed,
)

DEPS_VARIABLE = "DEPS"


class MakeGenerator:
    def __init__(self, context: BuildContext):
        self.context = context
        self.configuration = context.configuration
        self.tree = context.tree
        self.build_path = context.build_path
        self.objects_variable = self.configuration.toolchain.make_objects_variable

    def __call__(self) -> List[Path]:
        written = [
            self._write("makefile", self._makefile()),
            self._write("objects.mk", self._objects_mk()),
            self._write("variables.mk", self._variables_mk()),
            self._write("sources.mk", self._sources_mk()),
        ]
        for folder in self.tree.source_folder_nodes:
            written.append(
                self._write(subdir_mk_path(folder), self._subdir_mk(folder))
            )
        return written

    def _write(self, relative_path: str, lines: List[str]) -> Path:
        path = self.build_path.joinpath(relative_path)
        write_if_changed(path, "\n".join([GENERATED_HEADER, ""] + lines) + "\n")
        return path

    def _makefile(self) -> List[str]:
        artefact = self.configuration.artefact
        tool = self.configuration.tool
        assert artefact and tool
        lines = [
            "-include variables.mk",
            "-include sources.mk",
            "-include objects.mk",
        ]
        lines += [
            f"-include {subdir_mk_path(folder)}"
            for folder in self.tree.source_folder_nodes
        ]
        lines += [
            "",
            "ifneq ($(MAKECMDGOALS),clean)",
            f"-include $({DEPS_VARIABLE})",
            "endif",
            "",
            "all: $(ARTEFACT)",
            "",
            f"$(ARTEFACT): $({self.objects_variable})",
            "\t@echo 'Building target: $@'",
            f"\t@echo 'Invoking: {tool.full_description}'",
            "\t" + artefact_command(tool, self.tree, f"$({self.objects_variable})"),
            "\t@echo 'Finished building target: $@'",
            "\t@echo ' '",
            "",
            "clean:",
            f"\t-$(RM) $({self.objects_variable}) $({DEPS_VARIABLE}) $(ARTEFACT)",
            "\t-@echo ' '",
            "",
            ".PHONY: all clean",
        ]
        return lines

    def _objects_mk(self) -> List[str]:
        return [
            f"{self.objects_variable} :=",
            f"{DEPS_VARIABLE} :=",
        ]

    def _variables_mk(self) -> List[str]:
        artefact = self.configuration.artefact
        assert artefact
        return [
            "RM := rm -f",
            f"ARTEFACT := {escape_make_path(artefact.full_name)}",
        ]

    def _sources_mk(self) -> List[str]:
        folders = [f.relative_path or "." for f in self.tree.source_folder_nodes]
        return make_list("SUBDIRS", ":=", folders)

    def _subdir_mk(self, folder: FolderNode) -> List[str]:
        files = list(folder.files.values())
        lines = make_list(self.objects_variable, "+=", [f.object_path for f in files])
        lines.append("")
        lines += make_list(DEPS_VARIABLE, "+=", [dependency_path(f) for f in files])
        for file in files:
            lines += [
                "",
                f"{escape_make_path(file.object_path)}: {escape_make_path(source_path(file, self.build_path))}",
                "\t@echo 'Building file: $<'",
                f"\t@echo 'Invoking: {file.tool.full_description}'",
                "\t" + compile_command(file),
                "\t@echo 'Finished building: $<'",
                "\t@echo ' '",
            ]
        return lines
