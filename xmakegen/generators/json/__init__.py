import json
from pathlib import Path
from typing import List

from xmakegen.details.workspace import BuildContext
from xmakegen.generators.utils import compile_command, posix_relpath, write_if_changed

COMPILATION_DATABASE_NAME = "compile_commands.json"


# Clang style compilation database, one entry per source file.
class CompilationDatabaseGenerator:
    def __init__(self, context: BuildContext):
        self.context = context
        self.tree = context.tree
        self.build_path = context.build_path

    def entries(self) -> List[dict]:
        entries = []
        for file in self.tree.file_nodes:
            source = posix_relpath(file.absolute_path, self.build_path)
            entries.append(
                {
                    "directory": self.build_path.as_posix(),
                    "command": compile_command(
                        file, deps="", output=file.object_path, inputs=source
                    ),
                    "file": Path(file.absolute_path).as_posix(),
                }
            )
        return entries

    def __call__(self) -> List[Path]:
        path = self.build_path.joinpath(COMPILATION_DATABASE_NAME)
        write_if_changed(path, json.dumps(self.entries(), indent=2) + "\n")
        return [path]
