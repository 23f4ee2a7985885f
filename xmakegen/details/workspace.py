import logging
import os
from pathlib import Path
from typing import Iterator, List, Optional, Union

from xmakegen import Config
from xmakegen.details.caches import DirCache, IgnoreCache, JsonCache
from xmakegen.details.discoverer import Discoverer
from xmakegen.details.parser import Parser
from xmakegen.details.scopes import BuildConfiguration, Project
from xmakegen.details.source_tree import SourceTree
from xmakegen.details.toolchain import ToolchainCatalog
from xmakegen.errors import MissingDefinitionError

logger = logging.getLogger(__name__)


class BuildContext:
    """One prepared build configuration and its source tree."""

    def __init__(self, configuration: BuildConfiguration, tree: SourceTree):
        self.configuration = configuration
        self.tree = tree

    @property
    def project(self) -> Project:
        return self.configuration.project

    @property
    def build_path(self) -> Path:
        assert self.configuration.build_absolute_path
        return Path(self.configuration.build_absolute_path)

    # Project relative path of the build folder.
    @property
    def build_relative_path(self) -> str:
        return os.path.relpath(
            self.build_path, self.project.folder_absolute_path
        ).replace(os.sep, "/")


# Caches live as long as the workspace, i.e. one CLI invocation.
class Workspace:
    def __init__(self, project_root: Union[str, Path] = Path("."), parent: Optional[Project] = None):
        self.root = Path(project_root).resolve()
        self.json_cache = JsonCache()
        self.ignore_cache = IgnoreCache()
        self.dir_cache = DirCache()
        self.catalog = ToolchainCatalog()
        self.catalog.load_builtin()
        self.parser = Parser(
            self.catalog,
            self.json_cache,
            Discoverer(self.json_cache, self.dir_cache),
        )
        self.project = self.parser.parse(str(self.root), parent=parent)

    @property
    def configurations(self) -> List[BuildConfiguration]:
        return list(self.project.build_configurations.values())

    def select(self, names: Optional[List[str]] = None) -> List[BuildConfiguration]:
        if not names:
            return self.configurations
        selected = []
        for name in names:
            key = name.lower()
            if key not in self.project.build_configurations:
                raise MissingDefinitionError(f"Build configuration '{name}' not defined.")
            selected.append(self.project.build_configurations[key])
        return selected

    # Resolve one build configuration and scan its source folders.
    def configure(
        self, configuration: BuildConfiguration, build_root: Union[str, Path] = "build"
    ) -> BuildContext:
        self.parser.prepare(configuration, build_root)
        tree = SourceTree(configuration, self.ignore_cache, self.dir_cache)
        tree.create(configuration.source_folders)
        tree.add_nodes_properties(configuration)
        logger.debug(
            "Build configuration '%s': %d source folder(s), %d file(s).",
            configuration.name,
            len(tree.source_folder_nodes),
            len(tree.file_nodes),
        )
        return BuildContext(configuration, tree)

    def contexts(self, config: Config) -> Iterator[BuildContext]:
        for configuration in self.select(config.build_configurations):
            yield self.configure(configuration, config.build_root)
