"""
The filesystem tree of one build configuration's source folders.

Every node carries per-tool add/remove lists copied from the resolved
folders and files of the configuration. Effective values are computed on
demand and cached: a node that adds and removes nothing for an attribute
shares its parent's result, any other node starts over from the adds of the
whole ancestor chain minus the removes of the whole ancestor chain.

All properties must be attached (`SourceTree.add_nodes_properties()`) before
the first effective value is read.
"""

import logging
import os
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from xmakegen.details.caches import DirCache, IgnoreCache
from xmakegen.details.options import (
    INCLUDES_SUFFIXES,
    PREFIXES,
    SYMBOLS_SUFFIXES,
    CommonOptions,
    ToolchainOptions,
    ToolOptions,
    collapse_add_remove,
)
from xmakegen.details.parser import XMAKE_FILE_NAMES
from xmakegen.details.scopes import BuildConfiguration
from xmakegen.details.toolchain import Tool
from xmakegen.errors import MissingDefinitionError

logger = logging.getLogger(__name__)

UNBUILT = "unbuilt"
SCANNING = "scanning"
BUILT = "built"


def build_relative_path(absolute_path: str, build_absolute_path: str) -> str:
    return os.path.relpath(absolute_path, build_absolute_path).replace(os.sep, "/")


class NodeToolOptions:
    """Add/remove lists of one tool at one node."""

    def __init__(self, tool: Tool, node: "Node"):
        self.tool = tool
        self.node = node
        self.suffixes = SYMBOLS_SUFFIXES + INCLUDES_SUFFIXES + tuple(tool.suffixes)
        self.add: Dict[str, List[str]] = {s: [] for s in self.suffixes}
        self.remove: Dict[str, List[str]] = {s: [] for s in self.suffixes}
        self._with_parent: Dict[Tuple[str, str], List[str]] = {}
        self._effective: Dict[str, List[str]] = {}

    @property
    def parent_options(self) -> Optional["NodeToolOptions"]:
        parent = self.node.parent
        if parent is None:
            return None
        return parent.options.tools.get(self.tool.name)

    def append_from(self, common: CommonOptions, tool_options: ToolOptions, build_absolute_path: str):
        for source in (common, tool_options):
            if self.tool.uses_symbols:
                self._extend(source.symbols.add, source.symbols.remove, SYMBOLS_SUFFIXES)
            if self.tool.uses_includes:
                self._extend(
                    {
                        s: [build_relative_path(p, build_absolute_path) for p in v]
                        for s, v in source.includes.add.items()
                    },
                    {
                        s: [build_relative_path(p, build_absolute_path) for p in v]
                        for s, v in source.includes.remove.items()
                    },
                    INCLUDES_SUFFIXES,
                )
            self._extend(source.options.add, source.options.remove, self.tool.suffixes)
        self._with_parent.clear()
        self._effective.clear()

    def _extend(self, adds: Dict[str, List[str]], removes: Dict[str, List[str]], suffixes: Iterable[str]):
        for suffix in suffixes:
            self.add[suffix].extend(adds.get(suffix, []))
            self.remove[suffix].extend(removes.get(suffix, []))

    def has_content(self, suffix: str) -> bool:
        return bool(self.add.get(suffix)) or bool(self.remove.get(suffix))

    def property_with_parent(self, prefix: str, suffix: str) -> List[str]:
        assert prefix in PREFIXES
        key = (prefix, suffix)
        if key not in self._with_parent:
            parent = self.parent_options
            inherited = parent.property_with_parent(prefix, suffix) if parent else []
            own = (self.add if prefix == "add" else self.remove).get(suffix, [])
            self._with_parent[key] = inherited + own
        return self._with_parent[key]

    def property_with_add_and_remove(self, suffix: str) -> List[str]:
        if suffix not in self._effective:
            if not self.has_content(suffix):
                parent = self.parent_options
                self._effective[suffix] = (
                    parent.property_with_add_and_remove(suffix) if parent else []
                )
            else:
                self._effective[suffix] = collapse_add_remove(
                    self.property_with_parent("add", suffix),
                    self.property_with_parent("remove", suffix),
                    f"[{self.node.relative_path or '.'} {self.tool.name}] {suffix}",
                )
        return self._effective[suffix]

    @property
    def defined_symbols(self) -> List[str]:
        return self.property_with_add_and_remove("DefinedSymbols")

    @property
    def undefined_symbols(self) -> List[str]:
        return self.property_with_add_and_remove("UndefinedSymbols")

    @property
    def include_folders(self) -> List[str]:
        return self.property_with_add_and_remove("IncludeFolders")

    @property
    def include_system_folders(self) -> List[str]:
        return self.property_with_add_and_remove("IncludeSystemFolders")

    @property
    def include_files(self) -> List[str]:
        return self.property_with_add_and_remove("IncludeFiles")

    # Tool flags, in configuration suffix order.
    @property
    def flags(self) -> List[str]:
        return [
            flag
            for suffix in self.tool.suffixes
            for flag in self.property_with_add_and_remove(suffix)
        ]


class NodeToolchainOptions:
    def __init__(self, node: "Node", tools: Iterable[Tool]):
        self.node = node
        self.tools: Dict[str, NodeToolOptions] = {
            tool.name: NodeToolOptions(tool, node) for tool in tools
        }

    @property
    def tool_list(self) -> List[Tool]:
        return [o.tool for o in self.tools.values()]

    def append_from(self, toolchain_options: ToolchainOptions, build_absolute_path: str):
        for name, node_tool_options in self.tools.items():
            node_tool_options.append_from(
                toolchain_options.common,
                toolchain_options.tools[name],
                build_absolute_path,
            )


class Node:
    def __init__(self, name: str, parent: Optional["FolderNode"]):
        self.name = name
        self.parent = parent
        self.options: NodeToolchainOptions

    @property
    def tree(self) -> "SourceTree":
        node = self
        while node.parent is not None:
            node = node.parent
        assert isinstance(node, SourceTree)
        return node

    @property
    def relative_path(self) -> str:
        names = []
        node: Optional[Node] = self
        while node is not None and node.parent is not None:
            names.append(node.name)
            node = node.parent
        return "/".join(reversed(names))

    @property
    def absolute_path(self) -> str:
        tree = self.tree
        if self is tree:
            return tree.root_absolute_path
        return os.path.normpath(os.path.join(tree.root_absolute_path, self.relative_path))

    def __repr__(self):
        return f"{self.__class__.__name__}({self.relative_path!r})"


class FileNode(Node):
    def __init__(self, name: str, parent: "FolderNode", tool: Tool):
        super().__init__(name, parent)
        self.tool = tool
        self.options = NodeToolchainOptions(self, [tool])

    # Existing nodes are returned as they are.
    @classmethod
    def add(cls, parent: "FolderNode", name: str, tool: Tool) -> "FileNode":
        if name not in parent.files:
            parent.files[name] = cls(name, parent, tool)
            logger.debug(
                "Source file '%s' (%s).",
                parent.files[name].relative_path,
                tool.full_command_name,
            )
        return parent.files[name]

    @property
    def tool_options(self) -> NodeToolOptions:
        return self.options.tools[self.tool.name]

    @property
    def object_path(self) -> str:
        return f"{self.relative_path}.{self.tool.toolchain.object_extension}"


class FolderNode(Node):
    def __init__(self, name: str, parent: Optional["FolderNode"], tools: Iterable[Tool]):
        super().__init__(name, parent)
        self.folders: Dict[str, FolderNode] = {}
        self.files: Dict[str, FileNode] = {}
        self.options = NodeToolchainOptions(self, tools)

    # Existing nodes are returned as they are.
    @classmethod
    def add(cls, parent: "FolderNode", name: str) -> "FolderNode":
        if name not in parent.folders:
            parent.folders[name] = cls(name, parent, parent.options.tool_list)
        return parent.folders[name]

    def add_children(self):
        tree = self.tree
        absolute_path = self.absolute_path
        ignored = set(tree.ignore_cache.parse(absolute_path))
        for entry in tree.dir_cache.readdir(absolute_path):
            name = entry.name
            if name in ignored:
                logger.debug("'%s' ignored by .xmakeignore.", os.path.join(absolute_path, name))
                continue
            if entry.is_dir():
                if name.startswith("."):
                    continue
                if os.path.normpath(entry.path) == tree.build_root_absolute_path:
                    continue
                FolderNode.add(self, name).add_children()
                continue
            if name in XMAKE_FILE_NAMES or name.startswith("."):
                continue
            tool = tree.toolchain.tool_for_file(name)
            if tool is None:
                continue
            if tree.language not in tool.languages:
                logger.debug("'%s' ignored, language.", name)
                continue
            FileNode.add(self, name, tool)

    def walk_files(self) -> Iterator[FileNode]:
        yield from self.files.values()
        for folder in self.folders.values():
            yield from folder.walk_files()

    def walk_folders(self) -> Iterator["FolderNode"]:
        yield self
        for folder in self.folders.values():
            yield from folder.walk_folders()

    @property
    def used_tools(self) -> List[Tool]:
        tools: Dict[str, Tool] = {}
        for file in self.walk_files():
            tools.setdefault(file.tool.name, file.tool)
        return list(tools.values())


class SourceTree(FolderNode):
    """Root of the source tree, positioned on the project folder."""

    def __init__(
        self,
        build_configuration: BuildConfiguration,
        ignore_cache: IgnoreCache,
        dir_cache: DirCache,
    ):
        assert build_configuration.is_prepared
        assert build_configuration.toolchain is not None
        self.build_configuration = build_configuration
        self.toolchain = build_configuration.toolchain
        self.language = build_configuration.resolved_language
        self.root_absolute_path = build_configuration.project.folder_absolute_path
        self.build_absolute_path = build_configuration.build_absolute_path
        self.build_root_absolute_path = os.path.dirname(self.build_absolute_path)
        self.ignore_cache = ignore_cache
        self.dir_cache = dir_cache
        self.state = UNBUILT
        super().__init__("", None, self.toolchain.tools.values())

    def create(self, source_folders: Optional[Iterable[str]] = None) -> "SourceTree":
        assert self.state == UNBUILT, f"source tree already {self.state}"
        self.state = SCANNING
        if source_folders is None:
            source_folders = self.build_configuration.source_folders
        for folder in source_folders:
            relative = os.path.relpath(folder, self.root_absolute_path)
            if not os.path.isdir(folder):
                raise MissingDefinitionError(f"Source folder '{relative}' not found.")
            node: FolderNode = self
            if relative != ".":
                for segment in relative.replace(os.sep, "/").split("/"):
                    node = FolderNode.add(node, segment)
            logger.debug("Scanning source folder '%s'...", relative)
            node.add_children()
        self.state = BUILT
        return self

    def add_nodes_properties(self, build_configuration: Optional[BuildConfiguration] = None):
        assert self.state == BUILT
        configuration = build_configuration or self.build_configuration
        build_absolute_path = configuration.build_absolute_path
        for folder in configuration.resolved_folders.values():
            node = self.find_folder_node(folder.name)
            folder.node = node
            node.options.append_from(folder.toolchain_options, build_absolute_path)
        for file in configuration.resolved_files.values():
            node = self.find_file_node(file.name)
            file.node = node
            node.options.append_from(file.toolchain_options, build_absolute_path)

    def find_folder_node(self, relative_path: str) -> FolderNode:
        if not relative_path:
            return self
        node: FolderNode = self
        for name in relative_path.split("/"):
            if name not in node.folders:
                raise MissingDefinitionError(f"Folder path '{relative_path}' not found.")
            node = node.folders[name]
        return node

    def find_file_node(self, relative_path: str) -> FileNode:
        folder_path, _, file_name = relative_path.rpartition("/")
        try:
            folder = self.find_folder_node(folder_path)
        except MissingDefinitionError:
            raise MissingDefinitionError(f"File path '{relative_path}' not found.")
        if file_name not in folder.files:
            raise MissingDefinitionError(f"File path '{relative_path}' not found.")
        return folder.files[file_name]

    # Folders holding at least one source file, in walk order.
    @property
    def source_folder_nodes(self) -> List[FolderNode]:
        return [folder for folder in self.walk_folders() if folder.files]

    @property
    def file_nodes(self) -> List[FileNode]:
        return list(self.walk_files())
