from typing import Dict, List, Mapping, Optional, Union

from xmakegen.details.as_iterator import as_object, as_optional_str
from xmakegen.details.options import (
    Includes,
    Sources,
    Symbols,
    ToolchainOptions,
    ToolchainsOptions,
)
from xmakegen.details.toolchain import Tool, Toolchain
from xmakegen.details.variable_expansion import substitute
from xmakegen.errors import ConfigurationTypeError

ARTEFACT_TYPES = ("executable", "staticLib", "sharedLib")
DEFAULT_ARTEFACT_TYPE = "executable"
DEFAULT_ARTEFACT_NAME = "${build.name}"
DEFAULT_LANGUAGE = "c++"

ARTEFACT_FIELDS = [
    ("type", "type"),
    ("name", "name"),
    ("outputPrefix", "output_prefix"),
    ("outputSuffix", "output_suffix"),
    ("extension", "extension"),
]


class Artefact:
    def __init__(
        self,
        type: Optional[str] = None,
        name: Optional[str] = None,
        output_prefix: Optional[str] = None,
        output_suffix: Optional[str] = None,
        extension: Optional[str] = None,
    ):
        self.type = type
        self.name = name
        self.output_prefix = output_prefix
        self.output_suffix = output_suffix
        self.extension = extension

    @classmethod
    def from_json(cls, value, property_name: str) -> "Artefact":
        value = as_object(value, property_name)
        artefact = cls()
        for json_name, attr in ARTEFACT_FIELDS:
            setattr(
                artefact,
                attr,
                as_optional_str(value.get(json_name), f"{property_name}.{json_name}"),
            )
        if artefact.type is not None:
            artefact.type = artefact.type.strip()
        return artefact

    # Only fields still undefined are taken from the other artefact.
    def fill_from(self, other: "Artefact"):
        if not self.type:
            self.type = other.type
        if not self.name:
            self.name = other.name
        if self.output_prefix is None:
            self.output_prefix = other.output_prefix
        if self.output_suffix is None:
            self.output_suffix = other.output_suffix
        if self.extension is None:
            self.extension = other.extension

    def apply_defaults(self, macro_values: Mapping[str, str]):
        if not self.type:
            self.type = DEFAULT_ARTEFACT_TYPE
        if self.type not in ARTEFACT_TYPES:
            raise ConfigurationTypeError(
                f"Artefact type '{self.type}' not supported, "
                f"use one of {', '.join(ARTEFACT_TYPES)}"
            )
        self.name = substitute(self.name or DEFAULT_ARTEFACT_NAME, macro_values)
        self.output_prefix = self.output_prefix or ""
        self.output_suffix = self.output_suffix or ""
        self.extension = self.extension or ""

    @property
    def full_name(self) -> str:
        name = f"{self.output_prefix or ''}{self.name or ''}{self.output_suffix or ''}"
        if self.extension:
            name += f".{self.extension}"
        return name

    def __str__(self):
        return f"{self.type} '{self.full_name}'"


class Scope:
    """Settings common to a target platform or an option group."""

    def __init__(self, name: str):
        self.name = name
        self.sources = Sources()
        self.includes = Includes()
        self.symbols = Symbols()
        self.toolchains_options = ToolchainsOptions()
        self.target_artefact = Artefact()
        self.language: Optional[str] = None

    def __repr__(self):
        return f"{self.__class__.__name__}({self.name!r})"


class TargetPlatform(Scope):
    pass


class OptionGroup(Scope):
    pass


class Folder:
    """
    Settings for one folder, keyed by its POSIX path relative to the project.

    Parsed folders keep options for any number of toolchains; folders resolved
    for a build configuration are bound to its single toolchain.
    """

    def __init__(self, name: str, toolchain: Optional[Toolchain] = None):
        self.name = name
        self.includes = Includes()
        self.symbols = Symbols()
        self.toolchains_options = ToolchainsOptions()
        self.toolchain_options: Optional[ToolchainOptions] = (
            ToolchainOptions(toolchain) if toolchain else None
        )
        self.node = None

    # Merge a parsed folder, or a platform/group scope, into this resolved one.
    def append_from(self, other: Union["Folder", Scope]):
        assert self.toolchain_options is not None
        self.includes.append_from(other.includes)
        self.symbols.append_from(other.symbols)
        bound = getattr(other, "toolchain_options", None)
        if bound is not None:
            self.toolchain_options.append_from(bound)
        self.toolchain_options.append_from(other.toolchains_options)

    # Scope level symbols and includes go to the tools that consume them.
    def distribute_to_tools(self):
        assert self.toolchain_options is not None
        for tool_options in self.toolchain_options.tools.values():
            if tool_options.tool.uses_symbols:
                tool_options.symbols.append_from(self.symbols)
            if tool_options.tool.uses_includes:
                tool_options.includes.append_from(self.includes)

    def __repr__(self):
        return f"{self.__class__.__name__}({self.name!r})"


class File(Folder):
    pass


class BuildConfiguration:
    def __init__(self, name: str, project: "Project"):
        self.name = name
        self.project = project
        self.sources = Sources()
        self.target_artefact = Artefact()
        self.language: Optional[str] = None
        self.folders: Dict[str, Folder] = {}
        self.files: Dict[str, File] = {}
        self.toolchain: Optional[Toolchain] = None
        self.target_platform: TargetPlatform = TargetPlatform("")
        self.option_groups: List[OptionGroup] = []
        self.export_compilation_database: Optional[bool] = None
        # Set by Parser.prepare()
        self.artefact: Optional[Artefact] = None
        self.source_folders: List[str] = []
        self.resolved_folders: Dict[str, Folder] = {}
        self.resolved_files: Dict[str, File] = {}
        self.resolved_language: Optional[str] = None
        self.tool: Optional[Tool] = None
        self.build_absolute_path: Optional[str] = None
        self.is_prepared = False

    @property
    def top_folder(self) -> Folder:
        return self.resolved_folders[""]

    @property
    def should_export_compilation_database(self) -> bool:
        if self.export_compilation_database is not None:
            return self.export_compilation_database
        return self.project.export_compilation_database

    def __repr__(self):
        return f"BuildConfiguration({self.name!r})"


class Project:
    def __init__(self, name: str, folder_absolute_path: str, file_absolute_path: str):
        self.name = name
        self.folder_absolute_path = folder_absolute_path
        self.file_absolute_path = file_absolute_path
        self.parent: Optional["Project"] = None
        self.schema_version = ""
        self.sources = Sources()
        self.target_artefact = Artefact()
        self.language: Optional[str] = None
        self.folders: Dict[str, Folder] = {}
        self.files: Dict[str, File] = {}
        self.target_platforms: Dict[str, TargetPlatform] = {}
        self.option_groups: Dict[str, OptionGroup] = {}
        self.build_configurations: Dict[str, BuildConfiguration] = {}
        self.builders: Dict[str, Dict[str, List[str]]] = {}
        self.export_compilation_database = True
        self.discovered_sources = Sources()
        self.discovered_includes = Includes()

    @property
    def top_folder(self) -> Folder:
        return self.folders[""]

    def __repr__(self):
        return f"Project({self.name!r})"
