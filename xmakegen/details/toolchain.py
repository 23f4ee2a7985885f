import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from xmakegen.details.as_iterator import as_object, as_str_list
from xmakegen.errors import ConfigurationTypeError, MissingDefinitionError

logger = logging.getLogger(__name__)

BUILTIN_TOOLCHAINS_PATH = Path(__file__).parent / "toolchains.json"

TOOL_TYPES = ("compiler", "assembler", "linker", "archiver")
LANGUAGES = ("c", "c++")

DEFAULT_CONFIGURATION_SUFFIXES = [
    "Architecture",
    "Optimizations",
    "Warnings",
    "Debugging",
    "Miscellaneous",
]

# (json name, attribute name, default)
TOOLCHAIN_PROPERTIES = [
    ("commandPrefix", "command_prefix", ""),
    ("commandSuffix", "command_suffix", ""),
    ("descriptionPrefix", "description_prefix", ""),
    ("objectExtension", "object_extension", "o"),
    ("makeObjectsVariable", "make_objects_variable", "OBJS"),
]

TOOL_PROPERTIES = [
    ("options", "options"),
    ("deps", "deps"),
    ("outputFlag", "output_flag"),
    ("output", "output"),
    ("inputs", "inputs"),
]


class FileExtension:
    def __init__(self, name: str, prefix: str, tool: "Tool"):
        self.name = name
        self.prefix = prefix
        self.tool = tool


class Tool:
    def __init__(self, name: str, toolchain: "Toolchain"):
        self.name = name
        self.toolchain = toolchain
        self.type = ""
        self.command_name = ""
        self.description = ""
        self.languages: List[str] = []
        self.configuration_suffixes: Optional[List[str]] = None
        self.options = ""
        self.deps = ""
        self.output_flag = ""
        self.output = ""
        self.inputs = ""
        self.file_extensions: Dict[str, FileExtension] = {}

    # Structural copy bound to another toolchain, used for inheritance.
    def copy_to(self, toolchain: "Toolchain") -> "Tool":
        tool = Tool(self.name, toolchain)
        tool.type = self.type
        tool.command_name = self.command_name
        tool.description = self.description
        tool.languages = list(self.languages)
        if self.configuration_suffixes is not None:
            tool.configuration_suffixes = list(self.configuration_suffixes)
        for _, attr in TOOL_PROPERTIES:
            setattr(tool, attr, getattr(self, attr))
        tool.file_extensions = {
            name: FileExtension(name, ext.prefix, tool)
            for name, ext in self.file_extensions.items()
        }
        return tool

    @property
    def full_command_name(self) -> str:
        return (
            self.toolchain.command_prefix
            + self.command_name
            + self.toolchain.command_suffix
        )

    @property
    def full_description(self) -> str:
        if self.toolchain.description_prefix:
            return f"{self.toolchain.description_prefix} {self.description}"
        return self.description

    @property
    def suffixes(self) -> List[str]:
        if self.configuration_suffixes is not None:
            return self.configuration_suffixes
        return self.toolchain.configuration_suffixes

    # Archivers and linkers take no preprocessor input.
    @property
    def uses_symbols(self) -> bool:
        return self.type in ("compiler", "assembler")

    @property
    def uses_includes(self) -> bool:
        return self.type in ("compiler", "assembler")

    def __repr__(self):
        return f"Tool({self.toolchain.name}:{self.name})"


class Toolchain:
    def __init__(self, name: str, parent: Optional["Toolchain"] = None):
        self.name = name
        self.parent = parent
        for _, attr, default in TOOLCHAIN_PROPERTIES:
            setattr(self, attr, getattr(parent, attr) if parent else default)
        self.configuration_suffixes: List[str] = (
            list(parent.configuration_suffixes)
            if parent
            else list(DEFAULT_CONFIGURATION_SUFFIXES)
        )
        self.tools: Dict[str, Tool] = (
            {name: tool.copy_to(self) for name, tool in parent.tools.items()}
            if parent
            else {}
        )
        self.file_extensions: Dict[str, FileExtension] = {}

    def is_descendant_of(self, other: "Toolchain") -> bool:
        toolchain: Optional[Toolchain] = self
        while toolchain is not None:
            if toolchain is other or toolchain.name == other.name:
                return True
            toolchain = toolchain.parent
        return False

    def find_tool(self, tool_type: str, language: str) -> Optional[Tool]:
        for tool in self.tools.values():
            if tool.type == tool_type and language in tool.languages:
                return tool
        return None

    def tool_for_file(self, file_name: str) -> Optional[Tool]:
        _, dot, extension = file_name.rpartition(".")
        if not dot:
            return None
        file_extension = self.file_extensions.get(extension)
        return file_extension.tool if file_extension else None

    def _update_file_extensions(self):
        self.file_extensions = {}
        for tool in self.tools.values():
            for name, extension in tool.file_extensions.items():
                self.file_extensions[name] = extension

    def __repr__(self):
        return f"Toolchain({self.name})"


class ToolchainCatalog:
    """Toolchain definitions, processed into Toolchain objects on first use."""

    def __init__(self):
        self._definitions: Dict[str, dict] = {}
        self._toolchains: Dict[str, Toolchain] = {}

    def load_builtin(self):
        with BUILTIN_TOOLCHAINS_PATH.open("r", encoding="utf-8") as f:
            for name, definition in json.load(f).items():
                self.add(name, definition)

    def add(self, name: str, definition: dict):
        if not isinstance(definition, dict):
            raise ConfigurationTypeError(f"Toolchain '{name}' must be an object")
        if name in self._definitions:
            logger.warning("Toolchain '%s' redefined.", name)
        self._definitions[name] = definition
        # Drop processed entries, children may inherit from the new definition
        self._toolchains.clear()

    def retrieve(self, name: str) -> Toolchain:
        if name not in self._toolchains:
            if name not in self._definitions:
                raise MissingDefinitionError(f"Toolchain '{name}' not defined.")
            self._toolchains[name] = self._process_toolchain(name)
        return self._toolchains[name]

    def _process_toolchain(self, name: str) -> Toolchain:
        logger.debug("Processing toolchain '%s'...", name)
        definition = self._definitions[name]
        parent_name = definition.get("parent")
        if parent_name is not None:
            if not isinstance(parent_name, str):
                raise ConfigurationTypeError(
                    f"Toolchain '{name}' property 'parent' must be a string"
                )
            if parent_name == name:
                raise ConfigurationTypeError(f"Toolchain '{name}' cannot inherit from itself")
            toolchain = Toolchain(name, self.retrieve(parent_name))
        else:
            toolchain = Toolchain(name)
        for json_name, attr, _ in TOOLCHAIN_PROPERTIES:
            if json_name in definition:
                if not isinstance(definition[json_name], str):
                    raise ConfigurationTypeError(
                        f"Toolchain '{name}' property '{json_name}' must be a string"
                    )
                setattr(toolchain, attr, definition[json_name])
        if "configurationSuffixes" in definition:
            toolchain.configuration_suffixes = as_str_list(
                definition["configurationSuffixes"],
                f"{name}.configurationSuffixes",
            )
        tools = as_object(definition.get("tools"), f"{name}.tools")
        for tool_name, tool_definition in tools.items():
            self._process_tool(toolchain, tool_name, tool_definition)
        toolchain._update_file_extensions()
        return toolchain

    def _process_tool(self, toolchain: Toolchain, name: str, definition: dict):
        if not isinstance(definition, dict):
            raise ConfigurationTypeError(
                f"Tool '{toolchain.name}.{name}' must be an object"
            )
        tool = toolchain.tools.get(name)
        if tool is None:
            tool = Tool(name, toolchain)
            for prop in ["commandName", "description", "type", "languages"]:
                if not definition.get(prop):
                    raise ConfigurationTypeError(
                        f"Tool '{name}' has no mandatory '{prop}'."
                    )
            toolchain.tools[name] = tool
        elif "type" in definition and definition["type"] != tool.type:
            raise ConfigurationTypeError(f"Tool '{name}' cannot redefine type")

        if "type" in definition:
            if definition["type"] not in TOOL_TYPES:
                raise ConfigurationTypeError(
                    f"Tool '{name}' has unsupported type '{definition['type']}'"
                )
            tool.type = definition["type"]
        for json_name, attr in [
            ("commandName", "command_name"),
            ("description", "description"),
        ]:
            if json_name in definition:
                if not isinstance(definition[json_name], str):
                    raise ConfigurationTypeError(
                        f"Tool '{name}' property '{json_name}' must be a string"
                    )
                setattr(tool, attr, definition[json_name])
        if "languages" in definition:
            languages = as_str_list(definition["languages"], f"{name}.languages")
            for language in languages:
                if language not in LANGUAGES:
                    raise ConfigurationTypeError(
                        f"Tool '{name}' has unsupported language '{language}'"
                    )
            tool.languages = languages
        if "configurationSuffixes" in definition:
            tool.configuration_suffixes = as_str_list(
                definition["configurationSuffixes"],
                f"{name}.configurationSuffixes",
            )
        for json_name, attr in TOOL_PROPERTIES:
            if json_name in definition:
                if not isinstance(definition[json_name], str):
                    raise ConfigurationTypeError(
                        f"Tool '{name}' property '{json_name}' must be a string"
                    )
                setattr(tool, attr, definition[json_name])

        extensions = as_object(
            definition.get("fileExtensions"), f"{name}.fileExtensions"
        )
        if extensions and tool.type not in ("compiler", "assembler"):
            raise ConfigurationTypeError(
                f"Tool '{name}' of type '{tool.type}' cannot have file extensions"
            )
        for extension, value in extensions.items():
            value = as_object(value, f"{name}.fileExtensions.{extension}")
            prefix = value.get("prefix", extension.upper())
            if not isinstance(prefix, str):
                raise ConfigurationTypeError(
                    f"Tool '{name}' extension '{extension}' prefix must be a string"
                )
            tool.file_extensions[extension] = FileExtension(extension, prefix, tool)
