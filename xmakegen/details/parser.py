"""
Parse `xmake.json` into a Project and resolve its build configurations.

Resolution layers, lowest to highest precedence:

1. target platform (empty unnamed one when the configuration names none)
2. parent project (nested test projects only)
3. project top folder, followed by discovered xPack include folders
4. option groups, in the order listed by the configuration
5. build configuration top folder

Layers are concatenated, never overwritten; duplicates and removes are
collapsed once, by the source tree nodes.
"""

import logging
import os
import re
from pathlib import PurePath
from typing import Dict, List, Mapping, Optional, Union

from xmakegen.details.as_iterator import as_object, as_optional_str, as_str_list
from xmakegen.details.caches import JsonCache
from xmakegen.details.discoverer import Discoverer
from xmakegen.details.options import (
    INCLUDES_SUFFIXES,
    PREFIXES,
    Includes,
    Sources,
    Symbols,
    ToolchainOptions,
    ToolchainsOptions,
    collapse_add_remove,
)
from xmakegen.details.scopes import (
    DEFAULT_LANGUAGE,
    Artefact,
    BuildConfiguration,
    File,
    Folder,
    OptionGroup,
    Project,
    Scope,
    TargetPlatform,
)
from xmakegen.details.toolchain import LANGUAGES, ToolchainCatalog
from xmakegen.errors import (
    ConfigurationTypeError,
    MissingDefinitionError,
    MissingFileError,
    SchemaVersionError,
)

logger = logging.getLogger(__name__)

XMAKE_FILE_NAMES = ("xmake.json", ".xmake.json")
SUPPORTED_SCHEMA_PREFIX = "0.2."
DEFAULT_BUILD_ROOT = "build"

DEFAULT_BUILDERS: Dict[str, Dict[str, List[str]]] = {
    "make": {"": ["make"], "clean": ["make", "clean"]},
    "ninja": {"": ["ninja"], "clean": ["ninja", "-t", "clean"]},
}

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def find_xmake_file(folder_absolute_path: str) -> Optional[str]:
    for file_name in XMAKE_FILE_NAMES:
        file_path = os.path.join(folder_absolute_path, file_name)
        if os.path.isfile(file_path):
            return file_path
    return None


def normalize_relative_path(name: str, property_name: str) -> str:
    if os.path.isabs(name) or PurePath(name).is_absolute():
        raise ConfigurationTypeError(
            f"'{property_name}' key '{name}' must be a relative path"
        )
    path = os.path.normpath(name).replace(os.sep, "/")
    if path == ".":
        return ""
    if path == ".." or path.startswith("../"):
        raise ConfigurationTypeError(
            f"'{property_name}' key '{name}' must be inside the project"
        )
    return path


class Parser:
    def __init__(
        self,
        catalog: ToolchainCatalog,
        json_cache: JsonCache,
        discoverer: Optional[Discoverer] = None,
    ):
        self.catalog = catalog
        self.json_cache = json_cache
        self.discoverer = discoverer
        self._folder = ""

    # ---- parsing ---------------------------------------------------------

    def parse(self, folder_absolute_path: str, parent: Optional[Project] = None) -> Project:
        folder_absolute_path = os.path.abspath(folder_absolute_path)
        file_path = find_xmake_file(folder_absolute_path)
        if file_path is None:
            raise MissingFileError(
                f"Missing mandatory '{XMAKE_FILE_NAMES[0]}' file "
                f"(tried {', '.join(XMAKE_FILE_NAMES)} in '{folder_absolute_path}')."
            )
        json_content = self.json_cache.parse(file_path)
        if not isinstance(json_content, dict):
            raise ConfigurationTypeError(f"'{file_path}' must contain a JSON object")
        return self.parse_json(json_content, folder_absolute_path, file_path, parent)

    def parse_json(
        self,
        json_content: dict,
        folder_absolute_path: str,
        file_path: str = "",
        parent: Optional[Project] = None,
    ) -> Project:
        self._folder = folder_absolute_path
        schema_version = json_content.get("schemaVersion")
        if schema_version is None:
            raise SchemaVersionError(f"Missing 'schemaVersion' in '{file_path}'.")
        if not isinstance(schema_version, str) or not schema_version.startswith(
            SUPPORTED_SCHEMA_PREFIX
        ):
            raise SchemaVersionError(
                f"Unsupported schemaVersion '{schema_version}' in '{file_path}'."
            )

        name = as_optional_str(json_content.get("name"), "name")
        if name is None:
            name = os.path.basename(folder_absolute_path)
        elif not _NAME_PATTERN.match(name):
            raise ConfigurationTypeError(
                f"'name' must contain only letters, digits, '-' and '_', got '{name}'"
            )
        logger.debug("Parsing project '%s' from '%s'...", name, file_path)

        project = Project(name, folder_absolute_path, file_path)
        project.parent = parent
        project.schema_version = schema_version
        project.builders = self._parse_builders(json_content.get("builders"))

        for toolchain_name, definition in as_object(
            json_content.get("toolchains"), "toolchains"
        ).items():
            self.catalog.add(toolchain_name, definition)

        export = json_content.get("exportCompilationDatabase", True)
        if not isinstance(export, bool):
            raise ConfigurationTypeError("'exportCompilationDatabase' must be a boolean")
        project.export_compilation_database = export

        self._parse_scope(project, json_content, "")
        project.folders = self._parse_folders(json_content, "", Folder)
        project.files = self._parse_folders(json_content, "", File)

        for platform_name, value in as_object(
            json_content.get("targetPlatforms"), "targetPlatforms"
        ).items():
            platform = TargetPlatform(platform_name)
            self._parse_scope_with_settings(
                platform, as_object(value, f"targetPlatforms.{platform_name}"),
                f"targetPlatforms.{platform_name}",
            )
            project.target_platforms[platform_name] = platform

        for group_name, value in as_object(
            json_content.get("optionGroups"), "optionGroups"
        ).items():
            group = OptionGroup(group_name)
            self._parse_scope_with_settings(
                group, as_object(value, f"optionGroups.{group_name}"),
                f"optionGroups.{group_name}",
            )
            project.option_groups[group_name] = group

        configurations = as_object(
            json_content.get("buildConfigurations"), "buildConfigurations"
        )
        if not configurations:
            raise MissingDefinitionError(
                f"No 'buildConfigurations' defined in '{file_path}'."
            )
        for raw_name, value in configurations.items():
            configuration = self._parse_build_configuration(
                project, raw_name, as_object(value, f"buildConfigurations.{raw_name}")
            )
            project.build_configurations[configuration.name] = configuration

        if self.discoverer is not None:
            discovered = self.discoverer.discover(folder_absolute_path)
            project.discovered_sources.add["SourceFolders"].extend(
                discovered["sourceFolders"]
            )
            project.discovered_includes.add["IncludeFolders"].extend(
                discovered["includeFolders"]
            )
        return project

    def _parse_builders(self, value) -> Dict[str, Dict[str, List[str]]]:
        builders = {name: dict(goals) for name, goals in DEFAULT_BUILDERS.items()}
        for name, goals in as_object(value, "builders").items():
            goals = as_object(goals, f"builders.{name}")
            builders.setdefault(name, {})
            for goal, command in goals.items():
                command = as_str_list(command, f"builders.{name}.{goal}")
                if not command:
                    raise ConfigurationTypeError(f"'builders.{name}.{goal}' is empty")
                builders[name][goal] = command
        return builders

    def _absolute(self, path: str) -> str:
        return os.path.normpath(os.path.join(self._folder, path.strip()))

    def _absolute_lists(self, json_content: Mapping, suffixes) -> dict:
        result = {}
        for prefix in PREFIXES:
            for suffix in suffixes:
                key = prefix + suffix
                result[key] = [
                    self._absolute(p) for p in as_str_list(json_content.get(key), key)
                ]
        return result

    def _parse_includes(self, json_content: Mapping) -> Includes:
        return Includes(self._absolute_lists(json_content, INCLUDES_SUFFIXES))

    def _parse_sources(self, json_content: Mapping) -> Sources:
        return Sources(self._absolute_lists(json_content, Sources().suffixes))

    # Project and build configuration level properties.
    def _parse_scope(self, scope, json_content: Mapping, property_name: str):
        scope.sources = self._parse_sources(json_content)
        artefact = json_content.get("targetArtefact")
        if artefact is None:
            artefact = json_content.get("targetArtifact")
        prefix = f"{property_name}." if property_name else ""
        scope.target_artefact = Artefact.from_json(artefact, f"{prefix}targetArtefact")
        scope.language = self._parse_language(
            json_content.get("language"), f"{prefix}language"
        )

    def _parse_scope_with_settings(self, scope: Scope, json_content: Mapping, property_name: str):
        self._parse_scope(scope, json_content, property_name)
        scope.includes = self._parse_includes(json_content)
        scope.symbols = Symbols(json_content)
        scope.toolchains_options = self._parse_toolchains_options(
            json_content.get("toolchainsOptions"), f"{property_name}.toolchainsOptions"
        )

    def _parse_language(self, value, property_name: str) -> Optional[str]:
        language = as_optional_str(value, property_name)
        if language is not None:
            language = language.strip().lower()
        if language is not None and language not in LANGUAGES:
            raise ConfigurationTypeError(
                f"'{property_name}' must be one of {', '.join(LANGUAGES)}, got '{language}'"
            )
        return language

    def _parse_folder_into(self, folder: Folder, json_content: Mapping, property_name: str):
        folder.includes.append_from(self._parse_includes(json_content))
        folder.symbols.append_from(Symbols(json_content))
        folder.toolchains_options.append_from(
            self._parse_toolchains_options(
                json_content.get("toolchainsOptions"), f"{property_name}.toolchainsOptions"
            )
        )

    # The top folder holds the scope's own settings; `folders`/`files` add the rest.
    def _parse_folders(self, json_content: Mapping, property_name: str, cls):
        key = "folders" if cls is Folder else "files"
        prefix = f"{property_name}." if property_name else ""
        result = {}
        if cls is Folder:
            top = Folder("")
            self._parse_folder_into(top, json_content, property_name or "project")
            result[""] = top
        for raw_name, value in as_object(json_content.get(key), f"{prefix}{key}").items():
            name = normalize_relative_path(raw_name, f"{prefix}{key}")
            if cls is File and not name:
                raise ConfigurationTypeError(f"'{prefix}{key}' key '{raw_name}' is not a file")
            scope = result.setdefault(name, cls(name))
            self._parse_folder_into(
                scope, as_object(value, f"{prefix}{key}.{raw_name}"), f"{prefix}{key}.{raw_name}"
            )
        return result

    def _parse_toolchains_options(self, value, property_name: str) -> ToolchainsOptions:
        result = ToolchainsOptions()
        for toolchain_name, toolchain_json in as_object(value, property_name).items():
            toolchain = self.catalog.retrieve(toolchain_name)
            toolchain_json = as_object(toolchain_json, f"{property_name}.{toolchain_name}")
            tools_json = as_object(
                toolchain_json.get("toolsOptions"),
                f"{property_name}.{toolchain_name}.toolsOptions",
            )
            tools = {}
            for tool_name, tool_json in tools_json.items():
                if tool_name not in toolchain.tools:
                    raise MissingDefinitionError(
                        f"Tool '{tool_name}' not defined in toolchain '{toolchain_name}'."
                    )
                tools[tool_name] = self._with_absolute_includes(
                    as_object(tool_json, f"{property_name}.{toolchain_name}.toolsOptions.{tool_name}")
                )
            result.add(
                ToolchainOptions(
                    toolchain, self._with_absolute_includes(toolchain_json), tools
                )
            )
        return result

    def _with_absolute_includes(self, json_content: Mapping) -> dict:
        result = dict(json_content)
        result.update(self._absolute_lists(json_content, INCLUDES_SUFFIXES))
        return result

    def _parse_build_configuration(
        self, project: Project, raw_name: str, json_content: Mapping
    ) -> BuildConfiguration:
        name = raw_name.lower()
        property_name = f"buildConfigurations.{raw_name}"
        if name in project.build_configurations:
            raise ConfigurationTypeError(f"Build configuration '{name}' defined twice")
        configuration = BuildConfiguration(name, project)

        toolchain_name = json_content.get("toolchain")
        if not isinstance(toolchain_name, str):
            raise ConfigurationTypeError(f"'{property_name}.toolchain' must be a string")
        configuration.toolchain = self.catalog.retrieve(toolchain_name)

        for group_name in as_str_list(
            json_content.get("optionGroups"), f"{property_name}.optionGroups"
        ):
            if group_name not in project.option_groups:
                raise MissingDefinitionError(f"Option group '{group_name}' not defined.")
            configuration.option_groups.append(project.option_groups[group_name])

        platform_name = as_optional_str(
            json_content.get("targetPlatform"), f"{property_name}.targetPlatform"
        )
        if platform_name is not None:
            if platform_name not in project.target_platforms:
                raise MissingDefinitionError(
                    f"Target platform '{platform_name}' not defined."
                )
            configuration.target_platform = project.target_platforms[platform_name]

        export = json_content.get("exportCompilationDatabase")
        if export is not None and not isinstance(export, bool):
            raise ConfigurationTypeError(
                f"'{property_name}.exportCompilationDatabase' must be a boolean"
            )
        configuration.export_compilation_database = export

        self._parse_scope(configuration, json_content, property_name)
        configuration.folders = self._parse_folders(json_content, property_name, Folder)
        configuration.files = self._parse_folders(json_content, property_name, File)
        return configuration

    # ---- resolution ------------------------------------------------------

    def prepare(
        self,
        configuration: BuildConfiguration,
        build_root: Union[str, os.PathLike] = DEFAULT_BUILD_ROOT,
    ) -> BuildConfiguration:
        project = configuration.project
        logger.debug(
            "Preparing build configuration '%s' of '%s'...", configuration.name, project.name
        )
        configuration.build_absolute_path = os.path.normpath(
            os.path.join(project.folder_absolute_path, build_root, configuration.name)
        )
        configuration.artefact = self._resolve_artefact(configuration)
        configuration.resolved_language = self._resolve_language(configuration)
        configuration.tool = self._resolve_tool(configuration)
        configuration.source_folders = self._resolve_source_folders(configuration)
        configuration.resolved_folders = self._resolve_folders(configuration)
        configuration.resolved_files = self._resolve_files(configuration)
        configuration.is_prepared = True
        return configuration

    def _resolve_artefact(self, configuration: BuildConfiguration) -> Artefact:
        project = configuration.project
        artefact = Artefact()
        artefact.fill_from(configuration.target_artefact)
        for group in configuration.option_groups:
            artefact.fill_from(group.target_artefact)
        artefact.fill_from(configuration.target_platform.target_artefact)
        artefact.fill_from(project.target_artefact)
        if project.parent is not None:
            artefact.fill_from(project.parent.target_artefact)
        artefact.apply_defaults({"build.name": project.name})
        return artefact

    def _resolve_language(self, configuration: BuildConfiguration) -> str:
        if configuration.language:
            return configuration.language
        for group in configuration.option_groups:
            if group.language:
                return group.language
        candidates = [configuration.target_platform.language, configuration.project.language]
        if configuration.project.parent is not None:
            candidates.append(configuration.project.parent.language)
        for language in candidates:
            if language:
                return language
        return DEFAULT_LANGUAGE

    def _resolve_tool(self, configuration: BuildConfiguration):
        artefact_type = configuration.artefact.type
        toolchain = configuration.toolchain
        tool = None
        if artefact_type in ("executable", "sharedLib"):
            tool = toolchain.find_tool("linker", configuration.resolved_language)
        elif artefact_type == "staticLib":
            tool = toolchain.find_tool("archiver", configuration.resolved_language)
        if tool is None:
            raise MissingDefinitionError(
                f"Cannot set tool to build artefact '{artefact_type}'"
            )
        return tool

    def _source_layers(self, configuration: BuildConfiguration) -> List[Sources]:
        project = configuration.project
        layers = [configuration.target_platform.sources]
        if project.parent is not None:
            layers.append(project.parent.sources)
        layers.append(project.sources)
        layers.append(project.discovered_sources)
        layers.extend(group.sources for group in configuration.option_groups)
        layers.append(configuration.sources)
        return layers

    def _resolve_source_folders(self, configuration: BuildConfiguration) -> List[str]:
        sources = Sources()
        for layer in self._source_layers(configuration):
            sources.append_from(layer)
        folders = collapse_add_remove(
            sources.add["SourceFolders"], sources.remove["SourceFolders"], "Source folder"
        )
        if not folders:
            raise MissingDefinitionError(
                f"No source folders defined for build configuration '{configuration.name}'."
            )
        return sorted(folders)

    def _top_layers(self, configuration: BuildConfiguration) -> list:
        project = configuration.project
        discovered = Scope("discovered")
        discovered.includes = project.discovered_includes
        layers = [configuration.target_platform]
        if project.parent is not None:
            layers.append(project.parent.top_folder)
        layers.append(project.top_folder)
        layers.append(discovered)
        layers.extend(configuration.option_groups)
        layers.append(configuration.folders[""])
        return layers

    def _resolve_folders(self, configuration: BuildConfiguration) -> Dict[str, Folder]:
        project = configuration.project
        toolchain = configuration.toolchain
        top = Folder("", toolchain)
        for layer in self._top_layers(configuration):
            top.append_from(layer)
        top.distribute_to_tools()
        resolved = {"": top}
        for name in list(project.folders) + list(configuration.folders):
            if name in resolved:
                continue
            resolved[name] = self._resolve_scope(
                Folder(name, toolchain), project.folders.get(name), configuration.folders.get(name)
            )
        return resolved

    def _resolve_files(self, configuration: BuildConfiguration) -> Dict[str, File]:
        project = configuration.project
        toolchain = configuration.toolchain
        resolved = {}
        for name in list(project.files) + list(configuration.files):
            if name in resolved:
                continue
            resolved[name] = self._resolve_scope(
                File(name, toolchain), project.files.get(name), configuration.files.get(name)
            )
        return resolved

    def _resolve_scope(self, scope: Folder, *layers: Optional[Folder]) -> Folder:
        for layer in layers:
            if layer is not None:
                scope.append_from(layer)
        scope.distribute_to_tools()
        return scope
