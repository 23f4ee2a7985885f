import logging
import os
from typing import Dict, List, Optional

from xmakegen.details.as_iterator import str_iter
from xmakegen.details.caches import DirCache, JsonCache
from xmakegen.errors import ConfigurationTypeError, MissingDefinitionError

logger = logging.getLogger(__name__)


def is_xpack(package_json) -> bool:
    return (
        isinstance(package_json, dict)
        and isinstance(package_json.get("name"), str)
        and bool(package_json["name"])
        and isinstance(package_json.get("version"), str)
        and bool(package_json["version"])
        and isinstance(package_json.get("xpack"), dict)
    )


def xpack_directory(package_json: dict, name: str) -> Optional[object]:
    directories = package_json.get("xpack", {}).get("directories")
    if isinstance(directories, dict):
        return directories.get(name)
    return None


class Discoverer:
    """Source and include folders contributed by installed xPack dependencies."""

    def __init__(self, json_cache: JsonCache, dir_cache: DirCache):
        self.json_cache = json_cache
        self.dir_cache = dir_cache

    def _read_package(self, folder: str) -> Optional[dict]:
        try:
            return self.json_cache.parse(os.path.join(folder, "package.json"))
        except FileNotFoundError:
            return None

    def discover(self, folder_absolute_path: str) -> Dict[str, List[str]]:
        result: Dict[str, List[str]] = {"sourceFolders": [], "includeFolders": []}
        package_json = self._read_package(folder_absolute_path)
        if not is_xpack(package_json):
            return result
        assert package_json is not None
        for dependency_folder in self.collect_dependencies(folder_absolute_path, package_json):
            self._process_package(dependency_folder, folder_absolute_path, result)
        return result

    def collect_dependencies(self, folder_absolute_path: str, package_json: dict) -> List[str]:
        xpacks_name = xpack_directory(package_json, "xpacks") or "xpacks"
        if not isinstance(xpacks_name, str):
            raise ConfigurationTypeError("'xpack.directories.xpacks' must be a string")
        xpacks_path = os.path.join(folder_absolute_path, xpacks_name)
        installed: Dict[str, tuple] = {}
        try:
            entries = self.dir_cache.readdir(xpacks_path)
        except FileNotFoundError:
            entries = []
        for entry in entries:
            if not entry.is_dir():
                continue
            installed_folder = os.path.join(xpacks_path, entry.name)
            installed_json = self._read_package(installed_folder)
            if installed_json is None:
                continue
            if not is_xpack(installed_json):
                logger.debug("Package in '%s' not an xPack, ignored.", installed_folder)
                continue
            installed[installed_json["name"]] = (installed_json, installed_folder)

        dependencies: List[str] = []
        visited = {package_json.get("name")}

        def visit(current: dict):
            for name in current.get("dependencies") or {}:
                if name in visited:
                    continue
                if name not in installed:
                    raise MissingDefinitionError(f"Missing package '{name}'.")
                visited.add(name)
                dependency_json, dependency_folder = installed[name]
                dependencies.append(dependency_folder)
                visit(dependency_json)

        visit(package_json)
        return dependencies

    def _process_package(self, package_folder: str, root: str, result: Dict[str, List[str]]):
        relative = os.path.relpath(package_folder, root)
        package_json = self._read_package(package_folder)
        assert package_json is not None
        logger.debug(
            "Checking package '%s@%s'...", package_json["name"], package_json["version"]
        )
        for directory, key in [("src", "sourceFolders"), ("include", "includeFolders")]:
            declared = xpack_directory(package_json, directory)
            if declared is None:
                default_path = os.path.join(package_folder, directory)
                if os.path.isdir(default_path):
                    result[key].append(default_path)
                continue
            for relative_path in str_iter(
                declared, f"{relative}: xpack.directories.{directory}"
            ):
                absolute_path = os.path.normpath(os.path.join(package_folder, relative_path))
                if not os.path.exists(absolute_path):
                    raise ConfigurationTypeError(
                        f"{relative}: folder '{relative_path}' not found"
                    )
                if not os.path.isdir(absolute_path):
                    raise ConfigurationTypeError(
                        f"{relative}: '{relative_path}' not a folder"
                    )
                logger.debug("'%s' is a %s folder.", absolute_path, directory)
                result[key].append(absolute_path)
