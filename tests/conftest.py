import json
import logging
from pathlib import Path

import pytest

from xmakegen.details.caches import DirCache, IgnoreCache, JsonCache
from xmakegen.details.parser import Parser
from xmakegen.details.source_tree import SourceTree
from xmakegen.details.toolchain import ToolchainCatalog


def write_files(root: Path, files: dict):
    for relative_path, content in files.items():
        path = root.joinpath(relative_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, (dict, list)):
            content = json.dumps(content, indent=2)
        path.write_text(content)


def minimal_project(**overrides) -> dict:
    project = {
        "schemaVersion": "0.2.0",
        "name": "hello",
        "addSourceFolders": ["src"],
        "buildConfigurations": {"debug": {"toolchain": "gcc"}},
    }
    project.update(overrides)
    return project


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    # main() installs a console handler on the package logger
    logger = logging.getLogger("xmakegen")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def catalog():
    catalog = ToolchainCatalog()
    catalog.load_builtin()
    return catalog


@pytest.fixture
def parser(catalog):
    return Parser(catalog, JsonCache())


@pytest.fixture
def make_project(tmp_path):
    def make(xmake_json: dict, files: dict = None, file_name: str = "xmake.json") -> Path:
        write_files(tmp_path, {file_name: xmake_json, **(files or {})})
        return tmp_path

    return make


@pytest.fixture
def resolve(parser):
    # Parse, prepare and scan one build configuration
    def resolve(root: Path, configuration: str = "debug") -> SourceTree:
        project = parser.parse(str(root))
        build_configuration = parser.prepare(project.build_configurations[configuration])
        tree = SourceTree(build_configuration, IgnoreCache(), DirCache())
        tree.create(build_configuration.source_folders)
        tree.add_nodes_properties(build_configuration)
        return tree

    return resolve
