import json
import os

import pytest

from conftest import minimal_project, write_files
from xmakegen.details.parser import normalize_relative_path
from xmakegen.errors import (
    ConfigurationTypeError,
    MacroError,
    MissingDefinitionError,
    MissingFileError,
    SchemaVersionError,
)


def prepare(parser, root, configuration="debug"):
    project = parser.parse(str(root))
    return parser.prepare(project.build_configurations[configuration])


def test_missing_xmake_file(parser, tmp_path):
    with pytest.raises(MissingFileError) as info:
        parser.parse(str(tmp_path))
    assert "xmake.json, .xmake.json" in str(info.value)


def test_dotted_xmake_file(parser, make_project):
    root = make_project(minimal_project(), file_name=".xmake.json")
    assert parser.parse(str(root)).name == "hello"


def test_syntax_error_is_surfaced(parser, tmp_path):
    tmp_path.joinpath("xmake.json").write_text("{")
    with pytest.raises(json.JSONDecodeError):
        parser.parse(str(tmp_path))


@pytest.mark.parametrize("version", [None, "0.1.0", "1.0", 2])
def test_schema_version(parser, make_project, version):
    project = minimal_project()
    if version is None:
        del project["schemaVersion"]
    else:
        project["schemaVersion"] = version
    root = make_project(project)
    with pytest.raises(SchemaVersionError):
        parser.parse(str(root))


def test_default_name_is_folder_name(parser, make_project):
    project = minimal_project()
    del project["name"]
    root = make_project(project)
    assert parser.parse(str(root)).name == os.path.basename(str(root))


def test_invalid_name(parser, make_project):
    root = make_project(minimal_project(name="hello world"))
    with pytest.raises(ConfigurationTypeError, match="'name'"):
        parser.parse(str(root))


def test_build_configuration_names_are_lowercase(parser, make_project):
    root = make_project(
        minimal_project(buildConfigurations={"Debug": {"toolchain": "gcc"}})
    )
    assert list(parser.parse(str(root)).build_configurations) == ["debug"]


def test_no_build_configurations(parser, make_project):
    root = make_project(minimal_project(buildConfigurations={}))
    with pytest.raises(MissingDefinitionError):
        parser.parse(str(root))


def test_toolchain_must_be_string(parser, make_project):
    root = make_project(
        minimal_project(buildConfigurations={"debug": {"toolchain": ["gcc"]}})
    )
    with pytest.raises(ConfigurationTypeError, match="toolchain"):
        parser.parse(str(root))


def test_unknown_toolchain(parser, make_project):
    root = make_project(
        minimal_project(buildConfigurations={"debug": {"toolchain": "msvc"}})
    )
    with pytest.raises(MissingDefinitionError, match="msvc"):
        parser.parse(str(root))


def test_unknown_option_group(parser, make_project):
    root = make_project(
        minimal_project(
            buildConfigurations={"debug": {"toolchain": "gcc", "optionGroups": ["x"]}}
        )
    )
    with pytest.raises(MissingDefinitionError, match="Option group 'x'"):
        parser.parse(str(root))


def test_unknown_target_platform(parser, make_project):
    root = make_project(
        minimal_project(
            buildConfigurations={"debug": {"toolchain": "gcc", "targetPlatform": "x"}}
        )
    )
    with pytest.raises(MissingDefinitionError, match="Target platform 'x'"):
        parser.parse(str(root))


def test_unknown_tool(parser, make_project):
    root = make_project(
        minimal_project(
            toolchainsOptions={"gcc": {"toolsOptions": {"fortran": {}}}}
        )
    )
    with pytest.raises(MissingDefinitionError, match="fortran"):
        parser.parse(str(root))


def test_project_toolchains(parser, make_project):
    root = make_project(
        minimal_project(
            toolchains={"my-gcc": {"parent": "gcc", "commandPrefix": "my-"}},
            buildConfigurations={"debug": {"toolchain": "my-gcc"}},
        )
    )
    configuration = prepare(parser, root)
    assert configuration.tool.full_command_name == "my-g++"


def test_folder_keys_must_be_relative(parser, make_project):
    root = make_project(minimal_project(folders={"../outside": {}}))
    with pytest.raises(ConfigurationTypeError, match="inside the project"):
        parser.parse(str(root))


def test_normalize_relative_path():
    assert normalize_relative_path("src/./sub/", "folders") == "src/sub"
    assert normalize_relative_path(".", "folders") == ""
    with pytest.raises(ConfigurationTypeError):
        normalize_relative_path("/abs", "folders")


def test_builders(parser, make_project):
    root = make_project(minimal_project(builders={"make": {"": ["make", "-j8"]}}))
    builders = parser.parse(str(root)).builders
    assert builders["make"][""] == ["make", "-j8"]
    assert builders["make"]["clean"] == ["make", "clean"]
    assert builders["ninja"][""] == ["ninja"]


def test_export_compilation_database(parser, make_project):
    root = make_project(
        minimal_project(
            exportCompilationDatabase=False,
            buildConfigurations={
                "debug": {"toolchain": "gcc"},
                "release": {"toolchain": "gcc", "exportCompilationDatabase": True},
            },
        )
    )
    project = parser.parse(str(root))
    assert not project.build_configurations["debug"].should_export_compilation_database
    assert project.build_configurations["release"].should_export_compilation_database


def test_artefact_fill_from_precedence(parser, make_project):
    root = make_project(
        minimal_project(
            targetArtefact={"name": "bar", "type": "staticLib"},
            buildConfigurations={"debug": {"toolchain": "gcc", "targetArtefact": {"name": "foo"}}},
        )
    )
    artefact = prepare(parser, root).artefact
    assert (artefact.type, artefact.name) == ("staticLib", "foo")
    assert (artefact.output_prefix, artefact.output_suffix, artefact.extension) == ("", "", "")


def test_artefact_layers(parser, make_project):
    root = make_project(
        minimal_project(
            targetArtefact={"outputPrefix": "lib", "extension": "bin"},
            targetPlatforms={"arm": {"targetArtefact": {"extension": "elf"}}},
            optionGroups={"small": {"targetArtefact": {"outputSuffix": "-small"}}},
            buildConfigurations={
                "debug": {"toolchain": "gcc", "targetPlatform": "arm", "optionGroups": ["small"]}
            },
        )
    )
    artefact = prepare(parser, root).artefact
    assert artefact.type == "executable"
    assert artefact.full_name == "libhello-small.elf"


def test_artefact_name_macro(parser, make_project):
    root = make_project(minimal_project(targetArtifact={"name": "${build.name}-app"}))
    assert prepare(parser, root).artefact.name == "hello-app"


def test_artefact_unknown_macro(parser, make_project):
    root = make_project(minimal_project(targetArtefact={"name": "${build.type}"}))
    with pytest.raises(MacroError):
        prepare(parser, root)


def test_artefact_bad_type(parser, make_project):
    root = make_project(minimal_project(targetArtefact={"type": "firmware"}))
    with pytest.raises(ConfigurationTypeError, match="firmware"):
        prepare(parser, root)


def test_artefact_type_is_trimmed(parser, make_project):
    root = make_project(minimal_project(targetArtefact={"type": " staticLib "}))
    configuration = prepare(parser, root)
    assert configuration.artefact.type == "staticLib"
    assert configuration.tool.name == "archiver"


@pytest.mark.parametrize(
    "artefact_type, language, tool",
    [
        ("executable", "c++", "cppLinker"),
        ("sharedLib", "c", "cLinker"),
        ("staticLib", "c", "archiver"),
    ],
)
def test_tool_selection(parser, make_project, artefact_type, language, tool):
    root = make_project(
        minimal_project(targetArtefact={"type": artefact_type}, language=language)
    )
    assert prepare(parser, root).tool.name == tool


def test_missing_tool_for_artefact(parser, make_project):
    root = make_project(
        minimal_project(
            toolchains={
                "bare": {"tools": {"cc": {"type": "compiler", "commandName": "cc",
                                          "description": "C", "languages": ["c"]}}}
            },
            buildConfigurations={"debug": {"toolchain": "bare"}},
        )
    )
    with pytest.raises(MissingDefinitionError, match="Cannot set tool"):
        prepare(parser, root)


def test_language_precedence(parser, make_project):
    root = make_project(
        minimal_project(
            language="c",
            optionGroups={"cpp": {"language": "c++"}},
            buildConfigurations={
                "debug": {"toolchain": "gcc"},
                "mixed": {"toolchain": "gcc", "optionGroups": ["cpp"]},
            },
        )
    )
    assert prepare(parser, root).resolved_language == "c"
    assert prepare(parser, root, "mixed").resolved_language == "c++"


def test_language_default(parser, make_project):
    root = make_project(minimal_project())
    assert prepare(parser, root).resolved_language == "c++"


def test_bad_language(parser, make_project):
    root = make_project(minimal_project(language="rust"))
    with pytest.raises(ConfigurationTypeError, match="rust"):
        parser.parse(str(root))


def test_language_is_trimmed_and_lowercased(parser, make_project):
    root = make_project(minimal_project(language=" C "))
    assert prepare(parser, root).resolved_language == "c"


def test_source_folder_dedup_and_sort(parser, make_project):
    root = make_project(
        minimal_project(
            addSourceFolders=["b", "a"],
            buildConfigurations={
                "debug": {"toolchain": "gcc", "addSourceFolders": "a", "removeSourceFolders": ["b"]}
            },
        )
    )
    assert prepare(parser, root).source_folders == [os.path.join(str(root), "a")]


def test_source_folders_sorted_across_layers(parser, make_project):
    root = make_project(
        minimal_project(
            addSourceFolders=["src"],
            optionGroups={"tests": {"addSourceFolders": ["lib", "tests"]}},
            buildConfigurations={"debug": {"toolchain": "gcc", "optionGroups": ["tests"]}},
        )
    )
    assert prepare(parser, root).source_folders == [
        os.path.join(str(root), name) for name in ["lib", "src", "tests"]
    ]


def test_no_source_folders(parser, make_project):
    root = make_project(
        minimal_project(
            buildConfigurations={"debug": {"toolchain": "gcc", "removeSourceFolders": "src"}}
        )
    )
    with pytest.raises(MissingDefinitionError, match="No source folders"):
        prepare(parser, root)


def test_top_folder_layer_order(parser, make_project):
    root = make_project(
        minimal_project(
            addDefinedSymbols=["PROJECT"],
            targetPlatforms={"native": {"addDefinedSymbols": ["PLATFORM"]}},
            optionGroups={
                "one": {"addDefinedSymbols": ["GROUP1"]},
                "two": {"addDefinedSymbols": ["GROUP2"]},
            },
            buildConfigurations={
                "debug": {
                    "toolchain": "gcc",
                    "targetPlatform": "native",
                    "optionGroups": ["two", "one"],
                    "addDefinedSymbols": ["CONFIGURATION"],
                }
            },
        )
    )
    top = prepare(parser, root).top_folder
    expected = ["PLATFORM", "PROJECT", "GROUP2", "GROUP1", "CONFIGURATION"]
    assert top.toolchain_options.tools["c"].symbols.add["DefinedSymbols"] == expected
    assert top.toolchain_options.tools["cpp"].symbols.add["DefinedSymbols"] == expected
    # Linkers and archivers take no symbols
    assert top.toolchain_options.tools["cppLinker"].symbols.add["DefinedSymbols"] == []


def test_include_folders_are_absolute(parser, make_project):
    root = make_project(minimal_project(addIncludeFolders=["include"]))
    top = prepare(parser, root).top_folder
    assert top.toolchain_options.tools["c"].includes.add["IncludeFolders"] == [
        os.path.join(str(root), "include")
    ]


def test_folder_paths_are_trimmed(parser, make_project):
    root = make_project(
        minimal_project(addSourceFolders=[" src "], addIncludeFolders=" include\t")
    )
    configuration = prepare(parser, root)
    assert configuration.source_folders == [os.path.join(str(root), "src")]
    assert configuration.top_folder.toolchain_options.tools["c"].includes.add[
        "IncludeFolders"
    ] == [os.path.join(str(root), "include")]


def test_folders_merge_project_and_configuration(parser, make_project):
    root = make_project(
        minimal_project(
            folders={"src/sub": {"addDefinedSymbols": ["A"]}},
            buildConfigurations={
                "debug": {
                    "toolchain": "gcc",
                    "folders": {"src/sub": {"addDefinedSymbols": ["B"]}},
                    "files": {"src/main.c": {"removeDefinedSymbols": ["A"]}},
                }
            },
        )
    )
    configuration = prepare(parser, root)
    assert set(configuration.resolved_folders) == {"", "src/sub"}
    sub = configuration.resolved_folders["src/sub"]
    assert sub.toolchain_options.tools["c"].symbols.add["DefinedSymbols"] == ["A", "B"]
    main = configuration.resolved_files["src/main.c"]
    assert main.toolchain_options.tools["c"].symbols.remove["DefinedSymbols"] == ["A"]


def test_tool_options_for_other_toolchain_keep_only_common(parser, make_project):
    root = make_project(
        minimal_project(
            toolchainsOptions={
                "clang": {"addWarnings": ["-Weverything"], "toolsOptions": {"cpp": {"addWarnings": "-Wno-c++98-compat"}}},
                "gcc": {"toolsOptions": {"cpp": {"addWarnings": "-Wall"}}},
            }
        )
    )
    top = prepare(parser, root).top_folder
    assert top.toolchain_options.tools["cpp"].options.add["Warnings"] == ["-Wall"]
    assert top.toolchain_options.common.options.add["Warnings"] == ["-Weverything"]


def test_build_path(parser, make_project):
    root = make_project(minimal_project())
    configuration = prepare(parser, root)
    assert configuration.build_absolute_path == os.path.join(str(root), "build", "debug")
    assert configuration.is_prepared


def test_parent_project_layer(parser, make_project, tmp_path):
    parent_root = make_project(
        minimal_project(
            name="parent",
            language="c",
            addDefinedSymbols=["PARENT"],
            targetArtefact={"type": "staticLib"},
        )
    )
    child_root = tmp_path / "test"
    write_files(child_root, {"xmake.json": minimal_project(name="test", addDefinedSymbols=["CHILD"])})
    parent = parser.parse(str(parent_root))
    child = parser.parse(str(child_root), parent=parent)
    configuration = parser.prepare(child.build_configurations["debug"])
    assert configuration.resolved_language == "c"
    assert configuration.artefact.type == "staticLib"
    assert configuration.artefact.name == "test"
    assert configuration.source_folders == [
        os.path.join(str(tmp_path), "src"),
        os.path.join(str(tmp_path), "test", "src"),
    ]
    symbols = configuration.top_folder.toolchain_options.tools["c"].symbols.add["DefinedSymbols"]
    assert symbols == ["PARENT", "CHILD"]
