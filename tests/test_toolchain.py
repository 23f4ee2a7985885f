import logging

import pytest

from xmakegen.details.toolchain import ToolchainCatalog
from xmakegen.errors import ConfigurationTypeError, MissingDefinitionError


def test_builtin_gcc(catalog):
    gcc = catalog.retrieve("gcc")
    assert set(gcc.tools) == {"c", "cpp", "as", "cLinker", "cppLinker", "archiver"}
    assert gcc.tools["c"].type == "compiler"
    assert gcc.tools["c"].full_command_name == "gcc"
    assert gcc.tools["c"].full_description == "GNU C Compiler"
    assert gcc.object_extension == "o"


def test_retrieve_is_cached(catalog):
    assert catalog.retrieve("gcc") is catalog.retrieve("gcc")


def test_tool_for_file(catalog):
    gcc = catalog.retrieve("gcc")
    assert gcc.tool_for_file("main.c").name == "c"
    assert gcc.tool_for_file("main.cpp").name == "cpp"
    assert gcc.tool_for_file("lib.cc").name == "cpp"
    assert gcc.tool_for_file("startup.S").name == "as"
    assert gcc.tool_for_file("startup.s") is None
    assert gcc.tool_for_file("header.h") is None
    assert gcc.tool_for_file("Makefile") is None


def test_find_tool(catalog):
    gcc = catalog.retrieve("gcc")
    assert gcc.find_tool("linker", "c").name == "cLinker"
    assert gcc.find_tool("linker", "c++").name == "cppLinker"
    assert gcc.find_tool("archiver", "c++").name == "archiver"
    assert gcc.find_tool("debugger", "c") is None


def test_tool_suffixes(catalog):
    gcc = catalog.retrieve("gcc")
    assert gcc.tools["archiver"].suffixes == ["Miscellaneous"]
    assert gcc.tools["c"].suffixes == gcc.configuration_suffixes
    assert gcc.tools["c"].uses_symbols and gcc.tools["as"].uses_includes
    assert not gcc.tools["cLinker"].uses_symbols
    assert not gcc.tools["archiver"].uses_includes


def test_inherited_toolchain(catalog):
    gcc = catalog.retrieve("gcc")
    arm = catalog.retrieve("arm-none-eabi-gcc")
    assert arm.parent is gcc
    assert arm.tools["c"].full_command_name == "arm-none-eabi-gcc"
    assert arm.tools["c"].toolchain is arm
    assert arm.tool_for_file("main.c") is arm.tools["c"]
    # The parent is left untouched
    assert gcc.tools["c"].full_command_name == "gcc"


def test_inherited_tool_override(catalog):
    clang = catalog.retrieve("clang")
    assert clang.tools["cpp"].full_command_name == "clang++"
    assert clang.tools["cpp"].type == "compiler"
    assert clang.tools["archiver"].full_command_name == "llvm-ar"
    assert clang.tools["cpp"].full_description == "LLVM C++ Compiler"


def test_is_descendant_of(catalog):
    gcc = catalog.retrieve("gcc")
    arm = catalog.retrieve("arm-none-eabi-gcc")
    clang = catalog.retrieve("clang")
    assert gcc.is_descendant_of(gcc)
    assert arm.is_descendant_of(gcc)
    assert not gcc.is_descendant_of(arm)
    assert not arm.is_descendant_of(clang)


def test_unknown_toolchain(catalog):
    with pytest.raises(MissingDefinitionError, match="'msvc'"):
        catalog.retrieve("msvc")


def test_unknown_parent(catalog):
    catalog.add("orphan", {"parent": "missing"})
    with pytest.raises(MissingDefinitionError):
        catalog.retrieve("orphan")


def test_redefinition_warns(catalog, caplog):
    with caplog.at_level(logging.WARNING, logger="xmakegen"):
        catalog.add("gcc", {"commandPrefix": "x-", "tools": {}})
    assert "redefined" in caplog.text
    assert catalog.retrieve("gcc").command_prefix == "x-"


def test_redefinition_reaches_children(catalog):
    catalog.retrieve("arm-none-eabi-gcc")
    catalog.add(
        "gcc",
        {"tools": {"c": {"type": "compiler", "commandName": "cc", "description": "C",
                         "languages": ["c"]}}},
    )
    assert catalog.retrieve("arm-none-eabi-gcc").tools["c"].full_command_name == "arm-none-eabi-cc"


def test_new_tool_mandatory_properties():
    catalog = ToolchainCatalog()
    catalog.add("mine", {"tools": {"cc": {"commandName": "cc", "type": "compiler"}}})
    with pytest.raises(ConfigurationTypeError, match="mandatory"):
        catalog.retrieve("mine")


def test_tool_cannot_redefine_type(catalog):
    catalog.add("mine", {"parent": "gcc", "tools": {"c": {"type": "linker"}}})
    with pytest.raises(ConfigurationTypeError, match="redefine type"):
        catalog.retrieve("mine")


def test_tool_unsupported_language(catalog):
    catalog.add(
        "mine",
        {"tools": {"f": {"type": "compiler", "commandName": "gfortran",
                         "description": "Fortran", "languages": ["fortran"]}}},
    )
    with pytest.raises(ConfigurationTypeError, match="fortran"):
        catalog.retrieve("mine")


def test_linker_cannot_have_file_extensions(catalog):
    catalog.add(
        "mine",
        {"tools": {"ld": {"type": "linker", "commandName": "ld", "description": "Linker",
                          "languages": ["c"], "fileExtensions": {"o": {}}}}},
    )
    with pytest.raises(ConfigurationTypeError, match="file extensions"):
        catalog.retrieve("mine")


def test_toolchain_property_must_be_string(catalog):
    catalog.add("mine", {"parent": "gcc", "commandPrefix": 3})
    with pytest.raises(ConfigurationTypeError, match="commandPrefix"):
        catalog.retrieve("mine")


def test_default_extension_prefix(catalog):
    catalog.add("mine", {"parent": "gcc", "tools": {"c": {"fileExtensions": {"i": {}}}}})
    mine = catalog.retrieve("mine")
    assert mine.file_extensions["i"].prefix == "I"
    assert mine.tool_for_file("x.i") is mine.tools["c"]
