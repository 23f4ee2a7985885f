"""
Add/remove attribute lists and their grouping per tool and per toolchain.

An attribute is named by its suffix (`IncludeFolders`, `DefinedSymbols`,
`Optimizations`, ...); in JSON it appears as a pair of `add<Suffix>` and
`remove<Suffix>` properties. Merging only concatenates; duplicates and
removes are collapsed once, when a source tree node computes its effective
values.
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence, Union

from xmakegen.details.as_iterator import as_str_list
from xmakegen.details.logger import trace
from xmakegen.details.toolchain import Tool, Toolchain

logger = logging.getLogger(__name__)

SYMBOLS_SUFFIXES = ("DefinedSymbols", "UndefinedSymbols")
INCLUDES_SUFFIXES = ("IncludeFolders", "IncludeSystemFolders", "IncludeFiles")
SOURCES_SUFFIXES = ("SourceFolders",)

PREFIXES = ("add", "remove")


def collapse_add_remove(adds: List[str], removes: List[str], what: str) -> List[str]:
    # dict keeps insertion order, i.e. first-added order
    values = dict.fromkeys(adds)
    for value in removes:
        if value in values:
            del values[value]
            trace(logger, "%s '%s' removed.", what, value)
        else:
            trace(logger, "%s '%s' not present, remove ignored.", what, value)
    return list(values)


class AttributeSet:
    def __init__(
        self,
        suffixes: Sequence[str],
        source: Union["AttributeSet", Mapping, None] = None,
        move: bool = False,
    ):
        self.suffixes = tuple(suffixes)
        self.add: Dict[str, List[str]] = {s: [] for s in self.suffixes}
        self.remove: Dict[str, List[str]] = {s: [] for s in self.suffixes}
        if source is not None:
            self.initialize(source, move=move)

    def _lists(self, prefix: str) -> Dict[str, List[str]]:
        return self.add if prefix == "add" else self.remove

    # Copy every declared suffix from another set or from a JSON object;
    # with `move` the other set's lists are handed over and it is left empty.
    def initialize(self, source: Union["AttributeSet", Mapping], move: bool = False):
        for prefix in PREFIXES:
            lists = self._lists(prefix)
            for suffix in self.suffixes:
                if isinstance(source, AttributeSet):
                    source_lists = source._lists(prefix)
                    if suffix not in source_lists:
                        lists[suffix] = []
                    elif move:
                        lists[suffix] = source_lists[suffix]
                        source_lists[suffix] = []
                    else:
                        lists[suffix] = list(source_lists[suffix])
                else:
                    lists[suffix] = as_str_list(
                        source.get(prefix + suffix), prefix + suffix
                    )

    def append_from(self, other: "AttributeSet"):
        for prefix in PREFIXES:
            lists = self._lists(prefix)
            other_lists = other._lists(prefix)
            for suffix in self.suffixes:
                if suffix in other_lists:
                    lists[suffix].extend(other_lists[suffix])

    def has_content(self) -> bool:
        return any(self.add.values()) or any(self.remove.values())

    def __str__(self):
        parts = []
        for suffix in self.suffixes:
            if self.add[suffix] or self.remove[suffix]:
                parts.append(
                    f"{suffix}: add '{','.join(self.add[suffix])}'"
                    f" remove '{','.join(self.remove[suffix])}'"
                )
        return "; ".join(parts)


class Symbols(AttributeSet):
    def __init__(self, source=None, move: bool = False):
        super().__init__(SYMBOLS_SUFFIXES, source, move)


class Includes(AttributeSet):
    def __init__(self, source=None, move: bool = False):
        super().__init__(INCLUDES_SUFFIXES, source, move)


class Sources(AttributeSet):
    def __init__(self, source=None, move: bool = False):
        super().__init__(SOURCES_SUFFIXES, source, move)


class Options(AttributeSet):
    pass


class CommonOptions:
    """Symbols, includes and tool flags declared at one scope."""

    def __init__(
        self,
        suffixes: Sequence[str],
        source: Union["CommonOptions", Mapping, None] = None,
        move: bool = False,
    ):
        if isinstance(source, CommonOptions):
            self.symbols = Symbols(source.symbols, move)
            self.includes = Includes(source.includes, move)
            self.options = Options(suffixes, source.options, move)
        else:
            self.symbols = Symbols(source)
            self.includes = Includes(source)
            self.options = Options(suffixes, source)

    def append_from(self, other: "CommonOptions"):
        self.symbols.append_from(other.symbols)
        self.includes.append_from(other.includes)
        self.options.append_from(other.options)

    def has_content(self) -> bool:
        return (
            self.symbols.has_content()
            or self.includes.has_content()
            or self.options.has_content()
        )

    def __str__(self):
        return "; ".join(
            s
            for s in (str(self.symbols), str(self.includes), str(self.options))
            if s
        )


class ToolOptions(CommonOptions):
    def __init__(self, tool: Tool, source=None, move: bool = False):
        super().__init__(tool.suffixes, source, move)
        self.tool = tool


class ToolchainOptions:
    """One shared `common` set plus one ToolOptions per tool of a toolchain."""

    def __init__(
        self,
        toolchain: Toolchain,
        common: Union[CommonOptions, Mapping, None] = None,
        tools: Optional[Mapping[str, Union[ToolOptions, Mapping]]] = None,
        move: bool = False,
    ):
        self.toolchain = toolchain
        self.common = CommonOptions(toolchain.configuration_suffixes, common, move)
        self.tools: Dict[str, ToolOptions] = {}
        for name, tool in toolchain.tools.items():
            self.tools[name] = ToolOptions(tool, (tools or {}).get(name), move)

    def append_from(self, source: Union["ToolchainOptions", "ToolchainsOptions"]):
        if isinstance(source, ToolchainsOptions):
            for toolchain_options in source.toolchains.values():
                self.append_from(toolchain_options)
            return
        self.common.append_from(source.common)
        # Tool flags apply only to the same toolchain or its descendants
        if not self.toolchain.is_descendant_of(source.toolchain):
            return
        for name, source_tool in source.tools.items():
            if name not in self.tools:
                if name not in self.toolchain.tools:
                    continue
                self.tools[name] = ToolOptions(self.toolchain.tools[name])
            self.tools[name].append_from(source_tool)

    def has_content(self) -> bool:
        return self.common.has_content() or any(
            t.has_content() for t in self.tools.values()
        )

    def __str__(self):
        parts = []
        if self.common.has_content():
            parts.append(f"common: {self.common}")
        for name, tool_options in self.tools.items():
            if tool_options.has_content():
                parts.append(f"{name}: {tool_options}")
        return f"{self.toolchain.name} {{{', '.join(parts)}}}"


class ToolchainsOptions:
    """ToolchainOptions keyed by toolchain name, for scopes not yet bound to one toolchain."""

    def __init__(self):
        self.toolchains: Dict[str, ToolchainOptions] = {}

    def add(self, toolchain_options: ToolchainOptions):
        self.toolchains[toolchain_options.toolchain.name] = toolchain_options

    def append_from(self, other: "ToolchainsOptions"):
        for name, toolchain_options in other.toolchains.items():
            if name not in self.toolchains:
                self.toolchains[name] = ToolchainOptions(toolchain_options.toolchain)
            self.toolchains[name].append_from(toolchain_options)

    def has_content(self) -> bool:
        return any(t.has_content() for t in self.toolchains.values())

    def __str__(self):
        return ", ".join(str(t) for t in self.toolchains.values())
