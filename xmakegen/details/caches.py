import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Union

logger = logging.getLogger(__name__)

IGNORE_FILE_NAME = ".xmakeignore"

_LINE_SPLIT = re.compile(r"\r?\n")
_PATTERN_CHARS = re.compile(r"[*?![\]/]")


class JsonCache:
    """Parsed JSON documents, keyed by absolute file path."""

    def __init__(self):
        self._entries: Dict[str, Any] = {}

    def parse(self, path: Union[str, Path]) -> Any:
        key = os.path.abspath(path)
        if key not in self._entries:
            logger.debug("Parsing '%s'...", key)
            with open(key, "r", encoding="utf-8") as f:
                self._entries[key] = json.loads(f.read())
        return self._entries[key]


class IgnoreCache:
    """Names listed in per-folder `.xmakeignore` files, keyed by absolute folder path."""

    def __init__(self):
        self._entries: Dict[str, List[str]] = {}

    def parse(self, folder: Union[str, Path]) -> List[str]:
        key = os.path.abspath(folder)
        if key in self._entries:
            return self._entries[key]
        file_path = os.path.join(key, IGNORE_FILE_NAME)
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                content = f.read()
        except FileNotFoundError:
            self._entries[key] = []
            return self._entries[key]
        names = []
        for line in _LINE_SPLIT.split(content):
            name = line.strip()
            if not name or name.startswith("#"):
                continue
            if _PATTERN_CHARS.search(name):
                logger.warning(
                    "Patterns not yet supported in '%s', line '%s' ignored.",
                    file_path,
                    name,
                )
                continue
            names.append(name)
        self._entries[key] = names
        return names


class DirCache:
    """Sorted directory listings, keyed by absolute folder path."""

    def __init__(self):
        self._entries: Dict[str, List[os.DirEntry]] = {}

    def readdir(self, folder: Union[str, Path]) -> List[os.DirEntry]:
        key = os.path.abspath(folder)
        if key not in self._entries:
            with os.scandir(key) as it:
                self._entries[key] = sorted(it, key=lambda e: e.name)
        return self._entries[key]
