import json
import logging

import pytest

from xmakegen.details.caches import DirCache, IgnoreCache, JsonCache


def test_ignore_file_names(tmp_path, caplog):
    tmp_path.joinpath(".xmakeignore").write_text("one\n#comment\n\nseven\n*.bad\n")
    with caplog.at_level(logging.WARNING, logger="xmakegen"):
        names = IgnoreCache().parse(tmp_path)
    assert names == ["one", "seven"]
    assert "*.bad" in caplog.text


def test_ignore_file_crlf_and_spaces(tmp_path):
    tmp_path.joinpath(".xmakeignore").write_bytes(b"  one  \r\ntwo\r\n\r\nsub/dir\r\n")
    assert IgnoreCache().parse(tmp_path) == ["one", "two"]


def test_ignore_file_missing(tmp_path):
    assert IgnoreCache().parse(tmp_path) == []


def test_ignore_file_is_read_once(tmp_path):
    ignore_file = tmp_path.joinpath(".xmakeignore")
    ignore_file.write_text("one\n")
    cache = IgnoreCache()
    first = cache.parse(tmp_path)
    ignore_file.write_text("two\n")
    assert cache.parse(str(tmp_path)) is first
    assert first == ["one"]


def test_json_cache(tmp_path):
    path = tmp_path.joinpath("data.json")
    path.write_text(json.dumps({"a": 1}))
    cache = JsonCache()
    first = cache.parse(path)
    path.write_text(json.dumps({"a": 2}))
    assert cache.parse(str(path)) is first
    assert JsonCache().parse(path) == {"a": 2}


def test_json_cache_syntax_error(tmp_path):
    path = tmp_path.joinpath("bad.json")
    path.write_text("{ not json")
    with pytest.raises(json.JSONDecodeError):
        JsonCache().parse(path)


def test_json_cache_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        JsonCache().parse(tmp_path.joinpath("missing.json"))


def test_dir_cache_sorted(tmp_path):
    for name in ["b.c", "a.c", "c"]:
        tmp_path.joinpath(name).write_text("")
    assert [e.name for e in DirCache().readdir(tmp_path)] == ["a.c", "b.c", "c"]
