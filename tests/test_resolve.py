"""Test cases for LayerConf reference resolution (變數引用).

This module tests ``${...}`` substitution, escaping and failure reporting.
"""

import datetime

import pytest

from layerconf import (
    CircularReferenceError,
    InvalidReferencePathError,
    NonScalarReferenceError,
    ReferenceNotFoundError,
    UnclosedReferenceError,
    resolve_references,
)
from layerconf.merge import merge_at_path
from layerconf.resolve import lookup_path, resolve_string


def resolved(tree):
    resolve_references(tree)
    return tree


def test_simple_reference():
    """Test a single reference.

    Given 字串中引用另一個鍵
    When 解析引用
    Then 引用被替換為該鍵的值
    """
    tree = resolved({"host": "localhost", "url": "http://${host}/api"})
    assert tree["url"] == "http://localhost/api"


def test_nested_path_reference():
    tree = resolved({"db": {"host": "db.local", "port": 5432}, "dsn": "pg://${db.host}:${db.port}/app"})
    assert tree["dsn"] == "pg://db.local:5432/app"


def test_chained_references():
    """Test references to values that are references themselves.

    Given a 被 b 引用，b 又被 c 引用
    When 解析引用
    Then 所有引用都被完整展開
    """
    tree = resolved({"c": "${b}!", "b": "${a} world", "a": "hello"})
    assert tree["b"] == "hello world"
    assert tree["c"] == "hello world!"


def test_escaped_reference_is_literal():
    tree = resolved({"value": "use $${VAR} for env vars"})
    assert tree["value"] == "use ${VAR} for env vars"


def test_escaped_reference_is_not_resolved_by_later_passes():
    """Test escapes stay literal while other references need more passes.

    Given 一個跳脫的引用與需要多輪解析的引用鏈
    When 解析引用
    Then 跳脫後產生的 ${...} 不會再被當成引用
    """
    tree = resolved({"a": "x", "b": "${a}", "c": "${b}", "literal": "$${c} and $${missing}"})
    assert tree["c"] == "x"
    assert tree["literal"] == "${c} and ${missing}"


def test_copied_escape_is_unescaped_once():
    tree = resolved({"template": "$${name}", "copy": "${template}"})
    assert tree["template"] == "${name}"
    assert tree["copy"] == "${name}"


def test_double_escape_and_lone_dollar():
    tree = resolved({"price": "$5 and $$$$", "end": "cost$"})
    assert tree["price"] == "$5 and $$"
    assert tree["end"] == "cost$"


def test_references_inside_arrays():
    """Test array traversal.

    Given 陣列元素中含有引用
    When 解析引用
    Then 每個元素的引用都被替換
    """
    tree = resolved({"base": "/api", "endpoints": ["${base}/users", "${base}/posts", 3, ["${base}"]]})
    assert tree["endpoints"] == ["/api/users", "/api/posts", 3, ["/api"]]


def test_scalar_stringification():
    tree = resolved(
        {
            "flag": True,
            "off": False,
            "count": 3,
            "ratio": 0.5,
            "big": 1e20,
            "when": datetime.date(2024, 1, 2),
            "at": datetime.datetime(2024, 1, 2, 3, 4, 5),
            "text": "${flag} ${off} ${count} ${ratio} ${big} ${when} ${at}",
        }
    )
    assert tree["text"] == "true false 3 0.5 1e+20 2024-01-02 2024-01-02T03:04:05"


def test_whole_string_reference_stays_string():
    tree = resolved({"port": 8080, "copy": "${port}"})
    assert tree["copy"] == "8080"
    assert tree["port"] == 8080


def test_non_string_values_untouched():
    tree = resolved({"a": 1, "b": None, "c": [True, 2.5], "d": {}})
    assert tree == {"a": 1, "b": None, "c": [True, 2.5], "d": {}}


def test_circular_reference():
    """Test cycle detection.

    Given 兩個互相引用的鍵
    When 解析引用
    Then 超過輪數上限後回報循環引用
    """
    with pytest.raises(CircularReferenceError) as exc_info:
        resolve_references({"a": "${b}", "b": "${a}"})
    assert exc_info.value.path == "a"


def test_self_reference_is_circular():
    with pytest.raises(CircularReferenceError) as exc_info:
        resolve_references({"a": "x${a}"})
    assert exc_info.value.path == "a"


@pytest.mark.parametrize(
    "tree, path",
    [
        ({"a": "${b}${b}", "b": "${a}"}, "a"),
        ({"a": "${b}-${c}", "b": "${c}", "c": "${a}${a}"}, "a"),
        ({"server": {"url": "http://${server.host}${server.url}", "host": "h"}}, "server.url"),
    ],
)
def test_growing_cycles_fail_before_pass_limit(tree, path):
    """Test cycles that grow the strings they pass through.

    Given 每輪解析都會讓字串長度加倍的循環引用
    When 以預設輪數上限解析引用
    Then 字串引用到自身路徑時立即回報循環引用，不會耗盡記憶體
    """
    with pytest.raises(CircularReferenceError) as exc_info:
        resolve_references(tree)
    assert exc_info.value.path == path
    assert exc_info.value.max_passes is None
    assert len(str(tree)) < 1000


def test_pass_limit_must_be_positive():
    with pytest.raises(ValueError):
        resolve_references({"a": "plain"}, max_passes=0)


def test_pass_limit_is_configurable():
    # Keys are visited before the keys they reference, one link resolves per pass
    tree = {"d": "${c}", "c": "${b}", "b": "${a}", "a": "v"}
    with pytest.raises(CircularReferenceError) as exc_info:
        resolve_references(dict(tree), max_passes=2)
    assert exc_info.value.max_passes == 2

    # Three substituting passes plus the one finding the fixed point
    resolve_references(tree, max_passes=4)
    assert tree["d"] == "v"


def test_missing_reference():
    with pytest.raises(ReferenceNotFoundError) as exc_info:
        resolve_references({"url": "${nonexistent.path}"})
    assert exc_info.value.path == "nonexistent.path"


def test_reference_through_scalar_is_missing():
    with pytest.raises(ReferenceNotFoundError):
        resolve_references({"a": 1, "b": "${a.b}"})


@pytest.mark.parametrize("text", ["${}", "${a..b}", "${.a}", "${a.}"])
def test_invalid_reference_path(text):
    with pytest.raises(InvalidReferencePathError):
        resolve_references({"a": {"b": 1}, "value": text})


@pytest.mark.parametrize("target", [{"x": 1}, [1, 2]])
def test_non_scalar_reference(target):
    with pytest.raises(NonScalarReferenceError) as exc_info:
        resolve_references({"section": target, "value": "${section}"})
    assert exc_info.value.path == "section"


def test_null_reference_is_rejected():
    with pytest.raises(NonScalarReferenceError):
        resolve_references({"nothing": None, "value": "${nothing}"})


def test_unclosed_reference():
    with pytest.raises(UnclosedReferenceError) as exc_info:
        resolve_references({"host": "h", "value": "http://${host"})
    assert exc_info.value.text == "http://${host"


def test_resolve_string_counts_substitutions():
    root = {"a": "1", "b": "2"}
    assert resolve_string("${a}-${b}-$$", root) == ("1-2-$", 2)
    assert resolve_string("${a}-$$", root, unescape=False) == ("1-$$", 1)
    assert resolve_string("plain", root) == ("plain", 0)


def test_lookup_returns_raw_value():
    root = {"a": {"b": [1, 2]}}
    assert lookup_path(root, "a.b") == [1, 2]
    assert lookup_path(root, "a") == {"b": [1, 2]}


def test_references_inside_tuples():
    """Test arrays given as tuples.

    Given 以 tuple 表示的陣列中含有引用
    When 解析引用
    Then 引用被替換，tuple 轉為 list
    """
    tree = resolved({"a": "x", "b": ("${a}", ("${a}/y", 1))})
    assert tree["b"] == ["x", ["x/y", 1]]


def test_missing_reference_inside_tuple():
    with pytest.raises(ReferenceNotFoundError):
        resolve_references({"a": "x", "b": ("${a}", "${missing}")})


def test_deeply_nested_tree():
    """Test trees nested deeper than the interpreter recursion limit.

    Given 巢狀層數超過直譯器遞迴上限的設置樹
    When 解析引用
    Then 最深處的引用也能被替換
    """
    depth = 3000
    tree = merge_at_path({"x": "v"}, ["k"] * depth, "${x}")
    tree = merge_at_path(tree, ["k"] * (depth - 1) + ["items"], ["${x}", {"deeper": "${x}"}])

    resolve_references(tree)

    node = tree
    for _ in range(depth - 1):
        node = node["k"]
    assert node["k"] == "v"
    assert node["items"] == ["v", {"deeper": "v"}]
