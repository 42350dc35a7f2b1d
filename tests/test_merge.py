"""Test cases for LayerConf merging (合併設置).

This module tests how entries from different sources combine into one tree.
"""

import logging

from layerconf import ConfigEntry, deep_merge, merge_at_path
from layerconf.merge import merge_entries


def test_root_merge_preserves_untouched_keys():
    """Test deep merge at the root.

    Given 一個已有內容的設置樹
    When 在根部合併另一個 table
    Then 未被覆蓋的鍵保留，巢狀 table 遞迴合併
    """
    tree = {"existing": "keep", "nested": {"inner": 42}}
    result = merge_at_path(tree, [], {"new": "added", "nested": {"another": True}})

    assert result is tree
    assert tree == {"existing": "keep", "new": "added", "nested": {"inner": 42, "another": True}}


def test_merge_creates_missing_tables():
    """Test path creation.

    Given 空的設置樹
    When 在不存在的路徑合併一個值
    Then 中間的 table 會自動建立
    """
    tree = merge_at_path({}, ["a", "b", "c"], 123)
    assert tree == {"a": {"b": {"c": 123}}}


def test_scalar_leaf_is_replaced():
    tree = {"server": {"port": 8080, "host": "localhost"}}
    merge_at_path(tree, ["server", "port"], 9090)
    assert tree == {"server": {"port": 9090, "host": "localhost"}}


def test_table_leaf_is_deep_merged():
    """Test merging a table onto an existing table leaf.

    Given 路徑末端已經是 table
    When 在該路徑合併另一個 table
    Then 舊鍵保留，新鍵加入，重複鍵被覆蓋
    """
    tree = {"db": {"host": "localhost", "pool": {"size": 5}}}
    merge_at_path(tree, ["db"], {"port": 5432, "pool": {"timeout": 30}})
    assert tree == {"db": {"host": "localhost", "port": 5432, "pool": {"size": 5, "timeout": 30}}}


def test_arrays_are_replaced_not_concatenated():
    tree = {"tags": ["a", "b"]}
    merge_at_path(tree, [], {"tags": ["c"]})
    assert tree == {"tags": ["c"]}


def test_table_replaces_scalar_and_scalar_replaces_table():
    tree = {"a": 1, "b": {"x": 1}}
    merge_at_path(tree, [], {"a": {"nested": True}, "b": "flat"})
    assert tree == {"a": {"nested": True}, "b": "flat"}


def test_non_table_in_the_way_becomes_table():
    """Test path through a scalar.

    Given 路徑中間的值不是 table
    When 在更深的路徑合併
    Then 該值被空 table 取代後繼續建立路徑
    """
    tree = {"a": "scalar"}
    merge_at_path(tree, ["a", "b"], 1)
    assert tree == {"a": {"b": 1}}


def test_root_replaced_by_non_table_value(caplog):
    """Test merging a non-table at the root.

    Given 已有內容的設置樹
    When 在空路徑合併非 table 的值
    Then 整個根部被取代，並記錄警告
    """
    with caplog.at_level(logging.WARNING, logger="layerconf.merge"):
        result = merge_at_path({"a": 1}, [], [1, 2])

    assert result == [1, 2]
    assert "Replacing the configuration root" in caplog.text


def test_root_table_replaces_non_table_root():
    assert merge_at_path("scalar", [], {"a": 1}) == {"a": 1}
    assert merge_at_path(42, ["a", "b"], 1) == {"a": {"b": 1}}


def test_merged_values_are_not_shared_with_entries():
    overlay = {"nested": {"list": [1, 2]}}
    tree = merge_at_path({}, [], overlay)

    tree["nested"]["list"].append(3)
    assert overlay == {"nested": {"list": [1, 2]}}


def test_tuples_are_stored_as_lists():
    tree = merge_at_path({}, ["point"], (1, 2))
    assert tree == {"point": [1, 2]}


def test_merge_is_idempotent():
    """Test merge idempotence.

    Given 同一組 entries
    When 依序合併兩次
    Then 兩次得到結構相同的樹
    """
    entries = [
        ConfigEntry.root({"server": {"host": "localhost", "port": 8080}, "tags": ["a"]}),
        ConfigEntry.at_path(["server", "port"], 9090),
        ConfigEntry.at_path(["db"], {"host": "${server.host}"}),
    ]

    first = merge_entries(entries)
    second = merge_entries(entries)
    assert first == second

    # Re-applying the same entries onto the result changes nothing either
    assert merge_entries(entries, tree=first) == second


def test_later_entries_win():
    entries = [
        ConfigEntry.root({"a": 1, "b": {"c": 2}}),
        ConfigEntry.at_path(["b", "c"], 3),
        ConfigEntry.root({"a": 4}),
    ]
    assert merge_entries(entries) == {"a": 4, "b": {"c": 3}}


def test_deep_merge_returns_base():
    base = {"a": {"b": 1}}
    assert deep_merge(base, {"a": {"c": 2}}) is base
    assert base == {"a": {"b": 1, "c": 2}}


def test_deeply_nested_tables_are_merged():
    """Test merging trees nested deeper than the recursion limit.

    Given 巢狀層數超過直譯器遞迴上限的兩棵設置樹
    When 合併
    Then 最深處的鍵被合併，合併結果不與來源共用結構
    """
    depth = 3000
    base = merge_at_path({}, ["k"] * depth, {"old": 1})
    overlay = merge_at_path({}, ["k"] * depth, {"new": [2]})

    deep_merge(base, overlay)

    node, overlay_node = base, overlay
    for _ in range(depth):
        node, overlay_node = node["k"], overlay_node["k"]
    assert node == {"old": 1, "new": [2]}
    assert node["new"] is not overlay_node["new"]
