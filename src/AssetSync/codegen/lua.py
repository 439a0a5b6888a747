"""Render the codegen tree as a Lua module returning nested tables."""

from .lua_ast import (
    LuaBlock,
    LuaComment,
    LuaNumber,
    LuaString,
    LuaTable,
    ReturnStatement,
    TableEntry,
)
from .tree import CodegenFolder, CodegenLeaf, asset_uri, dpi_key

HEADER = "This file was @generated by AssetSync, do not edit it directly."


def _vector(x, y) -> LuaTable:
    return LuaTable([TableEntry("x", LuaNumber(x)), TableEntry("y", LuaNumber(y))])


def _input_value(inp):
    if inp.slice is None:
        return LuaString(asset_uri(inp))
    s = inp.slice
    return LuaTable([
        TableEntry("image", LuaString(asset_uri(inp))),
        TableEntry("offset", _vector(s.x, s.y)),
        TableEntry("size", _vector(s.width, s.height)),
    ])


def _leaf_value(leaf: CodegenLeaf):
    variants = leaf.sorted_variants()
    if len(variants) == 1:
        return _input_value(variants[0][1])
    return LuaTable([
        TableEntry(dpi_key(scale), _input_value(inp)) for scale, inp in variants
    ])


def _folder_table(folder: CodegenFolder) -> LuaTable:
    entries = []
    for name, node in folder.sorted_children():
        if isinstance(node, CodegenFolder):
            entries.append(TableEntry(name, _folder_table(node)))
        else:
            entries.append(TableEntry(name, _leaf_value(node)))
    return LuaTable(entries)


def render_lua(tree: CodegenFolder) -> str:
    """Return the Lua source for ``tree``."""
    return str(LuaBlock([
        LuaComment(HEADER),
        ReturnStatement(_folder_table(tree)),
    ]))
