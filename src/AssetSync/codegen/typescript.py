"""Render the codegen tree as a TypeScript declaration file.

The declaration mirrors the Lua module: ``declare const assets: {...};``
followed by ``export = assets;`` so ``import assets = require(...)`` sees
the same shape at compile time.
"""

from .tree import CodegenFolder, CodegenLeaf, asset_uri, dpi_key
from .ts_ast import (
    Comment,
    ExportAssignment,
    Identifier,
    Modifier,
    NumericLiteral,
    PropertySignature,
    StatementList,
    StringLiteral,
    TypeLiteral,
    VariableDeclaration,
    format_number,
)

HEADER = "This file was @generated by AssetSync, do not edit it directly."
EXPORT_NAME = "assets"

_READONLY = (Modifier.READONLY,)


def _vector(x, y) -> TypeLiteral:
    return TypeLiteral([
        PropertySignature("x", NumericLiteral(x), _READONLY),
        PropertySignature("y", NumericLiteral(y), _READONLY),
    ])


def _input_type(inp):
    if inp.slice is None:
        return StringLiteral(asset_uri(inp))
    s = inp.slice
    return TypeLiteral([
        PropertySignature("image", StringLiteral(asset_uri(inp)), _READONLY),
        PropertySignature("offset", _vector(s.x, s.y), _READONLY),
        PropertySignature("size", _vector(s.width, s.height), _READONLY),
    ])


def _leaf_type(leaf: CodegenLeaf):
    variants = leaf.sorted_variants()
    if len(variants) == 1:
        return _input_type(variants[0][1])
    return TypeLiteral([
        PropertySignature(format_number(dpi_key(scale)), _input_type(inp), _READONLY)
        for scale, inp in variants
    ])


def _folder_type(folder: CodegenFolder) -> TypeLiteral:
    members = []
    for name, node in folder.sorted_children():
        if isinstance(node, CodegenFolder):
            members.append(PropertySignature(name, _folder_type(node), _READONLY))
        else:
            members.append(PropertySignature(name, _leaf_type(node), _READONLY))
    return TypeLiteral(members)


def render_typescript(tree: CodegenFolder) -> str:
    """Return the ``.d.ts`` source for ``tree``."""
    return str(StatementList([
        Comment(HEADER),
        VariableDeclaration(
            EXPORT_NAME,
            type=_folder_type(tree),
            modifiers=(Modifier.DECLARE,),
        ),
        ExportAssignment(Identifier(EXPORT_NAME)),
    ]))
