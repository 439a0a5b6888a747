"""Tests for the Lua and TypeScript binding renderers."""

import os

import pytest

from AssetSync.codegen import build_codegen_tree, perform_codegen, render_lua, render_typescript
from AssetSync.codegen.lua import HEADER
from AssetSync.core.asset_id import LocalAssetId, RemoteAssetId
from AssetSync.core.records import ImageSlice

from support import make_input


def _tree():
    return build_codegen_tree([
        make_input("icons/play.png", asset_id=RemoteAssetId(1)),
        make_input("icons/play@2x.png", dpi_scale=200, asset_id=RemoteAssetId(2),
                   path_without_dpi_scale="icons/play.png"),
        make_input("background.png", asset_id=RemoteAssetId(3)),
    ])


def _sliced_tree():
    return build_codegen_tree([
        make_input("sheet.png", asset_id=RemoteAssetId(5), image_slice=ImageSlice(0, 4, 16, 8)),
    ])


def test_lua_nested_tables_and_dpi_keys():
    assert render_lua(_tree()) == (
        f"-- {HEADER}\n"
        "return {\n"
        '\tbackground = "remoteasset://3",\n'
        "\ticons = {\n"
        "\t\tplay = {\n"
        '\t\t\t[1] = "remoteasset://1",\n'
        '\t\t\t[2] = "remoteasset://2",\n'
        "\t\t},\n"
        "\t},\n"
        "}\n"
    )


def test_typescript_nested_types_and_dpi_keys():
    assert render_typescript(_tree()) == (
        f"// {HEADER}\n"
        "declare const assets: {\n"
        '\treadonly background: "remoteasset://3";\n'
        "\treadonly icons: {\n"
        "\t\treadonly play: {\n"
        '\t\t\treadonly ["1"]: "remoteasset://1";\n'
        '\t\t\treadonly ["2"]: "remoteasset://2";\n'
        "\t\t};\n"
        "\t};\n"
        "};\n"
        "export = assets;\n"
    )


def test_lua_sliced_input():
    assert render_lua(_sliced_tree()) == (
        f"-- {HEADER}\n"
        "return {\n"
        "\tsheet = {\n"
        '\t\timage = "remoteasset://5",\n'
        "\t\toffset = {\n"
        "\t\t\tx = 0,\n"
        "\t\t\ty = 4,\n"
        "\t\t},\n"
        "\t\tsize = {\n"
        "\t\t\tx = 16,\n"
        "\t\t\ty = 8,\n"
        "\t\t},\n"
        "\t},\n"
        "}\n"
    )


def test_typescript_sliced_input():
    assert render_typescript(_sliced_tree()) == (
        f"// {HEADER}\n"
        "declare const assets: {\n"
        "\treadonly sheet: {\n"
        '\t\treadonly image: "remoteasset://5";\n'
        "\t\treadonly offset: {\n"
        "\t\t\treadonly x: 0;\n"
        "\t\t\treadonly y: 4;\n"
        "\t\t};\n"
        "\t\treadonly size: {\n"
        "\t\t\treadonly x: 16;\n"
        "\t\t\treadonly y: 8;\n"
        "\t\t};\n"
        "\t};\n"
        "};\n"
        "export = assets;\n"
    )


def test_awkward_names_are_quoted():
    tree = build_codegen_tree([
        make_input("end.png", asset_id=RemoteAssetId(1)),
        make_input("my-icon.png", asset_id=RemoteAssetId(2)),
    ])
    lua = render_lua(tree)
    assert '["end"] = "remoteasset://1",' in lua
    assert '["my-icon"] = "remoteasset://2",' in lua
    ts = render_typescript(tree)
    assert "readonly end: " in ts
    assert 'readonly ["my-icon"]: ' in ts


def test_local_ids_rendered():
    tree = build_codegen_tree([make_input("a.png", asset_id=LocalAssetId(".assetsync/a.png"))])
    assert 'a = "localasset://.assetsync/a.png",' in render_lua(tree)


def test_fractional_dpi_key():
    tree = build_codegen_tree([
        make_input("a.png", asset_id=RemoteAssetId(1)),
        make_input("a@1.5x.png", dpi_scale=150, path_without_dpi_scale="a.png",
                   asset_id=RemoteAssetId(2)),
    ])
    assert '[1.5] = "remoteasset://2",' in render_lua(tree)
    assert 'readonly ["1.5"]: "remoteasset://2";' in render_typescript(tree)


def test_empty_tree():
    tree = build_codegen_tree([])
    assert render_lua(tree) == f"-- {HEADER}\nreturn {{}}\n"
    assert render_typescript(tree).splitlines()[1] == "declare const assets: {};"


def test_perform_codegen_writes_configured_files(default_config):
    default_config.codegen.lua_path = "gen/assets.lua"
    default_config.codegen.typescript_path = "gen/assets.d.ts"
    inputs = [make_input("a.png", asset_id=RemoteAssetId(7))]

    written = perform_codegen(default_config, inputs)

    lua_path = os.path.join(default_config.project_dir, "gen", "assets.lua")
    ts_path = os.path.join(default_config.project_dir, "gen", "assets.d.ts")
    assert written == [lua_path, ts_path]
    with open(lua_path, encoding="utf-8") as f:
        assert 'a = "remoteasset://7",' in f.read()
    with open(ts_path, encoding="utf-8") as f:
        assert 'readonly a: "remoteasset://7";' in f.read()
    assert not [n for n in os.listdir(os.path.dirname(lua_path)) if ".tmp." in n]


def test_perform_codegen_without_outputs_does_nothing(default_config):
    # An input that could not be placed in a tree is never looked at.
    assert perform_codegen(default_config, [make_input("../bad.png")]) == []


def test_perform_codegen_propagates_tree_errors(default_config):
    from AssetSync.codegen import CodegenTreeError
    default_config.codegen.lua_path = "assets.lua"
    with pytest.raises(CodegenTreeError):
        perform_codegen(default_config, [make_input("a.png")])
    assert not os.path.exists(os.path.join(default_config.project_dir, "assets.lua"))
