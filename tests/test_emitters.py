"""Tests for the code stream and the TypeScript and Lua ASTs."""

import unittest

from AssetSync.codegen.lua_ast import (
    LuaBlock,
    LuaComment,
    LuaNumber,
    LuaString,
    LuaTable,
    ReturnStatement,
    TableEntry,
    is_lua_identifier,
    quote_lua_string,
)
from AssetSync.codegen.stream import CodeStream
from AssetSync.codegen.ts_ast import (
    Comment,
    ExportAssignment,
    FunctionType,
    Identifier,
    InterfaceDeclaration,
    Modifier,
    NumericLiteral,
    Parameter,
    PropertySignature,
    StatementList,
    StringLiteral,
    TemplateLiteral,
    TemplateSpan,
    TypeAliasDeclaration,
    TypeLiteral,
    UnionType,
    VariableDeclaration,
)


class TestCodeStream(unittest.TestCase):
    def test_multiline_write_indents_each_line(self):
        out = CodeStream()
        out.indent()
        out.write("a\nb")
        self.assertEqual(out.getvalue(), "\ta\n\tb")

    def test_empty_lines_not_indented(self):
        out = CodeStream()
        out.indent()
        out.write("a\n\nb\n")
        self.assertEqual(out.getvalue(), "\ta\n\n\tb\n")

    def test_indent_once_per_line(self):
        out = CodeStream()
        out.indent()
        out.indent()
        out.write("a")
        out.write("b")
        out.writeln()
        out.write("c")
        self.assertEqual(out.getvalue(), "\t\tab\n\t\tc")
        self.assertFalse(out.is_start_of_line)

    def test_unindent_below_zero_raises(self):
        with self.assertRaises(ValueError):
            CodeStream().unindent()

    def test_custom_indent(self):
        out = CodeStream(indent="  ")
        out.indent()
        out.writeln("x")
        self.assertEqual(out.getvalue(), "  x\n")


class TestTypeScriptAst(unittest.TestCase):
    def test_property_names(self):
        self.assertEqual(str(PropertySignature("name", Identifier("string"))), "name: string;\n")
        self.assertEqual(
            str(PropertySignature("my-name", Identifier("string"))), '["my-name"]: string;\n'
        )
        self.assertEqual(str(PropertySignature("2x", Identifier("T"))), '["2x"]: T;\n')
        self.assertEqual(str(PropertySignature("_x", Identifier("T"))), '["_x"]: T;\n')

    def test_readonly_modifier(self):
        prop = PropertySignature("a", NumericLiteral(1), (Modifier.READONLY,))
        self.assertEqual(str(prop), "readonly a: 1;\n")

    def test_literals(self):
        self.assertEqual(str(StringLiteral('say "hi"')), '"say \\"hi\\""')
        self.assertEqual(str(NumericLiteral(2.0)), "2")
        self.assertEqual(str(NumericLiteral(1.5)), "1.5")

    def test_nested_type_literal_indentation(self):
        literal = TypeLiteral([
            PropertySignature("outer", TypeLiteral([PropertySignature("inner", NumericLiteral(1))])),
        ])
        self.assertEqual(str(literal), "{\n\touter: {\n\t\tinner: 1;\n\t};\n}")

    def test_empty_type_literal(self):
        self.assertEqual(str(TypeLiteral()), "{}")

    def test_function_type(self):
        func = FunctionType(
            [Parameter("a", Identifier("number")), Parameter("b", Identifier("string"))],
            Identifier("void"),
        )
        self.assertEqual(str(func), "(a: number, b: string) => void")
        self.assertEqual(str(FunctionType([], Identifier("void"))), "() => void")

    def test_template_literal(self):
        self.assertEqual(
            str(TemplateLiteral("remoteasset://", [TemplateSpan(Identifier("number"))])),
            "`remoteasset://${number}`",
        )
        self.assertEqual(
            str(TemplateLiteral("a", [TemplateSpan(Identifier("x"), "b"),
                                      TemplateSpan(Identifier("y"), "c")])),
            "`a${x}b${y}c`",
        )
        self.assertEqual(str(TemplateLiteral("plain")), "`plain`")

    def test_union_type_alias(self):
        alias = TypeAliasDeclaration("AssetId", UnionType([
            TemplateLiteral("remoteasset://", [TemplateSpan(Identifier("number"))]),
            TemplateLiteral("localasset://", [TemplateSpan(Identifier("string"))]),
        ]), (Modifier.EXPORT,))
        self.assertEqual(
            str(alias),
            "export type AssetId = `remoteasset://${number}` | `localasset://${string}`;\n",
        )

    def test_empty_union_rejected(self):
        with self.assertRaises(ValueError):
            str(UnionType([]))

    def test_variable_declaration(self):
        decl = VariableDeclaration("x", Identifier("number"), NumericLiteral(5), (Modifier.EXPORT,))
        self.assertEqual(str(decl), "export const x: number = 5;\n")
        self.assertEqual(
            str(VariableDeclaration("y", modifiers=(Modifier.DECLARE,))), "declare const y;\n"
        )

    def test_interface(self):
        iface = InterfaceDeclaration(
            "Foo", [PropertySignature("a", Identifier("string"))], (Modifier.EXPORT,)
        )
        self.assertEqual(str(iface), "export interface Foo {\n\ta: string;\n}\n")

    def test_statements_and_comments(self):
        statements = StatementList([
            Comment("hi"),
            Comment(" block ", multiline=True),
            ExportAssignment(Identifier("assets")),
        ])
        self.assertEqual(str(statements), "// hi\n/* block */\nexport = assets;\n")


class TestLuaAst(unittest.TestCase):
    def test_quote_lua_string(self):
        self.assertEqual(quote_lua_string('a"b\n'), '"a\\"b\\n"')
        self.assertEqual(quote_lua_string("\x01"), '"\\001"')
        self.assertEqual(quote_lua_string("back\\slash"), '"back\\\\slash"')

    def test_identifiers(self):
        self.assertTrue(is_lua_identifier("icon_2"))
        self.assertFalse(is_lua_identifier("end"))
        self.assertFalse(is_lua_identifier("2x"))
        self.assertFalse(is_lua_identifier("my-icon"))

    def test_table_keys(self):
        table = LuaTable([
            TableEntry("name", LuaString("a")),
            TableEntry("end", LuaString("b")),
            TableEntry("my-key", LuaString("c")),
            TableEntry(2, LuaNumber(1)),
            TableEntry(1.5, LuaNumber(2)),
            TableEntry(None, LuaNumber(3)),
        ])
        self.assertEqual(
            str(table),
            '{\n\tname = "a",\n\t["end"] = "b",\n\t["my-key"] = "c",\n'
            '\t[2] = 1,\n\t[1.5] = 2,\n\t3,\n}',
        )

    def test_nested_tables(self):
        table = LuaTable([TableEntry("a", LuaTable([TableEntry("b", LuaNumber(1))]))])
        self.assertEqual(str(table), "{\n\ta = {\n\t\tb = 1,\n\t},\n}")

    def test_empty_table(self):
        self.assertEqual(str(LuaTable()), "{}")

    def test_block(self):
        block = LuaBlock([LuaComment("a\n\nb"), ReturnStatement(LuaNumber(3))])
        self.assertEqual(str(block), "-- a\n--\n-- b\nreturn 3\n")


if __name__ == "__main__":
    unittest.main(verbosity=2)
