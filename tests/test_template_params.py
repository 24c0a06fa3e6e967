# Tests for the template parameter object model
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import re
import unittest

from wikitextrewriter import (
    ParserFunction,
    Template,
    TemplateParam,
    TemplateParams,
    WikitextError,
    get_title_resolver,
)
from wikitextrewriter.title import NS_TEMPLATE


class TemplateParamsTests(unittest.TestCase):
    def test_unnamed_keys(self):
        params = TemplateParams([("", "a"), ("", "b"), ("x", " y ")])
        self.assertEqual(params.keys(), ["1", "2", "x"])
        self.assertTrue(params.get("1").unnamed)
        self.assertFalse(params.get("x").unnamed)
        self.assertEqual(params.get("x").value, "y")
        self.assertEqual(len(params), 3)
        self.assertIn("2", params)

    def test_unnamed_value_not_trimmed(self):
        params = TemplateParams([("", " a ")])
        self.assertEqual(params.get("1").value, " a ")

    def test_find_numeric_key(self):
        params = TemplateParams([("1", "x"), ("3", "y")])
        self.assertEqual(params.find_numeric_key(), "2")
        params.add("", "z")
        self.assertEqual(params.find_numeric_key(), "4")

    def test_add(self):
        params = TemplateParams([("", "a"), ("", "b"), ("x", "y")])
        self.assertTrue(params.add("1", "c"))
        self.assertEqual(params.keys(), ["2", "x", "1"])
        self.assertEqual(params.get("1").value, "c")
        self.assertFalse(params.get("1").unnamed)
        self.assertFalse(params.add("x", "z", overwrite=False))
        self.assertEqual(params.get("x").value, "y")

    def test_set_keeps_position(self):
        params = TemplateParams([("a", "1"), ("b", "2"), ("c", "3")])
        self.assertTrue(params.set("b", "x"))
        self.assertEqual(params.keys(), ["a", "b", "c"])
        self.assertEqual(params.get("b").value, "x")
        params.set("d", "4")
        self.assertEqual(params.keys(), ["a", "b", "c", "d"])

    def test_insert(self):
        params = TemplateParams([("a", "1"), ("b", "2")])
        params.insert("s", "x", position="start")
        params.insert("k", "x", after="a")
        params.insert("j", "x", before="b")
        params.insert("m", "x", before="missing")
        self.assertEqual(params.keys(), ["s", "a", "k", "j", "b", "m"])
        with self.assertRaises(ValueError):
            params.insert("z", "x", position="middle")

    def test_get_and_delete(self):
        params = TemplateParams([("a", "1")])
        self.assertIsNone(params.get("nope"))
        self.assertTrue(params.delete("a"))
        self.assertFalse(params.delete("a"))
        self.assertEqual(len(params), 0)

    def test_has(self):
        params = TemplateParams([("", "a"), ("", "b"), ("x", "y")])
        self.assertTrue(params.has("x"))
        self.assertTrue(params.has("x", "y"))
        self.assertFalse(params.has("x", "z"))
        self.assertTrue(params.has("x", re.compile(r"^y$")))
        self.assertTrue(params.has(re.compile(r"^\d+$"), "b"))
        self.assertTrue(params.has(lambda k, p: p.value == "b"))
        self.assertFalse(params.has(lambda k, p: p.value == "c"))
        self.assertFalse(params.has(""))

    def test_duplicates(self):
        params = TemplateParams([("a", "1"), ("a", "2")])
        self.assertEqual(len(params), 1)
        param = params.get("a")
        self.assertEqual(param.value, "2")
        self.assertEqual(param.duplicates, [TemplateParam("a", "1", False)])

    def test_hierarchy_override(self):
        params = TemplateParams([("1", "a"), ("user", "b")],
                                [["1", "user", "User"]])
        self.assertEqual(params.keys(), ["user"])
        self.assertIsNone(params.get("1"))
        self.assertEqual(params.get("1", resolve_hierarchy=True).value, "b")
        self.assertEqual(params.get("user").duplicates,
                         [TemplateParam("1", "a", False)])
        self.assertEqual(params.check_key_override("1"),
                         ("overridden", "user"))
        self.assertEqual(params.check_key_override("User"),
                         ("overrides", "user"))
        self.assertIsNone(params.check_key_override("other"))
        # A lower-priority key is ignored
        self.assertFalse(params.add("1", "c"))
        self.assertEqual(params.keys(), ["user"])
        self.assertTrue(params.add("User", "d"))
        self.assertEqual(params.keys(), ["User"])

    def test_hierarchy_ignored(self):
        params = TemplateParams([("User", "a"), ("1", "b")],
                                [["1", "user", "User"]])
        self.assertEqual(params.keys(), ["User"])
        self.assertEqual(params.get("User").duplicates,
                         [TemplateParam("1", "b", False)])

    def test_delete_hierarchy(self):
        params = TemplateParams([("user", "b")], [["1", "user"]])
        self.assertFalse(params.delete("1"))
        self.assertTrue(params.delete("1", resolve_hierarchy=True))
        self.assertEqual(len(params), 0)

    def test_stringify_params(self):
        params = TemplateParams([("", "a"), ("", "b=c"), ("x", "y")])
        self.assertEqual(params.stringify_params(), "|a|2=b=c|x=y")
        self.assertEqual(params.stringify_params(suppress_numeric_keys=False),
                         "|1=a|2=b=c|x=y")

    def test_stringify_gap_in_positions(self):
        params = TemplateParams([("", "a"), ("", "b")])
        params.delete("1")
        self.assertEqual(params.stringify_params(), "|2=b")

    def test_stringify_sorted(self):
        params = TemplateParams([("b", "1"), ("a", "2")])
        self.assertEqual(params.stringify_params(sort_key=lambda p: p.key),
                         "|a=2|b=1")

    def test_stringify_line_breaks(self):
        params = TemplateParams([("", "a"), ("", "b")])
        self.assertEqual(params.stringify_params(br_param=lambda p: True),
                         "|a\n|b\n")


class TemplateTests(unittest.TestCase):
    def setUp(self):
        self.resolver = get_title_resolver()
        self.title = self.resolver.new_from_text("foo", NS_TEMPLATE)

    def test_stringify(self):
        t = Template(self.title, [("", "a"), ("k", "v")])
        self.assertEqual(t.stringify(), "{{Foo|a|k=v}}")
        self.assertEqual(str(t), "{{Foo|a|k=v}}")
        self.assertEqual(t.stringify(prepend="subst:"),
                         "{{subst:Foo|a|k=v}}")
        self.assertEqual(t.stringify(append="<!--x-->"),
                         "{{Foo<!--x-->|a|k=v}}")
        self.assertEqual(t.stringify(br_title=True), "{{Foo\n|a|k=v}}")
        self.assertEqual(t.stringify(br_param=lambda p: p.key == "1"),
                         "{{Foo|a\n|k=v}}")

    def test_main_namespace(self):
        t = Template(self.resolver.new_from_text("Bar"))
        self.assertEqual(t.stringify(), "{{:Bar}}")
        self.assertEqual(t.stringify(prepend="subst:"), "{{subst:Bar}}")

    def test_other_namespace(self):
        t = Template(self.resolver.new_from_text("User:X/y"))
        self.assertEqual(t.stringify(), "{{User:X/y}}")

    def test_raw_title(self):
        t = Template(self.title, raw_title=(" ", "\n"))
        self.assertEqual(t.stringify(), "{{Foo}}")
        self.assertEqual(t.stringify(raw_title=True), "{{ Foo\n}}")

    def test_hierarchies(self):
        t = Template(self.title, [("1", "a"), ("user", "b")],
                     hierarchies=[["1", "user"]])
        self.assertEqual(t.stringify(), "{{Foo|user=b}}")

    def test_invalid_titles(self):
        with self.assertRaises(TypeError):
            Template("Foo")
        with self.assertRaises(WikitextError):
            Template(self.resolver.new_from_text("de:Foo", NS_TEMPLATE))
        with self.assertRaises(WikitextError):
            Template(self.resolver.new_from_text("#frag"))

    def test_set_title(self):
        t = Template(self.title, [("", "a")])
        self.assertFalse(t.set_title("Bar"))
        self.assertTrue(
            t.set_title(self.resolver.new_from_text("bar", NS_TEMPLATE)))
        self.assertEqual(t.stringify(), "{{Bar|a}}")


class ParserFunctionTests(unittest.TestCase):
    def test_stringify(self):
        pf = ParserFunction("#if:", ["x", "yes", "no"])
        self.assertEqual(str(pf), "{{#if:x|yes|no}}")
        self.assertEqual(pf.stringify(prepend="safesubst:"),
                         "{{safesubst:#if:x|yes|no}}")
        self.assertEqual(pf.stringify(br_arg=lambda a, i: i > 0),
                         "{{#if:x|yes\n|no\n}}")

    def test_canonical_hook(self):
        pf = ParserFunction("#IF:", ["x"])
        self.assertEqual(pf.hook, "#IF:")
        self.assertEqual(pf.canonical_hook, "#if:")
        self.assertEqual(pf.stringify(), "{{#IF:x}}")
        self.assertEqual(pf.stringify(use_canonical=True), "{{#if:x}}")

    def test_raw_prefix(self):
        pf = ParserFunction("#if:", ["x"], raw_prefix=" ")
        self.assertEqual(pf.stringify(), "{{#if:x}}")
        self.assertEqual(pf.stringify(raw_hook=True), "{{ #if:x}}")

    def test_no_hash(self):
        self.assertEqual(str(ParserFunction("lc:", ["FOO"])), "{{lc:FOO}}")

    def test_invalid_hook(self):
        with self.assertRaises(WikitextError):
            ParserFunction("foo:")
        pf = ParserFunction("#if:")
        self.assertFalse(pf.set_hook("nope"))
        self.assertTrue(pf.set_hook("#ifeq:"))
        self.assertEqual(pf.canonical_hook, "#ifeq:")

    def test_args(self):
        pf = ParserFunction("#if:", ["x", "yes"])
        pf.add_arg("no")
        self.assertEqual(pf.args, ["x", "yes", "no"])
        self.assertTrue(pf.set_arg(1, "ja"))
        self.assertFalse(pf.set_arg(0, "z", overwrite=False))
        self.assertFalse(pf.set_arg(5, "c"))
        self.assertTrue(pf.set_arg(5, "c", if_exists=False))
        self.assertEqual(pf.args, ["x", "ja", "no", "c"])
        self.assertEqual(pf.get_arg(1), "ja")
        self.assertIsNone(pf.get_arg(10))
        self.assertTrue(pf.has_arg(0))
        self.assertTrue(pf.has_arg(0, "x"))
        self.assertTrue(pf.has_arg(2, re.compile(r"^n")))
        self.assertTrue(pf.has_arg(lambda i, v: v == "c"))
        self.assertFalse(pf.has_arg(9))
        self.assertTrue(pf.delete_arg(0))
        self.assertFalse(pf.delete_arg(9))
        self.assertEqual(pf.args, ["ja", "no", "c"])
