# Tests for recognizing parser function hooks
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import unittest

from wikitextrewriter import HookMatch, HookTable, get_hook_table


class HookTableTests(unittest.TestCase):
    def setUp(self):
        self.hooks = get_hook_table("en")

    def test_hash_function(self):
        self.assertEqual(self.hooks.verify("#if: x"),
                         HookMatch("#if:", "#if:"))
        self.assertEqual(self.hooks.verify("#IF:x"),
                         HookMatch("#if:", "#IF:"))
        self.assertEqual(self.hooks.verify("  #invoke:Mod|f"),
                         HookMatch("#invoke:", "#invoke:"))

    def test_hash_required(self):
        self.assertIsNone(self.hooks.verify("if:x"))
        self.assertIsNone(self.hooks.verify("invoke:Mod"))

    def test_no_hash_function(self):
        self.assertEqual(self.hooks.verify("lc:FOO"),
                         HookMatch("lc:", "lc:"))
        self.assertEqual(self.hooks.verify("LC:FOO"),
                         HookMatch("lc:", "LC:"))
        self.assertEqual(self.hooks.verify("int:lang"),
                         HookMatch("int:", "int:"))
        self.assertIsNone(self.hooks.verify("#lc:FOO"))

    def test_case_sensitive(self):
        self.assertEqual(self.hooks.verify("PAGENAME:Foo"),
                         HookMatch("pagename:", "PAGENAME:"))
        self.assertEqual(self.hooks.verify("pAGENAME:Foo"),
                         HookMatch("pagename:", "pAGENAME:"))
        self.assertIsNone(self.hooks.verify("PageName:Foo"))

    def test_not_a_hook(self):
        for text in ["", "foo", "foo:bar", "#if", "# if:x", "#foo:x"]:
            self.assertIsNone(self.hooks.verify(text), text)

    def test_contains(self):
        self.assertIn("#if:", self.hooks)
        self.assertIn("lc:", self.hooks)
        self.assertNotIn("#lc:", self.hooks)

    def test_custom_table(self):
        hooks = HookTable([
            {"name": "foo", "aliases": ["FOO", "__FOO__"]},
            {"name": "bar", "aliases": ["BAR"], "case-sensitive": True},
        ])
        self.assertEqual(hooks.verify("#FOO:x"), HookMatch("#foo:", "#FOO:"))
        self.assertIsNone(hooks.verify("#__FOO__:x"))
        self.assertEqual(hooks.verify("#bAR:x"), HookMatch("#bar:", "#bAR:"))
        self.assertIsNone(hooks.verify("#BaR:x"))

    def test_shared_table(self):
        self.assertIs(get_hook_table("en"), get_hook_table("en"))
