# Tests for building index maps of recognized spans
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import unittest

from wikitextrewriter import SpanKind, Wikitext
from wikitextrewriter.indexmap import gallery_ranges


class IndexMapTests(unittest.TestCase):
    def test_skip_tags_only(self):
        wt = Wikitext("a<!--x-->{{{1|y}}}<b>z</b>")
        index_map = wt.get_index_map()
        self.assertEqual(list(index_map), [1])
        entry = index_map[1]
        self.assertEqual(entry.kind, SpanKind.TAG)
        self.assertEqual(entry.text, "<!--x-->")
        self.assertEqual(entry.inner, (5, 6))

    def test_parameters_and_wikilinks(self):
        wt = Wikitext("a<!--x-->{{{1|y}}}[[b]][[cd|e]]")
        index_map = wt.get_index_map(parameters=True, wikilinks=True)
        self.assertEqual(sorted(index_map), [1, 9, 18, 23])
        param = index_map[9]
        self.assertEqual(param.kind, SpanKind.PARAMETER)
        self.assertEqual(param.text, "{{{1|y}}}")
        self.assertEqual(param.inner, (14, 15))
        link = index_map[18]
        self.assertEqual(link.kind, SpanKind.WIKILINK)
        self.assertIsNone(link.inner)
        self.assertEqual(index_map[23].inner, (25, 29))

    def test_parameter_without_default(self):
        wt = Wikitext("{{{1}}}")
        self.assertIsNone(wt.get_index_map(parameters=True)[0].inner)

    def test_templates(self):
        wt = Wikitext("{{foo|bar}} {{#if:x|y}} {{baz}}")
        index_map = wt.get_index_map(templates=True)
        self.assertEqual(sorted(index_map), [0, 12, 24])
        self.assertEqual(index_map[0].kind, SpanKind.TEMPLATE)
        self.assertEqual(index_map[0].inner, (6, 9))
        # Everything after the function hook
        self.assertEqual(index_map[12].inner, (18, 21))
        self.assertIsNone(index_map[24].inner)

    def test_gallery(self):
        text = "<gallery>\nA.png|cap\n</gallery><gallery>B.png</gallery>"
        wt = Wikitext(text)
        self.assertEqual(wt.get_index_map(), {})
        index_map = wt.get_index_map(gallery=True)
        self.assertEqual(list(index_map), [0])
        self.assertEqual(index_map[0].kind, SpanKind.GALLERY)
        self.assertEqual(gallery_ranges(index_map), [(0, 30)])

    def test_new_map_each_call(self):
        wt = Wikitext("<!--x-->")
        self.assertIsNot(wt.get_index_map(), wt.get_index_map())
