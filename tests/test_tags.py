# Tests for scanning tags and skip ranges
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import unittest

from wikitextrewriter import Wikitext
from wikitextrewriter.parser import SkipRanges, scan_tags


class TagTests(unittest.TestCase):
    def parse(self, text: str, **kwargs):
        self.wt = Wikitext(text, **kwargs)
        return self.wt.parse_tags()

    def test_empty(self):
        self.assertEqual(self.parse(""), [])

    def test_no_tags(self):
        self.assertEqual(self.parse("a < b and c > d"), [])

    def test_simple(self):
        tags = self.parse("a<b>x</b>c")
        self.assertEqual(len(tags), 1)
        tag = tags[0]
        self.assertEqual(tag.name, "b")
        self.assertEqual(tag.start, "<b>")
        self.assertEqual(tag.content, "x")
        self.assertEqual(tag.end, "</b>")
        self.assertEqual(tag.start_index, 1)
        self.assertEqual(tag.end_index, 9)
        self.assertEqual(tag.nest_level, 0)
        self.assertFalse(tag.void)
        self.assertFalse(tag.unclosed)
        self.assertEqual(tag.text, "<b>x</b>")

    def test_nested(self):
        tags = self.parse("<div><span>a</span><i>b</i></div>")
        self.assertEqual([t.name for t in tags], ["div", "span", "i"])
        self.assertEqual([t.nest_level for t in tags], [0, 1, 1])

    def test_round_trip(self):
        text = ('x<div class="a">y<b>z</b><br>w<!-- c --></div>'
                "<ref name=\"r\" />end")
        for tag in self.parse(text):
            self.assertEqual(text[tag.start_index:tag.end_index], tag.text)

    def test_sort_order(self):
        tags = self.parse("<b><i>x</i></b>")
        self.assertEqual([t.name for t in tags], ["b", "i"])
        self.assertEqual(tags[0].start_index, 0)
        self.assertEqual(tags[0].end_index, 15)

    def test_case_insensitive_names(self):
        tags = self.parse("<DIV>x</div>")
        self.assertEqual(len(tags), 1)
        self.assertEqual(tags[0].name, "div")
        self.assertFalse(tags[0].unclosed)

    def test_unclosed(self):
        tags = self.parse("<div>text")
        self.assertEqual(len(tags), 1)
        tag = tags[0]
        self.assertEqual(tag.name, "div")
        self.assertTrue(tag.unclosed)
        self.assertEqual(tag.end, "</div>")
        self.assertEqual(tag.content, "text")
        self.assertEqual(tag.text, "<div>text")
        self.assertEqual(tag.end_index, 9)
        debugs = self.wt.to_return()["debugs"]
        self.assertEqual(len(debugs), 1)
        self.assertEqual(debugs[0]["called_from"], "parser/tags/unclosed")

    def test_unclosed_inner(self):
        tags = self.parse("<div><span>x</div>")
        self.assertEqual(len(tags), 2)
        div, span = tags
        self.assertEqual(div.name, "div")
        self.assertFalse(div.unclosed)
        self.assertEqual(div.text, "<div><span>x</div>")
        self.assertEqual(span.name, "span")
        self.assertTrue(span.unclosed)
        self.assertEqual(span.end, "</span>")
        self.assertEqual(span.content, "x")
        self.assertEqual(span.end_index, 12)
        self.assertEqual(span.nest_level, 1)

    def test_unclosed_at_end_levels(self):
        tags = self.parse("<div><span>x")
        self.assertEqual([(t.name, t.nest_level) for t in tags],
                         [("div", 0), ("span", 1)])
        self.assertTrue(all(t.unclosed for t in tags))

    def test_unclosed_comment(self):
        tags = self.parse("a<!-- b")
        self.assertEqual(len(tags), 1)
        self.assertEqual(tags[0].name, "!--")
        self.assertEqual(tags[0].end, "-->")
        self.assertEqual(tags[0].text, "<!-- b")

    def test_stray_end_tag(self):
        self.assertEqual(self.parse("x</div>y"), [])

    def test_void(self):
        tags = self.parse("a<br>b<hr/>c")
        self.assertEqual([t.name for t in tags], ["br", "hr"])
        for tag in tags:
            self.assertTrue(tag.void)
            self.assertIsNone(tag.content)
            self.assertEqual(tag.end, "")
        self.assertFalse(tags[0].self_closing)
        self.assertTrue(tags[1].self_closing)

    def test_br_end_tag(self):
        tags = self.parse("a</br>b</hr>c")
        self.assertEqual(len(tags), 1)
        self.assertEqual(tags[0].name, "br")
        self.assertEqual(tags[0].text, "</br>")
        self.assertTrue(tags[0].void)

    def test_self_closing_html(self):
        tags = self.parse("<span />x</span>")
        self.assertEqual(len(tags), 1)
        self.assertTrue(tags[0].self_closing)
        self.assertEqual(tags[0].content, "x")
        self.assertFalse(tags[0].unclosed)

    def test_self_closing_extension(self):
        tags = self.parse('a<ref name="x" />b<references/>')
        self.assertEqual([t.name for t in tags], ["ref", "references"])
        for tag in tags:
            self.assertFalse(tag.void)
            self.assertFalse(tag.unclosed)
            self.assertTrue(tag.self_closing)
            self.assertIsNone(tag.content)
        self.assertEqual(tags[0].text, '<ref name="x" />')

    def test_comment(self):
        tags = self.parse("a<!-- <b>x</b> -->c")
        self.assertEqual([t.name for t in tags], ["!--", "b"])
        self.assertFalse(tags[0].skip)
        self.assertTrue(tags[1].skip)
        self.assertEqual(tags[0].content, " <b>x</b> ")

    def test_name_predicate(self):
        self.parse("<b>x</b><i>y</i>")
        tags = self.wt.parse_tags(name_predicate=lambda x: x == "i")
        self.assertEqual([t.name for t in tags], ["i"])
        tags = self.wt.parse_tags(tag_predicate=lambda t: t.start_index > 0)
        self.assertEqual([t.name for t in tags], ["i"])

    def test_scan_without_context(self):
        tags = scan_tags(None, "<p>x")
        self.assertTrue(tags[0].unclosed)


class SkipRangeTests(unittest.TestCase):
    def test_contained_ranges_dropped(self):
        text = "<!--<nowiki>a</nowiki>-->b<pre>c</pre>"
        tags = scan_tags(None, text)
        ranges = SkipRanges(tags, ["!--", "nowiki", "pre"])
        self.assertEqual(ranges.ranges, [(0, 25), (26, 38)])

    def test_strict_containment(self):
        text = "<nowiki>{{a}}</nowiki>"
        is_skip = SkipRanges(scan_tags(None, text), ["nowiki"])
        self.assertTrue(is_skip(8, 13))
        self.assertFalse(is_skip(0, 22))
        self.assertFalse(is_skip(0, 13))

    def test_empty_skip_set(self):
        text = "<nowiki>{{a}}</nowiki>"
        is_skip = SkipRanges(scan_tags(None, text), [])
        self.assertFalse(is_skip)
        self.assertFalse(is_skip(8, 13))

    def test_predicate_from_document(self):
        wt = Wikitext("a<!-- b -->c")
        is_skip = wt.get_skip_predicate()
        self.assertTrue(is_skip(5, 7))
        self.assertFalse(is_skip(11, 12))
