# Some definitions shared by the tag, section, parameter, template and
# wikilink parsers
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import re

# Names of tags in which nothing else is parsed.  "!--" is the synthetic
# name used for <!-- comments -->.
DEFAULT_SKIP_TAGS: tuple[str, ...] = (
    "!--",
    "nowiki",
    "pre",
    "syntaxhighlight",
    "source",
    "math",
)

# HTML void elements.  <source> is not included because it is a paired
# parser extension tag in wikitext.
VOID_TAGS: frozenset[str] = frozenset(
    [
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "param",
        "track",
        "wbr",
    ]
)

# Tags allowed in wikitext.  See https://www.mediawiki.org/wiki/Help:HTML_in_wikitext
NATIVE_TAGS: frozenset[str] = frozenset(
    [
        "abbr", "b", "bdi", "bdo", "big", "blockquote", "br", "caption",
        "cite", "code", "data", "dd", "del", "dfn", "div", "dl", "dt", "em",
        "h1", "h2", "h3", "h4", "h5", "h6", "hr", "i", "ins", "kbd", "li",
        "link", "mark", "meta", "ol", "p", "q", "rp", "rt", "ruby", "s",
        "samp", "small", "span", "strong", "sub", "sup", "table", "td", "th",
        "time", "tr", "u", "ul", "var", "wbr",
        # Deprecated HTML tags
        "center", "font", "rb", "rtc", "strike", "tt",
        # Comments
        "!--",
    ]
)

# Parser extension tags.  These are "pseudo-void": a self-closing
# <ref name="x" /> is closed, unlike a self-closing <span />.
# See https://www.mediawiki.org/wiki/Parser_extension_tags
MEDIAWIKI_TAGS: frozenset[str] = frozenset(
    [
        "categorytree", "ce", "chem", "charinsert", "gallery", "graph",
        "hiero", "imagemap", "indicator", "inputbox", "langconvert",
        "mapframe", "maplink", "math", "nowiki", "poem", "pre", "ref",
        "references", "score", "section", "source", "syntaxhighlight",
        "templatedata", "timeline",
        # Added by extensions
        "dynamicpagelist", "languages", "rss", "talkpage", "thread", "html",
        # Inclusion control
        "includeonly", "noinclude", "onlyinclude",
        # Extension:Translate
        "translate", "tvar",
    ]
)

VALID_TAGS: frozenset[str] = NATIVE_TAGS | MEDIAWIKI_TAGS

# Upper bound for the nesting depth of templates, parameters and
# wikilinks.  Deeper input raises NestingDepthError.
MAX_NEST_DEPTH: int = 100

# Unicode bidi marks removed from titles by MediaWiki
BIDI_RE: re.Pattern[str] = re.compile(r"[\u200e\u200f\u202a-\u202e]+")

_comment_re: re.Pattern[str] = re.compile(r"(?s)<!--.*?-->")


def remove_comments(text: str) -> str:
    """Removes all <!-- comments --> from text."""
    return _comment_re.sub("", text)


def clean_title(text: str, trim: bool = True) -> str:
    """Removes bidi marks from a title, and trims it unless ``trim`` is
    False."""
    text = BIDI_RE.sub("", text)
    return text.strip() if trim else text


def normalize_tag_names(names) -> list[str]:
    """Lowercases tag names and drops duplicates and non-strings, keeping
    the first occurrence of each name."""
    ret: list[str] = []
    for name in names:
        if not isinstance(name, str):
            continue
        name = name.lower()
        if name not in ret:
            ret.append(name)
    return ret
