# Offset-keyed table of already recognized spans (skip tags, parameters,
# wikilinks and templates).  The template and wikilink scanners use it to
# jump over a whole span in one step and to re-scan only its interior.
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import re
import enum

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .parser import Parameter, Tag
    from .templates import TemplateNode
    from .wikilinks import FuzzyWikilink


@enum.unique
class SpanKind(enum.Enum):
    """Kinds of spans stored in an index map."""

    TAG = enum.auto()
    # <gallery> with pipes in its content.  Only used to tell the template
    # scanner that those pipes do not separate template arguments.
    GALLERY = enum.auto()
    PARAMETER = enum.auto()
    WIKILINK = enum.auto()
    TEMPLATE = enum.auto()


@dataclass(frozen=True)
class IndexMapEntry:
    """A recognized span.  ``inner`` is the (start, end) range inside the
    span that may hold further nested constructs, or None."""

    text: str
    kind: SpanKind
    inner: Optional[tuple[int, int]] = None

    def __repr__(self) -> str:
        return "IndexMapEntry({}, {!r}, {})".format(
            self.kind.name, self.text, self.inner)


IndexMap = dict[int, IndexMapEntry]

# Everything after the pipe of {{{key|value}}}
_param_inner_re = re.compile(r"^(\{{3}[^|}]*\|)(.+)\}{3}$", re.DOTALL)


def add_tags(
    index_map: IndexMap,
    tags: Iterable["Tag"],
    skip_tags: Iterable[str],
    gallery: bool = False,
) -> None:
    """Adds the tags named in ``skip_tags`` to the index map.  If
    ``gallery`` is True, <gallery> tags whose content has pipes are added
    too."""
    names = set(skip_tags)
    for tag in tags:
        if tag.name in names:
            kind = SpanKind.TAG
        elif (gallery and tag.name == "gallery" and tag.content and
              "|" in tag.content):
            kind = SpanKind.GALLERY
        else:
            continue
        inner = None
        if tag.content is not None:
            start = tag.start_index + len(tag.start)
            inner = (start, start + len(tag.content))
        index_map[tag.start_index] = IndexMapEntry(tag.text, kind, inner)


def add_parameters(index_map: IndexMap,
                   params: Iterable["Parameter"]) -> None:
    for param in params:
        m = _param_inner_re.match(param.text)
        inner = None
        if m:
            start = param.start_index + len(m.group(1))
            inner = (start, start + len(m.group(2)))
        index_map[param.start_index] = IndexMapEntry(
            param.text, SpanKind.PARAMETER, inner)


def add_wikilinks(index_map: IndexMap,
                  links: Iterable["FuzzyWikilink"]) -> None:
    for link in links:
        start = link.start_index + 2
        end = link.end_index - 2
        inner = (start, end) if end - start > 1 else None
        index_map[link.start_index] = IndexMapEntry(
            link.text, SpanKind.WIKILINK, inner)


def add_templates(index_map: IndexMap,
                  templates: Iterable["TemplateNode"]) -> None:
    """Adds templates and parser functions.  The inner range of a template
    is its argument list, and that of a parser function everything after
    the function hook."""
    for node in templates:
        if node.raw_hook is not None:
            start = node.start_index + 2 + len(node.raw_hook)
        else:
            start = node.start_index + 2 + len(node.raw_title) + 1
        end = node.end_index - 2
        inner = (start, end) if end - start > 1 else None
        index_map[node.start_index] = IndexMapEntry(
            node.text, SpanKind.TEMPLATE, inner)


def gallery_ranges(index_map: IndexMap) -> list[tuple[int, int]]:
    """Returns the (start, end) ranges of GALLERY entries."""
    return [
        (start, start + len(entry.text))
        for start, entry in index_map.items()
        if entry.kind is SpanKind.GALLERY
    ]
