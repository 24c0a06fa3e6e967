# Parsing of [[wikilinks]].  Links are first found "fuzzily" (the part
# after the first pipe is kept unparsed), and then finalized into normal
# links, file links and links with invalid titles.
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import enum

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from .common import MAX_NEST_DEPTH, clean_title
from .errors import NestingDepthError
from .indexmap import IndexMap, add_wikilinks
from .title import NS_FILE, Title

if TYPE_CHECKING:
    from .core import Wikitext
    from .title import TitleResolver


@dataclass(frozen=True)
class FuzzyWikilink:
    """A [[left|right]] span.  ``left`` is the link target without any
    skipped spans (comments etc.), ``raw_title`` the target as written.
    ``right`` is everything after the first pipe, or None."""

    left: str
    raw_title: str
    right: Optional[str]
    piped: bool
    text: str
    start_index: int
    end_index: int
    skip: bool = False


class _OpenLink:
    __slots__ = ("start_index", "left", "raw_title", "sealed")

    def __init__(self, start_index: int) -> None:
        self.start_index = start_index
        self.left = ""
        self.raw_title = ""
        self.sealed = False  # True after the first pipe


def parse_wikilinks_fuzzy(
    ctx: Optional["Wikitext"],
    text: str,
    index_map: IndexMap,
    is_skip: Callable[[int, int], bool],
    start: int = 0,
    end: Optional[int] = None,
    depth: int = 0,
    max_depth: int = MAX_NEST_DEPTH,
) -> list[FuzzyWikilink]:
    """Finds [[wikilinks]] in text[start:end].  Spans in ``index_map`` are
    jumped over, but their inner ranges are scanned recursively if they
    contain brackets.  Offsets are always relative to ``text``."""
    if end is None:
        end = len(text)
    if depth > max_depth:
        raise NestingDepthError("wikilink", depth, max_depth)
    links: list[FuzzyWikilink] = []
    stack: list[_OpenLink] = []

    def append_text(s: str) -> None:
        if stack and not stack[-1].sealed:
            stack[-1].left += s
            stack[-1].raw_title += s

    i = start
    while i < end:
        entry = index_map.get(i)
        if entry is not None:
            if entry.inner is not None and entry.inner[1] <= end:
                s, e = entry.inner
                inner = text[s:e]
                if "[[" in inner and "]]" in inner:
                    links.extend(
                        parse_wikilinks_fuzzy(ctx, text, index_map, is_skip,
                                              s, e, depth + 1, max_depth))
            if stack and not stack[-1].sealed:
                stack[-1].raw_title += entry.text
            i += len(entry.text)
            continue
        if (text.startswith("[[", i) and i + 2 <= end and
                (i + 2 == end or text[i + 2] != "[")):
            stack.append(_OpenLink(i))
            i += 2
            continue
        if stack and text.startswith("]]", i) and i + 2 <= end:
            link = stack.pop()
            end_index = i + 2
            link_text = text[link.start_index:end_index]
            left = link.left
            raw_title = link.raw_title
            right = None
            if link.sealed:
                right = text[link.start_index + 2 + len(raw_title):i]
                left = left[:-1]
                raw_title = raw_title[:-1]
            links.append(
                FuzzyWikilink(
                    left=left,
                    raw_title=raw_title,
                    # [[title|]] is a pipe trick, not a display text
                    right=right or None,
                    piped=link.sealed,
                    text=link_text,
                    start_index=link.start_index,
                    end_index=end_index,
                    skip=is_skip(link.start_index, end_index),
                )
            )
            append_text(link_text)
            i += 2
            continue
        if stack and not stack[-1].sealed:
            ch = text[i]
            if ch == "|":
                stack[-1].sealed = True
            stack[-1].left += ch
            stack[-1].raw_title += ch
        i += 1

    if stack and ctx is not None:
        for link in stack:
            ctx.debug("unclosed [[ at offset {}".format(link.start_index),
                      sortid="wikilinks/unclosed")
    links.sort(key=lambda x: x.start_index)
    return links


@enum.unique
class WikilinkKind(enum.Enum):
    LINK = enum.auto()  # [[Page|display]], including [[:File:X]]
    FILE = enum.auto()  # [[File:X|param|...]]
    RAW = enum.auto()  # [[...]] whose target is not a valid title


@dataclass(frozen=True)
class Wikilink:
    """A finalized wikilink.  FILE links have ``params`` and no display
    text; the other kinds have ``display``, which is the right operand
    or, for unpiped links, the left one."""

    kind: WikilinkKind
    title: Optional[Title]
    left: str
    raw_title: str
    right: Optional[str]
    display: Optional[str]
    params: tuple[str, ...]
    text: str
    start_index: int
    end_index: int
    skip: bool = False

    def _splice_title(self, title: str, raw_title: bool) -> str:
        if not raw_title:
            return title
        core = self.left.strip()
        pos = self.raw_title.find(core) if core else -1
        if pos < 0:
            return title
        return (self.raw_title[:pos] + title +
                self.raw_title[pos + len(core):])

    def stringify(
        self,
        suppress_display: bool = False,
        raw_title: bool = False,
        sort_key: Optional[Callable[[str], object]] = None,
    ) -> str:
        """Rebuilds the link markup.  ``raw_title`` keeps the comments and
        whitespace around the target.  ``sort_key`` reorders the
        parameters of a file link."""
        if self.kind is WikilinkKind.FILE:
            assert self.title is not None
            params = list(self.params)
            if sort_key is not None:
                params.sort(key=sort_key)
            target = self._splice_title(self.title.prefixed_text(),
                                        raw_title)
            right = "|".join(params) if params else None
        else:
            if self.title is not None:
                target = self._splice_title(
                    self.title.prefixed_text(colon=True, fragment=True),
                    raw_title)
            else:
                target = self.raw_title if raw_title else self.left
            right = None
            if not suppress_display and self.right:
                right = clean_title(self.right)
        parts = ["[[", target]
        if right is not None:
            parts.append("|" + right)
        parts.append("]]")
        return "".join(parts)

    def __str__(self) -> str:
        return self.stringify()

    def as_file_wikilink(self, title: Title) -> Optional["Wikilink"]:
        """Returns a FILE link to ``title`` built from this link; a display
        text becomes the only parameter.  Returns None if ``title`` is not
        a file title."""
        if title.namespace != NS_FILE or title.had_leading_colon():
            return None
        params: tuple[str, ...] = ()
        if self.kind is WikilinkKind.FILE:
            params = self.params
        elif self.right:
            params = (clean_title(self.right),)
        return Wikilink(
            kind=WikilinkKind.FILE,
            title=title,
            left=self.left,
            raw_title=self.raw_title,
            right=self.right,
            display=None,
            params=params,
            text=self.text,
            start_index=self.start_index,
            end_index=self.end_index,
            skip=self.skip,
        )

    def as_wikilink(self, title: Title) -> Optional["Wikilink"]:
        """Returns a LINK to ``title`` built from this link; file link
        parameters become the display text.  Returns None if ``title``
        would make a file link."""
        if title.namespace == NS_FILE and not title.had_leading_colon():
            return None
        right = self.right
        if self.kind is WikilinkKind.FILE:
            right = "|".join(self.params) or None
        return Wikilink(
            kind=WikilinkKind.LINK,
            title=title,
            left=self.left,
            raw_title=self.raw_title,
            right=right,
            display=right if right else self.left,
            params=(),
            text=self.text,
            start_index=self.start_index,
            end_index=self.end_index,
            skip=self.skip,
        )


def _split_file_params(
    link: FuzzyWikilink, right: str, index_map: IndexMap
) -> tuple[str, ...]:
    """Splits the right operand of a file link at pipes that are not
    inside another recognized span."""
    if "|" not in right:
        return (clean_title(right),)
    base = link.start_index + 2 + len(link.raw_title) + 1
    params: list[str] = []
    parts: list[str] = []
    i = 0
    while i < len(right):
        entry = index_map.get(base + i)
        if (entry is not None and
                base + i + len(entry.text) + 2 <= link.end_index):
            parts.append(entry.text)
            i += len(entry.text)
            continue
        if right[i] == "|":
            params.append(clean_title("".join(parts)))
            parts = []
        else:
            parts.append(right[i])
        i += 1
    params.append(clean_title("".join(parts)))
    return tuple(params)


def finalize_wikilinks(
    ctx: Optional["Wikitext"],
    fuzzy: list[FuzzyWikilink],
    index_map: IndexMap,
    resolver: "TitleResolver",
) -> list[Wikilink]:
    """Classifies fuzzy wikilinks into normal links, file links and raw
    links.  ``index_map`` should contain parameters and templates; the
    fuzzy links themselves are added to a copy of it so that file link
    parameters are not split inside nested links."""
    split_map: IndexMap = dict(index_map)
    add_wikilinks(split_map, fuzzy)
    ret: list[Wikilink] = []
    for link in fuzzy:
        title = resolver.new_from_text(link.left)
        if title is None:
            if ctx is not None:
                ctx.debug("invalid wikilink title {!r} at offset {}"
                          .format(link.left, link.start_index),
                          sortid="wikilinks/invalid-title")
            kind = WikilinkKind.RAW
        elif title.namespace == NS_FILE and not title.had_leading_colon():
            params: tuple[str, ...] = ()
            if link.right is not None:
                params = _split_file_params(link, link.right, split_map)
            ret.append(
                Wikilink(
                    kind=WikilinkKind.FILE,
                    title=title,
                    left=link.left,
                    raw_title=link.raw_title,
                    right=link.right,
                    display=None,
                    params=params,
                    text=link.text,
                    start_index=link.start_index,
                    end_index=link.end_index,
                    skip=link.skip,
                )
            )
            continue
        else:
            kind = WikilinkKind.LINK
        ret.append(
            Wikilink(
                kind=kind,
                title=title,
                left=link.left,
                raw_title=link.raw_title,
                right=link.right,
                display=link.right if link.right else link.left,
                params=(),
                text=link.text,
                start_index=link.start_index,
                end_index=link.end_index,
                skip=link.skip,
            )
        )
    return ret
