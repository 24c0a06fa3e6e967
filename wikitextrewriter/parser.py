# Scanners for HTML-like tags, skip ranges, sections and {{{parameters}}}
# in WikiText.  All results are flat lists of records addressed by
# character offsets into the scanned text.
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import re
import dataclasses

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from .common import (
    MAX_NEST_DEPTH,
    MEDIAWIKI_TAGS,
    VOID_TAGS,
    clean_title,
    remove_comments,
)
from .errors import NestingDepthError

if TYPE_CHECKING:
    # Reached only by mypy or other type-checker
    from .core import Wikitext


# Start tag: "<!--" or "<name ...>".  Also matches self-closing tags.
_tag_start_re = re.compile(r"<!(--)|<(?!/)([^>\s/]+)(?:\s[^>]*|/)?>")
# End tag: "-->" or "</name ...>"
_tag_end_re = re.compile(r"(--)>|</([^>\s]+)(?:\s[^>]*)?>")
_self_closing_re = re.compile(r"/>$")

# Wikitext headings.  Group 4 may only hold comments and horizontal
# whitespace for the line to count as a heading.
_heading_re = re.compile(r"^(=+)(.+?)(=+)([^\n]*)\n?$", re.MULTILINE)
_heading_ws_re = re.compile(r"[\t \u00a0]+")
_heading_tag_re = re.compile(r"^h([1-6])$")

_param_re = re.compile(r"\{{3}(?!\{)([^|}]*)\|?([^}]*)\}{3}")
_left_braces_re = re.compile(r"\{{2,}")
_right_braces_re = re.compile(r"\}{2,}")
_three_right_braces_re = re.compile(r"\}{3}$")


@dataclass(frozen=True)
class Tag:
    """An HTML-like tag or a comment found in wikitext.  ``start`` and
    ``end`` are the start and end tags as written; for an unclosed tag
    ``end`` is synthesized and not part of the text."""

    name: str
    start: str
    content: Optional[str]
    end: str
    start_index: int
    end_index: int
    nest_level: int
    void: bool = False
    unclosed: bool = False
    self_closing: bool = False
    skip: bool = False

    @property
    def text(self) -> str:
        return (
            self.start
            + (self.content or "")
            + ("" if self.unclosed else self.end)
        )


class _OpenTag:
    """A start tag waiting for its end tag."""

    __slots__ = ("name", "start_index", "content_start", "self_closing")

    def __init__(
        self, name: str, start_index: int, content_start: int,
        self_closing: bool,
    ) -> None:
        self.name = name
        self.start_index = start_index
        self.content_start = content_start
        self.self_closing = self_closing


def _tag_name(name: str) -> str:
    return "!--" if name == "--" else name


def _leaf_tag(
    name: str, start: str, start_index: int, nest_level: int,
    self_closing: bool, void: bool = True,
) -> Tag:
    return Tag(
        name=name,
        start=start,
        content=None,
        end="",
        start_index=start_index,
        end_index=start_index + len(start),
        nest_level=nest_level,
        void=void,
        self_closing=self_closing,
    )


def scan_tags(ctx: Optional["Wikitext"], text: str) -> list[Tag]:
    """Scans ``text`` for tags.  Returns the tags sorted by start offset,
    outer tags first, without the ``skip`` flag set (see parse_tags())."""
    assert isinstance(text, str)
    stack: list[_OpenTag] = []  # Most recent last
    tags: list[Tag] = []

    def close_tag(entry: _OpenTag, end: str, end_index: int,
                  content_end: int, nest_level: int,
                  unclosed: bool) -> None:
        name = _tag_name(entry.name)
        tags.append(
            Tag(
                name=name,
                start=text[entry.start_index:entry.content_start],
                content=text[entry.content_start:content_end],
                end=end,
                start_index=entry.start_index,
                end_index=end_index,
                nest_level=nest_level,
                unclosed=unclosed,
                self_closing=entry.self_closing,
            )
        )
        if unclosed and ctx is not None:
            ctx.debug(
                "unclosed <{}> at offset {}".format(name, entry.start_index),
                sortid="parser/tags/unclosed",
            )

    i = 0
    length = len(text)
    while i < length:
        ch = text[i]
        if ch != "<" and ch != "-":
            i += 1
            continue
        m = _tag_start_re.match(text, i) if ch == "<" else None
        if m:
            name = (m.group(1) or m.group(2)).lower()
            start = m.group(0)
            self_closing = bool(_self_closing_re.search(start))
            if name in VOID_TAGS:
                tags.append(_leaf_tag(name, start, i, len(stack),
                                      self_closing))
            elif self_closing and name in MEDIAWIKI_TAGS:
                # <ref name="x" /> is closed, unlike <span />
                tags.append(_leaf_tag(name, start, i, len(stack),
                                      self_closing, void=False))
            else:
                stack.append(_OpenTag(name, i, i + len(start),
                                      self_closing))
            i += len(start)
            continue
        m = _tag_end_re.match(text, i)
        if not m:
            i += 1
            continue
        name = (m.group(1) or m.group(2)).lower()
        end = m.group(0)
        if name in VOID_TAGS:
            if name == "br":
                # MediaWiki turns </br> into <br>
                tags.append(_leaf_tag(name, end, i, len(stack), False))
        elif any(entry.name == name for entry in stack):
            while stack:
                entry = stack.pop()
                nest_level = len(stack)
                if entry.name == name:
                    close_tag(entry, end, i + len(end), i, nest_level,
                              False)
                    break
                close_tag(entry, "</{}>".format(_tag_name(entry.name)), i,
                          i, nest_level, True)
        # An end tag without a matching start tag is plain text
        i += len(end)

    # Tags still open are unclosed through the end of the text
    for nest_level, entry in enumerate(stack):
        name = _tag_name(entry.name)
        close_tag(entry, "-->" if name == "!--" else "</{}>".format(name),
                  length, length, nest_level, True)

    tags.sort(key=lambda t: (t.start_index, -t.end_index))
    return tags


class SkipRanges:
    """Offset ranges of tags inside which no other markup is recognized.
    Calling an instance with ``(start, end)`` returns True if the span is
    strictly inside one of the ranges."""

    __slots__ = ("ranges",)

    def __init__(self, tags: Iterable[Tag],
                 skip_tags: Iterable[str]) -> None:
        names = set(skip_tags)
        self.ranges: list[tuple[int, int]] = []
        if not names:
            return
        for tag in tags:
            if tag.name not in names:
                continue
            s, e = tag.start_index, tag.end_index
            # A range inside an already accepted range adds nothing
            if any(a < s and e < b for a, b in self.ranges):
                continue
            self.ranges.append((s, e))

    def __call__(self, start: int, end: int) -> bool:
        for s, e in self.ranges:
            if s < start and end < e:
                return True
        return False

    def __bool__(self) -> bool:
        return bool(self.ranges)

    def __repr__(self) -> str:
        return "SkipRanges({!r})".format(self.ranges)


def parse_tags(
    ctx: Optional["Wikitext"], text: str, skip_tags: Iterable[str]
) -> tuple[list[Tag], SkipRanges]:
    """Scans tags and marks the ones inside skip ranges.  Returns the tags
    and the skip ranges built from them."""
    tags = scan_tags(ctx, text)
    is_skip = SkipRanges(tags, skip_tags)
    if is_skip:
        tags = [
            dataclasses.replace(t, skip=True)
            if is_skip(t.start_index, t.end_index) else t
            for t in tags
        ]
    return tags, is_skip


@dataclass(frozen=True)
class Section:
    """A section of wikitext.  The first section of every document is the
    implicit "top" section with an empty heading."""

    heading: str
    title: str
    level: int
    index: int
    start_index: int
    end_index: int
    content: str

    @property
    def text(self) -> str:
        return self.content


def parse_sections(
    text: str,
    tags: Iterable[Tag],
    is_skip: Callable[[int, int], bool],
) -> list[Section]:
    """Splits ``text`` into sections at <h1>..<h6> tags and wikitext
    headings.  Each section extends to the next heading of the same or
    higher level, so subsections are included in their parent."""
    # (heading, title, level, offset)
    headings: list[tuple[str, str, int, int]] = []
    for tag in tags:
        m = _heading_tag_re.match(tag.name)
        if m and not is_skip(tag.start_index, tag.end_index):
            headings.append(
                (
                    tag.text,
                    clean_title(remove_comments(tag.content or "")),
                    int(m.group(1)),
                    tag.start_index,
                )
            )

    for m in _heading_re.finditer(text):
        rest = _heading_ws_re.sub("", remove_comments(m.group(4)))
        if rest or is_skip(m.start(), m.end()):
            continue
        left, right = len(m.group(1)), len(m.group(3))
        level = min(6, left, right)
        # Extra equals signs are part of the title
        title = "=" * (left - level) + m.group(2) + "=" * (right - level)
        headings.append(
            (
                m.group(0).strip(),
                clean_title(remove_comments(title)),
                level,
                m.start(),
            )
        )

    headings.sort(key=lambda x: x[3])
    headings.insert(0, ("", "top", 1, 0))

    sections: list[Section] = []
    for i, (heading, title, level, offset) in enumerate(headings):
        end = len(text)
        if i == 0:
            if len(headings) > 1:
                end = headings[1][3]
        else:
            for j in range(i + 1, len(headings)):
                if headings[j][2] <= level:
                    end = headings[j][3]
                    break
        sections.append(
            Section(
                heading=heading,
                title=title,
                level=level,
                index=i,
                start_index=offset,
                end_index=end,
                content=text[offset:end],
            )
        )
    return sections


@dataclass(frozen=True)
class Parameter:
    """A {{{key|value}}} template parameter."""

    key: str
    value: str
    text: str
    start_index: int
    end_index: int
    nest_level: int
    skip: bool = False


def _brace_count(regex: re.Pattern, text: str) -> int:
    return sum(len(x) for x in regex.findall(text))


def parse_parameters(
    ctx: Optional["Wikitext"],
    text: str,
    is_skip: Callable[[int, int], bool],
    max_depth: int = MAX_NEST_DEPTH,
) -> list[Parameter]:
    """Finds all {{{parameters}}} in ``text``, including parameters nested
    in the default values of other parameters."""
    params: list[Parameter] = []
    nest_level = 0
    pos = 0
    length = len(text)
    while True:
        m = _param_re.search(text, pos)
        if not m:
            break
        start = m.start()
        end = m.end()
        key = m.group(1).strip()
        value = m.group(2)
        param_text = m.group(0)

        # The regexp stops at the first "}}}", which is too early for
        # e.g. {{{1|{{{page|{{PAGENAME}}}}}}}}.  Extend the match until
        # the braces balance.
        left = _brace_count(_left_braces_re, param_text)
        right = _brace_count(_right_braces_re, param_text)
        valid = True
        if left > right:
            valid = False
            rstart = start + len(param_text) - 3
            right -= 3
            p = rstart
            while p < length:
                rm = _right_braces_re.match(text, p)
                if not rm:
                    p += 1
                    continue
                n = len(rm.group(0))
                if left <= right + n:
                    last = p + (left - right)
                    param_text = text[start:last]
                    value += _three_right_braces_re.sub(
                        "", param_text[rstart - last:])
                    end = last
                    valid = True
                    break
                p += n
                right += n
            if not valid and ctx is not None:
                ctx.debug("unbalanced braces in parameter at offset {}"
                          .format(start),
                          sortid="parser/parameters/unbalanced")

        if not valid:
            pos = start + 1
            continue

        if nest_level > max_depth:
            raise NestingDepthError("parameter", nest_level, max_depth)
        params.append(
            Parameter(
                key=key,
                value=value.strip(),
                text=param_text,
                start_index=start,
                end_index=end,
                nest_level=nest_level,
                skip=is_skip(start, end),
            )
        )
        if "{{{" in param_text[3:]:
            # Look for parameters nested in this one
            pos = start + 3
            nest_level += 1
        else:
            pos = end
            nest_level = 0
    return params


def outermost_parameters(params: Iterable[Parameter]) -> list[Parameter]:
    """Returns the parameters that are not nested in another parameter."""
    ret: list[Parameter] = []
    for param in params:
        if any(p.start_index < param.start_index and
               param.end_index <= p.end_index for p in ret):
            continue
        ret.append(param)
    return ret
