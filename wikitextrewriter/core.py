# Definition of the Wikitext document: lazily parsed and memoized views of
# one wikitext string, and position-preserving rewriting of the string.
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import re
import logging

from collections.abc import Callable, Iterable
from typing import Any, Optional, Union

from .common import (
    DEFAULT_SKIP_TAGS,
    MAX_NEST_DEPTH,
    VALID_TAGS,
    normalize_tag_names,
)
from .errors import LengthMismatchError, ModificationTypeError
from .indexmap import (
    IndexMap,
    add_parameters,
    add_tags,
    add_templates,
    add_wikilinks,
)
from .logging_utils import logger
from .parser import (
    Parameter,
    Section,
    SkipRanges,
    Tag,
    outermost_parameters,
    parse_parameters,
    parse_sections,
    parse_tags,
)
from .parserfns import HookTable, get_hook_table
from .templates import TemplateNode, parse_templates
from .title import Title, TitleResolver, get_title_resolver
from .wikilinks import (
    FuzzyWikilink,
    Wikilink,
    finalize_wikilinks,
    parse_wikilinks_fuzzy,
)

ModificationPredicate = Callable[[list[Any]], list[Optional[str]]]

# An empty line left behind by a removal also loses its newline
_line_start_re = re.compile(r"(?:^|\n)[^\S\r\n]*$")
_line_end_re = re.compile(r"^[^\S\r\n]*\n")


class _ParseCache:
    """Memoized parse results of one content string.  Every slot is None
    until the corresponding parser has run."""

    __slots__ = (
        "tags",  # (list[Tag], SkipRanges)
        "sections",
        "parameters",
        "wikilinks_fuzzy",
        "templates",
        "wikilinks",
    )

    def __init__(self) -> None:
        self.tags: Optional[tuple[list[Tag], SkipRanges]] = None
        self.sections: Optional[list[Section]] = None
        self.parameters: Optional[list[Parameter]] = None
        self.wikilinks_fuzzy: Optional[list[FuzzyWikilink]] = None
        self.templates: Optional[list[TemplateNode]] = None
        self.wikilinks: Optional[list[Wikilink]] = None


class Wikitext:
    """A wikitext document.  The content is parsed on demand: each parse_*
    method runs its parser (and the parsers it depends on) the first time
    it is called, and the results are kept until the content or the skip
    tags change.  The modify_* methods rewrite the content in place.

    Recovery from malformed markup is recorded with debug() and never
    raises; the messages are available from to_return()."""

    __slots__ = (
        "_content",
        "_skip_tags",
        "_cache",
        "title",  # Page title, only used in messages
        "lang_code",
        "resolver",
        "hooks",
        "max_depth",
        "quiet",
        "errors",
        "warnings",
        "debugs",
    )

    def __init__(
        self,
        content: str,
        skip_tags: Optional[Iterable[str]] = None,
        overwrite_skip_tags: bool = False,
        lang_code: str = "en",
        title_resolver: Optional[TitleResolver] = None,
        hook_table: Optional[HookTable] = None,
        max_depth: int = MAX_NEST_DEPTH,
        quiet: bool = True,
        title: Optional[str] = None,
    ) -> None:
        if not isinstance(content, str):
            raise TypeError("content must be a str, not {}"
                            .format(type(content).__name__))
        self._content = content
        names = list(skip_tags or [])
        if not overwrite_skip_tags:
            names = list(DEFAULT_SKIP_TAGS) + names
        self._skip_tags = normalize_tag_names(names)
        self._cache = _ParseCache()
        self.title = title
        self.lang_code = lang_code
        self.resolver = title_resolver or get_title_resolver(lang_code)
        self.hooks = hook_table or get_hook_table(lang_code)
        self.max_depth = max_depth
        self.quiet = quiet
        self.errors: list[dict[str, Any]] = []
        self.warnings: list[dict[str, Any]] = []
        self.debugs: list[dict[str, Any]] = []

    def __repr__(self) -> str:
        return "Wikitext({!r})".format(self._content[:40])

    @property
    def content(self) -> str:
        return self._content

    @content.setter
    def content(self, content: str) -> None:
        if not isinstance(content, str):
            raise TypeError("content must be a str, not {}"
                            .format(type(content).__name__))
        self._content = content
        self._cache = _ParseCache()

    @property
    def length(self) -> int:
        return len(self._content)

    @property
    def byte_length(self) -> int:
        """Length of the content in UTF-8 bytes, as MediaWiki counts it."""
        return len(self._content.encode("utf-8"))

    @staticmethod
    def valid_tags() -> frozenset[str]:
        """Returns the names of the tags allowed in wikitext."""
        return VALID_TAGS

    @staticmethod
    def is_valid_tag(name: str) -> bool:
        return name.lower() in VALID_TAGS

    # Skip tags

    def get_skip_tags(self) -> list[str]:
        return list(self._skip_tags)

    def _change_skip_tags(self, names: list[str]) -> None:
        if names != self._skip_tags:
            self._skip_tags = names
            self._cache = _ParseCache()

    def set_skip_tags(self, names: Iterable[str]) -> None:
        """Replaces the set of skip tags."""
        self._change_skip_tags(normalize_tag_names(names))

    def add_skip_tags(self, names: Iterable[str]) -> None:
        self._change_skip_tags(
            normalize_tag_names(self._skip_tags + list(names)))

    def remove_skip_tags(self, names: Iterable[str]) -> None:
        remove = set(normalize_tag_names(names))
        self._change_skip_tags([x for x in self._skip_tags
                                if x not in remove])

    # Messages

    def _fmt_errmsg(self, level: int, kind: str, msg: str,
                    trace: Optional[str]) -> None:
        if self.quiet and level < logging.WARNING:
            return
        loc = self.title or "<wikitext>"
        if trace:
            msg += "\n" + trace
        logger.log(level, "{}: {}: {}".format(loc, kind, msg))

    def _message(self, msg: str, trace: Optional[str],
                 sortid: str) -> dict[str, Any]:
        assert isinstance(msg, str)
        assert isinstance(trace, (str, type(None)))
        assert isinstance(sortid, str)
        # sortid is a static string used to sort messages into buckets
        # based on where they have been called
        return {"msg": msg, "trace": trace, "title": self.title,
                "called_from": sortid}

    def error(self, msg: str, trace: Optional[str] = None,
              sortid: str = "XYZunsorted") -> None:
        """Logs an error message.  The error is also saved in
        self.errors."""
        self.errors.append(self._message(msg, trace, sortid))
        self._fmt_errmsg(logging.ERROR, "ERROR", msg, trace)

    def warning(self, msg: str, trace: Optional[str] = None,
                sortid: str = "XYZunsorted") -> None:
        self.warnings.append(self._message(msg, trace, sortid))
        self._fmt_errmsg(logging.WARNING, "WARNING", msg, trace)

    def debug(self, msg: str, trace: Optional[str] = None,
              sortid: str = "XYZunsorted") -> None:
        self.debugs.append(self._message(msg, trace, sortid))
        self._fmt_errmsg(logging.DEBUG, "DEBUG", msg, trace)

    def to_return(self) -> dict[str, list[dict[str, Any]]]:
        """Returns a dictionary with errors, warnings, and debug messages
        collected so far.  The value is JSON-compatible."""
        return {
            "errors": self.errors,
            "warnings": self.warnings,
            "debugs": self.debugs,
        }

    # Memoized parsers

    def _tags(self) -> tuple[list[Tag], SkipRanges]:
        if self._cache.tags is None:
            self._cache.tags = parse_tags(self, self._content,
                                          self._skip_tags)
        return self._cache.tags

    def _sections(self) -> list[Section]:
        if self._cache.sections is None:
            tags, is_skip = self._tags()
            self._cache.sections = parse_sections(self._content, tags,
                                                  is_skip)
        return self._cache.sections

    def _parameters(self) -> list[Parameter]:
        if self._cache.parameters is None:
            self._cache.parameters = parse_parameters(
                self, self._content, self.get_skip_predicate(),
                self.max_depth)
        return self._cache.parameters

    def _wikilinks_fuzzy(self) -> list[FuzzyWikilink]:
        if self._cache.wikilinks_fuzzy is None:
            self._cache.wikilinks_fuzzy = parse_wikilinks_fuzzy(
                self, self._content, self.get_index_map(parameters=True),
                self.get_skip_predicate(), max_depth=self.max_depth)
        return self._cache.wikilinks_fuzzy

    def _templates(self) -> list[TemplateNode]:
        if self._cache.templates is None:
            index_map = self.get_index_map(gallery=True, parameters=True,
                                           wikilinks=True)
            self._cache.templates = parse_templates(
                self, self._content, index_map, self.get_skip_predicate(),
                self.resolver, self.hooks, max_depth=self.max_depth)
        return self._cache.templates

    def _wikilinks(self) -> list[Wikilink]:
        if self._cache.wikilinks is None:
            index_map = self.get_index_map(parameters=True, templates=True)
            self._cache.wikilinks = finalize_wikilinks(
                self, self._wikilinks_fuzzy(), index_map, self.resolver)
        return self._cache.wikilinks

    def get_skip_predicate(self) -> SkipRanges:
        """Returns a callable telling whether a (start, end) span is inside
        a skip tag."""
        return self._tags()[1]

    def get_index_map(
        self,
        gallery: bool = False,
        parameters: bool = False,
        wikilinks: bool = False,
        templates: bool = False,
    ) -> IndexMap:
        """Returns a new index map of skip tags and, optionally, <gallery>
        tags with pipes, parameters, fuzzy wikilinks and templates."""
        index_map: IndexMap = {}
        add_tags(index_map, self._tags()[0], self._skip_tags, gallery)
        if parameters:
            add_parameters(index_map, self._parameters())
        if wikilinks:
            add_wikilinks(index_map, self._wikilinks_fuzzy())
        if templates:
            add_templates(index_map, self._templates())
        return index_map

    # Public parse API

    def parse_tags(
        self,
        name_predicate: Optional[Callable[[str], bool]] = None,
        tag_predicate: Optional[Callable[[Tag], bool]] = None,
    ) -> list[Tag]:
        """Returns the tags and comments of the content, including those
        inside skip tags (see Tag.skip)."""
        ret = []
        for tag in self._tags()[0]:
            if name_predicate is not None and not name_predicate(tag.name):
                continue
            if tag_predicate is not None and not tag_predicate(tag):
                continue
            ret.append(tag)
        return ret

    def parse_sections(
        self,
        section_predicate: Optional[Callable[[Section], bool]] = None,
    ) -> list[Section]:
        return [s for s in self._sections()
                if section_predicate is None or section_predicate(s)]

    def identify_section(self, start: int, end: int) -> Optional[Section]:
        """Returns the deepest section containing text[start:end]."""
        best = None
        for section in self._sections():
            if section.start_index <= start and end <= section.end_index:
                if best is None or section.level > best.level:
                    best = section
        return best

    def parse_parameters(
        self,
        key_predicate: Optional[Callable[[str], bool]] = None,
        parameter_predicate: Optional[Callable[[Parameter], bool]] = None,
        recursive: bool = True,
        include_skipped: bool = False,
    ) -> list[Parameter]:
        """Returns the {{{parameters}}} of the content.  If ``recursive``
        is False, parameters nested in other parameters are left out."""
        params = self._parameters()
        if not recursive:
            params = outermost_parameters(params)
        ret = []
        for param in params:
            if param.skip and not include_skipped:
                continue
            if key_predicate is not None and not key_predicate(param.key):
                continue
            if (parameter_predicate is not None and
                    not parameter_predicate(param)):
                continue
            ret.append(param)
        return ret

    def parse_templates(
        self,
        title_predicate: Optional[Callable[[Union[Title, str]],
                                           bool]] = None,
        template_predicate: Optional[Callable[[TemplateNode],
                                              bool]] = None,
        include_skipped: bool = False,
    ) -> list[TemplateNode]:
        """Returns the templates and parser functions of the content at all
        nesting levels.  ``title_predicate`` is called with the title of a
        template, or with the cleaned name of a parser function or raw
        template."""
        ret = []
        for node in self._templates():
            if node.skip and not include_skipped:
                continue
            if title_predicate is not None and not title_predicate(
                    node.title if node.title is not None else node.name):
                continue
            if (template_predicate is not None and
                    not template_predicate(node)):
                continue
            ret.append(node)
        return ret

    def parse_wikilinks(
        self,
        title_predicate: Optional[Callable[[Title], bool]] = None,
        wikilink_predicate: Optional[Callable[[Wikilink], bool]] = None,
        include_skipped: bool = False,
    ) -> list[Wikilink]:
        """Returns the wikilinks and file links of the content.  Links
        without a valid title only pass a ``title_predicate`` if none is
        given."""
        ret = []
        for link in self._wikilinks():
            if link.skip and not include_skipped:
                continue
            if title_predicate is not None and (
                    link.title is None or not title_predicate(link.title)):
                continue
            if (wikilink_predicate is not None and
                    not wikilink_predicate(link)):
                continue
            ret.append(link)
        return ret

    # Modification

    def _modify(self, records: list[Any],
                predicate: ModificationPredicate) -> str:
        """Replaces the text of ``records`` with the strings returned by
        ``predicate`` (None leaves a record unchanged) and sets the new
        content.  Records nested in an already replaced record are left
        alone."""
        mods = predicate(list(records))
        if not isinstance(mods, (list, tuple)):
            raise ModificationTypeError(
                "modification predicate must return a list, not {}"
                .format(type(mods).__name__))
        if len(mods) != len(records):
            raise LengthMismatchError(len(records), len(mods))
        for mod in mods:
            if mod is not None and not isinstance(mod, str):
                raise ModificationTypeError(
                    "modification predicate must return strings or None, "
                    "not {}".format(type(mod).__name__))

        spans = [[r.start_index, r.end_index] for r in records]
        # Records whose text was replaced as part of an enclosing record
        dead: set[int] = set()
        content = self._content
        for i, mod in enumerate(mods):
            if mod is None:
                continue
            if i in dead:
                self.warning("modification of {} at offset {} ignored, it "
                             "is inside a replaced span"
                             .format(type(records[i]).__name__,
                                     records[i].start_index),
                             sortid="core/modify/overlap")
                continue
            start, end = spans[i]
            leading = content[:start]
            trailing = content[end:]
            removed = 0
            if mod == "" and _line_start_re.search(leading):
                m = _line_end_re.match(trailing)
                if m:
                    removed = len(m.group(0))
                    trailing = trailing[removed:]
            content = leading + mod + trailing
            delta = len(mod) - removed - (end - start)
            spans[i][1] = start + len(mod)
            for j, span in enumerate(spans):
                if j == i or j in dead:
                    continue
                if span[0] >= end:
                    span[0] += delta
                    span[1] += delta
                elif span[0] >= start and span[1] <= end:
                    dead.add(j)
                    span[0] = span[1] = start
                elif span[0] <= start and span[1] >= end:
                    span[1] += delta

        for s, e in spans:
            assert 0 <= s <= e <= len(content), (s, e, len(content))
        self.content = content
        return content

    def modify_tags(self, predicate: ModificationPredicate,
                    output_tags: bool = False) -> Union[str, list[Tag]]:
        """Calls ``predicate`` with all tags (see parse_tags()) and replaces
        each tag with the corresponding returned string; None keeps the
        tag.  Returns the new content, or the tags of the new content if
        ``output_tags`` is True."""
        content = self._modify(self.parse_tags(), predicate)
        if output_tags:
            return self.parse_tags()
        return content

    def modify_sections(self, predicate: ModificationPredicate) -> str:
        return self._modify(self.parse_sections(), predicate)

    def modify_parameters(self, predicate: ModificationPredicate) -> str:
        return self._modify(self.parse_parameters(), predicate)

    def modify_templates(self, predicate: ModificationPredicate) -> str:
        """Like modify_tags() for templates and parser functions.
        Replacing an outer template also replaces the templates nested in
        it, so changes to those are ignored."""
        return self._modify(self.parse_templates(), predicate)

    def modify_wikilinks(self, predicate: ModificationPredicate) -> str:
        return self._modify(self.parse_wikilinks(), predicate)
