# Parsing of {{templates}} and {{#parser:functions}}.  The scanner tracks
# double-brace depth, splits the outermost template into a title and
# pipe-separated fragments, and re-scans each template's interior for
# nested templates.
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import re
import enum

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from .common import MAX_NEST_DEPTH, clean_title
from .errors import NestingDepthError, WikitextError
from .indexmap import IndexMap, SpanKind, gallery_ranges
from .parserfns import HookTable
from .template_params import Hierarchies, ParserFunction, Template
from .title import NS_MAIN, NS_TEMPLATE, Title

if TYPE_CHECKING:
    from .core import Wikitext
    from .title import TitleResolver

_numeric_key_re = re.compile(r"^[1-9]\d*$")


@enum.unique
class TemplateKind(enum.Enum):
    TEMPLATE = enum.auto()  # {{Title|...}}
    PARSER_FUNCTION = enum.auto()  # {{#hook:...|...}}
    RAW = enum.auto()  # {{...}} whose title is not a valid title


@dataclass(frozen=True)
class TemplateParamRaw:
    """A parameter as parsed from a template.  ``text`` is the parameter
    as written, without the separating pipe."""

    key: str
    value: str
    text: str
    unnamed: bool


@dataclass(frozen=True)
class TemplateNode:
    """A {{...}} expression found in wikitext.

    ``name`` is the cleaned title text (without comments and other
    skipped spans), ``raw_title`` the title fragment as written.  Parser
    functions have ``hook`` (as written), ``canonical_hook``, ``raw_hook``
    (the text from the opening braces through the hook) and ``args``,
    whose first element is the text after the hook."""

    kind: TemplateKind
    name: str
    title: Optional[Title]
    raw_title: str
    text: str
    params: tuple[TemplateParamRaw, ...]
    start_index: int
    end_index: int
    nest_level: int
    skip: bool = False
    hook: Optional[str] = None
    canonical_hook: Optional[str] = None
    raw_hook: Optional[str] = None
    args: tuple[str, ...] = ()

    def _replace_kind(self, kind: TemplateKind, **kwargs) -> "TemplateNode":
        fields = dict(
            kind=kind,
            name=self.name,
            title=None,
            raw_title=self.raw_title,
            text=self.text,
            params=self.params,
            start_index=self.start_index,
            end_index=self.end_index,
            nest_level=self.nest_level,
            skip=self.skip,
        )
        fields.update(kwargs)
        return TemplateNode(**fields)

    def as_template(self, title: Title) -> Optional["TemplateNode"]:
        """Returns a TEMPLATE node transcluding ``title`` with the
        parameters of this node, or None if ``title`` cannot be
        transcluded."""
        if not isinstance(title, Title) or not title.dbkey or \
           title.is_external():
            return None
        return self._replace_kind(TemplateKind.TEMPLATE, title=title)

    def as_parser_function(
        self, hook: str, hooks: HookTable
    ) -> Optional["TemplateNode"]:
        """Returns a PARSER_FUNCTION node calling ``hook`` with the
        parameters of this node as arguments, or None if ``hook`` is not
        a function hook."""
        verified = hooks.verify(hook)
        if verified is None:
            return None
        if self.kind is TemplateKind.PARSER_FUNCTION:
            args = self.args
        else:
            args = tuple(p.text for p in self.params) or ("",)
        return self._replace_kind(
            TemplateKind.PARSER_FUNCTION,
            hook=verified.match,
            canonical_hook=verified.canonical,
            args=args,
        )

    def to_template(
        self, hierarchies: Optional[Hierarchies] = None
    ) -> Template:
        """Builds an editable Template from a TEMPLATE node."""
        if self.kind is not TemplateKind.TEMPLATE or self.title is None:
            raise WikitextError("{} node {!r} is not a template"
                                .format(self.kind.name, self.text))
        raw = None
        core = self.name.strip()
        pos = self.raw_title.find(core) if core else -1
        if pos >= 0:
            raw = (self.raw_title[:pos], self.raw_title[pos + len(core):])
        params = [("" if p.unnamed else p.key, p.value)
                  for p in self.params]
        return Template(self.title, params, hierarchies, raw_title=raw)

    def to_parser_function(
        self, hooks: Optional[HookTable] = None
    ) -> ParserFunction:
        """Builds an editable ParserFunction from a PARSER_FUNCTION node."""
        if self.kind is not TemplateKind.PARSER_FUNCTION or \
           self.hook is None:
            raise WikitextError("{} node {!r} is not a parser function"
                                .format(self.kind.name, self.text))
        raw_prefix = ""
        if self.raw_hook is not None and self.raw_hook.endswith(self.hook):
            raw_prefix = self.raw_hook[:len(self.raw_hook) - len(self.hook)]
        return ParserFunction(self.hook, self.args, hooks, raw_prefix)


class _Fragment:
    """Text between two top-level pipes of a template.  For the title
    fragment, ``key`` collects the title without skipped spans."""

    __slots__ = ("key", "value", "text", "has_key")

    def __init__(self) -> None:
        self.key = ""
        self.value = ""
        self.text = ""
        self.has_key = False


class _FragmentCollector:
    """Splits the contents of one template into fragments."""

    __slots__ = ("fragments",)

    def __init__(self) -> None:
        self.fragments: list[_Fragment] = [_Fragment()]

    def separator(self) -> None:
        self.fragments.append(_Fragment())

    def add(self, s: str, non_name: bool = False,
            nested: bool = False) -> None:
        """Adds text to the current fragment.  ``non_name`` marks a span
        recognized by another parser, ``nested`` text inside a nested
        template.  Neither can name a parameter."""
        frag = self.fragments[-1]
        frag.text += s
        if len(self.fragments) == 1:
            if not non_name:
                frag.key += s
            frag.value += s
            return
        idx = -1
        if not frag.has_key and not non_name and not nested:
            idx = s.find("=")
        if idx >= 0:
            frag.key = frag.value + s[:idx]
            frag.value = s[idx + 1:]
            frag.has_key = True
        else:
            frag.value += s

    @property
    def title(self) -> _Fragment:
        return self.fragments[0]

    @property
    def params(self) -> list[_Fragment]:
        return self.fragments[1:]


def _locate_hook(raw_title: str, hook: str) -> int:
    """Returns the offset in ``raw_title`` just past ``hook``, or -1."""
    idx = raw_title.find(hook)
    if idx >= 0:
        return idx + len(hook)
    # The hook may be interrupted by a comment, e.g. "#<!---->if:"
    j = 0
    for i, ch in enumerate(raw_title):
        if ch == hook[j]:
            j += 1
            if j == len(hook):
                return i + 1
    return -1


def _build_params(fragments: Iterable[_Fragment]) -> list[TemplateParamRaw]:
    params: list[TemplateParamRaw] = []
    used: set[int] = set()
    for frag in fragments:
        if frag.has_key:
            key = frag.key.strip()
            if _numeric_key_re.match(key):
                used.add(int(key))
            params.append(TemplateParamRaw(key, frag.value.strip(),
                                           frag.text, False))
            continue
        n = 1
        while n in used:
            n += 1
        used.add(n)
        params.append(TemplateParamRaw(str(n), frag.value.rstrip("\n"),
                                       frag.text, True))
    return params


def _template_title(
    name: str, resolver: "TitleResolver"
) -> Optional[Title]:
    """Validates a template name and returns its title, or None."""
    name = clean_title(name)
    if not name or "\n" in name or name.startswith("#"):
        return None
    namespace = NS_MAIN if name.startswith(":") else NS_TEMPLATE
    title = resolver.new_from_text(name, namespace)
    if title is None or not title.dbkey or title.is_external():
        return None
    return title


def _make_node(
    ctx: Optional["Wikitext"],
    collector: _FragmentCollector,
    text: str,
    start_index: int,
    end_index: int,
    nest_level: int,
    is_skip: Callable[[int, int], bool],
    resolver: "TitleResolver",
    hooks: HookTable,
) -> TemplateNode:
    title_frag = collector.title
    raw_title = title_frag.text
    params = tuple(_build_params(collector.params))
    node_text = text[start_index:end_index]
    skip = is_skip(start_index, end_index)

    verified = hooks.verify(title_frag.key)
    if verified is not None:
        hook_end = _locate_hook(raw_title, verified.match)
        if hook_end >= 0:
            args = [raw_title[hook_end:].strip()]
            args.extend(frag.text for frag in collector.params)
            return TemplateNode(
                kind=TemplateKind.PARSER_FUNCTION,
                name=clean_title(title_frag.key),
                title=None,
                raw_title=raw_title,
                text=node_text,
                params=params,
                start_index=start_index,
                end_index=end_index,
                nest_level=nest_level,
                skip=skip,
                hook=verified.match,
                canonical_hook=verified.canonical,
                raw_hook=raw_title[:hook_end],
                args=tuple(args),
            )

    title = _template_title(title_frag.key, resolver)
    if title is None and ctx is not None:
        ctx.debug("invalid template title {!r} at offset {}"
                  .format(raw_title, start_index),
                  sortid="templates/invalid-title")
    return TemplateNode(
        kind=TemplateKind.RAW if title is None else TemplateKind.TEMPLATE,
        name=clean_title(title_frag.key),
        title=title,
        raw_title=raw_title,
        text=node_text,
        params=params,
        start_index=start_index,
        end_index=end_index,
        nest_level=nest_level,
        skip=skip,
    )


def _unclosed_openings(text: str, index_map: IndexMap, start: int,
                       end: int) -> set[int]:
    """Returns the offsets of the "{{" in text[start:end] that are never
    closed.  Each "}}" closes the latest open "{{"."""
    stack: list[int] = []
    i = start
    while i < end:
        entry = index_map.get(i)
        if entry is not None and entry.kind is not SpanKind.GALLERY:
            i += len(entry.text)
            continue
        if text.startswith("{{", i) and i + 2 <= end:
            stack.append(i)
            i += 2
        elif stack and text.startswith("}}", i) and i + 2 <= end:
            stack.pop()
            i += 2
        else:
            i += 1
    return set(stack)


def parse_templates(
    ctx: Optional["Wikitext"],
    text: str,
    index_map: IndexMap,
    is_skip: Callable[[int, int], bool],
    resolver: "TitleResolver",
    hooks: HookTable,
    start: int = 0,
    end: Optional[int] = None,
    nest_level: int = 0,
    max_depth: int = MAX_NEST_DEPTH,
    galleries: Optional[list[tuple[int, int]]] = None,
    depth: int = 0,
) -> list[TemplateNode]:
    """Finds {{templates}} and parser functions in text[start:end].

    Spans in ``index_map`` (skip tags, parameters, wikilinks) are taken as
    opaque text; their inner ranges are scanned for templates when they
    are not themselves inside a template.  Pipes inside <gallery> tags
    (GALLERY entries of the map) do not separate parameters.  ``depth``
    counts the recursive scans leading here and is limited by
    ``max_depth``.  Returns the templates at all nesting levels sorted by
    start offset."""
    if end is None:
        end = len(text)
    if depth > max_depth:
        raise NestingDepthError("template", depth, max_depth)
    if galleries is None:
        galleries = gallery_ranges(index_map)

    def in_gallery(pos: int) -> bool:
        return any(s <= pos < e for s, e in galleries)

    # Unclosed braces are literal text; whatever follows them may still
    # hold complete templates
    unclosed = _unclosed_openings(text, index_map, start, end)
    templates: list[TemplateNode] = []
    collector = _FragmentCollector()
    braces = 0  # Number of unclosed "{{"
    tstart = start
    i = start
    while i < end:
        entry = index_map.get(i)
        if entry is not None and entry.kind is not SpanKind.GALLERY:
            if braces > 0:
                collector.add(entry.text, non_name=True)
            elif entry.inner is not None and entry.inner[1] <= end:
                s, e = entry.inner
                inner = text[s:e]
                if "{{" in inner and "}}" in inner:
                    templates.extend(
                        parse_templates(ctx, text, index_map, is_skip,
                                        resolver, hooks, s, e, nest_level,
                                        max_depth, galleries, depth + 1))
            i += len(entry.text)
            continue

        if text.startswith("{{", i) and i + 2 <= end:
            if braces == 0:
                if i in unclosed:
                    if ctx is not None:
                        ctx.debug("unclosed {{{{ at offset {}".format(i),
                                  sortid="templates/unclosed")
                    i += 2
                    continue
                tstart = i
                collector = _FragmentCollector()
            else:
                collector.add("{{", nested=True)
            braces += 1
            i += 2
            continue

        if braces == 0:
            i += 1
            continue

        if text.startswith("}}", i) and i + 2 <= end:
            braces -= 1
            if braces > 0:
                collector.add("}}", nested=True)
                i += 2
                continue
            end_index = i + 2
            templates.append(
                _make_node(ctx, collector, text, tstart, end_index,
                           nest_level, is_skip, resolver, hooks))
            inner = text[tstart + 2:i]
            if "{{" in inner and "}}" in inner:
                templates.extend(
                    parse_templates(ctx, text, index_map, is_skip, resolver,
                                    hooks, tstart + 2, i, nest_level + 1,
                                    max_depth, galleries, depth + 1))
            i = end_index
            continue

        ch = text[i]
        gallery = in_gallery(i)
        if ch == "|" and braces == 1 and not gallery:
            collector.separator()
        else:
            collector.add(ch, non_name=gallery, nested=braces > 1)
        i += 1

    templates.sort(key=lambda x: x.start_index)
    return templates
