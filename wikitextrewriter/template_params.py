# Object model for template parameters and parser function arguments,
# used for building and rewriting {{template}} markup
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import re

from collections.abc import Callable, Iterable, Iterator
from typing import Optional, Union

from .errors import WikitextError
from .parserfns import HookTable, get_hook_table
from .title import NS_MAIN, NS_TEMPLATE, Title

_numeric_key_re = re.compile(r"^[1-9]\d*$")

# (key, value) pairs; an empty key makes an unnamed parameter
NewParams = Iterable[tuple[str, str]]
Hierarchies = Iterable[Iterable[str]]


class TemplateParam:
    """A template parameter.  Unnamed parameters have a synthesized numeric
    ``key``.  ``duplicates`` collects parameters that this one overrode
    (or that were ignored because of it)."""

    __slots__ = ("key", "value", "unnamed", "duplicates")

    def __init__(
        self,
        key: str,
        value: str,
        unnamed: bool,
        duplicates: Optional[list["TemplateParam"]] = None,
    ) -> None:
        self.key = key
        self.value = value
        self.unnamed = unnamed
        self.duplicates: list["TemplateParam"] = duplicates or []

    def to_text(self, with_key: bool = False) -> str:
        if self.unnamed and not with_key and "=" not in self.value:
            return "|" + self.value
        return "|{}={}".format(self.key, self.value)

    @property
    def text(self) -> str:
        return self.to_text()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TemplateParam):
            return NotImplemented
        return (self.key == other.key and self.value == other.value and
                self.unnamed == other.unnamed)

    def __repr__(self) -> str:
        return "TemplateParam({!r}, {!r}, unnamed={})".format(
            self.key, self.value, self.unnamed)


class TemplateParams:
    """Ordered set of template parameters keyed by parameter name.

    ``hierarchies`` lists groups of alias keys in increasing priority,
    e.g. [["1", "user", "User"]]: a parameter keyed "User" overrides one
    keyed "1", and a "1" added after "User" is ignored."""

    def __init__(self, params: NewParams = (),
                 hierarchies: Optional[Hierarchies] = None) -> None:
        self.hierarchies: list[list[str]] = [
            list(h) for h in (hierarchies or [])
        ]
        self.params: dict[str, TemplateParam] = {}
        self.order: list[str] = []
        for key, value in params:
            self._register(key, value, True, "end", list_duplicates=True)

    def find_numeric_key(self) -> str:
        """Returns the smallest positive integer not yet used as a key."""
        used = set(int(k) for k in self.params if _numeric_key_re.match(k))
        i = 1
        while i in used:
            i += 1
        return str(i)

    def _hierarchy(self, key: str) -> Optional[list[str]]:
        for hier in self.hierarchies:
            if key in hier:
                return hier
        return None

    def check_key_override(self, key: str) -> Optional[tuple[str, str]]:
        """Returns ("overrides", k) if ``key`` takes priority over the
        existing key ``k`` of the same hierarchy, ("overridden", k) if
        ``k`` takes priority over it, or None."""
        hier = self._hierarchy(key)
        if hier is None:
            return None
        for k in self.order:
            if k != key and k in hier:
                if hier.index(key) > hier.index(k):
                    return ("overrides", k)
                return ("overridden", k)
        return None

    def _register(
        self,
        key: str,
        value: str,
        overwrite: bool,
        position: str,
        anchor: Optional[str] = None,
        list_duplicates: bool = False,
    ) -> bool:
        key = key.strip()
        unnamed = key == ""
        if unnamed:
            key = self.find_numeric_key()
        else:
            value = value.strip()

        override = self.check_key_override(key)
        existing = override is not None or key in self.params
        if existing and not overwrite:
            return False

        if override is not None and override[0] == "overridden":
            if list_duplicates:
                self.params[override[1]].duplicates.append(
                    TemplateParam(key, value, unnamed))
            return False

        duplicates: list[TemplateParam] = []
        old_key = None
        if override is not None:
            old_key = override[1]
        elif key in self.params:
            old_key = key
        idx = len(self.order)
        if old_key is not None:
            old = self.params.pop(old_key)
            duplicates = old.duplicates
            if list_duplicates:
                duplicates.append(TemplateParam(old.key, old.value,
                                                old.unnamed))
            idx = self.order.index(old_key)
            self.order.remove(old_key)

        self.params[key] = TemplateParam(key, value, unnamed, duplicates)
        if position == "keep":
            self.order.insert(idx, key)
        elif position == "start":
            self.order.insert(0, key)
        elif position in ("before", "after") and anchor in self.order:
            i = self.order.index(anchor)
            self.order.insert(i + 1 if position == "after" else i, key)
        else:
            self.order.append(key)
        return True

    def add(self, key: str, value: str, overwrite: bool = True) -> bool:
        """Adds a parameter at the end.  An existing parameter with the same
        key is replaced and moved to the end, unless ``overwrite`` is
        False.  An empty key adds an unnamed parameter."""
        return self._register(key, value, overwrite, "end")

    def set(self, key: str, value: str, overwrite: bool = True) -> bool:
        """Sets a parameter, keeping the position of an existing one."""
        return self._register(key, value, overwrite, "keep")

    def insert(
        self,
        key: str,
        value: str,
        position: str = "end",
        before: Optional[str] = None,
        after: Optional[str] = None,
        overwrite: bool = True,
    ) -> bool:
        """Inserts a parameter at the start or end, or before or after the
        parameter with the given key (at the end if that key does not
        exist)."""
        if position not in ("start", "end"):
            raise ValueError("position must be 'start' or 'end': {!r}"
                             .format(position))
        if before is not None:
            return self._register(key, value, overwrite, "before", before)
        if after is not None:
            return self._register(key, value, overwrite, "after", after)
        return self._register(key, value, overwrite, position)

    def get(self, key: str,
            resolve_hierarchy: bool = False) -> Optional[TemplateParam]:
        """Returns the parameter with the given key.  If
        ``resolve_hierarchy`` is True, the highest-priority existing key of
        the key's hierarchy is looked up instead."""
        if resolve_hierarchy:
            hier = self._hierarchy(key)
            if hier is not None:
                for k in reversed(hier):
                    if k in self.params:
                        return self.params[k]
        return self.params.get(key)

    def delete(self, key: str, resolve_hierarchy: bool = False) -> bool:
        param = self.get(key, resolve_hierarchy)
        if param is None:
            return False
        del self.params[param.key]
        self.order.remove(param.key)
        return True

    def has(
        self,
        key: Union[str, re.Pattern, Callable[[str, TemplateParam], bool]],
        value: Union[None, str, re.Pattern] = None,
    ) -> bool:
        """Checks for a parameter whose key equals or matches ``key`` and,
        if ``value`` is given, whose value equals or matches ``value``.
        ``key`` may also be a predicate taking the key and parameter."""
        if callable(key) and not isinstance(key, re.Pattern):
            return any(key(k, p) for k, p in self.params.items())
        if isinstance(key, str):
            if not key:
                return False
            key = re.compile("^{}$".format(re.escape(key)))
        for k, p in self.params.items():
            if not key.search(k):
                continue
            if value is None:
                return True
            if isinstance(value, str):
                if p.value == value:
                    return True
            elif value.search(p.value):
                return True
        return False

    def __iter__(self) -> Iterator[TemplateParam]:
        for key in self.order:
            yield self.params[key]

    def __len__(self) -> int:
        return len(self.order)

    def __contains__(self, key: str) -> bool:
        return key in self.params

    def keys(self) -> list[str]:
        return list(self.order)

    def stringify_params(
        self,
        sort_key: Optional[Callable[[TemplateParam], object]] = None,
        suppress_numeric_keys: bool = True,
        br_param: Optional[Callable[[TemplateParam], bool]] = None,
    ) -> str:
        """Returns the "|key=value" text of all parameters.  Keys of unnamed
        parameters are left out when that does not change their meaning."""
        params = list(self)
        if sort_key is not None:
            params.sort(key=sort_key)
        parts: list[str] = []
        position = 0
        for param in params:
            with_key = not suppress_numeric_keys
            if param.unnamed and not with_key:
                # A bare value takes the next positional number
                if param.key == str(position + 1) and "=" not in param.value:
                    position += 1
                else:
                    with_key = True
            parts.append(param.to_text(with_key))
            if br_param is not None and br_param(param):
                parts.append("\n")
        return "".join(parts)


def template_title_text(title: Title) -> str:
    """Returns the title as written in a transclusion: without the
    Template: prefix, and with a colon for the main namespace."""
    if title.namespace == NS_TEMPLATE:
        return title.main_text
    if title.namespace == NS_MAIN:
        return ":" + title.prefixed_text()
    return title.prefixed_text()


def _check_template_title(title: Title) -> None:
    if not isinstance(title, Title):
        raise TypeError("expected a Title, got {!r}".format(title))
    if not title.dbkey:
        raise WikitextError("the empty title cannot be transcluded")
    if title.is_external():
        raise WikitextError("interwiki title {} cannot be transcluded"
                            .format(title))


class Template(TemplateParams):
    """A {{template}} transclusion: a title and its parameters.
    ``raw_title`` holds the (leading, trailing) text around the title as
    it was written, e.g. comments and line breaks."""

    def __init__(
        self,
        title: Title,
        params: NewParams = (),
        hierarchies: Optional[Hierarchies] = None,
        raw_title: Optional[tuple[str, str]] = None,
    ) -> None:
        _check_template_title(title)
        super().__init__(params, hierarchies)
        self.title = title
        self.raw_title = raw_title

    def set_title(self, title: Title) -> bool:
        try:
            _check_template_title(title)
        except (TypeError, WikitextError):
            return False
        self.title = title
        return True

    def stringify(
        self,
        prepend: Optional[str] = None,
        append: Optional[str] = None,
        raw_title: bool = False,
        sort_key: Optional[Callable[[TemplateParam], object]] = None,
        br_title: bool = False,
        br_param: Optional[Callable[[TemplateParam], bool]] = None,
        suppress_numeric_keys: bool = True,
    ) -> str:
        """Returns the template markup.  ``prepend`` (e.g. "subst:") and
        ``append`` go around the title; ``raw_title`` restores the text
        written around the title; ``br_title`` and ``br_param`` add line
        breaks after the title and after selected parameters."""
        title = template_title_text(self.title)
        if raw_title and self.raw_title is not None:
            title = self.raw_title[0] + title + self.raw_title[1]
        parts = ["{{"]
        if prepend is not None:
            if title.startswith(":"):
                prepend = re.sub(r":$", "", prepend)
            parts.append(prepend)
        parts.append(title)
        if append is not None:
            parts.append(append)
        if br_title:
            parts.append("\n")
        parts.append(self.stringify_params(sort_key, suppress_numeric_keys,
                                           br_param))
        parts.append("}}")
        return "".join(parts)

    def __str__(self) -> str:
        return self.stringify()

    def __repr__(self) -> str:
        return "Template({!r}, {!r})".format(
            self.title.prefixed_text(), list(self))


class ParserFunction:
    """A {{#hook:arg0|arg1|...}} parser function call.  ``args[0]`` is the
    text between the hook and the first pipe."""

    def __init__(
        self,
        hook: str,
        args: Iterable[str] = (),
        hooks: Optional[HookTable] = None,
        raw_prefix: str = "",
    ) -> None:
        self.hooks = hooks if hooks is not None else get_hook_table()
        verified = self.hooks.verify(hook)
        if verified is None:
            raise WikitextError("{!r} is not a valid function hook"
                                .format(hook))
        self.hook = verified.match
        self.canonical_hook = verified.canonical
        self.args: list[str] = list(args)
        self.raw_prefix = raw_prefix

    def set_hook(self, hook: str) -> bool:
        verified = self.hooks.verify(hook)
        if verified is None:
            return False
        self.hook = verified.match
        self.canonical_hook = verified.canonical
        return True

    def add_arg(self, arg: str) -> None:
        self.args.append(arg)

    def set_arg(self, index: int, arg: str, overwrite: bool = True,
                if_exists: bool = True) -> bool:
        """Sets the argument at ``index``.  If there is no such argument,
        ``arg`` is appended unless ``if_exists`` is True."""
        if 0 <= index < len(self.args):
            if not overwrite:
                return False
            self.args[index] = arg
            return True
        if if_exists:
            return False
        self.args.append(arg)
        return True

    def get_arg(self, index: int) -> Optional[str]:
        if 0 <= index < len(self.args):
            return self.args[index]
        return None

    def has_arg(
        self,
        index: Union[int, Callable[[int, str], bool]],
        value: Union[None, str, re.Pattern] = None,
    ) -> bool:
        if callable(index):
            return any(index(i, v) for i, v in enumerate(self.args))
        arg = self.get_arg(index)
        if arg is None:
            return False
        if value is None:
            return True
        if isinstance(value, str):
            return arg == value
        return bool(value.search(arg))

    def delete_arg(self, index: int) -> bool:
        if not 0 <= index < len(self.args):
            return False
        del self.args[index]
        return True

    def stringify(
        self,
        prepend: str = "",
        use_canonical: bool = False,
        raw_hook: bool = False,
        sort_key: Optional[Callable[[str], object]] = None,
        br_arg: Optional[Callable[[str, int], bool]] = None,
    ) -> str:
        hook = self.canonical_hook if use_canonical else self.hook
        if raw_hook:
            hook = self.raw_prefix + hook
        args = list(self.args)
        if sort_key is not None:
            args.sort(key=sort_key)
        if br_arg is not None:
            args = [a + "\n" if br_arg(a, i) else a
                    for i, a in enumerate(args)]
        return "{{" + prepend + hook + "|".join(args) + "}}"

    def __str__(self) -> str:
        return self.stringify()

    def __repr__(self) -> str:
        return "ParserFunction({!r}, {!r})".format(self.hook, self.args)
