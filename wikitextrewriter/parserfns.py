# Table of parser function hooks ({{#if:...}}, {{lc:...}}, ...) used for
# telling parser functions apart from template transclusions
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import re
import json
import functools

from dataclasses import dataclass
from importlib.resources import files
from typing import Optional, TypedDict

# Functions that must not have a leading hash to work as parser functions.
# See includes/parser/CoreParserFunctions.php in MediaWiki.
NO_HASH_FUNCTIONS: frozenset[str] = frozenset(
    [
        "ns", "nse", "urlencode", "lcfirst", "ucfirst", "lc", "uc",
        "localurl", "localurle", "fullurl", "fullurle", "canonicalurl",
        "canonicalurle", "formatnum", "grammar", "gender", "plural",
        "formal", "bidi", "numberingroup", "language", "padleft",
        "padright", "anchorencode", "defaultsort", "filepath",
        "pagesincategory", "pagesize", "protectionlevel",
        "protectionexpiry",
        # Parser function forms of magic variables that take a page title
        "pagename", "pagenamee", "fullpagename", "fullpagenamee",
        "subpagename", "subpagenamee", "rootpagename", "rootpagenamee",
        "basepagename", "basepagenamee", "talkpagename", "talkpagenamee",
        "subjectpagename", "subjectpagenamee", "pageid", "revisionid",
        "revisionday", "revisionday2", "revisionmonth", "revisionmonth1",
        "revisionyear", "revisiontimestamp", "revisionuser",
        "cascadingsources", "namespace", "namespacee", "namespacenumber",
        "talkspace", "talkspacee", "subjectspace", "subjectspacee",
        # Parser function forms of magic variables that take "raw"
        "numberofarticles", "numberoffiles", "numberofusers",
        "numberofactiveusers", "numberofpages", "numberofadmins",
        "numberofedits",
        # These already contain the hash in their aliases
        "bcp47", "dir", "interwikilink", "interlanguagelink",
        # Handled without a hash by the core parser
        "int", "displaytitle",
    ]
)

# Anything that looks like "#name:" or "name:" at the start of a template
# title.  Whitespace is not allowed inside a hook.
_hook_like_re = re.compile(r"^#?[^:\uff1a\s]+[:\uff1a]")
# Aliases of the form __NAME__ are behavior switches, not hooks
_switch_re = re.compile(r"^[_\uff3f].+[_\uff3f]$")


FunctionHookData = TypedDict(
    "FunctionHookData",
    {"name": str, "aliases": list[str], "case-sensitive": bool},
    total=False,
)


@dataclass(frozen=True)
class HookMatch:
    """Result of a successful hook lookup.  ``canonical`` is the canonical
    form of the hook (e.g., "#if:") and ``match`` the hook as written in
    the text, including its colon."""

    canonical: str
    match: str


class HookTable:
    """Recognizes parser function hooks.  Each hook is matched with a
    regular expression built from its name and aliases, with an optional
    leading hash and the trailing (possibly full-width) colon."""

    def __init__(self, hooks: list[FunctionHookData]) -> None:
        self.regexes: dict[str, re.Pattern] = {}
        for data in hooks:
            name = data["name"]
            case_sensitive = bool(data.get("case-sensitive", False))
            no_hash = name in NO_HASH_FUNCTIONS
            keys = [name]
            for alias in data.get("aliases", []):
                if alias != name and not _switch_re.match(alias):
                    keys.append(alias)
            parts: list[str] = []
            for key in keys:
                hash_char = "" if no_hash else "#"
                if key.startswith("#"):
                    hash_char = "#"
                    key = key[1:]
                if not key:
                    continue
                if key[-1] not in ":\uff1a":
                    key += ":"
                if case_sensitive:
                    # The first letter is never case-sensitive
                    first = re.escape(key[0].lower() + key[0].upper())
                    parts.append("^{}[{}]{}$".format(
                        re.escape(hash_char), first, re.escape(key[1:])))
                else:
                    parts.append("^{}$".format(re.escape(hash_char + key)))
            canonical = ("" if no_hash else "#") + name + ":"
            flags = 0 if case_sensitive else re.IGNORECASE
            self.regexes[canonical] = re.compile("|".join(parts), flags)

    @classmethod
    def from_lang(cls, lang_code: str = "en") -> "HookTable":
        """Loads the hook table from the package's data for ``lang_code``."""
        data_folder = files("wikitextrewriter") / "data" / lang_code
        with data_folder.joinpath("functionhooks.json").open(
            encoding="utf-8"
        ) as f:
            return cls(json.load(f))

    def verify(self, text: str) -> Optional[HookMatch]:
        """Checks whether ``text`` starts with a parser function hook.  The
        hook must end with a colon character.  Returns a HookMatch or
        None."""
        m = _hook_like_re.match(text.strip())
        if not m:
            return None
        hook = m.group(0)
        for canonical, regex in self.regexes.items():
            if regex.match(hook):
                return HookMatch(canonical, hook)
        return None

    def __contains__(self, canonical: str) -> bool:
        return canonical in self.regexes


@functools.lru_cache(maxsize=None)
def get_hook_table(lang_code: str = "en") -> HookTable:
    """Returns a HookTable shared by all documents of a language."""
    return HookTable.from_lang(lang_code)
