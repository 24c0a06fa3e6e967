# Page title normalization and namespace classification.  This is a
# minimal, site-data driven version of MediaWiki's title parser that is
# sufficient for classifying template and wikilink targets.
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import re
import json
import functools

from dataclasses import dataclass
from importlib.resources import files
from typing import Optional, TypedDict

from lru import LRU

from .common import BIDI_RE

# Namespace ids fixed by MediaWiki
NS_MEDIA = -2
NS_SPECIAL = -1
NS_MAIN = 0
NS_TALK = 1
NS_USER = 2
NS_FILE = 6
NS_TEMPLATE = 10
NS_CATEGORY = 14

# Whitespace characters that MediaWiki folds into an underscore in titles
_whitespace_re = re.compile(
    r"[ _\u00a0\u1680\u180e\u2000-\u200a\u2028\u2029\u202f\u205f\u3000]+"
)
# Splits "Prefix:rest", allowing underscores around the colon
_prefix_re = re.compile(r"^(.+?)_*:_*(.*)$", re.DOTALL)
# Characters and sequences that may not appear in a title
_invalid_re = re.compile(
    r"[^ %!\"$&'()*,\-./0-9:;=?@A-Z\\^_`a-z~+\u0080-\U0010ffff]"
    r"|%[0-9A-Fa-f]{2}"
    r"|&[0-9A-Za-z\u0080-\U0010ffff]+;"
)
_relative_re = re.compile(r"^\.\.?(?:/|$)|/\.\.?(?:/|$)")

# Maximum title length in UTF-8 bytes (not enforced for Special pages)
MAX_TITLE_BYTES = 255


class NamespaceDataEntry(TypedDict):
    id: int
    name: str
    aliases: list[str]
    content: bool
    issubject: bool
    istalk: bool


class InterwikiDataEntry(TypedDict):
    prefix: str
    local: bool
    localinterwiki: bool


@dataclass(frozen=True)
class Title:
    """A validated page title.  ``dbkey`` is the title without namespace
    prefix, with underscores in place of spaces."""

    namespace: int
    dbkey: str
    ns_prefix: str = ""
    interwiki: str = ""
    fragment: str = ""
    colon: bool = False
    local_interwiki: bool = False

    def had_leading_colon(self) -> bool:
        return self.colon

    def is_external(self) -> bool:
        """Returns True if the title points to another wiki."""
        return bool(self.interwiki)

    @property
    def main_text(self) -> str:
        return self.dbkey.replace("_", " ")

    @property
    def prefixed_db(self) -> str:
        ret = self.dbkey
        if self.ns_prefix:
            ret = self.ns_prefix.replace(" ", "_") + ":" + ret
        if self.interwiki:
            ret = self.interwiki + ":" + ret
        return ret

    def prefixed_text(self, colon: bool = False,
                      fragment: bool = False) -> str:
        """Returns the title with its namespace (and interwiki) prefix.  If
        ``colon`` is True and the title was given with a leading colon,
        the colon is kept.  If ``fragment`` is True, "#fragment" is
        appended."""
        ret = self.prefixed_db.replace("_", " ")
        if colon and self.colon:
            ret = ":" + ret
        if fragment and self.fragment:
            ret += "#" + self.fragment
        return ret

    def __str__(self) -> str:
        return self.prefixed_text()


class TitleResolver:
    """Parses title strings into Title objects using the namespace and
    interwiki tables of one site language.  Results are kept in an LRU
    cache keyed by the raw title and its default namespace."""

    def __init__(
        self,
        lang_code: str = "en",
        namespaces: Optional[dict[str, NamespaceDataEntry]] = None,
        interwikis: Optional[list[InterwikiDataEntry]] = None,
        cache_size: int = 10000,
    ) -> None:
        self.lang_code = lang_code
        self.data_folder = files("wikitextrewriter") / "data" / lang_code
        if namespaces is None:
            with self.data_folder.joinpath("namespaces.json").open(
                encoding="utf-8"
            ) as f:
                namespaces = json.load(f)
        if interwikis is None:
            with self.data_folder.joinpath("interwiki.json").open(
                encoding="utf-8"
            ) as f:
                interwikis = json.load(f)
        self.NAMESPACE_DATA: dict[str, NamespaceDataEntry] = namespaces
        self.LOCAL_NS_NAME_BY_ID: dict[int, str] = {
            data["id"]: data["name"] for data in namespaces.values()
        }
        # Lookup table from any namespace name, canonical name or alias
        # (lowercase, underscores) to the namespace id
        self.ns_ids: dict[str, int] = {}
        for canonical, data in namespaces.items():
            if data["id"] == NS_MAIN:
                continue
            for name in [canonical, data["name"]] + data["aliases"]:
                if name:
                    self.ns_ids[self._ns_key(name)] = data["id"]
        self.interwikis: dict[str, InterwikiDataEntry] = {
            x["prefix"].lower(): x for x in interwikis
        }
        self.cache = LRU(cache_size)

    @staticmethod
    def _ns_key(name: str) -> str:
        return _whitespace_re.sub("_", name).strip("_").lower()

    def namespace_id(self, name: str) -> Optional[int]:
        """Returns the id of the namespace with the given local name,
        canonical name or alias, or None."""
        return self.ns_ids.get(self._ns_key(name))

    def namespace_name(self, ns_id: int) -> str:
        return self.LOCAL_NS_NAME_BY_ID.get(ns_id, "")

    def is_interwiki(self, prefix: str) -> bool:
        return prefix.lower() in self.interwikis

    def is_local_interwiki(self, prefix: str) -> bool:
        data = self.interwikis.get(prefix.lower())
        return data is not None and data["localinterwiki"]

    def new_from_text(
        self, text: str, namespace: int = NS_MAIN
    ) -> Optional[Title]:
        """Parses ``text`` as a page title.  ``namespace`` is used when the
        text has no namespace prefix.  Returns None if the text is not a
        valid title."""
        if not isinstance(text, str):
            return None
        key = (text, namespace)
        if key in self.cache:
            return self.cache[key]
        title = self._parse(text, namespace)
        self.cache[key] = title
        return title

    def _parse(
        self, text: str, namespace: int, local_interwiki: bool = False
    ) -> Optional[Title]:
        text = BIDI_RE.sub("", text)
        text = _whitespace_re.sub("_", text).strip("_")
        if "\ufffd" in text:
            return None

        colon = False
        if text.startswith(":"):
            colon = True
            namespace = NS_MAIN
            text = text[1:].strip("_")
        if not text:
            return None

        interwiki = ""
        m = _prefix_re.match(text)
        if m:
            prefix, rest = m.group(1), m.group(2)
            ns = self.namespace_id(prefix)
            if ns is not None:
                namespace = ns
                text = rest
                if ns == NS_TALK:
                    # Talk:File:x is not a valid title
                    m2 = _prefix_re.match(rest)
                    if m2 and self.namespace_id(m2.group(1)) is not None:
                        return None
            elif self.is_interwiki(prefix):
                if self.is_local_interwiki(prefix) and not local_interwiki:
                    ret = self._parse(rest, NS_MAIN, local_interwiki=True)
                    if ret is not None and colon:
                        ret = Title(
                            ret.namespace,
                            ret.dbkey,
                            ret.ns_prefix,
                            ret.interwiki,
                            ret.fragment,
                            True,
                            True,
                        )
                    return ret
                interwiki = prefix.lower()
                namespace = NS_MAIN
                text = rest

        fragment = ""
        idx = text.find("#")
        if idx >= 0:
            fragment = text[idx + 1:].replace("_", " ").strip()
            text = text[:idx].rstrip("_")

        if not text and not fragment and not interwiki:
            return None
        if _invalid_re.search(text):
            return None
        if "." in text and _relative_re.search(text):
            return None
        if "~~~" in text:
            return None
        if (namespace != NS_SPECIAL and
                len(text.encode("utf-8")) > MAX_TITLE_BYTES):
            return None
        if text.startswith(":"):
            return None
        if interwiki and not text:
            text = "Main_Page"

        if text and not interwiki:
            text = text[0].upper() + text[1:]

        return Title(
            namespace,
            text,
            self.namespace_name(namespace) if not interwiki else "",
            interwiki,
            fragment,
            colon,
            local_interwiki,
        )


@functools.lru_cache(maxsize=None)
def get_title_resolver(lang_code: str = "en") -> TitleResolver:
    """Returns a TitleResolver shared by all documents of a language."""
    return TitleResolver(lang_code)
