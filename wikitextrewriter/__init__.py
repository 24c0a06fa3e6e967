from .core import Wikitext
from .errors import (
    LengthMismatchError,
    ModificationTypeError,
    NestingDepthError,
    WikitextError,
)
from .indexmap import IndexMapEntry, SpanKind
from .parser import Parameter, Section, SkipRanges, Tag
from .parserfns import HookMatch, HookTable, get_hook_table
from .template_params import ParserFunction, Template, TemplateParam, TemplateParams
from .templates import TemplateKind, TemplateNode, TemplateParamRaw
from .title import Title, TitleResolver, get_title_resolver
from .wikilinks import FuzzyWikilink, Wikilink, WikilinkKind

__all__ = (
    "Wikitext",
    "WikitextError",
    "LengthMismatchError",
    "ModificationTypeError",
    "NestingDepthError",
    "IndexMapEntry",
    "SpanKind",
    "Tag",
    "Section",
    "Parameter",
    "SkipRanges",
    "HookMatch",
    "HookTable",
    "get_hook_table",
    "TemplateParam",
    "TemplateParams",
    "Template",
    "ParserFunction",
    "TemplateKind",
    "TemplateNode",
    "TemplateParamRaw",
    "Title",
    "TitleResolver",
    "get_title_resolver",
    "FuzzyWikilink",
    "Wikilink",
    "WikilinkKind",
)
