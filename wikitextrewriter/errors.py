# Exceptions raised at the API boundary.  Malformed wikitext never raises;
# it is represented in the parse results instead.
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org


class WikitextError(Exception):
    """Base class for errors raised by this package."""


class LengthMismatchError(WikitextError):
    """A modification predicate returned a list whose length differs from
    the number of records it was given."""

    def __init__(self, expected: int, got: int) -> None:
        super().__init__(
            f"modification predicate returned {got} items, expected {expected}"
        )
        self.expected = expected
        self.got = got


class ModificationTypeError(WikitextError, TypeError):
    """A modification predicate returned something other than a list of
    strings and Nones."""


class NestingDepthError(WikitextError):
    """Templates, parameters or wikilinks are nested deeper than the
    configured limit."""

    def __init__(self, kind: str, depth: int, limit: int) -> None:
        super().__init__(
            f"{kind} nesting depth {depth} exceeds the limit of {limit}"
        )
        self.kind = kind
        self.depth = depth
        self.limit = limit
