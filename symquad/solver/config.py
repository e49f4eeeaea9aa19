"""Process-wide default options for the rule search."""

from __future__ import annotations

import copy

from .model import SearchOptions

_DEFAULT_SEARCH_OPTIONS = SearchOptions()


def get_default_search_options() -> SearchOptions:
    return copy.deepcopy(_DEFAULT_SEARCH_OPTIONS)


def set_default_search_options(options: SearchOptions) -> None:
    global _DEFAULT_SEARCH_OPTIONS
    options.validate()
    _DEFAULT_SEARCH_OPTIONS = copy.deepcopy(options)


def reset_default_search_options() -> None:
    set_default_search_options(SearchOptions())
