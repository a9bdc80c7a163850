"""Source layer: parse cache, symbol locators and the declaration index."""

from pyreflect.source.cache import ParsedFile, SourceCache, parse_source
from pyreflect.source.index import Declaration, DeclarationKind, FileIndex, index_file
from pyreflect.source.locator import ChainLocator, Locator, ModuleMapLocator, SearchPathLocator

__all__ = [
    "ChainLocator",
    "Declaration",
    "DeclarationKind",
    "FileIndex",
    "Locator",
    "ModuleMapLocator",
    "ParsedFile",
    "SearchPathLocator",
    "SourceCache",
    "index_file",
    "parse_source",
]
