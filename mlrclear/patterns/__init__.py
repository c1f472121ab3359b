"""
Claim pattern library.

The process-wide default library is loaded here, once, at import. A
rule that fails to compile aborts the import.
"""

from mlrclear.config import settings
from mlrclear.patterns.library import (
    DEFAULT_RULES,
    LIBRARY_VERSION,
    Pattern,
    PatternLibrary,
    compile_rules,
    load_library,
)

default_library = load_library(settings.PATTERN_LIBRARY_PATH or None)

__all__ = [
    "DEFAULT_RULES",
    "LIBRARY_VERSION",
    "Pattern",
    "PatternLibrary",
    "compile_rules",
    "default_library",
    "load_library",
]
