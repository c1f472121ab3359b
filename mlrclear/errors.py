"""
Error taxonomy.

  - PatternLibraryError:  configuration error at library load. Fatal.
  - InvalidContextError:  ValidationContext without a brand_id. Raised
                          immediately, before any scanning.
  - CollaboratorError:    a brand rule / guideline provider failed.
                          Always recovered by the engine (degraded mode).
  - AnalysisCancelled:    the caller cancelled, or the deadline passed.
                          Partial results are discarded.
  - UnknownClaimError:    a reviewer override names a claim id the
                          result does not contain.
"""

from __future__ import annotations


class MLRClearError(Exception):
    """Base class for every error raised by mlrclear."""


class PatternLibraryError(MLRClearError):
    """A pattern could not be compiled or the library file is malformed."""

    def __init__(self, message: str, pattern_index: int | None = None):
        super().__init__(message)
        self.pattern_index = pattern_index


class InvalidContextError(MLRClearError, ValueError):
    """The ValidationContext is missing a mandatory field."""


class CollaboratorError(MLRClearError):
    """An external provider (brand rules, guidelines) failed."""


class AnalysisCancelled(MLRClearError):
    """Analysis was cancelled before completion."""


class UnknownClaimError(MLRClearError, KeyError):
    """An override referenced a claim id that is not in the result."""
