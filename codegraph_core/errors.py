"""Exceptions raised by the analysis pipeline.

Only :class:`FatalInputError` escapes :meth:`CodeGraphPipeline.analyze`;
the other conditions are absorbed where they occur and show up as skipped
files, degraded parse results, unresolved imports or a fallback enrichment.
"""

from __future__ import annotations

from typing import Optional


class CodeGraphError(Exception):
    """Base class for every pipeline error.

    Attributes:
        message: Explanation of the error
        file_path: The file being processed (if available)
    """

    def __init__(self, message: str, file_path: Optional[str] = None):
        self.message = message
        self.file_path = file_path
        full_message = f"{message} [file={file_path}]" if file_path else message
        super().__init__(full_message)


class FatalInputError(CodeGraphError):
    """The input is not a list of path/content records."""


class UnsupportedLanguage(CodeGraphError):
    """No language is registered for the file's extension."""


class ExtractionDegraded(CodeGraphError):
    """Extraction ran without declaration matchers for the file's language."""


class ExtractionFailed(CodeGraphError):
    """A single file could not be extracted (e.g. undecodable content)."""


class UnresolvedImport(CodeGraphError):
    """An import matched no file of the batch."""

    def __init__(self, module_path: str, file_path: Optional[str] = None):
        self.module_path = module_path
        super().__init__(f"Unresolved import '{module_path}'", file_path)


class EnrichmentError(CodeGraphError):
    """Base class for failures that route enrichment to the local fallback."""


class EnrichmentTransportFailure(EnrichmentError):
    """The provider raised, returned nothing, or could not be reached."""


class EnrichmentTimeout(EnrichmentTransportFailure):
    """The provider did not answer before the hard timeout."""


class EnrichmentCancelled(EnrichmentTransportFailure):
    """The caller abandoned the analysis while the request was in flight."""


class EnrichmentSchemaViolation(EnrichmentError):
    """The provider answered with a payload that does not fit the schema."""
