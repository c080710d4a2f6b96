"""Mini README: Error taxonomy shared by the embedder and the exporters.

Structure:
    * TreeSurveyError - base class for every raised condition.
    * EmbeddingFailed / UnsupportedContainer - non-fatal metadata failures,
      returned to callers as values and never raised past the embedder.
    * ExportFailed - the requested artefact cannot be produced at all.
    * ExportPartial - warning record for an archive member that was omitted.
"""

from __future__ import annotations

from dataclasses import dataclass


class TreeSurveyError(Exception):
    """Base class for tree survey errors."""


class EmbeddingFailed(TreeSurveyError):
    """Metadata could not be written; the photo is kept as captured."""


class UnsupportedContainer(EmbeddingFailed):
    """The payload is not an image container the embedder understands."""


class ExportFailed(TreeSurveyError):
    """The export would be structurally invalid, so nothing is emitted."""


@dataclass(frozen=True, slots=True)
class ExportPartial:
    """An export member that was skipped while the artefact was still produced."""

    entry_id: str
    reason: str

    def __str__(self) -> str:
        return f"{self.entry_id}: {self.reason}"
