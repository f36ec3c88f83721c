"""Models exchanged with the cover text recognition step."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TextObservation(BaseModel):
    """One line of text reported by a text detector.

    Attributes:
        text: Recognized text (untrimmed, as the detector reported it).
        confidence: Detector confidence in [0, 1].
        top: Vertical position of the line's top edge, normalized to
            [0, 1] with 0 at the top of the image.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    confidence: float = Field(ge=0.0, le=1.0)
    top: float = 0.0


class RecognitionSuggestion(BaseModel):
    """Best-guess title and artist extracted from a cover photo.

    Attributes:
        suggested_title: Most likely album title ("" if none).
        suggested_artist: Most likely artist ("" if none).
        candidate_lines: All usable lines, top to bottom.
        confidence: Mean detector confidence over the candidate lines.
    """

    model_config = ConfigDict(frozen=True)

    suggested_title: str
    suggested_artist: str
    candidate_lines: list[str] = Field(default_factory=list)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
