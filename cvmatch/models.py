from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class JobDocument(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    text: str = ""
    embedding: Optional[Any] = None  # Any fixed-length numeric sequence


class CvSections(BaseModel):
    model_config = ConfigDict(frozen=True)

    experience: str = ""
    skills: str = ""
    projects: str = ""
    education: str = ""
    location: str = ""


class CvDocument(BaseModel):
    """A parsed resume. Treated as immutable input by the matcher."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: str
    name: Optional[str] = None
    text: str = ""
    sections: CvSections = Field(default_factory=CvSections)
    embedding: Optional[Any] = None
    updated_at: Optional[float] = None  # Epoch seconds

    def full_text(self) -> str:
        """The raw text, or the non-empty sections joined when no raw text was kept."""
        if self.text and self.text.strip():
            return self.text
        parts = (
            self.sections.experience, self.sections.skills, self.sections.projects,
            self.sections.education, self.sections.location,
        )
        return "\n\n".join(part for part in parts if part and part.strip())


class MustHaveSet(BaseModel):
    required_skills: List[str] = Field(default_factory=list)
    language: Optional[str] = None
    location: Optional[str] = None
    clearance: List[str] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.required_skills or self.language or self.location or self.clearance)


class MustHaveCheck(BaseModel):
    satisfied: bool = True
    missing: List[str] = Field(default_factory=list)


class SentenceMatch(BaseModel):
    text: str
    score: float = Field(ge=0.0, le=1.0)


class MatchExplanation(BaseModel):
    matched_keywords: List[str] = Field(default_factory=list)
    missing_must_haves: List[str] = Field(default_factory=list)
    top_sentences: List[SentenceMatch] = Field(default_factory=list)


class MatchResult(BaseModel):
    score: float = Field(ge=0.0, le=1.0)
    explanation: MatchExplanation = Field(default_factory=MatchExplanation)
    cv_id: Optional[str] = None

    @property
    def satisfied(self) -> bool:
        """True when no must-have requirement is missing."""
        return not self.explanation.missing_must_haves
