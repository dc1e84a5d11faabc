"""Pipeline request, progress and result schemas."""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.lead import Candidate, QualifiedLead


SearchDepth = Literal["quick", "deep", "full"]
ProgressStatus = Literal["searching", "enriching", "done"]


class Brief(BaseModel):
    """What kind of contacts to find, and how hard to look."""

    model_config = ConfigDict(frozen=True)

    contact_types: List[str] = Field(default_factory=list)
    markets: List[str] = Field(default_factory=list)
    genre: Optional[str] = None
    query: Optional[str] = None  # freeform query from the user
    target_count: int = Field(gt=0)
    search_depth: SearchDepth = "deep"
    preferred_platform: Optional[str] = None
    specific_location: Optional[str] = None


class ProgressEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    tier: str
    status: ProgressStatus
    found: int
    target: int
    current_source: str
    logs: List[str] = Field(default_factory=list)


class DiscoveryResult(BaseModel):
    contacts: List[Candidate]
    logs: List[str]
    total: int
    tier: str  # tier the run stopped at
    cancelled: bool = False


class QualificationConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    entity_type: str = ""
    niche: str = ""
    target_location: str = ""
    platform: str = ""
    max_to_qualify: int = Field(default=20, ge=0)


class QualificationResult(BaseModel):
    qualified: List[QualifiedLead]
    logs: List[str]
    cancelled: bool = False
