from .lead import (
    CONFIDENCE_RANK,
    SOCIAL_FIELDS,
    Candidate,
    Confidence,
    MergedCandidate,
    QualifiedLead,
)
from .pipeline import (
    Brief,
    DiscoveryResult,
    ProgressEvent,
    QualificationConfig,
    QualificationResult,
    SearchDepth,
)
from .profile import ProfileSnapshot, RecentPost

__all__ = [
    "CONFIDENCE_RANK", "SOCIAL_FIELDS", "Candidate", "Confidence", "MergedCandidate",
    "QualifiedLead",
    "Brief", "DiscoveryResult", "ProgressEvent", "QualificationConfig",
    "QualificationResult", "SearchDepth",
    "ProfileSnapshot", "RecentPost",
]
