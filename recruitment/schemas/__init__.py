# Recruitment schemas
from .recruitment import (
    RecruitmentItem,
    RecruitmentSyncResult,
    RecruitmentSyncRequest,
    RecruitmentListFilters,
    RecruitmentPostingResponse,
    RecruitmentListResult,
    RecruitmentFilterOptionsResult,
    RecruitmentMatchItem,
    RecruitmentMatchResult,
    RecruitmentMatchRequest,
)

# Resume schemas
from .resume import (
    EducationEntry,
    WorkExperienceEntry,
    CoreCompetencyEntry,
    CertificationEntry,
    CandidateProfile,
    CoverLetterInput,
)

__all__ = [
    "RecruitmentItem", "RecruitmentSyncResult", "RecruitmentSyncRequest",
    "RecruitmentListFilters", "RecruitmentPostingResponse", "RecruitmentListResult",
    "RecruitmentFilterOptionsResult", "RecruitmentMatchItem", "RecruitmentMatchResult",
    "RecruitmentMatchRequest",
    "EducationEntry", "WorkExperienceEntry", "CoreCompetencyEntry", "CertificationEntry",
    "CandidateProfile", "CoverLetterInput",
]
