from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from recruitment.utils.text_utils import normalize_text


class _ResumeModel(BaseModel):
    """저장된 이력서 JSON(camelCase)과 snake_case 입력을 모두 허용"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def _none_to_empty(cls, value, info):
        field = cls.model_fields[info.field_name]
        if field.annotation is str:
            return normalize_text(value)
        return value


class EducationEntry(_ResumeModel):
    school_name: str = Field("", alias="schoolName")
    major: str = ""
    period: str = ""
    graduation_status: str = Field("", alias="graduationStatus")  # 졸업/재학/수료 등
    details: str = ""


class WorkExperienceEntry(_ResumeModel):
    company_name: str = Field("", alias="companyName")
    period: str = ""
    main_task: str = Field("", alias="mainTask")
    leaving_reason: str = Field("", alias="leavingReason")


class CoreCompetencyEntry(_ResumeModel):
    full_description: str = Field("", alias="fullDescription")
    period: str = ""
    course_name: str = Field("", alias="courseName")
    institution: str = ""


class CertificationEntry(_ResumeModel):
    certification_name: str = Field("", alias="certificationName")
    period: str = ""
    institution: str = ""


class CandidateProfile(_ResumeModel):
    """매칭에 사용하는 지원자 이력서 (요청마다 전달, 저장하지 않음)"""
    name: str = ""
    address: str = ""
    desired_job: str = Field("", alias="desiredJob")
    education: List[EducationEntry] = Field(default_factory=list)
    work_experience: List[WorkExperienceEntry] = Field(default_factory=list, alias="workExperience")
    core_competencies: List[CoreCompetencyEntry] = Field(default_factory=list, alias="coreCompetencies")
    certifications: List[CertificationEntry] = Field(default_factory=list)

    @field_validator("education", "work_experience", "core_competencies", "certifications", mode="before")
    @classmethod
    def _list_or_empty(cls, value):
        if value is None:
            return []
        return value


class CoverLetterInput(_ResumeModel):
    growth_process: Optional[str] = Field(None, alias="growthProcess")  # 성장과정
    strengths_and_weaknesses: Optional[str] = Field(None, alias="strengthsAndWeaknesses")  # 성격의 장단점
    key_experience: Optional[str] = Field(None, alias="keyExperience")  # 주요 경험
    motivation: Optional[str] = None  # 지원동기

    def sections(self) -> List[str]:
        """비어있지 않은 자기소개서 항목들"""
        values = [self.growth_process, self.strengths_and_weaknesses, self.key_experience, self.motivation]
        return [text for text in (normalize_text(value) for value in values) if text]
