"""
Candidate profile captured at session creation.
"""

from enum import Enum

from pydantic import BaseModel, EmailStr, Field, model_validator


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    NOT_TO_SAY = "not_to_say"


class UserInfo(BaseModel):
    """Candidate details snapshot, validated when the session is created."""

    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = Field(..., min_length=7, max_length=15)
    age: int = Field(..., ge=15, le=80)
    degree: str = Field(..., min_length=1)
    specialization: str = Field(..., min_length=1)
    career_interest: str = Field(..., min_length=1)
    gender: Gender | None = None

    technical_skills: str | None = None
    soft_skills: str | None = None
    interests: str | None = None
    hobbies: str | None = None
    certifications: str | None = None
    achievements: str | None = None

    university: str | None = None
    year_of_graduation: int | None = Field(default=None, ge=1950, le=2100)

    @model_validator(mode="after")
    def _reject_blank_required(self) -> "UserInfo":
        for field in ("name", "degree", "specialization", "career_interest"):
            if not getattr(self, field).strip():
                raise ValueError(f"{field} must not be blank")
        return self

    def to_prompt_context(self) -> str:
        """Render the profile for AI prompts."""
        lines = [
            f"- Name: {self.name}",
            f"- Age: {self.age}",
            f"- Degree: {self.degree}",
            f"- Specialization: {self.specialization}",
            f"- Career Interest: {self.career_interest}",
        ]
        optional = {
            "Technical Skills": self.technical_skills,
            "Soft Skills": self.soft_skills,
            "Interests": self.interests,
            "Hobbies": self.hobbies,
            "Certifications": self.certifications,
            "Achievements": self.achievements,
            "University": self.university,
        }
        for label, value in optional.items():
            if value and value.strip():
                lines.append(f"- {label}: {value.strip()}")
        return "\n".join(lines)
