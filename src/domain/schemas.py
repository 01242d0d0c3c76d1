from pydantic import BaseModel, EmailStr, Field, field_validator, ConfigDict
from typing import Optional, List, Literal
from datetime import datetime, date

Team = Literal['tech', 'sales', 'product', 'marketing']


# INGESTION SCHEMAS (ETL)
# Validate raw seed rows coming from the answers CSV (one row per answer).

class AnswerRowSchema(BaseModel):
    """
    Validates one answer row of the seed CSV.

    Responsibilities:
    1. Maps CSV headers (aliases) to internal attributes.
    2. Sanitizes empty strings into None.
    3. Enforces email format and the closed team set.
    """
    model_config = ConfigDict(populate_by_name=True)

    # --- Employee ---
    email: EmailStr = Field(..., alias='email')
    name: str = Field(..., alias='name')
    team: Optional[Team] = Field(None, alias='team')
    gender: Optional[str] = Field(None, alias='gender')
    date_of_birth: Optional[date] = Field(None, alias='date_of_birth')

    # --- Answer ---
    survey_title: str = Field(..., alias='survey')
    question: str = Field(..., alias='question')
    answer: str = Field(..., alias='answer')
    submitted_at: datetime = Field(..., alias='submitted_at')

    @field_validator('team', mode='before')
    @classmethod
    def normalize_team(cls, v):
        if isinstance(v, str):
            return v.strip().lower() or None
        return v

    @field_validator('date_of_birth', mode='before')
    @classmethod
    def parse_date(cls, v):
        """Parses DD/MM/YYYY or ISO dates."""
        if isinstance(v, str) and '/' in v:
            try:
                return datetime.strptime(v, '%d/%m/%Y').date()
            except ValueError:
                raise ValueError(f"Invalid date format: {v}. Expected DD/MM/YYYY")
        return v

    @field_validator('*', mode='before')
    @classmethod
    def handle_empty_values(cls, v):
        """Global validator to clean empty strings/hyphens across all fields."""
        if isinstance(v, str) and (v.strip() == '' or v == '-'):
            return None
        return v


# CULTURE SCORE REPORT
# The merged, persisted artifact. Counts come from local data, scores from the model.

class CompanyOverview(BaseModel):
    totalEmployees: int
    employeesWithResponses: int
    responseRate: str
    averageSatisfaction: float
    averageWorkLifeBalance: float


class TeamMetric(BaseModel):
    """
    Team names are open strings here: the model may name a team that has no
    local employees, and that entry is still reported with zero counts.
    """
    team: str
    totalCount: int
    respondedCount: int
    responseRate: str
    satisfaction: float
    workLifeBalance: float


class ActionItem(BaseModel):
    text: str
    tags: List[str] = Field(default_factory=list)
    priority: str = 'medium'

    @field_validator('priority', mode='before')
    @classmethod
    def normalize_priority(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


class CultureScoreReport(BaseModel):
    """DTO for the culture score report (API output and renderer input)."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    lastUpdated: datetime
    companyOverview: CompanyOverview
    teamMetrics: List[TeamMetric] = Field(default_factory=list)
    actionItems: List[ActionItem] = Field(default_factory=list)
    aiGenerated: bool = True

    @classmethod
    def from_model(cls, record) -> 'CultureScoreReport':
        """Builds the DTO from a CultureScore ORM row."""
        return cls(
            id=record.id,
            lastUpdated=record.last_updated,
            companyOverview=record.company_overview,
            teamMetrics=record.team_metrics or [],
            actionItems=record.action_items or [],
            aiGenerated=record.ai_generated,
        )


class Branding(BaseModel):
    """Organization branding consumed by the report renderer."""
    organization_name: str = 'Culture App'
    logo_path: Optional[str] = None


# ANALYTICS & API OUTPUT SCHEMAS

class SurveyCompletion(BaseModel):
    id: int
    title: str
    completedCount: int


class SurveyStats(BaseModel):
    """DTO for the quarter-window survey completion statistics."""
    totalEmployees: int
    surveys: List[SurveyCompletion]
    quarter: str


class EmployeeSummaryResponse(BaseModel):
    summary: Optional[str] = None
    lastUpdated: Optional[datetime] = None
