from pydantic import BaseModel, Field, model_validator

from src.domain.entities import Action, ReviewFrequency, TeamRole


class ProjectRules(BaseModel):
    slug: str
    rules_version: str

class RangeRule(BaseModel):
    min: int = 0
    max: int

    @model_validator(mode="after")
    def _check_bounds(self) -> "RangeRule":
        if self.min > self.max:
            raise ValueError(f"min ({self.min}) must not exceed max ({self.max})")
        return self

class RbacRules(BaseModel):
    roles: dict[TeamRole, list[Action]]
    # Actions an owner/author may perform on their own resource regardless of role
    owner_actions: list[Action] = Field(default_factory=list)

class TeamRules(BaseModel):
    name: RangeRule
    description: RangeRule
    review_frequencies: list[ReviewFrequency]
    default_review_frequency: ReviewFrequency = "monthly"

class OkrRules(BaseModel):
    title: RangeRule
    description: RangeRule
    key_result_title: RangeRule
    unit: RangeRule
    key_results: RangeRule
    quarter_year: RangeRule

class ReviewRules(BaseModel):
    content: RangeRule

class PaginationRules(BaseModel):
    default_limit: int = 20
    max_limit: int = 100

class SessionsRules(BaseModel):
    cache_ttl_seconds: int = 60

class OpsRules(BaseModel):
    data_dir_required: bool = True
    required_env: list[str] = Field(default_factory=list)

class Rules(BaseModel):
    project: ProjectRules
    rbac: RbacRules
    teams: TeamRules
    okrs: OkrRules
    reviews: ReviewRules
    pagination: PaginationRules = Field(default_factory=PaginationRules)
    sessions: SessionsRules = Field(default_factory=SessionsRules)
    ops: OpsRules = Field(default_factory=OpsRules)
