from pydantic import BaseModel


class CompletionSection(BaseModel):
    name: str
    label: str
    weight: int
    completed: bool


class ProfileCompletion(BaseModel):
    completion: float
    required: float
    meets_threshold: bool
    completed_sections: list[CompletionSection]
    missing_sections: list[str]
    recommendations: list[str]
