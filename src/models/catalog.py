from pydantic import BaseModel, Field


class Topic(BaseModel):
    id: str
    name: str
    description: str
    subtopics: list[str] = Field(default_factory=list)
