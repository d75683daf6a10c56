from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime

class ProjectCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)

class ProjectOut(BaseModel):
    id: int
    title: str
    createdAt: datetime = Field(validation_alias="created_at")

    model_config = ConfigDict(from_attributes=True)
