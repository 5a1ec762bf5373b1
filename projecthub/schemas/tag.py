from pydantic import Field, field_validator
from projecthub.schemas.common import CamelModel


class TagCreate(CamelModel):
    name: str
    color: str = Field(pattern=r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Tag name is required")
        return value


class TagResponse(CamelModel):
    id: int
    name: str
    color: str
    project_id: int
