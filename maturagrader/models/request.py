from pydantic import BaseModel, Field


class TextUpdateRequest(BaseModel):
    text: str = Field(description="Full replacement text of the essay")

    class Config:
        json_schema_extra = {
            "example": {
                "text": "Czy warto poświęcić szczęście osobiste dla dobra innych? W mojej pracy odwołam się do 'Lalki' Bolesława Prusa.",
            }
        }


class WritingModeRequest(BaseModel):
    active: bool = Field(description="True to enter full-focus writing mode, False to leave it")
