from pydantic import BaseModel, Field


class CodeRequest(BaseModel):
    text: str = Field(min_length=1, max_length=255)
    module: str = Field(min_length=1, max_length=100)


class CodeResponse(BaseModel):
    code: str
