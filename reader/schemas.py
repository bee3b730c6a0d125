from pydantic import BaseModel, Field

class ArticlePayload(BaseModel):
    title: str = Field(description="Article title as extracted from the page")
    content: str = Field(description="Sanitized article body (HTML)")

class ErrorResponse(BaseModel):
    error: str
