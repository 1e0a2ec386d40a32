from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class ParseRequest(BaseModel):
    json_schema: Dict[str, Any] = Field(..., description="JSON schema of the expected output")
    payload: str = Field(..., description="Free-form text to interpret")
    instruction: str = Field(..., description="Natural language parsing instruction")
    model: str = Field(..., description="Remote model identifier")
    example: Optional[Any] = Field(None, description="Sample value already checked against the schema")


class HttpRequest(BaseModel):
    url: str
    json_body: Dict[str, Any]
    headers: Dict[str, str]
