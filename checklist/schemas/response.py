#checklist/schemas/response.py
from pydantic import BaseModel, Field
from typing import Optional

class ErrorResponse(BaseModel):
    """
    ErrorResponse — структура ошибки (detail + опциональный machine-readable код).
    """
    detail: str = Field(..., examples=["You must check in before completing tasks"], description="Сообщение об ошибке")
    code: Optional[str] = Field(None, examples=["check_in_required"], description="Код ошибки (machine-readable)")

class SimpleMessage(BaseModel):
    """
    SimpleMessage — простое сообщение для подтверждения действия.
    """
    message: str = Field(..., examples=["Action completed successfully"], description="Текстовое сообщение")
