#checklist/schemas/auth.py
from pydantic import BaseModel, Field

class Token(BaseModel):
    """
    Token — access-токен для авторизации (Bearer).
    """
    access_token: str = Field(..., examples=["eyJhbGciOi..."], description="JWT access token")
    token_type: str = Field("bearer", examples=["bearer"], description="Тип токена")
    expires_in: int = Field(..., examples=[3600], description="Время жизни токена (секунды)")
