# smartqueue/schemas/token.py
from pydantic import BaseModel
from typing import Optional


class TokenPayload(BaseModel):
    sub: str  # "sub" is the standard claim for subject (user ID)
    role: Optional[str] = None  # "admin" unlocks the dispatch and event management endpoints
    exp: Optional[int] = None  # Standard claim for expiration time

    model_config = {"from_attributes": True}

    @property
    def user_id(self) -> str:
        return self.sub

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
