from pydantic import BaseModel, ConfigDict, Field

class LoginIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(..., min_length=1, max_length=320)
    # SHA-256 hex digest computed by the dashboard client.
    password_hash: str = Field(..., min_length=1, max_length=256, alias="passwordHash")

class LoginOut(BaseModel):
    success: bool = True
    token: str
    token_type: str = "Bearer"

class SessionOut(BaseModel):
    email: str
    role: str
    expires_at: int
