from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

class LoginRequest(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=20)
    password: str = Field(..., min_length=1)

class LoginResponse(BaseModel):
    message: str = "OTP sent to your email"
    requires_otp: bool = True

class VerifyOtpRequest(BaseModel):
    code: str = Field(..., min_length=6, max_length=6)
    purpose: str = Field(..., min_length=1, max_length=50)

class VerifyOtpResponse(BaseModel):
    message: str = "Verification successful"
    purpose: str

class ConfirmActionRequest(BaseModel):
    code: str = Field(..., min_length=6, max_length=6)

class MessageResponse(BaseModel):
    message: str

class UserResponse(BaseModel):
    id: int
    user_id: str
    email: str
    name: str
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
