from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Signup fields are optional here so that a missing field is answered with
# the same "Please provide all required fields." message as an empty one.
class SignupRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    phoneOrEmail: Optional[str] = Field(None, max_length=255)
    password: Optional[str] = None
    dateOfBirth: Optional[date] = None
    gender: Optional[str] = Field(None, max_length=30)
    preferredGenders: Optional[List[str]] = None

class VerifyRequest(BaseModel):
    # Some clients send the code as a JSON number
    model_config = ConfigDict(coerce_numbers_to_str=True)

    phoneOrEmail: Optional[str] = None
    code: Optional[str] = None

class ResendCodeRequest(BaseModel):
    phoneOrEmail: Optional[str] = None

class SigninRequest(BaseModel):
    phoneOrEmail: Optional[str] = None
    password: Optional[str] = None

class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    dateOfBirth: Optional[date] = None
    gender: Optional[str] = Field(None, min_length=1, max_length=30)
    preferredGenders: Optional[List[str]] = None
    bio: Optional[str] = Field(None, max_length=1000)
    interests: Optional[List[str]] = None
    location: Optional[str] = Field(None, max_length=120)
