from typing import Generic, Optional, TypeVar

from pydantic import AliasChoices, BaseModel, Field

from otp_auth.schemas.users import UserResponse
from otp_auth.services.codes import MAX_CODE_LENGTH

T = TypeVar("T")


class BaseResponse(BaseModel, Generic[T]):
    code: int
    error: bool
    message: str
    data: Optional[T] = None


class OtpSendRequest(BaseModel):
    email: Optional[str] = Field(default=None, max_length=255)
    mobile: Optional[str] = Field(default=None, max_length=32)


class OtpLoginRequest(BaseModel):
    email: Optional[str] = Field(default=None, max_length=255)
    mobile: Optional[str] = Field(default=None, max_length=32)
    otp: Optional[str] = Field(
        default=None,
        max_length=MAX_CODE_LENGTH,
        validation_alias=AliasChoices("otp", "code"),
    )


class LoginResponseData(BaseModel):
    token: str
    user: UserResponse


class OtpConfigResponse(BaseModel):
    otp_length: int = Field(serialization_alias="otpLength")
    expired_time: int = Field(serialization_alias="expiredTime")
