from fastapi import APIRouter, Depends, Response, status

from otp_auth.errors import StorageError
from otp_auth.routers.deps import get_otp_service
from otp_auth.schemas.otp import (
    BaseResponse,
    LoginResponseData,
    OtpConfigResponse,
    OtpLoginRequest,
    OtpSendRequest,
)
from otp_auth.schemas.users import UserResponse
from otp_auth.services.otp_service import OtpService, ServiceResult

router = APIRouter(prefix="/otp", tags=["otp"])

INTERNAL_ERROR_MESSAGE = "Internal server error"


def _status_for(result: ServiceResult) -> int:
    if result.success:
        return status.HTTP_200_OK
    if isinstance(result.error, StorageError):
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return status.HTTP_400_BAD_REQUEST


def _message_for(result: ServiceResult) -> str:
    if isinstance(result.error, StorageError):
        return INTERNAL_ERROR_MESSAGE
    return result.message


@router.post("/send", response_model=BaseResponse[None])
def send_otp(
    payload: OtpSendRequest,
    response: Response,
    service: OtpService = Depends(get_otp_service),
) -> BaseResponse[None]:
    result = service.send(email=payload.email, mobile=payload.mobile)
    response.status_code = _status_for(result)
    return BaseResponse[None](
        code=response.status_code,
        error=not result.success,
        message=_message_for(result),
    )


@router.post("/login", response_model=BaseResponse[LoginResponseData])
def login_with_otp(
    payload: OtpLoginRequest,
    response: Response,
    service: OtpService = Depends(get_otp_service),
) -> BaseResponse[LoginResponseData]:
    result = service.login(email=payload.email, mobile=payload.mobile, code=payload.otp)
    response.status_code = _status_for(result)
    data = None
    if result.success:
        data = LoginResponseData(
            token=result.data.token,
            user=UserResponse.model_validate(result.data.user),
        )
    return BaseResponse[LoginResponseData](
        code=response.status_code,
        error=not result.success,
        message=_message_for(result),
        data=data,
    )


@router.get("/config", response_model=OtpConfigResponse)
def get_otp_config(service: OtpService = Depends(get_otp_service)) -> OtpConfigResponse:
    return OtpConfigResponse(
        otp_length=service.config.otp_length,
        expired_time=service.config.otp_expiry_ms,
    )
