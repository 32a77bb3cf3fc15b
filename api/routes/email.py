"""Transactional email routes."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.dependencies import get_email_service
from core.auth import get_current_user
from core.exceptions import EmailDeliveryError
from schemas.auth import AuthenticatedUser
from schemas.email import EmailErrorResponse, SendEmailRequest, SendEmailResponse
from services.email_service import EmailService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/send",
    response_model=SendEmailResponse,
    responses={400: {"model": EmailErrorResponse}, 500: {"model": EmailErrorResponse}},
)
async def send_email(
    email_request: SendEmailRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),  # noqa: B008
    email_service: EmailService = Depends(get_email_service),  # noqa: B008
) -> SendEmailResponse | JSONResponse:
    """
    Send a transactional email through Resend.

    Provider rejections are returned with the provider's status code.
    """
    logger.info(f"User {current_user.user_id} sending email to {email_request.recipients}")

    try:
        data = await email_service.send_email(email_request)
    except EmailDeliveryError as e:
        return JSONResponse(
            status_code=e.status_code or 502,
            content=EmailErrorResponse(
                error=e.message, details=e.details.get("provider_response")
            ).model_dump(),
        )

    return SendEmailResponse(data=data)
