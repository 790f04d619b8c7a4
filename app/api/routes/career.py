from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from app.core.config import SmtpConfig
from app.models.schemas import CareerResponse
from app.services.career_service import (
    NOT_CONFIGURED_MESSAGE,
    SUBMIT_FAILED_MESSAGE,
    SUCCESS_MESSAGE,
    UNAVAILABLE_MESSAGE,
    CareerFormParser,
    SubmissionInvalid,
    build_career_message,
    validate_submission,
)
from app.services.email_service import is_auth_failure, send_email
from app.utils.logging import logger, redact_email

router = APIRouter(prefix="/api", tags=["career"])


def get_smtp_config(request: Request) -> SmtpConfig:
    """SMTP settings loaded once at startup by the app factory."""
    return request.app.state.smtp_config


def _reply(status_code: int, success: bool, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=CareerResponse(success=success, message=message).model_dump(),
    )


@router.post("/career", response_model=CareerResponse)
async def submit_application(request: Request, smtp_config: SmtpConfig = Depends(get_smtp_config)):
    # CV type/size problems raise here and are turned into 400s by the
    # handlers in app.api.errors.
    form_parser = CareerFormParser(request.headers.get("content-type", ""))
    async for chunk in request.stream():
        form_parser.feed(chunk)
    form = form_parser.finish()

    try:
        submission = validate_submission(form)
    except SubmissionInvalid as e:
        return _reply(status.HTTP_400_BAD_REQUEST, False, str(e))

    if not smtp_config.is_configured:
        logger.error("Career application rejected: SMTP_USER and SMTP_PASS must both be set.")
        return _reply(status.HTTP_503_SERVICE_UNAVAILABLE, False, NOT_CONFIGURED_MESSAGE)

    applicant = redact_email(submission.email)
    try:
        message = build_career_message(submission, smtp_config)
        await send_email(message, smtp_config)
    except Exception as exc:
        if is_auth_failure(exc):
            logger.error(f"SMTP authentication failed while sending application from {applicant}: {exc}")
            return _reply(status.HTTP_503_SERVICE_UNAVAILABLE, False, UNAVAILABLE_MESSAGE)
        logger.exception(f"Failed to send career application from {applicant}")
        return _reply(status.HTTP_500_INTERNAL_SERVER_ERROR, False, str(exc) or SUBMIT_FAILED_MESSAGE)

    logger.info(
        f"Career application sent for {applicant} "
        f"(cv={'yes' if submission.cv else 'no'})"
    )
    return CareerResponse(success=True, message=SUCCESS_MESSAGE)
