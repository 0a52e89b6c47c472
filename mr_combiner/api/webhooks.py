"""
Webhook endpoint for GitLab note and merge request hooks.
"""

import hmac
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Header, Query, Request
from fastapi.responses import JSONResponse

from mr_combiner.config import settings
from mr_combiner.models.api_response import ErrorResponse, WebhookResponse
from mr_combiner.models.combine import CombineTrigger
from mr_combiner.services.activity_guard import ActivityGuard
from mr_combiner.services.combiner import get_combination_engine
from mr_combiner.services.event_classifier import classify_event
from mr_combiner.services.report_buffer import ReportBuffer
from mr_combiner.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])

# Process-wide collaborators
activity_guard = ActivityGuard()
combination_engine = get_combination_engine()


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


def verify_secret_token(token: Optional[str]) -> bool:
    """
    Check the X-Gitlab-Token header against the configured secret.

    Always true when no secret is configured.
    """
    if not settings.secret_token:
        return True
    if token is None:
        return False
    return hmac.compare_digest(token.encode(), settings.secret_token.encode())


def process_combination(trigger: CombineTrigger, target_branch: str, buffer: ReportBuffer) -> None:
    """
    Run a combination in the background.

    Runs in the threadpool; the project reservation taken at admission is
    released when this returns or raises.
    """
    with activity_guard.holding(trigger.project_id):
        try:
            combination_engine.run(trigger, target_branch, buffer)
        except Exception as e:
            logger.error(
                f"Error processing combination for project {trigger.project_id}: {e}",
                extra={"project_id": trigger.project_id, "request_id": trigger.request_id},
                exc_info=True,
            )


@router.post("/", response_model=WebhookResponse)
@router.post("/webhook", response_model=WebhookResponse, include_in_schema=False)
async def handle_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    branch: Optional[str] = Query(None),
    x_gitlab_token: Optional[str] = Header(None, alias="X-Gitlab-Token"),
):
    """
    Receive a GitLab webhook and start a combination when it is a trigger.

    This endpoint:
    1. Parses the JSON payload (400 if unparseable)
    2. Classifies the event (200 "Event ignored" if not a trigger)
    3. Reserves the project (429 if a run is already active)
    4. Verifies the secret token (401, reservation released)
    5. Schedules the run in the background and answers 200 "OK" immediately

    Args:
        request: FastAPI request object
        background_tasks: FastAPI background tasks
        branch: Optional target branch, defaults to the configured one
        x_gitlab_token: Shared secret sent by GitLab
    """
    try:
        payload = await request.json()
    except ValueError:
        logger.warning("Received webhook with unparseable body")
        return error_response(400, "Invalid request body")

    if not isinstance(payload, dict):
        logger.warning("Received webhook with non-object body")
        return error_response(400, "Invalid request body")

    admitted: Optional[int] = None
    try:
        trigger = classify_event(payload, settings.trigger_message, settings.trigger_tag)
        if trigger is None:
            logger.info(f"Ignoring event: {payload.get('event_type') or payload.get('object_kind')}")
            return WebhookResponse(message="Event ignored")

        project_id = trigger.project_id
        if activity_guard.is_active(project_id) or not activity_guard.try_admit(project_id):
            logger.warning(
                f"Project {project_id} is already being processed",
                extra={"project_id": project_id},
            )
            return error_response(429, "Project is already being processed")
        admitted = project_id

        if not verify_secret_token(x_gitlab_token):
            activity_guard.release(project_id)
            admitted = None
            logger.warning("Invalid secret token received", extra={"project_id": project_id})
            return error_response(401, "Invalid secret token")

        target_branch = branch or settings.target_branch
        logger.info(
            f"Accepted combination for project {project_id} from MR #{trigger.request_id}",
            extra={"project_id": project_id, "request_id": trigger.request_id, "target_branch": target_branch},
        )
        background_tasks.add_task(process_combination, trigger, target_branch, ReportBuffer())

    except Exception as e:
        if admitted is not None:
            activity_guard.release(admitted)
        logger.error(f"Error processing webhook: {e}", exc_info=True)
        return error_response(500, "Failed to process event")

    return WebhookResponse(message="OK")
