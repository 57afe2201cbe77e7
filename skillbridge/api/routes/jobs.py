"""Member routes: job board, submissions, plans and checkout."""

import asyncio
from typing import List, Optional

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    Query,
    UploadFile,
    WebSocket,
    WebSocketDisconnect,
)
from fastapi.concurrency import run_in_threadpool
from starlette.status import WS_1008_POLICY_VIOLATION

from skillbridge.auth import AuthContext
from skillbridge.auth.exceptions import SESSION_EXPIRED
from skillbridge.domain.models import JobCategory, Submission
from skillbridge.logging import get_logger
from skillbridge.marketplace import JobDetail, JobListing, SubmissionHistory, SubmissionStats
from skillbridge.membership import PlanOffer, list_plans
from skillbridge.realtime import SubmissionTracker

from ..dependencies import Services, get_current_user, get_services
from ..schemas import CheckoutRequest, CheckoutResponse
from ..uploads import to_upload

logger = get_logger(__name__, component="api")

router = APIRouter(tags=["marketplace"])


@router.get("/jobs", response_model=List[JobListing])
def browse_jobs(
    search: Optional[str] = None,
    category: str = Query("all"),
    difficulty: str = Query("all"),
    context: AuthContext = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return services.board.browse_jobs(context.profile, search, category, difficulty)


@router.get("/jobs/{job_id}", response_model=JobDetail)
def get_job(
    job_id: str,
    context: AuthContext = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return services.board.get_job_detail(job_id, context.profile)


@router.post("/jobs/{job_id}/submissions", response_model=Submission, status_code=201)
def submit_work(
    job_id: str,
    content: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    context: AuthContext = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return services.board.submit_work(context.user.id, job_id, content, to_upload(file))


@router.get("/submissions", response_model=SubmissionHistory)
def list_submissions(
    status: str = Query("all"),
    context: AuthContext = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return services.board.list_submissions(context.user.id, status)


def _websocket_token(websocket: WebSocket) -> Optional[str]:
    scheme, _, token = websocket.headers.get("authorization", "").partition(" ")
    if scheme.lower() == "bearer" and token:
        return token.strip()
    return websocket.query_params.get("access_token")


def _history_payload(submissions: List[Submission]) -> dict:
    history = SubmissionHistory(
        submissions=submissions, stats=SubmissionStats.from_submissions(submissions)
    )
    return history.model_dump(mode="json")


@router.websocket("/submissions/live")
async def submission_updates(websocket: WebSocket):
    """Stream the caller's submission history.

    Sends the full history on connect and again after every committed change
    to one of the caller's submissions. Browsers cannot set headers on a
    WebSocket, so the access token may also be given as ``?access_token=``.
    """
    services: Services = websocket.app.state.services
    context = await run_in_threadpool(services.auth.get_session, _websocket_token(websocket))
    if context is None:
        await websocket.close(code=WS_1008_POLICY_VIOLATION, reason=SESSION_EXPIRED)
        return

    user_id = context.user.id
    await websocket.accept()
    loop = asyncio.get_running_loop()
    updates: asyncio.Queue = asyncio.Queue()

    # Change callbacks run on the committing thread.
    def push(submissions: List[Submission]) -> None:
        loop.call_soon_threadsafe(updates.put_nowait, _history_payload(submissions))

    tracker = SubmissionTracker(
        services.feed,
        user_id,
        fetch=lambda: services.board.list_submissions(user_id).submissions,
        on_change=push,
    )
    initial = await run_in_threadpool(tracker.start)
    logger.debug(
        "Submission stream opened", extra={"event": "api.submissions.stream_opened", "user_id": user_id}
    )

    async def forward() -> None:
        while True:
            await websocket.send_json(await updates.get())

    await websocket.send_json(_history_payload(initial))
    sender = asyncio.create_task(forward())
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        sender.cancel()
        tracker.stop()
        logger.debug(
            "Submission stream closed", extra={"event": "api.submissions.stream_closed", "user_id": user_id}
        )


@router.get("/categories", response_model=List[JobCategory])
def list_categories(services: Services = Depends(get_services)):
    return services.admin.list_categories()


@router.get("/plans", response_model=List[PlanOffer])
def plans(services: Services = Depends(get_services)):
    return list_plans(services.config.membership, services.config.payments.currency)


@router.post("/checkout", response_model=CheckoutResponse)
def checkout(
    body: CheckoutRequest,
    context: AuthContext = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    result = services.checkout.start_checkout(context.user.id, context.user.email, body.plan)
    return CheckoutResponse(
        plan=result.plan_key,
        plan_name=result.plan.name,
        amount=result.plan.price,
        currency=services.config.payments.currency,
        payment_link=result.payment_link,
        recipient=result.recipient,
        membership_expires_at=result.membership_expires_at,
        membership_updated=result.membership_updated,
        transaction=result.transaction,
    )
