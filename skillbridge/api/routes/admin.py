"""Admin panel routes. Every route requires the admin role."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import ValidationError

from skillbridge.auth import AuthContext
from skillbridge.domain.models import Difficulty, Job, JobCategory, MembershipTier, Submission, Transaction
from skillbridge.marketplace import DashboardStats, JobDraft, ReviewRequest

from ..dependencies import Services, get_services, require_admin
from ..schemas import CategoryRequest, MessageResponse
from ..uploads import to_upload

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def job_draft_form(
    title: str = Form(...),
    description: str = Form(...),
    instructions: str = Form(""),
    payment_amount: float = Form(...),
    difficulty: Difficulty = Form(Difficulty.EASY),
    required_tier: MembershipTier = Form(MembershipTier.REGULAR),
    estimated_time: Optional[str] = Form(None),
    deadline: Optional[datetime] = Form(None),
    submission_format: Optional[str] = Form(None),
    max_submissions: Optional[int] = Form(None),
    category_id: Optional[str] = Form(None),
    is_active: bool = Form(True),
) -> JobDraft:
    try:
        return JobDraft(
            title=title,
            description=description,
            instructions=instructions,
            payment_amount=payment_amount,
            difficulty=difficulty,
            required_tier=required_tier,
            estimated_time=estimated_time,
            deadline=deadline,
            submission_format=submission_format,
            max_submissions=max_submissions,
            category_id=category_id,
            is_active=is_active,
        )
    except ValidationError as e:
        detail = [{"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()]
        raise HTTPException(status_code=422, detail=detail) from e


@router.get("/stats", response_model=DashboardStats)
def stats(services: Services = Depends(get_services)):
    return services.admin.get_stats()


@router.get("/jobs", response_model=List[Job])
def list_jobs(services: Services = Depends(get_services)):
    return services.admin.list_jobs()


@router.post("/jobs", response_model=Job, status_code=201)
def create_job(
    draft: JobDraft = Depends(job_draft_form),
    file: Optional[UploadFile] = File(None),
    services: Services = Depends(get_services),
):
    return services.admin.create_job(draft, to_upload(file))


@router.put("/jobs/{job_id}", response_model=Job)
def update_job(
    job_id: str,
    draft: JobDraft = Depends(job_draft_form),
    file: Optional[UploadFile] = File(None),
    services: Services = Depends(get_services),
):
    return services.admin.update_job(job_id, draft, to_upload(file))


@router.delete("/jobs/{job_id}", response_model=MessageResponse)
def delete_job(job_id: str, services: Services = Depends(get_services)):
    services.admin.delete_job(job_id)
    return MessageResponse(message="Job deleted successfully")


@router.post("/jobs/{job_id}/toggle", response_model=Job)
def toggle_job(job_id: str, services: Services = Depends(get_services)):
    return services.admin.toggle_job(job_id)


@router.get("/submissions", response_model=List[Submission])
def list_submissions(
    search: Optional[str] = None,
    status: str = "all",
    services: Services = Depends(get_services),
):
    return services.admin.list_submissions(search, status)


@router.post("/submissions/{submission_id}/review", response_model=Submission)
def review_submission(
    submission_id: str,
    body: ReviewRequest,
    context: AuthContext = Depends(require_admin),
    services: Services = Depends(get_services),
):
    return services.admin.review_submission(submission_id, body, context.user.id)


@router.post("/categories", response_model=JobCategory, status_code=201)
def create_category(body: CategoryRequest, services: Services = Depends(get_services)):
    return services.admin.create_category(body.name)


@router.post("/transactions/{transaction_id}/confirm", response_model=Transaction)
def confirm_transaction(transaction_id: str, services: Services = Depends(get_services)):
    return services.checkout.confirm_transaction(transaction_id)
