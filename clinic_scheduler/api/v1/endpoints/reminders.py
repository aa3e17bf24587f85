"""Operational reminder endpoints."""

from fastapi import APIRouter, Depends, status

from clinic_scheduler.dependencies import SweepRunnerDep, verify_admin_secret
from clinic_scheduler.schemas.notifications import SweepSummary

router = APIRouter()


@router.post(
    "/process",
    response_model=SweepSummary,
    status_code=status.HTTP_200_OK,
    summary="Process due reminders using admin secret key",
    dependencies=[Depends(verify_admin_secret)],
)
async def process_due_reminders(runner: SweepRunnerDep) -> SweepSummary:
    """
    Run one reminder sweep now.

    Meant for cron jobs and scripts; authenticated with the
    X-Admin-Secret header instead of a user token. Shares the sweep lock
    with the background job, so a sweep already running elsewhere
    results in 409.

    Returns:
        Counts of due, sent, failed and skipped reminders
    """
    return await runner.run_exclusive()
