from fastapi import APIRouter, Depends

from timetracker.deps.state import get_store
from timetracker.schemas.entry import ProjectStatResponse, ProjectStatsEnvelope
from timetracker.services.entry_store import EntryStore

router = APIRouter(
    prefix="/api/stats",
    tags=["Stats"],
)


@router.get("", response_model=ProjectStatsEnvelope)
def project_stats(store: EntryStore = Depends(get_store)):
    stats = store.aggregate_by_project()
    return ProjectStatsEnvelope(
        data=[ProjectStatResponse.model_validate(s) for s in stats],
        count=len(stats),
    )
