"""
People router for extracted people of a biography project.

Provides endpoints for listing and ingesting people, detecting duplicates,
merging them, undoing merges and marking pairs as "not duplicates".
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from lifebook.config import get_settings
from lifebook.database import get_db
from lifebook.models import ExtractionStatus
from lifebook.schemas import (
    PersonListResponse,
    IngestRequest,
    IngestResponse,
    MergeRequest,
    MergeResponse,
    UndoMergeRequest,
    UndoMergeResponse,
    MergeLogResponse,
    MergeLogListResponse,
)
from lifebook.schemas.duplicates import (
    DetectDuplicatesRequest,
    DetectDuplicatesResponse,
    DuplicateGroupResponse,
    ExclusionRequest,
    ExclusionResponse,
)
from lifebook.services.duplicate_service import DuplicateService
from lifebook.services.extraction_ingest import ingest_extracted_people
from lifebook.services.merge_undo import MergeUndoService
from lifebook.services.person_merge import (
    PersonMergeService,
    MergeValidationError,
    RecordNotFoundError,
)
from lifebook.services.person_store import PersonStore
from lifebook.services.sql_store import SqlPersonStore

router = APIRouter(prefix="/api/people", tags=["people"])


def get_person_store(db: Session = Depends(get_db)) -> PersonStore:
    """Dependency that wraps the request's session in a record store."""
    return SqlPersonStore(db)


@router.get("", response_model=PersonListResponse)
def list_people(
    project_id: UUID = Query(..., alias="projectId"),
    include_merged: bool = Query(False, alias="includeMerged"),
    store: PersonStore = Depends(get_person_store),
):
    """
    List a project's people, most important first.

    Args:
        include_merged: Also return merged tombstones
    """
    exclude_status = None if include_merged else ExtractionStatus.merged
    people = store.list_people(project_id, exclude_status=exclude_status)
    return PersonListResponse(people=people)


@router.post("/ingest", response_model=IngestResponse)
def ingest_people(
    request: IngestRequest,
    store: PersonStore = Depends(get_person_store),
):
    """Create pending people from extraction oracle output."""
    result = ingest_extracted_people(store, request.project_id, request.people)
    return IngestResponse(created=result.created, rejected=result.rejected)


@router.post("/detect-duplicates", response_model=DetectDuplicatesResponse)
def detect_duplicates(
    request: DetectDuplicatesRequest,
    store: PersonStore = Depends(get_person_store),
):
    """
    Find groups of likely duplicate people in a project.

    Uses the configured duplicate threshold unless the request sets one.
    """
    threshold = request.threshold
    if threshold is None:
        threshold = get_settings().duplicate_threshold

    result = DuplicateService(store).detect_duplicates(request.project_id, threshold)
    return DetectDuplicatesResponse(
        duplicate_groups=[
            DuplicateGroupResponse.model_validate(group) for group in result.duplicate_groups
        ],
        total_duplicates=result.total_duplicates,
        processing_time_ms=result.processing_time_ms,
    )


@router.post("/merge", response_model=MergeResponse)
def merge_people(
    request: MergeRequest,
    store: PersonStore = Depends(get_person_store),
):
    """Merge the secondary person into the primary person."""
    try:
        result = PersonMergeService(store).merge(
            request.project_id,
            request.primary_person_id,
            request.secondary_person_id,
            strategy=request.strategy,
            custom_data=request.custom_data,
        )
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except MergeValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return MergeResponse(
        merge_log_id=result.merge_log.id,
        merged_person=result.merged_person,
        photo_count=result.photos_transferred,
        relationship_count=result.relationships_transferred,
        skipped_associations=result.skipped_associations,
    )


@router.post("/undo-merge", response_model=UndoMergeResponse)
def undo_merge(
    request: UndoMergeRequest,
    store: PersonStore = Depends(get_person_store),
):
    """Undo one merge and restore the merged-away person."""
    try:
        result = MergeUndoService(store).undo(request.project_id, request.merge_log_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except MergeValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return UndoMergeResponse(
        restored_secondary_person=result.restored_person,
        message=result.message,
        skipped_associations=result.skipped_associations,
    )


@router.get("/merge-logs", response_model=MergeLogListResponse)
def list_merge_logs(
    project_id: UUID = Query(..., alias="projectId"),
    store: PersonStore = Depends(get_person_store),
):
    """Merge history of a project, newest first."""
    logs = PersonMergeService(store).list_merge_logs(project_id)
    return MergeLogListResponse(
        merge_logs=[MergeLogResponse.model_validate(log) for log in logs]
    )


# ===========================
# Duplicate exclusions
# ===========================


@router.post("/exclusions", response_model=ExclusionResponse)
def create_exclusions(
    request: ExclusionRequest,
    store: PersonStore = Depends(get_person_store),
):
    """Mark every pair of the given people as "not duplicates"."""
    try:
        created = DuplicateService(store).exclude_duplicates(
            request.project_id, request.person_ids
        )
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ExclusionResponse(created=created)


@router.delete("/exclusions", response_model=ExclusionResponse)
def delete_exclusion(
    request: ExclusionRequest,
    store: PersonStore = Depends(get_person_store),
):
    """Remove the exclusion between two people."""
    if len(request.person_ids) != 2:
        raise HTTPException(status_code=400, detail="Exactly 2 people required")

    removed = DuplicateService(store).remove_exclusion(
        request.project_id, request.person_ids[0], request.person_ids[1]
    )
    return ExclusionResponse(removed=removed)
