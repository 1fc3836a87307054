"""
API routes for prompt versions
"""
import re
from typing import Any, Dict, List, Optional
from urllib.parse import quote
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from app.core.auth import Identity, get_current_identity, get_current_identity_optional
from app.core.database import get_db
from app.core.logging_config import LoggingConfig
from app.services.diff_service import compare_versions
from app.services.version_service import MAX_VERSION_NUMBER, VersionService

router = APIRouter(prefix="/api/repositories/{repository_id}/versions", tags=["versions"])
logger = LoggingConfig.get_logger(__name__)


class CreateVersionRequest(BaseModel):
    """Request model for creating a version"""
    model_config = ConfigDict(protected_namespaces=())

    prompt_text: Any = Field(default=None, description="Prompt text for the new version")
    variables: Any = Field(default=None, description="Opaque structured variables")
    model_settings: Any = Field(default=None, description="Opaque structured model settings")
    notes: Any = Field(default=None, description="Free-text notes")


class EditorResponse(BaseModel):
    full_name: Optional[str] = None
    email: Optional[str] = None


class VersionResponse(BaseModel):
    """Version response model"""
    model_config = ConfigDict(protected_namespaces=())

    id: UUID
    repository_id: UUID
    version_number: int
    prompt_text: str
    variables: Any = None
    model_settings: Any = None
    notes: Optional[str] = None
    user_id: str
    created_at: Optional[str] = None


class VersionListItem(VersionResponse):
    editor: Optional[EditorResponse] = None


@router.post("", response_model=VersionResponse, status_code=status.HTTP_201_CREATED)
async def create_version(
    repository_id: UUID,
    request: CreateVersionRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Create the next version of a repository's prompt"""
    version = VersionService(db).create_version(
        repository_id=repository_id,
        identity=identity,
        prompt_text=request.prompt_text,
        variables=request.variables,
        model_settings=request.model_settings,
        notes=request.notes,
    )
    return version.to_dict()


@router.get("", response_model=List[VersionListItem])
async def list_versions(
    repository_id: UUID,
    db: Session = Depends(get_db),
    identity: Optional[Identity] = Depends(get_current_identity_optional),
):
    """List versions, newest first, with the editor of each"""
    return VersionService(db).list_versions(repository_id, identity)


@router.get("/compare")
async def compare(
    repository_id: UUID,
    from_version: int = Query(..., alias="from", ge=1, le=MAX_VERSION_NUMBER),
    to_version: int = Query(..., alias="to", ge=1, le=MAX_VERSION_NUMBER),
    db: Session = Depends(get_db),
    identity: Optional[Identity] = Depends(get_current_identity_optional),
) -> Dict[str, Any]:
    """Diff two versions of a repository by number"""
    service = VersionService(db)
    older = service.get_version_by_number(repository_id, from_version, identity)
    newer = service.get_version_by_number(repository_id, to_version, identity)
    return compare_versions(older, newer)


@router.get("/{version_id}/download", response_class=PlainTextResponse)
async def download_version(
    repository_id: UUID,
    version_id: UUID,
    db: Session = Depends(get_db),
    identity: Optional[Identity] = Depends(get_current_identity_optional),
):
    """Download a version's prompt text as a text file"""
    version = VersionService(db).get_version(repository_id, version_id, identity)
    stem = re.sub(r"\s+", "_", version.repository.name)
    filename = f"{stem}_v{version.version_number}.txt"
    return PlainTextResponse(
        version.prompt_text,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )


@router.post(
    "/{version_id}/rollback",
    response_model=VersionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def rollback_version(
    repository_id: UUID,
    version_id: UUID,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Roll back by creating a new version that copies an earlier one"""
    version = VersionService(db).rollback_to_version(repository_id, version_id, identity)
    return version.to_dict()
