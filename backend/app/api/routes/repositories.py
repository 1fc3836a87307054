"""
API routes for prompt repositories
"""
from typing import Any, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from app.core.auth import Identity, get_current_identity, get_current_identity_optional
from app.core.database import get_db
from app.core.logging_config import LoggingConfig
from app.services.repository_service import MAX_PAGE, RepositoryService

router = APIRouter(tags=["repositories"])
logger = LoggingConfig.get_logger(__name__)


class CreateRepositoryRequest(BaseModel):
    """Request model for creating a repository

    Fields are untyped; RepositoryService validates them.
    """
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    repo_name: Any = Field(default=None, alias="repoName", description="Repository name")
    description: Any = Field(default=None, description="Optional description")
    tags: Any = Field(default=None, description="Optional list of tags")
    model_compatibility: Any = Field(default=None, description="Optional list of model labels")
    is_public: Any = Field(default=None, description="Visibility flag (defaults to public)")


class RepositoryResponse(BaseModel):
    """Repository response model"""
    model_config = ConfigDict(protected_namespaces=())

    id: UUID
    user_id: str
    name: str
    description: Optional[str] = None
    is_public: bool
    tags: List[str]
    model_compatibility: List[str]
    created_at: Optional[str] = None


class CreateRepositoryResponse(BaseModel):
    message: str
    data: RepositoryResponse


class RepositoryListResponse(BaseModel):
    items: List[RepositoryResponse]
    page: int
    page_size: int
    total: int
    has_more: bool


@router.post(
    "/api/repo/create",
    response_model=CreateRepositoryResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_repository(
    request: CreateRepositoryRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Create a new repository owned by the caller"""
    repository = RepositoryService(db).create_repository(
        identity=identity,
        name=request.repo_name,
        description=request.description,
        tags=request.tags,
        model_compatibility=request.model_compatibility,
        is_public=request.is_public,
    )
    return {
        "message": "Repository created successfully.",
        "data": repository.to_dict(),
    }


@router.get("/api/repositories", response_model=RepositoryListResponse)
async def list_repositories(
    search: Optional[str] = None,
    tags: List[str] = Query(default=[]),
    page: int = Query(default=0, ge=0, le=MAX_PAGE),
    db: Session = Depends(get_db),
):
    """List public repositories, newest first"""
    return RepositoryService(db).list_public_repositories(
        search=search,
        tags=tags,
        page=page,
    ).to_dict()


@router.get("/api/repositories/{repository_id}", response_model=RepositoryResponse)
async def get_repository(
    repository_id: UUID,
    db: Session = Depends(get_db),
    identity: Optional[Identity] = Depends(get_current_identity_optional),
):
    """Get repository by ID"""
    return RepositoryService(db).get_repository(repository_id, identity).to_dict()
