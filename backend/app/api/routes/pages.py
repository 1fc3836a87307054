"""
Page routes for web interface
"""
from typing import List, Optional
from urllib.parse import urlencode
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from app.core.auth import Identity, get_current_identity_optional
from app.core.config import get_settings
from app.core.database import get_db
from app.core.errors import NotFoundError
from app.core.templates import render_template
from app.services.diff_service import compare_versions
from app.services.repository_service import MAX_PAGE, RepositoryService
from app.services.version_service import MAX_VERSION_NUMBER, VersionService

router = APIRouter(tags=["pages"])


def _listing_url(search: Optional[str], tags: List[str], page: int = 0) -> str:
    """Link back to the listing with the given filters"""
    params: List[tuple] = []
    if search:
        params.append(("search", search))
    params.extend(("tags", tag) for tag in tags)
    if page:
        params.append(("page", page))
    return f"/?{urlencode(params)}" if params else "/"


def _sign_in_redirect(request: Request) -> RedirectResponse:
    target = f"{get_settings().identity_sign_in_url}?{urlencode({'redirect_url': str(request.url)})}"
    return RedirectResponse(target, status_code=status.HTTP_302_FOUND)


@router.get("/", response_class=HTMLResponse)
async def index(
    request: Request,
    search: Optional[str] = None,
    tags: List[str] = Query(default=[]),
    page: int = Query(default=0, ge=0, le=MAX_PAGE),
    db: Session = Depends(get_db),
):
    """Public repository listing with search, tag filter and pagination"""
    result = RepositoryService(db).list_public_repositories(search=search, tags=tags, page=page)
    # Tag filter options come from the repositories on screen
    available_tags = sorted({tag for repository in result.items for tag in repository.tags} | set(tags))

    return render_template(
        "index.html",
        {
            "result": result,
            "search": search or "",
            "selected_tags": tags,
            "available_tags": available_tags,
            "listing_url": _listing_url,
        },
        request,
    )


@router.get("/repo/create", response_class=HTMLResponse)
async def repository_create_form(
    request: Request,
    identity: Optional[Identity] = Depends(get_current_identity_optional),
):
    """Repository creation form - MUST be before /repo/{repository_id}"""
    if identity is None:
        return _sign_in_redirect(request)
    return render_template("repo/create.html", {}, request)


@router.get("/repo/{repository_id}", response_class=HTMLResponse)
async def repository_detail(
    request: Request,
    repository_id: UUID,
    version: Optional[int] = Query(default=None, ge=1, le=MAX_VERSION_NUMBER),
    db: Session = Depends(get_db),
    identity: Optional[Identity] = Depends(get_current_identity_optional),
):
    """Repository detail: metadata, selected version, history and editor"""
    repositories = RepositoryService(db)
    try:
        repository = repositories.get_repository(repository_id, identity)
    except NotFoundError:
        return render_template(
            "repo/detail.html",
            {"error": "Repository not found or access denied.", "repository": None},
            request,
            status_code=status.HTTP_404_NOT_FOUND,
        )

    history = VersionService(db).list_versions(repository_id, identity)
    active = history[0] if history else None
    if version is not None:
        active = next((entry for entry in history if entry["version_number"] == version), active)

    return render_template(
        "repo/detail.html",
        {
            "repository": repository,
            "history": history,
            "latest": history[0] if history else None,
            "active": active,
            "is_owner": repositories.is_owner(repository, identity),
        },
        request,
    )


@router.get("/repo/{repository_id}/compare", response_class=HTMLResponse)
async def repository_compare(
    request: Request,
    repository_id: UUID,
    from_version: Optional[int] = Query(default=None, alias="from", ge=1, le=MAX_VERSION_NUMBER),
    to_version: Optional[int] = Query(default=None, alias="to", ge=1, le=MAX_VERSION_NUMBER),
    db: Session = Depends(get_db),
    identity: Optional[Identity] = Depends(get_current_identity_optional),
):
    """Diff viewer between two versions; defaults to the two latest"""
    service = VersionService(db)
    try:
        repository = service.repositories.get_repository(repository_id, identity)
        history = service.list_versions(repository_id, identity)
        numbers = [entry["version_number"] for entry in history]
        if to_version is None:
            to_version = numbers[0] if numbers else 1
        if from_version is None:
            from_version = numbers[1] if len(numbers) > 1 else to_version
        older = service.get_version_by_number(repository_id, from_version, identity)
        newer = service.get_version_by_number(repository_id, to_version, identity)
    except NotFoundError as e:
        return render_template(
            "repo/compare.html",
            {"error": e.message, "repository": None},
            request,
            status_code=status.HTTP_404_NOT_FOUND,
        )

    return render_template(
        "repo/compare.html",
        {
            "repository": repository,
            "numbers": numbers,
            "comparison": compare_versions(older, newer),
        },
        request,
    )
