"""Post API routes.

Listing and reading are public; creating a post requires a session and
makes the signed-in user its author.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from blogauth.auth import verify_session_token
from blogauth.database import get_db
from blogauth.repositories.post import PostRepository
from blogauth.schemas.post import PostCreate, PostListResponse, PostResponse, PostWithAuthorResponse

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("", response_model=PostListResponse)
async def list_posts(
    db: AsyncSession = Depends(get_db),
    published: bool | None = None,
    author_id: str | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
) -> PostListResponse:
    """List posts newest first.

    Args:
        published: Filter by published flag.
        author_id: Filter by author user ID.
        skip: Number of records to skip (pagination offset).
        limit: Maximum number of records to return.
    """
    posts = await PostRepository(db).list_posts(
        published=published, author_id=author_id, skip=skip, limit=limit
    )
    return PostListResponse(
        items=[PostWithAuthorResponse.model_validate(p) for p in posts],
        skip=skip,
        limit=limit,
    )


@router.get("/{post_id}", response_model=PostWithAuthorResponse)
async def get_post(
    post_id: str,
    db: AsyncSession = Depends(get_db),
) -> PostWithAuthorResponse:
    """Get a single post with its author.

    Raises:
        HTTPException: 404 if post not found.
    """
    post = await PostRepository(db).find_unique({"id": post_id}, include={"author": True})
    if post is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found",
        )
    return PostWithAuthorResponse.model_validate(post)


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    post_data: PostCreate,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(verify_session_token),
) -> PostResponse:
    """Create a post authored by the signed-in user."""
    post = await PostRepository(db).create({**post_data.model_dump(), "authorId": user_id})
    return PostResponse.model_validate(post)
