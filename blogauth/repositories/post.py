"""Post repository."""

from __future__ import annotations

from blogauth.models.post import Post
from blogauth.repositories.base import ModelRepository


class PostRepository(ModelRepository[Post]):
    model = Post

    async def list_posts(
        self,
        published: bool | None = None,
        author_id: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Post]:
        """List posts newest first, optionally filtered by status and author."""
        where: dict = {}
        if published is not None:
            where["published"] = published
        if author_id:
            where["authorId"] = author_id

        return await self.find_many(
            where,
            include={"author": True},
            order_by={"createdAt": "desc"},
            skip=skip,
            take=limit,
        )
