"""
Tag resolution - find or create tags by title.
"""

from typing import Iterable, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.kernel.models.tag import Tag


def normalize_tag_titles(titles: Iterable[str]) -> List[str]:
    """Strip, lowercase and de-duplicate titles, keeping first-seen order."""
    seen: dict[str, None] = {}
    for title in titles:
        cleaned = title.strip().lower()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)


class TagService:
    """Service for tag lookup and creation."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_tag_by_title(self, title: str) -> Tag | None:
        query = select(Tag).where(Tag.title == title.strip().lower())
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def insert_and_get_all_tags(self, titles: Iterable[str]) -> List[Tag]:
        """
        Resolve tag titles to rows, inserting the missing ones.

        Returns one Tag per distinct normalized title, in input order.
        Runs inside the caller's transaction.
        """
        wanted = normalize_tag_titles(titles)
        if not wanted:
            return []

        result = await self.session.execute(select(Tag).where(Tag.title.in_(wanted)))
        by_title = {tag.title: tag for tag in result.scalars().all()}

        missing = [Tag(title=title) for title in wanted if title not in by_title]
        if missing:
            self.session.add_all(missing)
            await self.session.flush()
            by_title.update((tag.title, tag) for tag in missing)

        return [by_title[title] for title in wanted]
