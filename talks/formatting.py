"""
Presentation structures for talk listings.

A formatted talk combines the persisted talk with the state only the requesting reviewer sees: their
own rating, whether they opened the talk and whether they favorited it.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from talks.models import Talk


@dataclass(frozen=True)
class TalkMetaSummary:
    """The requesting reviewer's rating and viewed state for a talk."""

    rating: int = 0
    viewed: bool = False


@dataclass(frozen=True)
class SubmitterSummary:
    """The speaker who submitted a talk."""

    id: int
    email: str
    first_name: str
    last_name: str
    company: str


@dataclass(frozen=True)
class FormattedTalk:
    """A talk ready to be listed to a reviewer."""

    id: int
    title: str
    description: str
    type: str
    level: str
    category: str
    created_at: datetime
    selected: bool
    desired: bool
    slides: str
    other: str
    sponsor: bool
    user_id: int
    user: SubmitterSummary | None
    favorite: bool
    meta: TalkMetaSummary
    total_rating: int | None = None
    review_count: int | None = None


class TalkFormatter:
    """Turn talks into ``FormattedTalk`` structures for one reviewer."""

    def format_talk(
        self,
        talk: Talk,
        admin_user_id: int,
        include_user: bool = True,  # noqa: FBT001, FBT002
    ) -> FormattedTalk:
        """
        Format ``talk`` as seen by the reviewer ``admin_user_id``.

        The meta rows and favorites are read through the talk's related managers, so a queryset
        that prefetched ``metas`` and ``favorites`` is formatted without extra queries.
        """
        meta = next(
            (m for m in talk.metas.all() if m.admin_user_id == admin_user_id),
            None,
        )
        favorite = any(f.admin_user_id == admin_user_id for f in talk.favorites.all())

        return FormattedTalk(
            id=talk.pk,
            title=talk.title,
            description=talk.description,
            type=talk.type,
            level=talk.level,
            category=talk.category,
            created_at=talk.created_at,
            selected=talk.selected,
            desired=talk.desired,
            slides=talk.slides,
            other=talk.other,
            sponsor=talk.sponsor,
            user_id=talk.user_id,
            user=self._format_submitter(talk) if include_user else None,
            favorite=favorite,
            meta=(
                TalkMetaSummary(rating=meta.rating, viewed=meta.viewed)
                if meta is not None
                else TalkMetaSummary()
            ),
            total_rating=getattr(talk, "total_rating", None),
            review_count=getattr(talk, "review_count", None),
        )

    def format_list(
        self,
        talks: Iterable[Talk],
        admin_user_id: int,
        include_user: bool = True,  # noqa: FBT001, FBT002
    ) -> list[FormattedTalk]:
        """Format every talk in ``talks``, keeping their order."""
        return [self.format_talk(talk, admin_user_id, include_user) for talk in talks]

    @staticmethod
    def _format_submitter(talk: Talk) -> SubmitterSummary:
        user = talk.user
        return SubmitterSummary(
            id=user.pk,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            company=user.company,
        )
