"""
Talk listings for the reviewers' dashboards.

Every listing is described by a ``TalkQuery``: a predicate plus its default ordering. All listings
run through ``run_talk_query``, which scopes the talks to the requesting reviewer, resolves the
requested ordering against the whitelist and formats the rows.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog
from django.conf import settings
from django.db.models import (
    BooleanField,
    Count,
    Exists,
    F,
    IntegerField,
    OuterRef,
    Prefetch,
    Q,
    QuerySet,
    SmallIntegerField,
    Subquery,
    Sum,
    Value,
)
from django.db.models.functions import Coalesce

from talks.formatting import FormattedTalk, TalkFormatter
from talks.models import Favorite, Talk, TalkMeta
from utils.sorting import resolve_sort_options


logger = structlog.get_logger(__name__)

FILTER_COLUMN_WHITELIST = ("category", "type", "level")

# Order-by keys accepted by the listings, mapped to the annotation or field they sort on
ORDER_COLUMNS = {
    "created_at": "created_at",
    "title": "title",
    "type": "type",
    "category": "category",
    "t.created_at": "created_at",
    "f.created": "favorited_at",
    "m.created": "rated_at",
    "total_rating": "total_rating",
}


class InvalidFilterColumnError(ValueError):
    """Exception raised when talks are filtered on a column outside the whitelist."""

    def __init__(self, column: str) -> None:
        """
        Initialize the InvalidFilterColumnError.

        Args:
            column: The rejected column name

        """
        self.column = column
        super().__init__(f"Invalid filter column: {column}")


@dataclass(frozen=True)
class TalkQuery:
    """Declarative description of a talk listing."""

    name: str
    order_by: str
    sort: str
    where: Q = field(default_factory=Q)
    fixed_order: bool = False
    rating_totals: bool = False

    @property
    def default_options(self) -> dict[str, str]:
        """Return the listing's default ordering."""
        return {"order_by": self.order_by, "sort": self.sort}


ALL_TALKS = TalkQuery("all", "created_at", "ASC")
SELECTED_TALKS = TalkQuery("selected", "created_at", "DESC", where=Q(selected=True))
RECENT_TALKS = TalkQuery("recent", "created_at", "DESC", fixed_order=True)
FAVORITE_TALKS = TalkQuery("favorites", "f.created", "DESC", where=Q(is_favorite=True))
TOP_RATED_TALKS = TalkQuery(
    "top_rated",
    "total_rating",
    "DESC",
    where=Q(total_rating__gt=0),
    rating_totals=True,
)
# Talks only other reviewers have a meta row for stay out until this reviewer has one
NOT_VIEWED_TALKS = TalkQuery(
    "not_viewed",
    "t.created_at",
    "DESC",
    where=Q(admin_viewed=False) & (Q(has_admin_meta=True) | Q(has_any_meta=False)),
)
VIEWED_TALKS = TalkQuery("viewed", "t.created_at", "DESC", where=Q(admin_viewed=True))
RATED_TALKS = TalkQuery(
    "rated",
    "m.created",
    "DESC",
    where=Q(admin_rating__in=(TalkMeta.Rating.PLUS_ONE, TalkMeta.Rating.MINUS_ONE)),
)
PLUS_ONE_TALKS = TalkQuery(
    "plus_one",
    "m.created",
    "DESC",
    where=Q(admin_rating=TalkMeta.Rating.PLUS_ONE),
)
NOT_RATED_TALKS = TalkQuery(
    "not_rated",
    "t.created_at",
    "DESC",
    where=Q(admin_rating=TalkMeta.Rating.NONE),
)
FILTERED_TALKS = TalkQuery("filtered", "created_at", "DESC", fixed_order=True)

# Dashboard filter names, anything else lists all talks
TALK_FILTERS = {
    "selected": SELECTED_TALKS,
    "favorited": FAVORITE_TALKS,
    "toprated": TOP_RATED_TALKS,
    "notviewed": NOT_VIEWED_TALKS,
    "viewed": VIEWED_TALKS,
    "rated": RATED_TALKS,
    "plusone": PLUS_ONE_TALKS,
    "notrated": NOT_RATED_TALKS,
}


def _scope_to_reviewer(queryset: QuerySet[Talk], admin_user_id: int) -> QuerySet[Talk]:
    """Annotate each talk with the reviewer's own meta and favorite state."""
    metas = TalkMeta.objects.filter(talk=OuterRef("pk"), admin_user_id=admin_user_id)
    favorites = Favorite.objects.filter(talk=OuterRef("pk"), admin_user_id=admin_user_id)
    return queryset.annotate(
        admin_rating=Coalesce(
            Subquery(metas.values("rating")[:1]),
            Value(TalkMeta.Rating.NONE),
            output_field=SmallIntegerField(),
        ),
        admin_viewed=Coalesce(
            Subquery(metas.values("viewed")[:1]),
            Value(False),  # noqa: FBT003
            output_field=BooleanField(),
        ),
        rated_at=Subquery(metas.values("created_at")[:1]),
        has_admin_meta=Exists(metas),
        has_any_meta=Exists(TalkMeta.objects.filter(talk=OuterRef("pk"))),
        is_favorite=Exists(favorites),
        favorited_at=Subquery(favorites.values("created_at")[:1]),
    )


def with_rating_totals(queryset: QuerySet[Talk]) -> QuerySet[Talk]:
    """Annotate each talk with the sum and number of all reviewers' ratings."""
    metas = TalkMeta.objects.filter(talk=OuterRef("pk")).order_by().values("talk")
    return queryset.annotate(
        total_rating=Coalesce(
            Subquery(metas.annotate(total=Sum("rating")).values("total")),
            Value(0),
            output_field=IntegerField(),
        ),
        review_count=Coalesce(
            Subquery(metas.annotate(reviews=Count("rating")).values("reviews")),
            Value(0),
            output_field=IntegerField(),
        ),
    )


def build_talk_queryset(
    query: TalkQuery,
    admin_user_id: int,
    options: Mapping[str, Any] | None = None,
    where: Q | None = None,
) -> QuerySet[Talk]:
    """
    Return the unevaluated queryset for ``query`` as seen by ``admin_user_id``.

    Args:
        query: The listing to build
        admin_user_id: The requesting reviewer
        options: Requested ``order_by`` / ``sort``, ignored for fixed-order listings
        where: Additional predicate combined with the listing's own

    """
    if query.fixed_order:
        resolved = query.default_options
    else:
        resolved = resolve_sort_options(options, query.default_options)

    queryset = _scope_to_reviewer(Talk.objects.all(), admin_user_id)
    if query.rating_totals:
        queryset = with_rating_totals(queryset)

    queryset = queryset.filter(query.where)
    if where is not None:
        queryset = queryset.filter(where)

    column = F(ORDER_COLUMNS[resolved["order_by"]])
    ordering = column.desc() if resolved["sort"] == "DESC" else column.asc()

    return (
        queryset.order_by(ordering, "pk")
        .select_related("user")
        .prefetch_related(
            Prefetch("metas", queryset=TalkMeta.objects.filter(admin_user_id=admin_user_id)),
            Prefetch("favorites", queryset=Favorite.objects.filter(admin_user_id=admin_user_id)),
        )
    )


def run_talk_query(
    query: TalkQuery,
    admin_user_id: int,
    options: Mapping[str, Any] | None = None,
    *,
    where: Q | None = None,
    limit: int | None = None,
    include_user: bool = True,
) -> list[FormattedTalk]:
    """Run ``query`` for ``admin_user_id`` and return the formatted talks."""
    queryset = build_talk_queryset(query, admin_user_id, options, where)
    if limit is not None:
        queryset = queryset[:limit]

    talks = TalkFormatter().format_list(queryset, admin_user_id, include_user)
    logger.debug(
        "talk_query",
        query=query.name,
        admin_user_id=admin_user_id,
        count=len(talks),
    )
    return talks


def get_all_talks(
    admin_user_id: int,
    options: Mapping[str, Any] | None = None,
    *,
    include_user: bool = True,
    where: Q | None = None,
) -> list[FormattedTalk]:
    """Return all talks, oldest first by default."""
    return run_talk_query(
        ALL_TALKS,
        admin_user_id,
        options,
        where=where,
        include_user=include_user,
    )


def get_selected_talks(
    admin_user_id: int,
    options: Mapping[str, Any] | None = None,
) -> list[FormattedTalk]:
    """Return the talks selected for the schedule."""
    return run_talk_query(SELECTED_TALKS, admin_user_id, options)


def get_recent_talks(admin_user_id: int, limit: int | None = None) -> list[FormattedTalk]:
    """Return the most recently submitted talks, newest first."""
    if limit is None:
        limit = settings.OPENCFP_RECENT_TALKS_LIMIT
    return run_talk_query(RECENT_TALKS, admin_user_id, limit=limit)


def get_favorite_talks(
    admin_user_id: int,
    options: Mapping[str, Any] | None = None,
) -> list[FormattedTalk]:
    """Return the talks ``admin_user_id`` favorited, last favorited first."""
    return run_talk_query(FAVORITE_TALKS, admin_user_id, options)


def get_top_rated_talks(
    admin_user_id: int,
    options: Mapping[str, Any] | None = None,
) -> list[FormattedTalk]:
    """Return the talks whose summed rating across all reviewers is positive."""
    return run_talk_query(TOP_RATED_TALKS, admin_user_id, options)


def get_not_viewed_talks(
    admin_user_id: int,
    options: Mapping[str, Any] | None = None,
) -> list[FormattedTalk]:
    """Return the talks ``admin_user_id`` has not opened yet."""
    return run_talk_query(NOT_VIEWED_TALKS, admin_user_id, options)


def get_viewed_talks(
    admin_user_id: int,
    options: Mapping[str, Any] | None = None,
) -> list[FormattedTalk]:
    """Return the talks ``admin_user_id`` has opened."""
    return run_talk_query(VIEWED_TALKS, admin_user_id, options)


def get_rated_talks(
    admin_user_id: int,
    options: Mapping[str, Any] | None = None,
) -> list[FormattedTalk]:
    """Return the talks ``admin_user_id`` rated +1 or -1."""
    return run_talk_query(RATED_TALKS, admin_user_id, options)


def get_plus_one_talks(
    admin_user_id: int,
    options: Mapping[str, Any] | None = None,
) -> list[FormattedTalk]:
    """Return the talks ``admin_user_id`` rated +1."""
    return run_talk_query(PLUS_ONE_TALKS, admin_user_id, options)


def get_not_rated_talks(
    admin_user_id: int,
    options: Mapping[str, Any] | None = None,
) -> list[FormattedTalk]:
    """Return the talks ``admin_user_id`` has not rated."""
    return run_talk_query(NOT_RATED_TALKS, admin_user_id, options)


def get_talks_filtered_by(
    column: str,
    value: Any,
    admin_user_id: int,
    options: Mapping[str, Any] | None = None,
) -> list[FormattedTalk]:
    """
    Return the talks whose ``column`` equals ``value``, always newest first.

    ``options`` is accepted for symmetry with the other listings but never changes the order.

    Raises:
        InvalidFilterColumnError: If ``column`` is not category, type or level

    """
    if column not in FILTER_COLUMN_WHITELIST:
        logger.warning("invalid_filter_column", column=column, admin_user_id=admin_user_id)
        raise InvalidFilterColumnError(column)

    return run_talk_query(FILTERED_TALKS, admin_user_id, options, where=Q(**{column: value}))


def get_filtered_talk_list(
    admin_user_id: int,
    filter_name: str | None,
    options: Mapping[str, Any] | None = None,
) -> list[FormattedTalk]:
    """Return the listing behind a dashboard filter name, or all talks for unknown names."""
    query = TALK_FILTERS.get(filter_name or "", ALL_TALKS)
    return run_talk_query(query, admin_user_id, options)


def get_talks_by_user(user_id: int) -> QuerySet[Talk]:
    """Return the talks submitted by ``user_id``."""
    return Talk.objects.filter(user_id=user_id)
