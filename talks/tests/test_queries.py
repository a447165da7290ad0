"""Tests for the reviewers' talk listings."""
# ruff: noqa: PLR2004

from datetime import datetime, timedelta

import pytest
from django.db.models import Q
from django.utils import timezone
from model_bakery import baker
from pytest_django.fixtures import SettingsWrapper
from pytest_mock import MockerFixture

from talks.models import Favorite, Talk, TalkMeta
from talks.queries import (
    ALL_TALKS,
    FAVORITE_TALKS,
    NOT_RATED_TALKS,
    NOT_VIEWED_TALKS,
    PLUS_ONE_TALKS,
    RATED_TALKS,
    RECENT_TALKS,
    SELECTED_TALKS,
    TALK_FILTERS,
    TOP_RATED_TALKS,
    VIEWED_TALKS,
    InvalidFilterColumnError,
    TalkQuery,
    build_talk_queryset,
    get_all_talks,
    get_favorite_talks,
    get_filtered_talk_list,
    get_not_rated_talks,
    get_not_viewed_talks,
    get_plus_one_talks,
    get_rated_talks,
    get_recent_talks,
    get_selected_talks,
    get_talks_by_user,
    get_talks_filtered_by,
    get_top_rated_talks,
    get_viewed_talks,
)
from users.models import CustomUser


@pytest.fixture()
def base_time() -> datetime:
    """Return a fixed reference time a few days in the past."""
    return timezone.now() - timedelta(days=10)


@pytest.fixture()
def talks(speaker: CustomUser, base_time: datetime) -> list[Talk]:
    """Return four talks submitted one day apart, oldest first."""
    specs = [
        ("Bravo", Talk.TalkType.REGULAR, Talk.Level.ENTRY, Talk.Category.API),
        ("Delta", Talk.TalkType.TUTORIAL, Talk.Level.MID, Talk.Category.DATABASE),
        ("Alpha", Talk.TalkType.REGULAR, Talk.Level.ADVANCED, Talk.Category.API),
        ("Charlie", Talk.TalkType.TUTORIAL, Talk.Level.ENTRY, Talk.Category.TESTING),
    ]
    return [
        baker.make(
            Talk,
            title=title,
            type=talk_type,
            level=level,
            category=category,
            user=speaker,
            created_at=base_time + timedelta(days=i),
        )
        for i, (title, talk_type, level, category) in enumerate(specs)
    ]


def titles(result: list) -> list[str]:
    """Return the titles of formatted talks, keeping their order."""
    return [talk.title for talk in result]


def make_meta(
    talk: Talk,
    reviewer: CustomUser,
    created_at: datetime,
    rating: int = 0,
    viewed: bool = False,  # noqa: FBT001, FBT002
) -> TalkMeta:
    """Create a meta row with an explicit timestamp."""
    return baker.make(
        TalkMeta,
        talk=talk,
        admin_user=reviewer,
        rating=rating,
        viewed=viewed,
        created_at=created_at,
    )


class TestTalkQueryDefaults:
    """Verify the declared default ordering of each listing."""

    @pytest.mark.parametrize(
        ("query", "order_by", "sort"),
        [
            (ALL_TALKS, "created_at", "ASC"),
            (SELECTED_TALKS, "created_at", "DESC"),
            (RECENT_TALKS, "created_at", "DESC"),
            (FAVORITE_TALKS, "f.created", "DESC"),
            (TOP_RATED_TALKS, "total_rating", "DESC"),
            (NOT_VIEWED_TALKS, "t.created_at", "DESC"),
            (VIEWED_TALKS, "t.created_at", "DESC"),
            (RATED_TALKS, "m.created", "DESC"),
            (PLUS_ONE_TALKS, "m.created", "DESC"),
            (NOT_RATED_TALKS, "t.created_at", "DESC"),
        ],
    )
    def test_default_options(self, query: TalkQuery, order_by: str, sort: str) -> None:
        """Each listing declares its default order column and direction."""
        assert query.default_options == {"order_by": order_by, "sort": sort}

    def test_dashboard_filter_names(self) -> None:
        """The dashboard filter names map to their listings."""
        assert TALK_FILTERS["toprated"] is TOP_RATED_TALKS
        assert TALK_FILTERS["notviewed"] is NOT_VIEWED_TALKS
        assert set(TALK_FILTERS) == {
            "selected",
            "favorited",
            "toprated",
            "notviewed",
            "viewed",
            "rated",
            "plusone",
            "notrated",
        }


@pytest.mark.django_db
class TestGetAllTalks:
    """Verify the unfiltered listing and option handling."""

    def test_default_is_oldest_first(self, talks: list[Talk], reviewer: CustomUser) -> None:
        """Without options, talks are ordered by submission time ascending."""
        result = get_all_talks(reviewer.pk)
        assert titles(result) == ["Bravo", "Delta", "Alpha", "Charlie"]

    def test_order_by_title_desc(self, talks: list[Talk], reviewer: CustomUser) -> None:
        """A whitelisted column and direction are honored."""
        result = get_all_talks(reviewer.pk, {"order_by": "title", "sort": "DESC"})
        assert titles(result) == ["Delta", "Charlie", "Bravo", "Alpha"]

    def test_unknown_column_falls_back(self, talks: list[Talk], reviewer: CustomUser) -> None:
        """An unknown column uses the default ordering instead of failing."""
        result = get_all_talks(reviewer.pk, {"order_by": "user_id; --", "sort": "DESC"})
        assert titles(result) == ["Charlie", "Alpha", "Delta", "Bravo"]

    def test_unknown_direction_falls_back(self, talks: list[Talk], reviewer: CustomUser) -> None:
        """An unknown direction uses the default direction."""
        result = get_all_talks(reviewer.pk, {"order_by": "title", "sort": "sideways"})
        assert titles(result) == ["Alpha", "Bravo", "Charlie", "Delta"]

    def test_extra_predicate(self, talks: list[Talk], reviewer: CustomUser) -> None:
        """An additional predicate narrows the listing."""
        result = get_all_talks(reviewer.pk, where=Q(type=Talk.TalkType.TUTORIAL))
        assert titles(result) == ["Delta", "Charlie"]

    def test_without_user(self, talks: list[Talk], reviewer: CustomUser) -> None:
        """include_user=False leaves the submitter out."""
        result = get_all_talks(reviewer.pk, include_user=False)
        assert all(talk.user is None for talk in result)

    def test_reviewer_state_is_resolved(self, talks: list[Talk], reviewer: CustomUser) -> None:
        """Each entry carries the reviewer's own meta and favorite state."""
        TalkMeta.objects.rate(talks[0], reviewer, 1)
        Favorite.objects.toggle(talks[1], reviewer)

        result = {talk.title: talk for talk in get_all_talks(reviewer.pk)}

        assert result["Bravo"].meta.rating == 1
        assert result["Bravo"].favorite is False
        assert result["Delta"].meta.rating == 0
        assert result["Delta"].favorite is True

    def test_query_count_is_constant(
        self,
        talks: list[Talk],
        reviewer: CustomUser,
        django_assert_num_queries,  # noqa: ANN001
    ) -> None:
        """Talks, metas and favorites are loaded in three queries regardless of size."""
        for talk in talks:
            TalkMeta.objects.rate(talk, reviewer, 1)
            Favorite.objects.toggle(talk, reviewer)

        with django_assert_num_queries(3):
            result = get_all_talks(reviewer.pk)
            assert [talk.user.email for talk in result] == ["speaker@example.com"] * 4


@pytest.mark.django_db
class TestSelectedAndRecentTalks:
    """Verify the selected and recent listings."""

    def test_selected(self, talks: list[Talk], reviewer: CustomUser) -> None:
        """Only selected talks are listed, newest first."""
        Talk.objects.filter(pk__in=[talks[0].pk, talks[2].pk]).update(selected=True)

        assert titles(get_selected_talks(reviewer.pk)) == ["Alpha", "Bravo"]

    def test_recent_respects_limit(self, talks: list[Talk], reviewer: CustomUser) -> None:
        """The newest talks are returned up to the limit."""
        assert titles(get_recent_talks(reviewer.pk, limit=2)) == ["Charlie", "Alpha"]

    def test_recent_default_limit_from_settings(
        self,
        talks: list[Talk],
        reviewer: CustomUser,
        settings: SettingsWrapper,
    ) -> None:
        """The default limit comes from OPENCFP_RECENT_TALKS_LIMIT."""
        settings.OPENCFP_RECENT_TALKS_LIMIT = 3
        assert titles(get_recent_talks(reviewer.pk)) == ["Charlie", "Alpha", "Delta"]

    def test_recent_ignores_requested_order(self, talks: list[Talk], reviewer: CustomUser) -> None:
        """The recent listing always uses its fixed order."""
        queryset = build_talk_queryset(
            RECENT_TALKS,
            reviewer.pk,
            {"order_by": "title", "sort": "ASC"},
        )
        assert [talk.title for talk in queryset] == ["Charlie", "Alpha", "Delta", "Bravo"]


@pytest.mark.django_db
class TestFavoriteTalks:
    """Verify the favorites listing."""

    def test_ordered_by_favorite_time(
        self,
        talks: list[Talk],
        reviewer: CustomUser,
        other_reviewer: CustomUser,
        base_time: datetime,
    ) -> None:
        """Only the reviewer's favorites are listed, last favorited first."""
        baker.make(Favorite, talk=talks[3], admin_user=reviewer, created_at=base_time)
        baker.make(
            Favorite,
            talk=talks[0],
            admin_user=reviewer,
            created_at=base_time + timedelta(hours=1),
        )
        baker.make(Favorite, talk=talks[1], admin_user=other_reviewer)

        result = get_favorite_talks(reviewer.pk)

        assert titles(result) == ["Bravo", "Charlie"]
        assert all(talk.favorite for talk in result)

    def test_no_favorites(self, talks: list[Talk], reviewer: CustomUser) -> None:
        """A reviewer without favorites gets an empty list."""
        assert get_favorite_talks(reviewer.pk) == []


@pytest.mark.django_db
class TestTopRatedTalks:
    """Verify the top-rated listing sums ratings across all reviewers."""

    def test_positive_totals_only(
        self,
        talks: list[Talk],
        reviewer: CustomUser,
        other_reviewer: CustomUser,
    ) -> None:
        """Talks with a positive summed rating are listed, highest first."""
        TalkMeta.objects.rate(talks[0], reviewer, 1)
        TalkMeta.objects.rate(talks[2], reviewer, 1)
        TalkMeta.objects.rate(talks[2], other_reviewer, 1)
        TalkMeta.objects.rate(talks[1], reviewer, 1)
        TalkMeta.objects.rate(talks[1], other_reviewer, -1)
        TalkMeta.objects.rate(talks[3], other_reviewer, -1)

        result = get_top_rated_talks(reviewer.pk)

        assert titles(result) == ["Alpha", "Bravo"]
        assert [talk.total_rating for talk in result] == [2, 1]
        assert [talk.review_count for talk in result] == [2, 1]

    def test_reviewer_sees_own_rating(
        self,
        talks: list[Talk],
        reviewer: CustomUser,
        other_reviewer: CustomUser,
    ) -> None:
        """A talk rated only by someone else shows the reviewer's rating as 0."""
        TalkMeta.objects.rate(talks[0], other_reviewer, 1)

        result = get_top_rated_talks(reviewer.pk)

        assert titles(result) == ["Bravo"]
        assert result[0].meta.rating == 0

    def test_order_by_title(
        self,
        talks: list[Talk],
        reviewer: CustomUser,
    ) -> None:
        """A requested order replaces the rating order."""
        TalkMeta.objects.rate(talks[0], reviewer, 1)
        TalkMeta.objects.rate(talks[2], reviewer, 1)

        result = get_top_rated_talks(reviewer.pk, {"order_by": "title", "sort": "ASC"})

        assert titles(result) == ["Alpha", "Bravo"]


@pytest.mark.django_db
class TestViewedTalks:
    """Verify the viewed and not-viewed listings."""

    def test_viewed(
        self,
        talks: list[Talk],
        reviewer: CustomUser,
        other_reviewer: CustomUser,
    ) -> None:
        """Talks the reviewer opened are listed, newest submission first."""
        TalkMeta.objects.mark_viewed(talks[0], reviewer)
        TalkMeta.objects.mark_viewed(talks[2], reviewer)
        TalkMeta.objects.mark_viewed(talks[1], other_reviewer)

        assert titles(get_viewed_talks(reviewer.pk)) == ["Alpha", "Bravo"]

    def test_not_viewed(
        self,
        talks: list[Talk],
        reviewer: CustomUser,
        other_reviewer: CustomUser,
    ) -> None:
        """Untouched talks and the reviewer's own unviewed rows are listed."""
        TalkMeta.objects.mark_viewed(talks[0], reviewer)
        TalkMeta.objects.rate(talks[1], reviewer, 1)

        result = get_not_viewed_talks(reviewer.pk)

        assert titles(result) == ["Charlie", "Alpha", "Delta"]
        assert all(not talk.meta.viewed for talk in result)

    def test_not_viewed_skips_talks_only_others_reviewed(
        self,
        talks: list[Talk],
        reviewer: CustomUser,
        other_reviewer: CustomUser,
    ) -> None:
        """A talk with meta rows from other reviewers only is not listed."""
        TalkMeta.objects.mark_viewed(talks[3], other_reviewer)
        TalkMeta.objects.rate(talks[2], other_reviewer, -1)

        assert titles(get_not_viewed_talks(reviewer.pk)) == ["Delta", "Bravo"]

    def test_not_viewed_keeps_own_unviewed_row_next_to_others(
        self,
        talks: list[Talk],
        reviewer: CustomUser,
        other_reviewer: CustomUser,
    ) -> None:
        """The reviewer's own unviewed row keeps a talk listed whatever others did."""
        TalkMeta.objects.mark_viewed(talks[3], other_reviewer)
        TalkMeta.objects.rate(talks[3], reviewer, 1)
        TalkMeta.objects.mark_viewed(talks[2], other_reviewer)
        TalkMeta.objects.mark_viewed(talks[2], reviewer)

        assert titles(get_not_viewed_talks(reviewer.pk)) == ["Charlie", "Delta", "Bravo"]


@pytest.mark.django_db
class TestRatedTalks:
    """Verify the rated, plus-one and not-rated listings."""

    def test_rated_ordered_by_meta_time(
        self,
        talks: list[Talk],
        reviewer: CustomUser,
        base_time: datetime,
    ) -> None:
        """Talks rated +1 or -1 are listed, last rated first."""
        make_meta(talks[0], reviewer, base_time + timedelta(hours=2), rating=1)
        make_meta(talks[1], reviewer, base_time + timedelta(hours=3), rating=-1)
        make_meta(talks[2], reviewer, base_time + timedelta(hours=4), rating=0, viewed=True)
        make_meta(talks[3], reviewer, base_time + timedelta(hours=1), rating=1)

        assert titles(get_rated_talks(reviewer.pk)) == ["Delta", "Bravo", "Charlie"]

    def test_plus_one(
        self,
        talks: list[Talk],
        reviewer: CustomUser,
        other_reviewer: CustomUser,
        base_time: datetime,
    ) -> None:
        """Only the reviewer's own +1 ratings count."""
        make_meta(talks[0], reviewer, base_time, rating=1)
        make_meta(talks[1], reviewer, base_time + timedelta(hours=1), rating=-1)
        make_meta(talks[2], other_reviewer, base_time, rating=1)

        result = get_plus_one_talks(reviewer.pk)

        assert titles(result) == ["Bravo"]
        assert result[0].meta.rating == 1

    def test_not_rated(
        self,
        talks: list[Talk],
        reviewer: CustomUser,
        other_reviewer: CustomUser,
        base_time: datetime,
    ) -> None:
        """Talks without a rating from the reviewer are listed."""
        make_meta(talks[0], reviewer, base_time, rating=1)
        make_meta(talks[1], reviewer, base_time, rating=0, viewed=True)
        make_meta(talks[2], other_reviewer, base_time, rating=-1)

        assert titles(get_not_rated_talks(reviewer.pk)) == ["Charlie", "Alpha", "Delta"]


@pytest.mark.django_db
class TestTalksFilteredBy:
    """Verify filtering on a whitelisted column."""

    def test_category(self, talks: list[Talk], reviewer: CustomUser) -> None:
        """Talks in the category are listed, newest first."""
        result = get_talks_filtered_by("category", Talk.Category.API, reviewer.pk)
        assert titles(result) == ["Alpha", "Bravo"]

    @pytest.mark.parametrize(
        "options",
        [
            {"order_by": "title", "sort": "DESC"},
            {"order_by": "created_at", "sort": "ASC"},
        ],
    )
    def test_requested_order_is_ignored(
        self,
        talks: list[Talk],
        reviewer: CustomUser,
        options: dict[str, str],
    ) -> None:
        """Filtered listings are always newest first."""
        result = get_talks_filtered_by("category", Talk.Category.API, reviewer.pk, options)
        assert titles(result) == ["Alpha", "Bravo"]

    def test_level(self, talks: list[Talk], reviewer: CustomUser) -> None:
        """Level is a valid filter column."""
        result = get_talks_filtered_by("level", Talk.Level.ENTRY, reviewer.pk)
        assert titles(result) == ["Charlie", "Bravo"]

    def test_no_match(self, talks: list[Talk], reviewer: CustomUser) -> None:
        """A value without talks yields an empty list."""
        assert get_talks_filtered_by("category", Talk.Category.IBMI, reviewer.pk) == []

    @pytest.mark.parametrize("column", ["title", "user_id", "selected", "1=1; --"])
    def test_invalid_column_raises_before_querying(
        self,
        column: str,
        reviewer: CustomUser,
        django_assert_num_queries,  # noqa: ANN001
    ) -> None:
        """A column outside the whitelist raises and performs no query."""
        with django_assert_num_queries(0), pytest.raises(InvalidFilterColumnError) as exc_info:
            get_talks_filtered_by(column, "x", reviewer.pk)

        assert exc_info.value.column == column
        assert isinstance(exc_info.value, ValueError)

    def test_invalid_column_is_logged(self, reviewer: CustomUser, mocker: MockerFixture) -> None:
        """Rejected columns are logged as a warning."""
        logger = mocker.patch("talks.queries.logger")

        with pytest.raises(InvalidFilterColumnError):
            get_talks_filtered_by("title", "x", reviewer.pk)

        logger.warning.assert_called_once_with(
            "invalid_filter_column",
            column="title",
            admin_user_id=reviewer.pk,
        )


@pytest.mark.django_db
class TestFilteredTalkList:
    """Verify the dashboard filter dispatcher."""

    def test_known_filter(self, talks: list[Talk], reviewer: CustomUser) -> None:
        """A known filter name runs its listing."""
        Talk.objects.filter(pk=talks[1].pk).update(selected=True)
        assert titles(get_filtered_talk_list(reviewer.pk, "selected")) == ["Delta"]

    @pytest.mark.parametrize("filter_name", [None, "", "bogus"])
    def test_unknown_filter_lists_all(
        self,
        talks: list[Talk],
        reviewer: CustomUser,
        filter_name: str | None,
    ) -> None:
        """Unknown or missing filter names list every talk."""
        result = get_filtered_talk_list(reviewer.pk, filter_name)
        assert titles(result) == ["Bravo", "Delta", "Alpha", "Charlie"]

    def test_options_are_forwarded(self, talks: list[Talk], reviewer: CustomUser) -> None:
        """Sort options reach the chosen listing."""
        TalkMeta.objects.mark_viewed(talks[0], reviewer)
        result = get_filtered_talk_list(
            reviewer.pk,
            "notviewed",
            {"order_by": "title", "sort": "ASC"},
        )
        assert titles(result) == ["Alpha", "Charlie", "Delta"]


@pytest.mark.django_db
class TestTalksByUser:
    """Verify listing a speaker's own submissions."""

    def test_only_own_talks(self, talks: list[Talk], speaker: CustomUser) -> None:
        """Talks by other speakers are excluded."""
        baker.make(Talk, user=baker.make(CustomUser, email="someone@example.com"))

        assert list(get_talks_by_user(speaker.pk)) == talks

    def test_unknown_user(self, talks: list[Talk]) -> None:
        """A user without talks gets an empty queryset."""
        assert not get_talks_by_user(0).exists()
