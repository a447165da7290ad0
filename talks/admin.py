"""
Admin configuration for talk review.

This module defines the Django admin interfaces for the Talk, TalkMeta and Favorite models,
including the actions admins use to curate the selected talks.
"""

from django.contrib import admin, messages
from django.db.models import Count, QuerySet
from django.http import HttpRequest
from django.utils.translation import gettext_lazy as _
from django.utils.translation import ngettext

from .models import Favorite, Talk, TalkMeta
from .queries import with_rating_totals


class TalkMetaInline(admin.TabularInline):
    """Inline display of the reviewers' meta rows on a talk."""

    model = TalkMeta
    extra = 0
    fields = ("admin_user", "rating", "viewed", "created_at")
    readonly_fields = ("admin_user", "rating", "viewed", "created_at")
    can_delete = False

    def has_add_permission(self, request: HttpRequest, obj: Talk | None = None) -> bool:  # noqa: ARG002
        """Meta rows are only created by reviewers rating or opening a talk."""
        return False


@admin.register(Talk)
class TalkAdmin(admin.ModelAdmin):
    """
    Admin configuration for the Talk model.

    Attributes:
        list_display: Fields to display in the admin list view.
        list_filter: Fields to filter by in the admin list view.
        search_fields: Fields to search by in the admin list view.
        actions: Bulk actions to select and deselect talks.

    """

    list_display = (
        "title",
        "submitter",
        "type",
        "level",
        "category",
        "selected",
        "rating",
        "favorite_count",
        "created_at",
    )
    list_filter = ("selected", "type", "level", "category", "created_at")
    search_fields = ("title", "description", "user__email", "user__last_name")
    autocomplete_fields = ("user",)
    readonly_fields = ("created_at", "updated_at")
    inlines = (TalkMetaInline,)
    actions = ("select_talks", "deselect_talks")

    fieldsets = (
        (
            None,
            {
                "fields": ("title", "description", "user", "selected"),
            },
        ),
        (
            _("Classification"),
            {
                "fields": ("type", "level", "category"),
            },
        ),
        (
            _("Speaker notes"),
            {
                "fields": ("other", "desired", "slides", "sponsor"),
            },
        ),
        (
            _("Metadata"),
            {
                "fields": ("created_at", "updated_at"),
                "classes": ("collapse",),
            },
        ),
    )

    def get_queryset(self, request: HttpRequest) -> QuerySet[Talk]:
        """Annotate talks with the summed rating and the number of favorites."""
        queryset = super().get_queryset(request).select_related("user")
        return with_rating_totals(queryset).annotate(favorites_count=Count("favorites"))

    @admin.display(description=_("Submitted by"), ordering="user__email")
    def submitter(self, obj: Talk) -> str:
        """Display the speaker who submitted the talk."""
        return obj.user.full_name or obj.user.email

    @admin.display(description=_("Rating"), ordering="total_rating")
    def rating(self, obj: Talk) -> int:
        """Display the sum of all reviewers' ratings."""
        return getattr(obj, "total_rating", 0)

    @admin.display(description=_("Favorites"), ordering="favorites_count")
    def favorite_count(self, obj: Talk) -> int:
        """Display how many reviewers favorited the talk."""
        return getattr(obj, "favorites_count", 0)

    @admin.action(description=_("Select talks for the schedule"))
    def select_talks(self, request: HttpRequest, queryset: QuerySet[Talk]) -> None:
        """Mark the chosen talks as selected."""
        updated = queryset.update(selected=True)
        self.message_user(
            request,
            ngettext("%d talk was selected.", "%d talks were selected.", updated) % updated,
            messages.SUCCESS,
        )

    @admin.action(description=_("Remove talks from the selection"))
    def deselect_talks(self, request: HttpRequest, queryset: QuerySet[Talk]) -> None:
        """Unmark the chosen talks as selected."""
        updated = queryset.update(selected=False)
        self.message_user(
            request,
            ngettext("%d talk was deselected.", "%d talks were deselected.", updated) % updated,
            messages.SUCCESS,
        )


@admin.register(TalkMeta)
class TalkMetaAdmin(admin.ModelAdmin):
    """Admin configuration for the TalkMeta model."""

    list_display = ("talk", "admin_user", "rating", "viewed", "created_at")
    list_filter = ("rating", "viewed", "created_at")
    search_fields = ("talk__title", "admin_user__email")
    readonly_fields = ("created_at",)


@admin.register(Favorite)
class FavoriteAdmin(admin.ModelAdmin):
    """Admin configuration for the Favorite model."""

    list_display = ("talk", "admin_user", "created_at")
    list_filter = ("created_at",)
    search_fields = ("talk__title", "admin_user__email")
    readonly_fields = ("created_at",)
