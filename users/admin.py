"""Admin interface for speakers and reviewers."""

from typing import ClassVar

from django.contrib import admin, messages
from django.contrib.auth.admin import UserAdmin
from django.db.models import Count, QuerySet
from django.http import HttpRequest
from django.utils.translation import gettext_lazy as _

from .models import CustomUser


class ReviewerListFilter(admin.SimpleListFilter):
    """Filter users by whether they may review talks."""

    title = _("Role")
    parameter_name = "role"

    def lookups(self, request: HttpRequest, model_admin: admin.ModelAdmin) -> list[tuple[str, str]]:  # noqa: ARG002
        """Return filter options."""
        return [
            ("reviewer", _("Reviewers")),
            ("speaker", _("Speakers")),
        ]

    def queryset(self, request: HttpRequest, queryset: QuerySet) -> QuerySet:  # noqa: ARG002
        """Filter queryset based on selected option."""
        if self.value() == "reviewer":
            return queryset.filter(is_staff=True)
        if self.value() == "speaker":
            return queryset.filter(is_staff=False)
        return queryset


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin):
    """Admin configuration for the CustomUser model using UserAdmin."""

    list_display = (
        "email",
        "full_name",
        "company",
        "talk_count",
        "is_active",
        "is_staff",
        "date_joined",
    )
    list_filter = (ReviewerListFilter, "is_active", "transportation", "hotel", "date_joined")
    search_fields = ("email", "first_name", "last_name", "company")
    ordering = ("first_name", "last_name")
    readonly_fields = ("date_joined", "last_login")
    actions: ClassVar[list[str]] = ["make_reviewers", "revoke_reviewers"]
    list_per_page = 25

    # Override UserAdmin fieldsets to use email instead of username
    fieldsets = (
        (None, {"fields": ("email", "password")}),
        (_("Personal info"), {"fields": ("first_name", "last_name", "company")}),
        (
            _("Speaker profile"),
            {
                "fields": (
                    "twitter",
                    "url",
                    "speaker_info",
                    "speaker_bio",
                    "photo",
                    "transportation",
                    "hotel",
                ),
            },
        ),
        (
            _("Permissions"),
            {
                "fields": (
                    "is_active",
                    "is_staff",
                    "is_superuser",
                    "groups",
                    "user_permissions",
                ),
                "description": _("Staff members can log in to the admin site and review talks."),
            },
        ),
        (_("Important dates"), {"fields": ("last_login", "date_joined")}),
    )

    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("email", "password1", "password2", "first_name", "last_name"),
            },
        ),
    )

    def get_queryset(self, request: HttpRequest) -> QuerySet:
        """Annotate users with the number of talks they submitted."""
        return super().get_queryset(request).annotate(submitted_talks=Count("talks"))

    @admin.display(description=_("Talks"), ordering="submitted_talks")
    def talk_count(self, obj: CustomUser) -> int:
        """Display the number of submitted talks."""
        return getattr(obj, "submitted_talks", 0)

    @admin.action(description=_("Allow selected users to review talks"))
    def make_reviewers(self, request: HttpRequest, queryset: QuerySet) -> None:
        """Promote selected users to reviewers."""
        count = queryset.filter(is_staff=False).update(is_staff=True)
        if count:
            messages.success(
                request,
                _("Successfully promoted %(count)d users.") % {"count": count},
            )
        else:
            messages.info(request, _("All selected users were already reviewers."))

    @admin.action(description=_("Revoke review access from selected users"))
    def revoke_reviewers(self, request: HttpRequest, queryset: QuerySet) -> None:
        """Demote selected users back to speakers."""
        # Don't allow demoting your own account
        if request.user.pk in queryset.values_list("pk", flat=True):
            messages.error(request, _("You cannot revoke your own review access."))
            return

        count = queryset.filter(is_staff=True, is_superuser=False).update(is_staff=False)
        if count:
            messages.success(
                request,
                _("Successfully demoted %(count)d users.") % {"count": count},
            )
        else:
            messages.info(request, _("None of the selected users could be demoted."))
