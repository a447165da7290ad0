"""
Talk submission and review module for the call for proposals.

This module provides the Talk model for submitted talks, the TalkMeta model holding each reviewer's
rating and viewed state for a talk, and the Favorite model for reviewers' bookmarks.
"""

from __future__ import annotations

from typing import ClassVar

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


logger = structlog.get_logger(__name__)

# Constants
MAX_TALK_TITLE_LENGTH = 100
MAX_CHOICE_LENGTH = 50
MAX_SLIDES_URL_LENGTH = 255


class Talk(models.Model):
    """Represents a talk submitted by a speaker."""

    class TalkType(models.TextChoices):
        """Enumeration of talk formats."""

        REGULAR = "regular", _("Regular")
        TUTORIAL = "tutorial", _("Tutorial")

    class Level(models.TextChoices):
        """Enumeration of audience levels."""

        ENTRY = "entry", _("Entry level")
        MID = "mid", _("Mid-level")
        ADVANCED = "advanced", _("Advanced")

    class Category(models.TextChoices):
        """Enumeration of talk categories."""

        API = "api", _("APIs (REST, SOAP, etc.)")
        CONTINUOUS_DELIVERY = "continuousdelivery", _("Continuous Delivery")
        DATABASE = "database", _("Database")
        DEVELOPMENT = "development", _("Development")
        DEVOPS = "devops", _("DevOps")
        FRAMEWORK = "framework", _("Framework")
        IBMI = "ibmi", _("IBMi")
        JAVASCRIPT = "javascript", _("JavaScript")
        SECURITY = "security", _("Security")
        TESTING = "testing", _("Testing")
        UXUI = "uxui", _("UX/UI")
        OTHER = "other", _("Other")

    title = models.CharField(
        max_length=MAX_TALK_TITLE_LENGTH,
        help_text=_("Title of the talk"),
    )
    description = models.TextField(
        help_text=_("Description of the talk"),
    )
    type = models.CharField(
        max_length=MAX_CHOICE_LENGTH,
        choices=TalkType.choices,
        default=TalkType.REGULAR,
        help_text=_("Format of the talk"),
    )
    level = models.CharField(
        max_length=MAX_CHOICE_LENGTH,
        choices=Level.choices,
        default=Level.ENTRY,
        help_text=_("Expected level of the audience"),
    )
    category = models.CharField(
        max_length=MAX_CHOICE_LENGTH,
        choices=Category.choices,
        default=Category.OTHER,
        help_text=_("Category of the talk"),
    )
    other = models.TextField(
        blank=True,
        help_text=_("Notes for the reviewers"),
    )
    desired = models.BooleanField(
        default=False,
        help_text=_("The speaker really wants to give this talk"),
    )
    slides = models.URLField(
        max_length=MAX_SLIDES_URL_LENGTH,
        blank=True,
        help_text=_("Link to the slides"),
    )
    sponsor = models.BooleanField(
        default=False,
        help_text=_("The speaker's company is a sponsor"),
    )
    selected = models.BooleanField(
        default=False,
        help_text=_("The talk was selected for the schedule"),
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="talks",
        help_text=_("Speaker who submitted the talk"),
    )
    created_at = models.DateTimeField(
        default=timezone.now,
        help_text=_("When this talk was submitted"),
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text=_("When this talk was last modified"),
    )

    class Meta:
        """Metadata options for the Talk model."""

        ordering: ClassVar[list[str]] = ["created_at"]
        verbose_name = _("Talk")
        verbose_name_plural = _("Talks")
        indexes: ClassVar[list[models.Index]] = [
            models.Index(fields=["created_at"], name="talks_talk_created_idx"),
            models.Index(fields=["selected"], name="talks_talk_selected_idx"),
        ]

    def __str__(self) -> str:
        """Return the talk title."""
        return self.title


class TalkMetaManager(models.Manager["TalkMeta"]):
    """Create reviewer meta rows lazily, on the first rating or view."""

    def rate(self, talk: Talk, admin_user: models.Model, rating: int) -> TalkMeta:
        """
        Store ``admin_user``'s rating for ``talk``.

        Raises:
            ValidationError: If the rating is not -1, 0 or +1

        """
        if rating not in TalkMeta.Rating.values:
            msg = f"Invalid rating: {rating}"
            raise ValidationError(msg)

        meta, created = self.update_or_create(
            talk=talk,
            admin_user=admin_user,
            defaults={"rating": rating},
        )
        logger.info(
            "talk_rated",
            talk_id=talk.pk,
            admin_user_id=admin_user.pk,
            rating=rating,
            created=created,
        )
        return meta

    def mark_viewed(self, talk: Talk, admin_user: models.Model) -> TalkMeta:
        """Record that ``admin_user`` has opened ``talk``."""
        meta, _created = self.update_or_create(
            talk=talk,
            admin_user=admin_user,
            defaults={"viewed": True},
        )
        return meta


class TalkMeta(models.Model):
    """A reviewer's rating and viewed state for one talk."""

    class Rating(models.IntegerChoices):
        """Ratings a reviewer can give."""

        MINUS_ONE = -1, _("-1")
        NONE = 0, _("Not rated")
        PLUS_ONE = 1, _("+1")

    talk = models.ForeignKey(
        Talk,
        on_delete=models.CASCADE,
        related_name="metas",
        help_text=_("The reviewed talk"),
    )
    admin_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="talk_metas",
        help_text=_("The reviewer"),
    )
    rating = models.SmallIntegerField(
        choices=Rating.choices,
        default=Rating.NONE,
        help_text=_("Rating given by the reviewer"),
    )
    viewed = models.BooleanField(
        default=False,
        help_text=_("The reviewer has opened the talk"),
    )
    created_at = models.DateTimeField(
        default=timezone.now,
        help_text=_("When the reviewer first rated or viewed the talk"),
    )

    objects = TalkMetaManager()

    class Meta:
        """Metadata options for the TalkMeta model."""

        verbose_name = _("Talk meta")
        verbose_name_plural = _("Talk metas")
        ordering: ClassVar[list[str]] = ["-created_at"]
        constraints: ClassVar[list[models.BaseConstraint]] = [
            models.UniqueConstraint(fields=("talk", "admin_user"), name="unique_admin_talk_meta"),
            models.CheckConstraint(
                condition=models.Q(rating__gte=-1, rating__lte=1),
                name="talk_meta_rating_range",
            ),
        ]

    def __str__(self) -> str:
        """Return a string representation of the meta row."""
        return f"{self.admin_user} on {self.talk}: {self.rating:+d}"


class FavoriteManager(models.Manager["Favorite"]):
    """Manager for reviewer favorites."""

    def toggle(self, talk: Talk, admin_user: models.Model) -> bool:
        """Flip ``admin_user``'s favorite on ``talk`` and return whether it is now a favorite."""
        deleted, _details = self.filter(talk=talk, admin_user=admin_user).delete()
        if deleted:
            return False
        self.create(talk=talk, admin_user=admin_user)
        return True


class Favorite(models.Model):
    """A reviewer's bookmark on a talk."""

    talk = models.ForeignKey(
        Talk,
        on_delete=models.CASCADE,
        related_name="favorites",
        help_text=_("The bookmarked talk"),
    )
    admin_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="favorites",
        help_text=_("The reviewer"),
    )
    created_at = models.DateTimeField(
        default=timezone.now,
        help_text=_("When the talk was bookmarked"),
    )

    objects = FavoriteManager()

    class Meta:
        """Metadata options for the Favorite model."""

        verbose_name = _("Favorite")
        verbose_name_plural = _("Favorites")
        ordering: ClassVar[list[str]] = ["-created_at"]
        constraints: ClassVar[list[models.BaseConstraint]] = [
            models.UniqueConstraint(fields=("talk", "admin_user"), name="unique_admin_favorite"),
        ]

    def __str__(self) -> str:
        """Return a string representation of the favorite."""
        return f"{self.admin_user} likes {self.talk}"
