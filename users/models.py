"""
User management module for speakers and reviewers.

This module provides:
- CustomUserManager: Manager class for user operations and the reviewers' speaker search
- CustomUser: User model with email-based authentication and the speaker profile
- InvalidEmailError: Exception for email validation errors
"""

from __future__ import annotations

from typing import Any, ClassVar

from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q, QuerySet
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from utils.sorting import resolve_sort_options


MAX_NAME_LENGTH = 255
MAX_COMPANY_LENGTH = 255
MAX_TWITTER_LENGTH = 255
MAX_URL_LENGTH = 255

SPEAKER_ORDER_BY_WHITELIST = ("first_name", "last_name", "email", "company", "date_joined")
SPEAKER_DEFAULT_ORDER = {"order_by": "first_name", "sort": "ASC"}


class InvalidEmailError(Exception):
    """Exception raised when an invalid email is provided."""

    def __init__(self, email: str) -> None:
        """
        Initialize the InvalidEmailError.

        Args:
            email: The invalid email that caused the error

        """
        self.email = email
        super().__init__(f"Invalid email address: {email}")


class CustomUserManager(BaseUserManager):
    """Manage user operations with email-based authentication."""

    def create_user(
        self,
        email: str,
        password: str | None = None,
        **extra_fields: Any,
    ) -> CustomUser:
        """
        Create and save a new user.

        Args:
            email: The email address for the new user
            password: Optional password for the new user
            **extra_fields: Additional fields to be saved on the user model

        Returns:
            CustomUser: The newly created user instance

        Raises:
            InvalidEmailError: If the email is invalid, already taken or not provided

        """
        if not email:
            raise InvalidEmailError(email) from None

        try:
            email = self.normalize_email(email).strip().lower()
            user = self.model(email=email, **extra_fields)

            if password:
                user.set_password(password)
            else:
                user.set_unusable_password()

            user.full_clean()
        except ValidationError as exc:
            raise InvalidEmailError(email) from exc
        else:
            user.save(using=self._db)
            return user

    def create_superuser(
        self,
        email: str,
        password: str,
        **extra_fields: Any,
    ) -> CustomUser:
        """
        Create and save a new superuser.

        Raises:
            ValidationError: If superuser flags are not properly set
            ValueError: If no password is given

        """
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("is_active", True)

        if not extra_fields.get("is_staff"):
            msg = "Superuser must have is_staff=True"
            raise ValidationError(msg)

        if not extra_fields.get("is_superuser"):
            msg = "Superuser must have is_superuser=True"
            raise ValidationError(msg)

        if not password:
            msg = "Superuser must have a password"
            raise ValueError(msg)

        return self.create_user(email, password, **extra_fields)

    def search_speakers(
        self,
        search: str | None = None,
        order_by: str | None = None,
        order: str | None = None,
    ) -> QuerySet[CustomUser]:
        """
        Return the speakers matching ``search``, ordered for the reviewers' speaker list.

        The search is a case-insensitive match on first name, last name, email or company.
        Unknown ordering requests fall back to first name, ascending.
        """
        options = resolve_sort_options(
            {"order_by": order_by, "sort": order},
            SPEAKER_DEFAULT_ORDER,
            whitelist=SPEAKER_ORDER_BY_WHITELIST,
        )

        queryset = self.get_queryset()
        if search:
            queryset = queryset.filter(
                Q(first_name__icontains=search)
                | Q(last_name__icontains=search)
                | Q(email__icontains=search)
                | Q(company__icontains=search),
            )

        prefix = "-" if options["sort"] == "DESC" else ""
        return queryset.order_by(f"{prefix}{options['order_by']}", "pk")


class CustomUser(AbstractUser):
    """Speaker or reviewer account, authenticated by email address."""

    username = None
    email = models.EmailField(
        _("email address"),
        unique=True,
        error_messages={
            "unique": _("A user with that email already exists."),
        },
    )
    first_name = models.CharField(_("first name"), max_length=MAX_NAME_LENGTH, blank=True)
    last_name = models.CharField(_("last name"), max_length=MAX_NAME_LENGTH, blank=True)
    company = models.CharField(
        max_length=MAX_COMPANY_LENGTH,
        blank=True,
        help_text=_("Company the speaker works for"),
    )
    twitter = models.CharField(
        max_length=MAX_TWITTER_LENGTH,
        blank=True,
        help_text=_("Twitter handle, without the leading @"),
    )
    url = models.URLField(
        max_length=MAX_URL_LENGTH,
        blank=True,
        help_text=_("joind.in profile URL"),
    )
    speaker_info = models.TextField(
        blank=True,
        help_text=_("Additional information for the reviewers"),
    )
    speaker_bio = models.TextField(
        blank=True,
        help_text=_("Public biography of the speaker"),
    )
    photo = models.ImageField(
        upload_to="speaker_photos/",
        blank=True,
        null=True,
        help_text=_("Speaker photo (JPEG or PNG, 5MB max)"),
    )
    transportation = models.BooleanField(
        default=False,
        help_text=_("The speaker needs help with transportation"),
    )
    hotel = models.BooleanField(
        default=False,
        help_text=_("The speaker needs a hotel room"),
    )
    date_joined = models.DateTimeField(_("date joined"), default=timezone.now)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS: ClassVar[list] = []

    objects = CustomUserManager()

    class Meta:
        """Metadata for CustomUser model."""

        verbose_name = _("user")
        verbose_name_plural = _("users")

    def __str__(self) -> str:
        """Return string representation of the user."""
        return self.email

    def clean(self) -> None:
        """
        Validate the user model.

        Ensures email is lowercase before saving.
        """
        super().clean()
        self.email = self.email.lower()

    @property
    def full_name(self) -> str:
        """Return the first and last name separated by a space."""
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_reviewer(self) -> bool:
        """Return True if the user may rate talks."""
        return self.is_staff
