"""
Signup and profile validation for speakers.

The submitted values are kept as a read-only record. Each validator reads either the raw value or
the value passed through the sanitizer, so passwords are compared exactly as typed while names and
free text are checked for injected markup.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from enum import StrEnum
from types import MappingProxyType
from typing import Any

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.files.uploadedfile import UploadedFile
from django.core.validators import validate_email
from django.utils.html import strip_tags
from django.utils.translation import gettext as _
from PIL import Image, UnidentifiedImageError


logger = structlog.get_logger(__name__)

MAX_NAME_LENGTH = 255
MIN_PASSWORD_LENGTH = 5
SPEAKER_PHOTO_MAX_SIZE = 5 * 1024 * 1024
SPEAKER_PHOTO_MIME_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png"})
JOINDIN_URL_PATTERN = re.compile(r"https://joind\.in/user/[a-zA-Z0-9]{1,25}")
COC_AGREED = "agreed"

# Compared exactly as submitted
UNSANITIZED_FIELDS = frozenset({"password", "password2"})


class SignupAction(StrEnum):
    """What the submitted form is used for."""

    CREATE = "create"
    UPDATE = "update"


def sanitize_text(value: Any) -> Any:
    """Strip HTML tags from string values, leave anything else untouched."""
    if isinstance(value, str):
        return strip_tags(value)
    return value


def detect_image_mime_type(upload: UploadedFile) -> str | None:
    """Return the MIME type of the image in ``upload``, or None if it is not a readable image."""
    try:
        with Image.open(upload) as image:
            image.verify()
            return Image.MIME.get(image.format or "")
    except (UnidentifiedImageError, OSError, SyntaxError):
        return None
    finally:
        upload.seek(0)


class SignupForm:
    """Validate the speaker signup and profile forms."""

    def __init__(
        self,
        data: Mapping[str, Any],
        *,
        has_coc: bool | None = None,
        sanitizer: Callable[[Any], Any] = sanitize_text,
    ) -> None:
        """
        Initialize the form.

        Args:
            data: Submitted values, including an optional ``speaker_photo`` upload
            has_coc: Whether speakers must agree to the code of conduct. Defaults to the
                ``OPENCFP_HAS_COC`` setting.
            sanitizer: Applied to every field except the passwords when its clean value is read

        """
        self.data: Mapping[str, Any] = MappingProxyType(dict(data))
        self.has_coc = settings.OPENCFP_HAS_COC if has_coc is None else has_coc
        self.sanitizer = sanitizer
        self.errors: list[str] = []

    def raw(self, field: str) -> Any:
        """Return the value of ``field`` as submitted."""
        return self.data.get(field)

    def clean(self, field: str) -> Any:
        """Return the sanitized value of ``field``."""
        value = self.data.get(field)
        if value is None or field in UNSANITIZED_FIELDS:
            return value
        if field == "twitter" and isinstance(value, str):
            return value.removeprefix("@")
        return self.sanitizer(value)

    @property
    def cleaned_data(self) -> dict[str, Any]:
        """Return every submitted field with its sanitized value."""
        return {field: self.clean(field) for field in self.data}

    def validate_all(self, action: SignupAction | str = SignupAction.CREATE) -> bool:
        """
        Run every validator that applies to ``action`` and return True if all of them pass.

        Passwords and the code of conduct are only checked when creating an account, any other
        action is a profile edit. All validators run even after a failure so every problem is
        reported at once in ``errors``.
        """
        self.errors = []
        valid_passwords = True
        agree_coc = True

        if action == SignupAction.CREATE:
            valid_passwords = self.validate_passwords()
            agree_coc = self.validate_agree_coc()

        results = [
            valid_passwords,
            agree_coc,
            self.validate_email(),
            self.validate_first_name(),
            self.validate_last_name(),
            self.validate_company(),
            self.validate_twitter(),
            self.validate_url(),
            self.validate_speaker_photo(),
        ]

        if self.raw("speaker_info"):
            results.append(self.validate_speaker_info())

        if self.raw("speaker_bio"):
            results.append(self.validate_speaker_bio())

        is_valid = all(results)
        if not is_valid:
            logger.info(
                "signup_validation_failed",
                action=str(action),
                error_count=len(self.errors),
            )
        return is_valid

    def validate_email(self) -> bool:
        """Check that an email address was given and is well formed."""
        email = self.raw("email")
        if not email:
            return self._fail(_("Missing email"))

        try:
            validate_email(email)
        except ValidationError:
            return self._fail(_("Invalid email address format"))

        return True

    def validate_passwords(self) -> bool:
        """Check that both passwords were given, match and are acceptable."""
        password = self.clean("password") or ""
        password2 = self.clean("password2") or ""

        if not password or not password2:
            return self._fail(_("Missing passwords"))

        if password != password2:
            return self._fail(_("The submitted passwords do not match"))

        if len(password) < MIN_PASSWORD_LENGTH:
            return self._fail(
                _("The submitted password must be at least %(length)d characters long")
                % {"length": MIN_PASSWORD_LENGTH},
            )

        if " " in password:
            return self._fail(_("The submitted password contains invalid characters"))

        return True

    def validate_first_name(self) -> bool:
        """Check the first name."""
        return self._validate_name("first_name", _("First name"))

    def validate_last_name(self) -> bool:
        """Check the last name."""
        return self._validate_name("last_name", _("Last name"))

    def validate_company(self) -> bool:
        """Accept any company name."""
        return True

    def validate_twitter(self) -> bool:
        """Accept any twitter handle."""
        return True

    def validate_url(self) -> bool:
        """Check that the URL, when given, points to a joind.in profile."""
        url = self.clean("url")
        if not url or JOINDIN_URL_PATTERN.search(url):
            return True

        return self._fail(_("You did not enter a valid joind.in URL"))

    def validate_speaker_photo(self) -> bool:
        """Check that the uploaded photo, when given, is a JPEG or PNG image of at most 5MB."""
        photo = self.raw("speaker_photo")
        if photo is None:
            return True

        if not photo.size:
            return self._fail(_("The speaker photo upload is empty"))

        if photo.size > SPEAKER_PHOTO_MAX_SIZE:
            return self._fail(_("Speaker photo can not be larger than 5MB"))

        if detect_image_mime_type(photo) not in SPEAKER_PHOTO_MIME_TYPES:
            return self._fail(_("Speaker photo must be a jpg or png"))

        return True

    def validate_speaker_info(self) -> bool:
        """Check that the speaker info is not empty once sanitized."""
        if not self._sanitized_text("speaker_info"):
            return self._fail(_("You submitted speaker info but it was empty after sanitizing"))
        return True

    def validate_speaker_bio(self) -> bool:
        """Check that the speaker bio is not empty once sanitized."""
        if not self._sanitized_text("speaker_bio"):
            return self._fail(
                _("You submitted speaker bio information but it was empty after sanitizing"),
            )
        return True

    def validate_agree_coc(self) -> bool:
        """Check that the speaker agreed to the code of conduct, if the deployment has one."""
        if not self.has_coc:
            return True

        if self.clean("agree_coc") == COC_AGREED:
            return True

        return self._fail(
            _("You must agree to abide by our code of conduct in order to submit"),
        )

    def _validate_name(self, field: str, label: str) -> bool:
        name = self.clean(field) or ""
        valid = True

        if not name:
            self._fail(_("%(label)s cannot be blank") % {"label": label})
            valid = False

        if len(name) > MAX_NAME_LENGTH:
            self._fail(
                _("%(label)s cannot exceed %(length)d characters")
                % {"label": label, "length": MAX_NAME_LENGTH},
            )
            valid = False

        if name != (self.raw(field) or ""):
            self._fail(_("%(label)s contains unwanted characters") % {"label": label})
            valid = False

        return valid

    def _sanitized_text(self, field: str) -> str:
        return str(self.clean(field) or "").strip()

    def _fail(self, message: str) -> bool:
        self.errors.append(message)
        return False
