"""Shared test fixtures for the users app."""

from collections.abc import Callable
from io import BytesIO
from typing import Any

import pytest
from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from PIL import Image


@pytest.fixture()
def user_model() -> type[Any]:
    """Return the user model being used by the application."""
    return get_user_model()


@pytest.fixture()
def make_image() -> Callable[..., SimpleUploadedFile]:
    """
    Return a factory for uploaded image files.

    The factory takes the Pillow format name and the file name, and returns a small image encoded
    in that format wrapped in a SimpleUploadedFile.
    """

    def _make_image(
        image_format: str = "PNG",
        name: str = "photo.png",
        content_type: str = "image/png",
    ) -> SimpleUploadedFile:
        buffer = BytesIO()
        Image.new("RGB", (8, 8), color=(200, 30, 30)).save(buffer, format=image_format)
        return SimpleUploadedFile(name, buffer.getvalue(), content_type=content_type)

    return _make_image


@pytest.fixture()
def signup_data() -> dict[str, Any]:
    """Return a complete, valid signup submission."""
    return {
        "email": "speaker@example.com",
        "password": "s3cret-pass",
        "password2": "s3cret-pass",
        "first_name": "Grace",
        "last_name": "Hopper",
        "company": "Navy",
        "twitter": "@grace",
        "url": "https://joind.in/user/gracehopper",
        "speaker_info": "Needs a projector",
        "speaker_bio": "Invented the compiler",
        "agree_coc": "agreed",
    }
