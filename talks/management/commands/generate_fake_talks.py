"""Management command to generate fake talk submissions and reviews for testing."""
# ruff: noqa: S311

import random
from datetime import timedelta
from typing import Any

from django.core.management.base import BaseCommand, CommandParser
from django.db import transaction
from django.utils import timezone
from faker import Faker

from talks.models import MAX_TALK_TITLE_LENGTH, Favorite, Talk, TalkMeta
from users.models import CustomUser


# Share of talks each reviewer opens, rates and favorites
VIEW_PROBABILITY = 0.7
RATE_PROBABILITY = 0.6
FAVORITE_PROBABILITY = 0.15

SUBMISSION_WINDOW_DAYS = 60


class Command(BaseCommand):
    """Generate fake talk submissions and reviewer activity."""

    help = "Generate sample speakers, talks and reviews for testing purposes"

    def add_arguments(self, parser: CommandParser) -> None:
        """
        Add command line arguments.

        Args:
            parser: Command line argument parser for adding custom arguments

        """
        parser.add_argument(
            "--count",
            type=int,
            default=50,
            help="Number of talks to generate (default: 50)",
        )
        parser.add_argument(
            "--reviewers",
            type=int,
            default=3,
            help="Number of reviewers rating the talks (default: 3)",
        )
        parser.add_argument(
            "--seed",
            type=int,
            default=None,
            help="Seed for reproducible data",
        )

    @transaction.atomic
    def handle(self, *args: Any, **options: Any) -> None:  # noqa: ARG002
        """
        Generate fake talks.

        options:
            - count: Number of talks to generate
            - reviewers: Number of reviewers to create
            - seed: Optional seed for Faker and random

        """
        fake = Faker()
        if options["seed"] is not None:
            fake.seed_instance(options["seed"])
            random.seed(options["seed"])

        talk_count = int(options["count"])
        reviewer_count = int(options["reviewers"])

        self.stdout.write("Generating pool of speakers...")
        # Create roughly one speaker per 1.5 talks
        speakers = [self._create_speaker(fake) for _ in range(max(1, talk_count * 2 // 3))]

        self.stdout.write(f"Generating {talk_count} talks...")
        talks = []
        for i in range(talk_count):
            talk = self._create_talk(fake, random.choice(speakers))
            talks.append(talk)
            self.stdout.write(f"Created {talk.type} [{i + 1}/{talk_count}]: {talk.title}")

        self.stdout.write(f"Generating {reviewer_count} reviewers...")
        for _ in range(reviewer_count):
            reviewer = self._create_speaker(fake, is_staff=True)
            self._review_talks(reviewer, talks)

        self.stdout.write(
            self.style.SUCCESS(
                f"Created {len(speakers)} speakers, {len(talks)} talks and "
                f"{reviewer_count} reviewers",
            ),
        )

    def _create_speaker(self, fake: Faker, *, is_staff: bool = False) -> CustomUser:
        """
        Create a speaker, or a reviewer when ``is_staff`` is set.

        Args:
            fake: Faker instance for generating fake data
            is_staff: Whether the user may review talks

        Returns:
            The created user

        """
        first_name = fake.first_name()
        last_name = fake.last_name()
        return CustomUser.objects.create_user(
            email=fake.unique.email(),
            first_name=first_name,
            last_name=last_name,
            company=fake.company(),
            twitter=fake.user_name(),
            url=f"https://joind.in/user/{fake.pystr(min_chars=3, max_chars=12)}",
            speaker_info=fake.paragraph(nb_sentences=2),
            speaker_bio=fake.text(max_nb_chars=300),
            transportation=random.random() < 0.3,
            hotel=random.random() < 0.4,
            is_staff=is_staff,
        )

    def _create_talk(self, fake: Faker, speaker: CustomUser) -> Talk:
        """
        Create a talk submitted by ``speaker``.

        Args:
            fake: Faker instance for generating fake data
            speaker: The submitting speaker

        Returns:
            The created talk

        """
        talk_type = random.choices(
            [Talk.TalkType.REGULAR, Talk.TalkType.TUTORIAL],
            weights=[80, 20],
        )[0]
        return Talk.objects.create(
            title=fake.catch_phrase()[:MAX_TALK_TITLE_LENGTH],
            description=fake.text(max_nb_chars=500),
            type=talk_type,
            level=random.choice(Talk.Level.values),
            category=random.choice(Talk.Category.values),
            other=fake.sentence() if random.random() < 0.2 else "",
            desired=random.random() < 0.3,
            sponsor=random.random() < 0.1,
            slides=fake.url() if random.random() < 0.5 else "",
            user=speaker,
            created_at=timezone.now()
            - timedelta(minutes=random.randint(0, SUBMISSION_WINDOW_DAYS * 24 * 60)),
        )

    def _review_talks(self, reviewer: CustomUser, talks: list[Talk]) -> None:
        """Let ``reviewer`` open, rate and favorite a random share of ``talks``."""
        for talk in talks:
            if random.random() < VIEW_PROBABILITY:
                TalkMeta.objects.mark_viewed(talk, reviewer)
            if random.random() < RATE_PROBABILITY:
                TalkMeta.objects.rate(talk, reviewer, random.choice(TalkMeta.Rating.values))
            if random.random() < FAVORITE_PROBABILITY:
                Favorite.objects.toggle(talk, reviewer)
