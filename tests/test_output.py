"""Tests for output naming and artifact writing."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone
from pathlib import Path

import pytest

from models import AssembledEmail
from services.output import build_timestamp, create_slug, write_email_artifacts


@pytest.mark.parametrize(
    ("subject", "expected"),
    [
        ("Power Your Van: 6 Tips!", "power-your-van-6-tips"),
        ("  --Hello   World--  ", "hello-world"),
        ("Black Friday 🔋 Deals", "black-friday-deals"),
        ("!!!", "email"),
        ("", "email"),
    ],
)
def test_create_slug(subject: str, expected: str) -> None:
    assert create_slug(subject) == expected


def test_create_slug_is_capped_without_trailing_hyphen() -> None:
    slug = create_slug("a" * 49 + " and more words")

    assert len(slug) <= 50
    assert not slug.endswith("-")


def test_build_timestamp_is_filesystem_safe_utc() -> None:
    moment = datetime(2026, 3, 1, 14, 5, 9, tzinfo=timezone(timedelta(hours=2)))

    assert build_timestamp(moment) == "2026-03-01T12-05-09"


def test_write_email_artifacts(tmp_path: Path) -> None:
    email = AssembledEmail(
        subject="Winter Solar Tips",
        preview="P",
        html="<html>hi</html>",
        text_version="hi\n",
    )

    artifacts = write_email_artifacts(
        email,
        tmp_path / "out",
        started_at=datetime(2026, 1, 31, 9, 5, 0, tzinfo=UTC),
    )

    assert artifacts.html_path == tmp_path / "out" / "winter-solar-tips-2026-01-31T09-05-00.html"
    assert artifacts.text_path.name == "winter-solar-tips-2026-01-31T09-05-00.txt"
    assert artifacts.html_path.read_text(encoding="utf-8") == "<html>hi</html>"
    assert artifacts.text_path.read_text(encoding="utf-8") == "hi\n"
    assert sorted(path.name for path in (tmp_path / "out").iterdir()) == [
        artifacts.html_path.name,
        artifacts.text_path.name,
    ]
