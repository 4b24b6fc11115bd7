"""Output artifact naming and writing."""

from __future__ import annotations

import os
import re
import tempfile
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from models import AssembledEmail

SLUG_MAX_LENGTH = 50
_FALLBACK_SLUG = "email"


@dataclass(frozen=True)
class EmailArtifacts:
    html_path: Path
    text_path: Path


def create_slug(text: str, max_length: int = SLUG_MAX_LENGTH) -> str:
    """Lower-case, collapse non-alphanumerics to single hyphens, trim and cap."""
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    slug = slug[:max_length].rstrip("-")
    return slug or _FALLBACK_SLUG


def build_timestamp(moment: datetime | None = None) -> str:
    """Sortable, filesystem-safe UTC timestamp (``2026-01-31T09-05-00``)."""
    moment = moment or datetime.now(UTC)
    if moment.tzinfo is not None:
        moment = moment.astimezone(UTC)
    return moment.strftime("%Y-%m-%dT%H-%M-%S")


def write_email_artifacts(
    email: AssembledEmail,
    output_dir: Path,
    *,
    started_at: datetime | None = None,
) -> EmailArtifacts:
    """Write ``<slug>-<timestamp>.html`` and ``.txt`` side by side."""
    base_name = f"{create_slug(email.subject)}-{build_timestamp(started_at)}"
    html_path = output_dir / f"{base_name}.html"
    text_path = output_dir / f"{base_name}.txt"

    _atomic_write(html_path, email.html)
    _atomic_write(text_path, email.text_version)
    return EmailArtifacts(html_path=html_path, text_path=text_path)


def _atomic_write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        delete=False,
        dir=path.parent,
        suffix=".tmp",
    ) as temp_file:
        temp_file.write(content)
        temp_name = temp_file.name
    os.replace(temp_name, path)
