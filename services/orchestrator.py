"""End-to-end orchestration: retrieve, plan, write copy, assemble and save."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from config import AppConfig, ConfigError
from models import BlogContent, ContentSource, EmailPlan
from services.llm import LLMClient
from services.observability import LogContext, StructuredLogger, get_logger
from services.output import write_email_artifacts
from services.planner import SinglePassPlanner, StructurePlanner
from services.renderer import EmailAssembler
from services.retriever import ContentRetriever
from services.sections import SectionTemplateStore
from services.writer import CopyWriter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    """Summary of a successful run."""

    run_id: str
    subject: str
    preview: str
    html: str
    text_version: str
    html_path: Path
    text_path: Path
    sequence: list[str]
    duration_seconds: float


class EmailPipeline:
    """Run one blog-to-email conversion from source to written artifacts."""

    def __init__(
        self,
        *,
        config: AppConfig,
        retriever: ContentRetriever,
        structure_planner: StructurePlanner,
        copy_writer: CopyWriter,
        plan_planner: SinglePassPlanner,
        template_store: SectionTemplateStore,
        assembler: EmailAssembler,
        logger: StructuredLogger | None = None,
    ) -> None:
        self._config = config
        self._retriever = retriever
        self._structure_planner = structure_planner
        self._copy_writer = copy_writer
        self._plan_planner = plan_planner
        self._template_store = template_store
        self._assembler = assembler
        self._logger = logger or get_logger()

    @classmethod
    def from_config(cls, config: AppConfig) -> EmailPipeline:
        llm_client = LLMClient(config)
        template_store = SectionTemplateStore(config.sections_dir)
        return cls(
            config=config,
            retriever=ContentRetriever(config),
            structure_planner=StructurePlanner(config, llm_client),
            copy_writer=CopyWriter(config, llm_client),
            plan_planner=SinglePassPlanner(config, llm_client),
            template_store=template_store,
            assembler=EmailAssembler(template_store),
        )

    def run(self, source: ContentSource, *, single_pass: bool = False) -> PipelineResult:
        """Execute every stage in order; nothing is written unless all stages succeed."""
        started_at = datetime.now(UTC)
        started = time.monotonic()
        run_id = _generate_run_id(started_at, source)
        context = LogContext(run_id=run_id)
        self._logger.info(
            "run_started",
            context=context,
            mode="single_pass" if single_pass else "two_stage",
        )

        try:
            blog = self._retriever.retrieve(source)
            logger.info('Retrieved: "%s" (%d characters)', blog.title, len(blog.text))
            self._stage_completed(run_id, "retrieve", title=blog.title, chars=len(blog.text))

            brand_guidelines = self._load_brand_guidelines()
            available_sections = self._template_store.available_sections()
            logger.info("Found %d section templates", len(available_sections))

            if single_pass:
                plan = self._plan_planner.create_plan(
                    blog=blog,
                    brand_guidelines=brand_guidelines,
                    available_sections=available_sections,
                )
                self._stage_completed(run_id, "plan", sequence=plan.sequence)
            else:
                plan = self._run_two_stage(run_id, blog, brand_guidelines, available_sections)

            email = self._assembler.assemble(plan)
            self._stage_completed(run_id, "assemble", html_chars=len(email.html))

            artifacts = write_email_artifacts(
                email,
                self._config.output_dir,
                started_at=started_at,
            )
            self._stage_completed(run_id, "write", html_path=artifacts.html_path)
        except Exception as exc:
            self._logger.error(
                "run_failed",
                context=context,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise

        duration = time.monotonic() - started
        self._logger.info("run_completed", context=context, duration_seconds=round(duration, 2))
        return PipelineResult(
            run_id=run_id,
            subject=email.subject,
            preview=email.preview,
            html=email.html,
            text_version=email.text_version,
            html_path=artifacts.html_path,
            text_path=artifacts.text_path,
            sequence=list(plan.sequence),
            duration_seconds=duration,
        )

    def _run_two_stage(
        self,
        run_id: str,
        blog: BlogContent,
        brand_guidelines: str,
        available_sections: list[str],
    ) -> EmailPlan:
        structure = self._structure_planner.create_structure(
            blog=blog,
            brand_guidelines=brand_guidelines,
            available_sections=available_sections,
        )
        self._stage_completed(run_id, "structure", sequence=structure.sequence)

        plan = self._copy_writer.generate_copy(
            structure=structure,
            blog=blog,
            brand_guidelines=brand_guidelines,
            available_sections=available_sections,
        )
        self._stage_completed(run_id, "copy", sequence=plan.sequence)
        return plan

    def _load_brand_guidelines(self) -> str:
        path = self._config.brand_guidelines_path
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Could not read brand guidelines at {path}: {exc}") from exc

    def _stage_completed(self, run_id: str, stage: str, **fields: object) -> None:
        self._logger.info(
            "stage_completed",
            context=LogContext(run_id=run_id, stage=stage),
            **fields,
        )


def _generate_run_id(started_at: datetime, source: ContentSource) -> str:
    kind = "url" if source.url else "text" if source.text else "prompt"
    return f"{started_at.strftime('%Y-%m-%d')}-{kind}-{started_at.strftime('%H%M%S')}"
