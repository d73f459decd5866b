"""Export orchestration.

Stage order is fixed: budget gate, asset embedding, dependency elimination,
builder generation, plugin-free verification, packaging. Every stage leaves a
report in the artifact, even when it is switched off. Only the budget gate
and an unknown target can stop a run; the other optional stages degrade to a
warning and pass their input through unchanged.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Sequence, TypeVar

from .artifact import REPORT_NAMES, ExportArtifact
from .budget import Budget, validate_budget
from .builders.base import BuildContext, ThemeMetadata
from .convert.blocks import Block
from .convert.sources import ElementData, build_document, select_source
from .elimination import (
    EliminationResult,
    eliminate_blocks,
    eliminate_css,
    eliminate_elements,
    eliminate_html,
    eliminate_js,
)
from .embedding import Decision, EmbeddingOptions, embed_sources
from .errors import BudgetExceeded, ExportCancelled, ExportError
from .ir import IdGenerator, SequentialIds
from .manifest import StageLog, utc_iso
from .packaging import build_archive
from .registry import BuilderId, get_builder, install_instructions, resolve_builder_id
from .reports import (
    render_budget_report,
    render_elimination_report,
    render_embedding_report,
    render_skipped,
    render_verification_report,
)
from .signatures import detect_source_builder
from .verification import verify_plugin_free

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ExportStage(str, Enum):
    BUDGET = "budget"
    EMBEDDING = "embedding"
    ELIMINATION = "elimination"
    GENERATE = "generate"
    VERIFICATION = "verification"
    PACKAGE = "package"


@dataclass(frozen=True)
class ExportFlags:
    embed_assets: bool = False
    eliminate_dependencies: bool = False
    validate_budget: bool = False
    budget_override: bool = False
    verify_plugin_free: bool = False


@dataclass
class ExportInput:
    html: str
    target: str | BuilderId
    css: Sequence[str] = ()
    js: Sequence[str] = ()
    image_paths: Sequence[str] = ()
    asset_bytes: Mapping[str, bytes] = field(default_factory=dict)
    theme: ThemeMetadata = field(default_factory=ThemeMetadata)
    flags: ExportFlags = field(default_factory=ExportFlags)
    custom_budget: Budget | None = None
    embedding: EmbeddingOptions | None = None
    native_blocks: Sequence[Block] | None = None
    elements: Sequence[ElementData] | None = None

    def image_bytes(self) -> dict[str, bytes]:
        return {p: self.asset_bytes[p] for p in self.image_paths if p in self.asset_bytes}


@dataclass
class _RunState:
    html: str
    css: list[str]
    js: list[str]
    images: dict[str, bytes]
    blocks: list[Block] | None = None
    elements: list[ElementData] | None = None


class ExportPipeline:
    def __init__(
        self,
        *,
        ids: IdGenerator | None = None,
        cancel: threading.Event | None = None,
        max_workers: int = 1,
        progress: Callable[[ExportStage], None] | None = None,
    ) -> None:
        self._ids = ids
        self._cancel = cancel
        self._max_workers = max(1, max_workers)
        self._progress = progress

    def _checkpoint(self, stage: ExportStage, log: StageLog) -> None:
        if self._cancel is not None and self._cancel.is_set():
            log.stage("cancelled", stage.value)
            logger.info("export cancelled before stage %s", stage.value)
            raise ExportCancelled(f"Export cancelled before stage {stage.value}")
        log.stage("stage_started", stage.value)
        if self._progress is not None:
            self._progress(stage)

    def _degrade(
        self, stage: ExportStage, artifact: ExportArtifact, log: StageLog, error: Exception
    ) -> None:
        message = f"{stage.value} stage failed: {error}"
        logger.warning(message)
        artifact.warnings.append(message)
        log.stage("stage_failed", stage.value, error=str(error))

    def _map(self, fn: Callable[[str], T], items: Sequence[str]) -> list[T]:
        if self._max_workers == 1 or len(items) < 2:
            return [fn(item) for item in items]
        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            return list(pool.map(fn, items))

    def run(self, export_input: ExportInput) -> ExportArtifact:
        """Run every stage for one target and return the packaged artifact.

        Raises ``UnsupportedBuilder`` before any work for an unknown target,
        ``BudgetExceeded`` when the gate fires and ``ExportCancelled`` when the
        cancel event is set between stages.
        """

        builder_id = resolve_builder_id(export_input.target)
        builder = get_builder(builder_id)
        flags = export_input.flags
        created_at = utc_iso()
        log = StageLog()
        log.stage("export_started", "init", builder=builder_id.value, flags=_flag_dict(flags))
        logger.info("export started: builder=%s", builder_id.value)

        artifact = ExportArtifact(builder_id=builder_id.value)
        state = _RunState(
            html=export_input.html,
            css=list(export_input.css),
            js=list(export_input.js),
            images=export_input.image_bytes(),
            blocks=_listed(export_input.native_blocks),
            elements=_listed(export_input.elements),
        )

        self._budget_stage(export_input, artifact, log, created_at)
        self._embedding_stage(export_input, state, artifact, log, created_at)
        self._elimination_stage(export_input, state, artifact, log, created_at)

        self._checkpoint(ExportStage.GENERATE, log)
        source = select_source(state.html, state.blocks, state.elements)
        document = build_document(source)
        ctx = BuildContext(
            html=state.html,
            ids=self._ids or SequentialIds(),
            css=tuple(state.css),
            js=tuple(state.js),
            images=state.images,
            theme=export_input.theme,
        )
        output = builder.generate(document, ctx)
        artifact.files.extend(output.files)
        log.stage(
            "stage_finished",
            ExportStage.GENERATE.value,
            files=len(output.files),
            method=document.method,
            widgets=document.widget_count(),
        )

        self._verification_stage(export_input, artifact, log, created_at)

        self._checkpoint(ExportStage.PACKAGE, log)
        artifact.instructions = install_instructions(builder_id)
        metadata: dict[str, Any] = {
            "builderId": builder_id.value,
            "createdAt": created_at,
            "fileCount": len(artifact.files),
            "totalSize": sum(f.size for f in artifact.files),
            "sourceBuilder": detect_source_builder(export_input.html),
            "themeName": export_input.theme.name,
            "warnings": list(artifact.warnings),
            **dict(output.metadata),
        }
        metadata.update(artifact.metadata)
        artifact.metadata = metadata
        build_archive(artifact, log, preview_html=state.html, title=document.title)
        logger.info(
            "export finished: builder=%s files=%d archive=%d bytes",
            builder_id.value,
            len(artifact.files),
            len(artifact.archive),
        )
        return artifact

    def _budget_stage(
        self, export_input: ExportInput, artifact: ExportArtifact, log: StageLog, created_at: str
    ) -> None:
        stage = ExportStage.BUDGET
        name = REPORT_NAMES["budget"]
        flags = export_input.flags
        self._checkpoint(stage, log)
        if not flags.validate_budget:
            artifact.reports[name] = render_skipped(
                "PERFORMANCE BUDGET VALIDATION", created_at, "budget validation disabled"
            )
            log.stage("stage_skipped", stage.value)
            return

        images = export_input.image_bytes()
        validation = validate_budget(
            export_input.html,
            export_input.css,
            export_input.js,
            list(images.values()),
            export_input.custom_budget,
            image_names=list(images),
        )
        if not validation.can_export and not flags.budget_override:
            report = render_budget_report(validation, created_at, aborted=True)
            log.stage("budget_exceeded", stage.value, violations=len(validation.violations))
            logger.warning(
                "budget gate aborted export: %d violation(s)", len(validation.violations)
            )
            raise BudgetExceeded(validation, report)

        artifact.reports[name] = render_budget_report(validation, created_at)
        log.stage(
            "stage_finished",
            stage.value,
            violations=len(validation.violations),
            total_size=validation.total_size,
        )

    def _embedding_stage(
        self,
        export_input: ExportInput,
        state: _RunState,
        artifact: ExportArtifact,
        log: StageLog,
        created_at: str,
    ) -> None:
        stage = ExportStage.EMBEDDING
        name = REPORT_NAMES["embedding"]
        self._checkpoint(stage, log)
        if not export_input.flags.embed_assets:
            artifact.reports[name] = render_skipped(
                "ASSET EMBEDDING REPORT", created_at, "asset embedding disabled"
            )
            log.stage("stage_skipped", stage.value)
            return

        try:
            blocks, result, elements = embed_sources(
                state.html,
                export_input.asset_bytes,
                export_input.embedding,
                blocks=state.blocks,
                elements=state.elements,
                image_paths=export_input.image_paths,
            )
        except ExportCancelled:
            raise
        except Exception as e:
            self._degrade(stage, artifact, log, e)
            artifact.reports[name] = render_skipped(
                "ASSET EMBEDDING REPORT", created_at, f"stage failed: {e}"
            )
            return

        state.html = result.html
        state.blocks, state.elements = blocks, elements
        inlined = {d.path for d in result.decisions if d.decision is Decision.INLINE}
        state.images = {p: data for p, data in state.images.items() if p not in inlined}
        artifact.reports[name] = render_embedding_report(result, created_at)
        log.stage(
            "stage_finished",
            stage.value,
            inline=result.count(Decision.INLINE),
            wordpress=result.count(Decision.WORDPRESS),
            external=result.count(Decision.EXTERNAL),
        )

    def _elimination_stage(
        self,
        export_input: ExportInput,
        state: _RunState,
        artifact: ExportArtifact,
        log: StageLog,
        created_at: str,
    ) -> None:
        stage = ExportStage.ELIMINATION
        name = REPORT_NAMES["elimination"]
        self._checkpoint(stage, log)
        if not export_input.flags.eliminate_dependencies:
            artifact.reports[name] = render_skipped(
                "DEPENDENCY ELIMINATION REPORT", created_at, "dependency elimination disabled"
            )
            log.stage("stage_skipped", stage.value)
            return

        try:
            html_result = eliminate_html(state.html)
            css_results = self._map(eliminate_css, state.css)
            js_results = self._map(eliminate_js, state.js)
            block_result = eliminate_blocks(state.blocks) if state.blocks else None
            element_result = eliminate_elements(state.elements) if state.elements else None
        except ExportCancelled:
            raise
        except Exception as e:
            self._degrade(stage, artifact, log, e)
            artifact.reports[name] = render_skipped(
                "DEPENDENCY ELIMINATION REPORT", created_at, f"stage failed: {e}"
            )
            return

        state.html = html_result.cleaned_content
        state.css = [r.cleaned_content for r in css_results]
        state.js = [r.cleaned_content for r in js_results]
        results: list[tuple[str, EliminationResult]] = [("page markup", html_result)]
        results += [(f"stylesheet {i}", r) for i, r in enumerate(css_results, start=1)]
        results += [(f"script {i}", r) for i, r in enumerate(js_results, start=1)]
        if block_result is not None:
            state.blocks, result = block_result
            results.append(("native blocks", result))
        if element_result is not None:
            state.elements, result = element_result
            results.append(("extracted elements", result))
        artifact.reports[name] = render_elimination_report(results, created_at)
        log.stage(
            "stage_finished",
            stage.value,
            removed=sum(len(r.removed_items) for _, r in results),
            warnings=sum(len(r.warnings) for _, r in results),
        )

    def _verification_stage(
        self, export_input: ExportInput, artifact: ExportArtifact, log: StageLog, created_at: str
    ) -> None:
        stage = ExportStage.VERIFICATION
        name = REPORT_NAMES["verification"]
        self._checkpoint(stage, log)
        if not export_input.flags.verify_plugin_free:
            artifact.reports[name] = render_skipped(
                "PLUGIN-FREE VERIFICATION REPORT", created_at, "verification disabled"
            )
            log.stage("stage_skipped", stage.value)
            return

        try:
            report = verify_plugin_free(artifact.files)
        except ExportCancelled:
            raise
        except Exception as e:
            self._degrade(stage, artifact, log, e)
            artifact.reports[name] = render_skipped(
                "PLUGIN-FREE VERIFICATION REPORT", created_at, f"stage failed: {e}"
            )
            return

        artifact.reports[name] = render_verification_report(report, created_at)
        artifact.metadata["pluginFreeScore"] = report.score
        log.stage(
            "stage_finished",
            stage.value,
            score=report.score,
            plugin_free=report.is_plugin_free,
            checks=len(report.dependencies),
        )


def _listed(items: Sequence[T] | None) -> list[T] | None:
    return None if items is None else list(items)


def _flag_dict(flags: ExportFlags) -> dict[str, bool]:
    return {
        "embedAssets": flags.embed_assets,
        "eliminateDependencies": flags.eliminate_dependencies,
        "validateBudget": flags.validate_budget,
        "budgetOverride": flags.budget_override,
        "verifyPluginFree": flags.verify_plugin_free,
    }


def run_export(export_input: ExportInput, **kwargs: Any) -> ExportArtifact:
    return ExportPipeline(**kwargs).run(export_input)


def export_to_multiple(
    export_input: ExportInput,
    targets: Iterable[str | BuilderId],
    **kwargs: Any,
) -> dict[str, ExportArtifact | ExportError]:
    """One independent run per target; failures are returned, not raised.

    ``ExportCancelled`` stops the loop. Each run gets its own IR and, unless
    an id generator is passed, its own deterministic ids.
    """

    results: dict[str, ExportArtifact | ExportError] = {}
    for target in targets:
        key = str(target.value if isinstance(target, BuilderId) else target)
        one = replace(export_input, target=target)
        try:
            results[key] = ExportPipeline(**kwargs).run(one)
        except ExportCancelled:
            raise
        except ExportError as e:
            logger.warning("export to %s failed: %s", key, e)
            results[key] = e
    return results

