"""
Email IR Pipeline Orchestrator

Runs one incident-response analysis end to end:
- Fetch the notified email (degrades to a placeholder on failure)
- Header, behavioral and intent analysis, concurrently
- Triage
- Feature extraction
- Risk assessment
- Reporting

Each stage receives the original email and every prior output. Any
failure after the fetch fails the run; the run id and step history are
still returned.
"""

import asyncio
import logging
from typing import Dict, Optional

from email_ir.models.decision import FeatureSet, TriageResult
from email_ir.models.email import EmailRecord
from email_ir.models.findings import AnalysisBundle
from email_ir.models.report import IncidentReport
from email_ir.models.requests import AnalyzeRequest, PipelineResult, StoredReport
from email_ir.services.ai.behavioral_analyzer import BehavioralAnalyzer
from email_ir.services.ai.header_analyzer import HeaderAnalyzer
from email_ir.services.ai.intent_analyzer import IntentAnalyzer
from email_ir.services.ai.report_writer import ReportWriter
from email_ir.services.ai.risk_assessor import RiskAssessor
from email_ir.services.ai.triage import TriageClassifier
from email_ir.services.detection.feature_extraction import extract_features
from email_ir.services.source.fetcher import EmailFetcher
from email_ir.utils.constants import (
    STEP_BEHAVIORAL,
    STEP_FEATURES,
    STEP_FETCH,
    STEP_HEADER,
    STEP_INTENT,
    STEP_REPORT,
    STEP_RISK,
    STEP_TRIAGE,
)
from email_ir.utils.exceptions import PipelineTimeoutError, StageError
from email_ir.utils.helpers import generate_run_id, utc_now
from email_ir.utils.security import sanitize_error_message

from .context import RunContext

logger = logging.getLogger(__name__)


class EmailIRPipeline:
    """
    Email incident-response pipeline.

    Holds no per-run state; every call to run() builds its own RunContext,
    so concurrent runs for different emails are independent.
    """

    def __init__(
        self,
        fetcher: EmailFetcher,
        inference,
        store=None,
        analysis_timeout: float = 300.0,
        max_scan_items: int = 10,
        max_body_chars: int = 20000,
    ):
        self.fetcher = fetcher
        self.store = store
        self.analysis_timeout = analysis_timeout

        self.header_analyzer = HeaderAnalyzer(inference, max_scan_items=max_scan_items)
        self.behavioral_analyzer = BehavioralAnalyzer(inference, max_body_chars=max_body_chars)
        self.intent_analyzer = IntentAnalyzer(inference, max_body_chars=max_body_chars)
        self.triage_classifier = TriageClassifier(inference)
        self.risk_assessor = RiskAssessor(inference)
        self.report_writer = ReportWriter(inference)

    async def run(self, request: AnalyzeRequest, run_id: Optional[str] = None) -> PipelineResult:
        """
        Run the full pipeline for one email.

        Args:
            request: Validated ingress payload
            run_id: Optional caller-supplied run id

        Returns:
            PipelineResult; `report` is set only on success
        """
        run = RunContext(run_id=run_id or generate_run_id(), email_id=request.id)
        started_at = utc_now()
        logger.info(f"[{run.run_id}] Email IR run started for email {request.id}")

        try:
            report = await self._execute(request, run)
        except Exception as e:
            error = sanitize_error_message(e)
            logger.error(
                f"[{run.run_id}] Email IR run failed after {run.elapsed_ms}ms "
                f"(failed steps: {run.failed_steps()}): {error}"
            )
            return PipelineResult(
                success=False,
                run_id=run.run_id,
                email_id=request.id,
                error=error,
                steps=run.steps,
                started_at=started_at,
                duration_ms=run.elapsed_ms,
            )

        await self._persist(run, report)

        logger.info(
            f"[{run.run_id}] Email IR run completed in {run.elapsed_ms}ms: "
            f"{report.executive_summary.email_category.value} / {report.executive_summary.risk_level.value}"
        )
        return PipelineResult(
            success=True,
            run_id=run.run_id,
            email_id=request.id,
            report=report,
            steps=run.steps,
            started_at=started_at,
            duration_ms=run.elapsed_ms,
        )

    async def _execute(self, request: AnalyzeRequest, run: RunContext) -> IncidentReport:
        email = await self.fetcher.fetch(
            request.id,
            request.access_token,
            request.api_base_url,
            ctx=run.stage(STEP_FETCH),
        )

        bundle = await self.analyze(email, run)
        triage = await self.triage_classifier.classify(bundle, run.stage(STEP_TRIAGE))
        features = self.extract(triage, run)
        assessment = await self.risk_assessor.assess(features, run.stage(STEP_RISK))
        return await self.report_writer.write(assessment, run.stage(STEP_REPORT))

    async def analyze(self, email: EmailRecord, run: RunContext) -> AnalysisBundle:
        """
        Run the three analyzers concurrently and join their findings.

        The first failure cancels the remaining analyzers and is raised. If
        the join does not finish within `analysis_timeout` every unfinished
        analyzer is cancelled and PipelineTimeoutError is raised.
        """
        contexts = {
            STEP_HEADER: run.stage(STEP_HEADER),
            STEP_BEHAVIORAL: run.stage(STEP_BEHAVIORAL),
            STEP_INTENT: run.stage(STEP_INTENT),
        }
        tasks: Dict[str, asyncio.Task] = {
            STEP_HEADER: asyncio.create_task(self.header_analyzer.analyze(email, contexts[STEP_HEADER])),
            STEP_BEHAVIORAL: asyncio.create_task(self.behavioral_analyzer.analyze(email, contexts[STEP_BEHAVIORAL])),
            STEP_INTENT: asyncio.create_task(self.intent_analyzer.analyze(email, contexts[STEP_INTENT])),
        }

        done, pending = await asyncio.wait(
            tasks.values(),
            timeout=self.analysis_timeout,
            return_when=asyncio.FIRST_EXCEPTION,
        )

        # Retrieve every finished exception, raise the first in step order
        failures = [task.exception() for task in tasks.values() if task in done]
        failure: Optional[BaseException] = next((e for e in failures if e is not None), None)

        if pending:
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

            for name, task in tasks.items():
                if task in pending:
                    reason = "cancelled after a sibling analyzer failed" if failure else "timed out"
                    contexts[name].step_failed(StageError(name, reason))

        if failure is not None:
            raise failure
        if pending:
            raise PipelineTimeoutError(
                "analysis",
                f"analyzers did not complete within {self.analysis_timeout}s",
            )

        header = tasks[STEP_HEADER].result()
        behavioral = tasks[STEP_BEHAVIORAL].result()
        intent = tasks[STEP_INTENT].result()
        return AnalysisBundle(
            email=email,
            header=header.finding,
            behavioral=behavioral.finding,
            intent=intent.finding,
        )

    def extract(self, triage: TriageResult, run: RunContext) -> FeatureSet:
        """Feature extraction step; synchronous, no I/O."""
        ctx = run.stage(STEP_FEATURES)
        ctx.step_started()
        try:
            features = extract_features(triage)
        except Exception as e:
            ctx.step_failed(e)
            raise StageError(ctx.stage, str(e)) from e

        ctx.step_completed(
            engine_indicators_present=features.engine_indicators_present,
            red_flags=features.behavioral_red_flags,
        )
        return features

    async def _persist(self, run: RunContext, report: IncidentReport):
        if self.store is None:
            return

        record = StoredReport(
            run_id=run.run_id,
            email_id=run.email_id,
            category=report.executive_summary.email_category.value,
            risk_level=report.executive_summary.risk_level.value,
            report=report,
        )
        try:
            saved = await self.store.save(record)
        except Exception as e:
            logger.error(f"[{run.run_id}] Failed to persist report: {e}")
            return

        if not saved:
            logger.warning(f"[{run.run_id}] Report store did not accept report")


def create_pipeline(settings, inference, store=None) -> EmailIRPipeline:
    """
    Create a pipeline from application settings.

    Args:
        settings: Application settings
        inference: Inference client used by every model-backed stage
        store: Optional report store

    Returns:
        Configured EmailIRPipeline
    """
    return EmailIRPipeline(
        fetcher=EmailFetcher.from_settings(settings),
        inference=inference,
        store=store,
        analysis_timeout=settings.analysis_timeout_seconds,
        max_scan_items=settings.max_scan_items,
        max_body_chars=settings.max_body_chars,
    )
