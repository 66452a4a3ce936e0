"""
Email IR Run Context

Per-run identifiers, stage timing and structured log helpers. A fresh
RunContext is built for every pipeline run and handed to each stage, so
log lines carry run_id / email_id / stage / elapsed_ms without globals.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from email_ir.models.requests import StepRecord, StepStatus

logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    """Identity and step history of one pipeline run."""
    run_id: str
    email_id: str
    started: float = field(default_factory=time.perf_counter)
    steps: List[StepRecord] = field(default_factory=list)

    @property
    def elapsed_ms(self) -> int:
        return int((time.perf_counter() - self.started) * 1000)

    def stage(self, name: str, stage_logger: Optional[logging.Logger] = None) -> "StageContext":
        """Open a timed context for one stage."""
        return StageContext(run=self, stage=name, logger=stage_logger or logger)

    def record(self, step: str, status: StepStatus, duration_ms: int, error: Optional[str] = None):
        self.steps.append(StepRecord(step=step, status=status, duration_ms=duration_ms, error=error))

    def failed_steps(self) -> List[str]:
        return [s.step for s in self.steps if s.status == StepStatus.FAILED]


@dataclass
class StageContext:
    """Timing and log helpers bound to one stage of one run."""
    run: RunContext
    stage: str
    logger: logging.Logger
    started: float = field(default_factory=time.perf_counter)
    _finished: bool = False

    @property
    def run_id(self) -> str:
        return self.run.run_id

    @property
    def email_id(self) -> str:
        return self.run.email_id

    @property
    def elapsed_ms(self) -> int:
        return int((time.perf_counter() - self.started) * 1000)

    def extra(self, **fields: Any) -> Dict[str, Any]:
        """Structured fields attached to every record from this stage."""
        base = {
            "run_id": self.run.run_id,
            "email_id": self.run.email_id,
            "stage": self.stage,
            "elapsed_ms": self.elapsed_ms,
        }
        base.update(fields)
        return {"extra": base}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def step_started(self, **details: Any):
        self.logger.info(f"[{self.run_id}] {self.stage} started {details or ''}".rstrip(), **self.extra(**details))

    def step_completed(self, status: StepStatus = StepStatus.SUCCESS, **details: Any):
        if self._finished:
            return
        self._finished = True
        self.run.record(self.stage, status, self.elapsed_ms)
        self.logger.info(
            f"[{self.run_id}] {self.stage} {status.value} in {self.elapsed_ms}ms",
            **self.extra(status=status.value, **details),
        )

    def step_failed(self, error: BaseException, **details: Any):
        if self._finished:
            return
        self._finished = True
        message = f"{type(error).__name__}: {error}"
        self.run.record(self.stage, StepStatus.FAILED, self.elapsed_ms, error=message)
        self.logger.error(
            f"[{self.run_id}] {self.stage} failed after {self.elapsed_ms}ms: {message}",
            **self.extra(error=message, **details),
        )

    # ------------------------------------------------------------------
    # Domain events
    # ------------------------------------------------------------------

    def signal_detected(self, category: str, signal: str, severity: str):
        self.logger.info(
            f"[{self.run_id}] signal {category}/{signal} ({severity})",
            **self.extra(signal_category=category, signal=signal, severity=severity),
        )

    def auth_results(self, spf: bool, dkim: bool, dmarc: bool, domain_similarity: str):
        self.logger.info(
            f"[{self.run_id}] auth spf={spf} dkim={dkim} dmarc={dmarc} similarity={domain_similarity}",
            **self.extra(spf_pass=spf, dkim_pass=dkim, dmarc_pass=dmarc, domain_similarity=domain_similarity),
        )

    def decision(self, kind: str, value: str, confidence: float, reason: str = ""):
        self.logger.info(
            f"[{self.run_id}] {kind}={value} confidence={confidence:.2f} {reason}".rstrip(),
            **self.extra(decision=kind, value=value, confidence=confidence),
        )

    def rule_applied(self, rule: str, before: str, after: str):
        self.logger.info(
            f"[{self.run_id}] rule {rule}: {before} -> {after}",
            **self.extra(rule=rule, before=before, after=after),
        )
