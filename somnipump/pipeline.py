"""Sequential runner for dependent on-chain steps.

Transactions cannot be grouped client-side, so a workflow such as
wrap -> approve -> approve -> addLiquidity is a list of ``PipelineStep``s run
strictly one after another against a single signer. Step ``i + 1`` is built
only after step ``i`` is confirmed, which lets builders read what earlier
steps produced from the shared context. A failure stops the run where it
happened; nothing is retried or rolled back, and the error names the failed
step together with everything already committed.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from somnipump.errors import (
    ExternalCallFailed,
    InvalidAmount,
    InvalidPath,
    InvalidTolerance,
    PreconditionViolated,
)
from somnipump.onchain.contracts import TxRequest
from somnipump.onchain.signer import Receipt, Signer

logger = logging.getLogger(__name__)

# raised by builders before anything is sent; these propagate unchanged
LOCAL_ERRORS = (InvalidAmount, InvalidPath, InvalidTolerance, PreconditionViolated)

Builder = Callable[[Dict[str, Any]], TxRequest]
AfterConfirm = Callable[[Dict[str, Any], Receipt], None]
StatusCallback = Callable[[str], None]


class StepStatus(str, Enum):
    PENDING = "pending"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass
class PipelineStep:
    name: str
    build: Builder
    after_confirm: Optional[AfterConfirm] = None
    status: StepStatus = StepStatus.PENDING
    tx_hash: Optional[str] = None
    error: Optional[str] = None

    @property
    def done(self) -> bool:
        return self.status == StepStatus.CONFIRMED


class Pipeline:
    def __init__(
        self,
        signer: Signer,
        steps: List[PipelineStep],
        context: Optional[Dict[str, Any]] = None,
        on_status: Optional[StatusCallback] = None,
    ):
        if not steps:
            raise ValueError("a pipeline needs at least one step")
        self.signer = signer
        self.steps = steps
        self.context: Dict[str, Any] = context if context is not None else {}
        self.context.setdefault("receipts", {})
        self.on_status = on_status
        self._running = threading.Lock()
        self._cancel = threading.Event()

    # --- status ---
    def _emit(self, msg: str) -> None:
        logger.info(f"[pipeline] {msg}")
        if self.on_status:
            self.on_status(msg)

    @property
    def committed(self) -> List[str]:
        return [s.name for s in self.steps if s.done]

    @property
    def completed(self) -> bool:
        return all(s.done for s in self.steps)

    @property
    def failed_step(self) -> Optional[PipelineStep]:
        for s in self.steps:
            if s.status == StepStatus.FAILED:
                return s
        return None

    @property
    def next_index(self) -> Optional[int]:
        for i, s in enumerate(self.steps):
            if not s.done:
                return i
        return None

    def state(self) -> str:
        failed = self.failed_step
        if failed is not None:
            return f"failed at {failed.name}"
        if self.completed:
            return "completed"
        for s in self.steps:
            if s.status == StepStatus.SUBMITTED:
                return f"{s.name} submitted"
        if not self.committed:
            return "not started"
        return f"{self.steps[self.next_index].name} pending"

    def cancel(self) -> None:
        """Stop before the next submission; an already submitted step still lands.

        A cancel issued while idle stops the next ``run`` before its first
        step. A cancel is consumed by the run it stops or dropped when that
        run ends, so a later ``run`` resumes normally.
        """
        self._cancel.set()

    # --- execution ---
    def run(self, start: Optional[int] = None) -> Dict[str, Any]:
        if not self._running.acquire(blocking=False):
            raise RuntimeError("pipeline is already running")
        try:
            return self._run(start)
        finally:
            self._running.release()

    def _run(self, start: Optional[int]) -> Dict[str, Any]:
        if start is None:
            start = self.next_index
            if start is None:
                return self.context
        for prior in self.steps[:start]:
            if not prior.done:
                raise PreconditionViolated(
                    f"cannot resume at step {start}: '{prior.name}' is not confirmed"
                )
        total = len(self.steps)

        for i in range(start, total):
            step = self.steps[i]
            if self._cancel.is_set():
                self._cancel.clear()
                self._emit(f"cancelled before {step.name}")
                return self.context
            step.status = StepStatus.PENDING
            step.error = None
            self._emit(f"step {i + 1}/{total}: {step.name}")

            try:
                tx = step.build(self.context)
            except LOCAL_ERRORS as e:
                self._fail(step, str(e))
                raise
            except Exception as e:
                self._fail(step, str(e))
                raise self._failure(step, i, f"could not prepare: {e}") from e

            step.status = StepStatus.SUBMITTED
            self._emit(f"{step.name}: waiting for signature and confirmation")
            try:
                receipt = self.signer.send(tx)
            except Exception as e:
                self._fail(step, str(e))
                raise self._failure(step, i, str(e)) from e

            step.status = StepStatus.CONFIRMED
            step.tx_hash = receipt.tx_hash
            self.context["receipts"][step.name] = receipt
            self._emit(f"{step.name}: confirmed in {receipt.tx_hash}")

            if step.after_confirm is not None:
                try:
                    step.after_confirm(self.context, receipt)
                except Exception as e:
                    # the step itself is on-chain; report it as committed
                    step.error = str(e)
                    self._emit(f"{step.name}: confirmed but follow-up failed: {e}")
                    raise self._failure(step, i, f"confirmed but follow-up failed: {e}") from e

        self._cancel.clear()
        self._emit("all steps confirmed")
        return self.context

    def _fail(self, step: PipelineStep, reason: str) -> None:
        self._cancel.clear()
        step.status = StepStatus.FAILED
        step.error = reason
        self._emit(f"{step.name}: failed: {reason}")

    def _failure(self, step: PipelineStep, index: int, reason: str) -> ExternalCallFailed:
        ctx = {k: v for k, v in self.context.items() if k != "receipts"}
        return ExternalCallFailed(step.name, reason, index, self.committed, ctx)
