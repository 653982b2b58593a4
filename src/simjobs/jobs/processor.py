"""Job processor - the per-message contract.

For every delivery the processor decides exactly one settlement (ack or
reject without requeue) and makes sure the record store agrees with it:

    .. code-block:: text

        decode ──✗──► reject + dead letter (malformed_message)
          │
        claim ──────► not_found         reject + dead letter (unknown_job)
          │     ────► already_terminal  ack, nothing executed
          │     ────► in_progress       ack, nothing executed
          │ claimed / reclaimed
          ▼
        workload ──✗ WorkloadFailed ──► fail()  ─┐
          │      ──✗ anything else ───► reject + dead letter (workload_error),
          │                               record stays running
          ▼                                      │
        complete() ◄─────────────────────────────┘
          │ confirmed            │ error / no row
          ▼                      ▼
         ack             reject + dead letter (store_mismatch)

An acknowledgement is only sent once the terminal write is confirmed.
If the process dies before settling, the broker redelivers the message
flagged ``redelivered`` and the claim takes the record over again.

Errors from the claim itself (store unreachable) are not settled here;
they propagate so the worker can stop and leave the message unacked.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from simjobs.core.errors import MessageDecodeError, WorkloadFailed
from simjobs.core.logging import LogContext, get_logger

from .codec import decode_message
from .dlq import DeadLetterLog
from .models import ClaimOutcome, DeadLetterReason, JobStatus
from .store import RecordStore
from .transport.protocol import Delivery, QueueTransport
from .workload import Workload

logger = get_logger(__name__)


class Disposition(str, Enum):
    """How a delivery was settled."""

    COMPLETED = "completed"  # terminal write confirmed, acked
    SKIPPED = "skipped"  # acked without executing
    REJECTED = "rejected"  # rejected without requeue


@dataclass
class ProcessingOutcome:
    """What the processor did with one delivery."""

    disposition: Disposition
    simulation_id: str | None = None
    status: JobStatus | None = None
    claim: ClaimOutcome | None = None
    reason: DeadLetterReason | None = None
    error: str | None = None

    @property
    def acked(self) -> bool:
        return self.disposition != Disposition.REJECTED


class JobProcessor:
    """Claims, executes and settles one message at a time.

    Example:
        >>> processor = JobProcessor(store, transport, SimulationWorkload(0), dlq)
        >>> delivery = transport.receive(timeout=1.0)
        >>> processor.process(delivery).status
        <JobStatus.DONE: 'done'>
    """

    def __init__(
        self,
        store: RecordStore,
        transport: QueueTransport,
        workload: Workload,
        dead_letters: DeadLetterLog,
    ):
        self._store = store
        self._transport = transport
        self._workload = workload
        self._dead_letters = dead_letters

    def process(self, delivery: Delivery) -> ProcessingOutcome:
        """Handle one delivery end to end and settle it."""
        try:
            message = decode_message(delivery.body)
        except MessageDecodeError as e:
            logger.warning(
                "message.malformed",
                delivery_tag=delivery.delivery_tag,
                error=str(e),
            )
            return self._reject(
                delivery,
                DeadLetterReason.MALFORMED_MESSAGE,
                error=str(e),
                simulation_id=e.context.simulation_id,
            )

        with LogContext(simulation_id=message.simulation_id):
            claim = self._store.claim(message.simulation_id, redelivered=delivery.redelivered)

            if claim == ClaimOutcome.NOT_FOUND:
                logger.error("simulation.unknown", delivery_tag=delivery.delivery_tag)
                outcome = self._reject(
                    delivery,
                    DeadLetterReason.UNKNOWN_JOB,
                    error="No record for simulation id",
                    simulation_id=message.simulation_id,
                )
                outcome.claim = claim
                return outcome

            if not claim.acquired:
                logger.info(
                    "simulation.duplicate_skipped",
                    claim=claim.value,
                    redelivered=delivery.redelivered,
                )
                self._transport.ack(delivery)
                return ProcessingOutcome(
                    Disposition.SKIPPED,
                    simulation_id=message.simulation_id,
                    claim=claim,
                )

            logger.info("simulation.running", claim=claim.value, redelivered=delivery.redelivered)

            try:
                result = self._workload.run(message)
            except WorkloadFailed as e:
                logger.warning("simulation.workload_failed", error=str(e))
                return self._finish(delivery, message.simulation_id, claim, error=str(e))
            except Exception as e:
                logger.exception("simulation.workload_error")
                outcome = self._reject(
                    delivery,
                    DeadLetterReason.WORKLOAD_ERROR,
                    error=f"{type(e).__name__}: {e}",
                    simulation_id=message.simulation_id,
                )
                outcome.claim = claim
                outcome.status = JobStatus.RUNNING
                return outcome

            return self._finish(delivery, message.simulation_id, claim, result=result)

    def _finish(
        self,
        delivery: Delivery,
        simulation_id: str,
        claim: ClaimOutcome,
        *,
        result: dict | None = None,
        error: str | None = None,
    ) -> ProcessingOutcome:
        """Write the terminal status, then ack only if the write was confirmed."""
        target = JobStatus.FAILED if error is not None else JobStatus.DONE
        write_error: str | None = None
        try:
            if target == JobStatus.DONE:
                confirmed = self._store.complete(simulation_id, result)
            else:
                confirmed = self._store.fail(simulation_id, error)
        except Exception as e:
            confirmed = False
            write_error = f"{type(e).__name__}: {e}"

        if not confirmed:
            detail = write_error or f"{target.value} write matched no running record"
            logger.error("simulation.store_mismatch", target=target.value, error=detail)
            outcome = self._reject(
                delivery,
                DeadLetterReason.STORE_MISMATCH,
                error=detail,
                simulation_id=simulation_id,
            )
            outcome.claim = claim
            return outcome

        self._transport.ack(delivery)
        logger.info("simulation.finished", status=target.value)
        return ProcessingOutcome(
            Disposition.COMPLETED,
            simulation_id=simulation_id,
            status=target,
            claim=claim,
            error=error,
        )

    def _reject(
        self,
        delivery: Delivery,
        reason: DeadLetterReason,
        *,
        error: str,
        simulation_id: str | None = None,
    ) -> ProcessingOutcome:
        """Reject without requeue and record a dead letter (best effort)."""
        self._transport.reject(delivery)
        try:
            self._dead_letters.record(
                reason,
                simulation_id=simulation_id,
                body=delivery.body,
                error=error,
            )
        except Exception as e:
            logger.error(
                "dead_letter.record_failed",
                reason=reason.value,
                simulation_id=simulation_id,
                error=str(e),
                original_error=error,
            )
        return ProcessingOutcome(
            Disposition.REJECTED,
            simulation_id=simulation_id,
            reason=reason,
            error=error,
        )


__all__ = [
    "Disposition",
    "ProcessingOutcome",
    "JobProcessor",
]
