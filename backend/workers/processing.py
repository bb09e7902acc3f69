from __future__ import annotations

import asyncio
import logging

from backend.application import ExecutionService, get_execution_service
from backend.core import settings
from backend.core.schema import Execution, Material, ProcessingResult
from backend.core.validation import NotFoundError
from backend.domain import ProcessingJob
from backend.infrastructure import get_outreach_simulator

logger = logging.getLogger(__name__)


class ProcessingWorker:
    """Runs one sequential outreach task per execution.

    Cancellation is cooperative: :meth:`cancel` flips the execution back to
    draft and flags the job, and the running task notices between materials.
    """

    def __init__(self, service: ExecutionService | None = None, *, delay: float | None = None) -> None:
        self._service = service
        self._delay = delay
        self._jobs: dict[str, ProcessingJob] = {}

    @property
    def service(self) -> ExecutionService:
        return self._service or get_execution_service()

    def _step_delay(self) -> float:
        return settings.processing_delay() if self._delay is None else self._delay

    def _forget(self, job: ProcessingJob) -> None:
        if self._jobs.get(job.execution_id) is job:
            del self._jobs[job.execution_id]

    def is_running(self, execution_id: str) -> bool:
        job = self._jobs.get(execution_id)
        return job is not None and job.task is not None and not job.task.done()

    async def start(self, execution_id: str) -> Execution:
        execution = self.service.begin_processing(execution_id)
        job = ProcessingJob(execution_id=execution_id)
        job.task = asyncio.create_task(self._run(job), name=f"process-materials-{execution_id}")
        job.task.add_done_callback(lambda _task: self._forget(job))
        self._jobs[execution_id] = job
        logger.info("Processing started for execution %s (%d materials)", execution_id, len(execution.materials))
        return execution

    def status(self, execution_id: str) -> Execution:
        return self.service.get_execution(execution_id)

    def cancel(self, execution_id: str) -> Execution:
        execution = self.service.stop_processing(execution_id)
        job = self._jobs.get(execution_id)
        if job is not None:
            job.cancelled = True
        logger.info("Processing cancelled for execution %s", execution_id)
        return execution

    async def wait(self, execution_id: str) -> None:
        job = self._jobs.get(execution_id)
        if job is not None and job.task is not None:
            await asyncio.gather(job.task, return_exceptions=True)

    async def shutdown(self) -> None:
        jobs = list(self._jobs.values())
        for job in jobs:
            job.cancelled = True
            if job.task is not None:
                job.task.cancel()
        await asyncio.gather(*(job.task for job in jobs if job.task is not None), return_exceptions=True)
        self._jobs.clear()

    # ------------------------------------------------------------------
    # run loop
    # ------------------------------------------------------------------
    def _should_stop(self, job: ProcessingJob) -> bool:
        if job.cancelled:
            return True
        current = self.service.get_execution(job.execution_id)
        return not current.processing_status.is_processing

    def _contact(self, material: Material) -> ProcessingResult:
        try:
            return get_outreach_simulator().contact_vendors(material)
        except Exception as exc:
            logger.warning("Outreach failed for material %s: %s", material.name, exc)
            return ProcessingResult(material=material.name, success=False, error=str(exc))

    async def _run(self, job: ProcessingJob) -> None:
        execution_id = job.execution_id
        service = self.service
        try:
            materials = service.get_execution(execution_id).materials
            total = len(materials)
            for index, material in enumerate(materials):
                if self._should_stop(job):
                    logger.info("Execution %s stopped after %d/%d materials", execution_id, index, total)
                    return

                def mark(execution: Execution, name: str = material.name, position: int = index) -> None:
                    execution.processing_status.current_material = name
                    execution.processing_status.processed_count = position

                service.mutate(execution_id, mark)
                logger.info("Processing material %d/%d: %s", index + 1, total, material.name)

                result = self._contact(material)
                service.mutate(execution_id, lambda execution, item=result: execution.processing_status.results.append(item))

                await asyncio.sleep(self._step_delay())

            if self._should_stop(job):
                logger.info("Execution %s stopped before completion", execution_id)
                return
            service.complete_processing(execution_id)
            logger.info("Processing completed for execution %s", execution_id)
        except NotFoundError:
            logger.info("Execution %s was removed during processing", execution_id)
        except Exception:
            logger.exception("Processing failed for execution %s", execution_id)
            try:
                service.stop_processing(execution_id)
            except NotFoundError:
                pass


_worker: ProcessingWorker | None = None


def get_processing_worker() -> ProcessingWorker:
    global _worker
    if _worker is None:
        _worker = ProcessingWorker()
    return _worker
