"""Async job queue for long-running sync operations.

POST starts a background task, returns a job_id immediately, and the
client polls for completion. In-memory storage with job state transitions:
queued → running → completed/failed.

Jobs sharing a key (e.g. "company_id:source") run one at a time in
submission order; jobs with different keys run concurrently.
"""

import asyncio
import uuid
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Dict, Optional, Callable, Coroutine

logger = logging.getLogger(__name__)

_jobs: Dict[str, dict] = {}
_locks: Dict[str, asyncio.Lock] = {}
_lock_users: Dict[str, int] = {}
_tasks: Dict[str, asyncio.Task] = {}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def pair_key(company_id: str, source: str) -> str:
    return f"{company_id}:{source}"


@asynccontextmanager
async def serialized(key: str):
    """Hold the lock for key while the body runs."""
    lock = _locks.get(key)
    if lock is None:
        lock = _locks[key] = asyncio.Lock()
    _lock_users[key] = _lock_users.get(key, 0) + 1
    try:
        async with lock:
            yield
    finally:
        _lock_users[key] -= 1
        if _lock_users[key] == 0:
            del _lock_users[key]
            del _locks[key]


async def enqueue(coro_factory: Callable[[], Coroutine], key: Optional[str] = None) -> str:
    """Queue a coroutine for background execution. Returns job_id."""
    job_id = str(uuid.uuid4())
    _jobs[job_id] = {
        "job_id": job_id,
        "key": key,
        "status": "queued",
        "created_at": _now(),
        "started_at": None,
        "completed_at": None,
        "error": None,
        "result": None,
    }
    task = asyncio.create_task(_run(job_id, coro_factory, key))
    _tasks[job_id] = task
    task.add_done_callback(lambda _: _tasks.pop(job_id, None))
    logger.info("Job %s queued (key=%s)", job_id, key)
    return job_id


async def _run(job_id: str, coro_factory: Callable[[], Coroutine], key: Optional[str]):
    if key is None:
        await _execute(job_id, coro_factory)
        return
    async with serialized(key):
        await _execute(job_id, coro_factory)


async def _execute(job_id: str, coro_factory: Callable[[], Coroutine]):
    """Execute the job and update its state."""
    _jobs[job_id]["status"] = "running"
    _jobs[job_id]["started_at"] = _now()
    logger.info("Job %s running", job_id)

    try:
        result = await coro_factory()
        _jobs[job_id]["status"] = "completed"
        _jobs[job_id]["result"] = result
        _jobs[job_id]["completed_at"] = _now()
        logger.info("Job %s completed", job_id)
    except Exception as e:
        _jobs[job_id]["status"] = "failed"
        _jobs[job_id]["error"] = str(e)
        _jobs[job_id]["completed_at"] = _now()
        logger.error("Job %s failed: %s", job_id, e)


async def wait(job_id: str) -> Optional[dict]:
    """Wait for a queued job to finish and return its final state."""
    task = _tasks.get(job_id)
    if task is not None:
        await task
    return _jobs.get(job_id)


def get_status(job_id: str) -> Optional[dict]:
    """Get the current status of a job."""
    return _jobs.get(job_id)


def list_recent(limit: int = 50) -> list:
    """List the most recent jobs."""
    jobs = sorted(_jobs.values(), key=lambda j: j["created_at"], reverse=True)
    return jobs[:limit]
