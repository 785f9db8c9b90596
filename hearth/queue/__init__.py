from hearth.queue.base import Job, JobQueue, JobStatus
from hearth.queue.registry import QUEUE_NAMES, QueueSet, build_queues

__all__ = ["Job", "JobQueue", "JobStatus", "QUEUE_NAMES", "QueueSet", "build_queues"]
