"""Job-queue collaborators."""

from rowgate.jobs.dispatcher import JobDispatcher, LoggingJobDispatcher, RedisStreamJobDispatcher

__all__ = ["JobDispatcher", "LoggingJobDispatcher", "RedisStreamJobDispatcher"]
