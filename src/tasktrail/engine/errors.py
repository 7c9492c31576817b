"""TaskTrail engine errors."""


class TaskTrailError(Exception):
    """Base error for TaskTrail operations."""

    status_code = 500

    def __init__(self, message: str, code: str = "TASKTRAIL_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(TaskTrailError):
    """Input failed validation. ``errors`` maps each violated field to a message."""

    status_code = 422

    def __init__(self, errors: dict[str, str], message: str = "The given data was invalid."):
        super().__init__(message, "VALIDATION_ERROR")
        self.errors = errors


class TaskNotFound(TaskTrailError):
    """Task does not exist."""

    status_code = 404

    def __init__(self, task_id: int):
        super().__init__(f"Task not found: {task_id}", "TASK_NOT_FOUND")
        self.task_id = task_id


class LogNotFound(TaskTrailError):
    """Audit record does not exist."""

    status_code = 404

    def __init__(self, log_id: str):
        super().__init__(f"Log not found: {log_id}", "LOG_NOT_FOUND")
        self.log_id = log_id


class UnauthorizedError(TaskTrailError):
    """Missing or invalid credential."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized", code: str = "UNAUTHORIZED"):
        super().__init__(message, code)


class RateLimitExceededError(TaskTrailError):
    """Rate limit exceeded."""

    status_code = 429

    def __init__(self, limit: int, window_seconds: int, retry_after: int, reset_time: int):
        super().__init__(
            f"Rate limit exceeded ({limit}/{window_seconds}s). "
            f"Retry after {retry_after} seconds.",
            "RATE_LIMIT_EXCEEDED",
        )
        self.limit = limit
        self.window_seconds = window_seconds
        self.retry_after = retry_after
        self.reset_time = reset_time


class ServiceMisconfigured(TaskTrailError):
    """Server cannot serve the request with its current configuration."""

    status_code = 503

    def __init__(self, message: str):
        super().__init__(message, "SERVICE_MISCONFIGURED")
