from __future__ import annotations


class EdificaFlowError(Exception):
    pass


class ValidationError(EdificaFlowError):
    pass


class TaskNotFoundError(EdificaFlowError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class StoreCorruptedError(EdificaFlowError):
    def __init__(self, key: str, reason: str = "") -> None:
        message = f"Persisted blob {key!r} is malformed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.key = key


class PlanGenerationError(EdificaFlowError):
    pass


class RequestInFlightError(EdificaFlowError):
    pass
