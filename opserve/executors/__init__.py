from typing import Optional

from opserve.executors.base import SyncAsyncExecutor
from opserve.executors.sync import SyncExecutor

_DEFAULT_EXECUTOR: Optional[SyncAsyncExecutor] = None


def get_default_executor() -> SyncAsyncExecutor:
    """Returns process-wide executor used when config does not set one"""
    global _DEFAULT_EXECUTOR
    if _DEFAULT_EXECUTOR is None:
        _DEFAULT_EXECUTOR = SyncExecutor()
    return _DEFAULT_EXECUTOR


def set_default_executor(executor: Optional[SyncAsyncExecutor]) -> None:
    global _DEFAULT_EXECUTOR
    _DEFAULT_EXECUTOR = executor
