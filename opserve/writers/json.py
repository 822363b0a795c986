from json import dumps as _dumps
from typing import Any

from ..result import ExecutionResult


def default(obj: Any) -> Any:
    if isinstance(obj, ExecutionResult):
        return obj.to_dict()
    raise TypeError('Can not encode this type: {!r}'.format(obj))


def dumps(result: Any) -> str:
    return _dumps(result, default=default)
