"""Usage accounting seam between model adapters and cost bookkeeping."""

from typing import Any, Awaitable, Protocol, Union, runtime_checkable


@runtime_checkable
class UsageRecorder(Protocol):
    """Receives token counts after each successful model call.

    Implementations may be sync or async. Adapters never wait on them and never
    let their errors reach the caller.
    """

    def record_usage(
        self, provider: str, model: str, input_tokens: int, output_tokens: int, note: str
    ) -> Union[None, Awaitable[Any]]: ...


class NullUsageRecorder:
    """Discards usage reports."""

    def record_usage(self, provider: str, model: str, input_tokens: int, output_tokens: int, note: str) -> None:
        return None
