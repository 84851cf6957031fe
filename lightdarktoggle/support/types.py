"""
Various, common types for typechecing
"""

import types
import typing as ty

ExecInfo = ty.Union[
    tuple[
        ty.Type[BaseException], BaseException, ty.Optional[types.TracebackType]
    ],
    tuple[None, None, None],
]

# stdout, stderr of finished command
FinishCallback = ty.Callable[[ty.Any, bytes, bytes], None]


class CommandHandle(ty.Protocol):
    """Running (or finished) external command."""

    finished: bool
    exit_status: int | None
    timeout: bool

    def cancel(self) -> None:
        ...


class CommandRunner(ty.Protocol):
    """Callable that start @argv in the background and call
    @finish_callback when it terminates."""

    def __call__(
        self,
        argv: list[str],
        finish_callback: FinishCallback,
        timeout_s: int | None,
    ) -> CommandHandle:
        ...
