"""CommandService — named handler registry for plugin commands.

This is dispatch only: the host parses its own command line and hands
over a command name plus the remaining arguments. Names and aliases are
case-insensitive.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from hostkit.services.result import ErrorCode, ServiceResult

logger = logging.getLogger(__name__)

CommandHandler = Callable[[Sequence[str]], object]


@dataclass(frozen=True)
class CommandSpec:
    """A registered command."""

    name: str
    handler: CommandHandler
    aliases: tuple[str, ...] = ()
    description: str = ""
    source: str = field(default="host", compare=False)


class CommandService:
    """Register handlers by name and dispatch to them."""

    def __init__(self) -> None:
        self._commands: dict[str, CommandSpec] = {}
        self._aliases: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        *,
        aliases: Sequence[str] = (),
        description: str = "",
        source: str = "host",
    ) -> CommandSpec:
        """Register *handler* under *name* and any *aliases*.

        Raises:
            ValueError: If the name is empty or any name/alias is taken.
        """
        key = name.strip().lower()
        if not key:
            msg = "Command name must not be empty"
            raise ValueError(msg)
        alias_keys = tuple(a.strip().lower() for a in aliases if a.strip())
        for candidate in (key, *alias_keys):
            if candidate in self._commands or candidate in self._aliases:
                msg = f"Command name {candidate!r} is already registered"
                raise ValueError(msg)

        spec = CommandSpec(
            name=key,
            handler=handler,
            aliases=alias_keys,
            description=description,
            source=source,
        )
        self._commands[key] = spec
        for alias in alias_keys:
            self._aliases[alias] = key
        logger.debug("Registered command %s (source=%s)", key, source)
        return spec

    def lookup(self, name: str) -> CommandSpec | None:
        key = name.strip().lower()
        key = self._aliases.get(key, key)
        return self._commands.get(key)

    def names(self) -> list[str]:
        """Primary command names, sorted."""
        return sorted(self._commands)

    def dispatch(self, name: str, args: Sequence[str] = ()) -> ServiceResult:
        """Run the handler registered for *name* with *args*.

        The handler's return value is reported as ``data["output"]``.
        """
        op = "dispatch"
        spec = self.lookup(name)
        if spec is None:
            return ServiceResult.failure(
                op,
                ErrorCode.UNKNOWN_COMMAND,
                f"Unknown command: {name!r}",
                detail={"available": self.names()},
            )
        try:
            output = spec.handler(tuple(args))
        except Exception as exc:
            logger.warning("Command %s failed", spec.name, exc_info=True)
            return ServiceResult.failure(
                op,
                ErrorCode.COMMAND_FAILED,
                f"Command {spec.name!r} failed: {exc}",
                detail={"command": spec.name},
            )
        return ServiceResult(ok=True, op=op, data={"command": spec.name, "output": output})
