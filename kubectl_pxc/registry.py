import argparse
from collections.abc import Callable
from dataclasses import dataclass, field

# (args, snapshot, config) -> exit code
Handler = Callable[..., int]


@dataclass
class Command:
    group: str
    name: str
    help: str
    handler: Handler
    configure: Callable[[argparse.ArgumentParser], None] | None = None
    aliases: list[str] = field(default_factory=list)


class CommandRegistry:
    """
    Commands known to the CLI, grouped by verb (get, describe).

    Built explicitly at startup and handed to the parser builder; registration
    order is the order commands appear in help output.
    """

    def __init__(self):
        self._groups: dict[str, str] = {}
        self._commands: dict[str, list[Command]] = {}

    def add_group(self, name: str, help: str) -> None:
        if name in self._groups:
            raise ValueError(f"command group '{name}' already registered")
        self._groups[name] = help
        self._commands[name] = []

    def add(self, command: Command) -> None:
        if command.group not in self._groups:
            raise ValueError(f"unknown command group '{command.group}'")
        names = {command.name, *command.aliases}
        for existing in self._commands[command.group]:
            if names & {existing.name, *existing.aliases}:
                raise ValueError(
                    f"command '{command.group} {command.name}' already registered"
                )
        self._commands[command.group].append(command)

    def groups(self) -> list[tuple[str, str]]:
        return list(self._groups.items())

    def commands(self, group: str) -> list[Command]:
        return list(self._commands.get(group, []))

    def build_parser(self, parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
        verbs = parser.add_subparsers(dest="verb", metavar="COMMAND")
        verbs.required = True
        for group, help in self.groups():
            verb = verbs.add_parser(group, help=help)
            resources = verb.add_subparsers(dest="resource", metavar="RESOURCE")
            resources.required = True
            for command in self.commands(group):
                sub = resources.add_parser(command.name, aliases=command.aliases, help=command.help)
                if command.configure:
                    command.configure(sub)
                sub.set_defaults(handler=command.handler)
        return parser
