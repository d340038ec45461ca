"""CLI utility functions and helpers."""

from typing import List, Optional

import click

from .queries import QueryAnswer

# Global flag for quiet mode
_quiet_mode = False


def set_quiet_mode(quiet: bool) -> None:
    """Set the global quiet mode flag."""
    global _quiet_mode
    _quiet_mode = quiet


def echo(message: str = "", err: bool = False, **kwargs) -> None:
    """Echo wrapper that respects quiet mode."""
    if _quiet_mode and not err:
        return
    click.echo(message, err=err, **kwargs)


def secho(message: str = "", err: bool = False, **kwargs) -> None:
    """Styled echo wrapper that respects quiet mode."""
    if _quiet_mode and not err:
        return
    click.secho(message, err=err, **kwargs)


class ConsoleQueries:
    """Asks the import questions on the terminal.

    Prompts go to stderr so that stdout stays usable in pipelines; they are
    shown even in quiet mode since the load cannot continue without them.
    """
    
    YES_NO = {'yes': QueryAnswer.YES, 'no': QueryAnswer.NO}
    TO_ALL = {'all': QueryAnswer.YES_TO_ALL, 'none': QueryAnswer.NO_TO_ALL}
    
    def _header(self, title: str, message: str) -> None:
        click.secho(f"\n{title}", bold=True, err=True)
        click.echo(message, err=True)
    
    def ask_yes_no(self, key: str, title: str, message: str,
                   allow_to_all: bool = False) -> QueryAnswer:
        self._header(title, message)
        options = dict(self.YES_NO)
        if allow_to_all:
            options.update(self.TO_ALL)
            click.echo("('all' answers yes and 'none' answers no from now on)", err=True)
        reply = click.prompt(
            "Answer", type=click.Choice(list(options)), default='no', err=True
        )
        return options[reply]
    
    def ask_yes_no_cancel(self, key: str, title: str, message: str) -> QueryAnswer:
        self._header(title, message)
        options = dict(self.YES_NO, cancel=QueryAnswer.CANCEL)
        reply = click.prompt(
            "Answer", type=click.Choice(list(options)), default='cancel', err=True
        )
        return options[reply]
    
    def choose(self, key: str, title: str, message: str,
               choices: List[str]) -> Optional[int]:
        if not choices:
            return None
        self._header(title, message)
        for number, choice in enumerate(choices, 1):
            click.echo(f"  {number}. {choice}", err=True)
        reply = click.prompt(
            "Choice", type=click.IntRange(1, len(choices)), default=1, err=True
        )
        return reply - 1
    
    def notify(self, title: str, message: str) -> None:
        secho(f"\n{title}", fg='yellow', err=True)
        echo(message, err=True)
