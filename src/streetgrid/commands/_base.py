"""Custom Click base classes with --examples support.

``SgCommand`` and ``SgGroup`` accept an ``examples`` parameter. Passing
``--examples`` prints them and exits, which keeps ``--help`` short.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import click


def _add_examples_option(cmd: click.Command | click.Group, examples: str) -> None:
    """Attach an eager ``--examples`` flag to a Click command or group."""

    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


class SgCommand(click.Command):
    """Click Command subclass that supports an ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


class SgGroup(click.Group):
    """Click Group whose subcommands default to :class:`SgCommand`."""

    command_class = SgCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


def viewport_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Add ``--width/--height/--mobile`` overrides for the configured viewport."""
    func = click.option(
        "--mobile/--desktop",
        "mobile",
        default=None,
        help="Force the layout class (default: from the viewport width).",
    )(func)
    func = click.option(
        "--height", type=click.IntRange(min=1), default=None, help="Viewport height in px."
    )(func)
    func = click.option(
        "--width", type=click.IntRange(min=1), default=None, help="Viewport width in px."
    )(func)
    return func
