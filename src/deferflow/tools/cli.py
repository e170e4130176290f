from typing import Any, Optional

import typer

from deferflow.exceptions import DeferflowError
from deferflow.tools.visualize import visualize


def cli(target: Any, name: Optional[str] = None) -> typer.Typer:
    """
    A factory that generates a Typer-based command-line interface for a
    workflow. The generated command runs the target and prints its value.

    Args:
        target: The final LazyResult of the workflow (or a list of them).
        name: Optional application name shown in --help.

    Returns:
        A Typer application; call it to parse sys.argv and run.
    """
    app = typer.Typer(name=name, add_completion=False)

    @app.command()
    def main(
        workers: int = typer.Option(
            1, "--workers", "-w", min=1, help="Maximum number of tasks running at once."
        ),
        backend: Optional[str] = typer.Option(
            None,
            "--backend",
            help="Worker backend: inline, thread or process.",
        ),
        verbose: bool = typer.Option(
            False, "--verbose", "-v", help="Report run and task progress on stderr."
        ),
        log_level: str = typer.Option(
            "INFO",
            "--log-level",
            help="Minimum level for progress messages (DEBUG, INFO, WARNING, ERROR).",
        ),
        log_format: str = typer.Option(
            "human", "--log-format", help="Progress format: human, rich or json."
        ),
        dot: bool = typer.Option(
            False, "--dot", help="Print the task graph in DOT format instead of running it."
        ),
    ):
        """Runs the deferflow workflow."""
        if dot:
            typer.echo(visualize(target))
            return

        from deferflow import compute

        try:
            result = compute(
                target,
                workers=workers,
                verbose=verbose,
                backend=backend,
                log_level=log_level,
                log_format=log_format,
            )
        except (DeferflowError, ValueError) as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(code=1)

        if result is not None:
            typer.echo(result)

    return app
