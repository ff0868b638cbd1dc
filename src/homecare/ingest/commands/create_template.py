"""
Write the case import template workbook.

Usage:
    homecare-create-template [output]
"""

from pathlib import Path

import typer

from config.settings import DEFAULT_DATA_DIR
from homecare.ingest.commands.base import LOG_LEVEL_HELP, command_session, run_app
from homecare.ingest.services.template import write_case_template

PROG = "homecare-create-template"
DEFAULT_OUTPUT = DEFAULT_DATA_DIR / "cases-template.xlsx"

app = typer.Typer(add_completion=False, help="Create the Excel template for case imports")


@app.command()
def create_template_command(
    output: Path = typer.Argument(DEFAULT_OUTPUT, dir_okay=False, help="Output path"),
    log_level: str | None = typer.Option(None, "--log-level", help=LOG_LEVEL_HELP),
) -> None:
    with command_session(log_level):
        path = write_case_template(output)
    typer.echo(f"Template created: {path}")
    typer.echo("Fill in the 個案資料 sheet, then run:")
    typer.echo(f"  homecare-import-cases {path}")


def main(argv: list[str] | None = None) -> int:
    return run_app(app, argv, PROG)


if __name__ == "__main__":
    raise SystemExit(main())
