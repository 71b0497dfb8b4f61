import typer

from sourcemap_publisher.cli.publish import publish

app = typer.Typer(
    name="sourcemap-publisher",
    help="Sourcemap Publisher CLI: publish sourcemaps as a separate package version.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def callback() -> None:
    """Publishes sourcemaps externally."""


app.command("publish")(publish)


def main() -> None:
    app()
