"""Main CLI entry point."""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import click

from pyenhance.config import load_config
from pyenhance.engine.exceptions import EnhanceError
from pyenhance.engine.expansion import DEFAULT_MAX_DEPTH


def _setting(config: Dict[str, Any], name: str, value: Any, default: Any = None) -> Any:
    """Explicit option > config file > default."""
    if value is not None:
        return value
    return config.get(name, default)


def _read_state(state_file: Optional[str]) -> Any:
    if not state_file:
        return None
    try:
        return json.loads(Path(state_file).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"Invalid JSON in {state_file}: {e}", param_hint="--state")


@click.group()
@click.version_option(package_name="pyenhance")
@click.option("--config", "config_path", default=None, help="Path to pyenhance.config.py")
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging verbosity",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], log_level: str) -> None:
    """pyenhance: server-side rendering for custom elements.

    Run 'pyenhance render FILE' to expand the custom elements of a file.
    Run 'pyenhance run' to serve a pages directory.
    """
    logging.basicConfig(level=log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    ctx.ensure_object(dict)
    ctx.obj["config"] = load_config(config_path)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--components", "components_dir", default=None, help="Components directory")
@click.option("--state", "state_file", default=None, type=click.Path(exists=True, dir_okay=False),
              help="JSON file with the initial state")
@click.option("--output", default="body",
              type=click.Choice(["body", "document", "styles", "json"]),
              help="What to print")
@click.option("--max-depth", default=None, type=int, help="Maximum component nesting depth")
@click.option("--propagate-state/--top-level-state", default=None,
              help="Hand the initial state to nested components too")
@click.pass_context
def render(
    ctx: click.Context,
    file: str,
    components_dir: Optional[str],
    state_file: Optional[str],
    output: str,
    max_depth: Optional[int],
    propagate_state: Optional[bool],
) -> None:
    """Render FILE and print the result."""
    from pyenhance.engine.session import Renderer
    from pyenhance.runtime.loader import ComponentLoader

    config = ctx.obj["config"]
    components = _setting(config, "components_dir", components_dir, "components")

    try:
        registry = ComponentLoader(components).load()
        renderer = Renderer(
            registry,
            max_depth=_setting(config, "max_depth", max_depth, DEFAULT_MAX_DEPTH),
            propagate_state=_setting(config, "propagate_state", propagate_state, False),
        )
        result = renderer.process(
            Path(file).read_text(encoding="utf-8"), _read_state(state_file)
        )
    except (EnhanceError, ValueError) as e:
        raise click.ClickException(str(e))

    if output == "json":
        click.echo(json.dumps(
            {"document": result.document, "body": result.body, "styles": result.styles},
            ensure_ascii=False,
            indent=2,
        ))
    else:
        click.echo(getattr(result, output))


@cli.command()
@click.option("--host", default=None, help="Host to bind to")
@click.option("--port", default=None, type=int, help="Port to bind to")
@click.option("--components", "components_dir", default=None, help="Components directory")
@click.option("--pages", "pages_dir", default=None, help="Pages directory")
@click.option("--static", "static_dir", default=None, help="Static files directory")
@click.option("--debug/--no-debug", default=None, help="Show tracebacks on error pages")
@click.pass_context
def run(
    ctx: click.Context,
    host: Optional[str],
    port: Optional[int],
    components_dir: Optional[str],
    pages_dir: Optional[str],
    static_dir: Optional[str],
    debug: Optional[bool],
) -> None:
    """Serve the pages directory using Uvicorn."""
    import uvicorn

    from pyenhance.runtime.app import EnhanceApp

    config = ctx.obj["config"]
    host = _setting(config, "host", host, "127.0.0.1")
    port = _setting(config, "port", port, 8000)

    try:
        app = EnhanceApp(
            components_dir=_setting(config, "components_dir", components_dir),
            pages_dir=_setting(config, "pages_dir", pages_dir),
            static_dir=_setting(config, "static_dir", static_dir),
            debug=_setting(config, "debug", debug, False),
            max_depth=config.get("max_depth", DEFAULT_MAX_DEPTH),
            propagate_state=config.get("propagate_state", False),
        )
    except EnhanceError as e:
        raise click.ClickException(str(e))

    click.echo(f"🚀 Serving {len(app.pages)} page(s) on http://{host}:{port}")
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    cli()
