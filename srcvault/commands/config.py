import click
import json
from pathlib import Path

from ..config import load_config, save_config, get_config_path, get_default_config


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


@config_cmd.command("show")
@click.option("--pretty", is_flag=True, help="Display as formatted JSON instead of single-line JSONL")
@click.option("--path", is_flag=True, help="Show the config file path being used")
@click.pass_context
def show_config(ctx, pretty, path):
    """Show the current configuration with all merges applied.

    By default, outputs single-line JSON (JSONL format).
    Use --pretty for human-readable formatted output.
    Use --path to see which config file is being used.
    """
    if path:
        config_path = ctx.obj.get('config_path') or get_config_path()
        print(json.dumps({"config_path": str(config_path)}))
        return

    config = ctx.obj.get('config') or load_config()

    if pretty:
        print(json.dumps(config, indent=2, ensure_ascii=False))
    else:
        print(json.dumps(config, ensure_ascii=False))


@config_cmd.command("init")
@click.option("--force", is_flag=True, help="Overwrite an existing configuration file")
@click.option("--output", "output", type=click.Path(dir_okay=False), default=None,
              help="Where to write (default: ~/.srcvault/config.json)")
def init_config(force, output):
    """Write the default configuration to a file."""
    target = Path(output) if output else get_config_path()
    if target.exists() and not force:
        raise click.ClickException(f"{target} already exists (use --force to overwrite)")

    written = save_config(get_default_config(), target)
    print(json.dumps({"config_path": str(written)}))
