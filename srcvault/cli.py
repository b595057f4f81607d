#!/usr/bin/env python3

import logging

import click

from srcvault.config import load_config, configure_logging
from srcvault.exit_codes import ConfigError
from srcvault.output import emit_error
from srcvault.commands.catalog import (
    components_handler,
    component_versions_handler,
    releases_handler,
    release_components_handler,
)
from srcvault.commands.imports import (
    component_to_git_handler,
    components_to_gits_handler,
    release_to_git_handler,
)
from srcvault.commands.config import config_cmd


@click.group()
@click.version_option(package_name='srcvault')
@click.option('-c', '--config', 'config_path', type=click.Path(dir_okay=False, exists=True),
              help='Configuration file (default: ~/.srcvault/config.*)')
@click.option('-v', '--verbose', is_flag=True, help='Show debug output')
@click.option('-q', '--quiet', is_flag=True, help='Only show warnings and errors')
@click.pass_context
def cli(ctx, config_path, verbose, quiet):
    """srcvault - Archive published source tarballs into git repositories.

    Every released version becomes one commit, tagged with its version
    string, holding the content of the version's tarball.
    """
    try:
        config = load_config(config_path)
    except ConfigError as e:
        emit_error(str(e), type="ConfigError", context={"exit_code": e.exit_code})
        ctx.exit(e.exit_code)

    if verbose:
        configure_logging(level=logging.DEBUG)
    elif quiet:
        configure_logging(level=logging.WARNING)
    else:
        configure_logging(config)

    ctx.ensure_object(dict)
    ctx.obj['config'] = config
    ctx.obj['config_path'] = config_path


# Catalog listings
cli.add_command(components_handler)
cli.add_command(component_versions_handler)
cli.add_command(releases_handler)
cli.add_command(release_components_handler)

# Imports
cli.add_command(component_to_git_handler)
cli.add_command(components_to_gits_handler)
cli.add_command(release_to_git_handler)

cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
