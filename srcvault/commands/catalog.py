"""
Catalog listing commands: components, versions, releases.

These commands only read the catalog. Output is JSONL by default,
or a table with --pretty.
"""

import click

from ..catalog import CatalogClient
from ..cli_utils import standard_command, add_common_options
from ..exit_codes import CommandError, DATA_ERROR
from ..output import emit


def _catalog(ctx) -> CatalogClient:
    return CatalogClient(config=ctx.obj['config'])


@click.command('components')
@add_common_options('pretty')
@click.pass_context
@standard_command
def components_handler(ctx, pretty):
    """Print available component names."""
    names = sorted(_catalog(ctx).list_components())
    emit(({'component': name} for name in names), pretty=pretty, title="Components")


@click.command('component-versions')
@click.argument('components', nargs=-1)
@add_common_options('pretty')
@click.pass_context
@standard_command
def component_versions_handler(ctx, components, pretty):
    """Print available versions of the given components.

    With no COMPONENTS, versions of every component are listed.

    \b
    Examples:
        srcvault component-versions hfs
        srcvault component-versions xnu dyld --pretty
    """
    catalog = _catalog(ctx)

    if components:
        records = [r for name in components for r in catalog.list_component_versions(name)]
    else:
        records = [r for rs in catalog.list_components_versions().values() for r in rs]

    emit(records, pretty=pretty, columns=['component', 'version', 'url'], title="Component versions")


@click.command('releases')
@add_common_options('pretty')
@click.pass_context
@standard_command
def releases_handler(ctx, pretty):
    """Print available software releases."""
    records = _catalog(ctx).list_releases()
    emit(records, pretty=pretty, columns=['entity', 'version'], title="Releases")


@click.command('release-components')
@click.argument('release')
@click.argument('version')
@add_common_options('pretty')
@click.pass_context
@standard_command
def release_components_handler(ctx, release, version, pretty):
    """Print the component archives within a software release.

    \b
    Example:
        srcvault release-components macos 11.1
    """
    catalog = _catalog(ctx)

    record = catalog.find_release(release, version)
    if record is None:
        raise CommandError(f"failed to find version {version} of {release}", DATA_ERROR)

    emit(catalog.list_release_components(record), pretty=pretty,
         columns=['component', 'url'], title=f"{release} {version}")
