"""
Import commands: convert catalog entities into git repositories.

Each command prints one JSONL record per repository written (see
ImportResult.to_dict), or a table of the committed versions with --pretty.
"""

import asyncio
from typing import Optional

import click

from ..cli_utils import standard_command, add_common_options
from ..domain.operation import ImportResult, ImportStatus
from ..exit_codes import PartialSuccessError
from ..output import emit
from ..services.history_service import HistoryService


def _resolve_bare(ctx, bare: Optional[bool]) -> bool:
    if bare is not None:
        return bare
    return bool(ctx.obj['config'].get('git', {}).get('bare', True))


def _emit_result(result: ImportResult, pretty: bool) -> None:
    if pretty:
        emit(result.versions, pretty=True, columns=['version', 'commit', 'skipped'],
             title=f"{result.entity} -> {result.path}")
    else:
        emit([result])


@click.command('component-to-git')
@click.argument('component')
@click.argument('dest', type=click.Path(file_okay=False))
@add_common_options('bare', 'pretty')
@click.pass_context
@standard_command
def component_to_git_handler(ctx, component, dest, bare, pretty):
    """Fetch a component and convert it to a git repository.

    Every published version becomes a commit tagged with the version.

    \b
    Example:
        srcvault component-to-git hfs ./hfs.git
    """
    service = HistoryService(config=ctx.obj['config'])
    result = asyncio.run(service.import_component(dest, component, _resolve_bare(ctx, bare)))
    _emit_result(result, pretty)


@click.command('components-to-gits')
@click.argument('dest', type=click.Path(file_okay=False))
@add_common_options('bare', 'pretty')
@click.pass_context
@standard_command
def components_to_gits_handler(ctx, dest, bare, pretty):
    """Fetch every component and convert each to a git repository under DEST."""
    service = HistoryService(config=ctx.obj['config'])
    results = asyncio.run(service.import_components(dest, _resolve_bare(ctx, bare)))

    emit(results, pretty=pretty, columns=['entity', 'status', 'commits', 'path'],
         title="Components")

    failed = [r for r in results if r.status == ImportStatus.FAILED]
    if failed:
        raise PartialSuccessError(
            f"{len(failed)} of {len(results)} components failed to import",
            succeeded=len(results) - len(failed),
            failed=len(failed),
        )


@click.command('release-to-git')
@click.argument('release')
@click.argument('dest', type=click.Path(file_okay=False))
@add_common_options('bare', 'pretty')
@click.pass_context
@standard_command
def release_to_git_handler(ctx, release, dest, bare, pretty):
    """Convert every version of a released entity to a git repository.

    Each version's tree holds one directory per component archive.

    \b
    Example:
        srcvault release-to-git macos ./macos.git
    """
    service = HistoryService(config=ctx.obj['config'])
    result = asyncio.run(service.import_release(dest, release, _resolve_bare(ctx, bare)))
    _emit_result(result, pretty)
