"""Command line entry point: `drivemirror`."""

from __future__ import annotations

import importlib
import logging
import signal
import sys
from pathlib import Path
from typing import Any, Optional

import click

from drivemirror.apply import PageRenderer
from drivemirror.auth import AuthInfo, DriveAuthClient
from drivemirror.config import RunContext, load_sync_config
from drivemirror.errors import DriveMirrorError, ValidationError, describe_error
from drivemirror.manager import SyncManager
from drivemirror.models import RunReport
from drivemirror.util.ids import new_run_id

logger = logging.getLogger(__name__)


def load_renderer(target: str) -> PageRenderer:
    """Instantiate a renderer from `package.module:Factory`."""
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise ValidationError("Renderer must look like 'package.module:Factory'", details={"renderer": target})
    try:
        factory = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as exc:
        raise ValidationError(f"Cannot load renderer {target}: {exc}", cause=exc) from exc
    return factory()


def print_report(report: RunReport) -> None:
    for target in report.targets:
        click.echo(f"Drive folder {target.folder_id}:")
        for key in sorted(target.summary):
            click.echo(f"  {key}: {target.summary[key]}")
        if target.dropped_folders:
            click.echo(f"  dropped subtrees: {', '.join(target.dropped_folders)}")
        for failure in (r for r in target.results if r.status == "failed"):
            click.echo(f"  failed: {failure.path} ({failure.error_type}: {failure.error_message})")
        if target.publish is not None:
            where = target.publish.url or "-"
            click.echo(f"  pull request: {target.publish.status} {where}")
    if report.cancelled:
        click.echo("Run was cancelled before all targets were processed.")


@click.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path("sync.json"),
    show_default=True,
    help="Path to sync.json",
)
@click.option(
    "--workdir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Git working tree that receives the mirrored files",
)
@click.option(
    "--credentials",
    envvar="GOOGLE_APPLICATION_CREDENTIALS",
    type=click.Path(dir_okay=False),
    help="Service account key JSON",
)
@click.option("--oauth-client-secrets", type=click.Path(dir_okay=False), help="OAuth client secrets JSON")
@click.option("--oauth-token", type=click.Path(dir_okay=False), help="OAuth token JSON (created on first run)")
@click.option("--identity", help="Account email used with OAuth credentials")
@click.option("--github-token", envvar="GITHUB_TOKEN", help="GitHub token (defaults to $GITHUB_TOKEN)")
@click.option("--base-branch", default="main", show_default=True, help="Fallback base branch for the PR")
@click.option("--concurrency", type=click.IntRange(min=1), default=4, show_default=True,
              help="Parallel permission fetches")
@click.option("--render-dir", type=click.Path(file_okay=False, path_type=Path),
              help="Render exported PDFs into PNG pages under this directory")
@click.option("--renderer", "renderer_spec", help="PageRenderer factory as 'package.module:Factory'")
@click.option("--dpi", type=click.IntRange(min=1), default=72, show_default=True, help="Render resolution")
@click.option("--dry-run", is_flag=True, help="Scan and reconcile only; change nothing")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging output")
def main(
    config_path: Path,
    workdir: Path,
    credentials: Optional[str],
    oauth_client_secrets: Optional[str],
    oauth_token: Optional[str],
    identity: Optional[str],
    github_token: Optional[str],
    base_branch: str,
    concurrency: int,
    render_dir: Optional[Path],
    renderer_spec: Optional[str],
    dpi: int,
    dry_run: bool,
    verbose: bool,
) -> None:
    """Mirror Google Drive folders into this repository and open pull requests."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    # keep third-party transport chatter out of -v output
    logging.getLogger("googleapiclient").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    try:
        report = _run(
            config_path=config_path,
            workdir=workdir,
            credentials=credentials,
            oauth_client_secrets=oauth_client_secrets,
            oauth_token=oauth_token,
            identity=identity,
            github_token=github_token,
            base_branch=base_branch,
            concurrency=concurrency,
            render_dir=render_dir,
            renderer_spec=renderer_spec,
            dpi=dpi,
            dry_run=dry_run,
        )
    except DriveMirrorError as exc:
        logger.error("Sync failed: %s", describe_error(exc))
        click.echo(f"Error: {describe_error(exc)}", err=True)
        sys.exit(1)

    print_report(report)
    if report.cancelled:
        sys.exit(130)


def _auth_info(
    credentials: Optional[str],
    oauth_client_secrets: Optional[str],
    oauth_token: Optional[str],
    identity: Optional[str],
) -> AuthInfo:
    if oauth_client_secrets or oauth_token:
        return AuthInfo(
            kind="oauth",
            data={
                "client_secrets_file": oauth_client_secrets or "",
                "token_file": oauth_token or "",
                "identity_email": identity or "",
            },
        )
    if not credentials:
        raise ValidationError("No credentials: pass --credentials or the --oauth-* options")
    return AuthInfo.service_account(credentials)


def _run(
    *,
    config_path: Path,
    workdir: Path,
    credentials: Optional[str],
    oauth_client_secrets: Optional[str],
    oauth_token: Optional[str],
    identity: Optional[str],
    github_token: Optional[str],
    base_branch: str,
    concurrency: int,
    render_dir: Optional[Path],
    renderer_spec: Optional[str],
    dpi: int,
    dry_run: bool,
) -> RunReport:
    config = load_sync_config(config_path)
    auth_info = _auth_info(credentials, oauth_client_secrets, oauth_token, identity)
    if not github_token and not dry_run:
        raise ValidationError("GITHUB_TOKEN is not set")

    renderer = load_renderer(renderer_spec) if renderer_spec else None
    if render_dir is not None and renderer is None:
        logger.warning("--render-dir given without --renderer; pages will not be rendered")

    service_identity = DriveAuthClient(auth_info).service_identity()
    context = RunContext(
        repo_owner=config.source.owner,
        repo_name=config.source.name,
        workdir=workdir.resolve(),
        service_identity=service_identity,
        run_id=new_run_id(),
        base_branch=base_branch,
        permission_concurrency=concurrency,
        render_dir=render_dir.resolve() if render_dir is not None else None,
        render_resolution=dpi,
        dry_run=dry_run,
    )
    logger.info("Run %s acting as %s on %s", context.run_id, service_identity, context.repo)

    manager = SyncManager(config, context, auth_info, github_token or "", renderer=renderer)
    _install_interrupt_handler(manager)
    return manager.run()


def _install_interrupt_handler(manager: SyncManager) -> None:
    def _handler(signum: int, _frame: Any) -> None:
        logger.warning("Received signal %d; finishing the current item and stopping", signum)
        manager.cancel_token.cancel()

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)


if __name__ == "__main__":  # pragma: no cover
    main()
