"""Command line entry point for uploading local files as chat attachments.

Why:
    Operators occasionally need to seed shared attachments (e.g. lecture PDFs
    referenced from chat answers) or check whether files pass the upload
    policy. The CLI runs the same validation and deduplicating upload as the
    web API against the storage backend configured in the environment.
"""
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Sequence

import click

from backend.attachments.batch import BatchUploader
from backend.attachments.models import FilePayload, UploadResult
from backend.attachments.policy import policy_from_env
from backend.attachments.service import DedupUploadService
from backend.attachments.validation import validate_file, validate_image_file
from backend.web.storage_wiring import build_storage_from_env


def _load_payloads(paths: Sequence[str], max_size_bytes: int) -> list[FilePayload]:
    return [FilePayload.from_path(Path(p), max_size_bytes=max_size_bytes) for p in paths]


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--owner", type=str, default=None, help="Owner id (folder); omitted uploads go to 'guest'.")
@click.option("--images-only", is_flag=True, default=False, help="Apply the paste policy (PNG/JPG only).")
@click.option("--dry-run", is_flag=True, default=False, help="Validate files without uploading.")
def cli(paths: tuple[str, ...], owner: str | None, images_only: bool, dry_run: bool) -> None:
    """Validate and upload PATHS with content-hash deduplication.

    Behaviour:
        - Validates every file first and prints one line per rejected file.
        - Uploads the valid files with BatchUploader; prints `new` or
          `duplicate` per upload, `failed` per omitted file and a summary line.
        - Exits with status 1 when any file was rejected or failed.
    """
    policy = policy_from_env()
    payloads = _load_payloads(paths, policy.max_size_bytes)
    check = validate_image_file if images_only else validate_file

    valid: list[FilePayload] = []
    rejected = 0
    for payload in payloads:
        outcome = check(payload, policy)
        if outcome.valid:
            valid.append(payload)
        else:
            rejected += 1
            click.echo(f"invalid    {payload.name}: {outcome.error}", err=True)

    if dry_run:
        click.echo(f"Validated {len(payloads)} files: {len(valid)} ok, {rejected} invalid")
        if rejected:
            raise SystemExit(1)
        return

    storage = build_storage_from_env()
    if storage is None:
        click.echo("Storage is not configured (set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY).", err=True)
        raise click.Abort()

    service = DedupUploadService(storage, policy=policy)
    report = asyncio.run(BatchUploader(service).upload_all(valid, owner, images_only=images_only))
    for result in report.results:
        _echo_result(result)
    for name in report.failed:
        click.echo(f"failed     {name}", err=True)
    summary = report.summary
    click.echo(
        f"Uploaded {summary.total} files: {summary.new_uploads} new, {summary.duplicates} duplicates, {len(report.failed)} failed"
    )
    if report.failed or rejected:
        raise SystemExit(1)


def _echo_result(result: UploadResult) -> None:
    if result.is_duplicate:
        click.echo(f"duplicate  {result.name} {result.url}")
    else:
        click.echo(f"new        {result.name} {result.url}")


if __name__ == "__main__":  # pragma: no cover
    cli()
