"""CLI interface for Self Review"""

import json
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import List, Optional

import click

from selfreview.application.chunker import chunk_files, file_priority
from selfreview.application.deduplicator import FindingDeduplicator
from selfreview.application.review_service import ReviewService
from selfreview.domain.config import AnalyzerConfig
from selfreview.domain.models.file_change import FileChange
from selfreview.domain.models.finding import Finding
from selfreview.infrastructure.analyzers.base import Analyzer
from selfreview.infrastructure.analyzers.factory import ANALYZER_NAMES, create_analyzer
from selfreview.infrastructure.config.config_manager import (
    CONFIG_FILENAME,
    ConfigManager,
    ConfigurationError,
    sample_config,
)
from selfreview.infrastructure.diff_parser import parse_diff
from selfreview.infrastructure.export import build_json, build_markdown
from selfreview.infrastructure.git_source import DiffSourceError, GitDiffSource
from selfreview.infrastructure.path_matcher import PathMatcher

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger().setLevel(level)
    for logger_name in logging.Logger.manager.loggerDict:
        logging.getLogger(logger_name).setLevel(level)


def _die(message: str, verbose: bool = False, exc: Optional[Exception] = None) -> None:
    """Exit with a user-friendly error message"""
    if exc is not None:
        logger.error(message, exc_info=verbose)
    else:
        logger.error(message)
    raise click.ClickException(message)


def _load_config(ctx) -> ConfigManager:
    try:
        return ConfigManager(config_path=ctx.obj.get("config_path"))
    except ConfigurationError as e:
        _die(str(e), verbose=ctx.obj.get("verbose", False), exc=e)


def _read_text(path: Path) -> str:
    """Read text from a file, or stdin when the path is "-"."""
    if str(path) == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _create_analyzer(config_manager: ConfigManager, analyzer_override: Optional[str], verbose: bool) -> Analyzer:
    """Create analyzer from config

    Args:
        config_manager: Configuration manager
        analyzer_override: Optional analyzer override from CLI
        verbose: Verbose mode for error reporting

    Returns:
        Analyzer instance
    """
    analyzer_config = config_manager.get_analyzer_config()
    if analyzer_override:
        analyzer_config = AnalyzerConfig(**{**analyzer_config.model_dump(), "provider": analyzer_override})
    logger.info(f"Using analyzer: {analyzer_config.provider}")
    try:
        return create_analyzer(analyzer_config)
    except ValueError as e:
        _die(str(e), verbose=verbose, exc=e)


def _create_review_service(config_manager: ConfigManager, analyzer: Analyzer) -> ReviewService:
    return ReviewService(
        analyzer,
        limits=config_manager.get_limits_config(),
        findings_config=config_manager.get_findings_config(),
        dedupe_config=config_manager.get_dedupe_config(),
        retry_config=config_manager.get_retry_config(),
        custom_instructions=config_manager.get_review_config().custom_instructions,
    )


def _describe_file(file_change: FileChange) -> str:
    added = sum(len(h.added_lines) for h in file_change.hunks)
    removed = sum(len(h.removed_lines) for h in file_change.hunks)
    return (
        f"{file_change.path} [{file_change.status}] "
        f"{len(file_change.hunks)} hunks, +{added} -{removed}"
    )


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help=f"Path to {CONFIG_FILENAME} config file",
)
@click.pass_context
def cli(ctx, verbose: bool, config: Path):
    """Self Review - review a branch diff in budget-sized chunks"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose


@cli.command()
@click.argument("diff_file", type=click.Path(allow_dash=True, path_type=Path))
@click.option("--exclude", "-e", multiple=True, help="Glob pattern to exclude (repeatable). Adds to config.")
@click.option("--json", "as_json", is_flag=True, help="Print parsed files as JSON")
@click.pass_context
def parse(ctx, diff_file: Path, exclude: tuple, as_json: bool):
    """Parse a unified diff and list changed files and hunks.

    DIFF_FILE: Path to the diff ("-" for stdin)
    """
    verbose = ctx.obj.get("verbose", False)
    config_manager = _load_config(ctx)
    patterns = list(config_manager.get_ignore_patterns()) + list(exclude)

    try:
        files = parse_diff(_read_text(diff_file), patterns, PathMatcher())
    except OSError as e:
        _die(f"Cannot read diff: {e}", verbose=verbose, exc=e)

    if as_json:
        payload = [
            {
                "path": f.path,
                "status": f.status,
                "hunks": [
                    {
                        "oldStart": h.old_start,
                        "oldLines": h.old_count,
                        "newStart": h.new_start,
                        "newLines": h.new_count,
                        "header": h.header,
                        "addedLines": h.added_lines,
                        "removedLines": h.removed_lines,
                    }
                    for h in f.hunks
                ],
            }
            for f in files
        ]
        click.echo(json.dumps(payload, indent=2))
        return

    if not files:
        click.echo("No files in diff.")
        return
    for file_change in files:
        click.echo(_describe_file(file_change))
        for hunk in file_change.hunks:
            click.echo(f"  {hunk.header_line}")


@cli.command()
@click.argument("diff_file", type=click.Path(allow_dash=True, path_type=Path))
@click.option("--repo", type=click.Path(exists=True, file_okay=False, path_type=Path), help="Working copy used to load full file text")
@click.option("--ref", type=str, default=None, help="Revision to load file text from (default: working tree)")
@click.option("--token-budget", type=click.IntRange(min=1), help="Tokens per chunk. Overrides config.")
@click.option("--max-files", type=click.IntRange(min=1), help="Files per chunk. Overrides config.")
@click.option("--context-lines", type=click.IntRange(min=0), help="Context lines around hunks. Overrides config.")
@click.option("--show-context", is_flag=True, help="Print the rendered context of each chunk")
@click.pass_context
def chunk(
    ctx,
    diff_file: Path,
    repo: Optional[Path],
    ref: Optional[str],
    token_budget: Optional[int],
    max_files: Optional[int],
    context_lines: Optional[int],
    show_context: bool,
):
    """Show how a diff would be split into review chunks.

    DIFF_FILE: Path to the diff ("-" for stdin)
    """
    verbose = ctx.obj.get("verbose", False)
    config_manager = _load_config(ctx)
    limits = config_manager.get_limits_config()

    try:
        files = parse_diff(_read_text(diff_file), config_manager.get_ignore_patterns(), PathMatcher())
    except OSError as e:
        _die(f"Cannot read diff: {e}", verbose=verbose, exc=e)

    if repo is not None:
        source = GitDiffSource(repo)
        for file_change in files:
            if not file_change.is_deleted and not file_change.is_binary:
                file_change.new_content = source.file_content(file_change.path, ref)

    chunks = chunk_files(
        files,
        token_budget=token_budget or limits.token_budget,
        max_files_per_chunk=max_files or limits.max_files_per_chunk,
        context_lines=limits.context_lines if context_lines is None else context_lines,
        chars_per_token=limits.chars_per_token,
    )

    if not chunks:
        click.echo("Nothing to review.")
        return
    for index, review_chunk in enumerate(chunks, 1):
        click.echo(f"Chunk {index}: {review_chunk.file_count} files, ~{review_chunk.token_estimate} tokens")
        for path in review_chunk.paths:
            click.echo(f"  [{file_priority(path)}] {path}")
        if show_context:
            click.echo(review_chunk.render())
            click.echo("")


@cli.command()
@click.argument("findings_file", type=click.Path(allow_dash=True, path_type=Path))
@click.option("--threshold", type=click.FloatRange(0.0, 1.0), help="Title similarity threshold. Overrides config.")
@click.pass_context
def dedupe(ctx, findings_file: Path, threshold: Optional[float]):
    """Deduplicate a JSON array of findings.

    FINDINGS_FILE: JSON file with findings ("-" for stdin)
    """
    verbose = ctx.obj.get("verbose", False)
    config_manager = _load_config(ctx)
    if threshold is None:
        threshold = config_manager.get_dedupe_config().similarity_threshold

    try:
        raw = json.loads(_read_text(findings_file))
    except (OSError, json.JSONDecodeError) as e:
        _die(f"Cannot read findings: {e}", verbose=verbose, exc=e)
    if not isinstance(raw, list):
        _die("Findings file must contain a JSON array", verbose=verbose)

    findings: List[Finding] = []
    for entry in raw:
        try:
            findings.append(Finding.from_dict(entry))
        except (KeyError, TypeError, ValueError) as e:
            _die(f"Invalid finding {entry!r}: {e}", verbose=verbose, exc=e)

    deduplicator = FindingDeduplicator(threshold)
    unique = deduplicator.dedupe(findings)
    click.echo(build_json(unique))
    click.echo(f"{len(unique)} unique of {len(findings)} findings", err=True)


@cli.command()
@click.option("--base", "base_branch", type=str, help="Base branch. Overrides config.")
@click.option("--target", "target_branch", type=str, help="Target branch (empty = HEAD + working tree). Overrides config.")
@click.option("--repo", type=click.Path(exists=True, file_okay=False, path_type=Path), help="Repository root (default: current directory)")
@click.option("--analyzer", type=click.Choice(ANALYZER_NAMES, case_sensitive=False), help="Analyzer to use. Overrides config.")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), help="Write the report to a file")
@click.option("--format", "output_format", type=click.Choice(["markdown", "json"], case_sensitive=False), default="markdown")
@click.pass_context
def review(
    ctx,
    base_branch: Optional[str],
    target_branch: Optional[str],
    repo: Optional[Path],
    analyzer: Optional[str],
    output: Optional[Path],
    output_format: str,
):
    """Review the diff between two branches."""
    verbose = ctx.obj.get("verbose", False)

    try:
        config_manager = _load_config(ctx)
        review_config = config_manager.get_review_config()
        base = base_branch or review_config.base_branch
        target = review_config.target_branch if target_branch is None else target_branch

        source = GitDiffSource(repo)
        raw_diff = source.diff(base, target, review_config.include_uncommitted)
        files = parse_diff(raw_diff, config_manager.get_ignore_patterns(), PathMatcher())
        source.resolve_contents(files, target)
        click.echo(f"Reviewing {len(files)} changed files ({base}..{target or 'HEAD + working tree'})", err=True)

        review_service = _create_review_service(
            config_manager, _create_analyzer(config_manager, analyzer, verbose)
        )
        # Ctrl-C stops after the current chunk; findings so far are still reported
        cancel_event = threading.Event()
        previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: cancel_event.set())
        try:
            run = review_service.review_files(files, cancel_event=cancel_event)
        finally:
            signal.signal(signal.SIGINT, previous_handler)
        if run.cancelled:
            click.echo("Review interrupted, reporting findings collected so far", err=True)

        if output_format.lower() == "json":
            report = build_json(run.findings)
        else:
            report = build_markdown(run.findings, base, target)

        if output:
            output.write_text(report, encoding="utf-8")
            click.echo(f"Report written to {output}", err=True)
        else:
            click.echo(report)

        summary = run.summary
        click.echo(
            f"\nReview completed: {summary['total_findings']} findings in "
            f"{summary['file_count']} files ({run.completed_chunks}/{len(run.chunks)} chunks analyzed)",
            err=True,
        )
        for index, error in run.failed_chunks:
            click.echo(f"Chunk {index + 1} failed: {error}", err=True)

    except click.ClickException:
        raise
    except DiffSourceError as e:
        _die(str(e), verbose=verbose, exc=e)
    except Exception as e:
        _die(f"Fatal error: {e}", verbose=verbose, exc=e)


@cli.command()
@click.option("--force", is_flag=True, help=f"Overwrite an existing {CONFIG_FILENAME}")
def init(force: bool):
    """Write a sample config file to the current directory."""
    target = Path.cwd() / CONFIG_FILENAME
    if target.exists() and not force:
        raise click.ClickException(f"{CONFIG_FILENAME} already exists (use --force to overwrite)")
    target.write_text(sample_config(), encoding="utf-8")
    click.echo(f"Wrote {target}")


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()
