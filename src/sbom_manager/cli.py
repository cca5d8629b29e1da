"""
Command-line interface for the SBOM manager.
"""

import click
import json
import sys
import traceback
from typing import List, Optional, Dict, Any, Tuple
from pathlib import Path

import yaml

from . import __version__
from .config import get_config_manager, reset_config_manager, AppConfig
from .config.config_manager import VALID_FORMATS
from .error_handling import SBOMManagerError, ValidationError, ScanError, ExportError
from .logging import setup_logging, LoggerConfig
from .models import parse_vulnerability_map
from .orchestrator import OrchestrationManager, ScanOptions, ScanResult
from .scanners import DependencyScanner
from .storage import FileSBOMStore
from .licensing import PolicyEngine, load_catalog

FORMAT_CHOICES = sorted(VALID_FORMATS)


@click.group()
@click.version_option(version=__version__)
@click.option(
    '--config', '-c',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Path to configuration file'
)
@click.option(
    '--verbose', '-v',
    count=True,
    help='Increase verbosity (use -v or -vv)'
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[Path], verbose: int) -> None:
    """
    SBOM Manager - Generate SBOMs from dependency manifests.

    Scans npm, Python, Java, Go and Rust manifests, persists the canonical
    component list and exports SPDX, CycloneDX, CSV, JSON or XLSX.
    """
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose

    try:
        reset_config_manager()
        app_config = get_config_manager(config).get_config()
    except SBOMManagerError as e:
        fail(e, verbose)

    ctx.obj['config'] = app_config
    configure_logging(app_config, verbose)

    if verbose > 0:
        click.echo(f"SBOM Manager v{__version__}", err=True)


@cli.command()
@click.argument(
    'paths',
    nargs=-1,
    required=True,
    type=click.Path(exists=True, path_type=Path)
)
@click.option('--project-name', '-n', help='Project name recorded in the SBOM')
@click.option('--project-version', help='Project version recorded in the SBOM')
@click.option('--project-id', help='Project identifier used by the store (defaults to the name)')
@click.option('--author', help='Person credited as SBOM author')
@click.option(
    '--store', '-s',
    type=click.Path(file_okay=False, path_type=Path),
    help='SBOM store directory'
)
@click.option(
    '--output', '-o',
    type=click.Path(file_okay=False, path_type=Path),
    help='Output directory for exported files'
)
@click.option(
    '--format', '-f',
    type=click.Choice(FORMAT_CHOICES, case_sensitive=False),
    multiple=True,
    help='Export format(s) to write after the scan'
)
@click.option('--workers', '-w', type=click.IntRange(min=1), help='Parser threads')
@click.option(
    '--recursive/--no-recursive',
    default=None,
    help='Descend into subdirectories when scanning directories'
)
@click.pass_context
def scan(
    ctx: click.Context,
    paths: Tuple[Path, ...],
    project_name: Optional[str],
    project_version: Optional[str],
    project_id: Optional[str],
    author: Optional[str],
    store: Optional[Path],
    output: Optional[Path],
    format: Tuple[str, ...],
    workers: Optional[int],
    recursive: Optional[bool]
) -> None:
    """
    Scan manifests and persist an SBOM.

    PATHS may be manifest files or directories. Directories are searched
    for recognized manifests; unrecognized files are skipped with a warning.

    Examples:

        # Scan a project directory
        sbom-manager scan ./my-app -n my-app --project-version 2.1.0

        # Scan two lock files and write CycloneDX and CSV exports
        sbom-manager scan package-lock.json go.sum -f cyclonedx -f csv -o ./out
    """
    config: AppConfig = ctx.obj['config']
    verbose = ctx.obj.get('verbose', 0)

    try:
        scanner = DependencyScanner(max_workers=workers, recursive=recursive)
        orchestrator = OrchestrationManager(
            config,
            store=FileSBOMStore(store or config.storage.directory),
            scanner=scanner
        )

        files = collect_files(scanner, paths)
        options = ScanOptions(
            project_id=project_id,
            project_name=project_name,
            project_version=project_version,
            author=author
        )
        result = orchestrator.scan_files(files, options)

        written = []
        if format:
            output_dir = output or Path(config.output.directory)
            for fmt in format:
                artifact = orchestrator.render(result.sbom_id, fmt.lower())
                written.append(orchestrator.export_manager.write(artifact, output_dir))

        display_scan_result(result, written, verbose)

    except SBOMManagerError as e:
        fail(e, verbose)


@cli.command()
@click.argument('sbom_id')
@click.option(
    '--store', '-s',
    type=click.Path(file_okay=False, path_type=Path),
    help='SBOM store directory'
)
@click.option(
    '--format', '-f',
    type=click.Choice(FORMAT_CHOICES, case_sensitive=False),
    multiple=True,
    help='Export format(s), defaults to output.format from configuration'
)
@click.option('--project-name', '-n', help='Override the stored project name')
@click.option('--project-version', help='Override the stored version')
@click.option(
    '--vulnerabilities',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='JSON file mapping name@version to vulnerability records'
)
@click.option(
    '--output', '-o',
    type=click.Path(file_okay=False, path_type=Path),
    help='Output directory for exported files'
)
@click.pass_context
def export(
    ctx: click.Context,
    sbom_id: str,
    store: Optional[Path],
    format: Tuple[str, ...],
    project_name: Optional[str],
    project_version: Optional[str],
    vulnerabilities: Optional[Path],
    output: Optional[Path]
) -> None:
    """
    Export a persisted SBOM.

    Documents are re-rendered from the stored components, so exports of the
    same SBOM always agree on component content.
    """
    config: AppConfig = ctx.obj['config']
    verbose = ctx.obj.get('verbose', 0)

    try:
        orchestrator = OrchestrationManager(
            config,
            store=FileSBOMStore(store or config.storage.directory)
        )
        records = load_vulnerabilities(vulnerabilities) if vulnerabilities else None
        output_dir = output or Path(config.output.directory)

        for fmt in format or config.output.format:
            artifact = orchestrator.render(
                sbom_id,
                fmt.lower(),
                project_name=project_name,
                version=project_version,
                vulnerabilities=records
            )
            path = orchestrator.export_manager.write(artifact, output_dir)
            click.echo(f"{fmt.lower()}: {path}")

    except SBOMManagerError as e:
        fail(e, verbose)


@cli.group()
def license() -> None:
    """License normalization and policy checks."""


@license.command('normalize')
@click.argument('raw')
def license_normalize(raw: str) -> None:
    """Print the SPDX identifier for a license string."""
    engine = PolicyEngine()
    click.echo(engine.normalizer.normalize(raw))


@license.command('check')
@click.argument('license_id')
@click.option('--policy', '-p', help='Policy key, defaults to license.default_policy')
@click.option(
    '--format', '-f',
    type=click.Choice(['text', 'json'], case_sensitive=False),
    default='text',
    help='Output format'
)
@click.pass_context
def license_check(ctx: click.Context, license_id: str, policy: Optional[str], format: str) -> None:
    """
    Check a license against a policy.

    LICENSE_ID is normalized first, so aliases like "Apache 2.0" work.
    """
    config: AppConfig = ctx.obj['config']
    try:
        engine = PolicyEngine(load_catalog(config.license.policies_file))
        policy = policy or config.license.default_policy
        spdx_id = engine.normalizer.normalize(license_id)
        decision = engine.check_license_policy(spdx_id, policy)
    except SBOMManagerError as e:
        fail(e, ctx.obj.get('verbose', 0))

    if format == 'json':
        data = {"license": spdx_id, "policy": policy}
        data.update(decision.to_dict())
        click.echo(json.dumps(data, indent=2))
        return

    status = "allowed" if decision.allowed else "not allowed"
    line = f"{spdx_id}: {status} under '{policy}' (risk: {decision.risk_level})"
    if decision.reason:
        line += f" - {decision.reason}"
    click.echo(line)


@license.command('policies')
@click.pass_context
def license_policies(ctx: click.Context) -> None:
    """List available license policies."""
    config: AppConfig = ctx.obj['config']
    try:
        engine = PolicyEngine(load_catalog(config.license.policies_file))
    except SBOMManagerError as e:
        fail(e, ctx.obj.get('verbose', 0))

    for policy in engine.list_policies():
        marker = "*" if policy["key"] == config.license.default_policy else " "
        click.echo(f"{marker} {policy['key']:<14} {policy['name']}: {policy['description']}")


@license.command('summary')
@click.argument('sbom_id')
@click.option(
    '--store', '-s',
    type=click.Path(file_okay=False, path_type=Path),
    help='SBOM store directory'
)
@click.option('--policy', '-p', help='Policy key, defaults to license.default_policy')
@click.option(
    '--format', '-f',
    type=click.Choice(['table', 'json'], case_sensitive=False),
    default='table',
    help='Output format'
)
@click.pass_context
def license_summary(
    ctx: click.Context,
    sbom_id: str,
    store: Optional[Path],
    policy: Optional[str],
    format: str
) -> None:
    """Summarize the licenses of a persisted SBOM."""
    config: AppConfig = ctx.obj['config']
    try:
        orchestrator = OrchestrationManager(
            config,
            store=FileSBOMStore(store or config.storage.directory)
        )
        summary = orchestrator.license_summary(sbom_id, policy)
    except SBOMManagerError as e:
        fail(e, ctx.obj.get('verbose', 0))

    if format == 'json':
        click.echo(json.dumps(summary, indent=2))
    else:
        display_license_summary(summary)


@cli.command()
@click.option(
    '--format', '-f',
    type=click.Choice(['table', 'json', 'yaml'], case_sensitive=False),
    default='table',
    help='Output format for configuration display'
)
@click.pass_context
def config(ctx: click.Context, format: str) -> None:
    """
    Display current configuration settings.

    Shows the current configuration including defaults, file settings,
    and environment variable overrides.
    """
    app_config: AppConfig = ctx.obj['config']

    if format == 'json':
        click.echo(json.dumps(app_config.to_dict(), indent=2, default=str))
    elif format == 'yaml':
        click.echo(yaml.dump(app_config.to_dict(), default_flow_style=False))
    else:
        display_config_table(app_config)


def configure_logging(config: AppConfig, verbose: int) -> None:
    """Set up logging based on configuration and verbosity level."""
    if verbose == 0:
        level = "WARNING"
    elif verbose == 1:
        level = "INFO"
    else:
        level = "DEBUG"

    setup_logging(
        LoggerConfig(
            level=level,
            file_path=config.logging.file,
            format_string=config.logging.format,
            max_file_size=config.logging.max_file_size,
            backup_count=config.logging.backup_count,
            enable_structured=config.logging.structured
        ),
        force=True
    )


def fail(error: SBOMManagerError, verbose: int) -> None:
    """Report an error and exit with status 1."""
    click.echo(f"Error: {error.message}", err=True)
    if isinstance(error, ValidationError):
        for message in error.errors:
            click.echo(f"  - {message}", err=True)
    if verbose > 1:
        traceback.print_exception(type(error), error, error.__traceback__)
    sys.exit(1)


def collect_files(scanner: DependencyScanner, paths: Tuple[Path, ...]) -> List[Path]:
    """Expand directories into their manifests, keeping argument order."""
    files: List[Path] = []
    for path in paths:
        if path.is_dir():
            files.extend(scanner.discover_files(path))
        else:
            files.append(path)

    if not files:
        raise ScanError(
            "No dependency files found in " + ", ".join(str(p) for p in paths),
            path=str(paths[0])
        )
    return files


def load_vulnerabilities(path: Path) -> Dict[str, Any]:
    """Load a vulnerability map from a JSON file."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return parse_vulnerability_map(json.load(f))
    except (OSError, ValueError) as e:
        raise ExportError(f"Failed to load vulnerabilities from {path}: {e}", cause=e)


def display_scan_result(result: ScanResult, written: List[Path], verbose: int) -> None:
    """Display scan results."""
    click.echo("=" * 60)
    click.echo("SBOM SCAN RESULTS")
    click.echo("=" * 60)
    click.echo(f"SBOM ID: {result.sbom_id}")
    click.echo(f"Project: {result.project_id}")
    click.echo(f"Ecosystem: {result.ecosystem}")
    if len(result.ecosystems) > 1:
        click.echo(f"Ecosystems: {', '.join(result.ecosystems)}")
    click.echo(f"Components: {result.components_count}")

    click.echo(f"\nFiles processed: {len(result.files_processed)}")
    for summary in result.files_processed:
        click.echo(f"  - {summary.file_name} ({summary.ecosystem}): {summary.component_count} components")

    if verbose > 0 and result.components:
        click.echo("\nComponents:")
        for component in result.components:
            click.echo(f"  - {component.identity_key} [{component.origin}]")

    if written:
        click.echo("\nOutput files generated:")
        for file_path in written:
            click.echo(f"  - {file_path}")

    click.echo("=" * 60)


def display_license_summary(summary: Dict[str, Any]) -> None:
    """Display a license summary in table format."""
    click.echo(f"License summary for SBOM {summary['sbom_id']} (policy: {summary['policy']})")
    click.echo("-" * 50)
    click.echo(f"Total components: {summary['total_components']}")
    click.echo(f"Unknown licenses: {summary['unknown_count']}")

    click.echo("\nLicenses:")
    for spdx_id, count in sorted(summary['license_counts'].items()):
        click.echo(f"  {spdx_id}: {count}")

    risk = summary['risk_distribution']
    click.echo(f"\nRisk: low={risk['low']} medium={risk['medium']} high={risk['high']}")

    violations = summary['policy_violations']
    click.echo(f"\nPolicy violations: {len(violations)}")
    for violation in violations:
        click.echo(f"  - {violation['component_name']}@{violation['component_version']}: "
                   f"{violation['license']} ({violation['reason']})")


def display_config_table(config: AppConfig) -> None:
    """Display configuration in table format."""
    click.echo("\nCurrent Configuration:")
    click.echo("-" * 50)

    sections = [
        ("Project", config.project),
        ("Scanning", config.scanning),
        ("Output", config.output),
        ("Document", config.document),
        ("License", config.license),
        ("Storage", config.storage),
        ("Logging", config.logging)
    ]

    for section_name, section_config in sections:
        click.echo(f"\n[{section_name}]")
        for key, value in section_config.__dict__.items():
            click.echo(f"  {key}: {value}")


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == '__main__':
    main()
