"""Command-line interface for loading sequence files into a matrix."""

import sys
from pathlib import Path

import click

from .config import Config, get_default_config_path, create_example_config
from .coordinator import FileLoadCoordinator
from .gap_recoder import GapRecoder
from .cli_utils import ConsoleQueries, echo, secho, set_quiet_mode
from .logging_config import setup_logging
from .matrix import SequenceMatrix
from .name_resolver import ImportSession
from .preferences import JsonPreferenceStore, MemoryPreferenceStore
from .queries import RememberingQueries, ScriptedQueries


@click.command()
@click.argument('files', type=click.Path(exists=True, dir_okay=False), nargs=-1)
@click.option('--format', 'format_hint', help='File format (fasta, nexus, phylip-relaxed, ...); guessed from the suffix if omitted')
@click.option('--split/--no-split', default=None, help='Split files by their character sets without asking')
@click.option('--recode-gaps/--no-recode-gaps', default=None, help='Recode external gaps as missing data without asking')
@click.option('--names', type=click.Choice(['full', 'species']), help='Which sequence name to use when the full and species names differ')
@click.option('--summary-tsv', type=click.Path(dir_okay=False), help='Write a taxon-by-set table of sequence lengths')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress all output except errors and questions')
@click.option('--no-prefs', is_flag=True, help="Don't read or store remembered answers")
@click.option('--config', type=click.Path(exists=True), help='Configuration file path')
@click.option('--generate-config', is_flag=True, help='Generate example configuration file')
def main(files, format_hint, split, recode_gaps, names, summary_tsv, verbose, quiet, no_prefs, config, generate_config):
    """Load sequence files into a taxon-by-set matrix.
    
    Files containing character sets can be split into one matrix column
    per set.
    
    Examples:
        sequence-matrix cox1.fasta 16S.nex
        sequence-matrix --split --recode-gaps --names species genes.nex
    """
    if quiet and verbose:
        click.echo("Error: Cannot use both --quiet and --verbose", err=True)
        sys.exit(1)
    
    if quiet:
        set_quiet_mode(True)
    
    if generate_config:
        config_path = create_example_config()
        echo(f"Generated example configuration file: {config_path}")
        sys.exit(0)
    
    if not files:
        ctx = click.get_current_context()
        echo(ctx.get_help())
        return
    
    config_path = Path(config) if config else get_default_config_path()
    try:
        cfg = Config.from_file(config_path)
    except (ValueError, TypeError) as e:
        click.echo(f"Error: Invalid configuration file {config_path}: {e}", err=True)
        sys.exit(1)
    cfg.merge_env_vars()
    cfg.merge_cli_args(
        split=split,
        recode_gaps=recode_gaps,
        names=names,
        verbose=verbose,
        no_prefs=no_prefs
    )
    
    setup_logging(
        log_level=cfg.logging.level,
        log_dir=cfg.logging.directory,
        console=cfg.logging.console,
        colors=cfg.logging.colors,
        quiet=quiet
    )
    
    if cfg.preferences.enabled:
        preferences = JsonPreferenceStore(cfg.preferences.path)
    else:
        preferences = MemoryPreferenceStore()
    
    # Scripted answers come first so they are never remembered as preferences
    queries = ScriptedQueries.from_config(
        cfg.importing,
        fallback=RememberingQueries(ConsoleQueries(), preferences)
    )
    
    matrix = SequenceMatrix()
    coordinator = FileLoadCoordinator(
        matrix,
        queries,
        session=ImportSession.from_config(cfg.importing),
        recoder=GapRecoder(cfg.importing.gap_char, cfg.importing.missing_char)
    )
    
    failed = 0
    for file in files:
        echo(f"Loading {file}...")
        result = coordinator.load(file, format_hint=format_hint,
                                  blocking=cfg.importing.wait_for_lock)
        if result.success:
            secho(f"  ✓ {file}: {len(result.units_merged)} unit(s) merged", fg='green')
            for report in result.reports:
                if not report.success:
                    echo(f"    {report.unit_name}: {len(report.rejections)} sequence(s) not added")
        else:
            failed += 1
            secho(f"  ✗ {file}: {result.error}", fg='red', err=True)
    
    echo("\n" + "=" * 80)
    echo(f"Taxa: {matrix.taxon_count}")
    echo(f"Sets: {matrix.set_count}")
    for column in matrix.column_names:
        echo(f"  {column}")
    echo(f"Files loaded: {len(files) - failed}/{len(files)}")
    
    if summary_tsv:
        try:
            matrix.length_table().to_csv(summary_tsv, sep='\t', index_label='taxon')
            echo(f"Summary written to: {summary_tsv}")
        except OSError as e:
            echo(f"ERROR: Failed to write summary file: {e}", err=True)
            sys.exit(1)
    
    if failed:
        sys.exit(1)


if __name__ == '__main__':
    main()
