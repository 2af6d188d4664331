#!/usr/bin/env python3
"""
Command Line Interface for the MTG Ruling Scanner
Scan a card photo, or look up rulings for a name directly
"""
import os
import sys
import click
import json
import logging
from pathlib import Path

# Add the project root to Python path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from card_scanner import CardScanner, BatchScanner
from export_manager import ScanExporter, format_lookup_report, format_scan_report
from install_tesseract import ensure_tesseract, get_tesseract_version
from name_extractor import extract_card_name, rank_candidate_lines
from ruling_lookup import RulingLookup
from config import settings

@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def cli(verbose):
    """MTG Ruling Scanner CLI

    Read a Magic: The Gathering card name from a photo and show its official rulings.
    """
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

@cli.command()
@click.argument('image_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--json', 'as_json', is_flag=True, help='Print the scan as JSON')
def scan(image_path, as_json):
    """Scan a card photo and show its rulings"""
    scanner = CardScanner()
    state = scanner.scan(image_path)

    if as_json:
        click.echo(json.dumps(state.to_dict(), indent=2, ensure_ascii=False))
    else:
        click.echo(format_scan_report(state))

    if state.error:
        sys.exit(1)

@cli.command()
@click.argument('name', nargs=-1, required=True)
@click.option('--json', 'as_json', is_flag=True, help='Print the lookup result as JSON')
def lookup(name, as_json):
    """Look up rulings for a card name"""
    result = RulingLookup().lookup(" ".join(name))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        click.echo(format_lookup_report(result))

@cli.command()
@click.argument('text_file', type=click.File('r'), default='-')
@click.option('--all', 'show_all', is_flag=True, help='Show every candidate line, best first')
def extract(text_file, show_all):
    """Pick the card name out of raw OCR text (file or stdin)"""
    raw_text = text_file.read()

    if show_all:
        for i, candidate in enumerate(rank_candidate_lines(raw_text), 1):
            click.echo(f"{i}. {candidate}")
        return

    click.echo(extract_card_name(raw_text))

@cli.command()
@click.argument('directory', type=click.Path(exists=True, file_okay=False))
@click.option('--format', '-f', 'export_format', type=click.Choice(['csv', 'json', 'both']),
              default='csv', help='Export format')
@click.option('--output-dir', '-o', help='Output directory for exports', default=None)
def batch(directory, export_format, output_dir):
    """Scan every card photo in a directory and export the results"""
    click.echo(f"Processing directory: {directory}")

    batch_scanner = BatchScanner(CardScanner())
    result = batch_scanner.scan_directory(directory)

    if not result.get('success'):
        click.echo(f"Batch scan failed: {result.get('error', 'Unknown error')}")
        sys.exit(1)

    click.echo(f"Files processed: {result['files_processed']}")
    click.echo(f"Rulings found: {result['rulings_found']}")
    click.echo(f"Suggestions offered: {result['suggestions_offered']}")
    click.echo(f"Errors: {result['errors']}")

    exporter = ScanExporter(output_dir)
    formats = ['csv', 'json'] if export_format == 'both' else [export_format]
    for fmt in formats:
        if fmt == 'csv':
            export_result = exporter.export_to_csv(result['scans'])
        else:
            export_result = exporter.export_to_json(result['scans'])

        if export_result.get('success'):
            click.echo(f"{fmt.upper()}: {export_result['file_path']}")
        else:
            click.echo(f"{fmt.upper()} export failed: {export_result.get('error', 'Unknown error')}")

@cli.command('check-ocr')
@click.option('--install', is_flag=True, help='Try to install Tesseract if it is missing')
def check_ocr(install):
    """Check that the Tesseract OCR engine is available"""
    if ensure_tesseract(install=install):
        click.echo(f"Tesseract available: {get_tesseract_version()}")
        return

    click.echo("Tesseract not found. Install it or set TESSERACT_CMD.")
    sys.exit(1)

@cli.command()
def config():
    """Show current configuration"""
    click.echo("Current Configuration:")
    click.echo("\nScryfall:")
    click.echo(f"   API base: {settings.SCRYFALL_API_BASE}")
    click.echo(f"   Timeout: {settings.API_TIMEOUT}s")
    click.echo(f"   Rate limit delay: {settings.API_RATE_LIMIT_DELAY}s")
    click.echo(f"   Max suggestions: {settings.MAX_SUGGESTIONS}")

    click.echo("\nOCR:")
    click.echo(f"   Language: {settings.OCR_LANGUAGE}")
    click.echo(f"   Name band: top {settings.NAME_BAND_TOP:.0%}, height {settings.NAME_BAND_HEIGHT:.0%}")
    click.echo(f"   Tesseract: {settings.TESSERACT_CMD or 'from PATH'}")

    click.echo("\nPaths:")
    click.echo(f"   Exports: {Path(settings.EXPORTS_PATH)}")
    click.echo(f"   Log file: {settings.LOG_FILE or 'none'}")

if __name__ == '__main__':
    cli()
