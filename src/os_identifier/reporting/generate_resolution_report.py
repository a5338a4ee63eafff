#!/usr/bin/env python3
"""
Resolution Report Generator

Resolves a batch of operating system labels (typically an inventory export,
one label per line) and writes a report with one row per label: the
canonical fields for resolved labels and the failure kind for the rest.

Usage:
    python -m src.os_identifier.reporting.generate_resolution_report --input labels.txt
    python -m src.os_identifier.reporting.generate_resolution_report --input labels.txt --format json
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import orjson
import pandas as pd
from tqdm import tqdm

from ..core.config_loader import TOOLNAME, VERSION, load_config
from ..core.label_classifier import is_structured_label
from ..core.os_identifier import read_label_file
from ..core.version_dispatcher import ResolutionOutcome, VersionDispatcher
from ..logging.workflow_logger import end_batch_resolution, get_logger, start_batch_resolution

logger = get_logger()

REPORT_COLUMNS = [
    'input', 'label_type', 'resolved', 'family', 'vendor', 'product', 'release',
    'editions', 'service_channel', 'display_names', 'error', 'error_kind',
]
LIST_COLUMNS = ('editions', 'display_names')
SUPPORTED_FORMATS = ('csv', 'json')


def _outcome_row(value: str, outcome: ResolutionOutcome) -> Dict:
    row = dict.fromkeys(REPORT_COLUMNS)
    row.update({
        'input': value,
        'label_type': 'structured' if is_structured_label(value.strip()) else 'free_text',
        'resolved': outcome.resolved,
        'editions': [],
        'display_names': [],
    })
    if outcome.resolved:
        record = outcome.record
        row.update({
            'family': record.family.value,
            'vendor': record.vendor,
            'product': record.product,
            'release': record.release,
            'editions': [edition.display_name for edition in record.editions],
            'service_channel': record.service_channel.label,
            'display_names': record.to_strings(),
        })
    else:
        row.update({
            'error': str(outcome.error),
            'error_kind': outcome.error.kind.value,
        })
    return row


def resolve_labels(labels: Iterable[str], dispatcher: Optional[VersionDispatcher] = None,
                   show_progress: bool = True) -> pd.DataFrame:
    """Resolve every label and return one DataFrame row per input."""
    dispatcher = dispatcher or VersionDispatcher()
    labels = list(labels)
    rows = []
    for value in tqdm(labels, desc="Resolving labels", unit="label", disable=not show_progress):
        rows.append(_outcome_row(value, dispatcher.try_resolve(value)))
    return pd.DataFrame(rows, columns=REPORT_COLUMNS)


def explode_display_names(df: pd.DataFrame) -> pd.DataFrame:
    """One row per canonical display name (resolved labels only)."""
    resolved = df[df['resolved'].astype(bool)]
    exploded = resolved.explode('display_names').rename(columns={'display_names': 'display_name'})
    return exploded.drop(columns=['editions', 'error', 'error_kind']).reset_index(drop=True)


def summarize(df: pd.DataFrame) -> Dict:
    mask = df['resolved'].astype(bool)
    resolved = df[mask]
    unresolved = df[~mask]
    return {
        'total_labels': int(len(df)),
        'resolved': int(len(resolved)),
        'unresolved': int(len(unresolved)),
        'structured_labels': int((df['label_type'] == 'structured').sum()),
        'by_family': {str(k): int(v) for k, v in resolved['family'].value_counts().items()},
        'by_error_kind': {str(k): int(v) for k, v in unresolved['error_kind'].value_counts().items()},
        'display_names': int(resolved['display_names'].map(len).sum()),
    }


class ResolutionReportBuilder:
    """Accumulates resolved labels and renders the report payload."""

    def __init__(self, dispatcher: Optional[VersionDispatcher] = None, separator: Optional[str] = None):
        self.dispatcher = dispatcher
        self.separator = separator or load_config().get('reporting', {}).get('display_name_separator', '; ')
        self._frames: List[pd.DataFrame] = []

    def add_labels(self, labels: Iterable[str], show_progress: bool = True) -> pd.DataFrame:
        if self.dispatcher is None:
            self.dispatcher = VersionDispatcher()
        frame = resolve_labels(labels, self.dispatcher, show_progress=show_progress)
        self._frames.append(frame)
        return frame

    def to_dataframe(self) -> pd.DataFrame:
        if not self._frames:
            return pd.DataFrame(columns=REPORT_COLUMNS)
        return pd.concat(self._frames, ignore_index=True)

    def to_flat_dataframe(self) -> pd.DataFrame:
        """List columns joined into strings for CSV output."""
        df = self.to_dataframe().copy()
        for column in LIST_COLUMNS:
            df[column] = df[column].map(self.separator.join)
        return df

    def finalize(self) -> Dict:
        df = self.to_dataframe()
        return {
            'metadata': {
                'tool': TOOLNAME,
                'version': VERSION,
                'generated_at': datetime.now(timezone.utc).isoformat(),
                **summarize(df),
            },
            'labels': df.to_dict(orient='records'),
        }

    def write(self, output_file: str, output_format: str = 'csv') -> str:
        """
        Write the report atomically (temp file + rename).

        Raises:
            ValueError: If the format is not supported
            RuntimeError: If the report cannot be written
        """
        if output_format not in SUPPORTED_FORMATS:
            raise ValueError(f"Unsupported report format {output_format!r} (expected one of {SUPPORTED_FORMATS})")

        output_path = Path(output_file)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        temp_file = output_path.with_suffix('.tmp')
        try:
            if output_format == 'csv':
                self.to_flat_dataframe().to_csv(temp_file, index=False)
            else:
                payload = orjson.dumps(self.finalize(), option=orjson.OPT_INDENT_2 | orjson.OPT_SERIALIZE_NUMPY)
                temp_file.write_bytes(payload)
            temp_file.replace(output_path)
        except OSError as e:
            if temp_file.exists():
                temp_file.unlink()
            raise RuntimeError(f"Failed to write report file: {e}") from e

        logger.file_operation("saved", str(output_path), f"{output_format} report", group="REPORT")
        return str(output_path)


def generate_report(input_file: str, output_file: str, output_format: str = 'csv',
                    dispatcher: Optional[VersionDispatcher] = None, show_progress: bool = True) -> str:
    """
    Resolve every label in ``input_file`` and write the report.

    Returns:
        Path to the generated report file

    Raises:
        FileNotFoundError: If the input file doesn't exist
    """
    if not Path(input_file).exists():
        raise FileNotFoundError(f"Label file not found: {input_file}")

    labels = read_label_file(input_file)
    start_batch_resolution(f"{len(labels)} labels from {Path(input_file).name}")

    builder = ResolutionReportBuilder(dispatcher=dispatcher)
    frame = builder.add_labels(labels, show_progress=show_progress)
    report_path = builder.write(output_file, output_format)

    summary = summarize(frame)
    logger.data_summary("Resolution report", group="REPORT",
                        labels=summary['total_labels'], resolved=summary['resolved'],
                        unresolved=summary['unresolved'])
    end_batch_resolution(f"{summary['resolved']}/{summary['total_labels']} resolved")
    return report_path


def main():
    """Command-line interface for standalone execution."""
    import argparse
    from ..storage.run_organization import create_run_directory

    config = load_config()
    default_format = config.get('reporting', {}).get('default_output_format', 'csv')

    parser = argparse.ArgumentParser(
        description="Resolve a file of operating system labels into a report",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Report in a new run directory
  python -m src.os_identifier.reporting.generate_resolution_report --input labels.txt

  # JSON report at an explicit location
  python -m src.os_identifier.reporting.generate_resolution_report \\
      --input labels.txt --format json --output reports/labels.json
        """
    )
    parser.add_argument('--input', required=True, help='Text file with one label per line')
    parser.add_argument('--output', help='Report path (defaults to a new run directory)')
    parser.add_argument('--format', choices=SUPPORTED_FORMATS, default=default_format,
                        help=f'Report format (default: {default_format})')
    parser.add_argument('--no-progress', action='store_true', help='Disable the progress bar')
    args = parser.parse_args()

    try:
        output_file = args.output
        if not output_file:
            run_directory, run_id = create_run_directory(Path(args.input).stem)
            logger.set_run_logs_directory(str(run_directory / "logs"))
            logger.start_file_logging(f"resolution_report_{Path(args.input).stem}")
            logger.info(f"Created new run directory: {run_id}", group="REPORT")
            output_file = str(run_directory / "reports" / f"resolution_report.{args.format}")

        report_path = generate_report(args.input, output_file, args.format,
                                      show_progress=not args.no_progress)
        print(f"\nReport generated successfully: {report_path}")
        return 0
    except (OSError, ValueError, RuntimeError) as e:
        logger.error(f"Report generation failed: {e}", group="REPORT")
        return 1
    finally:
        logger.stop_file_logging()


if __name__ == "__main__":
    import sys
    sys.exit(main())
