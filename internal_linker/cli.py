#!/usr/bin/env python3
"""
Internal Linker CLI
Command-line interface for linking single documents and batches
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd
from tqdm import tqdm

from .config import settings
from .orchestrator import DistributionConfig, InjectionRecord, InternalLinkOrchestrator
from .pages import PageInfo, coerce_pages
from .scoring import AnchorConfig, find_best_anchors
from .zones import ConfigurationError

LIST_COLUMNS = ['secondary_keywords', 'secondaryKeywords', 'topics']


def load_pages(path: str) -> List[PageInfo]:
    """
    Load target pages from a JSON list or a CSV file.

    CSV list columns (secondary_keywords, topics) are '|' separated.
    """
    if path.endswith('.csv'):
        df = pd.read_csv(path, dtype=str).fillna('')
        records = df.to_dict(orient='records')
        for record in records:
            for column in LIST_COLUMNS:
                if column in record:
                    record[column] = [v.strip() for v in record[column].split('|') if v.strip()]
    else:
        with open(path, 'r', encoding='utf-8') as f:
            records = json.load(f)
        if isinstance(records, dict):
            records = records.get('pages', [])

    return coerce_pages(records)


def build_config(args) -> DistributionConfig:
    """Merge --config JSON and individual flags into a DistributionConfig"""
    overrides: Dict[str, Any] = {}
    if getattr(args, 'config', None):
        with open(args.config, 'r', encoding='utf-8') as f:
            overrides.update(json.load(f))
    if getattr(args, 'target_links', None) is not None:
        overrides['total_target_links'] = args.target_links
    if getattr(args, 'min_words_between', None) is not None:
        overrides['min_words_between_links'] = args.min_words_between
    return DistributionConfig.from_dict(overrides)


def report_rows(records: List[InjectionRecord], source: Optional[str] = None) -> List[Dict[str, Any]]:
    """Flatten injection records (quality metrics become columns)"""
    rows = []
    for record in records:
        row = record.to_dict()
        metrics = row.pop('quality_metrics')
        for key, value in metrics.items():
            row[f'quality_{key}'] = value
        if source is not None:
            row['source'] = source
        rows.append(row)
    return rows


def export_report(rows: List[Dict[str, Any]], output: str):
    """Write report rows to CSV or JSON"""
    df = pd.DataFrame(rows)
    if output.endswith('.json'):
        df.to_json(output, orient='records', indent=2)
    else:
        df.to_csv(output, index=False)


def cmd_inject(args) -> int:
    """Handle inject command"""
    input_path = Path(args.input)
    if not input_path.exists():
        print(f"❌ Input file not found: {args.input}")
        return 1

    pages = load_pages(args.pages)
    config = build_config(args)
    html = input_path.read_text(encoding='utf-8')

    print(f"🔗 Linking {input_path.name} against {len(pages):,} pages...")

    orchestrator = InternalLinkOrchestrator(config)
    result = orchestrator.process_content(html, pages, args.base_url)

    if args.output:
        Path(args.output).write_text(result.html, encoding='utf-8')
        print(f"📁 Wrote {args.output}")
    else:
        sys.stdout.write(result.html)

    if args.report:
        rows = report_rows(result.injection_details + result.failed_injections, input_path.name)
        export_report(rows, args.report)
        print(f"📁 Report exported to {args.report}")

    print(f"\n✅ Links injected: {result.links_injected}/{config.total_target_links}")
    for zone, count in result.distribution.items():
        print(f"   {zone}: {count}")
    return 0


def cmd_batch(args) -> int:
    """Handle batch command"""
    input_dir = Path(args.input_dir)
    if not input_dir.is_dir():
        print(f"❌ Input directory not found: {args.input_dir}")
        return 1

    files = sorted(input_dir.glob('*.html'))
    pages = load_pages(args.pages)
    config = build_config(args)
    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    print(f"🔗 Linking {len(files):,} documents against {len(pages):,} pages...")

    orchestrator = InternalLinkOrchestrator(config)
    rows = []
    total_links = 0

    for path in tqdm(files, desc="Linking"):
        # Every document gets a clean state
        orchestrator.reset()
        result = orchestrator.process_content(path.read_text(encoding='utf-8'), pages, args.base_url)
        (output_dir / path.name).write_text(result.html, encoding='utf-8')
        total_links += result.links_injected
        rows.extend(report_rows(result.injection_details, path.name))

    if args.report:
        export_report(rows, args.report)
        print(f"📁 Report exported to {args.report}")

    print(f"\n✅ Batch complete!")
    print(f"   Documents: {len(files):,}")
    print(f"   Links injected: {total_links:,}")
    return 0


def cmd_score(args) -> int:
    """Handle score command"""
    pages = load_pages(args.pages)
    anchor_config = AnchorConfig(min_quality_score=args.min_score) if args.min_score is not None else AnchorConfig()

    for page in pages:
        candidates = find_best_anchors(args.text, page, anchor_config)
        print(f"\n📄 {page.title} ({page.slug})")
        if not candidates:
            print("   No candidates above threshold")
            continue
        for candidate in candidates[:args.top_k]:
            print(
                f"   {candidate.quality_score:6.1f}  \"{candidate.text}\"  "
                f"[sem {candidate.semantic_score:.0f} / nat {candidate.naturalness_score:.0f} "
                f"/ seo {candidate.seo_score:.0f}]"
            )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='internal-linker',
        description='Internal Linker CLI',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Link one article
  internal-linker inject article.html --pages pages.json --base-url https://example.com --output linked.html

  # Link every .html file in a directory and export a report
  internal-linker batch drafts/ --pages pages.csv --base-url https://example.com --output-dir linked/ --report report.csv

  # Inspect anchor candidates for a paragraph
  internal-linker score "Some paragraph text..." --pages pages.json
        """
    )

    parser.add_argument('--log-level', default=settings.LOG_LEVEL, help='Logging level')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    def add_common(sub):
        sub.add_argument('--pages', required=True, help='Target pages (json or csv)')
        sub.add_argument('--base-url', required=True, help='Site base URL')
        sub.add_argument('--config', help='JSON file with distribution overrides')
        sub.add_argument('--target-links', type=int, help='Total links per document')
        sub.add_argument('--min-words-between', type=int, help='Minimum words between links')

    # Inject command
    inject_parser = subparsers.add_parser('inject', help='Link a single HTML document')
    inject_parser.add_argument('input', help='Input HTML file')
    add_common(inject_parser)
    inject_parser.add_argument('--output', help='Output HTML file (stdout if omitted)')
    inject_parser.add_argument('--report', help='Injection report (csv or json)')

    # Batch command
    batch_parser = subparsers.add_parser('batch', help='Link every HTML file in a directory')
    batch_parser.add_argument('input_dir', help='Directory of .html files')
    add_common(batch_parser)
    batch_parser.add_argument('--output-dir', required=True, help='Directory for linked files')
    batch_parser.add_argument('--report', help='Combined report (csv or json)')

    # Score command
    score_parser = subparsers.add_parser('score', help='Show ranked anchor candidates for text')
    score_parser.add_argument('text', help='Paragraph text')
    score_parser.add_argument('--pages', required=True, help='Target pages (json or csv)')
    score_parser.add_argument('--top-k', type=int, default=5, help='Candidates per page')
    score_parser.add_argument('--min-score', type=float, help='Minimum quality score')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.INFO))

    try:
        if args.command == 'inject':
            return cmd_inject(args)
        elif args.command == 'batch':
            return cmd_batch(args)
        elif args.command == 'score':
            return cmd_score(args)
    except ConfigurationError as e:
        print(f"❌ Invalid configuration: {e}")
        return 1
    except FileNotFoundError as e:
        print(f"❌ File not found: {e.filename}")
        return 1

    parser.print_help()
    return 0


if __name__ == '__main__':
    sys.exit(main())
