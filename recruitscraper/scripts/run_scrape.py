from pathlib import Path
from dataclasses import replace
import sys
import argparse
import logging

# Ensure project root is on path when executing this file directly
ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from recruitscraper.hrmos.errors import LaunchError, MissingCredentials
from recruitscraper.hrmos.exporter import Exporter
from recruitscraper.hrmos.logging_config import setup_logging, log_event
from recruitscraper.hrmos.progress import ProgressTracker
from recruitscraper.hrmos.runner import EXTRACTORS, run_scrape
from recruitscraper.hrmos.settings import SETTINGS


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description='Scrape HRMOS agent console into CSV')
    ap.add_argument('mode', choices=sorted(EXTRACTORS), help='What to scrape')
    ap.add_argument('--debug', action='store_true', help='Enable debug logging')
    ap.add_argument('--headed', action='store_true', help='Show the browser window')
    ap.add_argument('--output', type=str, help='Directory for CSV output')
    ap.add_argument('--stream', action='store_true', help='Write CSV row by row')
    args = ap.parse_args(argv)
    setup_logging(debug=args.debug)
    logger = logging.getLogger('cli')

    settings = SETTINGS
    if args.headed:
        settings = replace(settings, headless=False)
    if args.output:
        settings = replace(settings, output_dir=Path(args.output))

    progress = ProgressTracker()
    if args.debug:
        progress.subscribe(lambda snap: logger.debug(f"progress {snap.status} logs={len(snap.logs)}"))
    try:
        result = run_scrape(args.mode, settings=settings, progress=progress,
                            exporter=Exporter(settings.output_dir, stream=args.stream or None))
    except MissingCredentials as e:
        logger.error(str(e))
        return 2
    except LaunchError as e:
        logger.error(str(e))
        return 3
    logger.info(f"{result.message} count={result.count} csv={result.csv_path}")
    log_event('cli_complete', mode=args.mode, success=result.success, count=result.count)
    if not result.success:
        logger.error(f"error: {result.error}")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
