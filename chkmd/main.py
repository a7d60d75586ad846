import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from .config import load_config
from .core import IngestPipeline
from .exceptions import ChkmdError


def setup_logging(verbose: bool, log_file: Optional[Path] = None):
    """Logs to stderr (stdout may carry the report) and optionally to a file."""
    log_level = logging.DEBUG if verbose else logging.INFO

    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
        force=True,
    )


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="chkmd: check media files for required import metadata")

    p.add_argument("dir", type=Path, help="The directory to process, recursively")

    p.add_argument("-c", "--config", type=Path, default=None,
                   help="YAML config file (default: ./chkmd.yaml or ~/.config/chkmd/config.yaml)")
    p.add_argument("-o", "--output", type=Path, default=None, help="CSV file to write (default: stdout)")
    p.add_argument("-p", "--procs", type=int, default=os.cpu_count() or 1,
                   help="Number of files to process in parallel (default: CPU count)")
    p.add_argument("-v", "--verbose", action="store_true", help="Be noisy while processing. Really, just print errors.")
    p.add_argument("--no-progress", action="store_true", help="Don't show a progress bar")
    p.add_argument("--log-file", type=Path, default=None, help="Also write the log to this file")

    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose, args.log_file)

    root = args.dir
    try:
        cfg = load_config(args.config)
        pipeline = IngestPipeline(cfg, workers=max(1, args.procs), progress=not args.no_progress)

        # Fail before creating the output file
        pipeline.scanner.check_root(root)

        if args.output:
            with args.output.open("w", newline="", encoding="utf-8") as f:
                stats = pipeline.run(root, f)
        else:
            # The report is UTF-8 whatever the locale says
            if hasattr(sys.stdout, "reconfigure"):
                sys.stdout.reconfigure(encoding="utf-8", newline="")
            stats = pipeline.run(root, sys.stdout)
    except ChkmdError as e:
        logging.error(str(e))
        return 1
    except OSError as e:
        logging.error(f"Error opening output file: {e}")
        return 1
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user.")
        return 1

    logging.info("\n" + stats.summary())
    return 0


if __name__ == "__main__":
    sys.exit(main())
