import logging
import os
import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterator, List, Optional, TextIO

from . import config
from .exceptions import MetadataExtractionError
from .metadata.classify import classify
from .metadata.extract import ExifToolExtractor
from .metadata.resolve import ResolvedFields
from .models import ClassificationResult, RunStatistics, Status
from .reporting import ReportWriter, make_error_row, make_row
from .scanning.filesystem import DirectoryScanner

# End-of-input marker for both queues
_DONE = object()


class IngestPipeline:
    """
    Scan -> extract -> resolve -> classify -> report, with bounded memory.

        scanner thread --(paths, bounded)--> N workers --(rows, bounded)--> writer thread

    A slow writer stalls the workers, which stall the scanner. Every path a
    worker takes off the queue yields exactly one row, whatever happens to it.
    Rows arrive at the writer in completion order, not scan order.
    """

    def __init__(self,
                 cfg: config.ChkmdConfig,
                 extractor=None,
                 workers: Optional[int] = None,
                 queue_size: int = config.QUEUE_SIZE,
                 progress: bool = False):
        self.config = cfg
        self.extractor = extractor if extractor is not None else ExifToolExtractor(cfg.exiftool)
        self.scanner = DirectoryScanner(cfg.mime_types)
        self.workers = max(1, workers or os.cpu_count() or 1)
        self.queue_size = queue_size
        self.progress = progress

    def run(self, root: Path, out: TextIO) -> RunStatistics:
        """
        Checks every relevant file under root and writes the CSV report to out.

        Raises ScanError before anything is written if root can't be scanned.
        A traversal error found later is raised once the pipeline has drained.
        """
        self.scanner.check_root(root)

        paths: queue.Queue = queue.Queue(maxsize=self.queue_size)
        results: queue.Queue = queue.Queue(maxsize=self.queue_size)
        scan_stats = RunStatistics()
        scan_errors: List[Exception] = []

        writer = ReportWriter(out, progress=self.progress)
        writer.write_header()
        writer_thread = threading.Thread(
            target=writer.write_rows, args=(self._drain(results),), name="chkmd-writer"
        )
        writer_thread.start()

        producer = threading.Thread(
            target=self._produce, args=(root, paths, scan_stats, scan_errors), name="chkmd-scanner"
        )
        producer.start()

        logging.info(f"Checking {root} with {self.workers} workers")
        stats = RunStatistics()
        try:
            with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="chkmd-worker") as pool:
                futures = [pool.submit(self._work, paths, results) for _ in range(self.workers)]
                # Completion barrier: all workers are done before the writer is told to stop
                for future in futures:
                    stats.merge(future.result())
        finally:
            results.put(_DONE)
            writer_thread.join()
            producer.join()

        stats.merge(scan_stats)
        if scan_errors:
            raise scan_errors[0]
        return stats

    def process(self, path: Path, stats: RunStatistics) -> List[str]:
        """Produces the report row for one file and counts it as accepted or rejected."""
        try:
            record = self.extractor.read(path)
            fields = ResolvedFields.resolve(record, self.config.mime_types)
            result = classify(fields)
            row = make_row(str(path), fields, result)
        except MetadataExtractionError as e:
            logging.debug(f"Error processing {path}: {e}")
            result = classify(None, e)
            row = make_error_row(str(path), result.reason)
        except Exception as e:
            logging.exception(f"Unexpected error processing {path}")
            result = classify(None, e)
            row = make_error_row(str(path), result.reason)

        self._count(result, stats)
        return row

    def _count(self, result: ClassificationResult, stats: RunStatistics):
        # Incomplete files count as rejects too
        if result.status is Status.ACCEPTED:
            stats.accept += 1
        else:
            stats.reject += 1

    def _produce(self, root: Path, paths: queue.Queue, stats: RunStatistics, errors: List[Exception]):
        try:
            for path in self.scanner.scan(root, stats):
                paths.put(path)
        except Exception as e:
            logging.error(f"Scan of {root} failed: {e}")
            errors.append(e)
        finally:
            # One marker per worker so each of them stops
            for _ in range(self.workers):
                paths.put(_DONE)

    def _work(self, paths: queue.Queue, results: queue.Queue) -> RunStatistics:
        stats = RunStatistics()
        while True:
            path = paths.get()
            if path is _DONE:
                return stats
            results.put(self.process(path, stats))

    def _drain(self, results: queue.Queue) -> Iterator[List[str]]:
        while True:
            row = results.get()
            if row is _DONE:
                return
            yield row
