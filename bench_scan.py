import argparse
import io
import json
import time
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional

from chkmd.config import load_config
from chkmd.core import IngestPipeline


def run_once(src: Path, workers: int, config_path: Optional[Path], extractor=None) -> float:
    cfg = load_config(config_path)
    pipeline = IngestPipeline(cfg, extractor=extractor, workers=workers)
    sink = io.StringIO()
    t0 = time.perf_counter()
    pipeline.run(src, sink)
    return time.perf_counter() - t0


def benchmark(src: Path, workers: Iterable[int], repeats: int, config_path: Optional[Path], out_file: Path, extractor=None):
    worker_list = list(workers)
    results = []
    for w in worker_list:
        warm_avg: Optional[float] = None
        times: List[float] = [run_once(src, w, config_path, extractor) for _ in range(repeats)]
        cold = times[0]
        warm_runs = times[1:]
        if warm_runs:
            warm_avg = sum(warm_runs) / len(warm_runs)
            print(f"{w} workers: {cold:.2f}s (cold), avg warm over {len(warm_runs)} runs: {warm_avg:.2f}s")
        else:
            print(f"{w} workers: {cold:.2f}s (single run)")
        results.append(
            {
                "workers": w,
                "times": times,
                "cold": cold,
                "warm_avg": warm_avg,
            }
        )

    out_file.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "timestamp": datetime.now().isoformat(),
        "src": str(src),
        "config": str(config_path) if config_path else None,
        "repeats": repeats,
        "workers": worker_list,
        "results": results,
    }
    out_file.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    print(f"Wrote results to {out_file}")


def parse_args():
    p = argparse.ArgumentParser(description="Benchmark the chkmd pipeline with different worker counts.")
    p.add_argument("src", type=Path, help="Directory to check")
    p.add_argument("--workers", type=int, nargs="+", default=[1, 2, 4, 8], help="Worker counts to test")
    p.add_argument("--repeats", type=int, default=3, help="Runs per worker; first is treated as cold")
    p.add_argument("-c", "--config", type=Path, default=None, help="chkmd YAML config file")
    p.add_argument("--output", type=Path, default=Path("bench_scan_results.json"), help="Path to write JSON results")
    return p.parse_args()


def main():
    args = parse_args()
    benchmark(args.src, args.workers, args.repeats, args.config, args.output)


if __name__ == "__main__":
    main()
