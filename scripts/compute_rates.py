import argparse
import csv
import json
import numpy as np


def compute_rates(metrics_file: str, output_file: str = None):
    """
    Compute per-sample write rate statistics from a loggen metrics CSV.

    Args:
        metrics_file: CSV written by loggen --metrics
        output_file: Optional output JSON file
    """
    print(f"[*] Computing rates from: {metrics_file}")

    with open(metrics_file, newline='') as f:
        rows = list(csv.DictReader(f))

    if len(rows) < 2:
        print("[WARNING] Need at least two samples to compute rates")
        return

    runtime = np.array([float(r['runtime_sec']) for r in rows])
    lines = np.array([int(r['lines_written']) for r in rows])

    # Lines/sec between consecutive samples
    elapsed = np.diff(runtime)
    valid = elapsed > 0
    rates = np.diff(lines)[valid] / elapsed[valid]

    if rates.size == 0:
        print("[WARNING] No usable samples found")
        return

    stats = {
        'samples': int(rates.size),
        'total_lines': int(lines[-1]),
        'mean': float(np.mean(rates)),
        'median': float(np.median(rates)),
        'std': float(np.std(rates)),
        'min': float(np.min(rates)),
        'max': float(np.max(rates)),
        'p5': float(np.percentile(rates, 5)),
        'p50': float(np.percentile(rates, 50)),
        'p95': float(np.percentile(rates, 95)),
    }

    print("\nWrite Rate Statistics (lines/sec):")
    print(f"  Samples: {stats['samples']:,}")
    print(f"  Total lines: {stats['total_lines']:,}")
    print(f"  Mean:  {stats['mean']:.2f}")
    print(f"  Median: {stats['median']:.2f}")
    print(f"  Std:   {stats['std']:.2f}")
    print(f"  Min:   {stats['min']:.2f}")
    print(f"  Max:   {stats['max']:.2f}")
    print(f"  P5:    {stats['p5']:.2f}")
    print(f"  P95:   {stats['p95']:.2f}")

    if output_file:
        with open(output_file, 'w') as f:
            json.dump(stats, f, indent=2)
        print(f"\n[OK] Saved to: {output_file}")

    return stats


def main():
    parser = argparse.ArgumentParser(description='Compute write rate statistics')
    parser.add_argument('--metrics', required=True, help='Metrics CSV file')
    parser.add_argument('--output', help='Output JSON file')

    args = parser.parse_args()

    compute_rates(args.metrics, args.output)


if __name__ == '__main__':
    main()
