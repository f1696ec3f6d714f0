import argparse
import itertools
import subprocess
import sys
import json
from pathlib import Path
from datetime import datetime


def run_experiment(input_dir: str, parallelism: int, interval: int, strategy: str,
                   duration: int, output_dir: str) -> dict:
    """
    Run loggen once with the given parameters.

    Returns:
        Dictionary with experiment results
    """
    exp_id = f"p{parallelism}_t{interval}_{strategy}"
    replay_dir = f"{output_dir}/replay_{exp_id}"
    metrics_file = f"{output_dir}/metrics_{exp_id}.csv"

    print(f"\n{'='*60}")
    print(f"[TEST] Experiment: {exp_id}")
    print(f"   Parallelism: {parallelism}, Interval: {interval}ms, Strategy: {strategy}")
    print(f"{'='*60}")

    cmd = [
        sys.executable, '-m', 'loggen',
        '--in-base-dir', input_dir,
        '--out-base-dir', replay_dir,
        '--parallelism', str(parallelism),
        '--interval', str(interval),
        '--strategy', strategy,
        '--run-time', str(duration),
        '--metrics', metrics_file,
        '--metrics-interval', '1',
    ]

    start = datetime.now()
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=duration+30)
        success = result.returncode == 0
    except subprocess.TimeoutExpired:
        success = False

    end = datetime.now()

    return {
        'exp_id': exp_id,
        'parallelism': parallelism,
        'interval': interval,
        'strategy': strategy,
        'duration': duration,
        'success': success,
        'start_time': start.isoformat(),
        'end_time': end.isoformat(),
        'replay_dir': replay_dir,
        'metrics_file': metrics_file
    }


def main():
    parser = argparse.ArgumentParser(description='Run loggen experiment grid')
    parser.add_argument('--input', required=True, help='Input sample directory')
    parser.add_argument('--parallelism', nargs='+', type=int, default=[1, 2, 4],
                       help='Worker counts to test')
    parser.add_argument('--intervals', nargs='+', type=int, default=[10, 50, 250],
                       help='Tick intervals (ms) to test')
    parser.add_argument('--strategies', nargs='+', default=['append'],
                       choices=['truncate', 'append', 'rotate'],
                       help='Wrap strategies to test')
    parser.add_argument('--duration', type=int, default=30,
                       help='Duration per experiment')
    parser.add_argument('--output-dir', default='results',
                       help='Output directory')

    args = parser.parse_args()

    Path(args.output_dir).mkdir(parents=True, exist_ok=True)

    combinations = list(itertools.product(args.parallelism, args.intervals, args.strategies))

    print(f"\n[*] Running {len(combinations)} experiments...")
    print(f"   Parallelism: {args.parallelism}")
    print(f"   Intervals: {args.intervals}")
    print(f"   Strategies: {args.strategies}")
    print(f"   Duration: {args.duration}s per experiment")

    results = []

    for i, (parallelism, interval, strategy) in enumerate(combinations, 1):
        print(f"\n[{i}/{len(combinations)}] ", end='')

        result = run_experiment(
            args.input, parallelism, interval, strategy,
            args.duration, args.output_dir
        )

        results.append(result)

    summary_file = f"{args.output_dir}/experiments_summary.json"
    with open(summary_file, 'w') as f:
        json.dump(results, f, indent=2)

    print(f"\n{'='*60}")
    print(f"[OK] All experiments complete!")
    print(f"[*] Summary saved to: {summary_file}")
    print(f"{'='*60}")

    successful = sum(1 for r in results if r['success'])
    print(f"\nSuccess rate: {successful}/{len(results)} experiments")


if __name__ == '__main__':
    main()
