import argparse
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns
from pathlib import Path
import glob


sns.set_style("whitegrid")
sns.set_palette("husl")


def _label(metrics_file: str) -> str:
    return Path(metrics_file).stem.replace('metrics_', '').replace('_', ' ')


def plot_throughput(metrics_files: list, output_dir: str):
    """Plot replay throughput over time for all runs."""
    plt.figure(figsize=(14, 6))

    for metrics_file in metrics_files:
        df = pd.read_csv(metrics_file)
        plt.plot(df['runtime_sec'], df['throughput_lps'], label=_label(metrics_file), marker='o', alpha=0.7)

    plt.xlabel('Runtime (seconds)', fontsize=12)
    plt.ylabel('Throughput (lines/sec)', fontsize=12)
    plt.title('Replay Throughput Over Time', fontsize=14, fontweight='bold')
    plt.legend(bbox_to_anchor=(1.05, 1), loc='upper left')
    plt.grid(True, alpha=0.3)
    plt.tight_layout()
    plt.savefig(f"{output_dir}/throughput.png", dpi=300, bbox_inches='tight')
    print(f"✅ Saved: {output_dir}/throughput.png")
    plt.close()


def plot_lines_written(metrics_files: list, output_dir: str):
    """Plot cumulative lines written."""
    plt.figure(figsize=(14, 6))

    for metrics_file in metrics_files:
        df = pd.read_csv(metrics_file)
        plt.plot(df['runtime_sec'], df['lines_written'], label=_label(metrics_file),
                 marker='o', linewidth=2, alpha=0.7)

    plt.xlabel('Runtime (seconds)', fontsize=12)
    plt.ylabel('Cumulative Lines', fontsize=12)
    plt.title('Lines Written Over Time', fontsize=14, fontweight='bold')
    plt.legend(bbox_to_anchor=(1.05, 1), loc='upper left')
    plt.grid(True, alpha=0.3)
    plt.tight_layout()
    plt.savefig(f"{output_dir}/lines_written.png", dpi=300, bbox_inches='tight')
    print(f"✅ Saved: {output_dir}/lines_written.png")
    plt.close()


def plot_resource_usage(metrics_files: list, output_dir: str):
    """Plot CPU, memory and open file handles."""
    fig, axes = plt.subplots(1, 3, figsize=(20, 5))

    for metrics_file in metrics_files:
        df = pd.read_csv(metrics_file)
        label = _label(metrics_file)

        axes[0].plot(df['runtime_sec'], df['cpu_percent'],
                    label=label, marker='o', alpha=0.7)
        axes[1].plot(df['runtime_sec'], df['memory_mb'],
                    label=label, marker='o', alpha=0.7)
        axes[2].plot(df['runtime_sec'], df['open_files'],
                    label=label, marker='o', alpha=0.7)

    titles = [('CPU %', 'CPU Utilization'), ('Memory (MB)', 'Memory Usage'),
              ('Open Files', 'Open File Handles')]
    for ax, (ylabel, title) in zip(axes, titles):
        ax.set_xlabel('Runtime (seconds)', fontsize=11)
        ax.set_ylabel(ylabel, fontsize=11)
        ax.set_title(title, fontsize=12, fontweight='bold')
        ax.legend()
        ax.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig(f"{output_dir}/resource_usage.png", dpi=300)
    print(f"✅ Saved: {output_dir}/resource_usage.png")
    plt.close()


def plot_scalability(metrics_dir: str, output_dir: str):
    """Plot parallelism vs throughput, one line per interval."""
    # Files written by run_experiments.py: metrics_p{P}_t{T}_{strategy}.csv
    metrics_files = glob.glob(f"{metrics_dir}/metrics_p*.csv")

    if not metrics_files:
        print("⚠️  No structured metrics files found for scalability plot")
        print("    Expected format: metrics_p{parallelism}_t{interval}_{strategy}.csv")
        return

    data = []
    for metrics_file in metrics_files:
        try:
            df = pd.read_csv(metrics_file)
            parts = Path(metrics_file).stem.replace('metrics_', '').split('_')

            # Average throughput from last 50% of run
            mid = len(df) // 2
            data.append({
                'parallelism': int(parts[0][1:]),
                'interval': int(parts[1][1:]),
                'strategy': parts[2],
                'avg_throughput': df['throughput_lps'].iloc[mid:].mean(),
            })
        except (KeyError, IndexError, ValueError) as e:
            print(f"⚠️  Error processing {metrics_file}: {e}")
            continue

    if not data:
        print("⚠️  No valid data for scalability plot")
        return

    df = pd.DataFrame(data)

    plt.figure(figsize=(10, 6))
    for interval in sorted(df['interval'].unique()):
        subset = df[df['interval'] == interval].groupby('parallelism')['avg_throughput'].mean()
        plt.plot(subset.index, subset.values, marker='o', linewidth=2,
                 markersize=8, label=f'Interval: {interval}ms')

    plt.xlabel('Parallelism', fontsize=11)
    plt.ylabel('Average Throughput (lines/sec)', fontsize=11)
    plt.title('Scalability: Parallelism vs Throughput', fontsize=12, fontweight='bold')
    plt.legend()
    plt.grid(True, alpha=0.3)
    plt.tight_layout()
    plt.savefig(f"{output_dir}/scalability.png", dpi=300)
    print(f"✅ Saved: {output_dir}/scalability.png")
    plt.close()


def generate_summary_report(metrics_files: list, output_dir: str):
    """Generate a summary report comparing all runs."""
    summary_data = []

    for metrics_file in metrics_files:
        df = pd.read_csv(metrics_file)
        if df.empty:
            continue

        mid = len(df) // 2
        summary_data.append({
            'Run': _label(metrics_file),
            'Avg Throughput': f"{df['throughput_lps'].iloc[mid:].mean():.1f}",
            'Max Throughput': f"{df['throughput_lps'].max():.1f}",
            'Avg CPU %': f"{df['cpu_percent'].mean():.1f}",
            'Max Memory (MB)': f"{df['memory_mb'].max():.1f}",
            'Max Open Files': df['open_files'].max(),
            'Total Lines': df['lines_written'].iloc[-1],
        })

    summary_df = pd.DataFrame(summary_data)
    summary_df.to_csv(f"{output_dir}/summary_report.csv", index=False)

    with open(f"{output_dir}/summary_report.txt", 'w') as f:
        f.write("="*80 + "\n")
        f.write("LOGGEN REPLAY SUMMARY\n")
        f.write("="*80 + "\n\n")
        f.write(summary_df.to_string(index=False))
        f.write("\n\n" + "="*80 + "\n")

    print(f"✅ Saved: {output_dir}/summary_report.csv")
    print(f"✅ Saved: {output_dir}/summary_report.txt")

    print("\n" + "="*80)
    print("REPLAY SUMMARY")
    print("="*80)
    print(summary_df.to_string(index=False))
    print("="*80 + "\n")


def main():
    parser = argparse.ArgumentParser(description='Generate replay metrics plots')
    parser.add_argument('--metrics-dir', default='results',
                       help='Directory with metrics CSV files')
    parser.add_argument('--output-dir', default='results/plots',
                       help='Output directory for plots')

    args = parser.parse_args()

    Path(args.output_dir).mkdir(parents=True, exist_ok=True)

    metrics_files = glob.glob(f"{args.metrics_dir}/*metrics*.csv")

    if not metrics_files:
        print(f"❌ No metrics files found in {args.metrics_dir}")
        print(f"   Looking for files matching: *metrics*.csv")
        return

    print(f"\n{'='*80}")
    print(f"LOGGEN METRICS VISUALIZATION")
    print(f"{'='*80}")
    print(f"📊 Found {len(metrics_files)} run(s)")
    print(f"📁 Output directory: {args.output_dir}")
    print(f"{'='*80}\n")

    print("Generating plots...")
    plot_throughput(metrics_files, args.output_dir)
    plot_lines_written(metrics_files, args.output_dir)
    plot_resource_usage(metrics_files, args.output_dir)
    plot_scalability(args.metrics_dir, args.output_dir)

    print("\nGenerating summary report...")
    generate_summary_report(metrics_files, args.output_dir)

    print(f"\n{'='*80}")
    print(f"✅ All visualizations saved to: {args.output_dir}")
    print(f"{'='*80}\n")


if __name__ == '__main__':
    main()
