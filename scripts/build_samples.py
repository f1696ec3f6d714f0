import argparse
import random
from pathlib import Path


def build_samples(input_file: str, output_dir: str, files: int, lines: int,
                  groups: int = 1, seed: int = 0):
    """
    Split a raw log into a tree of sample files for loggen to replay.

    Files are spread over ``groups`` subdirectories (group_0, group_1, ...)
    so the output tree exercises directory mirroring.

    Args:
        input_file: Raw log file
        output_dir: Root of the sample tree to create
        files: Number of sample files
        lines: Lines per sample file (0 = split everything evenly)
        groups: Number of subdirectories
        seed: Random seed for line selection
    """
    print(f"📄 Building samples from: {input_file}")

    with open(input_file, 'r', encoding='utf-8', errors='ignore') as f:
        all_lines = [line.rstrip('\r\n') for line in f if line.strip()]

    if not all_lines:
        print("❌ Error: Input file has no lines")
        return

    print(f"  📊 Read {len(all_lines):,} lines")

    rng = random.Random(seed)
    per_file = lines if lines > 0 else max(1, len(all_lines) // files)

    root = Path(output_dir)
    for i in range(files):
        group = root / f"group_{i % groups}"
        group.mkdir(parents=True, exist_ok=True)

        # Contiguous slice keeps the original ordering within a sample
        start = rng.randrange(0, max(1, len(all_lines) - per_file + 1))
        chunk = all_lines[start:start + per_file]

        with open(group / f"sample_{i:03d}.log", 'w') as f:
            for line in chunk:
                f.write(line + '\n')

    print(f"\n  ✅ Wrote {files} sample files ({per_file:,} lines max each) under: {output_dir}")


def main():
    parser = argparse.ArgumentParser(description='Split a raw log into a loggen sample tree')
    parser.add_argument('--input', required=True, help='Input log file')
    parser.add_argument('--output-dir', required=True, help='Sample tree root')
    parser.add_argument('--files', type=int, default=8, help='Number of sample files')
    parser.add_argument('--lines', type=int, default=1000,
                       help='Lines per sample (0=split evenly)')
    parser.add_argument('--groups', type=int, default=2, help='Number of subdirectories')
    parser.add_argument('--seed', type=int, default=0, help='Random seed')

    args = parser.parse_args()

    if not Path(args.input).exists():
        print(f"❌ Error: Input file not found: {args.input}")
        return

    if args.files < 1 or args.groups < 1:
        print("❌ Error: --files and --groups must be at least 1")
        return

    build_samples(args.input, args.output_dir, args.files, args.lines, args.groups, args.seed)


if __name__ == '__main__':
    main()
