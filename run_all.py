"""
Run the multi-pendulum trail animation
"""

import argparse
import logging

import animator
import simulator
from errors import ConfigurationError
from logging_config import setup_logging
from parameters import describe, load_parameters


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Animate a chain of pendulums and trace its tip.")
    parser.add_argument(
        "query", nargs="?", default="",
        help='parameters as a query string, e.g. "pendulums=4&speed=0.02" or "random"',
    )
    parser.add_argument("--save-video", metavar="FILE", help="export a video instead of opening a window")
    parser.add_argument("--frames", type=int, default=3600, help="ticks to export with --save-video")
    parser.add_argument("--headless", type=int, metavar="TICKS", help="run TICKS ticks without drawing")
    parser.add_argument("--output", metavar="FILE", help="trajectory file (.npz) for --headless")
    parser.add_argument("--seed", type=int, help="seed for random parameters")
    parser.add_argument("--fps", type=int, default=60)
    parser.add_argument("--verbose", action="store_true")
    parser.add_argument("--log-file")
    return parser


def main(argv=None) -> int:
    """
    Complete pipeline:
    1. Resolve the run parameters
    2. Animate live, export a video, or run headless
    """
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)

    print("=" * 60)
    print("MULTI-PENDULUM TRAIL")
    print("=" * 60)
    print()

    try:
        config = load_parameters(args.query, seed=args.seed)
    except ConfigurationError as err:
        print(f"Error: {err}")
        return 2

    print("Configuration:")
    for line in describe(config):
        print(line)
    print()

    try:
        if args.headless is not None:
            simulator.simulate_chain(config, ticks=args.headless, output=args.output, fps=args.fps)
        else:
            animator.animate_pendulum(
                query=args.query,
                save_video=args.save_video is not None,
                video_filename=args.save_video or "pendulum_trail.mp4",
                frames=args.frames,
                fps=args.fps,
                seed=args.seed,
                config=config,
            )
    except ConfigurationError as err:
        print(f"Error: {err}")
        return 2
    print()

    print("=" * 60)
    print("COMPLETE!")
    print("=" * 60)
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
