# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Tessera Command Line Interface

    tessera --version
    tessera ops
    tessera run model.pnnx.param model.pnnx.bin --shape 1 3 224 224
"""

from __future__ import annotations

import argparse
import sys

import numpy as np


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tessera",
        description="Tessera - dataflow inference runtime",
    )

    parser.add_argument(
        "--version",
        "-v",
        action="store_true",
        help="Show version information",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("ops", help="List registered layer types")

    run_parser = subparsers.add_parser(
        "run",
        help="Build a model and run one forward pass on an all-ones input",
    )
    run_parser.add_argument("param", help="Topology (.param) file")
    run_parser.add_argument("bin", help="Weights (.bin) archive")
    run_parser.add_argument(
        "--input",
        default="pnnx_input_0",
        help="Input node name (default: pnnx_input_0)",
    )
    run_parser.add_argument(
        "--output",
        default="pnnx_output_0",
        help="Output node name (default: pnnx_output_0)",
    )
    run_parser.add_argument(
        "--shape",
        type=int,
        nargs="+",
        required=True,
        help="Input shape including batch, e.g. 1 3 224 224 or 4 10",
    )
    run_parser.add_argument(
        "--debug",
        action="store_true",
        help="Time every layer and print a summary",
    )
    return parser


def main(argv=None):
    """Main entry point for Tessera CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        from tessera import __version__

        print(f"Tessera v{__version__}")
        return 0

    if args.command == "ops":
        return _run_ops()

    if args.command == "run":
        return _run_model(args)

    # Default: show help
    parser.print_help()
    return 0


def _run_ops():
    from tessera.execution import LayerRegistry
    from tessera.execution import operators  # noqa: F401

    for op_type in LayerRegistry.list_operators():
        print(op_type)
    return 0


def _run_model(args):
    from tessera.config import RuntimeConfig
    from tessera.core import Shape
    from tessera.errors import TesseraError
    from tessera.runtime import RuntimeGraph

    shape = Shape(list(args.shape))
    try:
        sample = shape.sample_shape()
    except ValueError:
        print(f"Error: input shape must have rank 2 or 4, got {shape.dims}")
        return 1

    config = RuntimeConfig.from_env()
    config.debug = config.debug or args.debug
    config.apply_logging()

    try:
        graph = RuntimeGraph(args.param, args.bin, config=config)
        graph.build(args.input, args.output)
        inputs = [np.ones(sample, dtype=np.float32) for _ in range(shape.batch)]
        outputs = graph.forward(inputs)
    except TesseraError as err:
        print(f"Error: {err}")
        return 1

    for i, output in enumerate(outputs):
        print(f"output[{i}]: shape={tuple(output.shape)} "
              f"min={output.min():.6f} max={output.max():.6f}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
