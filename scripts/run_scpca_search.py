#!/usr/bin/env python3
"""
Run a sparse contrastive PCA search on CSV inputs and print the selection.

Both files hold one observation per row and the same variables as columns
(a header row is expected). Nothing is written to disk.

Usage:
    python scripts/run_scpca_search.py target.csv background.csv --n-centers 4
    python scripts/run_scpca_search.py target.csv background.csv \\
        --contrasts 0 1 10 100 --penalties 0 0.5 1 --cv-folds 5 --parallel
"""

import argparse
import sys
from pathlib import Path

# Allow running from project root or scripts/ directory
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pandas as pd

from scpca import ScpcaError, SearchConfig, search_with_config
from scpca.utils.logging_config import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Sparse contrastive PCA hyperparameter search")
    parser.add_argument("target", type=Path, help="CSV file with the target data")
    parser.add_argument("background", type=Path, help="CSV file with the background data")
    parser.add_argument("--contrasts", type=float, nargs="+", default=None,
                        help="Contrast values (default: 40 log-spaced values in [0.1, 1000])")
    parser.add_argument("--penalties", type=float, nargs="+", default=None,
                        help="Penalty values (default: 20 values in [0.05, 1])")
    parser.add_argument("--n-centers", type=int, default=None, help="Number of clusters")
    parser.add_argument("--n-components", type=int, default=None, help="Number of components")
    parser.add_argument("--scale", action="store_true", help="Scale variables to unit variance")
    parser.add_argument("--no-center", action="store_true", help="Do not centre variables")
    parser.add_argument("--cv-folds", type=int, default=None, help="Cross-validation folds")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--clust-method", choices=["kmeans", "hclust"], default=None)
    parser.add_argument("--linkage", choices=["ward", "complete", "average", "single"], default=None)
    parser.add_argument("--parallel", action="store_true", help="Use a thread pool")
    parser.add_argument("--n-workers", type=int, default=None, help="Thread pool size")
    parser.add_argument("--top", type=int, default=10, help="Rows of the ranked table to print")
    parser.add_argument("--log-level", default=None, help="Logging level (default: SCPCA_LOG_LEVEL or INFO)")
    return parser


def config_from_args(args: argparse.Namespace) -> SearchConfig:
    """Environment defaults (SCPCA_*), overridden by explicit flags."""
    overrides = {
        "n_centers": args.n_centers,
        "n_components": args.n_components,
        "cv_folds": args.cv_folds,
        "seed": args.seed,
        "clust_method": args.clust_method,
        "linkage": args.linkage,
        "n_workers": args.n_workers,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if args.scale:
        overrides["scale"] = True
    if args.no_center:
        overrides["center"] = False
    if args.parallel:
        overrides["parallel"] = True
    return SearchConfig.from_env(**overrides)


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    cfg = config_from_args(args)

    target = pd.read_csv(args.target)
    background = pd.read_csv(args.background)
    print(f"Target: {target.shape}, background: {background.shape}")

    try:
        result = search_with_config(
            target, background, cfg, contrasts=args.contrasts, penalties=args.penalties
        )
    except ScpcaError as e:
        print(f"ERROR: {type(e).__name__}: {e}")
        return 1

    print("=" * 60)
    print(f"Selected contrast: {result.contrast:g}")
    print(f"Selected penalty:  {result.penalty:g}")
    print(f"Score:             {result.score:.4f}")
    print(f"Grid points:       {result.n_grid_points}")
    nonzero = (result.loadings != 0).any(axis=1)
    kept = [str(c) for c, keep in zip(target.columns, nonzero) if keep]
    print(f"Variables used:    {len(kept)}/{len(target.columns)}")
    if result.table is not None:
        print("\nRanked solutions:")
        print(result.table.head(args.top).drop(columns=["members"]).to_string(index=False))
    if result.warnings:
        print(f"\n{len(result.warnings)} warning(s):")
        for w in result.warnings:
            print(f"  - {w}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
