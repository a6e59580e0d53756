"""Solve the Aguiar-Gopinath default model and save the solution arrays.

Workflow:
1) build the calibration for the chosen shock mode,
2) optionally load the lender's stochastic discount factor,
3) solve by value-function iteration,
4) print diagnostics and write the arrays to ./output.
"""

import argparse
from pathlib import Path

import numpy as np

from ag_default import (
    AGDefaultConfig,
    AGDefaultModel,
    DebtGridConfig,
    SolverConfig,
    default_long_run_risk,
)


def build_default_config(
    mode: str = "permanent",
    n_a: int = 400,
    max_iter: int = 10000,
    risk_averse: bool = False,
) -> AGDefaultConfig:
    """Quarterly AG06 calibration for ``mode``.

    With ``risk_averse`` the lender's long-run-risk state ``x`` is added, so
    a discount factor table on ``x`` can be used for pricing.
    """
    a_min = -0.22 if mode == "permanent" else -0.3
    return AGDefaultConfig(
        mode=mode,
        long_run_risk=default_long_run_risk() if risk_averse else None,
        debt=DebtGridConfig(n=n_a, a_min=a_min, a_max=0.0),
        solver=SolverConfig(tol=1e-6, max_iter=max_iter, report_every=20),
    )


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--mode", default="permanent", help="permanent, transitory or complete")
    parser.add_argument("--n-a", type=int, default=400, help="number of debt grid points")
    parser.add_argument("--max-iter", type=int, default=10000)
    parser.add_argument(
        "--sdf",
        default=None,
        help=".npy file with the lender's discount factors on the long-run-risk grid",
    )
    parser.add_argument(
        "--output",
        default=str(Path(__file__).resolve().parent / "output"),
        help="directory for the .npz solution archive",
    )
    parser.add_argument("--quiet", action="store_true")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    """Solve the model, print diagnostics, and save the solution."""
    args = parse_args(argv)
    risk_averse = args.sdf is not None
    config = build_default_config(
        mode=args.mode, n_a=args.n_a, max_iter=args.max_iter, risk_averse=risk_averse
    )

    sdf = np.load(args.sdf) if risk_averse else None
    model = AGDefaultModel(config=config, sdf=sdf)
    result = model.solve(verbose=not args.quiet)

    snap = result.snapshot
    print(f"States: {model.index} | debt points: {result.a_grid.shape[0]}")
    print(f"Lender: {'risk-averse (SDF from ' + args.sdf + ')' if risk_averse else 'risk-neutral'}")
    print(f"Iterations: {result.iterations} | final diff: {result.error:.3e} | converged: {result.converged}")
    print(f"Share of (state, debt) pairs in default: {result.default_share:.4f}")
    print(f"Bond price range: [{snap.price.min():.4f}, {snap.price.max():.4f}]")

    repay = ~snap.default
    if repay.any():
        print(f"Largest debt issued while in good standing: {np.min(result.policy_asset[repay]):.4f}")

    suffix = "_ra" if risk_averse else ""
    path = result.save(Path(args.output) / f"ag_solution_{config.mode}{suffix}.npz")
    print(f"Solution arrays saved to {path.resolve()}")


if __name__ == "__main__":
    main()
