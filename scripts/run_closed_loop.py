"""
Closed-loop MPC demo on a fixed cubic reference path.

The vehicle is simulated with the same kinematic model the controller uses.
Each step the MPC is solved from the current state, the first command is
applied for one timestep, and the loop repeats.  When a solve fails the
previous command is held.

Run from the repo root:
    python scripts/run_closed_loop.py
    python scripts/run_closed_loop.py --coeffs 0 0.1 0 0 --y -2 --steps 50
    python scripts/run_closed_loop.py --config_path scripts/configs/default.json --debug
"""

import sys
import os
import logging
import argparse
import time

# Ensure repo root is on the path so pathmpc is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from pathmpc import MPC, MPCConfig, PathModel, VehicleState, setup_logging
from pathmpc.model import kinematic_function, step

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="""
    Runs the MPC path tracker in closed loop against its own kinematic model
    and logs the applied commands.
         """, formatter_class=argparse.RawTextHelpFormatter)

    parser.add_argument("--config_path",
                        type=str,
                        default=None,
                        help="path to a JSON file of MPCConfig fields")
    parser.add_argument("--steps",
                        type=int,
                        default=30,
                        help="number of control cycles to run")
    parser.add_argument("--coeffs",
                        type=float,
                        nargs=4,
                        default=[0.0, 0.0, 0.0, 0.0],
                        help="reference path coefficients, lowest order first")
    parser.add_argument("--x", type=float, default=0.0)
    parser.add_argument("--y", type=float, default=0.0)
    parser.add_argument("--psi", type=float, default=0.0)
    parser.add_argument("--v", type=float, default=10.0)
    parser.add_argument("--debug",
                        action="store_true",
                        default=False,
                        help="whether to display debugging messages")
    parser.add_argument("--save_log_path",
                        type=str,
                        default=None,
                        help="directory to write a log file into")
    return parser.parse_args()


def main():
    args = parse_args()
    setup_logging(main_logger=logger, debug=args.debug, log_path=args.save_log_path)

    config = MPCConfig.from_json(args.config_path) if args.config_path else MPCConfig()
    path = PathModel(args.coeffs)
    mpc = MPC(config)
    model = kinematic_function(config.dt, config.lf)

    logger.info(f"Running {args.steps} cycles, N={config.horizon}, dt={config.dt}, path={path}")

    x, y, psi, v = args.x, args.y, args.psi, args.v
    command = (0.0, 0.0)
    n_failed = 0
    for k in range(args.steps):
        state = VehicleState(x=x, y=y, psi=psi, v=v,
                             cte=path.cross_track_error(x, y),
                             epsi=path.heading_error(x, psi))

        t_start = time.time()
        result = mpc.solve(state, path)
        t_solve = time.time() - t_start

        if result.success:
            command = result.actuation
            status = "OK"
        else:
            n_failed += 1
            status = f"FAILED({result.status}), holding previous command"

        logger.info(f"[Step {k:4d}] cte={state.cte:+.3f} epsi={state.epsi:+.3f} v={v:.2f} | "
                    f"delta={command[0]:+.4f} a={command[1]:+.3f} | {status} ({t_solve * 1000:.1f}ms)")

        x, y, psi, v, _, _ = step(state, command[0], command[1], path,
                                  config.dt, config.lf, function=model)

    final_cte = path.cross_track_error(x, y)
    logger.info(f"Finished: x={x:.2f} y={y:.2f} v={v:.2f} cte={final_cte:+.3f}, "
                f"{n_failed} failed solves")
    return 0 if n_failed == 0 else 1


if __name__ == '__main__':
    sys.exit(main())
