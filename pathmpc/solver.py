"""Nonlinear programming backend.

The controller only talks to :class:`NLPSolver`; the problem it hands over is
a set of CasADi expressions so any AD-capable backend can consume it.
:class:`IpoptSolver` is the default implementation (CasADi + IPOPT).
"""

import logging
import time
from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np
import casadi as ca

from pathmpc.assembler import NonlinearProgram, ProblemBounds

logger = logging.getLogger(__name__)


@dataclass
class Solution:
    """Outcome of one solve."""
    success: bool
    status: str                  # Solver return status
    cost: float                  # Objective value (nan if unavailable)
    x: np.ndarray                # Decision vector
    iterations: int = 0
    solve_time: float = 0.0      # Wall-clock seconds


class NLPSolver:
    """Interface of a constrained nonlinear programming backend."""

    def solve(self, nlp: NonlinearProgram, bounds: ProblemBounds,
              x0: np.ndarray, parameters: np.ndarray) -> Solution:
        """Solve ``nlp`` with the given bounds, starting point and parameters.

        Non-convergence is reported through ``Solution.success``, never raised.
        """
        raise NotImplementedError


class IpoptSolver(NLPSolver):
    """CasADi ``nlpsol`` with IPOPT.

    The compiled solver is cached per program, so repeated solves of the same
    program only pay for the IPOPT iterations.

    Args:
        max_cpu_time: IPOPT CPU time budget per solve (s).
        print_level: IPOPT verbosity (0 is silent).
        options: Extra IPOPT options, without the ``ipopt.`` prefix.
    """

    DEFAULTS = {
        'max_cpu_time': 0.5,
        'print_level': 0,
        'sb': 'yes',
    }

    def __init__(self,
                 max_cpu_time: float = 0.5,
                 print_level: int = 0,
                 options: Optional[Dict] = None):
        self._ipopt_options = dict(self.DEFAULTS)
        self._ipopt_options['max_cpu_time'] = max_cpu_time
        self._ipopt_options['print_level'] = print_level
        if options is not None:
            self._ipopt_options.update(options)

        self._cached_nlp: Optional[NonlinearProgram] = None
        self._cached_solver: Optional[ca.Function] = None

    @classmethod
    def from_config(cls, config) -> "IpoptSolver":
        return cls(max_cpu_time=config.max_cpu_time,
                   print_level=config.print_level,
                   options=config.solver_options)

    @property
    def options(self) -> Dict:
        return dict(self._ipopt_options)

    def solve(self, nlp: NonlinearProgram, bounds: ProblemBounds,
              x0: np.ndarray, parameters: np.ndarray) -> Solution:
        solver = self._compile(nlp)

        t_start = time.time()
        try:
            result = solver(x0=x0, lbx=bounds.lbx, ubx=bounds.ubx,
                            lbg=bounds.lbg, ubg=bounds.ubg, p=parameters)
        except RuntimeError as e:
            logger.warning("NLP solver raised: %s", e)
            return Solution(success=False, status="Exception", cost=float("nan"),
                            x=np.asarray(x0, dtype=float).copy(),
                            solve_time=time.time() - t_start)
        solve_time = time.time() - t_start

        stats = solver.stats()
        success = bool(stats.get('success', False))
        status = str(stats.get('return_status', 'unknown'))
        iterations = int(stats.get('iter_count', 0))

        x = np.asarray(result['x'].full(), dtype=float).ravel()
        cost = float(result['f'])

        logger.debug("IPOPT: %s after %d iterations (%.1fms)",
                     status, iterations, solve_time * 1000)
        return Solution(success=success, status=status, cost=cost, x=x,
                        iterations=iterations, solve_time=solve_time)

    def _compile(self, nlp: NonlinearProgram) -> ca.Function:
        if self._cached_solver is not None and self._cached_nlp is nlp:
            return self._cached_solver

        opts = {'ipopt.' + key: value for key, value in self._ipopt_options.items()}
        opts['print_time'] = False
        opts['error_on_fail'] = False

        problem = {'x': nlp.w, 'p': nlp.p, 'f': nlp.f, 'g': nlp.g}
        self._cached_solver = ca.nlpsol('mpc_solver', 'ipopt', problem, opts)
        self._cached_nlp = nlp
        return self._cached_solver
