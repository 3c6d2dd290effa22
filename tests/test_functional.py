"""Tests for the plain fixed-point step and residual evaluation."""

import numpy as np
import pytest

from nlfunctional.algebra.operators import IDENTITY
from nlfunctional.core.algorithms import NLFunctional
from nlfunctional.core.problem import (
    IntegratorContext,
    IntegratorOptions,
    ODEFunction,
    SolverStatistics,
)
from nlfunctional.solvers.factory import build_nlsolver


def decay(u, p, t):
    """du/dt = -u + sin(t)"""
    return -u + np.sin(t)


def decay_inplace(du, u, p, t):
    np.negative(u, out=du)
    np.add(du, np.sin(t), out=du)


def make_integrator(f, uprev, t=0.0, dt=0.1, mass_matrix=IDENTITY, inplace=False):
    return IntegratorContext(
        t=t,
        dt=dt,
        uprev=np.asarray(uprev, dtype=float),
        f=ODEFunction(f, inplace=inplace, mass_matrix=mass_matrix),
        opts=IntegratorOptions(abstol=1e-6, reltol=1e-3),
        stats=SolverStatistics(),
    )


def run(solver, integrator, iterations):
    """Minimal outer loop: initialize, then step and accept repeatedly."""
    solver.initialize(integrator)
    norms = []
    for _ in range(iterations):
        norms.append(solver.compute_step(integrator))
        solver.advance()
    return norms


def test_zero_rhs_fixed_point():
    """With f ≡ 0 the fixed point z* = 0 is reproduced exactly."""

    def zero(u, p, t):
        return np.zeros_like(u)

    def zero_inplace(du, u, p, t):
        du[:] = 0.0

    for f, inplace in ((zero, False), (zero_inplace, True)):
        integrator = make_integrator(f, np.ones(3), inplace=inplace)
        solver = build_nlsolver(NLFunctional(), np.ones(3), inplace=inplace)
        solver.tmp[:] = 2.0
        solver.initialize(integrator)

        ndz = solver.compute_step(integrator)

        assert ndz == 0.0
        assert np.array_equal(solver.ztmp, np.zeros(3))


def test_initialize_sets_stage_time():
    """tstep = t + c·dt and the iteration counter restarts."""
    integrator = make_integrator(decay, np.ones(2), t=1.0, dt=0.5)
    solver = build_nlsolver(NLFunctional(), np.ones(2), c=0.4)
    solver.iter = 7

    solver.initialize(integrator)

    assert np.isclose(solver.cache.tstep, 1.2)
    assert solver.iter == 0


def test_initial_eta():
    """initial_eta hands back the stored previous rate."""
    integrator = make_integrator(decay, np.ones(2))
    solver = build_nlsolver(NLFunctional(), np.ones(2))
    assert solver.initial_eta(integrator) == 1.0

    solver.eta_old = 0.25
    assert solver.initial_eta(integrator) == 0.25


def test_whole_vector_matches_inplace():
    """Both representations give identical ztmp, dz and norm."""
    uprev = np.array([1.0, -0.5, 2.0])
    z = np.array([0.1, 0.2, -0.3])
    tmp = np.array([0.9, -0.4, 1.7])

    results = []
    for f, inplace in ((decay, False), (decay_inplace, True)):
        integrator = make_integrator(f, uprev, t=0.3, dt=0.2, inplace=inplace)
        solver = build_nlsolver(NLFunctional(), uprev, gamma=0.5, c=0.3, inplace=inplace)
        solver.z[:] = z
        solver.tmp[:] = tmp
        solver.initialize(integrator)
        ndz = solver.compute_step(integrator)
        results.append((ndz, solver.ztmp.copy(), solver.cache.dz.copy()))

    (n1, ztmp1, dz1), (n2, ztmp2, dz2) = results
    assert n1 == n2
    assert np.array_equal(ztmp1, ztmp2)
    assert np.array_equal(dz1, dz2)


def test_residual_value():
    """ztmp = dt·f(tmp + γz) and dz = ztmp - z for the identity mass matrix."""
    integrator = make_integrator(decay, np.ones(2), t=0.0, dt=0.1)
    solver = build_nlsolver(NLFunctional(), np.ones(2), gamma=2.0)
    solver.z[:] = [1.0, 0.0]
    solver.tmp[:] = [1.0, 1.0]
    solver.initialize(integrator)

    solver.compute_step(integrator)

    assert np.allclose(solver.cache.ustep, [3.0, 1.0])
    assert np.allclose(solver.ztmp, [-0.3, -0.1])
    assert np.allclose(solver.cache.dz, [-1.3, -0.1])


@pytest.mark.parametrize("inplace", [False, True])
def test_dense_identity_matches_sentinel(inplace):
    """An explicit identity mass matrix behaves exactly like the sentinel."""
    f = decay_inplace if inplace else decay
    outputs = []
    for mass_matrix in (IDENTITY, np.eye(3)):
        integrator = make_integrator(f, np.ones(3), mass_matrix=mass_matrix, inplace=inplace)
        solver = build_nlsolver(NLFunctional(), np.ones(3), inplace=inplace)
        solver.z[:] = [0.3, -0.2, 0.1]
        solver.tmp[:] = 1.0
        solver.initialize(integrator)
        ndz = solver.compute_step(integrator)
        outputs.append((ndz, solver.cache.dz.copy()))

    assert outputs[0][0] == outputs[1][0]
    assert np.array_equal(outputs[0][1], outputs[1][1])


@pytest.mark.parametrize("inplace", [False, True])
def test_general_mass_matrix(inplace):
    """dz = dt·f - M z and ztmp = z + dz for a non-identity M."""
    f = decay_inplace if inplace else decay
    M = np.diag([2.0, 3.0])
    integrator = make_integrator(f, np.ones(2), mass_matrix=M, inplace=inplace)
    solver = build_nlsolver(NLFunctional(), np.ones(2), inplace=inplace)
    solver.z[:] = [1.0, -1.0]
    solver.tmp[:] = [0.0, 0.0]
    solver.initialize(integrator)

    solver.compute_step(integrator)

    # ustep = z, f = -z, dt = 0.1
    expected_dz = 0.1 * np.array([-1.0, 1.0]) - np.array([2.0, -3.0])
    assert np.allclose(solver.cache.dz, expected_dz)
    assert np.allclose(solver.ztmp, solver.z + expected_dz)


def test_counts_function_evaluations():
    """Each step evaluates the right-hand side once."""
    integrator = make_integrator(decay, np.ones(2))
    solver = build_nlsolver(NLFunctional(), np.ones(2))
    run(solver, integrator, 4)

    assert integrator.stats.nf == 4
    assert integrator.stats.nsolve == 0


def test_without_statistics():
    """Statistics are optional."""
    integrator = make_integrator(decay, np.ones(2))
    integrator.stats = None
    solver = build_nlsolver(NLFunctional(), np.ones(2))

    assert np.isfinite(run(solver, integrator, 2)).all()


@pytest.mark.parametrize("inplace", [False, True])
def test_scalar_decay_converges_monotonically(inplace):
    """u' = -u, dt = 0.1, γ = 1, tmp = 1: residual norm strictly decreases."""
    f = decay_inplace if inplace else decay
    integrator = make_integrator(f, [1.0], t=0.0, dt=0.1, inplace=inplace)
    solver = build_nlsolver(NLFunctional(), np.zeros(1), gamma=1.0, c=0.0, inplace=inplace)
    solver.tmp[:] = 1.0

    norms = run(solver, integrator, 4)

    assert all(a > b for a, b in zip(norms, norms[1:]))
    assert np.allclose(solver.z, -0.1 / 1.1, atol=1e-4)


def test_inplace_advance_swaps_buffers():
    """Accepting a step swaps z and ztmp instead of copying."""
    integrator = make_integrator(decay_inplace, np.ones(2), inplace=True)
    solver = build_nlsolver(NLFunctional(), np.ones(2), inplace=True)
    solver.initialize(integrator)
    z, ztmp = solver.z, solver.ztmp

    solver.compute_step(integrator)
    solver.advance()

    assert solver.z is ztmp and solver.ztmp is z
    assert solver.iter == 1


def test_non_finite_rhs_propagates():
    """A NaN right-hand side yields a NaN norm rather than an exception."""

    def broken(u, p, t):
        return np.full_like(u, np.nan)

    integrator = make_integrator(broken, np.ones(2))
    solver = build_nlsolver(NLFunctional(), np.ones(2))
    solver.initialize(integrator)

    assert np.isnan(solver.compute_step(integrator))


def test_dimension_mismatch_surfaces():
    """Using a stale cache after the state grew is not caught internally."""
    integrator = make_integrator(decay_inplace, np.ones(4), inplace=True)
    solver = build_nlsolver(NLFunctional(), np.ones(3), inplace=True)
    solver.tmp = np.ones(4)
    solver.initialize(integrator)

    with pytest.raises(ValueError):
        solver.compute_step(integrator)


@pytest.mark.parametrize("inplace", [False, True])
def test_buffer_strategy_mismatch_rejected(inplace):
    """A solver refuses a right-hand side declared with the other calling convention."""
    f = decay if inplace else decay_inplace
    integrator = make_integrator(f, np.ones(2), inplace=not inplace)
    solver = build_nlsolver(NLFunctional(), np.ones(2), inplace=inplace)

    with pytest.raises(ValueError):
        solver.initialize(integrator)
