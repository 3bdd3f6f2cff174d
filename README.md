# constraint2d

A compact library for simulating planar rigid bodies held together by
constraints. Each body has a position, an angle, and velocities for both.
Force generators supply the forces: gravity, springs, fixed forces and motors.
The constraint forces come from solving a linear system at every evaluation.
Built-in constraints cover pins, links, rails, rolling contacts, clutches,
driven rotation and rotational friction.

The package uses only the standard library.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Building blocks

- `constraint2d.matrix.Matrix`: a dense matrix addressed as `get(column, row)`.
  Vectors are single-column matrices. Arithmetic such as `multiply`, `add`,
  `subtract`, `left_scale`, `right_scale` and `transpose` returns new matrices.
  `madd` and `pmadd` update the matrix in place.
- `constraint2d.sparse_matrix.SparseMatrix`: a block-sparse matrix in which
  each row holds a few blocks of `stride` columns. `SparseMatrix.from_dense`
  packs the non-zero blocks of a dense matrix, and `expand` turns it back into
  a dense one.
- `constraint2d.rigid_body.RigidBody`: a dataclass with these fields:
  - `p_x`, `p_y` for position and `theta` for angle;
  - `v_x`, `v_y`, `v_theta` for the velocities;
  - `mass` and `inertia`;
  - `index`, the body's slot in a system, or -1 when it is in none.

  It also provides `local_to_world`, `world_to_local` and `energy`.
- `constraint2d.system_state.SystemState`: the per-body and per-constraint
  arrays that integrators, constraints and force generators work on. It offers
  `local_to_world`, `velocity_at_point` and `apply_force` helpers for one body.
- ODE integrators in `constraint2d.ode_solver`: `EulerOdeSolver`,
  `NsvOdeSolver` (semi-implicit Euler) and `Rk4OdeSolver`. A time step runs
  `start`, then `step` and `solve` until `step` returns True, then `end`.
- Linear-system solvers in `constraint2d.sle_solver`:
  - `ConjugateGradientSleSolver`;
  - `GaussSeidelSleSolver`, the only one that also offers `solve_with_limits`;
  - `GaussianEliminationSleSolver`.

  They solve `(J W J^T) x = right`, where `W` is given as a column vector. A
  solver that does not converge, or meets a singular system, raises
  `SolverError`.
- Constraints in `constraint2d.constraints`:
  - `FixedPositionConstraint`;
  - `LinkConstraint`;
  - `LineConstraint`;
  - `ConstantRotationConstraint`;
  - `ClutchConstraint`;
  - `RotationFrictionConstraint`.

  The rolling contact is `constraint2d.rolling_constraint.RollingConstraint`.
  Each constraint's `calculate(state)` returns a `ConstraintOutput`. After a
  system has been processed, each constraint holds the reactions it applied in
  `f_x`, `f_y` and `f_t`.
- Force generators in `constraint2d.force_generators`:
  - `GravityForceGenerator` (default `g = 9.81`, acting down the y axis);
  - `StaticForceGenerator`;
  - `Spring`, which also has `ends()` and `energy()`;
  - `ConstantSpeedMotor`.
- Systems:
  - `constraint2d.generic_rigid_body_system.GenericRigidBodySystem(sle_solver, ode_solver)`
    solves for constraint forces at the acceleration level and works with any
    integrator.
  - `constraint2d.optimized_nsv_rigid_body_system.OptimizedNsvRigidBodySystem(sle_solver, bias_factor)`
    solves for impulses at the velocity level and integrates with semi-implicit
    Euler. It honours constraint torque limits when the solver supports them.

  Both derive from `constraint2d.rigid_body_system.RigidBodySystem`. That class
  provides `add_rigid_body` and `remove_rigid_body`, with the matching methods
  for constraints and force generators. Removing a member moves the last member
  into its slot. Every body in a system needs a non-zero `mass` and `inertia`;
  otherwise `process` raises `ValueError`.

## Example: a pendulum

```python
from constraint2d.rigid_body import RigidBody
from constraint2d.constraints import FixedPositionConstraint
from constraint2d.force_generators import GravityForceGenerator
from constraint2d.sle_solver import GaussSeidelSleSolver
from constraint2d.optimized_nsv_rigid_body_system import OptimizedNsvRigidBodySystem

bob = RigidBody(p_x=1.0, mass=1.0, inertia=0.1)

# The pivot sits one unit to the left of the bob's centre, at the world origin.
pivot = FixedPositionConstraint(bob, local_x=-1.0, world_x=0.0, world_y=0.0)

system = OptimizedNsvRigidBodySystem(GaussSeidelSleSolver(), 1.0)
system.add_rigid_body(bob)
system.add_constraint(pivot)
system.add_force_generator(GravityForceGenerator())

for _ in range(60):
    system.process(1 / 60, 10)

print(bob.p_x, bob.p_y, bob.theta)
print("constraint solve time (us):", system.constraint_solve_microseconds())
```

After each `process(dt, steps)` call, the bodies hold their new positions and
velocities. These methods report average timings, in microseconds, over the
most recent 600 calls:

- `ode_solve_microseconds()`
- `constraint_solve_microseconds()`
- `force_eval_microseconds()`
- `constraint_eval_microseconds()`

## What it does not do

This is a library only. It has no command-line program, no drawing or
visualisation of the bodies, and no way to save or load a scene. Collision
detection is not included: bodies interact only through the constraints and
force generators you add.