import numpy
import tqdm
import model
import controller
import weighting
import pytest


def lawnmower(length, half_period, rate):
    """Reference that alternates between holding and ramping"""
    ys = numpy.zeros(length)
    for i in range(1, length):
        ys[i] = ys[i - 1] if (i // half_period) % 2 == 0 else ys[i - 1] + rate
    return ys


# Two axis position/velocity plant, the output is the sum of both positions
T = 0.05
A = numpy.array([[1, 0, T, 0],
                 [0, 1, 0, T],
                 [0, 0, 1, 0],
                 [0, 0, 0, 1]])
B = numpy.array([[T**2 / 2, 0],
                 [0, T**2 / 2],
                 [T, 0],
                 [0, T]])
C = numpy.array([[1, 1, 0, 0]])
plant = model.LinearSystem(A, B, C)

N = 40
n_steps = 60
Y_d_full = lawnmower(N + n_steps, 20, 0.1)

# Only the first axis is actuated
u_lower = numpy.array([-7, 0])
u_upper = numpy.array([7, 0])

K = controller.MPC(
    plant, N,
    Y_d=Y_d_full[:N],
    x0=numpy.zeros(4),
    weighting=weighting.UniformBounded(1e4, 1, u_lower, u_upper)
)
K.initialize_solver()

xs = [numpy.zeros(4)]
us = []
ys = []
for i in tqdm.tqdm(range(n_steps)):
    if i > 0:
        K.update_solver(Y_d_full[i:i + N], xs[-1])
    U = K.solve()
    u = K.first_input(U)

    x_next, _ = plant.simulate(xs[-1], u)
    us.append(u)
    xs.append(x_next[-1])
    ys.append(C @ x_next[-1])

us = numpy.array(us)
ys = numpy.array(ys).ravel()


def test_bounds():
    assert numpy.all(us[:, 0] <= 7 + 1e-4)
    assert numpy.all(us[:, 0] >= -7 - 1e-4)
    assert us[:, 1] == pytest.approx(0, abs=1e-4)


def test_tracking():
    errors = ys - Y_d_full[:n_steps]
    assert numpy.max(numpy.abs(errors)) < 0.25
