"""Analytic gradients through PyTorch autograd.

Objectives written with ``torch`` operations can be handed to the optimizers
with exact gradients instead of finite differences.
"""

from __future__ import annotations

from typing import Callable, Optional

import numpy as np
import torch

from .core import Problem

TorchObjective = Callable[..., torch.Tensor]


def _as_tensor(value: object) -> object:
    if isinstance(value, np.ndarray):
        return torch.as_tensor(value, dtype=torch.float64)
    return value


def autograd_gradient(
    objective: TorchObjective, x: np.ndarray, args: tuple = ()
) -> np.ndarray:
    """
    Compute the gradient of a scalar torch objective at ``x``.

    Args:
        objective: Callable taking a 1D float64 tensor of parameters followed by
            ``args`` (numpy arrays are converted to tensors) and returning a
            scalar tensor.
        x: 1D parameter array.
        args: Fixed data passed to the objective.

    Returns:
        Gradient as a float64 numpy array with the shape of ``x``.

    Raises:
        ValueError: If ``x`` is not 1D or the objective is not scalar.
        RuntimeError: If autograd did not produce gradients for the parameters.
    """
    x = np.asarray(x, dtype=float)
    if x.ndim != 1:
        raise ValueError(f"x must be a 1D array, got shape {x.shape}")

    params = torch.tensor(x, dtype=torch.float64, requires_grad=True)
    value = objective(params, *(_as_tensor(a) for a in args))
    if value.ndim != 0:
        raise ValueError(
            f"objective must return a scalar tensor (0D), got shape {tuple(value.shape)}"
        )
    (grad,) = torch.autograd.grad(value, params, allow_unused=True)
    if grad is None:
        raise RuntimeError("Autograd did not produce gradients for params.")
    return grad.detach().cpu().numpy().astype(float)


def torch_problem(
    objective: TorchObjective, args: tuple = (), dim: Optional[int] = None
) -> Problem:
    """Build a :class:`Problem` whose value and gradient both come from torch."""
    tensor_args = tuple(_as_tensor(a) for a in args)

    def fun(x: np.ndarray) -> float:
        with torch.no_grad():
            value = objective(torch.as_tensor(x, dtype=torch.float64), *tensor_args)
        return float(value)

    def grad(x: np.ndarray) -> np.ndarray:
        return autograd_gradient(objective, x, tensor_args)

    return Problem(fun=fun, grad=grad, dim=dim)


__all__ = ["autograd_gradient", "torch_problem"]
