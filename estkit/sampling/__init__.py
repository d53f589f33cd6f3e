"""Discrete-state sampling: categorical draws, LDA Gibbs sweeps, Markov chains.

All randomized routines take their own ``numpy.random.Generator`` (or a
seed), so independent runs never share generator state.
"""

from .categorical import (
    categorical_draw,
    categorical_draws,
    draw_index,
    resolve_rng,
    validate_weights,
)
from .markov import MarkovChain, estimate_transition_matrix, simulate_markov_chain
from .topic import (
    LDAGibbs,
    TopicModelState,
    collapsed_log_likelihood,
    gibbs_sweep,
    topic_conditional,
)

__all__ = [
    "categorical_draw",
    "categorical_draws",
    "draw_index",
    "resolve_rng",
    "validate_weights",
    "MarkovChain",
    "simulate_markov_chain",
    "estimate_transition_matrix",
    "TopicModelState",
    "topic_conditional",
    "gibbs_sweep",
    "collapsed_log_likelihood",
    "LDAGibbs",
]
