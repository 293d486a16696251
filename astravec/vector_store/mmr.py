"""Maximal marginal relevance (MMR) selection.

Greedy MMR over a candidate pool: each step picks the candidate with the best
trade-off between similarity to the query and redundancy with what has
already been picked::

    score(i) = lambda * sim(i, query) - (1 - lambda) * max_j sim(i, selected_j)

The first pick is always the candidate most similar to the query. Ties go to
the lowest candidate index so results are deterministic.
"""

from typing import List, Sequence

import numpy as np
import structlog

logger = structlog.get_logger("vector_store.mmr")


def cosine_similarity(x: Sequence[Sequence[float]], y: Sequence[Sequence[float]]) -> np.ndarray:
    """Pairwise cosine similarity between the rows of ``x`` and ``y``.

    Zero-norm rows have similarity 0 with everything.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.size == 0 or y.size == 0:
        return np.zeros((len(x), len(y)))
    if x.ndim == 1:
        x = x.reshape(1, -1)
    if y.ndim == 1:
        y = y.reshape(1, -1)
    if x.shape[1] != y.shape[1]:
        raise ValueError(
            f"Number of columns in x and y must be the same. x has shape {x.shape} "
            f"and y has shape {y.shape}."
        )

    x_norm = np.linalg.norm(x, axis=1)
    y_norm = np.linalg.norm(y, axis=1)
    with np.errstate(divide="ignore", invalid="ignore"):
        similarity = np.dot(x, y.T) / np.outer(x_norm, y_norm)
    similarity[~np.isfinite(similarity)] = 0.0
    return similarity


def maximal_marginal_relevance(
    query_embedding: Sequence[float],
    embedding_list: Sequence[Sequence[float]],
    lambda_mult: float = 0.5,
    k: int = 4,
) -> List[int]:
    """Select up to ``k`` candidate indices by maximal marginal relevance.

    Parameters
    - query_embedding: The query vector
    - embedding_list: Candidate vectors, parallel to the caller's rows
    - lambda_mult: Relevance weight; 1 ranks by similarity only, 0 maximizes
      diversity after the first pick. Values outside [0, 1] are not rejected.
    - k: Number of indices to return

    Returns
    - Indices into ``embedding_list`` in selection order, length
      ``min(k, len(embedding_list))``
    """
    if k <= 0 or len(embedding_list) == 0:
        return []

    candidates = np.asarray(embedding_list, dtype=float)
    similarity_to_query = cosine_similarity([query_embedding], candidates)[0]
    # Computed once; rows are looked up as candidates get selected.
    pairwise = cosine_similarity(candidates, candidates)

    selected = [int(np.argmax(similarity_to_query))]
    remaining = [i for i in range(len(candidates)) if i != selected[0]]
    target = min(k, len(candidates))

    while len(selected) < target:
        best_index = -1
        best_score = -np.inf
        for i in remaining:
            redundancy = max(pairwise[i, j] for j in selected)
            score = lambda_mult * similarity_to_query[i] - (1 - lambda_mult) * redundancy
            if score > best_score:
                best_score = score
                best_index = i
        selected.append(best_index)
        remaining.remove(best_index)

    logger.debug(
        "MMR selection completed",
        candidates=len(candidates),
        selected=len(selected),
        lambda_mult=lambda_mult,
    )
    return selected
