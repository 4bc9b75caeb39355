"""
Module: kmeans.py
Description: Plain Lloyd's k-means (random initial centroids, assignment and
             update steps repeated until the centroids stop moving), used to
             check scikit-learn's KMeans on the penguin measurements.
"""

from dataclasses import dataclass, field

import numpy as np
import pandas as pd

EMPTY_CLUSTER_POLICIES = ("freeze", "reinitialize", "raise")


class KMeansError(ValueError):
    pass


class InvalidParameterError(KMeansError):
    pass


class EmptyClusterError(KMeansError):
    """A cluster lost all of its observations during an update step."""

    def __init__(self, cluster, iteration):
        self.cluster = cluster
        self.iteration = iteration
        super().__init__(
            f"Cluster {cluster} has no assigned observations (iteration {iteration})."
        )


@dataclass(frozen=True)
class ClusteringResult:
    centers: np.ndarray
    assignments: np.ndarray
    n_iter: int
    converged: bool
    wcss: float
    history: list = field(default_factory=list)
    empty_clusters: int = 0

    @property
    def k(self):
        return self.centers.shape[0]

    @property
    def labels(self):
        """Zero-based cluster index per observation (row of ``centers``)."""
        return self.assignments - 1


################################
# Input checks
################################

def as_matrix(data):
    if isinstance(data, (pd.DataFrame, pd.Series)):
        values = data.to_numpy(dtype=float, copy=True)
    else:
        try:
            values = np.array(data, dtype=float)
        except (TypeError, ValueError) as exc:
            raise InvalidParameterError(f"Data is not numeric: {exc}") from exc

    if values.ndim != 2:
        raise InvalidParameterError(f"Data must be 2-D, got {values.ndim} dimension(s).")
    n, p = values.shape
    if n == 0:
        raise InvalidParameterError("Data has no observations.")
    if p == 0:
        raise InvalidParameterError("Data has no features.")
    if not np.isfinite(values).all():
        raise InvalidParameterError("Data contains missing or non-finite values.")
    return values


def _check_k(k, n):
    if isinstance(k, bool) or not isinstance(k, (int, np.integer)):
        raise InvalidParameterError(f"k must be an integer, got {k!r}.")
    if k < 1:
        raise InvalidParameterError(f"k must be at least 1, got {k}.")
    if k > n:
        raise InvalidParameterError(f"k={k} exceeds the number of observations ({n}).")
    return int(k)


def _check_init(init, k, p):
    centers = np.array(init, dtype=float)
    if centers.shape != (k, p):
        raise InvalidParameterError(
            f"Initial centroids must have shape ({k}, {p}), got {centers.shape}."
        )
    if not np.isfinite(centers).all():
        raise InvalidParameterError("Initial centroids contain non-finite values.")
    return centers


################################
# Lloyd steps
################################

def squared_distances(X, centers):
    """(N, K) matrix of squared Euclidean distances."""
    diff = X[:, np.newaxis, :] - centers[np.newaxis, :, :]
    return np.sum(diff ** 2, axis=2)


def assign(X, centers):
    dist = squared_distances(X, centers)
    # argmin keeps the first minimum, so ties go to the lowest cluster number
    labels = np.argmin(dist, axis=1)
    wcss = float(dist[np.arange(X.shape[0]), labels].sum())
    return labels, wcss


def update_centers(X, labels, centers, iteration, rng, empty_cluster="freeze"):
    new_centers = centers.copy()
    empty = 0
    for j in range(centers.shape[0]):
        members = X[labels == j]
        if len(members):
            new_centers[j] = members.mean(axis=0)
            continue
        empty += 1
        if empty_cluster == "raise":
            raise EmptyClusterError(j + 1, iteration)
        if empty_cluster == "reinitialize":
            new_centers[j] = X[rng.integers(X.shape[0])]
        # "freeze": previous centroid stays in place
    return new_centers, empty


def _has_converged(old, new, tol):
    if tol == 0:
        return np.array_equal(old, new)
    shift = np.sqrt(np.sum((new - old) ** 2, axis=1))
    return shift.max() <= tol


################################
# Engine
################################

def cluster(data, k, max_iter=100, init=None, random_state=None,
            empty_cluster="freeze", tol=0.0, verbose=False):
    """
    Partition the rows of ``data`` into ``k`` clusters.

    Initial centroids are ``k`` distinct rows drawn uniformly at random unless
    ``init`` supplies them. Each iteration assigns every row to its nearest
    centroid and moves every centroid to the mean of its rows; the loop stops
    when an update leaves the centroids unchanged (exactly, or within ``tol``)
    or after ``max_iter`` iterations. Hitting ``max_iter`` is reported through
    ``ClusteringResult.converged`` rather than raised.

    ``empty_cluster`` decides what happens to a centroid that receives no
    rows: ``"freeze"`` keeps it where it was, ``"reinitialize"`` moves it to a
    random row, ``"raise"`` raises EmptyClusterError.

    Returned ``assignments`` run from 1 to ``k`` and are the memberships the
    returned centroids were averaged from, so every populated centroid is the
    mean of its members even when the run stops on ``tol`` or ``max_iter``.
    """
    X = as_matrix(data)
    n, p = X.shape
    k = _check_k(k, n)
    if isinstance(max_iter, bool) or not isinstance(max_iter, (int, np.integer)) or max_iter < 1:
        raise InvalidParameterError(f"max_iter must be a positive integer, got {max_iter!r}.")
    if empty_cluster not in EMPTY_CLUSTER_POLICIES:
        raise InvalidParameterError(
            f"Unknown empty cluster policy {empty_cluster!r}; "
            f"expected one of {', '.join(EMPTY_CLUSTER_POLICIES)}."
        )
    if tol < 0:
        raise InvalidParameterError(f"tol must be non-negative, got {tol}.")

    rng = np.random.default_rng(random_state)
    if init is None:
        centers = X[rng.choice(n, size=k, replace=False)].copy()
    else:
        centers = _check_init(init, k, p)

    history = []
    empty_total = 0
    converged = False
    iteration = 0
    while iteration < max_iter:
        iteration += 1
        labels, wcss = assign(X, centers)
        history.append(wcss)

        new_centers, empty = update_centers(X, labels, centers, iteration, rng, empty_cluster)
        empty_total += empty

        if verbose:
            moved = float(np.max(np.abs(new_centers - centers)))
            print(f"Iteration {iteration:3d}: WCSS = {wcss:.4f}, max centroid move = {moved:.6g}")

        if _has_converged(centers, new_centers, tol):
            centers = new_centers
            converged = True
            break
        centers = new_centers

    # labels are the ones the final centroids were averaged from
    wcss = float(np.sum((X - centers[labels]) ** 2))
    if verbose:
        status = "converged" if converged else "stopped at max_iter"
        print(f"k={k}: {status} after {iteration} iteration(s), WCSS = {wcss:.4f}")

    return ClusteringResult(
        centers=centers,
        assignments=labels + 1,
        n_iter=iteration,
        converged=converged,
        wcss=wcss,
        history=history,
        empty_clusters=empty_total,
    )


def cluster_best_of(data, k, n_init=10, random_state=None, **kwargs):
    """Run ``cluster`` ``n_init`` times and keep the lowest-WCSS result."""
    if isinstance(n_init, bool) or not isinstance(n_init, (int, np.integer)) or n_init < 1:
        raise InvalidParameterError(f"n_init must be a positive integer, got {n_init!r}.")
    if kwargs.get("init") is not None:
        raise InvalidParameterError("Explicit init centroids leave nothing to restart.")
    kwargs.pop("init", None)

    rng = np.random.default_rng(random_state)
    best = None
    for _ in range(n_init):
        result = cluster(data, k, random_state=rng, **kwargs)
        if best is None or result.wcss < best.wcss:
            best = result
    return best
