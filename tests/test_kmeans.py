"""
Tests for the Lloyd's k-means engine in kmeans.py
"""

import numpy as np
import pandas as pd
import pytest

from kmeans import (ClusteringResult, EmptyClusterError, InvalidParameterError, assign,
                    cluster, cluster_best_of)


def test_assignments_cover_every_observation(blobs):
    for k in (1, 2, 3, 5):
        result = cluster(blobs, k, random_state=k)
        assert isinstance(result, ClusteringResult)
        assert result.assignments.shape == (len(blobs),)
        assert result.assignments.min() >= 1
        assert result.assignments.max() <= k
        assert result.centers.shape == (k, 2)
        assert np.isfinite(result.centers).all()


def test_fixed_init_is_deterministic(blobs):
    init = blobs[[0, 1, 2]]
    first = cluster(blobs, 3, init=init)
    second = cluster(blobs, 3, init=init)

    np.testing.assert_array_equal(first.centers, second.centers)
    np.testing.assert_array_equal(first.assignments, second.assignments)
    assert first.n_iter == second.n_iter


def test_seeded_draws_reproduce(blobs):
    first = cluster(blobs, 3, random_state=42)
    second = cluster(blobs, 3, random_state=42)
    np.testing.assert_array_equal(first.centers, second.centers)


def test_output_centers_are_a_fixed_point(blobs):
    result = cluster(blobs, 3, random_state=7)
    assert result.converged

    again = cluster(blobs, 3, init=result.centers)
    assert again.n_iter == 1
    assert again.converged
    np.testing.assert_array_equal(again.centers, result.centers)
    np.testing.assert_array_equal(again.assignments, result.assignments)


def test_wcss_never_increases_within_a_run(blobs):
    # two starting points inside the same blob force several iterations
    init = np.vstack([blobs[0], blobs[1], blobs[2]])
    result = cluster(blobs, 3, init=init)
    history = np.array(result.history + [result.wcss])

    assert len(result.history) == result.n_iter
    assert np.all(np.diff(history) <= 1e-9 * history[0])


def test_k_equals_n_gives_singletons():
    X = np.array([[0.0, 1.0], [2.0, 3.0], [5.0, -1.0], [7.5, 0.5]])
    result = cluster(X, len(X), random_state=0)

    assert sorted(result.assignments) == [1, 2, 3, 4]
    assert result.wcss == 0.0
    np.testing.assert_array_equal(result.centers[result.labels], X)


def test_populated_centroids_are_member_means(blobs):
    for seed in (0, 1, 2):
        result = cluster(blobs, 4, random_state=seed)
        populated = np.unique(result.labels)
        assert result.converged
        for j in populated:
            np.testing.assert_allclose(result.centers[j], blobs[result.labels == j].mean(axis=0))


def test_k_one_gives_dataset_mean(blobs):
    result = cluster(blobs, 1, random_state=0)
    assert result.converged
    assert set(result.assignments) == {1}
    np.testing.assert_allclose(result.centers[0], blobs.mean(axis=0))


def test_ties_go_to_lowest_cluster_number():
    X = np.array([[1.0], [5.0]])
    labels, wcss = assign(X, np.array([[0.0], [2.0]]))
    assert labels[0] == 0
    assert wcss == pytest.approx(1.0 + 9.0)


def test_input_table_is_not_mutated(blobs):
    df = pd.DataFrame(blobs, columns=['x', 'y'])
    before = df.copy()
    cluster(df, 3, random_state=0)
    pd.testing.assert_frame_equal(df, before)


#######################################################
# Empty clusters
#######################################################

SQUARE = np.array([[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]])
FAR_INIT = np.array([[0.5, 0.5], [100.0, 100.0]])


def test_empty_cluster_frozen_by_default():
    result = cluster(SQUARE, 2, init=FAR_INIT)

    assert result.converged
    assert result.empty_clusters >= 1
    assert set(result.assignments) == {1}
    np.testing.assert_array_equal(result.centers[1], [100.0, 100.0])
    np.testing.assert_allclose(result.centers[0], [0.5, 0.5])
    assert not np.isnan(result.centers).any()


def test_empty_cluster_raise_policy():
    with pytest.raises(EmptyClusterError) as excinfo:
        cluster(SQUARE, 2, init=FAR_INIT, empty_cluster="raise")
    assert excinfo.value.cluster == 2
    assert excinfo.value.iteration == 1


def test_empty_cluster_reinitialize_policy():
    result = cluster(SQUARE, 2, init=FAR_INIT, empty_cluster="reinitialize", random_state=0)

    assert result.empty_clusters >= 1
    assert np.isfinite(result.centers).all()
    assert not np.array_equal(result.centers[1], [100.0, 100.0])


#######################################################
# Termination
#######################################################

def test_iteration_bound_reported_not_raised(blobs):
    init = np.vstack([blobs[0], blobs[1], blobs[2]])
    result = cluster(blobs, 3, init=init, max_iter=1)

    assert result.n_iter == 1
    assert not result.converged
    assert result.assignments.shape == (len(blobs),)


def test_tolerance_stops_on_small_moves(blobs):
    init = np.vstack([blobs[0], blobs[1], blobs[2]])
    exact = cluster(blobs, 3, init=init)
    loose = cluster(blobs, 3, init=init, tol=1e6)

    assert loose.converged
    assert loose.n_iter == 1
    assert loose.n_iter <= exact.n_iter


@pytest.mark.parametrize("stop", [{"tol": 1e6}, {"max_iter": 1}])
def test_early_stop_keeps_centroids_at_member_means(blobs, stop):
    init = np.vstack([blobs[0], blobs[1], blobs[2]])
    result = cluster(blobs, 3, init=init, **stop)

    for j in np.unique(result.labels):
        np.testing.assert_allclose(result.centers[j], blobs[result.labels == j].mean(axis=0))
    assert result.wcss == pytest.approx(np.sum((blobs - result.centers[result.labels]) ** 2))


#######################################################
# Parameter checks
#######################################################

@pytest.mark.parametrize("kwargs", [
    {"k": 0},
    {"k": -1},
    {"k": 91},
    {"k": 2.5},
    {"k": True},
    {"k": 2, "max_iter": 0},
    {"k": 2, "empty_cluster": "ignore"},
    {"k": 2, "tol": -1.0},
    {"k": 2, "init": np.zeros((3, 2))},
])
def test_invalid_parameters_rejected(blobs, kwargs):
    with pytest.raises(InvalidParameterError):
        cluster(blobs, **kwargs)


@pytest.mark.parametrize("data", [
    np.array([1.0, 2.0, 3.0]),
    np.empty((0, 2)),
    np.empty((3, 0)),
    np.array([[1.0, np.nan], [2.0, 3.0]]),
    np.array([[1.0, np.inf], [2.0, 3.0]]),
    [["a", "b"], ["c", "d"]],
])
def test_invalid_data_rejected(data):
    with pytest.raises(InvalidParameterError):
        cluster(data, 1)


def test_invalid_parameter_is_a_value_error():
    with pytest.raises(ValueError):
        cluster(SQUARE, 5)


#######################################################
# Restarts
#######################################################

def test_best_of_keeps_lowest_wcss(blobs):
    rng = np.random.default_rng(3)
    runs = [cluster(blobs, 4, random_state=rng) for _ in range(5)]
    best = cluster_best_of(blobs, 4, n_init=5, random_state=3)

    assert best.wcss == min(run.wcss for run in runs)


def test_best_of_rejects_bad_arguments(blobs):
    with pytest.raises(InvalidParameterError):
        cluster_best_of(blobs, 3, n_init=0)
    with pytest.raises(InvalidParameterError):
        cluster_best_of(blobs, 3, init=blobs[:3])
