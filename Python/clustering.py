"""
Module: clustering.py
Description: Contains functions to perform PCA, run the reference KMeans,
             compare it with the hand-written k-means and evaluate clustering
             quality (WCSS and silhouette) over a range of k.
"""

import numpy as np
import pandas as pd
from sklearn.decomposition import PCA
from sklearn.cluster import KMeans
from sklearn.metrics import silhouette_score
from sklearn.preprocessing import StandardScaler

from kmeans import as_matrix, cluster, cluster_best_of


#######################################################
# Quality Metrics
#######################################################

def within_cluster_sum_of_squares(data, centers, labels):
    """``labels`` are zero-based row indices into ``centers``."""
    X = as_matrix(data)
    centers = np.asarray(centers, dtype=float)
    labels = np.asarray(labels, dtype=int)
    return float(np.sum((X - centers[labels]) ** 2))


def silhouette(data, labels):
    X = as_matrix(data)
    n_labels = len(np.unique(labels))
    # silhouette_score needs 2 <= n_labels <= n_samples - 1
    if n_labels < 2 or n_labels > X.shape[0] - 1:
        return np.nan
    return float(silhouette_score(X, labels))


#######################################################
# Reference Implementation & PCA
#######################################################

def reference_kmeans(data, k, random_state=0, n_init=10, max_iter=100):
    X = as_matrix(data)
    km = KMeans(n_clusters=k, n_init=n_init, max_iter=max_iter, random_state=random_state)
    labels = km.fit_predict(X)
    return km.cluster_centers_, labels, float(km.inertia_)


def run_pca(data, n_components=2, standardize=True):
    if isinstance(data, pd.DataFrame):
        index = data.index
    else:
        index = None
    X = as_matrix(data)
    if standardize:
        X = StandardScaler().fit_transform(X)

    pca = PCA(n_components=n_components)
    scores = pca.fit_transform(X)
    columns = [f"PC{i + 1}" for i in range(scores.shape[1])]
    return pd.DataFrame(scores, columns=columns, index=index), pca


def project_centers(pca, centers, data, standardize=True):
    """Map centroids into the PCA space fitted by ``run_pca`` on ``data``."""
    centers = np.asarray(centers, dtype=float)
    if standardize:
        scaler = StandardScaler().fit(as_matrix(data))
        centers = scaler.transform(centers)
    return pca.transform(centers)


#######################################################
# Comparison & K Sweep
#######################################################

def _farthest_point(X, result):
    dist = np.sum((X - result.centers[result.labels]) ** 2, axis=1)
    return X[np.argmax(dist)]


def evaluate_k_range(data, k_values=range(2, 8), n_init=10, random_state=0,
                     max_iter=100, include_reference=True, return_results=False):
    """
    WCSS and silhouette per k for the hand-written k-means (best of
    ``n_init`` random starts) and, optionally, scikit-learn's KMeans.

    From the second k on, the previous solution plus the observation farthest
    from its centroid is tried as an extra starting point, which keeps the
    WCSS column non-increasing in k.
    """
    X = as_matrix(data)
    rng = np.random.default_rng(random_state)
    rows = []
    results = {}
    previous = None

    for k in sorted(k_values):
        best = cluster_best_of(X, k, n_init=n_init, random_state=rng, max_iter=max_iter)
        if previous is not None and previous.k == k - 1:
            init = np.vstack([previous.centers, _farthest_point(X, previous)])
            warm = cluster(X, k, max_iter=max_iter, init=init)
            if warm.wcss < best.wcss:
                best = warm
        previous = best
        results[k] = best

        row = {
            'k': k,
            'wcss': best.wcss,
            'silhouette': silhouette(X, best.labels),
            'n_iter': best.n_iter,
            'converged': best.converged,
        }
        if include_reference:
            _, ref_labels, ref_wcss = reference_kmeans(
                X, k, random_state=random_state, n_init=n_init, max_iter=max_iter)
            row['reference_wcss'] = ref_wcss
            row['reference_silhouette'] = silhouette(X, ref_labels)
        rows.append(row)
        print(f"k={k}: WCSS = {best.wcss:.2f}, silhouette = {row['silhouette']:.3f}")

    table = pd.DataFrame(rows).set_index('k')
    if return_results:
        return table, results
    return table


def compare_with_reference(data, k, n_init=10, random_state=0, max_iter=100):
    X = as_matrix(data)
    result = cluster_best_of(X, k, n_init=n_init, random_state=random_state, max_iter=max_iter)
    _, ref_labels, ref_wcss = reference_kmeans(
        X, k, random_state=random_state, n_init=n_init, max_iter=max_iter)

    summary = pd.DataFrame([{
        'k': k,
        'wcss': result.wcss,
        'reference_wcss': ref_wcss,
        'relative_gap': (result.wcss - ref_wcss) / ref_wcss if ref_wcss else 0.0,
        'silhouette': silhouette(X, result.labels),
        'reference_silhouette': silhouette(X, ref_labels),
        'n_iter': result.n_iter,
        'converged': result.converged,
    }]).set_index('k')
    crosstab = pd.crosstab(
        pd.Series(result.assignments, name='cluster'),
        pd.Series(ref_labels + 1, name='reference_cluster'),
    )
    return summary, crosstab, result


def cluster_profile(df, assignments, features):
    profile = df[features].assign(cluster=np.asarray(assignments)).groupby('cluster')
    table = profile.mean()
    table['size'] = profile.size()
    return table
