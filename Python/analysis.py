"""
Module: analysis.py
Description: Runs the whole penguin clustering report: data loading, summary
             statistics, k-means against scikit-learn, the k sweep, PCA and
             the figures, saved to the output folder.
"""

import os
import matplotlib.pyplot as plt

from clustering import (compare_with_reference, cluster_profile, evaluate_k_range,
                        project_centers, run_pca)
from preprocessing import (PENGUIN_FEATURES, resolve_output_folder, generate_summary_statistics,
                           load_penguin_data, species_counts, standardize_features,
                           write_latex_table)
from visualisation import (plot_cluster_pairs, plot_correlation_matrix, plot_feature_distributions,
                           plot_k_selection, plot_pca_clusters)


def _save(fig, output_folder, filename, show):
    path = os.path.join(output_folder, filename)
    fig.savefig(path, dpi=150, bbox_inches='tight')
    print(f"Figure written to: {path}")
    if show:
        plt.show()
    plt.close(fig)


def run_analysis(data_path=None, k=3, k_values=range(2, 8), features=PENGUIN_FEATURES,
                 output_folder=None, n_init=10, random_state=0, max_iter=100, standardize=False,
                 show=False):
    output_folder = resolve_output_folder(output_folder)
    features = list(features)

    df = load_penguin_data(data_path, features=features)
    X = standardize_features(df, features)[features] if standardize else df[features]
    summary_stats = generate_summary_statistics(df, features, output_folder)
    species = species_counts(df)
    if not species.empty:
        write_latex_table(species, "species_counts.tex", output_folder)

    comparison, crosstab, result = compare_with_reference(
        X, k, n_init=n_init, random_state=random_state, max_iter=max_iter)
    if not result.converged:
        print(f"Warning: k-means did not converge within {max_iter} iterations.")
    print(comparison.round(4).to_string())
    write_latex_table(comparison.round(4).reset_index(), "kmeans_comparison.tex", output_folder)

    profile = cluster_profile(df, result.assignments, features)
    write_latex_table(profile.round(2).reset_index(), "cluster_profile.tex", output_folder)

    k_table, k_results = evaluate_k_range(
        X, k_values, n_init=n_init, random_state=random_state,
        max_iter=max_iter, return_results=True)
    write_latex_table(k_table.round(4).reset_index(), "k_selection.tex", output_folder)

    scores, pca = run_pca(X)
    centers_scores = project_centers(pca, result.centers, X)

    _save(plot_feature_distributions(df, features), output_folder, "feature_distributions.png", show)
    _save(plot_correlation_matrix(df, features), output_folder, "correlation_matrix.png", show)
    _save(plot_cluster_pairs(df, result.assignments, features, title=f"k = {k}").figure,
          output_folder, "cluster_pairs.png", show)
    _save(plot_pca_clusters(scores, result.assignments, centers_scores, pca),
          output_folder, "pca_clusters.png", show)
    _save(plot_k_selection(k_table), output_folder, "k_selection.png", show)

    return {
        'data': df,
        'summary_statistics': summary_stats,
        'species_counts': species,
        'result': result,
        'comparison': comparison,
        'crosstab': crosstab,
        'profile': profile,
        'k_table': k_table,
        'k_results': k_results,
        'pca': pca,
        'pca_scores': scores,
    }
