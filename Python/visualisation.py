# visualisation.py
import warnings
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import ipywidgets as widgets
import seaborn as sns
from IPython.display import display, clear_output
from scipy.stats import skew, kurtosis, shapiro, normaltest


################################
# Normality Metrics
################################

def compute_normality_metrics(data):
    if isinstance(data, pd.DataFrame):
        data = data.iloc[:, 0]
    data = np.asarray(data, dtype=float).flatten()
    data = data[np.isfinite(data)]

    skew_val = skew(data)
    kurt_val = kurtosis(data)

    if len(data) <= 5000:
        test_used = "Shapiro-Wilk"
        test = shapiro
    else:
        test_used = "D'Agostino K-squared"
        test = normaltest
    try:
        # too-small samples: older scipy raises, newer warns and returns nan
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            _, p_value = test(data)
    except ValueError:
        p_value = np.nan
    if np.isnan(p_value):
        test_used = f"{test_used} (failed)"

    return {
        "Skewness": skew_val,
        "Excess Kurtosis": kurt_val,
        "Normality Test p-value": p_value,
        "Test Used": test_used
    }


################################
# Feature Exploration
################################

def _plot_hist(ax, data, title, xlab):
    ax.hist(np.asarray(data, dtype=float), bins=30, edgecolor='black')
    ax.set_title(title, fontsize=8)
    ax.set_xlabel(xlab, fontsize=6)
    ax.set_ylabel("Frequency", fontsize=6)
    ax.tick_params(axis='both', which='major', labelsize=5)

    metrics = compute_normality_metrics(data)
    metrics_text = (f"Skew: {metrics['Skewness']:.2f}\n"
                    f"Kurtosis: {metrics['Excess Kurtosis']:.2f}\n"
                    f"Normality p: {metrics['Normality Test p-value']:.2f}")
    ax.text(0.95, 0.95, metrics_text, transform=ax.transAxes, fontsize=5,
            verticalalignment='top', horizontalalignment='right',
            bbox=dict(facecolor='white', alpha=0.7, edgecolor='none'))


def plot_feature_distributions(df, features, show=False):
    n_cols = 2
    n_rows = int(np.ceil(len(features) / n_cols))
    fig, axs = plt.subplots(n_rows, n_cols, figsize=(10, 3 * n_rows), squeeze=False)

    for ax, col in zip(axs.flat, features):
        _plot_hist(ax, df[col], f"Distribution of {col}", col)
    for ax in axs.flat[len(features):]:
        ax.set_visible(False)

    fig.tight_layout()
    if show:
        plt.show()
    return fig


def plot_correlation_matrix(df, features, show=False):
    fig, ax = plt.subplots(figsize=(8, 6))
    sns.heatmap(df[features].corr(), annot=True, cmap="Blues",
                fmt=".2f", center=0, annot_kws={"fontsize": 7}, ax=ax)
    ax.set_title('Correlation Matrix of Features')
    plt.setp(ax.get_xticklabels(), rotation=45, ha='right', fontsize=7)
    plt.setp(ax.get_yticklabels(), fontsize=7)
    fig.tight_layout()
    if show:
        plt.show()
    return fig


################################
# Cluster Plots
################################

def plot_cluster_pairs(df, assignments, features, title=None, show=False):
    plot_df = df[features].copy()
    plot_df['cluster'] = pd.Categorical(np.asarray(assignments))
    grid = sns.pairplot(plot_df, hue='cluster', vars=features, palette='tab10',
                        corner=True, plot_kws={'s': 12, 'alpha': 0.7})
    if title:
        grid.figure.suptitle(title, y=1.02)
    if show:
        plt.show()
    return grid


def plot_pca_clusters(scores, assignments, centers_scores=None, pca=None, show=False):
    fig, ax = plt.subplots(figsize=(7, 5))
    sns.scatterplot(x=scores['PC1'].to_numpy(), y=scores['PC2'].to_numpy(),
                    hue=pd.Categorical(np.asarray(assignments)),
                    palette='tab10', s=18, ax=ax)
    if centers_scores is not None:
        centers_scores = np.asarray(centers_scores)
        ax.scatter(centers_scores[:, 0], centers_scores[:, 1], marker='X', s=150,
                   c='black', label='centroid')

    if pca is not None:
        ratio = pca.explained_variance_ratio_
        ax.set_xlabel(f"PC1 ({ratio[0] * 100:.1f}% variance)")
        ax.set_ylabel(f"PC2 ({ratio[1] * 100:.1f}% variance)")
    ax.set_title('Clusters on the First Two Principal Components')
    ax.legend(title='cluster', fontsize=7)
    fig.tight_layout()
    if show:
        plt.show()
    return fig


def plot_k_selection(table, show=False):
    fig, (ax_wcss, ax_sil) = plt.subplots(1, 2, figsize=(11, 4))
    k_values = table.index

    ax_wcss.plot(k_values, table['wcss'], marker='o', label='k-means (Lloyd)')
    ax_sil.plot(k_values, table['silhouette'], marker='o', label='k-means (Lloyd)')
    if 'reference_wcss' in table.columns:
        ax_wcss.plot(k_values, table['reference_wcss'], marker='s', linestyle='--', label='scikit-learn')
        ax_sil.plot(k_values, table['reference_silhouette'], marker='s', linestyle='--', label='scikit-learn')

    ax_wcss.set_title('Elbow Method')
    ax_wcss.set_xlabel('k')
    ax_wcss.set_ylabel('Within-cluster sum of squares')
    ax_sil.set_title('Average Silhouette')
    ax_sil.set_xlabel('k')
    ax_sil.set_ylabel('Silhouette score')
    for ax in (ax_wcss, ax_sil):
        ax.set_xticks(list(k_values))
        ax.legend(fontsize=7)

    fig.tight_layout()
    if show:
        plt.show()
    return fig


#######################################################
# Navigation Widgets
#######################################################

class ClusterNavigator:
    """Back/Next buttons stepping through the pairplots of a k sweep."""

    def __init__(self, df, features, results):
        self.df = df
        self.features = features
        self.results = results
        self.k_values = sorted(results)
        self.current_index = 0

        self.plot_output = widgets.Output()
        self.next_button = widgets.Button(description="Next")
        self.back_button = widgets.Button(description="Back")
        self.next_button.on_click(self.next_k)
        self.back_button.on_click(self.prev_k)

    @property
    def current_k(self):
        return self.k_values[self.current_index]

    def update_display(self):
        with self.plot_output:
            clear_output(wait=True)
            result = self.results[self.current_k]
            print(f"k = {self.current_k}, WCSS = {result.wcss:.2f}")
            grid = plot_cluster_pairs(self.df, result.assignments, self.features,
                                      title=f"k = {self.current_k}")
            plt.show()
            plt.close(grid.figure)

    def next_k(self, b=None):
        self.current_index = (self.current_index + 1) % len(self.k_values)
        self.update_display()

    def prev_k(self, b=None):
        self.current_index = (self.current_index - 1) % len(self.k_values)
        self.update_display()

    def run(self):
        self.current_index = 0
        display(
            widgets.VBox([
                widgets.HBox([self.back_button, self.next_button]),
                self.plot_output
            ])
        )
        self.update_display()
