"""
Module: preprocessing.py
Description: Contains functions to read and clean the penguin measurements,
             build the feature matrix used for clustering, and generate report
             outputs (CSV and LaTeX tables) from the cleaned data.
"""

import os
import pandas as pd
import numpy as np
from sklearn.preprocessing import StandardScaler
from tabulate import tabulate

PENGUIN_FEATURES = ['bill_length_mm', 'bill_depth_mm', 'flipper_length_mm', 'body_mass_g']


def load_penguin_data(data_path=None, features=PENGUIN_FEATURES, complete_cases=True):
    if data_path is None:
        from palmerpenguins import load_penguins
        df = load_penguins()
    else:
        df = pd.read_csv(data_path)

    missing = [col for col in features if col not in df.columns]
    if missing:
        raise KeyError(f"Missing feature columns: {', '.join(missing)}")

    n_raw = len(df)
    if complete_cases:
        df = df.dropna()
    else:
        df = df.dropna(subset=list(features))
    df = df.reset_index(drop=True)

    n_dropped = n_raw - len(df)
    if n_dropped:
        print(f"Dropped {n_dropped} incomplete records, {len(df)} remain.")
    else:
        print(f"All {len(df)} records are complete.")
    return df


def feature_matrix(df, features=PENGUIN_FEATURES):
    return df[list(features)].to_numpy(dtype=float)


def standardize_features(df, features=PENGUIN_FEATURES, with_std=True):
    df_scaled = df.copy()
    scaler = StandardScaler(with_std=with_std)
    df_scaled[list(features)] = scaler.fit_transform(df[list(features)])
    return df_scaled


#######################################################
# Report Tables
#######################################################

def resolve_output_folder(output_folder=None):
    try:
        base_folder = os.path.dirname(__file__)
    except NameError:
        base_folder = os.getcwd()

    if output_folder is None:
        output_folder = os.path.abspath(os.path.join(base_folder, "..", "Output"))
    if not os.path.exists(output_folder):
        os.makedirs(output_folder)
    return output_folder


def write_latex_table(df, filename, output_folder=None):
    output_folder = resolve_output_folder(output_folder)
    output_file = os.path.join(output_folder, filename)
    latex_table = tabulate(df, headers='keys', tablefmt='latex', showindex=False)
    with open(output_file, "w") as f:
        f.write(latex_table)
    print(f"LaTeX table written to: {output_file}")
    return output_file


def generate_summary_statistics(df, features=PENGUIN_FEATURES, output_folder=None):
    output_folder = resolve_output_folder(output_folder)

    def kurtosis_custom(x):
        return x.kurtosis()

    def skewness_custom(x):
        return x.skew()

    def percentile_5(x):
        return x.quantile(0.05)

    def percentile_95(x):
        return x.quantile(0.95)

    summary_statistics = df[list(features)].agg([
        'min', 'max', 'std', 'median', 'mean', 'var',
        kurtosis_custom, skewness_custom,
        percentile_5, percentile_95
    ]).round(2)
    summary_statistics = summary_statistics.T

    csv_file = os.path.join(output_folder, 'penguin_summarystats.csv')
    summary_statistics.to_csv(csv_file)

    write_latex_table(summary_statistics.reset_index().rename(columns={'index': 'feature'}),
                      "summary_stats.tex", output_folder)
    return summary_statistics


def species_counts(df):
    if 'species' not in df.columns:
        return pd.DataFrame()
    counts = df.groupby('species').size().rename('count').reset_index()
    counts['share'] = np.round(counts['count'] / counts['count'].sum() * 100, 2)
    return counts
