import matplotlib
matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from preprocessing import PENGUIN_FEATURES, load_penguin_data


@pytest.fixture
def blobs():
    """Three well separated 2-D blobs, 30 points each."""
    rng = np.random.default_rng(0)
    centers = np.array([[0.0, 0.0], [10.0, 10.0], [-10.0, 10.0]])
    return np.vstack([c + rng.normal(scale=0.5, size=(30, 2)) for c in centers])


@pytest.fixture
def penguin_like_df():
    rng = np.random.default_rng(1)
    groups = {
        'Adelie': [38.8, 18.3, 190.0, 3700.0],
        'Gentoo': [47.5, 15.0, 217.0, 5076.0],
        'Chinstrap': [48.8, 18.4, 196.0, 3733.0],
    }
    frames = []
    for species, means in groups.items():
        values = np.array(means) + rng.normal(scale=[2.0, 1.0, 6.0, 300.0], size=(20, 4))
        frame = pd.DataFrame(values, columns=PENGUIN_FEATURES)
        frame['species'] = species
        frames.append(frame)
    return pd.concat(frames, ignore_index=True)


@pytest.fixture(scope="session")
def penguins():
    return load_penguin_data()
