"""
Pytest configuration and shared fixtures.

This module provides the small hand-checked container used across suites,
a MIAME fixture, and a synthetic dataset generator.
"""

import numpy as np
import pytest

from exprdata.core.expression_set import ExpressionSet
from exprdata.core.miame import MIAME


def make_miame(name: str = "Name", samples=("S1", "S2"), **overrides) -> MIAME:
    """MIAME record with placeholder fields, overridable per test."""
    fields = dict(
        name=name,
        lab="Lab",
        contact="contact@example.org",
        title="Title",
        abstract="Abstract",
        url="https://example.org",
        pub_med_id="12345",
        samples=samples,
        hybridizations=["Hyb1"],
        norm_controls=["GAPDH"],
        preprocessing=["RMA"],
        other={"note": "value"},
    )
    fields.update(overrides)
    return MIAME(**fields)


def generate_synthetic_eset(
    n_features: int,
    n_samples: int,
    missing_fraction: float = 0.0,
    seed: int = 42,
) -> ExpressionSet:
    """
    Generate a log-normal expression matrix with realistic metadata.

    Args:
        n_features: Number of genes (rows)
        n_samples: Number of samples (columns)
        missing_fraction: Fraction of cells replaced by NaN
        seed: Random seed for reproducibility
    """
    rng = np.random.default_rng(seed)
    values = rng.lognormal(mean=5, sigma=2, size=(n_features, n_samples))

    n_missing = int(values.size * missing_fraction)
    if n_missing:
        positions = rng.choice(values.size, size=n_missing, replace=False)
        values.flat[positions] = np.nan

    sample_names = [
        f"{'CASE' if i % 2 == 0 else 'CTRL'}-SAMPLE_{i:04d}" for i in range(n_samples)
    ]
    return ExpressionSet(
        values=values,
        sample_names=sample_names,
        feature_names=[f"GENE_{i:05d}" for i in range(n_features)],
        sample_metadata={
            "phenotype": ["CASE" if i % 2 == 0 else "CTRL" for i in range(n_samples)],
            "batch": [i % 5 for i in range(n_samples)],
        },
        feature_metadata={
            "chromosome": [f"chr{(i % 22) + 1}" for i in range(n_features)],
        },
        experiment_data=make_miame(samples=sample_names),
        annotation="hgu133plus2",
    )


@pytest.fixture
def test_miame():
    return make_miame()


@pytest.fixture
def test_eset(test_miame):
    """3 features x 2 samples: A,B,C x S1,S2 with values [[1,2],[3,4],[5,6]]."""
    return ExpressionSet(
        values=np.array([[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]]),
        sample_names=["S1", "S2"],
        feature_names=["A", "B", "C"],
        sample_metadata={"condition": ["ctrl", "treated"], "age": [30, 40]},
        feature_metadata={"symbol": ["GA", "GB", "GC"]},
        experiment_data=test_miame,
        annotation="test-platform",
    )


@pytest.fixture
def bare_eset():
    """Same matrix as test_eset without any metadata."""
    return ExpressionSet(
        values=np.array([[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]]),
        sample_names=["S1", "S2"],
        feature_names=["A", "B", "C"],
    )


@pytest.fixture
def small_eset():
    """Synthetic 100 genes x 12 samples with 5% missing values."""
    return generate_synthetic_eset(100, 12, missing_fraction=0.05, seed=42)
