"""Tests for the regressors and the comparison report."""

import numpy as np
import pandas as pd
import pytest

from dashlab.modeling.features import split_features
from dashlab.modeling.models import (
    GLM_PREDICTORS,
    RF_PREDICTORS,
    TREE_PREDICTORS,
    feature_matrix,
    fit_all,
    fit_elastic_net,
    fit_random_forest,
    fit_tuned_tree,
    tree_grid,
)
from dashlab.modeling.report import (
    compare_models,
    comparison_figure,
    eda_figures,
    largest_errors,
    regression_metrics,
    write_report,
)


@pytest.fixture
def features():
    rng = np.random.default_rng(7)
    n = 80
    dev_avg = rng.uniform(50, 90, n)
    avg = rng.uniform(10, 5000, n)
    return pd.DataFrame(
        {
            "game": [f"game {i}" for i in range(n)],
            "avg": avg,
            "peak": avg * rng.uniform(1.5, 3.0, n),
            "price": rng.uniform(0, 60, n),
            "average_playtime": rng.integers(0, 600, n),
            "dev_avg": dev_avg,
            "dev_size": rng.integers(1, 6, n),
            "release_date": pd.Timestamp("2010-01-01") + pd.to_timedelta(rng.integers(0, 3000, n), unit="D"),
            "metascore": dev_avg + rng.normal(0, 3, n),
        }
    )


@pytest.fixture
def split(features):
    return split_features(features, seed=123)


def test_tree_grid_has_five_levels_per_hyperparameter():
    grid = tree_grid()
    assert set(grid) == {"ccp_alpha", "max_depth", "min_samples_split"}
    assert all(len(values) == 5 for values in grid.values())
    assert grid["max_depth"][0] == 1
    assert grid["max_depth"][-1] == 15
    assert grid["ccp_alpha"][0] == pytest.approx(1e-10)
    assert grid["ccp_alpha"][-1] == pytest.approx(0.1)


def test_feature_matrix_converts_dates_to_days(features):
    X = feature_matrix(features, RF_PREDICTORS)
    assert list(X.columns) == RF_PREDICTORS
    assert X["release_date"].dtype == np.float64
    assert X["release_date"].min() >= (pd.Timestamp("2010-01-01") - pd.Timestamp("1970-01-01")).days


class TestFitting:
    def test_random_forest_is_reproducible(self, split):
        train, test = split
        first = fit_random_forest(train, seed=123, n_estimators=25).predict(test)
        second = fit_random_forest(train, seed=123, n_estimators=25).predict(test)
        np.testing.assert_allclose(first, second)

    def test_elastic_net_uses_its_predictors(self, split):
        train, test = split
        model = fit_elastic_net(train)
        assert model.predictors == GLM_PREDICTORS
        assert model.predict(test).shape == (len(test),)

    def test_tuned_tree_reports_search(self, split):
        train, test = split
        model = fit_tuned_tree(train, seed=123, folds=3, levels=2, n_jobs=1)
        assert model.predictors == TREE_PREDICTORS
        assert set(model.details["best_params"]) == {"ccp_alpha", "max_depth", "min_samples_split"}
        top = model.details["top_configurations"]
        assert len(top) == 5
        assert top["mean_rmse"].is_monotonic_increasing
        assert model.details["cv_rmse"] == pytest.approx(top["mean_rmse"].iloc[0])
        assert len(model.details["cv_results"]) == 2 ** 3


class TestReport:
    @pytest.fixture
    def models(self, split):
        train, _ = split
        return {
            "random_forest": fit_random_forest(train, seed=123, n_estimators=25),
            "elastic_net": fit_elastic_net(train),
        }

    def test_compare_models(self, models, split):
        _, test = split
        predictions, metrics = compare_models(models, test)
        assert list(predictions.columns) == ["game", "metascore", "random_forest", "elastic_net"]
        assert len(predictions) == len(test)
        assert set(metrics["model"]) == {"random_forest", "elastic_net"}
        assert metrics["rmse"].is_monotonic_increasing

    def test_largest_errors(self):
        predictions = pd.DataFrame(
            {"game": list("abcdefg"), "metascore": [70] * 7, "m": [60, 65, 70, 72, 75, 80, 90]}
        )
        under, over = largest_errors(predictions, "m", n=2)
        assert under["game"].tolist() == ["a", "b"]
        assert over["game"].tolist() == ["f", "g"]
        assert under["error"].tolist() == [10, 5]

    def test_regression_metrics(self):
        metrics = regression_metrics([1.0, 2.0, 3.0], [1.0, 2.0, 5.0])
        assert metrics["rmse"] == pytest.approx(np.sqrt(4 / 3))
        assert metrics["mae"] == pytest.approx(2 / 3)

    def test_write_report(self, models, split, features, tmp_path):
        _, test = split
        predictions, metrics = compare_models(models, test)
        figures = [("Model comparison", comparison_figure(predictions))] + eda_figures(features)
        assert len(figures) == 8

        path = write_report(metrics, figures, str(tmp_path / "reports" / "comparison.html"))
        html = path.read_text(encoding="utf-8")
        assert path.exists()
        assert "random_forest" in html
        assert "<h2>Score vs peak players</h2>" in html


def test_rerun_with_same_seed_reproduces_held_out_metrics(features):
    def run():
        train, test = split_features(features, seed=123)
        models = fit_all(train, seed=123, n_estimators=25, folds=3)
        return compare_models(models, test)

    predictions_a, metrics_a = run()
    predictions_b, metrics_b = run()

    assert set(metrics_a["model"]) == {"random_forest", "elastic_net", "tuned_tree"}
    pd.testing.assert_frame_equal(metrics_a, metrics_b)
    pd.testing.assert_frame_equal(predictions_a, predictions_b)
