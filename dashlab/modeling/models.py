"""
The three regressors compared by the model comparison script.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
from sklearn.ensemble import RandomForestRegressor
from sklearn.linear_model import ElasticNet
from sklearn.model_selection import GridSearchCV, KFold
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler
from sklearn.tree import DecisionTreeRegressor

from dashlab.log import logger
from dashlab.modeling.features import TARGET

RF_PREDICTORS: List[str] = ["avg", "release_date", "dev_avg", "average_playtime"]
GLM_PREDICTORS: List[str] = ["release_date", "dev_avg"]
TREE_PREDICTORS: List[str] = ["avg", "peak", "price", "average_playtime", "dev_avg"]

EPOCH = pd.Timestamp("1970-01-01")


def feature_matrix(df: pd.DataFrame, predictors: List[str]) -> pd.DataFrame:
    """Select ``predictors``; datetime columns become days since 1970-01-01."""
    X = df[predictors].copy()
    for col in predictors:
        if pd.api.types.is_datetime64_any_dtype(X[col]):
            X[col] = (X[col] - EPOCH).dt.days.astype("float64")
    return X


def tree_grid(levels: int = 5) -> Dict[str, List[Any]]:
    """Regular grid over cost complexity, depth and minimum split size."""
    return {
        "ccp_alpha": np.logspace(-10, -1, levels).tolist(),
        "max_depth": sorted({int(v) for v in np.linspace(1, 15, levels).round()}),
        "min_samples_split": sorted({int(v) for v in np.linspace(2, 40, levels).round()}),
    }


@dataclass
class FittedModel:
    name: str
    estimator: Any
    predictors: List[str]
    details: Dict[str, Any] = field(default_factory=dict)

    def predict(self, df: pd.DataFrame) -> np.ndarray:
        return self.estimator.predict(feature_matrix(df, self.predictors))


def fit_random_forest(train: pd.DataFrame, seed: int = 123, n_estimators: int = 1000) -> FittedModel:
    estimator = RandomForestRegressor(
        n_estimators=n_estimators,
        max_features="sqrt",
        min_samples_leaf=5,
        random_state=seed,
        n_jobs=-1,
    )
    estimator.fit(feature_matrix(train, RF_PREDICTORS), train[TARGET])
    return FittedModel("random_forest", estimator, RF_PREDICTORS)


def fit_elastic_net(train: pd.DataFrame, alpha: float = 0.001, l1_ratio: float = 0.5) -> FittedModel:
    estimator = Pipeline(
        [
            ("scale", StandardScaler()),
            ("model", ElasticNet(alpha=alpha, l1_ratio=l1_ratio, max_iter=10_000)),
        ]
    )
    estimator.fit(feature_matrix(train, GLM_PREDICTORS), train[TARGET])
    return FittedModel("elastic_net", estimator, GLM_PREDICTORS)


def fit_tuned_tree(
    train: pd.DataFrame,
    seed: int = 123,
    folds: int = 10,
    levels: int = 5,
    n_jobs: Optional[int] = -1,
) -> FittedModel:
    """
    Grid-search a regression tree with k-fold cross-validation on the
    training rows only, keep the configuration with the lowest mean RMSE and
    refit it on all training rows.
    """
    search = GridSearchCV(
        DecisionTreeRegressor(random_state=seed),
        param_grid=tree_grid(levels),
        scoring="neg_root_mean_squared_error",
        cv=KFold(n_splits=folds, shuffle=True, random_state=seed),
        refit=True,
        n_jobs=n_jobs,
    )
    search.fit(feature_matrix(train, TREE_PREDICTORS), train[TARGET])

    results = pd.DataFrame(search.cv_results_)
    results["mean_rmse"] = -results["mean_test_score"]
    top = (
        results.sort_values("mean_rmse")
        .loc[:, ["param_ccp_alpha", "param_max_depth", "param_min_samples_split", "mean_rmse", "std_test_score"]]
        .head(5)
        .reset_index(drop=True)
    )
    logger.info("Tuned tree best params {} (CV RMSE {:.3f})", search.best_params_, -search.best_score_)
    return FittedModel(
        "tuned_tree",
        search.best_estimator_,
        TREE_PREDICTORS,
        details={
            "best_params": search.best_params_,
            "cv_rmse": -search.best_score_,
            "top_configurations": top,
            "cv_results": results,
        },
    )


def fit_all(train: pd.DataFrame, seed: int = 123, n_estimators: int = 1000, folds: int = 10) -> Dict[str, FittedModel]:
    models = [
        fit_random_forest(train, seed=seed, n_estimators=n_estimators),
        fit_elastic_net(train),
        fit_tuned_tree(train, seed=seed, folds=folds),
    ]
    return {model.name: model for model in models}
