"""Train and compare the metascore regressors.

Run with `python scripts/compare_models.py`. Downloads the player-count and
game catalogue datasets, fits a random forest, an elastic net and a tuned
regression tree, and writes an HTML report next to the logged metrics.
"""

from __future__ import annotations

from dashlab.config import load_settings
from dashlab.data.sources import build_source_cache
from dashlab.log import configure_logging, logger
from dashlab.modeling.features import load_feature_table, split_features
from dashlab.modeling.models import fit_all
from dashlab.modeling.report import (
    compare_models,
    comparison_figure,
    eda_figures,
    largest_errors,
    write_report,
)


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    cache = build_source_cache(settings)

    features = load_feature_table(cache, settings)
    train, test = split_features(features, seed=settings.random_seed)

    models = fit_all(train, seed=settings.random_seed)
    predictions, metrics = compare_models(models, test)

    for row in metrics.itertuples(index=False):
        logger.info("{:<14} rmse={:.3f} mae={:.3f} r2={:.3f}", row.model, row.rmse, row.mae, row.r2)

    top = models["tuned_tree"].details["top_configurations"]
    logger.info("Best tree configurations by CV RMSE:\n{}", top.to_string(index=False))

    under, over = largest_errors(predictions, "random_forest")
    logger.info("Most under-predicted by the random forest:\n{}", under.to_string(index=False))
    logger.info("Most over-predicted by the random forest:\n{}", over.to_string(index=False))

    figures = [("Model comparison", comparison_figure(predictions))] + eda_figures(features)
    path = write_report(metrics, figures, settings.report_path)
    print("Model comparison finished. Best model:", metrics.iloc[0]["model"], "| report:", path)


if __name__ == "__main__":
    main()
