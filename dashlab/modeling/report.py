"""
Held-out evaluation, error inspection and the HTML comparison report.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Tuple

import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score

from dashlab.log import logger
from dashlab.modeling.features import TARGET
from dashlab.modeling.models import FittedModel

DEFAULT_TEMPLATE = "plotly_white"


def regression_metrics(y_true, y_pred) -> Dict[str, float]:
    return {
        "rmse": float(np.sqrt(mean_squared_error(y_true, y_pred))),
        "mae": float(mean_absolute_error(y_true, y_pred)),
        "r2": float(r2_score(y_true, y_pred)),
    }


def compare_models(models: Dict[str, FittedModel], test: pd.DataFrame) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Predict the test rows with every model.

    Returns the predictions (one column per model next to the truth) and a
    metrics table ordered by RMSE.
    """
    predictions = test[["game", TARGET]].copy().reset_index(drop=True)
    rows = []
    for name, model in models.items():
        predictions[name] = model.predict(test)
        rows.append({"model": name, **regression_metrics(predictions[TARGET], predictions[name])})
    metrics = pd.DataFrame(rows).sort_values("rmse").reset_index(drop=True)
    return predictions, metrics


def largest_errors(predictions: pd.DataFrame, model: str, n: int = 5) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Titles the model most under-predicted and most over-predicted."""
    errors = predictions[["game", TARGET, model]].copy()
    errors["error"] = errors[TARGET] - errors[model]
    ordered = errors.sort_values("error", ascending=False)
    return ordered.head(n).reset_index(drop=True), ordered.tail(n).reset_index(drop=True)


def comparison_figure(predictions: pd.DataFrame) -> go.Figure:
    model_cols = [col for col in predictions.columns if col not in ("game", TARGET)]
    long = predictions.melt(id_vars=["game", TARGET], value_vars=model_cols, var_name="model", value_name="prediction")
    fig = px.scatter(
        long,
        x="prediction",
        y=TARGET,
        facet_col="model",
        opacity=0.4,
        hover_data=["game"],
        template=DEFAULT_TEMPLATE,
        title="Predicted vs actual metascore (held-out titles)",
    )
    lo = float(min(long["prediction"].min(), long[TARGET].min()))
    hi = float(max(long["prediction"].max(), long[TARGET].max()))
    fig.add_shape(
        type="line",
        x0=lo,
        y0=lo,
        x1=hi,
        y1=hi,
        line=dict(color="green", dash="dash"),
        row="all",
        col="all",
    )
    fig.update_xaxes(range=[lo, hi])
    fig.update_yaxes(range=[lo, hi])
    return fig


def eda_figures(df: pd.DataFrame) -> List[Tuple[str, go.Figure]]:
    """Exploratory views of the feature table."""
    score_counts = df.groupby(TARGET).size().reset_index(name="n")
    figures = [
        ("Distribution of scores", px.line(score_counts, x=TARGET, y="n", template=DEFAULT_TEMPLATE)),
        (
            "Score vs developer average score",
            px.scatter(df, x=TARGET, y="dev_avg", opacity=0.5, template=DEFAULT_TEMPLATE),
        ),
        ("Titles per developer", px.histogram(df, x="dev_size", template=DEFAULT_TEMPLATE)),
        (
            "Score vs average players (under 30,000)",
            px.scatter(df[df["avg"] < 30000], x=TARGET, y="avg", opacity=0.5, template=DEFAULT_TEMPLATE),
        ),
        ("Score vs peak players", px.scatter(df, x=TARGET, y="peak", opacity=0.5, template=DEFAULT_TEMPLATE)),
        (
            "Score vs average playtime",
            px.scatter(df, x=TARGET, y="average_playtime", opacity=0.5, template=DEFAULT_TEMPLATE),
        ),
        ("Release date vs score", px.scatter(df, x="release_date", y=TARGET, opacity=0.5, template=DEFAULT_TEMPLATE)),
    ]
    for title, fig in figures:
        fig.update_layout(title=title)
    return figures


def write_report(
    metrics: pd.DataFrame,
    figures: List[Tuple[str, go.Figure]],
    path: str,
) -> Path:
    """Write the metrics table and every figure into a single HTML file."""
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    parts = [
        "<html><head><meta charset='utf-8'><title>Metascore model comparison</title></head><body>",
        "<h1>Metascore model comparison</h1>",
        metrics.to_html(index=False, float_format=lambda v: f"{v:.3f}"),
    ]
    for index, (title, fig) in enumerate(figures):
        parts.append(f"<h2>{title}</h2>")
        parts.append(fig.to_html(full_html=False, include_plotlyjs="cdn" if index == 0 else False))
    parts.append("</body></html>")
    output.write_text("\n".join(parts), encoding="utf-8")
    logger.info("Wrote model comparison report to {}", output)
    return output
