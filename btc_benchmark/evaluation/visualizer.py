"""
Visualization module for forecast comparison and model analysis.
"""

import logging
from pathlib import Path
from typing import List, Optional

import pandas as pd
import numpy as np
import matplotlib.pyplot as plt
import matplotlib.dates as mdates
import seaborn as sns

logger = logging.getLogger(__name__)

sns.set_style('darkgrid')
plt.rcParams['figure.figsize'] = [12, 6]
plt.rcParams['figure.dpi'] = 150


class PredictionVisualizer:
    """Visualization tools for model forecasts and evaluation results."""

    def __init__(self, save_path: Optional[Path] = None):
        self.save_path = Path(save_path) if save_path else None
        if self.save_path:
            self.save_path.mkdir(parents=True, exist_ok=True)

    def _save(self, fig: plt.Figure, save_name: Optional[str]) -> None:
        if save_name and self.save_path:
            path = self.save_path / f"{save_name}.png"
            fig.savefig(path, bbox_inches='tight')
            logger.info(f"Plot saved to {path}")

    @staticmethod
    def _x_axis(aligned: pd.DataFrame):
        if 'date' in aligned.columns:
            return aligned['date']
        return np.arange(1, len(aligned) + 1)

    @staticmethod
    def _model_columns(aligned: pd.DataFrame) -> List[str]:
        return [c for c in aligned.columns if c not in ('date', 'actual')]

    def plot_forecast_comparison(
        self, aligned: pd.DataFrame,
        title: str = "Forecast vs Actual",
        save_name: Optional[str] = None
    ) -> plt.Figure:
        """One panel per model: its aligned forecast against the actual close."""
        models = self._model_columns(aligned)
        n_cols = 2 if len(models) > 1 else 1
        n_rows = max(1, int(np.ceil(len(models) / n_cols)))

        fig, axes = plt.subplots(n_rows, n_cols, figsize=(7 * n_cols, 4 * n_rows), squeeze=False)
        x = self._x_axis(aligned)

        for ax, model in zip(axes.flat, models):
            ax.plot(x, aligned['actual'], label='Actual', color='blue', linewidth=2)
            ax.plot(x, aligned[model], label=model, color='red', linewidth=2, alpha=0.7)
            ax.set_title(model, weight='bold')
            ax.set_ylabel('Close (USD)')
            ax.legend()
            ax.grid(True, alpha=0.3)
            if 'date' in aligned.columns:
                ax.xaxis.set_major_formatter(mdates.DateFormatter('%Y-%m-%d'))
                ax.tick_params(axis='x', rotation=30)

        # Unused panels in an uneven grid
        for ax in list(axes.flat)[len(models):]:
            ax.set_visible(False)

        fig.suptitle(title, fontsize=14, weight='bold')
        fig.tight_layout()
        self._save(fig, save_name)
        return fig

    def plot_volatility(
        self, dates, returns: np.ndarray, sigma: np.ndarray,
        title: str = "GARCH Volatility Forecast",
        save_name: Optional[str] = None
    ) -> plt.Figure:
        """Realized log returns inside the forecast +/- sigma band."""
        fig, ax = plt.subplots(figsize=(12, 6))

        x = pd.DatetimeIndex(dates) if dates is not None else np.arange(1, len(returns) + 1)
        returns = np.asarray(returns, dtype=float)
        sigma = np.asarray(sigma, dtype=float)

        ax.plot(x, returns, label='Log returns', color='blue', linewidth=1.5)
        ax.fill_between(x, -sigma, sigma, color='orange', alpha=0.3, label='±σ forecast')
        ax.plot(x, sigma, color='orange', linewidth=1)
        ax.plot(x, -sigma, color='orange', linewidth=1)
        ax.axhline(y=0, color='black', linestyle='--', linewidth=0.8)

        ax.set_xlabel('Date' if dates is not None else 'Step')
        ax.set_ylabel('Log return')
        ax.set_title(title, weight='bold')
        ax.legend()
        ax.grid(True, alpha=0.3)

        fig.tight_layout()
        self._save(fig, save_name)
        return fig

    def plot_metrics(
        self, metrics: pd.DataFrame,
        title: str = "Model Error Comparison",
        save_name: Optional[str] = None
    ) -> plt.Figure:
        """Grouped RMSE/MAE bars for the scored price models."""
        scored = metrics[(metrics['status'] == 'ok') & (metrics['target'] == 'close')]
        melted = (
            scored[['rmse', 'mae']]
            .rename_axis('model')
            .reset_index()
            .melt(id_vars='model', var_name='metric', value_name='error')
        )
        melted['metric'] = melted['metric'].str.upper()

        fig, ax = plt.subplots(figsize=(10, 6))
        if not melted.empty:
            sns.barplot(data=melted, x='model', y='error', hue='metric', ax=ax)
        ax.set_xlabel('Model')
        ax.set_ylabel('Error (USD)')
        ax.set_title(title, weight='bold')
        ax.yaxis.set_major_formatter(plt.FuncFormatter(lambda x, p: f'${x:,.0f}'))

        fig.tight_layout()
        self._save(fig, save_name)
        return fig

    def plot_residuals(
        self, aligned: pd.DataFrame,
        title: str = "Residuals Over Time",
        save_name: Optional[str] = None
    ) -> plt.Figure:
        """Actual minus forecast for every model on a shared axis."""
        fig, ax = plt.subplots(figsize=(12, 6))
        x = self._x_axis(aligned)

        for model in self._model_columns(aligned):
            ax.plot(x, aligned['actual'] - aligned[model], label=model, alpha=0.8)

        ax.axhline(y=0, color='r', linestyle='--')
        ax.set_xlabel('Date' if 'date' in aligned.columns else 'Step')
        ax.set_ylabel('Residual (USD)')
        ax.set_title(title, weight='bold')
        ax.legend()
        ax.grid(True, alpha=0.3)

        fig.tight_layout()
        self._save(fig, save_name)
        return fig
