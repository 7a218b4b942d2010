import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns
from typing import Optional, Sequence
from matplotlib.axes import Axes


def plot_fit(observed, simulated, ax: Optional[Axes] = None, title: Optional[str] = None,
             show: bool = False) -> Axes:
    """Observed vs simulated weekly cases (both ObservationSeries)"""
    observed.check_aligned(simulated)
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 4.5))
    ax.plot(observed.time, observed.cases, "o-", lw=2, label=observed.name or "Observed")
    ax.plot(simulated.time, simulated.cases, lw=2, linestyle="--", label=simulated.name or "Simulated")
    ax.set_title(title or "Weekly reported cases")
    ax.set_xlabel("Week")
    ax.set_ylabel("New cases")
    ax.legend()
    ax.grid(alpha=0.25)
    if show:
        plt.tight_layout()
        plt.show()
    return ax


def plot_trace(trace, params: Optional[Sequence[str]] = None, show: bool = False) -> np.ndarray:
    """Cost and parameter paths per objective evaluation.

    Returns the array of axes: cost on top, one panel per parameter below.
    """
    df = trace.to_dataframe()
    if df.empty:
        raise ValueError("trace has no records to plot")
    names = list(params) if params is not None else [c for c in df.columns
                                                     if c not in ("iteration", "cost", "best_cost")]
    with sns.axes_style("whitegrid"):
        fig, axes = plt.subplots(len(names) + 1, 1, figsize=(8, 2.2 * (len(names) + 1)), sharex=True)
        axes = np.atleast_1d(axes)
        sns.scatterplot(data=df, x="iteration", y="cost", s=12, color="0.4", ax=axes[0], label="cost")
        axes[0].plot(df["iteration"], df["best_cost"], color="C3", lw=1.5, label="best so far")
        if (df["cost"] > 0).all():
            axes[0].set_yscale("log")
        axes[0].legend(fontsize=9)
        for ax, name in zip(axes[1:], names):
            sns.lineplot(data=df, x="iteration", y=name, ax=ax, lw=1)
            ax.set_ylabel(name)
        axes[-1].set_xlabel("Evaluation")
        fig.tight_layout()
    if show:
        plt.show()
    return axes
