"""
Visualization Utilities
=======================

Plots of training progress recorded in TrainingStats.
"""

import matplotlib.pyplot as plt


def plot_training_stats(stats, figsize=(14, 5), save_path=None, show=True):
    """
    Plot training history (loss and accuracy curves).

    The accuracy panel is only drawn when accuracies were recorded.

    Args:
        stats: TrainingStats
        figsize: Figure size
        save_path: Path to save figure
        show: Call plt.show() after drawing

    Returns:
        matplotlib Figure
    """
    records = stats.records
    epochs = [r.epoch for r in records]
    losses = [r.loss for r in records]
    accuracies = [r.accuracy for r in records if r.accuracy is not None]
    has_accuracy = bool(records) and len(accuracies) == len(records)

    n_panels = 2 if has_accuracy else 1
    fig, axes = plt.subplots(1, n_panels, figsize=figsize, squeeze=False)
    axes = axes[0]

    # Loss plot
    axes[0].plot(epochs, losses, 'b-', label='Training Loss', linewidth=2)
    axes[0].set_xlabel('Epoch', fontsize=12)
    axes[0].set_ylabel('Loss', fontsize=12)
    axes[0].set_title('Training Loss', fontsize=14)
    axes[0].legend(fontsize=10)
    axes[0].grid(True, alpha=0.3)

    # Accuracy plot
    if has_accuracy:
        axes[1].plot(epochs, accuracies, 'g-', label='Training Accuracy', linewidth=2)
        axes[1].set_xlabel('Epoch', fontsize=12)
        axes[1].set_ylabel('Accuracy', fontsize=12)
        axes[1].set_title('Training Accuracy', fontsize=14)
        axes[1].set_ylim(0, 1.05)
        axes[1].legend(fontsize=10)
        axes[1].grid(True, alpha=0.3)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')

    if show:
        plt.show()
    return fig
