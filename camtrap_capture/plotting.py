"""
plotting.py

Bar charts of independent event counts.
"""

import matplotlib.pyplot as plt

from camtrap_capture.records import TagType


def plot_counts_by_deployment(counts, target, output_path):
    """Stacked horizontal bars: one bar per deployment, one colour per tag."""
    tag_col = TagType.parse(target).col_name
    pivot = counts.pivot_table(index='deployment', columns=tag_col, values='count',
                               aggfunc='sum', fill_value=0, sort=False)

    fig, ax = plt.subplots(figsize=(12, max(4, 0.4 * len(pivot) + 2)))
    if len(pivot) > 0:
        pivot.plot(kind='barh', stacked=True, ax=ax, width=0.8)
        ax.legend(title=tag_col, bbox_to_anchor=(1.02, 1), loc='upper left', fontsize=8)
    ax.invert_yaxis()
    ax.set_xlabel('Independent events')
    ax.set_ylabel('Deployment')
    ax.set_title(f'Independent events by deployment and {tag_col}')
    ax.grid(True, axis='x', alpha=0.3)

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    return output_path


def plot_count_all(counts, output_path, target=TagType.SPECIES):
    """Horizontal bars of total independent events per tag, largest first."""
    tag_col = TagType.parse(target).col_name
    ordered = counts.sort_values('count', ascending=True, kind='stable')

    fig, ax = plt.subplots(figsize=(10, max(4, 0.35 * len(ordered) + 2)))
    ax.barh(ordered[tag_col].astype(str), ordered['count'], color='steelblue', alpha=0.8)
    for y, value in enumerate(ordered['count']):
        ax.text(value, y, f' {value}', va='center', fontsize=8)
    ax.set_xlabel('Independent events')
    ax.set_title(f'Independent events per {tag_col} (all deployments)')
    ax.grid(True, axis='x', alpha=0.3)

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    return output_path
