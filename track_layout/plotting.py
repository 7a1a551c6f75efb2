from matplotlib.lines import Line2D
import matplotlib.dates as mdates
import matplotlib.patches as patches
import matplotlib.pyplot as plt

from track_layout.cluster import TaskUnitCluster


def get_unit_rows(cluster: TaskUnitCluster) -> dict:
    """
    Vertical row of every unit: the track's offset plus the sub-track the unit sits in
    within its path.
    """
    rows = {}
    offset = 0
    for track in cluster.tracks:
        for path_id in track.paths:
            path = cluster.get_path_by_id(path_id)
            for sub_track_index, sub_track in enumerate(path.tracks):
                for unit in sub_track:
                    rows[unit] = offset + sub_track_index
        offset += track.height
    return rows


def draw_track_layout(cluster: TaskUnitCluster, title: str = "Track layout", ax=None, bar_height: float = 0.6):
    """
    Draw the cluster's units as bars, one row per sub-track, with lines between
    dependent units. The delay of a unit (anticipated start to apparent start) is drawn
    as a lighter trail behind it.

    Does not call plt.show().

    Returns:
        Tuple of (figure, axes)
    """
    rows = get_unit_rows(cluster)
    total_height = sum(track.height for track in cluster.tracks)
    if ax is None:
        fig, ax = plt.subplots(figsize=(12, max(3, total_height * 0.6 + 1)))
    else:
        fig = ax.figure

    colors = plt.cm.tab10.colors
    path_color = {
        path.id: colors[index % len(colors)] for index, path in enumerate(cluster.paths_sorted_by_ranking)
    }
    unit_color = {unit: path_color[path.id] for path in cluster.paths for unit in path.units}

    for unit, row in rows.items():
        y = row - bar_height / 2
        start = mdates.date2num(unit.anticipated_start_date)
        apparent_start = mdates.date2num(unit.apparent_start_date)
        end = mdates.date2num(unit.apparent_end_date)
        if apparent_start > start:
            ax.add_patch(patches.Rectangle((start, y), apparent_start - start, bar_height,
                                           facecolor=unit_color[unit], alpha=0.25, edgecolor="none"))
        ax.add_patch(patches.Rectangle((apparent_start, y), end - apparent_start, bar_height,
                                       facecolor=unit_color[unit], edgecolor="black", linewidth=0.8))
        ax.text(apparent_start + (end - apparent_start) / 2, row, unit.name,
                ha="center", va="center", fontsize=8)

    for unit, row in rows.items():
        for dep in unit.direct_dependencies:
            if dep not in rows:
                continue
            ax.add_line(Line2D(
                [mdates.date2num(dep.apparent_end_date), mdates.date2num(unit.apparent_start_date)],
                [rows[dep], row],
                color="gray", linewidth=0.8, alpha=0.8,
            ))

    # track separators
    offset = 0
    for track in cluster.tracks[:-1]:
        offset += track.height
        ax.axhline(offset - 0.5, color="lightgray", linewidth=0.6, linestyle="--")

    starts = [mdates.date2num(unit.anticipated_start_date) for unit in rows]
    ends = [mdates.date2num(unit.apparent_end_date) for unit in rows]
    margin = (max(ends) - min(starts)) * 0.02 or 1
    ax.set_xlim(min(starts) - margin, max(ends) + margin)
    ax.set_ylim(total_height - 0.5, -0.5)
    ax.xaxis_date()
    ax.set_yticks([])
    ax.set_title(title)
    fig.autofmt_xdate()
    return fig, ax
