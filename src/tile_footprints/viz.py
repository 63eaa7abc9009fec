"""Static rendering of detection results and filled buffers.

Rendering is an explicit step: callers invoke it after a detection or
fill has finished. matplotlib is imported lazily so the detection core
never needs it.
"""

from __future__ import annotations

from typing import Any

from numpy.typing import NDArray

from tile_footprints.core import DetectionResult

MARKER_COLOR = "#e11d48"


def _draw_pixel_box(
    ax: Any,
    bounds: tuple[int, int, int, int],
    label: str,
    color: str,
    show_label: bool = True,
) -> None:
    """Draw one polygon's pixel bounding box with an optional label."""
    import matplotlib.patches as patches

    min_x, min_y, max_x, max_y = bounds
    rect = patches.Rectangle(
        (min_x, min_y),
        max_x - min_x,
        max_y - min_y,
        linewidth=2.0,
        edgecolor=color,
        facecolor="none",
    )
    ax.add_patch(rect)

    if show_label:
        ax.text(
            min_x,
            min_y - 2,
            label,
            fontsize=7,
            color="white",
            backgroundcolor=color,
            verticalalignment="bottom",
            clip_on=True,
        )


def _draw_marker(ax: Any, x: float, y: float, radius: float | None = None) -> None:
    """Draw the query pin, and the search radius circle if given."""
    import matplotlib.patches as patches

    if radius is not None:
        ax.add_patch(patches.Circle((x, y), radius, fill=False, linestyle="--", edgecolor=MARKER_COLOR))
    ax.add_patch(patches.Circle((x, y), 8, color="white"))
    ax.add_patch(patches.Circle((x, y), 6, color=MARKER_COLOR))


def show_detection(
    image: NDArray,
    result: DetectionResult,
    show_radius: bool = True,
    box_color: str = "#2563eb",
    show_labels: bool = True,
    figsize: tuple[int, int] = (6, 6),
    save_path: str | None = None,
    dpi: int = 150,
) -> tuple:
    """Show a detection on its tile image.

    Args:
        image: Tile image array of shape (H, W, 3|4).
        result: Result returned for that tile.
        show_radius: Whether to outline the search radius the detector
            used around the query pixel.
        box_color: Edge color of polygon boxes.
        show_labels: Whether to label boxes with their pixel counts.
        figsize: Figure size in inches.
        save_path: If provided, save figure to this path.
        dpi: DPI for saved figure.

    Returns:
        Tuple of (fig, ax).
    """
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(image)
    ax.set_axis_off()

    for polygon in result.polygons:
        if polygon.pixel_bounds is None:
            continue
        _draw_pixel_box(ax, polygon.pixel_bounds, f"{polygon.source_pixel_count}px", box_color, show_labels)

    if result.diagnostics is not None:
        diag = result.diagnostics
        radius = diag.search_radius if show_radius and diag.search_radius > 0 else None
        _draw_marker(ax, diag.query_pixel.x, diag.query_pixel.y, radius)

    title = f"{len(result.polygons)} building(s)" if result.ok else type(result.error).__name__
    ax.set_title(title)
    plt.tight_layout()

    if save_path is not None:
        fig.savefig(save_path, dpi=dpi, bbox_inches="tight")
        plt.close(fig)

    return fig, ax


def show_fill(
    buffer: NDArray,
    seed: tuple[int, int] | None = None,
    changed: int | None = None,
    figsize: tuple[int, int] = (6, 6),
    save_path: str | None = None,
    dpi: int = 150,
) -> tuple:
    """Show a flood-filled RGBA buffer with its seed pin.

    Returns:
        Tuple of (fig, ax).
    """
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(buffer)
    ax.set_axis_off()

    if seed is not None:
        _draw_marker(ax, seed[0], seed[1])
    if changed is not None:
        ax.set_title(f"{changed} pixel(s) filled")
    plt.tight_layout()

    if save_path is not None:
        fig.savefig(save_path, dpi=dpi, bbox_inches="tight")
        plt.close(fig)

    return fig, ax
