# src/laser_preview/viz/static.py
from __future__ import annotations

import matplotlib.pyplot as plt

from laser_preview.schemas.state import PreviewResult


def plot_energy_field(
    result: PreviewResult,
    pixel_size: float,
    save_path: str | None = None,
    cmap: str = "inferno",
    vmax: float | None = None,
):
    """
    Plot the raw accumulated energy using Matplotlib.

    Unlike the grayscale preview, values above 1 are not clamped, which shows
    over-burnt areas. Axes are in millimeters with +Y up, as in the program.

    Args:
        result (PreviewResult): A finished run.
        pixel_size (float): Cell size [mm], used for the axis extent.
        save_path (str | None): If provided, saves the figure to this path instead of showing it.
        cmap (str): Matplotlib colormap name.
        vmax (float | None): Upper bound of the color scale. Defaults to the field maximum.
    """
    E = result.energy.detach().cpu().numpy()
    b = result.bounds
    extent = (
        b.x0 * pixel_size,
        (b.x1 + 1) * pixel_size,
        b.y0 * pixel_size,
        (b.y1 + 1) * pixel_size,
    )

    fig = plt.figure(figsize=(6, 5))
    im = plt.imshow(E, origin="lower", cmap=cmap, extent=extent, vmin=0.0, vmax=vmax)
    plt.colorbar(im, label="Energy applied [a.u.]")
    plt.xlabel("X [mm]")
    plt.ylabel("Y [mm]")
    plt.title(f"Energy field {b.width}x{b.height} px")

    if save_path:
        plt.savefig(save_path)
        plt.close(fig)
    else:
        plt.show()
