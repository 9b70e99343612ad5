import os

import matplotlib.pyplot as plt
import numpy as np

from ..plots import plot_comparison, plot_controls, plot_positions, plot_scree, time_axis


def test_comparison_returns_figure_without_output():
    t = time_axis(50, 0.02)
    fig, ax = plot_comparison(t, np.zeros(50), np.ones(60), "Roll")
    lines = ax.get_lines()
    assert len(lines) == 2
    assert len(lines[1].get_xdata()) == 50
    plt.close(fig)


def test_figures_written(tmp_path, rng):
    base = str(tmp_path / "case")
    plot_controls(rng.standard_normal((4, 30)), 0.02, u_meas=rng.standard_normal((4, 30)),
                  outbase=base, fmt="both")
    plot_positions(rng.standard_normal((6, 31)), 0.02, outbase=base)
    plot_scree([3.0, 1.0, 1e-12], thresh=1e-10, out_png=base + "_scree.png")
    for name in ("case_control0.png", "case_control3.pdf", "case_position2.png", "case_scree.png"):
        assert os.path.exists(tmp_path / name)
    assert not os.path.exists(tmp_path / "case_position3.png")
