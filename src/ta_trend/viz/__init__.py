from .segments_plot import PlotConfig, segment_color, plot_segments
