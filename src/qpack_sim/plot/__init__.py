from .plot import plot_block_log
