"""HTTP front-end for planning and interactive migration sessions."""
