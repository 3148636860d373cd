"""
This package contains the code for the Transit Heatmaps project.
The module heat_utils contains the core functionality for the project,
while the top-level script in this package is for running it.

## generate

The main script. Loads the per-minute vehicle position feed and renders one heatmap per minute.

## heat_utils

- positions: loading the feed into a read-only minute -> positions mapping
- heatmap: the global bounding box and the count grid (with optional 3x3 splat)
- window: choosing which trailing minutes go into each frame
- render: turning a count grid into a grayscale or colormapped image
- frames: the per-minute loop and the frames.csv summary
- config: the config.yml file and presets
"""
