"""volknobs: dial, mute and set-volume controls for PipeWire via wpctl."""

__version__ = "0.1.0"
