"""fs_sampler – periodic disk-usage sampling for a fixed set of mount points."""

__version__ = "0.1.0"
