from svgplot.adapters.normalize import ArraySample, Sample, as_array, as_sample, normalize_pairs, normalize_xy

__all__ = ["ArraySample", "Sample", "as_array", "as_sample", "normalize_pairs", "normalize_xy"]
