from __future__ import annotations


class PlotDataError(ValueError):
    pass


class PlotConfigError(ValueError):
    pass


class AutoscaleError(PlotConfigError):
    def __init__(self, message: str, *, axis: str | None = None) -> None:
        self.axis = axis
        self.reason = message
        if axis is not None:
            message = f"{axis} axis: {message}"
        super().__init__(message)

    def for_axis(self, axis: str) -> "AutoscaleError":
        return AutoscaleError(self.reason, axis=axis)


class QuantileError(PlotConfigError):
    pass
