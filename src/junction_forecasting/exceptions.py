class JunctionForecastError(Exception):
    """Base exception for the junction forecasting package."""
    pass


class LoadError(JunctionForecastError):
    """Raised when the input cannot produce a single usable junction series."""
    pass


class InsufficientDataError(JunctionForecastError):
    """Raised when a series is too short to split, fit or analyse."""
    pass


class FitFailure(JunctionForecastError):
    """Raised when a forecasting model fails to fit or to produce a usable forecast."""
    pass
