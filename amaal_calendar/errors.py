"""Exception hierarchy shared by the CLI, the server and the library code."""
from __future__ import annotations


class AmaalCalendarError(Exception):
    pass


class DatasetError(AmaalCalendarError):
    """The rule dataset or the month anchor file is missing or malformed."""


class AnchorError(AmaalCalendarError):
    """A month anchor could not be built (bad date, bad length, bad spec string)."""


class DayBoundaryError(AmaalCalendarError):
    """Dawn or dusk does not occur on the requested date (polar latitudes)."""


class GeocodeError(AmaalCalendarError):
    pass


class GeocodeQueryError(GeocodeError):
    """The free-text query is missing or shorter than two characters."""


class GeocodeUpstreamError(GeocodeError):
    """The upstream geocoding service failed or returned garbage."""


class TimezoneError(AmaalCalendarError):
    """Unknown IANA timezone name."""
