"""Exceptions raised by calendar adapters and the export path."""


class CalendarException(Exception):
    """Base class for calendar errors."""


class AdapterNotFoundError(CalendarException, LookupError):
    """No adapter is registered under the requested identifier."""

    def __init__(self, identifier: str):
        super().__init__(f"No calendar adapter registered as '{identifier}'")
        self.identifier = identifier


class CalendarNotFoundError(CalendarException, LookupError):
    """No calendar configuration exists for the requested identifier."""

    def __init__(self, configuration_id: str):
        super().__init__(f"Calendar configuration {configuration_id} not found")
        self.configuration_id = configuration_id


class CalendarExportError(CalendarException):
    """Exporting a calendar failed; carries the calendar name."""

    def __init__(self, message: str, calendar_name: str):
        super().__init__(message)
        self.calendar_name = calendar_name


class AdapterUnavailableError(CalendarExportError):
    """The calendar's adapter could not be resolved."""

    def __init__(self, calendar_name: str):
        super().__init__(
            "Calendar adapter class instance could not be found",
            calendar_name
        )


class CalendarGenerationError(CalendarExportError):
    """Building or serializing the calendar document failed."""

    def __init__(self, calendar_name: str):
        super().__init__(
            f"Error sending calendar {calendar_name} to user for downloading",
            calendar_name
        )
