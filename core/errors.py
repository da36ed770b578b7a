class EmergencyError(Exception):
    """Base class for domain errors raised by the services layer."""


class ValidationError(EmergencyError, ValueError):
    pass


class FleetError(EmergencyError, ValueError):
    """Ambulance/driver rule violated (unknown id, double assignment...)."""


class DispatchError(EmergencyError, ValueError):
    """Report or ambulance is not in a state that allows the transition."""


class FakeAlarmError(EmergencyError, ValueError):
    """Submission was judged a fake alarm; the reporting account is locked."""


class StorageError(EmergencyError, RuntimeError):
    """The database could not be read or written."""
