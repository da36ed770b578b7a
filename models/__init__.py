from .user import User
from .hospital import Hospital
from .ambulance import Ambulance
from .driver import Driver
from .emergency_report import EmergencyReport
from .active_session import ActiveSession

__all__ = ["User", "Hospital", "Ambulance", "Driver", "EmergencyReport", "ActiveSession"]
