from .approval import WageApproval
from .employee import Employee
from .leave import LeaveCarryOver, LeaveRequest
from .timesheet import TimesheetEntry
from .user import User
from .wage_record import WageRecord

__all__ = [
    "User",
    "Employee",
    "WageApproval",
    "WageRecord",
    "TimesheetEntry",
    "LeaveRequest",
    "LeaveCarryOver",
]
