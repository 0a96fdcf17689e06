from gymplan.models.day_schedule import DayScheduleRecord
from gymplan.models.week_submission import WeekSubmissionRecord
from gymplan.models.store_marker import StoreMarker
from gymplan.models.operation_log import OperationLog

__all__ = [
    "DayScheduleRecord",
    "WeekSubmissionRecord",
    "StoreMarker",
    "OperationLog",
]
