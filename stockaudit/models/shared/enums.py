from enum import Enum

# Enums
class CountStatus(str, Enum):
    OPEN = "open"
    FINALIZED = "finalized"

class ResultStatus(str, Enum):
    REGULAR = "regular"      # observed == expected
    EXCESS = "excess"        # observed but not planned
    SHORTAGE = "shortage"    # planned, nothing observed

class ScheduleStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    RESCHEDULED = "rescheduled"

class ScheduleAction(str, Enum):
    CREATED = "created"
    RESCHEDULED = "rescheduled"
    COMPLETED = "completed"
    SKIPPED = "skipped"

class ExportFormat(str, Enum):
    XLSX = "xlsx"
    CSV = "csv"
