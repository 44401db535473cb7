from stockaudit.models.audit.audit_count import AuditCount
from stockaudit.models.audit.plan_item import PlanItem
from stockaudit.models.audit.manual_entry import ManualEntry
from stockaudit.models.audit.count_result import CountResult
from stockaudit.models.schedule.category import Category
from stockaudit.models.schedule.schedule_config import ScheduleConfig
from stockaudit.models.schedule.schedule_item import ScheduleItem
from stockaudit.models.schedule.schedule_history import ScheduleHistory
