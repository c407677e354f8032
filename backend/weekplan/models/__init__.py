from weekplan.models.center_settings import CenterSettings  # noqa: F401
from weekplan.models.schedule_record import ScheduleRecordRow  # noqa: F401
from weekplan.models.student import Student  # noqa: F401
