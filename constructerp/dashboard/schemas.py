"""Dashboard response schemas."""


from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WeeklyStatPoint(_CamelModel):
    date: str
    day: str
    present: int
    total: int


class DashboardStatsResponse(_CamelModel):
    total_sites: int
    total_workers: int
    pending_approvals: int
    today_attendance: int
    approved_current_window: int
    weekly_stats: list[WeeklyStatPoint]
