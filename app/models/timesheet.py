from sqlalchemy import Column, Integer, String, Float, Date, DateTime, ForeignKey, UniqueConstraint
from app.database import Base
from app.utils.timezone import utcnow


class TimeEntry(Base):
    __tablename__ = "time_entries"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    zoho_timesheet_id = Column(String(100), nullable=False)
    date = Column(Date, nullable=False, index=True)
    project = Column(String(200), nullable=False)
    employee = Column(String(200), nullable=False)
    job = Column(String(200), nullable=True)
    billable_hours = Column(Float, nullable=False, default=0.0)
    non_billable_hours = Column(Float, nullable=False, default=0.0)
    total_hours = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime, default=utcnow)

    def __repr__(self):
        return f"<TimeEntry(user={self.user_id}, project={self.project}, employee={self.employee}, hours={self.total_hours})>"


class ProjectHours(Base):
    __tablename__ = "project_hours"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_project_hours_user_name"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    billable_hours = Column(Float, nullable=False, default=0.0)
    non_billable_hours = Column(Float, nullable=False, default=0.0)
    total_hours = Column(Float, nullable=False, default=0.0)
    last_sync_date = Column(DateTime, default=utcnow)

    def __repr__(self):
        return f"<ProjectHours(user={self.user_id}, name={self.name}, total={self.total_hours})>"


class EmployeeHours(Base):
    __tablename__ = "employee_hours"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_employee_hours_user_name"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    billable_hours = Column(Float, nullable=False, default=0.0)
    non_billable_hours = Column(Float, nullable=False, default=0.0)
    total_hours = Column(Float, nullable=False, default=0.0)
    last_sync_date = Column(DateTime, default=utcnow)

    def __repr__(self):
        return f"<EmployeeHours(user={self.user_id}, name={self.name}, total={self.total_hours})>"
