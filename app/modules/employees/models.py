from app.database.database import Base
from sqlalchemy import Column, String, Date, Numeric, Enum, JSON
from app.common.mixins import BaseMixin, SoftDeleteMixin
import enum


class EmploymentType(str, enum.Enum):
    FULL_TIME = "full_time"
    PART_TIME = "part_time"
    CONTRACT = "contract"
    INTERN = "intern"
    TEMPORARY = "temporary"
    NATIONAL_SERVICE = "national_service"


class EmployeeStatus(str, enum.Enum):
    ACTIVE = "active"
    ON_LEAVE = "on_leave"
    TERMINATED = "terminated"
    PROBATION = "probation"


class SalaryType(str, enum.Enum):
    SALARY = "salary"
    HOURLY = "hourly"
    COMMISSION = "commission"


class PayFrequency(str, enum.Enum):
    MONTHLY = "monthly"
    BIWEEKLY = "biweekly"
    WEEKLY = "weekly"
    DAILY = "daily"


class Employee(Base, BaseMixin, SoftDeleteMixin):
    __tablename__ = "employees"

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)
    job_title = Column(String(150), nullable=True)
    department = Column(String(100), nullable=True, index=True)
    employment_type = Column(Enum(EmploymentType), nullable=False, default=EmploymentType.FULL_TIME)
    status = Column(Enum(EmployeeStatus), nullable=False, default=EmployeeStatus.ACTIVE, index=True)
    hire_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    salary_type = Column(Enum(SalaryType), nullable=False, default=SalaryType.SALARY)
    salary_amount = Column(Numeric(12, 2), nullable=False, default=0)
    pay_frequency = Column(Enum(PayFrequency), nullable=False, default=PayFrequency.MONTHLY)

    bank_name = Column(String(150), nullable=True)
    bank_account_name = Column(String(150), nullable=True)
    bank_account_number = Column(String(50), nullable=True)

    emergency_contact = Column(JSON, nullable=True)
    metadata_ = Column("metadata", JSON, nullable=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
