"""Business record schemas."""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field


class ClientRecord(BaseModel):
    """A customer of the studio."""
    id: str
    name: str
    email: str
    phone: str
    date_of_birth: Optional[date] = None
    is_active: bool = True
    enrolled_services: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)


class CourseRecord(BaseModel):
    """A multi-week course."""
    id: str
    name: str
    description: str = ""
    instructor: str = ""
    duration_weeks: int = 0
    price: float
    max_students: int = 0
    current_enrollment: int = 0
    status: str = "active"  # active, inactive, completed
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class ClassRecord(BaseModel):
    """A single scheduled class."""
    id: str
    name: str
    course_id: Optional[str] = None
    instructor: str = ""
    date: datetime
    duration_minutes: int = 60
    max_students: int = 0
    current_enrollment: int = 0
    price: float = 0.0
    status: str = "scheduled"  # scheduled, ongoing, completed, cancelled


class OrderRecord(BaseModel):
    """An order for a course or class."""
    order_id: str
    client_id: str
    service_type: str  # course, class
    service_id: str
    amount: float
    status: str = "pending"  # pending, paid, cancelled
    created_at: datetime = Field(default_factory=datetime.now)


class PaymentRecord(BaseModel):
    """A payment against an order."""
    order_id: str
    amount: float
    payment_date: datetime = Field(default_factory=datetime.now)
    payment_method: str = "card"
    status: str = "completed"  # completed, failed, pending
    transaction_id: str = ""


class AttendanceRecord(BaseModel):
    """Attendance of one client at one class."""
    class_id: str
    client_id: str
    date: datetime
    present: bool
    notes: Optional[str] = None


class CreatedOrder(BaseModel):
    """Result of a successful create-order operation."""
    order: OrderRecord
    client: ClientRecord
    service_name: str
