"""Admin service - dashboard aggregates"""

from datetime import datetime

from sqlalchemy.orm import Session

from ..appointments.repository import AppointmentRepository
from ..appointments.schemas import AppointmentResponse
from ..diagnostics.repository import DiagnosticTestRepository
from ..doctors.repository import DoctorRepository
from ..payments.repository import PaymentRepository
from ..users.repository import UserRepository


def _month_bounds(now: datetime) -> tuple[datetime, datetime]:
    start = datetime(now.year, now.month, 1)
    if now.month == 12:
        return start, datetime(now.year + 1, 1, 1)
    return start, datetime(now.year, now.month + 1, 1)


class AdminService:
    def __init__(self, db: Session):
        self.db = db

    def get_dashboard(self) -> dict:
        """Catalog/booking counts, this month's revenue and the latest bookings"""
        month_start, next_month = _month_bounds(datetime.utcnow())

        return {
            "stats": {
                "totalUsers": UserRepository.count(self.db, role="USER"),
                "totalDoctors": DoctorRepository.count(self.db),
                "totalTests": DiagnosticTestRepository.count(self.db),
                "totalAppointments": AppointmentRepository.count(self.db),
                "totalPayments": PaymentRepository.count(self.db),
                "monthlyRevenue": PaymentRepository.completed_revenue(
                    self.db, since=month_start, until=next_month
                ),
            },
            "recentAppointments": [
                AppointmentResponse.from_model(a, include_user=True)
                for a in AppointmentRepository.recent(self.db, limit=5)
            ],
        }
