"""
Appointment lifecycle rules.

A booking carries two facets that move independently:

    status          pending -> confirmed -> completed
                    pending | confirmed -> cancelled
    payment_status  pending -> paid -> refunded -> paid

The payment record itself moves pending -> completed | failed and
completed -> refunded.

Every handler that changes a status goes through transition_status(),
transition_payment_status() or transition_payment(). They return a
TransitionResult and only touch the record when the move is allowed; callers
decide how to report a refusal.
"""

from dataclasses import dataclass
from typing import Optional

from ...models import (
    APPOINTMENT_PAYMENT_STATUSES,
    APPOINTMENT_STATUSES,
    PAYMENT_STATUSES,
    Appointment,
    Payment,
)

STATUS_TRANSITIONS: dict[str, frozenset] = {
    "pending": frozenset({"confirmed", "cancelled"}),
    "confirmed": frozenset({"completed", "cancelled"}),
    "completed": frozenset(),
    "cancelled": frozenset(),
}

PAYMENT_TRANSITIONS: dict[str, frozenset] = {
    "pending": frozenset({"paid"}),
    "paid": frozenset({"refunded"}),
    "refunded": frozenset({"paid"}),
}

PAYMENT_RECORD_TRANSITIONS: dict[str, frozenset] = {
    "pending": frozenset({"completed", "failed"}),
    "completed": frozenset({"refunded"}),
    "failed": frozenset(),
    "refunded": frozenset(),
}


@dataclass(frozen=True)
class TransitionResult:
    ok: bool
    previous: str
    status: str
    error: Optional[str] = None

    @property
    def changed(self) -> bool:
        return self.ok and self.previous != self.status


def _refuse(current: str, target: str, message: Optional[str] = None) -> TransitionResult:
    return TransitionResult(
        ok=False,
        previous=current,
        status=current,
        error=message or f"Invalid status transition from {current} to {target}",
    )


def transition_status(appointment: Appointment, target: str) -> TransitionResult:
    """Move the booking status; re-asserting the current status is a no-op"""
    current = appointment.status

    if target not in APPOINTMENT_STATUSES:
        return _refuse(current, target, f"Invalid appointment status: {target}")
    if target == current:
        return TransitionResult(ok=True, previous=current, status=current)
    if target == "cancelled" and current == "completed":
        return _refuse(current, target, "Cannot cancel a completed appointment")
    if target not in STATUS_TRANSITIONS[current]:
        return _refuse(current, target)

    appointment.status = target
    return TransitionResult(ok=True, previous=current, status=target)


def cancel(appointment: Appointment) -> TransitionResult:
    """Cancel a live booking; cancelling twice is refused rather than ignored"""
    if appointment.status == "cancelled":
        return _refuse("cancelled", "cancelled", "Appointment is already cancelled")
    return transition_status(appointment, "cancelled")


def transition_payment_status(appointment: Appointment, target: str) -> TransitionResult:
    current = appointment.payment_status

    if target not in APPOINTMENT_PAYMENT_STATUSES:
        return _refuse(current, target, f"Invalid payment status: {target}")
    if target == current:
        return TransitionResult(ok=True, previous=current, status=current)
    if target == "paid" and appointment.status == "cancelled":
        return _refuse(current, target, "Cannot pay for a cancelled appointment")
    if target not in PAYMENT_TRANSITIONS[current]:
        return _refuse(current, target, f"Invalid payment status transition from {current} to {target}")

    appointment.payment_status = target
    return TransitionResult(ok=True, previous=current, status=target)


def transition_payment(payment: Payment, target: str) -> TransitionResult:
    """Move a payment record: pending -> completed | failed, completed -> refunded"""
    current = payment.payment_status

    if target not in PAYMENT_STATUSES:
        return _refuse(current, target, f"Invalid payment status: {target}")
    # Checked before the no-op branch: refunded -> refunded is refused too
    if target == "refunded" and current != "completed":
        return _refuse(current, target, "Only completed payments can be refunded")
    if target == current:
        return TransitionResult(ok=True, previous=current, status=current)
    if target not in PAYMENT_RECORD_TRANSITIONS[current]:
        return _refuse(current, target, f"Invalid payment status transition from {current} to {target}")

    payment.payment_status = target
    return TransitionResult(ok=True, previous=current, status=target)
