from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from zoneinfo import ZoneInfo

from venuebook.core.config import get_settings
from venuebook.services.intervals import ensure_utc

logger = logging.getLogger(__name__)


def send_email(to_email: str, subject: str, body: str) -> None:
    """Send an email via SMTP.

    For development, you can use MailHog on localhost:1025.
    """
    settings = get_settings()

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = settings.email_from
    msg["To"] = to_email
    msg.set_content(body)

    if settings.smtp_use_tls:
        server = smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port)
    else:
        server = smtplib.SMTP(settings.smtp_host, settings.smtp_port)

    try:
        if settings.smtp_username:
            server.login(settings.smtp_username, settings.smtp_password)
        server.send_message(msg)
    finally:
        try:
            server.quit()
        except smtplib.SMTPException:
            pass


def notify(to_email: str, subject: str, body: str) -> bool:
    """Best-effort notification. Failures are logged, never raised."""
    settings = get_settings()
    if not settings.notifications_enabled or not to_email:
        return False
    try:
        send_email(to_email, subject, body)
    except (OSError, smtplib.SMTPException):
        logger.exception("Failed to send '%s' to %s", subject, to_email)
        return False
    return True


def send_booking_confirmation(*, guest, venue, booking) -> bool:
    settings = get_settings()
    tz = ZoneInfo(settings.timezone)
    start_local = ensure_utc(booking.start_at).astimezone(tz)
    end_local = ensure_utc(booking.end_at).astimezone(tz)
    link = f"{settings.public_base_url.rstrip('/')}/booking-details/{booking.id}"
    body = (
        f"Hello {guest.name},\n\n"
        f"Your booking is confirmed.\n\n"
        f"Venue: {venue.title}\n"
        f"Address: {venue.address}, {venue.city}\n"
        f"When: {start_local.strftime('%Y-%m-%d %H:%M')} - {end_local.strftime('%H:%M')}\n"
        f"Guests: {booking.guest_count}\n"
        f"Total: {booking.total_price_egp} EGP\n\n"
        f"Details and cancellation: {link}\n"
    )
    return notify(guest.email, f"Booking confirmed: {venue.title}", body)


def send_new_booking_to_host(*, host, guest, venue, booking) -> bool:
    tz = ZoneInfo(get_settings().timezone)
    start_local = ensure_utc(booking.start_at).astimezone(tz)
    end_local = ensure_utc(booking.end_at).astimezone(tz)
    body = (
        f"Hello {host.name},\n\n"
        f"{guest.name} ({guest.email}) booked {venue.title}.\n\n"
        f"When: {start_local.strftime('%Y-%m-%d %H:%M')} - {end_local.strftime('%H:%M')}\n"
        f"Guests: {booking.guest_count}\n"
        f"Total: {booking.total_price_egp} EGP\n"
        f"Booking: {booking.id}\n"
    )
    return notify(host.email, f"New Booking - {venue.title}", body)


def send_booking_cancellation(*, guest, venue, booking) -> bool:
    body = (
        f"Hello {guest.name},\n\n"
        f"Your booking at {venue.title} ({booking.id}) has been cancelled.\n"
    )
    return notify(guest.email, f"Booking cancelled: {venue.title}", body)


def send_venue_status_notification(*, host, venue, status: str) -> bool:
    if status == "approved":
        subject = f"Your venue '{venue.title}' was approved"
        body = f"Hello {host.name},\n\n'{venue.title}' is now live and can receive bookings.\n"
    else:
        subject = f"Your venue '{venue.title}' was not approved"
        body = f"Hello {host.name},\n\n'{venue.title}' was rejected. Update the listing and submit it again.\n"
    return notify(host.email, subject, body)
