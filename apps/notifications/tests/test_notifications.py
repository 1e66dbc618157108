"""Booking events reaching guests by e-mail and staff through the feed."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.core import mail
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.catalog.models import Cottage
from apps.notifications import services
from apps.notifications.models import Notification


class BookingNotificationTests(APITestCase):
    def setUp(self) -> None:
        Cottage.objects.create(name="Glass Cottage", type="glass-cottage", base_price=Decimal("15000.00"))
        self.check_in = date.today() + timedelta(days=10)
        self.admin = get_user_model().objects.create_user(
            username="manager", password="ManagerPass123", is_staff=True
        )

    def _book(self):
        return self.client.post(
            reverse("booking-list"),
            {
                "cottage_type": "glass-cottage",
                "check_in": str(self.check_in),
                "check_out": str(self.check_in + timedelta(days=2)),
                "adults": 2,
                "guest_details": {"name": "Asha Rao", "email": "asha@example.com"},
                "total_amount": "36900",
            },
            format="json",
        )

    def test_new_booking_emails_guest_and_admin_after_commit(self) -> None:
        with self.captureOnCommitCallbacks(execute=True):
            response = self._book()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        reference = response.data["data"]["reference"]
        recipients = sorted(message.to[0] for message in mail.outbox)
        self.assertEqual(recipients, ["admin@villagemachaan.test", "asha@example.com"])
        notification = Notification.objects.get()
        self.assertEqual(notification.kind, Notification.Kind.BOOKING_CREATED)
        self.assertEqual(notification.booking_reference, reference)

    def test_rolled_back_booking_sends_nothing(self) -> None:
        with self.captureOnCommitCallbacks(execute=True):
            self._book()
        mail.outbox.clear()
        Notification.objects.all().delete()

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            response = self._book()

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(callbacks, [])
        self.assertEqual(mail.outbox, [])

    def test_mail_failure_does_not_undo_booking(self) -> None:
        with mock.patch.object(services, "send_mail", side_effect=OSError("smtp down")):
            with self.captureOnCommitCallbacks(execute=True):
                response = self._book()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(Notification.objects.exists())

    def test_guest_supplied_text_is_escaped_in_emails(self) -> None:
        check_in = self.check_in
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post(
                reverse("booking-list"),
                {
                    "cottage_type": "glass-cottage",
                    "check_in": str(check_in),
                    "check_out": str(check_in + timedelta(days=2)),
                    "adults": 2,
                    "guest_details": {"name": "<b>Asha</b>", "email": "asha@example.com"},
                    "special_requests": "<img src=x onerror=alert(1)>",
                    "total_amount": "36900",
                },
                format="json",
            )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(len(mail.outbox), 2)
        for message in mail.outbox:
            html_body, mimetype = message.alternatives[0]
            self.assertEqual(mimetype, "text/html")
            self.assertNotIn("<img src=x", html_body)
            self.assertNotIn("<b>Asha</b>", html_body)
            self.assertIn("&lt;img src=x onerror=alert(1)&gt;", html_body)

    def test_status_change_notifies_guest(self) -> None:
        booking_id = self._book().data["data"]["id"]
        self.client.force_authenticate(self.admin)

        with self.captureOnCommitCallbacks(execute=True):
            self.client.patch(reverse("booking-status", args=[booking_id]), {"status": "confirmed"}, format="json")

        self.assertEqual(len(mail.outbox), 1)
        self.assertIn("confirmed", mail.outbox[0].subject)
        self.assertEqual(Notification.objects.get().kind, Notification.Kind.BOOKING_STATUS)


class NotificationFeedTests(APITestCase):
    def setUp(self) -> None:
        self.admin = get_user_model().objects.create_user(
            username="manager", password="ManagerPass123", is_staff=True
        )
        for index in range(3):
            Notification.objects.create(
                kind=Notification.Kind.BOOKING_CREATED,
                booking_reference=f"VM00000{index}TEST",
                title=f"New booking {index}",
                message="...",
            )

    def test_staff_only(self) -> None:
        response = self.client.get(reverse("notification-list"))

        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))

    def test_mark_read_and_filter_unread(self) -> None:
        self.client.force_authenticate(self.admin)
        first = Notification.objects.first()

        response = self.client.post(reverse("notification-mark-read", args=[first.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.get(reverse("notification-list"), {"unread": "1"})
        self.assertEqual(response.data["count"], 2)

        response = self.client.post(reverse("notification-mark-all-read"))
        self.assertEqual(response.data["updated"], 2)


def test_email_without_recipient_is_skipped():
    assert services.send_email_notification("", "Subject", None, {}, html_message="<p>Hi</p>") is False


def test_pending_status_sends_no_email():
    booking = {"reference": "VM000000TEST", "status": "pending", "guest": {"email": "a@example.com"}}

    assert services.send_booking_status_email(booking, "pending") is False
