"""Tests for Pydantic model parsing with MooseBaseModel + MooseEnum."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from conftest import dispute_json, infraction_json, method_json, payment_json, subscription_json, ticket_json

from pymoose.models.dispute import Dispute, DisputeStatus, advance_dispute
from pymoose.models.infraction_type import InfractionCategory, InfractionType
from pymoose.models.pagination import Pagination
from pymoose.models.payment import Payment, PaymentMethod, PaymentStatus
from pymoose.models.subscription import BillingCycle, Subscription, SubscriptionStatus
from pymoose.models.ticket import Ticket, TicketStatus

# ------------------------------------------------------------------
# MooseEnum
# ------------------------------------------------------------------


class TestMooseEnum:
    def test_unknown_value_falls_back(self) -> None:
        assert TicketStatus("towed") is TicketStatus.UNKNOWN

    def test_match_is_case_insensitive(self) -> None:
        assert PaymentStatus("Completed") is PaymentStatus.COMPLETED

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("pending", DisputeStatus.SUBMITTED),
            ("denied", DisputeStatus.REJECTED),
            ("in_review", DisputeStatus.UNDER_REVIEW),
        ],
    )
    def test_legacy_dispute_statuses(self, raw: str, expected: DisputeStatus) -> None:
        assert DisputeStatus(raw) is expected

    def test_legacy_subscription_spellings(self) -> None:
        assert SubscriptionStatus("canceled") is SubscriptionStatus.CANCELLED
        assert BillingCycle("yearly") is BillingCycle.ANNUALLY

    def test_all_enums_have_unknown(self) -> None:
        for cls in (TicketStatus, DisputeStatus, PaymentStatus, SubscriptionStatus, BillingCycle, InfractionCategory):
            assert cls.UNKNOWN == "unknown", f"{cls.__name__}.UNKNOWN != 'unknown'"


# ------------------------------------------------------------------
# Ticket
# ------------------------------------------------------------------


class TestTicket:
    def test_mongo_id_and_camel_case(self) -> None:
        ticket = Ticket.model_validate(ticket_json("t1"))

        assert ticket.id == "t1"
        assert ticket.ticket_number == "TN-t1"
        assert ticket.violation_date == datetime(2026, 3, 1, 10, 0, tzinfo=UTC)
        assert ticket.city == "Montreal"
        assert ticket.is_open

    def test_empty_strings_use_defaults(self) -> None:
        ticket = Ticket.model_validate(ticket_json("t1", currency="", description=None))

        assert ticket.currency == "CAD"
        assert ticket.description == ""

    def test_fine_amount_alias(self) -> None:
        raw = ticket_json("t1")
        del raw["amount"]
        raw["fineAmount"] = 110.0

        assert Ticket.model_validate(raw).amount == 110.0

    def test_populated_references_are_flattened(self) -> None:
        raw = ticket_json("t1", vehicle={"_id": "v1", "licensePlate": "PLT42"}, infractionType={"_id": "inf-9"})
        del raw["licensePlate"]

        ticket = Ticket.model_validate(raw)

        assert ticket.license_plate == "PLT42"
        assert ticket.vehicle_id == "v1"
        assert ticket.infraction_id == "inf-9"

    def test_amount_paid_counts_completed_entries(self) -> None:
        ticket = Ticket.model_validate(
            ticket_json(
                "t1",
                paymentHistory=[
                    {"transactionId": "a", "amount": 20, "status": "completed"},
                    {"transactionId": "b", "amount": 30, "status": "failed"},
                ],
            )
        )
        assert ticket.amount_paid == 20

    def test_is_frozen(self) -> None:
        ticket = Ticket.model_validate(ticket_json("t1"))
        with pytest.raises(Exception):
            ticket.amount = 1.0  # type: ignore[misc]


# ------------------------------------------------------------------
# Dispute
# ------------------------------------------------------------------


class TestDispute:
    def test_ticket_ref_accepts_populated_document(self) -> None:
        dispute = Dispute.model_validate(dispute_json("d1", "ignored", ticketId={"_id": "t7", "amount": 10}))
        assert dispute.ticket_id == "t7"

    def test_advance_never_moves_backwards(self) -> None:
        reviewed = Dispute.model_validate(dispute_json("d1", "t1", status="under_review"))
        stale = Dispute.model_validate(dispute_json("d1", "t1", status="submitted", reason="edited"))

        merged = advance_dispute(reviewed, stale)

        assert merged.status is DisputeStatus.UNDER_REVIEW
        assert merged.reason == "edited"

    def test_advance_accepts_forward_moves(self) -> None:
        submitted = Dispute.model_validate(dispute_json("d1", "t1"))
        approved = Dispute.model_validate(dispute_json("d1", "t1", status="approved"))

        assert advance_dispute(submitted, approved) is approved

    def test_rejected_is_not_active(self) -> None:
        assert DisputeStatus.SUBMITTED.is_active
        assert not DisputeStatus.REJECTED.is_active


# ------------------------------------------------------------------
# Payments, subscriptions, catalog
# ------------------------------------------------------------------


class TestPayment:
    def test_confirmed_at_prefers_processed_at(self) -> None:
        payment = Payment.model_validate(payment_json("p1", "t1", createdAt="2026-03-09T00:00:00Z"))
        assert payment.confirmed_at == datetime(2026, 3, 10, 12, 0, tzinfo=UTC)

    def test_method_label(self) -> None:
        assert PaymentMethod.model_validate(method_json("m1")).label == "visa ••4242"
        assert PaymentMethod.model_validate(method_json("m2", type="paypal", cardLast4="")).label == "paypal"


class TestSubscription:
    def test_trialing_is_current(self) -> None:
        assert Subscription.model_validate(subscription_json("s1", status="trial")).is_current

    def test_cancelled_is_not_current(self) -> None:
        assert not Subscription.model_validate(subscription_json("s1", status="cancelled")).is_current

    def test_plan_ref_collapses_populated_plan(self) -> None:
        sub = Subscription.model_validate(subscription_json("s1", planId={"_id": "plan-pro", "name": "Pro"}))
        assert sub.plan_id == "plan-pro"


class TestInfractionType:
    def test_plain_string_labels_become_english(self) -> None:
        item = InfractionType.model_validate(infraction_json("1", type="Parking"))
        assert item.type.en == "Parking"
        assert item.type.get("ar") == "Parking"

    def test_numeric_id_and_bare_municipality(self) -> None:
        item = InfractionType.model_validate(infraction_json(12, municipality="mun-3"))
        assert item.id == "12"
        assert item.municipality is not None
        assert item.municipality.id == "mun-3"


class TestPagination:
    def test_catalog_keys_are_aliased(self) -> None:
        meta = Pagination.model_validate({"currentPage": 2, "itemsPerPage": 50, "totalItems": 120})
        assert (meta.page, meta.limit, meta.total) == (2, 50, 120)
