from __future__ import annotations

from datetime import UTC, datetime

import pytest
from conftest import dispute_json, infraction_json, ticket_json

from pymoose.exceptions import MooseValidationError
from pymoose.models.dispute import Dispute
from pymoose.models.infraction_type import InfractionCategory, InfractionType
from pymoose.models.ticket import Ticket, TicketStatus
from pymoose.state.filters import (
    DisputeFilters,
    InfractionTypeFilters,
    TicketFilters,
    project,
    text_matches,
)


def _tickets() -> tuple[Ticket, ...]:
    return (
        Ticket.model_validate(ticket_json("t1", licensePlate="ABC123", amount=40.0)),
        Ticket.model_validate(
            ticket_json("t2", licensePlate="XYZ789", status="paid", amount=120.0, location={"address": {"city": "Laval"}})
        ),
        Ticket.model_validate(
            ticket_json("t3", licensePlate="QWE456", amount=75.0, violationDate="2026-05-20T08:00:00Z")
        ),
    )


def test_text_matches_is_case_insensitive_substring() -> None:
    assert text_matches("mont", ["Montreal"])
    assert text_matches("", ["anything"])
    assert not text_matches("quebec", ["Montreal", None])


def test_default_spec_keeps_everything() -> None:
    tickets = _tickets()
    assert project(tickets, TicketFilters()) == tickets


def test_projection_never_mutates_input() -> None:
    tickets = _tickets()
    snapshot = tuple(t.model_copy() for t in tickets)

    project(tickets, TicketFilters(status=TicketStatus.PAID))

    assert tickets == snapshot


def test_ticket_filters_combine() -> None:
    tickets = _tickets()

    assert [t.id for t in project(tickets, TicketFilters(status=TicketStatus.OUTSTANDING))] == ["t1", "t3"]
    assert [t.id for t in project(tickets, TicketFilters(city="laval"))] == ["t2"]
    assert [t.id for t in project(tickets, TicketFilters(min_amount=50, max_amount=100))] == ["t3"]
    assert [t.id for t in project(tickets, TicketFilters(license_plate="xyz 789"))] == ["t2"]
    assert [t.id for t in project(tickets, TicketFilters(search="qwe"))] == ["t3"]


def test_ticket_date_range_accepts_naive_bounds() -> None:
    spec = TicketFilters(date_from=datetime(2026, 5, 1), date_to=datetime(2026, 6, 1, tzinfo=UTC))
    assert [t.id for t in project(_tickets(), spec)] == ["t3"]


def test_dispute_search_fields() -> None:
    disputes = (
        Dispute.model_validate(dispute_json("d1", "t1", reason="Meter broken")),
        Dispute.model_validate(dispute_json("d2", "t2", reason="Wrong plate")),
    )
    assert [d.id for d in project(disputes, DisputeFilters(search="METER"))] == ["d1"]
    assert [d.id for d in project(disputes, DisputeFilters(ticket_id="t2"))] == ["d2"]


def test_infraction_search_covers_every_language_and_municipality() -> None:
    catalog = (
        InfractionType.model_validate(infraction_json("1")),
        InfractionType.model_validate(
            infraction_json(
                "2",
                category="moving",
                type={"en": "Speeding"},
                violation={"en": "Over limit", "es": "Exceso de velocidad"},
                municipality={"city": "Laval"},
            )
        ),
        InfractionType.model_validate(infraction_json("3", isActive=False)),
    )

    assert [i.id for i in project(catalog, InfractionTypeFilters(search="parcomètre"))] == ["1"]
    assert [i.id for i in project(catalog, InfractionTypeFilters(search="velocidad"))] == ["2"]
    assert [i.id for i in project(catalog, InfractionTypeFilters(search="ville-marie"))] == ["1"]
    assert [i.id for i in project(catalog, InfractionTypeFilters(category=InfractionCategory.MOVING))] == ["2"]
    assert [i.id for i in project(catalog, InfractionTypeFilters(is_active=None))] == ["1", "2", "3"]


def test_with_value_validates_key_and_value() -> None:
    spec = TicketFilters()

    assert spec.with_value("status", "paid").status is TicketStatus.PAID
    with pytest.raises(MooseValidationError):
        spec.with_value("colour", "red")
    with pytest.raises(MooseValidationError):
        spec.with_value("min_amount", "lots")


def test_to_query_only_sends_non_default_values_in_camel_case() -> None:
    spec = TicketFilters(status=TicketStatus.PAID, license_plate="ABC123")
    assert spec.to_query() == {"status": TicketStatus.PAID, "licensePlate": "ABC123"}
    assert TicketFilters().to_query() == {}
