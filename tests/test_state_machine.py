"""Conditional transitions and the invoice-number allocator, against the database directly."""
import pytest
from sqlalchemy import event, insert, update

from jewelshop.agent.state_machine import (
    AWAITING_CONFIRMATION, COMPLETED, EXECUTING, FAILED, transition,
)
from jewelshop.core.exceptions import ConflictError, InvalidStateError
from jewelshop.db.session import SessionLocal
from jewelshop.models.ai_action import AIAction
from jewelshop.models.user_settings import UserSettings
from jewelshop.services.invoice_service import calculate_totals
from jewelshop.services.settings_service import (
    MAX_ALLOCATION_ATTEMPTS, allocate_invoice_number, format_invoice_number, set_next_invoice_number,
)
from tests.conftest import OWNER_ID, OTHER_ID


def _new_action(db, status=AWAITING_CONFIRMATION):
    action = AIAction(user_id=OWNER_ID, action_type="create_invoice", extracted_data={}, status=status)
    db.add(action)
    db.commit()
    return action.id


class TestTransition:
    def test_forward_move(self, db):
        action_id = _new_action(db)
        transition(db, action_id, OWNER_ID, AWAITING_CONFIRMATION, EXECUTING)
        db.commit()
        db.expire_all()
        assert db.get(AIAction, action_id).status == EXECUTING

    def test_stale_expectation_matches_nothing(self, db):
        action_id = _new_action(db, status=COMPLETED)
        with pytest.raises(InvalidStateError):
            transition(db, action_id, OWNER_ID, AWAITING_CONFIRMATION, EXECUTING)

    def test_wrong_owner_matches_nothing(self, db):
        action_id = _new_action(db)
        with pytest.raises(InvalidStateError):
            transition(db, action_id, OTHER_ID, AWAITING_CONFIRMATION, EXECUTING)

    def test_illegal_transition_is_refused(self, db):
        action_id = _new_action(db)
        with pytest.raises(InvalidStateError):
            transition(db, action_id, OWNER_ID, AWAITING_CONFIRMATION, COMPLETED)
        with pytest.raises(InvalidStateError):
            transition(db, action_id, OWNER_ID, FAILED, EXECUTING)

    def test_only_one_of_two_sessions_wins(self, db):
        action_id = _new_action(db)
        other = SessionLocal()
        try:
            # Both sessions saw awaiting_confirmation; only the first UPDATE matches
            transition(db, action_id, OWNER_ID, AWAITING_CONFIRMATION, EXECUTING)
            db.commit()
            with pytest.raises(InvalidStateError):
                transition(other, action_id, OWNER_ID, AWAITING_CONFIRMATION, EXECUTING)
            other.rollback()
        finally:
            other.close()


class TestInvoiceNumberAllocator:
    def test_first_allocation_creates_settings(self, db):
        assert allocate_invoice_number(db, OWNER_ID) == (1, 2)
        db.commit()
        assert db.get(UserSettings, OWNER_ID).invoice_next_number == 2

    def test_allocations_are_sequential(self, db):
        set_next_invoice_number(db, OWNER_ID, 41)
        assert allocate_invoice_number(db, OWNER_ID) == (41, 42)
        assert allocate_invoice_number(db, OWNER_ID) == (42, 43)
        db.commit()

    def test_counters_are_per_user(self, db):
        set_next_invoice_number(db, OWNER_ID, 10)
        assert allocate_invoice_number(db, OTHER_ID) == (1, 2)
        assert allocate_invoice_number(db, OWNER_ID) == (10, 11)

    def test_null_counter_starts_at_one(self, db):
        db.add(UserSettings(user_id=OWNER_ID, invoice_next_number=None))
        db.commit()
        db.query(UserSettings).filter(UserSettings.user_id == OWNER_ID).update({"invoice_next_number": None})
        db.commit()
        assert allocate_invoice_number(db, OWNER_ID) == (1, 2)


# ─── Lost races ───────────────────────────────────────────────────


def _counter_bumped_before_every_update(orm_execute_state):
    """Another writer advances the counter between our read and our UPDATE."""
    if orm_execute_state.is_update:
        orm_execute_state.session.connection().execute(
            update(UserSettings.__table__)
            .where(UserSettings.__table__.c.user_id == OWNER_ID)
            .values(invoice_next_number=UserSettings.__table__.c.invoice_next_number + 1)
        )


class TestAllocatorRaces:
    def test_gives_up_with_conflict_when_counter_keeps_moving(self, db):
        set_next_invoice_number(db, OWNER_ID, 10)
        event.listen(db, "do_orm_execute", _counter_bumped_before_every_update)

        with pytest.raises(ConflictError):
            allocate_invoice_number(db, OWNER_ID)

        event.remove(db, "do_orm_execute", _counter_bumped_before_every_update)
        db.commit()
        db.expire_all()
        # Every attempt lost to the other writer; none of ours landed
        assert db.get(UserSettings, OWNER_ID).invoice_next_number == 10 + MAX_ALLOCATION_ATTEMPTS

    def test_conflict_answers_409(self, client, auth, db):
        set_next_invoice_number(db, OWNER_ID, 10)
        event.listen(SessionLocal, "do_orm_execute", _counter_bumped_before_every_update)
        try:
            resp = client.post("/settings/invoice-number", headers=auth)
        finally:
            event.remove(SessionLocal, "do_orm_execute", _counter_bumped_before_every_update)

        assert resp.status_code == 409
        assert resp.json() == {"error": "Could not allocate an invoice number. Please try again."}

    def test_concurrent_first_insert_retries(self, db):
        seen = {"selects": 0}

        def settings_created_after_first_read(orm_execute_state):
            if not orm_execute_state.is_select or seen["selects"]:
                return None
            seen["selects"] += 1
            frozen = orm_execute_state.invoke_statement().freeze()
            # The other request creates the row right after we saw none
            orm_execute_state.session.connection().execute(
                insert(UserSettings.__table__).values(user_id=OWNER_ID, invoice_next_number=7)
            )
            return frozen()

        event.listen(db, "do_orm_execute", settings_created_after_first_read)
        try:
            assert allocate_invoice_number(db, OWNER_ID) == (7, 8)
        finally:
            event.remove(db, "do_orm_execute", settings_created_after_first_read)
        db.commit()
        db.expire_all()
        assert db.get(UserSettings, OWNER_ID).invoice_next_number == 8


class TestInvoiceFormatting:
    def test_zero_padded_with_prefix(self):
        assert format_invoice_number(None, 7) == "INV-0007"
        assert format_invoice_number("LJ/", 12345) == "LJ/12345"

    def test_gst_totals(self):
        totals = calculate_totals([1000, 250.5], 3)
        assert totals == {"subtotal": 1250.5, "gst_amount": 37.52, "grand_total": 1288.02}
