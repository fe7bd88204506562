"""Tests for the mission approval state machine."""

from datetime import datetime, timezone

import pytest

from missionflow.core.approval.errors import (
    AlreadyDecidedError,
    LifecycleError,
    MissingCommentError,
    OutOfOrderError,
    UnknownRoleError,
    WorkflowError,
)
from missionflow.core.approval.machine import (
    ApprovalStateMachine,
    advance_mission,
    decide,
    find_next_actionable_step,
    is_terminal,
    pending_for,
)
from missionflow.core.approval.states import (
    ApprovalRole,
    Decision,
    LifecycleTransition,
    MissionStatus,
    StepStatus,
)

from tests.factories import APPROVERS, DECIDED_AT, approve_all, approve_through, make_mission


DEPT = ApprovalRole.DEPARTMENT_HEAD
FINANCE = ApprovalRole.FINANCE
HR = ApprovalRole.HR
DIRECTOR = ApprovalRole.DIRECTOR


class TestFindNextActionableStep:
    """Test locating the step that may be decided next."""

    def test_fresh_mission(self):
        assert find_next_actionable_step(make_mission()).role == DEPT

    def test_after_partial_approval(self):
        mission = approve_through(make_mission(), DEPT, FINANCE)
        assert find_next_actionable_step(mission).role == HR

    def test_fully_approved(self):
        mission = approve_all(make_mission())
        assert find_next_actionable_step(mission) is None
        assert is_terminal(mission)

    def test_rejected(self):
        mission = approve_through(make_mission(), DEPT)
        mission = decide(mission, FINANCE, Decision.REJECT, APPROVERS[FINANCE], "Budget insuffisant")

        assert find_next_actionable_step(mission) is None
        assert is_terminal(mission)

    def test_short_chain(self):
        mission = make_mission(roles=[DEPT, DIRECTOR])
        mission = approve_through(mission, DEPT)
        assert find_next_actionable_step(mission).role == DIRECTOR


class TestDecide:
    """Test recording decisions on the approval chain."""

    def test_happy_path(self):
        """Test four approvals in order assign the mission."""
        mission = make_mission()

        for role in (DEPT, FINANCE, HR):
            mission = decide(mission, role, Decision.APPROVE, APPROVERS[role], decided_at=DECIDED_AT)
            assert mission.status == MissionStatus.PENDING

        mission = decide(mission, DIRECTOR, Decision.APPROVE, APPROVERS[DIRECTOR], decided_at=DECIDED_AT)

        assert mission.status == MissionStatus.ASSIGNED
        for step in mission.approval_status:
            assert step.status == StepStatus.APPROVED
            assert step.approver == APPROVERS[step.role]
            assert step.decided_at == DECIDED_AT

    def test_out_of_order_refused(self):
        """Test Finance cannot decide before the Department Head."""
        mission = make_mission()

        with pytest.raises(OutOfOrderError) as exc_info:
            decide(mission, FINANCE, Decision.APPROVE, APPROVERS[FINANCE])

        assert exc_info.value.code == "out_of_order"
        assert exc_info.value.expected_role == DEPT
        assert "Department Head" in exc_info.value.message
        assert all(step.is_pending for step in mission.approval_status)

    def test_reject_without_comment_refused(self):
        mission = approve_through(make_mission(), DEPT, FINANCE, HR)

        for comment in (None, "", "   "):
            with pytest.raises(MissingCommentError):
                decide(mission, DIRECTOR, Decision.REJECT, APPROVERS[DIRECTOR], comment)

        assert mission.step_for(DIRECTOR).is_pending

    def test_reject_with_comment(self):
        mission = approve_through(make_mission(), DEPT, FINANCE, HR)

        mission = decide(
            mission, DIRECTOR, Decision.REJECT, APPROVERS[DIRECTOR], "  Budget insuffisant  ",
            decided_at=DECIDED_AT,
        )

        step = mission.step_for(DIRECTOR)
        assert mission.status == MissionStatus.REJECTED
        assert step.status == StepStatus.REJECTED
        assert step.comment == "Budget insuffisant"
        assert step.approver == APPROVERS[DIRECTOR]

    def test_rejection_freezes_the_chain(self):
        """Test that later steps stay pending and can no longer be decided."""
        mission = approve_through(make_mission(), DEPT)
        mission = decide(mission, FINANCE, Decision.REJECT, APPROVERS[FINANCE], "Pas de budget")

        assert mission.step_for(HR).is_pending
        assert mission.step_for(DIRECTOR).is_pending
        with pytest.raises(AlreadyDecidedError):
            decide(mission, HR, Decision.APPROVE, APPROVERS[HR])
        with pytest.raises(AlreadyDecidedError):
            decide(mission, DEPT, Decision.APPROVE, APPROVERS[DEPT])

    def test_assigned_mission_refuses_decisions(self):
        mission = approve_all(make_mission())

        with pytest.raises(AlreadyDecidedError) as exc_info:
            decide(mission, DIRECTOR, Decision.APPROVE, APPROVERS[DIRECTOR])

        assert exc_info.value.code == "already_decided"
        assert exc_info.value.status == MissionStatus.ASSIGNED

    def test_second_decision_on_same_step_refused(self):
        mission = approve_through(make_mission(), DEPT)

        with pytest.raises(WorkflowError):
            decide(mission, DEPT, Decision.APPROVE, APPROVERS[DEPT])
        with pytest.raises(WorkflowError):
            decide(mission, DEPT, Decision.REJECT, APPROVERS[DEPT], "Changement d'avis")

        assert mission.step_for(DEPT).status == StepStatus.APPROVED

    def test_role_outside_chain(self):
        mission = make_mission(roles=[DEPT, DIRECTOR])

        with pytest.raises(UnknownRoleError) as exc_info:
            decide(mission, FINANCE, Decision.APPROVE, APPROVERS[FINANCE])

        assert exc_info.value.code == "unknown_role"
        assert exc_info.value.mission_id == mission.id

    def test_unknown_role_label(self):
        with pytest.raises(UnknownRoleError):
            decide(make_mission(), "Comptable", Decision.APPROVE, "Quelqu'un")

    def test_unknown_role_checked_before_terminal_state(self):
        mission = approve_all(make_mission(roles=[DEPT, DIRECTOR]))
        with pytest.raises(UnknownRoleError):
            decide(mission, HR, Decision.APPROVE, APPROVERS[HR])

    def test_terminal_state_checked_before_comment(self):
        mission = approve_all(make_mission())
        with pytest.raises(AlreadyDecidedError):
            decide(mission, DIRECTOR, Decision.REJECT, APPROVERS[DIRECTOR])

    def test_order_checked_before_comment(self):
        with pytest.raises(OutOfOrderError):
            decide(make_mission(), HR, Decision.REJECT, APPROVERS[HR])

    def test_approve_does_not_need_comment(self):
        mission = make_mission()

        approved = decide(mission, DEPT, "approve", APPROVERS[DEPT], "")

        assert approved.step_for(DEPT).status == StepStatus.APPROVED
        assert approved.step_for(DEPT).comment is None

    def test_approve_keeps_optional_comment(self):
        mission = decide(make_mission(), DEPT, Decision.APPROVE, APPROVERS[DEPT], "RAS")
        assert mission.step_for(DEPT).comment == "RAS"

    def test_accepts_legacy_role_label(self):
        mission = decide(make_mission(), "Chef", Decision.APPROVE, APPROVERS[DEPT])
        assert mission.step_for(DEPT).status == StepStatus.APPROVED

    def test_blank_actor_refused(self):
        with pytest.raises(ValueError):
            decide(make_mission(), DEPT, Decision.APPROVE, "  ")

    def test_input_snapshot_unchanged(self):
        mission = make_mission()

        decided = decide(mission, DEPT, Decision.APPROVE, APPROVERS[DEPT])

        assert decided is not mission
        assert mission.step_for(DEPT).is_pending
        assert decided.id == mission.id
        assert decided.title == mission.title
        assert decided.budget == mission.budget

    def test_exactly_one_step_changes(self):
        mission = approve_through(make_mission(), DEPT)

        decided = decide(mission, FINANCE, Decision.APPROVE, APPROVERS[FINANCE])

        changed = [
            before.role
            for before, after in zip(mission.approval_status, decided.approval_status)
            if before != after
        ]
        assert changed == [FINANCE]

    def test_default_timestamp_is_utc_now(self):
        before = datetime.now(timezone.utc)
        mission = decide(make_mission(), DEPT, Decision.APPROVE, APPROVERS[DEPT])
        after = datetime.now(timezone.utc)

        decided_at = mission.step_for(DEPT).decided_at
        assert before <= decided_at <= after


class TestPendingFor:
    """Test role-specific pending queues."""

    def test_queues_follow_the_chain(self):
        fresh = make_mission()
        at_finance = approve_through(make_mission(), DEPT)
        at_hr = approve_through(make_mission(), DEPT, FINANCE)
        at_director = approve_through(make_mission(), DEPT, FINANCE, HR)
        assigned = approve_all(make_mission())
        missions = [fresh, at_finance, at_hr, at_director, assigned]

        assert pending_for(DEPT, missions) == [fresh]
        assert pending_for(FINANCE, missions) == [at_finance]
        assert pending_for(HR, missions) == [at_hr]
        assert pending_for(DIRECTOR, missions) == [at_director]

    def test_preserves_input_order(self):
        first, second, third = make_mission(), make_mission(), make_mission()
        assert pending_for(DEPT, [third, first, second]) == [third, first, second]

    def test_mission_in_at_most_one_queue(self):
        missions = [
            make_mission(),
            approve_through(make_mission(), DEPT),
            approve_through(make_mission(roles=[DEPT, DIRECTOR]), DEPT),
            approve_all(make_mission()),
        ]
        for mission in missions:
            queues = [role for role in ApprovalRole if mission in pending_for(role, [mission])]
            assert len(queues) <= 1

    def test_rejected_missions_leave_every_queue(self):
        mission = approve_through(make_mission(), DEPT, FINANCE, HR)
        mission = decide(mission, DIRECTOR, Decision.REJECT, APPROVERS[DIRECTOR], "Budget insuffisant")

        for role in ApprovalRole:
            assert pending_for(role, [mission]) == []

    def test_legacy_label(self):
        mission = approve_through(make_mission(), DEPT, FINANCE)
        assert pending_for("RH", [mission]) == [mission]


class TestLifecycle:
    """Test moving an approved mission to completion."""

    def test_full_lifecycle(self):
        mission = approve_all(make_mission())

        mission = advance_mission(mission, LifecycleTransition.ACCEPT)
        assert mission.status == MissionStatus.ACCEPTED

        mission = advance_mission(mission, "start")
        assert mission.status == MissionStatus.IN_PROGRESS

        mission = advance_mission(mission, LifecycleTransition.COMPLETE)
        assert mission.status == MissionStatus.COMPLETED
        assert mission.approval_outcome == MissionStatus.ASSIGNED

    def test_cannot_accept_pending_mission(self):
        with pytest.raises(LifecycleError) as exc_info:
            advance_mission(make_mission(), LifecycleTransition.ACCEPT)

        assert exc_info.value.code == "invalid_lifecycle_transition"
        assert exc_info.value.status == MissionStatus.PENDING

    def test_cannot_skip_start(self):
        mission = advance_mission(approve_all(make_mission()), LifecycleTransition.ACCEPT)
        with pytest.raises(LifecycleError):
            advance_mission(mission, LifecycleTransition.COMPLETE)

    def test_cannot_accept_rejected_mission(self):
        mission = decide(make_mission(), DEPT, Decision.REJECT, APPROVERS[DEPT], "Hors budget")
        with pytest.raises(LifecycleError):
            advance_mission(mission, LifecycleTransition.ACCEPT)

    def test_decisions_refused_after_acceptance(self):
        mission = advance_mission(approve_all(make_mission()), LifecycleTransition.ACCEPT)
        with pytest.raises(AlreadyDecidedError):
            decide(mission, DIRECTOR, Decision.REJECT, APPROVERS[DIRECTOR], "Trop tard")


class TestApprovalStateMachine:
    """Test the machine wrapper."""

    def test_initial_state(self):
        machine = ApprovalStateMachine(make_mission())

        assert machine.status == MissionStatus.PENDING
        assert not machine.is_terminal
        assert machine.next_step.role == DEPT
        assert machine.can_decide(DEPT)
        assert machine.can_decide("Chef")
        assert not machine.can_decide(FINANCE)
        assert not machine.can_decide("Comptable")

    def test_decide_updates_snapshot(self, clock):
        start = clock.now
        machine = ApprovalStateMachine(make_mission(), clock=clock)

        mission = machine.decide(DEPT, Decision.APPROVE, actor=APPROVERS[DEPT])

        assert machine.mission is mission
        assert machine.next_step.role == FINANCE
        assert mission.step_for(DEPT).decided_at == start

    def test_history_records(self, clock):
        machine = ApprovalStateMachine(make_mission(), clock=clock)

        for role in (DEPT, FINANCE, HR, DIRECTOR):
            machine.decide(role, Decision.APPROVE, actor=APPROVERS[role], metadata={"ip": "10.0.0.4"})

        history = machine.get_history()
        assert [record["role"] for record in history] == ["department_head", "finance", "hr", "director"]
        assert history[0]["from_status"] == "pending"
        assert history[-1]["to_status"] == "assigned"
        assert history[-1]["actor"] == APPROVERS[DIRECTOR]
        assert history[0]["metadata"] == {"ip": "10.0.0.4"}
        assert machine.is_terminal

    def test_get_history_returns_copy(self):
        machine = ApprovalStateMachine(make_mission())
        machine.decide(DEPT, Decision.APPROVE, actor=APPROVERS[DEPT])

        machine.get_history().clear()

        assert len(machine.get_history()) == 1

    def test_failed_decision_leaves_machine_unchanged(self):
        mission = make_mission()
        machine = ApprovalStateMachine(mission)

        with pytest.raises(OutOfOrderError):
            machine.decide(HR, Decision.APPROVE, actor=APPROVERS[HR])

        assert machine.mission is mission
        assert machine.get_history() == []

    def test_callbacks(self):
        machine = ApprovalStateMachine(make_mission())
        approvals = []
        rejections = []
        machine.register_callback(Decision.APPROVE, approvals.append)
        machine.register_callback(Decision.REJECT, rejections.append)

        machine.decide(DEPT, Decision.APPROVE, actor=APPROVERS[DEPT])
        machine.decide(FINANCE, Decision.REJECT, actor=APPROVERS[FINANCE], comment="Pas de ligne budgétaire")

        assert [record["role"] for record in approvals] == ["department_head"]
        assert [record["comment"] for record in rejections] == ["Pas de ligne budgétaire"]

    def test_failing_callback_does_not_undo_decision(self):
        machine = ApprovalStateMachine(make_mission())

        def broken(record):
            raise RuntimeError("notification service down")

        machine.register_callback(Decision.APPROVE, broken)
        mission = machine.decide(DEPT, Decision.APPROVE, actor=APPROVERS[DEPT])

        assert mission.step_for(DEPT).status == StepStatus.APPROVED
        assert len(machine.get_history()) == 1
