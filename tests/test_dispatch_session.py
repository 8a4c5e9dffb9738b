import pytest

from allocation.session import (
    AggregateMode,
    DispatchState,
    EditUnit,
    Quantity,
    SetAggregate,
    SetEnabled,
    apply_action,
)
from resources.unit import UnknownUnitError


def p_values(session):
    return tuple(u.active_mw for u in session.units)


def q_values(session):
    return tuple(u.reac_mvar for u in session.units)


def test_initial_state_is_manual_build(session):
    assert session.state.total_p.mode is AggregateMode.MANUAL_BUILD
    assert session.state.total_q.mode is AggregateMode.MANUAL_BUILD
    assert session.total_p == 0 and session.total_q == 0


def test_reference_scenario(session):
    session.set_total_p(100)
    assert p_values(session) == (46, 27, 27)

    session.set_enabled("SWG03", False)
    assert p_values(session) == (50, 50, 0)
    assert session.total_p == 100

    session.set_total_q(7)
    assert q_values(session) == (5, 2, 0)


def test_negative_reactive_all_enabled(session):
    session.set_total_q(-12)
    assert q_values(session) == (-6, -3, -3)


def test_aggregate_is_floored(session):
    session.set_total_p(100.7)
    assert session.total_p == 100
    assert p_values(session) == (46, 27, 27)


def test_nonzero_aggregate_locks_and_zero_unlocks(session):
    session.set_total_p(100)
    assert session.state.total_p.mode is AggregateMode.AGGREGATE_LOCKED
    session.set_total_p(0)
    assert session.state.total_p.mode is AggregateMode.MANUAL_BUILD
    assert p_values(session) == (0, 0, 0)


@pytest.mark.parametrize("total", [100, 37, -64, 1, 250])
def test_disable_then_enable_restores_split(session, total):
    session.set_total_p(total)
    session.set_total_q(total)
    before = (p_values(session), q_values(session))
    session.set_enabled("SWG02", False)
    session.set_enabled("SWG02", True)
    assert (p_values(session), q_values(session)) == before


def test_toggle_flips_enabled(session):
    session.toggle("SWG03")
    assert not session.pool.get("SWG03").enabled
    session.toggle("SWG03")
    assert session.pool.get("SWG03").enabled


class TestTargetLock:

    def test_edit_preserves_aggregate(self, session):
        session.set_total_p(100)
        session.edit_unit("SWG02", "active_mw", 40)
        assert p_values(session) == (38, 40, 22)
        assert session.total_p == 100
        assert sum(p_values(session)) == 100

    def test_reactive_edit_preserves_aggregate(self, session):
        session.set_total_q(12)
        session.edit_unit("SWG01", "reac_mvar", 2)
        assert q_values(session) == (2, 5, 5)
        assert session.total_q == 12

    def test_edit_with_unit_offline(self, session):
        session.set_total_p(100)
        session.set_enabled("SWG03", False)
        session.edit_unit("SWG01", "active_mw", 70)
        assert p_values(session) == (70, 30, 0)
        assert session.pool.total_active() == 100

    def test_only_enabled_unit_sets_aggregate(self, session):
        session.set_total_p(100)
        session.set_enabled("SWG02", False)
        session.set_enabled("SWG03", False)
        assert p_values(session) == (100, 0, 0)
        session.edit_unit("SWG01", "active_mw", 80)
        assert p_values(session) == (80, 0, 0)
        assert session.total_p == 80
        assert session.state.total_p.mode is AggregateMode.AGGREGATE_LOCKED

    def test_disabled_unit_edit_is_stored_only(self, session):
        session.set_total_p(100)
        session.set_enabled("SWG03", False)
        session.edit_unit("SWG03", "active_mw", 5)
        assert p_values(session) == (50, 50, 5)
        assert session.total_p == 100

    def test_p_edit_leaves_q_alone(self, session):
        session.set_total_p(100)
        session.set_total_q(12)
        session.edit_unit("SWG02", "active_mw", 40)
        assert q_values(session) == (6, 3, 3)


class TestManualBuild:

    def test_edit_affects_only_that_unit(self, session):
        session.edit_unit("SWG01", "active_mw", 30)
        assert p_values(session) == (30, 0, 0)
        session.edit_unit("SWG02", "active_mw", 20)
        assert p_values(session) == (30, 20, 0)
        assert session.total_p == 50
        assert session.state.total_p.mode is AggregateMode.MANUAL_BUILD

    def test_reactive_edit_is_independent(self, session):
        session.set_total_p(100)
        session.edit_unit("SWG03", "reac_mvar", -4)
        assert q_values(session) == (0, 0, -4)
        assert session.total_q == -4
        assert p_values(session) == (46, 27, 27)

    def test_toggle_resplits_built_total(self, session):
        session.edit_unit("SWG01", "active_mw", 10)
        session.edit_unit("SWG02", "active_mw", 20)
        session.edit_unit("SWG03", "active_mw", 30)
        assert session.total_p == 60

        session.set_enabled("SWG03", False)
        assert p_values(session) == (30, 30, 0)
        assert session.total_p == 60
        assert session.state.total_p.mode is AggregateMode.MANUAL_BUILD

        session.set_enabled("SWG03", True)
        assert p_values(session) == (28, 16, 16)
        assert session.total_p == 60

    def test_toggle_with_zero_total_keeps_stored_values(self, session):
        session.set_enabled("SWG03", False)
        session.edit_unit("SWG03", "active_mw", 10)
        assert session.total_p == 0
        session.set_enabled("SWG03", True)
        assert p_values(session) == (0, 0, 10)
        assert session.total_p == 10


class TestStateOfCharge:

    def test_soc_clamped_and_independent(self, session):
        session.set_total_p(100)
        session.edit_unit("SWG01", "soc", 120)
        session.edit_unit("SWG02", "soc", -3)
        assert session.pool.get("SWG01").soc == 100.0
        assert session.pool.get("SWG02").soc == 0.0
        assert p_values(session) == (46, 27, 27)
        assert session.total_p == 100

    def test_soc_editable_on_disabled_unit(self, session):
        session.set_enabled("SWG03", False)
        session.edit_unit("SWG03", "soc", 55.5)
        assert session.pool.get("SWG03").soc == 55.5


def test_apply_action_is_pure(station):
    state = DispatchState.initial(station)
    new_state = apply_action(state, SetAggregate(Quantity.ACTIVE, 100), station.weight_profiles)
    assert [u.active_mw for u in state.pool.units] == [0, 0, 0]
    assert state.total_p.value == 0
    assert [u.active_mw for u in new_state.pool.units] == [46, 27, 27]

    toggled = apply_action(new_state, SetEnabled("SWG03", False), station.weight_profiles)
    assert new_state.pool.get("SWG03").enabled
    assert not toggled.pool.get("SWG03").enabled

    edited = apply_action(toggled, EditUnit("SWG01", "active_mw", 60))
    assert toggled.pool.get("SWG01").active_mw == 50
    assert edited.pool.get("SWG01").active_mw == 60


def test_unknown_unit_and_field(session):
    with pytest.raises(UnknownUnitError):
        session.edit_unit("SWG09", "active_mw", 1)
    with pytest.raises(ValueError):
        session.edit_unit("SWG01", "weight", 1)


def test_unsupported_action(station):
    with pytest.raises(TypeError):
        apply_action(DispatchState.initial(station), object())
