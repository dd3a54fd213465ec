"""Tests for privilege aggregation across roles."""

from app.cep.aggregator import aggregate_privileges
from app.cep.privileges import Privilege

P1 = Privilege("MANAGE_DEVICES", "03hv69ve4bjwe54")
P2 = Privilege("APP_ADMIN", "03hv69ve4bjwe54")
P3 = Privilege("APP_ADMIN", "01egqt2p2p8gvae")


def test_no_roles_gives_empty_set():
    assert aggregate_privileges([]) == frozenset()


def test_union_across_roles(make_role):
    roles = [make_role("1", [P1]), make_role("2", [P2, P3])]
    assert aggregate_privileges(roles) == {P1, P2, P3}


def test_duplicate_pairs_across_roles_collapse(make_role):
    roles = [make_role("1", [P1, P2]), make_role("2", [P1])]
    held = aggregate_privileges(roles)
    assert len([p for p in held if p == P1]) == 1
    assert len(held) == 2


def test_same_name_different_service_kept_apart(make_role):
    held = aggregate_privileges([make_role("1", [P2, P3])])
    assert held == {P2, P3}


def test_malformed_entries_are_skipped(make_role):
    role = make_role(
        "1",
        [
            P1,
            {"privilegeName": "MANAGE_DEVICE_SETTINGS"},
            {"serviceId": "03hv69ve4bjwe54"},
            {"privilegeName": "", "serviceId": "03hv69ve4bjwe54"},
            {"privilegeName": 42, "serviceId": "03hv69ve4bjwe54"},
        ],
    )
    assert aggregate_privileges([role]) == {P1}


def test_extra_fields_are_ignored(make_role):
    role = make_role("1", [{"privilegeName": "MANAGE_DEVICES", "serviceId": "03hv69ve4bjwe54", "isOuScopable": True}])
    assert aggregate_privileges([role]) == {P1}
