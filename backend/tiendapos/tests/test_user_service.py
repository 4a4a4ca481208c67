import pytest

from tiendapos.core.errors import AuthenticationError, NotFoundError, ValidationError
from tiendapos.core.roles import Permission
from tiendapos.services import user_service


def test_update_user_permissions_are_partial(db, admin, cashier):
    user = user_service.update_user(
        db, admin.to_actor(), cashier.id, permissions={"can_do_cash_cuts": True},
    )

    actor = user.to_actor()
    assert actor.can(Permission.can_do_cash_cuts)
    assert actor.can(Permission.can_sell)
    assert not actor.can(Permission.can_manage_users)


def test_update_user_role_keeps_flags(db, admin, cashier):
    user = user_service.update_user(db, admin.to_actor(), cashier.id, role="encargado")

    assert user.role == "encargado"
    assert user.can_do_cash_cuts is False


def test_deactivated_user_cannot_log_in(db, admin, cashier):
    user_service.update_user(db, admin.to_actor(), cashier.id, is_active=False)

    with pytest.raises(AuthenticationError):
        user_service.authenticate(db, "cajero", "secret123")


def test_password_change(db, admin, cashier):
    user_service.update_user(db, admin.to_actor(), cashier.id, password="otra789")

    assert user_service.authenticate(db, "cajero", "otra789").id == cashier.id
    with pytest.raises(AuthenticationError):
        user_service.authenticate(db, "cajero", "secret123")


def test_invalid_updates(db, admin, cashier):
    actor = admin.to_actor()
    with pytest.raises(ValidationError):
        user_service.update_user(db, actor, admin.id, is_active=False)
    with pytest.raises(ValidationError):
        user_service.update_user(db, actor, cashier.id, role="gerente")
    with pytest.raises(ValidationError):
        user_service.update_user(db, actor, cashier.id, permissions={"can_fly": True})
    with pytest.raises(ValidationError):
        user_service.update_user(db, actor, cashier.id, password="  ")
    with pytest.raises(NotFoundError):
        user_service.update_user(db, actor, 999, is_active=False)
