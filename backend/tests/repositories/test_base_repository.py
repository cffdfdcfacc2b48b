import pytest
from sqlalchemy.exc import IntegrityError

from app.models.user import User
from app.repositories import RepositoryFactory


def test_get_by_id(db, client_user):
    users = RepositoryFactory.create_user_repository(db)
    assert users.get_by_id(client_user.id).email == client_user.email
    assert users.get_by_id("01J0000000000000000000000Z") is None


def test_transaction_rolls_back_on_error(db, client_user):
    users = RepositoryFactory.create_user_repository(db)
    with pytest.raises(IntegrityError):
        with users.transaction():
            users.create(email=client_user.email, name="Duplicate", role="member")
    assert db.query(User).filter_by(email=client_user.email).count() == 1


def test_create_flushes_without_commit(db):
    users = RepositoryFactory.create_user_repository(db)
    user = users.create(email="new@example.com", name="New Member")
    assert user.id
    assert user.role == "member"
    db.rollback()
    assert db.query(User).filter_by(email="new@example.com").first() is None
