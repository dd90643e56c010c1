import threading

import pytest
from sqlalchemy import create_engine, func, select

from compcoach.core.errors import StorageError
from compcoach.db.base import Base
from compcoach.db.session import build_engine, build_session_factory
from compcoach.models.account import Account
from compcoach.services.account_store import AccountStore


def _count_accounts(session_factory, identity_ref: str) -> int:
    with session_factory() as session:
        return session.execute(
            select(func.count()).select_from(Account).where(Account.identity_ref == identity_ref)
        ).scalar_one()


@pytest.fixture
def file_store(tmp_path):
    """Store over an on-disk SQLite database so several threads get their own connections."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'accounts.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    factory = build_session_factory(engine)
    yield AccountStore(factory), factory
    engine.dispose()


def test_get_or_create_defaults(store):
    account = store.get_or_create("user_1")
    assert account.identity_ref == "user_1"
    assert account.tier == "free"
    assert account.status == "active"
    assert account.usage_count == 0
    assert account.billing_customer_ref is None


def test_get_or_create_is_idempotent(store, session_factory):
    first = store.get_or_create("user_1")
    second = store.get_or_create("user_1")
    assert first.id == second.id
    assert _count_accounts(session_factory, "user_1") == 1


def test_get_or_create_uses_configured_default_tier(session_factory):
    beta_store = AccountStore(session_factory, default_tier="premium")
    assert beta_store.get_or_create("beta_user").tier == "premium"


def test_get_or_create_requires_identity(store):
    with pytest.raises(ValueError):
        store.get_or_create("")


def test_get_returns_none_for_unknown_identity(store):
    assert store.get("nobody") is None


def test_set_billing_customer_ref_is_idempotent(store):
    store.get_or_create("user_1")
    store.set_billing_customer_ref("user_1", "cus_1")
    store.set_billing_customer_ref("user_1", "cus_1")
    assert store.get("user_1").billing_customer_ref == "cus_1"


def test_apply_billing_update_matches_customer(store):
    store.get_or_create("user_1")
    store.set_billing_customer_ref("user_1", "cus_1")

    assert store.apply_billing_update("cus_1", tier="premium", status="active", subscription_ref="sub_1") is True

    account = store.get("user_1")
    assert account.tier == "premium"
    assert account.status == "active"
    assert account.billing_subscription_ref == "sub_1"
    assert account.usage_count == 0


def test_apply_billing_update_keeps_subscription_ref_when_not_given(store):
    store.get_or_create("user_1")
    store.set_billing_customer_ref("user_1", "cus_1")
    store.apply_billing_update("cus_1", tier="premium", status="active", subscription_ref="sub_1")

    store.apply_billing_update("cus_1", tier="free", status="canceled")

    account = store.get("user_1")
    assert account.tier == "free"
    assert account.status == "canceled"
    assert account.billing_subscription_ref == "sub_1"


def test_apply_billing_update_without_match_is_noop(store):
    store.get_or_create("user_1")
    assert store.apply_billing_update("cus_unknown", tier="premium", status="active") is False
    assert store.get("user_1").tier == "free"


def test_increment_usage_returns_new_value(store):
    store.get_or_create("user_1")
    assert store.increment_usage("user_1") == 1
    assert store.increment_usage("user_1") == 2
    assert store.get("user_1").usage_count == 2


def test_increment_usage_for_missing_account_raises(store):
    with pytest.raises(StorageError):
        store.increment_usage("ghost")


def test_database_failures_surface_as_storage_error():
    # No tables created, every query fails
    engine = build_engine("sqlite://")
    broken = AccountStore(build_session_factory(engine))
    with pytest.raises(StorageError):
        broken.get_or_create("user_1")
    with pytest.raises(StorageError):
        broken.increment_usage("user_1")
    engine.dispose()


def test_concurrent_increments_do_not_lose_updates(file_store):
    store, _ = file_store
    store.get_or_create("user_1")
    for _ in range(4):
        store.increment_usage("user_1")

    threads_count, per_thread = 10, 5
    errors = []

    def worker():
        try:
            for _ in range(per_thread):
                store.increment_usage("user_1")
        except Exception as e:  # surfaced through the assertion below
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(threads_count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert store.get("user_1").usage_count == 4 + threads_count * per_thread


def test_concurrent_first_access_creates_one_account(file_store):
    store, factory = file_store
    barrier = threading.Barrier(8)
    ids, errors = [], []

    def worker():
        try:
            barrier.wait()
            ids.append(store.get_or_create("new_user").id)
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert len(set(ids)) == 1
    assert _count_accounts(factory, "new_user") == 1
