from decimal import Decimal
import pytest
from sqlmodel import Session, select

from app.core.init_data import init_admins
from app.models.referral_admin import AdminRole
from app.models.referral_link import ReferralLink
from app.models.referral_purchase import ReferralPurchase
from app.services.referral_service import ReferralService
from app.utils.referral_utils import NotAuthorizedException, StorageUnavailableException

REFERRER = "0xAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA"
BUYER = "0xBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBB"
OTHER = "0x" + "c" * 40
TX1 = "0x" + "1" * 64
TX2 = "0x" + "2" * 64


def test_capture_twice_creates_one_link(session: Session):
    service = ReferralService(session)
    assert service.capture(REFERRER, BUYER) is True
    assert service.capture(REFERRER.lower(), BUYER.lower()) is True
    rows = session.exec(select(ReferralLink)).all()
    assert len(rows) == 1
    assert rows[0].referrer_wallet == REFERRER.lower()


def test_capture_self_referral_creates_nothing(session: Session):
    assert ReferralService(session).capture(REFERRER, REFERRER.lower()) is True
    assert session.exec(select(ReferralLink)).all() == []


def test_capture_rejects_malformed_wallet(session: Session):
    with pytest.raises(ValueError):
        ReferralService(session).capture("0x123", BUYER)
    assert session.exec(select(ReferralLink)).all() == []


def test_purchase_attributed_from_stored_link(session: Session):
    service = ReferralService(session)
    service.capture(REFERRER, BUYER)
    service.record_purchase(BUYER, TX1, "100", "4000", 56)
    purchase = session.exec(select(ReferralPurchase)).one()
    assert purchase.referrer_wallet == REFERRER.lower()
    assert purchase.buyer_wallet == BUYER.lower()


def test_purchase_without_referrer_is_unattributed(session: Session):
    ReferralService(session).record_purchase(BUYER, TX1, "100", "4000")
    purchase = session.exec(select(ReferralPurchase)).one()
    assert purchase.referrer_wallet is None
    assert purchase.chain_id == 56


def test_purchase_with_explicit_referrer_links_buyer(session: Session):
    service = ReferralService(session)
    service.record_purchase(BUYER, TX1, "100", "4000", 56, referrer=REFERRER)
    assert service.links.find_referrer_of(BUYER) == REFERRER.lower()
    assert session.exec(select(ReferralPurchase)).one().referrer_wallet == REFERRER.lower()


def test_purchase_with_self_referrer_falls_back_to_link(session: Session):
    service = ReferralService(session)
    service.capture(REFERRER, BUYER)
    service.record_purchase(BUYER, TX1, "10", "400", 56, referrer=BUYER)
    assert session.exec(select(ReferralPurchase)).one().referrer_wallet == REFERRER.lower()


def test_duplicate_purchase_first_write_wins(session: Session):
    service = ReferralService(session)
    service.capture(REFERRER, BUYER)
    service.record_purchase(BUYER, TX1, "100", "4000", 56)
    service.record_purchase(BUYER, TX1, "500", "20000", 56)
    rows = session.exec(select(ReferralPurchase)).all()
    assert len(rows) == 1
    assert rows[0].usdt_amount == "100"


def test_purchase_validation_happens_before_storage(session: Session):
    service = ReferralService(session)
    with pytest.raises(ValueError):
        service.record_purchase(BUYER, "0xTX1", "100", "4000", 56, referrer=REFERRER)
    with pytest.raises(ValueError):
        service.record_purchase(BUYER, TX1, "cien", "4000", 56, referrer=REFERRER)
    assert session.exec(select(ReferralLink)).all() == []
    assert session.exec(select(ReferralPurchase)).all() == []


def test_user_dashboard_scenario(session: Session):
    service = ReferralService(session)
    service.capture(REFERRER, BUYER)
    service.record_purchase(BUYER, TX1, "100", "4000", 56)

    data = service.get_user_data(REFERRER)
    assert [r.referral_wallet for r in data.referrals] == [BUYER.lower()]
    assert [p.tx_hash for p in data.purchases] == [TX1]
    assert data.totals.total_usdt == "100"
    assert data.totals.total_tokens == "4000"

    # Reintento con el mismo hash: los totales no cambian
    service.record_purchase(BUYER, TX1, "100", "4000", 56)
    assert service.get_user_data(REFERRER).totals.total_usdt == "100"


def test_user_data_for_unknown_wallet_is_empty(session: Session):
    data = ReferralService(session).get_user_data(OTHER)
    assert data.referrals == []
    assert data.purchases == []
    assert data.totals.total_usdt == "0"
    assert data.totals.total_tokens == "0"


def test_user_data_totals_ignore_pagination(session: Session):
    service = ReferralService(session)
    service.capture(REFERRER, BUYER)
    service.record_purchase(BUYER, TX1, "100", "4000", 56)
    service.record_purchase(BUYER, TX2, "50", "2000", 56)
    data = service.get_user_data(REFERRER, limit=1)
    assert [p.tx_hash for p in data.purchases] == [TX2]
    assert data.totals.total_usdt == "150"


def test_referral_link(session: Session):
    link = ReferralService(session).get_referral_link(REFERRER)
    assert link.referral_link.endswith(f"/r/{REFERRER.lower()}")


def test_check_admin(session: Session, admins):
    service = ReferralService(session)
    assert service.check_admin(OTHER).is_admin is False
    result = service.check_admin(admins["read"])
    assert result.is_admin is True
    assert result.role == AdminRole.READ


def test_admin_stats_requires_admin(session: Session):
    service = ReferralService(session)
    service.capture(REFERRER, BUYER)
    with pytest.raises(NotAuthorizedException):
        service.admin_stats(OTHER)


def test_admin_stats_sums_match_purchases(session: Session, admins):
    service = ReferralService(session)
    service.capture(REFERRER, BUYER)
    service.capture(REFERRER, OTHER)
    service.record_purchase(BUYER, TX1, "100.25", "4010", 56)
    service.record_purchase(OTHER, TX2, "0.75", "30", 56)

    stats = service.admin_stats(admins["read"])
    assert len(stats) == 1
    row = stats[0]
    assert row.referrer_wallet == REFERRER.lower()
    assert row.referrals_count == 2

    purchases = session.exec(
        select(ReferralPurchase).where(ReferralPurchase.referrer_wallet == REFERRER.lower())
    ).all()
    assert Decimal(row.total_usdt) == sum(Decimal(p.usdt_amount) for p in purchases)
    assert row.total_usdt == "101"


def test_admin_stats_checks_role_on_every_call(session: Session, admins):
    service = ReferralService(session)
    assert service.admin_stats(admins["read"]) == []
    service.revoke_admin(admins["write"], admins["read"])
    with pytest.raises(NotAuthorizedException):
        service.admin_stats(admins["read"])


def test_storage_unavailable_degrades_writes(broken_session: Session):
    service = ReferralService(broken_session)
    assert service.capture(REFERRER, BUYER) is True
    assert service.record_purchase(BUYER, TX1, "100", "4000", 56) is True
    assert service.check_admin(REFERRER).is_admin is False


def test_storage_unavailable_fails_reads(broken_session: Session):
    service = ReferralService(broken_session)
    with pytest.raises(StorageUnavailableException):
        service.get_user_data(REFERRER)
    with pytest.raises(StorageUnavailableException):
        service.admin_stats(REFERRER)
    with pytest.raises(StorageUnavailableException):
        service.set_admin(REFERRER, BUYER, AdminRole.READ)


def test_init_admins_skips_invalid_wallets(session: Session):
    created = init_admins(session, [REFERRER, "not-a-wallet", REFERRER.lower()])
    assert created == 1
    assert ReferralService(session).check_admin(REFERRER).role == AdminRole.WRITE
