import logging
from typing import Dict, List, Optional
from sqlmodel import Session, select
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from app.models.referral_link import ReferralLink
from app.models.referral_purchase import ReferralPurchase, ReferralTotals, ReferrerStats
from app.utils.referral_utils import canonical_amount, format_amount, sum_amounts
from app.utils.wallet_utils import normalize_wallet, normalize_optional_wallet, normalize_tx_hash

logger = logging.getLogger(__name__)


class ReferralPurchaseService:
    def __init__(self, session: Session):
        self.session = session

    def record(
        self,
        buyer: str,
        tx_hash: str,
        usdt_amount: str,
        tokens_amount: str,
        chain_id: int,
        referrer: Optional[str] = None
    ) -> bool:
        """
        Guarda una compra on-chain. Si el tx_hash ya existe no se hace nada
        (el cliente puede reintentar sin duplicar totales).

        Returns:
            bool: True si se insertó una fila nueva
        """
        buyer = normalize_wallet(buyer)
        referrer = normalize_optional_wallet(referrer)
        tx_hash = normalize_tx_hash(tx_hash)
        if not isinstance(chain_id, int) or isinstance(chain_id, bool) or chain_id <= 0:
            raise ValueError(f"Invalid chain_id: {chain_id!r}")
        if referrer == buyer:
            referrer = None

        purchase = ReferralPurchase(
            tx_hash=tx_hash,
            buyer_wallet=buyer,
            referrer_wallet=referrer,
            usdt_amount=canonical_amount(usdt_amount),
            tokens_amount=canonical_amount(tokens_amount),
            chain_id=chain_id
        )
        self.session.add(purchase)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            logger.info("Purchase %s already recorded, ignoring", tx_hash)
            return False
        return True

    def list_by_referrer(
        self,
        referrer: str,
        skip: int = 0,
        limit: Optional[int] = None
    ) -> List[ReferralPurchase]:
        referrer = normalize_wallet(referrer)
        query = (
            select(ReferralPurchase)
            .where(ReferralPurchase.referrer_wallet == referrer)
            .order_by(ReferralPurchase.created_at.desc(), ReferralPurchase.id.desc())
            .offset(skip)
        )
        if limit is not None:
            query = query.limit(limit)
        return list(self.session.exec(query).all())

    def totals_for_referrer(self, referrer: str) -> ReferralTotals:
        """Suma de todas las compras atribuidas, sin importar la paginación."""
        referrer = normalize_wallet(referrer)
        rows = self.session.exec(
            select(ReferralPurchase.usdt_amount, ReferralPurchase.tokens_amount)
            .where(ReferralPurchase.referrer_wallet == referrer)
        ).all()
        return ReferralTotals(
            total_usdt=format_amount(sum_amounts(row[0] for row in rows)),
            total_tokens=format_amount(sum_amounts(row[1] for row in rows))
        )

    def aggregate_by_referrer(self) -> List[ReferrerStats]:
        """
        Una fila por cada referidor con al menos un referido registrado,
        tenga o no compras. Ordenado por total_usdt descendente.

        Las sumas se calculan con Decimal sobre las compras del referidor,
        sin multiplicar por el número de referidos.
        """
        link_rows = self.session.exec(
            select(
                ReferralLink.referrer_wallet,
                func.count(func.distinct(ReferralLink.referral_wallet))
            ).group_by(ReferralLink.referrer_wallet)
        ).all()

        stats: Dict[str, dict] = {
            referrer: {
                "referrals_count": count,
                "usdt_amounts": [],
                "tokens_amounts": [],
                "last_activity": None,
            }
            for referrer, count in link_rows
        }
        if not stats:
            return []

        purchase_rows = self.session.exec(
            select(
                ReferralPurchase.referrer_wallet,
                ReferralPurchase.usdt_amount,
                ReferralPurchase.tokens_amount,
                ReferralPurchase.created_at
            ).where(ReferralPurchase.referrer_wallet.is_not(None))
        ).all()

        for referrer, usdt_amount, tokens_amount, created_at in purchase_rows:
            entry = stats.get(referrer)
            if entry is None:
                continue
            entry["usdt_amounts"].append(usdt_amount)
            entry["tokens_amounts"].append(tokens_amount)
            if entry["last_activity"] is None or created_at > entry["last_activity"]:
                entry["last_activity"] = created_at

        totals = {
            referrer: sum_amounts(entry["usdt_amounts"])
            for referrer, entry in stats.items()
        }
        # Mayor total primero; empates por wallet
        ordered = sorted(stats)
        ordered.sort(key=lambda referrer: totals[referrer], reverse=True)
        return [
            ReferrerStats(
                referrer_wallet=referrer,
                referrals_count=stats[referrer]["referrals_count"],
                total_usdt=format_amount(totals[referrer]),
                total_tokens=format_amount(
                    sum_amounts(stats[referrer]["tokens_amounts"])),
                last_activity=stats[referrer]["last_activity"]
            )
            for referrer in ordered
        ]
