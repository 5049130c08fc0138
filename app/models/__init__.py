# Módulo models: define las tablas y estructuras de datos del programa de referidos (SQLModel/Pydantic)
# Todas las tablas se registran en SQLModel.metadata al importar este módulo

from .referral_link import ReferralLink, ReferralLinkRead, ReferralCaptureRequest, ReferralLinkResponse, OkResponse
from .referral_purchase import ReferralPurchase, ReferralPurchaseCreate, ReferralPurchaseRead, ReferralTotals, UserReferralData, ReferrerStats
from .referral_admin import ReferralAdmin, AdminRole, AdminCheckResponse, AdminRoleUpdate
