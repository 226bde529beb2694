"""Static catalog of supported payment platforms.

Drives the configuration UI and validates platform ids on stored configs
and transactions. Order matters: it is the order the UI lists them in.
"""

from __future__ import annotations

from typing import Optional

from app.core.exceptions import UnknownPlatformError
from app.schemas.platform import PlatformInfo

PLATFORMS: tuple[PlatformInfo, ...] = (
    PlatformInfo(
        id="kiwify",
        name="Kiwify",
        description="Plataforma de produtos digitais e infoprodutos",
        logo="/logos/kiwify.svg",
        category="E-commerce",
    ),
    PlatformInfo(
        id="hubla",
        name="Hubla",
        description="Plataforma de gestão financeira",
        logo="/logos/hubla.svg",
    ),
    PlatformInfo(
        id="doppus",
        name="Doppus",
        description="Checkout para produtos digitais e assinaturas",
        logo="/logos/doppus.svg",
        category="E-commerce",
    ),
    PlatformInfo(
        id="pagtrust",
        name="PagTrust",
        description="Gateway de pagamentos com antifraude e split",
        logo="/logos/pagtrust.svg",
    ),
    PlatformInfo(
        id="mundpay",
        name="MundPay",
        description="Gateway de pagamentos com split e afiliados",
        logo="/logos/mundpay.svg",
    ),
    PlatformInfo(
        id="appmax",
        name="Appmax",
        description="Checkout e gateway para e-commerce",
        logo="/logos/appmax.svg",
        category="E-commerce",
    ),
    PlatformInfo(
        id="fortpay",
        name="FortPay",
        description="Gateway de pagamentos",
        logo="/logos/fortpay.svg",
    ),
    PlatformInfo(
        id="pepper",
        name="Pepper",
        description="Checkout para infoprodutos e físicos",
        logo="/logos/pepper.svg",
        category="E-commerce",
    ),
    PlatformInfo(
        id="maxweb",
        name="MaxWeb",
        description="Plataforma de vendas com entrega física",
        logo="/logos/maxweb.svg",
        category="E-commerce",
    ),
    PlatformInfo(
        id="logzz",
        name="Logzz",
        description="Plataforma de logística",
        logo="/logos/logzz.svg",
        category="Logística",
    ),
    PlatformInfo(
        id="systeme",
        name="Systeme.io",
        description="Plataforma de marketing e funis de venda",
        logo="/logos/systeme.svg",
        category="Marketing",
    ),
    PlatformInfo(
        id="strivpay",
        name="StrivPay",
        description="Gateway de pagamentos",
        logo="/logos/strivpay.svg",
    ),
    PlatformInfo(
        id="clickbank",
        name="ClickBank",
        description="Marketplace de afiliados internacional",
        logo="/logos/clickbank.svg",
        category="Afiliados",
    ),
    PlatformInfo(
        id="digistore24",
        name="Digistore24",
        description="Marketplace de produtos digitais e afiliados",
        logo="/logos/digistore24.svg",
        category="Afiliados",
    ),
    PlatformInfo(
        id="ticto",
        name="Ticto",
        description="Plataforma de produtos digitais",
        logo="/logos/ticto.svg",
        category="E-commerce",
    ),
    PlatformInfo(
        id="nitro",
        name="Nitro",
        description="Gateway de pagamentos",
        logo="/logos/nitro.svg",
    ),
    PlatformInfo(
        id="twispay",
        name="Twispay",
        description="Processador de pagamentos online",
        logo="/logos/twispay.svg",
    ),
    PlatformInfo(
        id="yapay",
        name="Yapay",
        description="Intermediador de pagamentos",
        logo="/logos/yapay.svg",
    ),
    PlatformInfo(
        id="shopify",
        name="Shopify",
        description="Loja virtual com checkout próprio",
        logo="/logos/shopify.svg",
        category="E-commerce",
    ),
    PlatformInfo(
        id="cartpanda",
        name="CartPanda",
        description="Checkout para lojas virtuais",
        logo="/logos/cartpanda.svg",
        category="E-commerce",
    ),
)


class PlatformRegistry:
    """Lookup over the platform catalog."""

    def __init__(self, platforms: tuple[PlatformInfo, ...] = PLATFORMS) -> None:
        self._platforms = platforms
        self._by_id = {p.id: p for p in platforms}
        if len(self._by_id) != len(platforms):
            raise ValueError("Duplicate platform id in catalog")

    def list(self) -> list[PlatformInfo]:
        return list(self._platforms)

    def ids(self) -> list[str]:
        return [p.id for p in self._platforms]

    def get(self, platform_id: str) -> Optional[PlatformInfo]:
        return self._by_id.get(platform_id)

    def is_known(self, platform_id: str) -> bool:
        return platform_id in self._by_id

    def require(self, platform_id: str) -> PlatformInfo:
        """Return the catalog entry or raise UnknownPlatformError."""
        platform = self._by_id.get(platform_id)
        if platform is None:
            raise UnknownPlatformError(platform_id)
        return platform
