"""Vendor profiles, keyed by registry platform id."""

from app.services.platforms.adapter import VendorProfile
from app.services.platforms.vendors import (
    appmax,
    cartpanda,
    clickbank,
    digistore24,
    doppus,
    fortpay,
    hubla,
    kiwify,
    logzz,
    maxweb,
    mundpay,
    nitro,
    pagtrust,
    pepper,
    shopify,
    strivpay,
    systeme,
    ticto,
    twispay,
    yapay,
)

ADAPTER_PROFILES: dict[str, VendorProfile] = {
    module.PROFILE.platform_id: module.PROFILE
    for module in (
        appmax,
        cartpanda,
        clickbank,
        digistore24,
        doppus,
        fortpay,
        hubla,
        kiwify,
        logzz,
        maxweb,
        mundpay,
        nitro,
        pagtrust,
        pepper,
        shopify,
        strivpay,
        systeme,
        ticto,
        twispay,
        yapay,
    )
}
