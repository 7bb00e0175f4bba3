from dataclasses import dataclass

from django.conf import settings
from django.db import models


class Client(models.TextChoices):
    A_TA_PORTE = "A TA PORTE", "A TA PORTE"
    BEST_DEAL = "BEST DEAL", "BEST DEAL"
    LE_PHENICIEN = "LE PHÉNICIEN", "LE PHÉNICIEN"
    LE_GRAND_MARCHE = "LE GRAND MARCHÉ DE FRANCE", "LE GRAND MARCHÉ DE FRANCE"


@dataclass(frozen=True)
class CompanyInfo:
    name: str
    siren: str
    address: str
    phone: str
    tva_number: str


COMPANY_INFO = {
    Client.A_TA_PORTE: CompanyInfo(
        name="A TA PORTE",
        siren="981176704",
        address="14 RUE DE LA PAIX, 77170 SERVON",
        phone="07 58 33 31 24",
        tva_number="FR37981176704",
    ),
    Client.LE_GRAND_MARCHE: CompanyInfo(
        name="LE GRAND MARCHÉ DE FRANCE",
        siren="980966220",
        address="8 RUE JEAN NICOT, 93500 PANTIN",
        phone="07 58 33 31 24",
        tva_number="FR55980966220",
    ),
    Client.LE_PHENICIEN: CompanyInfo(
        name="LE PHÉNICIEN",
        siren="979278900",
        address="14 RUE DE LA PAIX, 77170 SERVON",
        phone="06 66 23 16 63",
        tva_number="FR40979278900",
    ),
    Client.BEST_DEAL: CompanyInfo(
        name="BEST DEAL",
        siren="888711389",
        address="64 RUE VIGIER, 91600 SAVIGNY-SUR-ORGE",
        phone="06 99 71 36 89",
        tva_number="FR36888711389",
    ),
}

# The company issuing every invoice.
ISSUER = COMPANY_INFO[Client.A_TA_PORTE]


def known_clients():
    """Known companies first, then the extra names configured for this install."""
    names = list(Client.values)
    for extra in settings.LEDGER_EXTRA_CLIENTS:
        extra = extra.strip()
        if extra and extra not in names:
            names.append(extra)
    return names


def is_known_client(name):
    return name in known_clients()


def company_info_for(name):
    """Company details for a client; extra clients only have a name."""
    info = COMPANY_INFO.get(name)
    if info is None:
        return CompanyInfo(name=name, siren="", address="", phone="", tva_number="")
    return info
