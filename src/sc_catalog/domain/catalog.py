"""Static product catalog: one prize table per scratch-card category.

Tables are ordered from the most common (cheapest) tier to the rarest; the
order is part of the sampling contract and must not change at runtime.
Building this module validates every table, so a broken catalog fails at
import time rather than on a player's purchase.
"""

from enum import IntEnum

from src.sc_catalog.domain.prize_table import PrizeTable, PrizeTier
from src.sc_common.errors import CategoryNotFoundError


class Category(IntEnum):
    PIX = 1
    ELECTRONICS = 2
    COSMETICS = 3
    VEHICLES = 4


def _t(tier_id: str, name: str, value_cents: int, weight: int) -> PrizeTier:
    return PrizeTier(id=tier_id, display_name=name, value_cents=value_cents, weight=weight)


_PIX = PrizeTable(
    category_id=Category.PIX,
    name="PIX na conta",
    stake_cents=50,
    tiers=(
        _t("pix-0.50", "50 Centavos", 50, 3500),
        _t("pix-1", "1 Real", 100, 2500),
        _t("pix-2", "2 Reais", 200, 1500),
        _t("pix-5", "5 Reais", 500, 1000),
        _t("pix-10", "10 Reais", 1000, 600),
        _t("pix-20", "20 Reais", 2000, 400),
        _t("pix-50", "50 Reais", 5000, 250),
        _t("pix-100", "100 Reais", 10000, 150),
        _t("pix-200", "200 Reais", 20000, 70),
        _t("pix-500", "500 Reais", 50000, 20),
        _t("pix-1000", "Mil Reais", 100000, 9),
        _t("pix-2000", "2 Mil Reais", 200000, 1),
    ),
)

_ELECTRONICS = PrizeTable(
    category_id=Category.ELECTRONICS,
    name="Eletrônicos",
    stake_cents=200,
    tiers=(
        _t("el-usb-c", "Cabo USB-C", 2500, 2500),
        _t("el-case", "Capa Transparente", 3000, 2000),
        _t("el-film", "Película ColorGlass", 5000, 1500),
        _t("el-stand", "Suporte Celular", 8000, 1200),
        _t("el-charger", "Carregador Apple", 12000, 800),
        _t("el-earbuds", "Fones Sem Fio", 15000, 600),
        _t("el-jbl", "Caixa JBL", 20000, 400),
        _t("el-powerbank", "Power Bank 20000mAh", 25000, 300),
        _t("el-echo", "Echo Dot Alexa", 40000, 250),
        _t("el-watch", "Apple Watch", 120000, 150),
        _t("el-tablet", "Tablet Samsung", 150000, 100),
        _t("el-galaxy", "Samsung Galaxy", 200000, 70),
        _t("el-ipad", "iPad", 250000, 40),
        _t("el-fridge", "Geladeira Electrolux", 300000, 20),
        _t("el-tv", 'Smart TV 55" Aiwa', 350000, 15),
        _t("el-iphone", "iPhone 15 Pro", 500000, 10),
        _t("el-macbook", "MacBook Air", 800000, 5),
    ),
)

_COSMETICS = PrizeTable(
    category_id=Category.COSMETICS,
    name="Cosméticos",
    stake_cents=250,
    tiers=(
        _t("co-usb-c", "Cabo USB-C", 2500, 3500),
        _t("co-mask", "Máscara Facial", 5000, 2500),
        _t("co-shein", "Voucher SHEIN", 10000, 1500),
        _t("co-splash", "Body Splash Kit", 12000, 1000),
        _t("co-hobo", "Bolsa Hobo", 15000, 600),
        _t("co-box", "Caixa de Beleza", 20000, 400),
        _t("co-brush", "Escova Alisadora", 28000, 250),
        _t("co-makeup", "Kit Maquiagem", 35000, 150),
        _t("co-kerastase", "Kit Kérastase", 45000, 80),
        _t("co-dior", "Perfume Dior", 80000, 20),
    ),
)

_VEHICLES = PrizeTable(
    category_id=Category.VEHICLES,
    name="Veículos",
    stake_cents=500,
    tiers=(
        _t("ve-freshener", "Odorizante Magnil", 4500, 3000),
        _t("ve-holder", "Suporte Veicular", 8000, 2500),
        _t("ve-skates", "Patins Inline", 28000, 1500),
        _t("ve-helmet", "Capacete Moto", 35000, 1000),
        _t("ve-jacket", "Jaqueta Motociclista", 45000, 800),
        _t("ve-hoverboard", "Hoverboard HYB", 80000, 500),
        _t("ve-scooter", "Patinete Elétrico", 120000, 300),
        _t("ve-bicycle", "Bicicleta Colli", 150000, 200),
        _t("ve-pop", "Honda Pop 110i", 850000, 150),
        _t("ve-cg160", "Honda CG 160 Start", 1200000, 50),
    ),
)

CATALOG: dict[int, PrizeTable] = {
    table.category_id: table for table in (_PIX, _ELECTRONICS, _COSMETICS, _VEHICLES)
}


def get_prize_table(category_id: int) -> PrizeTable:
    table = CATALOG.get(category_id)
    if table is None:
        raise CategoryNotFoundError(category_id)
    return table
