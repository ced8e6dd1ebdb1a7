"""Shared sample catalog for search, facet and server tests."""

import pytest

# Derived connection sizes (see test_connection.py):
#   10001 -> 4.1 (name), 10002 -> 4.1 (platform P06), 10003 -> 3.75 (name),
#   10004 -> None (only mentions its own diameter), 10005 -> 4.5 (explicit),
#   10006 -> 3.4 (name), 10007 -> 3.5 (name)
PARTS = [
    {
        "sku": "10001",
        "mfg_code": "IEAB41",
        "name_de": "Abutment Certain (Ext Hex, 4,1 mm), Ø 5,0 mm",
        "group": "Prothetik",
        "product_group": "Abutment",
        "platform": "P01",
        "diameter_mm": 5.0,
        "length_mm": 7.0,
        "gingiva_mm": 2.0,
        "angulation_deg": 0,
        "color": "gold",
        "ausfuehrung": "gerade",
        "rotationsschutz": "mit Rotationsschutz",
        "zubehoer": "inkl. Schraube",
    },
    {
        "sku": "10002",
        "mfg_code": "GF4140",
        "name_de": "Gingivaformer (Certain, 4,1 mm) GH 4 mm",
        "group": "Prothetik",
        "product_group": "Gingivaformer",
        "platform": "P06",
        "diameter_mm": "4,8",
        "gingiva_mm": 4.0,
        "color": "grau",
        "rotationsschutz": "ohne Rotationsschutz",
    },
    {
        "sku": "10003",
        "mfg_code": "AP375O",
        "name_de": "Abformpfosten offen (Internal, 3,75 mm)",
        "group": "Abformung",
        "product_group": "Abformpfosten",
        "platform": "",
        "diameter_mm": 4.5,
        "length_mm": 10.0,
        "abformung": "open",
        "rotationsschutz": "ja",
    },
    {
        "sku": "10004",
        "mfg_code": "AP50C",
        "name_de": "Abformpfosten geschlossen (TSX 5,0 mm)",
        "group": "Abformung",
        "product_group": "Abformpfosten",
        "diameter_mm": 5.0,
        "length_mm": 10.0,
        "abformung": "closed",
    },
    {
        "sku": "10005",
        "mfg_code": "LI45",
        "name_de": "Laborimplantat",
        "group": "Labor",
        "product_group": "Laborimplantat",
        "platform": "P02",
        "diameter_mm": 4.5,
        "connection_mm": "4,5",
    },
    {
        "sku": "10006",
        "mfg_code": "AW15",
        "name_de": "Abutment gewinkelt 15° (Ext Hex 3,4 mm)",
        "name_long_de": "Abutment gewinkelt 15 Grad, Ø 4,0 mm",
        "group": "Prothetik",
        "product_group": "Abutment",
        "platform": "P03",
        "diameter_mm": 4.0,
        "gingiva_mm": 3.0,
        "angulation_deg": 15,
        "color": "gold",
        "ausfuehrung": "gewinkelt",
        "rotationsschutz": "R-Schutz",
    },
    {
        "sku": "10007",
        "mfg_code": "MUA35",
        "name_de": "Multi-Unit Abutment (Connection 3,5 mm)",
        "group": "Prothetik",
        "product_group": "Abutment",
        "platform": "P03",
        "diameter_mm": 4.8,
        "gingiva_mm": 2.0,
    },
]


@pytest.fixture
def parts() -> list[dict]:
    return [dict(p) for p in PARTS]


def skus(records: list[dict]) -> list[str]:
    return [r["sku"] for r in records]
